"""
Kubernetes cluster access.

This module handles:
- Credential resolution (env content, in-cluster, kubeconfig file)
- Ingress host discovery
"""

from service_ready_exporter.cluster.types import (
    RoutableHost,
    ClusterError,
    ClusterConnectionError,
    DiscoveryError,
    DeadlineExceededError,
)
from service_ready_exporter.cluster.connection import (
    ClusterApi,
    create_cluster_factory,
    load_cluster_configuration,
)
from service_ready_exporter.cluster.discovery import (
    IngressLister,
    discover_hosts,
    remaining_time,
    hosts_from_ingress,
)

__all__ = [
    # Types
    "RoutableHost",
    # Exceptions
    "ClusterError",
    "ClusterConnectionError",
    "DiscoveryError",
    "DeadlineExceededError",
    # Connection
    "ClusterApi",
    "create_cluster_factory",
    "load_cluster_configuration",
    # Discovery
    "IngressLister",
    "discover_hosts",
    "remaining_time",
    "hosts_from_ingress",
]
