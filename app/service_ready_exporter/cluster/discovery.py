"""
Host discovery from Ingress resources.

Walks namespace -> Ingress -> rule and returns one RoutableHost per rule
that names a host. Nothing is cached; every call reads the cluster afresh.
"""

import time
from typing import Any, Optional, Protocol

from kubernetes.client.exceptions import ApiException
from urllib3.exceptions import HTTPError as Urllib3HTTPError

from service_ready_exporter.cluster.types import (
    DeadlineExceededError,
    DiscoveryError,
    RoutableHost,
)
from service_ready_exporter.utils.logging import get_logger

logger = get_logger(__name__)

# Errors raised by the kubernetes client for API and transport failures
API_ERRORS = (ApiException, Urllib3HTTPError)


class IngressLister(Protocol):
    """The slice of the Kubernetes API that discovery depends on."""

    def list_namespaces(self, timeout: Optional[float] = None) -> list[str]: ...

    def list_ingresses(self, namespace: str, timeout: Optional[float] = None) -> list[Any]: ...


def hosts_from_ingress(namespace: str, ingress: Any) -> list[RoutableHost]:
    """
    Expand one Ingress into a RoutableHost per rule.

    Rules without a host (catch-all default backends) have nothing to
    probe and are skipped.
    """
    name = ingress.metadata.name
    spec = ingress.spec
    rules = (spec.rules if spec is not None else None) or []

    hosts = []
    for rule in rules:
        if not rule.host:
            logger.debug("Skipping host-less rule in ingress %s/%s", namespace, name)
            continue
        hosts.append(RoutableHost(namespace=namespace, name=name, host=rule.host))
    return hosts


def remaining_time(deadline: Optional[float], step: str) -> Optional[float]:
    """
    Seconds left before a monotonic deadline.

    Raises:
        DeadlineExceededError: If the deadline has already passed
    """
    if deadline is None:
        return None
    remaining = deadline - time.monotonic()
    if remaining <= 0:
        raise DeadlineExceededError(f"Scrape deadline passed before {step}")
    return remaining


def discover_hosts(
    cluster: IngressLister,
    deadline: Optional[float] = None,
) -> list[RoutableHost]:
    """
    Discover every routable host in the cluster.

    Args:
        cluster: Handle able to list namespaces and Ingresses
        deadline: time.monotonic() value by which discovery must finish.
                  Each list call is bounded by the time left.

    Returns:
        One RoutableHost per Ingress rule with a host, duplicates included

    Raises:
        DiscoveryError: If any list call fails. No partial result is returned.
        DeadlineExceededError: If the deadline passes during discovery
    """
    try:
        namespaces = cluster.list_namespaces(
            timeout=remaining_time(deadline, "listing namespaces")
        )
    except API_ERRORS as e:
        raise DiscoveryError(f"Failed to list namespaces: {_describe(e)}") from e

    hosts: list[RoutableHost] = []
    for namespace in namespaces:
        timeout = remaining_time(deadline, f"listing ingresses in namespace {namespace}")
        try:
            ingresses = cluster.list_ingresses(namespace, timeout=timeout)
        except API_ERRORS as e:
            raise DiscoveryError(
                f"Failed to list ingresses in namespace {namespace}: {_describe(e)}",
                namespace=namespace,
            ) from e

        for ingress in ingresses:
            hosts.extend(hosts_from_ingress(namespace, ingress))

    logger.debug(
        "Discovered %d hosts across %d namespaces", len(hosts), len(namespaces)
    )
    return hosts


def _describe(error: Exception) -> str:
    if isinstance(error, ApiException):
        return f"{error.status} {error.reason}"
    return f"{type(error).__name__}: {error}"
