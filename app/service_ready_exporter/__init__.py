"""
Service Ready Exporter.

Prometheus exporter that discovers the hosts routed by Kubernetes Ingress
resources and reports whether each host's /readyz endpoint answers.
"""

__version__ = "0.1.0"
