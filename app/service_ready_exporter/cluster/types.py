"""
Type definitions for cluster access.

This module defines the values produced by host discovery and the
exceptions raised while talking to the Kubernetes API.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class RoutableHost:
    """
    A host routed by one Ingress rule.

    Attributes:
        namespace: Namespace of the owning Ingress
        name: Name of the owning Ingress
        host: Externally visible hostname the rule routes for
    """

    namespace: str
    name: str
    host: str

    @property
    def readyz_url(self) -> str:
        """Readiness endpoint probed for this host."""
        return f"http://{self.host}/readyz"

    def labels(self) -> tuple[str, str, str]:
        """Label values in (namespace, name, host) order."""
        return (self.namespace, self.name, self.host)


class ClusterError(Exception):
    """Base exception for cluster access errors."""

    pass


class ClusterConnectionError(ClusterError):
    """Raised when no usable cluster credential can be found."""

    def __init__(self, message: str, attempts: list[str] | None = None):
        super().__init__(message)
        self.attempts = attempts or []


class DiscoveryError(ClusterError):
    """Raised when listing namespaces or Ingresses fails."""

    def __init__(self, message: str, namespace: str | None = None):
        super().__init__(message)
        self.namespace = namespace


class DeadlineExceededError(ClusterError):
    """Raised when the scrape deadline runs out before probing can start."""

    def __init__(self, message: str, timeout: float | None = None):
        super().__init__(message)
        self.timeout = timeout
