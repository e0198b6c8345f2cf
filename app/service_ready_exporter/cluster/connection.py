"""
Kubernetes connection resolution.

Credentials are resolved in priority order:
1. Raw kubeconfig content from an environment variable (KUBECONFIG_CONTENT)
2. In-cluster service account
3. Kubeconfig file on disk (~/.kube/config)
"""

import os
from typing import Any, Callable, Mapping, Optional

import yaml
from kubernetes import client
from kubernetes import config as k8s_config
from kubernetes.config import ConfigException

from service_ready_exporter.cluster.types import ClusterConnectionError
from service_ready_exporter.config import KubernetesSettings
from service_ready_exporter.utils.logging import get_logger

logger = get_logger(__name__)


def load_cluster_configuration(
    settings: KubernetesSettings,
    environ: Optional[Mapping[str, str]] = None,
) -> client.Configuration:
    """
    Build a client configuration from the first credential source that works.

    Args:
        settings: Kubernetes connection settings
        environ: Environment mapping to read kubeconfig content from

    Returns:
        A populated kubernetes.client.Configuration

    Raises:
        ClusterConnectionError: If no credential source is usable
    """
    environ = os.environ if environ is None else environ
    attempts: list[str] = []

    content = environ.get(settings.kubeconfig_content_env, "")
    if content:
        configuration = client.Configuration()
        try:
            config_dict = yaml.safe_load(content)
            if not isinstance(config_dict, dict):
                raise ConfigException("kubeconfig content is not a mapping")
            k8s_config.load_kube_config_from_dict(
                config_dict,
                client_configuration=configuration,
                persist_config=False,
            )
        except (yaml.YAMLError, ConfigException) as e:
            raise ClusterConnectionError(
                f"Invalid kubeconfig in ${settings.kubeconfig_content_env}: {e}",
                attempts=[settings.kubeconfig_content_env],
            ) from e
        logger.debug("Using kubeconfig from $%s", settings.kubeconfig_content_env)
        return configuration

    configuration = client.Configuration()
    try:
        k8s_config.load_incluster_config(client_configuration=configuration)
        logger.debug("Using in-cluster service account")
        return configuration
    except ConfigException as e:
        attempts.append(f"in-cluster: {e}")

    kubeconfig = os.path.expanduser(settings.kubeconfig)
    configuration = client.Configuration()
    try:
        k8s_config.load_kube_config(
            config_file=kubeconfig,
            client_configuration=configuration,
            persist_config=False,
        )
    except (ConfigException, OSError) as e:
        attempts.append(f"{kubeconfig}: {e}")
        raise ClusterConnectionError(
            "No usable Kubernetes credentials found (" + "; ".join(attempts) + ")",
            attempts=attempts,
        ) from e

    logger.debug("Using kubeconfig file %s", kubeconfig)
    return configuration


class ClusterApi:
    """
    Thin read-only handle over the Kubernetes API.

    Exposes exactly what host discovery needs: namespace listing and
    Ingress listing per namespace. Use as a context manager so the
    underlying connection pool is released after each scrape.
    """

    def __init__(self, api_client: client.ApiClient, request_timeout: float = 10.0):
        self.api_client = api_client
        self.request_timeout = request_timeout
        self._core = client.CoreV1Api(api_client)
        self._networking = client.NetworkingV1Api(api_client)

    def list_namespaces(self, timeout: Optional[float] = None) -> list[str]:
        """Names of all namespaces in the cluster."""
        result = self._core.list_namespace(_request_timeout=self._request_timeout(timeout))
        return [ns.metadata.name for ns in result.items]

    def list_ingresses(self, namespace: str, timeout: Optional[float] = None) -> list[Any]:
        """All Ingress objects in a namespace (single page)."""
        result = self._networking.list_namespaced_ingress(
            namespace,
            _request_timeout=self._request_timeout(timeout),
        )
        return list(result.items)

    def _request_timeout(self, timeout: Optional[float]) -> float:
        """Configured per-call timeout, capped by what is left of the scrape."""
        if timeout is None:
            return self.request_timeout
        return min(self.request_timeout, timeout)

    def close(self) -> None:
        self.api_client.close()

    def __enter__(self) -> "ClusterApi":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def create_cluster_factory(settings: KubernetesSettings) -> Callable[[], ClusterApi]:
    """
    Factory for per-scrape cluster handles.

    Credentials are re-resolved on every call so rotated service account
    tokens and edited kubeconfigs are picked up without a restart.
    """

    def connect() -> ClusterApi:
        configuration = load_cluster_configuration(settings)
        return ClusterApi(
            client.ApiClient(configuration),
            request_timeout=settings.request_timeout,
        )

    return connect
