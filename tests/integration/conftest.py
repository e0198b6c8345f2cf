"""
Integration test fixtures.

Builds the full Starlette application around a fake cluster and a
mock probe transport, served through Starlette's TestClient.
"""

from typing import Callable

import httpx
import pytest
from kubernetes.client.exceptions import ApiException
from starlette.testclient import TestClient

from service_ready_exporter.config import ExporterConfig
from service_ready_exporter.probe import ReadinessProber
from service_ready_exporter.server import ServerBundle, create_server


@pytest.fixture
def config() -> ExporterConfig:
    return ExporterConfig.model_validate({"probe": {"timeout": 0.5}, "scrape": {"timeout": 1.0}})


@pytest.fixture
def cluster(make_ingress, fake_cluster):
    """Two namespaces, one Ingress with two rules, one host-less rule."""
    return fake_cluster({
        "default": [],
        "ns1": [make_ingress("ns1", "svc1", ["healthy.example.com", "down.example.com"])],
        "ns2": [make_ingress("ns2", "web", ["stuck.example.com", None])],
    })


@pytest.fixture
def prober(probe_transport) -> ReadinessProber:
    return ReadinessProber(
        transport=probe_transport({
            "healthy.example.com": 200,
            "down.example.com": httpx.ConnectError,
            "stuck.example.com": "hang",
        })
    )


@pytest.fixture
def make_server(config, prober) -> Callable[..., ServerBundle]:
    """Factory building a server around a given cluster handle."""

    def build(cluster, server_config: ExporterConfig | None = None) -> ServerBundle:
        return create_server(server_config or config, connect=lambda: cluster, prober=prober)

    return build


@pytest.fixture
def client(make_server, cluster) -> TestClient:
    """
    Get HTTP client for an exporter whose stuck host is bounded by the deadline.

    Returns:
        TestClient instance
    """
    bundle = make_server(cluster)
    with TestClient(bundle.app) as test_client:
        yield test_client


@pytest.fixture
def broken_client(make_server, fake_cluster) -> TestClient:
    """Client for an exporter whose cluster refuses to list namespaces."""
    cluster = fake_cluster({}, errors={"namespaces": ApiException(status=403, reason="Forbidden")})
    bundle = make_server(cluster)
    with TestClient(bundle.app) as test_client:
        yield test_client
