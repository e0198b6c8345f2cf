#!/usr/bin/env python3
"""
Integration tests for the exporter application.

Tests the application as a whole: landing page, health, and metrics
exposition backed by a fake cluster and mocked probe targets.
"""

import pytest
from prometheus_client.parser import text_string_to_metric_families
from starlette.testclient import TestClient

from service_ready_exporter.config import ExporterConfig
from service_ready_exporter.http import SCRAPE_TIMEOUT_HEADER

pytestmark = pytest.mark.integration


def parse_samples(text: str) -> dict[str, list]:
    """Group exposition samples by sample name."""
    samples: dict[str, list] = {}
    for family in text_string_to_metric_families(text):
        for sample in family.samples:
            samples.setdefault(sample.name, []).append(sample)
    return samples


class TestIndexAndHealth:
    """Test the landing page and liveness endpoint."""

    def test_index_links_to_metrics(self, client: TestClient):
        response = client.get("/")

        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        assert "<h1>Service Ready Exporter</h1>" in response.text
        assert "href='/metrics'" in response.text

    def test_health_endpoint_returns_200(self, client: TestClient):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "service_ready_exporter"


class TestMetricsEndpoint:
    """Test the Prometheus metrics endpoint."""

    def test_metrics_returns_prometheus_format(self, client: TestClient):
        response = client.get("/metrics")

        assert response.status_code == 200
        assert "text/plain" in response.headers["content-type"]
        assert "# HELP service_ready_up Ready check is ok." in response.text
        assert "# TYPE service_ready_up gauge" in response.text

    def test_one_sample_per_discovered_host(self, client: TestClient):
        """Ready, refused and hung hosts are all present with 1, 0 and 0."""
        samples = parse_samples(client.get("/metrics").text)

        up = {
            (s.labels["namespace"], s.labels["name"], s.labels["host"]): s.value
            for s in samples["service_ready_up"]
        }
        assert up == {
            ("ns1", "svc1", "healthy.example.com"): 1.0,
            ("ns1", "svc1", "down.example.com"): 0.0,
            ("ns2", "web", "stuck.example.com"): 0.0,
        }
        assert len(samples["service_ready_up"]) == 3
        assert samples["service_ready_hosts"][0].value == 3.0

    def test_build_info_exposed(self, client: TestClient):
        samples = parse_samples(client.get("/metrics").text)

        build_info = samples["service_ready_exporter_build_info"][0]
        assert build_info.value == 1.0
        assert "version" in build_info.labels

    def test_scrape_timeout_header_bounds_scrape(self, client: TestClient):
        """The scraper's advertised timeout tightens the probe deadline."""
        response = client.get("/metrics", headers={SCRAPE_TIMEOUT_HEADER: "0.6"})

        assert response.status_code == 200
        samples = parse_samples(response.text)
        assert samples["service_ready_scrape_duration_seconds"][0].value < 0.8

    def test_invalid_scrape_timeout_header_ignored(self, client: TestClient):
        response = client.get("/metrics", headers={SCRAPE_TIMEOUT_HEADER: "soon"})
        assert response.status_code == 200

    def test_custom_metrics_path(self, make_server, cluster):
        config = ExporterConfig.model_validate({
            "server": {"metrics_path": "/ready-metrics"},
            "probe": {"timeout": 0.5},
            "scrape": {"timeout": 1.0},
        })
        bundle = make_server(cluster, config)

        with TestClient(bundle.app) as client:
            assert client.get("/ready-metrics").status_code == 200
            assert client.get("/metrics").status_code == 404
            assert "href='/ready-metrics'" in client.get("/").text


class TestDiscoveryFailure:
    """Test scrapes aborted by discovery errors."""

    def test_discovery_failure_is_scrape_error(self, broken_client: TestClient):
        """No stale or partial data: the scrape fails explicitly."""
        response = broken_client.get("/metrics")

        assert response.status_code == 500
        assert "An error has occurred while serving metrics" in response.text
        assert "403 Forbidden" in response.text
        assert "service_ready_up" not in response.text

    def test_process_keeps_serving(self, broken_client: TestClient):
        """The exporter stays up after a failed scrape."""
        assert broken_client.get("/metrics").status_code == 500
        assert broken_client.get("/health").status_code == 200
        assert broken_client.get("/metrics").status_code == 500

    def test_slow_discovery_is_scrape_error(self, make_server, make_ingress, fake_cluster):
        """Discovery that outlasts the deadline fails the scrape rather than reporting zeros."""
        cluster = fake_cluster(
            {"ns1": [make_ingress("ns1", "svc1", ["healthy.example.com"])]},
            delays={"namespaces": 0.7},
        )
        bundle = make_server(cluster)

        with TestClient(bundle.app) as test_client:
            response = test_client.get(
                "/metrics", headers={"X-Prometheus-Scrape-Timeout-Seconds": "1"}
            )

        assert response.status_code == 500
        assert "deadline" in response.text
        assert "service_ready_up" not in response.text
