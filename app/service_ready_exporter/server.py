"""
Starlette application setup.

This module wires configuration, the readiness collector and the HTTP
routes into one ASGI application.
"""

from dataclasses import dataclass
from typing import Callable, ContextManager, Optional

from prometheus_client import CollectorRegistry
from starlette.applications import Starlette

from service_ready_exporter.cluster import IngressLister, create_cluster_factory
from service_ready_exporter.collector import ReadinessCollector
from service_ready_exporter.config import ExporterConfig
from service_ready_exporter.http import (
    create_registry,
    get_health_routes,
    get_index_routes,
    get_metrics_routes,
)
from service_ready_exporter.probe import ReadinessProber


@dataclass
class ServerBundle:
    """Bundle containing the application and the components it serves."""

    app: Starlette
    collector: ReadinessCollector
    registry: CollectorRegistry


def create_collector(
    config: ExporterConfig,
    connect: Optional[Callable[[], ContextManager[IngressLister]]] = None,
    prober: Optional[ReadinessProber] = None,
) -> ReadinessCollector:
    """
    Create the readiness collector from configuration.

    Args:
        config: Exporter configuration
        connect: Optional cluster factory (defaults to real credentials)
        prober: Optional prober (defaults to one built from probe settings)
    """
    if connect is None:
        connect = create_cluster_factory(config.kubernetes)
    if prober is None:
        prober = ReadinessProber(
            timeout=config.probe.timeout,
            max_workers=config.probe.max_workers,
        )
    return ReadinessCollector(
        connect,
        prober,
        scrape_timeout=config.scrape.timeout,
        serialize=config.scrape.serialize,
    )


def create_server(
    config: ExporterConfig,
    connect: Optional[Callable[[], ContextManager[IngressLister]]] = None,
    prober: Optional[ReadinessProber] = None,
) -> ServerBundle:
    """
    Create and configure the exporter application.

    Args:
        config: Exporter configuration
        connect: Optional cluster factory, for tests
        prober: Optional prober, for tests

    Returns:
        ServerBundle containing the Starlette app, collector and registry
    """
    collector = create_collector(config, connect, prober)
    registry = create_registry(collector)

    routes = [
        *get_index_routes(config.server.metrics_path),
        *get_health_routes(),
        *get_metrics_routes(
            registry,
            path=config.server.metrics_path,
            timeout_offset=config.scrape.timeout_offset,
        ),
    ]

    app = Starlette(routes=routes)
    app.state.config = config
    app.state.collector = collector
    app.state.registry = registry

    return ServerBundle(app=app, collector=collector, registry=registry)
