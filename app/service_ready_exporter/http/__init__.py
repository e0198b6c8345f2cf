"""
HTTP endpoints for the exporter.

Provides:
- /: Landing page
- /health: Liveness probe for the exporter process
- /metrics: Prometheus-format metrics (path configurable)
"""

from service_ready_exporter.http.health import get_health_routes, health_check
from service_ready_exporter.http.index import get_index_routes
from service_ready_exporter.http.metrics import (
    SCRAPE_TIMEOUT_HEADER,
    create_registry,
    get_metrics_routes,
    render_metrics,
    requested_timeout,
)

__all__ = [
    "get_health_routes",
    "health_check",
    "get_index_routes",
    "SCRAPE_TIMEOUT_HEADER",
    "create_registry",
    "get_metrics_routes",
    "render_metrics",
    "requested_timeout",
]
