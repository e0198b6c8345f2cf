"""
Prometheus metrics endpoint.

Renders the exporter's CollectorRegistry in the text exposition format.
Each request triggers a full discovery and probe round.
"""

import platform
from typing import Optional

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Info,
    PlatformCollector,
    ProcessCollector,
    generate_latest,
)
from prometheus_client.registry import Collector
from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response
from starlette.routing import Route

from service_ready_exporter import __version__
from service_ready_exporter.cluster import ClusterError
from service_ready_exporter.collector import scrape_timeout
from service_ready_exporter.utils.logging import get_logger

logger = get_logger(__name__)

# Header Prometheus sends with its configured scrape_timeout
SCRAPE_TIMEOUT_HEADER = "X-Prometheus-Scrape-Timeout-Seconds"


def create_registry(collector: Collector) -> CollectorRegistry:
    """
    Build the registry served by the metrics endpoint.

    Args:
        collector: The readiness collector

    Returns:
        Registry holding the collector, build info and process metrics
    """
    registry = CollectorRegistry()
    registry.register(collector)

    build_info = Info(
        "service_ready_exporter_build",
        "Build information of the service ready exporter.",
        registry=registry,
    )
    build_info.info({"version": __version__, "python_version": platform.python_version()})

    ProcessCollector(registry=registry)
    PlatformCollector(registry=registry)
    return registry


def requested_timeout(request: Request, offset: float = 0.0) -> Optional[float]:
    """Deadline advertised by the scraper, minus a safety offset."""
    raw = request.headers.get(SCRAPE_TIMEOUT_HEADER)
    if not raw:
        return None
    try:
        seconds = float(raw)
    except ValueError:
        logger.debug("Ignoring invalid %s header: %r", SCRAPE_TIMEOUT_HEADER, raw)
        return None
    return max(0.0, seconds - offset)


def render_metrics(registry: CollectorRegistry, timeout: Optional[float] = None) -> bytes:
    """Run all collectors under the given deadline and render the result."""
    with scrape_timeout(timeout):
        return generate_latest(registry)


def _error_response(error: Exception) -> PlainTextResponse:
    return PlainTextResponse(
        f"An error has occurred while serving metrics:\n\n{error}\n",
        status_code=500,
    )


def get_metrics_routes(
    registry: CollectorRegistry,
    path: str = "/metrics",
    timeout_offset: float = 0.5,
) -> list[Route]:
    """
    Get metrics routes.

    Args:
        registry: Registry to render
        path: Path under which to expose metrics
        timeout_offset: Seconds subtracted from the scraper's timeout header

    Returns:
        List of Starlette Route objects
    """

    async def metrics_endpoint(request: Request) -> Response:
        """
        Prometheus metrics endpoint.

        Returns:
            Text exposition of the registry, or 500 if the scrape was aborted
        """
        timeout = requested_timeout(request, timeout_offset)
        try:
            output = await run_in_threadpool(render_metrics, registry, timeout)
        except ClusterError as e:
            # Already logged by the collector
            return _error_response(e)
        except Exception as e:
            logger.exception("Error collecting metrics")
            return _error_response(e)

        return Response(output, media_type=CONTENT_TYPE_LATEST)

    return [
        Route(path, metrics_endpoint, methods=["GET"]),
    ]
