"""
Health check endpoint for Kubernetes probes of the exporter itself.

This reports on the exporter process only; the health of the discovered
hosts is what /metrics exports.
"""

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from service_ready_exporter import __version__


async def health_check(request: Request) -> JSONResponse:
    """
    Liveness probe endpoint.

    Returns:
        JSON response with health status
    """
    return JSONResponse(
        {
            "status": "healthy",
            "version": __version__,
            "service": "service_ready_exporter",
        }
    )


def get_health_routes() -> list[Route]:
    """
    Get health check routes.

    Returns:
        List of Starlette Route objects
    """
    return [
        Route("/health", health_check, methods=["GET"]),
    ]
