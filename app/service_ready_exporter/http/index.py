"""
Landing page linking to the metrics endpoint.
"""

from html import escape

from starlette.requests import Request
from starlette.responses import HTMLResponse
from starlette.routing import Route

INDEX_TEMPLATE = """<html>
<head><title>Service Ready Exporter</title></head>
<body>
<h1>Service Ready Exporter</h1>
<p><a href='{metrics_path}'>Metrics</a></p>
</body>
</html>
"""


def get_index_routes(metrics_path: str = "/metrics") -> list[Route]:
    """
    Get the landing page route.

    Args:
        metrics_path: Path the page links to

    Returns:
        List of Starlette Route objects
    """
    page = INDEX_TEMPLATE.format(metrics_path=escape(metrics_path, quote=True))

    async def index(request: Request) -> HTMLResponse:
        return HTMLResponse(page)

    return [
        Route("/", index, methods=["GET"]),
    ]
