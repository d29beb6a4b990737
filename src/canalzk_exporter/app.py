"""FastAPI application serving the exporter's metrics endpoint."""

import asyncio
import logging

from fastapi import FastAPI
from fastapi.responses import HTMLResponse, Response

from canalzk_exporter import __version__
from canalzk_exporter.collector import Collector
from canalzk_exporter.config import ClusterConfig, Settings
from canalzk_exporter.metrics import CONTENT_TYPE, render

logger = logging.getLogger(__name__)

LANDING_PAGE = """<html>
<head><title>Canal ZooKeeper Exporter</title></head>
<body>
<h1>Canal ZooKeeper Exporter</h1>
<p><a href="{metrics_path}">Metrics</a></p>
</body>
</html>
"""


def create_app(settings: Settings, clusters: ClusterConfig, collector: Collector) -> FastAPI:
    """
    Build the exporter application.

    Every GET on the metrics path runs one full collection and returns
    only after all clusters have been scanned. A collection that outlives
    settings.web_timeout is cancelled and answered with 503.

    Args:
        settings: Runtime settings (metrics path, namespace, web timeout).
        clusters: Cluster file, resolved per scrape.
        collector: Collector that scans the clusters.
    """
    app = FastAPI(
        title="Canal ZooKeeper Exporter",
        description="Prometheus exporter for Canal destinations registered in ZooKeeper",
        version=__version__,
        docs_url=None,
        redoc_url=None,
    )

    @app.get("/", response_class=HTMLResponse)
    async def index() -> str:
        return LANDING_PAGE.format(metrics_path=settings.metrics_path)

    async def metrics() -> Response:
        try:
            samples = await asyncio.wait_for(
                collector.collect(clusters.clusters()), settings.web_timeout
            )
        except TimeoutError:
            logger.error(f"Scrape exceeded web timeout of {settings.web_timeout}s")
            return Response(
                content="Scrape timed out\n", status_code=503, media_type="text/plain"
            )
        return Response(
            content=render(samples, settings.namespace),
            media_type=CONTENT_TYPE,
        )

    app.add_api_route(settings.metrics_path, metrics, methods=["GET"])
    return app
