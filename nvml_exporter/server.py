"""HTTP scrape endpoint for the NVML exporter.

The metrics route runs one collection cycle per GET or HEAD request. Every
other path serves a small landing page linking to the metrics path.

Route handlers are plain (non-async) functions, so FastAPI runs them in its
worker thread pool; concurrent scrapes then serialize on the collector lock.
"""

import logging

import uvicorn
from fastapi import FastAPI, Response
from fastapi.responses import HTMLResponse
from prometheus_client import CONTENT_TYPE_LATEST

from nvml_exporter import __version__
from nvml_exporter.configs.config import DEFAULT_METRICS_PATH, ExporterConfig
from nvml_exporter.metrics.collector import SnapshotCollector

LOGGER = logging.getLogger(__name__)

LANDING_PAGE_TEMPLATE = """<html>
<head><title>NVML Exporter</title></head>
<body>
<h1>NVML Exporter</h1>
<p><a href='{metrics_path}'>Metrics</a></p>
</body>
</html>"""


def render_landing_page(metrics_path: str) -> str:
    return LANDING_PAGE_TEMPLATE.format(metrics_path=metrics_path)


def create_app(collector: SnapshotCollector, metrics_path: str = DEFAULT_METRICS_PATH) -> FastAPI:
    """Build the FastAPI application serving ``collector``.

    Args:
        collector: Collector run once per metrics request
        metrics_path: URL path of the metrics endpoint

    Returns:
        Configured FastAPI app
    """
    app = FastAPI(
        title="NVML Exporter",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    landing_page = render_landing_page(metrics_path)

    def metrics() -> Response:
        return Response(content=collector.collect_and_render(), media_type=CONTENT_TYPE_LATEST)

    def landing(path: str) -> HTMLResponse:
        return HTMLResponse(landing_page)

    app.add_api_route(metrics_path, metrics, methods=["GET", "HEAD"], include_in_schema=False)
    app.add_api_route("/{path:path}", landing, methods=["GET", "HEAD"], include_in_schema=False)
    app.state.collector = collector
    app.state.metrics_path = metrics_path
    return app


def run_server(app: FastAPI, config: ExporterConfig) -> None:
    """Serve ``app`` on the configured listen address until interrupted."""
    LOGGER.info("Starting NVML Exporter Server: %s", config.listen_address)
    uvicorn.run(
        app,
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
        access_log=False,
    )
