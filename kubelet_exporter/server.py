from __future__ import annotations
import logging
from wsgiref.simple_server import WSGIRequestHandler, make_server

from prometheus_client import CollectorRegistry, make_wsgi_app
from prometheus_client.exposition import ThreadingWSGIServer

_logger = logging.getLogger(__name__)

METRICS_PATH = "/metrics"
HEALTHZ_PATH = "/healthz"

INDEX_PAGE = f"""<html>
	<head>
		<title>Kubelet Volume Exporter</title>
	</head>
	<body>
		<h1>Kubelet Volume Exporter</h1>
		<ul>
			<li><a href='{METRICS_PATH}'>metrics</a></li>
			<li><a href='{HEALTHZ_PATH}'>healthz</a></li>
		</ul>
	</body>
</html>""".encode("utf-8")


class AccessLogHandler(WSGIRequestHandler):
    """Sends per request access lines to the debug log instead of stderr."""

    def log_message(self, format, *args):
        _logger.debug(format % args)


def make_app(registry: CollectorRegistry):
    """WSGI app serving /metrics from the registry, /healthz and an index page."""
    metrics_app = make_wsgi_app(registry)

    def app(environ, start_response):
        path = environ.get("PATH_INFO", "/")
        if path == METRICS_PATH:
            return metrics_app(environ, start_response)
        if path == HEALTHZ_PATH:
            start_response("200 OK", [("Content-Type", "text/plain")])
            return [b"ok"]
        start_response("200 OK", [("Content-Type", "text/html; charset=utf-8")])
        return [INDEX_PAGE]

    return app


def serve(registry: CollectorRegistry, port: int, addr: str = "0.0.0.0"):
    # Threading server, so overlapping scrapes are collected concurrently
    httpd = make_server(
        addr, port, make_app(registry), ThreadingWSGIServer, handler_class=AccessLogHandler
    )
    _logger.info(f"Starting metrics server on {addr}:{port}")
    httpd.serve_forever()
