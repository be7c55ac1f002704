"""
HTTP serving of the metrics registry.

The WSGI application serves the registry under the telemetry path and a
small landing page at ``/``. The server handles each request on its own
thread, so concurrent scrapes run concurrent aggregation passes.
"""

import logging
import socket
from socketserver import ThreadingMixIn
from typing import Callable, Iterable, Tuple
from wsgiref.simple_server import WSGIRequestHandler, WSGIServer, make_server

from prometheus_client import CollectorRegistry, make_wsgi_app

logger = logging.getLogger(__name__)

LANDING_PAGE = """<html>
<head><title>Proc Exporter</title></head>
<body>
<h1>Proc Exporter</h1>
<p><a href="{telemetry_path}">Metrics</a></p>
</body>
</html>
"""


class _ThreadingWSGIServer(ThreadingMixIn, WSGIServer):
    daemon_threads = True


class _ThreadingWSGIServerV6(_ThreadingWSGIServer):
    address_family = socket.AF_INET6


class _LoggingHandler(WSGIRequestHandler):
    def log_message(self, format, *args):
        logger.debug(f"{self.address_string()} - {format % args}")


def make_exporter_app(registry: CollectorRegistry, telemetry_path: str) -> Callable:
    """
    Build the exporter WSGI application.

    Args:
        registry: Registry holding the collectors to expose
        telemetry_path: URL path serving the metrics

    Returns:
        A WSGI callable
    """
    metrics_app = make_wsgi_app(registry)
    landing_page = LANDING_PAGE.format(telemetry_path=telemetry_path).encode("utf-8")

    def app(environ, start_response) -> Iterable[bytes]:
        path = environ.get("PATH_INFO", "/")
        if path == telemetry_path:
            return metrics_app(environ, start_response)
        if path == "/":
            start_response("200 OK", [
                ("Content-Type", "text/html; charset=utf-8"),
                ("Content-Length", str(len(landing_page))),
            ])
            return [landing_page]
        start_response("404 Not Found", [("Content-Type", "text/plain; charset=utf-8")])
        return [b"Not Found\n"]

    return app


def make_exporter_server(app: Callable, address: Tuple[str, int]) -> WSGIServer:
    """Create (but do not start) a threading WSGI server bound to ``address``.

    A host containing ``:`` is an IPv6 literal and gets an AF_INET6 socket.
    """
    host, port = address
    server_class = _ThreadingWSGIServerV6 if ":" in host else _ThreadingWSGIServer
    return make_server(
        host, port, app,
        server_class=server_class,
        handler_class=_LoggingHandler,
    )
