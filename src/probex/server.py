"""
The pull endpoint: a threaded WSGI server around prometheus_client's app.

Each request gets its own thread; the exporter's lock is what serialises
the actual scrapes. Only the configured endpoint path is served.
"""

from __future__ import annotations

import logging
import threading
from socketserver import ThreadingMixIn
from typing import Optional, Tuple
from wsgiref.simple_server import WSGIRequestHandler, WSGIServer, make_server

from prometheus_client import CollectorRegistry, make_wsgi_app

from probex.exporter import Exporter

log = logging.getLogger(__name__)


class _ThreadingWSGIServer(ThreadingMixIn, WSGIServer):
    daemon_threads = True


class _QuietHandler(WSGIRequestHandler):

    def log_message(self, format, *args):
        log.debug("%s - %s", self.address_string(), format % args)


def parse_address(address: str) -> Tuple[str, int]:
    """Split "host:port" or ":port" into a bindable pair."""
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"listen address must look like host:port or :port, got {address!r}")
    return host or "0.0.0.0", int(port)


def build_registry(exporter: Exporter) -> CollectorRegistry:
    registry = CollectorRegistry()
    registry.register(exporter)
    return registry


def endpoint_app(registry: CollectorRegistry, endpoint: str = "/metrics"):
    """WSGI app serving the registry on one path and 404 everywhere else."""
    metrics_app = make_wsgi_app(registry)

    def app(environ, start_response):
        if environ.get("PATH_INFO", "") != endpoint:
            start_response("404 Not Found", [("Content-Type", "text/plain")])
            return [b"Not Found\n"]
        return metrics_app(environ, start_response)

    return app


class MetricsServer:

    def __init__(self, exporter: Exporter, address: str = ":18000", endpoint: str = "/metrics"):
        host, port = parse_address(address)
        self.exporter = exporter
        self.endpoint = endpoint
        # Raises OSError when the address can't be bound
        self._httpd = make_server(
            host, port, endpoint_app(build_registry(exporter), endpoint),
            server_class=_ThreadingWSGIServer,
            handler_class=_QuietHandler,
        )
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        return self._httpd.server_port

    @property
    def url(self) -> str:
        host = self._httpd.server_address[0]
        if host in ("0.0.0.0", ""):
            host = "localhost"
        return f"http://{host}:{self.port}{self.endpoint}"

    def serve_forever(self):
        self._httpd.serve_forever()

    def start(self) -> "MetricsServer":
        """Serve from a daemon thread and return immediately."""
        self._thread = threading.Thread(target=self._httpd.serve_forever, daemon=True)
        self._thread.start()
        return self

    def close(self):
        if self._thread is not None:
            self._httpd.shutdown()
            self._thread.join(timeout=5)
            self._thread = None
        self._httpd.server_close()
