"""
HTTP surface: the metrics endpoint plus a small landing page.

Each GET on the metrics path triggers a full poll of every rig via the
registry's collector, so scrape frequency is entirely up to Prometheus.
"""

from __future__ import annotations

import html
import logging
import socket
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Tuple
from urllib.parse import urlsplit

from prometheus_client import CollectorRegistry
from prometheus_client.exposition import choose_encoder

log = logging.getLogger(__name__)

LANDING_PAGE = """<html>
<head><title>Claymore Stats Exporter</title></head>
<body>
<h1>Claymore Stats Exporter</h1>
<p><a href="{path}">Metrics</a></p>
</body>
</html>
"""


class ExporterServer(ThreadingHTTPServer):
    daemon_threads = True

    def __init__(
        self,
        address: Tuple[str, int],
        registry: CollectorRegistry,
        metrics_path: str = "/metrics",
    ):
        if ":" in address[0]:
            self.address_family = socket.AF_INET6
        super().__init__(address, _ExporterHandler)
        self.registry = registry
        self.metrics_path = metrics_path


class _ExporterHandler(BaseHTTPRequestHandler):
    server: ExporterServer

    def do_GET(self):
        path = urlsplit(self.path).path
        if path == self.server.metrics_path:
            self._send_metrics()
        elif path == "/":
            body = LANDING_PAGE.format(path=html.escape(self.server.metrics_path, quote=True))
            self._send(200, "text/html; charset=utf-8", body.encode())
        else:
            self._send(404, "text/plain; charset=utf-8", b"Not Found\n")

    def _send_metrics(self):
        encoder, content_type = choose_encoder(self.headers.get("Accept"))
        try:
            body = encoder(self.server.registry)
        except Exception:
            log.exception("Failed to render metrics")
            self._send(500, "text/plain; charset=utf-8", b"error collecting metrics\n")
            return
        self._send(200, content_type, body)

    def _send(self, status: int, content_type: str, body: bytes):
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        log.debug("%s - %s", self.address_string(), format % args)


def serve(
    registry: CollectorRegistry,
    address: Tuple[str, int],
    metrics_path: str = "/metrics",
):
    """Block serving metrics until interrupted."""
    server = ExporterServer(address, registry, metrics_path=metrics_path)
    host, port = server.server_address[:2]
    log.info("Serving metrics on http://%s:%d%s", host or "0.0.0.0", port, metrics_path)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()
        log.info("Server stopped")
