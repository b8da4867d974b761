"""Metrics and health HTTP endpoints for the operator process."""

import logging
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest

logger = logging.getLogger(__name__)


class _HealthHandler(BaseHTTPRequestHandler):
    """Serves /metrics, liveness and readiness; everything else is 404."""

    registry: CollectorRegistry
    ready_event: threading.Event

    def _respond(self, status: int, body: bytes = b"", content_type: str = "text/plain") -> None:
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if body:
            self.wfile.write(body)

    def do_GET(self) -> None:
        path = self.path.split("?", 1)[0]
        if path == "/metrics":
            self._respond(200, generate_latest(self.registry), CONTENT_TYPE_LATEST)
        elif path in ("/healthz", "/health"):
            self._respond(200, b"ok")
        elif path in ("/readyz", "/ready"):
            if self.ready_event.is_set():
                self._respond(200, b"ok")
            else:
                self._respond(503, b"not ready")
        else:
            self._respond(404, b"Not Found")

    def log_message(self, fmt: str, *args: Any) -> None:
        logger.debug(fmt, *args)


def start_health_server(
    registry: CollectorRegistry,
    ready: threading.Event,
    port: int,
    host: str = "0.0.0.0",  # noqa: S104
) -> ThreadingHTTPServer:
    """Start the metrics/health server in a daemon thread and return it.

    Args:
        registry: Registry whose metrics are exposed on /metrics
        ready: Set once the operator has finished starting up
        port: Port to listen on (0 picks a free port)
        host: Bind address
    """

    class _BoundHealthHandler(_HealthHandler):
        pass

    _BoundHealthHandler.registry = registry
    _BoundHealthHandler.ready_event = ready

    server = ThreadingHTTPServer((host, port), _BoundHealthHandler)
    server.daemon_threads = True
    threading.Thread(target=server.serve_forever, name="health-server", daemon=True).start()
    logger.info("Metrics server listening on %s:%d", host, server.server_address[1])
    return server
