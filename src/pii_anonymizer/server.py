"""HTTP sidecar server for pii-anonymizer.

The web application calls this over HTTP before forwarding a chat
message to the model and again on the model's reply.

Endpoints:
    POST /anonymize     — {"text": ...} → {success, anonymizedText, items, error?}
    POST /deanonymize   — {"text": ...} → {success, text, tokensProcessed, error?}
    POST /clear         — Empty the volatile (demo) store
    GET  /health        — Health check

All endpoints expect/return JSON.
"""

from __future__ import annotations
import json
import logging
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any

from .service import PIIService, ServiceResponse

logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 18792

_POST_ROUTES = ("/anonymize", "/deanonymize", "/clear")


class PIIHandler(BaseHTTPRequestHandler):
    """HTTP request handler for the PII sidecar."""

    service: PIIService  # bound by make_server()

    def _read_json(self) -> Any:
        length = int(self.headers.get("Content-Length", 0))
        if length < 0:
            raise ValueError("negative Content-Length")
        body = self.rfile.read(length).decode("utf-8")
        return json.loads(body) if body else {}

    def _respond(self, status: int, data: Any) -> None:
        body = json.dumps(data, ensure_ascii=False).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _send(self, response: ServiceResponse) -> None:
        self._respond(response.status, response.body)

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)

    def do_GET(self) -> None:
        if self.path == "/health":
            self._send(self.service.health())
        elif self.path in _POST_ROUTES:
            self._respond(405, {"success": False, "error": "Method not allowed"})
        else:
            self._respond(404, {"success": False, "error": "not found"})

    def do_POST(self) -> None:
        if self.path not in _POST_ROUTES:
            self._respond(404, {"success": False, "error": "not found"})
            return

        if self.path == "/clear":
            self._send(self.service.clear())
            return

        try:
            body = self._read_json()
        except (ValueError, UnicodeDecodeError):
            self._respond(400, {"success": False, "error": "request body must be JSON"})
            return
        text = body.get("text") if isinstance(body, dict) else None

        if self.path == "/anonymize":
            self._send(self.service.anonymize(text))
        else:
            self._send(self.service.deanonymize(text))


def make_server(
    service: PIIService,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> ThreadingHTTPServer:
    """Build (but do not start) a threaded server bound to ``service``."""
    handler = type("BoundPIIHandler", (PIIHandler,), {"service": service})
    return ThreadingHTTPServer((host, port), handler)


def serve(service: PIIService, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT) -> None:
    """Start the PII sidecar and block until interrupted."""
    server = make_server(service, host, port)
    health = service.health().body
    logger.info(
        "pii-anonymizer sidecar listening on http://%s:%d (mode=%s, store=%s)",
        host, server.server_address[1], health["mode"], health["backend"],
    )
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    finally:
        server.server_close()
