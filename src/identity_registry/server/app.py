"""HTTP server for identity-registry using stdlib http.server.

Routes:
    GET    /health                              — health check
    POST   /invoke                              — host-style invocation
    POST   /identities                          — Register
    PUT    /identities/{username}/data          — UpdateUserData
    GET    /identities/{username}/public-key    — GetPublicKey
    GET    /identities/{username}/data          — GetUserData

Usage:
    python -m identity_registry.server.app --port 8080
    python -m identity_registry.server.app --ledger-dir ./ledger --port 9000
    python -m identity_registry.server.app --audit-log ./audit.jsonl
"""
from __future__ import annotations

import argparse
import json
import logging
import re
import urllib.parse
from http.server import BaseHTTPRequestHandler, HTTPServer
from pathlib import Path

from identity_registry.ledger.filesystem import FilesystemLedger
from identity_registry.middleware.audit import RegistryAuditLogger
from identity_registry.server import routes

logger = logging.getLogger(__name__)

# URL pattern for /identities/{username}/{attribute}
_IDENTITY_ATTR_PATTERN = re.compile(r"^/identities/([^/]+)/(public-key|data)$")


class IdentityRegistryHandler(BaseHTTPRequestHandler):
    """HTTP request handler for the identity-registry server.

    All request bodies and responses use JSON.
    """

    def log_message(self, format: str, *args: object) -> None:
        """Override to route access logs through the Python logging system."""
        logger.debug(format, *args)

    # ── GET ───────────────────────────────────────────────────────────────────

    def do_GET(self) -> None:
        """Handle all GET requests by routing on the URL path."""
        path = self._route_path()

        if path == "/health":
            self._send_json(*routes.handle_health())
            return

        match = _IDENTITY_ATTR_PATTERN.match(path)
        if match:
            username = urllib.parse.unquote(match.group(1))
            if match.group(2) == "public-key":
                self._send_json(*routes.handle_get_public_key(username))
            else:
                self._send_json(*routes.handle_get_user_data(username))
            return

        self._not_found("GET", path)

    # ── POST ──────────────────────────────────────────────────────────────────

    def do_POST(self) -> None:
        """Handle all POST requests by routing on the URL path."""
        path = self._route_path()

        body = self._read_json_body()
        if body is None:
            return

        if path == "/invoke":
            self._send_json(*routes.handle_invoke(body))
        elif path == "/identities":
            self._send_json(*routes.handle_register(body))
        else:
            self._not_found("POST", path)

    # ── PUT ───────────────────────────────────────────────────────────────────

    def do_PUT(self) -> None:
        """Handle PUT requests; only user data is updatable."""
        path = self._route_path()

        match = _IDENTITY_ATTR_PATTERN.match(path)
        if not match or match.group(2) != "data":
            self._not_found("PUT", path)
            return

        body = self._read_json_body()
        if body is None:
            return
        username = urllib.parse.unquote(match.group(1))
        self._send_json(*routes.handle_update_user_data(username, body))

    # ── DELETE ────────────────────────────────────────────────────────────────

    def do_DELETE(self) -> None:
        """Identities are never deleted."""
        path = self._route_path()
        self._send_json(
            405,
            {"error": "Method not allowed", "detail": f"DELETE not supported on {path}"},
        )

    # ── Helpers ───────────────────────────────────────────────────────────────

    def _route_path(self) -> str:
        return urllib.parse.urlparse(self.path).path.rstrip("/")

    def _not_found(self, method: str, path: str) -> None:
        self._send_json(
            404, {"error": "Not found", "detail": f"No route for {method} {path}"}
        )

    def _send_json(self, status: int, data: dict[str, object]) -> None:
        """Serialize *data* to JSON and send an HTTP response with *status*."""
        body = json.dumps(data, default=str).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _read_json_body(self) -> dict[str, object] | None:
        """Read and parse the JSON request body.

        Returns None (and sends a 400 error response) if parsing fails.
        """
        content_length = int(self.headers.get("Content-Length", 0))
        if content_length == 0:
            return {}

        raw = self.rfile.read(content_length)
        try:
            parsed = json.loads(raw.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            self._send_json(400, {"error": "Invalid JSON", "detail": str(exc)})
            return None
        if not isinstance(parsed, dict):
            self._send_json(
                400, {"error": "Invalid JSON", "detail": "Body must be a JSON object"}
            )
            return None
        return parsed


def create_server(
    host: str = "0.0.0.0",
    port: int = 8080,
    ledger_dir: Path | None = None,
    audit_log: Path | None = None,
) -> HTTPServer:
    """Create (but do not start) the identity-registry HTTP server.

    Parameters
    ----------
    host:
        Bind address (default ``"0.0.0.0"`` — all interfaces).
    port:
        TCP port to listen on (default 8080).
    ledger_dir:
        Directory for a :class:`FilesystemLedger`. If None, the server keeps
        records in memory for the lifetime of the process.
    audit_log:
        JSONL file that receives the audit trail of every invocation. If
        None, no audit trail is kept.

    Returns
    -------
    HTTPServer
        A configured server instance ready to call ``serve_forever()`` on.
    """
    audit_logger = None
    if audit_log is not None:
        audit_logger = RegistryAuditLogger(log_path=audit_log)
        logger.info("Writing audit trail to %s", audit_log)
    if ledger_dir is not None:
        routes.reset_state(FilesystemLedger(ledger_dir), audit_logger=audit_logger)
        logger.info("Using filesystem ledger at %s", ledger_dir)
    else:
        routes.reset_state(audit_logger=audit_logger)
    routes.get_host().init()
    server = HTTPServer((host, port), IdentityRegistryHandler)
    logger.info("identity-registry server created at http://%s:%d", host, port)
    return server


def run_server(
    host: str = "0.0.0.0",
    port: int = 8080,
    ledger_dir: Path | None = None,
    audit_log: Path | None = None,
) -> None:
    """Create and run the identity-registry HTTP server (blocking)."""
    server = create_server(
        host=host, port=port, ledger_dir=ledger_dir, audit_log=audit_log
    )
    logger.info("Serving identity-registry on http://%s:%d (Ctrl-C to stop)", host, port)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down identity-registry server.")
    finally:
        server.server_close()


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="identity-registry HTTP server",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--host", default="0.0.0.0", help="Bind address")
    parser.add_argument("--port", type=int, default=8080, help="TCP port")
    parser.add_argument(
        "--ledger-dir",
        type=Path,
        default=None,
        help="Directory for the filesystem ledger (in-memory if omitted)",
    )
    parser.add_argument(
        "--audit-log",
        type=Path,
        default=None,
        help="JSONL audit trail file (no audit trail if omitted)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    return parser


if __name__ == "__main__":
    args = _build_arg_parser().parse_args()
    logging.basicConfig(level=getattr(logging, args.log_level))
    run_server(
        host=args.host,
        port=args.port,
        ledger_dir=args.ledger_dir,
        audit_log=args.audit_log,
    )
