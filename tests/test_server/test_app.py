"""Tests for identity_registry.server.app — HTTP handler integration."""
from __future__ import annotations

import json
import threading
import urllib.error
import urllib.request
from http.server import HTTPServer
from pathlib import Path
from typing import Iterator

import pytest

from identity_registry.ledger.filesystem import FilesystemLedger
from identity_registry.server import routes
from identity_registry.server.app import _build_arg_parser, create_server


@pytest.fixture()
def server() -> Iterator[HTTPServer]:
    srv = create_server(host="127.0.0.1", port=0)
    thread = threading.Thread(target=srv.serve_forever, daemon=True)
    thread.start()
    try:
        yield srv
    finally:
        srv.shutdown()
        srv.server_close()
        thread.join(timeout=5)
        routes.reset_state()


def _request(
    server: HTTPServer,
    method: str,
    path: str,
    body: object | None = None,
    raw: bytes | None = None,
) -> tuple[int, dict[str, object]]:
    port = server.server_address[1]
    data = raw if raw is not None else (json.dumps(body).encode() if body is not None else None)
    req = urllib.request.Request(
        f"http://127.0.0.1:{port}{path}",
        data=data,
        method=method,
        headers={"Content-Type": "application/json"},
    )
    try:
        with urllib.request.urlopen(req, timeout=5) as resp:
            return resp.status, json.loads(resp.read())
    except urllib.error.HTTPError as exc:
        return exc.code, json.loads(exc.read())


class TestHttpRoundTrip:
    def test_health(self, server: HTTPServer) -> None:
        status, data = _request(server, "GET", "/health")
        assert status == 200
        assert data["status"] == "ok"

    def test_register_and_read(self, server: HTTPServer) -> None:
        status, _ = _request(
            server,
            "POST",
            "/identities",
            {"username": "alice", "publicKey": "PK1", "data": "ENC1", "verified": ""},
        )
        assert status == 201

        assert _request(server, "GET", "/identities/alice/public-key") == (
            200,
            {"publicKey": "PK1"},
        )
        assert _request(server, "GET", "/identities/alice/data") == (200, {"data": "ENC1"})

    def test_update_data(self, server: HTTPServer) -> None:
        _request(server, "POST", "/identities", {"username": "alice", "publicKey": "PK1", "data": "A"})
        status, _ = _request(server, "PUT", "/identities/alice/data", {"data": "B"})
        assert status == 200
        assert _request(server, "GET", "/identities/alice/data") == (200, {"data": "B"})

    def test_percent_encoded_username(self, server: HTTPServer) -> None:
        _request(server, "POST", "/identities", {"username": "a/b c", "publicKey": "PK"})
        status, data = _request(server, "GET", "/identities/a%2Fb%20c/public-key")
        assert status == 200
        assert data == {"publicKey": "PK"}

    def test_unknown_user_is_404(self, server: HTTPServer) -> None:
        status, data = _request(server, "GET", "/identities/bob/data")
        assert status == 404
        assert data["detail"] == "Username not found"

    def test_invoke(self, server: HTTPServer) -> None:
        status, data = _request(
            server,
            "POST",
            "/invoke",
            {"function": "Register", "args": ['{"username":"carol","publicKey":"PK3"}']},
        )
        assert status == 200
        assert json.loads(data["payload"])["username"] == "carol"

    def test_invalid_json_body_is_400(self, server: HTTPServer) -> None:
        status, data = _request(server, "POST", "/identities", raw=b"{nope")
        assert status == 400
        assert data["error"] == "Invalid JSON"

    def test_non_object_body_is_400(self, server: HTTPServer) -> None:
        status, _ = _request(server, "POST", "/invoke", body=["Register"])
        assert status == 400

    def test_unknown_route_is_404(self, server: HTTPServer) -> None:
        status, _ = _request(server, "GET", "/nowhere")
        assert status == 404

    def test_put_on_public_key_is_404(self, server: HTTPServer) -> None:
        status, _ = _request(server, "PUT", "/identities/alice/public-key", {"data": "x"})
        assert status == 404

    def test_delete_not_allowed(self, server: HTTPServer) -> None:
        status, _ = _request(server, "DELETE", "/identities/alice/data")
        assert status == 405


class TestCreateServer:
    def test_filesystem_ledger_is_installed(self, tmp_path: Path) -> None:
        srv = create_server(host="127.0.0.1", port=0, ledger_dir=tmp_path / "ledger")
        try:
            assert isinstance(routes.get_host().ledger, FilesystemLedger)
        finally:
            srv.server_close()
            routes.reset_state()

    def test_arg_parser_defaults(self) -> None:
        args = _build_arg_parser().parse_args([])
        assert args.port == 8080
        assert args.ledger_dir is None
        assert args.audit_log is None
        assert args.log_level == "INFO"

    def test_audit_log_records_requests(self, tmp_path: Path) -> None:
        audit_log = tmp_path / "audit.jsonl"
        srv = create_server(host="127.0.0.1", port=0, audit_log=audit_log)
        thread = threading.Thread(target=srv.serve_forever, daemon=True)
        thread.start()
        try:
            _request(srv, "POST", "/identities", {"username": "alice", "publicKey": "PK1"})
            _request(srv, "GET", "/identities/bob/data")
        finally:
            srv.shutdown()
            srv.server_close()
            thread.join(timeout=5)
            routes.reset_state()
        events = [json.loads(line) for line in audit_log.read_text().splitlines()]
        assert [(e["event_type"], e["username"]) for e in events] == [
            ("identity_registered", "alice"),
            ("operation_failed", "bob"),
        ]

    def test_arg_parser_audit_log(self) -> None:
        args = _build_arg_parser().parse_args(["--audit-log", "audit.jsonl"])
        assert args.audit_log == Path("audit.jsonl")
