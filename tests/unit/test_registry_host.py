"""Tests for identity_registry.registry.host — RegistryHost and Response."""
from __future__ import annotations

import json
import threading

import pytest

from identity_registry.errors import LedgerError, UsernameNotFoundError
from identity_registry.ledger.memory import InMemoryLedger
from identity_registry.middleware.audit import RegistryAuditLogger
from identity_registry.registry.host import ERROR, OK, RegistryHost, Response

ALICE = '{"username":"alice","publicKey":"PK1","data":"ENC1","verified":""}'


@pytest.fixture()
def ledger() -> InMemoryLedger:
    return InMemoryLedger()


@pytest.fixture()
def host(ledger: InMemoryLedger) -> RegistryHost:
    return RegistryHost(ledger)


class _BrokenWriteLedger(InMemoryLedger):
    def put(self, key: str, value: bytes) -> None:
        raise LedgerError("ledger is read-only")


class _OSErrorLedger(InMemoryLedger):
    def put(self, key: str, value: bytes) -> None:
        raise OSError("read-only filesystem")


# ---------------------------------------------------------------------------
# Response
# ---------------------------------------------------------------------------


class TestResponse:
    def test_success(self) -> None:
        response = Response.success(b"payload")
        assert response.ok
        assert response.status == OK
        assert response.payload == b"payload"
        assert response.kind == ""

    def test_error_carries_kind_and_message(self) -> None:
        response = Response.error(UsernameNotFoundError("bob"))
        assert not response.ok
        assert response.status == ERROR
        assert response.message == "Username not found"
        assert response.kind == "NotFound"
        assert response.payload == b""

    def test_to_dict_decodes_payload(self) -> None:
        d = Response.success(b'{"data":"x"}').to_dict()
        assert d == {"status": 200, "message": "", "payload": '{"data":"x"}', "kind": ""}


# ---------------------------------------------------------------------------
# RegistryHost
# ---------------------------------------------------------------------------


class TestRegistryHost:
    def test_init_succeeds_with_empty_payload(self, host: RegistryHost) -> None:
        response = host.init()
        assert response.ok
        assert response.payload == b""

    def test_scenario(self, host: RegistryHost, ledger: InMemoryLedger) -> None:
        registered = host.invoke("Register", [ALICE])
        assert registered.ok
        assert ledger.get("alice") == ALICE.encode("utf-8")

        public_key = host.invoke("GetPublicKey", ['{"username":"alice"}'])
        assert json.loads(public_key.payload) == {"publicKey": "PK1"}

        missing = host.invoke("GetUserData", ['{"username":"bob"}'])
        assert not missing.ok
        assert missing.kind == "NotFound"
        assert missing.message == "Username not found"

    def test_update_visibility(self, host: RegistryHost) -> None:
        host.invoke("Register", ['{"username":"u","publicKey":"k","data":"A"}'])
        assert host.invoke("UpdateUserData", ['{"username":"u","data":"B"}']).ok
        response = host.invoke("GetUserData", ['{"username":"u"}'])
        assert json.loads(response.payload) == {"data": "B"}

    @pytest.mark.parametrize("operation", ["GetPublicKey", "GetUserData", "UpdateUserData"])
    def test_not_found_contract(self, host: RegistryHost, operation: str) -> None:
        response = host.invoke(operation, ['{"username":"ghost","data":"x"}'])
        assert response.kind == "NotFound"

    def test_unknown_operation_echoes_name(self, host: RegistryHost) -> None:
        response = host.invoke("Transfer", [ALICE])
        assert response.kind == "UnknownOperation"
        assert "Transfer" in response.message

    def test_missing_payload_argument(self, host: RegistryHost) -> None:
        response = host.invoke("Register", [])
        assert response.kind == "MalformedPayload"

    def test_extra_arguments_are_ignored(self, host: RegistryHost) -> None:
        assert host.invoke("Register", [ALICE, "ignored"]).ok

    def test_malformed_payload(self, host: RegistryHost, ledger: InMemoryLedger) -> None:
        response = host.invoke("Register", ["{broken"])
        assert response.kind == "MalformedPayload"
        assert len(ledger) == 0

    def test_write_failure_becomes_error_response(self) -> None:
        host = RegistryHost(_BrokenWriteLedger())
        response = host.invoke("Register", [ALICE])
        assert response.kind == "LedgerFailure"
        assert response.message == "ledger is read-only"

    def test_foreign_commit_failure_becomes_error_response(self) -> None:
        host = RegistryHost(_OSErrorLedger())
        response = host.invoke("Register", [ALICE])
        assert not response.ok
        assert response.kind == "LedgerFailure"
        assert response.message == "read-only filesystem"

    def test_failed_invocation_leaves_ledger_unchanged(
        self, host: RegistryHost, ledger: InMemoryLedger
    ) -> None:
        host.invoke("Register", [ALICE])
        before = ledger.get("alice")
        host.invoke("UpdateUserData", ['{"username":"alice","data":42}'])
        host.invoke("UpdateUserData", ['{"username":"nobody","data":"x"}'])
        assert ledger.get("alice") == before
        assert len(ledger) == 1

    def test_concurrent_updates_are_serialized(
        self, host: RegistryHost, ledger: InMemoryLedger
    ) -> None:
        host.invoke("Register", [ALICE])
        errors: list[Response] = []

        def worker(n: int) -> None:
            payload = json.dumps({"username": "alice", "data": f"v{n}"})
            response = host.invoke("UpdateUserData", [payload])
            if not response.ok:
                errors.append(response)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        final = json.loads(ledger.get("alice") or b"{}")
        assert final["publicKey"] == "PK1"
        assert final["data"] in {f"v{n}" for n in range(16)}


# ---------------------------------------------------------------------------
# Audit trail
# ---------------------------------------------------------------------------


class TestRegistryHostAudit:
    def test_success_is_audited_after_commit(self, ledger: InMemoryLedger) -> None:
        audit = RegistryAuditLogger()
        host = RegistryHost(ledger, audit_logger=audit)
        host.invoke("Register", [ALICE])
        host.invoke("GetPublicKey", ['{"username":"alice"}'])
        events = audit.read_log()
        assert [e["event_type"] for e in events] == [
            "identity_registered",
            "public_key_read",
        ]
        assert all(e["username"] == "alice" for e in events)

    def test_commit_failure_is_audited_as_failure(self) -> None:
        audit = RegistryAuditLogger()
        host = RegistryHost(_BrokenWriteLedger(), audit_logger=audit)
        host.invoke("Register", [ALICE])
        (event,) = audit.read_log()
        assert event["event_type"] == "operation_failed"
        assert event["details"] == {"operation": "Register", "kind": "LedgerFailure"}

    def test_foreign_commit_failure_is_audited_as_failure(self) -> None:
        audit = RegistryAuditLogger()
        host = RegistryHost(_OSErrorLedger(), audit_logger=audit)
        host.invoke("Register", [ALICE])
        assert [e["event_type"] for e in audit.read_log()] == ["operation_failed"]

    def test_not_found_is_audited(self, ledger: InMemoryLedger) -> None:
        audit = RegistryAuditLogger()
        RegistryHost(ledger, audit_logger=audit).invoke(
            "GetUserData", ['{"username":"bob"}']
        )
        (event,) = audit.read_log()
        assert event["username"] == "bob"
        assert event["details"] == {"operation": "GetUserData", "kind": "NotFound"}

    def test_undecodable_invocations_are_not_audited(self, ledger: InMemoryLedger) -> None:
        audit = RegistryAuditLogger()
        host = RegistryHost(ledger, audit_logger=audit)
        host.invoke("Transfer", [ALICE])
        host.invoke("Register", ["{broken"])
        assert audit.read_log() == []
