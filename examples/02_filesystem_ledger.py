#!/usr/bin/env python3
"""Example: Filesystem ledger with an audit trail

Records persist across registry instances when backed by a
FilesystemLedger; every operation is appended to a JSONL audit log.

Usage:
    python examples/02_filesystem_ledger.py
"""
from __future__ import annotations

import tempfile
from pathlib import Path

from identity_registry import FilesystemLedger, IdentityRegistry, RegistryAuditLogger


def main() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        root = Path(tmp)
        audit = RegistryAuditLogger(log_path=root / "audit.jsonl")

        first = IdentityRegistry(FilesystemLedger(root / "ledger"), audit_logger=audit)
        first.dispatch("Register", {"username": "alice", "publicKey": "PK1", "data": "ENC1"})

        # A new registry over the same directory sees the record
        second = IdentityRegistry(FilesystemLedger(root / "ledger"), audit_logger=audit)
        print(second.dispatch("GetPublicKey", {"username": "alice"}).decode())

        for event in audit.read_log():
            print(f"{event['timestamp']}  {event['event_type']:<22} {event['username']}")


if __name__ == "__main__":
    main()
