"""Ledger backends for the identity registry.

Quick start
-----------
::

    from identity_registry.ledger import InMemoryLedger, FilesystemLedger

    ledger = InMemoryLedger()
    with ledger.transaction() as tx:
        tx.put("alice", b"...")
"""
from __future__ import annotations

from identity_registry.ledger.base import Ledger
from identity_registry.ledger.filesystem import FilesystemLedger
from identity_registry.ledger.memory import InMemoryLedger
from identity_registry.ledger.transaction import LedgerTransaction

__all__ = [
    "FilesystemLedger",
    "InMemoryLedger",
    "Ledger",
    "LedgerTransaction",
]
