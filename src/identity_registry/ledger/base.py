"""Ledger storage contract.

A ledger is an ordered key-value store of record. The registry needs only
two primitives from it, ``get`` and ``put``, both executed inside a
transaction boundary supplied by the host (see :meth:`Ledger.transaction`).
"""
from __future__ import annotations

import contextlib
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Iterator, Optional

from identity_registry.errors import LedgerError

if TYPE_CHECKING:
    from identity_registry.ledger.transaction import LedgerTransaction


class Ledger(ABC):
    """Abstract base class for ledger backends."""

    @abstractmethod
    def get(self, key: str) -> Optional[bytes]:
        """Return the value stored under *key*, or ``None`` if absent.

        Raises
        ------
        LedgerError
            If the backend fails to read.
        """

    @abstractmethod
    def put(self, key: str, value: bytes) -> None:
        """Store *value* under *key*, replacing any previous value.

        Raises
        ------
        LedgerError
            If the key or value is invalid or the backend fails to write.
        """

    @contextlib.contextmanager
    def transaction(self) -> Iterator["LedgerTransaction"]:
        """Open a transaction over this ledger.

        Staged writes are committed when the block exits cleanly and
        discarded when it raises.

        Example
        -------
        ::

            with ledger.transaction() as tx:
                tx.put("alice", b"...")
        """
        from identity_registry.ledger.transaction import LedgerTransaction

        tx = LedgerTransaction(self)
        try:
            yield tx
        except BaseException:
            tx.rollback()
            raise
        tx.commit()


def check_key(key: object) -> str:
    """Validate a ledger key and return it."""
    if not isinstance(key, str) or not key:
        raise LedgerError(f"Ledger key must be a non-empty string, got {key!r}")
    return key


def check_value(value: object) -> bytes:
    """Validate a ledger value and return an immutable bytes copy."""
    if not isinstance(value, (bytes, bytearray, memoryview)):
        raise LedgerError(
            f"Ledger value must be bytes, got {type(value).__name__}"
        )
    return bytes(value)
