"""LedgerTransaction — staged writes over a backing ledger.

Reads see the transaction's own staged writes first, then the backing
ledger. Nothing reaches the backing ledger until :meth:`commit`.
"""
from __future__ import annotations

from typing import Optional

from identity_registry.errors import LedgerError
from identity_registry.ledger.base import Ledger, check_key, check_value


class LedgerTransaction(Ledger):
    """A single-use transaction over *backing*.

    Parameters
    ----------
    backing:
        The ledger that receives the staged writes on commit.
    """

    def __init__(self, backing: Ledger) -> None:
        self._backing = backing
        self._writes: dict[str, bytes] = {}
        self._finished = False

    @property
    def finished(self) -> bool:
        """True once the transaction has been committed or rolled back."""
        return self._finished

    @property
    def pending_keys(self) -> list[str]:
        """Keys with staged writes, in first-write order."""
        return list(self._writes)

    def get(self, key: str) -> Optional[bytes]:
        self._check_open()
        key = check_key(key)
        if key in self._writes:
            return self._writes[key]
        return self._backing.get(key)

    def put(self, key: str, value: bytes) -> None:
        self._check_open()
        self._writes[check_key(key)] = check_value(value)

    def commit(self) -> None:
        """Flush staged writes to the backing ledger in order.

        Raises
        ------
        LedgerError
            If the transaction is already finished or a backing write fails.
            Backend errors of any other type are wrapped in LedgerError.
        """
        self._check_open()
        self._finished = True
        try:
            for key, value in self._writes.items():
                self._backing.put(key, value)
        except LedgerError:
            raise
        except Exception as exc:
            raise LedgerError(str(exc)) from exc
        finally:
            self._writes.clear()

    def rollback(self) -> None:
        """Discard all staged writes. Safe to call on a finished transaction."""
        self._finished = True
        self._writes.clear()

    def _check_open(self) -> None:
        if self._finished:
            raise LedgerError("Transaction is already finished")
