"""In-memory ledger backend."""
from __future__ import annotations

import threading
from typing import Optional

from identity_registry.ledger.base import Ledger, check_key, check_value


class InMemoryLedger(Ledger):
    """Dict-backed ledger for tests, the CLI and single-process servers.

    Thread-safe. Values are stored as immutable ``bytes`` copies.

    Example
    -------
    ::

        ledger = InMemoryLedger()
        ledger.put("alice", b"{}")
        assert ledger.get("alice") == b"{}"
        assert ledger.get("bob") is None
    """

    def __init__(self, initial: dict[str, bytes] | None = None) -> None:
        self._state: dict[str, bytes] = {}
        self._lock = threading.Lock()
        for key, value in (initial or {}).items():
            self.put(key, value)

    def get(self, key: str) -> Optional[bytes]:
        key = check_key(key)
        with self._lock:
            return self._state.get(key)

    def put(self, key: str, value: bytes) -> None:
        key = check_key(key)
        value = check_value(value)
        with self._lock:
            self._state[key] = value

    def __len__(self) -> int:
        with self._lock:
            return len(self._state)

    def __contains__(self, key: object) -> bool:
        """Support ``"alice" in ledger`` membership test."""
        with self._lock:
            return key in self._state
