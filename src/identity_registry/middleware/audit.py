"""RegistryAuditLogger — JSONL audit trail for identity registry operations.

Every registry operation (registration, data update, public-key read, data
read, failure) is appended as a single JSON line to the configured log file.
Only usernames, operation names and error kinds are recorded: public keys
and encrypted user data never reach the audit trail.

If no file path is configured the logger keeps events in an in-memory
buffer that can be drained via :meth:`drain_buffer`.
"""
from __future__ import annotations

import datetime
import json
import threading
from dataclasses import dataclass, field
from pathlib import Path

# Event type logged when each registry operation completes
SUCCESS_EVENTS: dict[str, str] = {
    "Register": "identity_registered",
    "UpdateUserData": "identity_data_updated",
    "GetPublicKey": "public_key_read",
    "GetUserData": "user_data_read",
}


@dataclass
class AuditEvent:
    """A single auditable registry event.

    Parameters
    ----------
    event_type:
        Short snake_case string identifying the event (e.g. "identity_registered").
    username:
        The identity the event concerns.
    details:
        Arbitrary key-value metadata about the event.
    timestamp:
        UTC datetime of the event. Defaults to now.
    """

    event_type: str
    username: str
    details: dict[str, object] = field(default_factory=dict)
    timestamp: datetime.datetime = field(
        default_factory=lambda: datetime.datetime.now(datetime.timezone.utc)
    )

    def to_dict(self) -> dict[str, object]:
        """Serialize to a plain dictionary suitable for JSON encoding."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type,
            "username": self.username,
            "details": self.details,
        }


class RegistryAuditLogger:
    """Append-only JSONL audit logger for registry events.

    Thread-safe.

    Parameters
    ----------
    log_path:
        Path to the JSONL log file. Parent directories are created
        automatically. If None, events are buffered in memory only.
    """

    def __init__(self, log_path: Path | None = None) -> None:
        self._log_path = log_path
        self._buffer: list[str] = []
        self._lock = threading.Lock()

        if log_path is not None:
            log_path.parent.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Core logging
    # ------------------------------------------------------------------

    def log(self, event: AuditEvent) -> None:
        """Append an audit event to the log."""
        line = json.dumps(event.to_dict(), separators=(",", ":"))
        with self._lock:
            if self._log_path is not None:
                with self._log_path.open("a", encoding="utf-8") as fh:
                    fh.write(line + "\n")
            else:
                self._buffer.append(line)

    def log_event(
        self,
        event_type: str,
        username: str,
        **details: object,
    ) -> None:
        """Log a simple event without constructing an AuditEvent."""
        self.log(
            AuditEvent(
                event_type=event_type,
                username=username,
                details=dict(details),
            )
        )

    # ------------------------------------------------------------------
    # Registry events
    # ------------------------------------------------------------------

    def log_success(self, username: str, operation: str) -> None:
        """Log the success event of a completed registry *operation*."""
        self.log_event(SUCCESS_EVENTS[operation], username=username)

    def log_failure(
        self,
        username: str,
        operation: str,
        kind: str,
    ) -> None:
        """Log an operation_failed event."""
        self.log_event(
            "operation_failed",
            username=username,
            operation=operation,
            kind=kind,
        )

    # ------------------------------------------------------------------
    # Buffer access
    # ------------------------------------------------------------------

    def drain_buffer(self) -> list[str]:
        """Return and clear the in-memory event buffer (oldest first)."""
        with self._lock:
            events = list(self._buffer)
            self._buffer.clear()
        return events

    def read_log(self, tail: int | None = None) -> list[dict[str, object]]:
        """Read events from the log file, or from the buffer if there is none.

        Parameters
        ----------
        tail:
            If provided, return only the last *tail* events.

        Returns
        -------
        list[dict[str, object]]
            Parsed event dictionaries in chronological order.
        """
        if self._log_path is None or not self._log_path.exists():
            with self._lock:
                lines = list(self._buffer)
        else:
            with self._lock:
                lines = self._log_path.read_text(encoding="utf-8").splitlines()

        parsed: list[dict[str, object]] = [
            json.loads(line) for line in lines if line.strip()
        ]
        if tail is not None:
            return parsed[-tail:] if tail > 0 else []
        return parsed
