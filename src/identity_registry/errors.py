"""Error taxonomy shared by the registry, its ledgers and its transports.

Every error raised by this package derives from :class:`RegistryError` and
carries a ``kind`` string that transports use to pick a status code.
"""
from __future__ import annotations

KNOWN_OPERATIONS: tuple[str, ...] = (
    "Register",
    "UpdateUserData",
    "GetPublicKey",
    "GetUserData",
)


class RegistryError(Exception):
    """Base class for all identity registry failures."""

    kind: str = "RegistryError"


class UsernameNotFoundError(RegistryError, LookupError):
    """Raised when no record is stored under the requested username."""

    kind = "NotFound"

    def __init__(self, username: str) -> None:
        super().__init__("Username not found")
        self.username = username


class LedgerError(RegistryError):
    """Raised when the underlying ledger get/put primitive fails.

    The message is the underlying error text, unchanged.
    """

    kind = "LedgerFailure"


class UnknownOperationError(RegistryError, ValueError):
    """Raised when dispatch receives an operation name it does not route."""

    kind = "UnknownOperation"

    def __init__(self, operation: str) -> None:
        expected = ", ".join(repr(name) for name in KNOWN_OPERATIONS)
        super().__init__(
            f"Unknown operation, must be one of {expected}. But got: {operation!r}"
        )
        self.operation = operation


class MalformedPayloadError(RegistryError, ValueError):
    """Raised when a request payload cannot be decoded into its request type."""

    kind = "MalformedPayload"


class CorruptRecordError(RegistryError):
    """Raised when bytes stored under a username do not decode to an Identity."""

    kind = "CorruptRecord"

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"Stored record for {key!r} is corrupt: {reason}")
        self.key = key


__all__ = [
    "KNOWN_OPERATIONS",
    "CorruptRecordError",
    "LedgerError",
    "MalformedPayloadError",
    "RegistryError",
    "UnknownOperationError",
    "UsernameNotFoundError",
]
