"""Identity — the record stored per username in the ledger."""
from __future__ import annotations

import json
from dataclasses import dataclass

from identity_registry.errors import CorruptRecordError

# Wire key -> attribute name, in serialization order.
_WIRE_FIELDS: tuple[tuple[str, str], ...] = (
    ("username", "username"),
    ("publicKey", "public_key"),
    ("data", "data"),
    ("verified", "verified"),
)


@dataclass
class Identity:
    """The canonical identity record for a registered user.

    Parameters
    ----------
    username:
        Unique user name; also the ledger key. Never changes after
        registration.
    public_key:
        Opaque public key material (base64, PEM, ...). Set at registration.
    data:
        Opaque payload encrypted by the caller. The registry never decrypts it.
    verified:
        Free-form verification flag. Stored and echoed, never interpreted.
    """

    username: str
    public_key: str = ""
    data: str = ""
    verified: str = ""

    def to_dict(self) -> dict[str, str]:
        """Serialize to a plain dictionary using the wire key names."""
        return {wire: getattr(self, attr) for wire, attr in _WIRE_FIELDS}

    def to_bytes(self) -> bytes:
        """Serialize to the compact JSON form stored in the ledger."""
        return json.dumps(
            self.to_dict(), separators=(",", ":"), ensure_ascii=False
        ).encode("utf-8")

    @classmethod
    def from_bytes(cls, key: str, raw: bytes) -> "Identity":
        """Decode a record previously stored under *key*.

        Missing fields default to the empty string.

        Raises
        ------
        CorruptRecordError
            If *raw* is not a UTF-8 JSON object of string fields.
        """
        try:
            decoded = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise CorruptRecordError(key, str(exc)) from exc
        if not isinstance(decoded, dict):
            raise CorruptRecordError(key, "expected a JSON object")

        values: dict[str, str] = {}
        for wire, attr in _WIRE_FIELDS:
            value = decoded.get(wire, "")
            if not isinstance(value, str):
                raise CorruptRecordError(key, f"field {wire!r} is not a string")
            values[attr] = value
        return cls(**values)
