"""identity-registry — per-user public key and encrypted data registry over a ledger.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import identity_registry
>>> identity_registry.__version__
'0.1.0'

Quick start
-----------
::

    from identity_registry import IdentityRegistry, InMemoryLedger

    registry = IdentityRegistry(InMemoryLedger())
    registry.dispatch(
        "Register",
        '{"username":"alice","publicKey":"PK1","data":"ENC1","verified":""}',
    )
    registry.dispatch("GetUserData", '{"username":"alice"}')
    # b'{"data":"ENC1"}'
"""
from __future__ import annotations

__version__: str = "0.1.0"

# ------------------------------------------------------------------
# Errors
# ------------------------------------------------------------------
from identity_registry.errors import (
    CorruptRecordError,
    LedgerError,
    MalformedPayloadError,
    RegistryError,
    UnknownOperationError,
    UsernameNotFoundError,
)

# ------------------------------------------------------------------
# Ledger subsystem
# ------------------------------------------------------------------
from identity_registry.ledger import (
    FilesystemLedger,
    InMemoryLedger,
    Ledger,
    LedgerTransaction,
)

# ------------------------------------------------------------------
# Registry subsystem
# ------------------------------------------------------------------
from identity_registry.registry import (
    GetPublicKeyRequest,
    GetUserDataRequest,
    Identity,
    IdentityRegistry,
    RegisterRequest,
    RegistryHost,
    Response,
    UpdateUserDataRequest,
    decode_request,
)

# ------------------------------------------------------------------
# Middleware subsystem
# ------------------------------------------------------------------
from identity_registry.middleware.audit import AuditEvent, RegistryAuditLogger

__all__ = [
    # version
    "__version__",
    # errors
    "CorruptRecordError",
    "LedgerError",
    "MalformedPayloadError",
    "RegistryError",
    "UnknownOperationError",
    "UsernameNotFoundError",
    # ledger
    "FilesystemLedger",
    "InMemoryLedger",
    "Ledger",
    "LedgerTransaction",
    # registry
    "GetPublicKeyRequest",
    "GetUserDataRequest",
    "Identity",
    "IdentityRegistry",
    "RegisterRequest",
    "RegistryHost",
    "Response",
    "UpdateUserDataRequest",
    "decode_request",
    # middleware
    "AuditEvent",
    "RegistryAuditLogger",
]
