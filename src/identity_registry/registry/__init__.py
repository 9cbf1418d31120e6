"""Identity registry core.

Provides the :class:`IdentityRegistry` service (the four identity
operations over an injected ledger), the :class:`Identity` record, typed
request payloads, and the :class:`RegistryHost` entry point that wraps
each invocation in a ledger transaction.

Quick start
-----------
::

    from identity_registry.ledger import InMemoryLedger
    from identity_registry.registry import RegistryHost

    host = RegistryHost(InMemoryLedger())
    host.invoke(
        "Register",
        ['{"username":"alice","publicKey":"PK1","data":"ENC1","verified":""}'],
    )
    host.invoke("GetPublicKey", ['{"username":"alice"}']).payload
    # b'{"publicKey":"PK1"}'
"""
from __future__ import annotations

from identity_registry.registry.host import RegistryHost, Response
from identity_registry.registry.identity import Identity
from identity_registry.registry.requests import (
    GetPublicKeyRequest,
    GetUserDataRequest,
    RegisterRequest,
    RegistryRequest,
    UpdateUserDataRequest,
    decode_request,
)
from identity_registry.registry.service import IdentityRegistry

__all__ = [
    "GetPublicKeyRequest",
    "GetUserDataRequest",
    "Identity",
    "IdentityRegistry",
    "RegisterRequest",
    "RegistryHost",
    "RegistryRequest",
    "Response",
    "UpdateUserDataRequest",
    "decode_request",
]
