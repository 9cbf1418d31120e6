"""IdentityRegistry — the four identity operations over an injected ledger.

The registry is a thin, stateless state-transition layer: each operation
performs at most one ledger read followed by at most one ledger write. It
holds no locks and caches nothing; ordering of concurrent calls is the
host's job (see :class:`~identity_registry.registry.host.RegistryHost`).
"""
from __future__ import annotations

import logging
from typing import Callable, Optional

from identity_registry.errors import (
    LedgerError,
    RegistryError,
    UnknownOperationError,
    UsernameNotFoundError,
)
from identity_registry.ledger.base import Ledger
from identity_registry.middleware.audit import RegistryAuditLogger
from identity_registry.registry.identity import Identity
from identity_registry.registry.requests import (
    GetPublicKeyRequest,
    GetUserDataRequest,
    PublicKeyResponse,
    RegisterRequest,
    RegistryRequest,
    UpdateUserDataRequest,
    UserDataResponse,
    decode_request,
    encode_response,
)

logger = logging.getLogger(__name__)


class IdentityRegistry:
    """Identity registry service.

    Parameters
    ----------
    ledger:
        The ledger (or ledger transaction) holding identity records.
    audit_logger:
        Optional audit trail. Only usernames and operation names are
        recorded, never key material or user data.

    Example
    -------
    ::

        registry = IdentityRegistry(InMemoryLedger())
        registry.dispatch(
            "Register",
            '{"username":"alice","publicKey":"PK1","data":"ENC1","verified":""}',
        )
        registry.dispatch("GetPublicKey", '{"username":"alice"}')
        # b'{"publicKey":"PK1"}'
    """

    def __init__(
        self,
        ledger: Ledger,
        audit_logger: Optional[RegistryAuditLogger] = None,
    ) -> None:
        self._ledger = ledger
        self._audit = audit_logger
        self._handlers: dict[str, Callable[..., bytes]] = {
            "Register": self.register,
            "UpdateUserData": self.update_user_data,
            "GetPublicKey": self.get_public_key,
            "GetUserData": self.get_user_data,
        }

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch(
        self, operation: str, payload: bytes | str | dict[str, object]
    ) -> bytes:
        """Decode *payload* for *operation* and run the matching handler.

        Raises
        ------
        UnknownOperationError
            If *operation* is not one of the four operation names.
        MalformedPayloadError
            If the payload does not decode into the operation's request.
        """
        handler = self._handlers.get(operation)
        if handler is None:
            logger.error("Unknown operation %r", operation)
            raise UnknownOperationError(operation)
        request = decode_request(operation, payload)
        return self.handle(request)

    def handle(self, request: RegistryRequest) -> bytes:
        """Run the handler for an already-decoded request."""
        try:
            result = self._handlers[request.operation](request)
        except RegistryError as exc:
            if self._audit is not None:
                self._audit.log_failure(
                    request.username, request.operation, exc.kind
                )
            raise
        if self._audit is not None:
            self._audit.log_success(request.username, request.operation)
        return result

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def register(self, request: RegisterRequest) -> bytes:
        """Store a new identity under its username.

        No existence check is made: registering a username again replaces
        the previous record entirely.

        Returns
        -------
        bytes
            The serialized record that was written.
        """
        logger.info("Registering identity %r", request.username)
        identity = Identity(
            username=request.username,
            public_key=request.public_key,
            data=request.data,
            verified=request.verified,
        )
        record = identity.to_bytes()
        self._put(identity.username, record)
        return record

    def update_user_data(self, request: UpdateUserDataRequest) -> bytes:
        """Replace the encrypted data of an existing identity.

        Returns
        -------
        bytes
            The serialized record after the update.

        Raises
        ------
        UsernameNotFoundError
            If no identity is registered under the username.
        """
        logger.info("Updating data of identity %r", request.username)
        identity = self._load(request.username)
        identity.data = request.data
        record = identity.to_bytes()
        self._put(request.username, record)
        return record

    def get_public_key(self, request: GetPublicKeyRequest) -> bytes:
        """Return ``{"publicKey": ...}`` for a registered username."""
        logger.info("Querying public key of identity %r", request.username)
        identity = self._load(request.username)
        return encode_response(PublicKeyResponse(public_key=identity.public_key))

    def get_user_data(self, request: GetUserDataRequest) -> bytes:
        """Return ``{"data": ...}`` for a registered username."""
        logger.info("Querying data of identity %r", request.username)
        identity = self._load(request.username)
        return encode_response(UserDataResponse(data=identity.data))

    # ------------------------------------------------------------------
    # Ledger access
    # ------------------------------------------------------------------

    def _load(self, username: str) -> Identity:
        raw = self._get(username)
        if raw is None:
            raise UsernameNotFoundError(username)
        return Identity.from_bytes(username, raw)

    def _get(self, key: str) -> Optional[bytes]:
        try:
            return self._ledger.get(key)
        except LedgerError:
            raise
        except Exception as exc:
            raise LedgerError(str(exc)) from exc

    def _put(self, key: str, value: bytes) -> None:
        try:
            self._ledger.put(key, value)
        except LedgerError:
            raise
        except Exception as exc:
            raise LedgerError(str(exc)) from exc
