"""RegistryHost — host-style entry point around the identity registry.

The host owns what the registry deliberately does not: ordering of
concurrent invocations and the transaction boundary each invocation runs
in. Callers hand it an operation name plus a list of string arguments (the
first being the JSON payload) and always get a :class:`Response` back;
registry errors are turned into error responses rather than raised.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Optional, Sequence

from identity_registry.errors import (
    KNOWN_OPERATIONS,
    MalformedPayloadError,
    RegistryError,
    UnknownOperationError,
)
from identity_registry.ledger.base import Ledger
from identity_registry.middleware.audit import RegistryAuditLogger
from identity_registry.registry.requests import RegistryRequest, decode_request
from identity_registry.registry.service import IdentityRegistry

logger = logging.getLogger(__name__)

OK = 200
ERROR = 500


@dataclass(frozen=True)
class Response:
    """Outcome of a host invocation.

    Parameters
    ----------
    status:
        ``OK`` (200) on success, ``ERROR`` (500) on failure.
    message:
        Error message on failure, empty on success.
    payload:
        Operation result bytes on success, empty on failure.
    kind:
        The error kind (e.g. ``"NotFound"``) on failure, empty on success.
    """

    status: int
    message: str = ""
    payload: bytes = b""
    kind: str = ""

    @property
    def ok(self) -> bool:
        return self.status == OK

    @classmethod
    def success(cls, payload: bytes = b"") -> "Response":
        return cls(status=OK, payload=payload)

    @classmethod
    def error(cls, exc: RegistryError) -> "Response":
        return cls(status=ERROR, message=str(exc), kind=exc.kind)

    def to_dict(self) -> dict[str, object]:
        """Serialize to a plain dictionary; the payload is decoded as UTF-8."""
        return {
            "status": self.status,
            "message": self.message,
            "payload": self.payload.decode("utf-8", errors="replace"),
            "kind": self.kind,
        }


class RegistryHost:
    """Runs registry operations one at a time, each in its own transaction.

    Thread-safe: invocations are serialized with a lock so that a
    read-modify-write operation never interleaves with another write to
    the same ledger through this host.

    Parameters
    ----------
    ledger:
        The ledger of record.
    audit_logger:
        Optional audit trail. Success and failure events are recorded once
        the outcome of each invocation, commit included, is known.

    Example
    -------
    ::

        host = RegistryHost(InMemoryLedger())
        response = host.invoke("GetPublicKey", ['{"username":"alice"}'])
        if not response.ok:
            print(response.kind, response.message)
    """

    def __init__(
        self,
        ledger: Ledger,
        audit_logger: Optional[RegistryAuditLogger] = None,
    ) -> None:
        self._ledger = ledger
        self._audit = audit_logger
        self._lock = threading.Lock()

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    def init(self) -> Response:
        """Lifecycle hook run once when the registry is deployed."""
        logger.info("Initializing identity registry")
        return Response.success()

    def invoke(self, function: str, args: Sequence[str]) -> Response:
        """Run *function* with *args* inside a ledger transaction.

        Parameters
        ----------
        function:
            Operation name.
        args:
            String arguments; ``args[0]`` is the JSON payload.

        Returns
        -------
        Response
            Success with the operation result, or an error response. Staged
            writes are committed only on success. Audit events are
            recorded after the commit outcome is known.
        """
        logger.info("Invoking identity registry operation %r", function)
        request: Optional[RegistryRequest] = None
        try:
            if function not in KNOWN_OPERATIONS:
                raise UnknownOperationError(function)
            if not args:
                raise MalformedPayloadError(
                    f"{function} expects a JSON payload as its first argument"
                )
            request = decode_request(function, args[0])
            with self._lock, self._ledger.transaction() as tx:
                payload = IdentityRegistry(tx).handle(request)
        except RegistryError as exc:
            logger.warning("Operation %r failed (%s): %s", function, exc.kind, exc)
            if self._audit is not None and request is not None:
                self._audit.log_failure(request.username, function, exc.kind)
            return Response.error(exc)
        if self._audit is not None:
            self._audit.log_success(request.username, function)
        return Response.success(payload)
