"""Route handler functions for the identity-registry HTTP server.

Each function accepts parsed request data and returns a tuple of
(status_code, response_dict). The HTTP handler in app.py calls these
functions and serializes the results to JSON. Every registry call goes
through the process's :class:`RegistryHost`, so each request runs in its
own ledger transaction.
"""
from __future__ import annotations

import json

from pydantic import ValidationError

from identity_registry.ledger.base import Ledger
from identity_registry.ledger.memory import InMemoryLedger
from identity_registry.middleware.audit import RegistryAuditLogger
from identity_registry.registry.host import RegistryHost, Response
from identity_registry.server.models import (
    ErrorResponse,
    HealthResponse,
    InvokeRequest,
    InvokeResponse,
    UpdateUserDataBody,
)

# HTTP status per error kind
_STATUS_BY_KIND: dict[str, int] = {
    "NotFound": 404,
    "UnknownOperation": 400,
    "MalformedPayload": 422,
    "LedgerFailure": 500,
    "CorruptRecord": 500,
}

# Module-level shared state
_host: RegistryHost = RegistryHost(InMemoryLedger())


def reset_state(
    ledger: Ledger | None = None,
    audit_logger: RegistryAuditLogger | None = None,
) -> None:
    """Replace the process host, optionally over *ledger* with an audit trail.

    Used by the server entry point to install a persistent ledger and by
    tests for a clean slate.
    """
    global _host
    _host = RegistryHost(
        ledger if ledger is not None else InMemoryLedger(),
        audit_logger=audit_logger,
    )


def get_host() -> RegistryHost:
    """Return the host serving requests in this process."""
    return _host


def _error(response: Response) -> tuple[int, dict[str, object]]:
    status = _STATUS_BY_KIND.get(response.kind, 500)
    return status, ErrorResponse(
        error=response.kind, detail=response.message, kind=response.kind
    ).model_dump()


def _run(
    function: str, payload: dict[str, object], success_status: int = 200
) -> tuple[int, dict[str, object]]:
    response = _host.invoke(function, [json.dumps(payload)])
    if not response.ok:
        return _error(response)
    return success_status, json.loads(response.payload)


def handle_invoke(body: dict[str, object]) -> tuple[int, dict[str, object]]:
    """Handle POST /invoke.

    Parameters
    ----------
    body:
        Parsed JSON request body: ``{"function": str, "args": [str, ...]}``.

    Returns
    -------
    tuple[int, dict[str, object]]
        HTTP status code and the host response envelope.
    """
    try:
        request = InvokeRequest.model_validate(body)
    except ValidationError as exc:
        return 422, ErrorResponse(
            error="Validation error", detail=str(exc), kind="MalformedPayload"
        ).model_dump()

    response = _host.invoke(request.function, request.args)
    status = 200 if response.ok else _STATUS_BY_KIND.get(response.kind, 500)
    return status, InvokeResponse(**response.to_dict()).model_dump()


def handle_register(body: dict[str, object]) -> tuple[int, dict[str, object]]:
    """Handle POST /identities (Register).

    Returns 201 with the stored record on success.
    """
    return _run("Register", body, success_status=201)


def handle_update_user_data(
    username: str, body: dict[str, object]
) -> tuple[int, dict[str, object]]:
    """Handle PUT /identities/{username}/data (UpdateUserData)."""
    try:
        request = UpdateUserDataBody.model_validate(body)
    except ValidationError as exc:
        return 422, ErrorResponse(
            error="Validation error", detail=str(exc), kind="MalformedPayload"
        ).model_dump()
    return _run("UpdateUserData", {"username": username, "data": request.data})


def handle_get_public_key(username: str) -> tuple[int, dict[str, object]]:
    """Handle GET /identities/{username}/public-key (GetPublicKey)."""
    return _run("GetPublicKey", {"username": username})


def handle_get_user_data(username: str) -> tuple[int, dict[str, object]]:
    """Handle GET /identities/{username}/data (GetUserData)."""
    return _run("GetUserData", {"username": username})


def handle_health() -> tuple[int, dict[str, object]]:
    """Handle GET /health."""
    response = HealthResponse(ledger=type(_host.ledger).__name__)
    return 200, response.model_dump()


__all__ = [
    "get_host",
    "handle_get_public_key",
    "handle_get_user_data",
    "handle_health",
    "handle_invoke",
    "handle_register",
    "handle_update_user_data",
    "reset_state",
]
