"""Pydantic request/response models for the identity-registry HTTP server."""
from __future__ import annotations

from pydantic import BaseModel, Field

from identity_registry import __version__


class InvokeRequest(BaseModel):
    """Request body for POST /invoke."""

    function: str = Field(min_length=1)
    args: list[str] = Field(default_factory=list)


class InvokeResponse(BaseModel):
    """Response body for POST /invoke, mirroring the host Response envelope."""

    status: int
    message: str = ""
    payload: str = ""
    kind: str = ""


class UpdateUserDataBody(BaseModel):
    """Request body for PUT /identities/{username}/data."""

    data: str


class HealthResponse(BaseModel):
    """Response body for GET /health."""

    status: str = "ok"
    service: str = "identity-registry"
    version: str = __version__
    ledger: str = ""


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str = ""
    kind: str = ""


__all__ = [
    "ErrorResponse",
    "HealthResponse",
    "InvokeRequest",
    "InvokeResponse",
    "UpdateUserDataBody",
]
