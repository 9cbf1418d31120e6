"""Typed request and response payloads for the four registry operations.

Callers send a JSON object per operation. :func:`decode_request` parses it
once, at the boundary, into one variant of :data:`RegistryRequest`; the
handlers then work only with typed fields.
"""
from __future__ import annotations

import json
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from identity_registry.errors import (
    KNOWN_OPERATIONS,
    MalformedPayloadError,
    UnknownOperationError,
)


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class RegisterRequest(_Payload):
    """Payload of ``Register``: the full identity record."""

    operation: Literal["Register"] = "Register"
    username: str = Field(min_length=1)
    public_key: str = Field(default="", alias="publicKey")
    data: str = ""
    verified: str = ""


class UpdateUserDataRequest(_Payload):
    """Payload of ``UpdateUserData``."""

    operation: Literal["UpdateUserData"] = "UpdateUserData"
    username: str = Field(min_length=1)
    data: str = ""


class GetPublicKeyRequest(_Payload):
    """Payload of ``GetPublicKey``."""

    operation: Literal["GetPublicKey"] = "GetPublicKey"
    username: str = Field(min_length=1)


class GetUserDataRequest(_Payload):
    """Payload of ``GetUserData``."""

    operation: Literal["GetUserData"] = "GetUserData"
    username: str = Field(min_length=1)


RegistryRequest = Annotated[
    Union[
        RegisterRequest,
        UpdateUserDataRequest,
        GetPublicKeyRequest,
        GetUserDataRequest,
    ],
    Field(discriminator="operation"),
]

_request_adapter: TypeAdapter[RegistryRequest] = TypeAdapter(RegistryRequest)


class PublicKeyResponse(_Payload):
    """Result of ``GetPublicKey``."""

    public_key: str = Field(alias="publicKey")


class UserDataResponse(_Payload):
    """Result of ``GetUserData``."""

    data: str


def encode_response(response: BaseModel) -> bytes:
    """Serialize a response model to compact JSON using wire key names."""
    return response.model_dump_json(by_alias=True).encode("utf-8")


def decode_request(
    operation: str, payload: bytes | str | dict[str, object]
) -> RegistryRequest:
    """Decode *payload* into the request variant for *operation*.

    Parameters
    ----------
    operation:
        One of ``Register``, ``UpdateUserData``, ``GetPublicKey``,
        ``GetUserData``.
    payload:
        JSON text (``bytes`` or ``str``) or an already-parsed ``dict``.

    Returns
    -------
    RegistryRequest
        The typed request.

    Raises
    ------
    UnknownOperationError
        If *operation* is not a recognized operation name.
    MalformedPayloadError
        If the payload is not a JSON object or fails validation.
    """
    if operation not in KNOWN_OPERATIONS:
        raise UnknownOperationError(operation)

    if isinstance(payload, (bytes, bytearray)):
        try:
            payload = payload.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise MalformedPayloadError(f"Payload is not UTF-8: {exc}") from exc
    if isinstance(payload, str):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as exc:
            raise MalformedPayloadError(f"Payload is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise MalformedPayloadError(
            f"Payload for {operation} must be a JSON object, "
            f"got {type(payload).__name__}"
        )

    try:
        return _request_adapter.validate_python({**payload, "operation": operation})
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'][1:]) or 'payload'}: {err['msg']}"
            for err in exc.errors()
        )
        raise MalformedPayloadError(
            f"Invalid {operation} payload: {problems}"
        ) from exc


__all__ = [
    "GetPublicKeyRequest",
    "GetUserDataRequest",
    "PublicKeyResponse",
    "RegisterRequest",
    "RegistryRequest",
    "UpdateUserDataRequest",
    "UserDataResponse",
    "decode_request",
    "encode_response",
]
