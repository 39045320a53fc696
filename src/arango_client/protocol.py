"""Request records and response interpretation shared by sync and async code."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Mapping
from urllib.parse import quote

from .errors import (
    AuthorizationError,
    ParseError,
    ServerError,
    Unauthorized,
)
from .transport.base import TransportResponse

JSON_HEADERS = {"Content-Type": "application/json"}


@dataclass(frozen=True)
class Request:
    method: str
    url: str
    body: str | None = None
    headers: Mapping[str, str] = field(default_factory=dict)


def encode_body(payload: Any) -> str:
    try:
        return json.dumps(payload, separators=(",", ":"))
    except (TypeError, ValueError) as exc:
        raise ParseError(f"Request payload is not JSON serializable: {exc}") from exc


def quote_segment(value: str) -> str:
    return quote(str(value), safe="")


def error_details(response: TransportResponse) -> tuple[str, int | None, int | None]:
    """Return ``(message, code, errorNum)`` from an error body."""
    text = response.content or ""
    try:
        parsed = json.loads(text) if text else None
    except json.JSONDecodeError:
        parsed = None

    if isinstance(parsed, dict):
        message = parsed.get("errorMessage") or parsed.get("message")
        code = parsed.get("code")
        error_num = parsed.get("errorNum")
        return (
            str(message) if message else f"HTTP {response.status_code}",
            code if isinstance(code, int) else None,
            error_num if isinstance(error_num, int) else None,
        )
    return text.strip() or f"HTTP {response.status_code}", None, None


def raise_for_response(
    response: TransportResponse,
    error_class: type[ServerError] = ServerError,
    *,
    authorization_class: type[ServerError] = AuthorizationError,
    context: Any | None = None,
) -> None:
    """Raise the error matching a non-success response; no-op on 2xx.

    A 401 always raises :class:`Unauthorized`. A 403 raises
    ``authorization_class``, other statuses raise ``error_class``.
    """
    if response.ok:
        return
    message, code, error_num = error_details(response)
    if response.status_code == 401:
        raise Unauthorized(message, context=context)
    if response.status_code == 403:
        error_class = authorization_class
    raise error_class(
        message,
        status_code=response.status_code,
        code=code,
        error_num=error_num,
        context=context,
    )


def decode_object(response: TransportResponse) -> dict[str, Any]:
    data = response.json()
    if not isinstance(data, dict):
        raise ParseError(
            f"Expected a JSON object, got {type(data).__name__}",
            context=response.content[:200],
        )
    return data


def raise_for_error_body(
    payload: dict[str, Any],
    response: TransportResponse,
    error_class: type[ServerError] = ServerError,
    *,
    context: Any | None = None,
) -> None:
    """Raise when a success status carries an error body (``"error": true``)."""
    if payload.get("error") is not True:
        return
    message = payload.get("errorMessage") or f"HTTP {response.status_code}"
    code = payload.get("code")
    error_num = payload.get("errorNum")
    raise error_class(
        str(message),
        status_code=response.status_code,
        code=code if isinstance(code, int) else None,
        error_num=error_num if isinstance(error_num, int) else None,
        context=context,
    )


__all__ = [
    "JSON_HEADERS",
    "Request",
    "decode_object",
    "encode_body",
    "error_details",
    "quote_segment",
    "raise_for_error_body",
    "raise_for_response",
]
