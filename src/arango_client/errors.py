"""Exceptions raised by the ArangoDB Python client."""

from __future__ import annotations

from typing import Any


class ArangoError(Exception):
    """Base error for all client failures."""

    def __init__(self, message: str, *, context: Any | None = None) -> None:
        super().__init__(message)
        self.context = context


class ConfigError(ArangoError):
    """Raised when a transport or connection cannot be built from its settings."""


class TransportError(ArangoError):
    """Raised when the HTTP backend cannot complete a request."""


class AuthError(ArangoError):
    """Raised when authentication fails or credentials are missing."""


class Unauthorized(AuthError):
    """Raised on a 401 response or when a JWT connection holds no token."""


class ServerError(ArangoError):
    """Raised for non-success responses, carrying the server's error body."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        code: int | None = None,
        error_num: int | None = None,
        context: Any | None = None,
    ) -> None:
        super().__init__(message, context=context)
        self.status_code = status_code
        self.code = code if code is not None else status_code
        self.error_num = error_num
        self.error_message = message

    def __str__(self) -> str:
        if self.error_num is not None:
            return f"[{self.code}/{self.error_num}] {self.error_message}"
        if self.code is not None:
            return f"[{self.code}] {self.error_message}"
        return self.error_message


class AuthorizationError(ServerError):
    """Raised when the server denies access to a resource."""


class QueryError(ServerError):
    """Raised when the server rejects a query submission."""


class DatabaseNotFound(ServerError):
    """Raised when the requested database does not exist."""


class CursorError(ArangoError):
    """Raised when fetching a further batch of a cursor fails."""

    def __init__(self, message: str, *, cursor_id: str | None = None, context: Any | None = None) -> None:
        super().__init__(message, context=context)
        self.cursor_id = cursor_id


class ParseError(ArangoError):
    """Raised when a response cannot be parsed."""


__all__ = [
    "ArangoError",
    "AuthError",
    "AuthorizationError",
    "ConfigError",
    "CursorError",
    "DatabaseNotFound",
    "ParseError",
    "QueryError",
    "ServerError",
    "TransportError",
    "Unauthorized",
]
