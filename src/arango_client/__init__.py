"""Public surface for the ArangoDB Python client."""

from .auth import AuthMode, AuthState
from .config import ConnectionOptions
from .connection import AsyncConnection, Connection
from .cursor import AsyncCursor, Cursor, CursorState
from .database import AsyncDatabase, Database, DatabaseInfo
from .errors import (
    ArangoError,
    AuthError,
    AuthorizationError,
    ConfigError,
    CursorError,
    DatabaseNotFound,
    ParseError,
    QueryError,
    ServerError,
    TransportError,
    Unauthorized,
)
from .query import AqlQuery
from .transport import (
    AsyncHttpxTransport,
    AsyncTransport,
    HeaderMap,
    HttpVersion,
    HttpxTransport,
    Transport,
    TransportResponse,
)
from .types import ExecuteResult
from .version import __version__

__all__ = [
    "__version__",
    "AqlQuery",
    "ArangoError",
    "AsyncConnection",
    "AsyncCursor",
    "AsyncDatabase",
    "AsyncHttpxTransport",
    "AsyncTransport",
    "AuthError",
    "AuthMode",
    "AuthState",
    "AuthorizationError",
    "ConfigError",
    "Connection",
    "ConnectionOptions",
    "Cursor",
    "CursorError",
    "CursorState",
    "Database",
    "DatabaseInfo",
    "DatabaseNotFound",
    "ExecuteResult",
    "HeaderMap",
    "HttpVersion",
    "HttpxTransport",
    "ParseError",
    "QueryError",
    "ServerError",
    "Transport",
    "TransportError",
    "TransportResponse",
    "Unauthorized",
]
