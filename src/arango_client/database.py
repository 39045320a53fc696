"""Database handles: a connection scoped to one database name."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Mapping

from .cursor import AsyncCursor, Cursor
from .errors import ArangoError, ConfigError, DatabaseNotFound, QueryError, ServerError
from .protocol import Request, decode_object, quote_segment, raise_for_error_body, raise_for_response
from .query import AqlQuery, build_query
from .transport.base import TransportResponse
from .types import ExecuteResult

if TYPE_CHECKING:
    from .connection import AsyncConnection, Connection, _BaseConnection


@dataclass(frozen=True)
class DatabaseInfo:
    id: str
    name: str
    path: str | None = None
    is_system: bool = False


class _BaseDatabase:
    def __init__(self, connection: _BaseConnection, name: str) -> None:
        if not isinstance(name, str) or not name.strip():
            raise ConfigError("Database name must be a non-empty string")
        self._connection = connection
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    @property
    def connection(self) -> Any:
        return self._connection

    def url(self, path: str = "") -> str:
        return f"{self._connection.base_url}/_db/{quote_segment(self._name)}{path}"

    def _prepare(self, method: str, path: str, payload: Any | None = None) -> Request:
        return self._connection._prepare(method, f"/_db/{quote_segment(self._name)}{path}", payload)

    def _query_request(self, query: AqlQuery) -> Request:
        return self._prepare("POST", "/_api/cursor", query.to_payload())

    def _cursor_payload(self, response: TransportResponse) -> dict[str, Any]:
        raise_for_response(response, QueryError, authorization_class=QueryError, context=self._name)
        payload = decode_object(response)
        raise_for_error_body(payload, response, QueryError, context=self._name)
        return payload

    def _info_from(self, response: TransportResponse) -> DatabaseInfo:
        if response.status_code == 404:
            raise DatabaseNotFound(
                f"Database {self._name!r} not found",
                status_code=404,
                context=self._name,
            )
        raise_for_response(response, ServerError, context=self._name)
        result = decode_object(response).get("result") or {}
        return DatabaseInfo(
            id=str(result.get("id", "")),
            name=result.get("name", self._name),
            path=result.get("path"),
            is_system=bool(result.get("isSystem", False)),
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._name!r})"


class Database(_BaseDatabase):
    """Blocking database handle.

    Building a handle never touches the network; call :meth:`info` to check
    the database exists.
    """

    _connection: Connection

    def info(self) -> DatabaseInfo:
        response = self._connection.send_request(self._prepare("GET", "/_api/database/current"))
        return self._info_from(response)

    def execute_query(
        self,
        query: str | AqlQuery,
        bind_vars: Mapping[str, Any] | None = None,
        batch_size: int | None = None,
        **options: Any,
    ) -> Cursor:
        """Submit an AQL query and return a cursor positioned on its first batch.

        Args:
            query: AQL text or a prepared :class:`AqlQuery`.
            bind_vars: Values for ``@name`` placeholders.
            batch_size: Maximum documents per batch.
            **options: ``count``, ``ttl``, ``cache``, ``memory_limit`` or ``options``.

        Raises:
            QueryError: The server rejected the query.
            Unauthorized: The connection holds no valid token.
        """
        aql = build_query(query, bind_vars, batch_size, **options)
        response = self._connection.send_request(self._query_request(aql))
        return Cursor(self, self._cursor_payload(response))

    def aql_str(self, query: str) -> list[Any]:
        return self.aql_bind_vars(query, {})

    def aql_bind_vars(self, query: str, bind_vars: Mapping[str, Any]) -> list[Any]:
        with self.execute_query(query, bind_vars) as cursor:
            return cursor.to_list()

    def aql_safe(
        self,
        query: str | AqlQuery,
        bind_vars: Mapping[str, Any] | None = None,
        **options: Any,
    ) -> ExecuteResult[list[Any]]:
        try:
            with self.execute_query(query, bind_vars, **options) as cursor:
                return ExecuteResult(ok=True, data=cursor.to_list())
        except ArangoError as exc:
            return ExecuteResult(ok=False, error=exc)


class AsyncDatabase(_BaseDatabase):
    """Database handle whose network calls are awaited."""

    _connection: AsyncConnection

    async def info(self) -> DatabaseInfo:
        response = await self._connection.send_request(self._prepare("GET", "/_api/database/current"))
        return self._info_from(response)

    async def execute_query(
        self,
        query: str | AqlQuery,
        bind_vars: Mapping[str, Any] | None = None,
        batch_size: int | None = None,
        **options: Any,
    ) -> AsyncCursor:
        aql = build_query(query, bind_vars, batch_size, **options)
        response = await self._connection.send_request(self._query_request(aql))
        return AsyncCursor(self, self._cursor_payload(response))

    async def aql_str(self, query: str) -> list[Any]:
        return await self.aql_bind_vars(query, {})

    async def aql_bind_vars(self, query: str, bind_vars: Mapping[str, Any]) -> list[Any]:
        async with await self.execute_query(query, bind_vars) as cursor:
            return await cursor.to_list()

    async def aql_safe(
        self,
        query: str | AqlQuery,
        bind_vars: Mapping[str, Any] | None = None,
        **options: Any,
    ) -> ExecuteResult[list[Any]]:
        try:
            async with await self.execute_query(query, bind_vars, **options) as cursor:
                return ExecuteResult(ok=True, data=await cursor.to_list())
        except ArangoError as exc:
            return ExecuteResult(ok=False, error=exc)


__all__ = ["AsyncDatabase", "Database", "DatabaseInfo"]
