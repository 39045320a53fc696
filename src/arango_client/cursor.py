"""Cursors over paginated AQL query results.

A query result may span several HTTP round trips. The first batch arrives
with the cursor-creation response; further batches are fetched lazily with
``PUT /_api/cursor/<id>`` once the local buffer runs dry. Batches are
delivered in server order and documents keep their order within a batch.

Cursors are not synchronized: never pull from one cursor in two threads or
tasks at once.
"""

from __future__ import annotations

from collections import deque
from enum import Enum
from typing import TYPE_CHECKING, Any, AsyncIterator, Iterator

from .errors import ArangoError, CursorError, ParseError, ServerError
from .protocol import Request, decode_object, quote_segment, raise_for_error_body, raise_for_response
from .transport.base import TransportResponse

if TYPE_CHECKING:
    from .database import AsyncDatabase, Database, _BaseDatabase


class CursorState(str, Enum):
    """
    ACTIVE: more documents may be pulled.
    EXHAUSTED: the server reported no more batches and the buffer is drained.
    FAILED: a batch fetch failed; every further pull raises the stored error.
    CLOSED: released by the caller before exhaustion.
    """

    ACTIVE = "active"
    EXHAUSTED = "exhausted"
    FAILED = "failed"
    CLOSED = "closed"


class _BaseCursor:
    def __init__(self, database: _BaseDatabase, payload: dict[str, Any]) -> None:
        result = payload.get("result")
        if result is None:
            result = []
        if not isinstance(result, list):
            raise ParseError("Cursor response 'result' is not an array", context=payload)
        has_more = bool(payload.get("hasMore", False))
        cursor_id = payload.get("id")
        if has_more and not cursor_id:
            raise ParseError("Cursor response has more batches but no cursor id", context=payload)

        self._database = database
        self._logger = database.connection.logger.child("cursor")
        self._id: str | None = str(cursor_id) if cursor_id is not None else None
        self._buffer: deque[Any] = deque(result)
        self._has_more = has_more
        self._count: int | None = payload.get("count")
        self._extra: dict[str, Any] = payload.get("extra") or {}
        self._cached = bool(payload.get("cached", False))
        self._state = CursorState.ACTIVE
        self._error: CursorError | None = None
        self._batches_fetched = 1
        self._consumed = 0

    @property
    def id(self) -> str | None:
        return self._id

    @property
    def has_more(self) -> bool:
        return self._has_more

    @property
    def count(self) -> int | None:
        """Total result count, only present when the query asked for it."""
        return self._count

    @property
    def extra(self) -> dict[str, Any]:
        return self._extra

    @property
    def cached(self) -> bool:
        return self._cached

    @property
    def state(self) -> CursorState:
        return self._state

    @property
    def error(self) -> CursorError | None:
        return self._error

    @property
    def buffered_count(self) -> int:
        return len(self._buffer)

    @property
    def batches_fetched(self) -> int:
        return self._batches_fetched

    @property
    def consumed(self) -> int:
        return self._consumed

    def _pullable(self) -> bool:
        if self._state is CursorState.FAILED:
            assert self._error is not None
            raise self._error
        return self._state is CursorState.ACTIVE

    def _needs_fetch(self) -> bool:
        return not self._buffer and self._has_more

    def _settle(self) -> bool:
        """Mark the cursor exhausted once nothing is left; True if documents remain."""
        if self._buffer:
            return True
        if not self._has_more:
            self._state = CursorState.EXHAUSTED
        return False

    def _pop(self) -> Any:
        document = self._buffer.popleft()
        self._consumed += 1
        if not self._buffer and not self._has_more:
            self._state = CursorState.EXHAUSTED
        return document

    def _drain(self) -> list[Any]:
        batch = list(self._buffer)
        self._buffer.clear()
        self._consumed += len(batch)
        if not self._has_more:
            self._state = CursorState.EXHAUSTED
        return batch

    def _cursor_path(self) -> str:
        assert self._id is not None
        return f"/_api/cursor/{quote_segment(self._id)}"

    def _next_page_request(self) -> Request:
        return self._database._prepare("PUT", self._cursor_path())

    def _apply_page(self, response: TransportResponse) -> None:
        raise_for_response(response, ServerError, context=self._id)
        payload = decode_object(response)
        raise_for_error_body(payload, response, ServerError, context=self._id)
        result = payload.get("result") or []
        if not isinstance(result, list):
            raise ParseError("Cursor response 'result' is not an array", context=self._id)
        self._buffer.extend(result)
        self._has_more = bool(payload.get("hasMore", False))
        if payload.get("extra"):
            self._extra = payload["extra"]
        self._batches_fetched += 1
        self._logger.debug(
            "Cursor %s batch=%d documents=%d has_more=%s",
            self._id,
            self._batches_fetched,
            len(result),
            self._has_more,
        )

    def _fail(self, exc: ArangoError) -> CursorError:
        self._error = CursorError(
            f"Fetching batch {self._batches_fetched + 1} of cursor {self._id} failed: {exc}",
            cursor_id=self._id,
            context=exc,
        )
        self._state = CursorState.FAILED
        self._buffer.clear()
        return self._error

    def _begin_close(self) -> bool:
        """Move an active cursor to CLOSED; True if the server still holds it.

        A failed cursor keeps its state and error but is still released once.
        """
        if self._state is CursorState.FAILED:
            release = self._id is not None and self._has_more
            self._has_more = False
            return release
        if self._state is not CursorState.ACTIVE:
            return False
        release = self._id is not None and self._has_more
        self._state = CursorState.CLOSED
        self._buffer.clear()
        self._has_more = False
        return release

    def _release_failed(self, exc: ArangoError) -> None:
        self._logger.warn("Releasing cursor %s failed: %s", self._id, exc)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(id={self._id!r}, state={self._state.value}, "
            f"buffered={len(self._buffer)}, has_more={self._has_more})"
        )


class Cursor(_BaseCursor):
    """Blocking cursor; iterate it to get documents one at a time.

    Example:
        >>> with db.execute_query("FOR d IN docs RETURN d", batch_size=100) as cursor:
        ...     for document in cursor:
        ...         print(document)
    """

    _database: Database

    def next_batch(self) -> list[Any] | None:
        """Return the next batch of documents, or None once the cursor is done."""
        if not self._pullable():
            return None
        self._fill()
        if not self._buffer:
            self._settle()
            return None
        return self._drain()

    def to_list(self) -> list[Any]:
        return list(self)

    def close(self) -> None:
        """Release the server-side cursor if it was not exhausted; never raises."""
        if not self._begin_close():
            return
        try:
            request = self._database._prepare("DELETE", self._cursor_path())
            response = self._database.connection.send_request(request)
            raise_for_response(response, ServerError, context=self._id)
        except ArangoError as exc:
            self._release_failed(exc)

    def _fill(self) -> None:
        while self._needs_fetch():
            try:
                response = self._database.connection.send_request(self._next_page_request())
                self._apply_page(response)
            except ArangoError as exc:
                raise self._fail(exc) from exc

    def __iter__(self) -> Iterator[Any]:
        return self

    def __next__(self) -> Any:
        if not self._pullable():
            raise StopIteration
        self._fill()
        if not self._settle():
            raise StopIteration
        return self._pop()

    def __enter__(self) -> "Cursor":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class AsyncCursor(_BaseCursor):
    """Cursor whose batch fetches are awaited; use with ``async for``."""

    _database: AsyncDatabase

    async def next_batch(self) -> list[Any] | None:
        if not self._pullable():
            return None
        await self._fill()
        if not self._buffer:
            self._settle()
            return None
        return self._drain()

    async def to_list(self) -> list[Any]:
        return [document async for document in self]

    async def close(self) -> None:
        if not self._begin_close():
            return
        try:
            request = self._database._prepare("DELETE", self._cursor_path())
            response = await self._database.connection.send_request(request)
            raise_for_response(response, ServerError, context=self._id)
        except ArangoError as exc:
            self._release_failed(exc)

    async def _fill(self) -> None:
        while self._needs_fetch():
            try:
                response = await self._database.connection.send_request(self._next_page_request())
                self._apply_page(response)
            except ArangoError as exc:
                raise self._fail(exc) from exc

    def __aiter__(self) -> AsyncIterator[Any]:
        return self

    async def __anext__(self) -> Any:
        if not self._pullable():
            raise StopAsyncIteration
        await self._fill()
        if not self._settle():
            raise StopAsyncIteration
        return self._pop()

    async def __aenter__(self) -> "AsyncCursor":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()


__all__ = ["AsyncCursor", "Cursor", "CursorState"]
