"""Common transport abstractions.

Every HTTP backend is wrapped by an adapter exposing a single ``request``
operation. Adapters are built from an optional default-header mapping and
raise :class:`~arango_client.errors.ConfigError` when that fails, while a
failed call raises :class:`~arango_client.errors.TransportError`. Adapters
never retry.

Adapter instances are shared by every database handle and cursor of a
connection. Whether concurrent calls are safe is up to the wrapped client.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Iterator, Mapping, Protocol, runtime_checkable

from ..errors import ConfigError, ParseError


class HttpVersion(Enum):
    HTTP_09 = "HTTP/0.9"
    HTTP_10 = "HTTP/1.0"
    HTTP_11 = "HTTP/1.1"
    HTTP_2 = "HTTP/2"
    HTTP_3 = "HTTP/3"

    @classmethod
    def parse(cls, value: str | None) -> "HttpVersion | None":
        if not value:
            return None
        normalized = value.strip().upper()
        if normalized in {"HTTP/2.0", "HTTP/2"}:
            return cls.HTTP_2
        if normalized in {"HTTP/3.0", "HTTP/3"}:
            return cls.HTTP_3
        try:
            return cls(normalized)
        except ValueError:
            return None


class HeaderMap(Mapping[str, str]):
    """Immutable header mapping with case-insensitive keys."""

    __slots__ = ("_items",)

    def __init__(self, headers: Mapping[str, str] | Iterable[tuple[str, str]] | None = None) -> None:
        pairs = headers.items() if isinstance(headers, Mapping) else (headers or ())
        items: dict[str, tuple[str, str]] = {}
        for key, value in pairs:
            items[str(key).lower()] = (str(key), str(value))
        self._items = items

    def __getitem__(self, key: str) -> str:
        return self._items[key.lower()][1]

    def __iter__(self) -> Iterator[str]:
        return (original for original, _ in self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._items

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Mapping):
            return NotImplemented
        return {k: v for k, (_, v) in self._items.items()} == {str(k).lower(): v for k, v in other.items()}

    def __hash__(self) -> int:
        return hash(frozenset((k, v) for k, (_, v) in self._items.items()))

    def __repr__(self) -> str:
        return f"HeaderMap({dict(self.items())!r})"


@dataclass(frozen=True)
class TransportResponse:
    status_code: int
    headers: HeaderMap = field(default_factory=HeaderMap)
    version: HttpVersion | None = None
    content: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.headers, HeaderMap):
            object.__setattr__(self, "headers", HeaderMap(self.headers))

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        try:
            return json.loads(self.content) if self.content else None
        except json.JSONDecodeError as exc:
            raise ParseError(
                f"Response body is not valid JSON (status {self.status_code})",
                context=self.content[:200],
            ) from exc


@runtime_checkable
class Transport(Protocol):
    """Blocking transport capability."""

    def request(
        self,
        method: str,
        url: str,
        body: str | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> TransportResponse: ...

    def close(self) -> None: ...


@runtime_checkable
class AsyncTransport(Protocol):
    """Transport capability whose request suspends at I/O."""

    async def request(
        self,
        method: str,
        url: str,
        body: str | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> TransportResponse: ...

    async def aclose(self) -> None: ...


def validate_headers(headers: Mapping[str, str] | None) -> dict[str, str]:
    """Check a default-header mapping before an adapter is built from it."""
    if headers is None:
        return {}
    if not isinstance(headers, Mapping):
        raise ConfigError(f"Default headers must be a mapping, got {type(headers).__name__}")
    validated: dict[str, str] = {}
    for key, value in headers.items():
        if not isinstance(key, str) or not key.strip():
            raise ConfigError(f"Invalid header name: {key!r}")
        if not isinstance(value, str):
            raise ConfigError(f"Header {key!r} must have a string value")
        if any(ch in key + value for ch in "\r\n"):
            raise ConfigError(f"Header {key!r} contains a line break")
        validated[key] = value
    return validated


__all__ = [
    "AsyncTransport",
    "HeaderMap",
    "HttpVersion",
    "Transport",
    "TransportResponse",
    "validate_headers",
]
