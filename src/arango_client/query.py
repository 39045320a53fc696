"""AQL query descriptions submitted to the cursor endpoint."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from .errors import ConfigError


@dataclass(frozen=True)
class AqlQuery:
    """An AQL statement with its bind variables and cursor options.

    Example:
        >>> AqlQuery("FOR u IN users FILTER u.age > @age RETURN u", {"age": 21}, batch_size=100)
    """

    query: str
    bind_vars: Mapping[str, Any] = field(default_factory=dict)
    batch_size: int | None = None
    count: bool | None = None
    ttl: float | None = None
    cache: bool | None = None
    memory_limit: int | None = None
    options: Mapping[str, Any] | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.query, str) or not self.query.strip():
            raise ConfigError("AQL query must be a non-empty string")
        if self.batch_size is not None and self.batch_size < 1:
            raise ConfigError(f"batch_size must be at least 1, got {self.batch_size}")
        if self.ttl is not None and self.ttl <= 0:
            raise ConfigError(f"ttl must be positive, got {self.ttl}")

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"query": self.query, "bindVars": dict(self.bind_vars)}
        if self.batch_size is not None:
            payload["batchSize"] = self.batch_size
        if self.count is not None:
            payload["count"] = self.count
        if self.ttl is not None:
            payload["ttl"] = self.ttl
        if self.cache is not None:
            payload["cache"] = self.cache
        if self.memory_limit is not None:
            payload["memoryLimit"] = self.memory_limit
        if self.options:
            payload["options"] = dict(self.options)
        return payload


def build_query(
    query: str | AqlQuery,
    bind_vars: Mapping[str, Any] | None = None,
    batch_size: int | None = None,
    **options: Any,
) -> AqlQuery:
    if isinstance(query, AqlQuery):
        if bind_vars or batch_size is not None or options:
            raise ConfigError("Pass either an AqlQuery or query arguments, not both")
        return query
    try:
        return AqlQuery(query, dict(bind_vars or {}), batch_size=batch_size, **options)
    except TypeError as exc:
        raise ConfigError(f"Unknown query option: {exc}") from exc


__all__ = ["AqlQuery", "build_query"]
