"""Shared typing helpers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")

Document = dict[str, Any]


@dataclass
class ExecuteResult(Generic[T]):
    """Outcome of a call that reports failures as values instead of raising."""

    ok: bool
    data: T | None = None
    error: Exception | None = None

    def unwrap(self) -> T:
        if not self.ok:
            raise self.error or RuntimeError("Call failed without an error")
        return self.data  # type: ignore[return-value]


__all__ = ["Document", "ExecuteResult"]
