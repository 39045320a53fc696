"""Logging wrapper shared by connections, transports and cursors."""

from __future__ import annotations

import logging
from typing import Any, Callable, Literal, Protocol

LogLevel = Literal["trace", "debug", "info", "warn", "error"]

TRACE_LEVEL = 5
logging.addLevelName(TRACE_LEVEL, "TRACE")

LOGGER_NAME = "arango_client"


class LoggerProtocol(Protocol):
    def trace(self, msg: str, *args: Any, **kwargs: Any) -> None: ...

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None: ...

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None: ...

    def warn(self, msg: str, *args: Any, **kwargs: Any) -> None: ...

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None: ...


LOG_LEVELS: dict[LogLevel, int] = {
    "trace": TRACE_LEVEL,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


class BoundLogger:
    """Wraps a logging.Logger (or duck-typed object) with a client-side level threshold."""

    def __init__(
        self,
        logger: Any | None = None,
        *,
        level: LogLevel = "info",
    ) -> None:
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {level!r}")
        self._logger = logger or _default_logger()
        self._level = level

    @property
    def level(self) -> LogLevel:
        return self._level

    def trace(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log("trace", msg, *args, **kwargs)

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log("debug", msg, *args, **kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log("info", msg, *args, **kwargs)

    def warn(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log("warn", msg, *args, **kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log("error", msg, *args, **kwargs)

    def child(self, name: str) -> "BoundLogger":
        """Create a child logger, e.g. ``arango_client.cursor``."""
        if isinstance(self._logger, logging.Logger):
            return BoundLogger(self._logger.getChild(name), level=self._level)
        return BoundLogger(self._logger, level=self._level)

    def _log(self, level: LogLevel, msg: str, *args: Any, **kwargs: Any) -> None:
        if LOG_LEVELS[level] < LOG_LEVELS[self._level]:
            return
        try:
            if hasattr(self._logger, "log"):
                self._logger.log(LOG_LEVELS[level], msg, *args, **kwargs)
                return

            # Objects without .log get the matching method, if they have one
            handler: Callable[..., Any] | None = getattr(self._logger, level, None)
            if handler is None and level == "warn":
                handler = getattr(self._logger, "warning", None)
            if handler is not None:
                handler(msg, *args, **kwargs)
        except Exception:
            # Logging must never break a request
            pass


def _default_logger() -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
    return logger


def create_logger(*, logger: Any | None = None, level: LogLevel = "info") -> BoundLogger:
    if isinstance(logger, BoundLogger):
        return logger
    return BoundLogger(logger, level=level)


__all__ = ["BoundLogger", "LOGGER_NAME", "LogLevel", "LoggerProtocol", "create_logger"]
