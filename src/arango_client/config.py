"""Connection settings and URL normalization."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Mapping
from urllib.parse import urlparse, urlunparse

from .auth import AuthMode
from .errors import ConfigError
from .logger import LOG_LEVELS, LogLevel

DEFAULT_URL = "http://localhost:8529"
SUPPORTED_SCHEMES = {"http", "https"}


@dataclass
class ConnectionOptions:
    base_url: str = DEFAULT_URL
    username: str | None = None
    password: str | None = None
    auth_mode: AuthMode = AuthMode.JWT
    default_headers: Mapping[str, str] | None = None
    timeout: float | None = 60.0
    logger: Any | None = None
    log_level: LogLevel = "info"
    transport_options: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        try:
            self.auth_mode = AuthMode(self.auth_mode)
        except ValueError as exc:
            raise ConfigError(f"Unknown auth mode: {self.auth_mode!r}") from exc
        if self.log_level not in LOG_LEVELS:
            raise ConfigError(f"Unknown log level: {self.log_level!r}")
        self.base_url = normalize_url(self.base_url)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: Any) -> "ConnectionOptions":
        """Read ``ARANGO_*`` variables; keyword overrides win."""
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {
            "base_url": env.get("ARANGO_URL", DEFAULT_URL),
            "username": env.get("ARANGO_USERNAME"),
            "password": env.get("ARANGO_PASSWORD"),
        }
        if env.get("ARANGO_AUTH_MODE"):
            values["auth_mode"] = env["ARANGO_AUTH_MODE"].lower()
        elif not values["username"]:
            values["auth_mode"] = AuthMode.NONE
        if env.get("ARANGO_TIMEOUT"):
            try:
                values["timeout"] = float(env["ARANGO_TIMEOUT"])
            except ValueError as exc:
                raise ConfigError(f"ARANGO_TIMEOUT is not a number: {env['ARANGO_TIMEOUT']!r}") from exc
        if env.get("ARANGO_LOG_LEVEL"):
            values["log_level"] = env["ARANGO_LOG_LEVEL"].lower()
        values.update(overrides)
        return cls(**values)


def normalize_url(base_url: str) -> str:
    """Default a missing scheme to http and strip trailing slashes."""
    if not isinstance(base_url, str) or not base_url.strip():
        raise ConfigError("Base URL must be a non-empty string")
    candidate = base_url.strip()
    if "://" not in candidate:
        candidate = "http://" + candidate
    try:
        parsed = urlparse(candidate)
        parsed.port  # noqa: B018 - raises on a malformed port
    except ValueError as exc:
        raise ConfigError(f"Malformed URL {base_url!r}: {exc}") from exc
    if parsed.scheme not in SUPPORTED_SCHEMES:
        raise ConfigError(f"Unsupported scheme: {parsed.scheme}")
    if not parsed.hostname:
        raise ConfigError(f"URL has no host: {base_url!r}")
    if parsed.query or parsed.fragment:
        raise ConfigError(f"Base URL must not carry a query or fragment: {base_url!r}")
    return urlunparse((parsed.scheme, parsed.netloc, parsed.path.rstrip("/"), "", "", ""))


__all__ = ["ConnectionOptions", "DEFAULT_URL", "normalize_url"]
