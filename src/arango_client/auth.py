"""Authentication state and header formatting for connections."""

from __future__ import annotations

import base64
import binascii
import json
import time
from enum import Enum

from .errors import AuthError, ConfigError, Unauthorized
from .logger import BoundLogger
from .protocol import JSON_HEADERS, Request, encode_body, error_details
from .transport.base import TransportResponse

LOGIN_PATH = "/_open/auth"


class AuthMode(str, Enum):
    NONE = "none"
    BASIC = "basic"
    JWT = "jwt"


class AuthState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"


class Authenticator:
    """Holds credentials and the JWT of one connection.

    The token is written only by the login exchange. Callers must not run a
    login or refresh while other requests on the same connection are in
    flight.
    """

    def __init__(
        self,
        username: str | None,
        password: str | None,
        mode: AuthMode,
        logger: BoundLogger,
    ) -> None:
        mode = AuthMode(mode)
        if mode is not AuthMode.NONE and not username:
            raise ConfigError(f"Auth mode {mode.value!r} requires a username")
        self.username = username
        self._password = password or ""
        self.mode = mode
        self._logger = logger.child("auth")
        self._token: str | None = None
        self._state = AuthState.AUTHENTICATED if mode is not AuthMode.JWT else AuthState.UNAUTHENTICATED

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def token(self) -> str | None:
        return self._token

    def headers(self) -> dict[str, str]:
        if self.mode is AuthMode.NONE:
            return {}
        if self.mode is AuthMode.BASIC:
            raw = f"{self.username}:{self._password}".encode("utf-8")
            return {"Authorization": "Basic " + base64.b64encode(raw).decode("ascii")}
        if self._state is not AuthState.AUTHENTICATED or not self._token:
            raise Unauthorized(f"Connection is {self._state.value}; authenticate first")
        return {"Authorization": f"bearer {self._token}"}

    def begin_login(self, base_url: str) -> Request:
        if self.mode is not AuthMode.JWT:
            raise AuthError(f"Token login requires JWT auth mode, not {self.mode.value!r}")
        self._logger.info("Requesting JWT for user %s", self.username)
        self._state = AuthState.AUTHENTICATING
        return Request(
            method="POST",
            url=base_url + LOGIN_PATH,
            body=encode_body({"username": self.username, "password": self._password}),
            headers=dict(JSON_HEADERS),
        )

    def complete_login(self, response: TransportResponse) -> str:
        if not response.ok:
            message, _, _ = error_details(response)
            self.fail()
            raise AuthError(f"Authentication failed ({response.status_code}): {message}", context=response.status_code)

        token = self._extract_token(response.content)
        if not token:
            self.fail()
            raise AuthError("Authentication response did not contain a jwt field")

        self._token = token
        self._state = AuthState.AUTHENTICATED
        self._logger.debug("JWT acquired for user %s", self.username)
        return token

    def fail(self) -> None:
        self._token = None
        self._state = AuthState.UNAUTHENTICATED

    def token_expired(self, leeway: float = 0.0) -> bool:
        """Check the unverified ``exp`` claim of the stored token."""
        if self.mode is not AuthMode.JWT:
            return False
        if not self._token:
            return True
        expires_at = _jwt_expiry(self._token)
        if expires_at is None:
            return False
        return time.time() + leeway >= expires_at

    def _extract_token(self, content: str) -> str | None:
        try:
            parsed = json.loads(content) if content else None
        except json.JSONDecodeError:
            return None
        if isinstance(parsed, dict) and isinstance(parsed.get("jwt"), str):
            return parsed["jwt"] or None
        return None


def _jwt_expiry(token: str) -> float | None:
    parts = token.split(".")
    if len(parts) != 3:
        return None
    segment = parts[1] + "=" * (-len(parts[1]) % 4)
    try:
        claims = json.loads(base64.urlsafe_b64decode(segment.encode("ascii")))
    except (binascii.Error, ValueError, UnicodeError):
        return None
    exp = claims.get("exp") if isinstance(claims, dict) else None
    return float(exp) if isinstance(exp, (int, float)) else None


__all__ = ["AuthMode", "AuthState", "Authenticator", "LOGIN_PATH"]
