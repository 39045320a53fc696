"""Connections: base URL, credentials and the transport that carries requests.

``Connection`` blocks on every network call; ``AsyncConnection`` awaits them.
Both share URL handling, credential headers and response interpretation, so
the two differ only in how a prepared request reaches the transport.

A connection may be shared by many database handles and cursors. The stored
JWT is the only mutable shared state: do not call ``authenticate`` or
``refresh_token`` while other requests on the same connection are in flight.
"""

from __future__ import annotations

import inspect
from typing import Any, Mapping

from .auth import AuthMode, AuthState, Authenticator
from .config import ConnectionOptions, normalize_url
from .database import AsyncDatabase, Database
from .errors import AuthError, ConfigError, ServerError, TransportError
from .logger import BoundLogger, LogLevel, create_logger
from .protocol import JSON_HEADERS, Request, decode_object, encode_body, quote_segment, raise_for_response
from .transport import AsyncHttpxTransport, AsyncTransport, HttpxTransport, Transport, TransportResponse


class _BaseConnection:
    default_transport_class: type = HttpxTransport

    def __init__(
        self,
        base_url: str,
        *,
        username: str | None = None,
        password: str | None = None,
        auth_mode: AuthMode | str = AuthMode.NONE,
        transport: Any | None = None,
        transport_class: type | None = None,
        default_headers: Mapping[str, str] | None = None,
        timeout: float | None = 60.0,
        logger: object | None = None,
        log_level: LogLevel = "info",
        **transport_options: Any,
    ) -> None:
        self._base_url = normalize_url(base_url)
        self._logger = create_logger(logger=logger, level=log_level)
        try:
            mode = AuthMode(auth_mode)
        except ValueError as exc:
            raise ConfigError(f"Unknown auth mode: {auth_mode!r}") from exc
        self._auth = Authenticator(username, password, mode, self._logger)
        if transport is None:
            transport = self._create_transport(
                transport_class or self.default_transport_class,
                default_headers,
                timeout,
                transport_options,
            )
        self._check_transport(transport)
        self._transport = transport
        self._logger.info("Initialized %s for %s (auth=%s)", type(self).__name__, self._base_url, mode.value)

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def logger(self) -> BoundLogger:
        return self._logger

    @property
    def transport(self) -> Any:
        return self._transport

    @property
    def auth_mode(self) -> AuthMode:
        return self._auth.mode

    @property
    def auth_state(self) -> AuthState:
        return self._auth.state

    @property
    def username(self) -> str | None:
        return self._auth.username

    @property
    def jwt(self) -> str | None:
        return self._auth.token

    def token_expired(self, leeway: float = 0.0) -> bool:
        return self._auth.token_expired(leeway)

    def _create_transport(
        self,
        transport_class: type,
        default_headers: Mapping[str, str] | None,
        timeout: float | None,
        options: dict[str, Any],
    ) -> Any:
        try:
            return transport_class(default_headers, timeout=timeout, logger=self._logger, **options)
        except TypeError as exc:
            raise ConfigError(f"Cannot build {transport_class.__name__}: {exc}") from exc

    def _check_transport(self, transport: Any) -> None:
        if not isinstance(transport, Transport) or inspect.iscoroutinefunction(transport.request):
            raise ConfigError(f"{type(transport).__name__} is not a blocking transport")

    def _prepare(self, method: str, path: str, payload: Any | None = None) -> Request:
        headers = self._auth.headers()
        body = None
        if payload is not None:
            body = encode_body(payload)
            headers.update(JSON_HEADERS)
        return Request(method=method, url=self._base_url + path, body=body, headers=headers)

    def _observe(self, request: Request, response: TransportResponse) -> TransportResponse:
        rejected = response.status_code == 401 and self._auth.mode is AuthMode.JWT
        if rejected and self._auth.state is AuthState.AUTHENTICATED:
            self._logger.warn("Server rejected the JWT for %s %s; re-authentication required", request.method, request.url)
            self._auth.fail()
        return response

    def _login_failed(self, exc: TransportError) -> AuthError:
        self._auth.fail()
        return AuthError(f"Authentication request failed: {exc}", context=exc.context)

    def _accessible_request(self) -> Request:
        if not self._auth.username:
            raise ConfigError("Listing accessible databases requires a username")
        return self._prepare("GET", f"/_api/user/{quote_segment(self._auth.username)}/database")

    def _accessible_from(self, response: TransportResponse) -> dict[str, str]:
        raise_for_response(response, ServerError)
        result = decode_object(response).get("result") or {}
        return {str(name): str(permission) for name, permission in result.items()}

    def _version_from(self, response: TransportResponse) -> dict[str, Any]:
        raise_for_response(response, ServerError)
        return decode_object(response)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._base_url!r}, {self._auth.state.value})"


class Connection(_BaseConnection):
    """Blocking connection to an ArangoDB server.

    Example:
        >>> conn = Connection.establish_jwt("http://localhost:8529", "root", "secret")
        >>> db = conn.db("_system")
        >>> db.aql_str("RETURN 1")
        [1]
    """

    default_transport_class = HttpxTransport

    @classmethod
    def establish_jwt(cls, url: str, username: str, password: str, **kwargs: Any) -> "Connection":
        conn = cls(url, username=username, password=password, auth_mode=AuthMode.JWT, **kwargs)
        try:
            conn.authenticate()
        except AuthError:
            conn.close()
            raise
        return conn

    establish = establish_jwt

    @classmethod
    def establish_basic_auth(cls, url: str, username: str, password: str, **kwargs: Any) -> "Connection":
        return cls(url, username=username, password=password, auth_mode=AuthMode.BASIC, **kwargs)

    @classmethod
    def establish_without_auth(cls, url: str, **kwargs: Any) -> "Connection":
        return cls(url, auth_mode=AuthMode.NONE, **kwargs)

    @classmethod
    def from_options(cls, options: ConnectionOptions, **kwargs: Any) -> "Connection":
        conn = cls(
            options.base_url,
            username=options.username,
            password=options.password,
            auth_mode=options.auth_mode,
            default_headers=options.default_headers,
            timeout=options.timeout,
            logger=options.logger,
            log_level=options.log_level,
            **{**options.transport_options, **kwargs},
        )
        if conn.auth_mode is AuthMode.JWT:
            try:
                conn.authenticate()
            except AuthError:
                conn.close()
                raise
        return conn

    def authenticate(self) -> str:
        """Log in with the stored credentials and keep the returned JWT."""
        request = self._auth.begin_login(self._base_url)
        try:
            response = self._transport.request(request.method, request.url, request.body, request.headers)
            return self._auth.complete_login(response)
        except TransportError as exc:
            raise self._login_failed(exc) from exc
        except BaseException:
            self._auth.fail()
            raise

    def refresh_token(self) -> str:
        return self.authenticate()

    def send_request(self, request: Request) -> TransportResponse:
        response = self._transport.request(request.method, request.url, request.body, request.headers)
        return self._observe(request, response)

    def db(self, name: str) -> Database:
        return Database(self, name)

    def server_version(self) -> dict[str, Any]:
        return self._version_from(self.send_request(self._prepare("GET", "/_api/version")))

    def accessible_databases(self) -> dict[str, str]:
        return self._accessible_from(self.send_request(self._accessible_request()))

    def close(self) -> None:
        self._transport.close()

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class AsyncConnection(_BaseConnection):
    """Connection whose network calls suspend at I/O."""

    default_transport_class = AsyncHttpxTransport

    @classmethod
    async def establish_jwt(cls, url: str, username: str, password: str, **kwargs: Any) -> "AsyncConnection":
        conn = cls(url, username=username, password=password, auth_mode=AuthMode.JWT, **kwargs)
        try:
            await conn.authenticate()
        except AuthError:
            await conn.close()
            raise
        return conn

    establish = establish_jwt

    @classmethod
    def establish_basic_auth(cls, url: str, username: str, password: str, **kwargs: Any) -> "AsyncConnection":
        return cls(url, username=username, password=password, auth_mode=AuthMode.BASIC, **kwargs)

    @classmethod
    def establish_without_auth(cls, url: str, **kwargs: Any) -> "AsyncConnection":
        return cls(url, auth_mode=AuthMode.NONE, **kwargs)

    @classmethod
    async def from_options(cls, options: ConnectionOptions, **kwargs: Any) -> "AsyncConnection":
        conn = cls(
            options.base_url,
            username=options.username,
            password=options.password,
            auth_mode=options.auth_mode,
            default_headers=options.default_headers,
            timeout=options.timeout,
            logger=options.logger,
            log_level=options.log_level,
            **{**options.transport_options, **kwargs},
        )
        if conn.auth_mode is AuthMode.JWT:
            try:
                await conn.authenticate()
            except AuthError:
                await conn.close()
                raise
        return conn

    def _check_transport(self, transport: Any) -> None:
        if not isinstance(transport, AsyncTransport) or not inspect.iscoroutinefunction(transport.request):
            raise ConfigError(f"{type(transport).__name__} is not an async transport")

    async def authenticate(self) -> str:
        request = self._auth.begin_login(self._base_url)
        try:
            response = await self._transport.request(request.method, request.url, request.body, request.headers)
            return self._auth.complete_login(response)
        except TransportError as exc:
            raise self._login_failed(exc) from exc
        except BaseException:
            self._auth.fail()
            raise

    async def refresh_token(self) -> str:
        return await self.authenticate()

    async def send_request(self, request: Request) -> TransportResponse:
        response = await self._transport.request(request.method, request.url, request.body, request.headers)
        return self._observe(request, response)

    def db(self, name: str) -> AsyncDatabase:
        return AsyncDatabase(self, name)

    async def server_version(self) -> dict[str, Any]:
        return self._version_from(await self.send_request(self._prepare("GET", "/_api/version")))

    async def accessible_databases(self) -> dict[str, str]:
        return self._accessible_from(await self.send_request(self._accessible_request()))

    async def close(self) -> None:
        await self._transport.aclose()

    async def __aenter__(self) -> "AsyncConnection":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()


__all__ = ["AsyncConnection", "Connection"]
