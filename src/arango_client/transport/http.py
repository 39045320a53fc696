"""HTTP transports built on top of httpx, blocking and async."""

from __future__ import annotations

from typing import Mapping

import httpx

from ..errors import ConfigError, TransportError
from ..logger import BoundLogger, create_logger
from .base import HeaderMap, HttpVersion, TransportResponse, validate_headers


def _to_envelope(response: httpx.Response) -> TransportResponse:
    return TransportResponse(
        status_code=response.status_code,
        headers=HeaderMap(response.headers.items()),
        version=HttpVersion.parse(response.http_version),
        content=response.text,
    )


def _timeout(timeout: float | httpx.Timeout | None) -> httpx.Timeout:
    if isinstance(timeout, httpx.Timeout):
        return timeout
    if timeout is not None and timeout <= 0:
        raise ConfigError(f"Timeout must be positive, got {timeout}")
    return httpx.Timeout(timeout)


def _request_error(method: str, url: str, exc: Exception, timeout: httpx.Timeout) -> TransportError:
    if isinstance(exc, httpx.TimeoutException):
        return TransportError(f"HTTP {method} {url} timed out after {timeout.read}s", context=url)
    return TransportError(f"HTTP {method} {url} failed: {exc}", context=url)


class HttpxTransport:
    """Blocking transport backed by ``httpx.Client``."""

    def __init__(
        self,
        default_headers: Mapping[str, str] | None = None,
        *,
        timeout: float | httpx.Timeout | None = 60.0,
        client: httpx.Client | None = None,
        logger: BoundLogger | None = None,
    ) -> None:
        headers = validate_headers(default_headers)
        self._timeout = _timeout(timeout)
        self._logger = (logger or create_logger()).child("http")
        self._owns_client = client is None
        if client is None:
            try:
                client = httpx.Client(headers=headers, timeout=self._timeout)
            except (TypeError, ValueError) as exc:
                raise ConfigError(f"Cannot build httpx client: {exc}") from exc
        else:
            client.headers.update(headers)
        self._client = client

    def request(
        self,
        method: str,
        url: str,
        body: str | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> TransportResponse:
        self._logger.debug("HTTP %s %s bytes=%d", method, url, len(body or ""))
        try:
            response = self._client.request(method, url, content=body, headers=dict(headers or {}))
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise _request_error(method, url, exc, self._timeout) from exc
        self._logger.debug("HTTP <- %s status=%s bytes=%d", url, response.status_code, len(response.content))
        return _to_envelope(response)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()


class AsyncHttpxTransport:
    """Transport backed by ``httpx.AsyncClient``; ``request`` is awaitable."""

    def __init__(
        self,
        default_headers: Mapping[str, str] | None = None,
        *,
        timeout: float | httpx.Timeout | None = 60.0,
        client: httpx.AsyncClient | None = None,
        logger: BoundLogger | None = None,
    ) -> None:
        headers = validate_headers(default_headers)
        self._timeout = _timeout(timeout)
        self._logger = (logger or create_logger()).child("http")
        self._owns_client = client is None
        if client is None:
            try:
                client = httpx.AsyncClient(headers=headers, timeout=self._timeout)
            except (TypeError, ValueError) as exc:
                raise ConfigError(f"Cannot build httpx client: {exc}") from exc
        else:
            client.headers.update(headers)
        self._client = client

    async def request(
        self,
        method: str,
        url: str,
        body: str | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> TransportResponse:
        self._logger.debug("HTTP %s %s bytes=%d", method, url, len(body or ""))
        try:
            response = await self._client.request(method, url, content=body, headers=dict(headers or {}))
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise _request_error(method, url, exc, self._timeout) from exc
        self._logger.debug("HTTP <- %s status=%s bytes=%d", url, response.status_code, len(response.content))
        return _to_envelope(response)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


__all__ = ["AsyncHttpxTransport", "HttpxTransport"]
