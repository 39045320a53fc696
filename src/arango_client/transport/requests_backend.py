"""Blocking transport backed by ``requests.Session``.

Install with the ``requests`` extra. The module is not imported by
``arango_client.transport`` so the core package does not depend on it.
"""

from __future__ import annotations

from typing import Any, Mapping

import requests

from ..errors import ConfigError, TransportError
from ..logger import BoundLogger, create_logger
from .base import HeaderMap, HttpVersion, TransportResponse, validate_headers

# urllib3 reports the protocol version as an integer
_RAW_VERSIONS = {
    9: HttpVersion.HTTP_09,
    10: HttpVersion.HTTP_10,
    11: HttpVersion.HTTP_11,
    20: HttpVersion.HTTP_2,
    30: HttpVersion.HTTP_3,
}


class RequestsTransport:
    def __init__(
        self,
        default_headers: Mapping[str, str] | None = None,
        *,
        timeout: float | None = 60.0,
        session: requests.Session | None = None,
        logger: BoundLogger | None = None,
    ) -> None:
        headers = validate_headers(default_headers)
        if timeout is not None and timeout <= 0:
            raise ConfigError(f"Timeout must be positive, got {timeout}")
        self._timeout = timeout
        self._logger = (logger or create_logger()).child("http")
        self._owns_session = session is None
        self._session = session or requests.Session()
        self._session.headers.update(headers)

    def request(
        self,
        method: str,
        url: str,
        body: str | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> TransportResponse:
        self._logger.debug("HTTP %s %s bytes=%d", method, url, len(body or ""))
        try:
            response = self._session.request(
                method,
                url,
                data=body.encode("utf-8") if body is not None else None,
                headers=dict(headers or {}),
                timeout=self._timeout,
            )
        except requests.Timeout as exc:
            raise TransportError(f"HTTP {method} {url} timed out after {self._timeout}s", context=url) from exc
        except requests.RequestException as exc:
            raise TransportError(f"HTTP {method} {url} failed: {exc}", context=url) from exc
        self._logger.debug("HTTP <- %s status=%s", url, response.status_code)
        return TransportResponse(
            status_code=response.status_code,
            headers=HeaderMap(response.headers.items()),
            version=_version_of(response),
            content=response.text,
        )

    def close(self) -> None:
        if self._owns_session:
            self._session.close()


def _version_of(response: Any) -> HttpVersion | None:
    raw = getattr(response, "raw", None)
    return _RAW_VERSIONS.get(getattr(raw, "version", None))


__all__ = ["RequestsTransport"]
