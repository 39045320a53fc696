"""Transport implementations exposed to users."""

from .base import AsyncTransport, HeaderMap, HttpVersion, Transport, TransportResponse
from .http import AsyncHttpxTransport, HttpxTransport

__all__ = [
    "AsyncHttpxTransport",
    "AsyncTransport",
    "HeaderMap",
    "HttpVersion",
    "HttpxTransport",
    "Transport",
    "TransportResponse",
]
