"""
Custom exceptions for c_http_client.

This module defines the exception hierarchy used throughout the library.
Every failure of a send surfaces as exactly one of these exceptions; the
concrete class tells the caller at which stage the request failed.
"""

from typing import Optional


class HTTPClientError(Exception):
    """Base exception for all c_http_client errors."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class ConnectionError(HTTPClientError):
    """Raised when the origin or proxy host cannot be reached."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(f"Connection error: {message}", cause)


class TlsError(HTTPClientError):
    """Raised when the TLS handshake or certificate validation fails."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(f"TLS error: {message}", cause)


class ProxyError(HTTPClientError):
    """
    Raised when a proxy rejects the tunnel or replies with garbage.

    The status code and reason reported by the proxy are kept when the
    reply could be parsed far enough to contain them.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        reason: Optional[str] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        super().__init__(f"Proxy error: {message}", cause)
        self.status_code = status_code
        self.reason = reason


class ParseError(HTTPClientError):
    """Raised for malformed or unsupported HTTP framing and undecodable bodies."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(f"Parse error: {message}", cause)


class IoError(HTTPClientError):
    """Raised when a read or write fails on an established transport."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(f"I/O error: {message}", cause)
