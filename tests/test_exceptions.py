"""
Unit tests for custom exceptions.

Tests the exception hierarchy to ensure proper error handling
and cause tracking.
"""

import pytest

from c_http_client.exceptions import (
    HTTPClientError,
    ConnectionError,
    TlsError,
    ProxyError,
    ParseError,
    IoError,
)


class TestHTTPClientError:
    """Test base HTTPClientError class."""

    def test_basic_creation(self) -> None:
        """Test creating basic HTTPClientError."""
        error = HTTPClientError("Test error message")
        assert str(error) == "Test error message"
        assert error.message == "Test error message"
        assert error.cause is None

    def test_with_cause(self) -> None:
        """Test creating HTTPClientError with cause."""
        original_error = ValueError("Original error")
        error = HTTPClientError("Test error message", cause=original_error)
        assert str(error) == "Test error message"
        assert error.cause is original_error


class TestConnectionError:
    """Test ConnectionError class."""

    def test_basic_creation(self) -> None:
        error = ConnectionError("Connection refused")
        assert str(error) == "Connection error: Connection refused"
        assert error.message == "Connection error: Connection refused"
        assert error.cause is None

    def test_with_cause(self) -> None:
        original_error = OSError("Network unreachable")
        error = ConnectionError("Connection failed", cause=original_error)
        assert error.cause is original_error

    def test_does_not_shadow_builtin_hierarchy(self) -> None:
        """The library ConnectionError is not an OSError."""
        assert not issubclass(ConnectionError, OSError)


class TestTlsError:
    """Test TlsError class."""

    def test_basic_creation(self) -> None:
        error = TlsError("certificate verify failed")
        assert str(error) == "TLS error: certificate verify failed"


class TestProxyError:
    """Test ProxyError class."""

    def test_basic_creation(self) -> None:
        error = ProxyError("tunnel refused")
        assert str(error) == "Proxy error: tunnel refused"
        assert error.status_code is None
        assert error.reason is None

    def test_status_and_reason(self) -> None:
        error = ProxyError("tunnel refused", status_code=403, reason="Forbidden")
        assert error.status_code == 403
        assert error.reason == "Forbidden"


class TestParseError:
    """Test ParseError class."""

    def test_basic_creation(self) -> None:
        error = ParseError("Invalid status line")
        assert str(error) == "Parse error: Invalid status line"


class TestIoError:
    """Test IoError class."""

    def test_basic_creation(self) -> None:
        cause = ConnectionResetError("reset by peer")
        error = IoError("read failed", cause=cause)
        assert str(error) == "I/O error: read failed"
        assert error.cause is cause


class TestExceptionHierarchy:
    """Test exception inheritance hierarchy."""

    @pytest.mark.parametrize(
        "error_class",
        [ConnectionError, TlsError, ProxyError, ParseError, IoError],
    )
    def test_inheritance(self, error_class) -> None:
        assert issubclass(error_class, HTTPClientError)
        assert issubclass(error_class, Exception)

    def test_catching_base_class(self) -> None:
        with pytest.raises(HTTPClientError):
            raise TlsError("handshake failed")

    def test_kinds_are_distinct(self) -> None:
        """Each failure stage is its own class."""
        with pytest.raises(ProxyError):
            try:
                raise ProxyError("refused", status_code=407)
            except (ConnectionError, TlsError, ParseError, IoError):
                pytest.fail("ProxyError caught by an unrelated class")
