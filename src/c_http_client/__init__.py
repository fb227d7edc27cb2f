"""
c_http_client - Minimal asynchronous HTTP(S) client

A small HTTP/1.1 client over asyncio with TLS, HTTP CONNECT proxy
tunneling and a fluent request builder.
"""

__version__ = "0.1.0"
__author__ = "Developer"
__email__ = "dev@example.com"

# Import main components for easy access
from .http_primitives import URL, Headers, Request, Response
from .http11 import HTTP11Connection, ConnectionState
from .builder import RequestBuilder
from .client import Client
from .connection import ConnectionFactory
from .proxy import ProxyConfig, ProxyKind, ProxyTunnelConnector, TunnelStream
from .tls import TlsConfig, TlsManager, TLSStream
from .exceptions import (
    HTTPClientError,
    ConnectionError,
    TlsError,
    ProxyError,
    ParseError,
    IoError,
)

__all__ = [
    "URL",
    "Headers",
    "Request",
    "Response",
    "HTTP11Connection",
    "ConnectionState",
    "RequestBuilder",
    "Client",
    "ConnectionFactory",
    "ProxyConfig",
    "ProxyKind",
    "ProxyTunnelConnector",
    "TunnelStream",
    "TlsConfig",
    "TlsManager",
    "TLSStream",
    "HTTPClientError",
    "ConnectionError",
    "TlsError",
    "ProxyError",
    "ParseError",
    "IoError",
]
