"""
Network backend components for c_http_client.

This module provides the low-level byte stream abstraction, the asyncio
TCP backend and in-memory doubles for testing.
"""

from .stream import NetworkStream
from .backend import NetworkBackend, AsyncioNetworkBackend, TCPStream
from .mock import MockNetworkBackend, MockNetworkStream
from .utils import (
    create_ssl_context,
    format_authority,
    format_host_header,
    is_ipv6_address,
    validate_port,
)

__all__ = [
    "NetworkStream",
    "NetworkBackend",
    "AsyncioNetworkBackend",
    "TCPStream",
    "MockNetworkBackend",
    "MockNetworkStream",
    "create_ssl_context",
    "format_authority",
    "format_host_header",
    "is_ipv6_address",
    "validate_port",
]
