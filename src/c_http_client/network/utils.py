"""
Network utilities for c_http_client.

This module provides helper functions for SSL context setup and for
formatting hosts and ports on the wire.
"""

import socket
import ssl
from typing import List, Optional, Union


def create_ssl_context(
    alpn_protocols: Optional[List[str]] = None,
    verify: bool = True,
    cafile: Optional[str] = None,
    capath: Optional[str] = None,
    cadata: Optional[Union[str, bytes]] = None,
    cert_file: Optional[str] = None,
    key_file: Optional[str] = None,
) -> ssl.SSLContext:
    """
    Create a client SSL context.

    Args:
        alpn_protocols: Optional list of ALPN protocols to negotiate
        verify: Whether to verify the certificate chain and hostname
        cafile: Path to a PEM bundle of trusted CA certificates
        capath: Path to a directory of trusted CA certificates
        cadata: PEM string or DER bytes of trusted CA certificates
        cert_file: Path to certificate file (for client auth)
        key_file: Path to private key file (for client auth)

    Returns:
        Configured SSL context. When no trust material is given the
        system default trust store is loaded.

    Raises:
        ssl.SSLError: If the trust material or client certificate is invalid
        OSError: If a trust or certificate file cannot be read
    """
    if cafile or capath or cadata:
        context = ssl.create_default_context(cafile=cafile, capath=capath, cadata=cadata)
    else:
        context = ssl.create_default_context()

    if verify:
        context.check_hostname = True
        context.verify_mode = ssl.CERT_REQUIRED
    else:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE

    if alpn_protocols:
        context.set_alpn_protocols(alpn_protocols)

    context.options |= ssl.OP_NO_COMPRESSION

    # Disable legacy protocols
    context.minimum_version = ssl.TLSVersion.TLSv1_2

    if cert_file:
        context.load_cert_chain(cert_file, key_file)

    return context


def is_ipv6_address(host: str) -> bool:
    """
    Check if a host string is an IPv6 address.

    Args:
        host: Host string to check

    Returns:
        True if the host is an IPv6 address
    """
    try:
        socket.inet_pton(socket.AF_INET6, host)
        return True
    except (OSError, ValueError):
        return False


def format_authority(host: str, port: int) -> str:
    """
    Format ``host:port`` as used in CONNECT targets, bracketing IPv6 literals.

    Args:
        host: Hostname or IP address
        port: Port number

    Returns:
        The authority string
    """
    if is_ipv6_address(host):
        host = f"[{host}]"
    return f"{host}:{port}"


def format_host_header(host: str, port: int, scheme: str) -> str:
    """
    Format host header for HTTP requests.

    Args:
        host: Hostname
        port: Port number
        scheme: URL scheme

    Returns:
        Formatted host header string, omitting the port when it is the
        scheme's default
    """
    if (scheme == "https" and port == 443) or (scheme == "http" and port == 80):
        return f"[{host}]" if is_ipv6_address(host) else host
    return format_authority(host, port)


def validate_port(port: Union[int, str]) -> int:
    """
    Validate and convert port to integer.

    Args:
        port: Port number (int or string)

    Returns:
        Port as integer

    Raises:
        ValueError: If port is invalid
    """
    try:
        port_int = int(port)
    except (ValueError, TypeError):
        raise ValueError(f"Invalid port: {port}")

    if not (1 <= port_int <= 65535):
        raise ValueError(f"Port must be between 1 and 65535, got {port_int}")

    return port_int

