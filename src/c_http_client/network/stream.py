"""
Network stream interface for c_http_client.

This module defines the NetworkStream interface shared by every transport
variant (plain TCP, TLS, CONNECT tunnel) so that the HTTP layer above
never needs to know which one it is talking to.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class NetworkStream(ABC):
    """
    Interface for byte streams with async I/O operations.

    Every read and write is a suspension point of the calling task; no
    implementation may block the thread it runs on. Implementations do
    not retry: the first failure is raised as ``IoError``.
    """

    #: Chunk size used when ``read`` is called without ``max_bytes``.
    DEFAULT_READ_SIZE = 65536

    @abstractmethod
    async def read(self, max_bytes: Optional[int] = None) -> bytes:
        """
        Read data from the stream.

        Args:
            max_bytes: Maximum number of bytes to read. If None,
                      ``DEFAULT_READ_SIZE`` is used.

        Returns:
            The data read from the stream. An empty bytes object means
            the peer closed its side of the connection.

        Raises:
            IoError: If the stream is closed or the read fails.
        """
        pass

    @abstractmethod
    async def write(self, data: bytes) -> None:
        """
        Write data to the stream and wait until it is flushed.

        Args:
            data: The data to write to the stream.

        Raises:
            IoError: If the stream is closed or the write fails.
        """
        pass

    @abstractmethod
    async def aclose(self) -> None:
        """
        Close the stream and release the underlying socket.

        Closing an already closed stream is a no-op.
        """
        pass

    @abstractmethod
    def get_extra_info(self, name: str) -> Optional[Any]:
        """
        Get extra information about the stream.

        Args:
            name: The name of the information to retrieve. Common values include:
                 - "socket": The underlying socket object
                 - "peername": The remote endpoint address
                 - "sockname": The local endpoint address
                 - "ssl_object": The SSL object for TLS streams
                 - "proxy": The ProxyConfig for tunneled streams

        Returns:
            The requested information or None if not available.
        """
        pass

    @property
    @abstractmethod
    def is_closed(self) -> bool:
        """
        Check if the stream is closed.

        Returns:
            True if the stream is closed, False otherwise.
        """
        pass
