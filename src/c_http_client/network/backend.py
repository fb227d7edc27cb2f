"""
Network backend interface for c_http_client.

This module defines the NetworkBackend interface used by the connection
factory to open plain TCP streams, and its asyncio implementation.
"""

import asyncio
import logging
import socket
from abc import ABC, abstractmethod
from typing import Any, Optional

from ..exceptions import ConnectionError, IoError
from .stream import NetworkStream

logger = logging.getLogger(__name__)


class NetworkBackend(ABC):
    """
    Interface for network backend implementations.

    A backend only knows how to open plain TCP streams. TLS and proxy
    tunnels are layered on top of the returned stream by the caller.
    """

    @abstractmethod
    async def connect_tcp(self, host: str, port: int) -> NetworkStream:
        """
        Connect to a TCP endpoint.

        Args:
            host: The hostname or IP address to connect to.
            port: The port number to connect to.

        Returns:
            A NetworkStream representing the TCP connection.

        Raises:
            ConnectionError: If the host cannot be resolved or reached.
        """
        pass


class TCPStream(NetworkStream):
    """Plain TCP stream backed by an asyncio reader/writer pair."""

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> None:
        self._reader = reader
        self._writer = writer
        self._closed = False

    async def read(self, max_bytes: Optional[int] = None) -> bytes:
        if self._closed:
            raise IoError("Stream is closed")
        try:
            return await self._reader.read(max_bytes or self.DEFAULT_READ_SIZE)
        except OSError as e:
            raise IoError(f"read failed: {e}", cause=e) from e

    async def write(self, data: bytes) -> None:
        if self._closed:
            raise IoError("Stream is closed")
        try:
            self._writer.write(data)
            await self._writer.drain()
        except OSError as e:
            raise IoError(f"write failed: {e}", cause=e) from e

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        # close() releases the socket synchronously, so a cancelled
        # wait_closed() below cannot leak it.
        self._writer.close()
        try:
            await self._writer.wait_closed()
        except OSError as e:
            logger.debug(f"Error while closing TCP stream: {e}")

    def get_extra_info(self, name: str) -> Optional[Any]:
        return self._writer.get_extra_info(name)

    @property
    def is_closed(self) -> bool:
        return self._closed


class AsyncioNetworkBackend(NetworkBackend):
    """Network backend opening TCP streams on the running asyncio loop."""

    async def connect_tcp(self, host: str, port: int) -> TCPStream:
        try:
            reader, writer = await asyncio.open_connection(host, port)
        except OSError as e:
            raise ConnectionError(f"Failed to connect to {host}:{port}: {e}", cause=e) from e

        sock = writer.get_extra_info("socket")
        if sock is not None:
            sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

        logger.debug(f"TCP connection established to {host}:{port}")
        return TCPStream(reader, writer)
