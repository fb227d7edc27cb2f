"""
Mock network implementations for testing.

This module provides in-memory implementations of NetworkStream and
NetworkBackend so that the HTTP, proxy and connection layers can be
exercised without actual sockets.
"""

from collections import defaultdict, deque
from typing import Any, Deque, Dict, List, Optional, Tuple

from ..exceptions import ConnectionError, IoError
from .backend import NetworkBackend
from .stream import NetworkStream


class MockNetworkStream(NetworkStream):
    """
    Mock network stream for testing.

    Inbound bytes are scripted up front (or appended with ``add_data``);
    everything written is captured in ``written_data``. Once the scripted
    data is exhausted reads return ``b""`` (end-of-stream), or raise the
    configured ``read_error`` to simulate a connection reset.
    """

    def __init__(
        self,
        data: bytes = b"",
        read_error: Optional[Exception] = None,
        write_error: Optional[Exception] = None,
    ) -> None:
        """
        Initialize the mock stream.

        Args:
            data: Initial data to be available for reading.
            read_error: Error raised (wrapped in IoError) once data runs out.
            write_error: Error raised (wrapped in IoError) on every write.
        """
        self._data = data
        self._position = 0
        self._closed = False
        self._read_error = read_error
        self._write_error = write_error
        self._extra_info: Dict[str, Any] = {}
        self._write_buffer: List[bytes] = []

    async def read(self, max_bytes: Optional[int] = None) -> bytes:
        if self._closed:
            raise IoError("Stream is closed")

        if self._position >= len(self._data):
            if self._read_error is not None:
                raise IoError(f"read failed: {self._read_error}", cause=self._read_error)
            return b""

        end = min(self._position + (max_bytes or self.DEFAULT_READ_SIZE), len(self._data))
        result = self._data[self._position:end]
        self._position = end
        return result

    async def write(self, data: bytes) -> None:
        if self._closed:
            raise IoError("Stream is closed")
        if self._write_error is not None:
            raise IoError(f"write failed: {self._write_error}", cause=self._write_error)

        self._write_buffer.append(data)

    async def aclose(self) -> None:
        self._closed = True

    def get_extra_info(self, name: str) -> Optional[Any]:
        return self._extra_info.get(name)

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def written_data(self) -> bytes:
        """Get all data that was written to the stream."""
        return b"".join(self._write_buffer)

    @property
    def unread_data(self) -> bytes:
        """Get the scripted data that has not been read yet."""
        return self._data[self._position:]

    def set_extra_info(self, name: str, value: Any) -> None:
        self._extra_info[name] = value

    def add_data(self, data: bytes) -> None:
        """
        Add data to be available for reading.

        Args:
            data: The data to add.
        """
        self._data += data


class MockNetworkBackend(NetworkBackend):
    """
    Mock network backend for testing.

    Streams are queued per ``(host, port)``; each ``connect_tcp`` call
    takes the next queued stream, or a fresh empty one when none is
    queued. Refused endpoints raise ``ConnectionError``.
    """

    def __init__(self) -> None:
        self._queued: Dict[Tuple[str, int], Deque[MockNetworkStream]] = defaultdict(deque)
        self._refused: Dict[Tuple[str, int], str] = {}
        self.connection_attempts: List[Tuple[str, int]] = []
        self.streams: List[MockNetworkStream] = []

    async def connect_tcp(self, host: str, port: int) -> MockNetworkStream:
        key = (host, port)
        self.connection_attempts.append(key)

        if key in self._refused:
            raise ConnectionError(f"Failed to connect to {host}:{port}: {self._refused[key]}")

        queue = self._queued[key]
        stream = queue.popleft() if queue else MockNetworkStream()
        stream.set_extra_info("peername", key)
        stream.set_extra_info("sockname", ("127.0.0.1", 12345))
        self.streams.append(stream)
        return stream

    def add_stream(self, host: str, port: int, stream: MockNetworkStream) -> None:
        """Queue a stream to be returned by the next connect to host:port."""
        self._queued[(host, port)].append(stream)

    def add_response(self, host: str, port: int, data: bytes) -> MockNetworkStream:
        """
        Queue a stream whose inbound bytes are ``data``.

        Returns:
            The queued stream, so tests can inspect what was written to it.
        """
        stream = MockNetworkStream(data)
        self.add_stream(host, port, stream)
        return stream

    def refuse(self, host: str, port: int, reason: str = "Connection refused") -> None:
        """Make every connect to host:port fail with ConnectionError."""
        self._refused[(host, port)] = reason

    def reset(self) -> None:
        """Reset all queued streams, refusals and recorded attempts."""
        self._queued.clear()
        self._refused.clear()
        self.connection_attempts.clear()
        self.streams.clear()
