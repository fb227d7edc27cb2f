"""
HTTP/1.1 connection implementation for c_http_client.

This module implements the HTTP11Connection class that runs exactly one
request/response exchange over a NetworkStream, using h11 for the wire
format, and buffers the full response body.
"""

import asyncio
import logging
import time
from enum import Enum
from typing import Iterable, List, Optional, Tuple

import h11

from .exceptions import ConnectionError, ParseError
from .http_primitives import Headers, Request, Response
from .network.stream import NetworkStream

logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """States of an HTTP/1.1 connection."""
    NEW = "new"           # Connection created, not yet used
    ACTIVE = "active"     # Connection handling its request
    CLOSED = "closed"     # Exchange finished or failed, stream released


class HTTP11Connection:
    """
    Single-use HTTP/1.1 connection.

    The connection owns its stream: it writes one request, reads one
    response and closes the stream whatever the outcome, including
    cancellation of the calling task. There is no keep-alive and no
    pipelining.
    """

    # Default configuration
    READ_CHUNK_SIZE = 65536
    DEFAULT_MAX_HEADER_SIZE = 65536

    def __init__(
        self,
        stream: NetworkStream,
        max_header_size: Optional[int] = None,
    ):
        """
        Initialize HTTP/1.1 connection.

        Args:
            stream: The NetworkStream to use for communication
            max_header_size: Maximum size of the status line plus headers
        """
        self._stream = stream
        self._h11_connection = h11.Connection(
            h11.CLIENT,
            max_incomplete_event_size=max_header_size or self.DEFAULT_MAX_HEADER_SIZE,
        )
        self._state = ConnectionState.NEW

        self._bytes_sent = 0
        self._bytes_received = 0

    async def handle_request(self, request: Request) -> Response:
        """
        Handle a complete HTTP request/response cycle.

        Args:
            request: The HTTP request to send

        Returns:
            The HTTP response received, with its body fully read

        Raises:
            ConnectionError: If the connection was already used
            ParseError: If the request cannot be serialized or the
                        response is malformed or unsupported
            IoError: If the transport fails while reading or writing
        """
        if self._state is not ConnectionState.NEW:
            raise ConnectionError(f"Connection is single-use and already {self._state.value}")
        self._state = ConnectionState.ACTIVE

        start_time = time.time()
        try:
            await self._send_request(request)
            response = await self._receive_response()

            logger.debug(
                f"{request.method} {request.url} -> {response.status_code} "
                f"({self._bytes_sent}B sent, {self._bytes_received}B received, "
                f"{time.time() - start_time:.3f}s)"
            )
            return response

        except asyncio.CancelledError:
            logger.debug(f"{request.method} {request.url} cancelled after {time.time() - start_time:.3f}s")
            raise

        except Exception as e:
            logger.error(
                f"{request.method} {request.url} failed: {e} ({time.time() - start_time:.3f}s)"
            )
            raise

        finally:
            await self.close()

    async def _send_request(self, request: Request) -> None:
        for event in request.h11_events():
            await self._send_event(event)

    async def _send_event(self, event: h11.Event) -> None:
        """
        Send an h11 event to the network stream.

        Args:
            event: The h11 event to send
        """
        try:
            data = self._h11_connection.send(event)
        except h11.LocalProtocolError as e:
            raise ParseError(f"Cannot serialize request: {e}", cause=e) from e
        if data:
            await self._stream.write(data)
            self._bytes_sent += len(data)

    async def _next_event(self) -> h11.Event:
        while True:
            try:
                event = self._h11_connection.next_event()
            except h11.RemoteProtocolError as e:
                raise ParseError(f"Malformed response: {e}", cause=e) from e

            if event is h11.NEED_DATA:
                # An empty read tells h11 the peer closed the connection.
                data = await self._stream.read(self.READ_CHUNK_SIZE)
                self._h11_connection.receive_data(data)
                self._bytes_received += len(data)
                continue

            return event

    async def _receive_response(self) -> Response:
        """
        Receive the response head and the whole body.

        Returns:
            The parsed Response
        """
        while True:
            event = await self._next_event()

            if isinstance(event, h11.InformationalResponse):
                logger.debug(f"Skipping interim response {event.status_code}")
                continue

            if isinstance(event, h11.Response):
                break

            if isinstance(event, h11.ConnectionClosed):
                raise ParseError("Connection closed before a response was received")

            raise ParseError(f"Unexpected event while reading response head: {event!r}")

        if not 100 <= event.status_code <= 599:
            raise ParseError(f"Status code out of range: {event.status_code}")

        if self._get_transfer_encoding(event.headers) is not None:
            raise ParseError("Transfer-Encoding responses are not supported")

        headers = Headers.from_raw(
            (name.decode("latin-1"), value.decode("latin-1"))
            for name, value in event.headers.raw_items()
        )
        content = await self._receive_body()

        return Response.create(
            status_code=event.status_code,
            status_message=event.reason.decode("latin-1"),
            headers=headers,
            content=content,
            http_version=event.http_version.decode("ascii"),
        )

    async def _receive_body(self) -> bytes:
        """
        Read body chunks until the end of the message.

        The body length comes from Content-Length, or from the peer
        closing the connection when the header is absent.
        """
        chunks: List[bytes] = []
        while True:
            event = await self._next_event()

            if isinstance(event, h11.Data):
                chunks.append(bytes(event.data))
                continue

            if isinstance(event, h11.EndOfMessage):
                return b"".join(chunks)

            if isinstance(event, h11.ConnectionClosed):
                raise ParseError("Connection closed before the response body was complete")

            raise ParseError(f"Unexpected event while reading response body: {event!r}")

    def _get_transfer_encoding(self, headers: Iterable[Tuple[bytes, bytes]]) -> Optional[bytes]:
        for name, value in headers:
            if name == b"transfer-encoding":
                return value
        return None

    async def close(self) -> None:
        """
        Close the connection and release the stream.
        """
        if self._state is not ConnectionState.CLOSED:
            self._state = ConnectionState.CLOSED
            await self._stream.aclose()

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_closed(self) -> bool:
        """Check if connection is closed."""
        return self._state is ConnectionState.CLOSED
