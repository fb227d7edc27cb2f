"""
TLS support for c_http_client.

TlsManager performs the client handshake over any NetworkStream using an
``ssl.SSLObject`` and a pair of memory BIOs. Because the TLS state machine
never touches a socket directly, the same code encrypts a plain TCP
connection, a CONNECT tunnel, or a tunnel running inside a TLS session
with an HTTPS proxy.
"""

import logging
import ssl
from dataclasses import dataclass
from typing import Any, Callable, Optional, TypeVar, Union

from .exceptions import HTTPClientError, IoError, TlsError
from .network.stream import NetworkStream
from .network.utils import create_ssl_context

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class TlsConfig:
    """
    Certificate trust configuration.

    With no trust material the system default store is used. ``verify``
    may only be switched off explicitly.
    """

    cafile: Optional[str] = None
    capath: Optional[str] = None
    cadata: Optional[Union[str, bytes]] = None
    verify: bool = True
    cert_file: Optional[str] = None
    key_file: Optional[str] = None


class TLSStream(NetworkStream):
    """
    NetworkStream that encrypts writes and decrypts reads over another stream.

    Instances are created by TlsManager.wrap once the handshake completed.
    """

    def __init__(
        self,
        stream: NetworkStream,
        ssl_object: ssl.SSLObject,
        incoming: ssl.MemoryBIO,
        outgoing: ssl.MemoryBIO,
    ) -> None:
        self._stream = stream
        self._ssl_object = ssl_object
        self._incoming = incoming
        self._outgoing = outgoing

    async def _flush(self) -> None:
        data = self._outgoing.read()
        if data:
            await self._stream.write(data)

    async def _retry(self, operation: Callable[..., T], *args: Any) -> T:
        """
        Run an SSLObject operation, feeding it network data until it completes.

        Outgoing TLS records are flushed after every attempt so that the
        peer can make progress.
        """
        while True:
            try:
                result = operation(*args)
            except ssl.SSLWantReadError:
                await self._flush()
                data = await self._stream.read(self.DEFAULT_READ_SIZE)
                if data:
                    self._incoming.write(data)
                elif self._incoming.eof:
                    raise ssl.SSLEOFError("EOF occurred in violation of protocol")
                else:
                    self._incoming.write_eof()
            else:
                await self._flush()
                return result

    async def do_handshake(self) -> None:
        await self._retry(self._ssl_object.do_handshake)

    async def read(self, max_bytes: Optional[int] = None) -> bytes:
        if self._stream.is_closed:
            raise IoError("Stream is closed")
        try:
            return await self._retry(self._ssl_object.read, max_bytes or self.DEFAULT_READ_SIZE)
        except (ssl.SSLZeroReturnError, ssl.SSLEOFError):
            # Clean close_notify or a ragged EOF: both end the stream.
            return b""
        except ssl.SSLError as e:
            raise IoError(f"TLS read failed: {e}", cause=e) from e

    async def write(self, data: bytes) -> None:
        if self._stream.is_closed:
            raise IoError("Stream is closed")
        try:
            await self._retry(self._ssl_object.write, data)
        except ssl.SSLError as e:
            raise IoError(f"TLS write failed: {e}", cause=e) from e

    async def aclose(self) -> None:
        await self._stream.aclose()

    def get_extra_info(self, name: str) -> Optional[Any]:
        if name == "ssl_object":
            return self._ssl_object
        elif name == "server_hostname":
            return self._ssl_object.server_hostname
        elif name == "selected_alpn_protocol":
            return self._ssl_object.selected_alpn_protocol()
        elif name == "cipher":
            return self._ssl_object.cipher()
        elif name == "version":
            return self._ssl_object.version()
        return self._stream.get_extra_info(name)

    @property
    def is_closed(self) -> bool:
        return self._stream.is_closed


class TlsManager:
    """
    Owns the client SSL context and wraps streams in TLS.

    The context is built once and never modified afterwards, so a single
    manager may be shared by any number of concurrent sends.
    """

    ALPN_PROTOCOLS = ["http/1.1"]

    def __init__(self, config: Optional[TlsConfig] = None) -> None:
        """
        Initialize the TLS manager.

        Args:
            config: Trust configuration; the system trust store is used
                    when omitted

        Raises:
            TlsError: If the trust material or client certificate cannot be loaded
        """
        self._config = config or TlsConfig()
        try:
            self._context = create_ssl_context(
                alpn_protocols=self.ALPN_PROTOCOLS,
                verify=self._config.verify,
                cafile=self._config.cafile,
                capath=self._config.capath,
                cadata=self._config.cadata,
                cert_file=self._config.cert_file,
                key_file=self._config.key_file,
            )
        except (ssl.SSLError, OSError) as e:
            raise TlsError(f"Invalid TLS configuration: {e}", cause=e) from e

    @property
    def config(self) -> TlsConfig:
        return self._config

    @property
    def context(self) -> ssl.SSLContext:
        return self._context

    async def wrap(self, stream: NetworkStream, hostname: str) -> TLSStream:
        """
        Perform the TLS handshake over ``stream``.

        Args:
            stream: A connected stream (plain TCP, tunnel or TLS)
            hostname: The origin hostname, sent as SNI and checked against
                      the peer certificate

        Returns:
            A TLSStream ready for application data

        Raises:
            TlsError: If the handshake fails for any reason. The underlying
                      stream is closed before the error is raised.
        """
        incoming = ssl.MemoryBIO()
        outgoing = ssl.MemoryBIO()
        try:
            ssl_object = self._context.wrap_bio(incoming, outgoing, server_hostname=hostname)
        except (ssl.SSLError, ValueError) as e:
            await stream.aclose()
            raise TlsError(f"Cannot start TLS for {hostname!r}: {e}", cause=e) from e

        tls_stream = TLSStream(stream, ssl_object, incoming, outgoing)
        try:
            await tls_stream.do_handshake()
        except ssl.SSLCertVerificationError as e:
            await stream.aclose()
            raise TlsError(
                f"Certificate verification failed for {hostname!r}: {e.verify_message or e}",
                cause=e,
            ) from e
        except ssl.SSLEOFError as e:
            await stream.aclose()
            raise TlsError(f"Peer closed the connection during handshake with {hostname!r}", cause=e) from e
        except ssl.SSLError as e:
            await stream.aclose()
            raise TlsError(f"Handshake with {hostname!r} failed: {e}", cause=e) from e
        except HTTPClientError as e:
            await stream.aclose()
            raise TlsError(f"Handshake with {hostname!r} interrupted: {e.message}", cause=e) from e
        except BaseException:
            await stream.aclose()
            raise

        logger.debug(
            f"TLS established with {hostname}: {ssl_object.version()} "
            f"{(ssl_object.cipher() or ('?',))[0]}"
        )
        return tls_stream
