"""
Connection factory for c_http_client.

This module turns a target URL and the client's read-only configuration
into one ready transport: plain TCP, TLS, a CONNECT tunnel, or TLS over a
tunnel (optionally inside TLS to an HTTPS proxy).
"""

import logging
import time
from typing import Optional

from .http_primitives import URL
from .network.backend import NetworkBackend
from .network.stream import NetworkStream
from .proxy import ProxyConfig, ProxyKind, ProxyTunnelConnector
from .tls import TlsManager

logger = logging.getLogger(__name__)


class ConnectionFactory:
    """
    Builds the transport for a single request.

    The stages run strictly in sequence and are never retried:

    1. connect to the proxy (if configured) or the origin
    2. TLS to the proxy (HTTPS proxies only)
    3. CONNECT tunnel to the origin (proxy only)
    4. TLS to the origin (https URLs only)

    Whatever failed is raised unchanged, so the exception class tells the
    caller which stage it was: ConnectionError, TlsError or ProxyError.
    The partially built stream is closed before the error propagates.
    """

    def __init__(
        self,
        backend: NetworkBackend,
        tls_manager: TlsManager,
        proxy: Optional[ProxyConfig] = None,
    ) -> None:
        """
        Initialize the factory.

        Args:
            backend: Backend used to open plain TCP streams
            tls_manager: Shared TLS manager holding the trust configuration
            proxy: Optional proxy to tunnel through
        """
        self._backend = backend
        self._tls_manager = tls_manager
        self._proxy = proxy

    @property
    def proxy(self) -> Optional[ProxyConfig]:
        return self._proxy

    async def connect(self, url: URL) -> NetworkStream:
        """
        Open a transport ready to carry a request to ``url``.

        Args:
            url: The parsed target URL

        Returns:
            The ready NetworkStream, exclusively owned by the caller

        Raises:
            ConnectionError: If the proxy or origin cannot be reached
            ProxyError: If the proxy refuses or garbles the tunnel
            TlsError: If a TLS handshake fails
        """
        start_time = time.time()

        if self._proxy is not None:
            stream = await self._backend.connect_tcp(self._proxy.host, self._proxy.port)
        else:
            stream = await self._backend.connect_tcp(url.host, url.port)

        try:
            if self._proxy is not None:
                if self._proxy.kind is ProxyKind.HTTPS:
                    stream = await self._tls_manager.wrap(stream, self._proxy.host)

                connector = ProxyTunnelConnector(self._proxy)
                stream = await connector.establish_tunnel(stream, url.host, url.port)

            if url.is_https:
                stream = await self._tls_manager.wrap(stream, url.host)
        except BaseException:
            await stream.aclose()
            raise

        logger.debug(
            f"Connection ready for {url.scheme}://{url.authority}"
            f"{' via ' + self._proxy.authority if self._proxy else ''} "
            f"({time.time() - start_time:.3f}s)"
        )
        return stream
