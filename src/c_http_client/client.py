"""
High-level client facade for c_http_client.

The Client holds read-only configuration (proxy, TLS trust, default
headers) and hands out RequestBuilders. Each send builds its own
connection from that configuration and never touches shared mutable
state, so concurrent sends through one client do not interfere.
"""

import dataclasses
import logging
from typing import Optional

from . import __version__
from .builder import RequestBuilder
from .connection import ConnectionFactory
from .http11 import HTTP11Connection
from .http_primitives import Headers, HeadersLike, Request, Response
from .network.backend import AsyncioNetworkBackend, NetworkBackend
from .proxy import ProxyConfig
from .tls import TlsConfig, TlsManager

logger = logging.getLogger(__name__)


class Client:
    """
    HTTP client.

    Example:
        client = Client(proxy=ProxyConfig.http("127.0.0.1", 3128))
        response = await client.get("https://example.org/").header("Accept", "text/html").send()
    """

    DEFAULT_HEADERS = (
        ("User-Agent", f"c_http_client/{__version__}"),
        ("Accept", "*/*"),
        ("Connection", "close"),
    )

    def __init__(
        self,
        proxy: Optional[ProxyConfig] = None,
        tls: Optional[TlsConfig] = None,
        default_headers: Optional[HeadersLike] = None,
        backend: Optional[NetworkBackend] = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            proxy: Proxy to tunnel every request through
            tls: Certificate trust configuration; system defaults when omitted
            default_headers: Headers added to every request that does not set
                             them itself, on top of ``DEFAULT_HEADERS``
            backend: Network backend for TCP connections

        Raises:
            TlsError: If the TLS configuration cannot be loaded
        """
        self._proxy = proxy
        self._tls_manager = TlsManager(tls)
        self._backend = backend or AsyncioNetworkBackend()

        headers = Headers(self.DEFAULT_HEADERS)
        if default_headers is not None:
            headers.update(default_headers)
        self._default_headers = tuple(headers.raw)

        logger.debug(f"Client initialized (proxy={proxy!r})")

    @classmethod
    def with_proxy(cls, proxy: ProxyConfig, **kwargs) -> "Client":
        """Create a client that tunnels through ``proxy``."""
        return cls(proxy=proxy, **kwargs)

    @property
    def proxy(self) -> Optional[ProxyConfig]:
        return self._proxy

    @property
    def tls_config(self) -> TlsConfig:
        return self._tls_manager.config

    @property
    def default_headers(self) -> Headers:
        """A copy of the headers merged into every request."""
        return Headers(self._default_headers)

    def request(self, method: str, url: str) -> RequestBuilder:
        return RequestBuilder(method, url, client=self)

    def get(self, url: str) -> RequestBuilder:
        return self.request("GET", url)

    def post(self, url: str) -> RequestBuilder:
        return self.request("POST", url)

    def put(self, url: str) -> RequestBuilder:
        return self.request("PUT", url)

    def patch(self, url: str) -> RequestBuilder:
        return self.request("PATCH", url)

    def delete(self, url: str) -> RequestBuilder:
        return self.request("DELETE", url)

    def head(self, url: str) -> RequestBuilder:
        return self.request("HEAD", url)

    def options(self, url: str) -> RequestBuilder:
        return self.request("OPTIONS", url)

    async def send(self, request: Request) -> Response:
        """
        Send a request and read the full response.

        Args:
            request: The request to send; default headers are merged in
                     for any name it does not set

        Returns:
            The fully read Response

        Raises:
            ConnectionError: If the origin or proxy cannot be reached
            ProxyError: If the proxy refuses the tunnel
            TlsError: If the TLS handshake fails
            ParseError: If the request or response framing is invalid
            IoError: If the transport fails mid-exchange
        """
        request = self._merge_default_headers(request)

        factory = ConnectionFactory(self._backend, self._tls_manager, self._proxy)
        stream = await factory.connect(request.url)

        connection = HTTP11Connection(stream)
        return await connection.handle_request(request)

    def _merge_default_headers(self, request: Request) -> Request:
        headers = Headers(self._default_headers)
        headers.update(request.headers)
        return dataclasses.replace(request, headers=tuple(headers.raw))
