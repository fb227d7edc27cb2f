"""
Fluent request builder for c_http_client.

A RequestBuilder accumulates the method, URL, headers and body of one
request. Every setter mutates the builder and returns it, so a call
chain such as ``client.post(url).header(...).json(...).send()`` reads
naturally. The builder belongs to that single chain: once the request has
been built or sent it refuses further changes.
"""

import json
from typing import TYPE_CHECKING, Any, Mapping, Optional, Union
from urllib.parse import urlencode

from typing_extensions import Self

from .http_primitives import Headers, HeadersLike, Request, Response

if TYPE_CHECKING:
    from .client import Client  # Forward reference


class RequestBuilder:
    """Builder for a single HTTP request."""

    def __init__(
        self,
        method: str,
        url: str,
        client: Optional["Client"] = None,
    ) -> None:
        """
        Initialize the builder.

        Args:
            method: HTTP method, case-insensitive
            url: Absolute http or https URL; parsed when the request is built
            client: Client used by ``send``
        """
        self._method = method
        self._url = url
        self._client = client
        self._headers = Headers()
        self._body: Optional[bytes] = None
        self._consumed = False

    def _check_mutable(self) -> None:
        if self._consumed:
            raise RuntimeError("Request has already been built; create a new builder")

    def header(self, name: str, value: str) -> Self:
        """Set a header, replacing any previous value for the same name."""
        self._check_mutable()
        self._headers[name] = value
        return self

    def headers(self, headers: HeadersLike) -> Self:
        """Set several headers from a mapping or (name, value) pairs."""
        self._check_mutable()
        self._headers.update(headers)
        return self

    def body(self, body: Union[bytes, str]) -> Self:
        """Set the raw request body; text is encoded as UTF-8."""
        self._check_mutable()
        self._body = body.encode("utf-8") if isinstance(body, str) else bytes(body)
        return self

    def json(self, data: Any) -> Self:
        """Set a JSON body and its Content-Type."""
        self._check_mutable()
        self._body = json.dumps(data).encode("utf-8")
        self._headers["Content-Type"] = "application/json"
        return self

    def form(self, data: Mapping[str, Any]) -> Self:
        """Set a URL-encoded form body and its Content-Type."""
        self._check_mutable()
        self._body = urlencode(data).encode("ascii")
        self._headers["Content-Type"] = "application/x-www-form-urlencoded"
        return self

    @property
    def method(self) -> str:
        return self._method.upper()

    @property
    def url(self) -> str:
        return self._url

    def build(self) -> Request:
        """
        Freeze the accumulated state into a Request.

        Raises:
            ParseError: If the URL, method or a header is invalid
            RuntimeError: If the builder was already built or sent
        """
        self._check_mutable()
        request = Request.create(self._method, self._url, headers=self._headers.raw, body=self._body)
        self._consumed = True
        return request

    async def send(self) -> Response:
        """
        Build the request and send it with the owning client.

        Returns:
            The fully read Response

        Raises:
            HTTPClientError: The single error that ended the exchange
            RuntimeError: If the builder has no client or was already used
        """
        if self._client is None:
            raise RuntimeError("RequestBuilder has no client to send with")
        return await self._client.send(self.build())
