"""
HTTP primitives for c_http_client.

This module defines the core data structures for URLs, headers, HTTP
requests and responses. Requests and responses are frozen dataclasses:
once a request has been built it can be serialized and sent but not
modified, and a response is always fully populated.
"""

import re
from dataclasses import dataclass, field
from typing import (
    Dict,
    Iterable,
    Iterator,
    List,
    Mapping,
    MutableMapping,
    NamedTuple,
    Optional,
    Tuple,
    Union,
)
from urllib.parse import urlsplit

import h11

from .exceptions import ParseError
from .network.utils import format_authority, format_host_header, validate_port


# Type aliases for better readability
HeaderItems = Tuple[Tuple[str, str], ...]
HeadersLike = Union[Mapping[str, str], Iterable[Tuple[str, str]]]
StatusCode = int

DEFAULT_PORTS = {"http": 80, "https": 443}

_TOKEN_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")
_FORBIDDEN_VALUE_CHARS = ("\r", "\n", "\x00")


class URL(NamedTuple):
    """Immutable representation of a parsed http(s) URL."""
    scheme: str
    host: str
    port: int
    target: str

    @classmethod
    def parse(cls, url: str) -> "URL":
        """
        Parse an absolute http or https URL.

        The scheme and host are mandatory; the port defaults to 80/443
        by scheme and the target to ``/``. The fragment is dropped since
        it is never sent on the wire.

        Raises:
            ParseError: If the URL is malformed or not http(s).
        """
        try:
            parsed = urlsplit(url)
        except ValueError as e:
            raise ParseError(f"Invalid URL {url!r}: {e}", cause=e) from e

        scheme = parsed.scheme.lower()
        if scheme not in DEFAULT_PORTS:
            raise ParseError(f"Unsupported URL scheme {parsed.scheme!r} in {url!r}")

        host = parsed.hostname
        if not host:
            raise ParseError(f"No hostname found in URL {url!r}")

        try:
            port = parsed.port
            if port is not None:
                port = validate_port(port)
        except ValueError as e:
            raise ParseError(f"Invalid port in URL {url!r}: {e}", cause=e) from e

        target = parsed.path or "/"
        if parsed.query:
            target += "?" + parsed.query

        return cls(
            scheme=scheme,
            host=host,
            port=port if port is not None else DEFAULT_PORTS[scheme],
            target=target,
        )

    @property
    def is_https(self) -> bool:
        return self.scheme == "https"

    @property
    def authority(self) -> str:
        """``host:port`` as used by CONNECT."""
        return format_authority(self.host, self.port)

    @property
    def host_header(self) -> str:
        """Value of the Host header for this URL."""
        return format_host_header(self.host, self.port, self.scheme)

    def __str__(self) -> str:
        return f"{self.scheme}://{self.host_header}{self.target}"


class Headers(MutableMapping[str, str]):
    """
    Ordered, case-insensitive header mapping.

    Setting an existing name (in any casing) replaces its value in place
    and keeps the latest spelling of the name. Iteration yields names as
    they were written.
    """

    def __init__(self, headers: Optional[HeadersLike] = None) -> None:
        self._store: Dict[str, Tuple[str, str]] = {}
        if headers is not None:
            self.update(headers)

    @classmethod
    def from_raw(cls, items: Iterable[Tuple[str, str]]) -> "Headers":
        """
        Build headers as received on the wire.

        Repeated fields are combined into one comma-separated value,
        in the order they were received.
        """
        headers = cls()
        for name, value in items:
            key = name.lower()
            if key in headers._store:
                first_name, previous = headers._store[key]
                headers._store[key] = (first_name, f"{previous}, {value}")
            else:
                headers._store[key] = (name, value)
        return headers

    def __setitem__(self, name: str, value: str) -> None:
        self._store[name.lower()] = (name, value)

    def __getitem__(self, name: str) -> str:
        return self._store[name.lower()][1]

    def __delitem__(self, name: str) -> None:
        del self._store[name.lower()]

    def __iter__(self) -> Iterator[str]:
        return (name for name, _ in self._store.values())

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._store

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Headers):
            return self.lower_items() == other.lower_items()
        if isinstance(other, Mapping):
            return self.lower_items() == Headers(other).lower_items()
        return NotImplemented

    def __repr__(self) -> str:
        return f"Headers({self.raw!r})"

    def lower_items(self) -> List[Tuple[str, str]]:
        return [(key, value) for key, (_, value) in self._store.items()]

    @property
    def raw(self) -> List[Tuple[str, str]]:
        """Header pairs in insertion order with their original spelling."""
        return list(self._store.values())

    def copy(self) -> "Headers":
        return Headers(self.raw)


def validate_header(name: str, value: str) -> None:
    """
    Validate a header name and value before they are put on the wire.

    Raises:
        ParseError: If the name is not an HTTP token or the value contains
                    CR, LF or NUL characters.
    """
    if not name:
        raise ParseError("Header name cannot be empty")
    if not _TOKEN_RE.match(name):
        raise ParseError(f"Invalid character in header name {name!r}")
    for ch in _FORBIDDEN_VALUE_CHARS:
        if ch in value:
            raise ParseError(f"Invalid character {ch!r} in value of header {name!r}")


def get_charset(content_type: Optional[str], default: str = "utf-8") -> str:
    """Extract the charset parameter of a Content-Type value."""
    if not content_type:
        return default
    for param in content_type.split(";")[1:]:
        key, _, value = param.partition("=")
        if key.strip().lower() == "charset":
            return value.strip().strip("\"'") or default
    return default


def decode_body(content: bytes, content_type: Optional[str] = None) -> str:
    """
    Decode a response body to text.

    Raises:
        ParseError: If the charset is unknown or the bytes are invalid for it.
    """
    charset = get_charset(content_type)
    try:
        return content.decode(charset)
    except LookupError as e:
        raise ParseError(f"Unknown charset {charset!r}", cause=e) from e
    except UnicodeDecodeError as e:
        raise ParseError(f"Response body is not valid {charset}: {e}", cause=e) from e


@dataclass(frozen=True)
class Request:
    """
    Immutable HTTP request representation.

    Requests are normally assembled with a RequestBuilder; once created
    the request cannot be modified.
    """

    method: str
    url: URL
    headers: HeaderItems = ()
    body: Optional[bytes] = None

    def __post_init__(self) -> None:
        """Validate request data after initialization."""
        if not isinstance(self.method, str) or not _TOKEN_RE.match(self.method):
            raise ParseError(f"Invalid request method {self.method!r}")

        if not isinstance(self.url, URL):
            raise ValueError("url must be a URL")

        if not isinstance(self.headers, tuple):
            raise ValueError("headers must be a tuple of (name, value) pairs")

        for name, value in self.headers:
            validate_header(name, value)

        if self.body is not None and not isinstance(self.body, bytes):
            raise ValueError("body must be bytes or None")

    @classmethod
    def create(
        cls,
        method: str,
        url: Union[str, URL],
        headers: Optional[HeadersLike] = None,
        body: Optional[bytes] = None,
    ) -> "Request":
        """
        Create a Request with proper type conversion.

        Args:
            method: HTTP method (GET, POST, etc.), case-insensitive
            url: URL string or parsed URL
            headers: Optional mapping or iterable of (name, value) pairs;
                     later duplicates of a name overwrite earlier ones
            body: Optional request body

        Returns:
            New Request instance

        Raises:
            ParseError: If the URL, method or a header is invalid
        """
        if isinstance(url, str):
            url = URL.parse(url)

        return cls(
            method=method.upper(),
            url=url,
            headers=tuple(Headers(headers).raw) if headers is not None else (),
            body=body,
        )

    @property
    def scheme(self) -> str:
        return self.url.scheme

    @property
    def host(self) -> str:
        return self.url.host

    @property
    def port(self) -> int:
        return self.url.port

    @property
    def target(self) -> str:
        """Origin-form request target (path and query)."""
        return self.url.target

    def get_header(self, name: str) -> Optional[str]:
        """Get a header value by name (case-insensitive)."""
        return Headers(self.headers).get(name)

    def h11_events(self) -> List[h11.Event]:
        """
        Translate the request into the h11 events that put it on the wire.

        A Host header is added when absent, any caller supplied
        Content-Length is replaced by the body length (or dropped when
        there is no body).

        Raises:
            ParseError: If a header cannot be encoded as ASCII or the
                        request asks for a transfer coding.
        """
        headers = Headers(self.headers)
        if "Transfer-Encoding" in headers:
            raise ParseError("Transfer-Encoding is not supported on requests")

        headers.pop("Content-Length", None)
        # Host goes right after the request line.
        host = headers.pop("Host", self.url.host_header)
        headers = Headers([("Host", host), *headers.raw])
        if self.body is not None:
            headers["Content-Length"] = str(len(self.body))

        try:
            h11_headers = [
                (name.encode("ascii"), value.encode("ascii"))
                for name, value in headers.raw
            ]
            target = self.target.encode("ascii")
        except UnicodeEncodeError as e:
            raise ParseError(f"Request contains non-ASCII data: {e}", cause=e) from e

        try:
            events: List[h11.Event] = [
                h11.Request(method=self.method.encode("ascii"), target=target, headers=h11_headers)
            ]
        except h11.LocalProtocolError as e:
            raise ParseError(f"Invalid request: {e}", cause=e) from e

        if self.body:
            events.append(h11.Data(data=self.body))
        events.append(h11.EndOfMessage())
        return events

    def serialize(self) -> bytes:
        """
        Serialize the request to HTTP/1.1 wire bytes.

        Raises:
            ParseError: If the request cannot be represented on the wire
        """
        connection = h11.Connection(h11.CLIENT)
        try:
            return b"".join(connection.send(event) or b"" for event in self.h11_events())
        except h11.LocalProtocolError as e:
            raise ParseError(f"Invalid request: {e}", cause=e) from e


@dataclass(frozen=True)
class Response:
    """
    Immutable HTTP response representation.

    The body is fully buffered: ``content`` holds the raw bytes and
    ``body`` the decoded text.
    """

    status_code: StatusCode
    status_message: str = ""
    headers: Headers = field(default_factory=Headers)
    content: bytes = b""
    body: str = ""
    http_version: str = "1.1"

    def __post_init__(self) -> None:
        """Validate response data after initialization."""
        if not isinstance(self.status_code, int):
            raise ValueError("status_code must be int")

        if not 100 <= self.status_code <= 599:
            raise ValueError(f"status_code must be between 100 and 599, got {self.status_code}")

        if not isinstance(self.headers, Headers):
            raise ValueError("headers must be a Headers instance")

    @classmethod
    def create(
        cls,
        status_code: StatusCode,
        status_message: str = "",
        headers: Optional[HeadersLike] = None,
        content: bytes = b"",
        http_version: str = "1.1",
    ) -> "Response":
        """
        Create a Response, decoding the body as text.

        Args:
            status_code: HTTP status code
            status_message: Reason phrase from the status line
            headers: Headers as received
            content: Raw body bytes
            http_version: HTTP version from the status line

        Returns:
            New Response instance

        Raises:
            ParseError: If the body cannot be decoded
        """
        if not isinstance(headers, Headers):
            headers = Headers(headers)

        return cls(
            status_code=status_code,
            status_message=status_message,
            headers=headers,
            content=content,
            body=decode_body(content, headers.get("Content-Type")),
            http_version=http_version,
        )

    @property
    def is_informational(self) -> bool:
        return 100 <= self.status_code < 200

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def is_redirect(self) -> bool:
        return 300 <= self.status_code < 400

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status_code < 500

    @property
    def is_server_error(self) -> bool:
        return 500 <= self.status_code < 600

    def get_header(self, name: str) -> Optional[str]:
        """Get a header value by name (case-insensitive)."""
        return self.headers.get(name)

    def has_header(self, name: str) -> bool:
        """Check if a header exists (case-insensitive)."""
        return name in self.headers

    @property
    def content_length(self) -> Optional[int]:
        value = self.headers.get("Content-Length")
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            return None

    @property
    def content_type(self) -> Optional[str]:
        return self.headers.get("Content-Type")

    @property
    def status_line(self) -> str:
        return f"HTTP/{self.http_version} {self.status_code} {self.status_message}".rstrip()
