"""
Pytest configuration for c_http_client tests.

This file contains shared fixtures: the mock backend, sample wire data,
locally generated TLS certificates and small asyncio servers (an HTTP
origin and a CONNECT proxy) bound to 127.0.0.1.
"""

import asyncio
import datetime
import ipaddress
import ssl
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, List, NamedTuple, Optional

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509 import ExtendedKeyUsageOID, NameOID

from c_http_client.network import MockNetworkBackend


@pytest.fixture
def mock_backend() -> MockNetworkBackend:
    """Create a fresh mock network backend."""
    return MockNetworkBackend()


@pytest.fixture
def sample_response_bytes() -> bytes:
    """A minimal complete HTTP/1.1 response."""
    return b"HTTP/1.1 200 OK\r\nContent-Length: 5\r\n\r\nhello"


# --- TLS certificates --------------------------------------------------------


class TlsCertificates(NamedTuple):
    ca_file: str
    ca_pem: str
    cert_file: str
    key_file: str

    def server_context(self) -> ssl.SSLContext:
        context = ssl.create_default_context(ssl.Purpose.CLIENT_AUTH)
        context.load_cert_chain(self.cert_file, self.key_file)
        return context


def _create_ca():
    now = datetime.datetime.now(datetime.timezone.utc)
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    name = x509.Name([
        x509.NameAttribute(NameOID.COMMON_NAME, "c_http_client test CA"),
        x509.NameAttribute(NameOID.ORGANIZATION_NAME, "c_http_client"),
    ])
    builder = x509.CertificateBuilder()
    builder = builder.serial_number(x509.random_serial_number())
    builder = builder.subject_name(name)
    builder = builder.issuer_name(name)
    builder = builder.not_valid_before(now - datetime.timedelta(days=1))
    builder = builder.not_valid_after(now + datetime.timedelta(days=30))
    builder = builder.public_key(key.public_key())
    builder = builder.add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
    builder = builder.add_extension(
        x509.KeyUsage(
            digital_signature=True,
            content_commitment=False,
            key_encipherment=False,
            data_encipherment=False,
            key_agreement=False,
            key_cert_sign=True,
            crl_sign=True,
            encipher_only=False,
            decipher_only=False,
        ), critical=True)
    builder = builder.add_extension(x509.SubjectKeyIdentifier.from_public_key(key.public_key()), critical=False)
    return key, builder.sign(private_key=key, algorithm=hashes.SHA256())


def _create_leaf(ca_key, ca_cert, hostname: str):
    now = datetime.datetime.now(datetime.timezone.utc)
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    builder = x509.CertificateBuilder()
    builder = builder.serial_number(x509.random_serial_number())
    builder = builder.subject_name(x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, hostname)]))
    builder = builder.issuer_name(ca_cert.subject)
    builder = builder.not_valid_before(now - datetime.timedelta(days=1))
    builder = builder.not_valid_after(now + datetime.timedelta(days=30))
    builder = builder.public_key(key.public_key())
    builder = builder.add_extension(x509.BasicConstraints(ca=False, path_length=None), critical=True)
    builder = builder.add_extension(
        x509.KeyUsage(
            digital_signature=True,
            content_commitment=False,
            key_encipherment=True,
            data_encipherment=False,
            key_agreement=False,
            key_cert_sign=False,
            crl_sign=False,
            encipher_only=False,
            decipher_only=False,
        ), critical=True)
    builder = builder.add_extension(x509.ExtendedKeyUsage([ExtendedKeyUsageOID.SERVER_AUTH]), critical=False)
    builder = builder.add_extension(
        x509.SubjectAlternativeName([
            x509.DNSName(hostname),
            x509.IPAddress(ipaddress.ip_address("127.0.0.1")),
        ]),
        critical=False,
    )
    builder = builder.add_extension(x509.SubjectKeyIdentifier.from_public_key(key.public_key()), critical=False)
    builder = builder.add_extension(
        x509.AuthorityKeyIdentifier.from_issuer_public_key(ca_key.public_key()), critical=False
    )
    return key, builder.sign(private_key=ca_key, algorithm=hashes.SHA256())


@pytest.fixture(scope="session")
def tls_certificates(tmp_path_factory) -> TlsCertificates:
    """A throwaway CA and a server certificate for ``localhost``/127.0.0.1."""
    directory = tmp_path_factory.mktemp("certs")
    ca_key, ca_cert = _create_ca()
    leaf_key, leaf_cert = _create_leaf(ca_key, ca_cert, "localhost")

    ca_pem = ca_cert.public_bytes(serialization.Encoding.PEM)
    ca_file = directory / "ca.pem"
    ca_file.write_bytes(ca_pem)

    cert_file = directory / "server.pem"
    cert_file.write_bytes(leaf_cert.public_bytes(serialization.Encoding.PEM))

    key_file = directory / "server.key"
    key_file.write_bytes(
        leaf_key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.TraditionalOpenSSL,
            serialization.NoEncryption(),
        )
    )
    return TlsCertificates(str(ca_file), ca_pem.decode("ascii"), str(cert_file), str(key_file))


# --- Local servers -----------------------------------------------------------


Handler = Callable[[asyncio.StreamReader, asyncio.StreamWriter], "asyncio.Future[None]"]


@asynccontextmanager
async def _serve(handler: Handler, ssl_context: Optional[ssl.SSLContext] = None) -> AsyncIterator[int]:
    server = await asyncio.start_server(handler, "127.0.0.1", 0, ssl=ssl_context)
    port = server.sockets[0].getsockname()[1]
    try:
        yield port
    finally:
        server.close()
        await server.wait_closed()


@pytest.fixture
def serve():
    """Async context manager running a handler on 127.0.0.1; yields the port."""
    return _serve


async def _read_request(reader: asyncio.StreamReader) -> bytes:
    head = await reader.readuntil(b"\r\n\r\n")
    length = 0
    for line in head.split(b"\r\n")[1:]:
        name, _, value = line.partition(b":")
        if name.strip().lower() == b"content-length":
            length = int(value.strip())
    body = await reader.readexactly(length) if length else b""
    return head + body


@pytest.fixture
def http_origin():
    """
    Build an origin handler.

    ``respond`` maps the raw request bytes to the raw response bytes;
    every request received is appended to ``received``.
    """
    def _make(respond: Callable[[bytes], bytes], received: List[bytes]) -> Handler:
        async def handler(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
            try:
                request = await _read_request(reader)
                received.append(request)
                writer.write(respond(request))
                await writer.drain()
            except (asyncio.IncompleteReadError, OSError):
                pass
            finally:
                writer.close()
        return handler
    return _make


async def _pipe(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
    try:
        while True:
            data = await reader.read(65536)
            if not data:
                break
            writer.write(data)
            await writer.drain()
        if writer.can_write_eof():
            writer.write_eof()
    except OSError:
        pass


@pytest.fixture
def connect_proxy():
    """
    Build a CONNECT proxy handler.

    The proxy records every CONNECT head in ``log``. With a 2xx ``status``
    it opens the requested tunnel and relays bytes both ways; otherwise it
    answers with ``status`` and closes.
    """
    def _make(log: List[bytes], status: bytes = b"200 Connection Established") -> Handler:
        async def handler(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
            upstream_writer = None
            try:
                head = await reader.readuntil(b"\r\n\r\n")
                log.append(head)
                if not status.startswith(b"2"):
                    writer.write(b"HTTP/1.1 " + status + b"\r\nContent-Length: 0\r\n\r\n")
                    await writer.drain()
                    return

                target = head.split(b" ")[1].decode("ascii")
                host, _, port = target.rpartition(":")
                upstream_reader, upstream_writer = await asyncio.open_connection(host, int(port))
                writer.write(b"HTTP/1.1 " + status + b"\r\n\r\n")
                await writer.drain()
                await asyncio.gather(
                    _pipe(reader, upstream_writer),
                    _pipe(upstream_reader, writer),
                )
            except (asyncio.IncompleteReadError, OSError):
                pass
            finally:
                if upstream_writer is not None:
                    upstream_writer.close()
                writer.close()
        return handler
    return _make
