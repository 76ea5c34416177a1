"""Client connections that pick plain or TLS transport from the URL scheme."""

from __future__ import annotations

import asyncio
import enum
import ssl
import sys
from urllib.parse import urlsplit

from websockets.http11 import Response

from .message import UrlError, WebSocketConfig, WebSocketError
from .stream import MaybeTlsStream
from .websocket import WebSocketStream, client_async_with_config, domain

Connector = ssl.SSLContext

_DEFAULT_PORTS = {"plain": 80, "tls": 443}


class Mode(enum.Enum):
    """Transport a WebSocket URL asks for."""

    PLAIN = "plain"
    TLS = "tls"


def uri_mode(request: str) -> Mode:
    """Return the transport mode given by the scheme of a request URL."""
    scheme, sep, _ = request.partition("://")
    if not sep:
        raise UrlError("no host name in URL")
    match scheme.lower():
        case "ws":
            return Mode.PLAIN
        case "wss":
            return Mode.TLS
    raise UrlError(f"unsupported URL scheme: {scheme}")


def port(request: str) -> int:
    """Return the port of a request URL, defaulting to 80 for ws and 443 for wss."""
    try:
        explicit = urlsplit(request).port
    except ValueError as exc:
        raise UrlError(f"invalid port in URL: {exc}") from exc
    if explicit is not None:
        return explicit
    try:
        mode = uri_mode(request)
    except UrlError:
        raise UrlError("no host name in URL") from None
    return _DEFAULT_PORTS[mode.value]


def _default_connector() -> Connector:
    return ssl.create_default_context()


async def _start_tls(stream: MaybeTlsStream, host: str, connector: Connector) -> MaybeTlsStream:
    """Upgrade an open plain stream to TLS."""
    writer = stream.writer
    try:
        if sys.version_info >= (3, 11):
            await writer.start_tls(connector, server_hostname=host)
            return MaybeTlsStream.tls(stream.reader, writer)
        loop = asyncio.get_running_loop()
        reader = asyncio.StreamReader()
        protocol = asyncio.StreamReaderProtocol(reader)
        transport = await loop.start_tls(
            writer.transport, protocol, connector, server_hostname=host
        )
        protocol.connection_made(transport)
        return MaybeTlsStream.tls(reader, asyncio.StreamWriter(transport, protocol, reader, loop))
    except OSError as exc:
        raise WebSocketError(f"I/O error: {exc}") from exc


async def _wrap_stream(
    stream: MaybeTlsStream, host: str, connector: Connector | None, mode: Mode
) -> MaybeTlsStream:
    if mode is Mode.PLAIN:
        return stream
    return await _start_tls(stream, host, connector or _default_connector())


async def client_async_tls_with_connector_and_config(
    request: str,
    stream: MaybeTlsStream,
    connector: Connector | None,
    config: WebSocketConfig | None,
) -> tuple[WebSocketStream, Response]:
    """Perform the client handshake over a stream, adding TLS when the URL is wss."""
    host = domain(request)
    mode = uri_mode(request)
    wrapped = await _wrap_stream(stream, host, connector, mode)
    return await client_async_with_config(request, wrapped, config)


async def client_async_tls(request: str, stream: MaybeTlsStream) -> tuple[WebSocketStream, Response]:
    """Perform the client handshake with default TLS settings."""
    return await client_async_tls_with_connector_and_config(request, stream, None, None)


async def client_async_tls_with_config(
    request: str, stream: MaybeTlsStream, config: WebSocketConfig | None
) -> tuple[WebSocketStream, Response]:
    """Perform the client handshake with default TLS settings and the given configuration."""
    return await client_async_tls_with_connector_and_config(request, stream, None, config)


async def client_async_tls_with_connector(
    request: str, stream: MaybeTlsStream, connector: Connector | None
) -> tuple[WebSocketStream, Response]:
    """Perform the client handshake using the given TLS context."""
    return await client_async_tls_with_connector_and_config(request, stream, connector, None)


async def connect_async(request: str) -> tuple[WebSocketStream, Response]:
    """Open a TCP connection to the URL's host and perform the client handshake."""
    return await connect_async_with_tls_connector_and_config(request, None, None)


async def connect_async_with_config(
    request: str, config: WebSocketConfig | None
) -> tuple[WebSocketStream, Response]:
    """Connect to the URL with the given configuration."""
    return await connect_async_with_tls_connector_and_config(request, None, config)


async def connect_async_with_tls_connector(
    request: str, connector: Connector | None
) -> tuple[WebSocketStream, Response]:
    """Connect to the URL using the given TLS context."""
    return await connect_async_with_tls_connector_and_config(request, connector, None)


async def connect_async_with_tls_connector_and_config(
    request: str, connector: Connector | None, config: WebSocketConfig | None
) -> tuple[WebSocketStream, Response]:
    """Connect to the URL using the given TLS context and configuration."""
    host = domain(request)
    target_port = port(request)
    try:
        reader, writer = await asyncio.open_connection(host, target_port)
    except OSError as exc:
        raise WebSocketError(f"I/O error: {exc}") from exc
    return await client_async_tls_with_connector_and_config(
        request, MaybeTlsStream.plain(reader, writer), connector, config
    )