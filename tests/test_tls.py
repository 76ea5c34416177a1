import asyncio
import contextlib
import socket

import pytest

from wsbridge.message import Message, MessageType, UrlError, WebSocketError
from wsbridge.stream import MaybeTlsStream
from wsbridge.tls import (
    Mode,
    client_async_tls,
    client_async_tls_with_connector,
    connect_async,
    connect_async_with_config,
    port,
    uri_mode,
)
from wsbridge.websocket import accept_async


@contextlib.asynccontextmanager
async def echo_once_server():
    async def on_connection(reader, writer):
        try:
            ws = await accept_async(MaybeTlsStream.plain(reader, writer))
            message = await ws.read()
            if message.type is MessageType.TEXT:
                await ws.send(message)
                await ws.read()
        except WebSocketError:
            pass
        finally:
            writer.close()

    server = await asyncio.start_server(on_connection, "127.0.0.1", 0)
    try:
        yield server.sockets[0].getsockname()[1]
    finally:
        server.close()
        await server.wait_closed()


def _free_port():
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def test_uri_mode_plain_and_tls():
    assert uri_mode("ws://example.com/") is Mode.PLAIN
    assert uri_mode("wss://example.com/") is Mode.TLS
    assert uri_mode("WSS://example.com/") is Mode.TLS


@pytest.mark.parametrize("url", ["http://example.com", "example.com"])
def test_uri_mode_rejects_other_schemes(url):
    with pytest.raises(UrlError):
        uri_mode(url)


def test_port_defaults_follow_scheme():
    assert port("ws://example.com/chat") == 80
    assert port("wss://example.com/chat") == 443


def test_port_explicit():
    assert port("ws://127.0.0.1:9001") == 9001
    assert port("wss://[::1]:9002/x") == 9002


def test_port_errors():
    with pytest.raises(UrlError):
        port("ftp://example.com")
    with pytest.raises(UrlError):
        port("ws://example.com:99999")


@pytest.mark.asyncio
async def test_client_async_tls_rejects_scheme_before_io():
    with pytest.raises(UrlError):
        await client_async_tls("http://example.com/", None)


@pytest.mark.asyncio
async def test_connect_async_round_trip():
    async with echo_once_server() as server_port:
        ws, response = await connect_async(f"ws://127.0.0.1:{server_port}/")
        assert response.status_code == 101
        assert not ws.stream.is_tls()
        await ws.send(Message.text("over plain"))
        assert await ws.read() == Message.text("over plain")
        await ws.close()
        ws.stream.writer.close()


@pytest.mark.asyncio
async def test_client_async_tls_over_plain_stream():
    async with echo_once_server() as server_port:
        reader, writer = await asyncio.open_connection("127.0.0.1", server_port)
        stream = MaybeTlsStream.plain(reader, writer)
        ws, response = await client_async_tls_with_connector(
            f"ws://127.0.0.1:{server_port}", stream, None
        )
        assert response.status_code == 101
        assert ws.stream is stream
        await ws.send(Message.text("abc"))
        assert await ws.read() == Message.text("abc")
        await ws.close()
        writer.close()


@pytest.mark.asyncio
async def test_connect_refused_raises():
    with pytest.raises(WebSocketError):
        await connect_async_with_config(f"ws://127.0.0.1:{_free_port()}", None)