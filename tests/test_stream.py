import asyncio
import socket

import pytest

from wsbridge.stream import MaybeTlsStream

TIMEOUT = 5


async def _pair(secure=False):
    left, right = socket.socketpair()
    r1, w1 = await asyncio.open_connection(sock=left)
    r2, w2 = await asyncio.open_connection(sock=right)
    make = MaybeTlsStream.tls if secure else MaybeTlsStream.plain
    return make(r1, w1), MaybeTlsStream.plain(r2, w2)


@pytest.mark.asyncio
async def test_plain_stream_is_not_tls():
    a, b = await _pair()
    assert a.is_tls() is False
    a.writer.close()
    b.writer.close()


@pytest.mark.asyncio
async def test_tls_constructor_marks_stream():
    a, b = await _pair(secure=True)
    assert a.is_tls() is True
    a.writer.close()
    b.writer.close()


@pytest.mark.asyncio
async def test_write_flush_read_round_trip():
    a, b = await _pair()
    written = await a.write(b"hello world")
    await a.flush()
    assert written == len(b"hello world")
    received = b""
    while len(received) < written:
        received += await asyncio.wait_for(b.read(100), TIMEOUT)
    assert received == b"hello world"
    a.writer.close()
    b.writer.close()


@pytest.mark.asyncio
async def test_read_respects_limit():
    a, b = await _pair()
    await a.write(b"abcdef")
    await a.flush()
    await asyncio.sleep(0.05)
    chunk = await asyncio.wait_for(b.read(3), TIMEOUT)
    assert chunk == b"abc"
    a.writer.close()
    b.writer.close()


@pytest.mark.asyncio
async def test_plain_shutdown_sends_end_of_stream():
    a, b = await _pair()
    await a.write(b"last")
    await a.shutdown()
    received = b""
    while True:
        chunk = await asyncio.wait_for(b.read(100), TIMEOUT)
        if not chunk:
            break
        received += chunk
    assert received == b"last"
    a.writer.close()
    b.writer.close()


@pytest.mark.asyncio
async def test_tls_shutdown_closes_writer():
    a, b = await _pair(secure=True)
    await a.shutdown()
    assert a.writer.is_closing()
    assert await asyncio.wait_for(b.read(10), TIMEOUT) == b""
    b.writer.close()