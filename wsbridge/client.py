"""A WebSocket client that sends a few messages and prints the replies."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import ssl
import sys

from .message import Message, MessageType, WebSocketError
from .tls import Mode, connect_async_with_tls_connector, uri_mode

DEFAULT_URL = "ws://127.0.0.1:9001"
RESPONSE_COUNT = 3


def insecure_tls_context() -> ssl.SSLContext:
    """Return a client TLS context that accepts any certificate; for testing only."""
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
    return context


def _describe(index: int, message: Message, secure: bool) -> str:
    match message.type:
        case MessageType.TEXT:
            return f"  Response {index}: Text: {message.data}"
        case MessageType.BINARY if secure:
            return f"  Response {index}: Binary: {message.data.decode('utf-8', 'replace')}"
        case MessageType.BINARY:
            return f"  Response {index}: Binary: {len(message.data)} bytes"
        case MessageType.PONG:
            return f"  Response {index}: Pong: {list(message.data)}"
    return f"  Response {index}: {message!r}"


async def run_client(url: str = DEFAULT_URL, connector: ssl.SSLContext | None = None) -> list[Message]:
    """Send a text, a binary message and a ping, and return the first replies."""
    secure = uri_mode(url) is Mode.TLS
    print("Connecting to WebSocket server")
    websocket, _response = await connect_async_with_tls_connector(url, connector)
    try:
        print("Connected to WebSocket server")
        greeting = "Hello, secure server!" if secure else "Hello, server!"
        print("Sending text message")
        await websocket.send(Message.text(greeting))
        print("Sending binary message")
        await websocket.send(Message.binary(bytes([1, 2, 3, 4, 5])))
        print("Sending ping")
        await websocket.send(Message.ping(bytes([42])))

        print("Reading responses")
        responses = []
        for index in range(1, RESPONSE_COUNT + 1):
            message = await websocket.read()
            print(_describe(index, message, secure))
            responses.append(message)

        print("Closing connection")
        await websocket.close(None)
        print("Connection closed successfully")
        return responses
    finally:
        with contextlib.suppress(OSError):
            websocket.stream.writer.close()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="WebSocket test client")
    parser.add_argument("url", nargs="?", default=DEFAULT_URL)
    parser.add_argument(
        "--insecure", action="store_true", help="accept any server certificate"
    )
    args = parser.parse_args(argv)
    connector = insecure_tls_context() if args.insecure else None
    try:
        asyncio.run(run_client(args.url, connector))
    except WebSocketError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())