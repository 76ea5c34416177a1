"""A WebSocket echo server, plain or over TLS."""

from __future__ import annotations

import argparse
import asyncio
import ssl
import sys
from pathlib import Path

from .message import Message, MessageType, WebSocketError
from .stream import MaybeTlsStream
from .websocket import accept_async

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 9001
DEFAULT_TLS_PORT = 9002
TLS_BINARY_PREFIX = b"TLS Binary Echo: "


async def handle_client(stream: MaybeTlsStream, binary_prefix: bytes = b"") -> None:
    """Accept a WebSocket on the stream and echo messages until the peer closes."""
    websocket = await accept_async(stream)
    print("WebSocket handshake successful")
    while True:
        message = await websocket.read()
        match message.type:
            case MessageType.TEXT:
                print(f"Received text: {message.data}")
                echo = f"Echo: {message.data}"
                print(f"Sending echo: {echo}")
                await websocket.send(Message.text(echo))
                print("Echo sent successfully")
            case MessageType.BINARY:
                print(f"Received {len(message.data)} bytes of binary data")
                print("Sending binary echo...")
                await websocket.send(Message.binary(binary_prefix + message.data))
                print("Binary echo sent successfully")
            case MessageType.PING:
                print("Received ping, sending pong")
                await websocket.send(Message.pong(message.data))
                print("Pong sent successfully")
            case MessageType.PONG:
                print("Received pong")
            case MessageType.CLOSE:
                print(f"Received close frame: {message.data!r}")
                break
    print("Client disconnected")


def create_tls_context(cert_path, key_path) -> ssl.SSLContext:
    """Build a server TLS context from a PEM certificate and private key."""
    for path in (Path(cert_path), Path(key_path)):
        if not path.exists():
            raise FileNotFoundError(f"certificate file not found: {path}")
    context = ssl.create_default_context(ssl.Purpose.CLIENT_AUTH)
    context.load_cert_chain(str(cert_path), str(key_path))
    return context


async def serve(host: str, port: int, ssl_context: ssl.SSLContext | None = None) -> None:
    """Run the echo server until cancelled."""
    secure = ssl_context is not None
    prefix = TLS_BINARY_PREFIX if secure else b""

    async def on_connection(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        addr = writer.get_extra_info("peername")
        print(f"New client connected: {addr}")
        stream = MaybeTlsStream(reader, writer, secure=secure)
        try:
            await handle_client(stream, prefix)
        except (WebSocketError, OSError) as exc:
            print(f"Error handling client {addr}: {exc}", file=sys.stderr)
        finally:
            writer.close()

    server = await asyncio.start_server(on_connection, host, port, ssl=ssl_context)
    scheme = "wss" if secure else "ws"
    label = "WebSocket TLS echo server" if secure else "WebSocket echo server"
    print(f"{label} listening on {scheme}://{host}:{port}")
    async with server:
        await server.serve_forever()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="WebSocket echo server")
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int)
    parser.add_argument("--tls", action="store_true", help="serve over TLS")
    parser.add_argument("--cert", default="localhost.crt")
    parser.add_argument("--key", default="localhost.key")
    args = parser.parse_args(argv)

    context = None
    if args.tls:
        try:
            context = create_tls_context(args.cert, args.key)
        except FileNotFoundError:
            print("Error: Certificate files not found!", file=sys.stderr)
            print(
                f"Please provide a PEM certificate at {args.cert} and its key at {args.key}",
                file=sys.stderr,
            )
            return 1
        except ssl.SSLError as exc:
            print(f"Error: cannot load certificate: {exc}", file=sys.stderr)
            return 1
    port = args.port if args.port is not None else (DEFAULT_TLS_PORT if args.tls else DEFAULT_PORT)
    try:
        asyncio.run(serve(args.host, port, context))
    except KeyboardInterrupt:
        pass
    except OSError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())