# wsbridge

WebSocket client and server helpers for asyncio, over plain TCP or TLS. The
WebSocket framing and handshake come from the sans-I/O layer of `websockets`.
This package drives that layer over asyncio streams.

## Install

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Modules

- `wsbridge.message` defines the following:
  - `Message`, with the constructors `Message.text`, `Message.binary`,
    `Message.ping`, `Message.pong` and `Message.close`.
  - `MessageType`.
  - `CloseFrame`, made of a code from 0 to 65535 and a reason of at most 123
    UTF-8 bytes.
  - `WebSocketConfig`, with `max_message_size`, 64 MiB by default, and
    `max_frame_size`, 16 MiB by default. `None` turns a limit off.
  - The exceptions `WebSocketError` and `UrlError`.
- `wsbridge.stream` defines `MaybeTlsStream`. It wraps an asyncio
  `StreamReader` and `StreamWriter` pair and provides `read`, `write`, `flush`,
  `shutdown` and `is_tls`.
- `wsbridge.websocket` defines the following:
  - `WebSocketStream`, with `send`, `read` and `close`.
  - The server handshakes `accept_async`, `accept_hdr_async`,
    `accept_async_tls_with_config` and `accept_hdr_with_config_async`.
  - The client handshakes `client_async` and `client_async_with_config`.
  - `domain`, which returns the host of a URL without IPv6 brackets.
- `wsbridge.tls` defines the following:
  - `Mode`.
  - `uri_mode`, which maps `ws` and `wss` to a mode.
  - `port`, which takes the port from the URL, or uses 80 or 443 when the URL
    gives none.
  - The `client_async_tls*` functions, which add TLS to a stream you already
    hold when the URL is `wss`.
  - The `connect_async*` functions, which open the TCP connection themselves.

All failures are raised as `WebSocketError`, or as `UrlError` for a bad URL.

## Library

Accept a connection on a server-side `MaybeTlsStream`:

```python
from wsbridge.message import Message, MessageType
from wsbridge.websocket import accept_async

async def handle(stream):
    ws = await accept_async(stream)
    while True:
        message = await ws.read()
        if message.type is MessageType.TEXT:
            await ws.send(Message.text(f"Echo: {message.data}"))
        elif message.type is MessageType.CLOSE:
            break
```

`WebSocketStream.read` returns pings, pongs and close messages as `Message`
values. It answers pings with pongs by itself, and it joins fragmented messages
into one message. Reading again after a close message has been returned raises
`WebSocketError`.

`accept_hdr_async` takes a callback. The callback is called with the request and
the proposed response. It returns the response to send, or `None` to keep the
proposed one. If the response it returns has a status other than 101, the
connection is refused.

Connect as a client:

```python
from wsbridge.message import Message
from wsbridge.tls import connect_async

async def talk():
    ws, response = await connect_async("ws://127.0.0.1:9001")
    await ws.send(Message.text("Hello, server!"))
    reply = await ws.read()
    await ws.close(None)
    return reply
```

To supply your own `ssl.SSLContext`, use `connect_async_with_tls_connector`.
Without one, `wss` URLs use `ssl.create_default_context()`, which trusts the
system's certificate store.

For testing against a server with a self-signed certificate,
`wsbridge.client.insecure_tls_context()` returns a context that accepts any
certificate. It is for testing only.

## Commands

Run the echo server. By default it listens on `ws://127.0.0.1:9001`:

```
wsbridge-echo-server
wsbridge-echo-server --host 0.0.0.0 --port 8080
```

The server echoes text as `Echo: <text>`, sends binary data back, and answers
pings with pongs. It stops serving a client when that client sends a close
message.

With `--tls` it serves TLS, on port 9002 by default. It reads the PEM
certificate and key from `--cert` and `--key`, which default to
`localhost.crt` and `localhost.key`. In TLS mode, binary echoes are prefixed
with `TLS Binary Echo: `:

```
wsbridge-echo-server --tls --cert localhost.crt --key localhost.key
```

Run the demo client. It connects to `ws://127.0.0.1:9001` unless you give
another URL. It sends a text message, a binary message and a ping, prints the
first three responses, and closes the connection. With `--insecure`, any server
certificate is accepted:

```
wsbridge-client ws://127.0.0.1:9001
wsbridge-client wss://127.0.0.1:9002 --insecure
```

## What it does not do

- The echo server cannot create certificates. You must supply the certificate
  and key files.
- There is no per-message compression.
- Neither command reconnects after a failure.