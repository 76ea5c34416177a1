"""WebSocket connections over asynchronous byte streams: handshakes, sending and reading."""

from __future__ import annotations

import contextlib
import enum
from collections import deque
from collections.abc import Callable, Iterable
from typing import Optional, Protocol

from websockets.client import ClientProtocol
from websockets.exceptions import InvalidURI, WebSocketException
from websockets.frames import Close, Frame, Opcode
from websockets.http11 import Request, Response
from websockets.protocol import State
from websockets.server import ServerProtocol
from websockets.uri import parse_uri

from .message import CloseFrame, Message, MessageType, UrlError, WebSocketConfig, WebSocketError

READ_SIZE = 65536
MAX_CONTROL_PAYLOAD = 125
_NO_STATUS_RCVD = 1005
_SWITCHING_PROTOCOLS = 101

Callback = Callable[[Request, Response], Optional[Response]]


class _Stream(Protocol):
    async def read(self, n: int) -> bytes: ...

    async def write(self, data: bytes) -> int: ...

    async def flush(self) -> None: ...

    async def shutdown(self) -> None: ...


class Role(enum.Enum):
    """Which end of the connection a WebSocket plays."""

    SERVER = "server"
    CLIENT = "client"


async def _transmit(stream: _Stream, protocol) -> None:
    """Write everything the protocol has queued, then flush."""
    half_close = False
    try:
        for chunk in protocol.data_to_send():
            if chunk:
                await stream.write(chunk)
            else:
                half_close = True
        await stream.flush()
    except OSError as exc:
        raise WebSocketError(f"I/O error: {exc}") from exc
    if half_close:
        with contextlib.suppress(OSError):
            await stream.shutdown()


async def _receive(stream: _Stream, protocol) -> bool:
    """Feed one chunk of incoming bytes to the protocol; False at end of stream."""
    try:
        data = await stream.read(READ_SIZE)
    except OSError as exc:
        raise WebSocketError(f"I/O error: {exc}") from exc
    if data:
        protocol.receive_data(data)
        return True
    protocol.receive_eof()
    return False


async def _handshake_event(stream: _Stream, protocol, kind: type):
    """Read until the handshake request or response arrives; return it and later events."""
    events: deque = deque()
    at_eof = False
    while True:
        events.extend(protocol.events_received())
        while events:
            event = events.popleft()
            if isinstance(event, kind):
                return event, events
        if protocol.handshake_exc is not None:
            await _transmit(stream, protocol)
            raise WebSocketError(f"handshake failed: {protocol.handshake_exc}") from protocol.handshake_exc
        if at_eof:
            raise WebSocketError("connection closed during handshake")
        at_eof = not await _receive(stream, protocol)


class WebSocketStream:
    """An established WebSocket connection over an asynchronous byte stream."""

    def __init__(
        self,
        stream: _Stream,
        protocol,
        config: WebSocketConfig | None = None,
        pending: Iterable = (),
    ) -> None:
        self._stream = stream
        self._protocol = protocol
        self._config = config or WebSocketConfig()
        self._events: deque = deque(pending)
        self._fragments: list[bytes] = []
        self._fragment_opcode: Opcode | None = None
        self._close_returned = False
        self._at_eof = False

    @property
    def stream(self) -> _Stream:
        return self._stream

    @property
    def role(self) -> Role:
        return Role.CLIENT if isinstance(self._protocol, ClientProtocol) else Role.SERVER

    def _ensure_open(self) -> None:
        state = self._protocol.state
        if state is State.CLOSED:
            raise WebSocketError("connection closed")
        if state is not State.OPEN:
            raise WebSocketError("cannot send after closing")

    async def send(self, message: Message) -> None:
        """Send a message and flush it to the stream."""
        if message.type is MessageType.CLOSE:
            await self.close(message.data)
            return
        self._ensure_open()
        payload = message.data
        if message.type in (MessageType.PING, MessageType.PONG) and len(payload) > MAX_CONTROL_PAYLOAD:
            raise WebSocketError(f"control frame payload exceeds {MAX_CONTROL_PAYLOAD} bytes")
        try:
            match message.type:
                case MessageType.TEXT:
                    self._protocol.send_text(payload.encode("utf-8"))
                case MessageType.BINARY:
                    self._protocol.send_binary(payload)
                case MessageType.PING:
                    self._protocol.send_ping(payload)
                case MessageType.PONG:
                    self._protocol.send_pong(payload)
        except WebSocketException as exc:
            raise WebSocketError(str(exc)) from exc
        await _transmit(self._stream, self._protocol)

    async def read(self) -> Message:
        """Return the next message; pings are answered automatically."""
        while True:
            if self._close_returned:
                raise WebSocketError("connection closed")
            message = self._next_message()
            await _transmit(self._stream, self._protocol)
            if message is not None:
                if message.type is MessageType.CLOSE:
                    self._close_returned = True
                return message
            exc = self._protocol.parser_exc
            if isinstance(exc, EOFError) or (self._at_eof and exc is None):
                raise WebSocketError("connection reset without closing handshake")
            if exc is not None:
                raise WebSocketError(f"protocol error: {exc}") from exc
            if not await _receive(self._stream, self._protocol):
                self._at_eof = True
            self._events.extend(self._protocol.events_received())

    async def close(self, close_frame: CloseFrame | None = None) -> None:
        """Start the closing handshake by sending a close frame."""
        state = self._protocol.state
        if state is State.CLOSED:
            raise WebSocketError("connection closed")
        if state is State.OPEN:
            try:
                if close_frame is None:
                    self._protocol.send_close()
                else:
                    self._protocol.send_close(close_frame.code, close_frame.reason)
            except WebSocketException as exc:
                raise WebSocketError(str(exc)) from exc
        await _transmit(self._stream, self._protocol)

    def _next_message(self) -> Message | None:
        while self._events:
            event = self._events.popleft()
            if isinstance(event, Frame):
                message = self._on_frame(event)
                if message is not None:
                    return message
        return None

    def _on_frame(self, frame: Frame) -> Message | None:
        data = bytes(frame.data)
        limit = self._config.max_frame_size
        if limit is not None and len(data) > limit:
            raise WebSocketError(f"frame of {len(data)} bytes exceeds limit of {limit}")
        match frame.opcode:
            case Opcode.PING:
                return Message.ping(data)
            case Opcode.PONG:
                return Message.pong(data)
            case Opcode.CLOSE:
                close = Close.parse(data)
                if close.code == _NO_STATUS_RCVD:
                    return Message.close(None)
                return Message.close(CloseFrame(int(close.code), close.reason))
            case Opcode.TEXT | Opcode.BINARY:
                if frame.fin:
                    return self._complete(frame.opcode, data)
                self._fragment_opcode = frame.opcode
                self._fragments = [data]
                return None
            case Opcode.CONT:
                self._fragments.append(data)
                if not frame.fin:
                    return None
                opcode, payload = self._fragment_opcode, b"".join(self._fragments)
                self._fragment_opcode, self._fragments = None, []
                return self._complete(opcode, payload)
        return None

    @staticmethod
    def _complete(opcode: Opcode | None, data: bytes) -> Message:
        if opcode is Opcode.TEXT:
            try:
                return Message.text(data.decode("utf-8"))
            except UnicodeDecodeError as exc:
                raise WebSocketError("invalid UTF-8 in text message") from exc
        return Message.binary(data)


async def accept_async(stream: _Stream) -> WebSocketStream:
    """Accept a WebSocket connection on the server side."""
    return await accept_hdr_with_config_async(stream, None, None)


async def accept_hdr_async(stream: _Stream, callback: Callback | None) -> WebSocketStream:
    """Accept a connection, letting callback inspect the request and amend the response."""
    return await accept_hdr_with_config_async(stream, callback, None)


async def accept_async_tls_with_config(
    stream: _Stream, config: WebSocketConfig | None
) -> WebSocketStream:
    """Accept a connection with the given configuration."""
    return await accept_hdr_with_config_async(stream, None, config)


async def accept_hdr_with_config_async(
    stream: _Stream,
    callback: Callback | None,
    config: WebSocketConfig | None,
) -> WebSocketStream:
    """Accept a connection with a request callback and configuration.

    The callback gets the request and the proposed response and returns the
    response to send (None keeps the proposed one). A response whose status is
    not 101 refuses the connection.
    """
    config = config or WebSocketConfig()
    protocol = ServerProtocol(max_size=config.max_message_size)
    request, pending = await _handshake_event(stream, protocol, Request)
    response = protocol.accept(request)
    if protocol.handshake_exc is None and callback is not None:
        response = callback(request, response) or response
    protocol.send_response(response)
    await _transmit(stream, protocol)
    if protocol.handshake_exc is not None:
        raise WebSocketError(f"handshake failed: {protocol.handshake_exc}") from protocol.handshake_exc
    if response.status_code != _SWITCHING_PROTOCOLS:
        raise WebSocketError(f"handshake refused with status {response.status_code}")
    pending.extend(protocol.events_received())
    return WebSocketStream(stream, protocol, config, pending)


async def client_async(request: str, stream: _Stream) -> tuple[WebSocketStream, Response]:
    """Perform the client handshake for the URL over an open stream."""
    return await client_async_with_config(request, stream, None)


async def client_async_with_config(
    request: str, stream: _Stream, config: WebSocketConfig | None
) -> tuple[WebSocketStream, Response]:
    """Perform the client handshake with the given configuration."""
    config = config or WebSocketConfig()
    domain(request)
    try:
        uri = parse_uri(request)
    except InvalidURI as exc:
        raise UrlError(str(exc)) from exc
    protocol = ClientProtocol(uri, max_size=config.max_message_size)
    protocol.send_request(protocol.connect())
    await _transmit(stream, protocol)
    response, pending = await _handshake_event(stream, protocol, Response)
    if protocol.handshake_exc is not None:
        raise WebSocketError(f"handshake failed: {protocol.handshake_exc}") from protocol.handshake_exc
    return WebSocketStream(stream, protocol, config, pending), response


def domain(request: str) -> str:
    """Return the host of a request URL, without IPv6 brackets."""
    _, sep, rest = request.partition("://")
    if not sep:
        raise UrlError("no host name in URL")
    authority = rest.split("/", 1)[0].split("?", 1)[0].split("#", 1)[0]
    host = authority.rpartition("@")[2]
    if host.startswith("["):
        end = host.find("]")
        if end == -1:
            raise UrlError("invalid IPv6 host in URL")
        host = host[1:end]
    else:
        host = host.partition(":")[0]
    if not host:
        raise UrlError("no host name in URL")
    return host