"""Messages, close frames, connection settings and errors of WebSocket connections."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Union

MAX_CLOSE_REASON_BYTES = 123
MAX_CLOSE_CODE = 0xFFFF


class WebSocketError(Exception):
    """Raised when a WebSocket operation fails."""


class UrlError(WebSocketError):
    """Raised when a request URL cannot be used for a WebSocket connection."""


class MessageType(enum.Enum):
    """Kinds of messages carried over a WebSocket."""

    TEXT = "text"
    BINARY = "binary"
    PING = "ping"
    PONG = "pong"
    CLOSE = "close"


@dataclass(frozen=True)
class CloseFrame:
    """Status code and reason sent or received with a close message."""

    code: int
    reason: str = ""

    def __post_init__(self) -> None:
        if not 0 <= self.code <= MAX_CLOSE_CODE:
            raise ValueError(f"close code out of range: {self.code}")
        if len(self.reason.encode("utf-8")) > MAX_CLOSE_REASON_BYTES:
            raise ValueError(
                f"close reason longer than {MAX_CLOSE_REASON_BYTES} bytes"
            )


@dataclass(frozen=True)
class WebSocketConfig:
    """Limits applied to a WebSocket connection; None disables a limit."""

    max_message_size: int | None = 64 << 20
    max_frame_size: int | None = 16 << 20

    def __post_init__(self) -> None:
        for name in ("max_message_size", "max_frame_size"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise ValueError(f"{name} must be positive or None")


Payload = Union[str, bytes, CloseFrame, None]


def _as_bytes(data: object) -> bytes:
    if isinstance(data, (str, int, CloseFrame)) or data is None:
        raise TypeError(f"expected bytes-like payload, got {type(data).__name__}")
    return bytes(data)  # type: ignore[arg-type]


@dataclass(frozen=True)
class Message:
    """A single WebSocket message."""

    type: MessageType
    data: Payload = None

    def __post_init__(self) -> None:
        if self.type is MessageType.TEXT:
            if not isinstance(self.data, str):
                raise TypeError("text messages carry str data")
        elif self.type is MessageType.CLOSE:
            if self.data is not None and not isinstance(self.data, CloseFrame):
                raise TypeError("close messages carry a CloseFrame or None")
        else:
            object.__setattr__(self, "data", _as_bytes(self.data))

    @classmethod
    def text(cls, data: str) -> Message:
        return cls(MessageType.TEXT, data)

    @classmethod
    def binary(cls, data) -> Message:
        return cls(MessageType.BINARY, data)

    @classmethod
    def ping(cls, data=b"") -> Message:
        return cls(MessageType.PING, data)

    @classmethod
    def pong(cls, data=b"") -> Message:
        return cls(MessageType.PONG, data)

    @classmethod
    def close(cls, frame: CloseFrame | None = None) -> Message:
        return cls(MessageType.CLOSE, frame)