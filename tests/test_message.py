import dataclasses

import pytest

from wsbridge.message import (
    CloseFrame,
    Message,
    MessageType,
    WebSocketConfig,
)


def test_text_message_holds_string():
    message = Message.text("Hello, server!")
    assert message == Message(MessageType.TEXT, "Hello, server!")
    assert message.data == "Hello, server!"


def test_binary_message_converts_sequence_to_bytes():
    message = Message.binary([1, 2, 3, 4, 5])
    assert message.type is MessageType.BINARY
    assert message.data == bytes([1, 2, 3, 4, 5])


def test_ping_and_pong_accept_bytearray():
    assert Message.ping(bytearray(b"*")).data == b"*"
    assert Message.pong(memoryview(b"ok")).data == b"ok"


def test_ping_defaults_to_empty_payload():
    assert Message.ping().data == b""


def test_close_without_frame():
    message = Message.close()
    assert message.type is MessageType.CLOSE
    assert message.data is None


def test_close_with_frame():
    frame = CloseFrame(1000, "bye")
    assert Message.close(frame).data == frame


@pytest.mark.parametrize(
    "factory, payload",
    [
        (Message.text, b"bytes"),
        (Message.binary, "text"),
        (Message.binary, 5),
        (Message.ping, None),
        (Message.close, "reason"),
    ],
)
def test_wrong_payload_type_is_rejected(factory, payload):
    with pytest.raises(TypeError):
        factory(payload)


def test_message_is_immutable():
    message = Message.text("a")
    with pytest.raises(dataclasses.FrozenInstanceError):
        message.data = "b"
    assert message.data == "a"
    assert message == Message.text("a")


@pytest.mark.parametrize("code", [-1, 65536])
def test_close_code_out_of_range(code):
    with pytest.raises(ValueError):
        CloseFrame(code)


def test_close_reason_length_limit():
    longest = "a" * 123
    assert CloseFrame(1000, longest).reason == longest
    with pytest.raises(ValueError):
        CloseFrame(1000, "\u00e9" * 62)


def test_config_rejects_non_positive_limits():
    with pytest.raises(ValueError):
        WebSocketConfig(max_message_size=0)
    with pytest.raises(ValueError):
        WebSocketConfig(max_frame_size=-5)


def test_config_allows_disabled_limits():
    config = WebSocketConfig(max_message_size=None, max_frame_size=None)
    assert config.max_message_size is None
    assert config.max_frame_size is None