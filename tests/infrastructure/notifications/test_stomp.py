"""Tests for STOMP frame encoding and decoding."""

import pytest

from notification_client.infrastructure.notifications.stomp import (
    StompFrame,
    StompProtocolError,
    connect_frame,
    decode_frames,
    disconnect_frame,
    encode_frame,
    subscribe_frame,
)


def test_connect_frame_is_not_escaped():
    encoded = encode_frame(connect_frame("localhost", heartbeat=(4000, 4000)))

    assert encoded == (
        "CONNECT\n"
        "accept-version:1.2,1.1\n"
        "host:localhost\n"
        "heart-beat:4000,4000\n"
        "\n"
        "\x00"
    )


def test_subscribe_frame_targets_destination():
    frame = subscribe_frame("/topic/notifications/7", "sub-0")

    assert frame.command == "SUBSCRIBE"
    assert frame.headers == {
        "id": "sub-0",
        "destination": "/topic/notifications/7",
        "ack": "auto",
    }


def test_disconnect_frame_with_receipt():
    assert disconnect_frame("bye").headers == {"receipt": "bye"}
    assert disconnect_frame().headers == {}


def test_header_values_are_escaped_outside_connect():
    frame = StompFrame("SEND", {"note": "a:b\nc\\d"}, "body")

    encoded = encode_frame(frame)

    assert "note:a\\cb\\nc\\\\d" in encoded
    assert decode_frames(encoded) == [frame]


def test_decode_message_with_json_body_and_heartbeats():
    data = (
        "\n"
        "MESSAGE\n"
        "destination:/topic/notifications/1\n"
        "content-type:application/json\n"
        "subscription:sub-0\n"
        "message-id:abc-1\n"
        "\n"
        '{"notificationId": 1}\x00'
        "\n\n"
    )

    frames = decode_frames(data.encode("utf-8"))

    assert len(frames) == 1
    assert frames[0].command == "MESSAGE"
    assert frames[0].header("destination") == "/topic/notifications/1"
    assert frames[0].body == '{"notificationId": 1}'


def test_decode_several_frames_in_one_message():
    data = "CONNECTED\nversion:1.2\nheart-beat:0,0\n\n\x00RECEIPT\nreceipt-id:1\n\n\x00"

    frames = decode_frames(data)

    assert [frame.command for frame in frames] == ["CONNECTED", "RECEIPT"]
    assert frames[0].header("version") == "1.2"


def test_first_repeated_header_wins():
    frames = decode_frames("MESSAGE\nfoo:first\nfoo:second\n\nbody\x00")

    assert frames[0].header("foo") == "first"


def test_heartbeat_only_data_yields_no_frames():
    assert decode_frames("\n") == []
    assert decode_frames("\r\n\n") == []


@pytest.mark.parametrize(
    "data",
    [
        "MESSAGE\nno-terminator",
        "MESSAGE\nbroken-header\n\nbody\x00",
        "MESSAGE\nbad:\\x\n\nbody\x00",
    ],
)
def test_malformed_frames_raise(data):
    with pytest.raises(StompProtocolError):
        decode_frames(data)


def test_invalid_utf8_bytes_raise_protocol_error():
    with pytest.raises(StompProtocolError, match="UTF-8"):
        decode_frames(b"\xff\xfe\x00")
