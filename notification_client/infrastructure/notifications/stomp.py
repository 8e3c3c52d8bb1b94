"""Minimal STOMP 1.2 frame encoding and decoding for the push channel."""

from __future__ import annotations

from dataclasses import dataclass, field

NULL = "\x00"
EOL = "\n"

_UNESCAPED_COMMANDS = {"CONNECT", "CONNECTED"}
_ESCAPES = (("\\", "\\\\"), ("\r", "\\r"), ("\n", "\\n"), (":", "\\c"))
_UNESCAPES = {"\\\\": "\\", "\\r": "\r", "\\n": "\n", "\\c": ":"}


class StompProtocolError(ValueError):
    """Raised when a frame cannot be parsed."""


@dataclass(frozen=True)
class StompFrame:
    command: str
    headers: dict[str, str] = field(default_factory=dict)
    body: str = ""

    def header(self, name: str, default: str | None = None) -> str | None:
        return self.headers.get(name, default)


def encode_frame(frame: StompFrame) -> str:
    """Serialize ``frame`` including the trailing NULL octet."""

    escape = frame.command not in _UNESCAPED_COMMANDS
    lines = [frame.command]
    for name, value in frame.headers.items():
        if escape:
            name, value = _escape(name), _escape(value)
        lines.append(f"{name}:{value}")
    return EOL.join(lines) + EOL + EOL + frame.body + NULL


def decode_frames(data: str | bytes) -> list[StompFrame]:
    """Parse every frame contained in ``data``; heart-beat EOLs are skipped."""

    if isinstance(data, bytes):
        try:
            data = data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise StompProtocolError(f"Frame is not valid UTF-8: {exc}") from exc

    frames: list[StompFrame] = []
    for chunk in data.split(NULL):
        chunk = chunk.lstrip("\r\n")
        if not chunk:
            continue
        frames.append(_decode_frame(chunk))
    return frames


def connect_frame(host: str, *, heartbeat: tuple[int, int] = (0, 0)) -> StompFrame:
    return StompFrame(
        "CONNECT",
        {
            "accept-version": "1.2,1.1",
            "host": host,
            "heart-beat": f"{heartbeat[0]},{heartbeat[1]}",
        },
    )


def subscribe_frame(destination: str, subscription_id: str) -> StompFrame:
    return StompFrame(
        "SUBSCRIBE",
        {"id": subscription_id, "destination": destination, "ack": "auto"},
    )


def disconnect_frame(receipt: str | None = None) -> StompFrame:
    return StompFrame("DISCONNECT", {"receipt": receipt} if receipt else {})


def _decode_frame(chunk: str) -> StompFrame:
    head, separator, body = chunk.partition(EOL + EOL)
    if not separator:
        head, separator, body = chunk.partition("\r\n\r\n")
    if not separator:
        raise StompProtocolError("Frame is missing the header terminator")

    lines = head.replace("\r\n", EOL).split(EOL)
    command = lines[0].strip()
    if not command:
        raise StompProtocolError("Frame has no command")

    escaped = command not in _UNESCAPED_COMMANDS
    headers: dict[str, str] = {}
    for line in lines[1:]:
        if not line:
            continue
        name, colon, value = line.partition(":")
        if not colon:
            raise StompProtocolError(f"Malformed header line: {line!r}")
        if escaped:
            name, value = _unescape(name), _unescape(value)
        # Repeated headers: the first occurrence wins.
        headers.setdefault(name, value)
    return StompFrame(command, headers, body)


def _escape(value: str) -> str:
    for raw, escaped in _ESCAPES:
        value = value.replace(raw, escaped)
    return value


def _unescape(value: str) -> str:
    result: list[str] = []
    index = 0
    while index < len(value):
        pair = value[index : index + 2]
        if pair in _UNESCAPES:
            result.append(_UNESCAPES[pair])
            index += 2
            continue
        if value[index] == "\\":
            raise StompProtocolError(f"Undefined escape sequence in {value!r}")
        result.append(value[index])
        index += 1
    return "".join(result)


__all__ = [
    "StompFrame",
    "StompProtocolError",
    "connect_frame",
    "decode_frames",
    "disconnect_frame",
    "encode_frame",
    "subscribe_frame",
]
