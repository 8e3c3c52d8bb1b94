"""Websocket transport carrying STOMP frames for the push channel."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Any, AsyncIterator, Awaitable, Callable, Protocol
from urllib.parse import urlsplit

from websockets.asyncio.client import connect as websocket_connect
from websockets.exceptions import ConnectionClosed, ConnectionClosedOK, WebSocketException

from .stomp import (
    EOL,
    StompFrame,
    StompProtocolError,
    connect_frame,
    decode_frames,
    disconnect_frame,
    encode_frame,
    subscribe_frame,
)

logger = logging.getLogger(__name__)


class TransportError(RuntimeError):
    """Raised when the push channel fails during handshake or delivery."""


class PushTransport(Protocol):
    """Connection able to deliver message bodies published on a topic."""

    async def open(self) -> None: ...

    async def subscribe(self, destination: str) -> None: ...

    def messages(self) -> AsyncIterator[str]: ...

    async def close(self) -> None: ...


TransportFactory = Callable[[str], PushTransport]


class StompWebSocketTransport:
    """STOMP session over a single websocket connection."""

    def __init__(
        self,
        url: str,
        *,
        heartbeat: tuple[int, int] = (0, 0),
        connect: Callable[[str], Awaitable[Any]] = websocket_connect,
    ) -> None:
        self._url = url
        self._heartbeat = heartbeat
        self._connect = connect
        self._connection: Any = None
        self._pending: deque[StompFrame] = deque()
        self._subscriptions = 0
        self._heartbeat_task: asyncio.Task[None] | None = None

    async def open(self) -> None:
        """Open the websocket and complete the STOMP CONNECT handshake."""

        try:
            self._connection = await self._connect(self._url)
        except (OSError, asyncio.TimeoutError, WebSocketException) as exc:
            raise TransportError(f"Could not open websocket: {exc}") from exc

        host = urlsplit(self._url).hostname or "localhost"
        await self._send(connect_frame(host, heartbeat=self._heartbeat))
        frame = await self._next_frame()
        if frame is None:
            raise TransportError("Connection closed during STOMP handshake")
        if frame.command == "ERROR":
            raise TransportError(_error_message(frame))
        if frame.command != "CONNECTED":
            raise TransportError(f"Unexpected {frame.command} frame during handshake")

        interval = _negotiate_heartbeat(self._heartbeat[0], frame.header("heart-beat"))
        if interval:
            self._heartbeat_task = asyncio.get_running_loop().create_task(
                self._send_heartbeats(interval)
            )
        logger.debug("STOMP session established (version %s)", frame.header("version"))

    async def subscribe(self, destination: str) -> None:
        subscription_id = f"sub-{self._subscriptions}"
        self._subscriptions += 1
        await self._send(subscribe_frame(destination, subscription_id))

    async def messages(self) -> AsyncIterator[str]:
        """Yield MESSAGE bodies until the connection closes cleanly."""

        while True:
            frame = await self._next_frame()
            if frame is None:
                return
            if frame.command == "MESSAGE":
                yield frame.body
            elif frame.command == "ERROR":
                raise TransportError(_error_message(frame))
            else:
                logger.debug("Ignoring %s frame", frame.command)

    async def close(self) -> None:
        if self._heartbeat_task is not None:
            self._heartbeat_task.cancel()
            self._heartbeat_task = None
        connection, self._connection = self._connection, None
        if connection is None:
            return
        try:
            await connection.send(encode_frame(disconnect_frame()))
        except WebSocketException as exc:
            logger.debug("Could not send DISCONNECT frame: %s", exc)
        await connection.close()

    async def _send(self, frame: StompFrame) -> None:
        if self._connection is None:
            raise TransportError("Transport is not open")
        logger.debug("STOMP >>> %s", frame.command)
        try:
            await self._connection.send(encode_frame(frame))
        except WebSocketException as exc:
            raise TransportError(f"Could not send {frame.command} frame") from exc

    async def _next_frame(self) -> StompFrame | None:
        while not self._pending:
            if self._connection is None:
                return None
            try:
                data = await self._connection.recv()
            except ConnectionClosedOK:
                return None
            except ConnectionClosed as exc:
                raise TransportError(f"Connection lost: {exc}") from exc
            try:
                self._pending.extend(decode_frames(data))
            except StompProtocolError as exc:
                raise TransportError(f"Invalid STOMP frame: {exc}") from exc
        frame = self._pending.popleft()
        logger.debug("STOMP <<< %s", frame.command)
        return frame

    async def _send_heartbeats(self, interval_ms: int) -> None:
        while self._connection is not None:
            await asyncio.sleep(interval_ms / 1000)
            connection = self._connection
            if connection is None:
                return
            try:
                await connection.send(EOL)
            except WebSocketException as exc:
                logger.debug("Stopping heart-beats: %s", exc)
                return


def _negotiate_heartbeat(client_outgoing: int, server_header: str | None) -> int:
    """Return the outgoing heart-beat interval agreed with the server (0 = none)."""

    if not client_outgoing or not server_header:
        return 0
    try:
        _, server_incoming = (int(part) for part in server_header.split(","))
    except ValueError:
        return 0
    if not server_incoming:
        return 0
    return max(client_outgoing, server_incoming)


def _error_message(frame: StompFrame) -> str:
    return frame.header("message") or frame.body.strip() or "STOMP error"


def websocket_transport_factory(
    heartbeat: tuple[int, int] = (0, 0),
) -> TransportFactory:
    """Return a factory building :class:`StompWebSocketTransport` instances."""

    def factory(url: str) -> PushTransport:
        return StompWebSocketTransport(url, heartbeat=heartbeat)

    return factory


__all__ = [
    "PushTransport",
    "StompWebSocketTransport",
    "TransportError",
    "TransportFactory",
    "websocket_transport_factory",
]
