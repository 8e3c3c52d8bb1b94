"""Lifecycle management of the per-user push subscription."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Protocol
from urllib.parse import urlencode

from notification_client.config import Settings, get_settings
from notification_client.domain.entities import (
    CONNECTION_CONNECTED,
    CONNECTION_CONNECTING,
    CONNECTION_DISCONNECTED,
    CONNECTION_EXHAUSTED,
    ConnectionState,
    Notification,
)
from notification_client.infrastructure.security import (
    CredentialError,
    CredentialProvider,
    fetch_token,
    strip_bearer_prefix,
)
from notification_client.interfaces.schemas import (
    MalformedNotificationError,
    parse_notification,
)

from .transport import (
    PushTransport,
    TransportError,
    TransportFactory,
    websocket_transport_factory,
)

logger = logging.getLogger(__name__)

AUTHENTICATION_FAILED = "Authentication failed"
CONNECTION_ERROR = "WebSocket connection error"
CONNECT_FAILED = "Failed to connect to notification server"
CONNECTION_LOST = "Lost connection to notification server"


class Cancellable(Protocol):
    def cancel(self) -> object: ...


Scheduler = Callable[[float, Callable[[], Awaitable[None]]], Cancellable]


def schedule_on_loop(delay: float, callback: Callable[[], Awaitable[None]]) -> Cancellable:
    """Run ``callback`` on the running loop after ``delay`` seconds."""

    async def _delayed() -> None:
        await asyncio.sleep(delay)
        await callback()

    return asyncio.get_running_loop().create_task(_delayed())


class NotificationConnectionManager:
    """Own at most one authenticated push subscription and recover it after failures.

    Closures not requested through :meth:`disconnect` schedule a new attempt
    after ``reconnect_base_delay * attempt`` seconds, up to
    ``max_reconnect_attempts`` times. Once exhausted, only :meth:`reconnect`
    resumes attempts.
    """

    def __init__(
        self,
        credential_provider: CredentialProvider,
        *,
        on_notification: Callable[[Notification], None],
        on_connection_change: Callable[[bool], None],
        on_error: Callable[[str], None],
        settings: Settings | None = None,
        transport_factory: TransportFactory | None = None,
        scheduler: Scheduler = schedule_on_loop,
    ) -> None:
        self._settings = settings or get_settings()
        self._credential_provider = credential_provider
        self._on_notification = on_notification
        self._on_connection_change = on_connection_change
        self._on_error = on_error
        self._transport_factory = transport_factory or websocket_transport_factory(
            (self._settings.heartbeat_outgoing_ms, self._settings.heartbeat_incoming_ms)
        )
        self._scheduler = scheduler

        self._state = ConnectionState()
        self._user_id: int | None = None
        self._transport: PushTransport | None = None
        self._reader: asyncio.Task[None] | None = None
        self._timer: Cancellable | None = None
        self._attempt = 0

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state.is_connected

    @property
    def user_id(self) -> int | None:
        return self._user_id

    async def connect(self, user_id: int) -> None:
        """Open the push channel for ``user_id``; no-op if it is already open."""

        if self._user_id == user_id and self._state.is_active:
            return
        if self._user_id is not None and self._user_id != user_id:
            await self.disconnect()
            self._state = ConnectionState()

        self._user_id = user_id
        self._cancel_timer()
        self._attempt += 1
        attempt = self._attempt
        self._state = ConnectionState(CONNECTION_CONNECTING, self._state.retry_count)
        logger.info("Connecting push channel for user %s", user_id)

        try:
            token = await fetch_token(self._credential_provider)
        except CredentialError:
            logger.exception("Failed to get auth token for the push channel")
            self._state = ConnectionState(CONNECTION_DISCONNECTED, self._state.retry_count)
            self._on_error(AUTHENTICATION_FAILED)
            return

        if attempt != self._attempt or self._state.status != CONNECTION_CONNECTING:
            return

        try:
            transport = self._transport_factory(self._build_url(token))
        except (TransportError, ValueError) as exc:
            logger.error("Failed to create push transport: %s", exc)
            self._state = ConnectionState(CONNECTION_DISCONNECTED, self._state.retry_count)
            self._on_error(CONNECT_FAILED)
            return

        self._transport = transport
        try:
            await transport.open()
        except TransportError as exc:
            logger.error("Push channel handshake failed: %s", exc)
            await self._handle_closed(transport, error=CONNECTION_ERROR)
            return

        if transport is not self._transport:
            await transport.close()
            return

        self._state = ConnectionState(CONNECTION_CONNECTED, 0)
        self._on_connection_change(True)
        logger.info("Push channel connected for user %s", user_id)

        topic = self._settings.topic_for_user(user_id)
        try:
            await transport.subscribe(topic)
        except TransportError as exc:
            logger.error("Subscription to %s failed: %s", topic, exc)
            await self._handle_closed(transport, error=CONNECTION_ERROR)
            return
        logger.debug("Subscribed to topic %s", topic)

        self._reader = asyncio.get_running_loop().create_task(self._pump(transport))

    async def disconnect(self) -> None:
        """Cancel pending retries and tear the channel down. Idempotent."""

        self._cancel_timer()
        self._attempt += 1
        transport, self._transport = self._transport, None
        reader, self._reader = self._reader, None

        if reader is not None and reader is not asyncio.current_task():
            reader.cancel()
            await asyncio.wait([reader])
        if transport is not None:
            logger.info("Disconnecting push channel")
            await transport.close()

        was_active = self._state.is_active
        self._state = ConnectionState(CONNECTION_DISCONNECTED, self._state.retry_count)
        if was_active:
            self._on_connection_change(False)

    async def reconnect(self) -> None:
        """Drop the current channel and start over with a fresh retry budget."""

        user_id = self._user_id
        await self.disconnect()
        self._state = ConnectionState()
        if user_id is None:
            return
        logger.info("Manual reconnect requested for user %s", user_id)
        self._timer = self._scheduler(self._settings.manual_reconnect_delay, self._retry)

    async def close(self) -> None:
        """Tear the channel down and forget the user until the next :meth:`connect`."""

        await self.disconnect()
        self._user_id = None
        self._state = ConnectionState()

    async def _pump(self, transport: PushTransport) -> None:
        error: str | None = None
        try:
            async for body in transport.messages():
                self._handle_message(body)
        except TransportError as exc:
            logger.error("Push channel failed: %s", exc)
            error = CONNECTION_ERROR
        except Exception:
            logger.exception("Push channel reader crashed")
            error = CONNECTION_ERROR
        await self._handle_closed(transport, error=error)

    def _handle_message(self, body: str) -> None:
        try:
            notification = parse_notification(body)
        except MalformedNotificationError as exc:
            logger.warning("Dropping malformed push message: %s", exc)
            return
        logger.debug("Received notification %s", notification.id)
        self._on_notification(notification)

    async def _handle_closed(self, transport: PushTransport, *, error: str | None) -> None:
        if transport is not self._transport:
            return
        self._transport = None
        if self._reader is asyncio.current_task():
            self._reader = None
        await transport.close()

        was_connected = self._state.is_connected
        self._state = ConnectionState(CONNECTION_DISCONNECTED, self._state.retry_count)
        if was_connected:
            self._on_connection_change(False)
        if error is not None:
            self._on_error(error)
        logger.info("Push channel closed")
        self._schedule_retry()

    def _schedule_retry(self) -> None:
        attempts = self._state.retry_count
        limit = self._settings.max_reconnect_attempts
        if attempts >= limit:
            logger.error("Max reconnection attempts reached (%s)", limit)
            self._state = ConnectionState(CONNECTION_EXHAUSTED, attempts)
            self._on_error(CONNECTION_LOST)
            return

        attempts += 1
        delay = self._settings.reconnect_base_delay * attempts
        self._state = ConnectionState(CONNECTION_DISCONNECTED, attempts)
        logger.info("Reconnecting in %.1fs (attempt %s/%s)", delay, attempts, limit)
        self._timer = self._scheduler(delay, self._retry)

    async def _retry(self) -> None:
        self._timer = None
        if self._user_id is None:
            return
        await self.connect(self._user_id)

    def _cancel_timer(self) -> None:
        timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()

    def _build_url(self, token: str) -> str:
        url = self._settings.resolved_websocket_url()
        raw = strip_bearer_prefix(token)
        if not raw:
            return url
        separator = "&" if "?" in url else "?"
        return f"{url}{separator}{urlencode({'token': raw})}"


__all__ = [
    "AUTHENTICATION_FAILED",
    "CONNECTION_ERROR",
    "CONNECT_FAILED",
    "CONNECTION_LOST",
    "NotificationConnectionManager",
    "Scheduler",
    "schedule_on_loop",
]
