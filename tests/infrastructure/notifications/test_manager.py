"""Tests for the push channel lifecycle and its bounded reconnection."""

import asyncio
import json
import logging

import pytest

from factories import make_payload
from fakes import (
    FakeWebSocket,
    ManualScheduler,
    TransportRecorder,
    failing_token_provider,
    settle,
    token_provider,
)
from notification_client.config import Settings
from notification_client.domain.entities import (
    CONNECTION_CONNECTED,
    CONNECTION_DISCONNECTED,
    CONNECTION_EXHAUSTED,
)
from notification_client.infrastructure.notifications import (
    AUTHENTICATION_FAILED,
    CONNECTION_ERROR,
    CONNECTION_LOST,
    NotificationConnectionManager,
    StompWebSocketTransport,
    TransportError,
)

pytestmark = pytest.mark.anyio

WEBSOCKET_URL = "ws://api.test/ws/notifications/websocket"


class Callbacks:
    def __init__(self) -> None:
        self.notifications = []
        self.connections: list[bool] = []
        self.errors: list[str] = []


def _manager(
    recorder: TransportRecorder,
    scheduler: ManualScheduler,
    callbacks: Callbacks,
    *,
    provider=None,
    **overrides,
) -> NotificationConnectionManager:
    settings = Settings(_env_file=None, api_base_url="http://api.test", **overrides)
    return NotificationConnectionManager(
        provider or token_provider(),
        on_notification=callbacks.notifications.append,
        on_connection_change=callbacks.connections.append,
        on_error=callbacks.errors.append,
        settings=settings,
        transport_factory=recorder,
        scheduler=scheduler,
    )


@pytest.fixture
def recorder():
    return TransportRecorder()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def callbacks():
    return Callbacks()


async def test_connect_authenticates_and_subscribes_to_user_topic(recorder, scheduler, callbacks):
    manager = _manager(recorder, scheduler, callbacks)

    await manager.connect(7)

    transport = recorder.latest
    assert transport.url == f"{WEBSOCKET_URL}?token=test-token"
    assert transport.subscriptions == ["/topic/notifications/7"]
    assert manager.state.status == CONNECTION_CONNECTED
    assert manager.is_connected is True
    assert callbacks.connections == [True]

    await manager.disconnect()


async def test_connect_is_noop_while_connected(recorder, scheduler, callbacks):
    manager = _manager(recorder, scheduler, callbacks)

    await manager.connect(7)
    await manager.connect(7)

    assert len(recorder.created) == 1
    assert callbacks.connections == [True]

    await manager.disconnect()


async def test_connecting_another_user_replaces_the_channel(recorder, scheduler, callbacks):
    manager = _manager(recorder, scheduler, callbacks)

    await manager.connect(1)
    first = recorder.latest
    await manager.connect(2)

    assert first.closed is True
    assert recorder.latest.subscriptions == ["/topic/notifications/2"]
    assert manager.user_id == 2
    assert callbacks.connections == [True, False, True]

    await manager.disconnect()


async def test_pushed_messages_are_parsed_and_delivered(recorder, scheduler, callbacks):
    manager = _manager(recorder, scheduler, callbacks)
    await manager.connect(1)

    recorder.latest.push(json.dumps(make_payload(5, minutes=3)))
    await settle()

    assert [notification.id for notification in callbacks.notifications] == [5]
    assert callbacks.notifications[0].is_unread is True

    await manager.disconnect()


async def test_malformed_messages_are_dropped_and_logged(recorder, scheduler, callbacks, caplog):
    manager = _manager(recorder, scheduler, callbacks)
    await manager.connect(1)

    with caplog.at_level(logging.WARNING):
        recorder.latest.push("not json")
        recorder.latest.push(json.dumps({"notificationId": "abc"}))
        recorder.latest.push(json.dumps(make_payload(6)))
        await settle()

    assert [notification.id for notification in callbacks.notifications] == [6]
    assert "Dropping malformed push message" in caplog.text
    assert manager.is_connected is True

    await manager.disconnect()


async def test_credential_failure_reports_error_without_retry(recorder, scheduler, callbacks):
    manager = _manager(recorder, scheduler, callbacks, provider=failing_token_provider())

    await manager.connect(1)

    assert callbacks.errors == [AUTHENTICATION_FAILED]
    assert recorder.created == []
    assert scheduler.timers == []
    assert manager.state.status == CONNECTION_DISCONNECTED


async def test_unrequested_close_schedules_reconnect(recorder, scheduler, callbacks):
    manager = _manager(recorder, scheduler, callbacks)
    await manager.connect(1)
    transport = recorder.latest

    transport.drop()
    await settle()

    assert transport.closed is True
    assert callbacks.connections == [True, False]
    assert callbacks.errors == []
    assert scheduler.delays == [1.0]
    assert manager.state.retry_count == 1

    await scheduler.fire_next()

    assert len(recorder.created) == 2
    assert manager.is_connected is True
    assert manager.state.retry_count == 0

    await manager.disconnect()


async def test_transport_error_reports_connection_error(recorder, scheduler, callbacks):
    manager = _manager(recorder, scheduler, callbacks)
    await manager.connect(1)

    recorder.latest.drop(TransportError("Connection lost: 1006"))
    await settle()

    assert callbacks.errors == [CONNECTION_ERROR]
    assert scheduler.delays == [1.0]


async def test_retries_stop_after_five_attempts(callbacks, scheduler):
    recorder = TransportRecorder(fail_open=True)
    manager = _manager(recorder, scheduler, callbacks)

    await manager.connect(1)
    for _ in range(5):
        await scheduler.fire_next()

    assert len(recorder.created) == 6
    assert scheduler.delays == [1.0, 2.0, 3.0, 4.0, 5.0]
    assert scheduler.pending == []
    assert manager.state.status == CONNECTION_EXHAUSTED
    assert manager.state.retry_count == 5
    assert callbacks.errors == [CONNECTION_ERROR] * 6 + [CONNECTION_LOST]
    assert callbacks.connections == []


async def test_backoff_is_scaled_by_base_delay(callbacks, scheduler):
    recorder = TransportRecorder(fail_open=True)
    manager = _manager(
        recorder, scheduler, callbacks, reconnect_base_delay=0.5, max_reconnect_attempts=2
    )

    await manager.connect(1)
    await scheduler.fire_next()
    await scheduler.fire_next()

    assert scheduler.delays == [0.5, 1.0]
    assert callbacks.errors[-1] == CONNECTION_LOST


async def test_successful_connect_resets_retry_budget(callbacks, scheduler):
    recorder = TransportRecorder(fail_open=True)
    manager = _manager(recorder, scheduler, callbacks)

    await manager.connect(1)
    await scheduler.fire_next()
    recorder.fail_open = False
    await scheduler.fire_next()

    assert manager.state.status == CONNECTION_CONNECTED
    assert manager.state.retry_count == 0

    recorder.latest.drop()
    await settle()

    assert scheduler.delays == [1.0, 2.0, 1.0]

    await manager.disconnect()


async def test_disconnect_cancels_pending_retry(callbacks, scheduler):
    recorder = TransportRecorder(fail_open=True)
    manager = _manager(recorder, scheduler, callbacks)
    await manager.connect(1)
    timer = scheduler.timers[0]

    await manager.disconnect()
    await manager.disconnect()

    assert timer.cancelled is True
    assert scheduler.pending == []
    assert manager.state.status == CONNECTION_DISCONNECTED


async def test_disconnect_does_not_schedule_reconnect(recorder, scheduler, callbacks):
    manager = _manager(recorder, scheduler, callbacks)
    await manager.connect(1)
    transport = recorder.latest

    await manager.disconnect()
    await settle()

    assert transport.closed is True
    assert scheduler.timers == []
    assert callbacks.connections == [True, False]


async def test_disconnect_during_handshake_discards_the_attempt(recorder, scheduler, callbacks):
    release = asyncio.Event()

    async def slow_provider():
        await release.wait()
        return "Bearer late-token"

    manager = _manager(recorder, scheduler, callbacks, provider=slow_provider)
    pending = asyncio.get_running_loop().create_task(manager.connect(1))
    await settle()

    await manager.disconnect()
    release.set()
    await pending

    assert recorder.created == []
    assert manager.is_connected is False
    assert scheduler.timers == []


async def test_manual_reconnect_resets_budget_after_exhaustion(callbacks, scheduler):
    recorder = TransportRecorder(fail_open=True)
    manager = _manager(
        recorder, scheduler, callbacks, max_reconnect_attempts=1, manual_reconnect_delay=0.25
    )
    await manager.connect(1)
    await scheduler.fire_next()
    assert manager.state.status == CONNECTION_EXHAUSTED

    recorder.fail_open = False
    await manager.reconnect()

    assert scheduler.delays == [1.0, 0.25]
    assert manager.state.retry_count == 0

    await scheduler.fire_next()

    assert manager.is_connected is True
    assert recorder.latest.subscriptions == ["/topic/notifications/1"]

    await manager.disconnect()


async def test_undecodable_frame_closes_channel_and_schedules_retry(scheduler, callbacks):
    websocket = FakeWebSocket(["CONNECTED\nversion:1.2\n\n\x00", b"\xff\xfe\x00"])
    created: list[StompWebSocketTransport] = []

    async def open_websocket(url):
        return websocket

    def factory(url):
        transport = StompWebSocketTransport(url, connect=open_websocket)
        created.append(transport)
        return transport

    manager = NotificationConnectionManager(
        token_provider(),
        on_notification=callbacks.notifications.append,
        on_connection_change=callbacks.connections.append,
        on_error=callbacks.errors.append,
        settings=Settings(_env_file=None, api_base_url="http://api.test"),
        transport_factory=factory,
        scheduler=scheduler,
    )

    await manager.connect(1)
    await settle()

    assert len(created) == 1
    assert websocket.closed is True
    assert manager.is_connected is False
    assert callbacks.connections == [True, False]
    assert callbacks.errors == [CONNECTION_ERROR]
    assert scheduler.delays == [1.0]


async def test_unexpected_reader_failure_goes_through_retry(recorder, scheduler, callbacks):
    manager = _manager(recorder, scheduler, callbacks)
    await manager.connect(1)

    recorder.latest.drop(RuntimeError("decoder bug"))
    await settle()

    assert recorder.latest.closed is True
    assert manager.is_connected is False
    assert callbacks.errors == [CONNECTION_ERROR]
    assert scheduler.delays == [1.0]


async def test_close_forgets_user_so_reconnect_is_a_noop(recorder, scheduler, callbacks):
    manager = _manager(recorder, scheduler, callbacks)
    await manager.connect(7)

    await manager.close()
    await manager.reconnect()

    assert manager.user_id is None
    assert manager.state.status == CONNECTION_DISCONNECTED
    assert scheduler.timers == []
    assert len(recorder.created) == 1
    assert recorder.latest.closed is True


async def test_retry_timer_firing_after_close_does_not_connect(callbacks, scheduler):
    recorder = TransportRecorder(fail_open=True)
    manager = _manager(recorder, scheduler, callbacks)
    await manager.connect(1)
    timer = scheduler.timers[0]

    await manager.close()
    await timer.callback()

    assert len(recorder.created) == 1
    assert manager.is_connected is False
