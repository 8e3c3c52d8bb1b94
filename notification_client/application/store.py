"""Aggregate notification store consumed by the UI layer."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from notification_client.config import Settings, get_settings
from notification_client.domain.entities import (
    BulkAction,
    ConnectionState,
    Notification,
    NotificationFilter,
    NotificationState,
)
from notification_client.infrastructure.notifications import (
    AlertDispatcher,
    AlertHandler,
    NotificationConnectionManager,
    NotificationGateway,
    Scheduler,
    TransportFactory,
    schedule_on_loop,
)
from notification_client.infrastructure.security import CredentialProvider

from .use_cases.notifications import (
    MutationCoordinator,
    load_snapshot,
    reduce,
    visible_notifications,
)
from .use_cases.notifications.ports import REQUEST_ERRORS, NotificationService
from .use_cases.notifications.reducer import (
    AllSelected,
    ConnectionChanged,
    ErrorCleared,
    ErrorRaised,
    FilterChanged,
    LoadFailed,
    LoadStarted,
    PushReceived,
    SelectionCleared,
    SelectionToggled,
    SnapshotLoaded,
)

logger = logging.getLogger(__name__)

LOAD_FAILED = "Failed to fetch notifications"

StateListener = Callable[[NotificationState], None]


class NotificationStore:
    """Live view of one user's notifications plus the actions the UI may take.

    :meth:`start` loads a snapshot and opens the push channel; :meth:`close`
    tears the channel down. REST calls still in flight when the store is
    closed or restarted for another user resolve into nothing.
    """

    def __init__(
        self,
        credential_provider: CredentialProvider,
        *,
        gateway: NotificationService | None = None,
        alert_handler: AlertHandler | None = None,
        settings: Settings | None = None,
        transport_factory: TransportFactory | None = None,
        scheduler: Scheduler = schedule_on_loop,
    ) -> None:
        settings = settings or get_settings()
        self._owns_gateway = gateway is None
        self._gateway = gateway or NotificationGateway(credential_provider, settings=settings)
        self._alerts = AlertDispatcher(alert_handler)
        self._connection = NotificationConnectionManager(
            credential_provider,
            on_notification=self._handle_push,
            on_connection_change=self._handle_connection_change,
            on_error=self._handle_connection_error,
            settings=settings,
            transport_factory=transport_factory,
            scheduler=scheduler,
        )
        self._state = NotificationState()
        self._listeners: list[StateListener] = []
        self._user_id: int | None = None
        self._generation = 0
        self._alive = True

    # -- observable state -------------------------------------------------

    @property
    def state(self) -> NotificationState:
        return self._state

    @property
    def notifications(self) -> tuple[Notification, ...]:
        return self._state.notifications

    @property
    def visible_notifications(self) -> tuple[Notification, ...]:
        return visible_notifications(self._state)

    @property
    def unread_notifications(self) -> tuple[Notification, ...]:
        return tuple(n for n in self.visible_notifications if n.is_unread)

    @property
    def unread_count(self) -> int:
        return self._state.unread_count

    @property
    def is_connected(self) -> bool:
        return self._state.is_connected

    @property
    def is_loading(self) -> bool:
        return self._state.is_loading

    @property
    def error(self) -> str | None:
        return self._state.error

    @property
    def selected_ids(self) -> frozenset[int]:
        return self._state.selected_ids

    @property
    def filter(self) -> NotificationFilter:
        return self._state.filter

    @property
    def connection_state(self) -> ConnectionState:
        return self._connection.state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call ``listener`` after every state change; returns an unsubscribe hook."""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -- lifecycle --------------------------------------------------------

    async def start(self, user_id: int) -> None:
        """Load the snapshot and open the push channel for ``user_id``."""

        if self._user_id is not None and self._user_id != user_id:
            await self._connection.disconnect()
        self._generation += 1
        self._alive = True
        if self._user_id != user_id:
            self._state = NotificationState(filter=self._state.filter)
        self._user_id = user_id
        await asyncio.gather(self.refresh(), self._connection.connect(user_id))

    async def close(self) -> None:
        """Disconnect the push channel and ignore any later REST results."""

        self._generation += 1
        await self._connection.close()
        self._alive = False
        self._user_id = None

    async def aclose(self) -> None:
        await self.close()
        if self._owns_gateway:
            await self._gateway.aclose()

    # -- actions ----------------------------------------------------------

    async def refresh(self) -> None:
        """Replace the collection with a freshly fetched snapshot."""

        if self._user_id is None:
            return
        generation = self._generation
        self._apply(LoadStarted(), generation)
        try:
            notifications = await load_snapshot(self._gateway, self._state.filter)
        except REQUEST_ERRORS:
            logger.exception("Failed to fetch notifications")
            self._apply(LoadFailed(LOAD_FAILED), generation)
            return
        self._apply(SnapshotLoaded(tuple(notifications)), generation)

    async def mark_as_read(self, notification_id: int) -> None:
        await self._mutations().mark_as_read(notification_id)

    async def mark_all_as_read(self) -> None:
        await self._mutations().mark_all_as_read()

    async def dismiss_notification(self, notification_id: int) -> None:
        await self._mutations().dismiss_notification(notification_id)

    async def perform_bulk_action(self, action: BulkAction) -> None:
        await self._mutations().perform_bulk_action(action)

    def toggle_selection(self, notification_id: int) -> None:
        self._apply(SelectionToggled(notification_id))

    def select_all(self) -> None:
        self._apply(AllSelected())

    def clear_selection(self) -> None:
        self._apply(SelectionCleared())

    async def set_filter(self, notification_filter: NotificationFilter) -> None:
        """Replace the filter; reload only when the server-side part changed."""

        previous = self._state.filter
        self._apply(FilterChanged(notification_filter))
        if notification_filter.requires_reload(previous):
            await self.refresh()

    async def reconnect(self) -> None:
        if self._user_id is None:
            return
        await self._connection.reconnect()

    def clear_error(self) -> None:
        self._apply(ErrorCleared())

    # -- internals --------------------------------------------------------

    def _mutations(self) -> MutationCoordinator:
        generation = self._generation
        return MutationCoordinator(
            self._gateway,
            lambda event: self._apply(event, generation),
            lambda: self._state,
        )

    def _handle_push(self, notification: Notification) -> None:
        if not self._apply(PushReceived(notification)):
            return
        if notification.is_unread:
            self._alerts.dispatch(notification)

    def _handle_connection_change(self, is_connected: bool) -> None:
        self._apply(ConnectionChanged(is_connected))

    def _handle_connection_error(self, error: str) -> None:
        self._apply(ErrorRaised(error))

    def _apply(self, event: object, generation: int | None = None) -> bool:
        if not self._alive or (generation is not None and generation != self._generation):
            logger.debug("Discarding %s for a stale store session", type(event).__name__)
            return False
        new_state = reduce(self._state, event)
        if new_state == self._state:
            return True
        self._state = new_state
        for listener in list(self._listeners):
            try:
                listener(new_state)
            except Exception:
                logger.exception("Notification state listener failed")
        return True


__all__ = ["LOAD_FAILED", "NotificationStore", "StateListener"]
