"""State transitions of the notification feed.

Every change to :class:`NotificationState` is expressed as an event passed to
:func:`reduce`, which returns the next state without side effects.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from functools import singledispatch

from notification_client.domain.entities import (
    BULK_ACTION_DISMISS,
    BULK_ACTION_MARK_AS_READ,
    BulkAction,
    Notification,
    NotificationFilter,
    NotificationState,
)

from .reconciliation import apply_push, apply_snapshot, restore
from .selection import (
    change_filter,
    clear_selection,
    prune_selection,
    select_all,
    toggle_selection,
)


@dataclass(frozen=True)
class LoadStarted:
    pass


@dataclass(frozen=True)
class SnapshotLoaded:
    notifications: tuple[Notification, ...]


@dataclass(frozen=True)
class LoadFailed:
    error: str


@dataclass(frozen=True)
class PushReceived:
    notification: Notification


@dataclass(frozen=True)
class ReadMarked:
    notification_id: int
    read_at: datetime


@dataclass(frozen=True)
class AllReadMarked:
    read_at: datetime


@dataclass(frozen=True)
class NotificationDismissed:
    notification_id: int


@dataclass(frozen=True)
class BulkActionApplied:
    action: BulkAction
    read_at: datetime


@dataclass(frozen=True)
class NotificationsRestored:
    """Compensates a failed mutation with the copies held before it ran.

    ``applied`` holds what the mutation left for each id and
    ``snapshot_version`` the snapshot it was applied to.
    """

    previous: tuple[Notification, ...]
    applied: dict[int, Notification | None]
    snapshot_version: int


@dataclass(frozen=True)
class SelectionToggled:
    notification_id: int


@dataclass(frozen=True)
class AllSelected:
    pass


@dataclass(frozen=True)
class SelectionCleared:
    pass


@dataclass(frozen=True)
class FilterChanged:
    filter: NotificationFilter


@dataclass(frozen=True)
class ConnectionChanged:
    is_connected: bool


@dataclass(frozen=True)
class ErrorRaised:
    error: str


@dataclass(frozen=True)
class ErrorCleared:
    pass


def reduce(state: NotificationState, event: object) -> NotificationState:
    """Return the state that results from applying ``event`` to ``state``."""

    return _transition(event, state)


@singledispatch
def _transition(event: object, state: NotificationState) -> NotificationState:
    raise TypeError(f"Unsupported notification event: {type(event).__name__}")


@_transition.register
def _(event: LoadStarted, state: NotificationState) -> NotificationState:
    return replace(state, is_loading=True, error=None)


@_transition.register
def _(event: SnapshotLoaded, state: NotificationState) -> NotificationState:
    return apply_snapshot(state, event.notifications)


@_transition.register
def _(event: LoadFailed, state: NotificationState) -> NotificationState:
    return replace(state, is_loading=False, error=event.error)


@_transition.register
def _(event: PushReceived, state: NotificationState) -> NotificationState:
    return apply_push(state, event.notification)


@_transition.register
def _(event: ReadMarked, state: NotificationState) -> NotificationState:
    return _mark_read(state, {event.notification_id}, event.read_at)


@_transition.register
def _(event: AllReadMarked, state: NotificationState) -> NotificationState:
    notifications = tuple(
        notification.mark_read(event.read_at) if notification.is_unread else notification
        for notification in state.notifications
    )
    return replace(state, notifications=notifications, unread_count=0)


@_transition.register
def _(event: NotificationDismissed, state: NotificationState) -> NotificationState:
    return _dismiss(state, {event.notification_id})


@_transition.register
def _(event: BulkActionApplied, state: NotificationState) -> NotificationState:
    ids = set(event.action.ids)
    if event.action.type == BULK_ACTION_MARK_AS_READ:
        state = _mark_read(state, ids, event.read_at)
    elif event.action.type == BULK_ACTION_DISMISS:
        state = _dismiss(state, ids)
    return clear_selection(state)


@_transition.register
def _(event: NotificationsRestored, state: NotificationState) -> NotificationState:
    return restore(state, event.previous, event.applied, event.snapshot_version)


@_transition.register
def _(event: SelectionToggled, state: NotificationState) -> NotificationState:
    return toggle_selection(state, event.notification_id)


@_transition.register
def _(event: AllSelected, state: NotificationState) -> NotificationState:
    return select_all(state)


@_transition.register
def _(event: SelectionCleared, state: NotificationState) -> NotificationState:
    return clear_selection(state)


@_transition.register
def _(event: FilterChanged, state: NotificationState) -> NotificationState:
    return change_filter(state, event.filter)


@_transition.register
def _(event: ConnectionChanged, state: NotificationState) -> NotificationState:
    if event.is_connected:
        return replace(state, is_connected=True, error=None)
    return replace(state, is_connected=False)


@_transition.register
def _(event: ErrorRaised, state: NotificationState) -> NotificationState:
    return replace(state, error=event.error)


@_transition.register
def _(event: ErrorCleared, state: NotificationState) -> NotificationState:
    return replace(state, error=None)


def _mark_read(
    state: NotificationState, ids: set[int], read_at: datetime
) -> NotificationState:
    marked = 0
    notifications: list[Notification] = []
    for notification in state.notifications:
        if notification.id in ids and notification.is_unread:
            notification = notification.mark_read(read_at)
            marked += 1
        notifications.append(notification)
    return replace(
        state,
        notifications=tuple(notifications),
        unread_count=max(0, state.unread_count - marked),
    )


def _dismiss(state: NotificationState, ids: set[int]) -> NotificationState:
    removed_unread = sum(
        1 for n in state.notifications if n.id in ids and n.is_unread
    )
    return prune_selection(
        replace(
            state,
            notifications=tuple(n for n in state.notifications if n.id not in ids),
            unread_count=max(0, state.unread_count - removed_unread),
        )
    )


__all__ = [
    "AllReadMarked",
    "AllSelected",
    "BulkActionApplied",
    "ConnectionChanged",
    "ErrorCleared",
    "ErrorRaised",
    "FilterChanged",
    "LoadFailed",
    "LoadStarted",
    "NotificationDismissed",
    "NotificationsRestored",
    "PushReceived",
    "ReadMarked",
    "SelectionCleared",
    "SelectionToggled",
    "SnapshotLoaded",
    "reduce",
]
