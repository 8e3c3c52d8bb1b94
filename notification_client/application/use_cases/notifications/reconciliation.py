"""Merge REST snapshots and pushed notifications into one ordered collection.

Both sources arrive independently. A snapshot is authoritative for the whole
set at fetch time; a push is authoritative for its own id. Whichever lands
last wins for an overlapping id, so a snapshot fetched before a push but
resolved after it can briefly hide the pushed copy until the next refresh.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable, Mapping

from notification_client.domain.entities import Notification, NotificationState
from notification_client.utils import sort_key_timestamp

from .selection import prune_selection


def sort_notifications(notifications: Iterable[Notification]) -> tuple[Notification, ...]:
    """Return ``notifications`` ordered newest first."""

    return tuple(
        sorted(
            notifications,
            key=lambda notification: sort_key_timestamp(notification.created_at),
            reverse=True,
        )
    )


def count_unread(notifications: Iterable[Notification]) -> int:
    return sum(1 for notification in notifications if notification.is_unread)


def deduplicate(notifications: Iterable[Notification]) -> list[Notification]:
    """Keep one entry per id; a later duplicate replaces the earlier one in place."""

    positions: dict[int, int] = {}
    unique: list[Notification] = []
    for notification in notifications:
        index = positions.get(notification.id)
        if index is None:
            positions[notification.id] = len(unique)
            unique.append(notification)
        else:
            unique[index] = notification
    return unique


def apply_snapshot(
    state: NotificationState, notifications: Iterable[Notification]
) -> NotificationState:
    """Replace the collection wholesale and recompute the unread count."""

    collection = sort_notifications(deduplicate(notifications))
    return prune_selection(
        replace(
            state,
            notifications=collection,
            unread_count=count_unread(collection),
            is_loading=False,
            error=None,
            snapshot_version=state.snapshot_version + 1,
        )
    )


def apply_push(state: NotificationState, notification: Notification) -> NotificationState:
    """Insert or replace ``notification`` and keep the collection sorted.

    Only a previously unseen unread id bumps the unread counter; an update to
    an id already held leaves the counter untouched.
    """

    existing = state.find(notification.id)
    if existing is not None:
        merged = [
            notification if current.id == notification.id else current
            for current in state.notifications
        ]
        adjustment = 0
    else:
        merged = [notification, *state.notifications]
        adjustment = 1 if notification.is_unread else 0

    return replace(
        state,
        notifications=sort_notifications(merged),
        unread_count=state.unread_count + adjustment,
    )


def restore(
    state: NotificationState,
    previous: Iterable[Notification],
    applied: Mapping[int, Notification | None],
    snapshot_version: int,
) -> NotificationState:
    """Put pre-mutation copies back, correcting the unread counter for each.

    ``applied`` maps each id to the entry the mutation left behind (``None``
    when it was removed). An entry that has changed since, through a push or
    a newer snapshot, is newer than the mutation and is kept.
    """

    if state.snapshot_version != snapshot_version:
        return state

    notifications = list(state.notifications)
    unread_count = state.unread_count
    for original in previous:
        index = next(
            (i for i, current in enumerate(notifications) if current.id == original.id),
            None,
        )
        current = notifications[index] if index is not None else None
        if current != applied.get(original.id):
            continue
        if index is None:
            notifications.append(original)
            unread_count += 1 if original.is_unread else 0
        else:
            notifications[index] = original
            unread_count += int(original.is_unread) - int(current.is_unread)

    return replace(
        state,
        notifications=sort_notifications(notifications),
        unread_count=max(0, unread_count),
    )


__all__ = [
    "apply_push",
    "apply_snapshot",
    "count_unread",
    "deduplicate",
    "restore",
    "sort_notifications",
]
