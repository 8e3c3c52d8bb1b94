"""Client-side selection bookkeeping and display projection."""

from __future__ import annotations

from dataclasses import replace

from notification_client.domain.entities import (
    Notification,
    NotificationFilter,
    NotificationState,
)


def visible_notifications(state: NotificationState) -> tuple[Notification, ...]:
    """Return the loaded notifications that pass the current filter."""

    return tuple(n for n in state.notifications if state.filter.matches(n))


def toggle_selection(state: NotificationState, notification_id: int) -> NotificationState:
    if notification_id in state.selected_ids:
        return replace(state, selected_ids=state.selected_ids - {notification_id})
    if state.find(notification_id) is None:
        return state
    return replace(state, selected_ids=state.selected_ids | {notification_id})


def select_all(state: NotificationState) -> NotificationState:
    ids = frozenset(notification.id for notification in visible_notifications(state))
    return replace(state, selected_ids=state.selected_ids | ids)


def clear_selection(state: NotificationState) -> NotificationState:
    return replace(state, selected_ids=frozenset())


def prune_selection(state: NotificationState) -> NotificationState:
    """Drop selected ids whose notification is no longer in the collection."""

    present = state.ids
    kept = frozenset(i for i in state.selected_ids if i in present)
    if kept == state.selected_ids:
        return state
    return replace(state, selected_ids=kept)


def change_filter(state: NotificationState, new_filter: NotificationFilter) -> NotificationState:
    return replace(state, filter=new_filter)


__all__ = [
    "change_filter",
    "clear_selection",
    "prune_selection",
    "select_all",
    "toggle_selection",
    "visible_notifications",
]
