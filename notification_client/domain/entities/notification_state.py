"""Observable state of the notification feed."""

from __future__ import annotations

from dataclasses import dataclass, field

from .notification import Notification
from .notification_filter import NotificationFilter


@dataclass(frozen=True)
class NotificationState:
    """Immutable snapshot of everything the UI reads from the store."""

    notifications: tuple[Notification, ...] = ()
    unread_count: int = 0
    is_connected: bool = False
    is_loading: bool = True
    error: str | None = None
    selected_ids: frozenset[int] = field(default_factory=frozenset)
    filter: NotificationFilter = field(default_factory=NotificationFilter)
    # Bumped by every applied snapshot.
    snapshot_version: int = 0

    def find(self, notification_id: int) -> Notification | None:
        for notification in self.notifications:
            if notification.id == notification_id:
                return notification
        return None

    @property
    def ids(self) -> frozenset[int]:
        return frozenset(notification.id for notification in self.notifications)


__all__ = ["NotificationState"]
