"""Filter applied to the notification list."""

from __future__ import annotations

from dataclasses import dataclass

from .notification import Notification


@dataclass(frozen=True)
class NotificationFilter:
    """Value object describing which notifications the user wants to see.

    ``unread_only`` is enforced by the server when the snapshot is fetched;
    ``priority`` and ``notification_type`` only narrow the loaded list.
    """

    unread_only: bool = False
    priority: str | None = None
    notification_type: str | None = None

    def matches(self, notification: Notification) -> bool:
        if self.unread_only and notification.read_status:
            return False
        if self.priority is not None and notification.priority != self.priority:
            return False
        if (
            self.notification_type is not None
            and notification.notification_type != self.notification_type
        ):
            return False
        return True

    def requires_reload(self, previous: "NotificationFilter") -> bool:
        """Return ``True`` when switching from ``previous`` needs a new snapshot."""

        return self.unread_only != previous.unread_only


__all__ = ["NotificationFilter"]
