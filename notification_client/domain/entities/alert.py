"""User-facing alert raised when a notification is pushed."""

from __future__ import annotations

from dataclasses import dataclass

from .notification import Notification


@dataclass(frozen=True)
class Alert:
    """Toast content derived from a pushed notification."""

    notification_id: int
    title: str
    description: str
    link: str | None = None

    @classmethod
    def from_notification(cls, notification: Notification) -> "Alert":
        return cls(
            notification_id=notification.id,
            title=notification.subject,
            description=notification.message,
            link=notification.link,
        )


__all__ = ["Alert"]
