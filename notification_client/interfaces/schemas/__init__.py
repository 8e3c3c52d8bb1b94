"""Pydantic schemas describing the notification wire format."""

from .notification import (
    MalformedNotificationError,
    NotificationRead,
    UnreadCountRead,
    parse_notification,
    parse_notification_list,
)

__all__ = [
    "MalformedNotificationError",
    "NotificationRead",
    "UnreadCountRead",
    "parse_notification",
    "parse_notification_list",
]
