"""Domain entity representing a user notification."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime

PRIORITY_HIGH = "HIGH"
PRIORITY_MEDIUM = "MEDIUM"
PRIORITY_LOW = "LOW"
PRIORITIES = (PRIORITY_HIGH, PRIORITY_MEDIUM, PRIORITY_LOW)

CHANNEL_IN_APP = "IN_APP"
CHANNEL_EMAIL = "EMAIL"
CHANNEL_SMS = "SMS"

# Types known at the time of writing; the server owns the set.
NOTIFICATION_TYPES = (
    "MENTION",
    "COMMENT_REPLY",
    "TASK_ASSIGNED",
    "TASK_COMPLETED",
    "TASK_DEADLINE_APPROACHING",
    "PROJECT_INVITE",
    "PROJECT_MEMBER_JOINED",
    "PROJECT_DEADLINE_APPROACHING",
    "USER_REGISTERED",
    "PASSWORD_RESET_REQUESTED",
    "SYSTEM_MAINTENANCE",
    "SECURITY_ALERT",
)


@dataclass(frozen=True)
class Notification:
    """Information message delivered to a specific user."""

    id: int
    author_id: int | None
    target_id: int
    notification_type: str
    subject: str
    message: str
    created_at: datetime
    channels: frozenset[str] = field(default_factory=frozenset)
    read_status: bool = False
    read_at: datetime | None = None
    dismissed_status: bool = False
    priority: str = PRIORITY_MEDIUM
    link: str | None = None

    @property
    def is_unread(self) -> bool:
        return not self.read_status

    def mark_read(self, read_at: datetime) -> "Notification":
        """Return a copy flagged as read at ``read_at``."""

        return replace(self, read_status=True, read_at=read_at)


__all__ = [
    "Notification",
    "PRIORITY_HIGH",
    "PRIORITY_MEDIUM",
    "PRIORITY_LOW",
    "PRIORITIES",
    "CHANNEL_IN_APP",
    "CHANNEL_EMAIL",
    "CHANNEL_SMS",
    "NOTIFICATION_TYPES",
]
