"""Domain entities exposed by the client."""

from .alert import Alert
from .bulk_action import (
    BULK_ACTION_DISMISS,
    BULK_ACTION_MARK_AS_READ,
    BULK_ACTION_TYPES,
    BulkAction,
)
from .connection_state import (
    CONNECTION_CONNECTED,
    CONNECTION_CONNECTING,
    CONNECTION_DISCONNECTED,
    CONNECTION_EXHAUSTED,
    ConnectionState,
)
from .notification import (
    CHANNEL_EMAIL,
    CHANNEL_IN_APP,
    CHANNEL_SMS,
    NOTIFICATION_TYPES,
    PRIORITIES,
    PRIORITY_HIGH,
    PRIORITY_LOW,
    PRIORITY_MEDIUM,
    Notification,
)
from .notification_filter import NotificationFilter
from .notification_state import NotificationState

__all__ = [
    "Alert",
    "BulkAction",
    "BULK_ACTION_MARK_AS_READ",
    "BULK_ACTION_DISMISS",
    "BULK_ACTION_TYPES",
    "ConnectionState",
    "CONNECTION_DISCONNECTED",
    "CONNECTION_CONNECTING",
    "CONNECTION_CONNECTED",
    "CONNECTION_EXHAUSTED",
    "Notification",
    "NotificationFilter",
    "NotificationState",
    "PRIORITY_HIGH",
    "PRIORITY_MEDIUM",
    "PRIORITY_LOW",
    "PRIORITIES",
    "CHANNEL_IN_APP",
    "CHANNEL_EMAIL",
    "CHANNEL_SMS",
    "NOTIFICATION_TYPES",
]
