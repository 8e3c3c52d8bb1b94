"""Use case for fetching the authoritative notification list."""

from __future__ import annotations

import asyncio
import logging

from notification_client.domain.entities import Notification, NotificationFilter

from .ports import NotificationService
from .reconciliation import count_unread

logger = logging.getLogger(__name__)


async def load_snapshot(
    service: NotificationService, notification_filter: NotificationFilter
) -> list[Notification]:
    """Fetch the list and the server's unread count concurrently.

    The unread counter shown to the user is always derived from the list; the
    server count is only compared against it. Either request failing fails
    the load.
    """

    notifications, server_unread = await asyncio.gather(
        service.list_notifications(notification_filter),
        service.get_unread_count(),
    )
    local_unread = count_unread(notifications)
    if server_unread != local_unread:
        logger.warning(
            "Server reports %s unread notifications but the snapshot holds %s",
            server_unread,
            local_unread,
        )
    return notifications


__all__ = ["load_snapshot"]
