"""Interfaces the notification use cases depend on."""

from __future__ import annotations

from typing import Callable, Protocol

from notification_client.domain.entities import (
    Notification,
    NotificationFilter,
    NotificationState,
)
from notification_client.infrastructure.notifications.gateway import NotificationGatewayError
from notification_client.infrastructure.security import CredentialError

# Failures of a REST call that are reported to the user rather than raised.
REQUEST_ERRORS: tuple[type[Exception], ...] = (NotificationGatewayError, CredentialError)

Dispatch = Callable[[object], None]
StateReader = Callable[[], NotificationState]


class NotificationService(Protocol):
    async def list_notifications(
        self, notification_filter: NotificationFilter | None = None
    ) -> list[Notification]: ...

    async def get_unread_count(self) -> int: ...

    async def mark_as_read(self, notification_id: int) -> None: ...

    async def mark_all_as_read(self) -> None: ...

    async def dismiss(self, notification_id: int) -> None: ...


__all__ = ["Dispatch", "NotificationService", "REQUEST_ERRORS", "StateReader"]
