"""Optimistic read/dismiss mutations confirmed against the REST service."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable

from notification_client.domain.entities import BULK_ACTION_MARK_AS_READ, BulkAction
from notification_client.utils import now_in_app_timezone

from .ports import REQUEST_ERRORS, Dispatch, NotificationService, StateReader
from .reducer import (
    AllReadMarked,
    BulkActionApplied,
    ErrorRaised,
    NotificationDismissed,
    NotificationsRestored,
    ReadMarked,
)

logger = logging.getLogger(__name__)

MARK_AS_READ_FAILED = "Failed to mark notification as read"
MARK_ALL_AS_READ_FAILED = "Failed to mark all notifications as read"
DISMISS_FAILED = "Failed to dismiss notification"


def bulk_action_failed(action_type: str) -> str:
    return f"Failed to {action_type} notifications"


class MutationCoordinator:
    """Apply each mutation locally first, then confirm it with the server.

    Single-notification mutations are not rolled back when the call fails; the
    error is reported and the next refresh resynchronises. Bulk actions put
    back the notifications whose individual call failed, unless a push or a
    snapshot replaced them while the calls were in flight.
    """

    def __init__(
        self,
        service: NotificationService,
        dispatch: Dispatch,
        read_state: StateReader,
        *,
        clock: Callable[[], datetime] = now_in_app_timezone,
    ) -> None:
        self._service = service
        self._dispatch = dispatch
        self._read_state = read_state
        self._clock = clock

    async def mark_as_read(self, notification_id: int) -> None:
        self._dispatch(ReadMarked(notification_id, self._clock()))
        try:
            await self._service.mark_as_read(notification_id)
        except REQUEST_ERRORS:
            logger.exception("Failed to mark notification %s as read", notification_id)
            self._dispatch(ErrorRaised(MARK_AS_READ_FAILED))

    async def mark_all_as_read(self) -> None:
        self._dispatch(AllReadMarked(self._clock()))
        try:
            await self._service.mark_all_as_read()
        except REQUEST_ERRORS:
            logger.exception("Failed to mark all notifications as read")
            self._dispatch(ErrorRaised(MARK_ALL_AS_READ_FAILED))

    async def dismiss_notification(self, notification_id: int) -> None:
        self._dispatch(NotificationDismissed(notification_id))
        try:
            await self._service.dismiss(notification_id)
        except REQUEST_ERRORS:
            logger.exception("Failed to dismiss notification %s", notification_id)
            self._dispatch(ErrorRaised(DISMISS_FAILED))

    async def perform_bulk_action(self, action: BulkAction) -> None:
        """Run ``action`` as one concurrent call per id."""

        targeted = set(action.ids)
        previous = tuple(
            n for n in self._read_state().notifications if n.id in targeted
        )
        self._dispatch(BulkActionApplied(action, self._clock()))
        applied_state = self._read_state()
        applied = {n.id: applied_state.find(n.id) for n in previous}

        if action.type == BULK_ACTION_MARK_AS_READ:
            call = self._service.mark_as_read
        else:
            call = self._service.dismiss
        results = await asyncio.gather(
            *(call(notification_id) for notification_id in action.ids),
            return_exceptions=True,
        )

        failed: set[int] = set()
        for notification_id, result in zip(action.ids, results):
            if not isinstance(result, BaseException):
                continue
            if not isinstance(result, REQUEST_ERRORS):
                raise result
            logger.error(
                "Bulk %s failed for notification %s: %s",
                action.type,
                notification_id,
                result,
            )
            failed.add(notification_id)

        if not failed:
            return
        self._dispatch(
            NotificationsRestored(
                tuple(n for n in previous if n.id in failed),
                applied,
                applied_state.snapshot_version,
            )
        )
        self._dispatch(ErrorRaised(bulk_action_failed(action.type)))


__all__ = [
    "DISMISS_FAILED",
    "MARK_ALL_AS_READ_FAILED",
    "MARK_AS_READ_FAILED",
    "MutationCoordinator",
    "bulk_action_failed",
]
