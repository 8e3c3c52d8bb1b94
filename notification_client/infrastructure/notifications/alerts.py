"""Fire-and-forget delivery of user-facing alerts for pushed notifications."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable

from notification_client.domain.entities import Alert, Notification

logger = logging.getLogger(__name__)

AlertHandler = Callable[[Alert], Any]


class AlertDispatcher:
    """Hand alerts to ``handler`` without blocking the caller.

    The handler may be a plain callable or a coroutine function. Its failures
    are logged and never reach the code that applied the notification.
    """

    def __init__(self, handler: AlertHandler | None = None) -> None:
        self._handler = handler
        self._pending: set[asyncio.Future[Any]] = set()

    def dispatch(self, notification: Notification) -> None:
        """Schedule an alert describing ``notification`` on the running loop."""

        if self._handler is None:
            return
        alert = Alert.from_notification(notification)
        asyncio.get_running_loop().call_soon(self._deliver, alert)

    def _deliver(self, alert: Alert) -> None:
        try:
            result = self._handler(alert)
        except Exception:
            logger.warning(
                "Alert handler failed for notification %s",
                alert.notification_id,
                exc_info=True,
            )
            return
        if inspect.isawaitable(result):
            future = asyncio.ensure_future(result)
            self._pending.add(future)
            future.add_done_callback(self._on_done)

    def _on_done(self, future: asyncio.Future[Any]) -> None:
        self._pending.discard(future)
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.warning("Alert handler failed", exc_info=exc)


__all__ = ["AlertDispatcher", "AlertHandler"]
