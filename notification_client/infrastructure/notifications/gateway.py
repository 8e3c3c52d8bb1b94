"""REST gateway for the notification service."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable

import httpx

from notification_client.config import Settings, get_settings
from notification_client.domain.entities import Notification, NotificationFilter
from notification_client.interfaces.schemas import (
    MalformedNotificationError,
    UnreadCountRead,
    parse_notification_list,
)
from notification_client.utils import sort_key_timestamp
from notification_client.infrastructure.security import (
    CredentialProvider,
    as_authorization_header,
    fetch_token,
)

logger = logging.getLogger(__name__)


class NotificationGatewayError(RuntimeError):
    """Raised when a call to the notification service fails."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NotificationGateway:
    """Issue authenticated requests against the notification endpoints."""

    def __init__(
        self,
        credential_provider: CredentialProvider,
        *,
        settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._credential_provider = credential_provider
        self._owns_client = client is None
        if client is None:
            client_kwargs: dict[str, Any] = {"base_url": self._settings.api_base_url}
            if self._settings.request_timeout is not None:
                client_kwargs["timeout"] = self._settings.request_timeout
            client = httpx.AsyncClient(**client_kwargs)
        self._client = client
        self._base_path = self._settings.notifications_path.rstrip("/")

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def list_notifications(
        self, notification_filter: NotificationFilter | None = None
    ) -> list[Notification]:
        """Return the user's notifications, newest first."""

        params: dict[str, str] = {}
        if notification_filter is not None and notification_filter.unread_only:
            params["unreadOnly"] = "true"
        payload = await self._request("GET", self._base_path, params=params or None)
        try:
            notifications = parse_notification_list(payload)
        except MalformedNotificationError as exc:
            raise NotificationGatewayError("Invalid notification list payload") from exc
        logger.debug("Fetched %s notifications", len(notifications))
        return sorted(
            notifications,
            key=lambda notification: sort_key_timestamp(notification.created_at),
            reverse=True,
        )

    async def get_unread_count(self) -> int:
        payload = await self._request("GET", f"{self._base_path}/unread-count")
        try:
            return UnreadCountRead.model_validate(payload).count
        except ValueError as exc:
            raise NotificationGatewayError("Invalid unread count payload") from exc

    async def mark_as_read(self, notification_id: int) -> None:
        await self._request("PATCH", f"{self._base_path}/{notification_id}/read")

    async def mark_all_as_read(self) -> None:
        await self._request("PATCH", f"{self._base_path}/mark-all-read")

    async def dismiss(self, notification_id: int) -> None:
        await self._request("PATCH", f"{self._base_path}/{notification_id}/dismiss")

    async def mark_many_as_read(self, notification_ids: Iterable[int]) -> None:
        """Mark each id as read with one concurrent call per id."""

        await self._each(self.mark_as_read, notification_ids)

    async def dismiss_many(self, notification_ids: Iterable[int]) -> None:
        await self._each(self.dismiss, notification_ids)

    @staticmethod
    async def _each(call, notification_ids: Iterable[int]) -> None:
        results = await asyncio.gather(
            *(call(notification_id) for notification_id in notification_ids),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
    ) -> Any:
        token = await fetch_token(self._credential_provider)
        headers = {"accept": "*/*"}
        authorization = as_authorization_header(token)
        if authorization:
            headers["Authorization"] = authorization

        try:
            response = await self._client.request(
                method, path, params=params, headers=headers
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code
            logger.error("%s %s failed with status %s", method, path, status_code)
            raise NotificationGatewayError(
                f"API Error {status_code}: {exc.response.reason_phrase}",
                status_code=status_code,
            ) from exc
        except httpx.HTTPError as exc:
            logger.error("%s %s failed: %s", method, path, exc)
            raise NotificationGatewayError(str(exc) or type(exc).__name__) from exc

        if response.status_code == httpx.codes.NO_CONTENT or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise NotificationGatewayError(f"Invalid JSON from {method} {path}") from exc


__all__ = ["NotificationGateway", "NotificationGatewayError"]
