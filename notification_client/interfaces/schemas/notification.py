"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from notification_client.domain.entities import Notification, PRIORITY_MEDIUM
from notification_client.utils import parse_timestamp


class MalformedNotificationError(ValueError):
    """Raised when a payload cannot be interpreted as a notification."""


class NotificationRead(BaseModel):
    """Representation of a notification as delivered by the server."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int = Field(..., alias="notificationId")
    author_id: int | None = Field(default=None, alias="authorId")
    target_id: int = Field(..., alias="targetId")
    notification_type: str = Field(..., alias="notificationType")
    subject: str = ""
    message: str = ""
    channels: list[str] = Field(default_factory=list)
    read_status: bool = Field(default=False, alias="readStatus")
    dismissed_status: bool = Field(default=False, alias="dismissedStatus")
    priority: str = PRIORITY_MEDIUM
    link: str | None = None
    created_at: datetime = Field(..., alias="createdAt")
    read_at: datetime | None = Field(default=None, alias="readAt")

    @field_validator("created_at", "read_at", mode="before")
    @classmethod
    def _parse_timestamps(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_timestamp(value)
        return value

    @field_validator("channels", mode="before")
    @classmethod
    def _default_channels(cls, value: Any) -> Any:
        return [] if value is None else value

    def to_entity(self) -> Notification:
        read_at = parse_timestamp(self.read_at) if self.read_status else None
        return Notification(
            id=self.id,
            author_id=self.author_id,
            target_id=self.target_id,
            notification_type=self.notification_type,
            subject=self.subject,
            message=self.message,
            created_at=parse_timestamp(self.created_at),
            channels=frozenset(self.channels),
            read_status=self.read_status,
            read_at=read_at,
            dismissed_status=self.dismissed_status,
            priority=self.priority,
            link=self.link,
        )


class UnreadCountRead(BaseModel):
    """Response body of the unread-count endpoint."""

    count: int = Field(..., ge=0)


_NOTIFICATION_LIST = TypeAdapter(list[NotificationRead])


def parse_notification(payload: str | bytes | dict[str, Any]) -> Notification:
    """Return the entity encoded in ``payload`` (a JSON document or a mapping)."""

    try:
        if isinstance(payload, (str, bytes)):
            schema = NotificationRead.model_validate_json(payload)
        else:
            schema = NotificationRead.model_validate(payload)
    except ValidationError as exc:
        raise MalformedNotificationError(str(exc)) from exc
    return schema.to_entity()


def parse_notification_list(payload: Any) -> list[Notification]:
    """Return the entities contained in a decoded JSON array."""

    try:
        schemas = _NOTIFICATION_LIST.validate_python(payload)
    except ValidationError as exc:
        raise MalformedNotificationError(str(exc)) from exc
    return [schema.to_entity() for schema in schemas]


__all__ = [
    "MalformedNotificationError",
    "NotificationRead",
    "UnreadCountRead",
    "parse_notification",
    "parse_notification_list",
]
