"""Client configuration settings."""

from __future__ import annotations

from functools import lru_cache
from urllib.parse import urlsplit, urlunsplit

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"


class Settings(BaseSettings):
    """Client configuration values loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE,
        env_file_encoding=ENV_FILE_ENCODING,
        env_prefix="NOTIFICATIONS_",
        extra="ignore",
    )

    api_base_url: str = Field(
        default="http://localhost:8080",
        description="Root URL of the REST API serving notifications",
        min_length=1,
    )
    notifications_path: str = Field(
        default="/api/notifications",
        description="Path of the notification resource relative to the API root",
    )
    websocket_url: str | None = Field(
        default=None,
        description="Explicit push endpoint; derived from api_base_url when omitted",
    )
    websocket_path: str = Field(
        default="/ws/notifications/websocket",
        description="Path appended to the API root when deriving the push endpoint",
    )
    topic_prefix: str = Field(
        default="/topic/notifications",
        description="Destination prefix of the per-user notification topic",
    )
    max_reconnect_attempts: int = Field(
        default=5,
        description="Number of automatic reconnection attempts before giving up",
        ge=0,
    )
    reconnect_base_delay: float = Field(
        default=1.0,
        description="Seconds multiplied by the attempt number to compute the retry delay",
        gt=0,
    )
    manual_reconnect_delay: float = Field(
        default=1.0,
        description="Seconds to wait before connecting again after an explicit reconnect",
        ge=0,
    )
    heartbeat_outgoing_ms: int = Field(default=4000, ge=0)
    heartbeat_incoming_ms: int = Field(default=4000, ge=0)
    request_timeout: float | None = Field(
        default=None,
        description="Timeout in seconds for REST calls; None keeps the HTTP client default",
        gt=0,
    )
    app_timezone: str = Field(
        default="UTC",
        description="Timezone used to stamp read timestamps and normalise naive values",
    )

    @field_validator("websocket_url")
    @classmethod
    def _validate_websocket_scheme(cls, value: str | None) -> str | None:
        if value is None:
            return None
        scheme = urlsplit(value).scheme
        if scheme not in {"ws", "wss"}:
            raise ValueError("NOTIFICATIONS_WEBSOCKET_URL must use the ws or wss scheme")
        return value

    def resolved_websocket_url(self) -> str:
        """Return the push endpoint, deriving it from ``api_base_url`` if needed."""

        if self.websocket_url:
            return self.websocket_url
        parts = urlsplit(self.api_base_url)
        scheme = "wss" if parts.scheme == "https" else "ws"
        path = parts.path.rstrip("/") + self.websocket_path
        return urlunsplit((scheme, parts.netloc, path, "", ""))

    def topic_for_user(self, user_id: int) -> str:
        return f"{self.topic_prefix.rstrip('/')}/{user_id}"


@lru_cache
def get_settings() -> Settings:
    """Return cached client settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "reset_settings_cache"]
