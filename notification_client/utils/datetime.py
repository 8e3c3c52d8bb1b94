"""Helpers for working with timezone-aware datetimes."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone, tzinfo
from functools import lru_cache
from typing import Final

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from notification_client.config import get_settings

_DEFAULT_TIMEZONE: Final[str] = "UTC"
_OFFSET_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^(?:UTC|GMT)(?P<sign>[+-])(?P<hours>\d{1,2})(?::?(?P<minutes>\d{2}))?$",
    re.IGNORECASE,
)
_EPOCH: Final[datetime] = datetime(1970, 1, 1, tzinfo=timezone.utc)


@lru_cache(maxsize=1)
def get_app_timezone() -> tzinfo:
    """Return the configured client timezone.

    The timezone is resolved from ``NOTIFICATIONS_APP_TIMEZONE``. Offsets such as
    ``UTC-05:00`` are accepted; anything unresolvable falls back to UTC.
    """

    settings = get_settings()
    tz_name = (settings.app_timezone or "").strip() or _DEFAULT_TIMEZONE
    return _resolve_timezone(tz_name)


def now_in_app_timezone() -> datetime:
    """Return the current time localized to the configured timezone."""

    return datetime.now(tz=get_app_timezone())


def ensure_app_timezone(value: datetime | None) -> datetime | None:
    """Normalize ``value`` so it is expressed in the configured timezone."""

    if value is None:
        return None

    tz = get_app_timezone()
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value.astimezone(tz)


def parse_timestamp(value: str | datetime | None) -> datetime | None:
    """Parse an ISO 8601 string (``Z`` suffix allowed) into an aware datetime."""

    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_app_timezone(value)
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return ensure_app_timezone(datetime.fromisoformat(text))


def sort_key_timestamp(value: datetime | None) -> datetime:
    """Return a comparable aware datetime, treating missing values as the epoch."""

    if value is None:
        return _EPOCH
    if value.tzinfo is None:
        return value.replace(tzinfo=get_app_timezone())
    return value


def _resolve_timezone(tz_name: str) -> tzinfo:
    """Resolve ``tz_name`` into a ``timezone`` instance."""

    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        match = _OFFSET_PATTERN.match(tz_name)
        if match:
            sign = -1 if match.group("sign") == "-" else 1
            hours = int(match.group("hours"))
            minutes = int(match.group("minutes") or 0)
            offset = timedelta(hours=hours, minutes=minutes)
            return timezone(sign * offset)
    return timezone.utc
