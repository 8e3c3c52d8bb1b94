"""Realtime notification client: snapshot loading, push delivery and mutations."""

from .application.store import NotificationStore
from .config import Settings, get_settings, reset_settings_cache

__all__ = ["NotificationStore", "Settings", "get_settings", "reset_settings_cache"]
