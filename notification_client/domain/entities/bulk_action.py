"""Bulk operation requested over a selection of notifications."""

from __future__ import annotations

from dataclasses import dataclass

BULK_ACTION_MARK_AS_READ = "markAsRead"
BULK_ACTION_DISMISS = "dismiss"
BULK_ACTION_TYPES = (BULK_ACTION_MARK_AS_READ, BULK_ACTION_DISMISS)


@dataclass(frozen=True)
class BulkAction:
    """Action of ``type`` applied independently to every id in ``ids``."""

    type: str
    ids: tuple[int, ...]

    def __post_init__(self) -> None:
        if self.type not in BULK_ACTION_TYPES:
            raise ValueError(f"Unknown bulk action type: {self.type}")
        unique: list[int] = []
        seen: set[int] = set()
        for notification_id in self.ids:
            if notification_id in seen:
                continue
            seen.add(notification_id)
            unique.append(notification_id)
        object.__setattr__(self, "ids", tuple(unique))


__all__ = [
    "BulkAction",
    "BULK_ACTION_MARK_AS_READ",
    "BULK_ACTION_DISMISS",
    "BULK_ACTION_TYPES",
]
