"""Use cases driving the notification feed."""

from .mutations import MutationCoordinator, bulk_action_failed
from .reducer import reduce
from .selection import visible_notifications
from .snapshot import load_snapshot

__all__ = [
    "MutationCoordinator",
    "bulk_action_failed",
    "load_snapshot",
    "reduce",
    "visible_notifications",
]
