"""Lifecycle of the push channel."""

from __future__ import annotations

from dataclasses import dataclass

CONNECTION_DISCONNECTED = "disconnected"
CONNECTION_CONNECTING = "connecting"
CONNECTION_CONNECTED = "connected"
CONNECTION_EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class ConnectionState:
    """Current channel status plus the number of automatic retries consumed."""

    status: str = CONNECTION_DISCONNECTED
    retry_count: int = 0

    @property
    def is_connected(self) -> bool:
        return self.status == CONNECTION_CONNECTED

    @property
    def is_active(self) -> bool:
        return self.status in (CONNECTION_CONNECTING, CONNECTION_CONNECTED)


__all__ = [
    "ConnectionState",
    "CONNECTION_DISCONNECTED",
    "CONNECTION_CONNECTING",
    "CONNECTION_CONNECTED",
    "CONNECTION_EXHAUSTED",
]
