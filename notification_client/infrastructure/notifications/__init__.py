"""Realtime notification helpers for the infrastructure layer."""

from .alerts import AlertDispatcher, AlertHandler
from .gateway import NotificationGateway, NotificationGatewayError
from .manager import (
    AUTHENTICATION_FAILED,
    CONNECT_FAILED,
    CONNECTION_ERROR,
    CONNECTION_LOST,
    NotificationConnectionManager,
    Scheduler,
    schedule_on_loop,
)
from .transport import (
    PushTransport,
    StompWebSocketTransport,
    TransportError,
    TransportFactory,
    websocket_transport_factory,
)

__all__ = [
    "AlertDispatcher",
    "AlertHandler",
    "NotificationGateway",
    "NotificationGatewayError",
    "AUTHENTICATION_FAILED",
    "CONNECT_FAILED",
    "CONNECTION_ERROR",
    "CONNECTION_LOST",
    "NotificationConnectionManager",
    "Scheduler",
    "schedule_on_loop",
    "PushTransport",
    "StompWebSocketTransport",
    "TransportError",
    "TransportFactory",
    "websocket_transport_factory",
]
