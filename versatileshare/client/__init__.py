"""Client library that consumes the notification socket."""

from .agent import (
    ConnectionState,
    DedupeTracker,
    NotificationAgent,
    PendingDelivery,
    ReconnectPolicy,
    dedupe_tag,
)
from .counters import OptimisticCounters
from .transport import TransportClosed, WebsocketsConnector

__all__ = [
    "ConnectionState",
    "DedupeTracker",
    "NotificationAgent",
    "OptimisticCounters",
    "PendingDelivery",
    "ReconnectPolicy",
    "TransportClosed",
    "WebsocketsConnector",
    "dedupe_tag",
]
