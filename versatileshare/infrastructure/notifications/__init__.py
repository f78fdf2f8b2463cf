"""Realtime notification helpers for the infrastructure layer."""

from .gateways import MARK_ALL, SqlNotificationStore, SqlResourceCatalog, SqlUserDirectory
from .registry import (
    INTERNAL_ERROR,
    POLICY_VIOLATION,
    ConnectionEntry,
    ConnectionRegistry,
    Transport,
    build_message,
)
from .serializers import serialize_event, serialize_notification

__all__ = [
    "ConnectionEntry",
    "ConnectionRegistry",
    "INTERNAL_ERROR",
    "MARK_ALL",
    "POLICY_VIOLATION",
    "SqlNotificationStore",
    "SqlResourceCatalog",
    "SqlUserDirectory",
    "Transport",
    "build_message",
    "serialize_event",
    "serialize_notification",
]
