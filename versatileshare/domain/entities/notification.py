"""Domain entity representing a user notification."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Notification:
    """Durable message addressed to a single recipient.

    ``event_key`` identifies the triggering event; a recipient holds at most one
    record per key. ``related_resource_id`` is a lookup hint, not ownership.
    """

    id: int | None
    recipient_id: int
    event_key: str
    event_type: str
    message: str
    related_resource_id: int | None = None
    read: bool = False
    created_at: datetime | None = None


__all__ = ["Notification"]
