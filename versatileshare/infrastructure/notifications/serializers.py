"""Wire representations of notifications and realtime events."""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from typing import Any

from versatileshare.domain.entities import Notification, RealtimeEvent
from versatileshare.utils import isoformat_or_none


def serialize_event(event: RealtimeEvent) -> dict[str, Any]:
    """Return a JSON-serializable, camelCase representation of ``event``."""

    return _camelize(asdict(event))


def serialize_notification(notification: Notification) -> dict[str, Any]:
    """Return the websocket payload representation for ``notification``."""

    return {
        "id": notification.id,
        "recipientId": notification.recipient_id,
        "eventKey": notification.event_key,
        "eventType": notification.event_type,
        "message": notification.message,
        "resourceId": notification.related_resource_id,
        "read": notification.read,
        "createdAt": isoformat_or_none(notification.created_at),
    }


def _camelize(data: Any) -> Any:
    """Convert nested keys to camelCase and ``datetime`` values to ISO strings."""

    if isinstance(data, dict):
        return {_camel_case(key): _camelize(value) for key, value in data.items()}
    if isinstance(data, (list, tuple)):
        return [_camelize(item) for item in data]
    if isinstance(data, datetime):
        return data.isoformat()
    return data


def _camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


__all__ = ["serialize_event", "serialize_notification"]
