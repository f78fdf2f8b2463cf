"""Aggregate application use cases."""

from .notifications import (
    NotificationDispatcher,
    notify_resource_interaction,
    notify_resource_upload,
    record_resource_view,
)

__all__ = [
    "NotificationDispatcher",
    "notify_resource_interaction",
    "notify_resource_upload",
    "record_resource_view",
]
