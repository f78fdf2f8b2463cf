"""Public helpers for emitting domain notifications."""

from .dispatcher import DispatchReport, NotificationDispatcher, RecipientFailure
from .events import (
    notify_resource_interaction,
    notify_resource_upload,
    record_resource_view,
)
from .ports import LiveChannel, NotificationStore, ResourceCatalog, UserDirectory

__all__ = [
    "DispatchReport",
    "LiveChannel",
    "NotificationDispatcher",
    "NotificationStore",
    "RecipientFailure",
    "ResourceCatalog",
    "UserDirectory",
    "notify_resource_interaction",
    "notify_resource_upload",
    "record_resource_view",
]
