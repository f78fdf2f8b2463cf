"""Repository implementations for infrastructure layer."""

from .notification_repository import NotificationRepository
from .resource_repository import ResourceRepository
from .user_repository import UserRepository

__all__ = [
    "NotificationRepository",
    "ResourceRepository",
    "UserRepository",
]
