"""ORM models used by the application infrastructure."""

from .user import UserModel
from .resource import ResourceModel
from .notification import NotificationModel

__all__ = [
    "UserModel",
    "ResourceModel",
    "NotificationModel",
]
