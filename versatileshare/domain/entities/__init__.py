"""Domain entities exposed by the application."""

from .notification import Notification
from .realtime_event import (
    EVENT_NEW_RESOURCE,
    EVENT_NOTIFICATION,
    EVENT_RESOURCE_INTERACTION,
    EVENT_RESOURCE_UPDATED,
    INTERACTION_TYPES,
    GenericNotificationEvent,
    InteractionStudentSummary,
    InteractionType,
    NewResourceEvent,
    RealtimeEvent,
    ResourceEventSummary,
    ResourceInteractionEvent,
)
from .resource import PLACEMENT_SEMESTER, Resource
from .target import (
    AllStudentsTarget,
    DepartmentTarget,
    NotificationTarget,
    PrincipalTarget,
    SemesterTarget,
)
from .user import (
    ROLE_ADMIN,
    ROLE_FACULTY,
    ROLE_STUDENT,
    ROLES,
    Identity,
    User,
    department_group,
    resource_group,
    semester_group,
    user_group,
)

__all__ = [
    "AllStudentsTarget",
    "DepartmentTarget",
    "EVENT_NEW_RESOURCE",
    "EVENT_NOTIFICATION",
    "EVENT_RESOURCE_INTERACTION",
    "EVENT_RESOURCE_UPDATED",
    "GenericNotificationEvent",
    "INTERACTION_TYPES",
    "Identity",
    "InteractionStudentSummary",
    "InteractionType",
    "NewResourceEvent",
    "Notification",
    "NotificationTarget",
    "PLACEMENT_SEMESTER",
    "PrincipalTarget",
    "ROLES",
    "ROLE_ADMIN",
    "ROLE_FACULTY",
    "ROLE_STUDENT",
    "RealtimeEvent",
    "Resource",
    "ResourceEventSummary",
    "ResourceInteractionEvent",
    "SemesterTarget",
    "User",
    "department_group",
    "resource_group",
    "semester_group",
    "user_group",
]
