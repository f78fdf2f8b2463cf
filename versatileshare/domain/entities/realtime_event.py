"""Domain events pushed to connected clients."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import ClassVar, Literal, Union

EVENT_NEW_RESOURCE = "new-resource"
EVENT_RESOURCE_INTERACTION = "resource-interaction"
EVENT_RESOURCE_UPDATED = "resource-updated"
EVENT_NOTIFICATION = "notification"

InteractionType = Literal["like", "comment"]
INTERACTION_TYPES: tuple[str, ...] = ("like", "comment")


@dataclass
class ResourceEventSummary:
    """Resource details attached to ``new-resource`` events."""

    id: int | None
    title: str
    subject: str
    semester: int | None
    type: str
    uploaded_by: str


@dataclass
class InteractionStudentSummary:
    """Student details attached to ``resource-interaction`` events."""

    id: int | None
    name: str


@dataclass
class NewResourceEvent:
    """A faculty member published a resource relevant to the recipient."""

    event_type: ClassVar[str] = EVENT_NEW_RESOURCE

    message: str
    resource: ResourceEventSummary
    timestamp: datetime

    @property
    def related_resource_id(self) -> int | None:
        return self.resource.id


@dataclass
class ResourceInteractionEvent:
    """A student liked or commented on the recipient's resource."""

    event_type: ClassVar[str] = EVENT_RESOURCE_INTERACTION

    message: str
    resource_id: int | None
    interaction_type: InteractionType
    student: InteractionStudentSummary
    timestamp: datetime

    @property
    def related_resource_id(self) -> int | None:
        return self.resource_id


@dataclass
class GenericNotificationEvent:
    """Plain text notification without a richer payload."""

    event_type: ClassVar[str] = EVENT_NOTIFICATION

    message: str
    resource_id: int | None
    timestamp: datetime

    @property
    def related_resource_id(self) -> int | None:
        return self.resource_id


RealtimeEvent = Union[NewResourceEvent, ResourceInteractionEvent, GenericNotificationEvent]


__all__ = [
    "EVENT_NEW_RESOURCE",
    "EVENT_NOTIFICATION",
    "EVENT_RESOURCE_INTERACTION",
    "EVENT_RESOURCE_UPDATED",
    "GenericNotificationEvent",
    "INTERACTION_TYPES",
    "InteractionStudentSummary",
    "InteractionType",
    "NewResourceEvent",
    "RealtimeEvent",
    "ResourceEventSummary",
    "ResourceInteractionEvent",
]
