"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class NotificationMarkReadRequest(BaseModel):
    """Payload used to mark notifications as read, either by id or all at once."""

    ids: list[int] = Field(default_factory=list, description="Notification identifiers")
    mark_all: bool = Field(default=False, description="Mark every notification as read")

    @model_validator(mode="after")
    def _require_selection(self) -> "NotificationMarkReadRequest":
        if not self.mark_all and not self.ids:
            raise ValueError("Provide notification ids or set mark_all")
        return self

    def unique_ids(self) -> list[int]:
        """Return the list of identifiers without duplicates preserving order."""

        return list(dict.fromkeys(self.ids))


class NotificationRead(BaseModel):
    """Representation of a notification delivered to the client."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    recipient_id: int
    event_key: str
    event_type: str
    message: str
    related_resource_id: int | None = None
    read: bool = False
    created_at: datetime


class UnreadCount(BaseModel):
    unread: int


class ResourceUploadedRequest(BaseModel):
    """Announcement of a resource that faculty just uploaded."""

    resource_id: int
    faculty_name: str | None = Field(default=None, max_length=120)
    resource_title: str | None = Field(default=None, max_length=200)
    semester: int | None = Field(default=None, ge=0)


class ResourceInteractionRequest(BaseModel):
    resource_id: int
    interaction_type: Literal["like", "comment"]
    comment: str | None = None


class DispatchFailureRead(BaseModel):
    recipient_id: Any
    kind: str
    detail: str


class DispatchSummary(BaseModel):
    """Outcome returned after triggering a notification fan-out."""

    success: bool = True
    message: str
    event_key: str | None = None
    recipients: int = 0
    persisted: int = 0
    live_deliveries: int = 0
    group_deliveries: int = 0
    failures: list[DispatchFailureRead] = Field(default_factory=list)


class ResourceViews(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    resource_id: int = Field(alias="resourceId")
    views: int


__all__ = [
    "DispatchFailureRead",
    "DispatchSummary",
    "NotificationMarkReadRequest",
    "NotificationRead",
    "ResourceInteractionRequest",
    "ResourceUploadedRequest",
    "ResourceViews",
    "UnreadCount",
]
