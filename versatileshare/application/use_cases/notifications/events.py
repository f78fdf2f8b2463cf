"""Helpers that turn resource activity into notifications."""

from __future__ import annotations

import logging

from versatileshare.domain.entities import (
    EVENT_RESOURCE_UPDATED,
    INTERACTION_TYPES,
    PLACEMENT_SEMESTER,
    AllStudentsTarget,
    InteractionStudentSummary,
    InteractionType,
    NewResourceEvent,
    PrincipalTarget,
    ResourceEventSummary,
    ResourceInteractionEvent,
    SemesterTarget,
    resource_group,
)
from versatileshare.domain.errors import ResourceNotFound
from versatileshare.utils import now_in_app_timezone

from .dispatcher import DispatchReport, NotificationDispatcher
from .ports import LiveChannel, ResourceCatalog, UserDirectory

logger = logging.getLogger(__name__)

_COMMENT_PREVIEW_LENGTH = 50


async def notify_resource_upload(
    dispatcher: NotificationDispatcher,
    resources: ResourceCatalog,
    *,
    resource_id: int,
    faculty_name: str,
    resource_title: str | None = None,
    semester: int | None = None,
) -> DispatchReport:
    """Tell students about a newly uploaded resource.

    ``semester`` overrides the resource's own semester. Semester ``0`` marks a
    placement resource, announced to every student.
    """

    resource = await resources.get(resource_id)
    if resource is None:
        raise ResourceNotFound(f"Resource {resource_id} not found")

    target_semester = semester if semester is not None else resource.semester
    if target_semester is None:
        raise ValueError(f"Resource {resource_id} has no semester to notify")

    title = resource_title or resource.title
    if target_semester == PLACEMENT_SEMESTER:
        target = AllStudentsTarget()
        message = f'New placement resource "{title}" uploaded by {faculty_name}'
    else:
        target = SemesterTarget(int(target_semester))
        message = (
            f'New resource "{title}" uploaded by {faculty_name} '
            f"for semester {target_semester}"
        )

    event = NewResourceEvent(
        message=message,
        resource=ResourceEventSummary(
            id=resource.id,
            title=title,
            subject=resource.subject,
            semester=resource.semester,
            type=resource.type,
            uploaded_by=faculty_name,
        ),
        timestamp=now_in_app_timezone(),
    )
    return await dispatcher.notify(target, message, resource.id, event=event)


async def notify_resource_interaction(
    dispatcher: NotificationDispatcher,
    resources: ResourceCatalog,
    directory: UserDirectory,
    *,
    resource_id: int,
    student_id: int,
    interaction_type: InteractionType,
    comment: str | None = None,
) -> DispatchReport | None:
    """Tell the uploader of ``resource_id`` that a student liked or commented on it."""

    if interaction_type not in INTERACTION_TYPES:
        raise ValueError(f"Unsupported interaction type {interaction_type!r}")

    resource = await resources.get(resource_id)
    if resource is None:
        raise ResourceNotFound(f"Resource {resource_id} not found")
    student = await directory.get_user(student_id)
    if resource.uploaded_by is None or student is None:
        logger.warning(
            "Skipping %s notification for resource %s: uploader or student missing",
            interaction_type,
            resource_id,
        )
        return None

    if interaction_type == "like":
        message = f'{student.name} liked your resource "{resource.title}"'
    else:
        text = comment or ""
        preview = text[:_COMMENT_PREVIEW_LENGTH]
        if len(text) > _COMMENT_PREVIEW_LENGTH:
            preview += "..."
        message = f'{student.name} commented on your resource "{resource.title}": {preview}'

    event = ResourceInteractionEvent(
        message=message,
        resource_id=resource.id,
        interaction_type=interaction_type,
        student=InteractionStudentSummary(id=student.id, name=student.name),
        timestamp=now_in_app_timezone(),
    )
    return await dispatcher.notify(
        PrincipalTarget(resource.uploaded_by), message, resource.id, event=event
    )


async def record_resource_view(
    registry: LiveChannel,
    resources: ResourceCatalog,
    *,
    resource_id: int,
) -> int:
    """Increment the authoritative view counter and share it with the resource room."""

    views = await resources.increment_views(resource_id)
    if views is None:
        raise ResourceNotFound(f"Resource {resource_id} not found")

    payload = {"resourceId": resource_id, "patch": {"views": views}}
    try:
        await registry.push_to_group(resource_group(resource_id), EVENT_RESOURCE_UPDATED, payload)
    except Exception as exc:
        logger.warning("Could not broadcast view count for resource %s: %s", resource_id, exc)
    return views


__all__ = [
    "notify_resource_interaction",
    "notify_resource_upload",
    "record_resource_view",
]
