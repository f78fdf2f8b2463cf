"""Endpoints and websocket handler for realtime notifications."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect, status
from pydantic import ValidationError
from sqlalchemy.orm import Session

from versatileshare.application.use_cases.notifications import (
    DispatchReport,
    notify_resource_interaction,
    notify_resource_upload,
)
from versatileshare.config import get_settings
from versatileshare.domain.entities import (
    EVENT_RESOURCE_UPDATED,
    Notification,
    User,
    resource_group,
)
from versatileshare.domain.errors import AuthenticationRejected, InvalidCredential
from versatileshare.infrastructure.database import get_db
from versatileshare.infrastructure.notifications import (
    INTERNAL_ERROR,
    ConnectionEntry,
    build_message,
    serialize_notification,
)
from versatileshare.infrastructure.repositories import NotificationRepository
from versatileshare.interfaces.api.dependencies import (
    RealtimeServices,
    get_current_user,
    get_realtime_services,
    require_publisher,
    verify_credential,
)
from versatileshare.interfaces.api.schemas import (
    AckCommand,
    ClientCommand,
    DispatchSummary,
    JoinResourceCommand,
    LeaveResourceCommand,
    NotificationMarkReadRequest,
    NotificationRead,
    PingCommand,
    ResourceInteractionRequest,
    ResourceUpdateCommand,
    ResourceUploadedRequest,
    UnreadCount,
    parse_client_command,
)
from versatileshare.utils import now_in_app_timezone

router = APIRouter(prefix="/notifications", tags=["notifications"])
logger = logging.getLogger(__name__)


def _notification_to_schema(notification: Notification) -> NotificationRead:
    return NotificationRead(
        id=notification.id or 0,
        recipient_id=notification.recipient_id,
        event_key=notification.event_key,
        event_type=notification.event_type,
        message=notification.message,
        related_resource_id=notification.related_resource_id,
        read=notification.read,
        created_at=notification.created_at,
    )


def _report_to_summary(report: DispatchReport | None, message: str) -> DispatchSummary:
    if report is None:
        return DispatchSummary(message=message)
    return DispatchSummary(message=message, **report.summary())


@router.get("/", response_model=list[NotificationRead])
def list_notifications(
    limit: int | None = Query(default=None, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[NotificationRead]:
    """Return the most recent notifications for the authenticated user."""

    notifications = NotificationRepository(db).list_for_user(
        current_user.id, limit=limit or get_settings().notification_history_limit
    )
    return [_notification_to_schema(notification) for notification in notifications]


@router.get("/unread-count", response_model=UnreadCount)
def unread_count(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> UnreadCount:
    return UnreadCount(unread=NotificationRepository(db).count_unread(current_user.id))


@router.put("/read", response_model=list[NotificationRead])
def mark_notifications_read(
    payload: NotificationMarkReadRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[NotificationRead]:
    """Mark the selected notifications (or all of them) as read."""

    repository = NotificationRepository(db)
    if payload.mark_all:
        repository.mark_all_as_read(user_id=current_user.id)
    else:
        repository.mark_as_read(payload.unique_ids(), user_id=current_user.id)
    notifications = repository.list_for_user(
        current_user.id, limit=get_settings().notification_history_limit
    )
    return [_notification_to_schema(notification) for notification in notifications]


@router.post("/resource-uploaded", response_model=DispatchSummary)
async def resource_uploaded(
    payload: ResourceUploadedRequest,
    services: RealtimeServices = Depends(get_realtime_services),
    current_user: User = Depends(require_publisher),
) -> DispatchSummary:
    """Announce an uploaded resource to the students of its semester."""

    try:
        report = await notify_resource_upload(
            services.dispatcher,
            services.resources,
            resource_id=payload.resource_id,
            faculty_name=payload.faculty_name or current_user.name,
            resource_title=payload.resource_title,
            semester=payload.semester,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    audience = f"semester {payload.semester}" if payload.semester is not None else "its audience"
    return _report_to_summary(report, f"Notification sent successfully to {audience}")


@router.post("/resource-interaction", response_model=DispatchSummary)
async def resource_interaction(
    payload: ResourceInteractionRequest,
    services: RealtimeServices = Depends(get_realtime_services),
    current_user: User = Depends(get_current_user),
) -> DispatchSummary:
    """Notify a resource's uploader that the calling student liked or commented on it."""

    if not current_user.is_student():
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only students trigger interaction notifications",
        )
    report = await notify_resource_interaction(
        services.dispatcher,
        services.resources,
        services.directory,
        resource_id=payload.resource_id,
        student_id=current_user.id,
        interaction_type=payload.interaction_type,
        comment=payload.comment,
    )
    return _report_to_summary(report, f"{payload.interaction_type.capitalize()} notification processed")


@router.get("/health")
async def notifications_health(
    services: RealtimeServices = Depends(get_realtime_services),
) -> dict[str, object]:
    """Report live connection statistics for this process."""

    return {
        "status": "healthy",
        "active_principals": services.registry.principal_count,
        "total_connections": services.registry.connection_count,
        "timestamp": now_in_app_timezone().isoformat(),
    }


@router.websocket("/ws")
async def notifications_websocket(
    websocket: WebSocket,
    services: RealtimeServices = Depends(get_realtime_services),
) -> None:
    """Websocket endpoint that streams notifications to the authenticated user."""

    token = websocket.query_params.get("token")
    try:
        identity = await verify_credential(token, services.directory)
    except InvalidCredential as exc:
        logger.info("Rejecting notification socket: %s", exc.detail)
        identity = None
    except Exception:
        logger.exception("Could not verify notification socket credential")
        await websocket.close(code=INTERNAL_ERROR)
        return

    registry = services.registry
    try:
        entry = await registry.register(websocket, identity)
    except AuthenticationRejected:
        return

    try:
        await websocket.send_json(
            build_message(
                "connected",
                {
                    "principalId": entry.principal_id,
                    "groups": sorted(entry.groups),
                    "timestamp": entry.connected_at.isoformat(),
                },
            )
        )
        pending = await services.store.find_unread_by_recipient(
            entry.principal_id, limit=get_settings().notification_history_limit
        )
        if pending:
            await websocket.send_json(
                build_message("init", [serialize_notification(n) for n in pending])
            )

        while True:
            try:
                message = await websocket.receive_json()
            except ValueError:
                continue

            try:
                command = parse_client_command(message)
            except ValidationError:
                logger.debug("Ignoring malformed frame from principal %s", entry.principal_id)
                continue
            await _handle_command(command, websocket, entry, services)
    except WebSocketDisconnect:
        pass
    finally:
        registry.unregister(websocket)


async def _handle_command(
    command: ClientCommand,
    websocket: WebSocket,
    entry: ConnectionEntry,
    services: RealtimeServices,
) -> None:
    if isinstance(command, PingCommand):
        await websocket.send_json(build_message("pong", None))
    elif isinstance(command, AckCommand):
        if command.ids:
            await services.store.mark_read(command.ids, entry.principal_id)
    elif isinstance(command, JoinResourceCommand):
        services.registry.join(websocket, resource_group(command.resource_id))
    elif isinstance(command, LeaveResourceCommand):
        services.registry.leave(websocket, resource_group(command.resource_id))
    elif isinstance(command, ResourceUpdateCommand):
        await services.registry.push_to_group(
            resource_group(command.resource_id),
            EVENT_RESOURCE_UPDATED,
            {"resourceId": command.resource_id, "patch": command.patch},
            exclude=websocket,
        )
