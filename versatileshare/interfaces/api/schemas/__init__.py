"""Schemas exposed by the HTTP and websocket interface."""

from .notification import (
    DispatchFailureRead,
    DispatchSummary,
    NotificationMarkReadRequest,
    NotificationRead,
    ResourceInteractionRequest,
    ResourceUploadedRequest,
    ResourceViews,
    UnreadCount,
)
from .realtime import (
    AckCommand,
    ClientCommand,
    JoinResourceCommand,
    LeaveResourceCommand,
    PingCommand,
    ResourceUpdateCommand,
    parse_client_command,
)

__all__ = [
    "AckCommand",
    "ClientCommand",
    "DispatchFailureRead",
    "DispatchSummary",
    "JoinResourceCommand",
    "LeaveResourceCommand",
    "NotificationMarkReadRequest",
    "NotificationRead",
    "PingCommand",
    "ResourceInteractionRequest",
    "ResourceUpdateCommand",
    "ResourceUploadedRequest",
    "ResourceViews",
    "UnreadCount",
    "parse_client_command",
]
