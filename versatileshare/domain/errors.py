"""Error taxonomy shared by the notification core."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    AUTHENTICATION_REJECTED = "authentication_rejected"
    INVALID_CREDENTIAL = "invalid_credential"
    RESOLUTION_FAILURE = "resolution_failure"
    PERSISTENCE_FAILURE = "persistence_failure"
    DELIVERY_FAILURE = "delivery_failure"
    RECONNECT_EXHAUSTED = "reconnect_exhausted"
    RESOURCE_NOT_FOUND = "resource_not_found"


class NotificationError(Exception):
    """Base class for errors raised by the notification subsystem."""

    kind: ErrorKind

    def __init__(self, detail: str = "") -> None:
        super().__init__(detail or self.kind.value)
        self.detail = detail or self.kind.value


class AuthenticationRejected(NotificationError):
    """The transport handshake lacked a valid identity."""

    kind = ErrorKind.AUTHENTICATION_REJECTED


class InvalidCredential(NotificationError):
    """A bearer credential could not be verified."""

    kind = ErrorKind.INVALID_CREDENTIAL


class ResolutionFailure(NotificationError):
    """The notification target could not be resolved into recipients."""

    kind = ErrorKind.RESOLUTION_FAILURE


class ReconnectExhausted(NotificationError):
    """The client gave up reconnecting; a manual reload is required."""

    kind = ErrorKind.RECONNECT_EXHAUSTED


class ResourceNotFound(NotificationError, LookupError):
    kind = ErrorKind.RESOURCE_NOT_FOUND


__all__ = [
    "AuthenticationRejected",
    "ErrorKind",
    "InvalidCredential",
    "NotificationError",
    "ReconnectExhausted",
    "ResolutionFailure",
    "ResourceNotFound",
]
