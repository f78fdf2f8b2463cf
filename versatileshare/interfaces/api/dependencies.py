"""FastAPI dependency utilities."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from starlette.requests import HTTPConnection

from versatileshare.application.use_cases.notifications import NotificationDispatcher
from versatileshare.domain.entities import Identity, User
from versatileshare.domain.errors import InvalidCredential
from versatileshare.infrastructure.database import get_db
from versatileshare.infrastructure.notifications import (
    ConnectionRegistry,
    SqlNotificationStore,
    SqlResourceCatalog,
    SqlUserDirectory,
)
from versatileshare.infrastructure.notifications.gateways import SessionFactory
from versatileshare.infrastructure.repositories import UserRepository
from versatileshare.infrastructure.security import decode_access_token

# Tokens are issued by the platform's authentication service.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/token")


@dataclass
class RealtimeServices:
    """Notification collaborators owned by one application instance."""

    registry: ConnectionRegistry
    dispatcher: NotificationDispatcher
    store: SqlNotificationStore
    directory: SqlUserDirectory
    resources: SqlResourceCatalog


def build_realtime_services(session_factory: SessionFactory) -> RealtimeServices:
    registry = ConnectionRegistry()
    store = SqlNotificationStore(session_factory)
    directory = SqlUserDirectory(session_factory)
    return RealtimeServices(
        registry=registry,
        dispatcher=NotificationDispatcher(registry, directory, store),
        store=store,
        directory=directory,
        resources=SqlResourceCatalog(session_factory),
    )


def get_realtime_services(connection: HTTPConnection) -> RealtimeServices:
    """Return the services attached to the running application."""

    return connection.app.state.realtime


def decode_principal_id(token: str | None) -> int:
    """Return the user id carried by ``token`` or raise :class:`InvalidCredential`."""

    if not token:
        raise InvalidCredential("Missing credential")
    try:
        payload = decode_access_token(token)
    except ValueError as exc:
        raise InvalidCredential("Invalid credential") from exc

    subject = payload.get("sub")
    try:
        return int(subject)
    except (TypeError, ValueError) as exc:
        raise InvalidCredential("Invalid credential subject") from exc


def resolve_current_user(token: str, db: Session) -> User:
    """Resolve the active user for the provided token."""

    user = UserRepository(db).get(decode_principal_id(token))
    if user is None or not user.is_active:
        raise InvalidCredential("Unknown or inactive user")
    return user


async def verify_credential(token: str | None, directory: SqlUserDirectory) -> Identity:
    """Turn a bearer credential into the identity attached to a connection."""

    user = await directory.get_user(decode_principal_id(token))
    if user is None or not user.is_active:
        raise InvalidCredential("Unknown or inactive user")
    return user.to_identity()


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Return the authenticated user from the provided token."""

    try:
        return resolve_current_user(token, db)
    except InvalidCredential as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc


def require_publisher(current_user: User = Depends(get_current_user)) -> User:
    """Ensure the authenticated user may announce resources."""

    if not current_user.can_publish_resources():
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only faculty members can send resource notifications",
        )
    return current_user


__all__ = [
    "RealtimeServices",
    "build_realtime_services",
    "decode_principal_id",
    "get_current_user",
    "get_realtime_services",
    "oauth2_scheme",
    "require_publisher",
    "resolve_current_user",
    "verify_credential",
]
