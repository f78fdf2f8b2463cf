"""Collaborator interfaces consumed by the notification use cases."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Hashable, Iterable, Literal, Protocol

from versatileshare.domain.entities import Notification, Resource, User


class UserDirectory(Protocol):
    """Group membership lookup; results are complete and deduplicated."""

    async def find_principals_by_role(self, role: str) -> list[int]:
        ...

    async def find_principals_by_role_and_semester(self, role: str, semester: int) -> list[int]:
        ...

    async def find_principals_by_department(self, department: str) -> list[int]:
        ...

    async def get_user(self, user_id: int) -> User | None:
        ...


class NotificationStore(Protocol):
    """Durable notification storage."""

    async def insert(self, record: Notification) -> int:
        ...

    async def insert_many(self, records: Sequence[Notification]) -> list[int]:
        ...

    async def find_by_recipient(self, recipient_id: int, limit: int | None = 50) -> list[Notification]:
        ...

    async def mark_read(self, ids: Iterable[int] | Literal["all"], recipient_id: int) -> int:
        ...


class ResourceCatalog(Protocol):
    async def get(self, resource_id: int) -> Resource | None:
        ...

    async def increment_views(self, resource_id: int) -> int | None:
        ...


class LiveChannel(Protocol):
    """Push side of the connection registry."""

    async def push_to_principal(self, principal_id: Hashable, event: str, payload: Any) -> int:
        ...

    async def push_to_group(self, group_tag: str, event: str, payload: Any) -> int:
        ...


__all__ = ["LiveChannel", "NotificationStore", "ResourceCatalog", "UserDirectory"]
