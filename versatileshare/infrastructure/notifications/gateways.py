"""Async adapters exposing the SQL repositories to the realtime core.

Repositories are synchronous; every call runs in a worker thread with its own
session so the event loop never blocks on the database.
"""

from __future__ import annotations

import functools
from collections.abc import Callable, Sequence
from typing import Iterable, Literal, TypeVar

import anyio
from sqlalchemy.orm import Session

from versatileshare.domain.entities import Notification, Resource
from versatileshare.infrastructure.repositories import (
    NotificationRepository,
    ResourceRepository,
    UserRepository,
)

T = TypeVar("T")

MARK_ALL: Literal["all"] = "all"

SessionFactory = Callable[[], Session]


class _SessionBound:
    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    async def _run(self, operation: Callable[[Session], T]) -> T:
        return await anyio.to_thread.run_sync(
            functools.partial(self._in_session, operation)
        )

    def _in_session(self, operation: Callable[[Session], T]) -> T:
        with self._session_factory() as session:
            return operation(session)


class SqlNotificationStore(_SessionBound):
    """Durable notification store backed by :class:`NotificationRepository`."""

    async def insert(self, record: Notification) -> int:
        saved = await self._run(lambda s: NotificationRepository(s).create(record))
        return saved.id

    async def insert_many(self, records: Sequence[Notification]) -> list[int]:
        saved = await self._run(lambda s: NotificationRepository(s).create_many(records))
        return [record.id for record in saved]

    async def find_by_recipient(self, recipient_id: int, limit: int | None = 50) -> list[Notification]:
        return list(
            await self._run(
                lambda s: NotificationRepository(s).list_for_user(recipient_id, limit=limit)
            )
        )

    async def find_unread_by_recipient(
        self, recipient_id: int, limit: int | None = 50
    ) -> list[Notification]:
        return list(
            await self._run(
                lambda s: NotificationRepository(s).list_unread_for_user(recipient_id, limit=limit)
            )
        )

    async def count_unread(self, recipient_id: int) -> int:
        return await self._run(lambda s: NotificationRepository(s).count_unread(recipient_id))

    async def mark_read(
        self, ids: Iterable[int] | Literal["all"], recipient_id: int
    ) -> int:
        if ids == MARK_ALL:
            return await self._run(
                lambda s: NotificationRepository(s).mark_all_as_read(user_id=recipient_id)
            )
        id_list = list(ids)
        return await self._run(
            lambda s: NotificationRepository(s).mark_as_read(id_list, user_id=recipient_id)
        )


class SqlUserDirectory(_SessionBound):
    """Group membership lookup over the user table (active users only)."""

    async def find_principals_by_role(self, role: str) -> list[int]:
        return list(await self._run(lambda s: UserRepository(s).list_ids_by_role(role)))

    async def find_principals_by_role_and_semester(self, role: str, semester: int) -> list[int]:
        return list(
            await self._run(
                lambda s: UserRepository(s).list_ids_by_role_and_semester(role, semester)
            )
        )

    async def find_principals_by_department(self, department: str) -> list[int]:
        return list(
            await self._run(lambda s: UserRepository(s).list_ids_by_department(department))
        )

    async def get_user(self, user_id: int):
        return await self._run(lambda s: UserRepository(s).get(user_id))


class SqlResourceCatalog(_SessionBound):
    async def get(self, resource_id: int) -> Resource | None:
        return await self._run(lambda s: ResourceRepository(s).get(resource_id))

    async def increment_views(self, resource_id: int) -> int | None:
        return await self._run(lambda s: ResourceRepository(s).increment_views(resource_id))


__all__ = [
    "MARK_ALL",
    "SqlNotificationStore",
    "SqlResourceCatalog",
    "SqlUserDirectory",
]
