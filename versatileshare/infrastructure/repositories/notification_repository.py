"""Persistence helpers for notification entities."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Iterable

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from versatileshare.domain.entities import Notification
from versatileshare.infrastructure.models import NotificationModel
from versatileshare.utils import storage_now, to_app_timezone, to_storage_datetime


class NotificationRepository:
    """Store and query the per-recipient notification records."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def _owned_by(self, user_id: int, *, unread_only: bool = False) -> Query:
        query = self.session.query(NotificationModel).filter(NotificationModel.user_id == user_id)
        if unread_only:
            query = query.filter(NotificationModel.read.is_(False))
        return query

    def _newest_first(self, query: Query, limit: int | None) -> list[Notification]:
        query = query.order_by(NotificationModel.created_at.desc(), NotificationModel.id.desc())
        if limit is not None:
            query = query.limit(limit)
        return [self._to_entity(model) for model in query.all()]

    def list_for_user(self, user_id: int, *, limit: int | None = 50) -> Sequence[Notification]:
        return self._newest_first(self._owned_by(user_id), limit)

    def list_unread_for_user(
        self, user_id: int, *, limit: int | None = 50
    ) -> Sequence[Notification]:
        return self._newest_first(self._owned_by(user_id, unread_only=True), limit)

    def count_unread(self, user_id: int) -> int:
        return (
            self._owned_by(user_id, unread_only=True)
            .with_entities(func.count(NotificationModel.id))
            .scalar()
            or 0
        )

    def create(self, notification: Notification) -> Notification:
        return self.create_many([notification])[0]

    def create_many(self, notifications: Sequence[Notification]) -> list[Notification]:
        """Insert ``notifications`` in a single transaction.

        Either every record is stored or none is; a duplicate
        ``(recipient, event_key)`` pair fails the whole batch.
        """

        models = [self._to_model(notification) for notification in notifications]
        if not models:
            return []
        self.session.add_all(models)
        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise
        for model in models:
            self.session.refresh(model)
        return [self._to_entity(model) for model in models]

    def mark_as_read(self, notification_ids: Iterable[int], *, user_id: int) -> int:
        ids = [notification_id for notification_id in notification_ids if notification_id is not None]
        if not ids:
            return 0
        return self._mark_read(
            self._owned_by(user_id, unread_only=True).filter(NotificationModel.id.in_(ids))
        )

    def mark_all_as_read(self, *, user_id: int) -> int:
        return self._mark_read(self._owned_by(user_id, unread_only=True))

    def _mark_read(self, query: Query) -> int:
        updated = query.update({NotificationModel.read: True}, synchronize_session=False)
        self.session.commit()
        return updated

    @staticmethod
    def _to_model(notification: Notification) -> NotificationModel:
        return NotificationModel(
            user_id=notification.recipient_id,
            event_key=notification.event_key,
            event_type=notification.event_type,
            message=notification.message,
            resource_id=notification.related_resource_id,
            read=bool(notification.read),
            created_at=to_storage_datetime(notification.created_at) or storage_now(),
        )

    @staticmethod
    def _to_entity(model: NotificationModel) -> Notification:
        return Notification(
            id=model.id,
            recipient_id=model.user_id,
            event_key=model.event_key,
            event_type=model.event_type,
            message=model.message,
            related_resource_id=model.resource_id,
            read=bool(model.read),
            created_at=to_app_timezone(model.created_at),
        )


__all__ = ["NotificationRepository"]
