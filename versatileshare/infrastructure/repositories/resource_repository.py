"""Persistence helpers for resource entities."""

from __future__ import annotations

from sqlalchemy.orm import Session

from versatileshare.domain.entities import Resource
from versatileshare.infrastructure.models import ResourceModel


class ResourceRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, resource_id: int) -> Resource | None:
        model = self.session.get(ResourceModel, resource_id)
        return self._to_entity(model) if model else None

    def create(self, resource: Resource) -> Resource:
        model = ResourceModel(
            title=resource.title,
            subject=resource.subject,
            semester=resource.semester,
            type=resource.type,
            uploaded_by=resource.uploaded_by,
            views=resource.views,
        )
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def increment_views(self, resource_id: int) -> int | None:
        """Atomically bump the view counter and return the stored value."""

        updated = (
            self.session.query(ResourceModel)
            .filter(ResourceModel.id == resource_id)
            .update({ResourceModel.views: ResourceModel.views + 1}, synchronize_session=False)
        )
        if not updated:
            self.session.rollback()
            return None
        self.session.commit()
        return (
            self.session.query(ResourceModel.views)
            .filter(ResourceModel.id == resource_id)
            .scalar()
        )

    @staticmethod
    def _to_entity(model: ResourceModel) -> Resource:
        return Resource(
            id=model.id,
            title=model.title,
            subject=model.subject,
            semester=model.semester,
            type=model.type,
            uploaded_by=model.uploaded_by,
            views=model.views or 0,
            created_at=model.created_at,
        )


__all__ = ["ResourceRepository"]
