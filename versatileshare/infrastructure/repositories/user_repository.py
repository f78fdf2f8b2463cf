"""Persistence layer for user data."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.orm import Session

from versatileshare.domain.entities import User
from versatileshare.infrastructure.models import UserModel


class UserRepository:
    """Read users and resolve group membership."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: int) -> User | None:
        model = self.session.get(UserModel, user_id)
        return self._to_entity(model) if model else None

    def get_by_email(self, email: str) -> User | None:
        model = self.session.query(UserModel).filter(UserModel.email == email).first()
        return self._to_entity(model) if model else None

    def create(self, user: User) -> User:
        model = UserModel(
            name=user.name,
            email=user.email,
            role=user.role,
            department=user.department,
            semester=user.semester,
            is_active=user.is_active,
        )
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def list_ids_by_role(self, role: str) -> Sequence[int]:
        query = (
            self.session.query(UserModel.id)
            .filter(UserModel.role == role)
            .filter(UserModel.is_active.is_(True))
            .order_by(UserModel.id)
        )
        return [row.id for row in query.all()]

    def list_ids_by_role_and_semester(self, role: str, semester: int) -> Sequence[int]:
        query = (
            self.session.query(UserModel.id)
            .filter(UserModel.role == role)
            .filter(UserModel.semester == semester)
            .filter(UserModel.is_active.is_(True))
            .order_by(UserModel.id)
        )
        return [row.id for row in query.all()]

    def list_ids_by_department(self, department: str) -> Sequence[int]:
        query = (
            self.session.query(UserModel.id)
            .filter(UserModel.department == department)
            .filter(UserModel.is_active.is_(True))
            .order_by(UserModel.id)
        )
        return [row.id for row in query.all()]

    @staticmethod
    def _to_entity(model: UserModel) -> User:
        return User(
            id=model.id,
            name=model.name,
            email=model.email,
            role=model.role,
            department=model.department,
            semester=model.semester,
            is_active=bool(model.is_active),
            created_at=model.created_at,
        )


__all__ = ["UserRepository"]
