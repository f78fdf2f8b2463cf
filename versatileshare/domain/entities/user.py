"""Domain entities describing platform users and their realtime identity."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Hashable

ROLE_STUDENT = "student"
ROLE_FACULTY = "faculty"
ROLE_ADMIN = "admin"
ROLES = frozenset({ROLE_STUDENT, ROLE_FACULTY, ROLE_ADMIN})


def user_group(principal_id: Hashable) -> str:
    return f"user:{principal_id}"


def department_group(department: str) -> str:
    return f"department:{department}"


def semester_group(semester: int) -> str:
    return f"semester:{semester}"


def resource_group(resource_id: Hashable) -> str:
    return f"resource:{resource_id}"


@dataclass
class User:
    """Core attributes describing an application user."""

    id: int | None
    name: str
    email: str
    role: str
    department: str | None = None
    semester: int | None = None
    is_active: bool = True
    created_at: datetime | None = None

    def has_role(self, role: str) -> bool:
        """Return ``True`` when the user's role matches ``role``."""

        return self.role.lower() == role.lower()

    def is_student(self) -> bool:
        return self.has_role(ROLE_STUDENT)

    def is_admin(self) -> bool:
        return self.has_role(ROLE_ADMIN)

    def can_publish_resources(self) -> bool:
        """Faculty and administrators may announce uploaded resources."""

        return self.has_role(ROLE_FACULTY) or self.is_admin()

    def to_identity(self) -> "Identity":
        return Identity(
            principal_id=self.id,
            role=self.role,
            department=self.department,
            semester=self.semester if self.is_student() else None,
        )


@dataclass(frozen=True)
class Identity:
    """Verified credential claim attached to a live connection.

    ``semester`` is only carried for students; group tags are derived once and
    never refreshed for the lifetime of the connection.
    """

    principal_id: Hashable
    role: str
    department: str | None = None
    semester: int | None = None

    def is_valid(self) -> bool:
        if self.principal_id is None or self.principal_id == "":
            return False
        return self.role in ROLES

    def groups(self) -> frozenset[str]:
        tags = {user_group(self.principal_id)}
        if self.department:
            tags.add(department_group(self.department))
        if self.role == ROLE_STUDENT and self.semester is not None:
            tags.add(semester_group(self.semester))
        return frozenset(tags)


__all__ = [
    "Identity",
    "ROLES",
    "ROLE_ADMIN",
    "ROLE_FACULTY",
    "ROLE_STUDENT",
    "User",
    "department_group",
    "resource_group",
    "semester_group",
    "user_group",
]
