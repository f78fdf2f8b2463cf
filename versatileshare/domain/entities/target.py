"""Notification targets understood by the dispatcher."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .user import department_group, semester_group


@dataclass(frozen=True)
class PrincipalTarget:
    """A single user."""

    principal_id: int

    @property
    def group_tag(self) -> str | None:
        return None


@dataclass(frozen=True)
class DepartmentTarget:
    """Every active user of ``department``."""

    department: str

    @property
    def group_tag(self) -> str | None:
        return department_group(self.department)


@dataclass(frozen=True)
class SemesterTarget:
    """Every active student enrolled in ``semester``."""

    semester: int

    @property
    def group_tag(self) -> str | None:
        return semester_group(self.semester)


@dataclass(frozen=True)
class AllStudentsTarget:
    """Every active student."""

    @property
    def group_tag(self) -> str | None:
        return None


NotificationTarget = Union[PrincipalTarget, DepartmentTarget, SemesterTarget, AllStudentsTarget]


__all__ = [
    "AllStudentsTarget",
    "DepartmentTarget",
    "NotificationTarget",
    "PrincipalTarget",
    "SemesterTarget",
]
