"""Domain entity describing a shared learning resource."""

from dataclasses import dataclass
from datetime import datetime

PLACEMENT_SEMESTER = 0


@dataclass
class Resource:
    """Subset of resource attributes consumed by notifications."""

    id: int | None
    title: str
    subject: str
    semester: int | None
    type: str
    uploaded_by: int | None
    views: int = 0
    created_at: datetime | None = None

    def is_placement(self) -> bool:
        return self.semester == PLACEMENT_SEMESTER


__all__ = ["PLACEMENT_SEMESTER", "Resource"]
