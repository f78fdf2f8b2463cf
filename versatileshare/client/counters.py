"""Locally echoed counters reconciled with server values."""

from __future__ import annotations

from typing import Any, Hashable


class OptimisticCounters:
    """Counters updated immediately by local actions and corrected by the server."""

    def __init__(self) -> None:
        self._values: dict[tuple[str, str], int] = {}

    @staticmethod
    def _key(resource_id: Hashable, field: str) -> tuple[str, str]:
        return str(resource_id), field

    def get(self, resource_id: Hashable, field: str, default: int = 0) -> int:
        return self._values.get(self._key(resource_id, field), default)

    def increment(self, resource_id: Hashable, field: str, amount: int = 1) -> int:
        key = self._key(resource_id, field)
        self._values[key] = self._values.get(key, 0) + amount
        return self._values[key]

    def reconcile(self, resource_id: Hashable, field: str, value: int) -> int:
        """Replace the local value with the authoritative one."""

        self._values[self._key(resource_id, field)] = value
        return value

    def apply_patch(self, resource_id: Hashable, patch: dict[str, Any]) -> dict[str, int]:
        """Reconcile every integer field of a ``resource-updated`` patch."""

        applied: dict[str, int] = {}
        for field, value in patch.items():
            if isinstance(value, int) and not isinstance(value, bool):
                applied[field] = self.reconcile(resource_id, field, value)
        return applied


__all__ = ["OptimisticCounters"]
