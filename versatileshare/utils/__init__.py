"""Utility helpers for reusable functionality."""

from .datetime import (
    get_app_timezone,
    isoformat_or_none,
    now_in_app_timezone,
    storage_now,
    to_app_timezone,
    to_storage_datetime,
)

__all__ = [
    "get_app_timezone",
    "isoformat_or_none",
    "now_in_app_timezone",
    "storage_now",
    "to_app_timezone",
    "to_storage_datetime",
]
