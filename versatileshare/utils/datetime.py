"""Timezone handling for stored and transmitted notification timestamps.

The domain layer works with aware datetimes in the configured application
timezone; database columns hold the same wall-clock value without ``tzinfo``.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone, tzinfo
from functools import lru_cache
from typing import Final

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from versatileshare.config import get_settings

_FALLBACK: Final[tzinfo] = timezone.utc
_UTC_OFFSET: Final[re.Pattern[str]] = re.compile(
    r"^(?:UTC|GMT)(?P<sign>[+-])(?P<hours>\d{1,2})(?::?(?P<minutes>\d{2}))?$",
    re.IGNORECASE,
)


@lru_cache(maxsize=1)
def get_app_timezone() -> tzinfo:
    """Return the timezone named by ``APP_TIMEZONE`` (UTC when unset or unknown)."""

    name = (get_settings().app_timezone or "").strip()
    return _resolve_timezone(name) if name else _FALLBACK


def now_in_app_timezone() -> datetime:
    return datetime.now(tz=get_app_timezone())


def to_app_timezone(value: datetime | None) -> datetime | None:
    """Express ``value`` in the app timezone; naive values are assumed to be in it already."""

    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=get_app_timezone())
    return value.astimezone(get_app_timezone())


def to_storage_datetime(value: datetime | None) -> datetime | None:
    """Return the naive app-timezone value written to ``DateTime`` columns."""

    localized = to_app_timezone(value)
    return localized.replace(tzinfo=None) if localized is not None else None


def storage_now() -> datetime:
    return now_in_app_timezone().replace(tzinfo=None)


def isoformat_or_none(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _resolve_timezone(name: str) -> tzinfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return _parse_utc_offset(name) or _FALLBACK


def _parse_utc_offset(name: str) -> tzinfo | None:
    """Parse names such as ``UTC+05:30`` or ``GMT-3``."""

    match = _UTC_OFFSET.match(name)
    if not match:
        return None
    offset = timedelta(hours=int(match["hours"]), minutes=int(match["minutes"] or 0))
    return timezone(-offset if match["sign"] == "-" else offset)
