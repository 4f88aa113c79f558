"""Datetime utilities for timezone-aware UTC timestamps."""
from __future__ import annotations

from datetime import UTC, date, datetime, time
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (as returned by SQLite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def load_zone(name: str) -> ZoneInfo:
    """Return the IANA zone or raise ValueError for unknown names."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone: {name}") from exc


def local_to_utc(launch_date: date, launch_time: time, timezone_name: str) -> datetime:
    """Combine a wall-clock date and time in ``timezone_name`` into a UTC instant."""
    local = datetime.combine(launch_date, launch_time, tzinfo=load_zone(timezone_name))
    return local.astimezone(UTC)
