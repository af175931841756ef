# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""DateTime utilities for the syllabus import service.

This module provides standardized datetime operations to ensure consistency
across the codebase. All datetime operations should use these utilities.

Design Decisions:
-----------------
1. All timestamps are stored in UTC (PostgreSQL TIMESTAMPTZ)
2. All Python datetimes are timezone-aware (with timezone.utc)
3. Wall-clock values (class times, due dates) are interpreted in an IANA
   timezone and converted to UTC at the boundary

Usage:
------
    from src.utils.datetime import utc_now, local_to_utc

    # For current time
    now = utc_now()

    # For SQLAlchemy model defaults
    created_at = mapped_column(DateTime(timezone=True), default=utc_now)

    # Wall-clock time in a user's timezone
    start_at = local_to_utc(date(2025, 9, 2), time(9, 0), get_zone("America/New_York"))
"""

from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


class InvalidTimezoneError(ValueError):
    """Raised when a timezone name is not a known IANA identifier."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown timezone: {name}")


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Returns:
        Timezone-aware datetime representing current UTC time.

    Example:
        >>> now = utc_now()
        >>> now.tzinfo
        datetime.timezone.utc
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Ensure a datetime is timezone-aware UTC.

    Args:
        dt: A datetime object (naive or aware) or None.

    Returns:
        Timezone-aware UTC datetime or None.

    Note:
        - If dt is None, returns None
        - If dt is naive, assumes UTC and adds tzinfo
        - If dt is aware, converts to UTC
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        # Naive datetime - assume UTC
        return dt.replace(tzinfo=timezone.utc)

    # Already aware - convert to UTC
    return dt.astimezone(timezone.utc)


def get_zone(name: str) -> ZoneInfo:
    """Resolve an IANA timezone name.

    Args:
        name: IANA identifier such as "Europe/Berlin".

    Returns:
        The ZoneInfo for the name.

    Raises:
        InvalidTimezoneError: If the name is empty or unknown.
    """
    if not name or not name.strip():
        raise InvalidTimezoneError(name)
    try:
        return ZoneInfo(name.strip())
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise InvalidTimezoneError(name) from e


def local_to_utc(day: date, clock: time, zone: ZoneInfo) -> datetime:
    """Convert a wall-clock time on a local date to a UTC instant.

    The offset is the one in effect for that date, so daylight saving
    transitions are honoured. Ambiguous times resolve to the first
    occurrence (fold=0).

    Args:
        day: Local calendar date.
        clock: Local wall-clock time.
        zone: Timezone the wall-clock time is expressed in.

    Returns:
        Timezone-aware UTC datetime.
    """
    local = datetime.combine(day, clock.replace(tzinfo=None), tzinfo=zone)
    return local.astimezone(timezone.utc)
