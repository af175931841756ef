# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Recurring event materialization.

Expands weekly recurrence definitions (a weekday plus local start and end
times) into concrete occurrences within a fixed horizon. Local times are
converted to UTC with the timezone offset in effect on each date, so an
occurrence after a daylight saving change lands on a different UTC hour
than one before it.

Example:
    >>> definition = RecurrenceDefinition.from_raw("tue", "09:00", "10:00")
    >>> occurrences = RecurrenceMaterializer().materialize(
    ...     [definition], "America/New_York", now=utc_now()
    ... )
"""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from src.utils.datetime import ensure_utc, get_zone, local_to_utc, utc_now

logger = logging.getLogger(__name__)

MATERIALIZER_HORIZON = timedelta(days=14)

# ISO weekdays: Monday=1 .. Sunday=7
DAY_ALIASES: dict[str, int] = {
    "mon": 1,
    "monday": 1,
    "tue": 2,
    "tues": 2,
    "tuesday": 2,
    "wed": 3,
    "weds": 3,
    "wednesday": 3,
    "thu": 4,
    "thur": 4,
    "thurs": 4,
    "thursday": 4,
    "fri": 5,
    "friday": 5,
    "sat": 6,
    "saturday": 6,
    "sun": 7,
    "sunday": 7,
}

_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


class RecurrenceParseError(ValueError):
    """Raised when a recurrence day or time cannot be parsed."""

    pass


def parse_day_of_week(value: str | int) -> int:
    """Parse a day name, abbreviation or ISO weekday number.

    Args:
        value: "Tuesday", "tue", "tues", "2" or 2.

    Returns:
        ISO weekday, 1=Monday through 7=Sunday.

    Raises:
        RecurrenceParseError: If the value is not a recognizable day.
    """
    if isinstance(value, bool):
        raise RecurrenceParseError(f"Invalid day of week: {value!r}")

    if isinstance(value, int):
        day = value
    else:
        key = str(value).strip().lower().rstrip(".")
        if key.isdigit():
            day = int(key)
        elif key in DAY_ALIASES:
            return DAY_ALIASES[key]
        else:
            raise RecurrenceParseError(f"Invalid day of week: {value!r}")

    if not 1 <= day <= 7:
        raise RecurrenceParseError(f"Day of week out of range 1-7: {value!r}")
    return day


def parse_time_of_day(value: str) -> time:
    """Parse a 24-hour ``HH:MM`` or ``HH:MM:SS`` string.

    Raises:
        RecurrenceParseError: If the value is not a valid time.
    """
    match = _TIME_PATTERN.match((value or "").strip())
    if match is None:
        raise RecurrenceParseError(f"Invalid time: {value!r}")

    hour, minute = int(match.group(1)), int(match.group(2))
    second = int(match.group(3) or 0)
    if hour > 23 or minute > 59 or second > 59:
        raise RecurrenceParseError(f"Invalid time: {value!r}")
    return time(hour, minute, second)


@dataclass(frozen=True)
class RecurrenceDefinition:
    """A weekly slot in local time.

    Attributes:
        day_of_week: ISO weekday.
        start_time: Local start time.
        end_time: Local end time, after start_time.
        location: Room or link.
    """

    day_of_week: int
    start_time: time
    end_time: time
    location: str | None = None

    def __post_init__(self) -> None:
        if not 1 <= self.day_of_week <= 7:
            raise RecurrenceParseError(f"Day of week out of range 1-7: {self.day_of_week}")
        if self.end_time <= self.start_time:
            raise RecurrenceParseError(
                f"End time {self.end_time.isoformat('minutes')} must be after "
                f"start time {self.start_time.isoformat('minutes')}"
            )

    @classmethod
    def from_raw(
        cls,
        day: str | int,
        start: str,
        end: str,
        location: str | None = None,
    ) -> "RecurrenceDefinition":
        """Build a definition from loosely typed input."""
        return cls(
            day_of_week=parse_day_of_week(day),
            start_time=parse_time_of_day(start),
            end_time=parse_time_of_day(end),
            location=location or None,
        )


@dataclass(frozen=True)
class Occurrence:
    """One materialized instance of a definition."""

    definition: RecurrenceDefinition
    local_date: date
    start_at: datetime
    end_at: datetime

    @property
    def location(self) -> str | None:
        return self.definition.location


class RecurrenceMaterializer:
    """Expands recurrence definitions over a 14 day horizon.

    Output is deterministic for the same definitions, timezone and ``now``.
    Only occurrences starting in ``[now, now + 14 days)`` are produced.
    """

    horizon: timedelta = MATERIALIZER_HORIZON

    def materialize_definition(
        self,
        definition: RecurrenceDefinition,
        timezone: str | ZoneInfo,
        now: datetime | None = None,
    ) -> list[Occurrence]:
        """Expand a single definition.

        Args:
            definition: Weekly slot to expand.
            timezone: IANA timezone name or ZoneInfo of the local times.
            now: Horizon start; defaults to the current UTC time.

        Returns:
            Occurrences ordered by start.

        Raises:
            InvalidTimezoneError: If the timezone name is unknown.
        """
        zone = timezone if isinstance(timezone, ZoneInfo) else get_zone(timezone)
        window_start = ensure_utc(now) if now is not None else utc_now()
        window_end = window_start + self.horizon

        first_day = window_start.astimezone(zone).date()
        last_day = window_end.astimezone(zone).date()

        occurrences: list[Occurrence] = []
        day = first_day
        while day <= last_day:
            if day.isoweekday() == definition.day_of_week:
                start_at = local_to_utc(day, definition.start_time, zone)
                if window_start <= start_at < window_end:
                    end_at = local_to_utc(day, definition.end_time, zone)
                    if end_at <= start_at:
                        # Start fell in a skipped hour; keep the wall-clock duration
                        end_at = start_at + (
                            datetime.combine(day, definition.end_time)
                            - datetime.combine(day, definition.start_time)
                        )
                    occurrences.append(
                        Occurrence(
                            definition=definition,
                            local_date=day,
                            start_at=start_at,
                            end_at=end_at,
                        )
                    )
            day += timedelta(days=1)

        return occurrences

    def materialize(
        self,
        definitions: Iterable[RecurrenceDefinition],
        timezone: str | ZoneInfo,
        now: datetime | None = None,
    ) -> list[Occurrence]:
        """Expand several definitions against the same horizon.

        Returns:
            Occurrences grouped by definition in input order, each group
            ordered by start.
        """
        zone = timezone if isinstance(timezone, ZoneInfo) else get_zone(timezone)
        window_start = ensure_utc(now) if now is not None else utc_now()

        definitions = list(definitions)
        occurrences: list[Occurrence] = []
        for definition in definitions:
            occurrences.extend(self.materialize_definition(definition, zone, window_start))

        logger.debug(
            "Materialized occurrences: definitions=%d, occurrences=%d, tz=%s",
            len(definitions),
            len(occurrences),
            zone.key,
        )
        return occurrences
