"""
Local time arithmetic over calendar dates and naive "HH:mm" clock values.

Nothing here knows about time zones; see ``zones`` for that.
"""

import re
from datetime import date, timedelta
from typing import Iterator, NamedTuple

from .exceptions import InvalidFormatError


MINUTES_PER_DAY = 24 * 60

_CLOCK_RE = re.compile(r'^(\d{1,2}):(\d{2})$')


class ClockTime(NamedTuple):
    hour: int
    minute: int

    @property
    def minutes(self) -> int:
        return self.hour * 60 + self.minute


def parse_clock(value: str) -> ClockTime:
    """
    Parse an "HH:mm" string.

    Raises:
        InvalidFormatError: If the value is not H:mm/HH:mm, or the hour or
            minute is out of range.
    """
    match = _CLOCK_RE.match(value) if isinstance(value, str) else None
    if not match:
        raise InvalidFormatError(f'{value!r} must be in HH:mm format')

    hour, minute = int(match.group(1)), int(match.group(2))
    if not 0 <= hour < 24 or not 0 <= minute < 60:
        raise InvalidFormatError(f'{value!r} is not a valid clock time')

    return ClockTime(hour, minute)


def format_clock(hour: int, minute: int) -> str:
    return f'{hour:02d}:{minute:02d}'


def minutes_between(start: str, end: str) -> int:
    """
    Minutes from ``start`` to ``end`` on a 24h clock.

    When ``end <= start`` the shift is taken to cross midnight, so equal
    readings count as a full 24 hours.
    """
    start_minutes = parse_clock(start).minutes
    end_minutes = parse_clock(end).minutes

    if end_minutes <= start_minutes:
        end_minutes += MINUTES_PER_DAY

    return end_minutes - start_minutes


def sunday_weekday(value: date) -> int:
    """Weekday index with 0=Sunday .. 6=Saturday."""
    return (value.weekday() + 1) % 7


def week_start_sunday(value: date) -> date:
    """The Sunday on or before ``value``."""
    return value - timedelta(days=sunday_weekday(value))


def add_days(value: date, days: int) -> date:
    return value + timedelta(days=days)


def in_range(value: date, lo: date, hi: date) -> bool:
    """Inclusive on both ends."""
    return lo <= value <= hi


def iter_dates(lo: date, hi: date) -> Iterator[date]:
    """Yield every date from ``lo`` to ``hi`` inclusive."""
    current = lo
    while current <= hi:
        yield current
        current += timedelta(days=1)


def parse_iso_date(value) -> date:
    """Accept a ``date`` or a "YYYY-MM-DD" string."""
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise InvalidFormatError(f'{value!r} must be a valid ISO date (YYYY-MM-DD)')
