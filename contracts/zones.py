"""
Conversion between local wall-clock readings and absolute UTC instants.

Offsets are always resolved for the specific calendar date, so the same
local clock time maps to different UTC instants on either side of a
daylight-saving transition. Ambiguous readings (the repeated hour when
clocks fall back) resolve to their first occurrence.
"""

from datetime import date, datetime, timedelta, timezone as dt_timezone
from functools import lru_cache
from typing import NamedTuple, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .exceptions import UnknownZoneError
from .localtime import add_days, format_clock, minutes_between, parse_clock


class LocalReading(NamedTuple):
    date: date
    time: str


@lru_cache(maxsize=64)
def get_zone(zone_id: str) -> ZoneInfo:
    """
    Resolve an IANA zone identifier.

    Raises:
        UnknownZoneError: If the identifier is empty or not recognized.
    """
    if not zone_id or not isinstance(zone_id, str):
        raise UnknownZoneError(f'Unknown time zone {zone_id!r}')
    try:
        return ZoneInfo(zone_id)
    except (ZoneInfoNotFoundError, ValueError):
        raise UnknownZoneError(f'Unknown time zone {zone_id!r}')


def to_utc(local_date: date, local_time: str, zone_id: str) -> datetime:
    """Interpret ``local_time`` on ``local_date`` in ``zone_id`` and return the UTC instant."""
    zone = get_zone(zone_id)
    clock = parse_clock(local_time)
    local = datetime(
        local_date.year, local_date.month, local_date.day,
        clock.hour, clock.minute,
        tzinfo=zone, fold=0,
    )
    return local.astimezone(dt_timezone.utc)


def to_local_display(instant: datetime, zone_id: str) -> LocalReading:
    """Local calendar date and "HH:mm" reading of ``instant`` in ``zone_id``."""
    if instant.tzinfo is None:
        raise ValueError('instant must be timezone-aware')
    local = instant.astimezone(get_zone(zone_id))
    return LocalReading(local.date(), format_clock(local.hour, local.minute))


def shift_window(local_date: date, start: str, end: str, zone_id: str) -> Tuple[datetime, datetime]:
    """
    UTC window for a shift starting on ``local_date``.

    The end falls on the next calendar day when ``end <= start``. Inside a
    spring-forward gap the wall-clock end can resolve before the start; the
    nominal clock duration is used instead so the window is never empty.
    """
    start_utc = to_utc(local_date, start, zone_id)
    end_date = add_days(local_date, 1) if parse_clock(end).minutes <= parse_clock(start).minutes else local_date
    end_utc = to_utc(end_date, end, zone_id)

    if end_utc <= start_utc:
        end_utc = start_utc + timedelta(minutes=minutes_between(start, end))

    return start_utc, end_utc


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """
    Half-open interval overlap: touching intervals do not overlap and an
    empty interval overlaps nothing.
    """
    if a_start >= a_end or b_start >= b_end:
        return False
    return a_start < b_end and b_start < a_end
