"""
Expansion of a contract's weekly pattern into concrete dated occurrences.
"""

from datetime import date
from typing import List

from .exceptions import DateRangeError, ScheduleError
from .localtime import iter_dates, parse_clock, sunday_weekday
from .types import MAX_SCHEDULE_DAYS, DesiredOccurrence, WeeklyPattern
from .zones import get_zone, shift_window


def expand_schedule(
    start_date: date,
    end_date: date,
    pattern: WeeklyPattern,
    zone_id: str,
    *,
    require_enabled: bool = False,
    max_days: int = MAX_SCHEDULE_DAYS,
) -> List[DesiredOccurrence]:
    """
    Produce the desired occurrences for ``[start_date, end_date]``.

    Args:
        start_date: First date of the range (inclusive)
        end_date: Last date of the range (inclusive)
        pattern: Weekly pattern deciding which weekdays get a shift
        zone_id: IANA zone the pattern's clock times are read in
        require_enabled: Reject a pattern with no enabled weekday
        max_days: Longest range (in days) that will be expanded

    Returns:
        Occurrences ordered by local date, one per enabled in-range date

    Raises:
        DateRangeError: If start_date > end_date or the range is too long
        ScheduleError: If require_enabled and no weekday is enabled
        UnknownZoneError, InvalidFormatError: For a bad zone or clock value
    """
    validate_range(start_date, end_date, max_days)

    if require_enabled and not pattern.has_enabled_day:
        raise ScheduleError(['at least one weekday must be enabled'])

    get_zone(zone_id)
    for weekday in pattern.enabled_weekdays():
        day = pattern.day(weekday)
        parse_clock(day.start)
        parse_clock(day.end)

    occurrences = []
    for current in iter_dates(start_date, end_date):
        day = pattern.day(sunday_weekday(current))
        if not day.enabled:
            continue
        start_utc, end_utc = shift_window(current, day.start, day.end, zone_id)
        occurrences.append(DesiredOccurrence(current, start_utc, end_utc))

    return occurrences


def validate_range(start_date: date, end_date: date, max_days: int = MAX_SCHEDULE_DAYS) -> None:
    """Raise DateRangeError for an inverted or oversized inclusive range."""
    if start_date > end_date:
        raise DateRangeError(['endDate must be greater than or equal to startDate'])

    total_days = (end_date - start_date).days + 1
    if total_days > max_days:
        raise DateRangeError([
            f'Date range spans {total_days} days; at most {max_days} days can be scheduled'
        ])


def count_matching_dates(start_date: date, end_date: date, pattern: WeeklyPattern) -> int:
    """Number of dates in the inclusive range whose weekday is enabled."""
    if start_date > end_date:
        return 0

    full_weeks, remainder = divmod((end_date - start_date).days + 1, 7)
    first_weekday = sunday_weekday(start_date)
    partial = sum(
        1 for offset in range(remainder)
        if pattern.day((first_weekday + offset) % 7).enabled
    )
    return full_weeks * len(pattern.enabled_weekdays()) + partial
