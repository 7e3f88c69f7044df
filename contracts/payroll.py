"""
Payroll calculations over materialized shifts.

Durations come from local wall-clock readings in the contract's zone,
using the same overnight rule as ``localtime.minutes_between``. Money is
computed with ``Decimal`` and rounded to cents.
"""

import calendar
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Mapping, NamedTuple, Optional

from .localtime import add_days, in_range, minutes_between, week_start_sunday
from .types import DEFAULT_WEEKLY_HOURS_THRESHOLD
from .zones import to_local_display


CENTS = Decimal('0.01')
MINUTES_PER_HOUR = Decimal(60)


class WeekBoundaries(NamedTuple):
    week_start: date
    week_end: date


class MonthBoundaries(NamedTuple):
    month_start: date
    month_end: date


@dataclass
class PayrollSummary:
    hours: Decimal
    earnings: Decimal


def get_week_boundaries(any_date: date) -> WeekBoundaries:
    """Sunday-to-Saturday week containing ``any_date``."""
    week_start = week_start_sunday(any_date)
    return WeekBoundaries(week_start, add_days(week_start, 6))


def get_month_boundaries(any_date: date) -> MonthBoundaries:
    last_day = calendar.monthrange(any_date.year, any_date.month)[1]
    return MonthBoundaries(any_date.replace(day=1), any_date.replace(day=last_day))


def shift_minutes(shift, zone_id: str) -> int:
    """
    Worked minutes for one shift: actual times once finalized, scheduled
    times otherwise, both read as local clock values in ``zone_id``.
    """
    if shift.is_finalized and shift.actual_start and shift.actual_end:
        start, end = shift.actual_start, shift.actual_end
    else:
        start, end = shift.start_utc, shift.end_utc
    return minutes_between(
        to_local_display(start, zone_id).time,
        to_local_display(end, zone_id).time,
    )


def split_earnings(hours: Decimal, threshold: Decimal, base_rate: Decimal, overtime_rate: Decimal) -> Decimal:
    """Base rate up to ``threshold`` hours, overtime rate beyond it."""
    if hours <= threshold:
        earnings = hours * base_rate
    else:
        earnings = threshold * base_rate + (hours - threshold) * overtime_rate
    return earnings.quantize(CENTS, rounding=ROUND_HALF_UP)


def weekly_earnings(
    contract,
    week_start: date,
    week_end: date,
    shifts: Iterable,
    zone_id: Optional[str] = None,
) -> PayrollSummary:
    """
    Hours and earnings of ``contract`` for one week.

    Only shifts owned by the contract with a local date in
    ``[week_start, week_end]`` count; shifts without a contract or for a
    different contract contribute nothing here.
    """
    zone_id = zone_id or contract.timezone
    total_minutes = sum(
        shift_minutes(shift, zone_id)
        for shift in shifts
        if shift.contract_id == contract.id and in_range(shift.local_date, week_start, week_end)
    )

    hours = Decimal(total_minutes) / MINUTES_PER_HOUR
    base_rate = Decimal(contract.base_rate)
    overtime_rate = Decimal(contract.overtime_rate) if contract.overtime_rate is not None else base_rate
    threshold = (
        Decimal(contract.weekly_hours_threshold)
        if contract.weekly_hours_threshold is not None
        else DEFAULT_WEEKLY_HOURS_THRESHOLD
    )

    return PayrollSummary(hours=hours, earnings=split_earnings(hours, threshold, base_rate, overtime_rate))


def unassigned_hours(week_start: date, week_end: date, shifts: Iterable, zone_id: str) -> Decimal:
    """Hours of shifts without a contract in the week; these never earn."""
    total_minutes = sum(
        shift_minutes(shift, zone_id)
        for shift in shifts
        if shift.contract_id is None and in_range(shift.local_date, week_start, week_end)
    )
    return Decimal(total_minutes) / MINUTES_PER_HOUR


def monthly_earnings(contract, month_start: date, month_end: date, shifts: Iterable) -> PayrollSummary:
    """
    Sum of weekly earnings over the Sunday-based weeks overlapping the month.

    Overtime is assessed per whole week, so a week straddling the month
    boundary contributes all of its shifts.
    """
    shifts = list(shifts)
    hours = Decimal(0)
    earnings = Decimal(0)

    week_start = week_start_sunday(month_start)
    while week_start <= month_end:
        week = weekly_earnings(contract, week_start, add_days(week_start, 6), shifts)
        hours += week.hours
        earnings += week.earnings
        week_start = add_days(week_start, 7)

    return PayrollSummary(hours=hours, earnings=earnings)


def period_summary(
    period_start: date,
    period_end: date,
    shifts: Iterable,
    contracts_by_id: Mapping,
    zone_id: str,
) -> PayrollSummary:
    """
    Totals across every contract for the weeks overlapping a period.

    Shifts without a contract add hours but no earnings and are read in
    ``zone_id``; shifts whose contract is not in ``contracts_by_id`` are
    skipped.
    """
    shifts = list(shifts)
    contract_ids = {shift.contract_id for shift in shifts if shift.contract_id is not None}
    hours = Decimal(0)
    earnings = Decimal(0)

    week_start = week_start_sunday(period_start)
    while week_start <= period_end:
        week_end = add_days(week_start, 6)
        for contract_id in sorted(contract_ids):
            contract = contracts_by_id.get(contract_id)
            if contract is None:
                continue
            week = weekly_earnings(contract, week_start, week_end, shifts)
            hours += week.hours
            earnings += week.earnings
        hours += unassigned_hours(week_start, week_end, shifts, zone_id)
        week_start = add_days(week_start, 7)

    return PayrollSummary(hours=hours, earnings=earnings)
