"""Shared builders for contract tests."""

from datetime import date
from decimal import Decimal

from contracts.types import ContractCreateData, WeeklyPattern


CHICAGO = 'America/Chicago'

SUNDAY, MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY, SATURDAY = range(7)


def weekly_pattern(*weekdays, start='07:00', end='19:00'):
    """Pattern with ``weekdays`` enabled at the given clock times."""
    return WeeklyPattern.from_days(
        {'weekday': weekday, 'enabled': weekday in weekdays, 'start': start, 'end': end}
        for weekday in range(7)
    )


def schedule_payload(*weekdays, start='07:00', end='19:00'):
    return {
        'default_start': start,
        'default_end': end,
        'days': [{'weekday': weekday, 'enabled': weekday in weekdays} for weekday in range(7)],
    }


def contract_data(**overrides):
    fields = {
        'name': 'ICU Travel Nurse',
        'facility': 'St. Mary',
        'role': 'RN',
        'start_date': date(2024, 1, 1),
        'end_date': date(2024, 1, 14),
        'timezone': CHICAGO,
        'base_rate': Decimal('45.00'),
        'overtime_rate': Decimal('67.50'),
        'weekly_hours_threshold': Decimal('40'),
        'pattern': weekly_pattern(MONDAY, WEDNESDAY, FRIDAY),
    }
    fields.update(overrides)
    return ContractCreateData(**fields)
