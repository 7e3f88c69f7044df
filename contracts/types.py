"""
Data types and constants for the contract scheduling system.

This module contains:
- Value objects shared by the pure scheduling modules (weekly pattern, desired occurrences)
- DTOs (Data Transfer Objects) for service layer operations
- Constants used across the application
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

from .exceptions import ScheduleError


DEFAULT_TIMEZONE = 'America/Chicago'
DEFAULT_SHIFT_START = '07:00'
DEFAULT_SHIFT_END = '19:00'
DEFAULT_WEEKLY_HOURS_THRESHOLD = Decimal('40')
MAX_SCHEDULE_DAYS = 731

# Contract fields an update may reset to null.
CLEARABLE_CONTRACT_FIELDS = frozenset({'overtime_rate', 'weekly_hours_threshold'})

WEEKDAY_NAMES = (
    'Sunday',
    'Monday',
    'Tuesday',
    'Wednesday',
    'Thursday',
    'Friday',
    'Saturday',
)


class ContractStatus(str, Enum):
    """Contract lifecycle; only moves forward one stage at a time."""
    PLANNED = 'planned'
    ACTIVE = 'active'
    ARCHIVED = 'archived'

    @property
    def label(self) -> str:
        return self.value.title()

    @classmethod
    def choices(cls) -> List[Tuple[str, str]]:
        return [(member.value, member.label) for member in cls]

    def can_transition_to(self, target: 'ContractStatus') -> bool:
        return target in _CONTRACT_TRANSITIONS[self]


_CONTRACT_TRANSITIONS = {
    ContractStatus.PLANNED: frozenset({ContractStatus.ACTIVE}),
    ContractStatus.ACTIVE: frozenset({ContractStatus.ARCHIVED}),
    ContractStatus.ARCHIVED: frozenset(),
}


class OccurrenceStatus(str, Enum):
    PLANNED = 'planned'
    FINALIZED = 'finalized'

    @property
    def label(self) -> str:
        return self.value.title()

    @classmethod
    def choices(cls) -> List[Tuple[str, str]]:
        return [(member.value, member.label) for member in cls]


class OccurrenceSource(str, Enum):
    CONTRACT = 'contract'
    MANUAL = 'manual'

    @property
    def label(self) -> str:
        return self.value.title()

    @classmethod
    def choices(cls) -> List[Tuple[str, str]]:
        return [(member.value, member.label) for member in cls]


@dataclass(frozen=True)
class DaySchedule:
    """One weekday slot of a weekly pattern (clock values are "HH:mm")."""
    enabled: bool = False
    start: str = DEFAULT_SHIFT_START
    end: str = DEFAULT_SHIFT_END


@dataclass(frozen=True)
class WeeklyPattern:
    """
    Fixed seven-slot weekly pattern indexed 0=Sunday .. 6=Saturday.

    Every weekday is always present; use ``from_days`` to build one from
    loosely structured input.
    """
    days: Tuple[DaySchedule, ...]

    def __post_init__(self):
        if len(self.days) != 7:
            raise ScheduleError(['Weekly pattern must define exactly 7 weekdays'])

    @classmethod
    def from_days(
        cls,
        days: Iterable[Mapping],
        default_start: str = DEFAULT_SHIFT_START,
        default_end: str = DEFAULT_SHIFT_END,
    ) -> 'WeeklyPattern':
        """
        Build a pattern from entries of the form
        ``{'weekday': 0..6, 'enabled': bool, 'start': 'HH:mm', 'end': 'HH:mm'}``.

        ``start``/``end`` fall back to the defaults. Raises ScheduleError if a
        weekday is missing, repeated or out of range.
        """
        slots: Dict[int, DaySchedule] = {}
        errors = []

        for entry in days:
            weekday = entry.get('weekday')
            if not isinstance(weekday, int) or not 0 <= weekday <= 6:
                errors.append(f'Invalid weekday {weekday!r}; expected 0 (Sunday) to 6 (Saturday)')
                continue
            if weekday in slots:
                errors.append(f'Weekday {weekday} is defined more than once')
                continue
            slots[weekday] = DaySchedule(
                enabled=bool(entry.get('enabled', False)),
                start=entry.get('start') or default_start,
                end=entry.get('end') or default_end,
            )

        missing = [weekday for weekday in range(7) if weekday not in slots]
        if missing:
            errors.append(f'Missing weekdays: {", ".join(str(w) for w in missing)}')

        if errors:
            raise ScheduleError(errors)

        return cls(days=tuple(slots[weekday] for weekday in range(7)))

    @classmethod
    def disabled(cls) -> 'WeeklyPattern':
        """Pattern with every weekday disabled."""
        return cls(days=tuple(DaySchedule() for _ in range(7)))

    def day(self, weekday: int) -> DaySchedule:
        return self.days[weekday]

    def enabled_weekdays(self) -> List[int]:
        return [weekday for weekday, day in enumerate(self.days) if day.enabled]

    @property
    def has_enabled_day(self) -> bool:
        return any(day.enabled for day in self.days)

    def as_list(self) -> List[dict]:
        return [
            {'weekday': weekday, 'enabled': day.enabled, 'start': day.start, 'end': day.end}
            for weekday, day in enumerate(self.days)
        ]


@dataclass(frozen=True)
class DesiredOccurrence:
    """An occurrence the schedule implies: its local date and resolved UTC window."""
    local_date: date
    start_utc: datetime
    end_utc: datetime


@dataclass
class ContractCreateData:
    """DTO for contract creation."""
    name: str
    start_date: date
    end_date: date
    base_rate: Decimal
    pattern: WeeklyPattern
    facility: str = ''
    role: str = ''
    timezone: Optional[str] = None
    overtime_rate: Optional[Decimal] = None
    weekly_hours_threshold: Optional[Decimal] = None
    seed_shifts: bool = True


@dataclass
class ContractUpdateData:
    """
    DTO for contract update operations. ``None`` means "leave unchanged";
    fields named in ``cleared`` are reset to null instead.
    """
    name: Optional[str] = None
    facility: Optional[str] = None
    role: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    timezone: Optional[str] = None
    base_rate: Optional[Decimal] = None
    overtime_rate: Optional[Decimal] = None
    weekly_hours_threshold: Optional[Decimal] = None
    status: Optional[str] = None
    pattern: Optional[WeeklyPattern] = None
    seed_shifts: bool = False
    cleared: FrozenSet[str] = frozenset()

    @property
    def affects_schedule(self) -> bool:
        """Whether applying this update can change the contract's desired occurrences."""
        return any(
            value is not None
            for value in (self.start_date, self.end_date, self.timezone, self.pattern)
        )


@dataclass
class SeedResult:
    created: int = 0
    enabled_days: int = 0
    total_days: int = 0


@dataclass
class SyncResult:
    created: int = 0
    updated: int = 0
    deleted: int = 0
    finalized_touched: int = 0

    def __add__(self, other: 'SyncResult') -> 'SyncResult':
        return SyncResult(
            created=self.created + other.created,
            updated=self.updated + other.updated,
            deleted=self.deleted + other.deleted,
            finalized_touched=self.finalized_touched + other.finalized_touched,
        )


@dataclass
class ContractCreateResult:
    contract: object
    seed_result: SeedResult


@dataclass
class ContractUpdateResult:
    contract: object
    update_result: SyncResult = field(default_factory=SyncResult)
