"""
Service layer for contract business logic.

Services validate everything up front, then persist the contract and
reconcile its shifts inside one transaction, so a failure leaves nothing
half-applied.
"""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction

from .conf import get_setting
from .exceptions import (
    ConflictError,
    ContractNotFound,
    InvalidTransitionError,
    OccurrenceNotFound,
    ValidationError,
)
from .expander import expand_schedule, validate_range
from .localtime import add_days, parse_clock, week_start_sunday
from .models import Contract, ContractScheduleDay, ShiftOccurrence
from .payroll import (
    MonthBoundaries,
    PayrollSummary,
    WeekBoundaries,
    get_month_boundaries,
    get_week_boundaries,
    monthly_earnings,
    period_summary,
    weekly_earnings,
)
from .repositories import DjangoOccurrenceRepository
from .synchronizer import synchronize
from .types import (
    CLEARABLE_CONTRACT_FIELDS,
    ContractCreateData,
    ContractCreateResult,
    ContractStatus,
    ContractUpdateData,
    ContractUpdateResult,
    OccurrenceSource,
    OccurrenceStatus,
    SeedResult,
    SyncResult,
    WeeklyPattern,
)
from .zones import get_zone, shift_window


logger = logging.getLogger(__name__)


@transaction.atomic
def create_contract(data: ContractCreateData, repository=None) -> ContractCreateResult:
    """
    Create a contract, store its weekly pattern and seed its shifts.

    Args:
        data: ContractCreateData describing the contract and its pattern
        repository: OccurrenceRepository to seed through (defaults to the ORM)

    Returns:
        ContractCreateResult with the contract and a SeedResult

    Raises:
        ScheduleError: If seeding is requested with no enabled weekday
        DateRangeError: If start_date > end_date or the range is too long
        ValidationError: For malformed clock values, zones or rates
    """
    repository = repository or DjangoOccurrenceRepository()
    zone_id = data.timezone or get_setting('DEFAULT_TIMEZONE')

    _validate_pattern(data.pattern)
    _validate_rates(data.base_rate, data.overtime_rate, data.weekly_hours_threshold)
    desired = expand_schedule(
        data.start_date,
        data.end_date,
        data.pattern,
        zone_id,
        require_enabled=data.seed_shifts,
        max_days=get_setting('MAX_SCHEDULE_DAYS'),
    )

    contract = Contract(
        name=data.name,
        facility=data.facility,
        role=data.role,
        start_date=data.start_date,
        end_date=data.end_date,
        timezone=zone_id,
        base_rate=data.base_rate,
        overtime_rate=data.overtime_rate,
        weekly_hours_threshold=_default_threshold(data.weekly_hours_threshold),
        status=ContractStatus.PLANNED.value,
    )
    _save_validated(contract)
    _save_schedule_days(contract, data.pattern)

    seed_result = SeedResult(
        enabled_days=len(desired),
        total_days=(data.end_date - data.start_date).days + 1,
    )
    if data.seed_shifts:
        seed_result.created = synchronize(repository, contract.pk, desired).created

    logger.info(
        'Created contract %s (%s): %d shift(s) seeded over %d day(s)',
        contract.pk, contract.name, seed_result.created, seed_result.total_days,
    )
    return ContractCreateResult(contract=contract, seed_result=seed_result)


@transaction.atomic
def update_contract(contract_id, update_data: ContractUpdateData, repository=None) -> ContractUpdateResult:
    """
    Update a contract and reconcile its shifts with the new schedule.

    Shifts are reconciled whenever the dates, time zone or weekly pattern
    are part of the update (or ``seed_shifts`` is set); finalized shifts are
    never touched.

    Raises:
        ContractNotFound: If the contract does not exist
        InvalidTransitionError: If the status change is not forward-only
        ValidationError: If the new dates, pattern or rates are invalid
    """
    repository = repository or DjangoOccurrenceRepository()
    contract = _get_contract_for_update(contract_id)

    new_status = _validate_status_change(contract, update_data.status)
    start_date = update_data.start_date or contract.start_date
    end_date = update_data.end_date or contract.end_date
    zone_id = update_data.timezone or contract.timezone
    pattern = update_data.pattern or contract.weekly_pattern()

    if update_data.pattern is not None:
        _validate_pattern(update_data.pattern)
    _validate_rates(update_data.base_rate, update_data.overtime_rate, update_data.weekly_hours_threshold)
    unclearable = sorted(set(update_data.cleared) - CLEARABLE_CONTRACT_FIELDS)
    if unclearable:
        raise ValidationError([f'{name} cannot be cleared' for name in unclearable])

    desired = None
    if update_data.affects_schedule or update_data.seed_shifts:
        desired = expand_schedule(
            start_date,
            end_date,
            pattern,
            zone_id,
            require_enabled=update_data.seed_shifts,
            max_days=get_setting('MAX_SCHEDULE_DAYS'),
        )

    _apply_field_updates(contract, {
        'name': update_data.name,
        'facility': update_data.facility,
        'role': update_data.role,
        'start_date': update_data.start_date,
        'end_date': update_data.end_date,
        'timezone': update_data.timezone,
        'base_rate': update_data.base_rate,
        'overtime_rate': update_data.overtime_rate,
        'weekly_hours_threshold': update_data.weekly_hours_threshold,
        'status': new_status,
    })
    for field_name in update_data.cleared:
        setattr(contract, field_name, None)
    _save_validated(contract)

    if update_data.pattern is not None:
        _save_schedule_days(contract, update_data.pattern)

    update_result = SyncResult()
    if desired is not None:
        update_result = synchronize(repository, contract.pk, desired)

    logger.info(
        'Updated contract %s: %d created, %d updated, %d deleted',
        contract.pk, update_result.created, update_result.updated, update_result.deleted,
    )
    return ContractUpdateResult(contract=contract, update_result=update_result)


def change_contract_status(contract_id, status) -> Contract:
    """Move a contract to ``status`` (planned -> active -> archived only)."""
    return update_contract(contract_id, ContractUpdateData(status=status)).contract


def get_contract(contract_id) -> Contract:
    try:
        return Contract.objects.with_schedule().get(pk=contract_id)
    except Contract.DoesNotExist:
        raise ContractNotFound(f'Contract {contract_id} not found')


def list_contracts(status: Optional[str] = None, active_on: Optional[date] = None) -> List[Contract]:
    """
    List contracts, optionally filtered by lifecycle status and by a date
    their range must cover.

    Raises:
        ValidationError: If status is not a known contract status
    """
    queryset = Contract.objects.with_schedule()
    if status:
        try:
            queryset = queryset.with_status(status)
        except ValueError:
            raise ValidationError(f'Unknown contract status {status!r}')
    if active_on is not None:
        queryset = queryset.active_on_date(active_on)
    return list(queryset)


def resync_contract(contract_id, repository=None) -> SyncResult:
    """Reconcile a contract's shifts with its stored schedule."""
    repository = repository or DjangoOccurrenceRepository()
    contract = get_contract(contract_id)
    desired = expand_schedule(
        contract.start_date,
        contract.end_date,
        contract.weekly_pattern(),
        contract.timezone,
        max_days=get_setting('MAX_SCHEDULE_DAYS'),
    )
    return synchronize(repository, contract.pk, desired)


def resync_all_contracts(repository=None) -> SyncResult:
    """
    Reconcile every non-archived contract.

    Returns:
        Totals across all contracts
    """
    total = SyncResult()
    for contract_id in Contract.objects.schedulable().values_list('pk', flat=True):
        total = total + resync_contract(contract_id, repository)
    return total


@transaction.atomic
def create_manual_occurrence(
    local_date: date,
    start: str,
    end: str,
    zone_id: Optional[str] = None,
) -> ShiftOccurrence:
    """
    Record a shift that does not belong to any contract.

    ``end <= start`` is read as ending on the following day.
    """
    zone_id = zone_id or get_setting('DEFAULT_TIMEZONE')
    start_utc, end_utc = shift_window(local_date, start, end, zone_id)

    occurrence = ShiftOccurrence(
        contract=None,
        local_date=local_date,
        start_utc=start_utc,
        end_utc=end_utc,
        source=OccurrenceSource.MANUAL.value,
        status=OccurrenceStatus.PLANNED.value,
    )
    _save_validated(occurrence)
    return occurrence


@transaction.atomic
def confirm_occurrence_completion(occurrence_id, actual_start: datetime, actual_end: datetime) -> ShiftOccurrence:
    """
    Record actual worked times and finalize a shift.

    Raises:
        OccurrenceNotFound: If the shift does not exist
        ConflictError: If the shift is already finalized
        ValidationError: If the times are naive or not increasing
    """
    occurrence = _get_occurrence_for_update(occurrence_id)

    if occurrence.is_finalized:
        raise ConflictError(f'Shift {occurrence_id} is already finalized')

    if actual_start.tzinfo is None or actual_end.tzinfo is None:
        raise ValidationError('Actual start and end must include a time zone')

    if actual_start >= actual_end:
        raise ValidationError('Actual end must be after actual start')

    occurrence.actual_start = actual_start
    occurrence.actual_end = actual_end
    occurrence.status = OccurrenceStatus.FINALIZED.value
    _save_validated(occurrence)

    logger.info('Finalized shift %s on %s', occurrence.pk, occurrence.local_date)
    return occurrence


def get_occurrences_in_range(start_date: date, end_date: date, contract_id=None, repository=None) -> List:
    """
    Get shifts whose local date lies within an inclusive range.

    Raises:
        DateRangeError: If start_date > end_date or the range is too long
    """
    validate_range(start_date, end_date, get_setting('MAX_SCHEDULE_DAYS'))
    repository = repository or DjangoOccurrenceRepository()
    return repository.in_date_range(start_date, end_date, contract_id)


def weekly_earnings_for_contract(
    contract_id,
    anchor_date: date,
    repository=None,
) -> Tuple[WeekBoundaries, PayrollSummary]:
    """Hours and earnings for the Sunday-Saturday week containing ``anchor_date``."""
    repository = repository or DjangoOccurrenceRepository()
    contract = get_contract(contract_id)
    week = get_week_boundaries(anchor_date)
    shifts = repository.in_date_range(week.week_start, week.week_end, contract.pk)
    return week, weekly_earnings(contract, week.week_start, week.week_end, shifts)


def monthly_earnings_for_contract(
    contract_id,
    anchor_date: date,
    repository=None,
) -> Tuple[MonthBoundaries, PayrollSummary]:
    """
    Hours and earnings for the calendar month containing ``anchor_date``.

    Whole Sunday-Saturday weeks overlapping the month are counted, so
    shifts just outside the month are fetched too.
    """
    repository = repository or DjangoOccurrenceRepository()
    contract = get_contract(contract_id)
    month = get_month_boundaries(anchor_date)
    shifts = repository.in_date_range(
        week_start_sunday(month.month_start),
        add_days(week_start_sunday(month.month_end), 6),
        contract.pk,
    )
    return month, monthly_earnings(contract, month.month_start, month.month_end, shifts)


def payroll_summary(
    start_date: date,
    end_date: date,
    zone_id: Optional[str] = None,
    repository=None,
) -> PayrollSummary:
    """
    Hours and earnings across all contracts for the weeks overlapping a range.

    Manual shifts add hours but no earnings; their clock readings are taken
    in ``zone_id`` (the default zone when omitted).

    Raises:
        DateRangeError: If start_date > end_date or the range is too long
        UnknownZoneError: If zone_id is not a known zone
    """
    validate_range(start_date, end_date, get_setting('MAX_SCHEDULE_DAYS'))
    repository = repository or DjangoOccurrenceRepository()
    zone_id = zone_id or get_setting('DEFAULT_TIMEZONE')
    get_zone(zone_id)
    shifts = repository.in_date_range(
        week_start_sunday(start_date),
        add_days(week_start_sunday(end_date), 6),
    )
    contract_ids = {shift.contract_id for shift in shifts if shift.contract_id is not None}
    return period_summary(start_date, end_date, shifts, Contract.objects.in_bulk(contract_ids), zone_id)


def _get_contract_for_update(contract_id) -> Contract:
    try:
        return Contract.objects.select_for_update().get(pk=contract_id)
    except Contract.DoesNotExist:
        raise ContractNotFound(f'Contract {contract_id} not found')


def _get_occurrence_for_update(occurrence_id) -> ShiftOccurrence:
    """
    Lock a shift for finalizing.

    Contract shifts lock their contract row first, the same row every
    reconcile of that contract holds, so a confirm and a reconcile never
    interleave.
    """
    try:
        contract_id = ShiftOccurrence.objects.values_list('contract_id', flat=True).get(pk=occurrence_id)
        if contract_id is not None:
            list(Contract.objects.select_for_update().filter(pk=contract_id).only('pk'))
        return ShiftOccurrence.objects.select_for_update().get(pk=occurrence_id)
    except ShiftOccurrence.DoesNotExist:
        raise OccurrenceNotFound(f'Shift {occurrence_id} not found')


def _validate_status_change(contract: Contract, status) -> Optional[str]:
    """Return the new status value, or None if the status does not change."""
    if status is None:
        return None

    try:
        target = ContractStatus(status)
    except ValueError:
        raise ValidationError(f'Unknown contract status {status!r}')

    current = ContractStatus(contract.status)
    if target == current:
        return None

    if not current.can_transition_to(target):
        raise InvalidTransitionError(
            f'Invalid status transition from {current.value} to {target.value}'
        )
    return target.value


def _validate_pattern(pattern: WeeklyPattern) -> None:
    """Every slot's clock values must parse, enabled or not."""
    for day in pattern.days:
        parse_clock(day.start)
        parse_clock(day.end)


def _validate_rates(
    base_rate: Optional[Decimal],
    overtime_rate: Optional[Decimal],
    weekly_hours_threshold: Optional[Decimal],
) -> None:
    errors = []
    for label, value in (
        ('baseRate', base_rate),
        ('overtimeRate', overtime_rate),
        ('weeklyHoursThreshold', weekly_hours_threshold),
    ):
        if value is not None and Decimal(value) < 0:
            errors.append(f'{label} must not be negative')
    if errors:
        raise ValidationError(errors)


def _default_threshold(value: Optional[Decimal]) -> Decimal:
    if value is not None:
        return value
    return Decimal(str(get_setting('DEFAULT_WEEKLY_HOURS_THRESHOLD')))


def _save_schedule_days(contract: Contract, pattern: WeeklyPattern) -> None:
    for weekday, day in enumerate(pattern.days):
        ContractScheduleDay.objects.update_or_create(
            contract=contract,
            weekday=weekday,
            defaults={
                'enabled': day.enabled,
                'start_local': day.start,
                'end_local': day.end,
            },
        )


def _save_validated(instance) -> None:
    """Save a model, converting Django's validation errors into ours."""
    try:
        instance.save()
    except DjangoValidationError as exc:
        raise ValidationError(exc.messages)


def _apply_field_updates(obj, fields: dict) -> None:
    """Apply field updates to object if values are not None (DRY helper)."""
    for field_name, value in fields.items():
        if value is not None:
            setattr(obj, field_name, value)