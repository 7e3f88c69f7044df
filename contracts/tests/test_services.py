"""
Tests for the contract service layer against the database.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from django.test import TestCase

from contracts import services
from contracts.exceptions import (
    ConflictError,
    ContractNotFound,
    DateRangeError,
    InvalidTransitionError,
    OccurrenceNotFound,
    ScheduleError,
    UnknownZoneError,
    ValidationError,
)
from contracts.models import Contract, ContractScheduleDay, ShiftOccurrence
from contracts.types import ContractStatus, ContractUpdateData, OccurrenceSource, WeeklyPattern

from .helpers import CHICAGO, FRIDAY, MONDAY, WEDNESDAY, contract_data, weekly_pattern


class CreateContractTests(TestCase):

    def test_create_seeds_occurrences(self):
        result = services.create_contract(contract_data())

        self.assertEqual(result.seed_result.created, 6)
        self.assertEqual(result.seed_result.enabled_days, 6)
        self.assertEqual(result.seed_result.total_days, 14)
        self.assertEqual(result.contract.status, ContractStatus.PLANNED.value)
        self.assertEqual(ShiftOccurrence.objects.for_contract(result.contract.pk).count(), 6)
        self.assertEqual(ContractScheduleDay.objects.filter(contract=result.contract).count(), 7)

    def test_stored_pattern_round_trips(self):
        contract = services.create_contract(contract_data()).contract

        self.assertEqual(services.get_contract(contract.pk).weekly_pattern(), contract_data().pattern)

    def test_threshold_defaults_when_omitted(self):
        contract = services.create_contract(contract_data(weekly_hours_threshold=None)).contract
        contract.refresh_from_db()

        self.assertEqual(contract.weekly_hours_threshold, Decimal('40'))

    def test_timezone_defaults_when_omitted(self):
        contract = services.create_contract(contract_data(timezone=None)).contract
        self.assertEqual(contract.timezone, CHICAGO)

    def test_seeding_requires_an_enabled_weekday(self):
        with self.assertRaises(ScheduleError):
            services.create_contract(contract_data(pattern=WeeklyPattern.disabled()))

        self.assertFalse(Contract.objects.exists())

    def test_disabled_pattern_allowed_without_seeding(self):
        result = services.create_contract(contract_data(pattern=WeeklyPattern.disabled(), seed_shifts=False))

        self.assertEqual(result.seed_result.created, 0)
        self.assertFalse(ShiftOccurrence.objects.exists())

    def test_inverted_dates_rejected(self):
        with self.assertRaises(DateRangeError):
            services.create_contract(contract_data(start_date=date(2024, 2, 1), end_date=date(2024, 1, 1)))

        self.assertFalse(Contract.objects.exists())

    def test_unknown_zone_rejected(self):
        with self.assertRaises(UnknownZoneError):
            services.create_contract(contract_data(timezone='Atlantis/Capital'))

    def test_negative_rate_rejected(self):
        with self.assertRaises(ValidationError):
            services.create_contract(contract_data(base_rate=Decimal('-1')))


class UpdateContractTests(TestCase):

    def setUp(self):
        self.contract = services.create_contract(contract_data()).contract

    def dates(self):
        return list(
            ShiftOccurrence.objects.for_contract(self.contract.pk).values_list('local_date', flat=True)
        )

    def test_narrowing_end_date_deletes_occurrence(self):
        result = services.update_contract(self.contract.pk, ContractUpdateData(end_date=date(2024, 1, 11)))

        self.assertEqual(result.update_result.deleted, 1)
        self.assertNotIn(date(2024, 1, 12), self.dates())

    def test_pattern_swap(self):
        services.update_contract(self.contract.pk, ContractUpdateData(pattern=weekly_pattern(MONDAY)))

        result = services.update_contract(self.contract.pk, ContractUpdateData(pattern=weekly_pattern(WEDNESDAY)))

        self.assertEqual((result.update_result.created, result.update_result.deleted), (2, 2))
        self.assertEqual(self.dates(), [date(2024, 1, 3), date(2024, 1, 10)])
        self.assertEqual(services.get_contract(self.contract.pk).weekly_pattern(), weekly_pattern(WEDNESDAY))

    def test_time_change_updates_existing_rows(self):
        ids = set(ShiftOccurrence.objects.values_list('pk', flat=True))

        result = services.update_contract(
            self.contract.pk,
            ContractUpdateData(pattern=weekly_pattern(MONDAY, WEDNESDAY, FRIDAY, start='08:00', end='20:00')),
        )

        self.assertEqual(result.update_result.updated, 6)
        self.assertEqual(set(ShiftOccurrence.objects.values_list('pk', flat=True)), ids)
        first = ShiftOccurrence.objects.first()
        self.assertEqual(first.start_utc, datetime(2024, 1, 1, 14, 0, tzinfo=timezone.utc))

    def test_finalized_occurrence_survives_narrowing(self):
        last = ShiftOccurrence.objects.get(contract=self.contract, local_date=date(2024, 1, 12))
        services.confirm_occurrence_completion(last.pk, last.start_utc, last.end_utc)

        result = services.update_contract(self.contract.pk, ContractUpdateData(end_date=date(2024, 1, 11)))

        self.assertEqual(result.update_result.deleted, 0)
        self.assertEqual(result.update_result.finalized_touched, 1)
        self.assertTrue(ShiftOccurrence.objects.get(pk=last.pk).is_finalized)

    def test_non_schedule_update_does_not_resync(self):
        ShiftOccurrence.objects.filter(local_date=date(2024, 1, 1)).delete()

        result = services.update_contract(self.contract.pk, ContractUpdateData(name='Renamed'))

        self.assertEqual(result.update_result.created, 0)
        self.assertEqual(Contract.objects.get(pk=self.contract.pk).name, 'Renamed')
        self.assertNotIn(date(2024, 1, 1), self.dates())

    def test_invalid_update_changes_nothing(self):
        with self.assertRaises(DateRangeError):
            services.update_contract(self.contract.pk, ContractUpdateData(end_date=date(2023, 12, 1)))

        self.assertEqual(Contract.objects.get(pk=self.contract.pk).end_date, date(2024, 1, 14))
        self.assertEqual(len(self.dates()), 6)

    def test_missing_contract(self):
        with self.assertRaises(ContractNotFound):
            services.update_contract(9999, ContractUpdateData(name='Ghost'))

    def test_cleared_rates_are_reset_to_null(self):
        services.update_contract(
            self.contract.pk,
            ContractUpdateData(cleared=frozenset({'overtime_rate', 'weekly_hours_threshold'})),
        )

        contract = Contract.objects.get(pk=self.contract.pk)
        self.assertIsNone(contract.overtime_rate)
        self.assertIsNone(contract.weekly_hours_threshold)
        self.assertEqual(contract.base_rate, Decimal('45.00'))

    def test_required_fields_cannot_be_cleared(self):
        with self.assertRaises(ValidationError):
            services.update_contract(self.contract.pk, ContractUpdateData(cleared=frozenset({'base_rate'})))

        self.assertEqual(Contract.objects.get(pk=self.contract.pk).base_rate, Decimal('45.00'))


class ContractStatusTests(TestCase):

    def setUp(self):
        self.contract = services.create_contract(contract_data()).contract

    def test_forward_transitions(self):
        services.change_contract_status(self.contract.pk, 'active')
        services.change_contract_status(self.contract.pk, ContractStatus.ARCHIVED)

        self.assertEqual(Contract.objects.get(pk=self.contract.pk).status, 'archived')

    def test_same_status_is_accepted(self):
        contract = services.change_contract_status(self.contract.pk, 'planned')
        self.assertEqual(contract.status, 'planned')

    def test_backward_and_skipping_transitions_rejected(self):
        with self.assertRaises(InvalidTransitionError) as ctx:
            services.change_contract_status(self.contract.pk, 'archived')
        self.assertEqual(ctx.exception.message, 'Invalid status transition from planned to archived')

        services.change_contract_status(self.contract.pk, 'active')
        with self.assertRaises(InvalidTransitionError):
            services.change_contract_status(self.contract.pk, 'planned')

    def test_unknown_status(self):
        with self.assertRaises(ValidationError):
            services.change_contract_status(self.contract.pk, 'paused')


class ResyncTests(TestCase):

    def test_resync_restores_missing_rows(self):
        contract = services.create_contract(contract_data()).contract
        ShiftOccurrence.objects.filter(local_date=date(2024, 1, 3)).delete()

        result = services.resync_contract(contract.pk)

        self.assertEqual(result.created, 1)
        self.assertEqual(services.resync_contract(contract.pk).created, 0)

    def test_resync_all_skips_archived(self):
        active = services.create_contract(contract_data()).contract
        archived = services.create_contract(contract_data(name='Old contract')).contract
        services.change_contract_status(archived.pk, 'active')
        services.change_contract_status(archived.pk, 'archived')
        ShiftOccurrence.objects.all().delete()

        result = services.resync_all_contracts()

        self.assertEqual(result.created, 6)
        self.assertEqual(ShiftOccurrence.objects.for_contract(active.pk).count(), 6)
        self.assertFalse(ShiftOccurrence.objects.for_contract(archived.pk).exists())

    def test_list_contracts_by_status(self):
        services.create_contract(contract_data())
        other = services.create_contract(contract_data(name='Other')).contract
        services.change_contract_status(other.pk, 'active')

        self.assertEqual([c.pk for c in services.list_contracts('active')], [other.pk])
        self.assertEqual(len(services.list_contracts()), 2)
        with self.assertRaises(ValidationError):
            services.list_contracts('bogus')

    def test_list_contracts_active_on_date(self):
        january = services.create_contract(contract_data()).contract
        services.create_contract(contract_data(
            name='February', start_date=date(2024, 2, 1), end_date=date(2024, 2, 14),
        ))

        self.assertEqual([c.pk for c in services.list_contracts(active_on=date(2024, 1, 14))], [january.pk])
        self.assertEqual(services.list_contracts(active_on=date(2024, 1, 20)), [])


class OccurrenceServiceTests(TestCase):

    def test_manual_overnight_shift(self):
        occurrence = services.create_manual_occurrence(date(2024, 1, 15), '19:00', '07:00', CHICAGO)

        self.assertIsNone(occurrence.contract_id)
        self.assertEqual(occurrence.source, OccurrenceSource.MANUAL.value)
        self.assertEqual(occurrence.end_utc - occurrence.start_utc, timedelta(hours=12))

    def test_confirm_finalizes_once(self):
        occurrence = services.create_manual_occurrence(date(2024, 1, 15), '07:00', '19:00', CHICAGO)
        actual_start = occurrence.start_utc + timedelta(minutes=10)

        confirmed = services.confirm_occurrence_completion(occurrence.pk, actual_start, occurrence.end_utc)

        self.assertTrue(confirmed.is_finalized)
        self.assertEqual(confirmed.actual_start, actual_start)
        with self.assertRaises(ConflictError):
            services.confirm_occurrence_completion(occurrence.pk, actual_start, occurrence.end_utc)

    def test_confirm_validates_times(self):
        occurrence = services.create_manual_occurrence(date(2024, 1, 15), '07:00', '19:00', CHICAGO)

        with self.assertRaises(ValidationError):
            services.confirm_occurrence_completion(occurrence.pk, occurrence.end_utc, occurrence.start_utc)
        with self.assertRaises(ValidationError):
            services.confirm_occurrence_completion(occurrence.pk, datetime(2024, 1, 15, 7), datetime(2024, 1, 15, 19))
        with self.assertRaises(OccurrenceNotFound):
            services.confirm_occurrence_completion(9999, occurrence.start_utc, occurrence.end_utc)

    def test_occurrences_in_range(self):
        contract = services.create_contract(contract_data()).contract
        services.create_manual_occurrence(date(2024, 1, 2), '07:00', '12:00', CHICAGO)

        everything = services.get_occurrences_in_range(date(2024, 1, 1), date(2024, 1, 7))
        only_contract = services.get_occurrences_in_range(date(2024, 1, 1), date(2024, 1, 7), contract.pk)

        self.assertEqual(len(everything), 4)
        self.assertEqual(len(only_contract), 3)
        with self.assertRaises(DateRangeError):
            services.get_occurrences_in_range(date(2024, 1, 7), date(2024, 1, 1))

    def test_weekly_earnings_for_contract(self):
        contract = services.create_contract(contract_data()).contract

        week, summary = services.weekly_earnings_for_contract(contract.pk, date(2024, 1, 10))

        self.assertEqual(week, (date(2024, 1, 7), date(2024, 1, 13)))
        self.assertEqual(summary.hours, Decimal(36))
        self.assertEqual(summary.earnings, Decimal('1620.00'))

    def test_monthly_earnings_for_contract(self):
        contract = services.create_contract(contract_data()).contract

        month, summary = services.monthly_earnings_for_contract(contract.pk, date(2024, 1, 20))

        self.assertEqual(month, (date(2024, 1, 1), date(2024, 1, 31)))
        self.assertEqual(summary.hours, Decimal(72))
        self.assertEqual(summary.earnings, Decimal('3240.00'))

    def test_payroll_summary_counts_manual_hours_without_earnings(self):
        services.create_contract(contract_data())
        services.create_manual_occurrence(date(2024, 1, 2), '19:00', '07:00', CHICAGO)

        summary = services.payroll_summary(date(2024, 1, 1), date(2024, 1, 7), CHICAGO)

        self.assertEqual(summary.hours, Decimal(84))
        self.assertEqual(summary.earnings, Decimal('3240.00'))

    def test_payroll_summary_rejects_bad_input(self):
        with self.assertRaises(DateRangeError):
            services.payroll_summary(date(2024, 1, 7), date(2024, 1, 1))
        with self.assertRaises(UnknownZoneError):
            services.payroll_summary(date(2024, 1, 1), date(2024, 1, 7), 'Mars/Olympus')
