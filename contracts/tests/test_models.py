"""
Tests for contract models, their validation and custom managers.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.test import TestCase

from contracts import services
from contracts.models import Contract, ContractScheduleDay, ShiftOccurrence
from contracts.types import OccurrenceSource, OccurrenceStatus

from .helpers import CHICAGO, contract_data


def make_contract(**overrides):
    fields = {
        'name': 'Night float',
        'start_date': date(2024, 1, 1),
        'end_date': date(2024, 6, 30),
        'timezone': CHICAGO,
        'base_rate': Decimal('50.00'),
    }
    fields.update(overrides)
    return Contract.objects.create(**fields)


class ContractModelTests(TestCase):

    def test_defaults(self):
        contract = make_contract()

        self.assertEqual(contract.status, 'planned')
        self.assertIsNone(contract.overtime_rate)
        self.assertEqual(str(contract), 'Night float (2024-01-01 - 2024-06-30)')

    def test_end_date_before_start_date(self):
        with self.assertRaises(ValidationError):
            make_contract(end_date=date(2023, 12, 31))

    def test_pattern_without_days_is_disabled(self):
        self.assertFalse(make_contract().weekly_pattern().has_enabled_day)

    def test_schedule_day_name(self):
        contract = make_contract()
        day = ContractScheduleDay.objects.create(
            contract=contract, weekday=0, enabled=True, start_local='07:00', end_local='19:00',
        )
        self.assertEqual(day.weekday_name, 'Sunday')
        self.assertEqual(str(day), 'Sunday: 07:00-19:00')


class ShiftOccurrenceModelTests(TestCase):

    def setUp(self):
        self.contract = make_contract()
        self.start = datetime(2024, 1, 1, 13, tzinfo=timezone.utc)

    def make_occurrence(self, **overrides):
        fields = {
            'contract': self.contract,
            'local_date': date(2024, 1, 1),
            'start_utc': self.start,
            'end_utc': self.start + timedelta(hours=12),
            'source': OccurrenceSource.CONTRACT.value,
        }
        fields.update(overrides)
        return ShiftOccurrence.objects.create(**fields)

    def test_end_must_follow_start(self):
        with self.assertRaises(ValidationError):
            self.make_occurrence(end_utc=self.start)

    def test_contract_shift_needs_contract(self):
        with self.assertRaises(ValidationError):
            self.make_occurrence(contract=None)

    def test_finalized_needs_actual_times(self):
        with self.assertRaises(ValidationError):
            self.make_occurrence(status=OccurrenceStatus.FINALIZED.value)

    def test_one_contract_shift_per_date(self):
        self.make_occurrence()

        with self.assertRaises(ValidationError):
            self.make_occurrence()

        duplicate = ShiftOccurrence(
            contract=self.contract, local_date=date(2024, 1, 1), start_utc=self.start,
            end_utc=self.start + timedelta(hours=12), source=OccurrenceSource.CONTRACT.value,
        )
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                ShiftOccurrence.objects.bulk_create([duplicate])

    def test_manual_shifts_may_share_a_date(self):
        self.make_occurrence(contract=None, source=OccurrenceSource.MANUAL.value)
        manual = self.make_occurrence(contract=None, source=OccurrenceSource.MANUAL.value)

        self.assertTrue(manual.is_manual)


class ManagerTests(TestCase):

    def setUp(self):
        self.planned = services.create_contract(contract_data(name='Planned')).contract
        self.active = services.create_contract(contract_data(
            name='Active', start_date=date(2024, 2, 1), end_date=date(2024, 2, 29),
        )).contract
        services.change_contract_status(self.active.pk, 'active')

    def test_contract_queries(self):
        self.assertEqual(list(Contract.objects.with_status('active')), [self.active])
        self.assertEqual(Contract.objects.schedulable().count(), 2)
        self.assertEqual(list(Contract.objects.active_on_date(date(2024, 2, 10))), [self.active])

    def test_occurrence_queries(self):
        first = ShiftOccurrence.objects.for_contract(self.planned.pk).first()
        services.confirm_occurrence_completion(first.pk, first.start_utc, first.end_utc)
        services.create_manual_occurrence(date(2024, 1, 2), '07:00', '15:00', CHICAGO)

        self.assertEqual(ShiftOccurrence.objects.finalized().count(), 1)
        self.assertEqual(ShiftOccurrence.objects.manual().count(), 1)
        self.assertEqual(
            ShiftOccurrence.objects.from_contract().pending().on_dates(date(2024, 1, 1), date(2024, 1, 7)).count(),
            2,
        )
