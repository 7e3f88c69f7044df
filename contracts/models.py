"""
Models for the contract scheduling system.

This implementation uses the Occurrence Materialization Pattern where:
- Contract and ContractScheduleDay store the recurring weekly pattern and its date range
- ShiftOccurrence stores ALL concrete shifts (both contract-generated and manually entered)
"""

from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from .managers import ContractManager, ShiftOccurrenceManager
from .types import (
    WEEKDAY_NAMES,
    ContractStatus,
    OccurrenceSource,
    OccurrenceStatus,
    WeeklyPattern,
)


class Contract(models.Model):
    """
    A work contract valid over an inclusive date range.

    The weekly pattern lives in seven ContractScheduleDay rows; the shifts
    it implies are materialized as ShiftOccurrence rows.
    """

    name = models.CharField(max_length=200)
    facility = models.CharField(max_length=200, blank=True, default='')
    role = models.CharField(max_length=200, blank=True, default='')

    start_date = models.DateField(help_text="First date of the contract (inclusive)")
    end_date = models.DateField(help_text="Last date of the contract (inclusive)")
    timezone = models.CharField(
        max_length=64,
        help_text="IANA time zone the schedule's clock times are read in"
    )

    base_rate = models.DecimalField(max_digits=10, decimal_places=2)
    overtime_rate = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Hourly rate above the weekly threshold (null = base rate)"
    )
    weekly_hours_threshold = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Weekly hours after which overtime applies (null = 40)"
    )

    status = models.CharField(
        max_length=20,
        choices=ContractStatus.choices(),
        default=ContractStatus.PLANNED.value
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ContractManager()

    class Meta:
        ordering = ['start_date', 'id']
        indexes = [
            models.Index(fields=['status', 'start_date', 'end_date'], name='contract_status_dates_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.start_date} - {self.end_date})"

    def weekly_pattern(self) -> WeeklyPattern:
        """Build the in-memory pattern from the stored schedule days."""
        days = {day.weekday: day for day in self.schedule_days.all()}
        if not days:
            return WeeklyPattern.disabled()
        return WeeklyPattern.from_days(
            {
                'weekday': weekday,
                'enabled': days[weekday].enabled,
                'start': days[weekday].start_local,
                'end': days[weekday].end_local,
            }
            for weekday in sorted(days)
        )

    def clean(self):
        """Validate contract data."""
        super().clean()

        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValidationError({
                'end_date': 'End date must be on or after start date.'
            })

    def save(self, *args, **kwargs):
        """Save with validation."""
        self.full_clean()
        super().save(*args, **kwargs)


class ContractScheduleDay(models.Model):
    """One weekday slot (0=Sunday .. 6=Saturday) of a contract's weekly pattern."""

    contract = models.ForeignKey(
        Contract,
        on_delete=models.CASCADE,
        related_name='schedule_days'
    )
    weekday = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(0), MaxValueValidator(6)],
        help_text="Day of week (0=Sunday, 6=Saturday)"
    )
    enabled = models.BooleanField(default=False)
    start_local = models.CharField(max_length=5, help_text="Local start time, HH:mm")
    end_local = models.CharField(max_length=5, help_text="Local end time, HH:mm")

    class Meta:
        ordering = ['contract', 'weekday']
        constraints = [
            models.UniqueConstraint(
                fields=['contract', 'weekday'],
                name='contract_schedule_day_unique_weekday',
            ),
        ]

    def __str__(self):
        state = f"{self.start_local}-{self.end_local}" if self.enabled else "off"
        return f"{self.weekday_name}: {state}"

    @property
    def weekday_name(self):
        """Get human-readable weekday name."""
        return WEEKDAY_NAMES[self.weekday]


class ShiftOccurrence(models.Model):
    """
    Stores ALL concrete shifts (both contract-generated and manual).

    Manual shifts: contract = null, source = manual
    Contract shifts: reference their Contract, at most one per local date
    """

    contract = models.ForeignKey(
        Contract,
        on_delete=models.PROTECT,
        related_name='occurrences',
        null=True,
        blank=True,
        help_text="Owning contract (null for manually entered shifts)"
    )

    local_date = models.DateField(help_text="Calendar date the shift starts on")
    start_utc = models.DateTimeField()
    end_utc = models.DateTimeField()

    source = models.CharField(
        max_length=20,
        choices=OccurrenceSource.choices(),
        default=OccurrenceSource.MANUAL.value
    )
    status = models.CharField(
        max_length=20,
        choices=OccurrenceStatus.choices(),
        default=OccurrenceStatus.PLANNED.value
    )
    actual_start = models.DateTimeField(null=True, blank=True)
    actual_end = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ShiftOccurrenceManager()

    class Meta:
        ordering = ['local_date', 'start_utc', 'id']
        indexes = [
            models.Index(fields=['contract', 'local_date'], name='shift_contract_date_idx'),
            models.Index(fields=['local_date', 'status'], name='shift_date_status_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['contract', 'local_date'],
                condition=models.Q(source='contract'),
                name='shift_occurrence_unique_contract_date',
            ),
        ]

    def __str__(self):
        status_str = " [finalized]" if self.is_finalized else ""
        return f"Shift {self.local_date} ({self.source}){status_str}"

    @property
    def is_finalized(self):
        return self.status == OccurrenceStatus.FINALIZED

    @property
    def is_manual(self):
        return self.contract_id is None

    def clean(self):
        """Validate occurrence data."""
        super().clean()

        if self.start_utc and self.end_utc and self.start_utc >= self.end_utc:
            raise ValidationError({
                'end_utc': 'Shift must end after it starts.'
            })

        if self.source == OccurrenceSource.CONTRACT and self.contract_id is None:
            raise ValidationError({
                'contract': 'Contract shifts must reference a contract.'
            })

        if self.is_finalized and (self.actual_start is None or self.actual_end is None):
            raise ValidationError({
                'status': 'Finalized shifts need actual start and end times.'
            })

    def save(self, *args, **kwargs):
        """Save with validation."""
        self.full_clean()
        super().save(*args, **kwargs)
