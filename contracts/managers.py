"""
Custom managers and querysets for contract models.

QuerySets define chainable query methods.
Managers use QuerySets to enable method chaining.
No business logic should be here - only query operations.
"""

from django.db import models

from .types import ContractStatus, OccurrenceSource, OccurrenceStatus


class ContractQuerySet(models.QuerySet):
    """Custom queryset for Contract model with chainable methods."""

    def with_status(self, status):
        """
        Get contracts in a given lifecycle status.

        Args:
            status: ContractStatus or its string value
        """
        return self.filter(status=ContractStatus(status).value)

    def schedulable(self):
        """Get contracts whose shifts are still kept in sync (not archived)."""
        return self.exclude(status=ContractStatus.ARCHIVED.value)

    def active_on_date(self, date):
        """
        Get contracts whose date range covers a specific date.

        Args:
            date: date object
        """
        return self.filter(start_date__lte=date, end_date__gte=date)

    def with_schedule(self):
        return self.prefetch_related('schedule_days')


class ContractManager(models.Manager.from_queryset(ContractQuerySet)):
    """Custom manager for Contract model."""


class ShiftOccurrenceQuerySet(models.QuerySet):
    """Custom queryset for ShiftOccurrence model with chainable methods."""

    def for_contract(self, contract_id):
        return self.filter(contract_id=contract_id)

    def from_contract(self):
        """Get occurrences materialized from a contract schedule."""
        return self.filter(source=OccurrenceSource.CONTRACT.value)

    def manual(self):
        """Get manually entered occurrences."""
        return self.filter(source=OccurrenceSource.MANUAL.value)

    def finalized(self):
        return self.filter(status=OccurrenceStatus.FINALIZED.value)

    def pending(self):
        """Get occurrences not yet confirmed as completed."""
        return self.exclude(status=OccurrenceStatus.FINALIZED.value)

    def on_dates(self, start_date, end_date):
        """
        Get occurrences whose local date lies within an inclusive range.

        Args:
            start_date: date object
            end_date: date object
        """
        return self.filter(local_date__gte=start_date, local_date__lte=end_date)


class ShiftOccurrenceManager(models.Manager.from_queryset(ShiftOccurrenceQuerySet)):
    """Custom manager for ShiftOccurrence model."""
