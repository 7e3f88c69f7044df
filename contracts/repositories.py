"""
Occurrence repositories used by the synchronizer.

``OccurrenceRepository`` is the seam between the pure scheduling code and
storage. ``DjangoOccurrenceRepository`` backs it with the ORM;
``InMemoryOccurrenceRepository`` keeps records in process and is what the
synchronizer's tests run against.
"""

import copy
import itertools
import threading
from abc import ABC, abstractmethod
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Optional, Sequence

from django.db import transaction
from django.utils import timezone

from .exceptions import ContractNotFound
from .models import Contract, ShiftOccurrence
from .types import DesiredOccurrence, OccurrenceSource, OccurrenceStatus


class OccurrenceRepository(ABC):
    """Storage operations the synchronizer, payroll and audit rely on."""

    @abstractmethod
    def atomic(self, contract_id):
        """
        Context manager for one contract's write batch.

        Must serialize concurrent writers for the same contract and undo
        every change made inside the block if it raises.
        """

    @abstractmethod
    def for_contract(self, contract_id) -> List:
        """Contract-sourced occurrences owned by ``contract_id``."""

    @abstractmethod
    def in_date_range(self, start_date: date, end_date: date, contract_id=None) -> List:
        """All occurrences whose local date lies in the inclusive range."""

    @abstractmethod
    def create(self, contract_id, desired: Sequence[DesiredOccurrence]) -> List:
        """Persist new contract-sourced occurrences."""

    @abstractmethod
    def update_times(self, occurrence, desired: DesiredOccurrence) -> bool:
        """
        Move a pending occurrence to the desired UTC window.

        Returns False, leaving the row untouched, if the occurrence has been
        finalized since it was read.
        """

    @abstractmethod
    def delete(self, occurrences: Sequence) -> int:
        """Delete the given occurrences that are still pending; returns how many were removed."""


class DjangoOccurrenceRepository(OccurrenceRepository):
    """ORM-backed repository; writers lock the contract row."""

    @contextmanager
    def atomic(self, contract_id):
        with transaction.atomic():
            locked = Contract.objects.select_for_update().filter(pk=contract_id).only('pk')
            if not list(locked):
                raise ContractNotFound(f'Contract {contract_id} not found')
            yield

    def for_contract(self, contract_id) -> List:
        return list(ShiftOccurrence.objects.for_contract(contract_id).from_contract())

    def in_date_range(self, start_date: date, end_date: date, contract_id=None) -> List:
        queryset = ShiftOccurrence.objects.on_dates(start_date, end_date)
        if contract_id is not None:
            queryset = queryset.for_contract(contract_id)
        return list(queryset)

    def create(self, contract_id, desired: Sequence[DesiredOccurrence]) -> List:
        occurrences = [
            ShiftOccurrence(
                contract_id=contract_id,
                local_date=item.local_date,
                start_utc=item.start_utc,
                end_utc=item.end_utc,
                source=OccurrenceSource.CONTRACT.value,
                status=OccurrenceStatus.PLANNED.value,
            )
            for item in desired
        ]
        if occurrences:
            ShiftOccurrence.objects.bulk_create(occurrences)
        return occurrences

    def update_times(self, occurrence, desired: DesiredOccurrence) -> bool:
        updated = ShiftOccurrence.objects.filter(pk=occurrence.pk).pending().update(
            start_utc=desired.start_utc,
            end_utc=desired.end_utc,
            updated_at=timezone.now(),
        )
        if updated:
            occurrence.start_utc = desired.start_utc
            occurrence.end_utc = desired.end_utc
        return bool(updated)

    def delete(self, occurrences: Sequence) -> int:
        ids = [occurrence.pk for occurrence in occurrences]
        if not ids:
            return 0
        deleted, _ = ShiftOccurrence.objects.filter(pk__in=ids).pending().delete()
        return deleted


@dataclass
class OccurrenceRecord:
    """Plain occurrence record held by the in-memory repository."""
    id: int
    contract_id: Optional[int]
    local_date: date
    start_utc: datetime
    end_utc: datetime
    source: str = OccurrenceSource.CONTRACT.value
    status: str = OccurrenceStatus.PLANNED.value
    actual_start: Optional[datetime] = None
    actual_end: Optional[datetime] = None

    @property
    def is_finalized(self) -> bool:
        return self.status == OccurrenceStatus.FINALIZED


class InMemoryOccurrenceRepository(OccurrenceRepository):
    """
    Process-local repository.

    ``atomic`` takes a per-contract lock and, if the block raises, restores
    that contract's records only; other contracts' batches are unaffected.
    Every read and write of the record store holds a store-wide lock.
    """

    def __init__(self, records: Sequence[OccurrenceRecord] = ()):
        self._records = {record.id: record for record in records}
        self._ids = itertools.count(max(self._records, default=0) + 1)
        self._store_lock = threading.RLock()
        self._registry_lock = threading.Lock()
        self._contract_locks = defaultdict(threading.RLock)

    @contextmanager
    def atomic(self, contract_id):
        with self._registry_lock:
            lock = self._contract_locks[contract_id]
        with lock:
            with self._store_lock:
                snapshot = copy.deepcopy(self._owned_by(contract_id))
            try:
                yield
            except BaseException:
                with self._store_lock:
                    for record in self._owned_by(contract_id):
                        del self._records[record.id]
                    for record in snapshot:
                        self._records[record.id] = record
                raise

    def add(self, **fields) -> OccurrenceRecord:
        """Insert a record directly, bypassing reconciliation (manual or finalized shifts)."""
        with self._store_lock:
            record = OccurrenceRecord(id=next(self._ids), **fields)
            self._records[record.id] = record
            return record

    def all(self) -> List[OccurrenceRecord]:
        with self._store_lock:
            return sorted(self._records.values(), key=lambda r: (r.local_date, r.id))

    def get(self, occurrence_id) -> OccurrenceRecord:
        with self._store_lock:
            return self._records[occurrence_id]

    def for_contract(self, contract_id) -> List[OccurrenceRecord]:
        return [
            record for record in self.all()
            if record.contract_id == contract_id and record.source == OccurrenceSource.CONTRACT
        ]

    def in_date_range(self, start_date: date, end_date: date, contract_id=None) -> List[OccurrenceRecord]:
        return [
            record for record in self.all()
            if start_date <= record.local_date <= end_date
            and (contract_id is None or record.contract_id == contract_id)
        ]

    def create(self, contract_id, desired: Sequence[DesiredOccurrence]) -> List[OccurrenceRecord]:
        created = []
        with self._store_lock:
            taken = {record.local_date for record in self.for_contract(contract_id)}
            for item in desired:
                if item.local_date in taken:
                    raise ValueError(f'Contract {contract_id} already has a shift on {item.local_date}')
                taken.add(item.local_date)
                created.append(self.add(
                    contract_id=contract_id,
                    local_date=item.local_date,
                    start_utc=item.start_utc,
                    end_utc=item.end_utc,
                ))
        return created

    def update_times(self, occurrence, desired: DesiredOccurrence) -> bool:
        with self._store_lock:
            record = self._records.get(occurrence.id)
            if record is None or record.is_finalized:
                return False
            record.start_utc = desired.start_utc
            record.end_utc = desired.end_utc
            return True

    def delete(self, occurrences: Sequence) -> int:
        deleted = 0
        with self._store_lock:
            for occurrence in occurrences:
                record = self._records.get(occurrence.id)
                if record is None or record.is_finalized:
                    continue
                del self._records[record.id]
                deleted += 1
        return deleted

    def _owned_by(self, contract_id) -> List[OccurrenceRecord]:
        return [record for record in self._records.values() if record.contract_id == contract_id]
