"""
Reconciliation of a contract's desired occurrences with persisted ones.

``reconcile`` is a pure diff keyed by ``(contract_id, local_date)``;
``synchronize`` applies that diff through an ``OccurrenceRepository`` as a
single atomic unit per contract.

Finalized occurrences are never created over, updated or deleted here.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from .types import DesiredOccurrence, OccurrenceSource, SyncResult


logger = logging.getLogger(__name__)


@dataclass
class OccurrenceUpdate:
    occurrence: object
    desired: DesiredOccurrence


@dataclass
class ReconcilePlan:
    to_create: List[DesiredOccurrence] = field(default_factory=list)
    to_update: List[OccurrenceUpdate] = field(default_factory=list)
    to_delete: List[object] = field(default_factory=list)
    finalized_touched_count: int = 0

    @property
    def is_empty(self) -> bool:
        return not (self.to_create or self.to_update or self.to_delete)


def reconcile(contract_id, desired: Sequence[DesiredOccurrence], existing: Sequence) -> ReconcilePlan:
    """
    Compute the create/update/delete actions that bring ``existing`` in line
    with ``desired``.

    Only contract-sourced occurrences owned by ``contract_id`` take part;
    anything else in ``existing`` is ignored. When several records share a
    date, a finalized one keeps the date, otherwise the lowest id does, and
    the remaining non-finalized records are deleted.

    Args:
        contract_id: Contract whose occurrences are being reconciled
        desired: Occurrences the contract's schedule implies
        existing: Currently persisted occurrences for the contract

    Returns:
        ReconcilePlan; applying it and reconciling again yields an empty plan
    """
    desired_by_date = {occurrence.local_date: occurrence for occurrence in desired}

    existing_by_date: Dict = defaultdict(list)
    for occurrence in existing:
        if occurrence.contract_id != contract_id or occurrence.source != OccurrenceSource.CONTRACT:
            continue
        existing_by_date[occurrence.local_date].append(occurrence)

    plan = ReconcilePlan()

    for local_date in sorted(existing_by_date):
        records = sorted(
            existing_by_date[local_date],
            key=lambda o: (not o.is_finalized, _sort_id(o)),
        )
        keeper, extras = records[0], records[1:]
        target = desired_by_date.get(local_date)

        for extra in extras:
            if extra.is_finalized:
                if target is None:
                    plan.finalized_touched_count += 1
            else:
                plan.to_delete.append(extra)

        if keeper.is_finalized:
            if target is None:
                plan.finalized_touched_count += 1
        elif target is None:
            plan.to_delete.append(keeper)
        elif (keeper.start_utc, keeper.end_utc) != (target.start_utc, target.end_utc):
            plan.to_update.append(OccurrenceUpdate(keeper, target))

    for local_date in sorted(desired_by_date):
        if local_date not in existing_by_date:
            plan.to_create.append(desired_by_date[local_date])

    return plan


def apply_plan(repository, contract_id, plan: ReconcilePlan) -> SyncResult:
    """Apply ``plan`` through ``repository``; callers provide the transaction."""
    deleted = repository.delete(plan.to_delete) if plan.to_delete else 0
    # Rows finalized since the plan was computed are skipped by the repository.
    updated = sum(
        1 for update in plan.to_update
        if repository.update_times(update.occurrence, update.desired)
    )
    created = len(repository.create(contract_id, plan.to_create)) if plan.to_create else 0

    return SyncResult(
        created=created,
        updated=updated,
        deleted=deleted,
        finalized_touched=plan.finalized_touched_count,
    )


def synchronize(repository, contract_id, desired: Sequence[DesiredOccurrence]) -> SyncResult:
    """
    Reconcile and apply for one contract inside ``repository.atomic``.

    The repository serializes concurrent writers for the same contract and
    rolls the whole batch back if any single action fails.
    """
    with repository.atomic(contract_id):
        existing = repository.for_contract(contract_id)
        plan = reconcile(contract_id, desired, existing)
        result = apply_plan(repository, contract_id, plan)

    logger.info(
        'Synchronized contract %s: %d created, %d updated, %d deleted',
        contract_id, result.created, result.updated, result.deleted,
    )
    if result.finalized_touched:
        logger.warning(
            'Contract %s: %d finalized shift(s) fall outside the schedule and were left untouched',
            contract_id, result.finalized_touched,
        )
    return result


def _sort_id(occurrence):
    identifier = getattr(occurrence, 'id', None)
    return (identifier is None, identifier if identifier is not None else 0)
