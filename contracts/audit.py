"""
Read-only audit of materialized contract shifts.

Recomputes each contract's desired occurrences and compares them with what
is persisted. Nothing here creates, updates or deletes occurrences.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Sequence

from .conf import get_setting
from .exceptions import ContractNotFound, ValidationError
from .expander import expand_schedule
from .models import Contract
from .repositories import DjangoOccurrenceRepository
from .types import DesiredOccurrence, OccurrenceSource


logger = logging.getLogger(__name__)

STATUS_HEALTHY = 'healthy'
STATUS_HAS_ISSUES = 'has_issues'
STATUS_ERROR = 'error'


@dataclass
class AuditResult:
    contract_id: int
    contract_name: str
    missing: List[date] = field(default_factory=list)
    duplicates: List[date] = field(default_factory=list)
    finalized_touched: int = 0
    expected_count: int = 0
    actual_count: int = 0
    status: str = STATUS_HEALTHY
    error: Optional[str] = None

    @property
    def is_healthy(self) -> bool:
        return self.status == STATUS_HEALTHY


def compare_occurrences(
    contract_id,
    contract_name: str,
    expected: Sequence[DesiredOccurrence],
    persisted: Sequence,
) -> AuditResult:
    """
    Diff expected against persisted occurrences keyed by local date.

    ``finalized_touched`` counts finalized occurrences a reconcile would
    leave stranded outside the expected set.
    """
    managed = [
        occurrence for occurrence in persisted
        if occurrence.contract_id == contract_id and occurrence.source == OccurrenceSource.CONTRACT
    ]
    by_date = defaultdict(list)
    for occurrence in managed:
        by_date[occurrence.local_date].append(occurrence)

    expected_dates = {occurrence.local_date for occurrence in expected}
    missing = sorted(d for d in expected_dates if d not in by_date)
    duplicates = sorted(d for d, records in by_date.items() if len(records) > 1)
    finalized_touched = sum(
        1 for occurrence in managed
        if occurrence.is_finalized and occurrence.local_date not in expected_dates
    )

    return AuditResult(
        contract_id=contract_id,
        contract_name=contract_name,
        missing=missing,
        duplicates=duplicates,
        finalized_touched=finalized_touched,
        expected_count=len(expected),
        actual_count=len(managed),
        status=STATUS_HAS_ISSUES if missing or duplicates else STATUS_HEALTHY,
    )


def audit_contract(contract_id, repository=None) -> AuditResult:
    """
    Audit one contract.

    Raises:
        ContractNotFound: If the contract does not exist
        ValidationError: If the stored schedule can no longer be expanded
    """
    repository = repository or DjangoOccurrenceRepository()
    try:
        contract = Contract.objects.with_schedule().get(pk=contract_id)
    except Contract.DoesNotExist:
        raise ContractNotFound(f'Contract {contract_id} not found')

    expected = expand_schedule(
        contract.start_date,
        contract.end_date,
        contract.weekly_pattern(),
        contract.timezone,
        max_days=get_setting('MAX_SCHEDULE_DAYS'),
    )
    result = compare_occurrences(contract.pk, contract.name, expected, repository.for_contract(contract.pk))

    if not result.is_healthy:
        logger.warning(
            'Contract %s (%s) has seeding issues: %d missing, %d duplicate date(s)',
            contract.pk, contract.name, len(result.missing), len(result.duplicates),
        )
    if result.finalized_touched:
        logger.warning(
            'Contract %s: %d finalized shift(s) lie outside the current schedule',
            contract.pk, result.finalized_touched,
        )
    return result


def audit_all_contracts(repository=None) -> List[AuditResult]:
    """
    Audit every contract.

    A contract whose stored data fails validation is reported with status
    ``error`` instead of aborting the whole run.
    """
    repository = repository or DjangoOccurrenceRepository()
    results = []

    for contract in Contract.objects.all():
        try:
            results.append(audit_contract(contract.pk, repository))
        except ValidationError as exc:
            logger.exception('Failed to audit contract %s', contract.pk)
            results.append(AuditResult(
                contract_id=contract.pk,
                contract_name=contract.name,
                status=STATUS_ERROR,
                error=exc.message,
            ))

    return results
