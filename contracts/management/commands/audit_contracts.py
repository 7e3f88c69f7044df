"""
Management command that reports contracts whose shifts drifted from their
schedule. It never modifies data; use ``sync_contracts`` to repair.
"""

from django.core.management.base import BaseCommand, CommandError

from contracts import audit
from contracts.exceptions import ShiftbookError


class Command(BaseCommand):
    help = 'Audit materialized shifts against contract schedules (read-only)'

    def add_arguments(self, parser):
        group = parser.add_mutually_exclusive_group()
        group.add_argument(
            '--all',
            action='store_true',
            help='Audit every contract'
        )
        group.add_argument(
            '--id',
            type=int,
            dest='contract_id',
            help='Audit a single contract'
        )

    def handle(self, *args, **options):
        contract_id = options.get('contract_id')
        if not options['all'] and contract_id is None:
            raise CommandError('Pass --all or --id <contract id>')

        try:
            if contract_id is not None:
                results = [audit.audit_contract(contract_id)]
            else:
                results = audit.audit_all_contracts()
        except ShiftbookError as exc:
            raise CommandError(exc.message)

        self.stdout.write(f'{"ID":>6}  {"Contract":<30}  {"Status":<10}  {"Expected":>8}  {"Actual":>6}  Issues')
        for result in results:
            self.stdout.write(
                f'{result.contract_id:>6}  {result.contract_name[:30]:<30}  {result.status:<10}  '
                f'{result.expected_count:>8}  {result.actual_count:>6}  {self._describe(result)}'
            )

        unhealthy = [result for result in results if not result.is_healthy]
        if unhealthy:
            self.stdout.write(self.style.WARNING(f'{len(unhealthy)} of {len(results)} contract(s) need attention'))
        else:
            self.stdout.write(self.style.SUCCESS(f'All {len(results)} contract(s) healthy'))

    @staticmethod
    def _describe(result):
        if result.error:
            return result.error
        issues = []
        if result.missing:
            issues.append('missing: ' + ', '.join(d.isoformat() for d in result.missing))
        if result.duplicates:
            issues.append('duplicates: ' + ', '.join(d.isoformat() for d in result.duplicates))
        if result.finalized_touched:
            issues.append(f'{result.finalized_touched} finalized outside schedule')
        return '; '.join(issues) or '-'
