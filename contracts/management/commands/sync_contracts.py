"""
Management command to reconcile materialized shifts with contract schedules.

Safe to run repeatedly (e.g. nightly via cron): a second run with no schedule
changes creates, updates and deletes nothing.
"""

from django.core.management.base import BaseCommand, CommandError

from contracts import services
from contracts.exceptions import ShiftbookError


class Command(BaseCommand):
    help = 'Reconcile shifts with the schedules of all non-archived contracts'

    def add_arguments(self, parser):
        parser.add_argument(
            '--id',
            type=int,
            dest='contract_id',
            help='Only reconcile the contract with this id'
        )

    def handle(self, *args, **options):
        contract_id = options.get('contract_id')

        try:
            if contract_id is not None:
                self.stdout.write(f'Reconciling contract {contract_id}...')
                result = services.resync_contract(contract_id)
            else:
                self.stdout.write('Reconciling all non-archived contracts...')
                result = services.resync_all_contracts()
        except ShiftbookError as exc:
            raise CommandError(exc.message)

        self.stdout.write(
            self.style.SUCCESS(
                f'Created {result.created}, updated {result.updated}, '
                f'deleted {result.deleted} shift(s)'
            )
        )
        if result.finalized_touched:
            self.stdout.write(
                self.style.WARNING(
                    f'{result.finalized_touched} finalized shift(s) were left untouched'
                )
            )
