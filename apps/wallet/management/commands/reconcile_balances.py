"""
Management command to audit cached wallet balances against the ledger.

Replays credits, refunds and debits across every monthly partition and
compares the result with User.balance. Nothing is written: fixing a drift
means posting an explicit adjustment entry.

Usage:
    python manage.py reconcile_balances
    python manage.py reconcile_balances --user <uuid>
    python manage.py reconcile_balances --only-drift
"""

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from apps.accounts.models import User
from apps.wallet.services import PartitionRegistry, WalletLedger


class Command(BaseCommand):
    help = 'Compare cached wallet balances with the replayed ledger (read-only)'

    def add_arguments(self, parser):
        parser.add_argument(
            '--user',
            help='Only check the user with this id',
        )
        parser.add_argument(
            '--only-drift',
            action='store_true',
            help='Only list users whose balance does not match the ledger',
        )

    def handle(self, *args, **options):
        ledger = WalletLedger(
            registry=PartitionRegistry(
                prefix=settings.LEDGER_PARTITION_PREFIX,
                epoch=settings.LEDGER_EPOCH,
            )
        )

        users = User.objects.order_by('email')
        if options['user']:
            users = users.filter(id=options['user'])
            if not users.exists():
                raise CommandError(f"User {options['user']} not found")

        checked = 0
        drifted = 0
        for user in users.iterator():
            report = ledger.reconcile_balance(user)
            checked += 1
            if not report['consistent']:
                drifted += 1
            elif options['only_drift']:
                continue

            line = (
                f"  - {user.email} | cached {report['cached_balance']} | "
                f"replayed {report['replayed_balance']} | drift {report['drift']}"
            )
            if report['consistent']:
                self.stdout.write(line)
            else:
                self.stdout.write(self.style.WARNING(line))

        if drifted:
            self.stdout.write(
                self.style.ERROR(f'\n{drifted} of {checked} user(s) have a balance drift.')
            )
        else:
            self.stdout.write(
                self.style.SUCCESS(f'\nAll {checked} balance(s) match the ledger.')
            )
