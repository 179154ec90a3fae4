"""Management command to check stored counters against the points ledger."""

from django.core.management.base import BaseCommand, CommandError

from tallyman.services.history import HistoryService


class Command(BaseCommand):
    help = "Compare customer balances and reward redemption counts with the transaction ledger"

    def add_arguments(self, parser):
        parser.add_argument(
            "--tenant",
            default=None,
            help="Limit the audit to one tenant code",
        )

    def handle(self, *args, **options):
        discrepancies = HistoryService.audit(tenant_code=options["tenant"])

        for item in discrepancies:
            self.stdout.write(
                self.style.WARNING(
                    f"{item.kind} mismatch {item.tenant_code}/{item.code}: "
                    f"stored={item.stored} ledger={item.expected}"
                )
            )

        if discrepancies:
            raise CommandError(f"{len(discrepancies)} ledger discrepancies found.")

        self.stdout.write(self.style.SUCCESS("Ledger is consistent."))
