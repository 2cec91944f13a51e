from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from business.services.reconciliation import reconcile_deposits, reconcile_listings


class Command(BaseCommand):
    help = (
        "Recompute listing price, deposit and profit from the fixed markup (cost * MARKUP_MULTIPLIER)\n"
        "and rewrite mismatched deposits and listings in chunked batches.\n"
        "Dry run by default; pass --apply to write. Safe to run multiple times."
    )

    def add_arguments(self, parser):
        parser.add_argument("--apply", action="store_true", help="Write the fixes (default: dry run).")
        parser.add_argument(
            "--batch-size",
            type=int,
            default=None,
            help="Records per committed batch (default: RECONCILE_BATCH_SIZE).",
        )
        parser.add_argument("--skip-listings", action="store_true", help="Only reconcile deposits.")

    def handle(self, *args, **options):
        apply: bool = bool(options.get("apply"))
        batch_size = options.get("batch_size")
        if batch_size is not None and batch_size < 1:
            raise CommandError("--batch-size must be at least 1")

        self.stdout.write(self.style.NOTICE(
            f"Fixing profit calculations (markup x{settings.MARKUP_MULTIPLIER})"
            + (" [DRY-RUN]" if not apply else "")
        ))

        dep = reconcile_deposits(apply=apply, batch_size=batch_size, stdout=self.stdout)
        self._summary("Deposits", dep, apply)

        if not options.get("skip_listings"):
            self.stdout.write("")
            lst = reconcile_listings(apply=apply, batch_size=batch_size, stdout=self.stdout)
            self._summary("Listings", lst, apply)

        if not apply:
            self.stdout.write(self.style.WARNING("Dry run complete. No changes written. Re-run with --apply."))

    def _summary(self, label: str, s: dict, apply: bool):
        self.stdout.write("")
        self.stdout.write(self.style.NOTICE(f"{label} checked: {s['checked']}"))
        self.stdout.write(self.style.NOTICE(f"{label} already correct: {s['correct']}"))
        verb = "fixed" if apply else "to fix"
        self.stdout.write(self.style.SUCCESS(f"{label} {verb}: {s['fixed']}"))
        if s["failed_batches"]:
            self.stderr.write(self.style.ERROR(f"{label} failed batches: {s['failed_batches']} (see log)"))
