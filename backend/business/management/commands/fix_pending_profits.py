from django.core.management.base import BaseCommand

from business.services.reconciliation import fix_pending_profits


class Command(BaseCommand):
    help = (
        "Fill pending profit for sold deposits recorded with 0 profit:\n"
        "(sale price or listing price - cost) * quantity. Dry run by default."
    )

    def add_arguments(self, parser):
        parser.add_argument("--apply", action="store_true", help="Write the fixes (default: dry run).")

    def handle(self, *args, **options):
        apply: bool = bool(options.get("apply"))
        s = fix_pending_profits(apply=apply, stdout=self.stdout)

        self.stdout.write("")
        self.stdout.write(self.style.NOTICE(f"Sold deposits with zero profit checked: {s['checked']}"))
        self.stdout.write(self.style.SUCCESS(f"{'Fixed' if apply else 'Would fix'}: {s['fixed']}"))
        if s["correct"]:
            self.stdout.write(self.style.WARNING(f"Skipped (missing cost or price): {s['correct']}"))
        if s["failed_batches"]:
            self.stderr.write(self.style.ERROR(f"Failed batches: {s['failed_batches']} (see log)"))
        if not apply:
            self.stdout.write(self.style.WARNING("Dry run complete. No changes written."))
