import json
from datetime import datetime, time, timedelta

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from business.models import BulkDepositPayment, Receipt
from business.services.diagnostics import diagnose_bulk_receipts


class Command(BaseCommand):
    help = (
        "Read-only check of bulk payment receipts against their deposits.\n"
        "Flags approved receipts whose deposits are not paid, pending receipts whose deposits are not\n"
        "receipt_submitted, and deposit ids that no longer exist."
    )

    def add_arguments(self, parser):
        parser.add_argument("--date", type=str, default="", help="Only receipts submitted on this day (YYYY-MM-DD).")
        parser.add_argument("--hours", type=int, default=None, help="Only receipts submitted in the last N hours.")
        parser.add_argument("--outfile", type=str, default="", help="Write the JSON report to this path.")

    def handle(self, *args, **options):
        qs = Receipt.objects.filter(is_bulk_payment=True).order_by("-submitted_at")

        date_s = (options.get("date") or "").strip()
        hours = options.get("hours")
        if date_s:
            try:
                day = datetime.strptime(date_s, "%Y-%m-%d").date()
            except ValueError:
                raise CommandError("--date must be YYYY-MM-DD")
            tz = timezone.get_current_timezone()
            start = timezone.make_aware(datetime.combine(day, time.min), tz)
            qs = qs.filter(submitted_at__gte=start, submitted_at__lt=start + timedelta(days=1))
        if hours is not None:
            if hours < 1:
                raise CommandError("--hours must be at least 1")
            qs = qs.filter(submitted_at__gte=timezone.now() - timedelta(hours=hours))

        report = diagnose_bulk_receipts(qs)
        problems = [r for r in report if not r["ok"]]

        for r in report:
            kind = "wallet" if r["is_wallet_payment"] else "transfer"
            line = f"Receipt #{r['receipt_id']} {kind} {r['status']} amount={r['amount']} deposits={r['deposit_count']}"
            if r["ok"]:
                self.stdout.write(self.style.SUCCESS(line + " OK"))
                continue
            self.stdout.write(self.style.ERROR(line))
            for issue in r["issues"]:
                self.stdout.write(f"    - {issue}")

        open_bulks = BulkDepositPayment.objects.filter(status__in=("pending", "receipt_submitted")).count()
        self.stdout.write("")
        self.stdout.write(self.style.NOTICE(f"Bulk receipts analysed: {len(report)}"))
        self.stdout.write(self.style.NOTICE(f"Open bulk payments: {open_bulks}"))
        if problems:
            self.stdout.write(self.style.WARNING(f"Receipts with issues: {len(problems)}"))
        else:
            self.stdout.write(self.style.SUCCESS("No inconsistencies found."))

        outfile = (options.get("outfile") or "").strip()
        if outfile:
            payload = {
                "generated_at": timezone.now().isoformat(),
                "filters": {"date": date_s or None, "hours": hours},
                "summary": {"receipts": len(report), "with_issues": len(problems), "open_bulk_payments": open_bulks},
                "receipts": report,
            }
            try:
                with open(outfile, "w", encoding="utf-8") as fh:
                    json.dump(payload, fh, indent=2)
            except OSError as e:
                raise CommandError(f"Could not write {outfile}: {e}")
            self.stdout.write(self.style.SUCCESS(f"Report written to {outfile}"))
