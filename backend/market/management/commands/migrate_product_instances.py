from django.core.management.base import BaseCommand

from market.services.instances import migrate_product_instances, verify_product_instances


class Command(BaseCommand):
    help = (
        "Split every stock item with stock > 1 into single-unit instances with unique product ids.\n"
        "Originals are flagged migrated, never deleted. Already migrated items are skipped."
    )

    def add_arguments(self, parser):
        parser.add_argument("--yes", action="store_true", help="Skip the confirmation prompt.")
        parser.add_argument("--verify-only", action="store_true", help="Only print the verification report.")

    def handle(self, *args, **options):
        if not options.get("verify_only"):
            if not options.get("yes"):
                answer = input("This will create unique instances for all products with quantity > 1. Continue? (yes/no): ")
                if (answer or "").strip().lower() != "yes":
                    self.stdout.write(self.style.WARNING("Migration cancelled"))
                    return

            s = migrate_product_instances(stdout=self.stdout)
            self.stdout.write("")
            self.stdout.write(self.style.SUCCESS(
                f"Processed {s['products_processed']} products and created {s['instances_created']} unique instances."
            ))
            for f in s["failed"]:
                self.stderr.write(self.style.ERROR(f"Stock item {f['stock_item_id']} failed: {f['error']}"))

        self._verify()

    def _verify(self):
        v = verify_product_instances()
        self.stdout.write("")
        self.stdout.write(self.style.NOTICE(f"Found {v['instance_count']} product instances"))
        self.stdout.write(self.style.NOTICE(f"Original products split into instances: {v['original_products']}"))
        for p in v["products"]:
            line = f"  {p['name'] or p['original_product_uid']}: {p['instances']} instances ({p['units']}/{p['expected_units']} units)"
            self.stdout.write(line if p["complete"] else self.style.WARNING(line + " INCOMPLETE"))
        if v["pending_split"]:
            self.stdout.write(self.style.WARNING(f"Stock items still awaiting split: {v['pending_split']}"))
