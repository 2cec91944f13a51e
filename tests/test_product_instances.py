import re
from decimal import Decimal

import pytest
from django.core.management import call_command

from market.models import InventoryItem, Listing, Product, StockItem
from market.services.instances import (
    instance_code,
    instance_uid,
    migrate_product_instances,
    split_stock_item,
    verify_product_instances,
)


@pytest.fixture
def product(db):
    return Product.objects.create(name="Desk Lamp", price=Decimal("10.00"), product_code="LAMP")


@pytest.fixture
def lamp_stock(seller, product):
    return StockItem.objects.create(
        seller=seller,
        product=product,
        product_uid="lamp-001",
        product_code="LAMP",
        name="Desk Lamp",
        stock=3,
        listed=True,
        pending_deposit_id=77,
        deposit_receipt_approved=True,
    )


class TestInstanceIds:
    def test_uid_format(self):
        assert re.match(r"^lamp-001-inst-2-\d+-[a-z0-9]{6}$", instance_uid("lamp-001", 2))

    def test_code_format(self):
        assert re.match(r"^LAMP-3-[A-Z0-9]{4}$", instance_code("LAMP", 3))

    def test_ids_are_unique(self):
        assert len({instance_uid("x", 1) for _ in range(20)}) == 20


@pytest.mark.django_db
class TestSplitStockItem:
    def test_creates_one_instance_per_unit(self, lamp_stock):
        instances = split_stock_item(lamp_stock.pk)

        assert [i.instance_number for i in instances] == [1, 2, 3]
        for inst in StockItem.objects.filter(is_instance=True):
            assert inst.stock == 1
            assert inst.total_instances == 3
            assert inst.original_product_uid == "lamp-001"
            assert inst.original_product_code == "LAMP"
            assert inst.deposit_receipt_approved is False
            assert inst.pending_deposit_id is None
            assert inst.product_uid.startswith("lamp-001-inst-")
        assert StockItem.objects.filter(is_instance=True).values("product_uid").distinct().count() == 3

    def test_original_is_kept_and_flagged(self, lamp_stock):
        instances = split_stock_item(lamp_stock.pk)

        lamp_stock.refresh_from_db()
        assert lamp_stock.migrated is True
        assert lamp_stock.listed is False
        assert lamp_stock.original_quantity == 3
        assert lamp_stock.instance_ids == [i.product_uid for i in instances]
        assert StockItem.objects.count() == 4

    def test_inventory_and_listings_are_split_too(self, seller, lamp_stock, product):
        inv = InventoryItem.objects.create(seller=seller, product=product, product_uid="lamp-001", name="Desk Lamp", stock=3, quantity=3)
        listing = Listing.objects.create(seller=seller, product=product, product_uid="lamp-001", name="Desk Lamp", price=Decimal("13.00"), quantity=3)

        split_stock_item(lamp_stock.pk)

        inv.refresh_from_db()
        listing.refresh_from_db()
        assert inv.migrated is True
        assert listing.migrated is True
        copies = Listing.objects.filter(original_product_uid="lamp-001", is_instance=True)
        assert copies.count() == 3
        assert {c.price for c in copies} == {Decimal("13.00")}
        assert {c.quantity for c in copies} == {1}
        assert InventoryItem.objects.filter(original_product_uid="lamp-001", is_instance=True).count() == 3

    def test_single_unit_is_left_alone(self, seller, product):
        item = StockItem.objects.create(seller=seller, product=product, product_uid="one", name="Desk Lamp", stock=1)
        assert split_stock_item(item.pk) == []
        item.refresh_from_db()
        assert item.migrated is False

    def test_split_twice_is_a_no_op(self, lamp_stock):
        split_stock_item(lamp_stock.pk)
        assert split_stock_item(lamp_stock.pk) == []
        assert StockItem.objects.filter(is_instance=True).count() == 3


@pytest.mark.django_db
class TestMigrateAndVerify:
    def test_migrate_all_then_rerun(self, lamp_stock, seller, product):
        StockItem.objects.create(seller=seller, product=product, product_uid="lamp-002", name="Desk Lamp", stock=2)

        first = migrate_product_instances()
        second = migrate_product_instances()

        assert first["products_processed"] == 2
        assert first["instances_created"] == 5
        assert first["failed"] == []
        assert second["products_processed"] == 0
        assert StockItem.objects.filter(is_instance=True).count() == 5

    def test_verify_reports_complete_groups(self, lamp_stock):
        migrate_product_instances()

        report = verify_product_instances()

        assert report["instance_count"] == 3
        assert report["original_products"] == 1
        assert report["pending_split"] == 0
        (row,) = report["products"]
        assert row["original_product_uid"] == "lamp-001"
        assert row["units"] == 3
        assert row["expected_units"] == 3
        assert row["complete"] is True

    def test_verify_flags_missing_instance(self, lamp_stock):
        migrate_product_instances()
        StockItem.objects.filter(is_instance=True, instance_number=3).delete()

        (row,) = verify_product_instances()["products"]
        assert row["units"] == 2
        assert row["complete"] is False


@pytest.mark.django_db
class TestMigrateCommand:
    def test_runs_with_yes(self, lamp_stock, capsys):
        call_command("migrate_product_instances", "--yes")

        out = capsys.readouterr().out
        assert "created 3 unique instances" in out
        assert "Found 3 product instances" in out
        lamp_stock.refresh_from_db()
        assert lamp_stock.migrated is True

    def test_cancelled_without_confirmation(self, lamp_stock, capsys, monkeypatch):
        monkeypatch.setattr("builtins.input", lambda prompt="": "no")

        call_command("migrate_product_instances")

        assert "Migration cancelled" in capsys.readouterr().out
        lamp_stock.refresh_from_db()
        assert lamp_stock.migrated is False

    def test_verify_only_writes_nothing(self, lamp_stock, capsys):
        call_command("migrate_product_instances", "--verify-only")

        out = capsys.readouterr().out
        assert "Found 0 product instances" in out
        assert "awaiting split: 1" in out
        assert StockItem.objects.count() == 1


@pytest.mark.django_db
class TestListingsApi:
    def test_split_originals_are_hidden(self, auth_client, seller, lamp_stock, product):
        Listing.objects.create(seller=seller, product=product, product_uid="lamp-001", name="Desk Lamp", price=Decimal("13.00"), quantity=3)
        migrate_product_instances()

        res = auth_client(seller).get("/api/market/listings/")

        assert res.status_code == 200
        rows = res.json()["results"]
        assert len(rows) == 3
        assert all(r["is_instance"] for r in rows)

    def test_stock_list_hides_migrated(self, auth_client, seller, lamp_stock):
        migrate_product_instances()

        res = auth_client(seller).get("/api/market/stock/")

        assert res.status_code == 200
        assert res.json()["count"] == 3
