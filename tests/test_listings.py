from decimal import Decimal

import pytest

from business.models import PendingDeposit
from market.models import Listing, Product
from market.services.listings import add_stock_item, list_stock_item


@pytest.fixture
def fan(db):
    return Product.objects.create(name="Desk Fan", price=Decimal("20.00"))


@pytest.mark.django_db
class TestListStockItem:
    def test_listing_takes_units_out_of_stock(self, seller, fan):
        item = add_stock_item(seller, fan, quantity=3)

        res = list_stock_item(seller, item, 2)

        assert res["success"] is True
        item.refresh_from_db()
        assert item.stock == 1
        assert item.listed is True
        assert item.pending_deposit_id == res["deposit_id"]
        assert PendingDeposit.objects.get(pk=res["deposit_id"]).quantity_listed == 2

    def test_single_unit_cannot_be_listed_twice(self, seller, fan):
        item = add_stock_item(seller, fan, quantity=1)

        first = list_stock_item(seller, item, 1)
        second = list_stock_item(seller, item, 1)

        assert first["success"] is True
        assert second == {"success": False, "message": "No unlisted units left in stock."}
        item.refresh_from_db()
        assert item.stock == 0
        assert Listing.objects.filter(seller=seller).count() == 1
        assert PendingDeposit.objects.filter(seller=seller).count() == 1

    def test_cannot_list_more_than_remaining(self, seller, fan):
        item = add_stock_item(seller, fan, quantity=2)
        assert list_stock_item(seller, item, 1)["success"]

        res = list_stock_item(seller, item, 2)

        assert res == {"success": False, "message": "Quantity must be between 1 and 1."}
        assert Listing.objects.filter(seller=seller).count() == 1

    def test_other_sellers_stock(self, seller, other_seller, fan):
        item = add_stock_item(other_seller, fan)
        assert list_stock_item(seller, item, 1)["message"] == "Unauthorized access"
