from __future__ import annotations

import logging
import uuid
from typing import Any, Dict

from django.db import transaction

from market.models import Listing, Product, StockItem

logger = logging.getLogger(__name__)


def add_stock_item(seller, product: Product, quantity: int = 1) -> StockItem:
    """
    Put `quantity` units of a catalog product into the seller's stock.
    """
    return StockItem.objects.create(
        seller=seller,
        product=product,
        product_uid=uuid.uuid4().hex[:20],
        product_code=product.product_code or f"P{product.pk}",
        name=product.name,
        stock=max(int(quantity or 1), 1),
    )


def list_stock_item(seller, stock_item: StockItem, quantity: int = 1) -> Dict[str, Any]:
    """
    Publish units from the seller's stock at the marked-up price and open the
    deposit the seller owes for them.
    """
    from business.services.deposits import create_pending_deposit

    try:
        qty = int(quantity or 1)
    except (TypeError, ValueError):
        return {"success": False, "message": "Invalid quantity."}

    try:
        with transaction.atomic():
            item = StockItem.objects.select_for_update().filter(pk=stock_item.pk).first()
            if not item:
                return {"success": False, "message": "Stock item not found", "not_found": True}
            if item.seller_id != seller.id:
                return {"success": False, "message": "Unauthorized access"}
            if item.migrated:
                return {"success": False, "message": "Stock item was split into instances; list an instance instead."}
            if item.product_id is None:
                return {"success": False, "message": "Stock item has no catalog product."}
            if item.stock < 1:
                return {"success": False, "message": "No unlisted units left in stock."}
            if qty < 1 or qty > item.stock:
                return {"success": False, "message": f"Quantity must be between 1 and {item.stock}."}

            price = item.product.listing_price
            listing = Listing.objects.create(
                seller=seller,
                product=item.product,
                product_uid=item.product_uid,
                product_code=item.product_code,
                name=item.name,
                price=price,
                quantity=qty,
                is_instance=item.is_instance,
                original_product_uid=item.original_product_uid,
                original_product_code=item.original_product_code,
                instance_number=item.instance_number,
                total_instances=item.total_instances,
            )
            deposit = create_pending_deposit(
                seller,
                product_name=item.name,
                quantity_listed=qty,
                original_cost_per_unit=item.product.price,
                listing_price=price,
                listing=listing,
                product_uid=item.product_uid,
            )
            item.stock -= qty
            item.listed = True
            item.pending_deposit_id = deposit.pk
            item.save(update_fields=["stock", "listed", "pending_deposit_id", "updated_at"])
    except Exception as e:
        logger.exception("list_stock_item failed for stock item %s", stock_item.pk)
        return {"success": False, "message": f"Failed to list product: {e}"}

    return {
        "success": True,
        "message": f"{item.name} listed at {price}",
        "listing_id": listing.pk,
        "deposit_id": deposit.pk,
        "listing_price": f"{price}",
        "deposit_required": f"{deposit.total_deposit_required}",
    }
