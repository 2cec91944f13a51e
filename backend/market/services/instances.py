from __future__ import annotations

import logging
import secrets
import string
import time
from collections import OrderedDict
from typing import Any, Dict, List

from django.db import transaction
from django.utils import timezone

from market.models import InventoryItem, Listing, StockItem

logger = logging.getLogger(__name__)

_ALPHABET = string.ascii_lowercase + string.digits


def _rand(n: int) -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(n))


def instance_uid(base_uid: str, instance_number: int) -> str:
    return f"{base_uid}-inst-{instance_number}-{int(time.time() * 1000)}-{_rand(6)}"


def instance_code(base_code: str, instance_number: int) -> str:
    return f"{base_code}-{instance_number}-{_rand(4).upper()}"


def _split_inventory(item: StockItem, instances: List[StockItem], now) -> int:
    created = 0
    for inv in InventoryItem.objects.select_for_update().filter(seller_id=item.seller_id, product_uid=item.product_uid, migrated=False):
        InventoryItem.objects.bulk_create([
            InventoryItem(
                seller_id=inv.seller_id,
                product_id=inv.product_id,
                name=inv.name,
                product_uid=inst.product_uid,
                product_code=inst.product_code,
                stock=1,
                quantity=1,
                original_product_uid=item.product_uid,
                original_product_code=item.product_code,
                instance_number=inst.instance_number,
                total_instances=inst.total_instances,
                is_instance=True,
                migrated_at=now,
            )
            for inst in instances
        ])
        inv.migrated = True
        inv.migrated_at = now
        inv.save(update_fields=["migrated", "migrated_at", "updated_at"])
        created += len(instances)
    return created


def _split_listings(item: StockItem, instances: List[StockItem], now) -> int:
    created = 0
    for listing in Listing.objects.select_for_update().filter(product_uid=item.product_uid, migrated=False):
        Listing.objects.bulk_create([
            Listing(
                seller_id=listing.seller_id,
                product_id=listing.product_id,
                name=listing.name,
                price=listing.price,
                status=listing.status,
                product_uid=inst.product_uid,
                product_code=inst.product_code,
                quantity=1,
                original_product_uid=item.product_uid,
                original_product_code=item.product_code,
                instance_number=inst.instance_number,
                total_instances=inst.total_instances,
                is_instance=True,
                migrated_at=now,
            )
            for inst in instances
        ])
        listing.migrated = True
        listing.migrated_at = now
        listing.save(update_fields=["migrated", "migrated_at", "updated_at"])
        created += len(instances)
    return created


@transaction.atomic
def split_stock_item(stock_item_id: int) -> List[StockItem]:
    """
    Split one multi-unit stock record into single-unit instances with their
    own product ids. Inventory copies and listings sharing the old id are
    split alongside. The original is kept, flagged migrated and unlisted.
    Returns the created instances ([] when there is nothing to split).
    """
    item = StockItem.objects.select_for_update().get(pk=stock_item_id)
    qty = int(item.stock or 0)
    if item.migrated or qty <= 1:
        return []

    now = timezone.now()
    base_code = item.product_code or item.product_uid
    instances = [
        StockItem(
            seller_id=item.seller_id,
            product_id=item.product_id,
            name=item.name,
            listed=item.listed,
            stock=1,
            product_uid=instance_uid(item.product_uid, i),
            product_code=instance_code(base_code, i),
            original_product_uid=item.product_uid,
            original_product_code=item.product_code,
            instance_number=i,
            total_instances=qty,
            is_instance=True,
            deposit_receipt_approved=False,
            deposit_receipt_url="",
            pending_deposit_id=None,
            migrated_at=now,
        )
        for i in range(1, qty + 1)
    ]
    StockItem.objects.bulk_create(instances)

    item.migrated = True
    item.migrated_at = now
    item.original_quantity = qty
    item.instance_ids = [inst.product_uid for inst in instances]
    item.listed = False
    item.save(update_fields=["migrated", "migrated_at", "original_quantity", "instance_ids", "listed", "updated_at"])

    inv = _split_inventory(item, instances, now)
    lst = _split_listings(item, instances, now)
    logger.info("Split %s (%s) into %s instances; inventory=%s listings=%s", item.pk, item.product_uid, qty, inv, lst)
    return instances


def migrate_product_instances(stdout=None) -> Dict[str, Any]:
    """
    Split every stock record with stock > 1 that has not been migrated yet.
    Each record commits on its own; re-running skips migrated records.
    """
    summary: Dict[str, Any] = {
        "products_processed": 0,
        "instances_created": 0,
        "migrated_products": [],
        "failed": [],
    }
    ids = list(StockItem.objects.filter(stock__gt=1, migrated=False).order_by("pk").values_list("pk", flat=True))
    for pk in ids:
        try:
            instances = split_stock_item(pk)
        except Exception as e:
            logger.exception("Instance split failed for stock item %s", pk)
            summary["failed"].append({"stock_item_id": pk, "error": str(e)})
            continue
        if not instances:
            continue
        summary["products_processed"] += 1
        summary["instances_created"] += len(instances)
        summary["migrated_products"].append(instances[0].name)
        if stdout is not None:
            stdout.write(f"Created {len(instances)} instances for {instances[0].name}")
    return summary


def verify_product_instances() -> Dict[str, Any]:
    """
    Group instances by the product they were split from and check that each
    group adds back up to the original quantity.
    """
    groups: "OrderedDict[str, List[StockItem]]" = OrderedDict()
    for inst in StockItem.objects.filter(is_instance=True).order_by("original_product_uid", "instance_number"):
        groups.setdefault(inst.original_product_uid, []).append(inst)

    originals = {
        o.product_uid: o
        for o in StockItem.objects.filter(product_uid__in=list(groups.keys()))
    }
    products = []
    for uid, insts in groups.items():
        orig = originals.get(uid)
        expected = orig.original_quantity if orig and orig.original_quantity else insts[0].total_instances
        units = sum(i.stock for i in insts)
        products.append({
            "original_product_uid": uid,
            "name": insts[0].name,
            "instances": len(insts),
            "units": units,
            "expected_units": expected,
            "original_migrated": bool(orig and orig.migrated),
            "complete": units == expected and bool(orig and orig.migrated),
        })

    return {
        "instance_count": sum(len(v) for v in groups.values()),
        "original_products": len(groups),
        "pending_split": StockItem.objects.filter(stock__gt=1, migrated=False).count(),
        "products": products,
    }
