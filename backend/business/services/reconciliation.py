from __future__ import annotations

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Any, Iterable, List

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from business.models import PendingDeposit

logger = logging.getLogger(__name__)

MARKUP_MULTIPLIER = Decimal("1.30")
TOLERANCE = Decimal("0.01")
BATCH_SIZE = 400

# Only these statuses carry a realised profit worth rewriting
PROFIT_STATUSES = ("sold", "deposit_paid")

DEPOSIT_FIELDS = [
    "listing_price",
    "profit_per_unit",
    "total_deposit_required",
    "pending_profit_amount",
    "sale_price",
    "updated_at",
]


def _q2(x) -> Decimal:
    try:
        return Decimal(str(x)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    except Exception:
        return Decimal("0.00")


def _multiplier() -> Decimal:
    return Decimal(str(getattr(settings, "MARKUP_MULTIPLIER", MARKUP_MULTIPLIER)))


def _tolerance() -> Decimal:
    return Decimal(str(getattr(settings, "RECONCILE_TOLERANCE", TOLERANCE)))


def _batch_size(batch_size: int | None) -> int:
    size = int(batch_size or getattr(settings, "RECONCILE_BATCH_SIZE", BATCH_SIZE) or BATCH_SIZE)
    return max(1, size)


def _off(current, expected: Decimal) -> bool:
    if current is None:
        return True
    return abs(Decimal(str(current)) - expected) >= _tolerance()


def expected_values(cost, quantity) -> Dict[str, Decimal]:
    """
    Values a deposit must carry under the fixed markup:
      listing_price   = cost * MARKUP_MULTIPLIER (rounded to cents)
      profit_per_unit = listing_price - cost
      total_deposit   = cost * quantity
      total_profit    = profit_per_unit * quantity
    """
    cost = _q2(cost)
    qty = int(quantity or 1)
    listing_price = _q2(cost * _multiplier())
    profit_per_unit = _q2(listing_price - cost)
    return {
        "listing_price": listing_price,
        "profit_per_unit": profit_per_unit,
        "total_deposit": _q2(cost * qty),
        "total_profit": _q2(profit_per_unit * qty),
    }


def deposit_updates(deposit: PendingDeposit) -> Dict[str, Any]:
    """
    Field updates needed to bring a deposit in line with the markup rule,
    or {} when every value is within tolerance. Deposits without a cost or
    listing price are left alone.
    """
    if not deposit.original_cost_per_unit or not deposit.listing_price:
        return {}

    exp = expected_values(deposit.original_cost_per_unit, deposit.effective_quantity)
    sold = deposit.status in PROFIT_STATUSES

    mismatch = (
        _off(deposit.listing_price, exp["listing_price"])
        or _off(deposit.total_deposit_required, exp["total_deposit"])
        or (sold and _off(deposit.pending_profit_amount, exp["total_profit"]))
    )
    if not mismatch:
        return {}

    updates: Dict[str, Any] = {
        "listing_price": exp["listing_price"],
        "profit_per_unit": exp["profit_per_unit"],
        "total_deposit_required": exp["total_deposit"],
    }
    if sold:
        updates["pending_profit_amount"] = exp["total_profit"]
        updates["sale_price"] = exp["listing_price"]
    return updates


def listing_updates(listing) -> Dict[str, Any]:
    product = getattr(listing, "product", None)
    cost = getattr(product, "price", None) if product is not None else None
    if not cost:
        return {}
    expected = _q2(Decimal(str(cost)) * _multiplier())
    if not _off(listing.price, expected):
        return {}
    return {"price": expected}


def pending_profit_updates(deposit: PendingDeposit) -> Dict[str, Any]:
    """
    Sold deposits recorded with zero pending profit get
    (sale price or listing price - cost) * quantity.
    """
    if deposit.status != "sold" or _q2(deposit.pending_profit_amount) != Decimal("0.00"):
        return {}
    cost = deposit.original_cost_per_unit
    price = deposit.sale_price or deposit.listing_price
    if not cost or not price:
        return {}
    return {"pending_profit_amount": _q2((Decimal(str(price)) - Decimal(str(cost))) * deposit.effective_quantity)}


def _chunks(ids: List[int], size: int) -> Iterable[List[int]]:
    for i in range(0, len(ids), size):
        yield ids[i:i + size]


def _write(stdout, line: str):
    if stdout is not None:
        stdout.write(line)


def _run(queryset, compute, fields: List[str], apply: bool, batch_size: int | None, stdout, label, related=()) -> Dict[str, Any]:
    """
    Walk the queryset in pk-ordered chunks. With apply=True each chunk is
    written with bulk_update inside its own transaction; a failing chunk
    does not roll back chunks already committed.
    """
    model = queryset.model
    size = _batch_size(batch_size)
    ids = list(queryset.order_by("pk").values_list("pk", flat=True))
    summary = {"checked": 0, "fixed": 0, "correct": 0, "failed_batches": 0, "applied": bool(apply)}

    for chunk_ids in _chunks(ids, size):
        rows = list(model.objects.filter(pk__in=chunk_ids).select_related(*related).order_by("pk"))
        dirty = []
        now = timezone.now()
        for obj in rows:
            summary["checked"] += 1
            updates = compute(obj)
            if not updates:
                summary["correct"] += 1
                continue
            _write(stdout, f"{label(obj)}: " + ", ".join(
                f"{k} {getattr(obj, k)} -> {v}" for k, v in updates.items()
            ))
            for k, v in updates.items():
                setattr(obj, k, v)
            if hasattr(obj, "updated_at"):
                obj.updated_at = now
            dirty.append(obj)

        if not dirty:
            continue
        if not apply:
            summary["fixed"] += len(dirty)
            continue
        try:
            with transaction.atomic():
                model.objects.bulk_update(dirty, fields)
            summary["fixed"] += len(dirty)
        except Exception:
            logger.exception("Reconciliation batch failed for %s ids %s..%s", model.__name__, chunk_ids[0], chunk_ids[-1])
            summary["failed_batches"] += 1

    return summary


def reconcile_deposits(apply: bool = False, batch_size: int | None = None, stdout=None) -> Dict[str, Any]:
    return _run(
        PendingDeposit.objects.all(),
        deposit_updates,
        DEPOSIT_FIELDS,
        apply,
        batch_size,
        stdout,
        lambda d: f"Deposit #{d.pk} {d.product_name}",
    )


def reconcile_listings(apply: bool = False, batch_size: int | None = None, stdout=None) -> Dict[str, Any]:
    from market.models import Listing
    return _run(
        Listing.objects.filter(product__isnull=False),
        listing_updates,
        ["price", "updated_at"],
        apply,
        batch_size,
        stdout,
        lambda l: f"Listing #{l.pk} {l.name}",
        related=("product",),
    )


def fix_pending_profits(apply: bool = False, batch_size: int | None = 100, stdout=None) -> Dict[str, Any]:
    return _run(
        PendingDeposit.objects.filter(status="sold", pending_profit_amount=0),
        pending_profit_updates,
        ["pending_profit_amount", "updated_at"],
        apply,
        batch_size,
        stdout,
        lambda d: f"Deposit #{d.pk} {d.product_name}",
    )
