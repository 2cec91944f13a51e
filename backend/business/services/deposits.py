from __future__ import annotations

import logging
from decimal import Decimal
from typing import Dict, Any

from django.conf import settings
from django.db import transaction
from django.db.models import Sum, Count
from django.utils import timezone

from accounts.models import CustomUser
from business.models import PendingDeposit

logger = logging.getLogger(__name__)

RELEASABLE_STATUSES = ("sold", "receipt_submitted")
OUTSTANDING_STATUSES = ("pending", "sold", "receipt_submitted")


def _q2(x) -> Decimal:
    try:
        return Decimal(str(x)).quantize(Decimal("0.01"))
    except Exception:
        return Decimal("0.00")


def create_pending_deposit(
    seller: CustomUser,
    product_name: str,
    quantity_listed: int,
    original_cost_per_unit,
    listing_price=None,
    listing=None,
    product_uid: str = "",
) -> PendingDeposit:
    """
    Open a deposit for a freshly listed product. The seller owes
    cost * quantity; the expected profit per unit is listing price - cost.
    The deposit is managed by the seller's current admin.
    """
    qty = max(int(quantity_listed or 1), 1)
    cost = _q2(original_cost_per_unit)
    if listing_price is None:
        listing_price = cost * Decimal(str(settings.MARKUP_MULTIPLIER))
    price = _q2(listing_price)
    is_dummy = bool(getattr(seller, "is_dummy_account", False))

    return PendingDeposit.objects.create(
        seller=seller,
        admin=seller.admin or seller.referred_by,
        listing=listing,
        product_uid=product_uid or "",
        product_name=product_name,
        quantity_listed=qty,
        original_cost_per_unit=cost,
        listing_price=price,
        profit_per_unit=_q2(price - cost),
        total_deposit_required=_q2(cost * qty),
        is_dummy_account=is_dummy,
        exclude_from_revenue=is_dummy,
    )


def mark_product_sold(deposit_id: int, seller: CustomUser | None = None, sale_price=None, quantity_sold: int | None = None) -> Dict[str, Any]:
    try:
        with transaction.atomic():
            dep = PendingDeposit.objects.select_for_update().filter(pk=deposit_id).first()
            if not dep:
                return {"success": False, "message": "Pending deposit not found", "not_found": True}
            if seller is not None and dep.seller_id != seller.id:
                return {"success": False, "message": "Unauthorized access"}
            if dep.status != "pending":
                return {"success": False, "message": f"Deposit is not pending (status: {dep.status})"}

            qty = int(quantity_sold or dep.quantity_listed or 1)
            if qty < 1 or qty > dep.quantity_listed:
                return {"success": False, "message": f"Quantity sold must be between 1 and {dep.quantity_listed}"}

            price = _q2(sale_price) if sale_price is not None else _q2(dep.listing_price)
            cost = _q2(dep.original_cost_per_unit or 0)
            profit = _q2((price - cost) * qty)
            if profit < 0:
                profit = Decimal("0.00")

            dep.status = "sold"
            dep.sale_price = price
            dep.sale_date = timezone.now()
            dep.actual_quantity_sold = qty
            dep.pending_profit_amount = profit
            dep.save(update_fields=["status", "sale_price", "sale_date", "actual_quantity_sold", "pending_profit_amount", "updated_at"])

            if dep.listing_id:
                from market.models import Listing
                Listing.objects.filter(pk=dep.listing_id).update(status="sold", updated_at=timezone.now())
    except Exception as e:
        logger.exception("mark_product_sold failed for deposit %s", deposit_id)
        return {"success": False, "message": f"Failed to mark product sold: {e}"}

    return {
        "success": True,
        "message": f"{dep.product_name} marked as sold",
        "deposit_id": dep.pk,
        "pending_profit_amount": f"{dep.pending_profit_amount}",
    }


@transaction.atomic
def release_deposit(deposit: PendingDeposit, receipt=None) -> Decimal:
    """
    Pay out a sold deposit: credit the seller the deposit refund plus the
    pending profit and move it to deposit_paid. Returns the credited amount;
    an already-paid deposit is skipped and returns 0.
    Raises ValueError when the deposit is not in a payable state.
    """
    dep = PendingDeposit.objects.select_for_update().select_related("seller").get(pk=deposit.pk)
    if dep.status == "deposit_paid":
        return Decimal("0.00")
    if dep.status not in RELEASABLE_STATUSES:
        raise ValueError(f"Deposit #{dep.pk} cannot be paid from status '{dep.status}'.")

    refund = _q2(dep.total_deposit_required)
    profit = _q2(dep.pending_profit_amount)
    total = _q2(refund + profit)
    if total > 0:
        dep.seller.credit_balance(
            total,
            tx_type="DEPOSIT_REFUND_AND_PROFIT",
            meta={"deposit_id": dep.pk, "refund": f"{refund}", "profit": f"{profit}", "product_name": dep.product_name},
            source_type="DEPOSIT",
            source_id=str(dep.pk),
        )

    now = timezone.now()
    dep.status = "deposit_paid"
    dep.deposit_paid_at = now
    dep.profit_transferred_amount = profit
    dep.profit_transferred_at = now
    fields = ["status", "deposit_paid_at", "profit_transferred_amount", "profit_transferred_at", "updated_at"]
    if receipt is not None:
        dep.receipt = receipt
        fields.append("receipt")
    dep.save(update_fields=fields)

    from market.models import StockItem
    StockItem.objects.filter(pending_deposit_id=dep.pk).update(deposit_receipt_approved=True, updated_at=now)

    deposit.refresh_from_db()
    logger.info("Deposit %s paid: credited %s to seller %s", dep.pk, total, dep.seller_id)
    return total


def mark_deposit_paid(deposit_id: int, seller: CustomUser | None = None) -> Dict[str, Any]:
    try:
        with transaction.atomic():
            dep = PendingDeposit.objects.select_for_update().filter(pk=deposit_id).first()
            if not dep:
                return {"success": False, "message": "Pending deposit not found", "not_found": True}
            if seller is not None and dep.seller_id != seller.id:
                return {"success": False, "message": "Unauthorized access"}
            if dep.status == "deposit_paid":
                return {"success": True, "message": "Deposit already processed", "credited": "0.00"}
            credited = release_deposit(dep)
    except ValueError as e:
        return {"success": False, "message": str(e)}
    except Exception as e:
        logger.exception("mark_deposit_paid failed for deposit %s", deposit_id)
        return {"success": False, "message": f"Failed to mark deposit paid: {e}"}
    return {"success": True, "message": f"Deposit paid. {credited} added to wallet.", "credited": f"{credited}"}


def seller_wallet_summary(seller: CustomUser) -> Dict[str, Any]:
    qs = PendingDeposit.objects.filter(seller=seller)
    outstanding = qs.filter(status__in=OUTSTANDING_STATUSES).aggregate(
        deposits=Sum("total_deposit_required"),
        n=Count("id"),
    )
    unpaid_profit = qs.filter(status__in=RELEASABLE_STATUSES).aggregate(s=Sum("pending_profit_amount"))["s"]
    by_status = {row["status"]: row["c"] for row in qs.values("status").annotate(c=Count("id"))}
    seller.refresh_from_db(fields=["balance"])
    return {
        "balance": f"{_q2(seller.balance)}",
        "total_pending_deposits": f"{_q2(outstanding['deposits'] or 0)}",
        "outstanding_count": outstanding["n"] or 0,
        "pending_profit": f"{_q2(unpaid_profit or 0)}",
        "by_status": by_status,
    }
