from __future__ import annotations

import logging
from decimal import Decimal
from typing import Dict, Any, Iterable, List

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from accounts.models import CustomUser
from business.models import BulkDepositPayment, PendingDeposit
from business.services.commissions import record_receipt_commission, cancel_receipt_commission
from business.services.receipts import submit_receipt, close_receipt, release_deposits, return_deposits_to_sold

logger = logging.getLogger(__name__)

OPEN_STATUSES = ("pending", "receipt_submitted")


def _q2(x) -> Decimal:
    try:
        return Decimal(str(x)).quantize(Decimal("0.01"))
    except Exception:
        return Decimal("0.00")


def _max_orders() -> int:
    return int(getattr(settings, "BULK_PAYMENT_MAX_ORDERS", 10) or 10)


def _normalize_ids(deposit_ids: Iterable) -> List[int]:
    out: List[int] = []
    for raw in deposit_ids or []:
        i = int(raw)
        if i not in out:
            out.append(i)
    return out


def sold_orders_for_bulk_payment(seller: CustomUser):
    """
    Sold deposits the seller can still put into a bulk payment.
    """
    return (
        PendingDeposit.objects
        .filter(seller=seller, status="sold", bulk_payment__isnull=True)
        .order_by("-sale_date", "-id")
    )


def create_bulk_payment(seller: CustomUser, deposit_ids: Iterable) -> Dict[str, Any]:
    """
    Group 1..BULK_PAYMENT_MAX_ORDERS sold deposits of one seller into a
    payable batch. Deposits stay in status sold until a receipt is submitted;
    they are linked through PendingDeposit.bulk_payment so they cannot join
    another open batch. Nothing is written when validation fails.
    """
    try:
        ids = _normalize_ids(deposit_ids)
    except (TypeError, ValueError):
        return {"success": False, "message": "Invalid deposit id."}
    if not ids:
        return {"success": False, "message": "Select at least one order."}
    limit = _max_orders()
    if len(ids) > limit:
        return {"success": False, "message": f"A bulk payment can include at most {limit} orders."}

    try:
        with transaction.atomic():
            found = {
                d.pk: d for d in PendingDeposit.objects.select_for_update().filter(pk__in=ids)
            }
            missing = [i for i in ids if i not in found]
            if missing:
                return {"success": False, "message": f"Deposits not found: {', '.join(str(m) for m in missing)}"}

            deps = [found[i] for i in ids]
            open_bulk_ids = set(
                BulkDepositPayment.objects
                .filter(pk__in=[d.bulk_payment_id for d in deps if d.bulk_payment_id], status__in=OPEN_STATUSES)
                .values_list("pk", flat=True)
            )
            for dep in deps:
                if dep.seller_id != seller.id:
                    return {"success": False, "message": f"Deposit #{dep.pk} does not belong to this seller."}
                if dep.status != "sold":
                    return {"success": False, "message": f"Deposit #{dep.pk} is not sold (status: {dep.status})."}
                if dep.bulk_payment_id in open_bulk_ids:
                    return {"success": False, "message": f"Deposit #{dep.pk} is already in bulk payment #{dep.bulk_payment_id}."}

            total_deposit = _q2(sum((_q2(d.total_deposit_required) for d in deps), Decimal("0.00")))
            total_profit = _q2(sum((_q2(d.pending_profit_amount) for d in deps), Decimal("0.00")))
            order_details = [
                {
                    "deposit_id": d.pk,
                    "product_name": d.product_name,
                    "deposit_amount": f"{_q2(d.total_deposit_required)}",
                    "profit_amount": f"{_q2(d.pending_profit_amount)}",
                    "sale_date": d.sale_date.isoformat() if d.sale_date else None,
                }
                for d in deps
            ]
            bulk = BulkDepositPayment.objects.create(
                seller=seller,
                deposit_ids=ids,
                order_details=order_details,
                total_deposit_amount=total_deposit,
                total_profit_amount=total_profit,
                total_orders_count=len(ids),
            )
            PendingDeposit.objects.filter(pk__in=ids).update(bulk_payment=bulk, updated_at=timezone.now())
    except Exception as e:
        logger.exception("create_bulk_payment failed for seller %s", seller.pk)
        return {"success": False, "message": f"Failed to create bulk payment: {e}"}

    return {
        "success": True,
        "message": f"Bulk payment created for {len(ids)} orders.",
        "bulk_payment_id": bulk.pk,
        "total_deposit_amount": f"{total_deposit}",
        "total_profit_amount": f"{total_profit}",
        "total_orders_count": len(ids),
    }


def submit_bulk_payment_receipt(
    bulk_payment_id: int,
    receipt_file=None,
    description: str | None = None,
    seller: CustomUser | None = None,
    pay_with_wallet: bool = False,
) -> Dict[str, Any]:
    """
    Attach a receipt for the whole batch.
    - transfer: batch and its deposits move to receipt_submitted
    - wallet: balance is debited and the batch is approved in the same
      transaction
    """
    try:
        with transaction.atomic():
            bulk = BulkDepositPayment.objects.select_for_update().select_related("seller").filter(pk=bulk_payment_id).first()
            if not bulk:
                return {"success": False, "message": "Bulk payment not found", "not_found": True}
            if seller is not None and bulk.seller_id != seller.id:
                return {"success": False, "message": "Unauthorized access"}
            if bulk.status != "pending":
                return {"success": False, "message": f"Bulk payment is not awaiting a receipt (status: {bulk.status})."}

            deposits = list(PendingDeposit.objects.filter(pk__in=bulk.deposit_ids))
            if len(deposits) != len(bulk.deposit_ids):
                return {"success": False, "message": "One or more deposits in this bulk payment no longer exist."}
            res = submit_receipt(
                bulk.seller,
                bulk.total_deposit_amount,
                receipt_file=receipt_file,
                description=description or f"Bulk deposit payment for {bulk.total_orders_count} orders",
                deposits=deposits,
                bulk_payment=bulk,
                pay_with_wallet=pay_with_wallet,
            )
            if not res.get("success"):
                return res

            now = timezone.now()
            bulk.receipt_submitted_at = now
            bulk.description = description or ""
            bulk.pay_with_wallet = bool(pay_with_wallet)
            if pay_with_wallet:
                bulk.status = "approved"
                bulk.approved_at = now
            else:
                bulk.status = "receipt_submitted"
            bulk.save(update_fields=["status", "receipt_submitted_at", "description", "pay_with_wallet", "approved_at", "updated_at"])
    except Exception as e:
        logger.exception("submit_bulk_payment_receipt failed for bulk %s", bulk_payment_id)
        return {"success": False, "message": f"Failed to submit bulk payment receipt: {e}"}

    res["bulk_payment_id"] = bulk.pk
    res["bulk_status"] = bulk.status
    return res


def approve_bulk_payment(bulk_payment_id: int, admin: CustomUser, notes: str = "") -> Dict[str, Any]:
    """
    Approve a submitted batch. Every referenced deposit is paid out in one
    transaction; if any deposit cannot be paid nothing is written.
    """
    try:
        with transaction.atomic():
            bulk = BulkDepositPayment.objects.select_for_update().filter(pk=bulk_payment_id).first()
            if not bulk:
                return {"success": False, "message": "Bulk payment not found", "not_found": True}
            if bulk.status != "receipt_submitted":
                return {"success": False, "message": f"Bulk payment cannot be approved (status: {bulk.status})."}

            receipt = bulk.receipts.select_for_update().filter(status="pending").order_by("-submitted_at", "-id").first()
            released, skipped, credited = release_deposits(bulk.deposit_ids, bulk.seller_id, receipt=receipt)

            bulk.status = "approved"
            bulk.approved_at = timezone.now()
            bulk.approved_by = admin
            bulk.save(update_fields=["status", "approved_at", "approved_by", "updated_at"])

            if receipt is not None:
                close_receipt(receipt, "approved", admin, notes)
                record_receipt_commission(receipt)
    except ValueError as e:
        return {"success": False, "message": str(e)}
    except Exception as e:
        logger.exception("approve_bulk_payment failed for bulk %s", bulk_payment_id)
        return {"success": False, "message": f"Failed to approve bulk payment: {e}"}

    logger.info("Bulk payment %s approved by %s: %s paid, %s skipped", bulk.pk, admin.pk, released, skipped)
    return {
        "success": True,
        "message": f"Bulk payment approved. {released} deposit(s) paid, {skipped} already paid.",
        "bulk_payment_id": bulk.pk,
        "deposits_paid": released,
        "already_paid": skipped,
        "total_credited": f"{credited}",
    }


def reject_bulk_payment(bulk_payment_id: int, admin: CustomUser, reason: str = "") -> Dict[str, Any]:
    """
    Reject a submitted batch. Its deposits return to sold and are unlinked
    so the seller can pay them again.
    """
    try:
        with transaction.atomic():
            bulk = BulkDepositPayment.objects.select_for_update().filter(pk=bulk_payment_id).first()
            if not bulk:
                return {"success": False, "message": "Bulk payment not found", "not_found": True}
            if bulk.status != "receipt_submitted":
                return {"success": False, "message": f"Bulk payment cannot be rejected (status: {bulk.status})."}

            returned = return_deposits_to_sold(bulk.deposit_ids)
            # Deposits still linked in sold state (never submitted) are released too
            PendingDeposit.objects.filter(bulk_payment=bulk, status="sold").update(bulk_payment=None, updated_at=timezone.now())

            bulk.status = "rejected"
            bulk.rejected_at = timezone.now()
            bulk.rejected_by = admin
            bulk.rejection_reason = reason or ""
            bulk.save(update_fields=["status", "rejected_at", "rejected_by", "rejection_reason", "updated_at"])

            for receipt in bulk.receipts.select_for_update().filter(status="pending"):
                close_receipt(receipt, "rejected", admin, reason)
                cancel_receipt_commission(receipt)
    except Exception as e:
        logger.exception("reject_bulk_payment failed for bulk %s", bulk_payment_id)
        return {"success": False, "message": f"Failed to reject bulk payment: {e}"}

    return {
        "success": True,
        "message": f"Bulk payment rejected. {returned} deposit(s) returned to sold.",
        "bulk_payment_id": bulk.pk,
    }


def cancel_bulk_payment(bulk_payment_id: int, seller: CustomUser) -> Dict[str, Any]:
    """
    Seller withdraws a batch that has no receipt yet. Its deposits are
    unlinked and stay sold, so they can be paid singly or in a new batch.
    """
    try:
        with transaction.atomic():
            bulk = BulkDepositPayment.objects.select_for_update().filter(pk=bulk_payment_id).first()
            if not bulk:
                return {"success": False, "message": "Bulk payment not found", "not_found": True}
            if bulk.seller_id != seller.id:
                return {"success": False, "message": "Unauthorized access"}
            if bulk.status != "pending":
                return {"success": False, "message": f"Only bulk payments awaiting a receipt can be cancelled (status: {bulk.status})."}

            now = timezone.now()
            released = PendingDeposit.objects.filter(bulk_payment=bulk).update(bulk_payment=None, updated_at=now)
            bulk.status = "cancelled"
            bulk.cancelled_at = now
            bulk.save(update_fields=["status", "cancelled_at", "updated_at"])
    except Exception as e:
        logger.exception("cancel_bulk_payment failed for bulk %s", bulk_payment_id)
        return {"success": False, "message": f"Failed to cancel bulk payment: {e}"}

    logger.info("Bulk payment %s cancelled by seller %s, %s deposit(s) released", bulk.pk, seller.pk, released)
    return {
        "success": True,
        "message": f"Bulk payment cancelled. {released} order(s) can be paid again.",
        "bulk_payment_id": bulk.pk,
        "deposits_released": released,
    }
