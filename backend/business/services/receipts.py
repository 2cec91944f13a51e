from __future__ import annotations

import logging
from decimal import Decimal
from typing import Dict, Any, Iterable, List, Tuple

from django.db import transaction
from django.utils import timezone

from accounts.models import CustomUser
from business.models import PendingDeposit, Receipt, BulkDepositPayment
from business.services.commissions import open_receipt_commission, record_receipt_commission, cancel_receipt_commission
from business.services.deposits import release_deposit

logger = logging.getLogger(__name__)

WALLET_PROCESSOR_NAME = "System (Wallet Payment)"


def _q2(x) -> Decimal:
    try:
        return Decimal(str(x)).quantize(Decimal("0.01"))
    except Exception:
        return Decimal("0.00")


def close_receipt(receipt: Receipt, status: str, admin: CustomUser | None, notes: str = "", processed_by_name: str | None = None):
    receipt.status = status
    receipt.processed_at = timezone.now()
    receipt.processed_by = admin
    receipt.processed_by_name = processed_by_name or (admin.label if admin else "")
    receipt.notes = notes or ""
    receipt.save(update_fields=["status", "processed_at", "processed_by", "processed_by_name", "notes"])


def release_deposits(deposit_ids: Iterable[int], seller_id: int, receipt: Receipt | None = None) -> Tuple[int, int, Decimal]:
    """
    Pay out every deposit in deposit_ids for one seller. Must run inside a
    transaction; any missing or foreign deposit raises ValueError so the
    caller's transaction is rolled back as a whole.
    Returns (released, already_paid, total_credited).
    """
    ids = [int(i) for i in deposit_ids]
    deps = list(PendingDeposit.objects.select_for_update().filter(pk__in=ids).order_by("pk"))
    missing = sorted(set(ids) - {d.pk for d in deps})
    if missing:
        raise ValueError(f"Deposits not found: {', '.join(str(m) for m in missing)}")

    released, skipped, credited = 0, 0, Decimal("0.00")
    for dep in deps:
        if dep.seller_id != seller_id:
            raise ValueError(f"Deposit #{dep.pk} does not belong to this seller.")
        if dep.status == "deposit_paid":
            skipped += 1
            continue
        credited += release_deposit(dep, receipt=receipt)
        released += 1
    return released, skipped, credited


def return_deposits_to_sold(deposit_ids: Iterable[int]) -> int:
    return PendingDeposit.objects.filter(
        pk__in=list(deposit_ids),
        status="receipt_submitted",
    ).update(status="sold", receipt=None, bulk_payment=None, updated_at=timezone.now())


def _lock_deposits(user: CustomUser, deposits: List[PendingDeposit], bulk_payment: BulkDepositPayment | None) -> List[PendingDeposit]:
    locked = list(PendingDeposit.objects.select_for_update().filter(pk__in=[d.pk for d in deposits]).order_by("pk"))
    if len(locked) != len({d.pk for d in deposits}):
        raise ValueError("One or more deposits no longer exist.")
    for dep in locked:
        if dep.seller_id != user.id:
            raise ValueError("Unauthorized access")
        if dep.status != "sold":
            raise ValueError(f"Deposit #{dep.pk} is not awaiting payment (status: {dep.status})")
        if dep.bulk_payment_id and (bulk_payment is None or dep.bulk_payment_id != bulk_payment.pk):
            raise ValueError(f"Deposit #{dep.pk} is part of bulk payment #{dep.bulk_payment_id}")
    return locked


def submit_receipt(
    user: CustomUser,
    amount,
    receipt_file=None,
    description: str = "",
    deposit: PendingDeposit | None = None,
    deposits: Iterable[PendingDeposit] | None = None,
    bulk_payment: BulkDepositPayment | None = None,
    pay_with_wallet: bool = False,
) -> Dict[str, Any]:
    """
    Record a payment receipt.

    Transfer receipts wait for admin review: status pending, and every
    referenced deposit moves to receipt_submitted.

    Wallet payments settle immediately in one transaction: the seller's
    balance is debited, the receipt is approved as the system, and every
    referenced deposit is paid out (refund + profit credited back).
    """
    amt = _q2(amount)
    if amt <= 0:
        return {"success": False, "message": "Amount must be greater than 0."}
    deps = list(deposits or [])
    if deposit is not None:
        deps.append(deposit)
    if pay_with_wallet and not deps:
        return {"success": False, "message": "Wallet payments must reference at least one deposit."}
    if not pay_with_wallet and not receipt_file:
        return {"success": False, "message": "Receipt image is required."}

    new_balance = None
    try:
        with transaction.atomic():
            locked = _lock_deposits(user, deps, bulk_payment)
            r = Receipt(
                user=user,
                amount=amt,
                description=description or "",
                is_deposit_payment=bool(locked),
                product_name=locked[0].product_name if len(locked) == 1 else "",
                is_bulk_payment=bulk_payment is not None,
                bulk_payment=bulk_payment,
                pending_deposit_ids=[d.pk for d in locked],
                bulk_order_count=len(locked) if bulk_payment is not None else 0,
                is_wallet_payment=bool(pay_with_wallet),
            )
            if receipt_file:
                r.receipt_file = receipt_file
            r.save()

            if pay_with_wallet:
                new_balance = user.debit_balance(
                    amt,
                    tx_type="WALLET_PAYMENT_DEBIT",
                    meta={"receipt_id": r.pk, "deposit_ids": r.pending_deposit_ids},
                    source_type="RECEIPT",
                    source_id=str(r.pk),
                )
                r.wallet_balance_used = amt
                r.is_auto_processed = True
                r.save(update_fields=["wallet_balance_used", "is_auto_processed"])
                close_receipt(r, "approved", None, f"Paid via wallet balance. Amount deducted: {amt}", WALLET_PROCESSOR_NAME)
                release_deposits(r.pending_deposit_ids, user.id, receipt=r)
                record_receipt_commission(r)
                user.refresh_from_db(fields=["balance"])
                new_balance = user.balance
            else:
                PendingDeposit.objects.filter(pk__in=r.pending_deposit_ids).update(
                    status="receipt_submitted", receipt=r, updated_at=timezone.now()
                )
                open_receipt_commission(r)
    except ValueError as e:
        return {"success": False, "message": str(e)}
    except Exception as e:
        logger.exception("submit_receipt failed for user %s", user.pk)
        return {"success": False, "message": f"Failed to submit receipt: {e}"}

    if pay_with_wallet:
        message = "Payment processed successfully via wallet balance! Your profit has been added to your wallet."
    else:
        message = "Receipt submitted successfully! It will be reviewed by our admin team."
    out = {"success": True, "message": message, "receipt_id": r.pk, "status": r.status}
    if new_balance is not None:
        out["new_balance"] = f"{new_balance}"
    return out


def approve_receipt(receipt_id: int, admin: CustomUser, notes: str = "") -> Dict[str, Any]:
    """
    Approve a pending receipt.
    - bulk receipts approve their bulk payment (all deposits paid together)
    - deposit receipts pay out every referenced deposit
    - plain receipts credit the amount to the seller's balance
    A commission is recorded for the seller's referring admin.
    """
    r = Receipt.objects.filter(pk=receipt_id).first()
    if not r:
        return {"success": False, "message": "Receipt not found", "not_found": True}
    if r.status != "pending":
        return {"success": False, "message": "Receipt has already been processed"}
    if r.bulk_payment_id:
        from business.services.bulk_payments import approve_bulk_payment
        return approve_bulk_payment(r.bulk_payment_id, admin, notes=notes)

    released, skipped = 0, 0
    new_balance = None
    try:
        with transaction.atomic():
            r = Receipt.objects.select_for_update().select_related("user").get(pk=receipt_id)
            if r.status != "pending":
                return {"success": False, "message": "Receipt has already been processed"}
            if r.is_deposit_payment:
                released, skipped, _ = release_deposits(r.pending_deposit_ids, r.user_id, receipt=r)
            else:
                new_balance = r.user.credit_balance(
                    r.amount,
                    tx_type="RECEIPT_TOPUP_CREDIT",
                    meta={"receipt_id": r.pk},
                    source_type="RECEIPT",
                    source_id=str(r.pk),
                )
            close_receipt(r, "approved", admin, notes)
            record_receipt_commission(r)
    except ValueError as e:
        return {"success": False, "message": str(e)}
    except Exception as e:
        logger.exception("approve_receipt failed for receipt %s", receipt_id)
        return {"success": False, "message": f"Failed to approve receipt: {e}"}

    if r.is_deposit_payment:
        message = f"Receipt approved. {released} deposit(s) paid, {skipped} already paid."
    else:
        message = f"Receipt approved. {r.amount} added to balance."
    out = {"success": True, "message": message, "receipt_id": r.pk}
    if new_balance is not None:
        out["new_balance"] = f"{new_balance}"
    return out


def reject_receipt(receipt_id: int, admin: CustomUser, notes: str = "") -> Dict[str, Any]:
    r = Receipt.objects.filter(pk=receipt_id).first()
    if not r:
        return {"success": False, "message": "Receipt not found", "not_found": True}
    if r.status != "pending":
        return {"success": False, "message": "Receipt has already been processed"}
    if r.bulk_payment_id:
        from business.services.bulk_payments import reject_bulk_payment
        return reject_bulk_payment(r.bulk_payment_id, admin, reason=notes)

    try:
        with transaction.atomic():
            r = Receipt.objects.select_for_update().get(pk=receipt_id)
            if r.status != "pending":
                return {"success": False, "message": "Receipt has already been processed"}
            returned = return_deposits_to_sold(r.pending_deposit_ids)
            close_receipt(r, "rejected", admin, notes)
            cancel_receipt_commission(r)
    except Exception as e:
        logger.exception("reject_receipt failed for receipt %s", receipt_id)
        return {"success": False, "message": f"Failed to reject receipt: {e}"}
    return {"success": True, "message": f"Receipt rejected. {returned} deposit(s) returned to sold.", "receipt_id": r.pk}
