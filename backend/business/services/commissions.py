from __future__ import annotations

import logging
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from business.models import CommissionConfig, CommissionTransaction, Receipt

logger = logging.getLogger(__name__)


def _q2(x) -> Decimal:
    try:
        return Decimal(str(x)).quantize(Decimal("0.01"))
    except Exception:
        return Decimal("0.00")


def _recipient(seller):
    ref = getattr(seller, "referred_by", None)
    if ref is None or not ref.is_admin_role:
        return None
    return ref


def _new_commission(receipt: Receipt, status: str) -> CommissionTransaction | None:
    seller = receipt.user
    admin = _recipient(seller)
    if admin is None:
        return None
    pct = _q2(CommissionConfig.get_solo().commission_percent)
    amount = _q2(receipt.amount)
    is_dummy = bool(seller.is_dummy_account)
    return CommissionTransaction.objects.create(
        admin=admin,
        seller=seller,
        receipt=receipt,
        original_amount=amount,
        commission_percent=pct,
        commission_amount=_q2(amount * pct / Decimal("100")),
        status=status,
        is_dummy_account=is_dummy,
        exclude_from_revenue=is_dummy,
    )


def open_receipt_commission(receipt: Receipt) -> CommissionTransaction | None:
    """
    Book a pending commission for a receipt awaiting review. It follows the
    seller if they are migrated before the receipt is decided.
    """
    return _new_commission(receipt, "pending")


@transaction.atomic
def record_receipt_commission(receipt: Receipt) -> CommissionTransaction | None:
    """
    Complete the commission for an approved receipt. Reuses the pending row
    opened at submission (keeping its admin), otherwise books a completed
    one for the seller's current referring admin. Dummy accounts are
    recorded with exclude_from_revenue.
    """
    pending = CommissionTransaction.objects.select_for_update().filter(receipt=receipt, status="pending").first()
    if pending:
        pending.status = "completed"
        pending.save(update_fields=["status", "updated_at"])
        return pending
    if CommissionTransaction.objects.filter(receipt=receipt, status="completed").exists():
        return None
    tx = _new_commission(receipt, "completed")
    if tx is None:
        logger.info("Receipt %s: seller %s has no referring admin, no commission", receipt.pk, receipt.user_id)
    return tx


def cancel_receipt_commission(receipt: Receipt) -> int:
    return CommissionTransaction.objects.filter(receipt=receipt, status="pending").update(status="cancelled", updated_at=timezone.now())
