from __future__ import annotations

import logging
from decimal import Decimal, ROUND_DOWN
from typing import Dict, Any

from django.db import transaction
from django.db.models import Count, Sum

from accounts.models import CustomUser, WithdrawalRequest

logger = logging.getLogger(__name__)


def _q2(x) -> Decimal:
    try:
        return Decimal(str(x)).quantize(Decimal("0.01"), rounding=ROUND_DOWN)
    except Exception:
        return Decimal("0.00")


def create_withdrawal_request(seller: CustomUser, amount, usdt_id: str) -> Dict[str, Any]:
    """
    Open a withdrawal request. The balance is only checked here; it is
    debited when an admin approves the request.
    """
    amt = _q2(amount)
    if amt <= 0:
        return {"success": False, "message": "Amount must be greater than 0."}
    usdt_id = (usdt_id or "").strip()
    if not usdt_id:
        return {"success": False, "message": "USDT wallet address is required."}

    with transaction.atomic():
        locked = CustomUser.objects.select_for_update().get(pk=seller.pk)
        if WithdrawalRequest.objects.filter(seller=locked, status="pending").exists():
            return {"success": False, "message": "You already have a pending withdrawal request."}
        if (locked.balance or Decimal("0.00")) < amt:
            return {"success": False, "message": f"Insufficient balance. Available: {locked.balance}"}
        wr = WithdrawalRequest.objects.create(seller=locked, amount=amt, usdt_id=usdt_id)

    logger.info("Withdrawal %s requested by seller %s for %s", wr.pk, seller.pk, amt)
    return {"success": True, "message": "Withdrawal request submitted.", "withdrawal": wr}


def process_withdrawal(withdrawal_id: int, admin: CustomUser, approve: bool, notes: str = "") -> Dict[str, Any]:
    wr = WithdrawalRequest.objects.select_related("seller").filter(pk=withdrawal_id).first()
    if not wr:
        return {"success": False, "message": "Withdrawal request not found", "not_found": True}
    try:
        if approve:
            wr.approve(admin, notes)
        else:
            wr.reject(admin, notes)
    except ValueError as e:
        return {"success": False, "message": str(e)}
    return {"success": True, "message": f"Withdrawal {wr.status}.", "withdrawal": wr}


def withdrawal_stats() -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "total_pending": 0,
        "total_approved": 0,
        "total_rejected": 0,
        "pending_amount": "0.00",
        "approved_amount": "0.00",
        "rejected_amount": "0.00",
    }
    for row in WithdrawalRequest.objects.values("status").annotate(c=Count("id"), s=Sum("amount")):
        status = row["status"]
        out[f"total_{status}"] = row["c"]
        out[f"{status}_amount"] = f"{_q2(row['s'] or 0)}"
    return out
