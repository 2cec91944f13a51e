from __future__ import annotations

from typing import Any, Dict, Iterable, List

from business.models import PendingDeposit, Receipt


def _expected_deposit_status(receipt: Receipt) -> str | None:
    """
    Status every deposit of a bulk receipt should be in, or None when the
    receipt state makes no claim (e.g. rejected).
    """
    if receipt.status == "approved":
        return "deposit_paid"
    if receipt.status == "pending" and not receipt.is_wallet_payment:
        return "receipt_submitted"
    return None


def diagnose_bulk_receipts(receipts: Iterable[Receipt]) -> List[Dict[str, Any]]:
    """
    Cross-check bulk receipts against their deposits. Read-only.

    Flags:
    - approved receipts (wallet or reviewed) with a deposit not deposit_paid
    - pending transfer receipts with a deposit not receipt_submitted
    - deposit ids that no longer exist
    """
    receipts = list(receipts)
    all_ids = {int(i) for r in receipts for i in (r.pending_deposit_ids or [])}
    deposits = {d.pk: d for d in PendingDeposit.objects.filter(pk__in=all_ids)}

    report: List[Dict[str, Any]] = []
    for r in receipts:
        expected = _expected_deposit_status(r)
        items = []
        issues = []
        for raw in r.pending_deposit_ids or []:
            dep = deposits.get(int(raw))
            if dep is None:
                items.append({"deposit_id": int(raw), "status": None})
                issues.append(f"Deposit #{raw} not found")
                continue
            items.append({
                "deposit_id": dep.pk,
                "status": dep.status,
                "product_name": dep.product_name,
                "deposit_amount": f"{dep.total_deposit_required}",
                "pending_profit": f"{dep.pending_profit_amount}",
            })
            if expected and dep.status != expected:
                kind = "wallet" if r.is_wallet_payment else "transfer"
                issues.append(f"Deposit #{dep.pk} is {dep.status}, expected {expected} for {r.status} {kind} receipt")

        report.append({
            "receipt_id": r.pk,
            "user_id": r.user_id,
            "amount": f"{r.amount}",
            "status": r.status,
            "is_wallet_payment": r.is_wallet_payment,
            "bulk_payment_id": r.bulk_payment_id,
            "submitted_at": r.submitted_at.isoformat() if r.submitted_at else None,
            "deposit_count": len(r.pending_deposit_ids or []),
            "deposits": items,
            "issues": issues,
            "ok": not issues,
        })
    return report
