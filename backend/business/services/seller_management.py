from __future__ import annotations

import logging
from decimal import Decimal
from typing import Dict, Any

from django.db import transaction
from django.db.models import Count, DecimalField, OuterRef, Q, Subquery, Sum, Value
from django.db.models.functions import Coalesce
from django.utils import timezone

from accounts.models import CustomUser
from business.models import CommissionTransaction, PendingDeposit, SellerMigration

logger = logging.getLogger(__name__)

# Admin-seller relationships:
# - referred_by: admin receiving commissions from the seller; moves on migration
# - admin: admin managing the seller; kept equal to referred_by after migration
# - original_referred_by: first referrer, written once for history


def _commission_sum(field: str):
    sub = (
        CommissionTransaction.objects
        .filter(**{field: OuterRef("pk")}, status="completed", exclude_from_revenue=False)
        .values(field)
        .annotate(s=Sum("commission_amount"))
        .values("s")[:1]
    )
    return Coalesce(
        Subquery(sub, output_field=DecimalField(max_digits=14, decimal_places=2)),
        Value(Decimal("0.00")),
        output_field=DecimalField(max_digits=14, decimal_places=2),
    )


def migrate_seller(seller_id: int, new_admin_id: int, reason: str = "Admin migration", performed_by: CustomUser | None = None) -> Dict[str, Any]:
    """
    Move a seller (and their open business) to another admin in one transaction.

    - seller.admin and seller.referred_by both become the new admin
    - original_referred_by keeps the first referrer and is never overwritten
    - deposits still in status pending follow the seller; sold or paid
      deposits stay with the admin who handled them
    - pending commissions follow the seller; completed ones stay earned
    - an append-only SellerMigration row records the move
    """
    try:
        new_admin_id = int(new_admin_id)
    except (TypeError, ValueError):
        return {"success": False, "message": "Target admin not found or invalid"}

    try:
        with transaction.atomic():
            seller = CustomUser.objects.select_for_update().filter(pk=seller_id, role="seller").first()
            if not seller:
                return {"success": False, "message": "Seller not found", "not_found": True}

            old_referred_by_id = seller.referred_by_id
            old_admin_id = seller.referred_by_id or seller.admin_id

            if seller.admin_id == new_admin_id and seller.referred_by_id == new_admin_id:
                return {"success": False, "message": "Seller is already under this admin"}

            new_admin = CustomUser.objects.filter(pk=new_admin_id, role="admin").first()
            if not new_admin:
                return {"success": False, "message": "Target admin not found or invalid"}

            now = timezone.now()
            seller.admin = new_admin
            seller.referred_by = new_admin
            if not seller.original_referred_by_id and old_admin_id:
                seller.original_referred_by_id = old_admin_id
            history = list(seller.migration_history or [])
            history.append({
                "from_admin_id": old_admin_id,
                "to_admin_id": new_admin.pk,
                "from_referred_by": old_referred_by_id,
                "to_referred_by": new_admin.pk,
                "reason": reason,
                "timestamp": now.isoformat(),
            })
            seller.migration_history = history
            seller.save(update_fields=["admin", "referred_by", "original_referred_by", "migration_history", "updated_at"])

            deposits_moved = PendingDeposit.objects.filter(seller=seller, status="pending").update(
                admin=new_admin,
                migrated_at=now,
                migrated_reason=reason,
                updated_at=now,
            )
            commissions_moved = CommissionTransaction.objects.filter(seller=seller, status="pending").update(
                admin=new_admin,
                migrated_at=now,
                updated_at=now,
            )

            SellerMigration.objects.create(
                seller=seller,
                from_admin_id=old_admin_id,
                to_admin=new_admin,
                from_referred_by_id=old_referred_by_id,
                to_referred_by=new_admin,
                reason=reason,
                performed_by=performed_by,
                pending_deposits_moved=deposits_moved,
                commissions_moved=commissions_moved,
            )
    except Exception as e:
        logger.exception("Seller migration failed: seller=%s new_admin=%s", seller_id, new_admin_id)
        return {"success": False, "message": f"Migration failed: {e}"}

    logger.info("Seller %s migrated %s -> %s (%s deposits, %s commissions)", seller_id, old_admin_id, new_admin_id, deposits_moved, commissions_moved)
    return {
        "success": True,
        "message": f"Seller successfully migrated to {new_admin.label}",
        "seller_id": seller.pk,
        "old_admin_id": old_admin_id,
        "new_admin_id": new_admin.pk,
        "migrated_data": {
            "pending_deposits": deposits_moved,
            "commission_history": commissions_moved,
        },
    }


def toggle_dummy_account(seller_id: int, is_dummy: bool, reason: str = "Dummy account toggle", performed_by: CustomUser | None = None) -> Dict[str, Any]:
    """
    Flag or unflag a seller as a dummy account. Every deposit and commission
    of the seller is (un)marked exclude_from_revenue with it.
    """
    try:
        with transaction.atomic():
            seller = CustomUser.objects.select_for_update().filter(pk=seller_id).first()
            if not seller:
                return {"success": False, "message": "Seller not found", "not_found": True}
            if seller.role != "seller":
                return {"success": False, "message": "User is not a seller"}

            is_dummy = bool(is_dummy)
            now = timezone.now()
            history = list(seller.dummy_account_history or [])
            history.append({
                "is_dummy_account": is_dummy,
                "reason": reason,
                "timestamp": now.isoformat(),
                "performed_by": getattr(performed_by, "pk", None),
            })
            seller.is_dummy_account = is_dummy
            seller.dummy_account_changed_at = now
            seller.dummy_account_history = history
            seller.save(update_fields=["is_dummy_account", "dummy_account_changed_at", "dummy_account_history", "updated_at"])

            PendingDeposit.objects.filter(seller=seller).update(is_dummy_account=is_dummy, exclude_from_revenue=is_dummy, updated_at=now)
            CommissionTransaction.objects.filter(seller=seller).update(is_dummy_account=is_dummy, exclude_from_revenue=is_dummy, updated_at=now)
    except Exception as e:
        logger.exception("toggle_dummy_account failed for seller %s", seller_id)
        return {"success": False, "message": f"Failed to toggle dummy account: {e}"}

    return {
        "success": True,
        "message": f"Seller {'marked as' if is_dummy else 'removed from'} dummy account successfully",
        "seller_id": seller.pk,
        "is_dummy_account": is_dummy,
    }


def list_sellers(search: str | None = None, admin: CustomUser | None = None):
    """
    Sellers with their managing admin, newest first. `admin` narrows the
    list to sellers managed by (or referred to) that admin.
    """
    qs = (
        CustomUser.objects
        .filter(role="seller")
        .select_related("admin", "referred_by", "original_referred_by")
        .annotate(total_commissions=_commission_sum("seller"))
    )
    if admin is not None:
        qs = qs.filter(Q(admin=admin) | Q(referred_by=admin))
    search = (search or "").strip()
    if search:
        qs = qs.filter(
            Q(username__icontains=search)
            | Q(email__icontains=search)
            | Q(display_name__icontains=search)
            | Q(referral_code__iexact=search)
        )
    return qs.order_by("-date_joined", "-id")


def list_admins():
    return (
        CustomUser.objects
        .filter(role="admin")
        .annotate(
            total_sellers=Count("managed_sellers", filter=Q(managed_sellers__role="seller"), distinct=True),
            total_commissions=_commission_sum("admin"),
        )
        .order_by("-date_joined", "-id")
    )


def get_seller_migration_history(seller_id: int | None = None):
    qs = SellerMigration.objects.select_related("seller", "from_admin", "to_admin", "performed_by")
    if seller_id:
        qs = qs.filter(seller_id=seller_id)
    return qs.order_by("-created_at", "-id")


def get_seller_details(seller_id: int) -> Dict[str, Any] | None:
    seller = CustomUser.objects.filter(pk=seller_id, role="seller").select_related("admin", "referred_by", "original_referred_by").first()
    if not seller:
        return None

    deposits = PendingDeposit.objects.filter(seller=seller)
    by_status = {row["status"]: row["c"] for row in deposits.values("status").annotate(c=Count("id"))}
    sales = deposits.filter(status__in=("sold", "receipt_submitted", "deposit_paid", "completed")).aggregate(
        n=Count("id"),
        profit=Sum("pending_profit_amount"),
    )
    commissions = CommissionTransaction.objects.filter(seller=seller, status="completed").aggregate(s=Sum("commission_amount"))

    def _ref(u):
        return {"id": u.pk, "name": u.label, "email": u.email} if u else None

    return {
        "id": seller.pk,
        "username": seller.username,
        "email": seller.email,
        "display_name": seller.label,
        "referral_code": seller.referral_code,
        "current_admin": _ref(seller.admin),
        "referred_by": _ref(seller.referred_by),
        "original_referred_by": _ref(seller.original_referred_by),
        "is_dummy_account": seller.is_dummy_account,
        "balance": f"{seller.balance}",
        "total_sales": sales["n"] or 0,
        "total_profit": f"{sales['profit'] or Decimal('0.00')}",
        "total_commissions": f"{commissions['s'] or Decimal('0.00')}",
        "deposits_by_status": by_status,
        "migration_count": len(seller.migration_history or []),
        "date_joined": seller.date_joined.isoformat() if seller.date_joined else None,
    }
