from decimal import Decimal

import pytest

from accounts.models import WalletTransaction
from business.models import CommissionConfig, CommissionTransaction, Receipt
from business.services.bulk_payments import create_bulk_payment, submit_bulk_payment_receipt
from business.services.receipts import approve_receipt, reject_receipt, submit_receipt


@pytest.mark.django_db
class TestTopUpReceipts:
    def test_approval_credits_amount(self, seller, admin_a, receipt_file):
        res = submit_receipt(seller, "40.00", receipt_file=receipt_file(), description="Bank transfer")
        assert res["success"] is True
        assert res["status"] == "pending"

        out = approve_receipt(res["receipt_id"], admin_a, notes="Checked")

        assert out["success"] is True
        assert out["new_balance"] == "40.00"
        r = Receipt.objects.get(pk=res["receipt_id"])
        assert r.status == "approved"
        assert r.processed_by_id == admin_a.pk
        assert r.notes == "Checked"
        tx = WalletTransaction.objects.get(user=seller)
        assert tx.type == "RECEIPT_TOPUP_CREDIT"
        assert tx.amount == Decimal("40.00")
        assert tx.source_id == str(r.pk)

    def test_file_required_for_transfer(self, seller):
        res = submit_receipt(seller, "10.00")
        assert res == {"success": False, "message": "Receipt image is required."}

    def test_amount_must_be_positive(self, seller, receipt_file):
        res = submit_receipt(seller, "0", receipt_file=receipt_file())
        assert res["success"] is False

    def test_processed_receipt_cannot_be_approved_again(self, seller, admin_a, receipt_file):
        rid = submit_receipt(seller, "10.00", receipt_file=receipt_file())["receipt_id"]
        assert approve_receipt(rid, admin_a)["success"]

        res = approve_receipt(rid, admin_a)

        assert res == {"success": False, "message": "Receipt has already been processed"}
        seller.refresh_from_db()
        assert seller.balance == Decimal("10.00")

    def test_unknown_receipt(self, admin_a):
        assert approve_receipt(123456, admin_a)["message"] == "Receipt not found"


@pytest.mark.django_db
class TestDepositReceipts:
    def test_submit_and_approve_single_deposit(self, seller, admin_a, make_deposit, receipt_file):
        dep = make_deposit(seller)

        res = submit_receipt(seller, dep.total_deposit_required, receipt_file=receipt_file(), deposit=dep)
        dep.refresh_from_db()
        assert dep.status == "receipt_submitted"
        assert dep.receipt_id == res["receipt_id"]

        out = approve_receipt(res["receipt_id"], admin_a)

        assert out["success"] is True
        dep.refresh_from_db()
        assert dep.status == "deposit_paid"
        seller.refresh_from_db()
        assert seller.balance == Decimal("13.00")

    def test_reject_returns_deposit_to_sold(self, seller, admin_a, make_deposit, receipt_file):
        dep = make_deposit(seller)
        rid = submit_receipt(seller, "10.00", receipt_file=receipt_file(), deposit=dep)["receipt_id"]

        res = reject_receipt(rid, admin_a, notes="Amount mismatch")

        assert res["success"] is True
        dep.refresh_from_db()
        assert dep.status == "sold"
        assert dep.receipt_id is None
        assert Receipt.objects.get(pk=rid).status == "rejected"
        assert CommissionTransaction.objects.get(receipt_id=rid).status == "cancelled"
        seller.refresh_from_db()
        assert seller.balance == Decimal("0.00")

    def test_unsold_deposit_cannot_be_paid(self, seller, make_deposit, receipt_file):
        dep = make_deposit(seller, sold=False)
        res = submit_receipt(seller, "10.00", receipt_file=receipt_file(), deposit=dep)
        assert res["success"] is False
        assert "not awaiting payment" in res["message"]
        assert Receipt.objects.count() == 0

    def test_wallet_payment_for_single_deposit(self, seller, make_deposit):
        seller.credit_balance(Decimal("10.00"), tx_type="ADJUSTMENT_CREDIT")
        dep = make_deposit(seller)

        res = submit_receipt(seller, dep.total_deposit_required, deposit=dep, pay_with_wallet=True)

        assert res["success"] is True
        assert res["status"] == "approved"
        assert res["new_balance"] == "13.00"
        types = list(WalletTransaction.objects.filter(user=seller).order_by("id").values_list("type", flat=True))
        assert types == ["ADJUSTMENT_CREDIT", "WALLET_PAYMENT_DEBIT", "DEPOSIT_REFUND_AND_PROFIT"]

    def test_wallet_payment_needs_a_deposit(self, seller):
        res = submit_receipt(seller, "10.00", pay_with_wallet=True)
        assert res["success"] is False

    def test_bulk_receipt_approval_goes_through_batch(self, seller, admin_a, make_deposit, receipt_file):
        deps = [make_deposit(seller), make_deposit(seller)]
        bulk_id = create_bulk_payment(seller, [d.pk for d in deps])["bulk_payment_id"]
        rid = submit_bulk_payment_receipt(bulk_id, receipt_file=receipt_file(), seller=seller)["receipt_id"]

        res = approve_receipt(rid, admin_a)

        assert res["success"] is True
        assert res["bulk_payment_id"] == bulk_id
        assert res["deposits_paid"] == 2


@pytest.mark.django_db
class TestReceiptCommissions:
    def test_commission_uses_configured_percent(self, seller, admin_a, receipt_file):
        cfg = CommissionConfig.get_solo()
        cfg.commission_percent = Decimal("10.00")
        cfg.save()
        rid = submit_receipt(seller, "80.00", receipt_file=receipt_file())["receipt_id"]

        approve_receipt(rid, admin_a)

        tx = CommissionTransaction.objects.get(receipt_id=rid)
        assert tx.status == "completed"
        assert tx.admin_id == admin_a.pk
        assert tx.commission_amount == Decimal("8.00")
        assert tx.original_amount == Decimal("80.00")

    def test_dummy_seller_excluded_from_revenue(self, seller, admin_a, receipt_file):
        seller.is_dummy_account = True
        seller.save(update_fields=["is_dummy_account"])
        rid = submit_receipt(seller, "15.00", receipt_file=receipt_file())["receipt_id"]

        approve_receipt(rid, admin_a)

        tx = CommissionTransaction.objects.get(receipt_id=rid)
        assert tx.exclude_from_revenue is True

    def test_no_commission_without_referring_admin(self, make_user, admin_a, receipt_file):
        orphan = make_user("orphan")
        rid = submit_receipt(orphan, "15.00", receipt_file=receipt_file())["receipt_id"]

        assert approve_receipt(rid, admin_a)["success"]
        assert not CommissionTransaction.objects.filter(receipt_id=rid).exists()

    def test_pending_commission_follows_migrated_seller(self, seller, admin_b, receipt_file, admin_a):
        from business.services.seller_management import migrate_seller

        rid = submit_receipt(seller, "20.00", receipt_file=receipt_file())["receipt_id"]
        migrate_seller(seller.pk, admin_b.pk)
        approve_receipt(rid, admin_a)

        tx = CommissionTransaction.objects.get(receipt_id=rid)
        assert tx.status == "completed"
        assert tx.admin_id == admin_b.pk


@pytest.mark.django_db
class TestMarkDepositPaid:
    def test_pays_once(self, seller, make_deposit):
        from business.services.deposits import mark_deposit_paid

        dep = make_deposit(seller, qty=2)

        res = mark_deposit_paid(dep.pk, seller=seller)
        again = mark_deposit_paid(dep.pk, seller=seller)

        assert res["credited"] == "26.00"
        assert again == {"success": True, "message": "Deposit already processed", "credited": "0.00"}
        seller.refresh_from_db()
        assert seller.balance == Decimal("26.00")

    def test_pending_deposit_cannot_be_paid(self, seller, make_deposit):
        from business.services.deposits import mark_deposit_paid

        dep = make_deposit(seller, sold=False)
        res = mark_deposit_paid(dep.pk)
        assert res["success"] is False
        assert "cannot be paid" in res["message"]
