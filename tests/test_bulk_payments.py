from decimal import Decimal

import pytest

from accounts.models import WalletTransaction
from business.models import BulkDepositPayment, CommissionTransaction, PendingDeposit, Receipt
from business.services.bulk_payments import (
    approve_bulk_payment,
    cancel_bulk_payment,
    create_bulk_payment,
    reject_bulk_payment,
    sold_orders_for_bulk_payment,
    submit_bulk_payment_receipt,
)


@pytest.fixture
def sold_pair(seller, make_deposit):
    return [make_deposit(seller, name="Lamp"), make_deposit(seller, name="Chair")]


@pytest.mark.django_db
class TestCreateBulkPayment:
    def test_groups_sold_deposits(self, seller, sold_pair):
        res = create_bulk_payment(seller, [d.pk for d in sold_pair])

        assert res["success"] is True
        assert res["total_orders_count"] == 2
        assert res["total_deposit_amount"] == "20.00"
        assert res["total_profit_amount"] == "6.00"
        bulk = BulkDepositPayment.objects.get(pk=res["bulk_payment_id"])
        assert bulk.status == "pending"
        assert bulk.deposit_ids == [d.pk for d in sold_pair]
        assert [o["product_name"] for o in bulk.order_details] == ["Lamp", "Chair"]
        for d in sold_pair:
            d.refresh_from_db()
            assert d.status == "sold"
            assert d.bulk_payment_id == bulk.pk

    def test_duplicate_ids_counted_once(self, seller, sold_pair):
        res = create_bulk_payment(seller, [sold_pair[0].pk, sold_pair[0].pk, sold_pair[1].pk])
        assert res["total_orders_count"] == 2

    def test_requires_at_least_one_order(self, seller):
        res = create_bulk_payment(seller, [])
        assert res == {"success": False, "message": "Select at least one order."}

    def test_enforces_order_limit(self, seller, make_deposit, settings):
        settings.BULK_PAYMENT_MAX_ORDERS = 2
        deps = [make_deposit(seller) for _ in range(3)]

        res = create_bulk_payment(seller, [d.pk for d in deps])

        assert res["success"] is False
        assert "at most 2 orders" in res["message"]
        assert BulkDepositPayment.objects.count() == 0

    def test_rejects_unsold_deposit(self, seller, make_deposit, sold_pair):
        unsold = make_deposit(seller, sold=False)
        res = create_bulk_payment(seller, [sold_pair[0].pk, unsold.pk])

        assert res["success"] is False
        assert "is not sold" in res["message"]
        assert BulkDepositPayment.objects.count() == 0
        sold_pair[0].refresh_from_db()
        assert sold_pair[0].bulk_payment_id is None

    def test_rejects_foreign_deposit(self, seller, other_seller, make_deposit):
        foreign = make_deposit(other_seller)
        res = create_bulk_payment(seller, [foreign.pk])
        assert "does not belong" in res["message"]

    def test_rejects_missing_deposit(self, seller):
        res = create_bulk_payment(seller, [424242])
        assert res["message"] == "Deposits not found: 424242"

    def test_deposit_cannot_join_two_open_batches(self, seller, sold_pair):
        assert create_bulk_payment(seller, [sold_pair[0].pk])["success"]
        res = create_bulk_payment(seller, [sold_pair[0].pk, sold_pair[1].pk])
        assert res["success"] is False
        assert "already in bulk payment" in res["message"]

    def test_sold_orders_exclude_batched_deposits(self, seller, sold_pair, make_deposit):
        make_deposit(seller, sold=False)
        create_bulk_payment(seller, [sold_pair[0].pk])
        assert [d.pk for d in sold_orders_for_bulk_payment(seller)] == [sold_pair[1].pk]


@pytest.mark.django_db
class TestBulkPaymentReceipts:
    def _submitted(self, seller, deposits, receipt_file):
        bulk_id = create_bulk_payment(seller, [d.pk for d in deposits])["bulk_payment_id"]
        res = submit_bulk_payment_receipt(bulk_id, receipt_file=receipt_file(), seller=seller)
        assert res["success"], res
        return BulkDepositPayment.objects.get(pk=bulk_id)

    def test_transfer_receipt_moves_batch_to_review(self, seller, admin_a, sold_pair, receipt_file):
        bulk = self._submitted(seller, sold_pair, receipt_file)

        assert bulk.status == "receipt_submitted"
        receipt = bulk.receipts.get()
        assert receipt.status == "pending"
        assert receipt.is_bulk_payment is True
        assert receipt.amount == Decimal("20.00")
        assert receipt.bulk_order_count == 2
        assert sorted(receipt.pending_deposit_ids) == sorted(d.pk for d in sold_pair)
        assert bulk.receipt_url
        assert set(PendingDeposit.objects.filter(pk__in=bulk.deposit_ids).values_list("status", flat=True)) == {"receipt_submitted"}
        assert CommissionTransaction.objects.get(receipt=receipt).status == "pending"

    def test_receipt_only_once(self, seller, sold_pair, receipt_file):
        bulk = self._submitted(seller, sold_pair, receipt_file)
        res = submit_bulk_payment_receipt(bulk.pk, receipt_file=receipt_file(), seller=seller)
        assert res["success"] is False

    def test_other_seller_cannot_submit(self, seller, other_seller, sold_pair, receipt_file):
        bulk_id = create_bulk_payment(seller, [d.pk for d in sold_pair])["bulk_payment_id"]
        res = submit_bulk_payment_receipt(bulk_id, receipt_file=receipt_file(), seller=other_seller)
        assert res == {"success": False, "message": "Unauthorized access"}

    def test_approve_pays_every_deposit(self, seller, admin_a, sold_pair, receipt_file):
        bulk = self._submitted(seller, sold_pair, receipt_file)

        res = approve_bulk_payment(bulk.pk, admin_a, notes="ok")

        assert res["success"] is True
        assert res["deposits_paid"] == 2
        assert res["total_credited"] == "26.00"
        seller.refresh_from_db()
        assert seller.balance == Decimal("26.00")
        bulk.refresh_from_db()
        assert bulk.status == "approved"
        assert bulk.approved_by_id == admin_a.pk
        for d in sold_pair:
            d.refresh_from_db()
            assert d.status == "deposit_paid"
            assert d.profit_transferred_amount == Decimal("3.00")
        receipt = bulk.receipts.get()
        assert receipt.status == "approved"
        tx = CommissionTransaction.objects.get(receipt=receipt)
        assert tx.status == "completed"
        assert tx.admin_id == admin_a.pk
        assert WalletTransaction.objects.filter(user=seller, type="DEPOSIT_REFUND_AND_PROFIT").count() == 2

    def test_approval_is_all_or_nothing(self, seller, admin_a, sold_pair, receipt_file):
        bulk = self._submitted(seller, sold_pair, receipt_file)
        PendingDeposit.objects.filter(pk=sold_pair[1].pk).delete()

        res = approve_bulk_payment(bulk.pk, admin_a)

        assert res["success"] is False
        assert "Deposits not found" in res["message"]
        seller.refresh_from_db()
        assert seller.balance == Decimal("0.00")
        sold_pair[0].refresh_from_db()
        assert sold_pair[0].status == "receipt_submitted"
        bulk.refresh_from_db()
        assert bulk.status == "receipt_submitted"

    def test_cannot_approve_twice(self, seller, admin_a, sold_pair, receipt_file):
        bulk = self._submitted(seller, sold_pair, receipt_file)
        assert approve_bulk_payment(bulk.pk, admin_a)["success"]
        res = approve_bulk_payment(bulk.pk, admin_a)
        assert res["success"] is False
        seller.refresh_from_db()
        assert seller.balance == Decimal("26.00")

    def test_reject_returns_deposits_to_sold(self, seller, admin_a, sold_pair, receipt_file):
        bulk = self._submitted(seller, sold_pair, receipt_file)

        res = reject_bulk_payment(bulk.pk, admin_a, reason="Blurry image")

        assert res["success"] is True
        bulk.refresh_from_db()
        assert bulk.status == "rejected"
        assert bulk.rejection_reason == "Blurry image"
        for d in sold_pair:
            d.refresh_from_db()
            assert d.status == "sold"
            assert d.bulk_payment_id is None
            assert d.receipt_id is None
        receipt = bulk.receipts.get()
        assert receipt.status == "rejected"
        assert CommissionTransaction.objects.get(receipt=receipt).status == "cancelled"
        # The same orders can be batched again
        assert create_bulk_payment(seller, [d.pk for d in sold_pair])["success"]


@pytest.mark.django_db
class TestWalletBulkPayment:
    def test_wallet_payment_settles_immediately(self, seller, admin_a, sold_pair):
        seller.credit_balance(Decimal("50.00"), tx_type="ADJUSTMENT_CREDIT")
        bulk_id = create_bulk_payment(seller, [d.pk for d in sold_pair])["bulk_payment_id"]

        res = submit_bulk_payment_receipt(bulk_id, seller=seller, pay_with_wallet=True)

        assert res["success"] is True
        assert res["bulk_status"] == "approved"
        assert res["new_balance"] == "56.00"
        seller.refresh_from_db()
        assert seller.balance == Decimal("56.00")
        receipt = Receipt.objects.get(bulk_payment_id=bulk_id)
        assert receipt.status == "approved"
        assert receipt.is_wallet_payment is True
        assert receipt.is_auto_processed is True
        assert receipt.processed_by_name == "System (Wallet Payment)"
        assert receipt.wallet_balance_used == Decimal("20.00")
        assert set(PendingDeposit.objects.filter(pk__in=[d.pk for d in sold_pair]).values_list("status", flat=True)) == {"deposit_paid"}
        assert CommissionTransaction.objects.get(receipt=receipt).status == "completed"

    def test_insufficient_balance_changes_nothing(self, seller, sold_pair):
        seller.credit_balance(Decimal("5.00"), tx_type="ADJUSTMENT_CREDIT")
        bulk_id = create_bulk_payment(seller, [d.pk for d in sold_pair])["bulk_payment_id"]

        res = submit_bulk_payment_receipt(bulk_id, seller=seller, pay_with_wallet=True)

        assert res["success"] is False
        assert res["message"].startswith("Insufficient balance")
        seller.refresh_from_db()
        assert seller.balance == Decimal("5.00")
        assert BulkDepositPayment.objects.get(pk=bulk_id).status == "pending"
        assert Receipt.objects.count() == 0
        assert set(PendingDeposit.objects.filter(pk__in=[d.pk for d in sold_pair]).values_list("status", flat=True)) == {"sold"}


@pytest.mark.django_db
class TestCancelBulkPayment:
    def test_cancel_releases_orders(self, seller, sold_pair, receipt_file):
        bulk_id = create_bulk_payment(seller, [d.pk for d in sold_pair])["bulk_payment_id"]

        res = cancel_bulk_payment(bulk_id, seller)

        assert res["success"] is True
        assert res["deposits_released"] == 2
        bulk = BulkDepositPayment.objects.get(pk=bulk_id)
        assert bulk.status == "cancelled"
        assert bulk.cancelled_at is not None
        assert bulk.deposit_ids == [d.pk for d in sold_pair]
        assert {d.pk for d in sold_orders_for_bulk_payment(seller)} == {d.pk for d in sold_pair}
        assert create_bulk_payment(seller, [d.pk for d in sold_pair])["success"] is True

    def test_released_order_can_be_paid_singly(self, seller, sold_pair, receipt_file):
        from business.services.receipts import submit_receipt

        bulk_id = create_bulk_payment(seller, [d.pk for d in sold_pair])["bulk_payment_id"]
        cancel_bulk_payment(bulk_id, seller)

        res = submit_receipt(seller, "10.00", receipt_file=receipt_file(), deposit=sold_pair[0])

        assert res["success"] is True

    def test_submitted_batch_cannot_be_cancelled(self, seller, sold_pair, receipt_file):
        bulk_id = create_bulk_payment(seller, [d.pk for d in sold_pair])["bulk_payment_id"]
        submit_bulk_payment_receipt(bulk_id, receipt_file=receipt_file(), seller=seller)

        res = cancel_bulk_payment(bulk_id, seller)

        assert res["success"] is False
        assert "receipt_submitted" in res["message"]
        assert PendingDeposit.objects.filter(bulk_payment_id=bulk_id).count() == 2

    def test_other_seller_cannot_cancel(self, seller, other_seller, sold_pair):
        bulk_id = create_bulk_payment(seller, [d.pk for d in sold_pair])["bulk_payment_id"]
        assert cancel_bulk_payment(bulk_id, other_seller) == {"success": False, "message": "Unauthorized access"}
        assert BulkDepositPayment.objects.get(pk=bulk_id).status == "pending"

    def test_cancel_over_api(self, auth_client, seller, sold_pair):
        bulk_id = create_bulk_payment(seller, [d.pk for d in sold_pair])["bulk_payment_id"]
        client = auth_client(seller)

        res = client.post(f"/api/business/bulk-payments/{bulk_id}/cancel/", {}, format="json")

        assert res.status_code == 200
        assert client.get("/api/business/bulk-payments/").json()["results"][0]["status"] == "cancelled"
        assert client.post("/api/business/bulk-payments/987654/cancel/", {}, format="json").status_code == 404
