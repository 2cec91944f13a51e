from decimal import Decimal

import pytest

from accounts.models import WithdrawalRequest
from business.models import BulkDepositPayment, PendingDeposit, Receipt
from business.services.bulk_payments import create_bulk_payment, submit_bulk_payment_receipt
from business.services.receipts import submit_receipt
from market.models import Product


@pytest.mark.django_db
class TestAdminPermissions:
    def test_seller_is_forbidden(self, auth_client, seller):
        assert auth_client(seller).get("/api/admin/sellers/").status_code == 403

    def test_anonymous_is_rejected(self, api_client):
        assert api_client.get("/api/admin/sellers/").status_code == 401

    def test_admin_sees_only_own_sellers(self, auth_client, admin_a, seller, other_seller):
        data = auth_client(admin_a).get("/api/admin/sellers/").json()
        assert [row["id"] for row in data["results"]] == [seller.pk]
        assert data["results"][0]["current_admin"]["id"] == admin_a.pk

    def test_superadmin_sees_everyone(self, auth_client, superadmin, seller, other_seller, admin_b):
        client = auth_client(superadmin)
        assert client.get("/api/admin/sellers/").json()["count"] == 2
        filtered = client.get("/api/admin/sellers/", {"admin_id": admin_b.pk}).json()
        assert [row["id"] for row in filtered["results"]] == [other_seller.pk]

    def test_foreign_seller_detail_is_hidden(self, auth_client, admin_a, other_seller, seller):
        client = auth_client(admin_a)
        assert client.get(f"/api/admin/sellers/{other_seller.pk}/").status_code == 404
        assert client.get(f"/api/admin/sellers/{seller.pk}/").json()["username"] == "seller1"


@pytest.mark.django_db
class TestAdminSellerManagement:
    def test_migration_needs_superadmin(self, auth_client, admin_a, admin_b, seller):
        res = auth_client(admin_a).post(f"/api/admin/sellers/{seller.pk}/migrate/", {"new_admin_id": admin_b.pk}, format="json")
        assert res.status_code == 403

    def test_superadmin_migrates_seller(self, auth_client, superadmin, admin_a, admin_b, seller):
        client = auth_client(superadmin)

        res = client.post(
            f"/api/admin/sellers/{seller.pk}/migrate/",
            {"new_admin_id": admin_b.pk, "reason": "Territory change"},
            format="json",
        )

        assert res.status_code == 200
        assert res.json()["new_admin_id"] == admin_b.pk
        history = client.get("/api/admin/migrations/", {"seller_id": seller.pk}).json()
        assert history["count"] == 1
        assert auth_client(admin_a).get("/api/admin/migrations/").json()["count"] == 1
        seller.refresh_from_db()
        assert seller.referred_by_id == admin_b.pk

    def test_invalid_migration_is_400(self, auth_client, superadmin, admin_a, seller):
        res = auth_client(superadmin).post(f"/api/admin/sellers/{seller.pk}/migrate/", {"new_admin_id": admin_a.pk}, format="json")
        assert res.status_code == 400
        assert res.json()["detail"] == "Seller is already under this admin"

    def test_unknown_target_admin_is_400(self, auth_client, superadmin, seller):
        res = auth_client(superadmin).post(f"/api/admin/sellers/{seller.pk}/migrate/", {"new_admin_id": 987654}, format="json")
        assert res.status_code == 400

    def test_unknown_seller_is_404(self, auth_client, superadmin, admin_b):
        res = auth_client(superadmin).post("/api/admin/sellers/987654/migrate/", {"new_admin_id": admin_b.pk}, format="json")
        assert res.status_code == 404

    def test_dummy_toggle(self, auth_client, superadmin, seller):
        res = auth_client(superadmin).post(f"/api/admin/sellers/{seller.pk}/dummy/", {"is_dummy": True}, format="json")
        assert res.status_code == 200
        seller.refresh_from_db()
        assert seller.is_dummy_account is True

    def test_admin_list(self, auth_client, admin_a, admin_b, seller):
        rows = auth_client(admin_a).get("/api/admin/admins/").json()
        counts = {row["id"]: row["total_sellers"] for row in rows}
        assert counts[admin_a.pk] == 1
        assert counts[admin_b.pk] == 0


@pytest.mark.django_db
class TestAdminReceipts:
    def test_list_and_approve(self, auth_client, admin_a, seller, receipt_file):
        rid = submit_receipt(seller, "30.00", receipt_file=receipt_file())["receipt_id"]
        client = auth_client(admin_a)

        listed = client.get("/api/admin/receipts/", {"status": "pending"}).json()
        assert [r["id"] for r in listed["results"]] == [rid]

        res = client.post(f"/api/admin/receipts/{rid}/approve/", {"notes": "ok"}, format="json")

        assert res.status_code == 200
        assert res.json()["new_balance"] == "30.00"
        assert client.post(f"/api/admin/receipts/{rid}/approve/", {}, format="json").status_code == 400

    def test_other_admins_receipt_is_404(self, auth_client, admin_b, seller, receipt_file):
        rid = submit_receipt(seller, "30.00", receipt_file=receipt_file())["receipt_id"]
        res = auth_client(admin_b).post(f"/api/admin/receipts/{rid}/approve/", {}, format="json")
        assert res.status_code == 404
        assert Receipt.objects.get(pk=rid).status == "pending"

    def test_reject(self, auth_client, admin_a, seller, make_deposit, receipt_file):
        dep = make_deposit(seller)
        rid = submit_receipt(seller, "10.00", receipt_file=receipt_file(), deposit=dep)["receipt_id"]

        res = auth_client(admin_a).post(f"/api/admin/receipts/{rid}/reject/", {"notes": "Unreadable"}, format="json")

        assert res.status_code == 200
        dep.refresh_from_db()
        assert dep.status == "sold"

    def test_bulk_filter(self, auth_client, admin_a, seller, make_deposit, receipt_file):
        submit_receipt(seller, "5.00", receipt_file=receipt_file())
        bulk_id = create_bulk_payment(seller, [make_deposit(seller).pk])["bulk_payment_id"]
        submit_bulk_payment_receipt(bulk_id, receipt_file=receipt_file(), seller=seller)

        data = auth_client(admin_a).get("/api/admin/receipts/", {"bulk": "1"}).json()

        assert data["count"] == 1
        assert data["results"][0]["is_bulk_payment"] is True


@pytest.mark.django_db
class TestAdminBulkPayments:
    def test_approve_via_api(self, auth_client, admin_a, seller, make_deposit, receipt_file):
        deps = [make_deposit(seller), make_deposit(seller)]
        bulk_id = create_bulk_payment(seller, [d.pk for d in deps])["bulk_payment_id"]
        submit_bulk_payment_receipt(bulk_id, receipt_file=receipt_file(), seller=seller)
        client = auth_client(admin_a)

        listed = client.get("/api/admin/bulk-payments/", {"status": "receipt_submitted"}).json()
        assert [b["id"] for b in listed["results"]] == [bulk_id]

        res = client.post(f"/api/admin/bulk-payments/{bulk_id}/approve/", {}, format="json")

        assert res.status_code == 200
        assert res.json()["total_credited"] == "26.00"
        assert BulkDepositPayment.objects.get(pk=bulk_id).status == "approved"

    def test_reject_via_api_uses_notes_as_reason(self, auth_client, admin_a, seller, make_deposit, receipt_file):
        bulk_id = create_bulk_payment(seller, [make_deposit(seller).pk])["bulk_payment_id"]
        submit_bulk_payment_receipt(bulk_id, receipt_file=receipt_file(), seller=seller)

        res = auth_client(admin_a).post(f"/api/admin/bulk-payments/{bulk_id}/reject/", {"notes": "Wrong amount"}, format="json")

        assert res.status_code == 200
        assert BulkDepositPayment.objects.get(pk=bulk_id).rejection_reason == "Wrong amount"

    def test_unknown_bulk_payment(self, auth_client, admin_a):
        assert auth_client(admin_a).post("/api/admin/bulk-payments/987654/approve/", {}, format="json").status_code == 404

    def test_missing_deposit_in_batch_is_400(self, auth_client, admin_a, seller, make_deposit, receipt_file):
        deps = [make_deposit(seller), make_deposit(seller)]
        bulk_id = create_bulk_payment(seller, [d.pk for d in deps])["bulk_payment_id"]
        submit_bulk_payment_receipt(bulk_id, receipt_file=receipt_file(), seller=seller)
        PendingDeposit.objects.filter(pk=deps[1].pk).delete()

        res = auth_client(admin_a).post(f"/api/admin/bulk-payments/{bulk_id}/approve/", {}, format="json")

        assert res.status_code == 400
        assert res.json()["detail"] == f"Deposits not found: {deps[1].pk}"
        assert BulkDepositPayment.objects.get(pk=bulk_id).status == "receipt_submitted"


@pytest.mark.django_db
class TestAdminWithdrawals:
    def test_approve_and_stats(self, auth_client, admin_a, seller):
        seller.credit_balance(Decimal("50.00"), tx_type="ADJUSTMENT_CREDIT")
        wr = WithdrawalRequest.objects.create(seller=seller, amount=Decimal("20.00"), usdt_id="TXyz")
        client = auth_client(admin_a)

        assert client.get("/api/admin/withdrawals/", {"status": "pending"}).json()["count"] == 1
        res = client.post(f"/api/admin/withdrawals/{wr.pk}/approve/", {"notes": "paid"}, format="json")

        assert res.status_code == 200
        assert res.json()["status"] == "approved"
        seller.refresh_from_db()
        assert seller.balance == Decimal("30.00")
        stats = client.get("/api/admin/withdrawals/stats/").json()
        assert stats["total_approved"] == 1
        assert stats["approved_amount"] == "20.00"

    def test_insufficient_balance_is_400(self, auth_client, admin_a, seller):
        wr = WithdrawalRequest.objects.create(seller=seller, amount=Decimal("20.00"), usdt_id="TXyz")
        res = auth_client(admin_a).post(f"/api/admin/withdrawals/{wr.pk}/approve/", {}, format="json")
        assert res.status_code == 400
        assert res.json()["detail"].startswith("Insufficient balance")

    def test_amount_filter(self, auth_client, superadmin, seller, other_seller):
        WithdrawalRequest.objects.create(seller=seller, amount=Decimal("5.00"), usdt_id="a")
        WithdrawalRequest.objects.create(seller=other_seller, amount=Decimal("50.00"), usdt_id="b")

        data = auth_client(superadmin).get("/api/admin/withdrawals/", {"min_amount": "10"}).json()

        assert [row["seller_username"] for row in data["results"]] == ["seller2"]


@pytest.mark.django_db
class TestSellerFlow:
    def test_stock_to_paid_deposit(self, auth_client, seller, admin_a, receipt_file):
        product = Product.objects.create(name="Desk Fan", price=Decimal("20.00"))
        client = auth_client(seller)

        stock = client.post("/api/market/stock/", {"product": product.pk, "quantity": 2}, format="json")
        assert stock.status_code == 201
        listed = client.post(f"/api/market/stock/{stock.json()['id']}/list/", {"quantity": 1}, format="json")
        assert listed.status_code == 201
        assert listed.json()["listing_price"] == "26.00"
        assert listed.json()["deposit_required"] == "20.00"
        dep_id = listed.json()["deposit_id"]
        assert client.get("/api/market/stock/").json()["results"][0]["stock"] == 1

        sold = client.post(f"/api/business/deposits/{dep_id}/sold/", {}, format="json")
        assert sold.status_code == 200
        assert sold.json()["pending_profit_amount"] == "6.00"

        submitted = client.post(
            "/api/business/receipts/",
            {"deposit_id": dep_id, "receipt_file": receipt_file(), "description": "transfer"},
            format="multipart",
        )
        assert submitted.status_code == 201
        rid = submitted.json()["receipt_id"]
        assert Receipt.objects.get(pk=rid).amount == Decimal("20.00")

        approved = auth_client(admin_a).post(f"/api/admin/receipts/{rid}/approve/", {}, format="json")
        assert approved.status_code == 200
        seller.refresh_from_db()
        assert seller.balance == Decimal("26.00")
        assert PendingDeposit.objects.get(pk=dep_id).status == "deposit_paid"

    def test_bulk_flow_over_api(self, auth_client, seller, make_deposit, receipt_file):
        deps = [make_deposit(seller), make_deposit(seller)]
        client = auth_client(seller)

        orders = client.get("/api/business/bulk-payments/sold-orders/").json()
        assert {o["id"] for o in orders} == {d.pk for d in deps}

        created = client.post("/api/business/bulk-payments/", {"deposit_ids": [d.pk for d in deps]}, format="json")
        assert created.status_code == 201
        bulk_id = created.json()["bulk_payment_id"]

        missing = client.post(f"/api/business/bulk-payments/{bulk_id}/receipt/", {}, format="multipart")
        assert missing.status_code == 400

        res = client.post(f"/api/business/bulk-payments/{bulk_id}/receipt/", {"receipt_file": receipt_file()}, format="multipart")
        assert res.status_code == 201
        assert client.get("/api/business/bulk-payments/").json()["results"][0]["status"] == "receipt_submitted"

    def test_mark_sold_other_sellers_deposit(self, auth_client, seller, other_seller, make_deposit):
        dep = make_deposit(other_seller, sold=False)
        res = auth_client(seller).post(f"/api/business/deposits/{dep.pk}/sold/", {}, format="json")
        assert res.status_code == 400
        assert res.json()["detail"] == "Unauthorized access"

    def test_admin_marks_sold_for_seller(self, auth_client, admin_a, seller, make_deposit):
        dep = make_deposit(seller, sold=False, qty=3)

        res = auth_client(admin_a).post(f"/api/admin/deposits/{dep.pk}/mark-sold/", {"quantity_sold": 2}, format="json")

        assert res.status_code == 200
        dep.refresh_from_db()
        assert dep.actual_quantity_sold == 2
        assert dep.pending_profit_amount == Decimal("6.00")
        assert auth_client(admin_a).get("/api/admin/deposits/", {"status": "sold"}).json()["count"] == 1
