from decimal import Decimal

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from rest_framework.test import APIClient

from accounts.models import CustomUser


@pytest.fixture(autouse=True)
def _media_root(settings, tmp_path):
    settings.MEDIA_ROOT = str(tmp_path / "media")
    settings.BULK_PAYMENT_MAX_ORDERS = 10
    settings.MARKUP_MULTIPLIER = Decimal("1.30")


@pytest.fixture
def make_user(db):
    def _make(username, role="seller", **extra):
        return CustomUser.objects.create_user(username=username, password="pass1234", role=role, **extra)
    return _make


@pytest.fixture
def admin_a(make_user):
    return make_user("admin_a", role="admin", email="a@example.com")


@pytest.fixture
def admin_b(make_user):
    return make_user("admin_b", role="admin", email="b@example.com")


@pytest.fixture
def superadmin(make_user):
    return make_user("root", role="superadmin")


@pytest.fixture
def seller(make_user, admin_a):
    return make_user("seller1", admin=admin_a, referred_by=admin_a)


@pytest.fixture
def other_seller(make_user, admin_b):
    return make_user("seller2", admin=admin_b, referred_by=admin_b)


@pytest.fixture
def make_deposit(db):
    """
    Deposit for one listed product at cost * 1.30. With sold=True the sale is
    recorded at listing price, leaving (listing - cost) * qty pending profit.
    """
    from business.services.deposits import create_pending_deposit, mark_product_sold

    def _make(seller, cost="10.00", qty=1, sold=True, name="Widget"):
        dep = create_pending_deposit(seller, product_name=name, quantity_listed=qty, original_cost_per_unit=Decimal(cost))
        if sold:
            res = mark_product_sold(dep.pk, seller=seller)
            assert res["success"], res
            dep.refresh_from_db()
        return dep
    return _make


@pytest.fixture
def receipt_file():
    def _file(name="receipt.jpg"):
        return SimpleUploadedFile(name, b"\xff\xd8\xff\xe0fake-jpeg", content_type="image/jpeg")
    return _file


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def auth_client():
    def _client(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client
    return _client
