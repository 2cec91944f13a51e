from decimal import Decimal

from django.conf import settings
from django.db import models


class CommissionConfig(models.Model):
    """
    Singleton-style config for admin commissions on approved receipts.
    - commission_percent: share of each approved receipt amount booked to the
      seller's referring admin (default 100.00)
    """
    commission_percent = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("100.00"))
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"CommissionConfig {self.commission_percent}%"

    @classmethod
    def get_solo(cls) -> "CommissionConfig":
        obj = cls.objects.first()
        if obj:
            return obj
        return cls.objects.create()


class PendingDeposit(models.Model):
    """
    Deposit a seller owes for one listed product. Lifecycle:
      pending -> sold -> receipt_submitted -> deposit_paid (-> completed)
    On payment the seller is credited the deposit refund plus pending profit.
    """
    STATUS_CHOICES = (
        ("pending", "Pending"),
        ("sold", "Sold"),
        ("receipt_submitted", "Receipt submitted"),
        ("deposit_paid", "Deposit paid"),
        ("completed", "Completed"),
    )

    seller = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="pending_deposits")
    admin = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name="admin_deposits")
    listing = models.ForeignKey("market.Listing", null=True, blank=True, on_delete=models.SET_NULL, related_name="deposits")
    product_uid = models.CharField(max_length=160, blank=True, db_index=True)
    product_name = models.CharField(max_length=255)

    status = models.CharField(max_length=24, choices=STATUS_CHOICES, default="pending", db_index=True)

    quantity_listed = models.PositiveIntegerField(default=1)
    actual_quantity_sold = models.PositiveIntegerField(null=True, blank=True)

    original_cost_per_unit = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    listing_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    profit_per_unit = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    total_deposit_required = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    pending_profit_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    sale_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    sale_date = models.DateTimeField(null=True, blank=True, db_index=True)

    bulk_payment = models.ForeignKey("business.BulkDepositPayment", null=True, blank=True, on_delete=models.SET_NULL, related_name="deposits")
    receipt = models.ForeignKey("business.Receipt", null=True, blank=True, on_delete=models.SET_NULL, related_name="linked_deposits")

    deposit_paid_at = models.DateTimeField(null=True, blank=True)
    profit_transferred_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    profit_transferred_at = models.DateTimeField(null=True, blank=True)

    migrated_at = models.DateTimeField(null=True, blank=True)
    migrated_reason = models.CharField(max_length=255, blank=True)

    is_dummy_account = models.BooleanField(default=False)
    exclude_from_revenue = models.BooleanField(default=False, db_index=True)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["seller", "status"], name="biz_dep_seller_status_idx"),
            models.Index(fields=["admin", "status"], name="biz_dep_admin_status_idx"),
        ]

    def __str__(self) -> str:
        return f"Deposit#{self.pk} {self.product_name} [{self.status}]"

    @property
    def effective_quantity(self) -> int:
        return self.actual_quantity_sold or self.quantity_listed or 1


class BulkDepositPayment(models.Model):
    """
    Batch of up to BULK_PAYMENT_MAX_ORDERS sold deposits paid with one receipt.
      pending -> receipt_submitted -> approved | rejected
      pending -> cancelled (seller withdraws the batch before paying)
    deposit_ids is the immutable record of the batch; the live link is
    PendingDeposit.bulk_payment.
    """
    STATUS_CHOICES = (
        ("pending", "Pending"),
        ("receipt_submitted", "Receipt submitted"),
        ("approved", "Approved"),
        ("rejected", "Rejected"),
        ("cancelled", "Cancelled"),
    )

    seller = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="bulk_deposit_payments")
    deposit_ids = models.JSONField(default=list)
    order_details = models.JSONField(default=list, blank=True)
    total_deposit_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    total_profit_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    total_orders_count = models.PositiveIntegerField(default=0)

    status = models.CharField(max_length=24, choices=STATUS_CHOICES, default="pending", db_index=True)
    description = models.TextField(blank=True)
    pay_with_wallet = models.BooleanField(default=False)

    receipt_submitted_at = models.DateTimeField(null=True, blank=True)
    approved_at = models.DateTimeField(null=True, blank=True)
    approved_by = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name="bulk_payments_approved")
    rejected_at = models.DateTimeField(null=True, blank=True)
    rejected_by = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name="bulk_payments_rejected")
    rejection_reason = models.TextField(blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [models.Index(fields=["seller", "status"], name="biz_bulk_seller_status_idx")]

    def __str__(self) -> str:
        return f"Bulk#{self.pk} {self.total_orders_count} orders [{self.status}]"

    @property
    def latest_receipt(self):
        return self.receipts.order_by("-submitted_at", "-id").first()

    @property
    def receipt_url(self) -> str:
        r = self.latest_receipt
        return r.receipt_url if r else ""


class Receipt(models.Model):
    """
    Payment receipt uploaded by a seller. Covers plain balance top-ups,
    single deposit payments and bulk deposit payments, paid by transfer
    (reviewed by an admin) or from wallet balance (auto-approved).
    """
    STATUS_CHOICES = (
        ("pending", "Pending"),
        ("approved", "Approved"),
        ("rejected", "Rejected"),
    )

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="receipts")
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    receipt_file = models.FileField(upload_to="receipts/%Y/%m/", null=True, blank=True)
    description = models.TextField(blank=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default="pending", db_index=True)

    submitted_at = models.DateTimeField(auto_now_add=True, db_index=True)
    processed_at = models.DateTimeField(null=True, blank=True)
    processed_by = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name="receipts_processed")
    processed_by_name = models.CharField(max_length=150, blank=True)
    notes = models.TextField(blank=True)

    is_deposit_payment = models.BooleanField(default=False)
    product_name = models.CharField(max_length=255, blank=True)
    is_bulk_payment = models.BooleanField(default=False, db_index=True)
    bulk_payment = models.ForeignKey(BulkDepositPayment, null=True, blank=True, on_delete=models.SET_NULL, related_name="receipts")
    pending_deposit_ids = models.JSONField(default=list, blank=True)
    bulk_order_count = models.PositiveIntegerField(default=0)

    is_wallet_payment = models.BooleanField(default=False, db_index=True)
    wallet_balance_used = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    is_auto_processed = models.BooleanField(default=False)

    class Meta:
        ordering = ["-submitted_at", "-id"]
        indexes = [
            models.Index(fields=["user", "status"], name="biz_rcpt_user_status_idx"),
            models.Index(fields=["is_bulk_payment", "submitted_at"], name="biz_rcpt_bulk_sub_idx"),
        ]

    def __str__(self) -> str:
        return f"Receipt#{self.pk} {self.user.username} {self.amount} [{self.status}]"

    @property
    def receipt_url(self) -> str:
        try:
            return self.receipt_file.url if self.receipt_file else ""
        except ValueError:
            return ""


class CommissionTransaction(models.Model):
    STATUS_CHOICES = (
        ("pending", "Pending"),
        ("completed", "Completed"),
        ("cancelled", "Cancelled"),
    )
    admin = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="commission_earnings")
    seller = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="commission_sources")
    receipt = models.ForeignKey(Receipt, null=True, blank=True, on_delete=models.SET_NULL, related_name="commissions")
    original_amount = models.DecimalField(max_digits=12, decimal_places=2)
    commission_percent = models.DecimalField(max_digits=5, decimal_places=2)
    commission_amount = models.DecimalField(max_digits=12, decimal_places=2)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default="pending", db_index=True)

    is_dummy_account = models.BooleanField(default=False)
    exclude_from_revenue = models.BooleanField(default=False, db_index=True)

    migrated_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["admin", "status"], name="biz_comm_admin_status_idx"),
            models.Index(fields=["seller", "status"], name="biz_comm_seller_status_idx"),
        ]

    def __str__(self) -> str:
        return f"Commission {self.commission_amount} -> {self.admin_id} [{self.status}]"


class SellerMigration(models.Model):
    """
    Append-only audit log of seller reassignments between admins.
    """
    seller = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="seller_migrations")
    from_admin = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")
    to_admin = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")
    from_referred_by = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")
    to_referred_by = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")
    reason = models.CharField(max_length=255, blank=True)
    performed_by = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")
    pending_deposits_moved = models.PositiveIntegerField(default=0)
    commissions_moved = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"Migration seller={self.seller_id} {self.from_admin_id} -> {self.to_admin_id}"
