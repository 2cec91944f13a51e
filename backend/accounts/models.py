from decimal import Decimal

from django.contrib.auth.models import AbstractUser
from django.core.exceptions import ValidationError
from django.db import models, transaction
from django.utils import timezone


def _money(amount) -> Decimal:
    try:
        return Decimal(str(amount)).quantize(Decimal("0.01"))
    except Exception:
        raise ValueError(f"Invalid amount: {amount!r}")


class CustomUser(AbstractUser):
    ROLE_CHOICES = [
        ('user', 'User'),
        ('seller', 'Seller'),
        ('admin', 'Admin'),
        ('superadmin', 'Super Admin'),
    ]
    ADMIN_ROLES = ('admin', 'superadmin')

    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='user', db_index=True)
    display_name = models.CharField(max_length=150, blank=True)
    # Code sellers enter at registration to link themselves to an admin
    referral_code = models.CharField(max_length=16, unique=True, null=True, blank=True)

    # Admin currently managing this seller
    admin = models.ForeignKey(
        'self', null=True, blank=True, on_delete=models.SET_NULL, related_name='managed_sellers'
    )
    # Admin receiving commissions for this seller; changes on migration
    referred_by = models.ForeignKey(
        'self', null=True, blank=True, on_delete=models.SET_NULL, related_name='referrals'
    )
    # First-ever referrer, written once and kept for history
    original_referred_by = models.ForeignKey(
        'self', null=True, blank=True, on_delete=models.SET_NULL, related_name='original_referrals'
    )

    balance = models.DecimalField(max_digits=12, decimal_places=2, default=0)

    is_dummy_account = models.BooleanField(default=False, db_index=True)
    dummy_account_changed_at = models.DateTimeField(null=True, blank=True)
    dummy_account_history = models.JSONField(default=list, blank=True)
    migration_history = models.JSONField(default=list, blank=True)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta(AbstractUser.Meta):
        indexes = [
            models.Index(fields=['role', 'date_joined'], name='acct_user_role_joined_idx'),
            models.Index(fields=['role', 'admin'], name='acct_user_role_admin_idx'),
        ]

    def __str__(self):
        return f"{self.username} ({self.role})"

    @property
    def is_seller(self) -> bool:
        return self.role == 'seller'

    @property
    def is_admin_role(self) -> bool:
        return self.role in self.ADMIN_ROLES

    @property
    def is_superadmin(self) -> bool:
        return self.role == 'superadmin' or bool(self.is_superuser)

    @property
    def label(self) -> str:
        return self.display_name or self.email or self.username

    @classmethod
    def generate_referral_code(cls) -> str:
        """
        Generate an 8-character referral code not used by any CustomUser.referral_code.
        """
        import secrets
        while True:
            candidate = secrets.token_hex(4).upper()
            if not cls.objects.filter(referral_code=candidate).exists():
                return candidate

    def clean(self):
        super().clean()
        if self.referred_by_id and self.referred_by and not self.referred_by.is_admin_role:
            raise ValidationError({"referred_by": "Referrer must be an admin account."})

    def save(self, *args, **kwargs):
        if self.role in self.ADMIN_ROLES and not self.referral_code:
            self.referral_code = self.generate_referral_code()
        super().save(*args, **kwargs)

    @transaction.atomic
    def credit_balance(self, amount, tx_type: str, meta: dict | None = None, source_type: str = "", source_id: str = "") -> Decimal:
        """
        Add amount to balance under a row lock and record the ledger entry.
        Returns the new balance.
        """
        amt = _money(amount)
        if amt <= 0:
            raise ValueError("Credit amount must be greater than 0.")
        u = CustomUser.objects.select_for_update().get(pk=self.pk)
        before = u.balance or Decimal("0.00")
        u.balance = before + amt
        u.save(update_fields=["balance", "updated_at"])
        WalletTransaction.objects.create(
            user=u,
            amount=amt,
            balance_before=before,
            balance_after=u.balance,
            type=tx_type,
            source_type=source_type or '',
            source_id=str(source_id) if source_id is not None else '',
            meta=meta or {},
        )
        self.balance = u.balance
        return u.balance

    @transaction.atomic
    def debit_balance(self, amount, tx_type: str, meta: dict | None = None, source_type: str = "", source_id: str = "") -> Decimal:
        amt = _money(amount)
        if amt <= 0:
            raise ValueError("Debit amount must be greater than 0.")
        u = CustomUser.objects.select_for_update().get(pk=self.pk)
        before = u.balance or Decimal("0.00")
        if before < amt:
            raise ValueError(f"Insufficient balance. Available: {before}")
        u.balance = before - amt
        u.save(update_fields=["balance", "updated_at"])
        WalletTransaction.objects.create(
            user=u,
            amount=-amt,
            balance_before=before,
            balance_after=u.balance,
            type=tx_type,
            source_type=source_type or '',
            source_id=str(source_id) if source_id is not None else '',
            meta=meta or {},
        )
        self.balance = u.balance
        return u.balance


class SellerAccount(CustomUser):
    class Meta:
        proxy = True
        verbose_name = "Seller"
        verbose_name_plural = "Sellers"


class AdminAccount(CustomUser):
    class Meta:
        proxy = True
        verbose_name = "Admin"
        verbose_name_plural = "Admins"


class WalletTransaction(models.Model):
    TYPE_CHOICES = (
        ("DEPOSIT_REFUND_AND_PROFIT", "Deposit refund + profit"),
        ("WALLET_PAYMENT_DEBIT", "Wallet payment"),
        ("WITHDRAWAL_DEBIT", "Withdrawal"),
        ("RECEIPT_TOPUP_CREDIT", "Receipt top-up"),
        ("ADJUSTMENT_CREDIT", "Adjustment credit"),
        ("ADJUSTMENT_DEBIT", "Adjustment debit"),
    )
    user = models.ForeignKey(CustomUser, on_delete=models.CASCADE, related_name='wallet_transactions', db_index=True)
    # Signed: credits positive, debits negative
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    balance_before = models.DecimalField(max_digits=12, decimal_places=2)
    balance_after = models.DecimalField(max_digits=12, decimal_places=2)
    type = models.CharField(max_length=40, choices=TYPE_CHOICES, db_index=True)
    source_type = models.CharField(max_length=40, blank=True)
    source_id = models.CharField(max_length=64, blank=True)
    meta = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["user", "created_at"], name="acct_wtx_user_created_idx"),
            models.Index(fields=["source_type", "source_id"], name="acct_wtx_source_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.type} {self.amount} -> {self.user.username}"


class WithdrawalRequest(models.Model):
    STATUS_CHOICES = (
        ("pending", "Pending"),
        ("approved", "Approved"),
        ("rejected", "Rejected"),
    )
    seller = models.ForeignKey(CustomUser, on_delete=models.CASCADE, related_name="withdrawal_requests", db_index=True)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    # USDT wallet address the payout is sent to
    usdt_id = models.CharField(max_length=128, blank=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default="pending", db_index=True)
    requested_at = models.DateTimeField(auto_now_add=True)
    processed_at = models.DateTimeField(null=True, blank=True)
    processed_by = models.ForeignKey(CustomUser, null=True, blank=True, on_delete=models.SET_NULL, related_name="withdrawals_processed")
    admin_notes = models.TextField(blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-requested_at"]
        indexes = [
            models.Index(fields=["seller", "status"], name="acct_wdr_seller_status_idx"),
            models.Index(fields=["status", "requested_at"], name="acct_wdr_status_req_idx"),
        ]

    def __str__(self) -> str:
        return f"WDR<{self.seller.username}> {self.amount} [{self.status}]"

    @transaction.atomic
    def approve(self, actor: CustomUser, notes: str | None = None):
        locked = WithdrawalRequest.objects.select_for_update().get(pk=self.pk)
        if locked.status != "pending":
            raise ValueError("Withdrawal request already processed.")
        self.seller.debit_balance(
            self.amount,
            tx_type="WITHDRAWAL_DEBIT",
            meta={"withdrawal_id": self.pk, "usdt_id": self.usdt_id},
            source_type="WITHDRAWAL",
            source_id=str(self.pk),
        )
        self._close("approved", actor, notes)

    @transaction.atomic
    def reject(self, actor: CustomUser, notes: str | None = None):
        locked = WithdrawalRequest.objects.select_for_update().get(pk=self.pk)
        if locked.status != "pending":
            raise ValueError("Withdrawal request already processed.")
        self._close("rejected", actor, notes)

    def _close(self, status: str, actor: CustomUser, notes: str | None):
        self.status = status
        self.processed_by = actor
        self.processed_at = timezone.now()
        self.admin_notes = notes or ""
        self.save(update_fields=["status", "processed_by", "processed_at", "admin_notes", "updated_at"])

