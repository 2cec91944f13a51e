from rest_framework import serializers

from .models import PendingDeposit, BulkDepositPayment, Receipt, CommissionTransaction, SellerMigration


class PendingDepositSerializer(serializers.ModelSerializer):
    seller_username = serializers.CharField(source="seller.username", read_only=True)
    admin_username = serializers.SerializerMethodField()

    class Meta:
        model = PendingDeposit
        fields = [
            "id",
            "seller",
            "seller_username",
            "admin",
            "admin_username",
            "listing",
            "product_uid",
            "product_name",
            "status",
            "quantity_listed",
            "actual_quantity_sold",
            "original_cost_per_unit",
            "listing_price",
            "profit_per_unit",
            "total_deposit_required",
            "pending_profit_amount",
            "sale_price",
            "sale_date",
            "bulk_payment",
            "receipt",
            "deposit_paid_at",
            "profit_transferred_amount",
            "profit_transferred_at",
            "is_dummy_account",
            "created_at",
        ]
        read_only_fields = fields

    def get_admin_username(self, obj):
        a = getattr(obj, "admin", None)
        return a.username if a else None


class MarkSoldSerializer(serializers.Serializer):
    sale_price = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    quantity_sold = serializers.IntegerField(required=False, allow_null=True, min_value=1)


class BulkDepositPaymentSerializer(serializers.ModelSerializer):
    receipt_url = serializers.SerializerMethodField()

    class Meta:
        model = BulkDepositPayment
        fields = [
            "id",
            "seller",
            "deposit_ids",
            "order_details",
            "total_deposit_amount",
            "total_profit_amount",
            "total_orders_count",
            "status",
            "description",
            "pay_with_wallet",
            "receipt_url",
            "receipt_submitted_at",
            "approved_at",
            "rejected_at",
            "rejection_reason",
            "cancelled_at",
            "created_at",
        ]
        read_only_fields = fields

    def get_receipt_url(self, obj):
        return obj.receipt_url


class BulkPaymentCreateSerializer(serializers.Serializer):
    deposit_ids = serializers.ListField(child=serializers.IntegerField(min_value=1), allow_empty=False)


class BulkReceiptSubmitSerializer(serializers.Serializer):
    receipt_file = serializers.FileField(required=False, allow_null=True)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    pay_with_wallet = serializers.BooleanField(required=False, default=False)

    def validate(self, attrs):
        if not attrs.get("pay_with_wallet") and not attrs.get("receipt_file"):
            raise serializers.ValidationError({"receipt_file": "Receipt image is required."})
        return attrs


class ReceiptSerializer(serializers.ModelSerializer):
    receipt_url = serializers.SerializerMethodField()
    username = serializers.CharField(source="user.username", read_only=True)

    class Meta:
        model = Receipt
        fields = [
            "id",
            "user",
            "username",
            "amount",
            "receipt_url",
            "description",
            "status",
            "submitted_at",
            "processed_at",
            "processed_by_name",
            "notes",
            "is_deposit_payment",
            "product_name",
            "is_bulk_payment",
            "bulk_payment",
            "pending_deposit_ids",
            "bulk_order_count",
            "is_wallet_payment",
            "wallet_balance_used",
            "is_auto_processed",
        ]
        read_only_fields = fields

    def get_receipt_url(self, obj):
        url = obj.receipt_url
        request = self.context.get("request")
        if url and request and url.startswith("/"):
            return request.build_absolute_uri(url)
        return url


class ReceiptSubmitSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    receipt_file = serializers.FileField(required=False, allow_null=True)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    deposit_id = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    pay_with_wallet = serializers.BooleanField(required=False, default=False)

    def validate(self, attrs):
        if attrs.get("deposit_id") is None:
            amt = attrs.get("amount")
            if amt is None or amt <= 0:
                raise serializers.ValidationError({"amount": "Amount must be greater than 0."})
        if not attrs.get("pay_with_wallet") and not attrs.get("receipt_file"):
            raise serializers.ValidationError({"receipt_file": "Receipt image is required."})
        return attrs


class CommissionTransactionSerializer(serializers.ModelSerializer):
    seller_username = serializers.CharField(source="seller.username", read_only=True)

    class Meta:
        model = CommissionTransaction
        fields = [
            "id",
            "admin",
            "seller",
            "seller_username",
            "receipt",
            "original_amount",
            "commission_percent",
            "commission_amount",
            "status",
            "exclude_from_revenue",
            "created_at",
        ]
        read_only_fields = fields


class SellerMigrationSerializer(serializers.ModelSerializer):
    seller_username = serializers.CharField(source="seller.username", read_only=True)
    from_admin_username = serializers.SerializerMethodField()
    to_admin_username = serializers.SerializerMethodField()
    performed_by_username = serializers.SerializerMethodField()

    class Meta:
        model = SellerMigration
        fields = [
            "id",
            "seller",
            "seller_username",
            "from_admin",
            "from_admin_username",
            "to_admin",
            "to_admin_username",
            "from_referred_by",
            "to_referred_by",
            "reason",
            "performed_by",
            "performed_by_username",
            "pending_deposits_moved",
            "commissions_moved",
            "created_at",
        ]
        read_only_fields = fields

    def _name(self, u):
        return u.username if u else None

    def get_from_admin_username(self, obj):
        return self._name(obj.from_admin)

    def get_to_admin_username(self, obj):
        return self._name(obj.to_admin)

    def get_performed_by_username(self, obj):
        return self._name(obj.performed_by)
