from decimal import Decimal

from rest_framework import serializers

from .models import CustomUser, WalletTransaction, WithdrawalRequest


class PublicUserSerializer(serializers.ModelSerializer):
    admin_id = serializers.IntegerField(read_only=True)
    referred_by_id = serializers.IntegerField(read_only=True)
    original_referred_by_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = CustomUser
        fields = [
            "id",
            "username",
            "email",
            "display_name",
            "role",
            "referral_code",
            "admin_id",
            "referred_by_id",
            "original_referred_by_id",
            "balance",
            "is_dummy_account",
            "date_joined",
        ]
        read_only_fields = fields


class WalletTransactionSerializer(serializers.ModelSerializer):
    class Meta:
        model = WalletTransaction
        fields = [
            "id",
            "amount",
            "balance_before",
            "balance_after",
            "type",
            "source_type",
            "source_id",
            "meta",
            "created_at",
        ]
        read_only_fields = fields


class WithdrawalRequestSerializer(serializers.ModelSerializer):
    seller_username = serializers.CharField(source="seller.username", read_only=True)
    processed_by_username = serializers.CharField(source="processed_by.username", read_only=True, default=None)

    class Meta:
        model = WithdrawalRequest
        fields = [
            "id",
            "seller",
            "seller_username",
            "amount",
            "usdt_id",
            "status",
            "requested_at",
            "processed_at",
            "processed_by",
            "processed_by_username",
            "admin_notes",
        ]
        read_only_fields = ["seller", "status", "requested_at", "processed_at", "processed_by", "admin_notes"]

    def validate_amount(self, value):
        if value is None or Decimal(value) <= 0:
            raise serializers.ValidationError("Amount must be greater than 0.")
        return value

    def validate_usdt_id(self, value):
        value = (value or "").strip()
        if not value:
            raise serializers.ValidationError("USDT wallet address is required.")
        return value

    def create(self, validated_data):
        """
        Create a pending withdrawal for the requesting seller:
        - amount must not exceed the current balance
        - only one pending request per seller
        Balance is debited on approval, not here.
        """
        from business.services.withdrawals import create_withdrawal_request

        user = self.context["request"].user
        res = create_withdrawal_request(user, validated_data["amount"], validated_data["usdt_id"])
        if not res.get("success"):
            raise serializers.ValidationError({"detail": res.get("message")})
        return res["withdrawal"]
