from rest_framework import serializers
from accounts.models import CustomUser


class AdminRefSerializer(serializers.ModelSerializer):
    name = serializers.CharField(source="label", read_only=True)

    class Meta:
        model = CustomUser
        fields = ["id", "username", "name", "email"]
        read_only_fields = fields


class AdminSellerSerializer(serializers.ModelSerializer):
    current_admin = AdminRefSerializer(source="admin", read_only=True)
    referred_by = AdminRefSerializer(read_only=True)
    original_referred_by = AdminRefSerializer(read_only=True)
    total_commissions = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True, default=0)
    migration_count = serializers.SerializerMethodField()

    class Meta:
        model = CustomUser
        fields = [
            "id",
            "username",
            "email",
            "display_name",
            "current_admin",
            "referred_by",
            "original_referred_by",
            "balance",
            "is_dummy_account",
            "dummy_account_changed_at",
            "total_commissions",
            "migration_count",
            "date_joined",
        ]
        read_only_fields = fields

    def get_migration_count(self, obj):
        return len(obj.migration_history or [])


class AdminAccountSerializer(serializers.ModelSerializer):
    total_sellers = serializers.IntegerField(read_only=True, default=0)
    total_commissions = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True, default=0)

    class Meta:
        model = CustomUser
        fields = [
            "id",
            "username",
            "email",
            "display_name",
            "role",
            "referral_code",
            "total_sellers",
            "total_commissions",
            "date_joined",
        ]
        read_only_fields = fields


class SellerMigrateSerializer(serializers.Serializer):
    new_admin_id = serializers.IntegerField(min_value=1)
    reason = serializers.CharField(required=False, allow_blank=True, default="Admin migration")


class DummyToggleSerializer(serializers.Serializer):
    is_dummy = serializers.BooleanField()
    reason = serializers.CharField(required=False, allow_blank=True, default="Dummy account toggle")


class ProcessNoteSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True, default="")
