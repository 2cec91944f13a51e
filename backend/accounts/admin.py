from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .models import CustomUser, SellerAccount, AdminAccount, WalletTransaction, WithdrawalRequest


@admin.register(CustomUser)
class CustomUserAdmin(UserAdmin):
    list_display = ('username', 'email', 'role', 'admin', 'referred_by', 'balance', 'is_dummy_account', 'date_joined')
    list_filter = ('role', 'is_dummy_account', 'is_staff', 'is_active')
    search_fields = ('username', 'email', 'display_name', 'referral_code')
    raw_id_fields = ('admin', 'referred_by', 'original_referred_by')
    readonly_fields = ('referral_code', 'balance', 'migration_history', 'dummy_account_history', 'dummy_account_changed_at')
    fieldsets = UserAdmin.fieldsets + (
        ('Marketplace', {
            'fields': (
                'role', 'display_name', 'referral_code',
                'admin', 'referred_by', 'original_referred_by',
                'balance', 'is_dummy_account', 'dummy_account_changed_at',
                'dummy_account_history', 'migration_history',
            )
        }),
    )


class _RoleProxyAdmin(CustomUserAdmin):
    role = None

    def get_queryset(self, request):
        return super().get_queryset(request).filter(role=self.role)


@admin.register(SellerAccount)
class SellerAccountAdmin(_RoleProxyAdmin):
    role = 'seller'


@admin.register(AdminAccount)
class AdminAccountAdmin(_RoleProxyAdmin):
    role = 'admin'


@admin.register(WalletTransaction)
class WalletTransactionAdmin(admin.ModelAdmin):
    list_display = ('user', 'type', 'amount', 'balance_after', 'source_type', 'source_id', 'created_at')
    list_filter = ('type', 'source_type')
    search_fields = ('user__username', 'source_id')
    raw_id_fields = ('user',)
    readonly_fields = ('created_at',)
    actions = ['export_as_csv']

    def export_as_csv(self, request, queryset):
        import csv
        from django.http import HttpResponse
        resp = HttpResponse(content_type='text/csv')
        resp['Content-Disposition'] = 'attachment; filename=wallet_transactions.csv'
        writer = csv.writer(resp)
        writer.writerow(['user', 'type', 'amount', 'balance_before', 'balance_after', 'source_type', 'source_id', 'created_at'])
        for t in queryset:
            writer.writerow([
                getattr(t.user, 'username', ''),
                t.type, t.amount, t.balance_before, t.balance_after,
                t.source_type, t.source_id, t.created_at,
            ])
        return resp
    export_as_csv.short_description = "Export selected to CSV"


@admin.register(WithdrawalRequest)
class WithdrawalRequestAdmin(admin.ModelAdmin):
    list_display = ("seller", "amount", "usdt_id", "status", "requested_at", "processed_by", "processed_at")
    list_filter = ("status", "requested_at")
    search_fields = ("seller__username", "usdt_id")
    raw_id_fields = ("seller", "processed_by")
    readonly_fields = ("requested_at", "processed_at")
    actions = ["approve_selected", "reject_selected"]

    def approve_selected(self, request, queryset):
        updated = 0
        for wr in queryset.filter(status="pending"):
            try:
                wr.approve(actor=request.user, notes="Approved via admin action")
                updated += 1
            except ValueError as e:
                self.message_user(request, f"#{wr.pk}: {e}", level="warning")
        self.message_user(request, f"Approved {updated} withdrawal(s).")
    approve_selected.short_description = "Approve selected withdrawals"

    def reject_selected(self, request, queryset):
        updated = 0
        for wr in queryset.filter(status="pending"):
            try:
                wr.reject(actor=request.user, notes="Rejected via admin action")
                updated += 1
            except ValueError as e:
                self.message_user(request, f"#{wr.pk}: {e}", level="warning")
        self.message_user(request, f"Rejected {updated} withdrawal(s).")
    reject_selected.short_description = "Reject selected withdrawals"
