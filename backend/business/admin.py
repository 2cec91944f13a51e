from django.contrib import admin
from django.http import HttpResponse
from django.utils import timezone
from django.utils.html import format_html
import csv

from .models import CommissionConfig, PendingDeposit, BulkDepositPayment, Receipt, CommissionTransaction, SellerMigration


@admin.register(CommissionConfig)
class CommissionConfigAdmin(admin.ModelAdmin):
    list_display = ('id', 'commission_percent', 'updated_at')
    readonly_fields = ('updated_at',)

    def has_add_permission(self, request):
        # Singleton: edit the row returned by get_solo()
        return not CommissionConfig.objects.exists()


@admin.register(PendingDeposit)
class PendingDepositAdmin(admin.ModelAdmin):
    list_display = (
        'id', 'product_name', 'seller', 'admin', 'status',
        'quantity_listed', 'actual_quantity_sold',
        'original_cost_per_unit', 'listing_price', 'total_deposit_required', 'pending_profit_amount',
        'bulk_payment', 'sale_date', 'is_dummy_account', 'created_at',
    )
    list_filter = ('status', 'is_dummy_account', 'exclude_from_revenue', 'created_at')
    search_fields = ('product_name', 'product_uid', 'seller__username', 'admin__username')
    raw_id_fields = ('seller', 'admin', 'listing', 'bulk_payment', 'receipt')
    readonly_fields = ('created_at', 'updated_at', 'deposit_paid_at', 'profit_transferred_at', 'migrated_at')
    ordering = ('-created_at',)
    actions = ['export_as_csv']

    def export_as_csv(self, request, queryset):
        response = HttpResponse(content_type='text/csv')
        filename = f"pending_deposits_{timezone.now().strftime('%Y%m%d_%H%M%S')}.csv"
        response['Content-Disposition'] = f'attachment; filename="{filename}"'
        writer = csv.writer(response)
        writer.writerow([
            'id', 'seller', 'admin', 'product_name', 'status',
            'quantity', 'cost_per_unit', 'listing_price', 'deposit', 'pending_profit', 'sale_date',
        ])
        for d in queryset.select_related('seller', 'admin'):
            writer.writerow([
                d.pk, d.seller.username, getattr(d.admin, 'username', ''), d.product_name, d.status,
                d.effective_quantity, d.original_cost_per_unit, d.listing_price,
                d.total_deposit_required, d.pending_profit_amount, d.sale_date,
            ])
        return response
    export_as_csv.short_description = "Download selected as CSV"


class ReceiptInline(admin.TabularInline):
    model = Receipt
    fk_name = 'bulk_payment'
    extra = 0
    fields = ('id', 'amount', 'status', 'is_wallet_payment', 'submitted_at', 'processed_by_name')
    readonly_fields = fields
    can_delete = False


@admin.register(BulkDepositPayment)
class BulkDepositPaymentAdmin(admin.ModelAdmin):
    list_display = ('id', 'seller', 'status', 'total_orders_count', 'total_deposit_amount', 'total_profit_amount', 'pay_with_wallet', 'created_at')
    list_filter = ('status', 'pay_with_wallet', 'created_at')
    search_fields = ('seller__username',)
    raw_id_fields = ('seller', 'approved_by', 'rejected_by')
    readonly_fields = ('deposit_ids', 'order_details', 'created_at', 'updated_at', 'receipt_submitted_at', 'approved_at', 'rejected_at')
    inlines = [ReceiptInline]
    actions = ['approve_selected', 'reject_selected']

    def approve_selected(self, request, queryset):
        from business.services.bulk_payments import approve_bulk_payment
        ok, failed = 0, 0
        for bulk in queryset:
            res = approve_bulk_payment(bulk.pk, request.user, notes="Approved via admin")
            if res.get("success"):
                ok += 1
            else:
                failed += 1
                self.message_user(request, f"Bulk payment #{bulk.pk}: {res.get('message')}", level="error")
        self.message_user(request, f"Approved {ok} bulk payment(s). Failed: {failed}.")
    approve_selected.short_description = "Approve selected bulk payments"

    def reject_selected(self, request, queryset):
        from business.services.bulk_payments import reject_bulk_payment
        ok = 0
        for bulk in queryset:
            res = reject_bulk_payment(bulk.pk, request.user, reason="Rejected via admin")
            if res.get("success"):
                ok += 1
            else:
                self.message_user(request, f"Bulk payment #{bulk.pk}: {res.get('message')}", level="error")
        self.message_user(request, f"Rejected {ok} bulk payment(s).")
    reject_selected.short_description = "Reject selected bulk payments"


@admin.register(Receipt)
class ReceiptAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'amount', 'status', 'receipt_link', 'is_deposit_payment', 'is_bulk_payment', 'is_wallet_payment', 'submitted_at', 'processed_by_name')
    list_filter = ('status', 'is_deposit_payment', 'is_bulk_payment', 'is_wallet_payment', 'submitted_at')
    search_fields = ('user__username', 'product_name', 'description')
    raw_id_fields = ('user', 'processed_by', 'bulk_payment')
    readonly_fields = ('submitted_at', 'processed_at', 'pending_deposit_ids', 'receipt_link')
    actions = ['approve_selected', 'reject_selected']

    def receipt_link(self, obj):
        url = obj.receipt_url
        if not url:
            return "-"
        return format_html('<a href="{}" target="_blank">View</a>', url)
    receipt_link.short_description = "Receipt"

    def approve_selected(self, request, queryset):
        from business.services.receipts import approve_receipt
        ok = 0
        for r in queryset.filter(status="pending"):
            res = approve_receipt(r.pk, request.user, notes="Approved via admin")
            if res.get("success"):
                ok += 1
            else:
                self.message_user(request, f"Receipt #{r.pk}: {res.get('message')}", level="error")
        self.message_user(request, f"Approved {ok} receipt(s).")
    approve_selected.short_description = "Approve selected receipts"

    def reject_selected(self, request, queryset):
        from business.services.receipts import reject_receipt
        ok = 0
        for r in queryset.filter(status="pending"):
            res = reject_receipt(r.pk, request.user, notes="Rejected via admin")
            if res.get("success"):
                ok += 1
            else:
                self.message_user(request, f"Receipt #{r.pk}: {res.get('message')}", level="error")
        self.message_user(request, f"Rejected {ok} receipt(s).")
    reject_selected.short_description = "Reject selected receipts"


@admin.register(CommissionTransaction)
class CommissionTransactionAdmin(admin.ModelAdmin):
    list_display = ('id', 'admin', 'seller', 'receipt', 'original_amount', 'commission_percent', 'commission_amount', 'status', 'exclude_from_revenue', 'created_at')
    list_filter = ('status', 'exclude_from_revenue', 'created_at')
    search_fields = ('admin__username', 'seller__username')
    raw_id_fields = ('admin', 'seller', 'receipt')


@admin.register(SellerMigration)
class SellerMigrationAdmin(admin.ModelAdmin):
    list_display = ('id', 'seller', 'from_admin', 'to_admin', 'reason', 'performed_by', 'pending_deposits_moved', 'commissions_moved', 'created_at')
    search_fields = ('seller__username', 'reason')
    raw_id_fields = ('seller', 'from_admin', 'to_admin', 'from_referred_by', 'to_referred_by', 'performed_by')

    def has_change_permission(self, request, obj=None):
        return False
