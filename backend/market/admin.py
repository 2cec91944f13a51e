from django.contrib import admin
from django.utils.html import format_html
from .models import Product, StockItem, InventoryItem, Listing


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ('id', 'image_thumb', 'name', 'category', 'product_code', 'price', 'listing_price', 'quantity', 'created_at')
    list_filter = ('category', 'created_at')
    search_fields = ('name', 'description', 'category', 'product_code')
    readonly_fields = ('created_at', 'image_thumb', 'listing_price')
    fieldsets = (
        ('Basic Info', {
            'fields': ('name', 'description', 'category', 'product_code', 'image_url', 'image_thumb')
        }),
        ('Pricing & Stock', {
            'fields': ('price', 'listing_price', 'quantity')
        }),
        ('Meta', {
            'fields': ('created_at',)
        }),
    )

    def image_thumb(self, obj):
        if obj.image_url:
            return format_html('<img src="{}" style="height:60px;width:auto;border-radius:4px;" />', obj.image_url)
        return "-"
    image_thumb.short_description = "Image"


class InstanceAdminMixin:
    list_filter = ('is_instance', 'migrated', 'created_at')
    search_fields = ('name', 'product_uid', 'product_code', 'original_product_uid', 'seller__username')
    readonly_fields = ('created_at', 'updated_at', 'migrated_at')
    raw_id_fields = ('seller', 'product')


@admin.register(StockItem)
class StockItemAdmin(InstanceAdminMixin, admin.ModelAdmin):
    list_display = ('id', 'name', 'seller', 'product_uid', 'stock', 'listed', 'is_instance', 'instance_number', 'total_instances', 'migrated', 'deposit_receipt_approved')
    list_filter = ('is_instance', 'migrated', 'listed', 'deposit_receipt_approved')
    readonly_fields = ('created_at', 'updated_at', 'migrated_at', 'instance_ids', 'original_quantity')


@admin.register(InventoryItem)
class InventoryItemAdmin(InstanceAdminMixin, admin.ModelAdmin):
    list_display = ('id', 'name', 'seller', 'product_uid', 'stock', 'quantity', 'is_instance', 'migrated')


@admin.register(Listing)
class ListingAdmin(InstanceAdminMixin, admin.ModelAdmin):
    list_display = ('id', 'name', 'seller', 'price', 'quantity', 'status', 'is_instance', 'migrated', 'created_at')
    list_filter = ('status', 'is_instance', 'migrated', 'created_at')
