from decimal import Decimal

from django.conf import settings
from django.db import models


class Product(models.Model):
    """
    Catalog entry supplied by the storefront. `price` is the supplier cost a
    seller pays as deposit; the public listing price is cost * MARKUP_MULTIPLIER.
    """
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    category = models.CharField(max_length=100, blank=True, db_index=True)
    product_code = models.CharField(max_length=64, blank=True, db_index=True)

    price = models.DecimalField(max_digits=12, decimal_places=2)
    quantity = models.PositiveIntegerField(default=0)
    image_url = models.URLField(max_length=500, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self) -> str:
        return self.name

    @property
    def listing_price(self) -> Decimal:
        return (self.price * settings.MARKUP_MULTIPLIER).quantize(Decimal("0.01"))


class InstanceFields(models.Model):
    """
    Shared identity fields for catalog rows that can be split into
    single-unit instances.
    """
    product_uid = models.CharField(max_length=160, db_index=True)
    product_code = models.CharField(max_length=80, blank=True)
    name = models.CharField(max_length=255)

    original_product_uid = models.CharField(max_length=160, blank=True, db_index=True)
    original_product_code = models.CharField(max_length=80, blank=True)
    instance_number = models.PositiveIntegerField(null=True, blank=True)
    total_instances = models.PositiveIntegerField(null=True, blank=True)
    is_instance = models.BooleanField(default=False, db_index=True)

    migrated = models.BooleanField(default=False, db_index=True)
    migrated_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class StockItem(InstanceFields):
    product_uid = models.CharField(max_length=160, unique=True)
    seller = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='stock_items')
    product = models.ForeignKey(Product, null=True, blank=True, on_delete=models.SET_NULL, related_name='stock_items')
    stock = models.PositiveIntegerField(default=1)
    listed = models.BooleanField(default=False)

    # Per-unit deposit state
    deposit_receipt_approved = models.BooleanField(default=False)
    deposit_receipt_url = models.CharField(max_length=500, blank=True)
    pending_deposit_id = models.BigIntegerField(null=True, blank=True)

    # Set on the original when it is split
    instance_ids = models.JSONField(default=list, blank=True)
    original_quantity = models.PositiveIntegerField(null=True, blank=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['seller', 'migrated'], name='mkt_stock_seller_migr_idx'),
            models.Index(fields=['migrated', 'stock'], name='mkt_stock_migr_stock_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.name} x{self.stock} ({self.product_uid})"

    @property
    def unit_cost(self) -> Decimal:
        return self.product.price if self.product_id else Decimal("0.00")


class InventoryItem(InstanceFields):
    seller = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='inventory_items')
    product = models.ForeignKey(Product, null=True, blank=True, on_delete=models.SET_NULL, related_name='inventory_items')
    stock = models.PositiveIntegerField(default=1)
    quantity = models.PositiveIntegerField(default=1)

    class Meta:
        ordering = ['-created_at']
        indexes = [models.Index(fields=['seller', 'product_uid'], name='mkt_inv_seller_uid_idx')]

    def __str__(self) -> str:
        return f"INV<{self.seller_id}> {self.name} ({self.product_uid})"


class Listing(InstanceFields):
    STATUS_CHOICES = (
        ('active', 'Active'),
        ('sold', 'Sold'),
        ('removed', 'Removed'),
    )
    seller = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='listings')
    product = models.ForeignKey(Product, null=True, blank=True, on_delete=models.SET_NULL, related_name='listings')
    price = models.DecimalField(max_digits=12, decimal_places=2)
    quantity = models.PositiveIntegerField(default=1)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default='active', db_index=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [models.Index(fields=['seller', 'status'], name='mkt_listing_seller_st_idx')]

    def __str__(self) -> str:
        return f"{self.name} @ {self.price} ({self.product_uid})"
