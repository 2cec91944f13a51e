from rest_framework import serializers
from .models import Product, StockItem, InventoryItem, Listing


class ProductSerializer(serializers.ModelSerializer):
    listing_price = serializers.SerializerMethodField(read_only=True)

    class Meta:
        model = Product
        fields = [
            'id',
            'name',
            'description',
            'category',
            'product_code',
            'price',
            'listing_price',
            'quantity',
            'image_url',
            'created_at',
        ]
        read_only_fields = ['id', 'listing_price', 'created_at']

    def get_listing_price(self, obj):
        return f"{obj.listing_price}"


INSTANCE_FIELDS = [
    'product_uid',
    'product_code',
    'name',
    'original_product_uid',
    'original_product_code',
    'instance_number',
    'total_instances',
    'is_instance',
    'migrated',
    'migrated_at',
]


class StockItemSerializer(serializers.ModelSerializer):
    unit_cost = serializers.SerializerMethodField()

    class Meta:
        model = StockItem
        fields = ['id', 'seller', 'product', *INSTANCE_FIELDS, 'stock', 'listed', 'unit_cost',
                  'deposit_receipt_approved', 'deposit_receipt_url', 'pending_deposit_id',
                  'instance_ids', 'original_quantity', 'created_at']
        read_only_fields = fields

    def get_unit_cost(self, obj):
        return f"{obj.unit_cost}"


class StockItemCreateSerializer(serializers.Serializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    quantity = serializers.IntegerField(min_value=1, default=1)


class ListStockItemSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1, default=1)


class InventoryItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = InventoryItem
        fields = ['id', 'seller', 'product', *INSTANCE_FIELDS, 'stock', 'quantity', 'created_at']
        read_only_fields = fields


class ListingSerializer(serializers.ModelSerializer):
    seller_name = serializers.SerializerMethodField()

    class Meta:
        model = Listing
        fields = ['id', 'seller', 'seller_name', 'product', *INSTANCE_FIELDS, 'price', 'quantity', 'status', 'created_at']
        read_only_fields = fields

    def get_seller_name(self, obj):
        u = getattr(obj, 'seller', None)
        if not u:
            return None
        return getattr(u, 'display_name', None) or u.username
