from rest_framework import generics, permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from business.views import IsSeller
from .models import Product, StockItem, InventoryItem, Listing
from .serializers import (
    ProductSerializer,
    StockItemSerializer,
    StockItemCreateSerializer,
    ListStockItemSerializer,
    InventoryItemSerializer,
    ListingSerializer,
)


class ProductList(generics.ListAPIView):
    """
    GET /api/market/products/: catalog (filter by category, name)
    """
    serializer_class = ProductSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        qs = Product.objects.all().order_by("-created_at")
        params = self.request.query_params
        category = (params.get("category") or "").strip()
        name = (params.get("name") or "").strip()
        if category:
            qs = qs.filter(category__iexact=category)
        if name:
            qs = qs.filter(name__icontains=name)
        return qs


class MyStockListCreate(generics.ListCreateAPIView):
    """
    GET  /api/market/stock/: own stock items (split originals hidden)
    POST /api/market/stock/ { "product": id, "quantity": n }
    """
    serializer_class = StockItemSerializer
    permission_classes = [IsSeller]

    def get_queryset(self):
        return StockItem.objects.filter(seller=self.request.user, migrated=False).order_by("-created_at")

    def create(self, request, *args, **kwargs):
        from market.services.listings import add_stock_item

        s = StockItemCreateSerializer(data=request.data or {})
        s.is_valid(raise_exception=True)
        item = add_stock_item(request.user, s.validated_data["product"], s.validated_data["quantity"])
        return Response(StockItemSerializer(item).data, status=status.HTTP_201_CREATED)


class ListStockItemView(APIView):
    """
    POST /api/market/stock/<id>/list/ { "quantity": n }
    Publishes units at the marked-up price and opens the matching deposit.
    """
    permission_classes = [IsSeller]

    def post(self, request, pk: int):
        from market.services.listings import list_stock_item

        item = StockItem.objects.filter(pk=pk, seller=request.user).first()
        if not item:
            return Response({"detail": "Stock item not found"}, status=status.HTTP_404_NOT_FOUND)
        s = ListStockItemSerializer(data=request.data or {})
        s.is_valid(raise_exception=True)
        res = list_stock_item(request.user, item, s.validated_data["quantity"])
        if not res.get("success"):
            return Response({"detail": res.get("message")}, status=status.HTTP_400_BAD_REQUEST)
        return Response(res, status=status.HTTP_201_CREATED)


class MyInventoryList(generics.ListAPIView):
    serializer_class = InventoryItemSerializer
    permission_classes = [IsSeller]

    def get_queryset(self):
        return InventoryItem.objects.filter(seller=self.request.user, migrated=False).order_by("-created_at")


class ListingList(generics.ListAPIView):
    """
    GET /api/market/listings/?status=active|sold|removed&mine=1
    Originals that were split into instances are never returned.
    """
    serializer_class = ListingSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        qs = Listing.objects.filter(migrated=False).select_related("seller").order_by("-created_at")
        params = self.request.query_params
        status_in = (params.get("status") or "active").strip().lower()
        mine = (params.get("mine") or "").strip().lower() in ("1", "true", "yes")
        if status_in != "all":
            qs = qs.filter(status=status_in)
        if mine:
            qs = qs.filter(seller=self.request.user)
        return qs
