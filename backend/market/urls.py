from django.urls import path
from .views import ProductList, MyStockListCreate, ListStockItemView, MyInventoryList, ListingList

urlpatterns = [
    path('products/', ProductList.as_view(), name='products'),
    path('stock/', MyStockListCreate.as_view(), name='my_stock'),
    path('stock/<int:pk>/list/', ListStockItemView.as_view(), name='stock_list_item'),
    path('inventory/', MyInventoryList.as_view(), name='my_inventory'),
    path('listings/', ListingList.as_view(), name='listings'),
]
