from django.urls import path
from .views import (
    MyDepositsList,
    DepositMarkSoldView,
    DepositSummaryView,
    BulkPaymentListCreate,
    BulkSoldOrdersView,
    BulkPaymentReceiptView,
    BulkPaymentCancelView,
    ReceiptListCreate,
)

urlpatterns = [
    # Deposits
    path('deposits/', MyDepositsList.as_view(), name='my_deposits'),
    path('deposits/summary/', DepositSummaryView.as_view(), name='deposit_summary'),
    path('deposits/<int:pk>/sold/', DepositMarkSoldView.as_view(), name='deposit_mark_sold'),

    # Bulk deposit payments
    path('bulk-payments/', BulkPaymentListCreate.as_view(), name='bulk_payments'),
    path('bulk-payments/sold-orders/', BulkSoldOrdersView.as_view(), name='bulk_payment_sold_orders'),
    path('bulk-payments/<int:pk>/receipt/', BulkPaymentReceiptView.as_view(), name='bulk_payment_receipt'),
    path('bulk-payments/<int:pk>/cancel/', BulkPaymentCancelView.as_view(), name='bulk_payment_cancel'),

    # Receipts
    path('receipts/', ReceiptListCreate.as_view(), name='receipts'),
]
