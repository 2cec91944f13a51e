from django.urls import path
from .views import (
    AdminSellerList,
    AdminSellerDetail,
    AdminAccountList,
    AdminSellerMigrateView,
    AdminSellerDummyView,
    AdminSellerMigrationList,
    AdminReceiptList,
    AdminReceiptApproveView,
    AdminReceiptRejectView,
    AdminBulkPaymentList,
    AdminBulkPaymentApproveView,
    AdminBulkPaymentRejectView,
    AdminWithdrawalList,
    AdminWithdrawalStatsView,
    AdminWithdrawalApproveView,
    AdminWithdrawalRejectView,
    AdminDepositList,
    AdminDepositMarkSoldView,
)

urlpatterns = [
    # Seller management
    path("sellers/", AdminSellerList.as_view(), name="admin-sellers"),
    path("sellers/<int:pk>/", AdminSellerDetail.as_view(), name="admin-seller-detail"),
    path("sellers/<int:pk>/migrate/", AdminSellerMigrateView.as_view(), name="admin-seller-migrate"),
    path("sellers/<int:pk>/dummy/", AdminSellerDummyView.as_view(), name="admin-seller-dummy"),
    path("admins/", AdminAccountList.as_view(), name="admin-admins"),
    path("migrations/", AdminSellerMigrationList.as_view(), name="admin-seller-migrations"),

    # Receipts
    path("receipts/", AdminReceiptList.as_view(), name="admin-receipts"),
    path("receipts/<int:pk>/approve/", AdminReceiptApproveView.as_view(), name="admin-receipt-approve"),
    path("receipts/<int:pk>/reject/", AdminReceiptRejectView.as_view(), name="admin-receipt-reject"),

    # Bulk payments
    path("bulk-payments/", AdminBulkPaymentList.as_view(), name="admin-bulk-payments"),
    path("bulk-payments/<int:pk>/approve/", AdminBulkPaymentApproveView.as_view(), name="admin-bulk-payment-approve"),
    path("bulk-payments/<int:pk>/reject/", AdminBulkPaymentRejectView.as_view(), name="admin-bulk-payment-reject"),

    # Withdrawals
    path("withdrawals/", AdminWithdrawalList.as_view(), name="admin-withdrawals"),
    path("withdrawals/stats/", AdminWithdrawalStatsView.as_view(), name="admin-withdrawal-stats"),
    path("withdrawals/<int:pk>/approve/", AdminWithdrawalApproveView.as_view(), name="admin-withdrawal-approve"),
    path("withdrawals/<int:pk>/reject/", AdminWithdrawalRejectView.as_view(), name="admin-withdrawal-reject"),

    # Deposits
    path("deposits/", AdminDepositList.as_view(), name="admin-deposits"),
    path("deposits/<int:pk>/mark-sold/", AdminDepositMarkSoldView.as_view(), name="admin-deposit-mark-sold"),
]
