from django.urls import path
from .views import (
    MeView,
    WalletMe,
    WalletTransactionsList,
    WithdrawalCreateView,
    MyWithdrawalsListView,
)

urlpatterns = [
    path('me/', MeView.as_view(), name='me'),
    path('wallet/', WalletMe.as_view(), name='wallet_me'),
    path('wallet/transactions/', WalletTransactionsList.as_view(), name='wallet_transactions'),
    path('withdrawals/', MyWithdrawalsListView.as_view(), name='my_withdrawals'),
    path('withdrawals/create/', WithdrawalCreateView.as_view(), name='withdrawal_create'),
]
