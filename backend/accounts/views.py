from rest_framework import generics
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import WalletTransaction, WithdrawalRequest
from .serializers import PublicUserSerializer, WalletTransactionSerializer, WithdrawalRequestSerializer


class MeView(generics.RetrieveAPIView):
    serializer_class = PublicUserSerializer
    permission_classes = [IsAuthenticated]

    def get_object(self):
        return self.request.user


class WalletMe(APIView):
    """
    Current balance with outstanding deposit and profit totals.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        from business.services.deposits import seller_wallet_summary
        return Response(seller_wallet_summary(request.user))


class WalletTransactionsList(generics.ListAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = WalletTransactionSerializer

    def get_queryset(self):
        qs = WalletTransaction.objects.filter(user=self.request.user)
        tx_type = (self.request.query_params.get("type") or "").strip()
        if tx_type:
            qs = qs.filter(type=tx_type)
        return qs.order_by("-created_at", "-id")


class WithdrawalCreateView(generics.CreateAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = WithdrawalRequestSerializer
    queryset = WithdrawalRequest.objects.none()


class MyWithdrawalsListView(generics.ListAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = WithdrawalRequestSerializer

    def get_queryset(self):
        return WithdrawalRequest.objects.filter(seller=self.request.user).order_by("-requested_at")
