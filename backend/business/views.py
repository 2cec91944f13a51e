from rest_framework import generics, permissions, parsers, status
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import PendingDeposit, BulkDepositPayment, Receipt
from .serializers import (
    PendingDepositSerializer,
    MarkSoldSerializer,
    BulkDepositPaymentSerializer,
    BulkPaymentCreateSerializer,
    BulkReceiptSubmitSerializer,
    ReceiptSerializer,
    ReceiptSubmitSerializer,
)


class IsSeller(permissions.BasePermission):
    """
    Allows access only to authenticated users with the seller role.
    """

    def has_permission(self, request, view):
        user = getattr(request, "user", None)
        if not user or not user.is_authenticated:
            return False
        return bool(getattr(user, "is_seller", False))


def _fail(res, code=status.HTTP_400_BAD_REQUEST):
    return Response({"detail": res.get("message") or "Request failed."}, status=code)


class MyDepositsList(generics.ListAPIView):
    """
    GET /api/business/deposits/?status=pending|sold|receipt_submitted|deposit_paid|completed
    """
    permission_classes = [IsSeller]
    serializer_class = PendingDepositSerializer

    def get_queryset(self):
        qs = PendingDeposit.objects.filter(seller=self.request.user).select_related("seller", "admin").order_by("-created_at")
        status_in = (self.request.query_params.get("status") or "").strip().lower()
        if status_in:
            qs = qs.filter(status=status_in)
        return qs


class DepositMarkSoldView(APIView):
    """
    Seller records the sale of a listed unit.
    Body: { "sale_price": optional, "quantity_sold": optional }
    """
    permission_classes = [IsSeller]

    def post(self, request, pk: int):
        from business.services.deposits import mark_product_sold

        s = MarkSoldSerializer(data=request.data or {})
        s.is_valid(raise_exception=True)
        res = mark_product_sold(
            pk,
            seller=request.user,
            sale_price=s.validated_data.get("sale_price"),
            quantity_sold=s.validated_data.get("quantity_sold"),
        )
        if not res.get("success"):
            code = status.HTTP_404_NOT_FOUND if res.get("not_found") else status.HTTP_400_BAD_REQUEST
            return _fail(res, code)
        return Response(res, status=status.HTTP_200_OK)


class DepositSummaryView(APIView):
    permission_classes = [IsSeller]

    def get(self, request):
        from business.services.deposits import seller_wallet_summary
        return Response(seller_wallet_summary(request.user), status=status.HTTP_200_OK)


class BulkPaymentListCreate(generics.ListCreateAPIView):
    """
    GET  /api/business/bulk-payments/: own bulk payments
    POST /api/business/bulk-payments/ { "deposit_ids": [..] }
    """
    permission_classes = [IsSeller]
    serializer_class = BulkDepositPaymentSerializer

    def get_queryset(self):
        qs = BulkDepositPayment.objects.filter(seller=self.request.user).prefetch_related("receipts").order_by("-created_at")
        status_in = (self.request.query_params.get("status") or "").strip().lower()
        if status_in:
            qs = qs.filter(status=status_in)
        return qs

    def create(self, request, *args, **kwargs):
        from business.services.bulk_payments import create_bulk_payment

        s = BulkPaymentCreateSerializer(data=request.data or {})
        s.is_valid(raise_exception=True)
        res = create_bulk_payment(request.user, s.validated_data["deposit_ids"])
        if not res.get("success"):
            return _fail(res)
        return Response(res, status=status.HTTP_201_CREATED)


class BulkSoldOrdersView(generics.ListAPIView):
    """
    Sold deposits that can still be added to a bulk payment, newest sale first.
    """
    permission_classes = [IsSeller]
    serializer_class = PendingDepositSerializer
    pagination_class = None

    def get_queryset(self):
        from business.services.bulk_payments import sold_orders_for_bulk_payment
        return sold_orders_for_bulk_payment(self.request.user)


class BulkPaymentReceiptView(APIView):
    """
    POST multipart: receipt_file, description, pay_with_wallet
    """
    permission_classes = [IsSeller]
    parser_classes = [parsers.MultiPartParser, parsers.FormParser, parsers.JSONParser]

    def post(self, request, pk: int):
        from business.services.bulk_payments import submit_bulk_payment_receipt

        s = BulkReceiptSubmitSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        res = submit_bulk_payment_receipt(
            pk,
            receipt_file=s.validated_data.get("receipt_file"),
            description=s.validated_data.get("description") or "",
            seller=request.user,
            pay_with_wallet=s.validated_data.get("pay_with_wallet", False),
        )
        if not res.get("success"):
            code = status.HTTP_404_NOT_FOUND if res.get("not_found") else status.HTTP_400_BAD_REQUEST
            return _fail(res, code)
        return Response(res, status=status.HTTP_201_CREATED)


class BulkPaymentCancelView(APIView):
    """
    POST /api/business/bulk-payments/<id>/cancel/
    Withdraws a batch that has no receipt yet; its orders return to the sold list.
    """
    permission_classes = [IsSeller]

    def post(self, request, pk: int):
        from business.services.bulk_payments import cancel_bulk_payment

        res = cancel_bulk_payment(pk, request.user)
        if not res.get("success"):
            code = status.HTTP_404_NOT_FOUND if res.get("not_found") else status.HTTP_400_BAD_REQUEST
            return _fail(res, code)
        return Response(res, status=status.HTTP_200_OK)


class ReceiptListCreate(generics.ListCreateAPIView):
    """
    GET  /api/business/receipts/: own receipts
    POST multipart: amount, receipt_file, description, deposit_id, pay_with_wallet
    A deposit receipt is for the deposit's full amount; without deposit_id it is a balance top-up.
    """
    permission_classes = [IsSeller]
    serializer_class = ReceiptSerializer
    parser_classes = [parsers.MultiPartParser, parsers.FormParser, parsers.JSONParser]

    def get_queryset(self):
        qs = Receipt.objects.filter(user=self.request.user).select_related("user").order_by("-submitted_at")
        status_in = (self.request.query_params.get("status") or "").strip().lower()
        if status_in:
            qs = qs.filter(status=status_in)
        return qs

    def create(self, request, *args, **kwargs):
        from business.services.receipts import submit_receipt

        s = ReceiptSubmitSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        deposit = None
        amount = data.get("amount")
        if data.get("deposit_id"):
            deposit = PendingDeposit.objects.filter(pk=data["deposit_id"], seller=request.user).first()
            if not deposit:
                return Response({"detail": "Pending deposit not found"}, status=status.HTTP_404_NOT_FOUND)
            amount = deposit.total_deposit_required

        res = submit_receipt(
            request.user,
            amount,
            receipt_file=data.get("receipt_file"),
            description=data.get("description") or "",
            deposit=deposit,
            pay_with_wallet=data.get("pay_with_wallet", False),
        )
        if not res.get("success"):
            return _fail(res)
        return Response(res, status=status.HTTP_201_CREATED)
