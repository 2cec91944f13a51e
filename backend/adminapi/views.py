from decimal import Decimal, InvalidOperation

from django.db.models import Q
from rest_framework import status
from rest_framework.generics import ListAPIView
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.models import CustomUser, WithdrawalRequest
from accounts.serializers import WithdrawalRequestSerializer
from business.models import PendingDeposit, BulkDepositPayment, Receipt
from business.serializers import (
    PendingDepositSerializer,
    BulkDepositPaymentSerializer,
    ReceiptSerializer,
    SellerMigrationSerializer,
    MarkSoldSerializer,
)
from business.services import seller_management
from .permissions import IsAdminRole, IsSuperAdmin
from .serializers import (
    AdminSellerSerializer,
    AdminAccountSerializer,
    SellerMigrateSerializer,
    DummyToggleSerializer,
    ProcessNoteSerializer,
)


def _scoped_admin(request):
    """
    Admin whose sellers bound the request, or None for superadmins and staff.
    """
    user = request.user
    if user.is_superadmin or user.is_staff:
        return None
    return user


def _seller_visible(request, seller_id) -> bool:
    admin = _scoped_admin(request)
    if admin is None:
        return True
    return CustomUser.objects.filter(
        Q(admin=admin) | Q(referred_by=admin), pk=seller_id, role="seller"
    ).exists()


def _result(res, ok_status=status.HTTP_200_OK):
    """
    Map a service result dict to a response: failures become 400 with detail,
    failures flagged not_found become 404.
    """
    if res.get("success"):
        return Response(res, status=ok_status)
    msg = res.get("message") or "Request failed."
    code = status.HTTP_404_NOT_FOUND if res.get("not_found") else status.HTTP_400_BAD_REQUEST
    return Response({"detail": msg}, status=code)


# =================
# Seller management
# =================
class AdminSellerList(ListAPIView):
    """
    Sellers with their managing admin and completed commission total.
    Filters: search (username/email/name/referral code), admin_id (superadmin only)
    """
    permission_classes = [IsAdminRole]
    serializer_class = AdminSellerSerializer

    def get_queryset(self):
        search = (self.request.query_params.get("search") or "").strip()
        admin = _scoped_admin(self.request)
        if admin is None:
            admin_id = (self.request.query_params.get("admin_id") or "").strip()
            if admin_id.isdigit():
                admin = CustomUser.objects.filter(pk=int(admin_id)).first()
        return seller_management.list_sellers(search=search, admin=admin)


class AdminSellerDetail(APIView):
    permission_classes = [IsAdminRole]

    def get(self, request, pk: int):
        if not _seller_visible(request, pk):
            return Response({"detail": "Seller not found"}, status=status.HTTP_404_NOT_FOUND)
        data = seller_management.get_seller_details(pk)
        if data is None:
            return Response({"detail": "Seller not found"}, status=status.HTTP_404_NOT_FOUND)
        return Response(data, status=status.HTTP_200_OK)


class AdminAccountList(ListAPIView):
    """
    Admins with seller counts; used as migration targets.
    """
    permission_classes = [IsAdminRole]
    serializer_class = AdminAccountSerializer
    pagination_class = None

    def get_queryset(self):
        return seller_management.list_admins()


class AdminSellerMigrateView(APIView):
    """
    Move a seller to another admin.
    Body: { "new_admin_id": 12, "reason": "optional" }
    """
    permission_classes = [IsSuperAdmin]

    def post(self, request, pk: int):
        s = SellerMigrateSerializer(data=request.data or {})
        s.is_valid(raise_exception=True)
        res = seller_management.migrate_seller(
            pk,
            s.validated_data["new_admin_id"],
            reason=s.validated_data.get("reason") or "Admin migration",
            performed_by=request.user,
        )
        return _result(res)


class AdminSellerDummyView(APIView):
    """
    Mark or unmark a seller as a dummy (test) account.
    Body: { "is_dummy": true, "reason": "optional" }
    """
    permission_classes = [IsSuperAdmin]

    def post(self, request, pk: int):
        s = DummyToggleSerializer(data=request.data or {})
        s.is_valid(raise_exception=True)
        res = seller_management.toggle_dummy_account(
            pk,
            s.validated_data["is_dummy"],
            reason=s.validated_data.get("reason") or "Dummy account toggle",
            performed_by=request.user,
        )
        return _result(res)


class AdminSellerMigrationList(ListAPIView):
    permission_classes = [IsAdminRole]
    serializer_class = SellerMigrationSerializer

    def get_queryset(self):
        seller_id = (self.request.query_params.get("seller_id") or "").strip()
        qs = seller_management.get_seller_migration_history(int(seller_id) if seller_id.isdigit() else None)
        admin = _scoped_admin(self.request)
        if admin is not None:
            qs = qs.filter(Q(from_admin=admin) | Q(to_admin=admin))
        return qs


# ========
# Receipts
# ========
class AdminReceiptList(ListAPIView):
    """
    Filters:
      - status=pending|approved|rejected
      - bulk=1 (bulk receipts only) | bulk=0
      - wallet=1|0
      - user (id or username contains)
    """
    permission_classes = [IsAdminRole]
    serializer_class = ReceiptSerializer

    def get_queryset(self):
        qs = Receipt.objects.select_related("user").order_by("-submitted_at", "-id")
        params = self.request.query_params
        status_in = (params.get("status") or "").strip().lower()
        bulk = (params.get("bulk") or "").strip().lower()
        wallet = (params.get("wallet") or "").strip().lower()
        user_q = (params.get("user") or "").strip()

        if status_in in ("pending", "approved", "rejected"):
            qs = qs.filter(status=status_in)
        if bulk in ("1", "true"):
            qs = qs.filter(is_bulk_payment=True)
        elif bulk in ("0", "false"):
            qs = qs.filter(is_bulk_payment=False)
        if wallet in ("1", "true"):
            qs = qs.filter(is_wallet_payment=True)
        elif wallet in ("0", "false"):
            qs = qs.filter(is_wallet_payment=False)
        if user_q:
            if user_q.isdigit():
                qs = qs.filter(Q(user_id=int(user_q)) | Q(user__username__icontains=user_q))
            else:
                qs = qs.filter(user__username__icontains=user_q)

        admin = _scoped_admin(self.request)
        if admin is not None:
            qs = qs.filter(Q(user__admin=admin) | Q(user__referred_by=admin))
        return qs


class AdminReceiptApproveView(APIView):
    """
    Body: { "notes": "optional" }
    """
    permission_classes = [IsAdminRole]

    def post(self, request, pk: int):
        from business.services.receipts import approve_receipt

        r = Receipt.objects.filter(pk=pk).only("user_id").first()
        if not r or not _seller_visible(request, r.user_id):
            return Response({"detail": "Receipt not found"}, status=status.HTTP_404_NOT_FOUND)
        s = ProcessNoteSerializer(data=request.data or {})
        s.is_valid(raise_exception=True)
        return _result(approve_receipt(pk, request.user, notes=s.validated_data.get("notes") or ""))


class AdminReceiptRejectView(APIView):
    permission_classes = [IsAdminRole]

    def post(self, request, pk: int):
        from business.services.receipts import reject_receipt

        r = Receipt.objects.filter(pk=pk).only("user_id").first()
        if not r or not _seller_visible(request, r.user_id):
            return Response({"detail": "Receipt not found"}, status=status.HTTP_404_NOT_FOUND)
        s = ProcessNoteSerializer(data=request.data or {})
        s.is_valid(raise_exception=True)
        return _result(reject_receipt(pk, request.user, notes=s.validated_data.get("notes") or ""))


# =============
# Bulk payments
# =============
class AdminBulkPaymentList(ListAPIView):
    permission_classes = [IsAdminRole]
    serializer_class = BulkDepositPaymentSerializer

    def get_queryset(self):
        qs = BulkDepositPayment.objects.select_related("seller").prefetch_related("receipts").order_by("-created_at", "-id")
        status_in = (self.request.query_params.get("status") or "").strip().lower()
        seller_id = (self.request.query_params.get("seller_id") or "").strip()
        if status_in:
            qs = qs.filter(status=status_in)
        if seller_id.isdigit():
            qs = qs.filter(seller_id=int(seller_id))
        admin = _scoped_admin(self.request)
        if admin is not None:
            qs = qs.filter(Q(seller__admin=admin) | Q(seller__referred_by=admin))
        return qs


class AdminBulkPaymentApproveView(APIView):
    permission_classes = [IsAdminRole]

    def post(self, request, pk: int):
        from business.services.bulk_payments import approve_bulk_payment

        bulk = BulkDepositPayment.objects.filter(pk=pk).only("seller_id").first()
        if not bulk or not _seller_visible(request, bulk.seller_id):
            return Response({"detail": "Bulk payment not found"}, status=status.HTTP_404_NOT_FOUND)
        s = ProcessNoteSerializer(data=request.data or {})
        s.is_valid(raise_exception=True)
        return _result(approve_bulk_payment(pk, request.user, notes=s.validated_data.get("notes") or ""))


class AdminBulkPaymentRejectView(APIView):
    """
    Body: { "notes": "reason shown to the seller" }
    """
    permission_classes = [IsAdminRole]

    def post(self, request, pk: int):
        from business.services.bulk_payments import reject_bulk_payment

        bulk = BulkDepositPayment.objects.filter(pk=pk).only("seller_id").first()
        if not bulk or not _seller_visible(request, bulk.seller_id):
            return Response({"detail": "Bulk payment not found"}, status=status.HTTP_404_NOT_FOUND)
        s = ProcessNoteSerializer(data=request.data or {})
        s.is_valid(raise_exception=True)
        return _result(reject_bulk_payment(pk, request.user, reason=s.validated_data.get("notes") or ""))


# ===========
# Withdrawals
# ===========
class AdminWithdrawalList(ListAPIView):
    """
    List Withdrawal Requests with filters.
    Filters:
      - status=pending|approved|rejected
      - user (id or username contains)
      - date_from, date_to (requested_at)
      - min_amount, max_amount
      - ordering (default -requested_at)
    """
    permission_classes = [IsAdminRole]
    serializer_class = WithdrawalRequestSerializer

    def get_queryset(self):
        qs = WithdrawalRequest.objects.select_related("seller", "processed_by").all()
        params = self.request.query_params

        status_in = (params.get("status") or "").strip().lower()
        user_q = (params.get("user") or "").strip()
        date_from = (params.get("date_from") or "").strip()
        date_to = (params.get("date_to") or "").strip()
        min_amount = (params.get("min_amount") or "").strip()
        max_amount = (params.get("max_amount") or "").strip()
        ordering = (params.get("ordering") or "-requested_at").strip()

        if status_in in ("pending", "approved", "rejected"):
            qs = qs.filter(status=status_in)
        if user_q:
            if user_q.isdigit():
                qs = qs.filter(Q(seller_id=int(user_q)) | Q(seller__username__icontains=user_q))
            else:
                qs = qs.filter(Q(seller__username__icontains=user_q) | Q(seller__email__icontains=user_q))
        if date_from:
            qs = qs.filter(requested_at__date__gte=date_from)
        if date_to:
            qs = qs.filter(requested_at__date__lte=date_to)
        try:
            if min_amount:
                qs = qs.filter(amount__gte=Decimal(min_amount))
            if max_amount:
                qs = qs.filter(amount__lte=Decimal(max_amount))
        except InvalidOperation:
            pass

        admin = _scoped_admin(self.request)
        if admin is not None:
            qs = qs.filter(Q(seller__admin=admin) | Q(seller__referred_by=admin))

        if ordering in ("requested_at", "-requested_at", "amount", "-amount"):
            qs = qs.order_by(ordering)
        return qs


class AdminWithdrawalStatsView(APIView):
    permission_classes = [IsAdminRole]

    def get(self, request):
        from business.services.withdrawals import withdrawal_stats
        return Response(withdrawal_stats(), status=status.HTTP_200_OK)


class _WithdrawalProcessView(APIView):
    permission_classes = [IsAdminRole]
    approve = True

    def post(self, request, pk: int):
        from business.services.withdrawals import process_withdrawal

        wr = WithdrawalRequest.objects.filter(pk=pk).only("seller_id").first()
        if not wr or not _seller_visible(request, wr.seller_id):
            return Response({"detail": "Withdrawal not found"}, status=status.HTTP_404_NOT_FOUND)
        s = ProcessNoteSerializer(data=request.data or {})
        s.is_valid(raise_exception=True)
        res = process_withdrawal(pk, request.user, approve=self.approve, notes=s.validated_data.get("notes") or "")
        if not res.get("success"):
            return _result(res)
        return Response(WithdrawalRequestSerializer(res["withdrawal"]).data, status=status.HTTP_200_OK)


class AdminWithdrawalApproveView(_WithdrawalProcessView):
    """
    Approve a pending withdrawal and debit the seller's balance atomically.
    """
    approve = True


class AdminWithdrawalRejectView(_WithdrawalProcessView):
    """
    Reject a pending withdrawal without touching the balance.
    """
    approve = False


# ========
# Deposits
# ========
class AdminDepositList(ListAPIView):
    """
    Filters: status, seller_id, admin_id, bulk_payment_id, dummy=1|0
    """
    permission_classes = [IsAdminRole]
    serializer_class = PendingDepositSerializer

    def get_queryset(self):
        qs = PendingDeposit.objects.select_related("seller", "admin").order_by("-created_at", "-id")
        params = self.request.query_params
        status_in = (params.get("status") or "").strip().lower()
        seller_id = (params.get("seller_id") or "").strip()
        admin_id = (params.get("admin_id") or "").strip()
        bulk_id = (params.get("bulk_payment_id") or "").strip()
        dummy = (params.get("dummy") or "").strip().lower()

        if status_in:
            qs = qs.filter(status=status_in)
        if seller_id.isdigit():
            qs = qs.filter(seller_id=int(seller_id))
        if admin_id.isdigit():
            qs = qs.filter(admin_id=int(admin_id))
        if bulk_id.isdigit():
            qs = qs.filter(bulk_payment_id=int(bulk_id))
        if dummy in ("1", "true"):
            qs = qs.filter(is_dummy_account=True)
        elif dummy in ("0", "false"):
            qs = qs.filter(is_dummy_account=False)

        admin = _scoped_admin(self.request)
        if admin is not None:
            qs = qs.filter(admin=admin)
        return qs


class AdminDepositMarkSoldView(APIView):
    """
    Record a sale on behalf of a seller.
    Body: { "sale_price": optional, "quantity_sold": optional }
    """
    permission_classes = [IsAdminRole]

    def post(self, request, pk: int):
        from business.services.deposits import mark_product_sold

        dep = PendingDeposit.objects.filter(pk=pk).only("seller_id").first()
        if not dep or not _seller_visible(request, dep.seller_id):
            return Response({"detail": "Pending deposit not found"}, status=status.HTTP_404_NOT_FOUND)
        s = MarkSoldSerializer(data=request.data or {})
        s.is_valid(raise_exception=True)
        return _result(mark_product_sold(
            pk,
            sale_price=s.validated_data.get("sale_price"),
            quantity_sold=s.validated_data.get("quantity_sold"),
        ))
