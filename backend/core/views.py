from django.conf import settings
from django.db import connection
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status


class HealthView(APIView):
    """
    GET /api/health/
    Liveness probe with a cheap database round-trip.
    """
    authentication_classes = []  # public
    permission_classes = []

    def get(self, request):
        db_ok = True
        try:
            with connection.cursor() as cursor:
                cursor.execute("SELECT 1")
        except Exception:
            db_ok = False
        data = {
            "status": "ok" if db_ok else "degraded",
            "database": "connected" if db_ok else "unavailable",
        }
        return Response(data, status=status.HTTP_200_OK if db_ok else status.HTTP_503_SERVICE_UNAVAILABLE)


class MarketplaceRulesView(APIView):
    """
    GET /api/rules/
    Public pricing rules the storefront needs to render listing and deposit previews.
    """
    authentication_classes = []  # public
    permission_classes = []

    def get(self, request):
        data = {
            "markup_multiplier": str(settings.MARKUP_MULTIPLIER),
            "bulk_payment_max_orders": settings.BULK_PAYMENT_MAX_ORDERS,
        }
        return Response(data, status=status.HTTP_200_OK)
