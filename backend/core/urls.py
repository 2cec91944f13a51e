from django.contrib import admin
admin.site.site_header = "Storefront Administration"
admin.site.site_title = "Storefront Admin"
admin.site.index_title = "Seller & deposit management"
from django.urls import path, include
from django.conf import settings
from django.conf.urls.static import static
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from core.views import HealthView, MarketplaceRulesView

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/health/', HealthView.as_view()),
    path('api/rules/', MarketplaceRulesView.as_view()),
    path('api/token/', TokenObtainPairView.as_view()),
    path('api/token/refresh/', TokenRefreshView.as_view()),
    path('api/accounts/', include('accounts.urls')),
    path('api/market/', include('market.urls')),
    path('api/business/', include('business.urls')),
    path('api/admin/', include('adminapi.urls')),
]

urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
