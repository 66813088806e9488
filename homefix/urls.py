"""
URL configuration for the HomeFix marketplace.

All API routes live under /api/. Each app ships its own router module
in <app>/api/urls.py with an app namespace.
"""
from django.conf import settings
from django.contrib import admin
from django.http import JsonResponse
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from escrow.views import StripeWebhookView


def health_check(request):
    """Health check endpoint for load balancers and monitoring."""
    from django.db import connection

    health_status = {
        'status': 'healthy',
        'version': getattr(settings, 'APP_VERSION', '1.0.0'),
    }

    try:
        with connection.cursor() as cursor:
            cursor.execute('SELECT 1')
        health_status['database'] = 'connected'
    except Exception as e:
        health_status['database'] = 'error'
        health_status['status'] = 'degraded'
        health_status['database_error'] = str(e)

    status_code = 200 if health_status['status'] == 'healthy' else 503
    return JsonResponse(health_status, status=status_code)


urlpatterns = [
    path('admin/', admin.site.urls),
    path('health/', health_check, name='health_check'),

    # Authentication
    path('api/auth/token/', TokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('api/auth/token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),

    # Marketplace APIs
    path('api/accounts/', include('accounts.api.urls', namespace='accounts-api')),
    path('api/services/', include('services.api.urls', namespace='services-api')),
    path('api/leads/', include('leads.api.urls', namespace='leads-api')),
    path('api/escrow/', include('escrow.api.urls', namespace='escrow-api')),
    path('api/escrow/webhook/', StripeWebhookView.as_view(), name='stripe-webhook'),
    path('api/', include('notifications.api.urls', namespace='notifications-api')),

    # OpenAPI schema
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
]
