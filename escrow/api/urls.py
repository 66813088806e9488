"""
Escrow API URLs
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .viewsets import ConnectAccountView, ConnectLoginLinkView, ConnectStatusView, EscrowPaymentViewSet

app_name = 'escrow'

router = DefaultRouter()
router.register(r'payments', EscrowPaymentViewSet, basename='payment')

urlpatterns = [
    path('connect/account/', ConnectAccountView.as_view(), name='connect-account'),
    path('connect/status/', ConnectStatusView.as_view(), name='connect-status'),
    path('connect/login-link/', ConnectLoginLinkView.as_view(), name='connect-login-link'),
    path('', include(router.urls)),
]
