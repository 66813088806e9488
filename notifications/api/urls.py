"""
Notifications API URLs.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .viewsets import NotificationViewSet

app_name = 'notifications'

router = DefaultRouter()
router.register(r'notifications', NotificationViewSet, basename='notification')

urlpatterns = [
    path('', include(router.urls)),
]
