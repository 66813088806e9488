"""
Services API URLs.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .viewsets import BidViewSet, ContractorDirectoryViewSet, ContractorSearchView, ServiceRequestViewSet

app_name = 'services'

router = DefaultRouter()
router.register(r'requests', ServiceRequestViewSet, basename='request')
router.register(r'bids', BidViewSet, basename='bid')
router.register(r'contractors', ContractorDirectoryViewSet, basename='contractor')

urlpatterns = [
    path('contractors/search/', ContractorSearchView.as_view(), name='contractor-search'),
    path('', include(router.urls)),
]
