"""
Accounts API URLs
"""

from django.urls import path

from .views import ContractorProfileView, MeView, RegisterView

app_name = 'accounts'

urlpatterns = [
    path('register/', RegisterView.as_view(), name='register'),
    path('me/', MeView.as_view(), name='me'),
    path('contractor-profile/', ContractorProfileView.as_view(), name='contractor-profile'),
]
