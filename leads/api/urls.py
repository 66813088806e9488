"""
Leads API URLs.
"""

from django.urls import path

from .views import LeadAccessCheckView, LeadChatView, LeadPriceView, PurchaseLeadView

app_name = 'leads'

urlpatterns = [
    path('purchase/', PurchaseLeadView.as_view(), name='purchase'),
    path('access/', LeadAccessCheckView.as_view(), name='access'),
    path('price/', LeadPriceView.as_view(), name='price'),
    path('chat/', LeadChatView.as_view(), name='chat'),
]
