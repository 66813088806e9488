"""
Services Admin - HomeFix Marketplace

Admin interface for service requests and bids.
"""

from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from .models import Bid, ServiceRequest


class BidInline(admin.TabularInline):
    model = Bid
    extra = 0
    fields = ['contractor', 'amount', 'status', 'submitted_at']
    readonly_fields = ['submitted_at']
    show_change_link = True


@admin.register(ServiceRequest)
class ServiceRequestAdmin(admin.ModelAdmin):
    list_display = [
        'request_id', 'title', 'status', 'urgency', 'customer',
        'assigned_contractor', 'payment_status', 'bid_count', 'created_at',
    ]
    list_filter = ['status', 'urgency', 'payment_status', 'created_at']
    search_fields = ['request_id', 'title', 'customer_email', 'customer_name', 'city']
    raw_id_fields = ['customer', 'assigned_contractor']
    readonly_fields = ['request_id', 'created_at', 'updated_at']
    date_hierarchy = 'created_at'
    inlines = [BidInline]

    fieldsets = (
        (None, {'fields': ('request_id', 'title', 'service_types', 'description', 'urgency', 'status')}),
        (_('Location'), {'fields': ('formatted_address', 'latitude', 'longitude', 'city', 'state', 'zip_code')}),
        (_('Customer'), {
            'fields': (
                'customer', 'customer_name', 'customer_email', 'customer_phone',
                'preferred_contact', 'preferred_date_time',
            )
        }),
        (_('Assignment & Payment'), {'fields': ('assigned_contractor', 'payment_status', 'payment_intent_id')}),
        (_('Lifecycle'), {
            'fields': ('started_at', 'completed_at', 'cancelled_at', 'cancellation_reason', 'notes'),
            'classes': ('collapse',),
        }),
        (_('Timestamps'), {'fields': ('created_at', 'updated_at'), 'classes': ('collapse',)}),
    )

    def bid_count(self, obj):
        return obj.bids.count()
    bid_count.short_description = _('Bids')


@admin.register(Bid)
class BidAdmin(admin.ModelAdmin):
    list_display = ['id', 'service_request', 'contractor', 'amount', 'status', 'submitted_at', 'valid_until']
    list_filter = ['status', 'submitted_at']
    search_fields = ['service_request__request_id', 'contractor__email', 'description']
    raw_id_fields = ['service_request', 'contractor']
    readonly_fields = ['submitted_at', 'accepted_at', 'rejected_at', 'created_at', 'updated_at']
