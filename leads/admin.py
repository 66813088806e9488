"""
Leads Admin.
"""

from django.contrib import admin

from .models import LeadAccess, LeadChatMessage


class LeadChatMessageInline(admin.TabularInline):
    model = LeadChatMessage
    extra = 0
    fields = ['sender', 'sender_type', 'message_type', 'message', 'is_read', 'created_at']
    readonly_fields = ['created_at']


@admin.register(LeadAccess)
class LeadAccessAdmin(admin.ModelAdmin):
    list_display = [
        'id', 'contractor', 'service_request', 'lead_type', 'lead_price',
        'payment_status', 'chat_enabled', 'purchased_at', 'expires_at',
    ]
    list_filter = ['lead_type', 'payment_status', 'chat_enabled']
    search_fields = ['contractor__email', 'service_request__request_id', 'payment_intent_id']
    raw_id_fields = ['contractor', 'service_request']
    readonly_fields = ['payment_intent_id', 'purchased_at', 'created_at', 'updated_at']
    inlines = [LeadChatMessageInline]


@admin.register(LeadChatMessage)
class LeadChatMessageAdmin(admin.ModelAdmin):
    list_display = ['id', 'service_request', 'sender_type', 'message_type', 'is_read', 'created_at']
    list_filter = ['sender_type', 'message_type', 'is_read']
    search_fields = ['message', 'service_request__request_id']
    raw_id_fields = ['service_request', 'lead_access', 'sender']
