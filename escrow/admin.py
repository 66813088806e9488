"""
Escrow Admin - Marketplace Escrow Management
"""

from django.contrib import admin
from django.utils.html import format_html

from .models import EscrowPayment, StripeWebhookEvent


@admin.register(EscrowPayment)
class EscrowPaymentAdmin(admin.ModelAdmin):
    list_display = [
        "escrow_id",
        "service_request",
        "customer",
        "contractor",
        "amount_display",
        "status_display",
        "created_at",
    ]
    list_filter = ["status", "created_at"]
    search_fields = [
        "escrow_id",
        "stripe_payment_intent_id",
        "service_request__request_id",
        "customer__email",
        "contractor__email",
    ]
    raw_id_fields = ["service_request", "customer", "contractor"]
    readonly_fields = [
        "escrow_id",
        "stripe_payment_intent_id",
        "authorized_at",
        "released_at",
        "refunded_at",
        "created_at",
        "updated_at",
    ]
    date_hierarchy = "created_at"

    def status_display(self, obj):
        colors = {
            "pending": "orange",
            "authorized": "blue",
            "released": "green",
            "refunded": "purple",
            "failed": "red",
            "cancelled": "gray",
        }
        color = colors.get(obj.status, "black")
        return format_html(
            '<span style="color: {}; font-weight: bold;">{}</span>',
            color,
            obj.get_status_display(),
        )

    status_display.short_description = "Status"

    def amount_display(self, obj):
        return f"{obj.currency.upper()} {obj.amount}"

    amount_display.short_description = "Amount"


@admin.register(StripeWebhookEvent)
class StripeWebhookEventAdmin(admin.ModelAdmin):
    list_display = ["event_id", "event_type", "processed", "received_at", "processed_at"]
    list_filter = ["processed", "event_type"]
    search_fields = ["event_id"]
    readonly_fields = ["event_id", "event_type", "json_payload", "received_at", "processed_at", "error_message"]
