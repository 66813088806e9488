"""
Escrow API Serializers
"""

from django.contrib.auth import get_user_model
from rest_framework import serializers

from services.models import ServiceRequest

from ..models import EscrowPayment

User = get_user_model()


class EscrowPaymentListSerializer(serializers.ModelSerializer):
    """Lightweight escrow payment list serializer"""
    customer_email = serializers.EmailField(source='customer.email', read_only=True)
    contractor_email = serializers.EmailField(source='contractor.email', read_only=True, default=None)
    request_id = serializers.CharField(source='service_request.request_id', read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = EscrowPayment
        fields = [
            'id',
            'escrow_id',
            'service_request',
            'request_id',
            'amount',
            'currency',
            'customer_email',
            'contractor_email',
            'status',
            'status_display',
            'created_at',
        ]
        read_only_fields = fields


class EscrowPaymentDetailSerializer(serializers.ModelSerializer):
    """Detailed escrow payment serializer"""
    customer_email = serializers.EmailField(source='customer.email', read_only=True)
    contractor_email = serializers.EmailField(source='contractor.email', read_only=True, default=None)
    request_id = serializers.CharField(source='service_request.request_id', read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    is_releasable = serializers.BooleanField(read_only=True)

    class Meta:
        model = EscrowPayment
        fields = [
            'id',
            'escrow_id',
            'service_request',
            'request_id',
            'customer',
            'customer_email',
            'contractor',
            'contractor_email',
            'amount',
            'currency',
            'stripe_payment_intent_id',
            'status',
            'status_display',
            'is_releasable',
            'authorized_at',
            'released_at',
            'refunded_at',
            'failure_message',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class EscrowPaymentCreateSerializer(serializers.Serializer):
    """Input for funding a service request."""
    service_request = serializers.PrimaryKeyRelatedField(queryset=ServiceRequest.objects.all())
    amount = serializers.DecimalField(max_digits=10, decimal_places=2)
    contractor = serializers.PrimaryKeyRelatedField(
        queryset=User.objects.filter(role=User.Role.CONTRACTOR),
        required=False,
        allow_null=True,
    )


class ConnectAccountSerializer(serializers.Serializer):
    """Optional onboarding return/refresh URLs."""
    refresh_url = serializers.URLField(required=False)
    return_url = serializers.URLField(required=False)
