"""
Leads Serializers.
"""

from rest_framework import serializers

from .models import LeadAccess, LeadChatMessage


class LeadAccessSerializer(serializers.ModelSerializer):
    request_id = serializers.CharField(source='service_request.request_id', read_only=True)

    class Meta:
        model = LeadAccess
        fields = [
            'id', 'contractor', 'service_request', 'request_id', 'lead_type',
            'lead_price', 'payment_status', 'payment_intent_id',
            'has_access_to_contact_info', 'chat_enabled', 'purchased_at',
            'expires_at', 'contact_attempts', 'created_at',
        ]
        read_only_fields = fields


class LeadPurchaseSerializer(serializers.Serializer):
    """
    Input for buying lead access.

    Required fields are checked together for a single error message.
    """
    service_request = serializers.IntegerField(required=False)
    payment_method_id = serializers.CharField(max_length=255, required=False)
    lead_type = serializers.ChoiceField(
        choices=LeadAccess.LeadType.choices,
        default=LeadAccess.LeadType.BASIC,
    )

    def to_internal_value(self, data):
        if not data.get('service_request') or not data.get('payment_method_id'):
            raise serializers.ValidationError('service_request and payment_method_id are required')
        return super().to_internal_value(data)


class LeadPriceQuerySerializer(serializers.Serializer):
    service_request = serializers.IntegerField()
    lead_type = serializers.ChoiceField(
        choices=LeadAccess.LeadType.choices,
        default=LeadAccess.LeadType.BASIC,
    )


class LeadChatQuerySerializer(serializers.Serializer):
    service_request = serializers.IntegerField()
    contractor = serializers.IntegerField(required=False)


class QuoteInfoSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    valid_until = serializers.DateTimeField(required=False, allow_null=True)
    includes_labor = serializers.BooleanField(default=True)
    includes_materials = serializers.BooleanField(default=False)

    def to_internal_value(self, data):
        value = super().to_internal_value(data)
        value['amount'] = str(value['amount'])
        if value.get('valid_until'):
            value['valid_until'] = value['valid_until'].isoformat()
        return value


class LeadChatMessageSerializer(serializers.ModelSerializer):
    sender_name = serializers.SerializerMethodField()

    class Meta:
        model = LeadChatMessage
        fields = [
            'id', 'service_request', 'lead_access', 'sender', 'sender_name',
            'sender_type', 'message', 'message_type', 'quote_info',
            'is_read', 'read_at', 'created_at',
        ]
        read_only_fields = fields

    def get_sender_name(self, obj):
        if obj.sender is None:
            return 'HomeFix'
        return obj.sender.get_full_name() or obj.sender.email


class LeadChatMessageCreateSerializer(serializers.Serializer):
    service_request = serializers.IntegerField()
    message = serializers.CharField(max_length=1000)
    message_type = serializers.ChoiceField(
        choices=[
            c for c in LeadChatMessage.MessageType.choices
            if c[0] != LeadChatMessage.MessageType.SYSTEM
        ],
        default=LeadChatMessage.MessageType.TEXT,
    )
    quote_info = QuoteInfoSerializer(required=False, allow_null=True)
    contractor = serializers.IntegerField(required=False, allow_null=True)

    def validate(self, attrs):
        if attrs.get('message_type') == LeadChatMessage.MessageType.QUOTE and not attrs.get('quote_info'):
            raise serializers.ValidationError({'quote_info': ['Quote messages need quote_info']})
        return attrs
