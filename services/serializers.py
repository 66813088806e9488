"""
Services Serializers - service requests, bids and contractor search.
"""

from rest_framework import serializers

from accounts.models import ContractorProfile, ServiceType
from accounts.serializers import BasicUserSerializer
from core.permissions import is_platform_admin

from .models import Bid, ServiceRequest


CONTACT_FIELDS = ('customer_name', 'customer_email', 'customer_phone', 'preferred_contact')


def can_view_contact_info(user, service_request) -> bool:
    """
    Customer contact details are visible to the customer, platform admins,
    the assigned contractor, and contractors holding completed lead access.
    """
    if not user or not user.is_authenticated:
        return False
    if is_platform_admin(user) or service_request.is_customer(user):
        return True
    if service_request.assigned_contractor_id == user.id:
        return True
    if getattr(user, 'is_contractor', False):
        from leads.models import LeadAccess

        return LeadAccess.objects.active_for(user, service_request).filter(
            has_access_to_contact_info=True
        ).exists()
    return False


# =============================================================================
# SERVICE REQUEST SERIALIZERS
# =============================================================================

class ContactInfoMixin:
    """Blank out customer contact fields for viewers without access."""

    def to_representation(self, instance):
        data = super().to_representation(instance)
        request = self.context.get('request')
        user = getattr(request, 'user', None)
        if not self.context.get('reveal_contact_info') and not can_view_contact_info(user, instance):
            for field in CONTACT_FIELDS:
                if field in data:
                    data[field] = None
            data['contact_info_locked'] = True
        else:
            data['contact_info_locked'] = False
        return data


class ServiceRequestListSerializer(ContactInfoMixin, serializers.ModelSerializer):
    bid_count = serializers.SerializerMethodField()

    class Meta:
        model = ServiceRequest
        fields = [
            'id', 'request_id', 'title', 'service_types', 'urgency', 'status',
            'city', 'state', 'zip_code', 'customer_name', 'customer_email',
            'customer_phone', 'preferred_contact', 'payment_status',
            'bid_count', 'created_at',
        ]
        read_only_fields = fields

    def get_bid_count(self, obj):
        return obj.bids.exclude(status=Bid.Status.EXPIRED).count()


class ServiceRequestDetailSerializer(ContactInfoMixin, serializers.ModelSerializer):
    customer = BasicUserSerializer(read_only=True)
    assigned_contractor = BasicUserSerializer(read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    urgency_display = serializers.CharField(source='get_urgency_display', read_only=True)

    class Meta:
        model = ServiceRequest
        fields = [
            'id', 'request_id', 'title', 'service_types', 'description',
            'urgency', 'urgency_display', 'status', 'status_display',
            'formatted_address', 'latitude', 'longitude', 'city', 'state', 'zip_code',
            'customer_name', 'customer_email', 'customer_phone', 'preferred_contact',
            'preferred_date_time', 'customer', 'assigned_contractor',
            'payment_status', 'payment_intent_id', 'notes',
            'started_at', 'completed_at', 'cancelled_at', 'cancellation_reason',
            'created_at', 'updated_at',
        ]
        read_only_fields = [
            'id', 'request_id', 'status', 'customer', 'assigned_contractor',
            'payment_status', 'payment_intent_id', 'started_at', 'completed_at',
            'cancelled_at', 'cancellation_reason', 'created_at', 'updated_at',
        ]


class ServiceRequestCreateSerializer(serializers.ModelSerializer):
    service_types = serializers.ListField(
        child=serializers.ChoiceField(choices=ServiceType.choices),
        allow_empty=False,
    )
    description = serializers.CharField(max_length=5000)

    class Meta:
        model = ServiceRequest
        fields = [
            'title', 'service_types', 'description', 'urgency',
            'formatted_address', 'latitude', 'longitude', 'city', 'state', 'zip_code',
            'customer_name', 'customer_email', 'customer_phone', 'preferred_contact',
            'preferred_date_time', 'notes',
        ]

    def validate_service_types(self, value):
        # Keep first-seen order
        return list(dict.fromkeys(value))

    def validate(self, attrs):
        lat, lng = attrs.get('latitude'), attrs.get('longitude')
        if (lat is None) != (lng is None):
            raise serializers.ValidationError('latitude and longitude must be provided together')
        if lat is not None and not (-90 <= lat <= 90 and -180 <= lng <= 180):
            raise serializers.ValidationError('Invalid coordinates')
        return attrs

    def to_representation(self, instance):
        context = dict(self.context)
        if getattr(context.get('view'), 'action', None) == 'create':
            # The filer gets back the contact details they just submitted
            context['reveal_contact_info'] = True
        return ServiceRequestDetailSerializer(instance, context=context).data


class ServiceRequestCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=1000, required=False, allow_blank=True, default='')


# =============================================================================
# BID SERIALIZERS
# =============================================================================

class PriceBreakdownSerializer(serializers.Serializer):
    labor = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, min_value=0)
    materials = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, min_value=0)
    additional = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, min_value=0)
    notes = serializers.CharField(required=False, allow_blank=True, max_length=1000)

    def to_internal_value(self, data):
        value = super().to_internal_value(data)
        # JSONField storage
        return {k: (str(v) if k != 'notes' else v) for k, v in value.items()}


class BidListSerializer(serializers.ModelSerializer):
    contractor = BasicUserSerializer(read_only=True)
    service_request_id = serializers.CharField(source='service_request.request_id', read_only=True)

    class Meta:
        model = Bid
        fields = [
            'id', 'service_request', 'service_request_id', 'contractor', 'title',
            'amount', 'estimated_duration', 'status', 'submitted_at', 'created_at',
        ]
        read_only_fields = fields


class BidDetailSerializer(serializers.ModelSerializer):
    contractor = BasicUserSerializer(read_only=True)
    service_request_id = serializers.CharField(source='service_request.request_id', read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = Bid
        fields = [
            'id', 'service_request', 'service_request_id', 'contractor', 'title',
            'amount', 'description', 'estimated_duration', 'warranty', 'materials',
            'price_breakdown', 'availability', 'valid_until', 'notes',
            'status', 'status_display', 'submitted_at', 'accepted_at', 'rejected_at',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields


class BidCreateSerializer(serializers.Serializer):
    """
    Input for bid submission.

    The required trio is checked by the view so that a single combined
    message is returned.
    """
    service_request = serializers.IntegerField(required=False)
    amount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False)
    description = serializers.CharField(max_length=5000, required=False, allow_blank=True)
    title = serializers.CharField(max_length=200, required=False, allow_blank=True)
    estimated_duration = serializers.CharField(max_length=100, required=False, allow_blank=True)
    warranty = serializers.CharField(max_length=200, required=False, allow_blank=True)
    materials = serializers.ListField(child=serializers.CharField(max_length=200), required=False)
    price_breakdown = PriceBreakdownSerializer(required=False)
    availability = serializers.CharField(max_length=200, required=False, allow_blank=True)
    valid_until = serializers.DateTimeField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True)

    REQUIRED = ('service_request', 'amount', 'description')

    def to_internal_value(self, data):
        missing = [f for f in self.REQUIRED if data.get(f) in (None, '')]
        if missing:
            raise serializers.ValidationError(
                'service_request, amount, and description are required'
            )
        return super().to_internal_value(data)


# =============================================================================
# CONTRACTOR SEARCH
# =============================================================================

class LocationSerializer(serializers.Serializer):
    lat = serializers.FloatField(min_value=-90, max_value=90)
    lng = serializers.FloatField(min_value=-180, max_value=180)


class ContractorSearchSerializer(serializers.Serializer):
    services = serializers.ListField(
        child=serializers.ChoiceField(choices=ServiceType.choices),
    )
    location = LocationSerializer()
    limit = serializers.IntegerField(min_value=1, max_value=100, required=False)

    def to_internal_value(self, data):
        if not isinstance(data.get('services'), list) or not data.get('services'):
            raise serializers.ValidationError('Services array is required')
        location = data.get('location')
        if (
            not isinstance(location, dict)
            or isinstance(location.get('lat'), bool)
            or isinstance(location.get('lng'), bool)
            or not isinstance(location.get('lat'), (int, float))
            or not isinstance(location.get('lng'), (int, float))
        ):
            raise serializers.ValidationError('Valid location with lat and lng is required')
        return super().to_internal_value(data)


class ContractorSearchResultSerializer(serializers.Serializer):
    """One ranked contractor profile with its distance in km."""
    id = serializers.IntegerField(source='profile.user_id')
    profile_id = serializers.IntegerField(source='profile.id')
    business_name = serializers.CharField(source='profile.business_name')
    services = serializers.ListField(source='profile.services')
    rating = serializers.DecimalField(source='profile.rating', max_digits=3, decimal_places=2)
    review_count = serializers.IntegerField(source='profile.review_count')
    years_experience = serializers.IntegerField(source='profile.years_experience')
    has_license = serializers.BooleanField(source='profile.has_license')
    is_verified = serializers.BooleanField(source='profile.is_verified')
    city = serializers.CharField(source='profile.city')
    state = serializers.CharField(source='profile.state')
    distance = serializers.FloatField()


class ContractorDirectorySerializer(serializers.ModelSerializer):
    """
    Public directory entry.

    Contact details, street address, coordinates and Stripe fields stay
    private.
    """
    contractor_id = serializers.IntegerField(source='user_id', read_only=True)

    class Meta:
        model = ContractorProfile
        fields = [
            'id', 'contractor_id', 'business_name', 'description', 'services',
            'city', 'state', 'zip_code', 'years_experience', 'has_license',
            'rating', 'review_count', 'is_verified', 'is_available',
        ]
        read_only_fields = fields
