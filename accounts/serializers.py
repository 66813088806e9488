"""
Accounts Serializers - users, registration and contractor profiles.
"""

from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.utils.translation import gettext_lazy as _
from rest_framework import serializers

from .models import ContractorProfile, ServiceType

User = get_user_model()


# ==================== USER SERIALIZERS ====================

class BasicUserSerializer(serializers.ModelSerializer):
    """Minimal user information for nested serialization."""

    full_name = serializers.CharField(source='display_name', read_only=True)

    class Meta:
        model = User
        fields = ['id', 'email', 'first_name', 'last_name', 'full_name', 'role']
        read_only_fields = fields


class UserSerializer(serializers.ModelSerializer):
    """The authenticated user's own account."""

    class Meta:
        model = User
        fields = [
            'id', 'uuid', 'email', 'username', 'first_name', 'last_name',
            'phone', 'role', 'stripe_account_id', 'stripe_onboarding_complete',
            'date_joined',
        ]
        read_only_fields = [
            'id', 'uuid', 'email', 'role', 'stripe_account_id',
            'stripe_onboarding_complete', 'date_joined',
        ]


class UserRegistrationSerializer(serializers.ModelSerializer):
    """
    User registration serializer with password validation.

    Only the client and contractor roles can be self-assigned.
    """
    password = serializers.CharField(
        write_only=True,
        required=True,
        validators=[validate_password],
        style={'input_type': 'password'}
    )
    password_confirm = serializers.CharField(
        write_only=True,
        required=True,
        style={'input_type': 'password'}
    )
    role = serializers.ChoiceField(
        choices=User.Role.choices,
        default=User.Role.CLIENT
    )

    class Meta:
        model = User
        fields = [
            'email', 'username', 'first_name', 'last_name', 'phone',
            'role', 'password', 'password_confirm',
        ]
        extra_kwargs = {
            'email': {'required': True},
            'username': {'required': False},
        }

    def validate_email(self, value):
        """Ensure email is unique."""
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError(
                _("A user with this email already exists.")
            )
        return value.lower()

    def validate_role(self, value):
        if value not in (User.Role.CLIENT, User.Role.CONTRACTOR):
            raise serializers.ValidationError(
                _("Only client and contractor accounts can be registered.")
            )
        return value

    def validate(self, attrs):
        """Validate passwords match."""
        if attrs['password'] != attrs['password_confirm']:
            raise serializers.ValidationError({
                'password_confirm': _("Passwords do not match.")
            })
        return attrs

    def create(self, validated_data):
        validated_data.pop('password_confirm')
        password = validated_data.pop('password')
        return User.objects.create_user(password=password, **validated_data)


# ==================== CONTRACTOR PROFILE SERIALIZERS ====================

class ContractorProfileSerializer(serializers.ModelSerializer):
    """Contractor directory profile."""

    user = BasicUserSerializer(read_only=True)
    services = serializers.ListField(
        child=serializers.ChoiceField(choices=ServiceType.choices),
        allow_empty=False,
    )

    class Meta:
        model = ContractorProfile
        fields = [
            'id', 'user', 'business_name', 'description', 'services',
            'formatted_address', 'latitude', 'longitude', 'city', 'state', 'zip_code',
            'years_experience', 'has_license', 'rating', 'review_count',
            'is_available', 'is_verified', 'created_at', 'updated_at',
        ]
        read_only_fields = [
            'id', 'user', 'rating', 'review_count', 'is_verified',
            'created_at', 'updated_at',
        ]

    def validate_services(self, value):
        # Keep order, drop duplicates
        return list(dict.fromkeys(value))
