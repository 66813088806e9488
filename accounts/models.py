"""
Accounts Models - marketplace users and contractor profiles.

The user model carries the marketplace role and the optional Stripe
Connect account id. Contractors additionally own a ContractorProfile with
the services they offer and their coordinates, which drives distance
ranking in contractor search.
"""

import uuid

from django.contrib.auth.models import AbstractUser, UserManager
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _

from core.models import TimestampedModel


class ServiceType(models.TextChoices):
    """Service categories offered on the marketplace."""
    PLUMBING = 'plumbing', _('Plumbing')
    ELECTRICAL = 'electrical', _('Electrical')
    GLASS = 'glass', _('Windows & Glass')
    HVAC = 'hvac', _('HVAC')
    PESTS = 'pests', _('Pest Control')
    LOCKSMITH = 'locksmith', _('Locksmith')
    ROOFING = 'roofing', _('Roofing')
    SIDING = 'siding', _('Siding')
    GENERAL = 'general', _('General Repairs')


class MarketplaceUserManager(UserManager):
    """User manager that derives a username from the email when missing."""

    def _create_user(self, username, email, password, **extra_fields):
        if not username:
            username = (email or '').split('@')[0] + '-' + uuid.uuid4().hex[:6]
        return super()._create_user(username, email, password, **extra_fields)

    def create_user(self, email=None, password=None, username=None, **extra_fields):
        return super().create_user(username, email, password, **extra_fields)

    def create_superuser(self, email=None, password=None, username=None, **extra_fields):
        extra_fields.setdefault('role', User.Role.SUPERADMIN)
        return super().create_superuser(username, email, password, **extra_fields)


class User(AbstractUser):
    """
    Marketplace user. Email is the login.
    """

    class Role(models.TextChoices):
        ADMIN = 'admin', _('Admin')
        SUPERADMIN = 'superadmin', _('Super Admin')
        CONTRACTOR = 'contractor', _('Contractor')
        CLIENT = 'client', _('Client')

    uuid = models.UUIDField(
        default=uuid.uuid4,
        editable=False,
        unique=True,
        db_index=True,
    )
    email = models.EmailField(
        unique=True,
        db_index=True,
        help_text=_('Email address (used for login)')
    )
    role = models.CharField(
        max_length=20,
        choices=Role.choices,
        default=Role.CLIENT,
        db_index=True,
    )
    phone = models.CharField(max_length=30, blank=True)

    # Stripe Connect
    stripe_account_id = models.CharField(
        max_length=255,
        blank=True,
        default='',
        help_text=_('Stripe Connect Express account id (contractors)')
    )
    stripe_onboarding_complete = models.BooleanField(
        default=False,
        help_text=_('Charges and payouts enabled on the connected account')
    )

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['username']

    objects = MarketplaceUserManager()

    class Meta:
        verbose_name = _('User')
        verbose_name_plural = _('Users')
        ordering = ['email']

    def __str__(self):
        return self.email

    @property
    def display_name(self):
        return self.get_full_name() or self.email

    @property
    def is_contractor(self):
        return self.role == self.Role.CONTRACTOR

    @property
    def is_client(self):
        return self.role == self.Role.CLIENT

    @property
    def is_platform_admin(self):
        return self.is_staff or self.is_superuser or self.role in (self.Role.ADMIN, self.Role.SUPERADMIN)


class ContractorProfile(TimestampedModel):
    """
    Public directory entry of a contractor.

    `services` holds ServiceType codes.
    """

    user = models.OneToOneField(
        User,
        on_delete=models.CASCADE,
        related_name='contractor_profile',
    )
    business_name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    services = models.JSONField(default=list, blank=True)

    # Location
    formatted_address = models.CharField(max_length=500, blank=True)
    latitude = models.FloatField(
        null=True,
        blank=True,
        validators=[MinValueValidator(-90.0), MaxValueValidator(90.0)],
    )
    longitude = models.FloatField(
        null=True,
        blank=True,
        validators=[MinValueValidator(-180.0), MaxValueValidator(180.0)],
    )
    city = models.CharField(max_length=100, blank=True)
    state = models.CharField(max_length=100, blank=True)
    zip_code = models.CharField(max_length=20, blank=True)

    # Business details
    years_experience = models.PositiveIntegerField(default=0)
    has_license = models.BooleanField(default=False)
    rating = models.DecimalField(
        max_digits=3,
        decimal_places=2,
        default=0,
        validators=[MinValueValidator(0), MaxValueValidator(5)],
    )
    review_count = models.PositiveIntegerField(default=0)

    is_available = models.BooleanField(default=True, db_index=True)
    is_verified = models.BooleanField(default=False)

    class Meta:
        verbose_name = _('Contractor Profile')
        verbose_name_plural = _('Contractor Profiles')
        ordering = ['business_name']
        indexes = [
            models.Index(fields=['is_available', 'business_name'], name='contractor_avail_name_idx'),
        ]

    def __str__(self):
        return self.business_name

    @property
    def coordinates(self):
        if self.latitude is None or self.longitude is None:
            return None
        return (self.latitude, self.longitude)

    def offers_any(self, service_types) -> bool:
        return bool(set(self.services or []) & set(service_types))
