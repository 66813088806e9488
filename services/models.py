"""
Services Models - service requests and contractor bids.

A customer files a ServiceRequest. Contractors answer with Bids; at most one
non-expired bid per (request, contractor). Accepting a bid selects the
contractor and moves the request forward:

    pending -> finding_contractors -> contractor_selected -> in_progress -> completed
    (any non-terminal status) -> cancelled

The request also mirrors the escrow payment status for quick lookups.
"""

import random
from decimal import Decimal

from django.conf import settings
from django.core.validators import MaxLengthValidator, MinValueValidator
from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from accounts.models import ServiceType
from core.exceptions import InvalidStatusTransition
from core.models import TimestampedModel


def generate_request_id() -> str:
    return f"REQ-{random.randint(10000, 99999)}"


class ServiceRequest(TimestampedModel):
    """
    A customer's request for a home-repair service.
    """

    class Status(models.TextChoices):
        PENDING = 'pending', _('Pending')
        FINDING_CONTRACTORS = 'finding_contractors', _('Finding Contractors')
        CONTRACTOR_SELECTED = 'contractor_selected', _('Contractor Selected')
        IN_PROGRESS = 'in_progress', _('In Progress')
        COMPLETED = 'completed', _('Completed')
        CANCELLED = 'cancelled', _('Cancelled')

    class Urgency(models.TextChoices):
        LOW = 'low', _('Low')
        MEDIUM = 'medium', _('Medium')
        HIGH = 'high', _('High')
        EMERGENCY = 'emergency', _('Emergency')

    class PreferredContact(models.TextChoices):
        PHONE = 'phone', _('Phone')
        EMAIL = 'email', _('Email')
        SMS = 'sms', _('SMS')

    class PaymentStatus(models.TextChoices):
        NONE = 'none', _('No Payment')
        PENDING = 'pending', _('Pending')
        AUTHORIZED = 'authorized', _('Authorized')
        COMPLETED = 'completed', _('Completed')
        RELEASED = 'released', _('Released')
        FAILED = 'failed', _('Failed')
        REFUNDED = 'refunded', _('Refunded')

    ALLOWED_TRANSITIONS = {
        Status.PENDING: {Status.FINDING_CONTRACTORS, Status.CONTRACTOR_SELECTED, Status.CANCELLED},
        Status.FINDING_CONTRACTORS: {Status.CONTRACTOR_SELECTED, Status.CANCELLED},
        Status.CONTRACTOR_SELECTED: {Status.IN_PROGRESS, Status.CANCELLED},
        Status.IN_PROGRESS: {Status.COMPLETED, Status.CANCELLED},
        Status.COMPLETED: set(),
        Status.CANCELLED: set(),
    }

    OPEN_STATUSES = (Status.PENDING, Status.FINDING_CONTRACTORS)
    # Payment states an out-of-order webhook may still move forward from
    AUTHORIZABLE_PAYMENT_STATUSES = (PaymentStatus.NONE, PaymentStatus.PENDING, PaymentStatus.FAILED)
    UNSETTLED_PAYMENT_STATUSES = (
        PaymentStatus.NONE, PaymentStatus.PENDING, PaymentStatus.AUTHORIZED, PaymentStatus.FAILED,
    )

    request_id = models.CharField(
        max_length=20,
        unique=True,
        db_index=True,
        editable=False,
        help_text=_("Public request identifier (auto-generated)")
    )
    title = models.CharField(max_length=200, blank=True)
    service_types = models.JSONField(
        default=list,
        help_text=_("ServiceType codes requested")
    )
    description = models.TextField()
    urgency = models.CharField(
        max_length=20,
        choices=Urgency.choices,
        default=Urgency.MEDIUM,
    )
    status = models.CharField(
        max_length=30,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True,
    )

    # Location
    formatted_address = models.CharField(max_length=500, blank=True)
    latitude = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)
    city = models.CharField(max_length=100, blank=True)
    state = models.CharField(max_length=100, blank=True)
    zip_code = models.CharField(max_length=20, blank=True)

    # Customer contact info
    customer_name = models.CharField(max_length=200, blank=True)
    customer_email = models.EmailField(blank=True, db_index=True)
    customer_phone = models.CharField(max_length=30, blank=True)
    preferred_contact = models.CharField(
        max_length=10,
        choices=PreferredContact.choices,
        default=PreferredContact.PHONE,
    )
    preferred_date_time = models.DateTimeField(null=True, blank=True)

    # Parties
    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='service_requests',
    )
    assigned_contractor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='assigned_requests',
    )

    # Payment
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.NONE,
    )
    payment_intent_id = models.CharField(max_length=255, blank=True)

    notes = models.TextField(blank=True)

    # Lifecycle dates
    started_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.TextField(blank=True)

    class Meta:
        verbose_name = _('Service Request')
        verbose_name_plural = _('Service Requests')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', '-created_at'], name='request_status_created_idx'),
            models.Index(fields=['customer', '-created_at'], name='request_customer_created_idx'),
            models.Index(fields=['assigned_contractor', 'status'], name='request_contractor_status_idx'),
        ]

    def __str__(self):
        return f"{self.request_id} - {self.title} ({self.get_status_display()})"

    def save(self, *args, **kwargs):
        if not self.request_id:
            self.request_id = self._unique_request_id()
        if not self.title:
            self.title = self.build_title()
        super().save(*args, **kwargs)

    @classmethod
    def _unique_request_id(cls) -> str:
        for _attempt in range(10):
            candidate = generate_request_id()
            if not cls.objects.filter(request_id=candidate).exists():
                return candidate
        raise RuntimeError("Could not allocate a unique request id")

    def build_title(self) -> str:
        if self.service_types:
            label = dict(ServiceType.choices).get(self.service_types[0], self.service_types[0])
            return f"{label} request"
        return "Service request"

    # ==================== STATUS ====================

    @property
    def is_open(self) -> bool:
        """Open requests accept bids."""
        return self.status in self.OPEN_STATUSES

    def can_transition_to(self, target: str) -> bool:
        return target in self.ALLOWED_TRANSITIONS.get(self.status, set())

    def _transition(self, target: str, extra_fields=()):
        if not self.can_transition_to(target):
            raise InvalidStatusTransition(current=self.status, target=target)
        self.status = target
        self.save(update_fields=['status', 'updated_at', *extra_fields])

    def start_search(self):
        """Mark the request as actively looking for contractors."""
        self._transition(self.Status.FINDING_CONTRACTORS)

    def select_contractor(self, contractor):
        """Assign the winning contractor."""
        self.assigned_contractor = contractor
        self._transition(self.Status.CONTRACTOR_SELECTED, extra_fields=['assigned_contractor'])

    def start_work(self):
        self.started_at = timezone.now()
        self._transition(self.Status.IN_PROGRESS, extra_fields=['started_at'])

    def complete(self):
        self.completed_at = timezone.now()
        self._transition(self.Status.COMPLETED, extra_fields=['completed_at'])

    def cancel(self, reason=''):
        self.cancelled_at = timezone.now()
        self.cancellation_reason = reason
        self._transition(self.Status.CANCELLED, extra_fields=['cancelled_at', 'cancellation_reason'])

    def set_payment_status(self, payment_status: str, payment_intent_id: str = None):
        self.payment_status = payment_status
        fields = ['payment_status', 'updated_at']
        if payment_intent_id is not None:
            self.payment_intent_id = payment_intent_id
            fields.append('payment_intent_id')
        self.save(update_fields=fields)

    # ==================== ACCESS ====================

    def is_customer(self, user) -> bool:
        return bool(user and user.is_authenticated and self.customer_id == user.id)

    def link_customer_by_email(self):
        """Attach a guest request to the registered account with the same email."""
        if self.customer_id or not self.customer_email:
            return None
        from django.contrib.auth import get_user_model

        user = get_user_model().objects.filter(email__iexact=self.customer_email).first()
        if user:
            self.customer = user
            self.save(update_fields=['customer', 'updated_at'])
        return user



class Bid(TimestampedModel):
    """
    A contractor's priced offer (quote) against a service request.
    """

    class Status(models.TextChoices):
        PENDING = 'pending', _('Pending')
        ACCEPTED = 'accepted', _('Accepted')
        REJECTED = 'rejected', _('Rejected')
        WITHDRAWN = 'withdrawn', _('Withdrawn')
        EXPIRED = 'expired', _('Expired')

    service_request = models.ForeignKey(
        ServiceRequest,
        on_delete=models.CASCADE,
        related_name='bids',
    )
    contractor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='bids',
    )
    title = models.CharField(max_length=200, blank=True)
    amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))],
    )
    description = models.TextField(validators=[MaxLengthValidator(5000)])
    estimated_duration = models.CharField(max_length=100, blank=True)
    warranty = models.CharField(max_length=200, blank=True)
    materials = models.JSONField(default=list, blank=True)
    price_breakdown = models.JSONField(
        default=dict,
        blank=True,
        help_text=_("labor, materials, additional, notes")
    )
    availability = models.CharField(max_length=200, blank=True)
    valid_until = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True)

    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True,
    )
    submitted_at = models.DateTimeField(default=timezone.now)
    accepted_at = models.DateTimeField(null=True, blank=True)
    rejected_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        verbose_name = _('Bid')
        verbose_name_plural = _('Bids')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['service_request', 'status'], name='bid_request_status_idx'),
            models.Index(fields=['contractor', '-created_at'], name='bid_contractor_created_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['service_request', 'contractor'],
                condition=~Q(status='expired'),
                name='unique_active_bid_per_contractor',
            ),
        ]

    def __str__(self):
        return f"Bid {self.pk} on {self.service_request.request_id} by {self.contractor} ({self.status})"

    def save(self, *args, **kwargs):
        if not self.title:
            self.title = f"Quote for {self.service_request.title}"
        super().save(*args, **kwargs)

    @property
    def is_pending(self) -> bool:
        return self.status == self.Status.PENDING

    @property
    def is_past_validity(self) -> bool:
        return bool(self.valid_until and timezone.now() > self.valid_until)

    def accept(self):
        self.status = self.Status.ACCEPTED
        self.accepted_at = timezone.now()
        self.save(update_fields=['status', 'accepted_at', 'updated_at'])

    def reject(self):
        self.status = self.Status.REJECTED
        self.rejected_at = timezone.now()
        self.save(update_fields=['status', 'rejected_at', 'updated_at'])

    def withdraw(self):
        self.status = self.Status.WITHDRAWN
        self.save(update_fields=['status', 'updated_at'])

    def expire(self):
        self.status = self.Status.EXPIRED
        self.save(update_fields=['status', 'updated_at'])
