"""
Leads Models - paid lead access and lead chat.

A contractor buys access to one service request. Completed, unexpired
access unlocks the customer's contact details and the chat thread with
that customer.
"""

from datetime import timedelta

from django.conf import settings
from django.core.validators import MaxLengthValidator
from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from core.models import TimestampedModel


class LeadAccessQuerySet(models.QuerySet):

    def completed(self):
        return self.filter(payment_status=LeadAccess.PaymentStatus.COMPLETED)

    def unexpired(self):
        now = timezone.now()
        return self.filter(Q(expires_at__isnull=True) | Q(expires_at__gt=now))

    def active_for(self, contractor, service_request):
        """Completed, unexpired access of a contractor to a request."""
        return self.completed().unexpired().filter(
            contractor=contractor,
            service_request=service_request,
        )

    def chat_enabled(self):
        return self.completed().unexpired().filter(chat_enabled=True)

    def blocking(self):
        """Records that prevent buying the same lead again."""
        return self.filter(payment_status__in=LeadAccess.BLOCKING_STATUSES)


class LeadAccess(TimestampedModel):
    """
    A contractor's paid access to one service request.
    """

    class LeadType(models.TextChoices):
        BASIC = 'basic', _('Basic Lead')
        PREMIUM = 'premium', _('Premium Lead')
        SPECIALIZED = 'specialized', _('Specialized Lead')

    class PaymentStatus(models.TextChoices):
        PENDING = 'pending', _('Pending')
        COMPLETED = 'completed', _('Completed')
        FAILED = 'failed', _('Failed')
        REFUNDED = 'refunded', _('Refunded')

    BLOCKING_STATUSES = (PaymentStatus.PENDING, PaymentStatus.COMPLETED)

    contractor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='lead_accesses',
    )
    service_request = models.ForeignKey(
        'services.ServiceRequest',
        on_delete=models.CASCADE,
        related_name='lead_accesses',
    )
    lead_type = models.CharField(
        max_length=20,
        choices=LeadType.choices,
        default=LeadType.BASIC,
    )
    lead_price = models.PositiveIntegerField(help_text=_("Price paid in whole dollars"))

    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
        db_index=True,
    )
    payment_intent_id = models.CharField(max_length=255, blank=True, db_index=True)

    has_access_to_contact_info = models.BooleanField(default=False)
    chat_enabled = models.BooleanField(default=False)
    purchased_at = models.DateTimeField(null=True, blank=True)
    expires_at = models.DateTimeField(null=True, blank=True)
    contact_attempts = models.PositiveIntegerField(default=0)
    notes = models.TextField(blank=True)

    objects = LeadAccessQuerySet.as_manager()

    class Meta:
        verbose_name = _('Lead Access')
        verbose_name_plural = _('Lead Access')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['contractor', 'service_request'], name='lead_contractor_request_idx'),
            models.Index(fields=['service_request', 'payment_status'], name='lead_request_status_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['contractor', 'service_request'],
                condition=Q(payment_status__in=['pending', 'completed']),
                name='unique_open_lead_access',
            ),
        ]

    def __str__(self):
        return f"{self.contractor} -> {self.service_request.request_id} ({self.payment_status})"

    @property
    def is_expired(self) -> bool:
        return bool(self.expires_at and timezone.now() >= self.expires_at)

    @property
    def is_active(self) -> bool:
        return self.payment_status == self.PaymentStatus.COMPLETED and not self.is_expired

    @property
    def can_chat(self) -> bool:
        return self.is_active and self.chat_enabled

    def mark_completed(self):
        """Unlock contact info and chat for the access period."""
        now = timezone.now()
        self.payment_status = self.PaymentStatus.COMPLETED
        self.has_access_to_contact_info = True
        self.chat_enabled = True
        self.purchased_at = self.purchased_at or now
        self.expires_at = now + timedelta(days=settings.LEAD_ACCESS_DURATION_DAYS)
        self.save(update_fields=[
            'payment_status', 'has_access_to_contact_info', 'chat_enabled',
            'purchased_at', 'expires_at', 'updated_at',
        ])

    def mark_failed(self, reason=''):
        self.payment_status = self.PaymentStatus.FAILED
        self.has_access_to_contact_info = False
        self.chat_enabled = False
        if reason:
            self.notes = reason
        self.save(update_fields=[
            'payment_status', 'has_access_to_contact_info', 'chat_enabled', 'notes', 'updated_at',
        ])

    def record_contact_attempt(self):
        self.contact_attempts = models.F('contact_attempts') + 1
        self.save(update_fields=['contact_attempts', 'updated_at'])
        self.refresh_from_db(fields=['contact_attempts'])


class LeadChatMessage(TimestampedModel):
    """
    One message in the chat between a customer and a contractor holding
    lead access.
    """

    class SenderType(models.TextChoices):
        CUSTOMER = 'customer', _('Customer')
        CONTRACTOR = 'contractor', _('Contractor')
        SYSTEM = 'system', _('System')

    class MessageType(models.TextChoices):
        TEXT = 'text', _('Text Message')
        QUOTE = 'quote', _('Quote/Estimate')
        SCHEDULE = 'schedule', _('Schedule Request')
        CONTACT = 'contact', _('Contact Information')
        SYSTEM = 'system', _('System Message')

    service_request = models.ForeignKey(
        'services.ServiceRequest',
        on_delete=models.CASCADE,
        related_name='lead_messages',
    )
    lead_access = models.ForeignKey(
        LeadAccess,
        on_delete=models.CASCADE,
        related_name='messages',
    )
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='lead_messages_sent',
    )
    sender_type = models.CharField(max_length=20, choices=SenderType.choices)
    message = models.TextField(validators=[MaxLengthValidator(1000)])
    message_type = models.CharField(
        max_length=20,
        choices=MessageType.choices,
        default=MessageType.TEXT,
    )
    is_read = models.BooleanField(default=False)
    read_at = models.DateTimeField(null=True, blank=True)
    quote_info = models.JSONField(
        null=True,
        blank=True,
        help_text=_("amount, valid_until, includes_labor, includes_materials")
    )

    class Meta:
        verbose_name = _('Lead Chat Message')
        verbose_name_plural = _('Lead Chat Messages')
        ordering = ['created_at']
        indexes = [
            models.Index(fields=['service_request', 'created_at'], name='leadchat_request_created_idx'),
            models.Index(fields=['lead_access', 'created_at'], name='leadchat_access_created_idx'),
        ]

    def __str__(self):
        return f"{self.sender_type}: {self.message[:50]}"
