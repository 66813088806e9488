"""
Escrow App Models - funds held for marketplace jobs.

A customer authorizes the job amount with a manual-capture PaymentIntent.
The funds stay on hold until the customer releases them once the job is
completed, or until the payment is refunded.
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from core.models import TimestampedModel


class EscrowPayment(TimestampedModel):
    """
    Escrowed payment for one service request.
    """

    class Status(models.TextChoices):
        PENDING = 'pending', _('Pending')
        AUTHORIZED = 'authorized', _('Authorized')
        RELEASED = 'released', _('Released')
        REFUNDED = 'refunded', _('Refunded')
        FAILED = 'failed', _('Failed')
        CANCELLED = 'cancelled', _('Cancelled')

    RELEASABLE_STATUSES = (Status.PENDING, Status.AUTHORIZED)
    FINAL_STATUSES = (Status.RELEASED, Status.REFUNDED, Status.FAILED, Status.CANCELLED)
    SETTLED_STATUSES = (Status.RELEASED, Status.REFUNDED, Status.CANCELLED)

    escrow_id = models.CharField(
        max_length=32,
        unique=True,
        db_index=True,
        editable=False,
        help_text=_("Unique escrow identifier (auto-generated)")
    )

    service_request = models.ForeignKey(
        'services.ServiceRequest',
        on_delete=models.PROTECT,
        related_name='escrow_payments',
    )
    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='escrow_payments_made',
    )
    contractor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='escrow_payments_received',
    )

    amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))],
    )
    currency = models.CharField(max_length=3, default='usd')

    stripe_payment_intent_id = models.CharField(max_length=255, unique=True, null=True, blank=True)

    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True,
    )
    authorized_at = models.DateTimeField(null=True, blank=True)
    released_at = models.DateTimeField(null=True, blank=True)
    refunded_at = models.DateTimeField(null=True, blank=True)
    failure_message = models.TextField(blank=True)
    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        verbose_name = _('Escrow Payment')
        verbose_name_plural = _('Escrow Payments')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', '-created_at'], name='escrow_status_created_idx'),
            models.Index(fields=['customer', '-created_at'], name='escrow_customer_created_idx'),
            models.Index(fields=['contractor', '-created_at'], name='escrow_contractor_created_idx'),
        ]

    def __str__(self):
        return f"Escrow {self.escrow_id} - {self.amount} {self.currency.upper()} ({self.get_status_display()})"

    def save(self, *args, **kwargs):
        if not self.escrow_id:
            self.escrow_id = f"ESC-{uuid.uuid4().hex[:16].upper()}"
        super().save(*args, **kwargs)

    @property
    def amount_cents(self) -> int:
        return int((self.amount * 100).to_integral_value())

    @property
    def is_releasable(self) -> bool:
        return self.status in self.RELEASABLE_STATUSES

    @property
    def is_captured(self) -> bool:
        return self.status == self.Status.RELEASED

    def mark_authorized(self):
        if self.status != self.Status.PENDING:
            return False
        self.status = self.Status.AUTHORIZED
        self.authorized_at = timezone.now()
        self.save(update_fields=['status', 'authorized_at', 'updated_at'])
        return True

    def mark_released(self):
        self.status = self.Status.RELEASED
        self.released_at = self.released_at or timezone.now()
        self.save(update_fields=['status', 'released_at', 'updated_at'])

    def mark_refunded(self):
        self.status = self.Status.REFUNDED
        self.refunded_at = timezone.now()
        self.save(update_fields=['status', 'refunded_at', 'updated_at'])

    def mark_failed(self, message=''):
        if self.status in self.FINAL_STATUSES:
            return False
        self.status = self.Status.FAILED
        self.failure_message = message
        self.save(update_fields=['status', 'failure_message', 'updated_at'])
        return True

    def mark_cancelled(self):
        self.status = self.Status.CANCELLED
        self.save(update_fields=['status', 'updated_at'])


class StripeWebhookEvent(models.Model):
    """
    Logs Stripe webhook notifications for audit and duplicate detection.
    """
    event_id = models.CharField(max_length=255, unique=True)
    event_type = models.CharField(max_length=100, blank=True, db_index=True)
    json_payload = models.JSONField()
    received_at = models.DateTimeField(auto_now_add=True)
    processed = models.BooleanField(default=False)
    processed_at = models.DateTimeField(null=True, blank=True)
    error_message = models.TextField(blank=True, null=True)

    class Meta:
        ordering = ['-received_at']
        verbose_name = _('Stripe Webhook Event')
        verbose_name_plural = _('Stripe Webhook Events')

    def __str__(self):
        return f"Stripe event {self.event_id} ({self.event_type}) - Processed: {self.processed}"

    def mark_processed(self):
        self.processed = True
        self.processed_at = timezone.now()
        self.error_message = None
        self.save(update_fields=['processed', 'processed_at', 'error_message'])

    def mark_failed(self, error_message: str):
        self.error_message = error_message
        self.save(update_fields=['error_message'])
