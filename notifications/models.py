"""
Notifications Models.

In-app notifications polled by clients, with optional e-mail delivery.
"""

import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class Notification(models.Model):
    """
    Individual notification for one recipient.
    """

    class Type(models.TextChoices):
        QUOTE_RECEIVED = 'quote_received', _('Quote Received')
        QUOTE_ACCEPTED = 'quote_accepted', _('Quote Accepted')
        QUOTE_REJECTED = 'quote_rejected', _('Quote Rejected')
        JOB_ASSIGNED = 'job_assigned', _('Job Assigned')
        JOB_COMPLETED = 'job_completed', _('Job Completed')
        PAYMENT_RECEIVED = 'payment_received', _('Payment Received')
        PAYMENT_RELEASED = 'payment_released', _('Payment Released')
        SYSTEM_UPDATE = 'system_update', _('System Update')
        PROFILE_VERIFIED = 'profile_verified', _('Profile Verified')

    class Priority(models.TextChoices):
        LOW = 'low', _('Low')
        NORMAL = 'normal', _('Normal')
        HIGH = 'high', _('High')
        URGENT = 'urgent', _('Urgent')

    class Channel(models.TextChoices):
        IN_APP = 'in_app', _('In-App')
        WEB_PUSH = 'web_push', _('Web Push')
        EMAIL = 'email', _('Email')
        SMS = 'sms', _('SMS')

    uuid = models.UUIDField(default=uuid.uuid4, editable=False, unique=True)

    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='notifications',
        help_text=_("User who receives this notification")
    )
    notification_type = models.CharField(
        max_length=30,
        choices=Type.choices,
        default=Type.SYSTEM_UPDATE,
        db_index=True
    )

    # Content
    title = models.CharField(max_length=200)
    message = models.TextField(max_length=1000)
    action_label = models.CharField(max_length=100, blank=True)
    action_url = models.CharField(max_length=500, blank=True)
    data = models.JSONField(default=dict, blank=True)

    priority = models.CharField(
        max_length=10,
        choices=Priority.choices,
        default=Priority.NORMAL
    )
    channels = models.JSONField(
        default=list,
        blank=True,
        help_text=_("Delivery channels (in_app, web_push, email, sms)")
    )

    service_request = models.ForeignKey(
        'services.ServiceRequest',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='notifications',
    )

    # Read tracking
    is_read = models.BooleanField(default=False, db_index=True)
    read_at = models.DateTimeField(null=True, blank=True)

    # Delivery tracking
    email_sent_at = models.DateTimeField(null=True, blank=True)
    error_message = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['recipient', '-created_at'], name='notif_recipient_created_idx'),
            models.Index(fields=['recipient', 'is_read'], name='notif_recipient_read_idx'),
        ]
        verbose_name = _('Notification')
        verbose_name_plural = _('Notifications')

    def __str__(self):
        return f"{self.notification_type}: {self.title} -> {self.recipient}"

    def mark_as_read(self):
        """Mark notification as read."""
        if not self.is_read:
            self.is_read = True
            self.read_at = timezone.now()
            self.save(update_fields=['is_read', 'read_at', 'updated_at'])

    def mark_as_unread(self):
        """Mark notification as unread."""
        if self.is_read:
            self.is_read = False
            self.read_at = None
            self.save(update_fields=['is_read', 'read_at', 'updated_at'])

    def mark_email_sent(self):
        self.email_sent_at = timezone.now()
        self.error_message = ''
        self.save(update_fields=['email_sent_at', 'error_message', 'updated_at'])

    def mark_email_failed(self, error_message: str):
        self.error_message = error_message
        self.save(update_fields=['error_message', 'updated_at'])

    @property
    def wants_email(self) -> bool:
        return self.Channel.EMAIL in (self.channels or [])
