"""
Notification Services.

`notify()` is the single entry point the marketplace apps use to create a
notification. In-app delivery is the persisted row itself, which clients
poll. E-mail delivery is queued on the notifications Celery queue once the
surrounding transaction commits.
"""

import logging
from typing import Any, Dict, Iterable, Optional

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.mail import EmailMultiAlternatives
from django.db import transaction
from django.utils import timezone

from .models import Notification

logger = logging.getLogger(__name__)
User = get_user_model()

DEFAULT_CHANNELS = [Notification.Channel.IN_APP]


def notify(
    recipient: User,
    notification_type: str,
    title: str,
    message: str,
    priority: str = Notification.Priority.NORMAL,
    channels: Optional[Iterable[str]] = None,
    data: Optional[Dict[str, Any]] = None,
    service_request=None,
    action_label: str = '',
    action_url: str = '',
) -> Notification:
    """
    Create a notification for a user.

    Args:
        recipient: User receiving the notification
        notification_type: One of Notification.Type
        title: Short title (max 200 chars)
        message: Body text (max 1000 chars)
        priority: One of Notification.Priority
        channels: Delivery channels, defaults to in_app only
        data: Extra JSON payload for the client
        service_request: Related service request, if any

    Returns:
        The created Notification
    """
    notification = Notification.objects.create(
        recipient=recipient,
        notification_type=notification_type,
        title=title[:200],
        message=message[:1000],
        priority=priority,
        channels=list(channels) if channels else list(DEFAULT_CHANNELS),
        data=data or {},
        service_request=service_request,
        action_label=action_label,
        action_url=action_url,
    )

    logger.info(
        f"Notification {notification.pk} ({notification_type}) created for user {recipient.pk}"
    )

    if notification.wants_email:
        from .tasks import send_notification_email

        transaction.on_commit(lambda: send_notification_email.delay(notification.pk))

    return notification


def send_email(notification: Notification) -> None:
    """
    Send a notification by e-mail.

    Raises:
        ValueError: when the recipient has no e-mail address
    """
    recipient_email = notification.recipient.email
    if not recipient_email:
        raise ValueError("Recipient has no email address")

    body = notification.message
    if notification.action_url:
        body = f"{body}\n\n{notification.action_label or 'Open'}: {settings.SITE_URL}{notification.action_url}"

    email = EmailMultiAlternatives(
        subject=notification.title,
        body=body,
        from_email=getattr(settings, 'DEFAULT_FROM_EMAIL', 'noreply@example.com'),
        to=[recipient_email],
        headers={
            'X-Notification-ID': str(notification.uuid),
            'X-Notification-Type': notification.notification_type,
        }
    )
    email.send(fail_silently=False)
    notification.mark_email_sent()


def get_unread_count(user: User) -> int:
    return Notification.objects.filter(recipient=user, is_read=False).count()


def mark_all_as_read(user: User) -> int:
    """Mark every unread notification of the user as read; returns the count."""
    return Notification.objects.filter(recipient=user, is_read=False).update(
        is_read=True,
        read_at=timezone.now(),
        updated_at=timezone.now(),
    )
