"""
Celery tasks for notification delivery and housekeeping.
"""

import logging
from datetime import timedelta
from typing import Any, Dict

from celery import shared_task
from django.conf import settings
from django.utils import timezone

logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    name='notifications.tasks.send_notification_email',
    max_retries=3,
    default_retry_delay=60,
    retry_backoff=True,
    retry_backoff_max=600,
    queue='notifications'
)
def send_notification_email(self, notification_id: int) -> Dict[str, Any]:
    """
    Deliver one notification by e-mail.

    Args:
        notification_id: ID of the Notification to send

    Returns:
        Dict with the send result
    """
    from .models import Notification
    from .services import send_email

    try:
        notification = Notification.objects.select_related('recipient').get(pk=notification_id)
    except Notification.DoesNotExist:
        logger.error(f"Notification {notification_id} not found for email delivery")
        return {'success': False, 'error': f'Notification {notification_id} not found'}

    if notification.email_sent_at:
        return {'success': True, 'notification_id': notification_id, 'skipped': True}

    try:
        send_email(notification)
    except ValueError as e:
        logger.warning(f"Notification {notification_id} not emailed: {e}")
        notification.mark_email_failed(str(e))
        return {'success': False, 'notification_id': notification_id, 'error': str(e)}
    except Exception as e:
        logger.error(f"Failed to email notification {notification_id}: {e}")
        notification.mark_email_failed(str(e))
        raise self.retry(exc=e)

    logger.info(f"Notification {notification_id} emailed to {notification.recipient.email}")
    return {'success': True, 'notification_id': notification_id}


@shared_task(name='notifications.tasks.cleanup_old_notifications', queue='notifications')
def cleanup_old_notifications(days: int = None, batch_size: int = 1000):
    """
    Delete read notifications older than the retention window.

    Args:
        days: Retention in days, defaults to NOTIFICATION_RETENTION_DAYS
        batch_size: Number of records to delete per batch
    """
    from .models import Notification

    days = days if days is not None else getattr(settings, 'NOTIFICATION_RETENTION_DAYS', 90)
    cutoff = timezone.now() - timedelta(days=days)

    deleted_total = 0
    while True:
        ids = list(
            Notification.objects.filter(
                is_read=True,
                created_at__lt=cutoff,
            ).values_list('id', flat=True)[:batch_size]
        )
        if not ids:
            break
        deleted, _ = Notification.objects.filter(id__in=ids).delete()
        deleted_total += deleted

    logger.info(f"Cleaned up {deleted_total} notifications older than {days} days")
    return {'deleted': deleted_total, 'cutoff': cutoff.isoformat()}
