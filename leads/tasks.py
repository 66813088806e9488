"""
Celery tasks for lead access.
"""

import logging

from celery import shared_task
from django.utils import timezone

logger = logging.getLogger(__name__)


@shared_task(name='leads.tasks.expire_lead_access')
def expire_lead_access():
    """
    Turn off chat and contact access on completed leads past expires_at.
    """
    from leads.models import LeadAccess

    now = timezone.now()
    expired = LeadAccess.objects.filter(
        payment_status=LeadAccess.PaymentStatus.COMPLETED,
        expires_at__isnull=False,
        expires_at__lte=now,
        chat_enabled=True,
    ).update(chat_enabled=False, has_access_to_contact_info=False, updated_at=now)

    logger.info(f"Expired {expired} lead access records")
    return {'expired_count': expired, 'timestamp': now.isoformat()}
