"""
Celery Tasks for Services (Marketplace) App

- Bid expiration: pending bids past valid_until become expired
"""

import logging

from celery import shared_task
from celery.exceptions import SoftTimeLimitExceeded
from django.utils import timezone

logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    name='services.tasks.expire_stale_bids',
    max_retries=3,
    default_retry_delay=300,
    soft_time_limit=600,
)
def expire_stale_bids(self):
    """
    Mark pending bids whose valid_until has passed as expired.

    Returns:
        dict: Summary of expired bids.
    """
    from services.models import Bid

    try:
        now = timezone.now()
        expired = Bid.objects.filter(
            status=Bid.Status.PENDING,
            valid_until__isnull=False,
            valid_until__lt=now,
        ).update(status=Bid.Status.EXPIRED, updated_at=now)

        logger.info(f"Expired {expired} stale bids")

        return {
            'status': 'success',
            'expired_count': expired,
            'timestamp': now.isoformat(),
        }

    except SoftTimeLimitExceeded:
        logger.warning("Bid expiration exceeded soft time limit")
        raise

    except Exception as e:
        logger.error(f"Error expiring bids: {str(e)}")
        raise self.retry(exc=e)
