"""
Notification Signals - notifications triggered by changes in other apps.
"""

import logging

from django.db.models.signals import post_save, pre_save
from django.dispatch import receiver

from accounts.models import ContractorProfile

from .models import Notification
from .services import notify

logger = logging.getLogger(__name__)


@receiver(pre_save, sender=ContractorProfile)
def remember_verification_state(sender, instance, **kwargs):
    """Keep the stored is_verified value for the post_save check."""
    if instance.pk:
        instance._was_verified = (
            sender.objects.filter(pk=instance.pk).values_list('is_verified', flat=True).first()
        )
    else:
        instance._was_verified = False


@receiver(post_save, sender=ContractorProfile)
def notify_profile_verified(sender, instance, created, **kwargs):
    """Tell the contractor when their profile becomes verified."""
    if instance.is_verified and not getattr(instance, '_was_verified', False):
        notify(
            recipient=instance.user,
            notification_type=Notification.Type.PROFILE_VERIFIED,
            title='Profile verified',
            message=f"{instance.business_name} is now verified on HomeFix.",
            channels=[Notification.Channel.IN_APP, Notification.Channel.EMAIL],
        )
        logger.info(f"Contractor profile {instance.pk} verified")
