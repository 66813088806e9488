"""
Lead Services - lead-access purchase and lead chat.

A purchase inserts a pending LeadAccess under a row lock on the service
request before Stripe is called, so a second purchase for the same
(contractor, request) is refused with 409 while the first is pending or
completed. Payments that need extra customer action stay pending until the
payment_intent webhook completes or fails them.
"""

import logging

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied

from core.exceptions import ConflictError, PaymentFailedError, PaymentServiceUnavailable
from escrow.services import stripe_errors_as_api_errors
from escrow.stripe_service import StripePaymentService
from services.models import ServiceRequest

from .models import LeadAccess, LeadChatMessage
from .pricing import calculate_lead_price

logger = logging.getLogger(__name__)

ACCESS_EXISTS_MESSAGE = 'Lead access already exists or is pending for this contractor'


def get_service_request(service_request_id, lock=False) -> ServiceRequest:
    qs = ServiceRequest.objects.all()
    if lock:
        qs = qs.select_for_update()
    try:
        return qs.get(pk=service_request_id)
    except (ServiceRequest.DoesNotExist, ValueError, TypeError):
        raise NotFound('Service request not found')


# =============================================================================
# PURCHASE
# =============================================================================

def purchase_lead_access(contractor, service_request_id, payment_method_id, lead_type=LeadAccess.LeadType.BASIC):
    """
    Buy access to a service request.

    Returns:
        (LeadAccess, stripe.PaymentIntent)

    Raises:
        NotFound: unknown service request
        ConflictError: completed or pending access already exists
        PaymentFailedError: Stripe rejected the payment
    """
    with transaction.atomic():
        service_request = get_service_request(service_request_id, lock=True)

        if LeadAccess.objects.blocking().filter(
            contractor=contractor, service_request=service_request
        ).exists():
            raise ConflictError(ACCESS_EXISTS_MESSAGE)

        price = calculate_lead_price(lead_type, service_request.urgency)
        try:
            with transaction.atomic():
                lead_access = LeadAccess.objects.create(
                    contractor=contractor,
                    service_request=service_request,
                    lead_type=lead_type,
                    lead_price=price,
                    payment_status=LeadAccess.PaymentStatus.PENDING,
                )
        except IntegrityError:
            raise ConflictError(ACCESS_EXISTS_MESSAGE)

    metadata = {
        'contractor_id': contractor.id,
        'service_request_id': service_request.id,
        'lead_type': lead_type,
        'lead_price': price,
        'lead_access_id': lead_access.id,
        'payment_type': 'lead_access',
    }
    try:
        with stripe_errors_as_api_errors():
            intent = StripePaymentService.create_lead_payment(
                amount_cents=price * 100,
                payment_method_id=payment_method_id,
                metadata=metadata,
                return_url=f"{settings.SITE_URL.rstrip('/')}/contractor/dashboard/explore",
            )
    except (PaymentFailedError, PaymentServiceUnavailable) as e:
        lead_access.mark_failed(str(e.detail))
        raise

    lead_access.payment_intent_id = intent.id
    lead_access.save(update_fields=['payment_intent_id', 'updated_at'])

    if intent.status == 'succeeded':
        _activate(lead_access)
    else:
        logger.info(
            f"Lead access {lead_access.pk} pending: intent {intent.id} is {intent.status}"
        )

    return lead_access, intent


def _activate(lead_access: LeadAccess):
    lead_access.mark_completed()
    contractor = lead_access.contractor
    LeadChatMessage.objects.create(
        service_request=lead_access.service_request,
        lead_access=lead_access,
        sender=None,
        sender_type=LeadChatMessage.SenderType.SYSTEM,
        message_type=LeadChatMessage.MessageType.SYSTEM,
        message=(
            f"{contractor.get_full_name() or contractor.email} has gained premium access "
            f"to this request and can now contact you directly."
        ),
    )
    logger.info(
        f"Lead access {lead_access.pk} completed for contractor {contractor.id} "
        f"on {lead_access.service_request.request_id} (${lead_access.lead_price})"
    )


def complete_lead_purchase(payment_intent_id: str):
    """Complete a pending purchase once Stripe reports success."""
    lead_access = LeadAccess.objects.select_related('contractor', 'service_request').filter(
        payment_intent_id=payment_intent_id
    ).first()
    if lead_access is None:
        logger.warning(f"No lead access for PaymentIntent {payment_intent_id}")
        return None
    if lead_access.payment_status != LeadAccess.PaymentStatus.PENDING:
        return lead_access
    _activate(lead_access)
    return lead_access


def fail_lead_purchase(payment_intent_id: str, reason: str = ''):
    lead_access = LeadAccess.objects.filter(
        payment_intent_id=payment_intent_id,
        payment_status=LeadAccess.PaymentStatus.PENDING,
    ).first()
    if lead_access is None:
        return None
    lead_access.mark_failed(reason)
    logger.warning(f"Lead access {lead_access.pk} payment failed: {reason}")
    return lead_access


def get_access_status(contractor, service_request) -> dict:
    access = LeadAccess.objects.active_for(contractor, service_request).first()
    if access is None:
        return {'has_access': False}
    return {
        'has_access': True,
        'lead_type': access.lead_type,
        'chat_enabled': access.chat_enabled,
        'purchased_at': access.purchased_at,
        'expires_at': access.expires_at,
    }


# =============================================================================
# CHAT
# =============================================================================

NO_ACCESS_MESSAGE = 'No premium lead access found for this service request'


def _chat_access_for(user, service_request, contractor_id=None):
    """
    The lead access whose thread the user may use.

    Contractors use their own access. Customers use the access of the
    given contractor, or the first one on the request.
    """
    accesses = LeadAccess.objects.chat_enabled().filter(service_request=service_request)

    if getattr(user, 'is_contractor', False):
        access = accesses.filter(contractor=user).first()
        if access is None:
            raise PermissionDenied(NO_ACCESS_MESSAGE)
        return access

    if not service_request.is_customer(user):
        raise PermissionDenied('You are not a participant of this request')

    if contractor_id:
        accesses = accesses.filter(contractor_id=contractor_id)
    access = accesses.order_by('created_at').first()
    if access is None:
        raise PermissionDenied('No active lead access found for this service request')
    return access


def get_chat_messages(user, service_request, contractor_id=None):
    """
    Chronological messages visible to the user.

    Unread messages not sent by the user are marked read.
    """
    messages = LeadChatMessage.objects.filter(service_request=service_request)

    if getattr(user, 'is_contractor', False):
        access = _chat_access_for(user, service_request)
        messages = messages.filter(lead_access=access)
    elif service_request.is_customer(user):
        if contractor_id:
            messages = messages.filter(lead_access__contractor_id=contractor_id)
    else:
        raise PermissionDenied('You are not a participant of this request')

    messages = list(messages.select_related('sender').order_by('created_at', 'pk'))

    unread_ids = [m.pk for m in messages if not m.is_read and m.sender_id != user.id]
    if unread_ids:
        now = timezone.now()
        LeadChatMessage.objects.filter(pk__in=unread_ids).update(is_read=True, read_at=now)
        for m in messages:
            if m.pk in unread_ids:
                m.is_read, m.read_at = True, now

    return messages


def post_chat_message(user, service_request, message, message_type=LeadChatMessage.MessageType.TEXT,
                      quote_info=None, contractor_id=None) -> LeadChatMessage:
    access = _chat_access_for(user, service_request, contractor_id=contractor_id)
    is_contractor = getattr(user, 'is_contractor', False)

    chat_message = LeadChatMessage.objects.create(
        service_request=service_request,
        lead_access=access,
        sender=user,
        sender_type=(
            LeadChatMessage.SenderType.CONTRACTOR if is_contractor
            else LeadChatMessage.SenderType.CUSTOMER
        ),
        message=message,
        message_type=message_type,
        quote_info=quote_info if message_type == LeadChatMessage.MessageType.QUOTE else None,
    )
    if is_contractor:
        access.record_contact_attempt()

    logger.info(
        f"Lead chat message {chat_message.pk} on {service_request.request_id} "
        f"from user {user.id} ({chat_message.sender_type})"
    )
    return chat_message
