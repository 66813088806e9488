"""
Escrow Services - create, release and refund escrowed job payments.

Local state follows Stripe: an escrow starts `pending`, becomes
`authorized` once the webhook reports capturable funds, and ends
`released` (captured), `refunded`, `failed` or `cancelled`. The service
request mirrors the state in its `payment_status`.
"""

import logging
from contextlib import contextmanager
from decimal import Decimal

import stripe
from django.conf import settings
from django.db import transaction
from rest_framework.exceptions import PermissionDenied, ValidationError

from core.exceptions import ConflictError, PaymentFailedError, PaymentServiceUnavailable
from core.permissions import is_platform_admin
from notifications.models import Notification
from notifications.services import notify
from services.models import ServiceRequest

from .models import EscrowPayment
from .stripe_service import StripeNotConfiguredError, StripePaymentService

logger = logging.getLogger(__name__)


@contextmanager
def stripe_errors_as_api_errors():
    """Turn Stripe SDK errors into API errors (400 / 503)."""
    try:
        yield
    except StripeNotConfiguredError as e:
        raise PaymentServiceUnavailable(detail=str(e))
    except stripe.StripeError as e:
        message = getattr(e, 'user_message', None) or str(e)
        raise PaymentFailedError(detail=f"Payment failed: {message}")


def validate_amount(amount) -> Decimal:
    amount = Decimal(str(amount))
    minimum = Decimal(str(settings.PAYMENT_MIN_AMOUNT))
    maximum = Decimal(str(settings.PAYMENT_MAX_AMOUNT))
    if amount < minimum or amount > maximum:
        raise ValidationError(f"Amount must be between {minimum} and {maximum}")
    return amount


def create_escrow_payment(customer, service_request: ServiceRequest, amount, contractor=None):
    """
    Authorize the job amount with a manual-capture PaymentIntent.

    Returns:
        (EscrowPayment, client_secret)
    """
    if not service_request.is_customer(customer):
        raise PermissionDenied('Only the customer of this request can fund it')

    amount = validate_amount(amount)
    contractor = contractor or service_request.assigned_contractor
    if contractor is None:
        raise ValidationError('Service request has no assigned contractor')

    active = EscrowPayment.objects.filter(
        service_request=service_request,
        status__in=EscrowPayment.RELEASABLE_STATUSES,
    )
    if active.exists():
        raise ConflictError(f"An escrow payment is already active for {service_request.request_id}")

    escrow = EscrowPayment(
        service_request=service_request,
        customer=customer,
        contractor=contractor,
        amount=amount,
        currency=settings.PAYMENT_CURRENCY,
    )
    escrow.save()

    destination = contractor.stripe_account_id or None
    try:
        with stripe_errors_as_api_errors():
            intent = StripePaymentService.create_escrow_intent(escrow, destination_account=destination)
    except (PaymentFailedError, PaymentServiceUnavailable) as e:
        escrow.mark_failed(str(e.detail))
        raise

    with transaction.atomic():
        escrow.stripe_payment_intent_id = intent.id
        escrow.metadata = {'transfer_destination': destination or ''}
        escrow.save(update_fields=['stripe_payment_intent_id', 'metadata', 'updated_at'])
        service_request.set_payment_status(ServiceRequest.PaymentStatus.PENDING, payment_intent_id=intent.id)

    logger.info(
        f"Escrow {escrow.escrow_id} created for {service_request.request_id}: "
        f"{amount} {escrow.currency} (intent {intent.id})"
    )
    return escrow, intent.client_secret


def release_escrow(escrow: EscrowPayment, user) -> EscrowPayment:
    """
    Capture escrowed funds once the job is completed.
    """
    service_request = escrow.service_request
    if not (is_platform_admin(user) or service_request.is_customer(user)):
        raise PermissionDenied('Only the customer or an administrator can release this payment')
    if service_request.status != ServiceRequest.Status.COMPLETED:
        raise ValidationError('Service must be completed before releasing payment')
    if not escrow.is_releasable:
        raise ConflictError(f"Escrow {escrow.escrow_id} cannot be released (status {escrow.status})")

    with stripe_errors_as_api_errors():
        StripePaymentService.capture_intent(escrow.stripe_payment_intent_id)

    with transaction.atomic():
        escrow.mark_released()
        service_request.set_payment_status(ServiceRequest.PaymentStatus.RELEASED)

    logger.info(f"Escrow {escrow.escrow_id} released by user {user.id}")

    if escrow.contractor:
        notify(
            recipient=escrow.contractor,
            notification_type=Notification.Type.PAYMENT_RELEASED,
            title='Payment released',
            message=f"${escrow.amount} for {service_request.title} has been released to you.",
            priority=Notification.Priority.HIGH,
            channels=[Notification.Channel.IN_APP, Notification.Channel.EMAIL],
            service_request=service_request,
            data={'escrow_id': escrow.escrow_id, 'amount': str(escrow.amount)},
        )
    return escrow


def refund_escrow(escrow: EscrowPayment, user) -> EscrowPayment:
    """
    Refund an escrow payment.

    Uncaptured intents are cancelled, captured ones refunded. Customers may
    only refund before funds are released.
    """
    service_request = escrow.service_request
    admin = is_platform_admin(user)
    if not admin:
        if not service_request.is_customer(user):
            raise PermissionDenied('Only the customer or an administrator can refund this payment')
        if escrow.is_captured:
            raise PermissionDenied('Released payments can only be refunded by an administrator')

    if escrow.status not in (*EscrowPayment.RELEASABLE_STATUSES, EscrowPayment.Status.RELEASED):
        raise ConflictError(f"Escrow {escrow.escrow_id} cannot be refunded (status {escrow.status})")

    with stripe_errors_as_api_errors():
        if escrow.is_captured:
            StripePaymentService.refund_intent(escrow.stripe_payment_intent_id)
        else:
            StripePaymentService.cancel_intent(escrow.stripe_payment_intent_id)

    with transaction.atomic():
        escrow.mark_refunded()
        service_request.set_payment_status(ServiceRequest.PaymentStatus.REFUNDED)

    logger.info(f"Escrow {escrow.escrow_id} refunded by user {user.id} (admin={admin})")
    return escrow
