"""
Stripe webhook endpoint.

Events are verified with the endpoint secret, logged in
StripeWebhookEvent for duplicate detection, then dispatched by type.
"""

import json
import logging

import stripe
from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from django.http import HttpResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from services.models import ServiceRequest

from .models import EscrowPayment, StripeWebhookEvent

logger = logging.getLogger(__name__)
User = get_user_model()


@method_decorator(csrf_exempt, name='dispatch')
class StripeWebhookView(View):
    """
    Handle incoming Stripe webhook events.

    Processes:
    - Escrow intent events (authorized, succeeded, failed, canceled)
    - Lead-access payments (payment_type=lead_access)
    - Connect account updates
    """

    def post(self, request):
        payload = request.body
        sig_header = request.META.get('HTTP_STRIPE_SIGNATURE', '')
        webhook_secret = getattr(settings, 'STRIPE_WEBHOOK_SECRET', '')

        try:
            stripe.Webhook.construct_event(payload, sig_header, webhook_secret)
            # Verified; work from the plain JSON body
            event = json.loads(payload)
        except ValueError as e:
            logger.error(f"Invalid webhook payload: {e}")
            return HttpResponse(status=400)
        except stripe.SignatureVerificationError as e:
            logger.error(f"Invalid webhook signature: {e}")
            return HttpResponse(status=400)

        event_id = event.get('id')
        event_type = event.get('type', '')
        if not event_id:
            logger.error("Webhook event without id")
            return HttpResponse(status=400)

        webhook_event, created = StripeWebhookEvent.objects.get_or_create(
            event_id=event_id,
            defaults={'event_type': event_type, 'json_payload': event}
        )

        if not created and webhook_event.processed:
            logger.info(f"Duplicate webhook event {event_id} ignored")
            return HttpResponse(status=200)

        try:
            with transaction.atomic():
                self._process_event(event_type, event.get('data', {}).get('object', {}))
            webhook_event.mark_processed()
        except Exception as e:
            logger.exception(f"Error processing webhook event {event_id}: {e}")
            webhook_event.mark_failed(str(e))
            return HttpResponse(status=500)

        return HttpResponse(status=200)

    def _process_event(self, event_type, obj):
        """Route event to appropriate handler."""
        handlers = {
            'payment_intent.amount_capturable_updated': self._handle_amount_capturable,
            'payment_intent.succeeded': self._handle_payment_succeeded,
            'payment_intent.payment_failed': self._handle_payment_failed,
            'payment_intent.canceled': self._handle_payment_canceled,
            'account.updated': self._handle_account_updated,
        }

        handler = handlers.get(event_type)
        if handler:
            handler(obj)
        else:
            logger.info(f"Unhandled webhook event type: {event_type}")

    # ==================== HELPERS ====================

    @staticmethod
    def _is_lead_payment(intent):
        return (intent.get('metadata') or {}).get('payment_type') == 'lead_access'

    @staticmethod
    def _find_escrow(intent):
        escrow = EscrowPayment.objects.filter(stripe_payment_intent_id=intent.get('id')).first()
        if escrow is None:
            escrow_id = (intent.get('metadata') or {}).get('escrow_id')
            if escrow_id:
                escrow = EscrowPayment.objects.filter(escrow_id=escrow_id).first()
        return escrow

    @staticmethod
    def _find_service_request(intent):
        request_pk = (intent.get('metadata') or {}).get('service_request_id')
        if not request_pk:
            return None
        try:
            return ServiceRequest.objects.get(pk=int(request_pk))
        except (ServiceRequest.DoesNotExist, ValueError):
            logger.warning(f"Webhook references unknown service request {request_pk}")
            return None

    # ==================== HANDLERS ====================

    def _handle_amount_capturable(self, intent):
        """Funds are authorized and held for capture."""
        escrow = self._find_escrow(intent)
        if escrow:
            escrow.mark_authorized()

        service_request = self._find_service_request(intent)
        if service_request is None:
            return
        if service_request.payment_status not in ServiceRequest.AUTHORIZABLE_PAYMENT_STATUSES:
            logger.info(
                f"Late authorization for {service_request.request_id} ignored "
                f"(payment is {service_request.payment_status})"
            )
            return
        service_request.set_payment_status(ServiceRequest.PaymentStatus.AUTHORIZED)
        logger.info(f"Escrow funds authorized for {service_request.request_id}")

    def _handle_payment_succeeded(self, intent):
        if self._is_lead_payment(intent):
            from leads.services import complete_lead_purchase

            complete_lead_purchase(intent.get('id'))
            return

        escrow = self._find_escrow(intent)
        if escrow and escrow.status not in EscrowPayment.SETTLED_STATUSES:
            escrow.mark_released()

        service_request = self._find_service_request(intent)
        if service_request is None:
            return
        if service_request.payment_status not in ServiceRequest.UNSETTLED_PAYMENT_STATUSES:
            logger.info(
                f"Payment for {service_request.request_id} already {service_request.payment_status}"
            )
            return
        service_request.set_payment_status(
            ServiceRequest.PaymentStatus.COMPLETED,
            payment_intent_id=intent.get('id'),
        )
        logger.info(f"Payment completed for {service_request.request_id}")

    def _handle_payment_failed(self, intent):
        error = (intent.get('last_payment_error') or {}).get('message', '')

        if self._is_lead_payment(intent):
            from leads.services import fail_lead_purchase

            fail_lead_purchase(intent.get('id'), error)
            return

        escrow = self._find_escrow(intent)
        if escrow and not escrow.mark_failed(error):
            logger.info(f"Failure for escrow {escrow.escrow_id} ignored (escrow is {escrow.status})")

        service_request = self._find_service_request(intent)
        if service_request is None:
            return
        if service_request.payment_status not in ServiceRequest.UNSETTLED_PAYMENT_STATUSES:
            logger.info(
                f"Failure for {service_request.request_id} ignored "
                f"(payment is {service_request.payment_status})"
            )
            return
        service_request.set_payment_status(ServiceRequest.PaymentStatus.FAILED)
        logger.warning(f"Payment failed for {service_request.request_id}: {error}")

    def _handle_payment_canceled(self, intent):
        escrow = self._find_escrow(intent)
        if escrow and escrow.status not in EscrowPayment.FINAL_STATUSES:
            escrow.mark_cancelled()
            logger.info(f"Escrow {escrow.escrow_id} cancelled")

    def _handle_account_updated(self, account):
        """Track Connect onboarding completion."""
        account_id = account.get('id')
        user = User.objects.filter(stripe_account_id=account_id).first()
        if user is None:
            logger.warning(f"account.updated for unknown Stripe account {account_id}")
            return

        complete = bool(account.get('charges_enabled') and account.get('payouts_enabled'))
        if user.stripe_onboarding_complete != complete:
            user.stripe_onboarding_complete = complete
            user.save(update_fields=['stripe_onboarding_complete'])
            logger.info(f"Stripe onboarding for user {user.id} set to {complete}")
