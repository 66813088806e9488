"""
Stripe Integration Service

Provides:
1. Escrow PaymentIntents (manual capture) and lead-access charges
2. Stripe Connect Express onboarding for contractors

All calls go through the official `stripe` SDK. Errors are logged and
re-raised; API views translate them into 400 responses.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, Optional

import stripe
from django.conf import settings
from django.contrib.auth import get_user_model

logger = logging.getLogger(__name__)
User = get_user_model()


class StripeNotConfiguredError(Exception):
    """Raised when Stripe operations are attempted without proper configuration."""
    pass


def to_cents(amount) -> int:
    """Convert a dollar amount to integer cents."""
    return int((Decimal(str(amount)) * 100).to_integral_value())


class _StripeBase:

    @staticmethod
    def _check_configured():
        """Verify Stripe is configured and set the API key."""
        secret_key = getattr(settings, 'STRIPE_SECRET_KEY', None)
        if not secret_key:
            raise StripeNotConfiguredError(
                "STRIPE_SECRET_KEY not configured in settings"
            )
        stripe.api_key = secret_key


class StripePaymentService(_StripeBase):
    """
    PaymentIntent operations.

    Handles:
    - Escrow intents with manual capture
    - Capturing (release), cancelling and refunding escrow funds
    - Immediate-confirm charges for lead access
    """

    @classmethod
    def create_escrow_intent(cls, escrow, destination_account: Optional[str] = None):
        """
        Authorize the escrow amount without capturing it.

        Args:
            escrow: EscrowPayment instance (not yet linked to an intent)
            destination_account: contractor's Connect account id, if any

        Returns:
            stripe.PaymentIntent
        """
        cls._check_configured()

        params = {
            'amount': escrow.amount_cents,
            'currency': escrow.currency,
            'capture_method': 'manual',
            'metadata': {
                'service_request_id': str(escrow.service_request_id),
                'contractor_id': str(escrow.contractor_id or ''),
                'customer_id': str(escrow.customer_id),
                'escrow_id': escrow.escrow_id,
                'payment_type': 'escrow',
            },
            'description': f"Escrow {escrow.escrow_id} for request {escrow.service_request.request_id}",
        }
        if destination_account:
            params['transfer_data'] = {'destination': destination_account}

        try:
            intent = stripe.PaymentIntent.create(**params)
            logger.info(f"Created escrow PaymentIntent {intent.id} for {escrow.escrow_id}")
            return intent
        except stripe.StripeError as e:
            logger.error(f"Stripe escrow intent creation failed for {escrow.escrow_id}: {e}")
            raise

    @classmethod
    def capture_intent(cls, payment_intent_id: str):
        """Capture previously authorized funds."""
        cls._check_configured()

        try:
            intent = stripe.PaymentIntent.capture(payment_intent_id)
            logger.info(f"Captured PaymentIntent {payment_intent_id}")
            return intent
        except stripe.StripeError as e:
            logger.error(f"Stripe capture failed for {payment_intent_id}: {e}")
            raise

    @classmethod
    def cancel_intent(cls, payment_intent_id: str):
        """Cancel an uncaptured intent, releasing the hold on the card."""
        cls._check_configured()

        try:
            intent = stripe.PaymentIntent.cancel(payment_intent_id)
            logger.info(f"Cancelled PaymentIntent {payment_intent_id}")
            return intent
        except stripe.StripeError as e:
            logger.error(f"Stripe cancel failed for {payment_intent_id}: {e}")
            raise

    @classmethod
    def refund_intent(cls, payment_intent_id: str, amount_cents: Optional[int] = None):
        """Refund a captured intent, fully unless amount_cents is given."""
        cls._check_configured()

        params = {'payment_intent': payment_intent_id}
        if amount_cents:
            params['amount'] = amount_cents

        try:
            refund = stripe.Refund.create(**params)
            logger.info(f"Created refund {refund.id} for PaymentIntent {payment_intent_id}")
            return refund
        except stripe.StripeError as e:
            logger.error(f"Stripe refund failed for {payment_intent_id}: {e}")
            raise

    @classmethod
    def create_lead_payment(
        cls,
        amount_cents: int,
        payment_method_id: str,
        metadata: Dict[str, Any],
        return_url: str,
    ):
        """
        Charge a contractor for lead access, confirming immediately.

        Returns:
            stripe.PaymentIntent (status 'succeeded' or one needing action)
        """
        cls._check_configured()

        try:
            intent = stripe.PaymentIntent.create(
                amount=amount_cents,
                currency=getattr(settings, 'PAYMENT_CURRENCY', 'usd'),
                payment_method=payment_method_id,
                confirm=True,
                return_url=return_url,
                metadata={key: str(value) for key, value in metadata.items()},
                description=f"Lead access for request {metadata.get('service_request_id')}",
            )
            logger.info(f"Lead PaymentIntent {intent.id} created with status {intent.status}")
            return intent
        except stripe.StripeError as e:
            logger.error(f"Stripe lead payment failed: {e}")
            raise


class StripeConnectService(_StripeBase):
    """
    Stripe Connect Express accounts for contractors.

    Handles:
    - Creating connected accounts
    - Onboarding links
    - Express dashboard login links
    - Account status (charges/payouts enabled)
    """

    @classmethod
    def create_connected_account(cls, user: User):
        """
        Create an Express connected account for a contractor.

        Returns:
            stripe.Account
        """
        cls._check_configured()

        try:
            account = stripe.Account.create(
                type='express',
                country=getattr(settings, 'STRIPE_CONNECT_COUNTRY', 'US'),
                email=user.email,
                capabilities={
                    'card_payments': {'requested': True},
                    'transfers': {'requested': True},
                },
                business_type='individual',
                metadata={
                    'user_id': str(user.id),
                    'user_email': user.email,
                },
            )
            logger.info(f"Created Stripe Connect account {account.id} for user {user.email}")
            return account
        except stripe.StripeError as e:
            logger.error(f"Stripe Connect account creation failed for {user.email}: {e}")
            raise

    @classmethod
    def create_account_link(cls, account_id: str, refresh_url: str, return_url: str):
        """Create an onboarding link for a connected account."""
        cls._check_configured()

        try:
            return stripe.AccountLink.create(
                account=account_id,
                refresh_url=refresh_url,
                return_url=return_url,
                type='account_onboarding',
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe account link creation failed for {account_id}: {e}")
            raise

    @classmethod
    def retrieve_account_status(cls, account_id: str) -> Dict[str, Any]:
        """
        Fetch onboarding status of a connected account.

        Returns:
            dict with charges_enabled, payouts_enabled, details_submitted,
            requirements and capabilities
        """
        cls._check_configured()

        try:
            account = stripe.Account.retrieve(account_id)
        except stripe.StripeError as e:
            logger.error(f"Stripe account retrieval failed for {account_id}: {e}")
            raise

        requirements = account.get('requirements') or {}
        return {
            'account_id': account_id,
            'charges_enabled': bool(account.get('charges_enabled')),
            'payouts_enabled': bool(account.get('payouts_enabled')),
            'details_submitted': bool(account.get('details_submitted')),
            'requirements': {
                'currently_due': list(requirements.get('currently_due') or []),
                'eventually_due': list(requirements.get('eventually_due') or []),
                'past_due': list(requirements.get('past_due') or []),
                'disabled_reason': requirements.get('disabled_reason'),
            },
            'capabilities': dict(account.get('capabilities') or {}),
        }

    @classmethod
    def create_login_link(cls, account_id: str):
        """Create a single-use link to the Express dashboard of a connected account."""
        cls._check_configured()

        try:
            return stripe.Account.create_login_link(account_id)
        except stripe.StripeError as e:
            logger.error(f"Stripe login link creation failed for {account_id}: {e}")
            raise
