"""
HomeFix Test Configuration - pytest fixtures and factories

This module provides:
- factory_boy factories for the marketplace models
- DRF API client fixtures
- A Stripe SDK mock and helpers for signed webhook calls

RUNNING TESTS:
# Run all tests
pytest -v

# Run one app
pytest services/tests -v
"""

import json
import uuid
from datetime import timedelta
from decimal import Decimal
from unittest.mock import MagicMock, patch

import factory
import pytest
from django.utils import timezone
from factory.django import DjangoModelFactory


# ============================================================================
# USER FACTORIES
# ============================================================================

class UserFactory(DjangoModelFactory):
    """Factory for marketplace clients."""

    class Meta:
        model = 'accounts.User'
        django_get_or_create = ('email',)

    username = factory.LazyAttribute(lambda o: f"user_{uuid.uuid4().hex[:8]}")
    email = factory.LazyAttribute(lambda o: f"{o.username}@example.com")
    first_name = factory.Faker('first_name')
    last_name = factory.Faker('last_name')
    password = factory.django.Password('testpass123')
    role = 'client'
    is_active = True


class ContractorFactory(UserFactory):
    """Factory for contractor accounts."""

    role = 'contractor'


class PlatformAdminFactory(UserFactory):
    """Factory for platform administrators."""

    role = 'admin'


# ============================================================================
# MARKETPLACE FACTORIES
# ============================================================================

class ContractorProfileFactory(DjangoModelFactory):
    """Factory for contractor directory profiles (downtown Austin by default)."""

    class Meta:
        model = 'accounts.ContractorProfile'

    user = factory.SubFactory(ContractorFactory)
    business_name = factory.Faker('company')
    description = factory.Faker('text', max_nb_chars=200)
    services = factory.LazyFunction(lambda: ['plumbing'])
    latitude = 30.2672
    longitude = -97.7431
    city = 'Austin'
    state = 'TX'
    zip_code = '78701'
    years_experience = 8
    has_license = True
    is_available = True


class ServiceRequestFactory(DjangoModelFactory):
    """Factory for service requests filed by a registered customer."""

    class Meta:
        model = 'services.ServiceRequest'

    customer = factory.SubFactory(UserFactory)
    service_types = factory.LazyFunction(lambda: ['plumbing'])
    description = factory.Faker('paragraph')
    urgency = 'medium'
    status = 'pending'
    formatted_address = factory.Faker('street_address')
    latitude = 30.2672
    longitude = -97.7431
    city = 'Austin'
    state = 'TX'
    zip_code = '78701'
    customer_name = factory.LazyAttribute(lambda o: o.customer.get_full_name() if o.customer else 'Guest')
    customer_email = factory.LazyAttribute(lambda o: o.customer.email if o.customer else 'guest@example.com')
    customer_phone = '512-555-0100'


class BidFactory(DjangoModelFactory):
    """Factory for pending bids."""

    class Meta:
        model = 'services.Bid'

    service_request = factory.SubFactory(ServiceRequestFactory)
    contractor = factory.SubFactory(ContractorFactory)
    amount = Decimal('250.00')
    description = factory.Faker('paragraph')
    estimated_duration = '2-3 hours'
    status = 'pending'


class LeadAccessFactory(DjangoModelFactory):
    """Factory for completed, chat-enabled lead access."""

    class Meta:
        model = 'leads.LeadAccess'

    contractor = factory.SubFactory(ContractorFactory)
    service_request = factory.SubFactory(ServiceRequestFactory)
    lead_type = 'basic'
    lead_price = 15
    payment_status = 'completed'
    payment_intent_id = factory.Sequence(lambda n: f"pi_lead_{n}")
    has_access_to_contact_info = True
    chat_enabled = True
    purchased_at = factory.LazyFunction(timezone.now)
    expires_at = factory.LazyFunction(lambda: timezone.now() + timedelta(days=30))


class LeadChatMessageFactory(DjangoModelFactory):

    class Meta:
        model = 'leads.LeadChatMessage'

    lead_access = factory.SubFactory(LeadAccessFactory)
    service_request = factory.LazyAttribute(lambda o: o.lead_access.service_request)
    sender = factory.LazyAttribute(lambda o: o.lead_access.contractor)
    sender_type = 'contractor'
    message = factory.Faker('sentence')
    message_type = 'text'


class EscrowPaymentFactory(DjangoModelFactory):
    """Factory for escrow payments on an assigned request."""

    class Meta:
        model = 'escrow.EscrowPayment'

    service_request = factory.SubFactory(ServiceRequestFactory)
    customer = factory.LazyAttribute(lambda o: o.service_request.customer)
    contractor = factory.SubFactory(ContractorFactory)
    amount = Decimal('500.00')
    currency = 'usd'
    stripe_payment_intent_id = factory.Sequence(lambda n: f"pi_escrow_{n}")
    status = 'pending'


class NotificationFactory(DjangoModelFactory):

    class Meta:
        model = 'notifications.Notification'

    recipient = factory.SubFactory(UserFactory)
    notification_type = 'system_update'
    title = factory.Faker('sentence', nb_words=4)
    message = factory.Faker('sentence')
    channels = factory.LazyFunction(lambda: ['in_app'])


# ============================================================================
# FACTORY FIXTURES
# ============================================================================

@pytest.fixture
def user_factory(db):
    return UserFactory


@pytest.fixture
def contractor_factory(db):
    return ContractorFactory


@pytest.fixture
def contractor_profile_factory(db):
    return ContractorProfileFactory


@pytest.fixture
def service_request_factory(db):
    return ServiceRequestFactory


@pytest.fixture
def bid_factory(db):
    return BidFactory


@pytest.fixture
def lead_access_factory(db):
    return LeadAccessFactory


@pytest.fixture
def lead_chat_message_factory(db):
    return LeadChatMessageFactory


@pytest.fixture
def escrow_payment_factory(db):
    return EscrowPaymentFactory


@pytest.fixture
def notification_factory(db):
    return NotificationFactory


# ============================================================================
# USER FIXTURES
# ============================================================================

@pytest.fixture
def user(db):
    """A client (customer) user."""
    return UserFactory()


@pytest.fixture
def contractor(db):
    """A contractor user."""
    return ContractorFactory()


@pytest.fixture
def platform_admin(db):
    return PlatformAdminFactory()


@pytest.fixture
def service_request(db, user):
    """An open service request owned by `user`."""
    return ServiceRequestFactory(customer=user)


# ============================================================================
# API CLIENT FIXTURES
# ============================================================================

@pytest.fixture
def api_client(db):
    """Provide a DRF API test client."""
    from rest_framework.test import APIClient
    return APIClient()


@pytest.fixture
def authenticated_api_client(db, api_client, user):
    """Provide a DRF API test client authenticated as the customer."""
    api_client.force_authenticate(user=user)
    return api_client


@pytest.fixture
def contractor_api_client(db, contractor):
    from rest_framework.test import APIClient
    client = APIClient()
    client.force_authenticate(user=contractor)
    return client


@pytest.fixture
def admin_api_client(db, platform_admin):
    from rest_framework.test import APIClient
    client = APIClient()
    client.force_authenticate(user=platform_admin)
    return client


# ============================================================================
# CELERY / STRIPE
# ============================================================================

@pytest.fixture
def celery_config():
    """
    Celery configuration for testing.

    Tasks execute synchronously.
    """
    return {
        'broker_url': 'memory://',
        'result_backend': 'cache+memory://',
        'task_always_eager': True,
        'task_eager_propagates': True,
    }


@pytest.fixture
def mock_stripe():
    """
    Mock the Stripe SDK classes used by the payment services.

    Usage:
        def test_create_payment(mock_stripe):
            mock_stripe['payment_intent'].create.return_value = MagicMock(id='pi_1', ...)
    """
    with patch('stripe.Account') as mock_account, \
         patch('stripe.AccountLink') as mock_account_link, \
         patch('stripe.PaymentIntent') as mock_payment_intent, \
         patch('stripe.Refund') as mock_refund, \
         patch('stripe.Webhook') as mock_webhook:

        mock_account.create.return_value = MagicMock(id='acct_test123')
        mock_account.retrieve.return_value = {
            'id': 'acct_test123',
            'charges_enabled': True,
            'payouts_enabled': True,
            'details_submitted': True,
            'requirements': {'currently_due': [], 'eventually_due': [], 'past_due': []},
            'capabilities': {'card_payments': 'active', 'transfers': 'active'},
        }

        mock_account.create_login_link.return_value = MagicMock(
            url='https://connect.stripe.com/express/login_test123'
        )

        mock_account_link.create.return_value = MagicMock(
            url='https://connect.stripe.com/setup/test123'
        )

        mock_payment_intent.create.return_value = MagicMock(
            id='pi_test123',
            status='requires_capture',
            client_secret='pi_test123_secret_abc',
            amount=50000,
            currency='usd',
        )
        mock_payment_intent.capture.return_value = MagicMock(id='pi_test123', status='succeeded')
        mock_payment_intent.cancel.return_value = MagicMock(id='pi_test123', status='canceled')

        mock_refund.create.return_value = MagicMock(id='re_test123', status='succeeded')

        mock_webhook.construct_event.return_value = MagicMock()

        yield {
            'account': mock_account,
            'account_link': mock_account_link,
            'payment_intent': mock_payment_intent,
            'refund': mock_refund,
            'webhook': mock_webhook,
        }


@pytest.fixture
def post_webhook(api_client, mock_stripe):
    """
    Deliver a Stripe event to the webhook endpoint.

    Signature verification is mocked; the JSON body is what the view
    processes.
    """
    def _post(event_type, obj, event_id=None):
        event = {
            'id': event_id or f"evt_{uuid.uuid4().hex[:16]}",
            'type': event_type,
            'data': {'object': obj},
        }
        return api_client.generic(
            'POST',
            '/api/escrow/webhook/',
            data=json.dumps(event),
            content_type='application/json',
            HTTP_STRIPE_SIGNATURE='t=1,v1=test',
        )
    return _post
