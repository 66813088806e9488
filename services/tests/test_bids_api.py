"""
Tests for bid submission, acceptance, rejection and withdrawal.
"""

from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from notifications.models import Notification
from services.bidding import DuplicateBidError, submit_bid
from services.models import Bid, ServiceRequest

BIDS_URL = '/api/services/bids/'


def bid_payload(service_request, **overrides):
    payload = {
        'service_request': service_request.pk,
        'amount': '275.50',
        'description': 'Replace the kitchen faucet cartridge and reseal.',
        'estimated_duration': '2 hours',
        'materials': ['cartridge', 'plumber tape'],
        'price_breakdown': {'labor': '200.00', 'materials': '75.50'},
    }
    payload.update(overrides)
    return payload


# ============================================================================
# SUBMISSION
# ============================================================================

@pytest.mark.django_db
class TestSubmitBid:

    def test_contractor_submits_bid(self, contractor_api_client, contractor, service_request):
        response = contractor_api_client.post(BIDS_URL, bid_payload(service_request), format='json')

        assert response.status_code == 201
        assert response.data['status'] == 'pending'
        assert Decimal(response.data['amount']) == Decimal('275.50')
        assert response.data['service_request_id'] == service_request.request_id
        assert response.data['price_breakdown'] == {'labor': '200.00', 'materials': '75.50'}

        bid = Bid.objects.get(pk=response.data['id'])
        assert bid.contractor == contractor
        assert bid.title == f"Quote for {service_request.title}"

    def test_customer_is_notified(self, contractor_api_client, service_request):
        contractor_api_client.post(BIDS_URL, bid_payload(service_request), format='json')

        notification = Notification.objects.get(recipient=service_request.customer)
        assert notification.notification_type == Notification.Type.QUOTE_RECEIVED
        assert '$275.50' in notification.message

    def test_duplicate_bid_is_rejected(self, contractor_api_client, contractor, service_request):
        first = contractor_api_client.post(BIDS_URL, bid_payload(service_request), format='json')
        second = contractor_api_client.post(
            BIDS_URL, bid_payload(service_request, amount='199.00'), format='json'
        )

        assert first.status_code == 201
        assert second.status_code == 400
        assert second.data['error'] == 'Contractor has already submitted a bid for this request'
        assert second.data['error_code'] == 'DUPLICATE_BID'
        assert Bid.objects.filter(service_request=service_request, contractor=contractor).count() == 1

    def test_rebid_allowed_after_expiry(self, contractor, service_request, bid_factory):
        bid_factory(service_request=service_request, contractor=contractor, status=Bid.Status.EXPIRED)

        bid = submit_bid(contractor, service_request.pk, Decimal('150.00'), 'Second try')

        assert bid.status == Bid.Status.PENDING

    def test_withdrawn_bid_still_blocks(self, contractor, service_request, bid_factory):
        bid_factory(service_request=service_request, contractor=contractor, status=Bid.Status.WITHDRAWN)

        with pytest.raises(DuplicateBidError):
            submit_bid(contractor, service_request.pk, Decimal('150.00'), 'Second try')

    def test_missing_fields(self, contractor_api_client, service_request):
        response = contractor_api_client.post(
            BIDS_URL, {'service_request': service_request.pk, 'amount': '100.00'}, format='json'
        )

        assert response.status_code == 400
        assert response.data['error'] == 'service_request, amount, and description are required'

    def test_client_cannot_bid(self, authenticated_api_client, service_request):
        response = authenticated_api_client.post(BIDS_URL, bid_payload(service_request), format='json')

        assert response.status_code == 403
        assert not Bid.objects.exists()

    def test_anonymous_cannot_bid(self, api_client, service_request):
        response = api_client.post(BIDS_URL, bid_payload(service_request), format='json')

        assert response.status_code == 401

    def test_unknown_request(self, contractor_api_client, service_request):
        response = contractor_api_client.post(
            BIDS_URL, bid_payload(service_request, service_request=999999), format='json'
        )

        assert response.status_code == 404
        assert response.data['error'] == 'Service request not found'

    def test_closed_request(self, contractor_api_client, service_request, contractor_factory):
        service_request.select_contractor(contractor_factory())

        response = contractor_api_client.post(BIDS_URL, bid_payload(service_request), format='json')

        assert response.status_code == 409
        assert not Bid.objects.exists()

    def test_negative_amount(self, contractor_api_client, service_request):
        response = contractor_api_client.post(
            BIDS_URL, bid_payload(service_request, amount='-5.00'), format='json'
        )

        assert response.status_code == 400


# ============================================================================
# ACCEPT / REJECT / WITHDRAW
# ============================================================================

@pytest.mark.django_db
class TestBidDecisions:

    @pytest.fixture
    def competing_bids(self, service_request, bid_factory):
        return [
            bid_factory(service_request=service_request, amount=Decimal('300.00')),
            bid_factory(service_request=service_request, amount=Decimal('250.00')),
            bid_factory(service_request=service_request, amount=Decimal('275.00')),
        ]

    def test_accept_bid(self, authenticated_api_client, service_request, competing_bids):
        winner, *others = competing_bids

        response = authenticated_api_client.post(f'{BIDS_URL}{winner.pk}/accept/')

        assert response.status_code == 200
        assert response.data['status'] == 'accepted'

        service_request.refresh_from_db()
        assert service_request.status == ServiceRequest.Status.CONTRACTOR_SELECTED
        assert service_request.assigned_contractor == winner.contractor

        for other in others:
            other.refresh_from_db()
            assert other.status == Bid.Status.REJECTED

    def test_accept_notifies_contractors(self, authenticated_api_client, competing_bids):
        winner, loser, _ = competing_bids

        authenticated_api_client.post(f'{BIDS_URL}{winner.pk}/accept/')

        winner_types = set(
            Notification.objects.filter(recipient=winner.contractor).values_list('notification_type', flat=True)
        )
        assert winner_types == {Notification.Type.QUOTE_ACCEPTED, Notification.Type.JOB_ASSIGNED}
        assert Notification.objects.filter(
            recipient=loser.contractor,
            notification_type=Notification.Type.QUOTE_REJECTED,
        ).exists()

    def test_accept_lapsed_bid_conflicts(self, authenticated_api_client, service_request, competing_bids):
        winner, *others = competing_bids
        winner.valid_until = timezone.now() - timedelta(days=2)
        winner.save(update_fields=['valid_until'])

        response = authenticated_api_client.post(f'{BIDS_URL}{winner.pk}/accept/')

        assert response.status_code == 409
        winner.refresh_from_db()
        assert winner.status == Bid.Status.EXPIRED

        service_request.refresh_from_db()
        assert service_request.assigned_contractor is None
        assert service_request.is_open
        for other in others:
            other.refresh_from_db()
            assert other.status == Bid.Status.PENDING

    def test_only_customer_can_accept(self, contractor_api_client, service_request, bid_factory, contractor):
        bid = bid_factory(service_request=service_request, contractor=contractor)

        response = contractor_api_client.post(f'{BIDS_URL}{bid.pk}/accept/')

        assert response.status_code == 403
        bid.refresh_from_db()
        assert bid.status == Bid.Status.PENDING

    def test_admin_can_accept(self, admin_api_client, competing_bids):
        response = admin_api_client.post(f'{BIDS_URL}{competing_bids[0].pk}/accept/')

        assert response.status_code == 200

    def test_cannot_accept_twice(self, authenticated_api_client, competing_bids):
        authenticated_api_client.post(f'{BIDS_URL}{competing_bids[0].pk}/accept/')

        response = authenticated_api_client.post(f'{BIDS_URL}{competing_bids[1].pk}/accept/')

        assert response.status_code == 409

    def test_reject_bid(self, authenticated_api_client, competing_bids):
        bid = competing_bids[0]

        response = authenticated_api_client.post(f'{BIDS_URL}{bid.pk}/reject/')

        assert response.status_code == 200
        assert response.data['status'] == 'rejected'
        assert response.data['rejected_at'] is not None

    def test_withdraw_own_bid(self, contractor_api_client, contractor, service_request, bid_factory):
        bid = bid_factory(service_request=service_request, contractor=contractor)

        response = contractor_api_client.post(f'{BIDS_URL}{bid.pk}/withdraw/')

        assert response.status_code == 200
        assert response.data['status'] == 'withdrawn'

    def test_withdraw_accepted_bid_conflicts(self, contractor_api_client, contractor, service_request, bid_factory):
        bid = bid_factory(service_request=service_request, contractor=contractor, status=Bid.Status.ACCEPTED)

        response = contractor_api_client.post(f'{BIDS_URL}{bid.pk}/withdraw/')

        assert response.status_code == 409


# ============================================================================
# LISTING
# ============================================================================

@pytest.mark.django_db
class TestBidListing:

    def test_contractor_sees_only_own_bids(self, contractor_api_client, contractor, bid_factory):
        own = bid_factory(contractor=contractor)
        bid_factory()

        response = contractor_api_client.get(BIDS_URL)

        assert response.status_code == 200
        assert [b['id'] for b in response.data['results']] == [own.pk]

    def test_customer_sees_bids_on_own_requests(self, authenticated_api_client, service_request, bid_factory):
        bid_factory(service_request=service_request)
        bid_factory(service_request=service_request)
        bid_factory()

        response = authenticated_api_client.get(BIDS_URL)

        assert response.data['count'] == 2

    def test_request_bids_action(self, authenticated_api_client, service_request, bid_factory):
        bid_factory(service_request=service_request)

        response = authenticated_api_client.get(f'/api/services/requests/{service_request.pk}/bids/')

        assert response.status_code == 200
        assert response.data['count'] == 1

    def test_filter_by_status(self, authenticated_api_client, service_request, bid_factory):
        bid_factory(service_request=service_request)
        bid_factory(service_request=service_request, status=Bid.Status.REJECTED)

        response = authenticated_api_client.get(BIDS_URL, {'status': 'pending'})

        assert response.data['count'] == 1

    def test_since_filter(self, authenticated_api_client, service_request, bid_factory):
        old = bid_factory(service_request=service_request)
        Bid.objects.filter(pk=old.pk).update(updated_at=timezone.now() - timedelta(hours=1))
        bid_factory(service_request=service_request)

        since = (timezone.now() - timedelta(minutes=5)).isoformat()
        response = authenticated_api_client.get(BIDS_URL, {'since': since})

        assert response.data['count'] == 1
