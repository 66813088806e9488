"""
Tests for service request intake, visibility, contact-info locking and
status transitions.
"""

import pytest

from notifications.models import Notification
from services.models import Bid, ServiceRequest

REQUESTS_URL = '/api/services/requests/'


def request_payload(**overrides):
    payload = {
        'service_types': ['plumbing', 'plumbing', 'hvac'],
        'description': 'Water heater is leaking into the garage.',
        'urgency': 'high',
        'formatted_address': '100 Congress Ave, Austin, TX 78701',
        'latitude': 30.2672,
        'longitude': -97.7431,
        'city': 'Austin',
        'state': 'TX',
        'zip_code': '78701',
        'customer_name': 'Pat Guest',
        'customer_email': 'pat@example.com',
        'customer_phone': '512-555-0199',
    }
    payload.update(overrides)
    return payload


# ============================================================================
# INTAKE
# ============================================================================

@pytest.mark.django_db
class TestCreateServiceRequest:

    def test_guest_can_file_request(self, api_client):
        response = api_client.post(REQUESTS_URL, request_payload(), format='json')

        assert response.status_code == 201
        assert response.data['status'] == 'pending'
        assert response.data['request_id'].startswith('REQ-')
        assert response.data['service_types'] == ['plumbing', 'hvac']
        assert response.data['title'] == 'Plumbing request'

        service_request = ServiceRequest.objects.get(request_id=response.data['request_id'])
        assert service_request.customer is None
        assert service_request.payment_status == ServiceRequest.PaymentStatus.NONE

    def test_guest_sees_own_contact_details(self, api_client):
        response = api_client.post(REQUESTS_URL, request_payload(), format='json')

        assert response.data['contact_info_locked'] is False
        assert response.data['customer_email'] == 'pat@example.com'
        assert response.data['customer_phone'] == '512-555-0199'

    def test_guest_cannot_read_request_back(self, api_client):
        created = api_client.post(REQUESTS_URL, request_payload(), format='json')

        response = api_client.get(f"{REQUESTS_URL}{created.data['id']}/")

        assert response.status_code == 401

    def test_guest_request_links_registered_email(self, api_client, user_factory):
        registered = user_factory(email='pat@example.com')

        response = api_client.post(REQUESTS_URL, request_payload(customer_email='PAT@example.com'), format='json')

        assert ServiceRequest.objects.get(pk=response.data['id']).customer == registered

    def test_authenticated_customer_owns_request(self, authenticated_api_client, user):
        response = authenticated_api_client.post(
            REQUESTS_URL,
            request_payload(customer_email='', customer_name=''),
            format='json',
        )

        assert response.status_code == 201
        service_request = ServiceRequest.objects.get(pk=response.data['id'])
        assert service_request.customer == user
        assert service_request.customer_email == user.email

    def test_service_types_required(self, api_client):
        response = api_client.post(REQUESTS_URL, request_payload(service_types=[]), format='json')

        assert response.status_code == 400
        assert response.data['errors'][0]['field'] == 'service_types'

    def test_unknown_service_type(self, api_client):
        response = api_client.post(REQUESTS_URL, request_payload(service_types=['pool_cleaning']), format='json')

        assert response.status_code == 400

    def test_coordinates_must_come_together(self, api_client):
        payload = request_payload()
        del payload['longitude']

        response = api_client.post(REQUESTS_URL, payload, format='json')

        assert response.status_code == 400
        assert response.data['error'] == 'latitude and longitude must be provided together'


# ============================================================================
# VISIBILITY
# ============================================================================

@pytest.mark.django_db
class TestServiceRequestVisibility:

    def test_customer_sees_only_own(self, authenticated_api_client, service_request, service_request_factory):
        service_request_factory()

        response = authenticated_api_client.get(REQUESTS_URL)

        assert response.status_code == 200
        assert [r['id'] for r in response.data['results']] == [service_request.pk]

    def test_contractor_sees_open_and_assigned(
        self, contractor_api_client, contractor, service_request_factory
    ):
        open_request = service_request_factory()
        assigned = service_request_factory(
            status=ServiceRequest.Status.IN_PROGRESS, assigned_contractor=contractor
        )
        service_request_factory(status=ServiceRequest.Status.COMPLETED)

        response = contractor_api_client.get(REQUESTS_URL)

        assert {r['id'] for r in response.data['results']} == {open_request.pk, assigned.pk}

    def test_anonymous_list_is_denied(self, api_client, service_request):
        response = api_client.get(REQUESTS_URL)

        assert response.status_code == 401

    def test_admin_sees_all(self, admin_api_client, service_request_factory):
        service_request_factory.create_batch(3)

        response = admin_api_client.get(REQUESTS_URL)

        assert response.data['count'] == 3

    def test_limit_pagination(self, authenticated_api_client, user, service_request_factory):
        service_request_factory.create_batch(3, customer=user)

        response = authenticated_api_client.get(REQUESTS_URL, {'limit': 2})

        assert response.data['count'] == 3
        assert len(response.data['results']) == 2
        assert response.data['total_pages'] == 2

    def test_filter_by_service_type(self, authenticated_api_client, user, service_request_factory):
        service_request_factory(customer=user, service_types=['plumbing'])
        electrical = service_request_factory(customer=user, service_types=['electrical', 'hvac'])

        response = authenticated_api_client.get(REQUESTS_URL, {'service_type': 'hvac'})

        assert [r['id'] for r in response.data['results']] == [electrical.pk]

    def test_bid_count(self, authenticated_api_client, service_request, bid_factory):
        bid_factory(service_request=service_request)
        bid_factory(service_request=service_request, status=Bid.Status.EXPIRED)

        response = authenticated_api_client.get(REQUESTS_URL)

        assert response.data['results'][0]['bid_count'] == 1


@pytest.mark.django_db
class TestContactInfoLocking:

    def test_contractor_without_lead_access_sees_locked_contact(self, contractor_api_client, service_request):
        response = contractor_api_client.get(f'{REQUESTS_URL}{service_request.pk}/')

        assert response.status_code == 200
        assert response.data['contact_info_locked'] is True
        assert response.data['customer_email'] is None
        assert response.data['customer_phone'] is None

    def test_contractor_with_lead_access_sees_contact(
        self, contractor_api_client, contractor, service_request, lead_access_factory
    ):
        lead_access_factory(contractor=contractor, service_request=service_request)

        response = contractor_api_client.get(f'{REQUESTS_URL}{service_request.pk}/')

        assert response.data['contact_info_locked'] is False
        assert response.data['customer_email'] == service_request.customer_email

    def test_failed_lead_access_keeps_contact_locked(
        self, contractor_api_client, contractor, service_request, lead_access_factory
    ):
        lead_access_factory(contractor=contractor, service_request=service_request, payment_status='failed')

        response = contractor_api_client.get(f'{REQUESTS_URL}{service_request.pk}/')

        assert response.data['contact_info_locked'] is True

    def test_customer_sees_own_contact(self, authenticated_api_client, service_request):
        response = authenticated_api_client.get(f'{REQUESTS_URL}{service_request.pk}/')

        assert response.data['customer_email'] == service_request.customer_email


# ============================================================================
# TRANSITIONS
# ============================================================================

@pytest.mark.django_db
class TestServiceRequestTransitions:

    def test_find_contractors(self, authenticated_api_client, service_request):
        response = authenticated_api_client.post(f'{REQUESTS_URL}{service_request.pk}/find-contractors/')

        assert response.status_code == 200
        assert response.data['status'] == 'finding_contractors'

    def test_edit_open_request(self, authenticated_api_client, service_request):
        response = authenticated_api_client.patch(
            f'{REQUESTS_URL}{service_request.pk}/', {'description': 'Now also dripping.'}, format='json'
        )

        assert response.status_code == 200
        assert response.data['description'] == 'Now also dripping.'

    def test_edit_closed_request_conflicts(self, authenticated_api_client, service_request, contractor):
        service_request.select_contractor(contractor)

        response = authenticated_api_client.patch(
            f'{REQUESTS_URL}{service_request.pk}/', {'description': 'Changed my mind.'}, format='json'
        )

        assert response.status_code == 409

    def test_start_and_complete_by_assigned_contractor(self, contractor_api_client, contractor, service_request):
        service_request.select_contractor(contractor)

        started = contractor_api_client.post(f'{REQUESTS_URL}{service_request.pk}/start/')
        completed = contractor_api_client.post(f'{REQUESTS_URL}{service_request.pk}/complete/')

        assert started.data['status'] == 'in_progress'
        assert completed.status_code == 200
        assert completed.data['status'] == 'completed'
        assert completed.data['completed_at'] is not None

        notification = Notification.objects.get(recipient=service_request.customer)
        assert notification.notification_type == Notification.Type.JOB_COMPLETED
        assert notification.priority == Notification.Priority.HIGH

    def test_complete_requires_in_progress(self, authenticated_api_client, service_request):
        response = authenticated_api_client.post(f'{REQUESTS_URL}{service_request.pk}/complete/')

        assert response.status_code == 409
        assert response.data['error_code'] == 'INVALID_STATUS_TRANSITION'

    def test_cancel_closes_pending_bids(self, authenticated_api_client, service_request, bid_factory):
        bid = bid_factory(service_request=service_request)

        response = authenticated_api_client.post(
            f'{REQUESTS_URL}{service_request.pk}/cancel/', {'reason': 'Fixed it myself'}, format='json'
        )

        assert response.status_code == 200
        assert response.data['status'] == 'cancelled'
        assert response.data['cancellation_reason'] == 'Fixed it myself'
        bid.refresh_from_db()
        assert bid.status == Bid.Status.REJECTED

    def test_cannot_cancel_completed(self, authenticated_api_client, service_request_factory, user):
        service_request = service_request_factory(customer=user, status=ServiceRequest.Status.COMPLETED)

        response = authenticated_api_client.post(f'{REQUESTS_URL}{service_request.pk}/cancel/')

        assert response.status_code == 409

    def test_other_contractor_cannot_cancel(self, contractor_api_client, service_request):
        response = contractor_api_client.post(f'{REQUESTS_URL}{service_request.pk}/cancel/')

        assert response.status_code == 403
