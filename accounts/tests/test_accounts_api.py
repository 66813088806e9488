"""
Tests for registration, the own-account endpoint, JWT login and the
contractor profile.
"""

import pytest
from django.urls import reverse

from accounts.models import ContractorProfile, User

STRONG_PASSWORD = 'Plumb1ng-Rocks!'


# ============================================================================
# REGISTRATION
# ============================================================================

@pytest.mark.django_db
class TestRegistration:

    url = '/api/accounts/register/'

    def test_register_client(self, api_client):
        response = api_client.post(self.url, {
            'email': 'Jane@Example.com',
            'first_name': 'Jane',
            'last_name': 'Doe',
            'password': STRONG_PASSWORD,
            'password_confirm': STRONG_PASSWORD,
        }, format='json')

        assert response.status_code == 201
        assert response.data['email'] == 'jane@example.com'
        assert response.data['role'] == 'client'
        user = User.objects.get(email='jane@example.com')
        assert user.username
        assert user.check_password(STRONG_PASSWORD)

    def test_register_contractor(self, api_client):
        response = api_client.post(self.url, {
            'email': 'pro@example.com',
            'role': 'contractor',
            'password': STRONG_PASSWORD,
            'password_confirm': STRONG_PASSWORD,
        }, format='json')

        assert response.status_code == 201
        assert User.objects.get(email='pro@example.com').is_contractor

    def test_admin_role_cannot_be_self_assigned(self, api_client):
        response = api_client.post(self.url, {
            'email': 'sneaky@example.com',
            'role': 'admin',
            'password': STRONG_PASSWORD,
            'password_confirm': STRONG_PASSWORD,
        }, format='json')

        assert response.status_code == 400
        assert response.data['error_code'] == 'VALIDATION_ERROR'
        assert not User.objects.filter(email='sneaky@example.com').exists()

    def test_password_mismatch(self, api_client):
        response = api_client.post(self.url, {
            'email': 'typo@example.com',
            'password': STRONG_PASSWORD,
            'password_confirm': STRONG_PASSWORD + 'x',
        }, format='json')

        assert response.status_code == 400
        assert response.data['errors'][0]['field'] == 'password_confirm'

    def test_duplicate_email(self, api_client, user):
        response = api_client.post(self.url, {
            'email': user.email.upper(),
            'password': STRONG_PASSWORD,
            'password_confirm': STRONG_PASSWORD,
        }, format='json')

        assert response.status_code == 400


# ============================================================================
# AUTH
# ============================================================================

@pytest.mark.django_db
class TestTokenLogin:

    def test_obtain_token_with_email(self, api_client, user):
        response = api_client.post(reverse('token_obtain_pair'), {
            'email': user.email,
            'password': 'testpass123',
        }, format='json')

        assert response.status_code == 200
        assert 'access' in response.data
        assert 'refresh' in response.data

    def test_bearer_token_authenticates(self, api_client, user):
        token = api_client.post(reverse('token_obtain_pair'), {
            'email': user.email,
            'password': 'testpass123',
        }, format='json').data['access']

        api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
        response = api_client.get('/api/accounts/me/')

        assert response.status_code == 200
        assert response.data['email'] == user.email

    def test_me_requires_authentication(self, api_client):
        response = api_client.get('/api/accounts/me/')

        assert response.status_code == 401


@pytest.mark.django_db
class TestMe:

    def test_update_own_name(self, authenticated_api_client, user):
        response = authenticated_api_client.patch('/api/accounts/me/', {'first_name': 'Renamed'}, format='json')

        assert response.status_code == 200
        user.refresh_from_db()
        assert user.first_name == 'Renamed'

    def test_role_is_read_only(self, authenticated_api_client, user):
        authenticated_api_client.patch('/api/accounts/me/', {'role': 'admin'}, format='json')

        user.refresh_from_db()
        assert user.role == 'client'


# ============================================================================
# CONTRACTOR PROFILE
# ============================================================================

@pytest.mark.django_db
class TestContractorProfile:

    url = '/api/accounts/contractor-profile/'

    def test_get_missing_profile(self, contractor_api_client):
        response = contractor_api_client.get(self.url)

        assert response.status_code == 404

    def test_put_creates_profile(self, contractor_api_client, contractor):
        response = contractor_api_client.put(self.url, {
            'business_name': 'Drip Stop Plumbing',
            'services': ['plumbing', 'plumbing', 'hvac'],
            'latitude': 30.2672,
            'longitude': -97.7431,
            'city': 'Austin',
        }, format='json')

        assert response.status_code == 201
        profile = ContractorProfile.objects.get(user=contractor)
        assert profile.services == ['plumbing', 'hvac']
        assert profile.coordinates == (30.2672, -97.7431)

    def test_patch_updates_profile(self, contractor_api_client, contractor, contractor_profile_factory):
        contractor_profile_factory(user=contractor)

        response = contractor_api_client.patch(self.url, {'is_available': False}, format='json')

        assert response.status_code == 200
        assert ContractorProfile.objects.get(user=contractor).is_available is False

    def test_patch_without_profile(self, contractor_api_client):
        response = contractor_api_client.patch(self.url, {'is_available': False}, format='json')

        assert response.status_code == 404

    def test_clients_cannot_have_profiles(self, authenticated_api_client):
        response = authenticated_api_client.get(self.url)

        assert response.status_code == 403

    def test_verification_is_read_only(self, contractor_api_client, contractor, contractor_profile_factory):
        contractor_profile_factory(user=contractor)

        contractor_api_client.patch(self.url, {'is_verified': True}, format='json')

        assert ContractorProfile.objects.get(user=contractor).is_verified is False
