"""
Tests for the public contractor directory.
"""

import pytest

DIRECTORY_URL = '/api/services/contractors/'

PRIVATE_FIELDS = {
    'email', 'phone', 'user', 'formatted_address', 'latitude', 'longitude',
    'stripe_account_id', 'stripe_onboarding_complete',
}


@pytest.mark.django_db
class TestContractorDirectory:

    @pytest.fixture
    def profiles(self, contractor_profile_factory):
        return {
            'plumber': contractor_profile_factory(business_name='Austin Plumbing', rating='4.80'),
            'electrician': contractor_profile_factory(
                business_name='Sparky Electric', services=['electrical'], rating='4.20', city='Dallas',
            ),
            'handyman': contractor_profile_factory(
                business_name='Fix It All', services=['general', 'plumbing'], rating='3.90', is_verified=True,
            ),
            'unavailable': contractor_profile_factory(business_name='On Vacation', is_available=False),
        }

    def test_public_listing(self, api_client, profiles):
        response = api_client.get(DIRECTORY_URL)

        assert response.status_code == 200
        names = [c['business_name'] for c in response.data['results']]
        assert names == ['Austin Plumbing', 'Sparky Electric', 'Fix It All']

    def test_filter_by_services(self, api_client, profiles):
        response = api_client.get(DIRECTORY_URL, {'services': 'plumbing'})

        names = {c['business_name'] for c in response.data['results']}
        assert names == {'Austin Plumbing', 'Fix It All'}

    def test_filter_by_any_of_several_services(self, api_client, profiles):
        response = api_client.get(DIRECTORY_URL, {'services': 'electrical,general'})

        names = {c['business_name'] for c in response.data['results']}
        assert names == {'Sparky Electric', 'Fix It All'}

    def test_filter_by_city_and_verified(self, api_client, profiles):
        by_city = api_client.get(DIRECTORY_URL, {'city': 'dallas'})
        verified = api_client.get(DIRECTORY_URL, {'verified': 'true'})

        assert [c['business_name'] for c in by_city.data['results']] == ['Sparky Electric']
        assert [c['business_name'] for c in verified.data['results']] == ['Fix It All']

    def test_detail_hides_private_fields(self, api_client, profiles):
        profile = profiles['plumber']
        profile.user.stripe_account_id = 'acct_private'
        profile.user.save()

        response = api_client.get(f'{DIRECTORY_URL}{profile.pk}/')

        assert response.status_code == 200
        assert response.data['contractor_id'] == profile.user_id
        assert response.data['services'] == ['plumbing']
        assert not PRIVATE_FIELDS & set(response.data)
        assert 'acct_private' not in str(response.data)
        assert profile.user.email not in str(response.data)

    def test_unavailable_contractor_not_found(self, api_client, profiles):
        response = api_client.get(f"{DIRECTORY_URL}{profiles['unavailable'].pk}/")

        assert response.status_code == 404

    def test_directory_is_read_only(self, contractor_api_client, profiles):
        response = contractor_api_client.post(DIRECTORY_URL, {'business_name': 'New'}, format='json')

        assert response.status_code == 405
