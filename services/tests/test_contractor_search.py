"""
Tests for contractor search ranked by distance.
"""

import pytest

SEARCH_URL = '/api/services/contractors/search/'

AUSTIN = {'lat': 30.2672, 'lng': -97.7431}


@pytest.mark.django_db
class TestContractorSearch:

    @pytest.fixture
    def profiles(self, contractor_profile_factory):
        return {
            'downtown': contractor_profile_factory(business_name='Downtown Plumbing'),
            'round_rock': contractor_profile_factory(
                business_name='Round Rock Pipes', latitude=30.5083, longitude=-97.6789,
            ),
            'dallas': contractor_profile_factory(
                business_name='Dallas Drains', latitude=32.7767, longitude=-96.7970,
            ),
            'electrician': contractor_profile_factory(
                business_name='Sparky', services=['electrical'],
            ),
            'unavailable': contractor_profile_factory(
                business_name='On Vacation', is_available=False,
            ),
            'no_location': contractor_profile_factory(
                business_name='Somewhere', latitude=None, longitude=None,
            ),
        }

    def test_ranked_nearest_first(self, api_client, profiles):
        response = api_client.post(SEARCH_URL, {'services': ['plumbing'], 'location': AUSTIN}, format='json')

        assert response.status_code == 200
        names = [c['business_name'] for c in response.data['contractors']]
        assert names == ['Downtown Plumbing', 'Round Rock Pipes', 'Dallas Drains']
        assert response.data['count'] == 3

        distances = [c['distance'] for c in response.data['contractors']]
        assert distances == sorted(distances)
        assert distances[0] == 0.0

    def test_result_identifies_contractor_user(self, api_client, profiles):
        response = api_client.post(SEARCH_URL, {'services': ['plumbing'], 'location': AUSTIN}, format='json')

        first = response.data['contractors'][0]
        assert first['id'] == profiles['downtown'].user_id
        assert first['profile_id'] == profiles['downtown'].pk

    def test_any_requested_service_matches(self, api_client, profiles):
        response = api_client.post(
            SEARCH_URL, {'services': ['electrical', 'roofing'], 'location': AUSTIN}, format='json'
        )

        assert [c['business_name'] for c in response.data['contractors']] == ['Sparky']

    def test_default_limit(self, api_client, contractor_profile_factory, settings):
        settings.CONTRACTOR_SEARCH_DEFAULT_LIMIT = 2
        contractor_profile_factory.create_batch(4)

        response = api_client.post(SEARCH_URL, {'services': ['plumbing'], 'location': AUSTIN}, format='json')

        assert response.data['count'] == 2

    def test_explicit_limit(self, api_client, profiles):
        response = api_client.post(
            SEARCH_URL, {'services': ['plumbing'], 'location': AUSTIN, 'limit': 1}, format='json'
        )

        assert [c['business_name'] for c in response.data['contractors']] == ['Downtown Plumbing']

    def test_inactive_users_are_excluded(self, api_client, profiles):
        user = profiles['downtown'].user
        user.is_active = False
        user.save()

        response = api_client.post(SEARCH_URL, {'services': ['plumbing'], 'location': AUSTIN}, format='json')

        assert 'Downtown Plumbing' not in [c['business_name'] for c in response.data['contractors']]

    def test_services_required(self, api_client):
        response = api_client.post(SEARCH_URL, {'services': [], 'location': AUSTIN}, format='json')

        assert response.status_code == 400
        assert response.data['error'] == 'Services array is required'

    @pytest.mark.parametrize('location', [
        None,
        {'lat': 30.2},
        {'lat': '30.2', 'lng': '-97.7'},
        {'lat': True, 'lng': -97.7},
    ])
    def test_location_required(self, api_client, location):
        response = api_client.post(
            SEARCH_URL, {'services': ['plumbing'], 'location': location}, format='json'
        )

        assert response.status_code == 400
        assert response.data['error'] == 'Valid location with lat and lng is required'

    def test_no_matches(self, api_client, profiles):
        response = api_client.post(SEARCH_URL, {'services': ['roofing'], 'location': AUSTIN}, format='json')

        assert response.data == {'contractors': [], 'count': 0}
