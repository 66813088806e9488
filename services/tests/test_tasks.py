"""
Tests for services Celery tasks.
"""

from datetime import timedelta

import pytest
from django.utils import timezone

from services.models import Bid
from services.tasks import expire_stale_bids


@pytest.mark.django_db
class TestExpireStaleBids:

    def test_expires_pending_bids_past_validity(self, bid_factory):
        stale = bid_factory(valid_until=timezone.now() - timedelta(days=1))
        fresh = bid_factory(valid_until=timezone.now() + timedelta(days=1))
        open_ended = bid_factory(valid_until=None)
        accepted = bid_factory(valid_until=timezone.now() - timedelta(days=1), status=Bid.Status.ACCEPTED)

        result = expire_stale_bids.apply().get()

        assert result['status'] == 'success'
        assert result['expired_count'] == 1
        for bid in (stale, fresh, open_ended, accepted):
            bid.refresh_from_db()
        assert stale.status == Bid.Status.EXPIRED
        assert fresh.status == Bid.Status.PENDING
        assert open_ended.status == Bid.Status.PENDING
        assert accepted.status == Bid.Status.ACCEPTED

    def test_expired_bid_allows_rebid(self, bid_factory, contractor_api_client, contractor, service_request):
        bid_factory(
            service_request=service_request,
            contractor=contractor,
            valid_until=timezone.now() - timedelta(hours=1),
        )
        expire_stale_bids.apply()

        response = contractor_api_client.post('/api/services/bids/', {
            'service_request': service_request.pk,
            'amount': '180.00',
            'description': 'Updated quote',
        }, format='json')

        assert response.status_code == 201
