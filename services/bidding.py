"""
Bidding workflow - bid submission, acceptance and rejection.

Submission is a lookup-then-insert guarded by a row lock on the service
request and by the partial unique constraint on (service_request,
contractor) for non-expired bids.
"""

import logging

from django.db import IntegrityError, transaction
from django.utils.translation import gettext_lazy as _
from rest_framework import status
from rest_framework.exceptions import NotFound

from core.exceptions import ConflictError, MarketplaceAPIException
from notifications.models import Notification
from notifications.services import notify

from .models import Bid, ServiceRequest

logger = logging.getLogger(__name__)


class DuplicateBidError(MarketplaceAPIException):
    """Raised when a contractor already has a live bid on the request."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = _("Contractor has already submitted a bid for this request")
    default_code = "DUPLICATE_BID"


def has_active_bid(service_request, contractor) -> bool:
    return Bid.objects.filter(
        service_request=service_request,
        contractor=contractor,
    ).exclude(status=Bid.Status.EXPIRED).exists()


def submit_bid(contractor, service_request_id, amount, description, **fields) -> Bid:
    """
    Create a pending bid for a contractor on an open service request.

    Raises:
        NotFound: unknown service request
        ConflictError: the request no longer accepts bids
        DuplicateBidError: the contractor already has a non-expired bid
    """
    with transaction.atomic():
        try:
            service_request = ServiceRequest.objects.select_for_update().get(pk=service_request_id)
        except (ServiceRequest.DoesNotExist, ValueError, TypeError):
            raise NotFound('Service request not found')

        if not service_request.is_open:
            raise ConflictError(
                f"Service request {service_request.request_id} is no longer accepting bids"
            )

        if has_active_bid(service_request, contractor):
            raise DuplicateBidError()

        try:
            with transaction.atomic():
                bid = Bid.objects.create(
                    service_request=service_request,
                    contractor=contractor,
                    amount=amount,
                    description=description,
                    **fields
                )
        except IntegrityError:
            raise DuplicateBidError()

    logger.info(
        f"Bid {bid.pk} submitted by contractor {contractor.id} "
        f"on {service_request.request_id} for {amount}"
    )

    customer = service_request.customer or service_request.link_customer_by_email()
    if customer:
        notify(
            recipient=customer,
            notification_type=Notification.Type.QUOTE_RECEIVED,
            title='New quote received',
            message=(
                f"{contractor.display_name} sent a quote of ${bid.amount} "
                f"for {service_request.title}."
            ),
            service_request=service_request,
            data={'bid_id': bid.pk, 'amount': str(bid.amount)},
            action_label='View quote',
        )
    else:
        logger.info(f"No registered customer for {service_request.request_id}; quote notification skipped")

    return bid


def accept_bid(bid: Bid) -> Bid:
    """
    Accept a pending bid.

    Other pending bids on the request are rejected and the request moves to
    contractor_selected with the bid's contractor assigned.
    """
    with transaction.atomic():
        service_request = ServiceRequest.objects.select_for_update().get(pk=bid.service_request_id)
        bid = Bid.objects.select_for_update().get(pk=bid.pk)

        if not bid.is_pending:
            raise ConflictError(f"Only pending bids can be accepted (bid is {bid.status})")
        if not service_request.is_open:
            raise ConflictError(
                f"Service request {service_request.request_id} already has a selected contractor"
            )

        lapsed = bid.is_past_validity
        if lapsed:
            bid.expire()
        else:
            bid.accept()
            competing = list(
                service_request.bids.filter(status=Bid.Status.PENDING).exclude(pk=bid.pk).select_related('contractor')
            )
            for other in competing:
                other.reject()
            service_request.select_contractor(bid.contractor)

    if lapsed:
        logger.info(f"Bid {bid.pk} expired before acceptance on {service_request.request_id}")
        raise ConflictError(f"Bid {bid.pk} expired on {bid.valid_until.isoformat()}")

    logger.info(
        f"Bid {bid.pk} accepted on {service_request.request_id}; "
        f"{len(competing)} competing bid(s) rejected"
    )

    notify(
        recipient=bid.contractor,
        notification_type=Notification.Type.QUOTE_ACCEPTED,
        title='Your quote was accepted',
        message=f"Your quote of ${bid.amount} for {service_request.title} was accepted.",
        priority=Notification.Priority.HIGH,
        service_request=service_request,
        data={'bid_id': bid.pk},
    )
    notify(
        recipient=bid.contractor,
        notification_type=Notification.Type.JOB_ASSIGNED,
        title='New job assigned',
        message=f"You have been selected for {service_request.title} ({service_request.request_id}).",
        priority=Notification.Priority.HIGH,
        channels=[Notification.Channel.IN_APP, Notification.Channel.EMAIL],
        service_request=service_request,
        action_label='View job',
    )
    for other in competing:
        _notify_rejected(other, service_request)

    return bid


def reject_bid(bid: Bid) -> Bid:
    """Reject a pending bid."""
    if not bid.is_pending:
        raise ConflictError(f"Only pending bids can be rejected (bid is {bid.status})")

    bid.reject()
    logger.info(f"Bid {bid.pk} rejected on {bid.service_request.request_id}")
    _notify_rejected(bid, bid.service_request)
    return bid


def withdraw_bid(bid: Bid) -> Bid:
    if not bid.is_pending:
        raise ConflictError(f"Only pending bids can be withdrawn (bid is {bid.status})")
    bid.withdraw()
    logger.info(f"Bid {bid.pk} withdrawn by contractor {bid.contractor_id}")
    return bid


def _notify_rejected(bid, service_request):
    notify(
        recipient=bid.contractor,
        notification_type=Notification.Type.QUOTE_REJECTED,
        title='Quote not selected',
        message=f"Your quote for {service_request.title} was not selected.",
        service_request=service_request,
        data={'bid_id': bid.pk},
    )
