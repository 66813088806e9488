"""
Services API ViewSets - HomeFix Marketplace.

Provides:
- Service request intake, listing and status transitions
- Bid submission, acceptance, rejection and withdrawal
- Public contractor directory
- Contractor search ranked by distance
"""

import logging

from django.conf import settings
from django.db.models import Q
from rest_framework import permissions, status
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.models import ContractorProfile
from core.geocoding import rank_by_distance
from core.permissions import IsContractor, IsOwnerOrPlatformAdmin
from core.viewsets import SecureModelViewSet, SecureReadOnlyViewSet
from notifications.models import Notification
from notifications.services import notify

from ..bidding import accept_bid, reject_bid, submit_bid, withdraw_bid
from ..filters import BidFilter, ContractorDirectoryFilter, ServiceRequestFilter
from ..models import Bid, ServiceRequest
from ..serializers import (
    BidCreateSerializer,
    BidDetailSerializer,
    BidListSerializer,
    ContractorDirectorySerializer,
    ContractorSearchResultSerializer,
    ContractorSearchSerializer,
    ServiceRequestCancelSerializer,
    ServiceRequestCreateSerializer,
    ServiceRequestDetailSerializer,
    ServiceRequestListSerializer,
)

logger = logging.getLogger(__name__)


# =============================================================================
# SERVICE REQUESTS
# =============================================================================

class ServiceRequestViewSet(SecureModelViewSet):
    """
    ViewSet for service requests.

    Guests may file requests. Customers see their own requests, contractors
    see open requests plus the ones assigned to them, admins see all.
    """
    queryset = ServiceRequest.objects.select_related('customer', 'assigned_contractor')
    filterset_class = ServiceRequestFilter
    search_fields = ['request_id', 'title', 'description', 'city']
    ordering_fields = ['created_at', 'updated_at', 'urgency']
    ordering = ['-created_at']
    http_method_names = ['get', 'post', 'put', 'patch', 'head', 'options']
    owner_field = 'customer'

    action_permissions = {
        'create': [permissions.AllowAny],
        'update': [permissions.IsAuthenticated, IsOwnerOrPlatformAdmin],
        'partial_update': [permissions.IsAuthenticated, IsOwnerOrPlatformAdmin],
        'find_contractors': [permissions.IsAuthenticated, IsOwnerOrPlatformAdmin],
        'cancel': [permissions.IsAuthenticated, IsOwnerOrPlatformAdmin],
        'bids': [permissions.IsAuthenticated, IsOwnerOrPlatformAdmin],
    }

    def get_serializer_class(self):
        if self.action == 'list':
            return ServiceRequestListSerializer
        if self.action in ('create', 'update', 'partial_update'):
            return ServiceRequestCreateSerializer
        if self.action == 'cancel':
            return ServiceRequestCancelSerializer
        if self.action == 'bids':
            return BidListSerializer
        return ServiceRequestDetailSerializer

    def get_queryset(self):
        qs = super().get_queryset()
        user = self.request.user

        if not user.is_authenticated:
            return qs.none()
        if self.is_admin_request:
            return qs
        if user.is_contractor:
            return qs.filter(
                Q(status__in=ServiceRequest.OPEN_STATUSES) | Q(assigned_contractor=user)
            )
        return qs.filter(customer=user)

    def perform_create(self, serializer):
        user = self.request.user
        extra = {'status': ServiceRequest.Status.PENDING}
        if user.is_authenticated:
            extra['customer'] = user
            if not serializer.validated_data.get('customer_email'):
                extra['customer_email'] = user.email
            if not serializer.validated_data.get('customer_name'):
                extra['customer_name'] = user.get_full_name()
        service_request = serializer.save(**extra)
        if not service_request.customer_id:
            service_request.link_customer_by_email()
        logger.info(
            f"Service request {service_request.request_id} created "
            f"(customer={service_request.customer_id}, types={service_request.service_types})"
        )

    def update(self, request, *args, **kwargs):
        instance = self.get_object()
        if not instance.is_open:
            return Response(
                {'error': 'Only open requests can be edited'},
                status=status.HTTP_409_CONFLICT
            )
        return super().update(request, *args, **kwargs)

    def _detail_response(self, service_request):
        serializer = ServiceRequestDetailSerializer(service_request, context=self.get_serializer_context())
        return Response(serializer.data)

    def _is_participant(self, service_request):
        user = self.request.user
        return (
            self.is_admin_request
            or service_request.is_customer(user)
            or service_request.assigned_contractor_id == user.id
        )

    @action(detail=True, methods=['post'], url_path='find-contractors')
    def find_contractors(self, request, pk=None):
        """Move a pending request to finding_contractors."""
        service_request = self.get_object()
        service_request.start_search()
        logger.info(f"{service_request.request_id} is now finding contractors")
        return self._detail_response(service_request)

    @action(detail=True, methods=['post'])
    def start(self, request, pk=None):
        """Start work on a request with a selected contractor."""
        service_request = self.get_object()
        if not self._is_participant(service_request):
            return Response(
                {'error': 'Only the customer or the assigned contractor can start this job'},
                status=status.HTTP_403_FORBIDDEN
            )
        service_request.start_work()
        logger.info(f"Work started on {service_request.request_id} by user {request.user.id}")
        return self._detail_response(service_request)

    @action(detail=True, methods=['post'])
    def complete(self, request, pk=None):
        """Mark a request in progress as completed."""
        service_request = self.get_object()
        if not self._is_participant(service_request):
            return Response(
                {'error': 'Only the customer or the assigned contractor can complete this job'},
                status=status.HTTP_403_FORBIDDEN
            )
        service_request.complete()
        logger.info(f"{service_request.request_id} completed by user {request.user.id}")

        if service_request.customer:
            notify(
                recipient=service_request.customer,
                notification_type=Notification.Type.JOB_COMPLETED,
                title='Job completed',
                message=(
                    f"{service_request.title} has been marked as completed. "
                    f"You can now release the payment."
                ),
                priority=Notification.Priority.HIGH,
                channels=[Notification.Channel.IN_APP, Notification.Channel.EMAIL],
                service_request=service_request,
                action_label='Release payment',
            )
        return self._detail_response(service_request)

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        service_request = self.get_object()
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        service_request.cancel(reason=serializer.validated_data['reason'])
        rejected = service_request.bids.filter(status=Bid.Status.PENDING).count()
        for bid in service_request.bids.filter(status=Bid.Status.PENDING):
            bid.reject()
        logger.info(
            f"{service_request.request_id} cancelled by user {request.user.id}; "
            f"{rejected} pending bid(s) closed"
        )
        return self._detail_response(service_request)

    @action(detail=True, methods=['get'])
    def bids(self, request, pk=None):
        """Bids on this request, newest first."""
        service_request = self.get_object()
        qs = service_request.bids.select_related('contractor', 'service_request').order_by('-created_at')
        page = self.paginate_queryset(qs)
        if page is not None:
            serializer = BidListSerializer(page, many=True, context=self.get_serializer_context())
            return self.get_paginated_response(serializer.data)
        serializer = BidListSerializer(qs, many=True, context=self.get_serializer_context())
        return Response(serializer.data)


# =============================================================================
# BIDS
# =============================================================================

class BidViewSet(SecureModelViewSet):
    """
    ViewSet for contractor bids.

    Contractors see their own bids, customers see bids on their requests.
    """
    queryset = Bid.objects.select_related('service_request', 'contractor')
    filterset_class = BidFilter
    ordering_fields = ['created_at', 'amount', 'submitted_at']
    ordering = ['-created_at']
    http_method_names = ['get', 'post', 'head', 'options']

    action_permissions = {
        'create': [permissions.IsAuthenticated, IsContractor],
        'withdraw': [permissions.IsAuthenticated, IsContractor],
    }

    def get_serializer_class(self):
        if self.action == 'list':
            return BidListSerializer
        if self.action == 'create':
            return BidCreateSerializer
        return BidDetailSerializer

    def get_queryset(self):
        qs = super().get_queryset()
        if self.is_admin_request:
            return qs
        user = self.request.user
        return qs.filter(Q(contractor=user) | Q(service_request__customer=user))

    def create(self, request, *args, **kwargs):
        serializer = BidCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)

        bid = submit_bid(
            contractor=request.user,
            service_request_id=data.pop('service_request'),
            amount=data.pop('amount'),
            description=data.pop('description'),
            **data
        )
        return Response(
            BidDetailSerializer(bid, context=self.get_serializer_context()).data,
            status=status.HTTP_201_CREATED
        )

    def _require_customer(self, bid):
        if self.is_admin_request or bid.service_request.is_customer(self.request.user):
            return None
        return Response(
            {'error': 'Only the customer of this request can do that'},
            status=status.HTTP_403_FORBIDDEN
        )

    @action(detail=True, methods=['post'])
    def accept(self, request, pk=None):
        """Accept this bid and select its contractor."""
        bid = self.get_object()
        denied = self._require_customer(bid)
        if denied:
            return denied
        bid = accept_bid(bid)
        return Response(BidDetailSerializer(bid, context=self.get_serializer_context()).data)

    @action(detail=True, methods=['post'])
    def reject(self, request, pk=None):
        bid = self.get_object()
        denied = self._require_customer(bid)
        if denied:
            return denied
        bid = reject_bid(bid)
        return Response(BidDetailSerializer(bid, context=self.get_serializer_context()).data)

    @action(detail=True, methods=['post'])
    def withdraw(self, request, pk=None):
        bid = self.get_object()
        if bid.contractor_id != request.user.id:
            return Response(
                {'error': 'Only the contractor who submitted this bid can withdraw it'},
                status=status.HTTP_403_FORBIDDEN
            )
        bid = withdraw_bid(bid)
        return Response(BidDetailSerializer(bid, context=self.get_serializer_context()).data)


# =============================================================================
# CONTRACTOR DIRECTORY
# =============================================================================

class ContractorDirectoryViewSet(SecureReadOnlyViewSet):
    """
    Public list and detail of available contractors.

    Filter with ?services=plumbing,electrical, ?city=, ?state=, ?verified=.
    """
    queryset = ContractorProfile.objects.filter(is_available=True, user__is_active=True)
    serializer_class = ContractorDirectorySerializer
    permission_classes = [permissions.AllowAny]
    filterset_class = ContractorDirectoryFilter
    search_fields = ['business_name', 'description', 'city']
    ordering_fields = ['rating', 'review_count', 'years_experience', 'business_name']
    ordering = ['-rating', 'business_name']
    lookup_value_regex = r'\d+'


# =============================================================================
# CONTRACTOR SEARCH
# =============================================================================

class ContractorSearchView(APIView):
    """
    POST /api/services/contractors/search/

    Available contractors offering any of the requested services, nearest
    first.
    """
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = ContractorSearchSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        services = data['services']
        origin = (data['location']['lat'], data['location']['lng'])
        limit = data.get('limit') or settings.CONTRACTOR_SEARCH_DEFAULT_LIMIT

        candidates = [
            profile for profile in ContractorProfile.objects.filter(
                is_available=True,
                user__is_active=True,
            ).select_related('user')
            if profile.offers_any(services)
        ]
        ranked = rank_by_distance(candidates, origin, lambda p: p.coordinates, limit=limit)

        logger.info(
            f"Contractor search for {services} near {origin}: "
            f"{len(candidates)} candidate(s), {len(ranked)} returned"
        )

        results = ContractorSearchResultSerializer(
            [{'profile': profile, 'distance': distance} for profile, distance in ranked],
            many=True
        ).data
        return Response({'contractors': results, 'count': len(results)})
