"""
Escrow API ViewSets
"""

import logging

from django.conf import settings
from django.db.models import Q
from rest_framework import mixins, permissions, status
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from core.permissions import IsContractor
from core.viewsets import SecureGenericViewSet

from ..models import EscrowPayment
from ..services import (
    create_escrow_payment,
    refund_escrow,
    release_escrow,
    stripe_errors_as_api_errors,
)
from ..stripe_service import StripeConnectService
from .serializers import (
    ConnectAccountSerializer,
    EscrowPaymentCreateSerializer,
    EscrowPaymentDetailSerializer,
    EscrowPaymentListSerializer,
)

logger = logging.getLogger(__name__)


class EscrowPaymentViewSet(mixins.ListModelMixin,
                           mixins.RetrieveModelMixin,
                           SecureGenericViewSet):
    """
    Viewset for escrow payments.
    Users can view escrow where they are customer or contractor.
    """
    queryset = EscrowPayment.objects.select_related(
        'service_request',
        'customer',
        'contractor',
    ).order_by('-created_at')
    filterset_fields = ['status', 'service_request']
    search_fields = ['escrow_id', 'customer__email', 'contractor__email']
    ordering = ['-created_at']

    def get_serializer_class(self):
        if self.action == 'list':
            return EscrowPaymentListSerializer
        if self.action == 'create':
            return EscrowPaymentCreateSerializer
        return EscrowPaymentDetailSerializer

    def get_queryset(self):
        qs = super().get_queryset()
        if self.is_admin_request:
            return qs
        user = self.request.user
        return qs.filter(Q(customer=user) | Q(contractor=user))

    def create(self, request, *args, **kwargs):
        """Authorize the job amount and return the client secret."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        escrow, client_secret = create_escrow_payment(
            customer=request.user,
            service_request=data['service_request'],
            amount=data['amount'],
            contractor=data.get('contractor'),
        )
        return Response(
            {
                'escrow': EscrowPaymentDetailSerializer(escrow).data,
                'client_secret': client_secret,
                'payment_intent_id': escrow.stripe_payment_intent_id,
            },
            status=status.HTTP_201_CREATED
        )

    @action(detail=True, methods=['post'])
    def release(self, request, pk=None):
        """Capture the held funds and pay the contractor."""
        escrow = release_escrow(self.get_object(), request.user)
        return Response(EscrowPaymentDetailSerializer(escrow).data)

    @action(detail=True, methods=['post'])
    def refund(self, request, pk=None):
        """Cancel or refund the payment."""
        escrow = refund_escrow(self.get_object(), request.user)
        return Response(EscrowPaymentDetailSerializer(escrow).data)


class ConnectAccountView(APIView):
    """
    POST /api/escrow/connect/account/

    Create (or reuse) the contractor's Express account and return an
    onboarding link.
    """
    permission_classes = [permissions.IsAuthenticated, IsContractor]

    def post(self, request):
        serializer = ConnectAccountSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = request.user
        site_url = settings.SITE_URL.rstrip('/')

        with stripe_errors_as_api_errors():
            if not user.stripe_account_id:
                account = StripeConnectService.create_connected_account(user)
                user.stripe_account_id = account.id
                user.save(update_fields=['stripe_account_id'])
            link = StripeConnectService.create_account_link(
                user.stripe_account_id,
                refresh_url=serializer.validated_data.get(
                    'refresh_url', f"{site_url}/contractor/dashboard/profile?stripe=refresh"
                ),
                return_url=serializer.validated_data.get(
                    'return_url', f"{site_url}/contractor/dashboard/profile?stripe=success"
                ),
            )

        logger.info(f"Stripe onboarding link issued for user {user.id}")
        return Response({
            'account_id': user.stripe_account_id,
            'account_link_url': link.url,
        })


class ConnectStatusView(APIView):
    """
    GET /api/escrow/connect/status/
    """
    permission_classes = [permissions.IsAuthenticated, IsContractor]

    def get(self, request):
        user = request.user
        if not user.stripe_account_id:
            return Response({
                'account_id': None,
                'charges_enabled': False,
                'payouts_enabled': False,
                'details_submitted': False,
                'onboarding_complete': False,
            })

        with stripe_errors_as_api_errors():
            account_status = StripeConnectService.retrieve_account_status(user.stripe_account_id)

        complete = account_status['charges_enabled'] and account_status['payouts_enabled']
        if user.stripe_onboarding_complete != complete:
            user.stripe_onboarding_complete = complete
            user.save(update_fields=['stripe_onboarding_complete'])

        return Response({**account_status, 'onboarding_complete': complete})


class ConnectLoginLinkView(APIView):
    """
    POST /api/escrow/connect/login-link/

    Link to the contractor's Stripe Express dashboard (payouts, bank details).
    """
    permission_classes = [permissions.IsAuthenticated, IsContractor]

    def post(self, request):
        user = request.user
        if not user.stripe_account_id:
            return Response(
                {'error': 'No Stripe account connected. Complete onboarding first.'},
                status=status.HTTP_400_BAD_REQUEST
            )

        with stripe_errors_as_api_errors():
            login_link = StripeConnectService.create_login_link(user.stripe_account_id)

        logger.info(f"Stripe dashboard login link issued for user {user.id}")
        return Response({'url': login_link.url})
