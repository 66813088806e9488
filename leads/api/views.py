"""
Leads API Views.

- POST /api/leads/purchase/
- GET  /api/leads/access/?service_request=
- GET  /api/leads/price/?service_request=&lead_type=
- GET/POST /api/leads/chat/
"""

import logging

from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from core.permissions import IsContractor

from ..pricing import calculate_lead_price
from ..serializers import (
    LeadAccessSerializer,
    LeadChatMessageCreateSerializer,
    LeadChatMessageSerializer,
    LeadChatQuerySerializer,
    LeadPriceQuerySerializer,
    LeadPurchaseSerializer,
)
from ..services import (
    get_access_status,
    get_chat_messages,
    get_service_request,
    post_chat_message,
    purchase_lead_access,
)

logger = logging.getLogger(__name__)


def _service_request_param(request):
    return request.query_params.get('service_request') or None


class PurchaseLeadView(APIView):
    """Buy lead access with a Stripe payment method."""
    permission_classes = [permissions.IsAuthenticated, IsContractor]

    def post(self, request):
        serializer = LeadPurchaseSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        lead_access, intent = purchase_lead_access(
            contractor=request.user,
            service_request_id=data['service_request'],
            payment_method_id=data['payment_method_id'],
            lead_type=data['lead_type'],
        )

        body = {
            'lead_access': LeadAccessSerializer(lead_access).data,
            'lead_price': lead_access.lead_price,
            'payment_intent': {'id': intent.id, 'status': intent.status},
        }
        if intent.status == 'succeeded':
            body.update({'success': True, 'message': 'Lead purchased successfully!'})
            return Response(body, status=status.HTTP_201_CREATED)

        body['payment_intent']['client_secret'] = intent.client_secret
        body.update({
            'success': False,
            'requires_action': True,
            'message': 'Payment requires additional confirmation',
        })
        return Response(body, status=status.HTTP_202_ACCEPTED)


class LeadAccessCheckView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsContractor]

    def get(self, request):
        service_request_id = _service_request_param(request)
        if not service_request_id:
            return Response(
                {'error': 'service_request is required'},
                status=status.HTTP_400_BAD_REQUEST
            )
        service_request = get_service_request(service_request_id)
        return Response(get_access_status(request.user, service_request))


class LeadPriceView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        serializer = LeadPriceQuerySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        service_request = get_service_request(serializer.validated_data['service_request'])
        lead_type = serializer.validated_data['lead_type']
        return Response({
            'service_request': service_request.id,
            'lead_type': lead_type,
            'urgency': service_request.urgency,
            'lead_price': calculate_lead_price(lead_type, service_request.urgency),
            'currency': 'usd',
        })


class LeadChatView(APIView):
    """
    Messages between a customer and contractors holding lead access.
    """
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        query = LeadChatQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        service_request = get_service_request(query.validated_data['service_request'])
        messages = get_chat_messages(
            request.user,
            service_request,
            contractor_id=query.validated_data.get('contractor'),
        )
        return Response({
            'messages': LeadChatMessageSerializer(messages, many=True).data,
            'count': len(messages),
        })

    def post(self, request):
        serializer = LeadChatMessageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        service_request = get_service_request(data['service_request'])
        chat_message = post_chat_message(
            request.user,
            service_request,
            message=data['message'],
            message_type=data['message_type'],
            quote_info=data.get('quote_info'),
            contractor_id=data.get('contractor'),
        )
        return Response(
            {'success': True, 'message': LeadChatMessageSerializer(chat_message).data},
            status=status.HTTP_201_CREATED
        )
