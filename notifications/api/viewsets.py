"""
Notifications API ViewSets.

Clients poll the list with `since` every 30 seconds.
"""

import logging

from django.utils.dateparse import parse_datetime
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response

from core.viewsets import SecureModelViewSet

from ..models import Notification
from ..serializers import (
    NotificationCreateSerializer,
    NotificationSerializer,
    NotificationUpdateSerializer,
)
from ..services import get_unread_count, mark_all_as_read, notify

logger = logging.getLogger(__name__)


class NotificationViewSet(SecureModelViewSet):
    """
    ViewSet for the current user's notifications.

    Query params:
    - unread_only: true to list unread notifications only
    - notification_type: filter by type
    - since: ISO timestamp, only newer notifications
    """
    serializer_class = NotificationSerializer
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']
    ordering = ['-created_at']

    def get_queryset(self):
        qs = Notification.objects.filter(
            recipient=self.request.user
        ).select_related('service_request')

        params = self.request.query_params
        if params.get('unread_only', '').lower() in ('true', '1'):
            qs = qs.filter(is_read=False)

        notification_type = params.get('notification_type')
        if notification_type:
            qs = qs.filter(notification_type=notification_type)

        since = params.get('since')
        if since:
            since_dt = parse_datetime(since)
            if since_dt is None:
                raise ValidationError({'since': ['Invalid ISO timestamp']})
            qs = qs.filter(created_at__gt=since_dt)

        return qs.order_by('-created_at')

    def get_serializer_class(self):
        if self.action == 'create':
            return NotificationCreateSerializer
        if self.action == 'partial_update':
            return NotificationUpdateSerializer
        return NotificationSerializer

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        notification = notify(
            recipient=data.get('recipient') or request.user,
            notification_type=data.get('notification_type', Notification.Type.SYSTEM_UPDATE),
            title=data['title'],
            message=data['message'],
            priority=data.get('priority', Notification.Priority.NORMAL),
            channels=data.get('channels'),
            data=data.get('data'),
            service_request=data.get('service_request'),
            action_label=data.get('action_label', ''),
            action_url=data.get('action_url', ''),
        )
        return Response(
            NotificationSerializer(notification, context=self.get_serializer_context()).data,
            status=status.HTTP_201_CREATED
        )

    @action(detail=False, methods=['post'], url_path='mark-all-read')
    def mark_all_read(self, request):
        """Mark all notifications as read."""
        updated = mark_all_as_read(request.user)
        logger.info(f"User {request.user.id} marked {updated} notifications as read")
        return Response({'success': True, 'updated': updated})

    @action(detail=False, methods=['get'], url_path='unread-count')
    def unread_count(self, request):
        return Response({'unread_count': get_unread_count(request.user)})
