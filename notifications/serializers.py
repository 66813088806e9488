"""
Notification Serializers for REST API.
"""

from django.contrib.auth import get_user_model
from django.utils.timesince import timesince
from rest_framework import serializers

from core.permissions import is_platform_admin

from .models import Notification

User = get_user_model()


class NotificationSerializer(serializers.ModelSerializer):
    """Read serializer for a user's notifications."""
    notification_type_display = serializers.CharField(
        source='get_notification_type_display',
        read_only=True
    )
    time_ago = serializers.SerializerMethodField()
    service_request_id = serializers.CharField(
        source='service_request.request_id',
        read_only=True,
        default=None
    )

    class Meta:
        model = Notification
        fields = [
            'id', 'uuid', 'notification_type', 'notification_type_display',
            'title', 'message', 'priority', 'channels', 'is_read', 'read_at',
            'data', 'action_label', 'action_url', 'service_request',
            'service_request_id', 'email_sent_at', 'created_at', 'time_ago',
        ]
        read_only_fields = fields

    def get_time_ago(self, obj):
        return f"{timesince(obj.created_at)} ago"


class NotificationCreateSerializer(serializers.ModelSerializer):
    """
    Create a notification. Only platform admins may target another user.
    """
    recipient = serializers.PrimaryKeyRelatedField(
        queryset=User.objects.all(),
        required=False
    )
    channels = serializers.ListField(
        child=serializers.ChoiceField(choices=Notification.Channel.choices),
        required=False,
    )

    class Meta:
        model = Notification
        fields = [
            'recipient', 'notification_type', 'title', 'message', 'priority',
            'channels', 'data', 'action_label', 'action_url', 'service_request',
        ]
        extra_kwargs = {
            'title': {'max_length': 200},
            'message': {'max_length': 1000},
        }

    def validate_recipient(self, value):
        user = self.context['request'].user
        if value != user and not is_platform_admin(user):
            raise serializers.ValidationError('You can only create notifications for yourself')
        return value

    def to_representation(self, instance):
        return NotificationSerializer(instance, context=self.context).data


class NotificationUpdateSerializer(serializers.ModelSerializer):
    """Only the read flag is writable."""

    class Meta:
        model = Notification
        fields = ['is_read']

    def update(self, instance, validated_data):
        if validated_data.get('is_read') is True:
            instance.mark_as_read()
        elif validated_data.get('is_read') is False:
            instance.mark_as_unread()
        return instance

    def to_representation(self, instance):
        return NotificationSerializer(instance, context=self.context).data
