"""
Notifications App for HomeFix.

In-app notifications polled by clients, with optional e-mail delivery
through Celery.

Usage:
    from notifications.services import notify

    notify(
        recipient=user,
        notification_type=Notification.Type.QUOTE_RECEIVED,
        title='New quote received',
        message='A contractor sent you a quote',
        channels=['in_app', 'email'],
    )
"""
