"""
Celery configuration for the HomeFix marketplace.

- Auto-discovery of tasks from all registered Django apps
- Task routing to the notifications and payments queues
- Retry and serialization defaults
"""

import os
from celery import Celery
from kombu import Exchange, Queue

# Set the default Django settings module for the 'celery' program.
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'homefix.settings')

app = Celery('homefix')

# namespace='CELERY' means all celery-related configuration keys
# should have a `CELERY_` prefix in Django settings.
app.config_from_object('django.conf:settings', namespace='CELERY')

# Load task modules from all registered Django apps.
app.autodiscover_tasks()


# ==================== QUEUE CONFIGURATION ====================

default_exchange = Exchange('default', type='direct')
payments_exchange = Exchange('payments', type='direct')
notifications_exchange = Exchange('notifications', type='direct')

app.conf.task_queues = (
    Queue('default', default_exchange, routing_key='default'),
    Queue('payments', payments_exchange, routing_key='payments'),
    Queue('notifications', notifications_exchange, routing_key='notifications'),
)

app.conf.task_default_queue = 'default'
app.conf.task_default_exchange = 'default'
app.conf.task_default_routing_key = 'default'


# ==================== TASK ROUTING ====================

app.conf.task_routes = {
    'notifications.tasks.*': {'queue': 'notifications', 'routing_key': 'notifications'},
    'leads.tasks.*': {'queue': 'payments', 'routing_key': 'payments'},
    'services.tasks.*': {'queue': 'default', 'routing_key': 'default'},
}

app.conf.task_annotations = {
    'notifications.tasks.send_notification_email': {'rate_limit': '100/m'},
}


# ==================== RETRY CONFIGURATION ====================

app.conf.task_default_retry_delay = 60  # 1 minute
app.conf.task_max_retries = 3


# ==================== SERIALIZATION ====================

app.conf.task_serializer = 'json'
app.conf.result_serializer = 'json'
app.conf.accept_content = ['json']
app.conf.timezone = 'UTC'
app.conf.enable_utc = True

# Results will be stored for 24 hours
app.conf.result_expires = 86400

# Acknowledge after completion
app.conf.task_acks_late = True
app.conf.task_reject_on_worker_lost = True

