"""
WSGI config for the HomeFix marketplace.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'homefix.settings')

application = get_wsgi_application()
