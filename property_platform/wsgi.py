"""
WSGI config for the property platform.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'property_platform.settings')

application = get_wsgi_application()
