"""
ASGI config for the property platform.
"""

import os

from django.core.asgi import get_asgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'property_platform.settings')

application = get_asgi_application()
