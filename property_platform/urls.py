"""
URL configuration for the property platform.

The API lives in ``realty.urls``; this module adds the Django admin site,
the health probe, uploaded media and JSON error handlers.
"""
from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import include, path

from realty.views.health import health


urlpatterns = [
    path('admin/', admin.site.urls),
    path('health/', health, name='health'),
    path('', include('realty.urls')),
] + static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)

handler404 = 'realty.exceptions.json_not_found'
handler500 = 'realty.exceptions.json_server_error'
