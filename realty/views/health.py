"""
Liveness probe.
"""

from django.conf import settings
from django.http import JsonResponse
from django.utils import timezone
from django.views.decorators.http import require_GET


@require_GET
def health(request):
    """GET /health/ -> {"status": "OK", "timestamp": ..., "environment": ...}"""
    return JsonResponse({
        'status': 'OK',
        'timestamp': timezone.now().isoformat(),
        'environment': 'production' if settings.IS_PRODUCTION else 'development',
    })
