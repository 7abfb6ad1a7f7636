"""
Shared helpers for the API views.
"""

from django.core.paginator import EmptyPage, Paginator
from rest_framework import status
from rest_framework.response import Response

from ..exceptions import PlatformError


class ClientIPMixin:

    def get_client_ip(self, request):
        """
        Get client IP address from request.
        Handles proxy headers for accurate IP detection.
        """
        x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
        if x_forwarded_for:
            ip = x_forwarded_for.split(',')[0].strip()
        else:
            ip = request.META.get('REMOTE_ADDR')
        return ip


def success(data=None, message=None, status_code=status.HTTP_200_OK):
    """Build the ``{success: true, data, message?}`` response."""
    body = {'success': True}
    if data is not None:
        body['data'] = data
    if message:
        body['message'] = message
    return Response(body, status=status_code)


def _positive_int(raw, default):
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return value if value >= 1 else default


def paginate(request, queryset, default_limit=10, max_limit=100):
    """
    Slice ``queryset`` using the ``page`` and ``limit`` query parameters.

    Returns:
        tuple: (objects on the page, ``{page, limit, total, pages}``)

    Raises:
        PlatformError: 404 if the page number is past the last page
    """
    limit = min(_positive_int(request.query_params.get('limit'), default_limit), max_limit)
    page_number = _positive_int(request.query_params.get('page'), 1)

    paginator = Paginator(queryset, limit)
    try:
        page_obj = paginator.page(page_number)
    except EmptyPage:
        raise PlatformError(f'Invalid page number. Page {page_number} does not exist.', 404)

    return page_obj.object_list, {
        'page': page_number,
        'limit': limit,
        'total': paginator.count,
        'pages': paginator.num_pages,
    }


def query_flag(request, name):
    return str(request.query_params.get(name, '')).lower() in ('1', 'true', 'yes')
