"""
Error normalization for the API.

Every error response has the shape::

    {"success": false, "error": "<message>"}

with an optional ``details`` object carrying field-level validation errors.
"""

import logging

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError
from django.http import JsonResponse
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.serializers import as_serializer_error
from rest_framework.views import exception_handler


logger = logging.getLogger(__name__)


class PlatformError(APIException):
    """
    Business-rule failure raised by services and views.

    Usage:
        raise PlatformError('Property is not available for booking', 400)
    """
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Request could not be processed.'
    default_code = 'platform_error'

    def __init__(self, message=None, status_code=None):
        super().__init__(detail=message)
        if status_code is not None:
            self.status_code = status_code


def _first_message(detail):
    """Pull the first human-readable message out of a DRF error structure."""
    if isinstance(detail, dict):
        for value in detail.values():
            message = _first_message(value)
            if message:
                return message
        return None
    if isinstance(detail, (list, tuple)):
        for item in detail:
            message = _first_message(item)
            if message:
                return message
        return None
    return str(detail) if detail is not None else None


def api_exception_handler(exc, context):
    """
    DRF exception handler producing the ``{success: false, error}`` envelope.

    Mapping:
    - Validation errors (DRF and Django) -> 400 with ``details``
    - IntegrityError -> 400
    - NotAuthenticated / AuthenticationFailed -> 401
    - PermissionDenied -> 403
    - NotFound / Http404 -> 404
    - Throttled -> 429
    - Anything else -> 500, logged with traceback
    """
    if isinstance(exc, DjangoValidationError):
        exc = ValidationError(detail=as_serializer_error(exc))
    elif isinstance(exc, IntegrityError):
        logger.warning(f"Integrity error during {context.get('view').__class__.__name__}: {exc}")
        exc = PlatformError('A record with these details already exists.', status.HTTP_400_BAD_REQUEST)

    response = exception_handler(exc, context)

    if response is None:
        view = context.get('view')
        logger.exception(
            f"Unhandled error in {view.__class__.__name__ if view else 'unknown view'}: {exc}"
        )
        body = {'success': False, 'error': 'Internal server error'}
        if settings.DEBUG:
            body['error'] = str(exc) or body['error']
        return Response(body, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    if isinstance(exc, ValidationError):
        body = {
            'success': False,
            'error': _first_message(response.data) or 'Validation failed.',
            'details': response.data,
        }
    else:
        body = {
            'success': False,
            'error': _first_message(response.data) or 'Request failed.',
        }

    response.data = body
    return response


def json_not_found(request, exception=None):
    """Root URLconf 404 handler for paths outside the API views."""
    return JsonResponse(
        {'success': False, 'error': f'Route {request.path} not found'},
        status=status.HTTP_404_NOT_FOUND
    )


def json_server_error(request):
    return JsonResponse(
        {'success': False, 'error': 'Internal server error'},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR
    )
