"""
Property listing endpoints.
"""

import logging
from decimal import Decimal, InvalidOperation

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.views import APIView

from ..exceptions import PlatformError
from ..models import Notification, Property
from ..permissions import IsOwnerOrAdmin, IsPlatformAdmin
from ..serializers import (
    PropertyDetailSerializer,
    PropertySerializer,
    PropertyStatusSerializer,
    PropertyWriteSerializer,
)
from ..services import notifications
from .base import ClientIPMixin, paginate, success


logger = logging.getLogger(__name__)


def _decimal_param(request, name):
    raw = request.query_params.get(name)
    if raw in (None, ''):
        return None
    try:
        value = Decimal(raw)
    except InvalidOperation:
        raise PlatformError(f'Invalid value for "{name}". Must be a valid number.', 400)
    if not value.is_finite():
        raise PlatformError(f'Invalid value for "{name}". Must be a valid number.', 400)
    if value < 0:
        raise PlatformError(f'"{name}" cannot be negative.', 400)
    return value


def filter_properties(request, queryset, hide_sold=True):
    """
    Apply the listing filters from the query string.

    Supported parameters: type, location (case-insensitive contains),
    min_price, max_price, status, dealer_id. Without an explicit status,
    SOLD listings are hidden when ``hide_sold`` is set.
    """
    params = request.query_params

    property_type = params.get('type')
    if property_type:
        queryset = queryset.filter(property_type__iexact=property_type)

    location = params.get('location')
    if location:
        queryset = queryset.filter(location__icontains=location)

    min_price = _decimal_param(request, 'min_price')
    max_price = _decimal_param(request, 'max_price')
    if min_price is not None and max_price is not None and min_price > max_price:
        raise PlatformError('Minimum price cannot be greater than maximum price.', 400)
    if min_price is not None:
        queryset = queryset.filter(price__gte=min_price)
    if max_price is not None:
        queryset = queryset.filter(price__lte=max_price)

    status_filter = params.get('status')
    if status_filter:
        status_filter = status_filter.upper()
        if status_filter not in dict(Property.STATUS_CHOICES):
            raise PlatformError(f'Invalid status "{status_filter}"', 400)
        queryset = queryset.filter(status=status_filter)
    elif hide_sold:
        queryset = queryset.exclude(status=Property.STATUS_SOLD)

    dealer_id = params.get('dealer_id')
    if dealer_id:
        if not dealer_id.isdigit():
            raise PlatformError('Invalid value for "dealer_id".', 400)
        queryset = queryset.filter(dealer_id=int(dealer_id))

    return queryset


def _base_queryset():
    return (
        Property.objects.select_related('owner', 'dealer')
        .prefetch_related('media')
        .order_by('-created_at', '-id')
    )


class PropertyListCreateView(ClientIPMixin, APIView):
    """
    API endpoint for browsing and listing properties.

    GET /api/properties/ (public)
    Query parameters:
    - type, location, min_price, max_price, status, dealer_id
    - page (default 1), limit (default 10, max 100)

    Success response (200):
    {
        "success": true,
        "data": {
            "properties": [...],
            "pagination": {"page": 1, "limit": 10, "total": 42, "pages": 5}
        }
    }

    POST /api/properties/ (authenticated, multipart)
    Fields: title, description, property_type, location, address, latitude,
    longitude, price, dealer, media_files (up to 10)

    The request user becomes the owner and admins are notified.
    """

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsAuthenticated()]
        return [AllowAny()]

    def get(self, request, *args, **kwargs):
        queryset = filter_properties(request, _base_queryset())
        page, pagination = paginate(request, queryset, default_limit=10)
        return success({
            'properties': PropertySerializer(page, many=True).data,
            'pagination': pagination,
        })

    def post(self, request, *args, **kwargs):
        serializer = PropertyWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        prop = serializer.save(owner=request.user)

        logger.info(
            f"Property created. ID: {prop.id}, Owner: {request.user.email}, "
            f"Media: {prop.media.count()}, IP: {self.get_client_ip(request)}"
        )
        return success(
            PropertySerializer(prop).data,
            message='Property created successfully',
            status_code=status.HTTP_201_CREATED,
        )


class AdminPropertyListView(APIView):
    """GET /api/properties/admin/all/ - every listing, SOLD included."""
    permission_classes = [IsPlatformAdmin]

    def get(self, request, *args, **kwargs):
        queryset = filter_properties(request, _base_queryset(), hide_sold=False)
        page, pagination = paginate(request, queryset, default_limit=100)
        return success({
            'properties': PropertySerializer(page, many=True).data,
            'pagination': pagination,
        })


class PropertyDetailView(ClientIPMixin, APIView):
    """
    API endpoint for a single property.

    GET    /api/properties/<id>/  Public; includes the property's bookings
    PUT    /api/properties/<id>/  Owner or admin; new media files are appended
    PATCH  /api/properties/<id>/  Same as PUT
    DELETE /api/properties/<id>/  Owner or admin

    Error responses:
    - 403: Not the owner
    - 404: Property not found
    """
    owner_field = 'owner'

    def get_permissions(self):
        if self.request.method == 'GET':
            return [AllowAny()]
        return [IsOwnerOrAdmin()]

    def get_object(self, pk):
        prop = get_object_or_404(_base_queryset(), pk=pk)
        self.check_object_permissions(self.request, prop)
        return prop

    def get(self, request, pk, *args, **kwargs):
        prop = get_object_or_404(_base_queryset().prefetch_related('bookings__user'), pk=pk)
        return success(PropertyDetailSerializer(prop).data)

    def put(self, request, pk, *args, **kwargs):
        prop = self.get_object(pk)

        serializer = PropertyWriteSerializer(prop, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        changed = sorted(
            name for name, value in serializer.validated_data.items()
            if name == 'media_files' or getattr(prop, name) != value
        )
        prop = serializer.save()

        logger.info(
            f"Property {prop.id} updated by {request.user.email}. Changed: {changed}, "
            f"IP: {self.get_client_ip(request)}"
        )
        if changed:
            notifications.notify(
                Notification.PROPERTY_UPDATED,
                'Property Updated',
                f"'{prop.title}' was updated. Changed: {', '.join(changed)}.",
                data={'property_id': prop.id, 'changed_fields': changed, 'updated_by': request.user.email},
            )

        return success(PropertySerializer(prop).data, message='Property updated successfully')

    patch = put

    def delete(self, request, pk, *args, **kwargs):
        prop = self.get_object(pk)
        prop_id = prop.id
        prop.delete()
        logger.info(f"Property {prop_id} deleted by {request.user.email}")
        return success(message='Property deleted successfully')


class PropertyStatusView(APIView):
    """
    PATCH /api/properties/<id>/status/ (admin)
    Request body: {"status": "FREE" | "BOOKED" | "SOLD"}
    """
    permission_classes = [IsPlatformAdmin]

    def patch(self, request, pk, *args, **kwargs):
        prop = get_object_or_404(Property, pk=pk)
        serializer = PropertyStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        prop.status = serializer.validated_data['status']
        prop.save(update_fields=['status', 'updated_at'])
        logger.info(f"Property {prop.id} status set to {prop.status} by {request.user.email}")
        return success(PropertySerializer(prop).data, message='Property status updated')

    put = patch


class PropertyTypesView(APIView):
    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):
        types = (
            Property.objects.order_by('property_type')
            .values_list('property_type', flat=True)
            .distinct()
        )
        return success(list(types))


class PropertyLocationsView(APIView):
    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):
        locations = (
            Property.objects.order_by('location')
            .values_list('location', flat=True)
            .distinct()
        )
        return success(list(locations))
