"""
Booking endpoints.

State changes are delegated to ``realty.services.bookings``; the views only
validate input, check access and shape the response.
"""

import logging

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.views import APIView

from ..models import Booking
from ..permissions import IsOwnerOrAdmin, IsPlatformAdmin
from ..serializers import (
    BookingSerializer,
    ConfirmBookingSerializer,
    ManualBookingSerializer,
    PaymentBookingSerializer,
)
from ..services import bookings as booking_service
from .base import ClientIPMixin, paginate, success


logger = logging.getLogger(__name__)


class ManualBookingCreateView(ClientIPMixin, APIView):
    """
    API endpoint for booking a property with a UPI payment reference.

    POST /api/bookings/create/ (authenticated, multipart)
    Fields:
    - property_id: Required
    - payment_ref: Required, at least 4 characters
    - start_date, end_date: Optional ISO datetimes (default: now + 3 days)
    - dealer_code: Optional referral code
    - payment_proof: Optional image, max 10MB

    Steps:
    1. Validate input
    2. Lock the property and check it is FREE
    3. Reject dates overlapping a confirmed booking
    4. Create a PENDING booking and alert the admin

    Success response (201): {"success": true, "data": {<booking>}, "message": "..."}

    Error responses:
    - 400: Validation failure, property unavailable or dates taken
    - 404: Property not found
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, *args, **kwargs):
        serializer = ManualBookingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        booking = booking_service.create_manual_booking(
            request.user,
            data['property_id'],
            data['payment_ref'],
            start_date=data.get('start_date'),
            end_date=data.get('end_date'),
            dealer_code=data.get('dealer_code', ''),
            payment_proof=data.get('payment_proof'),
        )

        logger.info(f"Booking {booking.id} submitted from IP {self.get_client_ip(request)}")
        return success(
            BookingSerializer(booking).data,
            message='Booking submitted successfully. Awaiting admin approval.',
            status_code=status.HTTP_201_CREATED,
        )


class PaymentIntentView(APIView):
    """
    POST /api/bookings/payment-intent/

    Creates a PENDING card booking and a payment intent for the booking
    charges. Returns ``{booking, client_secret, payment_intent_id}``.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, *args, **kwargs):
        serializer = PaymentBookingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        booking, intent = booking_service.create_booking_with_payment(
            request.user,
            data['property_id'],
            start_date=data.get('start_date'),
            end_date=data.get('end_date'),
            dealer_code=data.get('dealer_code', ''),
        )
        return success(
            {
                'booking': BookingSerializer(booking).data,
                'client_secret': intent.client_secret,
                'payment_intent_id': intent.id,
            },
            status_code=status.HTTP_201_CREATED,
        )


class ConfirmBookingView(APIView):
    """
    POST /api/bookings/confirm/
    Request body: {"booking_id": 12, "payment_intent_id": "pi_..."}
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, *args, **kwargs):
        serializer = ConfirmBookingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        booking = booking_service.confirm_booking(
            serializer.validated_data['booking_id'],
            serializer.validated_data['payment_intent_id'],
            user=request.user,
        )
        return success(BookingSerializer(booking).data, message='Booking confirmed successfully')


class MyBookingsView(APIView):
    """GET /api/bookings/my-bookings/ - the caller's bookings, newest first."""
    permission_classes = [IsAuthenticated]

    def get(self, request, *args, **kwargs):
        queryset = (
            Booking.objects.filter(user=request.user)
            .select_related('property', 'user')
            .order_by('-created_at', '-id')
        )
        return success(BookingSerializer(queryset, many=True).data)


class BookingAdminListView(APIView):
    """
    GET /api/bookings/ (admin)

    Query parameters:
    - page, limit (default 10)
    - status: PENDING | CONFIRMED | CANCELLED | EXPIRED
    - search: matches user name/email, property title or payment reference

    Success response (200):
    {"success": true, "data": {"bookings": [...], "total": 7, "page": 1, "limit": 10, "total_pages": 1}}
    """
    permission_classes = [IsPlatformAdmin]

    def get(self, request, *args, **kwargs):
        queryset = booking_service.search_bookings(
            status=request.query_params.get('status'),
            search=request.query_params.get('search'),
        )
        page, pagination = paginate(request, queryset, default_limit=10)
        return success({
            'bookings': BookingSerializer(page, many=True).data,
            'total': pagination['total'],
            'page': pagination['page'],
            'limit': pagination['limit'],
            'total_pages': pagination['pages'],
        })


class BookingStatsView(APIView):
    permission_classes = [IsPlatformAdmin]

    def get(self, request, *args, **kwargs):
        return success(booking_service.booking_stats())


class BookingApproveView(APIView):
    """PUT /api/bookings/<id>/approve/ (admin)"""
    permission_classes = [IsPlatformAdmin]

    def put(self, request, pk, *args, **kwargs):
        booking = booking_service.approve_booking(pk)
        logger.info(f"Booking {pk} approved by {request.user.email}")
        return success(BookingSerializer(booking).data, message='Booking approved successfully')


class BookingRejectView(APIView):
    """PUT /api/bookings/<id>/reject/ (admin)"""
    permission_classes = [IsPlatformAdmin]

    def put(self, request, pk, *args, **kwargs):
        booking = booking_service.reject_booking(pk)
        logger.info(f"Booking {pk} rejected by {request.user.email}")
        return success(BookingSerializer(booking).data, message='Booking rejected')


class BookingUnbookView(APIView):
    """PUT /api/bookings/<id>/unbook/ (admin)"""
    permission_classes = [IsPlatformAdmin]

    def put(self, request, pk, *args, **kwargs):
        booking = booking_service.unbook_property(pk)
        logger.info(f"Booking {pk} unbooked by {request.user.email}")
        return success(BookingSerializer(booking).data, message='Property unbooked successfully')


class BookingDetailView(APIView):
    """
    GET    /api/bookings/<id>/  Owner or admin
    DELETE /api/bookings/<id>/  Owner cancels a confirmed booking (24h notice, refunded)
    """
    owner_field = 'user'

    def get_permissions(self):
        if self.request.method == 'DELETE':
            return [IsAuthenticated()]
        return [IsOwnerOrAdmin()]

    def get(self, request, pk, *args, **kwargs):
        booking = get_object_or_404(Booking.objects.select_related('property', 'user'), pk=pk)
        self.check_object_permissions(request, booking)
        return success(BookingSerializer(booking).data)

    def delete(self, request, pk, *args, **kwargs):
        booking = booking_service.cancel_booking(pk, request.user)
        return success(BookingSerializer(booking).data, message='Booking cancelled successfully')


class UpdateExpiredBookingsView(APIView):
    """
    POST /api/bookings/update-expired/ (admin)

    Runs the expired-booking sweep. Each booking is reconciled in its own
    transaction; one failure does not stop the rest.

    Success response (200):
    {
        "success": true,
        "data": {"expired": [3, 9], "failed": [], "expired_count": 2, "failed_count": 0}
    }
    """
    permission_classes = [IsPlatformAdmin]

    def post(self, request, *args, **kwargs):
        result = booking_service.update_expired_bookings()
        data = result.as_dict()
        data.pop('checked')
        return success(data, message=f"{len(result.expired)} bookings expired")
