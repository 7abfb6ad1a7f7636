"""
Admin panel endpoints under /api/admin/.

All views require role ADMIN.
"""

import logging
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.db.models import Avg, Count, Q, Sum
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.views import APIView

from ..exceptions import PlatformError
from ..models import Booking, Commission, Dealer, Payment, Property, User
from ..permissions import IsPlatformAdmin
from ..serializers import (
    AdminPasswordSerializer,
    AdminUserCreateSerializer,
    AdminUserUpdateSerializer,
    BookingSerializer,
    BookingStatusSerializer,
    DealerSerializer,
    PropertySerializer,
    SystemSettingsSerializer,
    UserSerializer,
)
from ..services import bookings as booking_service
from ..services import as_money, commissions
from .base import ClientIPMixin, paginate, success
from .dealers import load_forest_or_conflict


logger = logging.getLogger(__name__)


class AdminAPIView(ClientIPMixin, APIView):
    permission_classes = [IsPlatformAdmin]


def _collected_revenue():
    return Payment.objects.filter(refunded_at__isnull=True).aggregate(total=Sum('amount'))['total']


def _counts_by(queryset, field):
    return {row[field]: row['total'] for row in queryset.values(field).annotate(total=Count('id')).order_by(field)}


# ============================================================================
# Overview
# ============================================================================

class DashboardView(AdminAPIView):
    """
    GET /api/admin/dashboard/

    Platform totals, collected revenue, pending dealer applications and
    the 10 most recent payments.
    """

    def get(self, request, *args, **kwargs):
        recent_payments = Payment.objects.select_related('booking__user', 'booking__property').order_by('-created_at', '-id')[:10]

        return success({
            'total_users': User.objects.count(),
            'total_properties': Property.objects.count(),
            'total_bookings': Booking.objects.count(),
            'total_dealers': Dealer.objects.filter(status=Dealer.STATUS_APPROVED).count(),
            'pending_dealers': Dealer.objects.filter(status=Dealer.STATUS_PENDING).count(),
            'pending_bookings': Booking.objects.filter(status=Booking.STATUS_PENDING).count(),
            'total_revenue': as_money(_collected_revenue()),
            'recent_payments': [
                {
                    'id': payment.id,
                    'booking_id': payment.booking_id,
                    'amount': as_money(payment.amount),
                    'user_email': payment.booking.user.email,
                    'property_title': payment.booking.property.title,
                    'refunded': payment.refunded_at is not None,
                    'created_at': payment.created_at,
                }
                for payment in recent_payments
            ],
        })


class PropertyAnalyticsView(AdminAPIView):

    def get(self, request, *args, **kwargs):
        top_locations = (
            Property.objects.values('location')
            .annotate(total=Count('id'))
            .order_by('-total', 'location')[:10]
        )
        return success({
            'total': Property.objects.count(),
            'by_status': _counts_by(Property.objects.all(), 'status'),
            'by_type': _counts_by(Property.objects.all(), 'property_type'),
            'top_locations': list(top_locations),
            'average_price': as_money(Property.objects.aggregate(avg=Avg('price'))['avg']),
        })


class BookingAnalyticsView(AdminAPIView):

    def get(self, request, *args, **kwargs):
        since = timezone.now() - timedelta(days=30)
        data = booking_service.booking_stats()
        data['by_payment_method'] = _counts_by(Booking.objects.all(), 'payment_method')
        data['last_30_days'] = Booking.objects.filter(created_at__gte=since).count()
        return success(data)


class DealerAnalyticsView(AdminAPIView):

    def get(self, request, *args, **kwargs):
        top_dealers = Dealer.objects.select_related('user').order_by('-commission', 'id')[:5]
        paid = Commission.objects.aggregate(total=Sum('amount'))['total']
        return success({
            'by_status': _counts_by(Dealer.objects.all(), 'status'),
            'total_commission_paid': as_money(paid),
            'commissions_by_level': _counts_by(Commission.objects.all(), 'level'),
            'top_dealers': DealerSerializer(top_dealers, many=True).data,
        })


class RecentActivityView(AdminAPIView):
    """GET /api/admin/recent-activity/ - latest signups, listings and bookings."""

    def get(self, request, *args, **kwargs):
        return success({
            'users': UserSerializer(User.objects.order_by('-created_at', '-id')[:10], many=True).data,
            'properties': PropertySerializer(
                Property.objects.select_related('owner', 'dealer').prefetch_related('media')
                .order_by('-created_at', '-id')[:10],
                many=True
            ).data,
            'bookings': BookingSerializer(
                Booking.objects.select_related('property', 'user').order_by('-created_at', '-id')[:10],
                many=True
            ).data,
        })


class UserCountView(AdminAPIView):

    def get(self, request, *args, **kwargs):
        return success({
            'total': User.objects.count(),
            'by_role': _counts_by(User.objects.all(), 'role'),
            'by_status': _counts_by(User.objects.all(), 'status'),
        })


# ============================================================================
# User management
# ============================================================================

def _sync_dealer_record(user, previous_role):
    """
    Keep the dealer record in step with the user's role.

    Becoming a DEALER creates (or approves) the record; leaving the role
    deletes it.
    """
    if user.role == User.ROLE_DEALER:
        dealer, created = Dealer.objects.get_or_create(
            user=user,
            defaults={'status': Dealer.STATUS_APPROVED}
        )
        if not created and dealer.status != Dealer.STATUS_APPROVED:
            dealer.status = Dealer.STATUS_APPROVED
            dealer.save(update_fields=['status'])
    elif previous_role == User.ROLE_DEALER:
        Dealer.objects.filter(user=user).delete()


class AdminUserListCreateView(AdminAPIView):
    """
    GET  /api/admin/users/?page=1&limit=20&search=&role=&status=
    POST /api/admin/users/

    A DEALER created here gets an APPROVED dealer record right away.
    """

    def get(self, request, *args, **kwargs):
        queryset = User.objects.order_by('-created_at', '-id')

        search = request.query_params.get('search')
        if search:
            queryset = queryset.filter(
                Q(name__icontains=search) | Q(email__icontains=search) | Q(mobile__icontains=search)
            )
        role = request.query_params.get('role')
        if role:
            queryset = queryset.filter(role=role.upper())
        user_status = request.query_params.get('status')
        if user_status:
            queryset = queryset.filter(status=user_status.upper())

        page, pagination = paginate(request, queryset, default_limit=20)
        return success({'users': UserSerializer(page, many=True).data, 'pagination': pagination})

    def post(self, request, *args, **kwargs):
        serializer = AdminUserCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        with transaction.atomic():
            user = serializer.save()
            _sync_dealer_record(user, previous_role=None)

        logger.info(f"User {user.email} ({user.role}) created by admin {request.user.email}")
        return success(UserSerializer(user).data, message='User created successfully',
                       status_code=status.HTTP_201_CREATED)


class AdminUserDetailView(AdminAPIView):
    """
    GET    /api/admin/users/<id>/
    PUT    /api/admin/users/<id>/  Role changes create or remove the dealer record
    DELETE /api/admin/users/<id>/  ADMIN accounts cannot be deleted
    """

    def get(self, request, pk, *args, **kwargs):
        user = get_object_or_404(User, pk=pk)
        return success(UserSerializer(user).data)

    def put(self, request, pk, *args, **kwargs):
        user = get_object_or_404(User, pk=pk)
        serializer = AdminUserUpdateSerializer(user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        if user.is_platform_admin and serializer.validated_data.get('status') == User.STATUS_BLOCKED:
            raise PlatformError('Cannot block an admin user', 400)

        previous_role = user.role
        with transaction.atomic():
            user = serializer.save()
            if user.role != previous_role:
                _sync_dealer_record(user, previous_role)

        logger.info(f"User {user.email} updated by admin {request.user.email}")
        return success(UserSerializer(user).data, message='User updated successfully')

    patch = put

    def delete(self, request, pk, *args, **kwargs):
        user = get_object_or_404(User, pk=pk)
        if user.is_platform_admin:
            raise PlatformError('Cannot delete an admin user', 400)

        email = user.email
        user.delete()
        logger.info(f"User {email} deleted by admin {request.user.email}")
        return success(message='User deleted successfully')


class AdminUserPasswordView(AdminAPIView):
    """PUT /api/admin/users/<id>/password/ with {"password": "..."}"""

    def put(self, request, pk, *args, **kwargs):
        user = get_object_or_404(User, pk=pk)
        serializer = AdminPasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user.set_password(serializer.validated_data['password'])
        user.save(update_fields=['password', 'updated_at'])
        logger.info(
            f"Password for {user.email} reset by admin {request.user.email}, IP: {self.get_client_ip(request)}"
        )
        return success(message='Password updated successfully')


class AdminUserBlockView(AdminAPIView):

    def put(self, request, pk, *args, **kwargs):
        user = get_object_or_404(User, pk=pk)
        if user.is_platform_admin:
            raise PlatformError('Cannot block an admin user', 400)

        user.status = User.STATUS_BLOCKED
        user.save(update_fields=['status', 'updated_at'])
        logger.warning(f"User {user.email} blocked by admin {request.user.email}")
        return success(UserSerializer(user).data, message='User blocked successfully')


class AdminUserUnblockView(AdminAPIView):

    def put(self, request, pk, *args, **kwargs):
        user = get_object_or_404(User, pk=pk)
        user.status = User.STATUS_ACTIVE
        user.save(update_fields=['status', 'updated_at'])
        logger.info(f"User {user.email} unblocked by admin {request.user.email}")
        return success(UserSerializer(user).data, message='User unblocked successfully')


# ============================================================================
# Bookings, settings and dealers
# ============================================================================

class AdminBookingStatusView(AdminAPIView):
    """
    PUT /api/admin/bookings/<id>/status/
    Request body: {"status": "CONFIRMED" | "CANCELLED" | "EXPIRED"}

    Goes through the same lifecycle rules as approve/reject/unbook.
    """

    def put(self, request, pk, *args, **kwargs):
        serializer = BookingStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        booking = booking_service.set_booking_status(pk, serializer.validated_data['status'])
        return success(BookingSerializer(booking).data, message='Booking status updated')

    patch = put


def _settings_payload():
    rates = commissions.commission_rates()
    return {
        'commission_rates': {str(level): str(pct) for level, pct in sorted(rates.items())},
        'booking_duration': settings.DEFAULT_BOOKING_DURATION_DAYS,
        'booking_charges': str(settings.BOOKING_CHARGES),
    }


class SystemSettingsView(AdminAPIView):
    """
    GET /api/admin/settings/
    PUT /api/admin/settings/
    Request body: {"commission_rates": {"1": "10", "2": "5", "3": "2.5"}}

    ``booking_duration`` and ``booking_charges`` come from configuration
    and are read-only here.
    """

    def get(self, request, *args, **kwargs):
        return success(_settings_payload())

    def put(self, request, *args, **kwargs):
        serializer = SystemSettingsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        with transaction.atomic():
            for level, percentage in serializer.validated_data.get('commission_rates', {}).items():
                commissions.upsert_commission_config(level, percentage)

        logger.info(f"System settings updated by {request.user.email}")
        return success(_settings_payload(), message='Settings updated successfully')


class DealerRequestListView(AdminAPIView):
    """GET /api/admin/dealer-requests/?status=PENDING"""

    def get(self, request, *args, **kwargs):
        dealer_status = (request.query_params.get('status') or Dealer.STATUS_PENDING).upper()
        dealers = (
            Dealer.objects.filter(status=dealer_status)
            .select_related('user', 'parent')
            .order_by('created_at', 'id')
        )
        return success(DealerSerializer(dealers, many=True).data)


class DealerRequestApproveView(AdminAPIView):

    def put(self, request, pk, *args, **kwargs):
        dealer = commissions.approve_dealer(pk)
        return success(DealerSerializer(dealer).data, message='Dealer request approved')

    post = put


class DealerRequestRejectView(AdminAPIView):

    def put(self, request, pk, *args, **kwargs):
        dealer = commissions.reject_dealer(pk)
        return success(DealerSerializer(dealer).data, message='Dealer request rejected')

    post = put


class AdminDealerTreeView(AdminAPIView):
    """
    GET /api/admin/dealer-tree/

    The whole referral forest with per-node subtree totals.
    """

    def get(self, request, *args, **kwargs):
        forest = load_forest_or_conflict()
        return success({
            'tree': [root.to_dict() for root in forest],
            'total_dealers': sum(root.total_children + 1 for root in forest),
        })
