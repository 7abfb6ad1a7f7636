"""
Booking lifecycle.

Every change that touches both a booking and its property runs inside one
``transaction.atomic()`` block with the booking row locked via
``select_for_update()``, so a booking and its property never disagree.

Lifecycle::

    PENDING --approve/confirm--> CONFIRMED --end date passes--> EXPIRED
       |                             |
       +--reject--> CANCELLED <--unbook/cancel--+
"""

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.db.models import Count, Q, Sum
from django.utils import timezone

from ..exceptions import PlatformError
from ..models import Booking, Dealer, Notification, Payment, Property
from . import as_money, notifications, payments


logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    """Outcome of one reconciliation sweep."""
    checked: int = 0
    expired: list = field(default_factory=list)
    failed: list = field(default_factory=list)

    def as_dict(self):
        return {
            'checked': self.checked,
            'expired': self.expired,
            'failed': self.failed,
            'expired_count': len(self.expired),
            'failed_count': len(self.failed),
        }


def booking_charges():
    return Decimal(str(settings.BOOKING_CHARGES))


def is_valid_dealer_code(code):
    """A dealer code is valid when it belongs to an approved dealer."""
    if not code:
        return False
    return Dealer.objects.filter(
        referral_code=code.strip().upper(),
        status=Dealer.STATUS_APPROVED
    ).exists()


def booking_window(start_date=None, end_date=None, now=None):
    """
    Resolve the reservation window.

    Defaults to now through now + DEFAULT_BOOKING_DURATION_DAYS.

    Raises:
        PlatformError: If the end date is not after the start date
    """
    start = start_date or now or timezone.now()
    end = end_date or start + timedelta(days=settings.DEFAULT_BOOKING_DURATION_DAYS)
    if end <= start:
        raise PlatformError('End date must be after start date', 400)
    return start, end


def overlapping_bookings(property_id, start, end, statuses, exclude_id=None):
    """Bookings on the property whose window intersects [start, end]."""
    queryset = Booking.objects.filter(
        property_id=property_id,
        status__in=statuses,
        start_date__lte=end,
        end_date__gte=start,
    )
    if exclude_id is not None:
        queryset = queryset.exclude(pk=exclude_id)
    return queryset


def _lock_booking(booking_id):
    try:
        return (
            Booking.objects.select_for_update()
            .select_related('property', 'user')
            .get(pk=booking_id)
        )
    except Booking.DoesNotExist:
        raise PlatformError('Booking not found', 404)


def _lock_bookable_property(property_id):
    try:
        prop = Property.objects.select_for_update().get(pk=property_id)
    except Property.DoesNotExist:
        raise PlatformError('Property not found', 404)

    if prop.status != Property.STATUS_FREE:
        raise PlatformError('Property is not available for booking', 400)
    return prop


def _set_status(booking, new_status):
    is_valid, error_message = booking.can_transition_to(new_status)
    if not is_valid:
        raise PlatformError(error_message, 400)
    booking.status = new_status
    booking.save(update_fields=['status', 'updated_at'])


def _set_property_status(prop, new_status):
    prop.status = new_status
    prop.save(update_fields=['status', 'updated_at'])


def create_manual_booking(user, property_id, payment_ref, start_date=None, end_date=None,
                          dealer_code='', payment_proof=None, now=None):
    """
    Create a PENDING booking paid by UPI, awaiting admin approval.

    Steps:
    1. Lock the property and require it to be FREE
    2. Log (but accept) an unknown dealer code
    3. Reject windows overlapping a CONFIRMED booking
    4. Store the booking with the payment reference and optional proof
    5. Notify the admin (best effort)

    Raises:
        PlatformError: 404 for a missing property, 400 for any rule violation
    """
    dealer_code = (dealer_code or '').strip().upper()
    payment_ref = (payment_ref or '').strip()

    with transaction.atomic():
        prop = _lock_bookable_property(property_id)

        if len(payment_ref) < 4:
            raise PlatformError('Payment reference must be at least 4 characters', 400)

        if dealer_code and not is_valid_dealer_code(dealer_code):
            logger.warning(f"Manual booking for property {prop.id} used unknown dealer code '{dealer_code}'")

        start, end = booking_window(start_date, end_date, now)

        if overlapping_bookings(prop.id, start, end, [Booking.STATUS_CONFIRMED]).exists():
            raise PlatformError('Property is already booked for the selected dates', 400)

        charges = booking_charges()
        booking = Booking(
            property=prop,
            user=user,
            dealer_code=dealer_code,
            start_date=start,
            end_date=end,
            booking_charges=charges,
            total_amount=charges,
            status=Booking.STATUS_PENDING,
            payment_method=Booking.PAYMENT_UPI,
            payment_ref=payment_ref,
            payment_proof=payment_proof,
        )
        booking.save()

    logger.info(
        f"Manual booking created. Booking ID: {booking.id}, Property: {prop.id}, "
        f"User: {user.email}, Ref: {payment_ref}"
    )

    notifications.notify(
        Notification.BOOKING_CREATED,
        'New Booking Submitted',
        f"{user.name or user.email} booked '{prop.title}' (UPI ref {payment_ref}). Awaiting approval.",
        data={
            'booking_id': booking.id,
            'property_id': prop.id,
            'user_email': user.email,
            'amount': str(booking.total_amount),
        },
    )
    notifications.email_admin_manual_booking(booking)
    return booking


def create_booking_with_payment(user, property_id, start_date=None, end_date=None, dealer_code='', now=None):
    """
    Create a PENDING booking together with a gateway payment intent.

    Returns:
        tuple: (booking, PaymentIntent)
    """
    dealer_code = (dealer_code or '').strip().upper()

    with transaction.atomic():
        prop = _lock_bookable_property(property_id)

        if dealer_code and not is_valid_dealer_code(dealer_code):
            raise PlatformError('Invalid dealer code', 400)

        start, end = booking_window(start_date, end_date, now)

        if overlapping_bookings(prop.id, start, end, [Booking.STATUS_CONFIRMED]).exists():
            raise PlatformError('Property is not available for the selected dates', 400)

        charges = booking_charges()
        booking = Booking(
            property=prop,
            user=user,
            dealer_code=dealer_code,
            start_date=start,
            end_date=end,
            booking_charges=charges,
            total_amount=charges,
            status=Booking.STATUS_PENDING,
            payment_method=Booking.PAYMENT_CARD,
        )
        booking.save()

        intent = payments.create_payment_intent(
            charges,
            metadata={'booking_id': booking.id, 'property_id': prop.id, 'user_id': user.id},
        )
        booking.payment_ref = intent.id
        booking.save(update_fields=['payment_ref', 'updated_at'])

    logger.info(f"Booking {booking.id} created with payment intent {intent.id}")
    return booking, intent


def confirm_booking(booking_id, payment_intent_id, user=None):
    """
    Confirm a gateway-paid booking once the payment has succeeded.

    Booking CONFIRMED, Payment recorded and property BOOKED commit together.
    """
    if not payments.confirm_payment(payment_intent_id):
        raise PlatformError('Payment verification failed', 400)

    with transaction.atomic():
        booking = _lock_booking(booking_id)

        if user is not None and booking.user_id != user.id and not user.is_platform_admin:
            raise PlatformError('You can only confirm your own bookings', 403)

        if booking.status != Booking.STATUS_PENDING:
            raise PlatformError('Booking is not in pending status', 400)

        _set_status(booking, Booking.STATUS_CONFIRMED)
        Payment.objects.create(
            booking=booking,
            amount=booking.total_amount,
            gateway_reference=payment_intent_id,
        )
        _set_property_status(booking.property, Property.STATUS_BOOKED)

    logger.info(f"Booking {booking.id} confirmed with payment {payment_intent_id}")
    notifications.email_booking_confirmation(booking)
    return booking


def approve_booking(booking_id):
    """
    Admin approval of a PENDING booking.

    Other PENDING bookings overlapping the same window are cancelled in the
    same transaction.
    """
    with transaction.atomic():
        booking = _lock_booking(booking_id)

        if booking.status != Booking.STATUS_PENDING:
            raise PlatformError('Only pending bookings can be approved', 400)

        conflicts = overlapping_bookings(
            booking.property_id, booking.start_date, booking.end_date,
            [Booking.STATUS_CONFIRMED], exclude_id=booking.id
        )
        if conflicts.exists():
            raise PlatformError('Property is already booked for these dates', 400)

        cancelled = list(
            overlapping_bookings(
                booking.property_id, booking.start_date, booking.end_date,
                [Booking.STATUS_PENDING], exclude_id=booking.id
            ).select_for_update().values_list('id', flat=True)
        )
        if cancelled:
            Booking.objects.filter(pk__in=cancelled).update(
                status=Booking.STATUS_CANCELLED,
                updated_at=timezone.now()
            )

        _set_status(booking, Booking.STATUS_CONFIRMED)
        _set_property_status(booking.property, Property.STATUS_BOOKED)

    logger.info(
        f"Booking {booking.id} approved. Property {booking.property_id} booked. "
        f"Cancelled overlapping pending bookings: {cancelled}"
    )
    notifications.email_booking_confirmation(booking)
    return booking


def reject_booking(booking_id):
    with transaction.atomic():
        booking = _lock_booking(booking_id)

        if booking.status != Booking.STATUS_PENDING:
            raise PlatformError('Only pending bookings can be rejected', 400)

        _set_status(booking, Booking.STATUS_CANCELLED)
        _set_property_status(booking.property, Property.STATUS_FREE)

    logger.info(f"Booking {booking.id} rejected")
    return booking


def unbook_property(booking_id):
    """Admin release of a CONFIRMED booking; the property becomes FREE."""
    with transaction.atomic():
        booking = _lock_booking(booking_id)

        if booking.status != Booking.STATUS_CONFIRMED:
            raise PlatformError('Only confirmed bookings can be unbooked', 400)

        _set_status(booking, Booking.STATUS_CANCELLED)
        _set_property_status(booking.property, Property.STATUS_FREE)

    logger.info(f"Booking {booking.id} unbooked. Property {booking.property_id} is free")
    return booking


def cancel_booking(booking_id, user, now=None):
    """
    User cancellation of their own CONFIRMED booking.

    Requires at least BOOKING_CANCELLATION_NOTICE_HOURS before the start.
    Any gateway payment is refunded.
    """
    now = now or timezone.now()

    with transaction.atomic():
        booking = _lock_booking(booking_id)

        if booking.user_id != user.id:
            raise PlatformError('You can only cancel your own bookings', 403)

        if booking.status != Booking.STATUS_CONFIRMED:
            raise PlatformError('Only confirmed bookings can be cancelled', 400)

        notice = timedelta(hours=settings.BOOKING_CANCELLATION_NOTICE_HOURS)
        if booking.start_date - now < notice:
            raise PlatformError(
                f'Bookings can only be cancelled at least {settings.BOOKING_CANCELLATION_NOTICE_HOURS} hours before the start date',
                400
            )

        payment = Payment.objects.filter(booking=booking, refunded_at__isnull=True).first()
        if payment is not None:
            payments.refund_payment(payment.gateway_reference, payment.amount)
            payment.refunded_at = now
            payment.save(update_fields=['refunded_at'])

        _set_status(booking, Booking.STATUS_CANCELLED)
        _set_property_status(booking.property, Property.STATUS_FREE)

    logger.info(f"Booking {booking.id} cancelled by {user.email}")
    return booking


def set_booking_status(booking_id, new_status):
    """
    Admin status change; routes to the matching lifecycle operation.
    """
    booking = Booking.objects.filter(pk=booking_id).only('status').first()
    if booking is None:
        raise PlatformError('Booking not found', 404)

    if new_status == Booking.STATUS_CONFIRMED:
        return approve_booking(booking_id)
    if new_status == Booking.STATUS_CANCELLED:
        if booking.status == Booking.STATUS_PENDING:
            return reject_booking(booking_id)
        return unbook_property(booking_id)
    if new_status == Booking.STATUS_EXPIRED:
        with transaction.atomic():
            booking = _lock_booking(booking_id)
            _set_status(booking, Booking.STATUS_EXPIRED)
            _set_property_status(booking.property, Property.STATUS_FREE)
        logger.info(f"Booking {booking_id} marked expired by admin")
        return booking

    _, error_message = booking.can_transition_to(new_status)
    raise PlatformError(error_message or f'Cannot change booking status to {new_status}', 400)


# Reconciliation sweep

def expire_booking(booking_id, now=None):
    """
    Expire one booking as its own unit of work.

    The booking is re-read under a row lock and only changed if it is still
    CONFIRMED with an end date before ``now``. Booking EXPIRED and property
    FREE commit together or not at all.

    Returns:
        bool: True if the booking was expired by this call
    """
    now = now or timezone.now()
    with transaction.atomic():
        booking = (
            Booking.objects.select_for_update()
            .select_related('property')
            .filter(pk=booking_id, status=Booking.STATUS_CONFIRMED, end_date__lt=now)
            .first()
        )
        if booking is None:
            return False

        _set_status(booking, Booking.STATUS_EXPIRED)
        _set_property_status(booking.property, Property.STATUS_FREE)

    logger.info(f"Booking {booking_id} expired. Property {booking.property_id} is free")
    return True


def find_expired_booking_ids(now=None):
    now = now or timezone.now()
    return list(
        Booking.objects.filter(status=Booking.STATUS_CONFIRMED, end_date__lt=now)
        .order_by('end_date', 'id')
        .values_list('id', flat=True)
    )


def update_expired_bookings(now=None):
    """
    Expire every CONFIRMED booking whose end date has passed.

    Each booking is reconciled in its own transaction. A failure is logged
    and recorded, and the sweep moves on to the next booking. Running the
    sweep again is safe: expired bookings no longer match.

    Returns:
        SweepResult
    """
    now = now or timezone.now()
    candidates = find_expired_booking_ids(now)
    result = SweepResult(checked=len(candidates))

    for booking_id in candidates:
        try:
            if expire_booking(booking_id, now):
                result.expired.append(booking_id)
        except Exception:
            logger.exception(f"Failed to expire booking {booking_id}")
            result.failed.append(booking_id)

    logger.info(
        f"Expired booking sweep finished. Checked: {result.checked}, "
        f"Expired: {len(result.expired)}, Failed: {len(result.failed)}"
    )
    return result


# Queries

def search_bookings(status=None, search=None):
    queryset = Booking.objects.select_related('property', 'user').order_by('-created_at')
    if status:
        queryset = queryset.filter(status=status.upper())
    if search:
        queryset = queryset.filter(
            Q(user__name__icontains=search)
            | Q(user__email__icontains=search)
            | Q(property__title__icontains=search)
            | Q(payment_ref__icontains=search)
        )
    return queryset


def booking_stats():
    counts = {
        row['status']: row['total']
        for row in Booking.objects.values('status').annotate(total=Count('id'))
    }
    revenue = Payment.objects.filter(
        booking__status=Booking.STATUS_CONFIRMED
    ).aggregate(total=Sum('amount'))['total']
    return {
        'total_bookings': sum(counts.values()),
        'confirmed_bookings': counts.get(Booking.STATUS_CONFIRMED, 0),
        'pending_bookings': counts.get(Booking.STATUS_PENDING, 0),
        'cancelled_bookings': counts.get(Booking.STATUS_CANCELLED, 0),
        'expired_bookings': counts.get(Booking.STATUS_EXPIRED, 0),
        'total_revenue': as_money(revenue),
    }
