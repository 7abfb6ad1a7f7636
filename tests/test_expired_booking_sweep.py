"""
Tests for the expired-booking reconciliation sweep.

Covers the service contract (status changes, idempotence, failure
isolation), the management command and the admin endpoint.
"""

import logging
from datetime import timedelta
from io import StringIO
from unittest.mock import patch

import pytest
from django.core.management import call_command
from django.db import DatabaseError
from django.urls import reverse
from django.utils import timezone
from rest_framework import status

from realty.models import Booking, Property
from realty.services.bookings import expire_booking, find_expired_booking_ids, update_expired_bookings


@pytest.fixture
def expired_pair(make_property, make_booking):
    """Two properties, each BOOKED by a CONFIRMED booking that ended yesterday."""
    start = timezone.now() - timedelta(days=4)
    pairs = []
    for _ in range(2):
        prop = make_property(status=Property.STATUS_BOOKED)
        booking = make_booking(prop, start=start, end=start + timedelta(days=3))
        pairs.append((prop, booking))
    return pairs


# ============================================================================
# 1. SERVICE CONTRACT
# ============================================================================

@pytest.mark.django_db
class TestSweepContract:

    def test_expires_confirmed_bookings_past_end_date(self, expired_pair):
        result = update_expired_bookings()

        assert sorted(result.expired) == sorted(b.id for _, b in expired_pair)
        assert result.failed == []
        for prop, booking in expired_pair:
            booking.refresh_from_db()
            prop.refresh_from_db()
            assert booking.status == Booking.STATUS_EXPIRED
            assert prop.status == Property.STATUS_FREE

    def test_leaves_active_and_non_confirmed_bookings_alone(self, make_property, make_booking):
        now = timezone.now()
        running_prop = make_property(status=Property.STATUS_BOOKED)
        running = make_booking(running_prop, start=now - timedelta(days=1), end=now + timedelta(days=2))
        pending_prop = make_property()
        pending = make_booking(
            pending_prop,
            status=Booking.STATUS_PENDING,
            start=now - timedelta(days=5),
            end=now - timedelta(days=2),
        )

        result = update_expired_bookings()

        assert result.expired == []
        running.refresh_from_db()
        pending.refresh_from_db()
        running_prop.refresh_from_db()
        assert running.status == Booking.STATUS_CONFIRMED
        assert pending.status == Booking.STATUS_PENDING
        assert running_prop.status == Property.STATUS_BOOKED

    def test_second_run_changes_nothing(self, expired_pair):
        first = update_expired_bookings()
        second = update_expired_bookings()

        assert len(first.expired) == 2
        assert second.checked == 0
        assert second.expired == []
        assert second.failed == []

    def test_expire_booking_is_a_no_op_once_expired(self, expired_pair):
        _, booking = expired_pair[0]

        assert expire_booking(booking.id) is True
        assert expire_booking(booking.id) is False

    def test_candidates_are_ordered_by_end_date(self, make_property, make_booking):
        now = timezone.now()
        later = make_booking(make_property(status=Property.STATUS_BOOKED),
                             start=now - timedelta(days=3), end=now - timedelta(days=1))
        earlier = make_booking(make_property(status=Property.STATUS_BOOKED),
                               start=now - timedelta(days=6), end=now - timedelta(days=4))

        assert find_expired_booking_ids(now) == [earlier.id, later.id]

    def test_result_dict_includes_counts(self, expired_pair):
        data = update_expired_bookings().as_dict()

        assert data['expired_count'] == 2
        assert data['failed_count'] == 0
        assert data['checked'] == 2


# ============================================================================
# 2. FAILURE ISOLATION
# ============================================================================

@pytest.mark.django_db
class TestSweepFailureIsolation:

    def test_one_failure_does_not_stop_the_others(self, expired_pair, caplog):
        (broken_prop, broken_booking), (good_prop, good_booking) = expired_pair
        original_save = Property.save

        def flaky_save(self, *args, **kwargs):
            if self.pk == broken_prop.pk:
                raise DatabaseError('disk I/O error')
            return original_save(self, *args, **kwargs)

        with caplog.at_level(logging.ERROR, logger='realty'):
            with patch.object(Property, 'save', autospec=True, side_effect=flaky_save):
                result = update_expired_bookings()

        assert result.failed == [broken_booking.id]
        assert result.expired == [good_booking.id]
        assert f'Failed to expire booking {broken_booking.id}' in caplog.text

        # The failed booking rolled back as a unit
        broken_booking.refresh_from_db()
        broken_prop.refresh_from_db()
        assert broken_booking.status == Booking.STATUS_CONFIRMED
        assert broken_prop.status == Property.STATUS_BOOKED

        good_booking.refresh_from_db()
        good_prop.refresh_from_db()
        assert good_booking.status == Booking.STATUS_EXPIRED
        assert good_prop.status == Property.STATUS_FREE

    def test_failed_booking_is_picked_up_by_the_next_run(self, expired_pair):
        broken_prop, broken_booking = expired_pair[0]
        original_save = Property.save

        def flaky_save(self, *args, **kwargs):
            if self.pk == broken_prop.pk:
                raise DatabaseError('lock wait timeout')
            return original_save(self, *args, **kwargs)

        with patch.object(Property, 'save', autospec=True, side_effect=flaky_save):
            update_expired_bookings()

        result = update_expired_bookings()

        assert result.expired == [broken_booking.id]
        broken_prop.refresh_from_db()
        assert broken_prop.status == Property.STATUS_FREE


# ============================================================================
# 3. MANAGEMENT COMMAND
# ============================================================================

@pytest.mark.django_db
class TestExpireBookingsCommand:

    def test_command_expires_bookings(self, expired_pair):
        out = StringIO()
        call_command('expire_bookings', stdout=out)

        assert 'Expired 2 bookings.' in out.getvalue()
        assert Booking.objects.filter(status=Booking.STATUS_EXPIRED).count() == 2

    def test_dry_run_changes_nothing(self, expired_pair):
        out = StringIO()
        call_command('expire_bookings', dry_run=True, stdout=out)

        output = out.getvalue()
        assert '[DRY-RUN] Booking' in output
        assert '2 bookings would expire.' in output
        assert Booking.objects.filter(status=Booking.STATUS_CONFIRMED).count() == 2


# ============================================================================
# 4. ADMIN ENDPOINT
# ============================================================================

@pytest.mark.django_db
class TestUpdateExpiredEndpoint:

    def test_admin_runs_sweep(self, admin_client, expired_pair):
        response = admin_client.post(reverse('booking_update_expired'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['success'] is True
        data = response.data['data']
        assert data['expired_count'] == 2
        assert data['failed_count'] == 0
        assert sorted(data['expired']) == sorted(b.id for _, b in expired_pair)
        assert data['failed'] == []

    def test_regular_user_is_forbidden(self, user_client, expired_pair):
        response = user_client.post(reverse('booking_update_expired'))

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data['success'] is False

    def test_anonymous_request_is_unauthorized(self, api_client):
        response = api_client.post(reverse('booking_update_expired'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
