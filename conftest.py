"""
Shared pytest fixtures.
"""

from datetime import timedelta
from decimal import Decimal
from io import BytesIO

import pytest
from django.core.cache import cache
from django.core.files.uploadedfile import SimpleUploadedFile
from django.utils import timezone
from PIL import Image
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from realty.models import Booking, Dealer, Property, User


PASSWORD = 'Secure@Pass123'


@pytest.fixture(autouse=True)
def isolated_environment(settings, tmp_path):
    """Reset throttle counters and keep uploads out of the project tree."""
    cache.clear()
    settings.MEDIA_ROOT = tmp_path / 'uploads'
    settings.PAYMENTS_MODE = 'mock'
    settings.WHATSAPP_ACCESS_TOKEN = ''
    settings.WHATSAPP_PHONE_NUMBER_ID = ''
    settings.TELEGRAM_BOT_TOKEN = ''
    settings.TELEGRAM_GROUP_ID = ''
    yield
    cache.clear()


def make_image(name='image.png', size=(20, 20), image_format='PNG', content_type='image/png'):
    buffer = BytesIO()
    Image.new('RGB', size, color='white').save(buffer, format=image_format)
    return SimpleUploadedFile(name, buffer.getvalue(), content_type=content_type)


def auth_client(user):
    client = APIClient()
    token = str(RefreshToken.for_user(user).access_token)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
    return client


@pytest.fixture
def api_client():
    """Provide an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def user(db):
    return User.objects.create_user(
        email='buyer@example.com',
        password=PASSWORD,
        name='Ravi Buyer',
        mobile='9876543210',
    )


@pytest.fixture
def other_user(db):
    return User.objects.create_user(
        email='other@example.com',
        password=PASSWORD,
        name='Other User',
    )


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(
        email='admin@propertyplatform.com',
        password=PASSWORD,
        name='System Administrator',
        role=User.ROLE_ADMIN,
        is_staff=True,
    )


@pytest.fixture
def user_client(user):
    return auth_client(user)


@pytest.fixture
def other_client(other_user):
    return auth_client(other_user)


@pytest.fixture
def admin_client(admin_user):
    return auth_client(admin_user)


@pytest.fixture
def make_property(db, user):
    """Factory for listings owned by ``user`` unless another owner is given."""
    counter = {'n': 0}

    def _make(owner=None, **overrides):
        counter['n'] += 1
        fields = {
            'title': f'Sea View Apartment {counter["n"]}',
            'description': 'Two bedroom apartment close to the beach.',
            'property_type': 'Apartment',
            'location': 'Mumbai',
            'price': Decimal('2500000.00'),
            'owner': owner or user,
        }
        fields.update(overrides)
        return Property.objects.create(**fields)

    return _make


@pytest.fixture
def make_booking(db, user):
    """Factory for bookings created directly in a given state."""

    def _make(prop, booker=None, status=Booking.STATUS_CONFIRMED, start=None, end=None, **overrides):
        start = start or timezone.now() - timedelta(days=5)
        end = end or start + timedelta(days=3)
        fields = {
            'property': prop,
            'user': booker or user,
            'start_date': start,
            'end_date': end,
            'booking_charges': Decimal('1000.00'),
            'total_amount': Decimal('1000.00'),
            'status': status,
            'payment_method': Booking.PAYMENT_UPI,
            'payment_ref': 'UPI123456',
        }
        fields.update(overrides)
        return Booking.objects.create(**fields)

    return _make


@pytest.fixture
def make_dealer(db):
    counter = {'n': 0}

    def _make(parent=None, status=Dealer.STATUS_APPROVED, commission=Decimal('0'), **user_fields):
        counter['n'] += 1
        account = User.objects.create_user(
            email=user_fields.pop('email', f'dealer{counter["n"]}@example.com'),
            password=PASSWORD,
            name=user_fields.pop('name', f'Dealer {counter["n"]}'),
            role=User.ROLE_DEALER if status == Dealer.STATUS_APPROVED else User.ROLE_USER,
            **user_fields
        )
        return Dealer.objects.create(user=account, parent=parent, status=status, commission=commission)

    return _make


@pytest.fixture
def image_factory():
    return make_image


@pytest.fixture
def client_for(db):
    """Build an authenticated client for any user."""
    return auth_client
