"""
Property listing tests: browsing with filters and pagination, creating
listings with media, owner/admin updates and admin status changes.
"""

from decimal import Decimal

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from django.urls import reverse
from rest_framework import status

from realty.models import Notification, Property, PropertyMedia

from conftest import make_image


@pytest.fixture
def listing_data():
    return {
        'title': 'Lake Facing Flat',
        'description': 'Two bedroom flat overlooking the lake, close to the metro.',
        'property_type': 'Apartment',
        'location': 'Bengaluru',
        'address': '12 Lake Road, Hebbal',
        'latitude': 13.04,
        'longitude': 77.59,
        'price': '6400000.00',
    }


@pytest.fixture
def catalogue(make_property, other_user):
    return [
        make_property(title='Budget Studio', property_type='Studio', location='Pune', price=Decimal('1500000')),
        make_property(title='Family Villa', property_type='Villa', location='Pune', price=Decimal('9000000')),
        make_property(title='City Flat', location='Navi Mumbai', price=Decimal('4000000'), owner=other_user),
        make_property(title='Sold Plot', property_type='Plot', location='Nashik',
                      price=Decimal('800000'), status=Property.STATUS_SOLD),
    ]


def titles(response):
    return {p['title'] for p in response.data['data']['properties']}


# ============================================================================
# 1. BROWSING
# ============================================================================

@pytest.mark.django_db
class TestPropertyListing:

    def test_public_listing_hides_sold(self, api_client, catalogue):
        response = api_client.get(reverse('property_list'))

        assert response.status_code == status.HTTP_200_OK
        assert titles(response) == {'Budget Studio', 'Family Villa', 'City Flat'}
        assert response.data['data']['pagination'] == {'page': 1, 'limit': 10, 'total': 3, 'pages': 1}

    def test_filter_by_type_is_case_insensitive(self, api_client, catalogue):
        response = api_client.get(reverse('property_list'), {'type': 'villa'})

        assert titles(response) == {'Family Villa'}

    def test_filter_by_location_contains(self, api_client, catalogue):
        response = api_client.get(reverse('property_list'), {'location': 'mumbai'})

        assert titles(response) == {'City Flat'}

    def test_filter_by_price_range(self, api_client, catalogue):
        response = api_client.get(reverse('property_list'), {'min_price': '1000000', 'max_price': '5000000'})

        assert titles(response) == {'Budget Studio', 'City Flat'}

    def test_explicit_status_includes_sold(self, api_client, catalogue):
        response = api_client.get(reverse('property_list'), {'status': 'sold'})

        assert titles(response) == {'Sold Plot'}

    def test_filter_by_dealer(self, api_client, make_property, make_dealer):
        dealer = make_dealer()
        make_property(title='Dealer Listing', dealer=dealer)
        make_property(title='Direct Listing')

        response = api_client.get(reverse('property_list'), {'dealer_id': dealer.id})

        assert titles(response) == {'Dealer Listing'}

    @pytest.mark.parametrize('params', [
        {'min_price': 'cheap'},
        {'min_price': 'NaN'},
        {'max_price': 'Infinity'},
        {'max_price': '-5'},
        {'min_price': '500', 'max_price': '100'},
        {'status': 'RENTED'},
        {'dealer_id': 'abc'},
    ])
    def test_invalid_filters(self, api_client, catalogue, params):
        response = api_client.get(reverse('property_list'), params)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['success'] is False

    def test_pagination(self, api_client, catalogue):
        response = api_client.get(reverse('property_list'), {'page': 2, 'limit': 2})

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data['data']['properties']) == 1
        assert response.data['data']['pagination']['pages'] == 2

    def test_page_past_the_end(self, api_client, catalogue):
        response = api_client.get(reverse('property_list'), {'page': 9})

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_admin_listing_includes_sold(self, admin_client, catalogue):
        response = admin_client.get(reverse('property_admin_list'))

        assert response.status_code == status.HTTP_200_OK
        assert 'Sold Plot' in titles(response)
        assert response.data['data']['pagination']['limit'] == 100

    def test_admin_listing_needs_admin(self, user_client):
        assert user_client.get(reverse('property_admin_list')).status_code == status.HTTP_403_FORBIDDEN

    def test_types_and_locations(self, api_client, catalogue):
        types = api_client.get(reverse('property_types')).data['data']
        locations = api_client.get(reverse('property_locations')).data['data']

        assert types == ['Apartment', 'Plot', 'Studio', 'Villa']
        assert locations == ['Nashik', 'Navi Mumbai', 'Pune']

    def test_detail_includes_bookings(self, api_client, make_property, make_booking):
        prop = make_property()
        booking = make_booking(prop)

        response = api_client.get(reverse('property_detail', args=[prop.id]))

        assert response.status_code == status.HTTP_200_OK
        assert [b['id'] for b in response.data['data']['bookings']] == [booking.id]

    def test_missing_property(self, api_client):
        response = api_client.get(reverse('property_detail', args=[424242]))

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data['success'] is False


# ============================================================================
# 2. CREATING
# ============================================================================

@pytest.mark.django_db
class TestPropertyCreation:

    def test_create_with_media(self, user_client, user, listing_data):
        listing_data['media_files'] = [
            make_image('front.png'),
            SimpleUploadedFile('tour.mp4', b'\x00\x00\x00\x18ftypmp42', content_type='video/mp4'),
        ]

        response = user_client.post(reverse('property_list'), listing_data, format='multipart')

        assert response.status_code == status.HTTP_201_CREATED
        data = response.data['data']
        assert data['owner']['id'] == user.id
        assert data['status'] == Property.STATUS_FREE
        assert data['price'] == '6400000.00'
        assert len(data['media']) == 2
        assert PropertyMedia.objects.filter(property_id=data['id']).count() == 2

        notification = Notification.objects.get(notification_type=Notification.PROPERTY_ADDED)
        assert notification.data['property_id'] == data['id']

    def test_anonymous_cannot_create(self, api_client, listing_data):
        response = api_client.post(reverse('property_list'), listing_data, format='json')

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    @pytest.mark.parametrize('field,value', [
        ('title', 'ab'),
        ('title', 'x' * 101),
        ('description', 'too short'),
        ('price', '-1'),
        ('latitude', 95),
        ('longitude', -181),
        ('location', '   '),
    ])
    def test_field_validation(self, user_client, listing_data, field, value):
        listing_data[field] = value

        response = user_client.post(reverse('property_list'), listing_data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert field in response.data['details']

    def test_too_many_media_files(self, user_client, listing_data):
        listing_data['media_files'] = [make_image(f'photo{i}.png') for i in range(11)]

        response = user_client.post(reverse('property_list'), listing_data, format='multipart')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert Property.objects.count() == 0

    def test_non_media_upload_is_rejected(self, user_client, listing_data):
        listing_data['media_files'] = [SimpleUploadedFile('notes.txt', b'hello', content_type='text/plain')]

        response = user_client.post(reverse('property_list'), listing_data, format='multipart')

        assert response.status_code == status.HTTP_400_BAD_REQUEST


# ============================================================================
# 3. UPDATING AND DELETING
# ============================================================================

@pytest.mark.django_db
class TestPropertyUpdates:

    def test_owner_updates_and_admins_are_notified(self, user_client, make_property):
        prop = make_property()

        response = user_client.patch(
            reverse('property_detail', args=[prop.id]),
            {'price': '2600000.00', 'title': prop.title},
            format='json'
        )

        assert response.status_code == status.HTTP_200_OK
        prop.refresh_from_db()
        assert prop.price == Decimal('2600000.00')

        notification = Notification.objects.get(notification_type=Notification.PROPERTY_UPDATED)
        assert notification.data['changed_fields'] == ['price']

    def test_unchanged_update_sends_no_notification(self, user_client, make_property):
        prop = make_property()

        response = user_client.put(
            reverse('property_detail', args=[prop.id]),
            {'location': prop.location},
            format='json'
        )

        assert response.status_code == status.HTTP_200_OK
        assert not Notification.objects.filter(notification_type=Notification.PROPERTY_UPDATED).exists()

    def test_update_appends_media(self, user_client, make_property):
        prop = make_property()
        PropertyMedia.objects.create(property=prop, file=make_image('old.png'))

        response = user_client.patch(
            reverse('property_detail', args=[prop.id]),
            {'media_files': [make_image('new.png')]},
            format='multipart'
        )

        assert response.status_code == status.HTTP_200_OK
        assert prop.media.count() == 2

    def test_non_owner_cannot_update(self, other_client, make_property):
        prop = make_property()

        response = other_client.patch(reverse('property_detail', args=[prop.id]), {'price': '1'}, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN
        prop.refresh_from_db()
        assert prop.price == Decimal('2500000.00')

    def test_admin_can_update_any_listing(self, admin_client, make_property):
        prop = make_property()

        response = admin_client.patch(
            reverse('property_detail', args=[prop.id]),
            {'location': 'Thane'},
            format='json'
        )

        assert response.status_code == status.HTTP_200_OK

    def test_owner_deletes(self, user_client, make_property):
        prop = make_property()

        response = user_client.delete(reverse('property_detail', args=[prop.id]))

        assert response.status_code == status.HTTP_200_OK
        assert not Property.objects.filter(pk=prop.pk).exists()

    def test_non_owner_cannot_delete(self, other_client, make_property):
        prop = make_property()

        response = other_client.delete(reverse('property_detail', args=[prop.id]))

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert Property.objects.filter(pk=prop.pk).exists()

    def test_admin_sets_status(self, admin_client, make_property):
        prop = make_property()

        response = admin_client.patch(
            reverse('property_status', args=[prop.id]),
            {'status': Property.STATUS_SOLD},
            format='json'
        )

        assert response.status_code == status.HTTP_200_OK
        prop.refresh_from_db()
        assert prop.status == Property.STATUS_SOLD

    def test_status_change_needs_admin(self, user_client, make_property):
        prop = make_property()

        response = user_client.patch(
            reverse('property_status', args=[prop.id]),
            {'status': Property.STATUS_SOLD},
            format='json'
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_invalid_status_value(self, admin_client, make_property):
        prop = make_property()

        response = admin_client.patch(
            reverse('property_status', args=[prop.id]),
            {'status': 'RENTED'},
            format='json'
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
