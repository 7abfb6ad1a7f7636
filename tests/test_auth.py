"""
Authentication tests: signup, dealer signup, login, token refresh, logout
and profile management.
"""

import jwt
import pytest
from django.conf import settings
from django.core import mail
from django.urls import reverse
from rest_framework import status

from realty.models import Dealer, Notification, User

from conftest import PASSWORD, make_image


@pytest.fixture
def signup_data():
    return {
        'email': 'Asha.Rao@Example.com',
        'password': 'Secret@123',
        'name': 'Asha Rao',
        'mobile': '9876501234',
    }


def login(client, email, password=PASSWORD):
    return client.post(reverse('auth_login'), {'email': email, 'password': password}, format='json')


# ============================================================================
# 1. SIGNUP
# ============================================================================

@pytest.mark.django_db
class TestSignup:

    def test_signup_returns_tokens_and_user(self, api_client, signup_data):
        response = api_client.post(reverse('auth_signup'), signup_data, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        data = response.data['data']
        assert data['token']
        assert data['refresh']
        assert data['user']['email'] == 'asha.rao@example.com'
        assert data['user']['role'] == User.ROLE_USER
        assert 'password' not in data['user']

        user = User.objects.get(email='asha.rao@example.com')
        assert user.check_password('Secret@123')
        assert Notification.objects.filter(notification_type=Notification.USER_SIGNUP).exists()
        assert any(m.to == ['asha.rao@example.com'] for m in mail.outbox)

    def test_duplicate_email_is_rejected_case_insensitively(self, api_client, user, signup_data):
        signup_data['email'] = user.email.upper()

        response = api_client.post(reverse('auth_signup'), signup_data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'email' in response.data['details']

    @pytest.mark.parametrize('password', ['short1!', 'alllowercase1@', 'NoDigits@@', 'NoSpecial123'])
    def test_weak_passwords_are_rejected(self, api_client, signup_data, password):
        signup_data['password'] = password

        response = api_client.post(reverse('auth_signup'), signup_data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'password' in response.data['details']

    def test_role_cannot_be_chosen_at_signup(self, api_client, signup_data):
        signup_data['role'] = User.ROLE_ADMIN

        response = api_client.post(reverse('auth_signup'), signup_data, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert User.objects.get(email='asha.rao@example.com').role == User.ROLE_USER


@pytest.mark.django_db
class TestDealerSignup:

    def test_creates_pending_application_under_referrer(self, api_client, make_dealer, signup_data):
        referrer = make_dealer()
        signup_data['referral_code'] = referrer.referral_code.lower()

        response = api_client.post(reverse('auth_dealer_signup'), signup_data, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        dealer = Dealer.objects.get(user__email='asha.rao@example.com')
        assert dealer.status == Dealer.STATUS_PENDING
        assert dealer.parent == referrer
        assert dealer.user.role == User.ROLE_USER
        assert response.data['data']['dealer']['referral_code'] == dealer.referral_code
        assert Notification.objects.filter(notification_type=Notification.DEALER_REQUEST).exists()

    def test_unknown_referral_code_creates_nothing(self, api_client, signup_data):
        signup_data['referral_code'] = 'ZZZZZZ'

        response = api_client.post(reverse('auth_dealer_signup'), signup_data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert not User.objects.filter(email='asha.rao@example.com').exists()

    def test_pending_referrer_is_not_accepted(self, api_client, make_dealer, signup_data):
        referrer = make_dealer(status=Dealer.STATUS_PENDING)
        signup_data['referral_code'] = referrer.referral_code

        response = api_client.post(reverse('auth_dealer_signup'), signup_data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_existing_user_can_apply(self, user_client, user):
        response = user_client.post(reverse('auth_apply_dealer'), {}, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert Dealer.objects.get(user=user).status == Dealer.STATUS_PENDING

        again = user_client.post(reverse('auth_apply_dealer'), {}, format='json')
        assert again.status_code == status.HTTP_400_BAD_REQUEST
        assert 'pending' in again.data['error']


# ============================================================================
# 2. LOGIN
# ============================================================================

@pytest.mark.django_db
class TestLogin:

    def test_valid_credentials(self, api_client, user):
        response = login(api_client, 'BUYER@example.com')

        assert response.status_code == status.HTTP_200_OK
        data = response.data['data']
        assert data['user']['id'] == user.id

        payload = jwt.decode(
            data['token'],
            settings.SIMPLE_JWT['SIGNING_KEY'],
            algorithms=[settings.SIMPLE_JWT['ALGORITHM']]
        )
        assert str(payload['user_id']) == str(user.id)
        assert payload['email'] == user.email
        assert payload['role'] == User.ROLE_USER

    def test_wrong_password_and_unknown_email_look_the_same(self, api_client, user):
        wrong_password = login(api_client, user.email, 'Wrong@Pass123')
        unknown = login(api_client, 'ghost@example.com')

        assert wrong_password.status_code == status.HTTP_401_UNAUTHORIZED
        assert unknown.status_code == status.HTTP_401_UNAUTHORIZED
        assert wrong_password.data == unknown.data == {
            'success': False,
            'error': 'Invalid email or password',
        }

    def test_blocked_user_is_refused(self, api_client, user):
        user.status = User.STATUS_BLOCKED
        user.save()

        response = login(api_client, user.email)

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert 'blocked' in response.data['error']

    def test_blocked_user_tokens_stop_working(self, user, user_client):
        User.objects.filter(pk=user.pk).update(status=User.STATUS_BLOCKED)

        response = user_client.get(reverse('auth_me'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_dealer_with_pending_application_is_refused(self, api_client, make_dealer):
        dealer = make_dealer(status=Dealer.STATUS_PENDING)
        User.objects.filter(pk=dealer.user_id).update(role=User.ROLE_DEALER)

        response = login(api_client, dealer.user.email)

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert 'pending' in response.data['error']

    def test_approved_dealer_sees_dealer_record(self, api_client, make_dealer):
        dealer = make_dealer()

        response = login(api_client, dealer.user.email)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['data']['user']['dealer']['referral_code'] == dealer.referral_code

    def test_login_is_rate_limited(self, api_client, user):
        for _ in range(20):
            login(api_client, user.email, 'Wrong@Pass123')

        response = login(api_client, user.email)

        assert response.status_code == status.HTTP_429_TOO_MANY_REQUESTS
        assert response.data['success'] is False


# ============================================================================
# 3. TOKENS
# ============================================================================

@pytest.mark.django_db
class TestTokenLifecycle:

    def test_refresh_rotates_tokens(self, api_client, user):
        refresh = login(api_client, user.email).data['data']['refresh']

        response = api_client.post(reverse('auth_refresh'), {'refresh': refresh}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['data']['token']
        assert response.data['data']['refresh'] != refresh

        # Rotated tokens are blacklisted
        reused = api_client.post(reverse('auth_refresh'), {'refresh': refresh}, format='json')
        assert reused.status_code == status.HTTP_401_UNAUTHORIZED

    def test_garbage_refresh_token(self, api_client):
        response = api_client.post(reverse('auth_refresh'), {'refresh': 'not-a-token'}, format='json')

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.data['success'] is False

    def test_logout_blacklists_refresh_token(self, api_client, user):
        refresh = login(api_client, user.email).data['data']['refresh']

        response = api_client.post(reverse('auth_logout'), {'refresh': refresh}, format='json')
        assert response.status_code == status.HTTP_200_OK

        response = api_client.post(reverse('auth_refresh'), {'refresh': refresh}, format='json')
        assert response.status_code == status.HTTP_401_UNAUTHORIZED


# ============================================================================
# 4. PROFILE
# ============================================================================

@pytest.mark.django_db
class TestProfile:

    def test_me_requires_authentication(self, api_client):
        response = api_client.get(reverse('auth_me'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.data['success'] is False

    def test_me(self, user_client, user):
        response = user_client.get(reverse('auth_me'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['data']['email'] == user.email
        assert response.data['data']['dealer'] is None

    def test_partial_profile_update(self, user_client, user):
        response = user_client.patch(reverse('auth_profile'), {'name': '  Ravi Kumar '}, format='json')

        assert response.status_code == status.HTTP_200_OK
        user.refresh_from_db()
        assert user.name == 'Ravi Kumar'
        assert user.mobile == '9876543210'

    def test_blank_name_is_rejected(self, user_client):
        response = user_client.put(reverse('auth_profile'), {'name': '   '}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_profile_picture_upload(self, user_client, user):
        response = user_client.post(
            reverse('auth_profile_picture'),
            {'profile_pic': make_image('me.png')},
            format='multipart'
        )

        assert response.status_code == status.HTTP_200_OK
        user.refresh_from_db()
        assert user.profile_pic.name.startswith(f'profile_pics/{user.id}/')

    def test_aadhaar_image_upload(self, user_client, user):
        response = user_client.post(
            reverse('auth_aadhaar_image'),
            {'aadhaar_image': make_image('card.jpg', image_format='JPEG', content_type='image/jpeg')},
            format='multipart'
        )

        assert response.status_code == status.HTTP_200_OK
        user.refresh_from_db()
        assert user.aadhaar_image.name.startswith(f'aadhaar/{user.id}/')

    def test_change_password(self, user_client, user):
        response = user_client.post(
            reverse('auth_change_password'),
            {'current_password': PASSWORD, 'new_password': 'Fresh@Pass456'},
            format='json'
        )

        assert response.status_code == status.HTTP_200_OK
        user.refresh_from_db()
        assert user.check_password('Fresh@Pass456')

    def test_change_password_needs_current_password(self, user_client):
        response = user_client.post(
            reverse('auth_change_password'),
            {'current_password': 'Wrong@Pass1', 'new_password': 'Fresh@Pass456'},
            format='json'
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'current_password' in response.data['details']
