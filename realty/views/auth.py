"""
Authentication and profile endpoints.
"""

import logging

from django.contrib.auth import authenticate
from django.db import transaction
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from rest_framework_simplejwt.serializers import TokenBlacklistSerializer, TokenRefreshSerializer

from ..exceptions import PlatformError
from ..models import Dealer, Notification, User
from ..serializers import (
    AadhaarImageSerializer,
    ApplyDealerSerializer,
    ChangePasswordSerializer,
    DealerSignupSerializer,
    DealerSummarySerializer,
    LoginSerializer,
    ProfilePictureSerializer,
    ProfileUpdateSerializer,
    SignupSerializer,
    UserSerializer,
    tokens_for_user,
)
from ..services import commissions, notifications
from .base import ClientIPMixin, success


logger = logging.getLogger(__name__)


class SignupView(ClientIPMixin, APIView):
    """
    API endpoint for user registration.

    POST /api/auth/signup/
    Request body:
    {
        "email": "user@example.com",
        "password": "Secret@123",
        "name": "Asha Rao",
        "mobile": "9876543210",
        "aadhaar": "123412341234"
    }

    Success response (201):
    {
        "success": true,
        "data": {"token": "<access>", "refresh": "<refresh>", "user": {...}},
        "message": "Account created successfully"
    }

    Error response (400): duplicate email or password policy violation
    """
    permission_classes = [AllowAny]

    def post(self, request, *args, **kwargs):
        serializer = SignupSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()

        logger.info(f"New user registered. Email: {user.email}, IP: {self.get_client_ip(request)}")

        notifications.notify(
            Notification.USER_SIGNUP,
            'New User Signup',
            f"{user.name or user.email} ({user.email}) created an account.",
            data={'user_id': user.id, 'email': user.email, 'name': user.name},
        )
        notifications.email_welcome(user)

        tokens = tokens_for_user(user)
        return success(
            {'token': tokens['access'], 'refresh': tokens['refresh'], 'user': UserSerializer(user).data},
            message='Account created successfully',
            status_code=status.HTTP_201_CREATED,
        )


class LoginView(ClientIPMixin, APIView):
    """
    API endpoint for login with JWT token generation.

    Security features:
    - Rate limiting (throttle scope ``login``)
    - Generic error message for unknown email and wrong password
    - Blocked accounts and unapproved dealers are refused with 403
    - Failed attempts are logged with the client IP

    POST /api/auth/login/
    Request body: {"email": "user@example.com", "password": "Secret@123"}

    Success response (200):
    {
        "success": true,
        "data": {
            "token": "<jwt_access_token>",
            "refresh": "<jwt_refresh_token>",
            "user": {"id": 1, "email": "...", "role": "DEALER",
                     "dealer": {"id": 3, "referral_code": "AB12CD", "status": "APPROVED"}, ...}
        }
    }

    Error responses:
    - 401: {"success": false, "error": "Invalid email or password"}
    - 403: Account blocked, or dealer application not approved
    """
    permission_classes = [AllowAny]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = 'login'

    def post(self, request, *args, **kwargs):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        email = serializer.validated_data['email'].lower().strip()
        password = serializer.validated_data['password']
        client_ip = self.get_client_ip(request)

        user = authenticate(request, username=email, password=password)
        if user is None:
            logger.warning(f"Failed login attempt. Email: {email}, IP: {client_ip}")
            raise PlatformError('Invalid email or password', status.HTTP_401_UNAUTHORIZED)

        if user.is_blocked:
            logger.warning(f"Login attempt on blocked account. Email: {email}, IP: {client_ip}")
            raise PlatformError('Your account has been blocked. Please contact support.', status.HTTP_403_FORBIDDEN)

        if user.is_dealer:
            dealer = Dealer.objects.filter(user=user).first()
            if dealer is not None and dealer.status == Dealer.STATUS_PENDING:
                raise PlatformError('Your dealer account is pending approval', status.HTTP_403_FORBIDDEN)
            if dealer is not None and dealer.status == Dealer.STATUS_REJECTED:
                raise PlatformError('Your dealer application has been rejected', status.HTTP_403_FORBIDDEN)

        tokens = tokens_for_user(user)
        logger.info(f"Successful login. Email: {email}, IP: {client_ip}")

        return success({
            'token': tokens['access'],
            'refresh': tokens['refresh'],
            'user': UserSerializer(user).data,
        })


class DealerSignupView(ClientIPMixin, APIView):
    """
    Register a new account together with a dealer application.

    POST /api/auth/dealer-signup/
    Request body: signup fields plus optional "referral_code" of an approved dealer.

    The account starts as a USER with a PENDING dealer record; an admin
    approval turns it into a DEALER.
    """
    permission_classes = [AllowAny]

    def post(self, request, *args, **kwargs):
        serializer = DealerSignupSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        referral_code = serializer.validated_data.get('referral_code') or None

        with transaction.atomic():
            user = serializer.save()
            dealer = commissions.register_dealer(user, referral_code)

        logger.info(
            f"Dealer signup. Email: {user.email}, Referrer: {referral_code}, "
            f"IP: {self.get_client_ip(request)}"
        )

        return success(
            {'user': UserSerializer(user).data, 'dealer': DealerSummarySerializer(dealer).data},
            message='Dealer application submitted. Awaiting admin approval.',
            status_code=status.HTTP_201_CREATED,
        )


class ApplyDealerView(APIView):
    """
    Let an existing USER apply to the dealer program.

    POST /api/auth/apply-dealer/
    Request body: {"referral_code": "AB12CD"}  (optional)
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, *args, **kwargs):
        user = request.user
        if user.role != User.ROLE_USER:
            raise PlatformError('Only regular users can apply to become a dealer', 400)

        existing = Dealer.objects.filter(user=user).first()
        if existing is not None:
            raise PlatformError(
                f'You already have a dealer application ({existing.status.lower()})', 400
            )

        serializer = ApplyDealerSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        dealer = commissions.register_dealer(user, serializer.validated_data.get('referral_code') or None)
        return success(
            DealerSummarySerializer(dealer).data,
            message='Dealer application submitted. Awaiting admin approval.',
            status_code=status.HTTP_201_CREATED,
        )


class MeView(APIView):
    """GET /api/auth/me/ - the authenticated user's profile."""
    permission_classes = [IsAuthenticated]

    def get(self, request, *args, **kwargs):
        return success(UserSerializer(request.user).data)


class ProfileView(APIView):
    """
    Update name, mobile and aadhaar number.

    PUT/PATCH /api/auth/profile/
    """
    permission_classes = [IsAuthenticated]

    def put(self, request, *args, **kwargs):
        serializer = ProfileUpdateSerializer(request.user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        logger.info(f"Profile updated. User: {user.email}, Fields: {sorted(serializer.validated_data)}")
        return success(UserSerializer(user).data, message='Profile updated successfully')

    patch = put


class ProfilePictureView(APIView):
    """POST /api/auth/profile-picture/ (multipart, field ``profile_pic``)."""
    permission_classes = [IsAuthenticated]

    def post(self, request, *args, **kwargs):
        serializer = ProfilePictureSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = request.user
        user.profile_pic = serializer.validated_data['profile_pic']
        user.save(update_fields=['profile_pic', 'updated_at'])
        return success(UserSerializer(user).data, message='Profile picture updated')


class AadhaarImageView(APIView):
    """POST /api/auth/aadhaar-image/ (multipart, field ``aadhaar_image``)."""
    permission_classes = [IsAuthenticated]

    def post(self, request, *args, **kwargs):
        serializer = AadhaarImageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = request.user
        user.aadhaar_image = serializer.validated_data['aadhaar_image']
        user.save(update_fields=['aadhaar_image', 'updated_at'])
        return success(UserSerializer(user).data, message='Aadhaar image uploaded')


class ChangePasswordView(ClientIPMixin, APIView):
    """
    POST /api/auth/change-password/
    Request body: {"current_password": "...", "new_password": "..."}
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, *args, **kwargs):
        serializer = ChangePasswordSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)

        user = request.user
        user.set_password(serializer.validated_data['new_password'])
        user.save(update_fields=['password', 'updated_at'])
        logger.info(f"Password changed. User: {user.email}, IP: {self.get_client_ip(request)}")
        return success(message='Password changed successfully')


class RefreshTokenView(ClientIPMixin, APIView):
    """
    API endpoint for refreshing JWT access tokens.

    Security features:
    - Rate limiting (throttle scope ``refresh``)
    - Refresh token validation (signature, expiration, type, blacklist)
    - Token rotation; the old refresh token is blacklisted

    POST /api/auth/refresh/
    Request body: {"refresh": "<jwt_refresh_token>"}

    Success response (200):
    {"success": true, "data": {"token": "<access>", "refresh": "<new_refresh>"}}

    Error responses:
    - 400: Missing refresh field
    - 401: Invalid, expired, or blacklisted refresh token
    - 429: Rate limit exceeded
    """
    permission_classes = [AllowAny]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = 'refresh'

    def post(self, request, *args, **kwargs):
        serializer = TokenRefreshSerializer(data=request.data)
        client_ip = self.get_client_ip(request)

        try:
            serializer.is_valid(raise_exception=True)
        except TokenError as e:
            logger.warning(f"Failed token refresh attempt. Error: {e}, IP: {client_ip}")
            raise InvalidToken(e.args[0])

        logger.info(f"Successful token refresh. IP: {client_ip}")
        data = {'token': serializer.validated_data['access']}
        if 'refresh' in serializer.validated_data:
            data['refresh'] = serializer.validated_data['refresh']
        return success(data)


class LogoutView(APIView):
    """
    POST /api/auth/logout/
    Request body: {"refresh": "<jwt_refresh_token>"}

    Blacklists the refresh token so it can no longer be rotated.
    """
    permission_classes = [AllowAny]

    def post(self, request, *args, **kwargs):
        serializer = TokenBlacklistSerializer(data=request.data)
        try:
            serializer.is_valid(raise_exception=True)
        except TokenError as e:
            raise InvalidToken(e.args[0])
        return success(message='Logged out successfully')
