"""
Authentication backends: email login and JWT authentication that honours
account blocking.
"""

from django.contrib.auth import get_user_model
from django.contrib.auth.backends import ModelBackend
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.authentication import JWTAuthentication

User = get_user_model()


class EmailBackend(ModelBackend):
    """
    Log users in by email address; the lookup ignores case and surrounding
    whitespace.

    Blocked accounts still authenticate here so the login view can answer
    them with a distinct 403.
    """

    def authenticate(self, request, username=None, password=None, **kwargs):
        email = kwargs.get('email', username)
        if not email or password is None:
            return None

        user = User.objects.filter(email__iexact=email.strip()).first()
        if user is None:
            # Hash anyway so unknown emails take as long as wrong passwords
            User().set_password(password)
            return None

        if not user.check_password(password) or not self.user_can_authenticate(user):
            return None
        return user

    def get_user(self, user_id):
        return User.objects.filter(pk=user_id).first()


class PlatformJWTAuthentication(JWTAuthentication):
    """
    JWT authentication that refuses tokens belonging to blocked accounts.

    Tokens issued before an admin blocks a user stay cryptographically valid
    until they expire, so the account status is checked on every request.
    """

    def get_user(self, validated_token):
        user = super().get_user(validated_token)
        if getattr(user, 'status', None) == User.STATUS_BLOCKED:
            raise AuthenticationFailed('Your account has been blocked. Please contact support.', code='user_blocked')
        return user
