"""
Custom permission classes for the property platform.
"""

from rest_framework import permissions


def _is_authenticated(request):
    return bool(request.user and request.user.is_authenticated)


class IsPlatformAdmin(permissions.BasePermission):
    """
    Allow only users with role ADMIN.

    Anonymous requests fail authentication (401); authenticated non-admins
    receive 403.

    Usage:
        class MyView(APIView):
            permission_classes = [IsPlatformAdmin]
    """

    message = 'Admin access required.'

    def has_permission(self, request, view):
        if not _is_authenticated(request):
            return False
        return request.user.role == 'ADMIN'


class IsDealerOrAdmin(permissions.BasePermission):
    """
    Allow dealers (approved dealer record) and admins.
    """

    message = 'Only approved dealers can access this resource.'

    def has_permission(self, request, view):
        if not _is_authenticated(request):
            return False

        user = request.user
        if user.role == 'ADMIN':
            return True

        dealer = getattr(user, 'dealer', None)
        return user.role == 'DEALER' and dealer is not None and dealer.status == 'APPROVED'


class IsOwnerOrAdmin(permissions.BasePermission):
    """
    Object-level permission for resources that belong to a user.

    The owning user is looked up through ``owner_field`` on the view
    (defaults to ``owner``), so the same class serves properties
    (``owner``) and bookings (``user``).

    Usage:
        class PropertyDetailView(APIView):
            permission_classes = [IsOwnerOrAdmin]
            owner_field = 'owner'
    """

    message = 'You do not have permission to modify this resource.'

    def has_permission(self, request, view):
        return _is_authenticated(request)

    def has_object_permission(self, request, view, obj):
        if not _is_authenticated(request):
            return False

        if request.user.role == 'ADMIN':
            return True

        owner_field = getattr(view, 'owner_field', 'owner')
        return getattr(obj, f'{owner_field}_id', None) == request.user.id
