"""
Admin notification inbox.
"""

import logging

from django.shortcuts import get_object_or_404
from rest_framework.views import APIView

from ..exceptions import PlatformError
from ..models import Notification
from ..permissions import IsPlatformAdmin
from ..serializers import NotificationSerializer
from ..services import notifications
from .base import paginate, query_flag, success


logger = logging.getLogger(__name__)


class NotificationListView(APIView):
    """
    GET /api/notifications/?page=1&limit=20&unread_only=true

    Success response (200):
    {
        "success": true,
        "data": {
            "notifications": [...],
            "unread_count": 4,
            "pagination": {"page": 1, "limit": 20, "total": 31, "pages": 2}
        }
    }
    """
    permission_classes = [IsPlatformAdmin]

    def get(self, request, *args, **kwargs):
        queryset = Notification.objects.order_by('-created_at', '-id')
        if query_flag(request, 'unread_only'):
            queryset = queryset.filter(read=False)

        page, pagination = paginate(request, queryset, default_limit=20)
        return success({
            'notifications': NotificationSerializer(page, many=True).data,
            'unread_count': Notification.objects.filter(read=False).count(),
            'pagination': pagination,
        })


class NotificationReadView(APIView):
    permission_classes = [IsPlatformAdmin]

    def put(self, request, pk, *args, **kwargs):
        notification = get_object_or_404(Notification, pk=pk)
        if not notification.read:
            notification.read = True
            notification.save(update_fields=['read'])
        return success(NotificationSerializer(notification).data, message='Notification marked as read')

    patch = put


class MarkAllReadView(APIView):
    permission_classes = [IsPlatformAdmin]

    def put(self, request, *args, **kwargs):
        updated = notifications.mark_all_read()
        return success({'updated': updated}, message='All notifications marked as read')

    patch = put


class UnreadCountView(APIView):
    permission_classes = [IsPlatformAdmin]

    def get(self, request, *args, **kwargs):
        return success({'count': Notification.objects.filter(read=False).count()})


class NotificationCleanupView(APIView):
    """
    DELETE /api/notifications/cleanup/?days=30

    Removes read notifications older than ``days`` (default 30).
    """
    permission_classes = [IsPlatformAdmin]

    def delete(self, request, *args, **kwargs):
        days = request.query_params.get('days', notifications.READ_RETENTION_DAYS)
        try:
            days = int(days)
        except (TypeError, ValueError):
            raise PlatformError('days must be an integer', 400)
        if days < 0:
            raise PlatformError('days cannot be negative', 400)

        deleted = notifications.cleanup_read_notifications(days=days)
        logger.info(f"Notification cleanup by {request.user.email}: {deleted} deleted")
        return success({'deleted': deleted}, message=f'{deleted} notifications deleted')
