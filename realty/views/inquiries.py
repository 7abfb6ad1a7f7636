"""
Contact-form inquiries.
"""

import logging

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.views import APIView

from ..exceptions import PlatformError
from ..models import Inquiry, Notification
from ..permissions import IsPlatformAdmin
from ..serializers import InquirySerializer, InquiryStatusSerializer
from ..services import notifications
from .base import ClientIPMixin, paginate, success


logger = logging.getLogger(__name__)


class InquiryListCreateView(ClientIPMixin, APIView):
    """
    POST /api/inquiries/ (public)
    Request body: {"message": "Looking for a 2BHK near...", "mobile_number": "98765 43210"}

    GET /api/inquiries/?status=NEW&page=1&limit=20 (admin)
    """

    def get_permissions(self):
        if self.request.method == 'POST':
            return [AllowAny()]
        return [IsPlatformAdmin()]

    def get(self, request, *args, **kwargs):
        queryset = Inquiry.objects.order_by('-created_at', '-id')
        inquiry_status = request.query_params.get('status')
        if inquiry_status:
            inquiry_status = inquiry_status.upper()
            if inquiry_status not in dict(Inquiry.STATUS_CHOICES):
                raise PlatformError(f'Invalid status "{inquiry_status}"', 400)
            queryset = queryset.filter(status=inquiry_status)

        page, pagination = paginate(request, queryset, default_limit=20)
        return success({'inquiries': InquirySerializer(page, many=True).data, 'pagination': pagination})

    def post(self, request, *args, **kwargs):
        serializer = InquirySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        inquiry = serializer.save()

        logger.info(f"Inquiry {inquiry.id} received from IP {self.get_client_ip(request)}")
        notifications.notify(
            Notification.INQUIRY_RECEIVED,
            'New Inquiry',
            f"{inquiry.mobile_number}: {inquiry.message[:200]}",
            data={'inquiry_id': inquiry.id, 'mobile_number': inquiry.mobile_number},
        )

        return success(
            InquirySerializer(inquiry).data,
            message='Thank you! We will contact you shortly.',
            status_code=status.HTTP_201_CREATED,
        )


class InquiryDetailView(APIView):
    """
    GET    /api/inquiries/<id>/
    PATCH  /api/inquiries/<id>/  {"status": "CONTACTED"}
    DELETE /api/inquiries/<id>/
    """
    permission_classes = [IsPlatformAdmin]

    def get(self, request, pk, *args, **kwargs):
        return success(InquirySerializer(get_object_or_404(Inquiry, pk=pk)).data)

    def patch(self, request, pk, *args, **kwargs):
        inquiry = get_object_or_404(Inquiry, pk=pk)
        serializer = InquiryStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        inquiry.status = serializer.validated_data['status']
        inquiry.save()
        return success(InquirySerializer(inquiry).data, message='Inquiry updated')

    put = patch

    def delete(self, request, pk, *args, **kwargs):
        inquiry = get_object_or_404(Inquiry, pk=pk)
        inquiry.delete()
        return success(message='Inquiry deleted')
