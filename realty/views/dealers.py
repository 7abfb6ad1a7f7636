"""
Dealer program endpoints: commissions, hierarchy and configuration.
"""

import logging
import re
from decimal import Decimal

from django.db.models import Sum
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.views import APIView

from ..exceptions import PlatformError
from ..models import CommissionConfig, Dealer
from ..permissions import IsDealerOrAdmin, IsPlatformAdmin
from ..serializers import (
    CalculateCommissionSerializer,
    CommissionConfigSerializer,
    CommissionSerializer,
    DealerHierarchySerializer,
    DealerSerializer,
)
from ..services import as_money, commissions
from ..services.dealer_tree import DealerHierarchyCycleError, find_subtree, load_dealer_forest
from .base import success


logger = logging.getLogger(__name__)


def load_forest_or_conflict():
    """
    Build the dealer forest, reporting a corrupt hierarchy as 409.
    """
    try:
        return load_dealer_forest()
    except DealerHierarchyCycleError as e:
        logger.error(f"Dealer tree requested but hierarchy is corrupt: {e}")
        raise PlatformError(str(e), status.HTTP_409_CONFLICT)


def _require_self_or_admin(request, dealer):
    if request.user.is_platform_admin or dealer.user_id == request.user.id:
        return
    raise PlatformError('You can only view your own dealer information', status.HTTP_403_FORBIDDEN)


class MyCommissionsView(APIView):
    """
    GET /api/dealers/my-commissions/

    Success response (200):
    {"success": true, "data": {"commissions": [...], "total": "1250.00"}}
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, *args, **kwargs):
        dealer = Dealer.objects.filter(user=request.user).first()
        if dealer is None:
            raise PlatformError('Dealer profile not found', status.HTTP_404_NOT_FOUND)

        queryset = dealer.commissions.select_related('property').order_by('-created_at', '-id')
        total = queryset.aggregate(total=Sum('amount'))['total']
        return success({
            'commissions': CommissionSerializer(queryset, many=True).data,
            'total': as_money(total),
        })


class DealerHierarchyView(APIView):
    """GET /api/dealers/hierarchy/<id>/ - the dealer with its parent and direct children."""
    permission_classes = [IsDealerOrAdmin]

    def get(self, request, pk, *args, **kwargs):
        dealer = get_object_or_404(
            Dealer.objects.select_related('user', 'parent__user').prefetch_related('children__user'),
            pk=pk
        )
        _require_self_or_admin(request, dealer)
        return success(DealerHierarchySerializer(dealer).data)


class DealerStatsView(APIView):
    permission_classes = [IsDealerOrAdmin]

    def get(self, request, pk, *args, **kwargs):
        dealer = get_object_or_404(Dealer, pk=pk)
        _require_self_or_admin(request, dealer)
        return success(commissions.dealer_stats(dealer))


class CommissionConfigView(APIView):
    """
    GET /api/dealers/config/ (public) - commission percentage per level
    PUT /api/dealers/config/ (admin)  - upsert one level

    PUT request body: {"level": 1, "percentage": "10.00"}
    """

    def get_permissions(self):
        if self.request.method == 'GET':
            return [AllowAny()]
        return [IsPlatformAdmin()]

    def get(self, request, *args, **kwargs):
        configs = CommissionConfig.objects.order_by('level')
        return success(CommissionConfigSerializer(configs, many=True).data)

    def put(self, request, *args, **kwargs):
        level = request.data.get('level')
        percentage = request.data.get('percentage')
        if level in (None, '') or percentage in (None, ''):
            raise PlatformError('Level and percentage are required', 400)

        config = commissions.upsert_commission_config(level, percentage)
        logger.info(f"Commission level {config.level} set to {config.percentage}% by {request.user.email}")
        return success(CommissionConfigSerializer(config).data, message='Commission configuration updated')


class PendingDealersView(APIView):
    permission_classes = [IsPlatformAdmin]

    def get(self, request, *args, **kwargs):
        dealers = (
            Dealer.objects.filter(status=Dealer.STATUS_PENDING)
            .select_related('user')
            .order_by('created_at', 'id')
        )
        return success(DealerSerializer(dealers, many=True).data)


class ApproveDealerView(APIView):
    """POST /api/dealers/approve-dealer/<id>/ (admin)"""
    permission_classes = [IsPlatformAdmin]

    def post(self, request, pk, *args, **kwargs):
        dealer = commissions.approve_dealer(pk)
        return success(DealerSerializer(dealer).data, message='Dealer approved successfully')

    put = post


class ReferralLookupView(APIView):
    """
    GET /api/dealers/referral/<code>/

    Public lookup used by the signup form to show who referred the user.
    Only approved dealers are returned.
    """
    permission_classes = [AllowAny]

    def get(self, request, code, *args, **kwargs):
        dealer = commissions.find_dealer_by_referral_code(code)
        if dealer.status != Dealer.STATUS_APPROVED:
            raise PlatformError('Invalid referral code', status.HTTP_404_NOT_FOUND)
        return success({
            'id': dealer.id,
            'referral_code': dealer.referral_code,
            'name': dealer.user.name,
        })


class DealerTreeView(APIView):
    """
    GET /api/dealers/tree/<id>/?max_depth=3

    The dealer's referral subtree with per-node ``total_children`` and
    ``total_commission``. ``max_depth`` limits how many levels below the
    dealer are returned; totals always cover the whole subtree.

    Error responses:
    - 400: max_depth is not a non-negative integer
    - 404: Dealer not found
    - 409: The stored hierarchy contains a cycle
    """
    permission_classes = [IsDealerOrAdmin]

    def get(self, request, pk, *args, **kwargs):
        dealer = get_object_or_404(Dealer, pk=pk)
        _require_self_or_admin(request, dealer)

        max_depth = request.query_params.get('max_depth')
        if max_depth not in (None, ''):
            # ASCII digits only
            if not re.fullmatch(r'[0-9]+', max_depth):
                raise PlatformError('max_depth must be a non-negative integer', 400)
            max_depth = int(max_depth)
        else:
            max_depth = None

        node = find_subtree(load_forest_or_conflict(), dealer.id, max_depth)
        if node is None:
            raise PlatformError('Dealer not found', status.HTTP_404_NOT_FOUND)
        return success(node.to_dict())


class CalculateCommissionView(APIView):
    """
    POST /api/dealers/calculate/<property_id>/ (admin)
    Request body: {"sale_amount": "2500000"}

    Pays commissions up the property dealer's referral chain.
    """
    permission_classes = [IsPlatformAdmin]

    def post(self, request, property_id, *args, **kwargs):
        serializer = CalculateCommissionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        created = commissions.calculate_commissions(property_id, serializer.validated_data['sale_amount'])
        total = sum((c.amount for c in created), Decimal('0.00'))
        return success(
            {'commissions': CommissionSerializer(created, many=True).data, 'total': as_money(total)},
            message=f'{len(created)} commissions created',
            status_code=status.HTTP_201_CREATED,
        )
