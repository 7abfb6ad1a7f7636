"""
Dealer commissions and referral program administration.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings
from django.db import transaction
from django.db.models import F, Sum

from ..exceptions import PlatformError
from ..models import Commission, CommissionConfig, Dealer, Property, User
from . import CENT, as_money, notifications


logger = logging.getLogger(__name__)

MAX_COMMISSION_LEVEL = 3


def commission_rates():
    """Configured percentage per level, as ``{level: Decimal}``."""
    return {config.level: config.percentage for config in CommissionConfig.objects.all()}


def default_commission_rates():
    return {level: Decimal(str(value)) for level, value in settings.COMMISSION_LEVELS.items()}


def upsert_commission_config(level, percentage):
    """
    Create or update the percentage for one level.

    Raises:
        PlatformError: If level is outside 1..10 or percentage outside 0..100
    """
    try:
        level = int(level)
        percentage = Decimal(str(percentage))
    except (TypeError, ValueError, ArithmeticError):
        raise PlatformError('Level must be an integer and percentage a number', 400)

    # NaN and Infinity parse but are not usable percentages
    if not percentage.is_finite():
        raise PlatformError('Level must be an integer and percentage a number', 400)

    if not 1 <= level <= 10:
        raise PlatformError('Level must be between 1 and 10', 400)
    if not Decimal('0') <= percentage <= Decimal('100'):
        raise PlatformError('Percentage must be between 0 and 100', 400)

    config, created = CommissionConfig.objects.update_or_create(
        level=level,
        defaults={'percentage': percentage},
    )
    logger.info(f"Commission level {level} {'created' if created else 'updated'}: {percentage}%")
    return config


def referral_chain(dealer, max_levels=MAX_COMMISSION_LEVEL):
    """
    The dealer followed by its ancestors, at most ``max_levels`` long.

    Stops early if a parent link loops back to a dealer already visited.
    """
    chain = []
    seen = set()
    current = dealer
    while current is not None and len(chain) < max_levels:
        if current.id in seen:
            logger.error(f"Referral cycle detected at dealer {current.id}; commission walk stopped")
            break
        seen.add(current.id)
        chain.append(current)
        current = current.parent
    return chain


def calculate_commissions(property_id, sale_amount):
    """
    Pay commissions for a property sale up the referral chain.

    Level 1 is the property's dealer, level 2 that dealer's referrer, and so
    on up to level 3. Levels without a configured percentage are skipped.
    Each payout creates a ``Commission`` row and increases the dealer's
    running total.

    Returns:
        list[Commission]
    """
    try:
        sale_amount = Decimal(str(sale_amount))
    except (TypeError, ValueError, ArithmeticError):
        raise PlatformError('Sale amount must be a number', 400)
    if not sale_amount.is_finite():
        raise PlatformError('Sale amount must be a number', 400)
    if sale_amount < 0:
        raise PlatformError('Sale amount must be a positive number', 400)

    try:
        prop = Property.objects.select_related('dealer__parent').get(pk=property_id)
    except Property.DoesNotExist:
        raise PlatformError('Property not found', 404)

    if prop.dealer is None:
        raise PlatformError('Property has no associated dealer', 400)

    rates = commission_rates()
    created = []

    with transaction.atomic():
        for level, dealer in enumerate(referral_chain(prop.dealer), start=1):
            percentage = rates.get(level)
            if percentage is None:
                continue

            amount = (sale_amount * percentage / Decimal('100')).quantize(CENT, rounding=ROUND_HALF_UP)
            commission = Commission.objects.create(
                dealer=dealer,
                property=prop,
                amount=amount,
                level=level,
            )
            Dealer.objects.filter(pk=dealer.pk).update(commission=F('commission') + amount)
            created.append(commission)

    for commission in created:
        logger.info(
            f"Commission paid. Dealer: {commission.dealer_id}, Level: {commission.level}, "
            f"Amount: {commission.amount}, Property: {prop.id}"
        )
        notifications.email_commission_earned(commission)

    return created


def dealer_stats(dealer):
    total = dealer.commissions.aggregate(total=Sum('amount'))['total']
    return {
        'total_commissions': as_money(total),
        'total_properties': dealer.properties.count(),
        'children_count': dealer.children.count(),
    }


def find_dealer_by_referral_code(code):
    dealer = (
        Dealer.objects.select_related('user')
        .filter(referral_code=(code or '').strip().upper())
        .first()
    )
    if dealer is None:
        raise PlatformError('Invalid referral code', 404)
    return dealer


def register_dealer(user, referral_code=None):
    """
    Create a PENDING dealer application for ``user``.

    Args:
        referral_code: Optional code of an APPROVED dealer who becomes the parent

    Raises:
        PlatformError: If the referral code does not belong to an approved dealer
    """
    parent = None
    if referral_code:
        parent = Dealer.objects.filter(
            referral_code=referral_code.strip().upper(),
            status=Dealer.STATUS_APPROVED
        ).first()
        if parent is None:
            raise PlatformError('Invalid referral code', 400)

    dealer = Dealer.objects.create(user=user, parent=parent, status=Dealer.STATUS_PENDING)
    logger.info(
        f"Dealer application created. User: {user.email}, Code: {dealer.referral_code}, "
        f"Parent: {parent.referral_code if parent else None}"
    )
    return dealer


def approve_dealer(dealer_id):
    """Approve an application; the user becomes a DEALER."""
    with transaction.atomic():
        try:
            dealer = Dealer.objects.select_for_update().select_related('user').get(pk=dealer_id)
        except Dealer.DoesNotExist:
            raise PlatformError('Dealer not found', 404)

        dealer.status = Dealer.STATUS_APPROVED
        dealer.save(update_fields=['status'])

        user = dealer.user
        user.role = User.ROLE_DEALER
        user.save(update_fields=['role', 'updated_at'])

    logger.info(f"Dealer {dealer.id} ({user.email}) approved")
    return dealer


def reject_dealer(dealer_id):
    """Reject an application; the user stays (or reverts to) USER."""
    with transaction.atomic():
        try:
            dealer = Dealer.objects.select_for_update().select_related('user').get(pk=dealer_id)
        except Dealer.DoesNotExist:
            raise PlatformError('Dealer not found', 404)

        dealer.status = Dealer.STATUS_REJECTED
        dealer.save(update_fields=['status'])

        user = dealer.user
        if user.role != User.ROLE_ADMIN:
            user.role = User.ROLE_USER
            user.save(update_fields=['role', 'updated_at'])

    logger.info(f"Dealer {dealer.id} ({user.email}) rejected")
    return dealer
