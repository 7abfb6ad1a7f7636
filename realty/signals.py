"""
Django signals for admin notifications.

New listings and new dealer applications are announced to the admins
whichever code path creates them (API, admin site or management command).
"""

import logging

from django.db.models.signals import post_save
from django.dispatch import receiver

from .models import Dealer, Notification, Property
from .services import notifications

logger = logging.getLogger(__name__)


@receiver(post_save, sender=Property)
def announce_new_property(sender, instance, created, raw=False, **kwargs):
    """
    Create a PROPERTY_ADDED notification when a property is listed.

    Args:
        sender: The Property model class
        instance: The Property instance that was saved
        created: Boolean indicating if this is a new property
        raw: True when loading fixtures; nothing is announced then
    """
    if not created or raw:
        return

    owner = instance.owner
    logger.info(f"Property {instance.id} listed by {owner.email}")
    notifications.notify(
        Notification.PROPERTY_ADDED,
        'New Property Added',
        f"'{instance.title}' in {instance.location} listed by {owner.name or owner.email} for {instance.price}.",
        data={
            'property_id': instance.id,
            'title': instance.title,
            'location': instance.location,
            'price': str(instance.price),
            'owner_email': owner.email,
        },
    )


@receiver(post_save, sender=Dealer)
def announce_dealer_application(sender, instance, created, raw=False, **kwargs):
    """
    Notify admins of a new PENDING dealer application, in-app and by email.

    Dealers created already APPROVED (by an admin) are not announced.
    """
    if not created or raw or instance.status != Dealer.STATUS_PENDING:
        return

    user = instance.user
    notifications.notify(
        Notification.DEALER_REQUEST,
        'New Dealer Application',
        f"{user.name or user.email} ({user.email}) applied to become a dealer.",
        data={
            'dealer_id': instance.id,
            'user_id': user.id,
            'referral_code': instance.referral_code,
            'parent_id': instance.parent_id,
        },
    )
    notifications.email_admin_dealer_request(instance)
