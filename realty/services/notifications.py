"""
Notification fan-out.

``notify()`` stores an in-app notification for the admin dashboard and
forwards it to WhatsApp and Telegram. Emails are sent through Django's mail
API. Every channel is best effort: failures are logged and never reach
the caller, so a broken integration cannot fail a user request.
"""

import logging
from datetime import timedelta
from smtplib import SMTPException
from urllib.parse import quote

import requests
from django.conf import settings
from django.core.mail import send_mail
from django.db import DatabaseError, transaction
from django.utils import timezone

from ..models import Notification


logger = logging.getLogger(__name__)

WHATSAPP_API_URL = 'https://graph.facebook.com/v18.0/{phone_number_id}/messages'
TELEGRAM_API_URL = 'https://api.telegram.org/bot{token}/sendMessage'

TYPE_EMOJI = {
    Notification.PROPERTY_ADDED: '🏠',
    Notification.PROPERTY_UPDATED: '✏️',
    Notification.USER_SIGNUP: '👤',
    Notification.BOOKING_CREATED: '💰',
    Notification.DEALER_REQUEST: '🤝',
    Notification.INQUIRY_RECEIVED: '📩',
}

READ_RETENTION_DAYS = 30


def format_chat_message(notification_type, title, message, now=None):
    """
    Render a notification as a chat message.

    Format::

        <emoji> *title*

        message

        📅 <timestamp>
        🔗 <frontend>/admin/notifications
    """
    now = now or timezone.now()
    emoji = TYPE_EMOJI.get(notification_type, '📢')
    timestamp = timezone.localtime(now).strftime('%d %b %Y, %H:%M')
    link = f"{settings.FRONTEND_URL.rstrip('/')}/admin/notifications"
    return f"{emoji} *{title}*\n\n{message}\n\n📅 {timestamp}\n🔗 {link}"


def send_whatsapp(notification_type, title, message):
    """
    Post a message to the admin WhatsApp group.

    Without Cloud API credentials a ``wa.me`` share link is logged instead.

    Returns:
        bool: True if the API accepted the message
    """
    body = format_chat_message(notification_type, title, message)

    if not (settings.WHATSAPP_ACCESS_TOKEN and settings.WHATSAPP_PHONE_NUMBER_ID):
        share_link = f"https://wa.me/{settings.WHATSAPP_GROUP_ID}?text={quote(body)}"
        logger.info(f"WhatsApp API not configured; share link: {share_link}")
        return False

    try:
        response = requests.post(
            WHATSAPP_API_URL.format(phone_number_id=settings.WHATSAPP_PHONE_NUMBER_ID),
            headers={
                'Authorization': f'Bearer {settings.WHATSAPP_ACCESS_TOKEN}',
                'Content-Type': 'application/json',
            },
            json={
                'messaging_product': 'whatsapp',
                'to': settings.WHATSAPP_GROUP_ID,
                'type': 'text',
                'text': {'body': body},
            },
            timeout=settings.OUTBOUND_HTTP_TIMEOUT,
        )
        response.raise_for_status()
    except requests.RequestException as e:
        logger.error(f"WhatsApp notification '{title}' failed: {e}")
        return False

    logger.info(f"WhatsApp notification sent: {title}")
    return True


def send_telegram(title, message, details=None):
    """
    Post a Markdown message to the admin Telegram group.

    Returns:
        bool: True if Telegram reported success
    """
    if not (settings.TELEGRAM_BOT_TOKEN and settings.TELEGRAM_GROUP_ID):
        logger.debug(f"Telegram not configured; skipping '{title}'")
        return False

    lines = [f"*{title}*", '', message]
    if details:
        lines.append('')
        lines.extend(f"*{key}:* {value}" for key, value in details.items())

    try:
        response = requests.post(
            TELEGRAM_API_URL.format(token=settings.TELEGRAM_BOT_TOKEN),
            json={
                'chat_id': settings.TELEGRAM_GROUP_ID,
                'text': '\n'.join(lines),
                'parse_mode': 'Markdown',
                'disable_web_page_preview': False,
            },
            timeout=settings.OUTBOUND_HTTP_TIMEOUT,
        )
        response.raise_for_status()
        ok = response.json().get('ok', False)
    except (requests.RequestException, ValueError) as e:
        logger.error(f"Telegram notification '{title}' failed: {e}")
        return False

    if not ok:
        logger.error(f"Telegram API rejected notification '{title}'")
    return ok


def send_email(subject, message, recipients):
    """
    Send a plain-text email.

    Returns:
        bool: True if the mail backend accepted the message
    """
    recipients = [r for r in recipients if r]
    if not recipients:
        return False

    try:
        send_mail(subject, message, settings.DEFAULT_FROM_EMAIL, recipients)
    except (SMTPException, OSError) as e:
        logger.error(f"Email '{subject}' to {recipients} failed: {e}")
        return False

    logger.info(f"Email '{subject}' sent to {recipients}")
    return True


def notify(notification_type, title, message, data=None, admin_only=True, chat=True):
    """
    Record an in-app notification and forward it to the chat channels.

    Args:
        notification_type: One of the ``Notification`` type constants
        title: Short headline
        message: Body text
        data: JSON-serializable context stored with the notification
        admin_only: Whether only admins should see it
        chat: Forward to WhatsApp and Telegram as well

    Returns:
        Notification or None: The stored notification, or None if storing failed
    """
    notification = None
    try:
        with transaction.atomic():
            notification = Notification.objects.create(
                notification_type=notification_type,
                title=title,
                message=message,
                data=data or {},
                admin_only=admin_only,
            )
    except DatabaseError as e:
        logger.error(f"Could not store {notification_type} notification '{title}': {e}", exc_info=True)

    if chat:
        send_whatsapp(notification_type, title, message)
        send_telegram(title, message, data)

    return notification


def mark_all_read():
    """Returns the number of notifications updated."""
    return Notification.objects.filter(read=False).update(read=True)


def cleanup_read_notifications(days=READ_RETENTION_DAYS, now=None):
    """
    Delete read notifications older than ``days`` days.

    Returns:
        int: Number of notifications deleted
    """
    cutoff = (now or timezone.now()) - timedelta(days=days)
    deleted, _ = Notification.objects.filter(read=True, created_at__lt=cutoff).delete()
    logger.info(f"Deleted {deleted} read notifications older than {days} days")
    return deleted


# Emails

def email_admin_dealer_request(dealer):
    user = dealer.user
    parent = f" (referred by {dealer.parent.referral_code})" if dealer.parent_id else ''
    return send_email(
        'New dealer application',
        (
            f"{user.name or user.email} ({user.email}) applied to join the dealer program{parent}.\n"
            f"Referral code: {dealer.referral_code}\n\n"
            f"Review pending dealers at {settings.FRONTEND_URL}/admin/dealers"
        ),
        [settings.ADMIN_EMAIL],
    )


def email_admin_manual_booking(booking):
    return send_email(
        f"Manual booking submitted: {booking.property.title}",
        (
            f"{booking.user.name or booking.user.email} submitted a UPI booking "
            f"for '{booking.property.title}'.\n"
            f"Payment reference: {booking.payment_ref}\n"
            f"Amount: {booking.total_amount}\n"
            f"Dates: {booking.start_date:%d %b %Y} to {booking.end_date:%d %b %Y}\n\n"
            f"Approve or reject at {settings.FRONTEND_URL}/admin/bookings"
        ),
        [settings.ADMIN_EMAIL],
    )


def email_booking_confirmation(booking):
    return send_email(
        f"Booking confirmed: {booking.property.title}",
        (
            f"Hi {booking.user.name or booking.user.email},\n\n"
            f"Your booking for '{booking.property.title}' in {booking.property.location} is confirmed.\n"
            f"From {booking.start_date:%d %b %Y} to {booking.end_date:%d %b %Y}.\n"
            f"Amount paid: {booking.total_amount}"
        ),
        [booking.user.email],
    )


def email_commission_earned(commission):
    dealer_user = commission.dealer.user
    return send_email(
        'You earned a commission',
        (
            f"Hi {dealer_user.name or dealer_user.email},\n\n"
            f"You earned a level {commission.level} commission of {commission.amount} "
            f"on the sale of '{commission.property.title}'."
        ),
        [dealer_user.email],
    )


def email_welcome(user):
    return send_email(
        'Welcome to the property platform',
        (
            f"Hi {user.name or user.email},\n\n"
            f"Your account has been created. Browse properties at {settings.FRONTEND_URL}."
        ),
        [user.email],
    )
