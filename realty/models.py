"""
Data model for the property platform.

Users list properties, book them, and may join the dealer referral program.
Dealers form a tree through ``Dealer.parent``; commissions on a sale are
paid up that tree according to ``CommissionConfig``.
"""

import string
from decimal import Decimal

from django.contrib.auth.models import AbstractUser, UserManager
from django.core.exceptions import ValidationError
from django.core.serializers.json import DjangoJSONEncoder
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils.crypto import get_random_string
from django.utils.translation import gettext_lazy as _

from .validators import (
    validate_aadhaar_number,
    validate_indian_mobile,
    validate_payment_proof,
    validate_phone_number,
    validate_profile_image,
    validate_property_media,
)


REFERRAL_CODE_LENGTH = 6
REFERRAL_CODE_CHARS = string.ascii_uppercase + string.digits


def profile_picture_upload_path(instance, filename):
    """
    Upload path for profile pictures: profile_pics/{user_id}/{filename}

    If the user is not saved yet, 'temp' is used in place of the id.
    """
    user_id = instance.id if instance.id else 'temp'
    return f'profile_pics/{user_id}/{filename}'


def aadhaar_image_upload_path(instance, filename):
    user_id = instance.id if instance.id else 'temp'
    return f'aadhaar/{user_id}/{filename}'


def property_media_upload_path(instance, filename):
    return f'properties/{instance.property_id}/{filename}'


def payment_proof_upload_path(instance, filename):
    return f'payments/{filename}'


class PlatformUserManager(UserManager):
    """
    Manager that treats email as the login identifier.

    ``username`` is still required by ``AbstractUser``; it defaults to the
    email address when not given.
    """

    def create_user(self, email=None, password=None, **extra_fields):
        email = self.normalize_email(email).lower()
        username = extra_fields.pop('username', None) or email
        return super().create_user(username, email, password, **extra_fields)

    def create_superuser(self, email=None, password=None, **extra_fields):
        email = self.normalize_email(email).lower()
        username = extra_fields.pop('username', None) or email
        extra_fields.setdefault('role', User.ROLE_ADMIN)
        return super().create_superuser(username, email, password, **extra_fields)


class User(AbstractUser):
    """
    Platform account, authenticated by email.

    Additional fields:
    - email: Required, unique, stored lowercase
    - name: Display name
    - mobile: Optional contact number
    - aadhaar / aadhaar_image: Optional identity details
    - profile_pic: Optional profile picture
    - role: USER, DEALER or ADMIN
    - status: ACTIVE or BLOCKED
    """

    ROLE_USER = 'USER'
    ROLE_DEALER = 'DEALER'
    ROLE_ADMIN = 'ADMIN'

    ROLE_CHOICES = [
        (ROLE_USER, 'User'),
        (ROLE_DEALER, 'Dealer'),
        (ROLE_ADMIN, 'Admin'),
    ]

    STATUS_ACTIVE = 'ACTIVE'
    STATUS_BLOCKED = 'BLOCKED'

    STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'),
        (STATUS_BLOCKED, 'Blocked'),
    ]

    email = models.EmailField(
        _('email address'),
        unique=True,
        error_messages={
            'unique': _('A user with that email already exists.'),
        },
        help_text=_('Required. Used to sign in.')
    )

    name = models.CharField(
        _('name'),
        max_length=150,
        blank=True,
        default=''
    )

    mobile = models.CharField(
        _('mobile number'),
        max_length=20,
        blank=True,
        default='',
        validators=[validate_phone_number]
    )

    aadhaar = models.CharField(
        _('aadhaar number'),
        max_length=14,
        blank=True,
        default='',
        validators=[validate_aadhaar_number]
    )

    aadhaar_image = models.ImageField(
        _('aadhaar image'),
        upload_to=aadhaar_image_upload_path,
        blank=True,
        null=True,
        validators=[validate_profile_image]
    )

    profile_pic = models.ImageField(
        _('profile picture'),
        upload_to=profile_picture_upload_path,
        blank=True,
        null=True,
        validators=[validate_profile_image],
        help_text=_('Optional. Max 5MB, formats: jpg, png, webp, gif.')
    )

    role = models.CharField(
        _('role'),
        max_length=10,
        choices=ROLE_CHOICES,
        default=ROLE_USER
    )

    status = models.CharField(
        _('status'),
        max_length=10,
        choices=STATUS_CHOICES,
        default=STATUS_ACTIVE
    )

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    objects = PlatformUserManager()

    EMAIL_FIELD = 'email'
    REQUIRED_FIELDS = ['email']

    class Meta:
        verbose_name = _('user')
        verbose_name_plural = _('users')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['role'], name='realty_user_role_idx'),
            models.Index(fields=['status'], name='realty_user_status_idx'),
        ]

    def __str__(self):
        return self.email or self.username

    @property
    def is_platform_admin(self):
        return self.role == self.ROLE_ADMIN

    @property
    def is_dealer(self):
        return self.role == self.ROLE_DEALER

    @property
    def is_blocked(self):
        return self.status == self.STATUS_BLOCKED

    def clean(self):
        super().clean()
        if self.email:
            self.email = self.email.lower()

    def save(self, *args, **kwargs):
        """Normalize email and keep username in step with it."""
        if self.email:
            self.email = self.email.lower().strip()
        if not self.username:
            self.username = self.email
        super().save(*args, **kwargs)


def generate_referral_code():
    """
    Return a referral code that no dealer is using yet.

    Codes are six uppercase letters or digits.
    """
    while True:
        code = get_random_string(REFERRAL_CODE_LENGTH, allowed_chars=REFERRAL_CODE_CHARS)
        if not Dealer.objects.filter(referral_code=code).exists():
            return code


class Dealer(models.Model):
    """
    Referral program membership for a user.

    Dealers are arranged in a tree: ``parent`` is the dealer whose referral
    code was used at sign-up. ``commission`` accumulates every commission
    credited to this dealer.
    """

    STATUS_PENDING = 'PENDING'
    STATUS_APPROVED = 'APPROVED'
    STATUS_REJECTED = 'REJECTED'

    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_APPROVED, 'Approved'),
        (STATUS_REJECTED, 'Rejected'),
    ]

    user = models.OneToOneField(
        User,
        on_delete=models.CASCADE,
        related_name='dealer'
    )

    referral_code = models.CharField(
        _('referral code'),
        max_length=REFERRAL_CODE_LENGTH,
        unique=True,
        default=generate_referral_code
    )

    parent = models.ForeignKey(
        'self',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='children',
        help_text=_('Dealer who referred this dealer.')
    )

    status = models.CharField(
        _('status'),
        max_length=10,
        choices=STATUS_CHOICES,
        default=STATUS_PENDING
    )

    commission = models.DecimalField(
        _('total commission'),
        max_digits=14,
        decimal_places=2,
        default=Decimal('0.00')
    )

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)

    class Meta:
        verbose_name = _('dealer')
        verbose_name_plural = _('dealers')
        ordering = ['created_at', 'id']
        indexes = [
            models.Index(fields=['status'], name='realty_dealer_status_idx'),
            models.Index(fields=['parent'], name='realty_dealer_parent_idx'),
        ]

    def __str__(self):
        return f"{self.referral_code} ({self.user.email})"

    def clean(self):
        super().clean()
        if self.parent_id and self.pk and self.parent_id == self.pk:
            raise ValidationError({'parent': _('A dealer cannot refer themselves.')})


class Property(models.Model):
    """
    A listed property.

    Status moves FREE -> BOOKED when a booking is confirmed and back to FREE
    when the booking ends, is cancelled, or expires. SOLD is set by admins.
    """

    STATUS_FREE = 'FREE'
    STATUS_BOOKED = 'BOOKED'
    STATUS_SOLD = 'SOLD'

    STATUS_CHOICES = [
        (STATUS_FREE, 'Free'),
        (STATUS_BOOKED, 'Booked'),
        (STATUS_SOLD, 'Sold'),
    ]

    title = models.CharField(_('title'), max_length=100)

    description = models.TextField(_('description'), max_length=1000)

    property_type = models.CharField(_('property type'), max_length=100)

    location = models.CharField(_('location'), max_length=200)

    address = models.CharField(_('address'), max_length=500, blank=True, default='')

    latitude = models.FloatField(
        _('latitude'),
        null=True,
        blank=True,
        validators=[
            MinValueValidator(-90, message=_('Latitude must be between -90 and 90.')),
            MaxValueValidator(90, message=_('Latitude must be between -90 and 90.')),
        ]
    )

    longitude = models.FloatField(
        _('longitude'),
        null=True,
        blank=True,
        validators=[
            MinValueValidator(-180, message=_('Longitude must be between -180 and 180.')),
            MaxValueValidator(180, message=_('Longitude must be between -180 and 180.')),
        ]
    )

    price = models.DecimalField(
        _('price'),
        max_digits=14,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0'), message=_('Price must be a positive number.'))]
    )

    status = models.CharField(
        _('status'),
        max_length=10,
        choices=STATUS_CHOICES,
        default=STATUS_FREE
    )

    owner = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='properties'
    )

    dealer = models.ForeignKey(
        Dealer,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='properties'
    )

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('property')
        verbose_name_plural = _('properties')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status'], name='realty_prop_status_idx'),
            models.Index(fields=['property_type'], name='realty_prop_type_idx'),
            models.Index(fields=['location'], name='realty_prop_location_idx'),
            models.Index(fields=['price'], name='realty_prop_price_idx'),
        ]

    def __str__(self):
        return self.title

    def clean(self):
        """
        Validate text lengths after trimming whitespace.

        Raises:
            ValidationError: If validation fails
        """
        super().clean()
        errors = {}

        self.title = (self.title or '').strip()
        if len(self.title) < 3:
            errors['title'] = _('Title must be between 3 and 100 characters.')

        self.description = (self.description or '').strip()
        if len(self.description) < 10:
            errors['description'] = _('Description must be between 10 and 1000 characters.')

        if not (self.property_type or '').strip():
            errors['property_type'] = _('Property type is required.')

        if not (self.location or '').strip():
            errors['location'] = _('Location is required.')

        if errors:
            raise ValidationError(errors)

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)


class PropertyMedia(models.Model):
    """Photo or video attached to a property."""

    property = models.ForeignKey(
        Property,
        on_delete=models.CASCADE,
        related_name='media'
    )

    file = models.FileField(
        _('file'),
        upload_to=property_media_upload_path,
        validators=[validate_property_media]
    )

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)

    class Meta:
        verbose_name = _('property media')
        verbose_name_plural = _('property media')
        ordering = ['created_at', 'id']

    def __str__(self):
        return self.file.name


class Booking(models.Model):
    """
    A time-bounded reservation of a property by a user.

    Fields:
    - property / user: What is booked and by whom
    - dealer_code: Referral code supplied at booking time, if any
    - start_date / end_date: Reservation window
    - booking_charges / total_amount: Amounts charged
    - status: PENDING, CONFIRMED, CANCELLED or EXPIRED
    - payment_method / payment_ref / payment_proof: How the user paid
    """

    STATUS_PENDING = 'PENDING'
    STATUS_CONFIRMED = 'CONFIRMED'
    STATUS_CANCELLED = 'CANCELLED'
    STATUS_EXPIRED = 'EXPIRED'

    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_CONFIRMED, 'Confirmed'),
        (STATUS_CANCELLED, 'Cancelled'),
        (STATUS_EXPIRED, 'Expired'),
    ]

    VALID_TRANSITIONS = {
        STATUS_PENDING: [STATUS_CONFIRMED, STATUS_CANCELLED],
        STATUS_CONFIRMED: [STATUS_CANCELLED, STATUS_EXPIRED],
        STATUS_CANCELLED: [],
        STATUS_EXPIRED: [],
    }

    PAYMENT_UPI = 'UPI'
    PAYMENT_CARD = 'CARD'

    PAYMENT_METHOD_CHOICES = [
        (PAYMENT_UPI, 'UPI'),
        (PAYMENT_CARD, 'Card'),
    ]

    property = models.ForeignKey(
        Property,
        on_delete=models.CASCADE,
        related_name='bookings'
    )

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='bookings'
    )

    dealer_code = models.CharField(
        _('dealer code'),
        max_length=32,
        blank=True,
        default=''
    )

    start_date = models.DateTimeField(_('start date'))
    end_date = models.DateTimeField(_('end date'))

    booking_charges = models.DecimalField(
        _('booking charges'),
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0'))]
    )

    total_amount = models.DecimalField(
        _('total amount'),
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0'))]
    )

    status = models.CharField(
        _('status'),
        max_length=10,
        choices=STATUS_CHOICES,
        default=STATUS_PENDING
    )

    payment_method = models.CharField(
        _('payment method'),
        max_length=10,
        choices=PAYMENT_METHOD_CHOICES,
        default=PAYMENT_UPI
    )

    payment_ref = models.CharField(
        _('payment reference'),
        max_length=255,
        blank=True,
        default='',
        help_text=_('UPI transaction reference or payment intent id.')
    )

    payment_proof = models.ImageField(
        _('payment proof'),
        upload_to=payment_proof_upload_path,
        blank=True,
        null=True,
        validators=[validate_payment_proof]
    )

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('booking')
        verbose_name_plural = _('bookings')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'end_date'], name='realty_book_status_end_idx'),
            models.Index(fields=['property', 'status'], name='realty_book_prop_status_idx'),
            models.Index(fields=['user'], name='realty_book_user_idx'),
        ]

    def __str__(self):
        return f"Booking #{self.pk} of {self.property_id} by {self.user_id} ({self.status})"

    def clean(self):
        super().clean()
        if self.start_date and self.end_date and self.end_date <= self.start_date:
            raise ValidationError({'end_date': _('End date must be after start date.')})

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)

    def can_transition_to(self, new_status):
        """
        Check a status change against the booking state machine.

        Valid transitions:
        - PENDING -> CONFIRMED, CANCELLED
        - CONFIRMED -> CANCELLED, EXPIRED
        - CANCELLED, EXPIRED -> (terminal)

        Returns:
            tuple: (is_valid: bool, error_message: str or None)
        """
        if new_status not in dict(self.STATUS_CHOICES):
            return False, f'Invalid booking status: {new_status}.'

        if self.status == new_status:
            return True, None

        if new_status in self.VALID_TRANSITIONS.get(self.status, []):
            return True, None

        if not self.VALID_TRANSITIONS.get(self.status):
            return False, f'Cannot modify a {self.status.lower()} booking.'

        return False, f'Cannot change booking status from {self.status} to {new_status}.'


class Payment(models.Model):
    """Gateway payment recorded when a booking is confirmed."""

    booking = models.OneToOneField(
        Booking,
        on_delete=models.CASCADE,
        related_name='payment'
    )

    amount = models.DecimalField(_('amount'), max_digits=12, decimal_places=2)

    gateway_reference = models.CharField(
        _('gateway reference'),
        max_length=255,
        help_text=_('Payment intent id returned by the gateway.')
    )

    refunded_at = models.DateTimeField(_('refunded at'), null=True, blank=True)

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)

    class Meta:
        verbose_name = _('payment')
        verbose_name_plural = _('payments')
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.gateway_reference} ({self.amount})"


class Commission(models.Model):
    """Commission credited to a dealer for a property sale."""

    dealer = models.ForeignKey(
        Dealer,
        on_delete=models.CASCADE,
        related_name='commissions'
    )

    property = models.ForeignKey(
        Property,
        on_delete=models.CASCADE,
        related_name='commissions'
    )

    amount = models.DecimalField(_('amount'), max_digits=14, decimal_places=2)

    level = models.PositiveSmallIntegerField(
        _('level'),
        validators=[MinValueValidator(1), MaxValueValidator(10)],
        help_text=_('1 for the selling dealer, 2 for their referrer, and so on.')
    )

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)

    class Meta:
        verbose_name = _('commission')
        verbose_name_plural = _('commissions')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['dealer'], name='realty_comm_dealer_idx'),
        ]

    def __str__(self):
        return f"L{self.level} {self.amount} to {self.dealer_id}"


class CommissionConfig(models.Model):
    """Commission percentage paid at each level of the referral chain."""

    level = models.PositiveSmallIntegerField(
        _('level'),
        unique=True,
        validators=[
            MinValueValidator(1, message=_('Level must be between 1 and 10.')),
            MaxValueValidator(10, message=_('Level must be between 1 and 10.')),
        ]
    )

    percentage = models.DecimalField(
        _('percentage'),
        max_digits=5,
        decimal_places=2,
        validators=[
            MinValueValidator(Decimal('0'), message=_('Percentage must be between 0 and 100.')),
            MaxValueValidator(Decimal('100'), message=_('Percentage must be between 0 and 100.')),
        ]
    )

    class Meta:
        verbose_name = _('commission config')
        verbose_name_plural = _('commission configs')
        ordering = ['level']

    def __str__(self):
        return f"Level {self.level}: {self.percentage}%"


class Notification(models.Model):
    """In-app notification shown on the admin dashboard."""

    PROPERTY_ADDED = 'PROPERTY_ADDED'
    PROPERTY_UPDATED = 'PROPERTY_UPDATED'
    USER_SIGNUP = 'USER_SIGNUP'
    BOOKING_CREATED = 'BOOKING_CREATED'
    DEALER_REQUEST = 'DEALER_REQUEST'
    INQUIRY_RECEIVED = 'INQUIRY_RECEIVED'

    TYPE_CHOICES = [
        (PROPERTY_ADDED, 'Property added'),
        (PROPERTY_UPDATED, 'Property updated'),
        (USER_SIGNUP, 'User signup'),
        (BOOKING_CREATED, 'Booking created'),
        (DEALER_REQUEST, 'Dealer request'),
        (INQUIRY_RECEIVED, 'Inquiry received'),
    ]

    notification_type = models.CharField(_('type'), max_length=20, choices=TYPE_CHOICES)
    title = models.CharField(_('title'), max_length=200)
    message = models.TextField(_('message'))
    data = models.JSONField(_('data'), default=dict, blank=True, encoder=DjangoJSONEncoder)
    admin_only = models.BooleanField(_('admin only'), default=True)
    read = models.BooleanField(_('read'), default=False)
    created_at = models.DateTimeField(_('created at'), auto_now_add=True)

    class Meta:
        verbose_name = _('notification')
        verbose_name_plural = _('notifications')
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['read'], name='realty_notif_read_idx'),
            models.Index(fields=['created_at'], name='realty_notif_created_idx'),
        ]

    def __str__(self):
        return self.title


class Inquiry(models.Model):
    """Contact request left by a visitor."""

    STATUS_NEW = 'NEW'
    STATUS_CONTACTED = 'CONTACTED'
    STATUS_CLOSED = 'CLOSED'

    STATUS_CHOICES = [
        (STATUS_NEW, 'New'),
        (STATUS_CONTACTED, 'Contacted'),
        (STATUS_CLOSED, 'Closed'),
    ]

    message = models.TextField(_('message'))

    mobile_number = models.CharField(
        _('mobile number'),
        max_length=15,
        validators=[validate_indian_mobile]
    )

    status = models.CharField(
        _('status'),
        max_length=10,
        choices=STATUS_CHOICES,
        default=STATUS_NEW
    )

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('inquiry')
        verbose_name_plural = _('inquiries')
        ordering = ['-created_at']

    def __str__(self):
        return f"Inquiry from {self.mobile_number}"

    def clean(self):
        super().clean()
        self.message = (self.message or '').strip()
        if len(self.message) < 10:
            raise ValidationError({'message': _('Message must be at least 10 characters long.')})
        self.mobile_number = (self.mobile_number or '').replace(' ', '')

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)
