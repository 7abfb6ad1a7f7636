"""
Serializers for authentication, listings, bookings, dealers and admin tools.
"""

import re

from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from .models import (
    Booking,
    Commission,
    CommissionConfig,
    Dealer,
    Inquiry,
    Notification,
    Payment,
    Property,
    PropertyMedia,
)
from .validators import (
    validate_indian_mobile,
    validate_payment_proof,
    validate_profile_image,
    validate_property_media,
)

User = get_user_model()

MAX_MEDIA_FILES = 10


def _check_password(value, user=None):
    try:
        validate_password(value, user=user)
    except DjangoValidationError as e:
        raise serializers.ValidationError(list(e.messages))
    return value


# ============================================================================
# Authentication
# ============================================================================

class PlatformTokenObtainPairSerializer(TokenObtainPairSerializer):
    """
    Token serializer that signs in by email and embeds role and email claims.
    """
    username_field = 'email'

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['email'] = user.email
        token['role'] = user.role
        return token


def tokens_for_user(user):
    """Issue a refresh/access pair carrying the platform claims."""
    refresh = PlatformTokenObtainPairSerializer.get_token(user)
    return {
        'refresh': str(refresh),
        'access': str(refresh.access_token),
    }


class UserSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'name', 'email', 'role']
        read_only_fields = fields


class DealerSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Dealer
        fields = ['id', 'referral_code', 'status']
        read_only_fields = fields


class UserSerializer(serializers.ModelSerializer):
    """
    Full user representation for profile and admin responses.

    ``dealer`` is the user's referral program membership, or null.
    """
    dealer = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            'id', 'email', 'name', 'mobile', 'aadhaar', 'aadhaar_image',
            'profile_pic', 'role', 'status', 'dealer', 'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_dealer(self, obj):
        dealer = Dealer.objects.filter(user=obj).first()
        if dealer is None:
            return None
        return DealerSummarySerializer(dealer).data


class SignupSerializer(serializers.ModelSerializer):
    """
    Serializer for user registration.

    Fields:
    - email: Required, unique (case-insensitive)
    - password: Required, 8+ chars with upper, lower, digit and one of @$!%*?&
    - name, mobile, aadhaar: Optional profile details
    """
    password = serializers.CharField(
        write_only=True,
        required=True,
        style={'input_type': 'password'}
    )

    class Meta:
        model = User
        fields = ['id', 'email', 'password', 'name', 'mobile', 'aadhaar', 'role', 'created_at']
        read_only_fields = ['id', 'role', 'created_at']
        extra_kwargs = {
            'email': {'required': True},
        }

    def validate_email(self, value):
        value = value.strip().lower()
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError('User with this email already exists')
        return value

    def validate_password(self, value):
        return _check_password(value)

    def create(self, validated_data):
        return User.objects.create_user(
            email=validated_data.pop('email'),
            password=validated_data.pop('password'),
            role=User.ROLE_USER,
            **validated_data
        )


class DealerSignupSerializer(SignupSerializer):
    """Registration for the dealer program, optionally under a referrer."""
    referral_code = serializers.CharField(
        write_only=True,
        required=False,
        allow_blank=True,
        max_length=32
    )

    class Meta(SignupSerializer.Meta):
        fields = SignupSerializer.Meta.fields + ['referral_code']

    def validate_referral_code(self, value):
        value = (value or '').strip().upper()
        if value and not Dealer.objects.filter(referral_code=value, status=Dealer.STATUS_APPROVED).exists():
            raise serializers.ValidationError('Invalid referral code')
        return value

    def create(self, validated_data):
        validated_data.pop('referral_code', None)
        return super().create(validated_data)


class ApplyDealerSerializer(serializers.Serializer):
    referral_code = serializers.CharField(required=False, allow_blank=True, max_length=32)


class LoginSerializer(serializers.Serializer):
    """
    Serializer for login credentials.
    """
    email = serializers.EmailField(required=True)
    password = serializers.CharField(
        required=True,
        write_only=True,
        style={'input_type': 'password'}
    )


class ProfileUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['name', 'mobile', 'aadhaar']

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Name cannot be empty.')
        return value


class ProfilePictureSerializer(serializers.Serializer):
    profile_pic = serializers.ImageField(required=True, validators=[validate_profile_image])


class AadhaarImageSerializer(serializers.Serializer):
    aadhaar_image = serializers.ImageField(required=True, validators=[validate_profile_image])


class ChangePasswordSerializer(serializers.Serializer):
    current_password = serializers.CharField(required=True, write_only=True)
    new_password = serializers.CharField(required=True, write_only=True)

    def validate_current_password(self, value):
        user = self.context['request'].user
        if not user.check_password(value):
            raise serializers.ValidationError('Current password is incorrect')
        return value

    def validate_new_password(self, value):
        return _check_password(value, self.context['request'].user)


# ============================================================================
# Admin user management
# ============================================================================

class AdminUserCreateSerializer(serializers.ModelSerializer):
    """
    Admin-side account creation. Any role may be assigned; DEALER accounts
    get an approved dealer record.
    """
    password = serializers.CharField(write_only=True, required=True)

    class Meta:
        model = User
        fields = ['id', 'email', 'password', 'name', 'mobile', 'aadhaar', 'role', 'status']
        read_only_fields = ['id']

    def validate_email(self, value):
        value = value.strip().lower()
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError('User with this email already exists')
        return value

    def validate_password(self, value):
        return _check_password(value)

    def create(self, validated_data):
        return User.objects.create_user(
            email=validated_data.pop('email'),
            password=validated_data.pop('password'),
            **validated_data
        )


class AdminUserUpdateSerializer(serializers.ModelSerializer):
    profile_pic = serializers.ImageField(required=False, validators=[validate_profile_image])
    aadhaar_image = serializers.ImageField(required=False, validators=[validate_profile_image])

    class Meta:
        model = User
        fields = ['email', 'name', 'mobile', 'aadhaar', 'role', 'status', 'profile_pic', 'aadhaar_image']

    def validate_email(self, value):
        value = value.strip().lower()
        if User.objects.filter(email__iexact=value).exclude(pk=self.instance.pk).exists():
            raise serializers.ValidationError('User with this email already exists')
        return value


class AdminPasswordSerializer(serializers.Serializer):
    password = serializers.CharField(required=True, write_only=True)

    def validate_password(self, value):
        return _check_password(value)


# ============================================================================
# Properties
# ============================================================================

class PropertyMediaSerializer(serializers.ModelSerializer):
    class Meta:
        model = PropertyMedia
        fields = ['id', 'file', 'created_at']
        read_only_fields = fields


class PropertySerializer(serializers.ModelSerializer):
    owner = UserSummarySerializer(read_only=True)
    dealer = DealerSummarySerializer(read_only=True)
    media = PropertyMediaSerializer(many=True, read_only=True)

    class Meta:
        model = Property
        fields = [
            'id', 'title', 'description', 'property_type', 'location', 'address',
            'latitude', 'longitude', 'price', 'status', 'owner', 'dealer', 'media',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields


class PropertyBookingSerializer(serializers.ModelSerializer):
    user = UserSummarySerializer(read_only=True)

    class Meta:
        model = Booking
        fields = ['id', 'user', 'start_date', 'end_date', 'status', 'created_at']
        read_only_fields = fields


class PropertyDetailSerializer(PropertySerializer):
    bookings = PropertyBookingSerializer(many=True, read_only=True)

    class Meta(PropertySerializer.Meta):
        fields = PropertySerializer.Meta.fields + ['bookings']
        read_only_fields = fields


class PropertyWriteSerializer(serializers.ModelSerializer):
    """
    Create/update serializer for listings.

    Fields:
    - title: 3-100 characters
    - description: 10-1000 characters
    - property_type, location: Required
    - address: Optional, max 500 characters
    - latitude / longitude: Optional, within valid coordinate ranges
    - price: Non-negative
    - dealer: Optional dealer id
    - media_files: Up to 10 images or videos, 10MB each; appended on update
    """
    dealer = serializers.PrimaryKeyRelatedField(
        queryset=Dealer.objects.all(),
        required=False,
        allow_null=True
    )
    media_files = serializers.ListField(
        child=serializers.FileField(validators=[validate_property_media]),
        required=False,
        write_only=True,
        max_length=MAX_MEDIA_FILES,
        error_messages={'max_length': f'You can upload at most {MAX_MEDIA_FILES} files.'}
    )

    class Meta:
        model = Property
        fields = [
            'title', 'description', 'property_type', 'location', 'address',
            'latitude', 'longitude', 'price', 'dealer', 'media_files',
        ]
        extra_kwargs = {
            'price': {'min_value': 0},
            'latitude': {'min_value': -90, 'max_value': 90},
            'longitude': {'min_value': -180, 'max_value': 180},
        }

    def validate_title(self, value):
        value = value.strip()
        if not 3 <= len(value) <= 100:
            raise serializers.ValidationError('Title must be between 3 and 100 characters')
        return value

    def validate_description(self, value):
        value = value.strip()
        if not 10 <= len(value) <= 1000:
            raise serializers.ValidationError('Description must be between 10 and 1000 characters')
        return value

    def validate_property_type(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Property type is required')
        return value

    def validate_location(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Location is required')
        return value

    def _attach_media(self, prop, files):
        for upload in files:
            PropertyMedia.objects.create(property=prop, file=upload)

    def create(self, validated_data):
        files = validated_data.pop('media_files', [])
        prop = Property.objects.create(**validated_data)
        self._attach_media(prop, files)
        return prop

    def update(self, instance, validated_data):
        files = validated_data.pop('media_files', [])
        instance = super().update(instance, validated_data)
        self._attach_media(instance, files)
        return instance


class PropertyStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Property.STATUS_CHOICES)


# ============================================================================
# Bookings
# ============================================================================

class PaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Payment
        fields = ['id', 'amount', 'gateway_reference', 'refunded_at', 'created_at']
        read_only_fields = fields


class BookingPropertySerializer(serializers.ModelSerializer):
    class Meta:
        model = Property
        fields = ['id', 'title', 'location', 'property_type', 'price', 'status']
        read_only_fields = fields


class BookingSerializer(serializers.ModelSerializer):
    property = BookingPropertySerializer(read_only=True)
    user = UserSummarySerializer(read_only=True)
    payment = serializers.SerializerMethodField()

    class Meta:
        model = Booking
        fields = [
            'id', 'property', 'user', 'dealer_code', 'start_date', 'end_date',
            'booking_charges', 'total_amount', 'status', 'payment_method',
            'payment_ref', 'payment_proof', 'payment', 'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_payment(self, obj):
        payment = Payment.objects.filter(booking=obj).first()
        return PaymentSerializer(payment).data if payment else None


class ManualBookingSerializer(serializers.Serializer):
    """
    Input for a UPI booking.

    ``payment_ref`` must have at least 4 characters once trimmed; dates are
    optional and default to a DEFAULT_BOOKING_DURATION_DAYS window from now.
    """
    property_id = serializers.IntegerField(required=True)
    payment_ref = serializers.CharField(required=True, max_length=255, trim_whitespace=True)
    start_date = serializers.DateTimeField(required=False, allow_null=True)
    end_date = serializers.DateTimeField(required=False, allow_null=True)
    dealer_code = serializers.CharField(required=False, allow_blank=True, max_length=32)
    payment_proof = serializers.ImageField(required=False, allow_null=True, validators=[validate_payment_proof])

    def validate_payment_ref(self, value):
        if len(value.strip()) < 4:
            raise serializers.ValidationError('Payment reference must be at least 4 characters')
        return value.strip()

    def validate(self, attrs):
        start, end = attrs.get('start_date'), attrs.get('end_date')
        if start and end and end <= start:
            raise serializers.ValidationError({'end_date': 'End date must be after start date'})
        return attrs


class PaymentBookingSerializer(serializers.Serializer):
    property_id = serializers.IntegerField(required=True)
    start_date = serializers.DateTimeField(required=False, allow_null=True)
    end_date = serializers.DateTimeField(required=False, allow_null=True)
    dealer_code = serializers.CharField(required=False, allow_blank=True, max_length=32)


class ConfirmBookingSerializer(serializers.Serializer):
    booking_id = serializers.IntegerField(required=True)
    payment_intent_id = serializers.CharField(required=True, max_length=255)


class BookingStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Booking.STATUS_CHOICES)


# ============================================================================
# Dealers and commissions
# ============================================================================

class DealerSerializer(serializers.ModelSerializer):
    user = UserSummarySerializer(read_only=True)

    class Meta:
        model = Dealer
        fields = ['id', 'user', 'referral_code', 'status', 'commission', 'parent_id', 'created_at']
        read_only_fields = fields


class DealerHierarchySerializer(DealerSerializer):
    parent = DealerSerializer(read_only=True)
    children = DealerSerializer(many=True, read_only=True)

    class Meta(DealerSerializer.Meta):
        fields = DealerSerializer.Meta.fields + ['parent', 'children']
        read_only_fields = fields


class CommissionSerializer(serializers.ModelSerializer):
    property = BookingPropertySerializer(read_only=True)

    class Meta:
        model = Commission
        fields = ['id', 'dealer_id', 'property', 'amount', 'level', 'created_at']
        read_only_fields = fields


class CommissionConfigSerializer(serializers.ModelSerializer):
    level = serializers.IntegerField(min_value=1, max_value=10)
    percentage = serializers.DecimalField(max_digits=5, decimal_places=2, min_value=0, max_value=100)

    class Meta:
        model = CommissionConfig
        fields = ['id', 'level', 'percentage']
        read_only_fields = ['id']


class CalculateCommissionSerializer(serializers.Serializer):
    sale_amount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0)


class SystemSettingsSerializer(serializers.Serializer):
    """Admin-editable settings: commission percentage per level."""
    commission_rates = serializers.DictField(
        child=serializers.DecimalField(max_digits=5, decimal_places=2, min_value=0, max_value=100),
        required=False
    )

    def validate_commission_rates(self, value):
        cleaned = {}
        for level, percentage in value.items():
            if not re.match(r'^\d+$', str(level)) or not 1 <= int(level) <= 10:
                raise serializers.ValidationError(f'Invalid commission level: {level}')
            cleaned[int(level)] = percentage
        return cleaned


# ============================================================================
# Notifications and inquiries
# ============================================================================

class NotificationSerializer(serializers.ModelSerializer):
    type = serializers.CharField(source='notification_type', read_only=True)

    class Meta:
        model = Notification
        fields = ['id', 'type', 'title', 'message', 'data', 'admin_only', 'read', 'created_at']
        read_only_fields = fields


class InquirySerializer(serializers.ModelSerializer):
    """
    Public contact form.

    Fields:
    - message: At least 10 characters
    - mobile_number: 10-digit Indian mobile number, spaces ignored
    """

    class Meta:
        model = Inquiry
        fields = ['id', 'message', 'mobile_number', 'status', 'created_at', 'updated_at']
        read_only_fields = ['id', 'status', 'created_at', 'updated_at']
        extra_kwargs = {
            'mobile_number': {'validators': []},
        }

    def validate_message(self, value):
        value = value.strip()
        if len(value) < 10:
            raise serializers.ValidationError('Message must be at least 10 characters long')
        return value

    def validate_mobile_number(self, value):
        value = re.sub(r'\s', '', value)
        try:
            validate_indian_mobile(value)
        except DjangoValidationError as e:
            raise serializers.ValidationError(list(e.messages))
        return value


class InquiryStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Inquiry.STATUS_CHOICES)
