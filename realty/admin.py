"""
Django admin configuration for the platform models.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.translation import gettext_lazy as _

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
    User,
)


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """
    Admin interface for platform accounts.

    Extends Django's UserAdmin with role, status and KYC fields.
    """

    list_display = ['email', 'name', 'mobile', 'role', 'status', 'is_staff', 'created_at']
    list_filter = ['role', 'status', 'is_staff', 'is_superuser', 'created_at']
    search_fields = ['email', 'name', 'mobile']
    ordering = ['-created_at']

    fieldsets = (
        (None, {
            'fields': ('username', 'password')
        }),
        (_('Personal Info'), {
            'fields': ('name', 'email', 'mobile', 'profile_pic')
        }),
        (_('KYC'), {
            'fields': ('aadhaar', 'aadhaar_image')
        }),
        (_('Role & Status'), {
            'fields': ('role', 'status')
        }),
        (_('Permissions'), {
            'fields': (
                'is_active',
                'is_staff',
                'is_superuser',
                'groups',
                'user_permissions',
            ),
            'classes': ('collapse',),
        }),
        (_('Important dates'), {
            'fields': ('last_login', 'date_joined', 'created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'username', 'name', 'role', 'password1', 'password2'),
        }),
    )

    readonly_fields = ['created_at', 'updated_at', 'last_login', 'date_joined']


@admin.register(Dealer)
class DealerAdmin(admin.ModelAdmin):
    list_display = ['referral_code', 'user', 'status', 'parent', 'commission', 'created_at']
    list_filter = ['status', 'created_at']
    search_fields = ['referral_code', 'user__email', 'user__name']
    raw_id_fields = ['user', 'parent']
    readonly_fields = ['commission', 'created_at']


class PropertyMediaInline(admin.TabularInline):
    model = PropertyMedia
    extra = 0


@admin.register(Property)
class PropertyAdmin(admin.ModelAdmin):
    list_display = ['title', 'property_type', 'location', 'price', 'status', 'owner', 'dealer', 'created_at']
    list_filter = ['status', 'property_type', 'created_at']
    search_fields = ['title', 'location', 'address', 'owner__email']
    raw_id_fields = ['owner', 'dealer']
    inlines = [PropertyMediaInline]

    fieldsets = (
        (_('Listing'), {
            'fields': ('title', 'description', 'property_type', 'price', 'status')
        }),
        (_('Location'), {
            'fields': ('location', 'address', 'latitude', 'longitude')
        }),
        (_('Ownership'), {
            'fields': ('owner', 'dealer')
        }),
    )


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ['id', 'property', 'user', 'status', 'payment_method', 'start_date', 'end_date', 'total_amount']
    list_filter = ['status', 'payment_method', 'created_at']
    search_fields = ['user__email', 'property__title', 'payment_ref', 'dealer_code']
    raw_id_fields = ['property', 'user']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ['id', 'booking', 'amount', 'gateway_reference', 'refunded_at', 'created_at']
    search_fields = ['gateway_reference']
    raw_id_fields = ['booking']


@admin.register(Commission)
class CommissionAdmin(admin.ModelAdmin):
    list_display = ['id', 'dealer', 'property', 'level', 'amount', 'created_at']
    list_filter = ['level']
    raw_id_fields = ['dealer', 'property']


@admin.register(CommissionConfig)
class CommissionConfigAdmin(admin.ModelAdmin):
    list_display = ['level', 'percentage']
    ordering = ['level']


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ['title', 'notification_type', 'read', 'admin_only', 'created_at']
    list_filter = ['notification_type', 'read']
    search_fields = ['title', 'message']


@admin.register(Inquiry)
class InquiryAdmin(admin.ModelAdmin):
    list_display = ['id', 'mobile_number', 'status', 'created_at']
    list_filter = ['status']
    search_fields = ['mobile_number', 'message']
