"""
API routes for the property platform.
"""

from django.urls import path

from .views import auth, bookings, dealers, inquiries, moderation, notifications, properties


urlpatterns = [
    # Authentication endpoints
    path('api/auth/signup/', auth.SignupView.as_view(), name='auth_signup'),
    path('api/auth/login/', auth.LoginView.as_view(), name='auth_login'),
    path('api/auth/dealer-signup/', auth.DealerSignupView.as_view(), name='auth_dealer_signup'),
    path('api/auth/apply-dealer/', auth.ApplyDealerView.as_view(), name='auth_apply_dealer'),
    path('api/auth/me/', auth.MeView.as_view(), name='auth_me'),
    path('api/auth/profile/', auth.ProfileView.as_view(), name='auth_profile'),
    path('api/auth/profile-picture/', auth.ProfilePictureView.as_view(), name='auth_profile_picture'),
    path('api/auth/aadhaar-image/', auth.AadhaarImageView.as_view(), name='auth_aadhaar_image'),
    path('api/auth/change-password/', auth.ChangePasswordView.as_view(), name='auth_change_password'),
    path('api/auth/refresh/', auth.RefreshTokenView.as_view(), name='auth_refresh'),
    path('api/auth/logout/', auth.LogoutView.as_view(), name='auth_logout'),

    # Property endpoints
    path('api/properties/', properties.PropertyListCreateView.as_view(), name='property_list'),
    path('api/properties/admin/all/', properties.AdminPropertyListView.as_view(), name='property_admin_list'),
    path('api/properties/types/list/', properties.PropertyTypesView.as_view(), name='property_types'),
    path('api/properties/locations/list/', properties.PropertyLocationsView.as_view(), name='property_locations'),
    path('api/properties/<int:pk>/', properties.PropertyDetailView.as_view(), name='property_detail'),
    path('api/properties/<int:pk>/status/', properties.PropertyStatusView.as_view(), name='property_status'),

    # Booking endpoints
    path('api/bookings/', bookings.BookingAdminListView.as_view(), name='booking_list'),
    path('api/bookings/create/', bookings.ManualBookingCreateView.as_view(), name='booking_create'),
    path('api/bookings/payment-intent/', bookings.PaymentIntentView.as_view(), name='booking_payment_intent'),
    path('api/bookings/confirm/', bookings.ConfirmBookingView.as_view(), name='booking_confirm'),
    path('api/bookings/my-bookings/', bookings.MyBookingsView.as_view(), name='booking_mine'),
    path('api/bookings/stats/', bookings.BookingStatsView.as_view(), name='booking_stats'),
    path('api/bookings/update-expired/', bookings.UpdateExpiredBookingsView.as_view(), name='booking_update_expired'),
    path('api/bookings/<int:pk>/', bookings.BookingDetailView.as_view(), name='booking_detail'),
    path('api/bookings/<int:pk>/approve/', bookings.BookingApproveView.as_view(), name='booking_approve'),
    path('api/bookings/<int:pk>/reject/', bookings.BookingRejectView.as_view(), name='booking_reject'),
    path('api/bookings/<int:pk>/unbook/', bookings.BookingUnbookView.as_view(), name='booking_unbook'),

    # Dealer endpoints
    path('api/dealers/my-commissions/', dealers.MyCommissionsView.as_view(), name='dealer_my_commissions'),
    path('api/dealers/hierarchy/<int:pk>/', dealers.DealerHierarchyView.as_view(), name='dealer_hierarchy'),
    path('api/dealers/stats/<int:pk>/', dealers.DealerStatsView.as_view(), name='dealer_stats'),
    path('api/dealers/config/', dealers.CommissionConfigView.as_view(), name='dealer_config'),
    path('api/dealers/pending-dealers/', dealers.PendingDealersView.as_view(), name='dealer_pending'),
    path('api/dealers/approve-dealer/<int:pk>/', dealers.ApproveDealerView.as_view(), name='dealer_approve'),
    path('api/dealers/referral/<str:code>/', dealers.ReferralLookupView.as_view(), name='dealer_referral'),
    path('api/dealers/tree/<int:pk>/', dealers.DealerTreeView.as_view(), name='dealer_tree'),
    path('api/dealers/calculate/<int:property_id>/', dealers.CalculateCommissionView.as_view(),
         name='dealer_calculate_commission'),

    # Admin endpoints
    path('api/admin/dashboard/', moderation.DashboardView.as_view(), name='admin_dashboard'),
    path('api/admin/analytics/properties/', moderation.PropertyAnalyticsView.as_view(), name='admin_analytics_properties'),
    path('api/admin/analytics/bookings/', moderation.BookingAnalyticsView.as_view(), name='admin_analytics_bookings'),
    path('api/admin/analytics/dealers/', moderation.DealerAnalyticsView.as_view(), name='admin_analytics_dealers'),
    path('api/admin/recent-activity/', moderation.RecentActivityView.as_view(), name='admin_recent_activity'),
    path('api/admin/users/count/', moderation.UserCountView.as_view(), name='admin_user_count'),
    path('api/admin/users/', moderation.AdminUserListCreateView.as_view(), name='admin_users'),
    path('api/admin/users/<int:pk>/', moderation.AdminUserDetailView.as_view(), name='admin_user_detail'),
    path('api/admin/users/<int:pk>/password/', moderation.AdminUserPasswordView.as_view(), name='admin_user_password'),
    path('api/admin/users/<int:pk>/block/', moderation.AdminUserBlockView.as_view(), name='admin_user_block'),
    path('api/admin/users/<int:pk>/unblock/', moderation.AdminUserUnblockView.as_view(), name='admin_user_unblock'),
    path('api/admin/bookings/', bookings.BookingAdminListView.as_view(), name='admin_bookings'),
    path('api/admin/bookings/<int:pk>/status/', moderation.AdminBookingStatusView.as_view(), name='admin_booking_status'),
    path('api/admin/settings/', moderation.SystemSettingsView.as_view(), name='admin_settings'),
    path('api/admin/dealer-requests/', moderation.DealerRequestListView.as_view(), name='admin_dealer_requests'),
    path('api/admin/dealer-requests/<int:pk>/approve/', moderation.DealerRequestApproveView.as_view(),
         name='admin_dealer_request_approve'),
    path('api/admin/dealer-requests/<int:pk>/reject/', moderation.DealerRequestRejectView.as_view(),
         name='admin_dealer_request_reject'),
    path('api/admin/dealer-tree/', moderation.AdminDealerTreeView.as_view(), name='admin_dealer_tree'),

    # Notification endpoints
    path('api/notifications/', notifications.NotificationListView.as_view(), name='notification_list'),
    path('api/notifications/<int:pk>/read/', notifications.NotificationReadView.as_view(), name='notification_read'),
    path('api/notifications/mark-all-read/', notifications.MarkAllReadView.as_view(), name='notification_mark_all_read'),
    path('api/notifications/unread-count/', notifications.UnreadCountView.as_view(), name='notification_unread_count'),
    path('api/notifications/cleanup/', notifications.NotificationCleanupView.as_view(), name='notification_cleanup'),

    # Inquiry endpoints
    path('api/inquiries/', inquiries.InquiryListCreateView.as_view(), name='inquiry_list'),
    path('api/inquiries/<int:pk>/', inquiries.InquiryDetailView.as_view(), name='inquiry_detail'),
]
