import decimal

import django.contrib.auth.validators
import django.core.serializers.json
import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models

import realty.models
import realty.validators


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('auth', '0012_alter_user_first_name_max_length'),
    ]

    operations = [
        migrations.CreateModel(
            name='User',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('password', models.CharField(max_length=128, verbose_name='password')),
                ('last_login', models.DateTimeField(blank=True, null=True, verbose_name='last login')),
                ('is_superuser', models.BooleanField(default=False, help_text='Designates that this user has all permissions without explicitly assigning them.', verbose_name='superuser status')),
                ('username', models.CharField(error_messages={'unique': 'A user with that username already exists.'}, help_text='Required. 150 characters or fewer. Letters, digits and @/./+/-/_ only.', max_length=150, unique=True, validators=[django.contrib.auth.validators.UnicodeUsernameValidator()], verbose_name='username')),
                ('first_name', models.CharField(blank=True, max_length=150, verbose_name='first name')),
                ('last_name', models.CharField(blank=True, max_length=150, verbose_name='last name')),
                ('is_staff', models.BooleanField(default=False, help_text='Designates whether the user can log into this admin site.', verbose_name='staff status')),
                ('is_active', models.BooleanField(default=True, help_text='Designates whether this user should be treated as active. Unselect this instead of deleting accounts.', verbose_name='active')),
                ('date_joined', models.DateTimeField(default=django.utils.timezone.now, verbose_name='date joined')),
                ('email', models.EmailField(error_messages={'unique': 'A user with that email already exists.'}, help_text='Required. Used to sign in.', max_length=254, unique=True, verbose_name='email address')),
                ('name', models.CharField(blank=True, default='', max_length=150, verbose_name='name')),
                ('mobile', models.CharField(blank=True, default='', max_length=20, validators=[realty.validators.validate_phone_number], verbose_name='mobile number')),
                ('aadhaar', models.CharField(blank=True, default='', max_length=14, validators=[realty.validators.validate_aadhaar_number], verbose_name='aadhaar number')),
                ('aadhaar_image', models.ImageField(blank=True, null=True, upload_to=realty.models.aadhaar_image_upload_path, validators=[realty.validators.validate_profile_image], verbose_name='aadhaar image')),
                ('profile_pic', models.ImageField(blank=True, help_text='Optional. Max 5MB, formats: jpg, png, webp, gif.', null=True, upload_to=realty.models.profile_picture_upload_path, validators=[realty.validators.validate_profile_image], verbose_name='profile picture')),
                ('role', models.CharField(choices=[('USER', 'User'), ('DEALER', 'Dealer'), ('ADMIN', 'Admin')], default='USER', max_length=10, verbose_name='role')),
                ('status', models.CharField(choices=[('ACTIVE', 'Active'), ('BLOCKED', 'Blocked')], default='ACTIVE', max_length=10, verbose_name='status')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('groups', models.ManyToManyField(blank=True, help_text='The groups this user belongs to. A user will get all permissions granted to each of their groups.', related_name='user_set', related_query_name='user', to='auth.group', verbose_name='groups')),
                ('user_permissions', models.ManyToManyField(blank=True, help_text='Specific permissions for this user.', related_name='user_set', related_query_name='user', to='auth.permission', verbose_name='user permissions')),
            ],
            options={
                'verbose_name': 'user',
                'verbose_name_plural': 'users',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['role'], name='realty_user_role_idx'),
                    models.Index(fields=['status'], name='realty_user_status_idx'),
                ],
            },
            managers=[
                ('objects', realty.models.PlatformUserManager()),
            ],
        ),
        migrations.CreateModel(
            name='Dealer',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('referral_code', models.CharField(default=realty.models.generate_referral_code, max_length=6, unique=True, verbose_name='referral code')),
                ('status', models.CharField(choices=[('PENDING', 'Pending'), ('APPROVED', 'Approved'), ('REJECTED', 'Rejected')], default='PENDING', max_length=10, verbose_name='status')),
                ('commission', models.DecimalField(decimal_places=2, default=decimal.Decimal('0.00'), max_digits=14, verbose_name='total commission')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('parent', models.ForeignKey(blank=True, help_text='Dealer who referred this dealer.', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='children', to='realty.dealer')),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='dealer', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'dealer',
                'verbose_name_plural': 'dealers',
                'ordering': ['created_at', 'id'],
                'indexes': [
                    models.Index(fields=['status'], name='realty_dealer_status_idx'),
                    models.Index(fields=['parent'], name='realty_dealer_parent_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Property',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=100, verbose_name='title')),
                ('description', models.TextField(max_length=1000, verbose_name='description')),
                ('property_type', models.CharField(max_length=100, verbose_name='property type')),
                ('location', models.CharField(max_length=200, verbose_name='location')),
                ('address', models.CharField(blank=True, default='', max_length=500, verbose_name='address')),
                ('latitude', models.FloatField(blank=True, null=True, validators=[django.core.validators.MinValueValidator(-90, message='Latitude must be between -90 and 90.'), django.core.validators.MaxValueValidator(90, message='Latitude must be between -90 and 90.')], verbose_name='latitude')),
                ('longitude', models.FloatField(blank=True, null=True, validators=[django.core.validators.MinValueValidator(-180, message='Longitude must be between -180 and 180.'), django.core.validators.MaxValueValidator(180, message='Longitude must be between -180 and 180.')], verbose_name='longitude')),
                ('price', models.DecimalField(decimal_places=2, max_digits=14, validators=[django.core.validators.MinValueValidator(decimal.Decimal('0'), message='Price must be a positive number.')], verbose_name='price')),
                ('status', models.CharField(choices=[('FREE', 'Free'), ('BOOKED', 'Booked'), ('SOLD', 'Sold')], default='FREE', max_length=10, verbose_name='status')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('dealer', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='properties', to='realty.dealer')),
                ('owner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='properties', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'property',
                'verbose_name_plural': 'properties',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['status'], name='realty_prop_status_idx'),
                    models.Index(fields=['property_type'], name='realty_prop_type_idx'),
                    models.Index(fields=['location'], name='realty_prop_location_idx'),
                    models.Index(fields=['price'], name='realty_prop_price_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='PropertyMedia',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('file', models.FileField(upload_to=realty.models.property_media_upload_path, validators=[realty.validators.validate_property_media], verbose_name='file')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('property', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='media', to='realty.property')),
            ],
            options={
                'verbose_name': 'property media',
                'verbose_name_plural': 'property media',
                'ordering': ['created_at', 'id'],
            },
        ),
        migrations.CreateModel(
            name='Booking',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('dealer_code', models.CharField(blank=True, default='', max_length=32, verbose_name='dealer code')),
                ('start_date', models.DateTimeField(verbose_name='start date')),
                ('end_date', models.DateTimeField(verbose_name='end date')),
                ('booking_charges', models.DecimalField(decimal_places=2, default=decimal.Decimal('0.00'), max_digits=12, validators=[django.core.validators.MinValueValidator(decimal.Decimal('0'))], verbose_name='booking charges')),
                ('total_amount', models.DecimalField(decimal_places=2, default=decimal.Decimal('0.00'), max_digits=12, validators=[django.core.validators.MinValueValidator(decimal.Decimal('0'))], verbose_name='total amount')),
                ('status', models.CharField(choices=[('PENDING', 'Pending'), ('CONFIRMED', 'Confirmed'), ('CANCELLED', 'Cancelled'), ('EXPIRED', 'Expired')], default='PENDING', max_length=10, verbose_name='status')),
                ('payment_method', models.CharField(choices=[('UPI', 'UPI'), ('CARD', 'Card')], default='UPI', max_length=10, verbose_name='payment method')),
                ('payment_ref', models.CharField(blank=True, default='', help_text='UPI transaction reference or payment intent id.', max_length=255, verbose_name='payment reference')),
                ('payment_proof', models.ImageField(blank=True, null=True, upload_to=realty.models.payment_proof_upload_path, validators=[realty.validators.validate_payment_proof], verbose_name='payment proof')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('property', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='bookings', to='realty.property')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='bookings', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'booking',
                'verbose_name_plural': 'bookings',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['status', 'end_date'], name='realty_book_status_end_idx'),
                    models.Index(fields=['property', 'status'], name='realty_book_prop_status_idx'),
                    models.Index(fields=['user'], name='realty_book_user_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Payment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('amount', models.DecimalField(decimal_places=2, max_digits=12, verbose_name='amount')),
                ('gateway_reference', models.CharField(help_text='Payment intent id returned by the gateway.', max_length=255, verbose_name='gateway reference')),
                ('refunded_at', models.DateTimeField(blank=True, null=True, verbose_name='refunded at')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('booking', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='payment', to='realty.booking')),
            ],
            options={
                'verbose_name': 'payment',
                'verbose_name_plural': 'payments',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='Commission',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('amount', models.DecimalField(decimal_places=2, max_digits=14, verbose_name='amount')),
                ('level', models.PositiveSmallIntegerField(help_text='1 for the selling dealer, 2 for their referrer, and so on.', validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(10)], verbose_name='level')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('dealer', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='commissions', to='realty.dealer')),
                ('property', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='commissions', to='realty.property')),
            ],
            options={
                'verbose_name': 'commission',
                'verbose_name_plural': 'commissions',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['dealer'], name='realty_comm_dealer_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='CommissionConfig',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('level', models.PositiveSmallIntegerField(unique=True, validators=[django.core.validators.MinValueValidator(1, message='Level must be between 1 and 10.'), django.core.validators.MaxValueValidator(10, message='Level must be between 1 and 10.')], verbose_name='level')),
                ('percentage', models.DecimalField(decimal_places=2, max_digits=5, validators=[django.core.validators.MinValueValidator(decimal.Decimal('0'), message='Percentage must be between 0 and 100.'), django.core.validators.MaxValueValidator(decimal.Decimal('100'), message='Percentage must be between 0 and 100.')], verbose_name='percentage')),
            ],
            options={
                'verbose_name': 'commission config',
                'verbose_name_plural': 'commission configs',
                'ordering': ['level'],
            },
        ),
        migrations.CreateModel(
            name='Notification',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('notification_type', models.CharField(choices=[('PROPERTY_ADDED', 'Property added'), ('PROPERTY_UPDATED', 'Property updated'), ('USER_SIGNUP', 'User signup'), ('BOOKING_CREATED', 'Booking created'), ('DEALER_REQUEST', 'Dealer request'), ('INQUIRY_RECEIVED', 'Inquiry received')], max_length=20, verbose_name='type')),
                ('title', models.CharField(max_length=200, verbose_name='title')),
                ('message', models.TextField(verbose_name='message')),
                ('data', models.JSONField(blank=True, default=dict, encoder=django.core.serializers.json.DjangoJSONEncoder, verbose_name='data')),
                ('admin_only', models.BooleanField(default=True, verbose_name='admin only')),
                ('read', models.BooleanField(default=False, verbose_name='read')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
            ],
            options={
                'verbose_name': 'notification',
                'verbose_name_plural': 'notifications',
                'ordering': ['-created_at', '-id'],
                'indexes': [
                    models.Index(fields=['read'], name='realty_notif_read_idx'),
                    models.Index(fields=['created_at'], name='realty_notif_created_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Inquiry',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('message', models.TextField(verbose_name='message')),
                ('mobile_number', models.CharField(max_length=15, validators=[realty.validators.validate_indian_mobile], verbose_name='mobile number')),
                ('status', models.CharField(choices=[('NEW', 'New'), ('CONTACTED', 'Contacted'), ('CLOSED', 'Closed')], default='NEW', max_length=10, verbose_name='status')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
            ],
            options={
                'verbose_name': 'inquiry',
                'verbose_name_plural': 'inquiries',
                'ordering': ['-created_at'],
            },
        ),
    ]
