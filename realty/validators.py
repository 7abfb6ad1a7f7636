"""
Custom validators for users, uploads and inquiries.
"""

import re

from django.core.exceptions import ValidationError
from django.utils.translation import gettext as _


IMAGE_EXTENSIONS = ['jpg', 'jpeg', 'png', 'webp', 'gif']
IMAGE_CONTENT_TYPES = ['image/jpeg', 'image/png', 'image/webp', 'image/gif']
VIDEO_EXTENSIONS = ['mp4', 'mov', 'webm', 'avi', 'mkv']

MAX_IMAGE_SIZE = 5 * 1024 * 1024
MAX_MEDIA_SIZE = 10 * 1024 * 1024

PASSWORD_SPECIAL_CHARACTERS = '@$!%*?&'


def validate_phone_number(value):
    """
    Validate a user's phone number.

    Accepts digits with optional spaces, dashes, parentheses and a leading plus.
    Requires 10 to 15 digits.

    Raises:
        ValidationError: If phone number format is invalid
    """
    if not value:  # Optional field
        return

    if not re.match(r'^[\d\s\-\+\(\)]+$', value):
        raise ValidationError(
            'Phone number can only contain digits, spaces, dashes, parentheses, and plus sign.',
            code='invalid_phone_chars'
        )

    digits = re.sub(r'\D', '', value)
    if not 10 <= len(digits) <= 15:
        raise ValidationError(
            'Phone number must contain between 10 and 15 digits.',
            code='invalid_phone_length'
        )


def validate_indian_mobile(value):
    """
    Validate a 10 digit Indian mobile number starting with 6, 7, 8 or 9.

    Spaces are ignored so "98765 43210" is accepted.
    """
    cleaned = re.sub(r'\s', '', value or '')
    if not re.match(r'^[6-9]\d{9}$', cleaned):
        raise ValidationError(
            'Please provide a valid 10-digit Indian mobile number.',
            code='invalid_mobile'
        )


def validate_aadhaar_number(value):
    """Aadhaar numbers are 12 digits; spaces are allowed between groups."""
    if not value:
        return
    cleaned = re.sub(r'\s', '', value)
    if not re.match(r'^\d{12}$', cleaned):
        raise ValidationError(
            'Aadhaar number must contain exactly 12 digits.',
            code='invalid_aadhaar'
        )


def _extension(file_name):
    return file_name.rsplit('.', 1)[-1].lower() if '.' in file_name else ''


def _validate_image(image, max_size):
    if not image:
        return
    # Files already in storage were checked when they were uploaded.
    if getattr(image, '_committed', False):
        return

    if image.size > max_size:
        limit = max_size // (1024 * 1024)
        raise ValidationError(
            f'Image file size cannot exceed {limit}MB. Current size: {image.size / (1024 * 1024):.2f}MB',
            code='image_too_large'
        )

    if _extension(image.name) not in IMAGE_EXTENSIONS:
        raise ValidationError(
            f'Invalid image format. Allowed formats: {", ".join(IMAGE_EXTENSIONS)}',
            code='invalid_image_format'
        )

    content_type = getattr(image, 'content_type', None)
    if content_type and content_type not in IMAGE_CONTENT_TYPES:
        raise ValidationError(
            f'Invalid image content type: {content_type}',
            code='invalid_content_type'
        )


def validate_profile_image(image):
    """
    Validate profile pictures and Aadhaar card scans.

    Checks:
    - File size (max 5MB)
    - File format (jpg, jpeg, png, webp, gif)
    """
    _validate_image(image, MAX_IMAGE_SIZE)


def validate_payment_proof(image):
    """Payment screenshots are images of at most 10MB."""
    _validate_image(image, MAX_MEDIA_SIZE)


def validate_property_media(upload):
    """
    Validate a property photo or video.

    Images and videos are both accepted, up to 10MB each.
    """
    if not upload:
        return
    if getattr(upload, '_committed', False):
        return

    if upload.size > MAX_MEDIA_SIZE:
        raise ValidationError(
            f'Media file size cannot exceed 10MB. Current size: {upload.size / (1024 * 1024):.2f}MB',
            code='media_too_large'
        )

    content_type = getattr(upload, 'content_type', None) or ''
    extension = _extension(upload.name)
    is_image = extension in IMAGE_EXTENSIONS or content_type.startswith('image/')
    is_video = extension in VIDEO_EXTENSIONS or content_type.startswith('video/')
    if not (is_image or is_video):
        raise ValidationError(
            'Only image and video files are allowed.',
            code='invalid_media_type'
        )


class PasswordComplexityValidator:
    """
    Require at least one lowercase letter, one uppercase letter, one digit
    and one special character from @$!%*?&.
    """

    def validate(self, password, user=None):
        checks = [
            (r'[a-z]', _('Password must contain at least one lowercase letter.')),
            (r'[A-Z]', _('Password must contain at least one uppercase letter.')),
            (r'\d', _('Password must contain at least one number.')),
            (
                f'[{re.escape(PASSWORD_SPECIAL_CHARACTERS)}]',
                _('Password must contain at least one special character (@$!%*?&).'),
            ),
        ]
        errors = [
            ValidationError(message, code='password_complexity')
            for pattern, message in checks
            if not re.search(pattern, password)
        ]
        if errors:
            raise ValidationError(errors)

    def get_help_text(self):
        return _(
            'Your password must contain an uppercase letter, a lowercase letter, '
            'a number and a special character (@$!%*?&).'
        )
