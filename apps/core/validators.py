"""
Custom validators
"""
from django.core.exceptions import ValidationError
from django.utils.translation import gettext_lazy as _
import re


def validate_phone_number(value):
    """
    Validate normalised phone number format
    """
    phone_regex = re.compile(r'^\+?\d{10,15}$')
    if not phone_regex.match(value):
        raise ValidationError(
            _('Phone number must be entered in the format: "+79991234567".')
        )


def validate_positive_decimal(value):
    """
    Validate that decimal is positive
    """
    if value <= 0:
        raise ValidationError(
            _('Value must be greater than zero.')
        )


def validate_percentage(value):
    if value < 0 or value > 100:
        raise ValidationError(
            _('Percentage must be between 0 and 100.')
        )


def validate_duration(value):
    """
    Validate duration in minutes (must be positive and reasonable)
    """
    if value <= 0 or value > 480:  # Max 8 hours
        raise ValidationError(
            _('Duration must be between 1 and 480 minutes.')
        )
