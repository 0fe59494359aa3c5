"""
Instructor models
"""
from decimal import Decimal

from django.conf import settings
from django.db import models
from apps.core.models import BaseModel
from apps.core.utils.constants import SPORT_TYPES, SPORT_SKI, SPORT_BOTH
from apps.core.validators import validate_percentage


def default_admin_percentage():
    return Decimal(str(settings.DEFAULT_ADMIN_PERCENTAGE))


class Instructor(BaseModel):
    """
    Instructor - owns individual slots and may lead group sessions
    """
    full_name = models.CharField(max_length=255)
    phone = models.CharField(max_length=20, blank=True)
    email = models.EmailField(blank=True)

    sport_type = models.CharField(
        max_length=20,
        choices=SPORT_TYPES,
        default=SPORT_SKI
    )

    # Platform commission taken from this instructor's revenue
    admin_percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=default_admin_percentage,
        validators=[validate_percentage]
    )

    is_active = models.BooleanField(default=True)
    telegram_chat_id = models.CharField(max_length=64, blank=True)

    class Meta:
        db_table = 'instructors'
        verbose_name = 'Instructor'
        verbose_name_plural = 'Instructors'
        ordering = ['full_name']
        indexes = [
            models.Index(fields=['is_active', 'sport_type'], name='instructors_active_sport_idx'),
        ]

    def __str__(self):
        return self.full_name

    def teaches(self, sport_type):
        return self.sport_type == SPORT_BOTH or self.sport_type == sport_type
