"""
Capacity models: instructor slots, group sessions and tariffs
"""
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

from django.db import models
from apps.core.models import BaseModel
from apps.core.utils.constants import (
    SLOT_STATUSES, SLOT_STATUS_AVAILABLE,
    SESSION_STATUSES, SESSION_STATUS_OPEN,
    SESSION_LEVELS, LEVEL_BEGINNER,
    SPORT_TYPES, SPORT_SKI,
    LOCATIONS, LOCATION_KULIGA,
    TARIFF_KINDS, TARIFF_KIND_INDIVIDUAL, TARIFF_KIND_GROUP,
)
from apps.core.validators import validate_duration, validate_positive_decimal


class Slot(BaseModel):
    """
    A single bookable time window owned by one instructor
    """
    instructor = models.ForeignKey(
        'instructors.Instructor',
        on_delete=models.CASCADE,
        related_name='slots'
    )

    date = models.DateField(db_index=True)
    start_time = models.TimeField()
    end_time = models.TimeField()
    location = models.CharField(max_length=20, choices=LOCATIONS, default=LOCATION_KULIGA)

    status = models.CharField(
        max_length=20,
        choices=SLOT_STATUSES,
        default=SLOT_STATUS_AVAILABLE,
        db_index=True
    )

    # Hold placed by a pending checkout
    hold_until = models.DateTimeField(null=True, blank=True)
    hold_transaction = models.ForeignKey(
        'payments.PaymentTransaction',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='held_slots'
    )

    class Meta:
        db_table = 'instructor_slots'
        verbose_name = 'Slot'
        verbose_name_plural = 'Slots'
        ordering = ['date', 'start_time']
        indexes = [
            models.Index(fields=['instructor', 'date', 'status'], name='slots_instructor_date_idx'),
            models.Index(fields=['status', 'hold_until'], name='slots_status_hold_idx'),
        ]

    def __str__(self):
        return f"{self.instructor} {self.date} {self.start_time:%H:%M}-{self.end_time:%H:%M} ({self.status})"

    @property
    def duration_minutes(self):
        start = datetime.combine(self.date, self.start_time)
        end = datetime.combine(self.date, self.end_time)
        return int((end - start).total_seconds() // 60)


class GroupSession(BaseModel):
    """
    A capacity-bounded session several clients can join
    """
    instructor = models.ForeignKey(
        'instructors.Instructor',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='group_sessions'
    )
    # Set when the session was opened on an instructor slot by a group tariff
    slot = models.OneToOneField(
        Slot,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='group_session'
    )

    date = models.DateField(db_index=True)
    start_time = models.TimeField()
    end_time = models.TimeField()
    location = models.CharField(max_length=20, choices=LOCATIONS, default=LOCATION_KULIGA)
    sport_type = models.CharField(max_length=20, choices=SPORT_TYPES, default=SPORT_SKI)
    level = models.CharField(max_length=20, choices=SESSION_LEVELS, default=LEVEL_BEGINNER)

    min_participants = models.PositiveIntegerField(default=1)
    max_participants = models.PositiveIntegerField()
    current_participants = models.PositiveIntegerField(default=0)
    price_per_participant = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[validate_positive_decimal]
    )

    status = models.CharField(
        max_length=20,
        choices=SESSION_STATUSES,
        default=SESSION_STATUS_OPEN,
        db_index=True
    )

    class Meta:
        db_table = 'group_sessions'
        verbose_name = 'Group Session'
        verbose_name_plural = 'Group Sessions'
        ordering = ['date', 'start_time']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(current_participants__lte=models.F('max_participants')),
                name='group_session_seats_within_max',
            ),
        ]

    def __str__(self):
        return f"Group {self.date} {self.start_time:%H:%M} ({self.current_participants}/{self.max_participants})"

    @property
    def free_seats(self):
        return self.max_participants - self.current_participants


class Tariff(BaseModel):
    """
    Price option for an individual training
    """
    name = models.CharField(max_length=255)
    kind = models.CharField(max_length=20, choices=TARIFF_KINDS, default=TARIFF_KIND_INDIVIDUAL)
    duration_minutes = models.PositiveIntegerField(validators=[validate_duration])
    participants = models.PositiveIntegerField(default=1)
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[validate_positive_decimal])
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = 'tariffs'
        verbose_name = 'Tariff'
        verbose_name_plural = 'Tariffs'
        ordering = ['kind', 'duration_minutes', 'participants']

    def __str__(self):
        return f"{self.name} ({self.duration_minutes} min, {self.price})"

    @property
    def price_per_person(self):
        """Group tariffs are priced for the whole group and split evenly."""
        if self.kind == TARIFF_KIND_GROUP and self.participants > 1:
            return (self.price / self.participants).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
        return self.price
