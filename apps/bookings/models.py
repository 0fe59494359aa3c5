"""
Booking model
"""
from django.db import models
from apps.core.models import BaseModel
from apps.core.utils.constants import (
    BOOKING_STATUSES, BOOKING_STATUS_PENDING, BOOKING_ACTIVE_STATUSES,
    BOOKING_KINDS, BOOKING_KIND_INDIVIDUAL,
    SPORT_TYPES, LOCATIONS,
)
from apps.core.utils.helpers import local_datetime


class Booking(BaseModel):
    """
    A client's claim on a slot or on seats of a group session.

    Date, time and location are copied from the capacity unit when the
    claim is made and are not re-read from it afterwards.
    """
    client = models.ForeignKey(
        'clients.Client',
        on_delete=models.PROTECT,
        related_name='bookings'
    )

    kind = models.CharField(
        max_length=20,
        choices=BOOKING_KINDS,
        default=BOOKING_KIND_INDIVIDUAL
    )

    # Exactly one of these is set, depending on kind
    slot = models.ForeignKey(
        'schedules.Slot',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='bookings'
    )
    group_session = models.ForeignKey(
        'schedules.GroupSession',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='bookings'
    )

    instructor = models.ForeignKey(
        'instructors.Instructor',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='bookings'
    )
    tariff = models.ForeignKey(
        'schedules.Tariff',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='bookings'
    )

    # Snapshot of the capacity unit
    date = models.DateField(db_index=True)
    start_time = models.TimeField()
    end_time = models.TimeField()
    location = models.CharField(max_length=20, choices=LOCATIONS)
    sport_type = models.CharField(max_length=20, choices=SPORT_TYPES)

    # Participants
    participants_count = models.PositiveIntegerField(default=1)
    participants_names = models.JSONField(default=list, blank=True)

    # Pricing
    price_total = models.DecimalField(max_digits=10, decimal_places=2)
    price_per_person = models.DecimalField(max_digits=10, decimal_places=2)

    status = models.CharField(
        max_length=20,
        choices=BOOKING_STATUSES,
        default=BOOKING_STATUS_PENDING,
        db_index=True
    )

    # Lifecycle
    confirmed_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.TextField(blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    refunded_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'bookings'
        verbose_name = 'Booking'
        verbose_name_plural = 'Bookings'
        ordering = ['-date', '-start_time']
        indexes = [
            models.Index(fields=['client', 'status'], name='bookings_client_status_idx'),
            models.Index(fields=['instructor', 'date', 'status'], name='bookings_instructor_date_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['slot'],
                condition=models.Q(status__in=BOOKING_ACTIVE_STATUSES),
                name='unique_active_booking_per_slot',
            ),
        ]

    def __str__(self):
        return f"{self.client.full_name} - {self.kind} - {self.date} {self.start_time:%H:%M} ({self.status})"

    @property
    def starts_at(self):
        return local_datetime(self.date, self.start_time)

    @property
    def ends_at(self):
        return local_datetime(self.date, self.end_time)
