"""
Payout Aggregator.

Instructor earnings are computed from bookings that were paid for and
whose training has already ended, in the school's time zone. A booking
counts towards at most one paid payout: anything dated inside the
period of a paid payout of the same instructor is left out of every
later computation.
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone
from rest_framework.exceptions import NotFound

from apps.bookings.models import Booking
from apps.core import messages
from apps.core.exceptions import InvalidOperation, InvalidStateTransition, PayoutAlreadyExists
from apps.core.utils.constants import (
    BOOKING_STATUS_CONFIRMED,
    BOOKING_KIND_GROUP,
    PAYOUT_STATUS_PENDING,
    PAYOUT_STATUS_PAID,
    PAYOUT_STATUS_CANCELLED,
)
from apps.core.utils.helpers import school_now
from apps.instructors.models import Instructor
from apps.notifications.services.notifier import booking_notifier
from apps.payouts.models import InstructorPayout

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')
HUNDRED = Decimal('100')

# Allowed payout status transitions
PAYOUT_TRANSITIONS = {
    PAYOUT_STATUS_PENDING: {PAYOUT_STATUS_PAID, PAYOUT_STATUS_CANCELLED},
    PAYOUT_STATUS_PAID: set(),
    PAYOUT_STATUS_CANCELLED: set(),
}

PAYOUT_METADATA_FIELDS = ('payment_method', 'payment_date', 'payment_comment')


@dataclass
class PayoutFigures:
    trainings_count: int
    total_revenue: Decimal
    admin_percentage: Decimal
    admin_commission: Decimal
    instructor_earnings: Decimal
    bookings: List[Booking] = field(default_factory=list)


def commission_for(revenue: Decimal, percentage: Decimal) -> Decimal:
    return (revenue * percentage / HUNDRED).quantize(CENT, rounding=ROUND_HALF_UP)


def instructor_share(amount: Decimal, percentage: Decimal) -> Decimal:
    return amount - commission_for(amount, percentage)


def completed_bookings(instructor, period_start, period_end, exclude_payout_id=None):
    """
    Paid bookings of an instructor in a period whose training has ended.

    Args:
        instructor: Instructor instance or id
        period_start: First day of the period, inclusive
        period_end: Last day of the period, inclusive
        exclude_payout_id: Paid payout whose own period should not be
            excluded, used when listing that payout's trainings

    Returns:
        Booking queryset
    """
    now = school_now()
    finished = Q(date__lt=now.date()) | Q(date=now.date(), end_time__lte=now.time())

    queryset = Booking.objects.filter(
        finished,
        instructor=instructor,
        status=BOOKING_STATUS_CONFIRMED,
        date__gte=period_start,
        date__lte=period_end,
    )

    paid_periods = InstructorPayout.objects.filter(
        instructor=instructor,
        status=PAYOUT_STATUS_PAID,
        period_start__lte=period_end,
        period_end__gte=period_start,
    )
    if exclude_payout_id:
        paid_periods = paid_periods.exclude(id=exclude_payout_id)
    for start, end in paid_periods.values_list('period_start', 'period_end'):
        queryset = queryset.exclude(date__gte=start, date__lte=end)

    return queryset.select_related('client', 'group_session').order_by('date', 'start_time')


def count_trainings(bookings) -> int:
    """Individual bookings count one each; a group session counts once."""
    sessions = set()
    individual = 0
    for booking in bookings:
        if booking.kind == BOOKING_KIND_GROUP and booking.group_session_id:
            sessions.add(booking.group_session_id)
        else:
            individual += 1
    return individual + len(sessions)


def compute(instructor, period_start, period_end, exclude_payout_id=None, percentage=None) -> PayoutFigures:
    bookings = list(completed_bookings(instructor, period_start, period_end, exclude_payout_id))
    percentage = instructor.admin_percentage if percentage is None else percentage

    revenue = sum((b.price_total for b in bookings), Decimal('0.00'))
    commission = commission_for(revenue, percentage)
    return PayoutFigures(
        trainings_count=count_trainings(bookings),
        total_revenue=revenue,
        admin_percentage=percentage,
        admin_commission=commission,
        instructor_earnings=revenue - commission,
        bookings=bookings,
    )


def create_payout(instructor_id, period_start, period_end, created_by: str = '') -> InstructorPayout:
    """
    Compute and store a payout for one instructor and period.

    Raises:
        InvalidOperation: inverted period or nothing to pay
        NotFound: unknown instructor
        PayoutAlreadyExists: a payout for exactly this period exists
    """
    if period_start > period_end:
        raise InvalidOperation(messages.PAYOUT['invalid_period']['error'])

    with transaction.atomic():
        # Serialises payout creation per instructor
        try:
            instructor = Instructor.objects.select_for_update().get(id=instructor_id)
        except (Instructor.DoesNotExist, ValueError, DjangoValidationError):
            raise NotFound('Instructor not found')

        if InstructorPayout.objects.filter(
            instructor=instructor, period_start=period_start, period_end=period_end
        ).exists():
            raise PayoutAlreadyExists(messages.PAYOUT['already_exists']['error'])

        figures = compute(instructor, period_start, period_end)
        if not figures.bookings:
            raise InvalidOperation(messages.PAYOUT['no_trainings']['error'])

        try:
            with transaction.atomic():
                payout = InstructorPayout.objects.create(
                    instructor=instructor,
                    period_start=period_start,
                    period_end=period_end,
                    trainings_count=figures.trainings_count,
                    total_revenue=figures.total_revenue,
                    admin_percentage=figures.admin_percentage,
                    admin_commission=figures.admin_commission,
                    instructor_earnings=figures.instructor_earnings,
                    created_by=created_by or '',
                )
        except IntegrityError:
            raise PayoutAlreadyExists(messages.PAYOUT['already_exists']['error'])

        booking_notifier.notify_admin_payout_created(payout)

    logger.info(
        f"Payout {payout.id} created for {instructor.full_name} "
        f"{period_start} - {period_end}: {figures.trainings_count} trainings, "
        f"revenue {figures.total_revenue}, earnings {figures.instructor_earnings}"
    )
    return payout


def update_payout(payout_id, changes: dict, updated_by: str = '') -> InstructorPayout:
    """
    Record payment details and move the payout status.

    Figures are never recomputed here.

    Raises:
        NotFound: unknown payout
        InvalidStateTransition: status change other than pending -> paid/cancelled
    """
    with transaction.atomic():
        try:
            payout = InstructorPayout.objects.select_for_update().select_related('instructor').get(id=payout_id)
        except (InstructorPayout.DoesNotExist, ValueError, DjangoValidationError):
            raise NotFound('Payout not found')

        update_fields = []
        for name in PAYOUT_METADATA_FIELDS:
            if name in changes:
                value = changes[name]
                if value is None and name != 'payment_date':
                    value = ''
                setattr(payout, name, value)
                update_fields.append(name)

        old_status = payout.status
        new_status = changes.get('status') or old_status
        if new_status != old_status:
            if new_status not in PAYOUT_TRANSITIONS.get(old_status, set()):
                raise InvalidStateTransition(messages.PAYOUT['invalid_transition']['error'])
            payout.status = new_status
            update_fields.append('status')
            if new_status == PAYOUT_STATUS_PAID:
                payout.paid_by = updated_by or ''
                payout.paid_at = timezone.now()
                if not payout.payment_date:
                    payout.payment_date = school_now().date()
                update_fields.extend(['paid_by', 'paid_at', 'payment_date'])

        if update_fields:
            update_fields.append('updated_at')
            payout.save(update_fields=sorted(set(update_fields)))

        if new_status != old_status:
            booking_notifier.notify_payout_status_changed(payout, old_status, new_status)

    if new_status != old_status:
        logger.info(f"Payout {payout.id} status changed: {old_status} -> {new_status}")
    return payout


def payout_trainings(payout: InstructorPayout):
    """
    Bookings covered by a payout, with the instructor's share of each.

    Returns:
        List of (booking, instructor_earnings) pairs
    """
    bookings = completed_bookings(
        payout.instructor_id,
        payout.period_start,
        payout.period_end,
        exclude_payout_id=payout.id,
    )
    return [(booking, instructor_share(booking.price_total, payout.admin_percentage)) for booking in bookings]


def unpaid_earnings(period_start, period_end, instructor_id: Optional[str] = None):
    """
    Per-instructor earnings not yet covered by a paid payout.

    Instructors with nothing to pay are left out.
    """
    if period_start > period_end:
        raise InvalidOperation(messages.PAYOUT['invalid_period']['error'])

    instructors = Instructor.objects.all()
    if instructor_id:
        instructors = instructors.filter(id=instructor_id)

    rows = []
    for instructor in instructors:
        figures = compute(instructor, period_start, period_end)
        if not figures.bookings:
            continue
        rows.append({
            'instructor_id': instructor.id,
            'instructor_name': instructor.full_name,
            'trainings_count': figures.trainings_count,
            'total_revenue': figures.total_revenue,
            'admin_percentage': figures.admin_percentage,
            'admin_commission': figures.admin_commission,
            'instructor_earnings': figures.instructor_earnings,
        })
    return rows
