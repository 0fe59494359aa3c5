"""
Celery tasks for the capacity store.
"""
import logging
from datetime import timedelta

from celery import shared_task
from django.conf import settings
from django.utils import timezone

logger = logging.getLogger(__name__)


@shared_task(name='schedules.release_expired_holds')
def release_expired_holds():
    """
    Reclaim capacity of checkouts that were never paid.

    Runs every minute via Celery Beat. Pending bookings older than the
    hold window are cancelled with their capacity returned; expired holds
    left on slots without an active booking are cleared.

    Returns:
        dict with counts of cancelled bookings and released slots
    """
    from apps.bookings.models import Booking
    from apps.bookings.services.cancellation import cancellation_service
    from apps.core.utils.constants import BOOKING_STATUS_PENDING, SLOT_STATUS_HELD
    from apps.schedules.models import Slot
    from apps.schedules.services.capacity import capacity_service
    from django.db import transaction

    now = timezone.now()
    cutoff = now - timedelta(minutes=settings.BOOKING_HOLD_MINUTES)

    expired_ids = list(
        Booking.objects.filter(status=BOOKING_STATUS_PENDING, created_at__lt=cutoff).values_list('id', flat=True)
    )
    cancelled = 0
    for booking_id in expired_ids:
        try:
            if cancellation_service.expire(booking_id):
                cancelled += 1
        except Exception as e:
            logger.error(f"Failed to expire booking {booking_id}: {e}", exc_info=True)

    orphan_ids = list(
        Slot.objects.filter(status=SLOT_STATUS_HELD, hold_until__lt=now).values_list('id', flat=True)
    )
    released = 0
    for slot_id in orphan_ids:
        try:
            with transaction.atomic():
                if capacity_service.release_orphan_hold(slot_id):
                    released += 1
        except Exception as e:
            logger.error(f"Failed to release hold on slot {slot_id}: {e}", exc_info=True)

    if cancelled or released:
        logger.info(f"Expired holds: {cancelled} bookings cancelled, {released} slots released")
    return {'cancelled_bookings': cancelled, 'released_slots': released}
