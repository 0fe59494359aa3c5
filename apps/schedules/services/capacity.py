"""
Capacity Store access.

Every mutation of a Slot or a GroupSession seat counter goes through this
module and happens on a row locked with SELECT ... FOR UPDATE. Callers own
the surrounding transaction.atomic() block; the lock is held until it
commits.
"""
import logging
from datetime import timedelta
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound

from apps.core.exceptions import CapacityUnavailable, InsufficientSeats
from apps.core import messages
from apps.core.utils.constants import (
    SLOT_STATUS_AVAILABLE,
    SLOT_STATUS_HELD,
    SLOT_STATUS_BOOKED,
    SLOT_STATUS_GROUP,
    SESSION_STATUS_OPEN,
    SESSION_STATUS_CONFIRMED,
    SESSION_STATUS_CANCELLED,
    LEVEL_BEGINNER,
    BOOKING_ACTIVE_STATUSES,
)
from apps.schedules.models import Slot, GroupSession

logger = logging.getLogger(__name__)

SESSION_BOOKABLE_STATUSES = (SESSION_STATUS_OPEN, SESSION_STATUS_CONFIRMED)

# Seat limits of a group opened on an instructor slot
SLOT_GROUP_MIN_PARTICIPANTS = 2
SLOT_GROUP_MAX_PARTICIPANTS = 8


class CapacityService:
    """
    Lock-then-mutate operations on slots and group sessions
    """

    @staticmethod
    def _require_atomic():
        if not transaction.get_connection().in_atomic_block:
            raise RuntimeError('Capacity rows must be locked inside transaction.atomic()')

    @staticmethod
    def lock_slot(slot_id):
        """
        Lock a slot row for the rest of the current transaction.

        Raises:
            NotFound: slot does not exist
        """
        CapacityService._require_atomic()
        try:
            return Slot.objects.select_for_update().get(id=slot_id)
        except (Slot.DoesNotExist, DjangoValidationError):
            raise NotFound('Slot not found')

    @staticmethod
    def lock_session(session_id):
        CapacityService._require_atomic()
        try:
            return GroupSession.objects.select_for_update().get(id=session_id)
        except (GroupSession.DoesNotExist, DjangoValidationError):
            raise NotFound('Group session not found')

    @staticmethod
    def claim_slot(slot, payment_transaction):
        """
        Put a hold on a locked, available slot.

        Args:
            slot: Slot returned by lock_slot()
            payment_transaction: PaymentTransaction that owns the hold

        Raises:
            CapacityUnavailable: slot is held or booked by someone else
        """
        if slot.status != SLOT_STATUS_AVAILABLE:
            raise CapacityUnavailable(messages.BOOKING['slot_not_available']['error'])

        slot.status = SLOT_STATUS_HELD
        slot.hold_until = timezone.now() + timedelta(minutes=settings.BOOKING_HOLD_MINUTES)
        slot.hold_transaction = payment_transaction
        slot.save(update_fields=['status', 'hold_until', 'hold_transaction', 'updated_at'])
        logger.info(f"Slot {slot.id} held by transaction {payment_transaction.id} until {slot.hold_until}")
        return slot

    @staticmethod
    def book_slot(slot_id, payment_transaction):
        """
        Turn a hold into a booking after successful payment.

        A slot that is still available (hold reaped but booking pending)
        is booked as well. Returns False if the slot belongs to someone else.
        """
        slot = CapacityService.lock_slot(slot_id)
        if slot.status in (SLOT_STATUS_BOOKED, SLOT_STATUS_GROUP):
            return False
        if slot.status == SLOT_STATUS_HELD and slot.hold_transaction_id not in (None, payment_transaction.id):
            logger.warning(
                f"Slot {slot.id} is held by transaction {slot.hold_transaction_id}, "
                f"not {payment_transaction.id}; leaving it untouched"
            )
            return False

        slot.status = SLOT_STATUS_BOOKED
        slot.hold_until = None
        slot.hold_transaction = None
        slot.save(update_fields=['status', 'hold_until', 'hold_transaction', 'updated_at'])
        logger.info(f"Slot {slot.id} booked")
        return True

    @staticmethod
    def release_slot(slot_id, booking):
        """
        Return a slot to the pool on behalf of a booking.

        Only releases when the hold or booking on the slot belongs to
        ``booking``. Returns True if the slot was released.
        """
        from apps.bookings.models import Booking

        slot = CapacityService.lock_slot(slot_id)
        # Available, or taken over by a group session that owns it now
        if slot.status in (SLOT_STATUS_AVAILABLE, SLOT_STATUS_GROUP):
            return False

        if slot.status == SLOT_STATUS_HELD:
            owner_tx_id = slot.hold_transaction_id
            booking_tx_id = getattr(getattr(booking, 'payment_transaction', None), 'id', None)
            if owner_tx_id is not None and owner_tx_id != booking_tx_id:
                return False
        else:
            other_active = Booking.objects.filter(
                slot_id=slot.id,
                status__in=BOOKING_ACTIVE_STATUSES,
            ).exclude(id=booking.id).exists()
            if other_active:
                return False

        slot.status = SLOT_STATUS_AVAILABLE
        slot.hold_until = None
        slot.hold_transaction = None
        slot.save(update_fields=['status', 'hold_until', 'hold_transaction', 'updated_at'])
        logger.info(f"Slot {slot.id} released by booking {booking.id}")
        return True

    @staticmethod
    def release_orphan_hold(slot_id):
        """
        Release an expired hold whose owning booking is no longer pending.
        """
        from apps.bookings.models import Booking

        slot = CapacityService.lock_slot(slot_id)
        if slot.status != SLOT_STATUS_HELD or not slot.hold_until or slot.hold_until > timezone.now():
            return False

        owner_pending = slot.hold_transaction_id is not None and Booking.objects.filter(
            payment_transaction__id=slot.hold_transaction_id,
            status__in=BOOKING_ACTIVE_STATUSES,
        ).exists()
        if owner_pending:
            return False

        slot.status = SLOT_STATUS_AVAILABLE
        slot.hold_until = None
        slot.hold_transaction = None
        slot.save(update_fields=['status', 'hold_until', 'hold_transaction', 'updated_at'])
        logger.info(f"Released orphan hold on slot {slot.id}")
        return True

    @staticmethod
    def open_slot_group(slot, tariff, sport_type, count):
        """
        Return the locked group session running on a locked slot.

        The first group-tariff booking on an available slot opens the
        session and marks the slot as taken by it; later ones join it.

        Raises:
            CapacityUnavailable: slot is held or booked individually
        """
        if slot.status == SLOT_STATUS_GROUP:
            session = GroupSession.objects.select_for_update().filter(slot=slot).first()
            if session is None:
                logger.error(f"Slot {slot.id} is marked as group but has no group session")
                raise CapacityUnavailable(messages.BOOKING['slot_not_available']['error'])
            return session

        if slot.status != SLOT_STATUS_AVAILABLE:
            raise CapacityUnavailable(messages.BOOKING['slot_not_available']['error'])

        base = max(SLOT_GROUP_MIN_PARTICIPANTS, tariff.participants)
        session = GroupSession.objects.create(
            slot=slot,
            instructor_id=slot.instructor_id,
            date=slot.date,
            start_time=slot.start_time,
            end_time=slot.end_time,
            location=slot.location,
            sport_type=sport_type,
            level=LEVEL_BEGINNER,
            min_participants=SLOT_GROUP_MIN_PARTICIPANTS,
            max_participants=max(count, base, SLOT_GROUP_MAX_PARTICIPANTS),
            price_per_participant=(tariff.price / base).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP),
            status=SESSION_STATUS_OPEN,
        )
        slot.status = SLOT_STATUS_GROUP
        slot.hold_until = None
        slot.hold_transaction = None
        slot.save(update_fields=['status', 'hold_until', 'hold_transaction', 'updated_at'])
        logger.info(f"Slot {slot.id} opened as group session {session.id}")
        return session

    @staticmethod
    def claim_seats(session, count):
        """
        Take ``count`` seats of a locked group session.

        Raises:
            CapacityUnavailable: session is cancelled
            InsufficientSeats: fewer than ``count`` seats remain
        """
        if session.status not in SESSION_BOOKABLE_STATUSES:
            raise CapacityUnavailable(messages.BOOKING['session_closed']['error'])
        if session.current_participants + count > session.max_participants:
            raise InsufficientSeats(messages.BOOKING['insufficient_seats']['error'])

        session.current_participants += count
        session.save(update_fields=['current_participants', 'updated_at'])
        logger.info(
            f"Group session {session.id}: claimed {count} seats "
            f"({session.current_participants}/{session.max_participants})"
        )
        return session

    @staticmethod
    def release_seats(session_id, count):
        session = CapacityService.lock_session(session_id)
        released = min(count, session.current_participants)
        if released != count:
            logger.warning(
                f"Group session {session.id}: releasing {count} seats but only "
                f"{session.current_participants} are taken"
            )
        session.current_participants -= released
        session.save(update_fields=['current_participants', 'updated_at'])
        if session.slot_id and session.current_participants == 0:
            CapacityService._close_slot_group(session)
        logger.info(
            f"Group session {session.id}: released {released} seats "
            f"({session.current_participants}/{session.max_participants})"
        )
        return session

    @staticmethod
    def _close_slot_group(session):
        """The last seat of a slot group is gone: give the slot back to individual booking."""
        slot = CapacityService.lock_slot(session.slot_id)
        if slot.status == SLOT_STATUS_GROUP:
            slot.status = SLOT_STATUS_AVAILABLE
            slot.save(update_fields=['status', 'updated_at'])
        session.status = SESSION_STATUS_CANCELLED
        session.slot = None
        session.save(update_fields=['status', 'slot', 'updated_at'])
        logger.info(f"Group session {session.id} closed, slot {slot.id} is available again")

    @staticmethod
    def release_for_booking(booking):
        """Release whatever capacity unit the booking claims."""
        if booking.slot_id:
            return CapacityService.release_slot(booking.slot_id, booking)
        if booking.group_session_id:
            CapacityService.release_seats(booking.group_session_id, booking.participants_count)
            return True
        return False


# Singleton instance
capacity_service = CapacityService()
