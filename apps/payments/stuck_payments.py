"""
Stuck payments: money collected for a booking that ended up cancelled.

A payment gets stuck when the gateway confirms it after the booking was
already cancelled (expired hold, earlier rejection), or when a paid
booking was cancelled and its refund never reached the gateway. An
administrator resolves each one by rebooking the training or refunding.
"""
import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import Q
from django.utils import timezone
from rest_framework.exceptions import NotFound

from apps.bookings.models import Booking
from apps.core import messages
from apps.core.exceptions import CapacityUnavailable, InvalidStateTransition
from apps.core.utils.constants import (
    BOOKING_STATUS_CANCELLED,
    BOOKING_STATUS_CONFIRMED,
    PAYMENT_STATUS_COMPLETED,
    PAYMENT_METADATA_LATE_PAYMENT,
    PAYMENT_METADATA_REFUND,
    PAYMENT_METADATA_REBOOKED,
)
from apps.core.utils.helpers import school_now
from apps.notifications.services.notifier import booking_notifier
from apps.payments.models import PaymentTransaction
from apps.schedules.services.capacity import capacity_service

logger = logging.getLogger(__name__)


class StuckPaymentService:
    """
    Lists stuck payments and resolves them
    """

    @staticmethod
    def queryset():
        return (
            PaymentTransaction.objects
            .select_related('booking', 'booking__instructor', 'client')
            .filter(booking__status=BOOKING_STATUS_CANCELLED)
            .filter(Q(status=PAYMENT_STATUS_COMPLETED) | Q(metadata__has_key=PAYMENT_METADATA_LATE_PAYMENT))
            .exclude(metadata__has_key=PAYMENT_METADATA_REFUND)
        )

    @staticmethod
    def is_stuck(booking, payment_transaction):
        return (
            booking.status == BOOKING_STATUS_CANCELLED
            and payment_transaction.is_collected
            and PAYMENT_METADATA_REFUND not in payment_transaction.metadata
        )

    @classmethod
    def _lock(cls, transaction_id):
        try:
            payment_transaction = PaymentTransaction.objects.select_for_update().get(id=transaction_id)
        except (PaymentTransaction.DoesNotExist, ValueError, DjangoValidationError):
            raise NotFound('Payment not found')
        booking = Booking.objects.select_for_update().select_related('client').get(id=payment_transaction.booking_id)
        if not cls.is_stuck(booking, payment_transaction):
            raise InvalidStateTransition('This payment is not stuck')
        return booking, payment_transaction

    @classmethod
    def rebook(cls, transaction_id, rebooked_by: str = 'admin') -> Booking:
        """
        Restore the cancelled booking the payment was made for.

        The booking's capacity is claimed again; if it has been taken
        meanwhile, the payment stays stuck and should be refunded.

        Raises:
            NotFound: unknown payment
            InvalidStateTransition: payment is not stuck
            CapacityUnavailable: the slot or the seats are gone
        """
        with transaction.atomic():
            booking, payment_transaction = cls._lock(transaction_id)
            if booking.starts_at <= school_now():
                raise InvalidStateTransition('The training has already started')

            if booking.slot_id:
                if not capacity_service.book_slot(booking.slot_id, payment_transaction):
                    raise CapacityUnavailable(messages.BOOKING['slot_not_available']['error'])
            elif booking.group_session_id:
                session = capacity_service.lock_session(booking.group_session_id)
                capacity_service.claim_seats(session, booking.participants_count)

            now = timezone.now()
            booking.status = BOOKING_STATUS_CONFIRMED
            booking.confirmed_at = now
            booking.cancellation_reason = ''
            booking.cancelled_at = None
            booking.save(update_fields=['status', 'confirmed_at', 'cancellation_reason', 'cancelled_at', 'updated_at'])

            payment_transaction.status = PAYMENT_STATUS_COMPLETED
            payment_transaction.completed_at = payment_transaction.completed_at or now
            payment_transaction.metadata = {
                **payment_transaction.metadata,
                PAYMENT_METADATA_REBOOKED: {'by': rebooked_by, 'at': now.isoformat()},
            }
            payment_transaction.save(update_fields=['status', 'completed_at', 'metadata', 'updated_at'])

            booking_notifier.notify_booking_confirmed(booking)
            booking_notifier.notify_instructor(booking, 'confirmed')

        logger.info(f"Stuck payment {payment_transaction.id} rebooked as booking {booking.id} by {rebooked_by}")
        return booking

    @classmethod
    def refund(cls, transaction_id, requested_by: str = 'admin') -> PaymentTransaction:
        """
        Send the money back through the gateway.

        The refund request goes out after commit; the booking turns
        ``refunded`` when the gateway confirms it by callback.
        """
        from apps.bookings.tasks import refund_booking_payment

        with transaction.atomic():
            booking, payment_transaction = cls._lock(transaction_id)
            if not payment_transaction.provider_payment_id:
                raise InvalidStateTransition('The payment has no gateway id and must be refunded manually')

            payment_transaction.metadata = {
                **payment_transaction.metadata,
                PAYMENT_METADATA_REFUND: {
                    'status': 'requested',
                    'requested_by': requested_by,
                    'requested_at': timezone.now().isoformat(),
                },
            }
            payment_transaction.save(update_fields=['metadata', 'updated_at'])
            transaction.on_commit(lambda: refund_booking_payment.delay(str(payment_transaction.id)))

        logger.info(f"Refund of stuck payment {payment_transaction.id} (booking {booking.id}) requested by {requested_by}")
        return payment_transaction


# Singleton instance
stuck_payment_service = StuckPaymentService()
