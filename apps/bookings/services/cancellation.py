"""
Cancellation of bookings by an administrator or by the hold reaper.
"""
import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound

from apps.bookings.models import Booking
from apps.core import messages
from apps.core.exceptions import InvalidStateTransition
from apps.core.utils.constants import (
    BOOKING_ACTIVE_STATUSES,
    BOOKING_STATUS_PENDING,
    BOOKING_STATUS_CANCELLED,
    PAYMENT_STATUS_PENDING,
    PAYMENT_STATUS_COMPLETED,
    PAYMENT_STATUS_CANCELLED,
    CANCEL_REASON_HOLD_EXPIRED,
)
from apps.notifications.services.notifier import booking_notifier
from apps.payments.models import PaymentTransaction
from apps.schedules.services.capacity import capacity_service

logger = logging.getLogger(__name__)


class BookingCancellationService:

    @staticmethod
    def cancel(booking_id, reason, cancelled_by='admin'):
        """
        Cancel a pending or confirmed booking and return its capacity.

        A pending payment is cancelled with it. A completed payment is
        refunded through the gateway after commit; the booking becomes
        ``refunded`` once the gateway confirms the refund by callback.

        Args:
            booking_id: Booking UUID
            reason: Free-text cancellation reason
            cancelled_by: Who asked for it, for the log

        Returns:
            The cancelled Booking

        Raises:
            NotFound: unknown booking
            InvalidStateTransition: booking already cancelled or refunded
        """
        from apps.bookings.tasks import refund_booking_payment, cancel_gateway_payment

        with transaction.atomic():
            try:
                booking = Booking.objects.select_for_update().select_related('client').get(id=booking_id)
            except (Booking.DoesNotExist, DjangoValidationError):
                raise NotFound('Booking not found')

            if booking.status not in BOOKING_ACTIVE_STATUSES:
                raise InvalidStateTransition(messages.BOOKING['cannot_cancel']['error'])

            was_confirmed = booking.status != BOOKING_STATUS_PENDING
            payment_transaction = PaymentTransaction.objects.select_for_update().filter(booking=booking).first()

            booking.status = BOOKING_STATUS_CANCELLED
            booking.cancellation_reason = reason or ''
            booking.cancelled_at = timezone.now()
            booking.save(update_fields=['status', 'cancellation_reason', 'cancelled_at', 'updated_at'])

            capacity_service.release_for_booking(booking)

            refund_needed = False
            if payment_transaction is not None:
                if payment_transaction.status == PAYMENT_STATUS_PENDING:
                    payment_transaction.status = PAYMENT_STATUS_CANCELLED
                    payment_transaction.save(update_fields=['status', 'updated_at'])
                    if payment_transaction.provider_payment_id:
                        transaction.on_commit(lambda: cancel_gateway_payment.delay(str(payment_transaction.id)))
                elif payment_transaction.status == PAYMENT_STATUS_COMPLETED:
                    refund_needed = True
                    transaction.on_commit(lambda: refund_booking_payment.delay(str(payment_transaction.id)))

            booking_notifier.notify_booking_cancelled(booking, refund=refund_needed)
            if was_confirmed:
                booking_notifier.notify_instructor(booking, 'cancelled')

        logger.info(
            f"Booking {booking.id} cancelled by {cancelled_by}: {reason or '-'}"
            f"{' (refund requested)' if refund_needed else ''}"
        )
        return booking

    @staticmethod
    def expire(booking_id):
        """
        Cancel a pending booking whose payment window has passed.

        Returns True if the booking was cancelled, False if it was settled
        in the meantime.
        """
        from apps.bookings.tasks import cancel_gateway_payment

        with transaction.atomic():
            booking = Booking.objects.select_for_update().filter(id=booking_id).first()
            if booking is None or booking.status != BOOKING_STATUS_PENDING:
                return False

            booking.status = BOOKING_STATUS_CANCELLED
            booking.cancellation_reason = CANCEL_REASON_HOLD_EXPIRED
            booking.cancelled_at = timezone.now()
            booking.save(update_fields=['status', 'cancellation_reason', 'cancelled_at', 'updated_at'])

            payment_transaction = PaymentTransaction.objects.select_for_update().filter(booking=booking).first()
            if payment_transaction is not None and payment_transaction.status == PAYMENT_STATUS_PENDING:
                payment_transaction.status = PAYMENT_STATUS_CANCELLED
                payment_transaction.save(update_fields=['status', 'updated_at'])
                if payment_transaction.provider_payment_id:
                    transaction.on_commit(lambda: cancel_gateway_payment.delay(str(payment_transaction.id)))

            capacity_service.release_for_booking(booking)
            booking_notifier.notify_booking_cancelled(booking)

        logger.info(f"Booking {booking_id} cancelled: {CANCEL_REASON_HOLD_EXPIRED}")
        return True


# Singleton instance
cancellation_service = BookingCancellationService()
