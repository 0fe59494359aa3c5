"""
Reconciliation of asynchronous payment results.

A gateway callback is authenticated, resolved to a booking and applied
as a single state transition chosen by the booking's current status.
Re-delivery of a signal that was already applied finds the booking in
its new status and falls through to a no-op.
"""
import json
import logging
import time
from dataclasses import dataclass
from typing import Optional

from django.db import transaction
from django.utils import timezone

from apps.bookings.models import Booking
from apps.core.utils.constants import (
    BOOKING_STATUS_PENDING,
    BOOKING_STATUS_CONFIRMED,
    BOOKING_STATUS_CANCELLED,
    BOOKING_STATUS_REFUNDED,
    PAYMENT_STATUS_PENDING,
    PAYMENT_STATUS_COMPLETED,
    PAYMENT_STATUS_FAILED,
    PAYMENT_STATUS_CANCELLED,
    GATEWAY_SUCCESS,
    GATEWAY_FAILED,
    GATEWAY_REFUNDED,
    CANCEL_REASON_GATEWAY_REJECTED,
    CANCEL_REASON_REFUNDED,
    PAYMENT_METADATA_LATE_PAYMENT,
)
from apps.notifications.services.notifier import booking_notifier
from apps.payments.gateways import WebhookData, booking_id_from_reference, get_gateway
from apps.payments.models import PaymentTransaction, WebhookLog
from apps.schedules.services.capacity import capacity_service

logger = logging.getLogger(__name__)

# Outcomes
CONFIRMED = 'confirmed'
CANCELLED = 'cancelled'
REFUNDED = 'refunded'
STATUS_RECORDED = 'status_recorded'
LATE_PAYMENT = 'late_payment'
NOOP = 'noop'
INVALID_SIGNATURE = 'invalid_signature'
UNKNOWN_BOOKING = 'unknown_booking'


@dataclass
class ReconciliationOutcome:
    action: str
    booking_id: Optional[str] = None
    booking_status: Optional[str] = None


def _payload_for_log(body):
    try:
        payload = json.loads(body)
        return payload if isinstance(payload, dict) else {'payload': payload}
    except (TypeError, ValueError):
        return {'raw': body.decode('utf-8', errors='replace') if isinstance(body, bytes) else str(body)}


class ReconciliationHandler:
    """
    Applies gateway callbacks to bookings and payment transactions
    """

    def __init__(self, gateway=None):
        self.gateway = gateway or get_gateway()

    def _log(self, **fields):
        try:
            return WebhookLog.objects.create(provider=self.gateway.name, **fields)
        except Exception as e:
            logger.error(f"Failed to log payment callback: {e}")
            return None

    @staticmethod
    def _update_log(log, method, *args, **kwargs):
        if log is None:
            return
        try:
            getattr(log, method)(*args, **kwargs)
        except Exception as e:
            logger.error(f"Failed to update webhook log {log.id}: {e}")

    def handle_callback(self, body: bytes, headers) -> ReconciliationOutcome:
        """
        Authenticate, resolve and apply one gateway callback.

        Invalid signatures and unknown order references are logged and
        returned as outcomes without any state change. Errors while
        applying the transition propagate after the unit rolls back.
        """
        started = time.monotonic()
        payload = self.gateway.verify_webhook(body, headers)

        if payload is None:
            logger.warning(f"Rejected {self.gateway.name} callback: invalid signature")
            log = self._log(payload=_payload_for_log(body), signature_valid=False)
            self._update_log(log, 'mark_failed', 'invalid signature', time.monotonic() - started)
            return ReconciliationOutcome(action=INVALID_SIGNATURE)

        data = self.gateway.parse_webhook(payload)
        booking_id = booking_id_from_reference(data.order_reference)
        log = self._log(
            payload=payload,
            signature_valid=True,
            payment_id=data.payment_id or '',
            order_reference=data.order_reference or '',
            status=data.raw_status,
            booking_id=booking_id,
        )

        if booking_id is None:
            logger.warning(f"Payment callback with unrecognised order reference {data.order_reference!r}")
            self._update_log(log, 'mark_failed', 'unrecognised order reference', time.monotonic() - started)
            return ReconciliationOutcome(action=UNKNOWN_BOOKING)

        try:
            outcome = self.apply(booking_id, data)
        except Exception as e:
            logger.error(f"Reconciliation of booking {booking_id} failed: {e}", exc_info=True)
            self._update_log(log, 'mark_failed', str(e), time.monotonic() - started)
            raise

        if outcome.action == UNKNOWN_BOOKING:
            if log is not None:
                log.booking_id = None
            self._update_log(log, 'mark_failed', 'unknown booking', time.monotonic() - started)
        else:
            self._update_log(log, 'mark_processed', time.monotonic() - started)
        return outcome

    def apply(self, booking_id, data: WebhookData) -> ReconciliationOutcome:
        """
        Apply a parsed signal to a booking inside one atomic unit.
        """
        with transaction.atomic():
            booking = Booking.objects.select_for_update().filter(id=booking_id).first()
            if booking is None:
                logger.warning(f"Payment callback for unknown booking {booking_id}")
                return ReconciliationOutcome(action=UNKNOWN_BOOKING, booking_id=str(booking_id))

            payment_transaction = PaymentTransaction.objects.select_for_update().get(booking=booking)
            if data.payment_id and payment_transaction.provider_payment_id \
                    and data.payment_id != payment_transaction.provider_payment_id:
                logger.warning(
                    f"Booking {booking.id}: callback payment {data.payment_id} differs from "
                    f"recorded {payment_transaction.provider_payment_id}"
                )
            if data.payment_id and not payment_transaction.provider_payment_id:
                payment_transaction.provider_payment_id = data.payment_id
            payment_transaction.provider_status = data.raw_status

            action = self._transition(booking, payment_transaction, data)
            payment_transaction.save()

        return ReconciliationOutcome(action=action, booking_id=str(booking.id), booking_status=booking.status)

    def _transition(self, booking, payment_transaction, data):
        status = booking.status

        if data.status == GATEWAY_SUCCESS:
            if status == BOOKING_STATUS_PENDING:
                return self._confirm(booking, payment_transaction)
            if status == BOOKING_STATUS_CANCELLED and payment_transaction.status != PAYMENT_STATUS_COMPLETED:
                return self._record_late_payment(booking, payment_transaction, data)
            return NOOP

        if data.status == GATEWAY_FAILED:
            if status == BOOKING_STATUS_PENDING:
                return self._reject(booking, payment_transaction)
            return NOOP if status != BOOKING_STATUS_CONFIRMED else STATUS_RECORDED

        if data.status == GATEWAY_REFUNDED:
            if status in (BOOKING_STATUS_PENDING, BOOKING_STATUS_CONFIRMED):
                return self._refund(booking, payment_transaction)
            if status == BOOKING_STATUS_CANCELLED:
                # Only money that was actually collected can come back
                if payment_transaction.is_collected:
                    return self._refund(booking, payment_transaction)
                logger.warning(f"Booking {booking.id}: refund reported for a payment that never completed")
                return STATUS_RECORDED
            return NOOP

        logger.info(f"Booking {booking.id}: intermediate payment status {data.raw_status}")
        return STATUS_RECORDED

    def _confirm(self, booking, payment_transaction):
        now = timezone.now()
        booking.status = BOOKING_STATUS_CONFIRMED
        booking.confirmed_at = now
        booking.save(update_fields=['status', 'confirmed_at', 'updated_at'])

        payment_transaction.status = PAYMENT_STATUS_COMPLETED
        payment_transaction.completed_at = now

        if booking.slot_id and not capacity_service.book_slot(booking.slot_id, payment_transaction):
            logger.error(f"Booking {booking.id} confirmed but slot {booking.slot_id} is not held by it")
            booking_notifier.notify_admin_alert(
                f"Booking {booking.id} was paid but its slot is occupied by another booking. Check the schedule.",
                booking=booking,
            )

        booking_notifier.notify_booking_confirmed(booking)
        booking_notifier.notify_instructor(booking, 'confirmed')
        logger.info(f"Booking {booking.id} confirmed by payment {payment_transaction.provider_payment_id}")
        return CONFIRMED

    def _record_late_payment(self, booking, payment_transaction, data):
        """
        The gateway took money for a booking that is already cancelled.

        The payment is noted in the transaction metadata so that it shows
        up among stuck payments; administrators are alerted once.
        """
        if payment_transaction.metadata.get(PAYMENT_METADATA_LATE_PAYMENT):
            return NOOP

        payment_transaction.metadata = {
            **payment_transaction.metadata,
            PAYMENT_METADATA_LATE_PAYMENT: {
                'payment_id': data.payment_id or payment_transaction.provider_payment_id,
                'amount': str(data.amount) if data.amount is not None else str(payment_transaction.amount),
                'received_at': timezone.now().isoformat(),
            },
        }
        logger.warning(
            f"Booking {booking.id} was paid after cancellation "
            f"(payment {payment_transaction.provider_payment_id})"
        )
        booking_notifier.notify_admin_alert(
            f"Payment {payment_transaction.provider_payment_id} received for cancelled booking "
            f"{booking.id} ({booking.client.full_name}, {booking.date:%d.%m.%Y}). "
            f"Rebook or refund it from stuck payments.",
            booking=booking,
        )
        return LATE_PAYMENT

    def _reject(self, booking, payment_transaction):
        booking.status = BOOKING_STATUS_CANCELLED
        booking.cancellation_reason = CANCEL_REASON_GATEWAY_REJECTED
        booking.cancelled_at = timezone.now()
        booking.save(update_fields=['status', 'cancellation_reason', 'cancelled_at', 'updated_at'])

        payment_transaction.status = PAYMENT_STATUS_FAILED
        capacity_service.release_for_booking(booking)

        booking_notifier.notify_booking_cancelled(booking)
        logger.info(f"Booking {booking.id} cancelled: {CANCEL_REASON_GATEWAY_REJECTED}")
        return CANCELLED

    def _refund(self, booking, payment_transaction):
        previous = booking.status
        now = timezone.now()
        booking.status = BOOKING_STATUS_REFUNDED
        booking.refunded_at = now
        if not booking.cancellation_reason:
            booking.cancellation_reason = CANCEL_REASON_REFUNDED
        if not booking.cancelled_at:
            booking.cancelled_at = now
        booking.save(update_fields=['status', 'refunded_at', 'cancellation_reason', 'cancelled_at', 'updated_at'])

        if payment_transaction.status == PAYMENT_STATUS_PENDING or payment_transaction.is_collected:
            payment_transaction.status = PAYMENT_STATUS_CANCELLED

        # A cancelled booking has already given its capacity back
        if previous != BOOKING_STATUS_CANCELLED:
            capacity_service.release_for_booking(booking)

        booking_notifier.notify_booking_cancelled(booking, refund=True)
        if previous == BOOKING_STATUS_CONFIRMED:
            booking_notifier.notify_instructor(booking, 'refunded')
        logger.info(f"Booking {booking.id} refunded (was {previous})")
        return REFUNDED
