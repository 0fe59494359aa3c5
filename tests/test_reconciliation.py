import json
import uuid
from unittest import mock

import pytest

from apps.bookings.models import Booking
from apps.bookings.services.reservation import ReservationCoordinator
from apps.bookings.services.cancellation import cancellation_service
from apps.core.utils.constants import (
    BOOKING_STATUS_CONFIRMED,
    BOOKING_STATUS_CANCELLED,
    BOOKING_STATUS_REFUNDED,
    PAYMENT_STATUS_COMPLETED,
    PAYMENT_STATUS_FAILED,
    PAYMENT_STATUS_CANCELLED,
    SLOT_STATUS_AVAILABLE,
    SLOT_STATUS_BOOKED,
    CANCEL_REASON_GATEWAY_REJECTED,
)
from apps.payments import reconciliation
from apps.payments.gateways import order_reference_for
from apps.payments.models import WebhookLog
from apps.payments.reconciliation import ReconciliationHandler
from apps.schedules.models import Slot, GroupSession
from tests.test_reservation import _group, _individual

pytestmark = pytest.mark.django_db


@pytest.fixture
def notifier():
    with mock.patch.object(reconciliation, 'booking_notifier') as patched:
        yield patched


@pytest.fixture
def pending_booking(gateway, slot, tariff):
    return ReservationCoordinator(gateway=gateway).reserve_individual(_individual(slot, tariff)).booking


@pytest.fixture
def pending_group_booking(gateway, group_session):
    return ReservationCoordinator(gateway=gateway).reserve_group(_group(group_session, 2)).booking


def _deliver(gateway, booking, status, payment_id=None):
    booking.refresh_from_db()
    payload = gateway.build_callback(
        order_reference=order_reference_for(booking.id),
        payment_id=payment_id or booking.payment_transaction.provider_payment_id,
        status=status,
        amount=booking.price_total,
    )
    return ReconciliationHandler(gateway=gateway).handle_callback(json.dumps(payload).encode(), {})


def test_success_confirms_booking_and_books_slot(gateway, pending_booking, notifier):
    outcome = _deliver(gateway, pending_booking, 'CONFIRMED')

    booking = Booking.objects.get(id=pending_booking.id)
    slot = Slot.objects.get(id=booking.slot_id)
    assert outcome.action == reconciliation.CONFIRMED
    assert booking.status == BOOKING_STATUS_CONFIRMED
    assert booking.confirmed_at is not None
    assert booking.payment_transaction.status == PAYMENT_STATUS_COMPLETED
    assert booking.payment_transaction.provider_status == 'CONFIRMED'
    assert slot.status == SLOT_STATUS_BOOKED
    assert slot.hold_transaction_id is None
    notifier.notify_booking_confirmed.assert_called_once()
    notifier.notify_instructor.assert_called_once()


def test_replayed_success_is_a_noop(gateway, pending_booking, notifier):
    _deliver(gateway, pending_booking, 'CONFIRMED')
    outcome = _deliver(gateway, pending_booking, 'CONFIRMED')

    assert outcome.action == reconciliation.NOOP
    assert Booking.objects.get(id=pending_booking.id).status == BOOKING_STATUS_CONFIRMED
    notifier.notify_booking_confirmed.assert_called_once()


def test_rejection_cancels_and_releases_slot(gateway, pending_booking, notifier):
    outcome = _deliver(gateway, pending_booking, 'REJECTED')

    booking = Booking.objects.get(id=pending_booking.id)
    assert outcome.action == reconciliation.CANCELLED
    assert booking.status == BOOKING_STATUS_CANCELLED
    assert booking.cancellation_reason == CANCEL_REASON_GATEWAY_REJECTED
    assert booking.payment_transaction.status == PAYMENT_STATUS_FAILED
    assert Slot.objects.get(id=booking.slot_id).status == SLOT_STATUS_AVAILABLE
    notifier.notify_booking_cancelled.assert_called_once()


def test_replayed_rejection_releases_seats_once(gateway, pending_group_booking, notifier):
    _deliver(gateway, pending_group_booking, 'REJECTED')
    _deliver(gateway, pending_group_booking, 'REJECTED')

    session = GroupSession.objects.get(id=pending_group_booking.group_session_id)
    assert session.current_participants == 0
    notifier.notify_booking_cancelled.assert_called_once()


def test_intermediate_status_only_records_raw_status(gateway, pending_booking, notifier):
    outcome = _deliver(gateway, pending_booking, 'AUTHORIZED')

    booking = Booking.objects.get(id=pending_booking.id)
    assert outcome.action == reconciliation.STATUS_RECORDED
    assert booking.status == pending_booking.status
    assert booking.payment_transaction.provider_status == 'AUTHORIZED'
    notifier.notify_booking_confirmed.assert_not_called()


def test_refund_after_confirmation_releases_capacity(gateway, pending_booking, notifier):
    _deliver(gateway, pending_booking, 'CONFIRMED')
    outcome = _deliver(gateway, pending_booking, 'REFUNDED')

    booking = Booking.objects.get(id=pending_booking.id)
    assert outcome.action == reconciliation.REFUNDED
    assert booking.status == BOOKING_STATUS_REFUNDED
    assert booking.refunded_at is not None
    assert booking.payment_transaction.status == PAYMENT_STATUS_CANCELLED
    assert Slot.objects.get(id=booking.slot_id).status == SLOT_STATUS_AVAILABLE
    notifier.notify_booking_cancelled.assert_called_once_with(mock.ANY, refund=True)


def test_refund_of_admin_cancelled_group_booking_does_not_release_twice(
    gateway, pending_group_booking, notifier
):
    _deliver(gateway, pending_group_booking, 'CONFIRMED')
    cancellation_service.cancel(pending_group_booking.id, 'weather')
    _deliver(gateway, pending_group_booking, 'REFUNDED')

    session = GroupSession.objects.get(id=pending_group_booking.group_session_id)
    assert Booking.objects.get(id=pending_group_booking.id).status == BOOKING_STATUS_REFUNDED
    assert session.current_participants == 0


def test_payment_after_cancellation_raises_admin_alert(gateway, pending_booking, notifier):
    _deliver(gateway, pending_booking, 'REJECTED')
    outcome = _deliver(gateway, pending_booking, 'CONFIRMED')

    booking = Booking.objects.get(id=pending_booking.id)
    assert outcome.action == reconciliation.LATE_PAYMENT
    assert booking.status == BOOKING_STATUS_CANCELLED
    assert booking.payment_transaction.provider_status == 'CONFIRMED'
    assert booking.payment_transaction.is_collected
    notifier.notify_admin_alert.assert_called_once()


def test_late_payment_redelivery_alerts_once(gateway, pending_booking, notifier):
    _deliver(gateway, pending_booking, 'REJECTED')
    _deliver(gateway, pending_booking, 'CONFIRMED')
    outcome = _deliver(gateway, pending_booking, 'CONFIRMED')

    assert outcome.action == reconciliation.NOOP
    notifier.notify_admin_alert.assert_called_once()


def test_refund_of_rejected_payment_keeps_booking_cancelled(gateway, pending_booking, notifier):
    _deliver(gateway, pending_booking, 'REJECTED')
    outcome = _deliver(gateway, pending_booking, 'REFUNDED')

    booking = Booking.objects.get(id=pending_booking.id)
    assert outcome.action == reconciliation.STATUS_RECORDED
    assert booking.status == BOOKING_STATUS_CANCELLED
    assert booking.refunded_at is None
    assert booking.payment_transaction.status == PAYMENT_STATUS_FAILED


def test_refund_of_late_payment_marks_booking_refunded(gateway, pending_booking, notifier):
    _deliver(gateway, pending_booking, 'REJECTED')
    _deliver(gateway, pending_booking, 'CONFIRMED')
    outcome = _deliver(gateway, pending_booking, 'REFUNDED')

    booking = Booking.objects.get(id=pending_booking.id)
    assert outcome.action == reconciliation.REFUNDED
    assert booking.status == BOOKING_STATUS_REFUNDED
    assert booking.payment_transaction.status == PAYMENT_STATUS_CANCELLED


def test_invalid_signature_changes_nothing(gateway, pending_booking, notifier):
    payload = gateway.build_callback(
        order_reference=order_reference_for(pending_booking.id),
        payment_id=pending_booking.payment_transaction.provider_payment_id,
        status='CONFIRMED',
    )
    payload['Token'] = 'forged'

    outcome = ReconciliationHandler(gateway=gateway).handle_callback(json.dumps(payload).encode(), {})

    assert outcome.action == reconciliation.INVALID_SIGNATURE
    assert Booking.objects.get(id=pending_booking.id).status == pending_booking.status
    log = WebhookLog.objects.get()
    assert log.signature_valid is False
    assert log.processed is False


def test_unknown_booking_is_acknowledged(gateway, notifier):
    payload = gateway.build_callback(
        order_reference=order_reference_for(uuid.uuid4()),
        payment_id='mock-unknown',
        status='CONFIRMED',
    )

    outcome = ReconciliationHandler(gateway=gateway).handle_callback(json.dumps(payload).encode(), {})

    assert outcome.action == reconciliation.UNKNOWN_BOOKING
    assert WebhookLog.objects.get().booking_id is None


def test_foreign_order_reference_is_acknowledged(gateway, notifier):
    payload = gateway.build_callback(order_reference='other-123', payment_id='1', status='CONFIRMED')

    outcome = ReconciliationHandler(gateway=gateway).handle_callback(json.dumps(payload).encode(), {})

    assert outcome.action == reconciliation.UNKNOWN_BOOKING


def test_callback_endpoint_answers_ok(api_client, pending_booking, post_callback, notifier):
    response = post_callback(api_client, pending_booking, 'CONFIRMED')

    assert response.status_code == 200
    assert response.content == b'OK'
    assert Booking.objects.get(id=pending_booking.id).status == BOOKING_STATUS_CONFIRMED
    assert WebhookLog.objects.get().processed is True


def test_callback_endpoint_answers_ok_to_forged_callback(api_client, pending_booking, notifier):
    response = api_client.post(
        '/api/payments/callback/',
        data=json.dumps({'OrderId': order_reference_for(pending_booking.id), 'Status': 'CONFIRMED', 'Token': 'x'}),
        content_type='application/json',
    )

    assert response.status_code == 200
    assert Booking.objects.get(id=pending_booking.id).status == pending_booking.status


def test_callback_endpoint_reports_internal_error(api_client, pending_booking, post_callback, notifier):
    with mock.patch.object(ReconciliationHandler, 'apply', side_effect=RuntimeError('db down')):
        response = post_callback(api_client, pending_booking, 'CONFIRMED')

    assert response.status_code == 500
    assert Booking.objects.get(id=pending_booking.id).status == pending_booking.status
    log = WebhookLog.objects.get()
    assert log.processed is False
    assert log.error_message == 'db down'


def test_callback_endpoint_accepts_get(api_client, db):
    response = api_client.get('/api/payments/callback/')

    assert response.status_code == 200
