from unittest import mock

import pytest

from apps.bookings import tasks as booking_tasks
from apps.bookings.models import Booking
from apps.bookings.services.reservation import ReservationCoordinator
from apps.core.exceptions import CapacityUnavailable, InvalidStateTransition
from apps.core.utils.constants import (
    BOOKING_STATUS_CANCELLED,
    BOOKING_STATUS_CONFIRMED,
    BOOKING_STATUS_REFUNDED,
    PAYMENT_STATUS_COMPLETED,
    SLOT_STATUS_BOOKED,
)
from apps.payments import reconciliation, stuck_payments
from apps.payments.stuck_payments import stuck_payment_service
from apps.schedules.models import GroupSession, Slot
from tests.test_reconciliation import _deliver
from tests.test_reservation import _group, _individual

pytestmark = pytest.mark.django_db

STUCK_URL = '/api/payments/stuck/'


@pytest.fixture(autouse=True)
def notifier():
    with mock.patch.object(reconciliation, 'booking_notifier'), \
            mock.patch.object(stuck_payments, 'booking_notifier') as patched:
        yield patched


@pytest.fixture
def paid_after_rejection(gateway, slot, tariff):
    """Booking the gateway rejected and then charged anyway."""
    booking = ReservationCoordinator(gateway=gateway).reserve_individual(_individual(slot, tariff)).booking
    _deliver(gateway, booking, 'REJECTED')
    _deliver(gateway, booking, 'CONFIRMED')
    booking.refresh_from_db()
    return booking


def test_late_payment_is_listed(staff_client, paid_after_rejection):
    response = staff_client.get(STUCK_URL)

    assert response.status_code == 200
    assert response.data['count'] == 1
    row = response.data['results'][0]
    assert row['booking_id'] == str(paid_after_rejection.id)
    assert row['booking_status'] == BOOKING_STATUS_CANCELLED
    assert row['paid_after_cancellation'] is True


def test_unpaid_cancellation_is_not_listed(staff_client, gateway, slot, tariff):
    booking = ReservationCoordinator(gateway=gateway).reserve_individual(_individual(slot, tariff)).booking
    _deliver(gateway, booking, 'REJECTED')

    response = staff_client.get(STUCK_URL)

    assert response.data['count'] == 0


def test_rebook_restores_booking_and_slot(staff_client, paid_after_rejection, notifier):
    payment_transaction = paid_after_rejection.payment_transaction

    response = staff_client.post(f'{STUCK_URL}{payment_transaction.id}/rebook/')

    booking = Booking.objects.get(id=paid_after_rejection.id)
    payment_transaction.refresh_from_db()
    assert response.status_code == 200
    assert response.data['status'] == BOOKING_STATUS_CONFIRMED
    assert booking.status == BOOKING_STATUS_CONFIRMED
    assert booking.cancelled_at is None
    assert payment_transaction.status == PAYMENT_STATUS_COMPLETED
    assert Slot.objects.get(id=booking.slot_id).status == SLOT_STATUS_BOOKED
    notifier.notify_booking_confirmed.assert_called_once()
    assert staff_client.get(STUCK_URL).data['count'] == 0


def test_rebook_fails_when_slot_was_taken(gateway, paid_after_rejection, tariff):
    slot = Slot.objects.get(id=paid_after_rejection.slot_id)
    ReservationCoordinator(gateway=gateway).reserve_individual(_individual(slot, tariff))

    with pytest.raises(CapacityUnavailable):
        stuck_payment_service.rebook(paid_after_rejection.payment_transaction.id)

    assert Booking.objects.get(id=paid_after_rejection.id).status == BOOKING_STATUS_CANCELLED


def test_rebook_group_booking_claims_seats_again(gateway, group_session):
    booking = ReservationCoordinator(gateway=gateway).reserve_group(_group(group_session, 2)).booking
    _deliver(gateway, booking, 'REJECTED')
    _deliver(gateway, booking, 'CONFIRMED')

    stuck_payment_service.rebook(booking.payment_transaction.id)

    assert GroupSession.objects.get(id=group_session.id).current_participants == 2


def test_refund_requests_gateway_refund_after_commit(
    staff_client, paid_after_rejection, django_capture_on_commit_callbacks
):
    payment_transaction = paid_after_rejection.payment_transaction

    with mock.patch.object(booking_tasks.refund_booking_payment, 'delay') as delay:
        with django_capture_on_commit_callbacks(execute=True):
            response = staff_client.post(f'{STUCK_URL}{payment_transaction.id}/refund/')

    assert response.status_code == 202
    delay.assert_called_once_with(str(payment_transaction.id))
    assert staff_client.get(STUCK_URL).data['count'] == 0


def test_refund_callback_closes_stuck_payment(gateway, paid_after_rejection, django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=True):
        stuck_payment_service.refund(paid_after_rejection.payment_transaction.id)

    payment_transaction = paid_after_rejection.payment_transaction
    payment_transaction.refresh_from_db()
    assert payment_transaction.metadata['refund']['refund_id']

    _deliver(gateway, paid_after_rejection, 'REFUNDED')

    assert Booking.objects.get(id=paid_after_rejection.id).status == BOOKING_STATUS_REFUNDED


def test_resolved_payment_cannot_be_resolved_again(paid_after_rejection):
    transaction_id = paid_after_rejection.payment_transaction.id
    stuck_payment_service.rebook(transaction_id)

    with pytest.raises(InvalidStateTransition):
        stuck_payment_service.refund(transaction_id)


def test_stuck_payments_require_staff(api_client, db):
    response = api_client.get(STUCK_URL)

    assert response.status_code in (401, 403)


def test_unknown_stuck_payment_is_not_found(staff_client, db):
    response = staff_client.post(f'{STUCK_URL}not-a-uuid/rebook/')

    assert response.status_code == 404
