import json
from datetime import timedelta
from unittest import mock

import pytest
from django.utils import timezone

from apps.bookings.models import Booking
from apps.bookings.services import cancellation
from apps.bookings.services.cancellation import cancellation_service
from apps.bookings.services.reservation import ReservationCoordinator
from apps.core.exceptions import InvalidStateTransition
from apps.core.utils.constants import (
    BOOKING_STATUS_CANCELLED,
    BOOKING_STATUS_CONFIRMED,
    PAYMENT_STATUS_CANCELLED,
    PAYMENT_STATUS_COMPLETED,
    SLOT_STATUS_AVAILABLE,
    SLOT_STATUS_HELD,
    CANCEL_REASON_HOLD_EXPIRED,
)
from apps.payments.gateways import order_reference_for
from apps.payments.reconciliation import ReconciliationHandler
from apps.schedules.models import Slot
from apps.schedules.tasks import release_expired_holds
from tests.test_reservation import _group, _individual

pytestmark = pytest.mark.django_db


@pytest.fixture(autouse=True)
def notifier():
    with mock.patch.object(cancellation, 'booking_notifier') as patched:
        yield patched


@pytest.fixture
def pending_booking(gateway, slot, tariff):
    return ReservationCoordinator(gateway=gateway).reserve_individual(_individual(slot, tariff)).booking


@pytest.fixture
def confirmed_booking(gateway, pending_booking):
    payload = gateway.build_callback(
        order_reference=order_reference_for(pending_booking.id),
        payment_id=pending_booking.payment_transaction.provider_payment_id,
        status='CONFIRMED',
    )
    with mock.patch('apps.payments.reconciliation.booking_notifier'):
        ReconciliationHandler(gateway=gateway).handle_callback(json.dumps(payload).encode(), {})
    return Booking.objects.get(id=pending_booking.id)


def test_cancel_pending_booking_releases_slot(pending_booking, notifier, django_capture_on_commit_callbacks):
    with mock.patch('apps.bookings.tasks.cancel_gateway_payment.delay') as cancel_payment:
        with django_capture_on_commit_callbacks(execute=True):
            cancellation_service.cancel(pending_booking.id, 'client called')

    booking = Booking.objects.get(id=pending_booking.id)
    assert booking.status == BOOKING_STATUS_CANCELLED
    assert booking.cancellation_reason == 'client called'
    assert booking.payment_transaction.status == PAYMENT_STATUS_CANCELLED
    assert Slot.objects.get(id=booking.slot_id).status == SLOT_STATUS_AVAILABLE
    cancel_payment.assert_called_once_with(str(booking.payment_transaction.id))
    notifier.notify_booking_cancelled.assert_called_once_with(mock.ANY, refund=False)
    notifier.notify_instructor.assert_not_called()


def test_cancel_confirmed_booking_requests_refund(confirmed_booking, notifier, django_capture_on_commit_callbacks):
    assert confirmed_booking.status == BOOKING_STATUS_CONFIRMED

    with django_capture_on_commit_callbacks(execute=True):
        cancellation_service.cancel(confirmed_booking.id, 'instructor sick')

    booking = Booking.objects.get(id=confirmed_booking.id)
    payment_transaction = booking.payment_transaction
    assert booking.status == BOOKING_STATUS_CANCELLED
    assert payment_transaction.status == PAYMENT_STATUS_COMPLETED
    assert payment_transaction.metadata['refund']['refund_id'].startswith('mock-refund-')
    assert Slot.objects.get(id=booking.slot_id).status == SLOT_STATUS_AVAILABLE
    notifier.notify_booking_cancelled.assert_called_once_with(mock.ANY, refund=True)
    notifier.notify_instructor.assert_called_once_with(mock.ANY, 'cancelled')


def test_cancelling_twice_is_rejected(pending_booking):
    cancellation_service.cancel(pending_booking.id, 'first')

    with pytest.raises(InvalidStateTransition):
        cancellation_service.cancel(pending_booking.id, 'second')


def test_cancel_group_booking_returns_seats(gateway, group_session):
    booking = ReservationCoordinator(gateway=gateway).reserve_group(_group(group_session, 3)).booking

    cancellation_service.cancel(booking.id, 'plans changed')

    group_session.refresh_from_db()
    assert group_session.current_participants == 0


def test_reaper_expires_unpaid_bookings(pending_booking):
    Booking.objects.filter(id=pending_booking.id).update(created_at=timezone.now() - timedelta(minutes=30))

    result = release_expired_holds()

    booking = Booking.objects.get(id=pending_booking.id)
    assert result['cancelled_bookings'] == 1
    assert booking.status == BOOKING_STATUS_CANCELLED
    assert booking.cancellation_reason == CANCEL_REASON_HOLD_EXPIRED
    assert booking.payment_transaction.status == PAYMENT_STATUS_CANCELLED
    assert Slot.objects.get(id=booking.slot_id).status == SLOT_STATUS_AVAILABLE


def test_reaper_keeps_fresh_holds(pending_booking):
    result = release_expired_holds()

    assert result == {'cancelled_bookings': 0, 'released_slots': 0}
    assert Slot.objects.get(id=pending_booking.slot_id).status == SLOT_STATUS_HELD


def test_reaper_releases_orphan_holds(make_slot):
    slot = make_slot(status=SLOT_STATUS_HELD, hold_until=timezone.now() - timedelta(minutes=1))

    result = release_expired_holds()

    slot.refresh_from_db()
    assert result['released_slots'] == 1
    assert slot.status == SLOT_STATUS_AVAILABLE
    assert slot.hold_until is None
