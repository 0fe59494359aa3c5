from datetime import timedelta
from decimal import Decimal
from unittest import mock

import pytest
from rest_framework.exceptions import NotFound

from apps.core.exceptions import InvalidOperation, InvalidStateTransition, PayoutAlreadyExists
from apps.core.utils.constants import (
    BOOKING_STATUS_CANCELLED,
    BOOKING_STATUS_PENDING,
    PAYOUT_STATUS_PAID,
    PAYOUT_STATUS_CANCELLED,
)
from apps.core.utils.helpers import school_today
from apps.payouts.models import InstructorPayout
from apps.payouts.services import aggregator

pytestmark = pytest.mark.django_db


@pytest.fixture(autouse=True)
def notifier():
    with mock.patch.object(aggregator, 'booking_notifier') as patched:
        yield patched


@pytest.fixture
def period():
    today = school_today()
    return today - timedelta(days=10), today - timedelta(days=1)


def test_payout_splits_revenue_by_commission(instructor, period, make_completed_booking, notifier):
    start, end = period
    make_completed_booking(start, price=Decimal('3000.00'))
    make_completed_booking(start + timedelta(days=1), price=Decimal('2000.00'))

    payout = aggregator.create_payout(instructor.id, start, end, created_by='admin')

    assert payout.trainings_count == 2
    assert payout.total_revenue == Decimal('5000.00')
    assert payout.admin_commission == Decimal('1000.00')
    assert payout.instructor_earnings == Decimal('4000.00')
    assert payout.admin_percentage == Decimal('20')
    assert payout.status == 'pending'
    notifier.notify_admin_payout_created.assert_called_once_with(payout)


def test_group_session_counts_as_one_training(
    instructor, period, make_group_session, make_completed_booking
):
    start, end = period
    session = make_group_session(date=start)
    make_completed_booking(start, price=Decimal('1500.00'), group_session=session)
    make_completed_booking(start, price=Decimal('3000.00'), group_session=session, participants_count=2)
    make_completed_booking(start + timedelta(days=2), price=Decimal('3000.00'))

    payout = aggregator.create_payout(instructor.id, start, end)

    assert payout.trainings_count == 2
    assert payout.total_revenue == Decimal('7500.00')


def test_unpaid_and_unfinished_bookings_are_left_out(instructor, period, make_completed_booking):
    start, end = period
    make_completed_booking(start, price=Decimal('3000.00'))
    make_completed_booking(start, price=Decimal('9999.00'), status=BOOKING_STATUS_PENDING)
    make_completed_booking(start, price=Decimal('9999.00'), status=BOOKING_STATUS_CANCELLED)
    make_completed_booking(school_today() + timedelta(days=1), price=Decimal('9999.00'))

    payout = aggregator.create_payout(instructor.id, start, school_today() + timedelta(days=3))

    assert payout.total_revenue == Decimal('3000.00')
    assert payout.trainings_count == 1


def test_duplicate_payout_is_rejected_without_changes(instructor, period, make_completed_booking):
    start, end = period
    make_completed_booking(start)
    first = aggregator.create_payout(instructor.id, start, end)
    make_completed_booking(start + timedelta(days=1))

    with pytest.raises(PayoutAlreadyExists):
        aggregator.create_payout(instructor.id, start, end)

    first.refresh_from_db()
    assert InstructorPayout.objects.count() == 1
    assert first.total_revenue == Decimal('3000.00')


def test_inverted_period_is_rejected(instructor, period):
    start, end = period

    with pytest.raises(InvalidOperation):
        aggregator.create_payout(instructor.id, end, start)


def test_period_without_trainings_is_rejected(instructor, period):
    start, end = period

    with pytest.raises(InvalidOperation):
        aggregator.create_payout(instructor.id, start, end)

    assert not InstructorPayout.objects.exists()


def test_bookings_in_paid_payout_are_not_counted_again(instructor, period, make_completed_booking):
    start, end = period
    make_completed_booking(start, price=Decimal('3000.00'))
    make_completed_booking(end, price=Decimal('2000.00'))
    first = aggregator.create_payout(instructor.id, start, start + timedelta(days=2))
    aggregator.update_payout(first.id, {'status': PAYOUT_STATUS_PAID})

    second = aggregator.create_payout(instructor.id, start, end)

    assert second.total_revenue == Decimal('2000.00')
    assert second.trainings_count == 1


def test_marking_paid_records_payment(instructor, period, make_completed_booking, notifier):
    start, end = period
    make_completed_booking(start)
    payout = aggregator.create_payout(instructor.id, start, end)

    updated = aggregator.update_payout(
        payout.id,
        {'status': PAYOUT_STATUS_PAID, 'payment_method': 'card', 'payment_comment': 'Sent'},
        updated_by='admin',
    )

    assert updated.status == PAYOUT_STATUS_PAID
    assert updated.paid_by == 'admin'
    assert updated.paid_at is not None
    assert updated.payment_date == school_today()
    assert updated.instructor_earnings == payout.instructor_earnings
    notifier.notify_payout_status_changed.assert_called_once_with(updated, 'pending', PAYOUT_STATUS_PAID)


def test_paid_payout_cannot_be_cancelled(instructor, period, make_completed_booking):
    start, end = period
    make_completed_booking(start)
    payout = aggregator.create_payout(instructor.id, start, end)
    aggregator.update_payout(payout.id, {'status': PAYOUT_STATUS_PAID})

    with pytest.raises(InvalidStateTransition):
        aggregator.update_payout(payout.id, {'status': PAYOUT_STATUS_CANCELLED})

    payout.refresh_from_db()
    assert payout.status == PAYOUT_STATUS_PAID


def test_payment_details_update_without_status_change(instructor, period, make_completed_booking, notifier):
    start, end = period
    make_completed_booking(start)
    payout = aggregator.create_payout(instructor.id, start, end)

    updated = aggregator.update_payout(payout.id, {'payment_comment': 'Waiting for card number'})

    assert updated.payment_comment == 'Waiting for card number'
    notifier.notify_payout_status_changed.assert_not_called()


def test_payout_trainings_list_instructor_share(instructor, period, make_completed_booking):
    start, end = period
    make_completed_booking(start, price=Decimal('3000.00'))
    payout = aggregator.create_payout(instructor.id, start, end)
    aggregator.update_payout(payout.id, {'status': PAYOUT_STATUS_PAID})

    trainings = aggregator.payout_trainings(payout)

    assert len(trainings) == 1
    assert trainings[0][1] == Decimal('2400.00')


def test_unpaid_earnings_per_instructor(instructor, make_instructor, period, make_completed_booking):
    start, end = period
    make_instructor(full_name='Idle Instructor', phone='+79009998877')
    make_completed_booking(start, price=Decimal('3000.00'))

    rows = aggregator.unpaid_earnings(start, end)

    assert len(rows) == 1
    assert rows[0]['instructor_id'] == instructor.id
    assert rows[0]['instructor_earnings'] == Decimal('2400.00')


def test_create_payout_endpoint(staff_client, instructor, period, make_completed_booking):
    start, end = period
    make_completed_booking(start)
    body = {'instructor_id': str(instructor.id), 'period_start': start.isoformat(), 'period_end': end.isoformat()}

    created = staff_client.post('/api/v1/payouts/', body, format='json')
    duplicate = staff_client.post('/api/v1/payouts/', body, format='json')

    assert created.status_code == 201
    assert created.data['instructor_earnings'] == '2400.00'
    assert duplicate.status_code == 409
    assert duplicate.data['error'] is True


def test_patch_payout_endpoint_rejects_invalid_transition(staff_client, instructor, period, make_completed_booking):
    start, end = period
    make_completed_booking(start)
    payout = aggregator.create_payout(instructor.id, start, end)

    cancelled = staff_client.patch(f'/api/v1/payouts/{payout.id}/', {'status': 'cancelled'}, format='json')
    reopened = staff_client.patch(f'/api/v1/payouts/{payout.id}/', {'status': 'paid'}, format='json')

    assert cancelled.status_code == 200
    assert cancelled.data['status'] == 'cancelled'
    assert reopened.status_code == 409


def test_earnings_and_trainings_endpoints(staff_client, instructor, period, make_completed_booking):
    start, end = period
    make_completed_booking(start, price=Decimal('3000.00'))
    payout = aggregator.create_payout(instructor.id, start, end)

    earnings = staff_client.get(
        '/api/v1/payouts/earnings/', {'period_start': start.isoformat(), 'period_end': end.isoformat()}
    )
    trainings = staff_client.get(f'/api/v1/payouts/{payout.id}/trainings/')

    assert earnings.status_code == 200
    assert earnings.data[0]['instructor_earnings'] == '2400.00'
    assert trainings.status_code == 200
    assert trainings.data[0]['instructor_earnings'] == '2400.00'


def test_payout_endpoints_require_staff(api_client, db):
    response = api_client.get('/api/v1/payouts/')

    assert response.status_code in (401, 403)


def test_patch_payout_with_malformed_id_is_not_found(staff_client):
    response = staff_client.patch('/api/v1/payouts/not-a-uuid/', {'status': 'paid'}, format='json')

    assert response.status_code == 404


def test_create_payout_for_malformed_instructor_is_not_found(period):
    start, end = period

    with pytest.raises(NotFound):
        aggregator.create_payout('not-a-uuid', start, end)
