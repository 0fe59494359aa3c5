"""
Real concurrent reservations. Needs row locks, so only runs on PostgreSQL:
TEST_DATABASE_ENGINE=postgresql pytest tests/test_concurrency.py
"""
import os
import threading

import pytest
from django.db import connection

from apps.bookings.models import Booking
from apps.bookings.services.reservation import ReservationCoordinator
from apps.core.exceptions import CapacityUnavailable, InsufficientSeats
from apps.payments.gateways.mock import MockGateway
from apps.schedules.models import GroupSession
from tests.test_reservation import _group, _individual

pytestmark = [
    pytest.mark.django_db(transaction=True),
    pytest.mark.skipif(
        os.environ.get('TEST_DATABASE_ENGINE') != 'postgresql',
        reason='row locking needs PostgreSQL',
    ),
]


def _run_concurrently(target, count):
    barrier = threading.Barrier(count)
    outcomes = []
    lock = threading.Lock()

    def worker():
        barrier.wait()
        try:
            outcome = target()
        except Exception as e:
            outcome = e
        finally:
            connection.close()
        with lock:
            outcomes.append(outcome)

    threads = [threading.Thread(target=worker) for _ in range(count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    return outcomes


def test_only_one_of_simultaneous_slot_requests_wins(slot, tariff):
    outcomes = _run_concurrently(
        lambda: ReservationCoordinator(gateway=MockGateway()).reserve_individual(_individual(slot, tariff)),
        5,
    )

    conflicts = [o for o in outcomes if isinstance(o, CapacityUnavailable)]
    assert len(conflicts) == 4
    assert Booking.objects.count() == 1


def test_group_seats_never_oversold(make_group_session):
    session = make_group_session(max_participants=4, current_participants=0)

    outcomes = _run_concurrently(
        lambda: ReservationCoordinator(gateway=MockGateway()).reserve_group(_group(session, 3)),
        3,
    )

    session = GroupSession.objects.get(id=session.id)
    assert sum(1 for o in outcomes if isinstance(o, InsufficientSeats)) == 2
    assert session.current_participants == 3
