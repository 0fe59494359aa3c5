import json
from datetime import date, time, timedelta
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from apps.bookings.models import Booking
from apps.clients.models import Client
from apps.core.utils.constants import (
    BOOKING_KIND_INDIVIDUAL,
    BOOKING_KIND_GROUP,
    BOOKING_STATUS_CONFIRMED,
    SPORT_SKI,
    SPORT_BOTH,
    TARIFF_KIND_INDIVIDUAL,
)
from apps.core.utils.helpers import school_today
from apps.instructors.models import Instructor
from apps.payments.gateways import order_reference_for
from apps.payments.gateways.mock import MockGateway
from apps.schedules.models import Slot, GroupSession, Tariff


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def staff_client(db):
    user = get_user_model().objects.create_user(
        username='admin', password='admin', is_staff=True, is_superuser=True
    )
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def gateway():
    return MockGateway()


@pytest.fixture
def post_callback(gateway):
    """Sign a gateway notification and deliver it to the callback endpoint."""
    def _post(api_client, booking, status, payment_id=None):
        payment_id = payment_id or booking.payment_transaction.provider_payment_id
        payload = gateway.build_callback(
            order_reference=order_reference_for(booking.id),
            payment_id=payment_id,
            status=status,
            amount=booking.price_total,
        )
        return api_client.post('/api/payments/callback/', data=json.dumps(payload), content_type='application/json')
    return _post


@pytest.fixture
def training_day():
    return school_today() + timedelta(days=2)


@pytest.fixture
def make_instructor(db):
    def _make(**kwargs):
        defaults = {
            'full_name': 'Ivan Petrov',
            'phone': '+79001112233',
            'email': 'ivan@example.com',
            'sport_type': SPORT_BOTH,
            'admin_percentage': Decimal('20'),
        }
        defaults.update(kwargs)
        return Instructor.objects.create(**defaults)
    return _make


@pytest.fixture
def instructor(make_instructor):
    return make_instructor()


@pytest.fixture
def tariff(db):
    return Tariff.objects.create(
        name='One hour',
        kind=TARIFF_KIND_INDIVIDUAL,
        duration_minutes=60,
        participants=1,
        price=Decimal('3000.00'),
    )


@pytest.fixture
def make_slot(instructor, training_day):
    def _make(**kwargs):
        defaults = {
            'instructor': instructor,
            'date': training_day,
            'start_time': time(10, 0),
            'end_time': time(11, 0),
        }
        defaults.update(kwargs)
        return Slot.objects.create(**defaults)
    return _make


@pytest.fixture
def slot(make_slot):
    return make_slot()


@pytest.fixture
def make_group_session(instructor, training_day):
    def _make(**kwargs):
        defaults = {
            'instructor': instructor,
            'date': training_day,
            'start_time': time(12, 0),
            'end_time': time(14, 0),
            'sport_type': SPORT_SKI,
            'max_participants': 4,
            'price_per_participant': Decimal('1500.00'),
        }
        defaults.update(kwargs)
        return GroupSession.objects.create(**defaults)
    return _make


@pytest.fixture
def group_session(make_group_session):
    return make_group_session()


@pytest.fixture
def contact():
    return {
        'full_name': 'Anna Smirnova',
        'phone': '8 (912) 345-67-89',
        'email': 'anna@example.com',
        'birth_date': '1990-05-01',
    }


@pytest.fixture
def individual_payload(contact, slot, tariff, instructor, training_day):
    return {
        'contact': contact,
        'slot_id': str(slot.id),
        'instructor_id': str(instructor.id),
        'tariff_id': str(tariff.id),
        'date': training_day.isoformat(),
        'sport_type': SPORT_SKI,
        'participants': [{'full_name': 'Anna Smirnova', 'birth_year': 1990}],
        'consent_confirmed': True,
    }


@pytest.fixture
def group_payload(contact, group_session):
    return {
        'contact': contact,
        'group_session_id': str(group_session.id),
        'participants_count': 2,
        'participants_names': ['Anna Smirnova', 'Oleg Smirnov'],
        'consent_confirmed': True,
    }


@pytest.fixture
def client_record(db):
    return Client.objects.create(
        full_name='Anna Smirnova',
        phone='+79123456789',
        email='anna@example.com',
        birth_date=date(1990, 5, 1),
    )


@pytest.fixture
def make_completed_booking(client_record, instructor):
    """Confirmed booking of a training that already took place."""
    def _make(day, price=Decimal('3000.00'), group_session=None, **kwargs):
        defaults = {
            'client': client_record,
            'kind': BOOKING_KIND_GROUP if group_session else BOOKING_KIND_INDIVIDUAL,
            'group_session': group_session,
            'instructor': instructor,
            'date': day,
            'start_time': time(10, 0),
            'end_time': time(11, 0),
            'location': 'kuliga',
            'sport_type': SPORT_SKI,
            'participants_count': 1,
            'price_total': price,
            'price_per_person': price,
            'status': BOOKING_STATUS_CONFIRMED,
        }
        defaults.update(kwargs)
        return Booking.objects.create(**defaults)
    return _make
