from unittest import mock

import pytest

from apps.bookings.models import Booking
from apps.core.utils.constants import BOOKING_STATUS_CANCELLED, BOOKING_STATUS_PENDING, SLOT_STATUS_HELD
from apps.payments.gateways import PaymentGatewayError
from apps.payments.gateways.mock import MockGateway

pytestmark = pytest.mark.django_db

INDIVIDUAL_URL = '/api/v1/bookings/individual/'
GROUP_URL = '/api/v1/bookings/group/'


def test_individual_booking_returns_payment_url(api_client, individual_payload, slot):
    response = api_client.post(INDIVIDUAL_URL, individual_payload, format='json')

    assert response.status_code == 201
    assert response.data['success'] is True
    assert response.data['payment_url']
    booking = Booking.objects.get(id=response.data['booking_id'])
    assert booking.status == BOOKING_STATUS_PENDING
    slot.refresh_from_db()
    assert slot.status == SLOT_STATUS_HELD


def test_taken_slot_returns_conflict(api_client, individual_payload):
    api_client.post(INDIVIDUAL_URL, individual_payload, format='json')
    response = api_client.post(INDIVIDUAL_URL, individual_payload, format='json')

    assert response.status_code == 409
    assert response.data['error'] is True
    assert Booking.objects.count() == 1


def test_missing_consent_is_bad_request(api_client, individual_payload):
    individual_payload['consent_confirmed'] = False

    response = api_client.post(INDIVIDUAL_URL, individual_payload, format='json')

    assert response.status_code == 400
    assert not Booking.objects.exists()


def test_malformed_body_is_bad_request(api_client, individual_payload):
    del individual_payload['slot_id']

    response = api_client.post(INDIVIDUAL_URL, individual_payload, format='json')

    assert response.status_code == 400
    assert 'slot_id' in response.data['errors']


def test_unknown_slot_is_not_found(api_client, individual_payload):
    individual_payload['slot_id'] = '00000000-0000-0000-0000-000000000000'

    response = api_client.post(INDIVIDUAL_URL, individual_payload, format='json')

    assert response.status_code == 404


def test_payment_initiation_failure_is_bad_gateway(api_client, individual_payload):
    with mock.patch.object(MockGateway, 'init_payment', side_effect=PaymentGatewayError('down')):
        response = api_client.post(INDIVIDUAL_URL, individual_payload, format='json')

    assert response.status_code == 502
    assert Booking.objects.get().status == BOOKING_STATUS_CANCELLED


def test_group_booking(api_client, group_payload, group_session):
    response = api_client.post(GROUP_URL, group_payload, format='json')

    assert response.status_code == 201
    group_session.refresh_from_db()
    assert group_session.current_participants == 2


def test_group_booking_without_enough_seats(api_client, group_payload, group_session):
    group_session.current_participants = 3
    group_session.save()

    response = api_client.post(GROUP_URL, group_payload, format='json')

    assert response.status_code == 409
    group_session.refresh_from_db()
    assert group_session.current_participants == 3


def test_booking_list_is_for_staff_only(api_client, staff_client, individual_payload):
    api_client.post(INDIVIDUAL_URL, individual_payload, format='json')

    anonymous = api_client.get('/api/v1/bookings/')
    staff = staff_client.get('/api/v1/bookings/', {'status': BOOKING_STATUS_PENDING})

    assert anonymous.status_code in (401, 403)
    assert staff.status_code == 200
    assert staff.data['count'] == 1


def test_booking_detail_includes_payment(api_client, staff_client, individual_payload):
    created = api_client.post(INDIVIDUAL_URL, individual_payload, format='json')

    response = staff_client.get(f"/api/v1/bookings/{created.data['booking_id']}/")

    assert response.status_code == 200
    assert response.data['payment_status'] == 'pending'
    assert response.data['payment_url'] == created.data['payment_url']


def test_staff_can_cancel_booking(api_client, staff_client, individual_payload):
    created = api_client.post(INDIVIDUAL_URL, individual_payload, format='json')
    url = f"/api/v1/bookings/{created.data['booking_id']}/cancel/"

    response = staff_client.post(url, {'reason': 'duplicate'}, format='json')
    again = staff_client.post(url, {'reason': 'duplicate'}, format='json')

    assert response.status_code == 200
    assert response.data['status'] == BOOKING_STATUS_CANCELLED
    assert again.status_code == 409


def test_anonymous_cannot_cancel(api_client, individual_payload):
    created = api_client.post(INDIVIDUAL_URL, individual_payload, format='json')

    response = api_client.post(f"/api/v1/bookings/{created.data['booking_id']}/cancel/", {'reason': 'x'}, format='json')

    assert response.status_code in (401, 403)
    assert Booking.objects.get().status == BOOKING_STATUS_PENDING


def test_cancel_with_malformed_id_is_not_found(staff_client, db):
    response = staff_client.post('/api/v1/bookings/not-a-uuid/cancel/', {'reason': 'x'}, format='json')

    assert response.status_code == 404
