import hashlib
import json
import uuid
from decimal import Decimal
from unittest import mock

import pytest
import requests
from django.core.exceptions import ImproperlyConfigured

from apps.core.utils.constants import GATEWAY_SUCCESS, GATEWAY_FAILED, GATEWAY_REFUNDED
from apps.payments.gateways import (
    PaymentGatewayError,
    booking_id_from_reference,
    get_gateway,
    order_reference_for,
)
from apps.payments.gateways.mock import MockGateway
from apps.payments.gateways.stripe_gateway import StripeGateway
from apps.payments.gateways.tinkoff import TinkoffGateway, generate_token


def _response(data, status_code=200):
    response = mock.Mock()
    response.status_code = status_code
    response.json.return_value = data
    response.raise_for_status.return_value = None
    return response


def test_token_uses_sorted_root_scalars_and_password():
    params = {
        'TerminalKey': 'TK',
        'Amount': 100000,
        'OrderId': 'bk-1',
        'Success': True,
        'Receipt': {'Items': []},
        'Token': 'ignored',
    }
    expected = hashlib.sha256('100000bk-1passwordtrueTK'.encode('utf-8')).hexdigest()

    assert generate_token(params, 'password') == expected


def test_order_reference_roundtrip():
    booking_id = uuid.uuid4()

    assert order_reference_for(booking_id) == f"bk-{booking_id.hex}"
    assert booking_id_from_reference(order_reference_for(booking_id)) == booking_id
    assert booking_id_from_reference('bk-not-a-uuid') is None
    assert booking_id_from_reference(None) is None


def test_get_gateway_selects_configured_provider(settings):
    settings.PAYMENT_PROVIDER = 'mock'
    assert isinstance(get_gateway(), MockGateway)
    assert isinstance(get_gateway('tinkoff'), TinkoffGateway)

    with pytest.raises(ImproperlyConfigured):
        get_gateway('paypal')


def test_tinkoff_init_sends_signed_request():
    gateway = TinkoffGateway(terminal_key='TK', password='secret', api_url='https://pay.test/v2')
    reply = {'Success': True, 'PaymentId': 123456, 'PaymentURL': 'https://pay.test/123456', 'Status': 'NEW'}

    with mock.patch('apps.payments.gateways.tinkoff.requests.post', return_value=_response(reply)) as post:
        result = gateway.init_payment(
            order_reference='bk-abc',
            amount=Decimal('3000.00'),
            description='Individual training',
            customer_email='anna@example.com',
            items=[{'name': 'Individual training', 'price': Decimal('1500.00'), 'quantity': 2}],
        )

    url = post.call_args.args[0]
    body = post.call_args.kwargs['json']
    assert url == 'https://pay.test/v2/Init'
    assert body['Amount'] == 300000
    assert body['Receipt']['Items'][0]['Amount'] == 300000
    assert body['Token'] == generate_token(body, 'secret')
    assert result.payment_id == '123456'
    assert result.payment_url == 'https://pay.test/123456'


def test_tinkoff_rejection_raises_gateway_error():
    gateway = TinkoffGateway(terminal_key='TK', password='secret')
    reply = {'Success': False, 'ErrorCode': '204', 'Message': 'Bad terminal'}

    with mock.patch('apps.payments.gateways.tinkoff.requests.post', return_value=_response(reply)):
        with pytest.raises(PaymentGatewayError):
            gateway.init_payment('bk-abc', Decimal('100'), 'x')


def test_tinkoff_network_error_raises_gateway_error():
    gateway = TinkoffGateway(terminal_key='TK', password='secret')

    with mock.patch(
        'apps.payments.gateways.tinkoff.requests.post',
        side_effect=requests.ConnectionError('unreachable'),
    ):
        with pytest.raises(PaymentGatewayError):
            gateway.refund_payment('123')


def test_tinkoff_notification_verification_and_parsing():
    gateway = TinkoffGateway(terminal_key='TK', password='secret')
    notification = gateway.sign({
        'TerminalKey': 'TK',
        'OrderId': 'bk-abc',
        'PaymentId': 42,
        'Status': 'CONFIRMED',
        'Success': True,
        'Amount': 300000,
    })

    payload = gateway.verify_webhook(json.dumps(notification).encode(), {})
    data = gateway.parse_webhook(payload)

    assert data.status == GATEWAY_SUCCESS
    assert data.raw_status == 'CONFIRMED'
    assert data.payment_id == '42'
    assert data.amount == Decimal('3000')

    notification['Status'] = 'REJECTED'
    assert gateway.verify_webhook(json.dumps(notification).encode(), {}) is None
    assert gateway.verify_webhook(b'not json', {}) is None


@pytest.mark.parametrize('raw, expected', [
    ('REJECTED', GATEWAY_FAILED),
    ('REFUNDED', GATEWAY_REFUNDED),
    ('AUTHORIZED', 'AUTHORIZED'),
])
def test_tinkoff_status_mapping(raw, expected):
    gateway = TinkoffGateway(terminal_key='TK', password='secret')

    assert gateway.parse_webhook({'OrderId': 'bk-1', 'Status': raw}).status == expected


def test_stripe_completed_checkout_is_success():
    event = {
        'type': 'checkout.session.completed',
        'data': {'object': {
            'id': 'cs_test_1',
            'client_reference_id': 'bk-abc',
            'payment_status': 'paid',
            'amount_total': 300000,
        }},
    }

    data = StripeGateway(webhook_secret='whsec').parse_webhook(event)

    assert data.status == GATEWAY_SUCCESS
    assert data.order_reference == 'bk-abc'
    assert data.payment_id == 'cs_test_1'
    assert data.amount == Decimal('3000')


def test_stripe_unpaid_completion_is_intermediate():
    event = {
        'type': 'checkout.session.completed',
        'data': {'object': {'id': 'cs_test_1', 'client_reference_id': 'bk-abc', 'payment_status': 'unpaid'}},
    }

    data = StripeGateway(webhook_secret='whsec').parse_webhook(event)

    assert data.status == 'checkout.session.completed'


def test_stripe_expired_checkout_is_failure():
    event = {'type': 'checkout.session.expired', 'data': {'object': {'id': 'cs_1', 'client_reference_id': 'bk-abc'}}}

    assert StripeGateway(webhook_secret='whsec').parse_webhook(event).status == GATEWAY_FAILED


def test_stripe_full_refund_resolves_session():
    event = {
        'type': 'charge.refunded',
        'data': {'object': {'payment_intent': 'pi_1', 'refunded': True, 'amount_refunded': 300000}},
    }
    session = mock.Mock(id='cs_test_1', client_reference_id='bk-abc')

    with mock.patch('apps.payments.gateways.stripe_gateway.stripe.checkout.Session.list') as session_list:
        session_list.return_value = mock.Mock(data=[session])
        data = StripeGateway(webhook_secret='whsec').parse_webhook(event)

    session_list.assert_called_once_with(payment_intent='pi_1', limit=1)
    assert data.status == GATEWAY_REFUNDED
    assert data.order_reference == 'bk-abc'
    assert data.payment_id == 'cs_test_1'


def test_stripe_webhook_without_signature_is_rejected():
    assert StripeGateway(webhook_secret='whsec').verify_webhook(b'{}', {}) is None
