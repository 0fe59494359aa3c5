"""
Tinkoff acquiring gateway (API v2).
"""
import hashlib
import hmac
import json
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

import requests
from django.conf import settings

from apps.core.utils.constants import GATEWAY_SUCCESS, GATEWAY_FAILED, GATEWAY_REFUNDED
from .base import (
    PaymentGateway,
    PaymentGatewayError,
    PaymentInitResult,
    RefundResult,
    WebhookData,
    to_minor_units,
)

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 15

STATUS_MAP = {
    'CONFIRMED': GATEWAY_SUCCESS,
    'REJECTED': GATEWAY_FAILED,
    'CANCELED': GATEWAY_FAILED,
    'DEADLINE_EXPIRED': GATEWAY_FAILED,
    'AUTH_FAIL': GATEWAY_FAILED,
    'REVERSED': GATEWAY_FAILED,
    'REFUNDED': GATEWAY_REFUNDED,
}


def _token_value(value):
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value)


def generate_token(params: Dict[str, Any], password: str) -> str:
    """
    Request/notification token: SHA-256 over the values of the root-level
    scalar fields plus Password, concatenated in key order.
    """
    prepared = {
        key: value for key, value in params.items()
        if key != 'Token' and not isinstance(value, (dict, list)) and value is not None
    }
    prepared['Password'] = password
    concatenated = ''.join(_token_value(prepared[key]) for key in sorted(prepared))
    return hashlib.sha256(concatenated.encode('utf-8')).hexdigest()


class TinkoffGateway(PaymentGateway):
    name = 'tinkoff'

    def __init__(self, terminal_key=None, password=None, api_url=None):
        self.terminal_key = terminal_key if terminal_key is not None else settings.TINKOFF_TERMINAL_KEY
        self.password = password if password is not None else settings.TINKOFF_PASSWORD
        self.api_url = (api_url or settings.TINKOFF_API_URL).rstrip('/')
        if not self.terminal_key or not self.password:
            logger.warning("Tinkoff credentials are not configured")

    def sign(self, params: Dict[str, Any]) -> Dict[str, Any]:
        signed = dict(params)
        signed['Token'] = generate_token(signed, self.password)
        return signed

    def _post(self, method: str, params: Dict[str, Any]) -> Dict[str, Any]:
        body = self.sign({'TerminalKey': self.terminal_key, **params})
        try:
            response = requests.post(f"{self.api_url}/{method}", json=body, timeout=REQUEST_TIMEOUT)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            raise PaymentGatewayError(f"Tinkoff {method} request failed: {e}") from e

        if not data.get('Success'):
            raise PaymentGatewayError(
                f"Tinkoff {method} rejected: {data.get('ErrorCode')} {data.get('Message')} {data.get('Details', '')}".strip()
            )
        return data

    def _receipt(self, customer_email, customer_phone, items):
        receipt_items = []
        for item in items:
            quantity = item.get('quantity', 1)
            price = to_minor_units(item['price'])
            receipt_items.append({
                'Name': str(item['name'])[:128],
                'Price': price,
                'Quantity': quantity,
                'Amount': price * quantity,
                'Tax': 'none',
            })
        receipt = {'Taxation': 'usn_income', 'Items': receipt_items}
        if customer_email:
            receipt['Email'] = customer_email
        if customer_phone:
            receipt['Phone'] = customer_phone
        return receipt

    def init_payment(
        self,
        order_reference: str,
        amount: Decimal,
        description: str,
        customer_email: str = '',
        customer_phone: str = '',
        items: Optional[List[Dict[str, Any]]] = None,
    ) -> PaymentInitResult:
        params = {
            'Amount': to_minor_units(amount),
            'OrderId': order_reference,
            'Description': description[:250],
            'SuccessURL': settings.PAYMENT_SUCCESS_URL,
            'FailURL': settings.PAYMENT_FAIL_URL,
            'NotificationURL': settings.PAYMENT_CALLBACK_URL,
            'DATA': {'Phone': customer_phone, 'Email': customer_email},
        }
        if items:
            params['Receipt'] = self._receipt(customer_email, customer_phone, items)

        data = self._post('Init', params)
        logger.info(f"Tinkoff payment {data.get('PaymentId')} initialised for order {order_reference}")
        return PaymentInitResult(
            payment_id=str(data['PaymentId']),
            payment_url=data.get('PaymentURL', ''),
            status=data.get('Status', 'NEW'),
            raw=data,
        )

    def verify_webhook(self, body: bytes, headers) -> Optional[Dict[str, Any]]:
        try:
            payload = json.loads(body)
        except (TypeError, ValueError):
            return None
        if not isinstance(payload, dict) or not payload.get('Token'):
            return None

        expected = generate_token(payload, self.password)
        if not hmac.compare_digest(str(payload['Token']), expected):
            return None
        return payload

    def parse_webhook(self, payload: Dict[str, Any]) -> WebhookData:
        raw_status = str(payload.get('Status', ''))
        amount = payload.get('Amount')
        return WebhookData(
            order_reference=payload.get('OrderId'),
            payment_id=str(payload['PaymentId']) if payload.get('PaymentId') is not None else None,
            status=STATUS_MAP.get(raw_status, raw_status),
            raw_status=raw_status,
            amount=Decimal(amount) / 100 if amount is not None else None,
        )

    def refund_payment(self, payment_id: str, amount: Optional[Decimal] = None) -> RefundResult:
        params = {'PaymentId': payment_id}
        if amount is not None:
            params['Amount'] = to_minor_units(amount)
        data = self._post('Cancel', params)
        logger.info(f"Tinkoff payment {payment_id} refund requested: {data.get('Status')}")
        return RefundResult(refund_id=str(data.get('PaymentId', payment_id)), status=data.get('Status', ''), raw=data)

    def cancel_payment(self, payment_id: str) -> RefundResult:
        data = self._post('Cancel', {'PaymentId': payment_id})
        return RefundResult(refund_id=str(data.get('PaymentId', payment_id)), status=data.get('Status', ''), raw=data)
