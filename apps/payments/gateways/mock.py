"""
Offline gateway for development and tests.

Callbacks are signed like Tinkoff notifications, with PAYMENT_MOCK_SECRET
as the password.
"""
import logging
import uuid
from decimal import Decimal
from typing import Any, Dict, List, Optional

from django.conf import settings

from .base import PaymentInitResult, RefundResult
from .tinkoff import TinkoffGateway

logger = logging.getLogger(__name__)


class MockGateway(TinkoffGateway):
    name = 'mock'

    def __init__(self, secret=None):
        super().__init__(
            terminal_key='mock-terminal',
            password=secret if secret is not None else settings.PAYMENT_MOCK_SECRET,
            api_url='http://mock.invalid',
        )

    def init_payment(
        self,
        order_reference: str,
        amount: Decimal,
        description: str,
        customer_email: str = '',
        customer_phone: str = '',
        items: Optional[List[Dict[str, Any]]] = None,
    ) -> PaymentInitResult:
        payment_id = f"mock-{uuid.uuid4().hex[:16]}"
        logger.info(f"Mock payment {payment_id} initialised for order {order_reference} ({amount})")
        return PaymentInitResult(
            payment_id=payment_id,
            payment_url=f"{settings.PAYMENT_SUCCESS_URL}?order={order_reference}",
            status='NEW',
            raw={'PaymentId': payment_id, 'OrderId': order_reference},
        )

    def refund_payment(self, payment_id: str, amount: Optional[Decimal] = None) -> RefundResult:
        logger.info(f"Mock refund for payment {payment_id}")
        return RefundResult(refund_id=f"mock-refund-{uuid.uuid4().hex[:12]}", status='REFUNDED')

    def cancel_payment(self, payment_id: str) -> RefundResult:
        return RefundResult(refund_id=payment_id, status='CANCELED')

    def build_callback(self, order_reference, payment_id, status, amount=None) -> Dict[str, Any]:
        """Signed notification as the gateway would POST it."""
        params = {
            'TerminalKey': self.terminal_key,
            'OrderId': order_reference,
            'PaymentId': payment_id,
            'Status': status,
            'Success': status in ('CONFIRMED', 'AUTHORIZED', 'REFUNDED'),
            'ErrorCode': '0',
        }
        if amount is not None:
            params['Amount'] = int(Decimal(str(amount)) * 100)
        return self.sign(params)
