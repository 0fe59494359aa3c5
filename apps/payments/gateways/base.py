"""
Payment gateway interface.

A gateway starts payments, authenticates and parses its callbacks, and
reverses payments. Statuses reported by a gateway are normalised to
SUCCESS / FAILED / REFUNDED; anything else is passed through raw and
treated as intermediate.
"""
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional

from django.conf import settings


class PaymentGatewayError(Exception):
    """Gateway unreachable or refused the request"""


@dataclass
class PaymentInitResult:
    payment_id: str
    payment_url: str
    status: str
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass
class WebhookData:
    order_reference: Optional[str]
    payment_id: Optional[str]
    status: str
    raw_status: str
    amount: Optional[Decimal] = None


@dataclass
class RefundResult:
    refund_id: str
    status: str
    raw: Dict[str, Any] = field(default_factory=dict)


def order_reference_for(booking_id) -> str:
    """Order reference sent to the gateway for a booking."""
    return f"{settings.PAYMENT_ORDER_PREFIX}{uuid.UUID(str(booking_id)).hex}"


def booking_id_from_reference(order_reference) -> Optional[uuid.UUID]:
    """
    Recover the booking id from an order reference.

    Returns None when the reference was not issued by this system.
    """
    prefix = settings.PAYMENT_ORDER_PREFIX
    if not order_reference or not str(order_reference).startswith(prefix):
        return None
    try:
        return uuid.UUID(hex=str(order_reference)[len(prefix):])
    except ValueError:
        return None


def to_minor_units(amount) -> int:
    """Rubles to kopecks."""
    return int((Decimal(str(amount)) * 100).quantize(Decimal('1')))


class PaymentGateway(ABC):
    name = ''

    @abstractmethod
    def init_payment(
        self,
        order_reference: str,
        amount: Decimal,
        description: str,
        customer_email: str = '',
        customer_phone: str = '',
        items: Optional[List[Dict[str, Any]]] = None,
    ) -> PaymentInitResult:
        """
        Register a payment and return where to send the client.

        Raises:
            PaymentGatewayError: on network failure or rejection
        """

    @abstractmethod
    def verify_webhook(self, body: bytes, headers) -> Optional[Dict[str, Any]]:
        """Return the authenticated payload, or None if the signature is invalid."""

    @abstractmethod
    def parse_webhook(self, payload: Dict[str, Any]) -> WebhookData:
        ...

    @abstractmethod
    def refund_payment(self, payment_id: str, amount: Optional[Decimal] = None) -> RefundResult:
        ...

    @abstractmethod
    def cancel_payment(self, payment_id: str) -> RefundResult:
        ...
