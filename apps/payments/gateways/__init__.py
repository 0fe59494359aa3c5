"""
Payment gateway selection.
"""
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from .base import (
    PaymentGateway,
    PaymentGatewayError,
    PaymentInitResult,
    RefundResult,
    WebhookData,
    booking_id_from_reference,
    order_reference_for,
)

__all__ = [
    'PaymentGateway',
    'PaymentGatewayError',
    'PaymentInitResult',
    'RefundResult',
    'WebhookData',
    'booking_id_from_reference',
    'order_reference_for',
    'get_gateway',
]


def get_gateway(name=None) -> PaymentGateway:
    """
    Gateway instance for ``name``, or for PAYMENT_PROVIDER when omitted.
    """
    name = (name or settings.PAYMENT_PROVIDER).lower()
    if name == 'tinkoff':
        from .tinkoff import TinkoffGateway
        return TinkoffGateway()
    if name == 'stripe':
        from .stripe_gateway import StripeGateway
        return StripeGateway()
    if name == 'mock':
        from .mock import MockGateway
        return MockGateway()
    raise ImproperlyConfigured(f"Unknown PAYMENT_PROVIDER: {name}")
