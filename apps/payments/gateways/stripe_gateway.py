"""
Stripe Checkout gateway.
"""
import json
import logging
from datetime import timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

import stripe
from django.conf import settings
from django.utils import timezone

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

# Configure Stripe
stripe.api_key = settings.STRIPE_SECRET_KEY

# Stripe does not accept Checkout expiry shorter than 30 minutes
MIN_SESSION_LIFETIME_MINUTES = 30

EVENT_STATUS_MAP = {
    'checkout.session.async_payment_succeeded': GATEWAY_SUCCESS,
    'checkout.session.expired': GATEWAY_FAILED,
    'checkout.session.async_payment_failed': GATEWAY_FAILED,
}


class StripeGateway(PaymentGateway):
    name = 'stripe'

    def __init__(self, webhook_secret=None):
        self.webhook_secret = webhook_secret if webhook_secret is not None else settings.STRIPE_WEBHOOK_SECRET
        self.currency = settings.STRIPE_CURRENCY

    def init_payment(
        self,
        order_reference: str,
        amount: Decimal,
        description: str,
        customer_email: str = '',
        customer_phone: str = '',
        items: Optional[List[Dict[str, Any]]] = None,
    ) -> PaymentInitResult:
        items = items or [{'name': description, 'price': amount, 'quantity': 1}]
        line_items = [{
            'price_data': {
                'currency': self.currency,
                'product_data': {'name': str(item['name'])[:250]},
                'unit_amount': to_minor_units(item['price']),
            },
            'quantity': item.get('quantity', 1),
        } for item in items]

        lifetime = max(settings.BOOKING_HOLD_MINUTES, MIN_SESSION_LIFETIME_MINUTES)
        params = {
            'mode': 'payment',
            'line_items': line_items,
            'client_reference_id': order_reference,
            'success_url': settings.PAYMENT_SUCCESS_URL,
            'cancel_url': settings.PAYMENT_FAIL_URL,
            'expires_at': int((timezone.now() + timedelta(minutes=lifetime)).timestamp()),
            'metadata': {'order_reference': order_reference},
            'payment_intent_data': {'metadata': {'order_reference': order_reference}},
        }
        if customer_email:
            params['customer_email'] = customer_email

        try:
            session = stripe.checkout.Session.create(**params)
        except stripe.StripeError as e:
            raise PaymentGatewayError(f"Stripe checkout session failed: {e}") from e

        logger.info(f"Stripe checkout session {session.id} created for order {order_reference}")
        return PaymentInitResult(
            payment_id=session.id,
            payment_url=session.url,
            status=session.status or 'open',
            raw={'id': session.id, 'url': session.url},
        )

    def verify_webhook(self, body: bytes, headers) -> Optional[Dict[str, Any]]:
        signature = headers.get('Stripe-Signature')
        if not signature or not self.webhook_secret:
            return None
        try:
            stripe.Webhook.construct_event(body, signature, self.webhook_secret)
        except (ValueError, stripe.SignatureVerificationError) as e:
            logger.warning(f"Stripe webhook verification failed: {e}")
            return None
        return json.loads(body)

    def _session_for_payment_intent(self, payment_intent_id):
        try:
            sessions = stripe.checkout.Session.list(payment_intent=payment_intent_id, limit=1)
        except stripe.StripeError as e:
            raise PaymentGatewayError(f"Stripe session lookup failed: {e}") from e
        return sessions.data[0] if sessions.data else None

    def parse_webhook(self, payload: Dict[str, Any]) -> WebhookData:
        event_type = payload.get('type', '')
        obj = payload.get('data', {}).get('object', {})

        if event_type == 'charge.refunded':
            raw_status = event_type if obj.get('refunded') else 'charge.partially_refunded'
            session = self._session_for_payment_intent(obj.get('payment_intent'))
            order_reference = obj.get('metadata', {}).get('order_reference')
            if session is not None:
                order_reference = order_reference or session.client_reference_id
            return WebhookData(
                order_reference=order_reference,
                payment_id=session.id if session is not None else None,
                status=GATEWAY_REFUNDED if obj.get('refunded') else raw_status,
                raw_status=raw_status,
                amount=Decimal(obj['amount_refunded']) / 100 if obj.get('amount_refunded') is not None else None,
            )

        if event_type == 'checkout.session.completed':
            status = GATEWAY_SUCCESS if obj.get('payment_status') == 'paid' else event_type
        else:
            status = EVENT_STATUS_MAP.get(event_type, event_type)

        amount = obj.get('amount_total')
        return WebhookData(
            order_reference=obj.get('client_reference_id') or obj.get('metadata', {}).get('order_reference'),
            payment_id=obj.get('id'),
            status=status,
            raw_status=event_type,
            amount=Decimal(amount) / 100 if amount is not None else None,
        )

    def refund_payment(self, payment_id: str, amount: Optional[Decimal] = None) -> RefundResult:
        try:
            session = stripe.checkout.Session.retrieve(payment_id)
            params = {'payment_intent': session.payment_intent}
            if amount is not None:
                params['amount'] = to_minor_units(amount)
            refund = stripe.Refund.create(**params)
        except stripe.StripeError as e:
            raise PaymentGatewayError(f"Stripe refund failed: {e}") from e

        logger.info(f"Stripe refund {refund.id} for session {payment_id}: {refund.status}")
        return RefundResult(refund_id=refund.id, status=refund.status, raw={'id': refund.id, 'status': refund.status})

    def cancel_payment(self, payment_id: str) -> RefundResult:
        try:
            session = stripe.checkout.Session.expire(payment_id)
        except stripe.StripeError as e:
            raise PaymentGatewayError(f"Stripe session expire failed: {e}") from e
        return RefundResult(refund_id=session.id, status=session.status)
