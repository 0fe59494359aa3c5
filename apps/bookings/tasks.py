"""
Celery tasks for bookings app.
"""
import logging
from celery import shared_task
from django.db import transaction
from django.utils import timezone

logger = logging.getLogger(__name__)


@shared_task(bind=True, name='bookings.refund_booking_payment', max_retries=3, default_retry_delay=120)
def refund_booking_payment(self, transaction_id: str):
    """
    Ask the gateway to refund a completed payment of a cancelled booking.

    The refund id is stored in the transaction metadata; the booking is
    moved to ``refunded`` later, by the gateway's REFUNDED callback.

    Args:
        transaction_id: UUID of the PaymentTransaction to refund
    """
    from apps.payments.gateways import get_gateway, PaymentGatewayError
    from apps.payments.models import PaymentTransaction
    from apps.core.utils.constants import PAYMENT_METADATA_REFUND

    try:
        payment_transaction = PaymentTransaction.objects.get(id=transaction_id)
    except PaymentTransaction.DoesNotExist:
        logger.warning(f"Transaction {transaction_id} not found for refund")
        return

    if payment_transaction.metadata.get(PAYMENT_METADATA_REFUND, {}).get('refund_id'):
        logger.info(f"Transaction {transaction_id} already has a refund. Skipping.")
        return

    if not payment_transaction.provider_payment_id:
        logger.error(f"Transaction {transaction_id} has no gateway payment id, cannot refund")
        return

    gateway = get_gateway(payment_transaction.provider or None)
    try:
        result = gateway.refund_payment(payment_transaction.provider_payment_id, payment_transaction.amount)
    except PaymentGatewayError as e:
        logger.error(f"Refund of transaction {transaction_id} failed: {e}")
        raise self.retry(exc=e)

    with transaction.atomic():
        payment_transaction = PaymentTransaction.objects.select_for_update().get(id=transaction_id)
        payment_transaction.metadata = {
            **payment_transaction.metadata,
            PAYMENT_METADATA_REFUND: {
                'refund_id': result.refund_id,
                'status': result.status,
                'requested_at': timezone.now().isoformat(),
            },
        }
        payment_transaction.save(update_fields=['metadata', 'updated_at'])

    logger.info(f"Refund {result.refund_id} requested for transaction {transaction_id}: {result.status}")


@shared_task(name='bookings.cancel_gateway_payment')
def cancel_gateway_payment(transaction_id: str):
    """
    Best-effort cancellation of an unpaid gateway payment, so the client
    can't pay for a booking that no longer exists.
    """
    from apps.payments.gateways import get_gateway
    from apps.payments.models import PaymentTransaction

    try:
        payment_transaction = PaymentTransaction.objects.get(id=transaction_id)
    except PaymentTransaction.DoesNotExist:
        return

    try:
        get_gateway(payment_transaction.provider or None).cancel_payment(payment_transaction.provider_payment_id)
        logger.info(f"Cancelled gateway payment {payment_transaction.provider_payment_id}")
    except Exception as e:
        logger.warning(f"Failed to cancel gateway payment {payment_transaction.provider_payment_id}: {e}")
