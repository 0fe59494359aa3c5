"""
Payment models.

This module contains:
- PaymentTransaction: one payment attempt, 1:1 with a Booking
- WebhookLog: every gateway callback, for debugging and audit
"""
from django.db import models
from django.utils import timezone
from apps.core.models import BaseModel
from apps.core.utils.constants import (
    PAYMENT_STATUSES,
    PAYMENT_STATUS_PENDING,
    PAYMENT_STATUS_COMPLETED,
    PAYMENT_METADATA_LATE_PAYMENT,
)


class PaymentTransaction(BaseModel):
    """
    Mirrors the external gateway's lifecycle for one booking.

    Status only moves away from pending once per distinct external
    signal; terminal rows are only touched to record metadata.
    """
    booking = models.OneToOneField(
        'bookings.Booking',
        on_delete=models.PROTECT,
        related_name='payment_transaction'
    )
    client = models.ForeignKey(
        'clients.Client',
        on_delete=models.PROTECT,
        related_name='payment_transactions'
    )

    amount = models.DecimalField(max_digits=10, decimal_places=2)
    status = models.CharField(
        max_length=20,
        choices=PAYMENT_STATUSES,
        default=PAYMENT_STATUS_PENDING,
        db_index=True
    )
    description = models.CharField(max_length=255, blank=True)

    # Gateway side
    provider = models.CharField(max_length=20, blank=True)
    provider_payment_id = models.CharField(
        max_length=255,
        blank=True,
        db_index=True,
        help_text="Payment identifier assigned by the gateway"
    )
    provider_status = models.CharField(
        max_length=50,
        blank=True,
        help_text="Last raw status reported by the gateway"
    )
    payment_url = models.URLField(max_length=1000, blank=True)
    metadata = models.JSONField(default=dict, blank=True)

    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'payment_transactions'
        verbose_name = 'Payment Transaction'
        verbose_name_plural = 'Payment Transactions'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'created_at'], name='payments_status_created_idx'),
        ]

    def __str__(self):
        return f"{self.amount} - {self.status} ({self.provider_payment_id or 'not started'})"

    @property
    def is_collected(self):
        """Money reached the school, including payments that arrived after cancellation."""
        return self.status == PAYMENT_STATUS_COMPLETED or bool(self.metadata.get(PAYMENT_METADATA_LATE_PAYMENT))


class WebhookLog(BaseModel):
    """
    Logs every payment gateway callback.

    Used for debugging, audit trail, and detecting processing failures.
    """
    provider = models.CharField(
        max_length=20,
        db_index=True,
        help_text="Gateway that sent the callback"
    )
    payment_id = models.CharField(max_length=255, blank=True, db_index=True)
    order_reference = models.CharField(max_length=255, blank=True)
    booking_id = models.UUIDField(null=True, blank=True, db_index=True)
    status = models.CharField(max_length=50, blank=True)

    signature_valid = models.BooleanField(default=False)

    payload = models.JSONField(
        default=dict,
        help_text="Full webhook payload (for debugging)"
    )

    # Processing status
    processed = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Whether webhook was successfully processed"
    )
    error_message = models.TextField(
        blank=True,
        help_text="Error message if processing failed"
    )
    processing_time = models.FloatField(
        null=True,
        blank=True,
        help_text="Processing time in seconds"
    )
    processed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'webhook_logs'
        verbose_name = 'Webhook Log'
        verbose_name_plural = 'Webhook Logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['provider', 'status'], name='webhooks_provider_status_idx'),
            models.Index(fields=['processed'], name='webhooks_processed_idx'),
            models.Index(fields=['created_at'], name='webhooks_created_idx'),
        ]

    def __str__(self):
        status = "✓" if self.processed else "✗"
        return f"{status} {self.provider} - {self.status} - {self.created_at}"

    def mark_processed(self, processing_time=None):
        """Mark webhook as successfully processed."""
        self.processed = True
        self.processing_time = processing_time
        self.processed_at = timezone.now()
        self.save(update_fields=['processed', 'processing_time', 'processed_at', 'booking_id', 'updated_at'])

    def mark_failed(self, error_message, processing_time=None):
        """Mark webhook processing as failed."""
        self.processed = False
        self.error_message = error_message
        self.processing_time = processing_time
        self.save(update_fields=['processed', 'error_message', 'processing_time', 'booking_id', 'updated_at'])
