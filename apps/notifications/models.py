"""
Notification models.
Every delivery attempt to a client, instructor or administrator is logged.
"""
from django.db import models
from apps.core.models import BaseModel


class NotificationType(models.TextChoices):
    """Types of notifications"""
    BOOKING_CONFIRMED = 'booking_confirmed', 'Booking Confirmed'
    BOOKING_CANCELLED = 'booking_cancelled', 'Booking Cancelled'
    BOOKING_REFUNDED = 'booking_refunded', 'Booking Refunded'
    INSTRUCTOR_BOOKING = 'instructor_booking', 'Instructor Booking Update'
    ADMIN_BOOKING = 'admin_booking', 'Administrator Booking Update'
    PAYOUT_CREATED = 'payout_created', 'Payout Created'
    PAYOUT_STATUS_CHANGED = 'payout_status_changed', 'Payout Status Changed'
    ADMIN_ALERT = 'admin_alert', 'Administrator Alert'


class NotificationChannel(models.TextChoices):
    EMAIL = 'email', 'Email'
    TELEGRAM = 'telegram', 'Telegram'


class NotificationStatus(models.TextChoices):
    """Status of a delivery attempt"""
    PENDING = 'pending', 'Pending'
    SENT = 'sent', 'Sent'
    FAILED = 'failed', 'Failed'
    SKIPPED = 'skipped', 'Skipped'


class NotificationLog(BaseModel):
    """
    Tracks all outbound notifications for auditing and debugging.
    """
    channel = models.CharField(
        max_length=20,
        choices=NotificationChannel.choices,
        db_index=True
    )
    notification_type = models.CharField(
        max_length=50,
        choices=NotificationType.choices,
        db_index=True
    )
    recipient = models.CharField(max_length=255, help_text='Email address or Telegram chat id')
    subject = models.CharField(max_length=255, blank=True)

    status = models.CharField(
        max_length=20,
        choices=NotificationStatus.choices,
        default=NotificationStatus.PENDING,
        db_index=True
    )
    error_message = models.TextField(blank=True)
    sent_at = models.DateTimeField(null=True, blank=True)

    # Related objects (optional)
    booking_id = models.UUIDField(null=True, blank=True, db_index=True)
    payout_id = models.UUIDField(null=True, blank=True, db_index=True)

    task_id = models.CharField(
        max_length=255,
        blank=True,
        db_index=True,
        help_text="Celery task that made the attempt; a retry skips recipients it already reached"
    )

    class Meta:
        db_table = 'notification_logs'
        verbose_name = 'Notification Log'
        verbose_name_plural = 'Notification Logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['notification_type', 'status'], name='notifications_type_status_idx'),
        ]

    @classmethod
    def already_sent(cls, task_id, channel, recipient, notification_type):
        if not task_id:
            return None
        return cls.objects.filter(
            task_id=task_id,
            channel=channel,
            recipient=recipient,
            notification_type=notification_type,
            status=NotificationStatus.SENT,
        ).first()

    def __str__(self):
        return f"{self.notification_type} via {self.channel} to {self.recipient} - {self.status}"
