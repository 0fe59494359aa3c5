"""
Email notification service.
Sends plain-text transactional email through Django's mail backend.
"""
import logging
from typing import Optional, Dict, Any

from django.conf import settings
from django.core.mail import EmailMessage
from django.template.loader import render_to_string
from django.utils import timezone

from apps.notifications.models import (
    NotificationChannel,
    NotificationLog,
    NotificationStatus,
    NotificationType,
)

logger = logging.getLogger(__name__)


class EmailNotificationService:
    """
    Service class for sending email notifications.
    """

    TEMPLATE_MAP = {
        NotificationType.BOOKING_CONFIRMED: 'notifications/email/booking_confirmed.txt',
        NotificationType.BOOKING_CANCELLED: 'notifications/email/booking_cancelled.txt',
        NotificationType.BOOKING_REFUNDED: 'notifications/email/booking_cancelled.txt',
        NotificationType.INSTRUCTOR_BOOKING: 'notifications/email/instructor_booking.txt',
        NotificationType.PAYOUT_CREATED: 'notifications/email/payout.txt',
        NotificationType.PAYOUT_STATUS_CHANGED: 'notifications/email/payout.txt',
    }

    SUBJECT_MAP = {
        NotificationType.BOOKING_CONFIRMED: 'Your training is booked - {date}',
        NotificationType.BOOKING_CANCELLED: 'Booking cancelled - {date}',
        NotificationType.BOOKING_REFUNDED: 'Booking refunded - {date}',
        NotificationType.INSTRUCTOR_BOOKING: 'Training update - {date}',
        NotificationType.PAYOUT_CREATED: 'Payout for {period}',
        NotificationType.PAYOUT_STATUS_CHANGED: 'Payout for {period}: {status}',
    }

    @classmethod
    def send_email(
        cls,
        recipient_email: str,
        notification_type: str,
        context: Dict[str, Any],
        booking_id=None,
        payout_id=None,
        task_id=None,
    ) -> Optional[NotificationLog]:
        """
        Render and send one email.

        Args:
            recipient_email: Recipient's email address
            notification_type: Type of notification (from NotificationType)
            context: Template context dictionary
            booking_id: Optional related booking UUID
            payout_id: Optional related payout UUID
            task_id: Celery task id; a retry of the same task does not resend

        Returns:
            NotificationLog instance, or None if there is no recipient

        Raises:
            Exception from the mail backend, after the failure is logged
        """
        if not recipient_email:
            logger.warning(f"Skipping {notification_type} email: no recipient")
            return None

        sent = NotificationLog.already_sent(task_id, NotificationChannel.EMAIL, recipient_email, notification_type)
        if sent:
            logger.info(f"Email {notification_type} to {recipient_email} already sent by task {task_id}")
            return sent

        subject = cls.SUBJECT_MAP.get(notification_type, 'Slope School').format(
            date=context.get('date', ''),
            period=context.get('period', ''),
            status=context.get('status', ''),
        )

        log = NotificationLog.objects.create(
            channel=NotificationChannel.EMAIL,
            notification_type=notification_type,
            recipient=recipient_email,
            subject=subject,
            booking_id=booking_id,
            payout_id=payout_id,
            task_id=task_id or '',
        )

        try:
            body = render_to_string(cls.TEMPLATE_MAP[notification_type], context)
            EmailMessage(
                subject=subject,
                body=body,
                from_email=settings.DEFAULT_FROM_EMAIL,
                to=[recipient_email],
            ).send(fail_silently=False)
        except Exception as e:
            log.status = NotificationStatus.FAILED
            log.error_message = str(e)
            log.save(update_fields=['status', 'error_message', 'updated_at'])
            logger.error(f"Failed to send email {notification_type} to {recipient_email}: {e}")
            raise

        log.status = NotificationStatus.SENT
        log.sent_at = timezone.now()
        log.save(update_fields=['status', 'sent_at', 'updated_at'])
        logger.info(f"Email sent: {notification_type} to {recipient_email}")
        return log
