"""
Celery tasks for notification delivery.
Each task loads the current state of its booking/payout and delivers
to every channel that applies to it.
"""
import logging

from celery import shared_task

from apps.notifications.models import NotificationType

logger = logging.getLogger(__name__)

INSTRUCTOR_EVENT_TEXT = {
    'confirmed': 'A new training was booked with you.',
    'cancelled': 'A training with you was cancelled.',
    'refunded': 'A training with you was cancelled and refunded.',
}


def _booking_context(booking):
    instructor = booking.instructor
    return {
        'booking_id': str(booking.id),
        'client_name': booking.client.full_name,
        'client_phone': booking.client.phone,
        'date': booking.date.strftime('%d.%m.%Y'),
        'start_time': booking.start_time.strftime('%H:%M'),
        'end_time': booking.end_time.strftime('%H:%M'),
        'location': booking.get_location_display(),
        'kind': booking.get_kind_display(),
        'participants_count': booking.participants_count,
        'participants_names': booking.participants_names,
        'price_total': booking.price_total,
        'instructor_name': instructor.full_name if instructor else '',
        'reason': booking.cancellation_reason,
    }


def _payout_context(payout):
    return {
        'instructor_name': payout.instructor.full_name,
        'period': f"{payout.period_start:%d.%m.%Y} - {payout.period_end:%d.%m.%Y}",
        'status': payout.get_status_display(),
        'trainings_count': payout.trainings_count,
        'total_revenue': payout.total_revenue,
        'instructor_earnings': payout.instructor_earnings,
        'payment_method': payout.get_payment_method_display() if payout.payment_method else '',
        'payment_date': payout.payment_date.strftime('%d.%m.%Y') if payout.payment_date else '',
    }


def _load_booking(booking_id):
    from apps.bookings.models import Booking

    try:
        return Booking.objects.select_related('client', 'instructor').get(id=booking_id)
    except Booking.DoesNotExist:
        logger.warning(f"Booking {booking_id} not found for notification")
        return None


def _load_payout(payout_id):
    from apps.payouts.models import InstructorPayout

    try:
        return InstructorPayout.objects.select_related('instructor').get(id=payout_id)
    except InstructorPayout.DoesNotExist:
        logger.warning(f"Payout {payout_id} not found for notification")
        return None


@shared_task(bind=True, name='notifications.booking_confirmed', max_retries=3, default_retry_delay=60)
def send_booking_confirmed_task(self, booking_id: str):
    """
    Payment received: email the client, tell administrators.
    """
    from apps.notifications.services.email_service import EmailNotificationService
    from apps.notifications.services.telegram_service import TelegramService

    booking = _load_booking(booking_id)
    if not booking:
        return

    context = _booking_context(booking)
    try:
        EmailNotificationService.send_email(
            recipient_email=booking.client.email,
            notification_type=NotificationType.BOOKING_CONFIRMED,
            context=context,
            booking_id=booking.id,
            task_id=self.request.id,
        )
        TelegramService.send_to_admins(
            f"New paid booking\n"
            f"{context['kind']}, {context['date']} {context['start_time']}-{context['end_time']}, {context['location']}\n"
            f"Client: {context['client_name']} {context['client_phone']}\n"
            f"Participants: {context['participants_count']}, paid {context['price_total']} RUB",
            NotificationType.ADMIN_BOOKING,
            booking_id=booking.id,
            task_id=self.request.id,
        )
    except Exception as e:
        logger.error(f"Booking confirmed notification failed for {booking_id}: {e}")
        raise self.retry(exc=e)


@shared_task(bind=True, name='notifications.booking_cancelled', max_retries=3, default_retry_delay=60)
def send_booking_cancelled_task(self, booking_id: str, refund: bool = False):
    from apps.notifications.services.email_service import EmailNotificationService
    from apps.notifications.services.telegram_service import TelegramService

    booking = _load_booking(booking_id)
    if not booking:
        return

    context = {**_booking_context(booking), 'refund': refund}
    notification_type = NotificationType.BOOKING_REFUNDED if refund else NotificationType.BOOKING_CANCELLED
    try:
        EmailNotificationService.send_email(
            recipient_email=booking.client.email,
            notification_type=notification_type,
            context=context,
            booking_id=booking.id,
            task_id=self.request.id,
        )
        TelegramService.send_to_admins(
            f"Booking {'refunded' if refund else 'cancelled'}\n"
            f"{context['date']} {context['start_time']}, {context['client_name']}\n"
            f"Reason: {context['reason'] or '-'}",
            NotificationType.ADMIN_BOOKING,
            booking_id=booking.id,
            task_id=self.request.id,
        )
    except Exception as e:
        logger.error(f"Booking cancelled notification failed for {booking_id}: {e}")
        raise self.retry(exc=e)


@shared_task(bind=True, name='notifications.instructor_booking', max_retries=3, default_retry_delay=60)
def send_instructor_notification_task(self, booking_id: str, event: str):
    """
    Tell the assigned instructor about a booking change, by Telegram if
    the instructor has a chat id, otherwise by email.
    """
    from apps.notifications.services.email_service import EmailNotificationService
    from apps.notifications.services.telegram_service import TelegramService

    booking = _load_booking(booking_id)
    if not booking or not booking.instructor:
        return

    instructor = booking.instructor
    context = {**_booking_context(booking), 'event_text': INSTRUCTOR_EVENT_TEXT.get(event, event)}
    try:
        if instructor.telegram_chat_id:
            TelegramService.send_message(
                instructor.telegram_chat_id,
                f"{context['event_text']}\n"
                f"{context['date']} {context['start_time']}-{context['end_time']}, {context['location']}\n"
                f"Client: {context['client_name']} {context['client_phone']}\n"
                f"Participants: {context['participants_count']}",
                NotificationType.INSTRUCTOR_BOOKING,
                booking_id=booking.id,
                task_id=self.request.id,
            )
        else:
            EmailNotificationService.send_email(
                recipient_email=instructor.email,
                notification_type=NotificationType.INSTRUCTOR_BOOKING,
                context=context,
                booking_id=booking.id,
                task_id=self.request.id,
            )
    except Exception as e:
        logger.error(f"Instructor notification failed for booking {booking_id}: {e}")
        raise self.retry(exc=e)


@shared_task(bind=True, name='notifications.payout_created', max_retries=3, default_retry_delay=60)
def send_payout_created_task(self, payout_id: str):
    from apps.notifications.services.telegram_service import TelegramService

    payout = _load_payout(payout_id)
    if not payout:
        return

    context = _payout_context(payout)
    try:
        TelegramService.send_to_admins(
            f"Payout created: {context['instructor_name']}\n"
            f"Period: {context['period']}\n"
            f"Trainings: {context['trainings_count']}, revenue {context['total_revenue']} RUB\n"
            f"To pay: {context['instructor_earnings']} RUB",
            NotificationType.PAYOUT_CREATED,
            payout_id=payout.id,
            task_id=self.request.id,
        )
    except Exception as e:
        logger.error(f"Payout created notification failed for {payout_id}: {e}")
        raise self.retry(exc=e)


@shared_task(bind=True, name='notifications.payout_status_changed', max_retries=3, default_retry_delay=60)
def send_payout_status_task(self, payout_id: str, old_status: str, new_status: str):
    from apps.notifications.services.email_service import EmailNotificationService
    from apps.notifications.services.telegram_service import TelegramService

    payout = _load_payout(payout_id)
    if not payout:
        return

    context = _payout_context(payout)
    try:
        TelegramService.send_to_admins(
            f"Payout {context['instructor_name']} ({context['period']}): {old_status} -> {new_status}",
            NotificationType.PAYOUT_STATUS_CHANGED,
            payout_id=payout.id,
            task_id=self.request.id,
        )
        instructor = payout.instructor
        if instructor.telegram_chat_id:
            TelegramService.send_message(
                instructor.telegram_chat_id,
                f"Payout for {context['period']}: {context['status']}\n"
                f"Amount: {context['instructor_earnings']} RUB",
                NotificationType.PAYOUT_STATUS_CHANGED,
                payout_id=payout.id,
                task_id=self.request.id,
            )
        else:
            EmailNotificationService.send_email(
                recipient_email=instructor.email,
                notification_type=NotificationType.PAYOUT_STATUS_CHANGED,
                context=context,
                payout_id=payout.id,
                task_id=self.request.id,
            )
    except Exception as e:
        logger.error(f"Payout status notification failed for {payout_id}: {e}")
        raise self.retry(exc=e)


@shared_task(bind=True, name='notifications.admin_alert', max_retries=3, default_retry_delay=60)
def send_admin_alert_task(self, text: str, booking_id: str = None):
    from apps.notifications.services.telegram_service import TelegramService

    try:
        TelegramService.send_to_admins(
            f"ALERT\n{text}",
            NotificationType.ADMIN_ALERT,
            booking_id=booking_id,
            task_id=self.request.id,
        )
    except Exception as e:
        logger.error(f"Admin alert failed: {e}")
        raise self.retry(exc=e)
