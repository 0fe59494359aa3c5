"""
Notification dispatch hooks.

Every hook defers to transaction.on_commit, so nothing is sent for work
that rolls back, and hands the delivery to Celery. A failure to build or
enqueue a notification is logged and never reaches the caller.
"""
import logging

from django.db import transaction

logger = logging.getLogger(__name__)


class BookingNotifier:
    """
    Fire-and-forget notifications about bookings and payouts
    """

    @staticmethod
    def _enqueue(task, **kwargs):
        try:
            task.delay(**kwargs)
        except Exception as e:
            logger.error(f"Failed to enqueue {task.name} {kwargs}: {e}", exc_info=True)

    def _dispatch(self, task_name, **kwargs):
        try:
            from apps.notifications import tasks
            task = getattr(tasks, task_name)
            transaction.on_commit(lambda: self._enqueue(task, **kwargs))
        except Exception as e:
            logger.error(f"Failed to schedule notification {task_name} {kwargs}: {e}", exc_info=True)

    def notify_booking_confirmed(self, booking):
        self._dispatch('send_booking_confirmed_task', booking_id=str(booking.id))

    def notify_booking_cancelled(self, booking, refund=False):
        self._dispatch('send_booking_cancelled_task', booking_id=str(booking.id), refund=refund)

    def notify_instructor(self, booking, event):
        """
        Args:
            booking: Booking with an assigned instructor
            event: 'confirmed', 'cancelled' or 'refunded'
        """
        if not booking.instructor_id:
            return
        self._dispatch('send_instructor_notification_task', booking_id=str(booking.id), event=event)

    def notify_admin_payout_created(self, payout):
        self._dispatch('send_payout_created_task', payout_id=str(payout.id))

    def notify_payout_status_changed(self, payout, old_status, new_status):
        self._dispatch(
            'send_payout_status_task',
            payout_id=str(payout.id),
            old_status=old_status,
            new_status=new_status,
        )

    def notify_admin_alert(self, text, booking=None):
        self._dispatch('send_admin_alert_task', text=text, booking_id=str(booking.id) if booking else None)


# Singleton instance
booking_notifier = BookingNotifier()
