"""
Telegram Bot API delivery for administrators and instructors.
"""
import asyncio
import logging
from typing import List, Optional

from django.conf import settings
from django.utils import timezone
from telegram import Bot
from telegram.error import TelegramError

from apps.notifications.models import (
    NotificationChannel,
    NotificationLog,
    NotificationStatus,
)

logger = logging.getLogger(__name__)


async def _deliver(chat_id: str, text: str):
    bot = Bot(token=settings.TELEGRAM_BOT_TOKEN, base_url=f"{settings.TELEGRAM_API_URL}/bot")
    async with bot:
        await bot.send_message(chat_id=chat_id, text=text, disable_web_page_preview=True)


class TelegramService:

    @staticmethod
    def admin_chat_ids() -> List[str]:
        return [str(chat_id).strip() for chat_id in settings.TELEGRAM_ADMIN_CHAT_IDS if str(chat_id).strip()]

    @staticmethod
    def send_message(
        chat_id: str,
        text: str,
        notification_type: str,
        booking_id=None,
        payout_id=None,
        task_id=None,
    ) -> Optional[NotificationLog]:
        """
        Send a message to one chat and log the attempt.

        Returns None when there is no chat. A chat already reached by the
        same task is not messaged again. Raises on delivery failure so
        that the calling task can retry.
        """
        if not chat_id:
            return None

        sent = NotificationLog.already_sent(task_id, NotificationChannel.TELEGRAM, str(chat_id), notification_type)
        if sent:
            logger.info(f"Telegram {notification_type} to {chat_id} already sent by task {task_id}")
            return sent

        log = NotificationLog.objects.create(
            channel=NotificationChannel.TELEGRAM,
            notification_type=notification_type,
            recipient=str(chat_id),
            subject=text.split('\n', 1)[0][:255],
            booking_id=booking_id,
            payout_id=payout_id,
            task_id=task_id or '',
        )

        if not settings.TELEGRAM_BOT_TOKEN:
            log.status = NotificationStatus.SKIPPED
            log.error_message = 'TELEGRAM_BOT_TOKEN is not configured'
            log.save(update_fields=['status', 'error_message', 'updated_at'])
            logger.info(f"Telegram not configured, skipped {notification_type} to {chat_id}")
            return log

        try:
            asyncio.run(_deliver(str(chat_id), text))
        except TelegramError as e:
            log.status = NotificationStatus.FAILED
            log.error_message = str(e)
            log.save(update_fields=['status', 'error_message', 'updated_at'])
            logger.error(f"Telegram {notification_type} to {chat_id} failed: {e}")
            raise

        log.status = NotificationStatus.SENT
        log.sent_at = timezone.now()
        log.save(update_fields=['status', 'sent_at', 'updated_at'])
        return log

    @classmethod
    def send_to_admins(cls, text: str, notification_type: str, booking_id=None, payout_id=None, task_id=None):
        logs = []
        for chat_id in cls.admin_chat_ids():
            log = cls.send_message(
                chat_id, text, notification_type,
                booking_id=booking_id, payout_id=payout_id, task_id=task_id,
            )
            if log:
                logs.append(log)
        return logs
