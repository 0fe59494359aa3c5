"""
Helper utilities
"""
from typing import Optional
from datetime import date, datetime, time
from zoneinfo import ZoneInfo
import re

from django.conf import settings
from django.utils import timezone


def normalize_phone(value: Optional[str]) -> str:
    """
    Bring a Russian phone number to +7XXXXXXXXXX form.

    Spaces, dashes and parentheses are stripped. Values that don't look
    like a Russian number are returned stripped but otherwise untouched.
    """
    if not value:
        return ''
    phone = re.sub(r'[\s\-()]', '', str(value))
    if phone.startswith('+'):
        return phone
    if len(phone) == 11 and phone.startswith('8'):
        return '+7' + phone[1:]
    if len(phone) == 10:
        return '+7' + phone
    if phone.startswith('7'):
        return '+' + phone
    return phone


def school_timezone() -> ZoneInfo:
    return ZoneInfo(settings.SCHOOL_TIME_ZONE)


def school_now() -> datetime:
    """Current time in the school's local zone"""
    return timezone.now().astimezone(school_timezone())


def school_today() -> date:
    return school_now().date()


def local_datetime(day: date, at: time) -> datetime:
    """
    Aware datetime for a wall-clock date/time at the school
    """
    return datetime.combine(day, at, tzinfo=school_timezone())

