from datetime import date, time
from decimal import Decimal

import pytest

from apps.core.utils.constants import TARIFF_KIND_GROUP
from apps.core.utils.helpers import local_datetime, normalize_phone
from apps.schedules.models import Tariff


@pytest.mark.parametrize('raw, expected', [
    ('8 (912) 345-67-89', '+79123456789'),
    ('9123456789', '+79123456789'),
    ('79123456789', '+79123456789'),
    ('+7 912 345 67 89', '+79123456789'),
    ('', ''),
    (None, ''),
])
def test_normalize_phone(raw, expected):
    assert normalize_phone(raw) == expected


def test_local_datetime_uses_school_zone(settings):
    settings.SCHOOL_TIME_ZONE = 'Asia/Yekaterinburg'

    moment = local_datetime(date(2025, 1, 10), time(10, 0))

    assert moment.utcoffset().total_seconds() == 5 * 3600


def test_group_tariff_price_per_person():
    tariff = Tariff(kind=TARIFF_KIND_GROUP, participants=3, price=Decimal('10000.00'), duration_minutes=60)

    assert tariff.price_per_person == Decimal('3333.33')
