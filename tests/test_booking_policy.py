# tests/test_booking_policy.py

from datetime import date, datetime
from types import SimpleNamespace

import pytest

from app.errors import ValidationError
from services.booking_policy import (
    parse_hhmm, compute_end_time, intervals_overlap, is_weekend,
    calculate_pricing, hours_until_start, refund_amount, can_be_cancelled, booking_refund
)

FRIDAY = date(2030, 5, 31)
SATURDAY = date(2030, 6, 1)
SUNDAY = date(2030, 6, 2)
TUESDAY = date(2030, 6, 4)


def _ground(weekday=500, weekend=800):
    return SimpleNamespace(weekday_price=weekday, weekend_price=weekend, currency='INR')


def test_parse_hhmm():
    assert parse_hhmm('00:00') == 0
    assert parse_hhmm('09:30') == 570
    assert parse_hhmm('24:00', allow_end_of_day=True) == 1440
    with pytest.raises(ValidationError):
        parse_hhmm('24:00')
    with pytest.raises(ValidationError):
        parse_hhmm('9:30')


def test_end_time_is_start_plus_duration():
    assert compute_end_time('10:00', 2) == '12:00'
    assert compute_end_time('18:30', 1) == '19:30'
    assert compute_end_time('22:00', 2) == '24:00'


def test_end_time_past_midnight_is_rejected():
    with pytest.raises(ValidationError):
        compute_end_time('23:00', 2)


def test_half_open_intervals():
    assert intervals_overlap(600, 720, 660, 780)
    assert not intervals_overlap(600, 720, 720, 780)
    assert not intervals_overlap(720, 780, 600, 720)


def test_weekend_days():
    assert is_weekend(FRIDAY)
    assert is_weekend(SATURDAY)
    assert is_weekend(SUNDAY)
    assert not is_weekend(TUESDAY)
    assert is_weekend(TUESDAY, weekend_days=['tuesday'])


def test_pricing_uses_weekend_rate_per_court():
    weekday = calculate_pricing(_ground(), TUESDAY, 2, 1)
    assert weekday['pricePerHour'] == 500
    assert weekday['totalAmount'] == 1000
    assert weekday['isWeekend'] is False

    weekend = calculate_pricing(_ground(), SATURDAY, 2, 3)
    assert weekend['pricePerHour'] == 800
    assert weekend['totalAmount'] == 800 * 2 * 3
    assert weekend['currency'] == 'INR'


def test_refund_schedule():
    assert refund_amount(1000, 25) == 1000
    assert refund_amount(1000, 24) == 1000
    assert refund_amount(1000, 10) == 500
    assert refund_amount(1000, 2) == 500
    assert refund_amount(1000, 1) == 0


def test_refund_never_exceeds_total():
    for hours in (0, 1.5, 3, 23.9, 48, 500):
        assert 0 <= refund_amount(750, hours) <= 750


def test_cancellation_gate():
    now = datetime(2030, 6, 4, 8, 30)
    assert hours_until_start(TUESDAY, '10:00', now) == pytest.approx(1.5)
    assert not can_be_cancelled('confirmed', hours_until_start(TUESDAY, '10:00', now))
    assert can_be_cancelled('confirmed', hours_until_start(TUESDAY, '11:30', now))
    assert not can_be_cancelled('cancelled', 48)
    assert not can_be_cancelled('completed', 48)


def test_booking_refund_only_for_confirmed():
    now = datetime(2030, 6, 1, 8, 0)
    booking = SimpleNamespace(status='confirmed', date=TUESDAY, start_time='10:00', total_amount=1000)
    assert booking_refund(booking, now) == 1000

    booking.status = 'cancelled'
    assert booking_refund(booking, now) == 0
