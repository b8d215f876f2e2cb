# services/booking_policy.py
"""
Pure booking rules: clock arithmetic on "HH:MM" strings, weekend pricing,
the cancellation gate and the refund schedule.

Nothing here touches the database or the Flask app; callers pass in the
current facility-local time and any configured thresholds.
"""

import re
from datetime import datetime, timedelta

from app.errors import ValidationError
from models.ground import WEEKDAY_NAMES

MINUTES_PER_DAY = 24 * 60
DEFAULT_WEEKEND_DAYS = ('friday', 'saturday', 'sunday')

_HHMM = re.compile(r'^([01]\d|2[0-3]):([0-5]\d)$')


def parse_hhmm(value, allow_end_of_day=False):
    """'HH:MM' -> minutes since midnight. '24:00' only when allow_end_of_day."""
    if allow_end_of_day and value == '24:00':
        return MINUTES_PER_DAY
    match = _HHMM.match(value or '')
    if not match:
        raise ValidationError(f"Invalid time '{value}'. Use HH:MM (24-hour)")
    return int(match.group(1)) * 60 + int(match.group(2))


def format_minutes(minutes):
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def compute_end_time(start_time, duration_hours):
    """start + duration hours, same minutes. Bookings may end at 24:00 but not after."""
    end = parse_hhmm(start_time) + int(duration_hours) * 60
    if end > MINUTES_PER_DAY:
        raise ValidationError('Booking cannot extend past midnight')
    return format_minutes(end)


def intervals_overlap(start_a, end_a, start_b, end_b):
    """Half-open [start, end) overlap on minute offsets."""
    return start_a < end_b and end_a > start_b


def weekday_name(day):
    return WEEKDAY_NAMES[day.weekday()]


def is_weekend(day, weekend_days=DEFAULT_WEEKEND_DAYS):
    return weekday_name(day) in weekend_days


def calculate_pricing(ground, day, duration, court_count, weekend_days=DEFAULT_WEEKEND_DAYS):
    rate = ground.weekend_price if is_weekend(day, weekend_days) else ground.weekday_price
    return {
        'pricePerHour': rate,
        'duration': duration,
        'courtCount': court_count,
        'totalAmount': rate * duration * court_count,
        'currency': ground.currency or 'INR',
        'isWeekend': is_weekend(day, weekend_days),
    }


def start_datetime(day, start_time):
    return datetime.combine(day, datetime.min.time()) + timedelta(minutes=parse_hhmm(start_time))


def hours_until_start(day, start_time, now):
    return (start_datetime(day, start_time) - now).total_seconds() / 3600


def refund_amount(total_amount, hours_before_start, full_refund_hours=24,
                  cutoff_hours=2, partial_rate=0.5):
    if hours_before_start >= full_refund_hours:
        return total_amount
    if hours_before_start >= cutoff_hours:
        return round(total_amount * partial_rate, 2)
    return 0


def can_be_cancelled(status, hours_before_start, cutoff_hours=2):
    return status == 'confirmed' and hours_before_start > cutoff_hours


def booking_refund(booking, now, full_refund_hours=24, cutoff_hours=2, partial_rate=0.5):
    if booking.status != 'confirmed':
        return 0
    hours = hours_until_start(booking.date, booking.start_time, now)
    return refund_amount(booking.total_amount, hours, full_refund_hours, cutoff_hours, partial_rate)
