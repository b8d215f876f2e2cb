# tests/test_availability.py

import uuid
from datetime import date, datetime, timedelta

import pytest

from app.errors import ValidationError
from db.extensions import db
from models.booking import Booking, BookingStatus, BookingPaymentStatus
from models.bookingCourt import BookingCourt
from models.ground import WEEKDAY_NAMES
from models.timeSlot import TimeSlot
from services.availability_service import AvailabilityService


def add_booking(ground, user, day, start, end, courts, status=BookingStatus.CONFIRMED,
                payment_status=BookingPaymentStatus.COMPLETED, expires_at=None):
    booking = Booking(
        booking_id=f"BKTEST{uuid.uuid4().hex[:10].upper()}",
        ground_id=ground.ground_id,
        user_id=user.id,
        sport='Football',
        date=day,
        start_time=start,
        end_time=end,
        duration=1,
        price_per_hour=500,
        total_amount=500,
        status=status.value,
        payment_status=payment_status.value,
        expires_at=expires_at,
    )
    booking.court_rows = [BookingCourt(court=c) for c in courts]
    db.session.add(booking)
    db.session.commit()
    return booking


def add_block(ground, owner, day, start, end, **kwargs):
    block = TimeSlot(
        ground_id=ground.ground_id,
        date=day,
        start_time=start,
        end_time=end,
        reason=kwargs.pop('reason', 'Maintenance'),
        status=TimeSlot.STATUS_BLOCKED,
        blocked_by=owner.id,
        **kwargs
    )
    db.session.add(block)
    db.session.commit()
    return block


def test_hourly_grid_marks_booked_and_blocked_hours(ground, player, owner, weekday_date):
    add_booking(ground, player, weekday_date, '10:00', '12:00', ['Court 1'])
    add_block(ground, owner, weekday_date, '18:00', '19:00')

    grid = AvailabilityService.list_available_slots(ground, weekday_date)
    slots = {s['startTime']: s for s in grid['slots']}

    assert len(grid['slots']) == 16
    assert slots['06:00']['endTime'] == '07:00'
    assert slots['21:00']['endTime'] == '22:00'

    assert slots['10:00']['reason'] == 'Booked'
    assert slots['11:00']['reason'] == 'Booked'
    assert slots['10:00']['availableCourts'] == ['Court 2']
    assert slots['18:00']['reason'] == 'Blocked'
    assert slots['18:00']['availableCourts'] == []

    unavailable = {start for start, s in slots.items() if not s['isAvailable']}
    assert unavailable == {'10:00', '11:00', '18:00'}
    assert grid['availableSlots'] == 13


def test_closed_weekday_yields_no_slots(ground, weekday_date):
    ground.working_days = ['saturday', 'sunday']
    db.session.commit()

    grid = AvailabilityService.list_available_slots(ground, weekday_date)
    assert grid['isWorkingDay'] is False
    assert grid['slots'] == []
    assert grid['availableSlots'] == 0


def test_past_date_is_rejected(ground):
    with pytest.raises(ValidationError):
        AvailabilityService.list_available_slots(ground, date.today() - timedelta(days=2))


def test_other_court_stays_available(ground, player, weekday_date):
    add_booking(ground, player, weekday_date, '10:00', '12:00', ['Court 1'])

    same_court = AvailabilityService.check_availability(
        ground.ground_id, weekday_date, '11:00', '13:00', ['Court 1'])
    other_court = AvailabilityService.check_availability(
        ground.ground_id, weekday_date, '11:00', '13:00', ['Court 2'])

    assert same_court['available'] is False
    assert same_court['conflicts'][0]['type'] == 'booking'
    assert other_court['available'] is True


def test_touching_intervals_do_not_conflict(ground, player, weekday_date):
    add_booking(ground, player, weekday_date, '10:00', '12:00', ['Court 1'])

    result = AvailabilityService.check_availability(
        ground.ground_id, weekday_date, '12:00', '13:00', ['Court 1'])
    assert result['available'] is True


def test_block_covers_every_court(ground, owner, weekday_date):
    add_block(ground, owner, weekday_date, '18:00', '20:00')

    result = AvailabilityService.check_availability(
        ground.ground_id, weekday_date, '19:00', '20:00', ['Court 2'])
    assert result['available'] is False
    assert result['conflicts'][0]['type'] == 'blocked'


def test_recurring_block_applies_on_listed_weekdays(ground, owner, weekday_date):
    add_block(
        ground, owner, weekday_date, '07:00', '08:00',
        is_recurring=True,
        recurring_days=[WEEKDAY_NAMES[weekday_date.weekday()]],
        end_date=weekday_date + timedelta(days=21),
    )

    next_week = weekday_date + timedelta(days=7)
    day_after = weekday_date + timedelta(days=1)
    assert not AvailabilityService.check_availability(
        ground.ground_id, next_week, '07:00', '08:00', ['Court 1'])['available']
    assert AvailabilityService.check_availability(
        ground.ground_id, day_after, '07:00', '08:00', ['Court 1'])['available']
    assert AvailabilityService.check_availability(
        ground.ground_id, weekday_date + timedelta(days=28), '07:00', '08:00', ['Court 1'])['available']


def test_cancelled_and_expired_bookings_free_the_slot(ground, player, weekday_date):
    add_booking(ground, player, weekday_date, '10:00', '11:00', ['Court 1'], status=BookingStatus.CANCELLED)
    add_booking(
        ground, player, weekday_date, '10:00', '11:00', ['Court 1'],
        payment_status=BookingPaymentStatus.PENDING,
        expires_at=datetime(2000, 1, 1),
    )

    result = AvailabilityService.check_availability(
        ground.ground_id, weekday_date, '10:00', '11:00', ['Court 1'])
    assert result['available'] is True


def test_multi_day_availability_range(ground, player, weekday_date):
    add_booking(ground, player, weekday_date, '10:00', '11:00', ['Court 1'])

    days = AvailabilityService.ground_availability(ground, weekday_date, weekday_date + timedelta(days=2))
    assert [d['date'] for d in days] == [
        (weekday_date + timedelta(days=i)).isoformat() for i in range(3)
    ]
    assert '10:00' not in days[0]['availableSlots']
    assert '10:00' in days[1]['availableSlots']
    assert days[0]['bookings'][0]['courts'] == ['Court 1']
