# services/availability_service.py
"""
Availability Engine.

All times are facility-local "HH:MM" strings, zero-padded, so string
comparison orders them correctly ("24:00" sorts after every real time).
Intervals are half-open: a booking ending at 12:00 does not conflict with
one starting at 12:00.
"""

from datetime import timedelta
from flask import current_app
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError

from app.errors import ValidationError
from models.booking import Booking, ACTIVE_BOOKING_STATUSES, BookingPaymentStatus
from models.bookingCourt import BookingCourt
from models.timeSlot import TimeSlot
from services.booking_policy import parse_hhmm, format_minutes, intervals_overlap, weekday_name
from services.utils import local_now

MAX_RANGE_DAYS = 31


class AvailabilityService:

    @staticmethod
    def _active_bookings_query(ground_id, day, now):
        """Bookings holding a court on that day. Expired unpaid holds are ignored."""
        return Booking.query.filter(
            Booking.ground_id == ground_id,
            Booking.date == day,
            Booking.status.in_(ACTIVE_BOOKING_STATUSES),
            or_(
                Booking.payment_status != BookingPaymentStatus.PENDING.value,
                Booking.expires_at.is_(None),
                Booking.expires_at > now,
            )
        )

    @staticmethod
    def active_bookings(ground_id, day, now=None):
        now = now or local_now()
        return AvailabilityService._active_bookings_query(ground_id, day, now)\
            .order_by(Booking.start_time).all()

    @staticmethod
    def blocks_for_day(ground_id, day):
        candidates = TimeSlot.query.filter(
            TimeSlot.ground_id == ground_id,
            TimeSlot.status == TimeSlot.STATUS_BLOCKED,
            or_(
                TimeSlot.date == day,
                TimeSlot.is_recurring.is_(True) & (TimeSlot.date <= day),
            )
        ).order_by(TimeSlot.start_time).all()
        return [block for block in candidates if block.applies_on(day)]

    @staticmethod
    def check_availability(ground_id, day, start_time, end_time, courts, now=None):
        """
        Returns {available, conflicts, message}. Conflicts are bookings on any
        of the requested courts plus blocks, which cover every court.
        Fails closed: a store error reports the slot as unavailable.
        """
        now = now or local_now()
        try:
            booking_conflicts = AvailabilityService._active_bookings_query(ground_id, day, now).filter(
                Booking.start_time < end_time,
                Booking.end_time > start_time,
                Booking.court_rows.any(BookingCourt.court.in_(courts)),
            ).all()

            start, end = parse_hhmm(start_time), parse_hhmm(end_time, allow_end_of_day=True)
            block_conflicts = [
                block for block in AvailabilityService.blocks_for_day(ground_id, day)
                if intervals_overlap(
                    parse_hhmm(block.start_time),
                    parse_hhmm(block.end_time, allow_end_of_day=True),
                    start, end
                )
            ]
        except SQLAlchemyError as e:
            current_app.logger.error(f"❌ Availability check failed for {ground_id} on {day}: {str(e)}")
            return {
                'available': False,
                'conflicts': [],
                'message': 'Unable to verify availability. Please try again.',
                'errorCode': 'AVAILABILITY_CHECK_FAILED',
            }

        conflicts = [dict(b.to_conflict_dict(), type='booking') for b in booking_conflicts]
        conflicts += [
            {
                'type': 'blocked',
                'id': block.id,
                'startTime': block.start_time,
                'endTime': block.end_time,
                'reason': block.reason,
            }
            for block in block_conflicts
        ]

        if not conflicts:
            return {'available': True, 'conflicts': [], 'message': 'Time slot is available'}

        if block_conflicts and not booking_conflicts:
            message = 'Selected time overlaps a blocked period'
        else:
            message = 'Selected time slot is already booked for the chosen court(s)'
        return {'available': False, 'conflicts': conflicts, 'message': message}

    @staticmethod
    def _build_grid(ground, day, bookings, blocks):
        if not ground.is_working_day(day):
            return []

        step = current_app.config.get('SLOT_DURATION_MINUTES', 60)
        open_at = parse_hhmm(ground.open_time)
        close_at = parse_hhmm(ground.close_time, allow_end_of_day=True)
        courts = list(ground.courts or [])

        booking_spans = [
            (parse_hhmm(b.start_time), parse_hhmm(b.end_time, allow_end_of_day=True), b)
            for b in bookings
        ]
        block_spans = [
            (parse_hhmm(s.start_time), parse_hhmm(s.end_time, allow_end_of_day=True), s)
            for s in blocks
        ]

        slots = []
        slot_start = open_at
        while slot_start < close_at:
            slot_end = min(slot_start + step, close_at)

            covering_bookings = [b for start, end, b in booking_spans if start <= slot_start < end]
            covering_blocks = [s for start, end, s in block_spans if start <= slot_start < end]

            booked_courts = {court for b in covering_bookings for court in b.selected_courts}
            if covering_blocks:
                reason = 'Blocked'
                info = {'reason': covering_blocks[0].reason, 'timeSlotId': covering_blocks[0].id}
                free_courts = []
            elif covering_bookings:
                reason = 'Booked'
                info = {'bookingIds': [b.booking_id for b in covering_bookings], 'courts': sorted(booked_courts)}
                free_courts = [c for c in courts if c not in booked_courts]
            else:
                reason = None
                info = None
                free_courts = courts

            slots.append({
                'startTime': format_minutes(slot_start),
                'endTime': format_minutes(slot_end),
                'duration': (slot_end - slot_start) / 60,
                'isAvailable': reason is None,
                'reason': reason,
                'conflictingInfo': info,
                'availableCourts': free_courts,
            })
            slot_start += step
        return slots

    @staticmethod
    def list_available_slots(ground, day, now=None):
        now = now or local_now()
        if day < now.date():
            raise ValidationError('Cannot get slots for past dates')

        bookings = AvailabilityService.active_bookings(ground.ground_id, day, now)
        blocks = AvailabilityService.blocks_for_day(ground.ground_id, day)
        slots = AvailabilityService._build_grid(ground, day, bookings, blocks)
        current_app.logger.debug(f"🔄 {len(slots)} slots built for {ground.ground_id} on {day}")
        return {
            'groundId': ground.ground_id,
            'date': day.isoformat(),
            'dayOfWeek': weekday_name(day),
            'isWorkingDay': ground.is_working_day(day),
            'openTime': ground.open_time,
            'closeTime': ground.close_time,
            'courts': ground.courts or [],
            'slots': slots,
            'totalSlots': len(slots),
            'availableSlots': len([s for s in slots if s['isAvailable']]),
        }

    @staticmethod
    def ground_availability(ground, start_date=None, end_date=None, now=None):
        now = now or local_now()
        start_date = start_date or now.date()
        end_date = end_date or (start_date + timedelta(days=7))
        if end_date < start_date:
            raise ValidationError('endDate cannot be before startDate')
        if (end_date - start_date).days > MAX_RANGE_DAYS:
            raise ValidationError(f'Date range cannot exceed {MAX_RANGE_DAYS} days')

        days = []
        day = start_date
        while day <= end_date:
            working = ground.is_working_day(day)
            bookings = AvailabilityService.active_bookings(ground.ground_id, day, now) if working else []
            blocks = AvailabilityService.blocks_for_day(ground.ground_id, day) if working else []
            grid = AvailabilityService._build_grid(ground, day, bookings, blocks)
            days.append({
                'date': day.isoformat(),
                'dayOfWeek': weekday_name(day),
                'isWorkingDay': working,
                'openTime': ground.open_time if working else None,
                'closeTime': ground.close_time if working else None,
                'bookings': [b.to_conflict_dict() for b in bookings],
                'blockedSlots': [block.to_dict() for block in blocks],
                'availableSlots': [s['startTime'] for s in grid if s['isAvailable']],
            })
            day += timedelta(days=1)
        return days
