# services/timeslot_service.py

from flask import current_app
from sqlalchemy import or_

from app.errors import AppError, NotFoundError, AuthorizationError, ConflictError, ValidationError
from db.extensions import db
from models.booking import Booking, BookingStatus, BookingPaymentStatus
from models.ground import Ground
from models.timeSlot import TimeSlot
from services.availability_service import AvailabilityService
from services.utils import local_now


class TimeSlotService:

    @staticmethod
    def _get_owned_ground(ground_id, user, lock=False):
        query = Ground.query.filter_by(ground_id=ground_id)
        if lock:
            # Same row lock create_booking takes, so blocks and bookings serialise per ground
            query = query.with_for_update(of=Ground)
        ground = query.first()
        if not ground:
            raise NotFoundError('Ground not found')
        if ground.owner_id != user.id:
            raise AuthorizationError("Access denied. You don't own this ground.")
        return ground

    @staticmethod
    def _overlapping_bookings(block, now):
        """Live bookings inside the block window on any day the block applies to."""
        query = Booking.query.filter(
            Booking.ground_id == block.ground_id,
            Booking.status != BookingStatus.CANCELLED.value,
            Booking.start_time < block.end_time,
            Booking.end_time > block.start_time,
            or_(
                Booking.payment_status != BookingPaymentStatus.PENDING.value,
                Booking.expires_at.is_(None),
                Booking.expires_at > now,
            )
        )
        if block.is_recurring:
            query = query.filter(Booking.date >= block.date)
            if block.end_date is not None:
                query = query.filter(Booking.date <= block.end_date)
        else:
            query = query.filter(Booking.date == block.date)

        return [b for b in query.order_by(Booking.date, Booking.start_time).all() if block.applies_on(b.date)]

    @staticmethod
    def block_time_slot(payload, user):
        try:
            return TimeSlotService._block_locked(payload, user)
        except AppError:
            db.session.rollback()
            raise

    @staticmethod
    def _block_locked(payload, user):
        ground = TimeSlotService._get_owned_ground(payload.ground_id, user, lock=True)

        now = local_now()
        last_day = payload.end_date if payload.is_recurring and payload.end_date else payload.date
        if last_day < now.date():
            raise ValidationError('Cannot block time slots in the past')

        block = TimeSlot(
            ground_id=ground.ground_id,
            date=payload.date,
            start_time=payload.start_time,
            end_time=payload.end_time,
            reason=payload.reason or 'Maintenance',
            is_recurring=payload.is_recurring,
            recurring_days=list(payload.recurring_days) if payload.is_recurring else [],
            end_date=payload.end_date if payload.is_recurring else None,
            status=TimeSlot.STATUS_BLOCKED,
            blocked_by=user.id,
        )

        conflicts = TimeSlotService._overlapping_bookings(block, now)
        if conflicts:
            raise ConflictError(
                'Cannot block time slot with existing bookings',
                error_code='BOOKINGS_IN_WINDOW',
                errors=[dict(b.to_conflict_dict(), date=b.date.isoformat()) for b in conflicts]
            )

        db.session.add(block)
        db.session.commit()
        current_app.logger.info(
            f"✅ Blocked {block.ground_id} {block.date} {block.start_time}-{block.end_time} "
            f"(recurring={block.is_recurring}) by {user.id}"
        )
        return block.to_dict()

    @staticmethod
    def unblock_time_slot(slot_id, user):
        block = db.session.get(TimeSlot, slot_id)
        if not block:
            raise NotFoundError('Time slot not found')
        TimeSlotService._get_owned_ground(block.ground_id, user)

        db.session.delete(block)
        db.session.commit()
        current_app.logger.info(f"🗑️  Time slot {slot_id} unblocked by {user.id}")

    @staticmethod
    def get_blocked_time_slots(ground_id, user, day=None, start_date=None, end_date=None):
        TimeSlotService._get_owned_ground(ground_id, user)

        query = TimeSlot.query.filter(
            TimeSlot.ground_id == ground_id,
            TimeSlot.status == TimeSlot.STATUS_BLOCKED,
        )
        if day:
            blocks = [b for b in query.filter(TimeSlot.date <= day).all() if b.applies_on(day)]
        else:
            if start_date:
                query = query.filter(or_(TimeSlot.date >= start_date, TimeSlot.is_recurring.is_(True)))
            if end_date:
                query = query.filter(TimeSlot.date <= end_date)
            blocks = query.all()
            if start_date:
                blocks = [
                    b for b in blocks
                    if b.date >= start_date or b.end_date is None or b.end_date >= start_date
                ]

        blocks.sort(key=lambda b: (b.date, b.start_time))
        return {'blockedTimeSlots': [b.to_dict() for b in blocks], 'total': len(blocks)}

    @staticmethod
    def get_ground_availability(ground_id, start_date=None, end_date=None):
        ground = Ground.query.filter_by(ground_id=ground_id).first()
        if not ground or not ground.is_active():
            raise NotFoundError('Ground not found or inactive')

        return {
            'groundId': ground.ground_id,
            'groundName': ground.name,
            'availability': AvailabilityService.ground_availability(ground, start_date, end_date),
        }
