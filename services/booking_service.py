# services/booking_service.py

from datetime import datetime, timedelta
from flask import current_app
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError

from app.errors import (
    AppError, ValidationError, NotFoundError, ConflictError,
    AuthorizationError, InternalError
)
from db.extensions import db
from models.booking import Booking, BookingStatus, BookingPaymentStatus, ACTIVE_BOOKING_STATUSES
from models.bookingCourt import BookingCourt
from models.ground import Ground
from models.payment import Payment, PaymentStatus
from models.user import Role
from services.availability_service import AvailabilityService
from services.booking_policy import (
    compute_end_time, calculate_pricing, parse_hhmm, start_datetime,
    hours_until_start, can_be_cancelled, booking_refund
)
from services.notification_service import NotificationService
from services.utils import (
    generate_booking_id, generate_payment_id, generate_mock_order_id,
    local_now, paginate_query
)


def _notify(send, *args):
    """Emails never fail the operation that triggered them."""
    try:
        send(*args)
    except Exception as e:
        current_app.logger.warning(f"⚠️  Notification {send.__name__} failed: {str(e)}")


def _policy_config():
    config = current_app.config
    return {
        'full_refund_hours': config.get('FULL_REFUND_HOURS', 24),
        'cutoff_hours': config.get('CANCELLATION_CUTOFF_HOURS', 2),
        'partial_rate': config.get('PARTIAL_REFUND_RATE', 0.5),
    }


class BookingService:

    @staticmethod
    def _validate_request(ground, request, now):
        """Checks that need the ground but not the lock. Returns the end time."""
        if request.sport and request.sport not in (ground.sports or []):
            raise ValidationError(f"Sport '{request.sport}' is not available at this ground")

        unknown = [court for court in request.selected_courts if court not in (ground.courts or [])]
        if unknown:
            raise ValidationError(
                f"Invalid court(s) for this ground: {', '.join(unknown)}",
                errors=[{'field': 'selectedCourts', 'message': f"available courts: {', '.join(ground.courts or [])}"}]
            )

        end_time = compute_end_time(request.start_time, request.duration)

        if not ground.is_working_day(request.date):
            raise ValidationError('Ground is closed on the selected day')

        start = parse_hhmm(request.start_time)
        end = parse_hhmm(end_time, allow_end_of_day=True)
        if start < parse_hhmm(ground.open_time) or end > parse_hhmm(ground.close_time, allow_end_of_day=True):
            raise ValidationError(
                f"Booking must be within operating hours ({ground.open_time} - {ground.close_time})"
            )

        if start_datetime(request.date, request.start_time) <= now:
            raise ValidationError('Cannot book a time slot in the past')

        return end_time

    @staticmethod
    def quote(request, user):
        """Dry-run of create: availability plus price, nothing written."""
        now = local_now()
        ground = Ground.query.filter_by(ground_id=request.ground_id).first()
        if not ground or not ground.is_active():
            raise NotFoundError('Ground not found or inactive')

        end_time = BookingService._validate_request(ground, request, now)
        availability = AvailabilityService.check_availability(
            ground.ground_id, request.date, request.start_time, end_time, request.selected_courts, now
        )
        pricing = calculate_pricing(
            ground, request.date, request.duration, len(request.selected_courts),
            current_app.config.get('WEEKEND_DAYS')
        )
        return dict(availability, endTime=end_time, pricing=pricing)

    @staticmethod
    def _user_overlap(user_id, day, start_time, end_time, now):
        return Booking.query.filter(
            Booking.user_id == user_id,
            Booking.date == day,
            Booking.status.in_(ACTIVE_BOOKING_STATUSES),
            Booking.start_time < end_time,
            Booking.end_time > start_time,
            or_(
                Booking.payment_status != BookingPaymentStatus.PENDING.value,
                Booking.expires_at.is_(None),
                Booking.expires_at > now,
            )
        ).first()

    @staticmethod
    def create_booking(request, user):
        """
        Creates a confirmed, unpaid booking and its pending payment.

        The ground row is locked before the availability read and held until
        commit, so two requests for the same courts cannot both pass the
        check. Booking, court rows and payment commit together or not at all.
        """
        config = current_app.config
        now = local_now()

        try:
            ground = Ground.query.filter_by(ground_id=request.ground_id)\
                .with_for_update(of=Ground)\
                .first()
            if not ground or not ground.is_active():
                raise NotFoundError('Ground not found or inactive')

            end_time = BookingService._validate_request(ground, request, now)

            existing = BookingService._user_overlap(user.id, request.date, request.start_time, end_time, now)
            if existing:
                raise ConflictError(
                    'You already have a booking at this time. Please choose a different time slot.',
                    error_code='USER_DOUBLE_BOOKING',
                    errors=[dict(existing.to_conflict_dict(), groundId=existing.ground_id)]
                )

            availability = AvailabilityService.check_availability(
                ground.ground_id, request.date, request.start_time, end_time, request.selected_courts, now
            )
            if availability.get('errorCode'):
                raise InternalError(availability['message'], error_code=availability['errorCode'])
            if not availability['available']:
                raise ConflictError(
                    availability['message'],
                    error_code='TIME_SLOT_UNAVAILABLE',
                    errors=availability['conflicts']
                )

            pricing = calculate_pricing(
                ground, request.date, request.duration, len(request.selected_courts),
                config.get('WEEKEND_DAYS')
            )
            hold_until = now + timedelta(minutes=config.get('BOOKING_HOLD_MINUTES', 15))

            booking = Booking(
                booking_id=generate_booking_id(),
                ground_id=ground.ground_id,
                user_id=user.id,
                sport=request.sport,
                date=request.date,
                start_time=request.start_time,
                end_time=end_time,
                duration=request.duration,
                price_per_hour=pricing['pricePerHour'],
                total_amount=pricing['totalAmount'],
                currency=pricing['currency'],
                status=BookingStatus.CONFIRMED.value,
                payment_status=BookingPaymentStatus.PENDING.value,
                number_of_players=request.number_of_players,
                special_requests=request.special_requests,
                expires_at=hold_until,
            )
            booking.court_rows = [BookingCourt(court=court) for court in request.selected_courts]

            payment = Payment(
                payment_id=generate_payment_id(),
                booking_id=booking.booking_id,
                user_id=user.id,
                ground_id=ground.ground_id,
                amount=pricing['totalAmount'],
                currency=pricing['currency'],
                gateway_order_id=generate_mock_order_id(),
                status=PaymentStatus.PENDING.value,
                method='mock_payment',
                expires_at=hold_until,
                payment_metadata={'mock': True, 'note': 'Mock payment for development/testing'},
            )
            booking.payment_id = payment.payment_id

            db.session.add(booking)
            db.session.add(payment)
            db.session.commit()
        except AppError:
            db.session.rollback()
            raise
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"❌ Failed to create booking for {user.id}: {str(e)}", exc_info=True)
            raise InternalError('Failed to create booking')

        current_app.logger.info(
            f"✅ Booking {booking.booking_id} created: {booking.ground_id} {booking.date} "
            f"{booking.start_time}-{booking.end_time} courts={booking.selected_courts} total={booking.total_amount}"
        )

        data = booking.to_dict()
        data['payment'] = {
            'paymentId': payment.payment_id,
            'amount': payment.amount,
            'currency': payment.currency,
            'gatewayOrderId': payment.gateway_order_id,
            'expiresAt': payment.expires_at.isoformat(),
        }
        return data

    @staticmethod
    def _get_own_booking_for_payment(booking_id, user):
        booking = Booking.query.filter_by(booking_id=booking_id).first()
        if not booking:
            raise NotFoundError('Booking not found')
        if booking.user_id != user.id:
            raise AuthorizationError('You can only pay for your own bookings')
        if booking.payment_status == BookingPaymentStatus.COMPLETED.value:
            raise ConflictError('Payment already verified')
        if booking.status != BookingStatus.CONFIRMED.value:
            raise ConflictError('Booking is no longer active')
        return booking

    @staticmethod
    def _complete_payment(booking, payment, gateway_payment_id, signature, now):
        # Only one caller can move pending -> completed
        updated = Booking.query.filter(
            Booking.id == booking.id,
            Booking.status == BookingStatus.CONFIRMED.value,
            Booking.payment_status == BookingPaymentStatus.PENDING.value,
            or_(Booking.expires_at.is_(None), Booking.expires_at > now),
        ).update({
            Booking.payment_status: BookingPaymentStatus.COMPLETED.value,
            Booking.status: BookingStatus.CONFIRMED.value,
            Booking.payment_id: payment.payment_id,
            Booking.payment_method: payment.method or 'mock_payment',
            Booking.expires_at: None,
            Booking.updated_at: datetime.utcnow(),
        }, synchronize_session=False)

        if updated == 0:
            db.session.rollback()
            db.session.refresh(booking)
            if booking.is_hold_expired(now):
                raise ConflictError('Booking hold has expired. Please book again.', error_code='BOOKING_EXPIRED')
            raise ConflictError('Payment already verified')

        payment.status = PaymentStatus.COMPLETED.value
        payment.gateway_payment_id = gateway_payment_id or f"mock_payment_{int(now.timestamp() * 1000)}"
        payment.gateway_signature = signature or 'mock_signature'
        payment.transaction_id = payment.gateway_payment_id
        payment.completed_at = now
        payment.expires_at = None
        payment.gateway_response = {'success': True, 'message': 'Payment completed successfully (mock)'}

        Ground.query.filter(Ground.ground_id == booking.ground_id).update({
            Ground.total_bookings: Ground.total_bookings + 1,
            Ground.total_revenue: Ground.total_revenue + booking.total_amount,
            Ground.last_activity_at: datetime.utcnow(),
        }, synchronize_session=False)

        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"❌ Failed to complete payment for {booking.booking_id}: {str(e)}", exc_info=True)
            raise InternalError('Failed to verify payment')

        db.session.refresh(booking)
        current_app.logger.info(f"✅ Payment {payment.payment_id} completed for booking {booking.booking_id}")
        _notify(NotificationService.send_booking_confirmation, booking)

        return {
            'bookingId': booking.booking_id,
            'paymentId': payment.payment_id,
            'status': PaymentStatus.COMPLETED.value,
            'booking': booking.to_dict(),
        }

    @staticmethod
    def verify_payment(request, user):
        now = local_now()
        booking = BookingService._get_own_booking_for_payment(request.booking_id, user)

        payment = Payment.query.filter_by(
            booking_id=booking.booking_id,
            gateway_order_id=request.gateway_order_id
        ).first()
        if not payment:
            raise NotFoundError('Payment record not found')

        if booking.is_hold_expired(now):
            raise ConflictError('Booking hold has expired. Please book again.', error_code='BOOKING_EXPIRED')

        # Signature verification is mocked; a real gateway check goes here
        return BookingService._complete_payment(
            booking, payment, request.gateway_payment_id, request.gateway_signature, now
        )

    @staticmethod
    def mock_payment_success(booking_id, user):
        now = local_now()
        booking = BookingService._get_own_booking_for_payment(booking_id, user)

        payment = Payment.query.filter_by(booking_id=booking.booking_id).first()
        if not payment:
            raise NotFoundError('Payment record not found')

        if booking.is_hold_expired(now):
            raise ConflictError('Booking hold has expired. Please book again.', error_code='BOOKING_EXPIRED')

        return BookingService._complete_payment(booking, payment, None, None, now)

    @staticmethod
    def cancel_booking(booking_id, user, reason=None):
        now = local_now()
        booking = Booking.query.filter_by(booking_id=booking_id).first()
        if not booking or booking.user_id != user.id:
            raise NotFoundError('Booking not found')

        # The update below only applies while this snapshot still holds
        seen_status = booking.status
        seen_payment_status = booking.payment_status

        policy = _policy_config()
        hours = hours_until_start(booking.date, booking.start_time, now)
        if not can_be_cancelled(seen_status, hours, policy['cutoff_hours']):
            raise ValidationError(
                f"Booking cannot be cancelled. Cancellations must be made at least "
                f"{policy['cutoff_hours']:g} hours before the start time."
            )

        was_paid = seen_payment_status == BookingPaymentStatus.COMPLETED.value
        if was_paid:
            refund = booking_refund(booking, now, **policy)
            new_payment_status = (
                BookingPaymentStatus.REFUNDED.value if refund > 0 else BookingPaymentStatus.COMPLETED.value
            )
        else:
            refund = 0
            new_payment_status = BookingPaymentStatus.FAILED.value

        updated = Booking.query.filter(
            Booking.id == booking.id,
            Booking.status == seen_status,
            Booking.payment_status == seen_payment_status,
        ).update({
            Booking.status: BookingStatus.CANCELLED.value,
            Booking.cancelled_at: now,
            Booking.cancelled_by: 'user',
            Booking.cancellation_reason: reason or 'Cancelled by user',
            Booking.refund_amount: refund,
            Booking.payment_status: new_payment_status,
            Booking.expires_at: None,
            Booking.updated_at: datetime.utcnow(),
        }, synchronize_session=False)

        if updated == 0:
            db.session.rollback()
            raise ConflictError(
                'Booking changed while it was being cancelled. Please try again.',
                error_code='BOOKING_CHANGED'
            )

        if was_paid and refund > 0:
            Payment.query.filter(
                Payment.booking_id == booking.booking_id,
                Payment.status == PaymentStatus.COMPLETED.value,
            ).update({
                Payment.status: PaymentStatus.REFUNDED.value,
                Payment.refund_amount: refund,
                Payment.refund_reason: reason or 'Booking cancelled by user',
                Payment.refunded_at: now,
                Payment.updated_at: datetime.utcnow(),
            }, synchronize_session=False)
        elif not was_paid:
            Payment.query.filter(
                Payment.booking_id == booking.booking_id,
                Payment.status == PaymentStatus.PENDING.value,
            ).update({
                Payment.status: PaymentStatus.CANCELLED.value,
                Payment.updated_at: datetime.utcnow(),
            }, synchronize_session=False)

        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"❌ Failed to cancel booking {booking_id}: {str(e)}", exc_info=True)
            raise InternalError('Failed to cancel booking')

        db.session.refresh(booking)
        current_app.logger.info(f"🗑️  Booking {booking_id} cancelled, refund {refund}")
        _notify(NotificationService.send_booking_cancellation, booking, refund)

        return {
            'bookingId': booking.booking_id,
            'status': booking.status,
            'paymentStatus': booking.payment_status,
            'refundAmount': refund,
            'cancelledAt': booking.cancelled_at.isoformat(),
        }

    @staticmethod
    def expire_stale_bookings(now=None):
        """Cancels unpaid bookings whose hold has lapsed. Returns how many."""
        now = now or local_now()
        stale = Booking.query.filter(
            Booking.status == BookingStatus.CONFIRMED.value,
            Booking.payment_status == BookingPaymentStatus.PENDING.value,
            Booking.expires_at.isnot(None),
            Booking.expires_at <= now,
        ).all()

        expired = 0
        for booking in stale:
            updated = Booking.query.filter(
                Booking.id == booking.id,
                Booking.status == BookingStatus.CONFIRMED.value,
                Booking.payment_status == BookingPaymentStatus.PENDING.value,
            ).update({
                Booking.status: BookingStatus.CANCELLED.value,
                Booking.payment_status: BookingPaymentStatus.FAILED.value,
                Booking.cancelled_at: now,
                Booking.cancelled_by: 'system',
                Booking.cancellation_reason: 'Payment not completed in time',
                Booking.updated_at: datetime.utcnow(),
            }, synchronize_session=False)
            if updated:
                Payment.query.filter(
                    Payment.booking_id == booking.booking_id,
                    Payment.status == PaymentStatus.PENDING.value,
                ).update({Payment.status: PaymentStatus.CANCELLED.value}, synchronize_session=False)
                expired += updated

        db.session.commit()
        if expired:
            current_app.logger.info(f"🗑️  Expired {expired} unpaid booking hold(s)")
        return expired

    @staticmethod
    def get_user_bookings(user, status=None, page=1, limit=10):
        query = Booking.query.filter(Booking.user_id == user.id)
        if status:
            query = query.filter(Booking.status == status)
        query = query.order_by(Booking.date.desc(), Booking.start_time.desc())
        bookings, pagination = paginate_query(query, page, limit)
        return {'bookings': [b.to_dict() for b in bookings], 'pagination': pagination}

    @staticmethod
    def get_ground_bookings(ground_id, user, day=None, status=None, page=1, limit=10):
        ground = Ground.query.filter_by(ground_id=ground_id).first()
        if not ground:
            raise NotFoundError('Ground not found')
        if ground.owner_id != user.id and user.role != Role.ADMIN.value:
            raise AuthorizationError('You can only view bookings for your own grounds')

        query = Booking.query.filter(Booking.ground_id == ground_id)
        if day:
            query = query.filter(Booking.date == day)
        if status:
            query = query.filter(Booking.status == status)
        query = query.order_by(Booking.date.desc(), Booking.start_time)
        bookings, pagination = paginate_query(query, page, limit)
        return {
            'bookings': [b.to_dict(include_ground=False, include_user=True) for b in bookings],
            'pagination': pagination,
        }

    @staticmethod
    def get_owner_bookings(user, day=None, status=None, page=1, limit=10):
        query = Booking.query.join(Ground, Ground.ground_id == Booking.ground_id)\
            .filter(Ground.owner_id == user.id)
        if day:
            query = query.filter(Booking.date == day)
        if status:
            query = query.filter(Booking.status == status)
        query = query.order_by(Booking.date.desc(), Booking.start_time)
        bookings, pagination = paginate_query(query, page, limit)
        return {
            'bookings': [b.to_dict(include_user=True) for b in bookings],
            'pagination': pagination,
        }

    @staticmethod
    def get_booking_details(booking_id, user):
        booking = Booking.query.filter_by(booking_id=booking_id).first()
        if not booking:
            raise NotFoundError('Booking not found')

        is_ground_owner = booking.ground is not None and booking.ground.owner_id == user.id
        if booking.user_id != user.id and not is_ground_owner and user.role != Role.ADMIN.value:
            raise AuthorizationError('You do not have access to this booking')

        payment = Payment.query.filter_by(booking_id=booking.booking_id).first()
        now = local_now()
        data = booking.to_dict(include_user=is_ground_owner)
        data['payment'] = payment.to_dict() if payment else None
        data['hoursUntilStart'] = round(hours_until_start(booking.date, booking.start_time, now), 2)
        policy = _policy_config()
        data['canCancel'] = can_be_cancelled(booking.status, data['hoursUntilStart'], policy['cutoff_hours'])
        data['estimatedRefund'] = booking_refund(booking, now, **policy) \
            if booking.payment_status == BookingPaymentStatus.COMPLETED.value else 0
        return data
