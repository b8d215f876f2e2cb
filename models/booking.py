# models/booking.py

from enum import Enum
from sqlalchemy import Column, Integer, String, Float, Date, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
from db.extensions import db
from datetime import datetime
from .bookingCourt import BookingCourt


class BookingStatus(str, Enum):
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    CANCELLED = 'cancelled'
    COMPLETED = 'completed'
    NO_SHOW = 'no_show'


class BookingPaymentStatus(str, Enum):
    PENDING = 'pending'
    COMPLETED = 'completed'
    FAILED = 'failed'
    REFUNDED = 'refunded'


# Statuses that hold a court
ACTIVE_BOOKING_STATUSES = (BookingStatus.CONFIRMED.value, BookingStatus.PENDING.value)


class Booking(db.Model):
    __tablename__ = 'bookings'

    id = Column(Integer, primary_key=True)
    booking_id = Column(String(64), unique=True, nullable=False, index=True)
    ground_id = Column(String(64), ForeignKey('grounds.ground_id'), nullable=False, index=True)
    user_id = Column(String(128), ForeignKey('users.id'), nullable=False, index=True)

    sport = Column(String(50), nullable=False)
    date = Column(Date, nullable=False, index=True)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    duration = Column(Integer, nullable=False)

    price_per_hour = Column(Float, nullable=False)
    total_amount = Column(Float, nullable=False)
    currency = Column(String(3), nullable=False, default='INR')

    payment_status = Column(String(20), nullable=False, default=BookingPaymentStatus.PENDING.value)
    payment_method = Column(String(20), nullable=True)
    payment_id = Column(String(64), nullable=True)

    status = Column(String(20), nullable=False, default=BookingStatus.CONFIRMED.value, index=True)
    cancelled_at = Column(DateTime, nullable=True)
    cancelled_by = Column(String(20), nullable=True)
    cancellation_reason = Column(String(500), nullable=True)
    refund_amount = Column(Float, nullable=False, default=0)

    number_of_players = Column(Integer, nullable=True)
    special_requests = Column(Text, nullable=True)

    # Unpaid hold expiry, facility-local; cleared once paid
    expires_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    court_rows = relationship(
        'BookingCourt',
        back_populates='booking',
        cascade="all, delete-orphan",
        lazy='selectin',
        order_by=BookingCourt.id
    )
    ground = relationship('Ground', lazy='joined')
    user = relationship('User', lazy='joined')

    def __repr__(self):
        return f"<Booking booking_id={self.booking_id} ground_id={self.ground_id} date={self.date}>"

    @property
    def selected_courts(self):
        return [row.court for row in self.court_rows]

    def is_hold_expired(self, now):
        return (
            self.payment_status == BookingPaymentStatus.PENDING.value
            and self.expires_at is not None
            and self.expires_at <= now
        )

    def to_dict(self, include_ground=True, include_user=False):
        data = {
            'bookingId': self.booking_id,
            'groundId': self.ground_id,
            'userId': self.user_id,
            'sport': self.sport,
            'date': self.date.isoformat(),
            'startTime': self.start_time,
            'endTime': self.end_time,
            'duration': self.duration,
            'selectedCourts': self.selected_courts,
            'pricing': {
                'pricePerHour': self.price_per_hour,
                'totalAmount': self.total_amount,
                'currency': self.currency,
            },
            'paymentStatus': self.payment_status,
            'paymentMethod': self.payment_method,
            'paymentId': self.payment_id,
            'status': self.status,
            'cancellation': {
                'cancelledAt': self.cancelled_at.isoformat() if self.cancelled_at else None,
                'cancelledBy': self.cancelled_by,
                'reason': self.cancellation_reason,
                'refundAmount': self.refund_amount or 0,
            } if self.cancelled_at else None,
            'numberOfPlayers': self.number_of_players,
            'specialRequests': self.special_requests,
            'expiresAt': self.expires_at.isoformat() if self.expires_at else None,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_ground and self.ground:
            data['ground'] = self.ground.to_summary_dict()
        if include_user and self.user:
            data['user'] = {
                'id': self.user.id,
                'displayName': self.user.display_name,
                'email': self.user.email,
            }
        return data

    def to_conflict_dict(self):
        return {
            'bookingId': self.booking_id,
            'startTime': self.start_time,
            'endTime': self.end_time,
            'courts': self.selected_courts,
        }
