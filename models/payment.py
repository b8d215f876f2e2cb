# models/payment.py

from enum import Enum
from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from db.extensions import db
from datetime import datetime


class PaymentStatus(str, Enum):
    PENDING = 'pending'
    PROCESSING = 'processing'
    COMPLETED = 'completed'
    FAILED = 'failed'
    REFUNDED = 'refunded'
    CANCELLED = 'cancelled'


class Payment(db.Model):
    __tablename__ = 'payments'

    id = Column(Integer, primary_key=True)
    payment_id = Column(String(64), unique=True, nullable=False, index=True)
    booking_id = Column(String(64), ForeignKey('bookings.booking_id'), unique=True, nullable=False, index=True)
    user_id = Column(String(128), ForeignKey('users.id'), nullable=False, index=True)
    ground_id = Column(String(64), ForeignKey('grounds.ground_id'), nullable=False, index=True)

    amount = Column(Float, nullable=False)
    currency = Column(String(3), nullable=False, default='INR')

    # Mocked gateway references
    gateway_order_id = Column(String(100), nullable=True)
    gateway_payment_id = Column(String(100), nullable=True)
    gateway_signature = Column(String(255), nullable=True)

    status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value, index=True)
    method = Column(String(20), nullable=True)
    transaction_id = Column(String(100), nullable=True)
    gateway_response = Column(JSON, nullable=True)

    refund_amount = Column(Float, nullable=False, default=0)
    refund_reason = Column(String(500), nullable=True)
    refunded_at = Column(DateTime, nullable=True)

    completed_at = Column(DateTime, nullable=True)
    expires_at = Column(DateTime, nullable=True)
    payment_metadata = Column('metadata', JSON, nullable=False, default=dict)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    booking = relationship('Booking', lazy='joined')

    def __repr__(self):
        return f"<Payment payment_id={self.payment_id} booking_id={self.booking_id} status={self.status}>"

    def to_dict(self):
        return {
            'paymentId': self.payment_id,
            'bookingId': self.booking_id,
            'userId': self.user_id,
            'groundId': self.ground_id,
            'amount': self.amount,
            'currency': self.currency,
            'gatewayOrderId': self.gateway_order_id,
            'gatewayPaymentId': self.gateway_payment_id,
            'status': self.status,
            'method': self.method,
            'transactionId': self.transaction_id,
            'refund': {
                'amount': self.refund_amount or 0,
                'reason': self.refund_reason,
                'refundedAt': self.refunded_at.isoformat() if self.refunded_at else None,
            } if self.refunded_at else None,
            'completedAt': self.completed_at.isoformat() if self.completed_at else None,
            'expiresAt': self.expires_at.isoformat() if self.expires_at else None,
            'metadata': self.payment_metadata or {},
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }
