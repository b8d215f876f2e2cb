# models/bookingCourt.py
from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship
from db.extensions import db


class BookingCourt(db.Model):
    __tablename__ = 'booking_courts'

    id = Column(Integer, primary_key=True)
    booking_id = Column(Integer, ForeignKey('bookings.id', ondelete='CASCADE'), nullable=False, index=True)
    court = Column(String(50), nullable=False)

    booking = relationship('Booking', back_populates='court_rows')

    def __repr__(self):
        return f"<BookingCourt booking_id={self.booking_id} court={self.court}>"
