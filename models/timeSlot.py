# models/timeSlot.py

from sqlalchemy import Column, Integer, String, Boolean, Date, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from db.extensions import db
from datetime import datetime
from .ground import WEEKDAY_NAMES


class TimeSlot(db.Model):
    """An owner-blocked window on a ground. Blocks cover every court."""

    __tablename__ = 'time_slots'

    STATUS_BLOCKED = 'blocked'
    STATUS_UNBLOCKED = 'unblocked'

    id = Column(Integer, primary_key=True)
    ground_id = Column(String(64), ForeignKey('grounds.ground_id'), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    reason = Column(String(200), nullable=False, default='Maintenance')

    is_recurring = Column(Boolean, nullable=False, default=False)
    recurring_days = Column(JSON, nullable=False, default=list)
    end_date = Column(Date, nullable=True)

    status = Column(String(20), nullable=False, default=STATUS_BLOCKED, index=True)
    blocked_by = Column(String(128), ForeignKey('users.id'), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    ground = relationship('Ground')

    def __repr__(self):
        return f"<TimeSlot ground_id={self.ground_id} date={self.date} {self.start_time}-{self.end_time}>"

    def applies_on(self, day):
        if self.status != self.STATUS_BLOCKED:
            return False
        if not self.is_recurring:
            return self.date == day
        if day < self.date:
            return False
        if self.end_date is not None and day > self.end_date:
            return False
        return WEEKDAY_NAMES[day.weekday()] in (self.recurring_days or [])

    def to_dict(self):
        return {
            'id': self.id,
            'groundId': self.ground_id,
            'date': self.date.isoformat(),
            'startTime': self.start_time,
            'endTime': self.end_time,
            'reason': self.reason,
            'isRecurring': self.is_recurring,
            'recurringDays': self.recurring_days or [],
            'endDate': self.end_date.isoformat() if self.end_date else None,
            'status': self.status,
            'blockedBy': self.blocked_by,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }
