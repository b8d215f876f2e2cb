# models/ground.py

from enum import Enum
from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, ForeignKey, Text, JSON
from sqlalchemy.orm import relationship
from db.extensions import db
from datetime import datetime

WEEKDAY_NAMES = ['monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday']


class GroundStatus(str, Enum):
    PENDING = 'pending'
    ACTIVE = 'active'
    INACTIVE = 'inactive'
    SUSPENDED = 'suspended'
    UNDER_REVIEW = 'under_review'


class Ground(db.Model):
    __tablename__ = 'grounds'

    id = Column(Integer, primary_key=True)
    ground_id = Column(String(64), unique=True, nullable=False, index=True)
    owner_id = Column(String(128), ForeignKey('users.id'), nullable=False, index=True)

    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)

    # Location
    street = Column(String(255), nullable=False)
    city = Column(String(100), nullable=False, index=True)
    state = Column(String(100), nullable=False)
    country = Column(String(100), nullable=False)
    postal_code = Column(String(20), nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    # Timings, "HH:MM" 24-hour facility-local
    open_time = Column(String(5), nullable=False)
    close_time = Column(String(5), nullable=False)
    working_days = Column(JSON, nullable=False, default=lambda: list(WEEKDAY_NAMES))

    sports = Column(JSON, nullable=False, default=list)
    amenities = Column(JSON, nullable=False, default=list)
    courts = Column(JSON, nullable=False, default=lambda: ['Court 1'])

    # Pricing
    weekday_price = Column(Float, nullable=False)
    weekend_price = Column(Float, nullable=False)
    currency = Column(String(3), nullable=False, default='INR')
    per_hour = Column(Boolean, nullable=False, default=True)

    dimensions = Column(JSON, nullable=True)
    features = Column(JSON, nullable=False, default=dict)
    contact = Column(JSON, nullable=False, default=dict)
    images = Column(JSON, nullable=False, default=list)

    status = Column(String(20), nullable=False, default=GroundStatus.ACTIVE.value, index=True)
    is_verified = Column(Boolean, nullable=False, default=False)
    verified_at = Column(DateTime, nullable=True)
    verified_by = Column(String(128), nullable=True)

    # Stats
    total_bookings = Column(Integer, nullable=False, default=0)
    total_revenue = Column(Float, nullable=False, default=0)
    average_rating = Column(Float, nullable=False, default=0)
    total_reviews = Column(Integer, nullable=False, default=0)
    view_count = Column(Integer, nullable=False, default=0)
    favorite_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    last_activity_at = Column(DateTime, default=datetime.utcnow)

    owner = relationship('User', lazy='joined')

    def __repr__(self):
        return f"<Ground ground_id={self.ground_id} name={self.name}>"

    @property
    def full_address(self):
        return f"{self.street}, {self.city}, {self.state} {self.postal_code}, {self.country}"

    def is_working_day(self, day):
        return WEEKDAY_NAMES[day.weekday()] in (self.working_days or [])

    def is_active(self):
        return self.status == GroundStatus.ACTIVE.value

    def stats_dict(self):
        return {
            'totalBookings': self.total_bookings or 0,
            'totalRevenue': self.total_revenue or 0,
            'averageRating': self.average_rating or 0,
            'totalReviews': self.total_reviews or 0,
            'viewCount': self.view_count or 0,
            'favoriteCount': self.favorite_count or 0,
        }

    def to_dict(self, include_owner=True):
        data = {
            'groundId': self.ground_id,
            'name': self.name,
            'description': self.description,
            'location': {
                'address': {
                    'street': self.street,
                    'city': self.city,
                    'state': self.state,
                    'country': self.country,
                    'postalCode': self.postal_code,
                },
                'coordinates': {
                    'latitude': self.latitude,
                    'longitude': self.longitude,
                },
            },
            'fullAddress': self.full_address,
            'timings': {
                'openTime': self.open_time,
                'closeTime': self.close_time,
                'workingDays': self.working_days or [],
            },
            'sports': self.sports or [],
            'amenities': self.amenities or [],
            'courts': self.courts or [],
            'pricing': {
                'weekdayPrice': self.weekday_price,
                'weekendPrice': self.weekend_price,
                'currency': self.currency,
                'perHour': self.per_hour,
            },
            'dimensions': self.dimensions,
            'features': self.features or {},
            'contact': self.contact or {},
            'images': self.images or [],
            'status': self.status,
            'isVerified': self.is_verified,
            'verifiedAt': self.verified_at.isoformat() if self.verified_at else None,
            'stats': self.stats_dict(),
            'ownerId': self.owner_id,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_owner and self.owner:
            data['owner'] = self.owner.to_public_dict()
        return data

    def to_summary_dict(self):
        return {
            'groundId': self.ground_id,
            'name': self.name,
            'city': self.city,
            'ownerId': self.owner_id,
        }
