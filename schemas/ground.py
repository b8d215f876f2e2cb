# schemas/ground.py

from typing import Dict, List, Optional
from pydantic import EmailStr, Field, field_validator, model_validator

from models.ground import WEEKDAY_NAMES
from .common import CamelModel, normalize_hhmm

CURRENCIES = ('USD', 'EUR', 'GBP', 'INR')


class AddressSchema(CamelModel):
    street: str = Field(min_length=1, max_length=255)
    city: str = Field(min_length=1, max_length=100)
    state: str = Field(min_length=1, max_length=100)
    country: str = Field(min_length=1, max_length=100)
    postal_code: str = Field(min_length=1, max_length=20)


class CoordinatesSchema(CamelModel):
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class TimingsSchema(CamelModel):
    open_time: str
    close_time: str
    working_days: List[str] = Field(default_factory=lambda: list(WEEKDAY_NAMES))

    @field_validator('open_time', 'close_time')
    @classmethod
    def check_time(cls, value):
        return normalize_hhmm(value)

    @field_validator('working_days')
    @classmethod
    def check_days(cls, value):
        days = [day.lower() for day in value]
        unknown = [day for day in days if day not in WEEKDAY_NAMES]
        if unknown:
            raise ValueError(f"invalid working day(s): {', '.join(unknown)}")
        return list(dict.fromkeys(days))

    @model_validator(mode='after')
    def check_order(self):
        if self.open_time >= self.close_time:
            raise ValueError('closeTime must be after openTime')
        return self


class PricingSchema(CamelModel):
    weekday_price: float = Field(ge=0)
    weekend_price: float = Field(ge=0)
    currency: str = 'INR'
    per_hour: bool = True

    @field_validator('currency')
    @classmethod
    def check_currency(cls, value):
        value = value.upper()
        if value not in CURRENCIES:
            raise ValueError(f"currency must be one of {', '.join(CURRENCIES)}")
        return value


class ContactSchema(CamelModel):
    phone: str = Field(min_length=5, max_length=20)
    email: EmailStr
    website: Optional[str] = None


class ImageSchema(CamelModel):
    public_id: Optional[str] = None
    url: Optional[str] = None
    secure_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    caption: str = ''
    is_primary: bool = False

    def to_stored(self):
        url = self.secure_url or self.url
        return {
            'publicId': self.public_id,
            'url': url,
            'thumbnailUrl': self.thumbnail_url or url,
            'caption': self.caption,
            'isPrimary': self.is_primary,
        }


def _clean_courts(value):
    cleaned = [court.strip() for court in value]
    if any(not court for court in cleaned):
        raise ValueError('court names must be non-empty')
    if len(set(cleaned)) != len(cleaned):
        raise ValueError('court names must be unique')
    return cleaned


class GroundCreateRequest(CamelModel):
    name: str = Field(min_length=2, max_length=100)
    ground_id: Optional[str] = Field(None, max_length=64)
    description: str = Field(min_length=10, max_length=1000)
    address: AddressSchema
    coordinates: Optional[CoordinatesSchema] = None
    timings: TimingsSchema
    sports: List[str] = Field(min_length=1)
    amenities: List[str] = Field(default_factory=list)
    courts: List[str] = Field(default_factory=lambda: ['Court 1'], min_length=1)
    pricing: PricingSchema
    dimensions: Optional[Dict[str, float]] = None
    features: Dict[str, bool] = Field(default_factory=dict)
    contact: ContactSchema
    images: List[ImageSchema] = Field(default_factory=list)

    @field_validator('courts')
    @classmethod
    def check_courts(cls, value):
        return _clean_courts(value)


class GroundUpdateRequest(CamelModel):
    """Every field optional. Ownership, status, verification and stats are not updatable here."""

    name: Optional[str] = Field(None, min_length=2, max_length=100)
    description: Optional[str] = Field(None, min_length=10, max_length=1000)
    address: Optional[AddressSchema] = None
    coordinates: Optional[CoordinatesSchema] = None
    timings: Optional[TimingsSchema] = None
    sports: Optional[List[str]] = Field(None, min_length=1)
    amenities: Optional[List[str]] = None
    courts: Optional[List[str]] = Field(None, min_length=1)
    pricing: Optional[PricingSchema] = None
    dimensions: Optional[Dict[str, float]] = None
    features: Optional[Dict[str, bool]] = None
    contact: Optional[ContactSchema] = None

    @field_validator('courts')
    @classmethod
    def check_courts(cls, value):
        return _clean_courts(value) if value is not None else value


class GroundImagesRequest(CamelModel):
    images: List[ImageSchema] = Field(min_length=1)


class GroundImageDeleteRequest(CamelModel):
    public_id: str = Field(min_length=1)
