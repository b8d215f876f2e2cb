# schemas/booking.py

import datetime as dt
from typing import List, Optional
from pydantic import Field, field_validator

from .common import CamelModel, normalize_hhmm


class BookingCreateRequest(CamelModel):
    ground_id: str = Field(min_length=1)
    sport: str = Field(min_length=1, max_length=50)
    date: dt.date
    start_time: str
    duration: int = Field(ge=1, le=24)
    selected_courts: List[str] = Field(min_length=1)
    number_of_players: int = Field(1, ge=1, le=50)
    special_requests: Optional[str] = Field(None, max_length=500)

    @field_validator('start_time')
    @classmethod
    def check_start_time(cls, value):
        return normalize_hhmm(value)

    @field_validator('selected_courts')
    @classmethod
    def check_courts(cls, value):
        cleaned = [court.strip() for court in value]
        if any(not court for court in cleaned):
            raise ValueError('courts must be non-empty strings')
        if len(set(cleaned)) != len(cleaned):
            raise ValueError('courts must not repeat')
        return cleaned


class AvailabilityCheckRequest(BookingCreateRequest):
    sport: Optional[str] = Field(None, max_length=50)


class VerifyPaymentRequest(CamelModel):
    booking_id: str = Field(min_length=1)
    gateway_order_id: str = Field(min_length=1)
    gateway_payment_id: Optional[str] = None
    gateway_signature: Optional[str] = None


class MockPaymentRequest(CamelModel):
    booking_id: str = Field(min_length=1)


class CancelBookingRequest(CamelModel):
    reason: Optional[str] = Field(None, max_length=500)
