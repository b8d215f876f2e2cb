# schemas/timeslot.py

import datetime as dt
from typing import List, Optional
from pydantic import Field, field_validator, model_validator

from models.ground import WEEKDAY_NAMES
from .common import CamelModel, normalize_hhmm


class BlockTimeSlotRequest(CamelModel):
    ground_id: str = Field(min_length=1)
    date: dt.date
    start_time: str
    end_time: str
    reason: str = Field('Maintenance', max_length=200)
    is_recurring: bool = False
    recurring_days: List[str] = Field(default_factory=list)
    end_date: Optional[dt.date] = None

    @field_validator('start_time', 'end_time')
    @classmethod
    def check_time(cls, value):
        if value == '24:00':
            return value
        return normalize_hhmm(value)

    @field_validator('recurring_days')
    @classmethod
    def check_days(cls, value):
        days = [day.lower() for day in value]
        unknown = [day for day in days if day not in WEEKDAY_NAMES]
        if unknown:
            raise ValueError(f"invalid recurring day(s): {', '.join(unknown)}")
        return list(dict.fromkeys(days))

    @model_validator(mode='after')
    def check_window(self):
        if self.start_time >= self.end_time:
            raise ValueError('endTime must be after startTime')
        if self.is_recurring and not self.recurring_days:
            raise ValueError('recurringDays is required for a recurring block')
        if self.end_date is not None and self.end_date < self.date:
            raise ValueError('endDate cannot be before date')
        return self
