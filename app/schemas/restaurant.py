"""Restaurant configuration schemas"""

from datetime import datetime, time
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator


class ReservationConfigUpdate(BaseModel):
    """Partial policy update; creates a new config version"""
    reservation_duration_minutes: Optional[int] = Field(None, gt=0, le=480)
    grace_period_minutes: Optional[int] = Field(None, ge=0, le=60)
    max_sitting_minutes: Optional[int] = Field(None, gt=0, le=600)
    time_slot_interval_minutes: Optional[int] = Field(None, gt=0, le=240)
    lunch_buffer_minutes: Optional[int] = Field(None, ge=0, le=120)
    dinner_buffer_minutes: Optional[int] = Field(None, ge=0, le=120)
    advance_booking_days: Optional[int] = Field(None, ge=0, le=365)
    same_day_booking_hours: Optional[int] = Field(None, ge=0, le=48)
    max_party_size: Optional[int] = Field(None, ge=1, le=100)
    updated_by: Optional[str] = None


class ReservationConfigResponse(BaseModel):
    """Active reservation policy"""
    model_config = ConfigDict(from_attributes=True)

    version: int
    reservation_duration_minutes: int
    grace_period_minutes: int
    max_sitting_minutes: int
    time_slot_interval_minutes: int
    lunch_buffer_minutes: int
    dinner_buffer_minutes: int
    advance_booking_days: int
    same_day_booking_hours: int
    max_party_size: int


class BusinessHoursFields(BaseModel):
    """Opening hours for one weekday"""
    is_open: bool = True
    open_time: Optional[time] = None
    close_time: Optional[time] = None
    lunch_start: Optional[time] = None
    lunch_end: Optional[time] = None
    dinner_start: Optional[time] = None
    dinner_end: Optional[time] = None


class BusinessHoursUpdate(BusinessHoursFields):
    """Validated hours update"""

    @model_validator(mode="after")
    def check_windows(self):
        pairs = {
            "open": (self.open_time, self.close_time),
            "lunch": (self.lunch_start, self.lunch_end),
            "dinner": (self.dinner_start, self.dinner_end),
        }
        for name, (start, end) in pairs.items():
            if (start is None) != (end is None):
                raise ValueError(f"{name} window needs both a start and an end")
            if start is not None and end <= start:
                raise ValueError(f"{name} window must end after it starts")
        if self.is_open and all(start is None for start, _ in pairs.values()):
            raise ValueError("an open day needs opening hours or a service period")
        return self


class BusinessHoursResponse(BusinessHoursFields):
    """Stored opening hours"""
    model_config = ConfigDict(from_attributes=True)

    day_of_week: int
    updated_at: Optional[datetime] = None
