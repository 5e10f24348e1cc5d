"""Reservation schemas"""

import enum
from datetime import date as date_type, datetime, time as time_type
from typing import Optional, List
from uuid import UUID
from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from app.models.reservation import ReservationStatus


class ReservationCreate(BaseModel):
    """Create reservation request"""
    date: date_type
    time: time_type
    party_size: int
    customer_name: str = Field(min_length=1, max_length=255)
    customer_email: Optional[EmailStr] = None
    customer_phone: Optional[str] = Field(None, max_length=20)
    special_requests: Optional[str] = None


class ReservationUpdate(BaseModel):
    """Reschedule, move or edit a confirmed reservation; omitted fields are kept"""
    date: Optional[date_type] = None
    time: Optional[time_type] = None
    party_size: Optional[int] = None
    table_id: Optional[int] = None
    customer_name: Optional[str] = Field(None, min_length=1, max_length=255)
    customer_email: Optional[EmailStr] = None
    customer_phone: Optional[str] = Field(None, max_length=20)
    special_requests: Optional[str] = None

    @model_validator(mode="after")
    def check_offset_time(self):
        if self.time is not None and self.time.tzinfo is not None and self.date is None:
            raise ValueError("a time with a UTC offset needs a date")
        return self


class StatusAction(str, enum.Enum):
    """Lifecycle actions accepted by the status endpoint"""
    ARRIVE = "arrive"
    CANCEL = "cancel"
    COMPLETE = "complete"
    NO_SHOW = "no_show"


class ReservationStatusUpdate(BaseModel):
    """Status transition request"""
    action: StatusAction
    at: Optional[datetime] = None  # arrival or departure; naive values are restaurant local


class ReservationResponse(BaseModel):
    """Reservation response"""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    table_id: int
    customer_name: str
    customer_email: Optional[str]
    customer_phone: Optional[str]
    special_requests: Optional[str]
    party_size: int
    reservation_date: date_type
    start_time: time_type
    end_time: time_type
    status: ReservationStatus
    service_period: str
    config_version: int
    duration_minutes: int
    buffer_minutes: int
    grace_period_minutes: int
    max_sitting_minutes: int
    on_time: Optional[bool] = None
    arrival_delay_minutes: Optional[int] = None
    actual_arrival_time: Optional[datetime] = None
    actual_departure_time: Optional[datetime] = None
    arrival_notes: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    created_at: datetime


class ReservationListResponse(BaseModel):
    """Paginated reservation list"""
    items: List[ReservationResponse]
    total: int
    page: int
    page_size: int


class AvailabilitySlot(BaseModel):
    """Candidate start time"""
    model_config = ConfigDict(from_attributes=True)

    time: time_type
    is_business_hour: bool
    available: bool
    available_table_count: int
    available_table_ids: List[int] = []


class AvailabilityResponse(BaseModel):
    """Availability query response"""
    date: date_type
    party_size: int
    available: bool
    slots: List[AvailabilitySlot] = []
