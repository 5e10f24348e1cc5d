"""Pydantic schemas for request/response validation"""

from app.schemas.reservation import (
    ReservationCreate,
    ReservationUpdate,
    ReservationStatusUpdate,
    ReservationResponse,
    ReservationListResponse,
    StatusAction,
    AvailabilitySlot,
    AvailabilityResponse,
)
from app.schemas.restaurant import (
    ReservationConfigUpdate,
    ReservationConfigResponse,
    BusinessHoursUpdate,
    BusinessHoursResponse,
)
from app.schemas.table import (
    TableCreate,
    TableUpdate,
    TableResponse,
)

__all__ = [
    "ReservationCreate",
    "ReservationUpdate",
    "ReservationStatusUpdate",
    "ReservationResponse",
    "ReservationListResponse",
    "StatusAction",
    "AvailabilitySlot",
    "AvailabilityResponse",
    "ReservationConfigUpdate",
    "ReservationConfigResponse",
    "BusinessHoursUpdate",
    "BusinessHoursResponse",
    "TableCreate",
    "TableUpdate",
    "TableResponse",
]
