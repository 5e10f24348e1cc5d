"""Database models"""

from app.models.table import RestaurantTable, TableType
from app.models.restaurant import ReservationConfig, BusinessHours
from app.models.reservation import Reservation, ReservationStatus, TableDayLock, BLOCKING_STATUSES

__all__ = [
    "RestaurantTable",
    "TableType",
    "ReservationConfig",
    "BusinessHours",
    "Reservation",
    "ReservationStatus",
    "TableDayLock",
    "BLOCKING_STATUSES",
]
