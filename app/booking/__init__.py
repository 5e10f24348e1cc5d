"""Reservation availability and table-assignment engine"""

from app.booking.coordinator import BookingCoordinator, BookingRequest, BookingStage
from app.booking.lifecycle import LifecycleManager
from app.booking.provider import Clock, EngineSnapshot, get_clock, load_snapshot

__all__ = [
    "BookingCoordinator",
    "BookingRequest",
    "BookingStage",
    "LifecycleManager",
    "Clock",
    "EngineSnapshot",
    "get_clock",
    "load_snapshot",
]
