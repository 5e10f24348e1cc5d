"""Typed errors raised by the booking engine"""

from typing import Any, Dict, Optional


class ReservationError(Exception):
    """Base error; carries the HTTP status and a machine-readable code"""
    status_code = 500
    code = "reservation_error"

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"detail": self.message, "code": self.code}
        if self.context:
            body["context"] = {key: str(value) for key, value in self.context.items()}
        return body


class ValidationError(ReservationError):
    """Bad input, rejected before touching the store"""
    status_code = 422
    code = "validation_error"


class OutOfAdvanceWindow(ValidationError):
    code = "out_of_advance_window"


class TooLateSameDay(ValidationError):
    code = "too_late_same_day"


class PartySizeInvalid(ValidationError):
    code = "party_size_invalid"


class SlotNotBusinessHours(ValidationError):
    code = "slot_not_business_hours"


class ConflictError(ReservationError):
    """The requested table or time was taken"""
    status_code = 409
    code = "conflict"


class NoTableAvailable(ConflictError):
    code = "no_table_available"


class InvalidTransition(ReservationError):
    """Status change not allowed from the reservation's current state"""
    status_code = 409
    code = "invalid_transition"

    def __init__(self, current: str, action: str, message: Optional[str] = None):
        super().__init__(
            message or f"Cannot {action} a reservation that is {current}",
            current=current,
            action=action,
        )


class NotFoundError(ReservationError):
    status_code = 404
    code = "not_found"


class TransientStoreError(ReservationError):
    """Store timeout or connection failure; safe to retry"""
    status_code = 503
    code = "store_unavailable"
