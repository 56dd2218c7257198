"""
Reservation errors.

Every failure the service reports to a caller is one of these. The HTTP layer
maps each class to a status code; nothing here knows about HTTP.
"""

from typing import Any, Dict, Optional


class ReservationError(Exception):
    """Base exception for reservation service errors."""

    def __init__(
        self,
        message: str,
        code: str = "reservation_error",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(ReservationError):
    """Raised when a field is missing or has an unusable value."""

    def __init__(self, message: str = "Missing required fields", field: str = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="validation_error", details=details)


class RoomNotFoundError(ReservationError):
    """Raised when a referenced room does not exist."""

    def __init__(self, room_id: Any = None):
        super().__init__(
            "Room not found",
            code="room_not_found",
            details={"room_id": room_id} if room_id is not None else {},
        )


class BookingConflictError(ReservationError):
    """Raised when a requested interval overlaps an accepted booking."""

    def __init__(self, room_id: int, conflicting_booking_id: int = None):
        details = {"room_id": room_id}
        if conflicting_booking_id is not None:
            details["conflicting_booking_id"] = conflicting_booking_id
        super().__init__(
            "Room is already booked for the given time range",
            code="booking_conflict",
            details=details,
        )


class InconsistentStateError(ReservationError):
    """Raised when stored bookings reference a room that cannot be resolved."""

    def __init__(self, booking_id: int, room_id: int):
        super().__init__(
            "Booking references an unknown room",
            code="inconsistent_state",
            details={"booking_id": booking_id, "room_id": room_id},
        )
