"""Error kinds raised by the reservation core.

Every error carries a stable machine-readable ``code`` and a human ``message``.
Callers branch on the class hierarchy (not-found, conflict, transition,
forbidden, validation, internal) to pick a status code or retry strategy.
"""

from __future__ import annotations

from typing import Optional


class ReservationSystemError(Exception):
    """Base class for all expected reservation-core failures."""

    code = "RESERVATION_SYSTEM_ERROR"

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


class InvalidDateRangeError(ReservationSystemError):
    """Raised for malformed, inverted, or policy-violating intervals."""

    code = "INVALID_DATE_RANGE"


class InvalidFilterError(ReservationSystemError):
    code = "INVALID_FILTER"


class NotFoundError(ReservationSystemError):
    code = "NOT_FOUND"


class RoomNotFoundError(NotFoundError):
    code = "ROOM_NOT_FOUND"

    def __init__(self, room_id: str) -> None:
        super().__init__(f"Room with ID {room_id} not found")
        self.room_id = room_id


class ReservationNotFoundError(NotFoundError):
    code = "RESERVATION_NOT_FOUND"

    def __init__(self, reservation_id: str) -> None:
        super().__init__(f"Reservation with ID {reservation_id} not found")
        self.reservation_id = reservation_id


class ConflictError(ReservationSystemError):
    code = "CONFLICT"


class RoomNotAvailableError(ConflictError):
    """Raised when the requested interval overlaps an active reservation."""

    code = "ROOM_NOT_AVAILABLE"

    def __init__(self, room_id: str, check_in: str, check_out: str) -> None:
        super().__init__(
            f"Room {room_id} is not available from {check_in} to {check_out}"
        )
        self.room_id = room_id


class DuplicateRoomNumberError(ConflictError):
    code = "DUPLICATE_ROOM_NUMBER"

    def __init__(self, room_number: str) -> None:
        super().__init__(f"Room with number {room_number} already exists")
        self.room_number = room_number


class InvalidTransitionError(ReservationSystemError):
    """Raised when the transition table forbids the requested status change."""

    code = "INVALID_STATUS_TRANSITION"

    def __init__(self, current_status: str, target_status: str) -> None:
        super().__init__(f"Cannot transition from {current_status} to {target_status}")
        self.current_status = current_status
        self.target_status = target_status

    def to_dict(self) -> dict[str, str]:
        payload = super().to_dict()
        payload["current_status"] = self.current_status
        return payload


class ForbiddenError(ReservationSystemError):
    code = "FORBIDDEN"


class InternalError(ReservationSystemError):
    """Opaque failure; the underlying cause is chained and logged, never shown."""

    code = "INTERNAL_ERROR"

    def __init__(self, operation: str) -> None:
        super().__init__("An internal error occurred. Please try again later.")
        self.operation = operation
