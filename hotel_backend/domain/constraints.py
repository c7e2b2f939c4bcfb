"""Domain-level rules: the reservation state machine and booking window."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta

from hotel_backend.domain.dates import DateRange, validate_check_in_date
from hotel_backend.domain.errors import InvalidDateRangeError, InvalidTransitionError
from hotel_backend.domain.models import ReservationStatus


VALID_STATUS_TRANSITIONS: dict[ReservationStatus, frozenset[ReservationStatus]] = {
    ReservationStatus.PENDING: frozenset(
        {ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED}
    ),
    ReservationStatus.CONFIRMED: frozenset(
        {ReservationStatus.CHECKED_IN, ReservationStatus.CANCELLED}
    ),
    ReservationStatus.CHECKED_IN: frozenset({ReservationStatus.CHECKED_OUT}),
    ReservationStatus.CHECKED_OUT: frozenset(),
    ReservationStatus.CANCELLED: frozenset(),
}


def can_transition(current: ReservationStatus, target: ReservationStatus) -> bool:
    return target in VALID_STATUS_TRANSITIONS.get(current, frozenset())


def assert_transition(current: ReservationStatus, target: ReservationStatus) -> None:
    if not can_transition(current, target):
        raise InvalidTransitionError(current.value, target.value)


@dataclass(frozen=True)
class BookingWindow:
    max_stay_nights: int
    max_advance_days: int
    allow_past_check_in: bool = False


def validate_booking_window(
    date_range: DateRange,
    window: BookingWindow,
    today: date,
) -> None:
    if not window.allow_past_check_in:
        validate_check_in_date(date_range.check_in, today=today)
    if date_range.nights > window.max_stay_nights:
        raise InvalidDateRangeError(
            f"Maximum stay duration is {window.max_stay_nights} nights"
        )
    if date_range.check_in > today + timedelta(days=window.max_advance_days):
        raise InvalidDateRangeError(
            f"Check-in date cannot be more than {window.max_advance_days} days in advance"
        )
