"""Tests for the reservation state machine and booking window rules."""

from __future__ import annotations

from datetime import date
from itertools import product

import pytest

from hotel_backend.domain.constraints import (
    VALID_STATUS_TRANSITIONS,
    BookingWindow,
    assert_transition,
    can_transition,
    validate_booking_window,
)
from hotel_backend.domain.dates import DateRange
from hotel_backend.domain.errors import InvalidDateRangeError, InvalidTransitionError
from hotel_backend.domain.models import ReservationStatus


S = ReservationStatus

ALLOWED = {
    (S.PENDING, S.CONFIRMED),
    (S.PENDING, S.CANCELLED),
    (S.CONFIRMED, S.CHECKED_IN),
    (S.CONFIRMED, S.CANCELLED),
    (S.CHECKED_IN, S.CHECKED_OUT),
}

TODAY = date(2026, 1, 1)


def window(**overrides) -> BookingWindow:
    """Return the default booking window, optionally overriding fields."""
    defaults = {"max_stay_nights": 30, "max_advance_days": 365, "allow_past_check_in": False}
    defaults.update(overrides)
    return BookingWindow(**defaults)


# --- transition table ---

def test_table_covers_every_status() -> None:
    assert set(VALID_STATUS_TRANSITIONS) == set(ReservationStatus)


@pytest.mark.parametrize("current,target", list(product(ReservationStatus, ReservationStatus)))
def test_transition_table_matches_lifecycle(current: ReservationStatus, target: ReservationStatus) -> None:
    assert can_transition(current, target) == ((current, target) in ALLOWED)


@pytest.mark.parametrize("status", [S.CHECKED_OUT, S.CANCELLED])
def test_terminal_statuses_have_no_exits(status: ReservationStatus) -> None:
    assert VALID_STATUS_TRANSITIONS[status] == frozenset()


def test_checked_in_stay_cannot_be_cancelled() -> None:
    assert not can_transition(S.CHECKED_IN, S.CANCELLED)


def test_assert_transition_reports_current_status() -> None:
    with pytest.raises(InvalidTransitionError) as excinfo:
        assert_transition(S.CONFIRMED, S.CONFIRMED)
    error = excinfo.value
    assert error.current_status == "CONFIRMED"
    assert error.to_dict() == {
        "code": "INVALID_STATUS_TRANSITION",
        "message": "Cannot transition from CONFIRMED to CONFIRMED",
        "current_status": "CONFIRMED",
    }


def test_assert_transition_accepts_legal_move() -> None:
    assert_transition(S.PENDING, S.CONFIRMED)


# --- booking window ---

def test_booking_within_window_passes() -> None:
    validate_booking_window(DateRange(date(2026, 1, 10), date(2026, 1, 15)), window(), TODAY)


def test_past_check_in_raises() -> None:
    with pytest.raises(InvalidDateRangeError):
        validate_booking_window(DateRange(date(2025, 12, 31), date(2026, 1, 2)), window(), TODAY)


def test_past_check_in_allowed_when_configured() -> None:
    validate_booking_window(
        DateRange(date(2025, 12, 31), date(2026, 1, 2)),
        window(allow_past_check_in=True),
        TODAY,
    )


def test_maximum_stay_is_inclusive() -> None:
    validate_booking_window(DateRange(date(2026, 1, 1), date(2026, 1, 31)), window(), TODAY)


def test_stay_longer_than_maximum_raises() -> None:
    with pytest.raises(InvalidDateRangeError):
        validate_booking_window(DateRange(date(2026, 1, 1), date(2026, 2, 1)), window(), TODAY)


def test_check_in_too_far_ahead_raises() -> None:
    with pytest.raises(InvalidDateRangeError):
        validate_booking_window(
            DateRange(date(2027, 1, 2), date(2027, 1, 3)),
            window(),
            TODAY,
        )
