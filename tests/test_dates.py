"""Tests for date normalization and the half-open overlap predicate."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from itertools import product

import pytest

from hotel_backend.domain.dates import (
    DateRange,
    calculate_nights,
    has_date_overlap,
    is_date_in_future,
    is_date_range_valid,
    normalize_date,
    parse_date_range,
    validate_check_in_date,
)
from hotel_backend.domain.errors import InvalidDateRangeError


def _range(start_day: int, end_day: int) -> DateRange:
    return DateRange(date(2026, 1, start_day), date(2026, 1, end_day))


SAMPLE_RANGES = [
    _range(1, 5),
    _range(3, 8),
    _range(5, 10),
    _range(10, 15),
    _range(12, 20),
    _range(15, 20),
    _range(2, 3),
    _range(1, 31),
]


# --- overlap predicate ---

def test_partial_overlap_is_detected() -> None:
    assert has_date_overlap(_range(10, 15), _range(12, 20))


def test_touching_ranges_do_not_overlap() -> None:
    """Checkout day D and check-in day D share the room without conflict."""
    assert not has_date_overlap(_range(10, 15), _range(15, 20))
    assert not has_date_overlap(_range(15, 20), _range(10, 15))


def test_containment_overlaps() -> None:
    assert has_date_overlap(_range(1, 31), _range(12, 13))


def test_disjoint_ranges_do_not_overlap() -> None:
    assert not has_date_overlap(_range(1, 5), _range(10, 15))


@pytest.mark.parametrize("first,second", list(product(SAMPLE_RANGES, SAMPLE_RANGES)))
def test_overlap_is_symmetric(first: DateRange, second: DateRange) -> None:
    assert has_date_overlap(first, second) == has_date_overlap(second, first)


@pytest.mark.parametrize("candidate", SAMPLE_RANGES)
def test_valid_range_overlaps_itself(candidate: DateRange) -> None:
    assert has_date_overlap(candidate, candidate)


# --- normalization ---

def test_time_of_day_is_discarded() -> None:
    parsed = parse_date_range(
        datetime(2026, 1, 10, 23, 59),
        "2026-01-15T08:30:00",
    )
    assert parsed == _range(10, 15)


def test_aware_datetime_is_read_in_utc() -> None:
    eastern = timezone(timedelta(hours=-5))
    value = datetime(2026, 1, 10, 23, 30, tzinfo=eastern)
    assert normalize_date(value) == date(2026, 1, 11)


def test_iso_date_strings_are_accepted() -> None:
    assert parse_date_range("2026-01-10", "2026-01-15") == _range(10, 15)


@pytest.mark.parametrize(
    "check_in,check_out",
    [
        ("2026-01-15", "2026-01-15"),
        ("2026-01-15", "2026-01-10"),
        (datetime(2026, 1, 15, 8), datetime(2026, 1, 15, 22)),
    ],
)
def test_non_positive_ranges_are_rejected(check_in, check_out) -> None:
    with pytest.raises(InvalidDateRangeError):
        parse_date_range(check_in, check_out)


@pytest.mark.parametrize("bad_value", ["", "   ", "not-a-date", "2026-13-40", 20260110, None])
def test_unparseable_values_are_rejected(bad_value) -> None:
    with pytest.raises(InvalidDateRangeError):
        normalize_date(bad_value, "check_in")


def test_date_range_refuses_datetime_endpoints() -> None:
    with pytest.raises(InvalidDateRangeError):
        DateRange(datetime(2026, 1, 10, 12), date(2026, 1, 15))


def test_is_date_range_valid_returns_true_or_raises() -> None:
    assert is_date_range_valid("2026-01-10", "2026-01-11") is True
    with pytest.raises(InvalidDateRangeError) as excinfo:
        is_date_range_valid("2026-01-11", "2026-01-10")
    assert excinfo.value.code == "INVALID_DATE_RANGE"


def test_nights_counts_days_between_endpoints() -> None:
    assert calculate_nights(_range(10, 15)) == 5
    assert _range(10, 11).nights == 1


def test_string_form_is_half_open() -> None:
    assert str(_range(10, 15)) == "[2026-01-10, 2026-01-15)"


# --- check-in date helpers ---

def test_past_check_in_is_rejected() -> None:
    with pytest.raises(InvalidDateRangeError):
        validate_check_in_date(date(2026, 1, 9), today=date(2026, 1, 10))


def test_same_day_check_in_is_allowed() -> None:
    validate_check_in_date(date(2026, 1, 10), today=date(2026, 1, 10))


def test_is_date_in_future() -> None:
    today = date(2026, 1, 10)
    assert is_date_in_future("2026-01-11", today=today)
    assert not is_date_in_future(date(2026, 1, 10), today=today)
