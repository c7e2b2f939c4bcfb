"""Day-granularity date ranges and the interval overlap predicate.

Inputs are normalized exactly once, in :func:`parse_date_range`. Everything
downstream works with :class:`DateRange`, whose endpoints are plain
``datetime.date`` values, so comparisons never see a time-of-day component.

Intervals are half-open ``[check_in, check_out)``: a stay ending on day D and
another starting on day D do not overlap (same-day turnover).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Optional, Union

from hotel_backend.domain.errors import InvalidDateRangeError


DateInput = Union[date, datetime, str]


@dataclass(frozen=True)
class DateRange:
    check_in: date
    check_out: date

    def __post_init__(self) -> None:
        for name in ("check_in", "check_out"):
            value = getattr(self, name)
            if isinstance(value, datetime) or not isinstance(value, date):
                raise InvalidDateRangeError(f"{name} must be a calendar date")
        if self.check_out <= self.check_in:
            raise InvalidDateRangeError(
                "Check-out date must be after check-in date (minimum stay: 1 night)"
            )

    @property
    def nights(self) -> int:
        return (self.check_out - self.check_in).days

    def __str__(self) -> str:
        return f"[{self.check_in.isoformat()}, {self.check_out.isoformat()})"


def normalize_date(value: DateInput, field_name: str = "date") -> date:
    """Drop any time-of-day component; aware datetimes are read in UTC."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise InvalidDateRangeError(f"{field_name} is required")
        try:
            return normalize_date(datetime.fromisoformat(text), field_name)
        except ValueError as exc:
            raise InvalidDateRangeError(
                f"{field_name} must be an ISO 8601 date, received: {value!r}"
            ) from exc
    raise InvalidDateRangeError(f"{field_name} must be a valid date")


def parse_date_range(check_in: DateInput, check_out: DateInput) -> DateRange:
    return DateRange(
        normalize_date(check_in, "check_in"),
        normalize_date(check_out, "check_out"),
    )


def is_date_range_valid(check_in: DateInput, check_out: DateInput) -> bool:
    """Return True for a valid range, raise InvalidDateRangeError otherwise."""
    parse_date_range(check_in, check_out)
    return True


def has_date_overlap(first: DateRange, second: DateRange) -> bool:
    return first.check_in < second.check_out and first.check_out > second.check_in


def calculate_nights(date_range: DateRange) -> int:
    return date_range.nights


def is_date_in_future(value: DateInput, today: Optional[date] = None) -> bool:
    reference = today or datetime.now(timezone.utc).date()
    return normalize_date(value) > reference


def validate_check_in_date(check_in: date, today: Optional[date] = None) -> None:
    reference = today or datetime.now(timezone.utc).date()
    if check_in < reference:
        raise InvalidDateRangeError(
            "Check-in date cannot be in the past. Reservations must be for today or future dates."
        )
