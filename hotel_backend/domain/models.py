"""Domain models for rooms, reservations and acting identities."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from hotel_backend.domain.dates import DateRange


class RoomStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    OCCUPIED = "OCCUPIED"
    MAINTENANCE = "MAINTENANCE"


class RoomType(str, Enum):
    STANDARD = "STANDARD"
    DELUXE = "DELUXE"
    SUITE = "SUITE"
    EXECUTIVE = "EXECUTIVE"
    PRESIDENTIAL = "PRESIDENTIAL"


class ReservationStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CHECKED_IN = "CHECKED_IN"
    CHECKED_OUT = "CHECKED_OUT"
    CANCELLED = "CANCELLED"


# Statuses that no longer hold the room.
TERMINAL_STATUSES = frozenset({ReservationStatus.CHECKED_OUT, ReservationStatus.CANCELLED})


@dataclass(frozen=True)
class Actor:
    """Caller identity handed to the core by the authentication layer."""

    actor_id: str
    is_privileged: bool = False

    def owns(self, user_id: str) -> bool:
        return self.actor_id == user_id

    def can_access(self, user_id: str) -> bool:
        return self.is_privileged or self.owns(user_id)


@dataclass(frozen=True)
class RoomRecord:
    room_id: str
    room_number: str
    room_type: str
    price: Decimal
    status: RoomStatus
    created_at: datetime
    updated_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "room_id": self.room_id,
            "room_number": self.room_number,
            "room_type": self.room_type,
            "price": str(self.price),
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass(frozen=True)
class ReservationRecord:
    reservation_id: str
    user_id: str
    room_id: str
    check_in: date
    check_out: date
    status: ReservationStatus
    created_at: datetime
    updated_at: datetime

    @property
    def date_range(self) -> DateRange:
        return DateRange(self.check_in, self.check_out)

    def to_dict(self) -> dict[str, Any]:
        return {
            "reservation_id": self.reservation_id,
            "user_id": self.user_id,
            "room_id": self.room_id,
            "check_in": self.check_in.isoformat(),
            "check_out": self.check_out.isoformat(),
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass(frozen=True)
class ReservationDetails:
    """Reservation joined with the booked room."""

    reservation: ReservationRecord
    room: RoomRecord

    @property
    def reservation_id(self) -> str:
        return self.reservation.reservation_id

    @property
    def status(self) -> ReservationStatus:
        return self.reservation.status

    def to_dict(self) -> dict[str, Any]:
        payload = self.reservation.to_dict()
        payload["room"] = self.room.to_dict()
        return payload


@dataclass(frozen=True)
class ReservationFilters:
    """Conjunctive reservation filters. ``None`` means the filter is unset."""

    status: Optional[ReservationStatus] = None
    room_id: Optional[str] = None
    user_id: Optional[str] = None
    date_range: Optional[DateRange] = None
    page: int = 1
    limit: Optional[int] = None


@dataclass(frozen=True)
class ReservationPage:
    items: list[ReservationDetails]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit if self.total else 0

    @property
    def has_next_page(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous_page(self) -> bool:
        return self.page > 1

    def meta(self) -> dict[str, int | bool]:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "total_pages": self.total_pages,
            "has_next_page": self.has_next_page,
            "has_previous_page": self.has_previous_page,
        }


@dataclass(frozen=True)
class RoomFilters:
    room_type: Optional[str] = None
    status: Optional[RoomStatus] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None


@dataclass(frozen=True)
class RoomChanges:
    """Partial room update; fields left as ``None`` are unchanged."""

    room_number: Optional[str] = None
    room_type: Optional[str] = None
    price: Optional[Decimal] = None
    status: Optional[RoomStatus] = None

    def as_columns(self) -> dict[str, Any]:
        columns: dict[str, Any] = {}
        if self.room_number is not None:
            columns["room_number"] = self.room_number
        if self.room_type is not None:
            columns["room_type"] = self.room_type
        if self.price is not None:
            columns["price"] = str(self.price)
        if self.status is not None:
            columns["status"] = self.status.value
        return columns
