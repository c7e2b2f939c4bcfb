"""Availability oracle: does a candidate stay collide with an active reservation?"""

from __future__ import annotations

import sqlite3
from typing import Optional

from hotel_backend.domain.dates import DateInput, DateRange, has_date_overlap, parse_date_range
from hotel_backend.domain.errors import InternalError
from hotel_backend.domain.models import ReservationRecord
from hotel_backend.repository.data_repository import DataRepository
from hotel_backend.utils.config import Settings, get_settings
from hotel_backend.utils.logger import get_logger, log_context


logger = get_logger(__name__)


class AvailabilityService:
    """Pure decision over a snapshot of the room's active reservations.

    The oracle gives no atomicity by itself. Callers that act on its answer
    pass the connection of their open write transaction as ``conn`` so the
    read happens under the same lock as the write that follows.
    """

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)

    def find_conflicts(
        self,
        room_id: str,
        check_in: DateInput,
        check_out: DateInput,
        exclude_reservation_id: Optional[str] = None,
        conn: Optional[sqlite3.Connection] = None,
    ) -> list[ReservationRecord]:
        date_range = parse_date_range(check_in, check_out)
        return self._conflicts_for(room_id, date_range, exclude_reservation_id, conn)

    def is_available(
        self,
        room_id: str,
        check_in: DateInput,
        check_out: DateInput,
        exclude_reservation_id: Optional[str] = None,
        conn: Optional[sqlite3.Connection] = None,
    ) -> bool:
        date_range = parse_date_range(check_in, check_out)
        conflicts = self._conflicts_for(room_id, date_range, exclude_reservation_id, conn)
        available = not conflicts
        logger.debug(
            "Room availability check result: %s",
            log_context(
                room_id=room_id,
                range=date_range,
                available=available,
                overlapping_count=len(conflicts),
            ),
        )
        return available

    def _conflicts_for(
        self,
        room_id: str,
        date_range: DateRange,
        exclude_reservation_id: Optional[str],
        conn: Optional[sqlite3.Connection],
    ) -> list[ReservationRecord]:
        try:
            active = self._repository.list_active_reservations_for_room(
                room_id,
                exclude_reservation_id=exclude_reservation_id,
                conn=conn,
            )
        except sqlite3.Error as exc:
            logger.exception(
                "Error checking room availability: %s",
                log_context(room_id=room_id, range=date_range),
            )
            raise InternalError("availability_check") from exc
        return [
            reservation
            for reservation in active
            if has_date_overlap(date_range, reservation.date_range)
        ]
