"""Reservation lifecycle: creation, state transitions and read paths.

Every mutation runs inside one ``BEGIN IMMEDIATE`` transaction:

* create: room lookup, availability check and insert commit together; the
  store's overlap trigger backs up the application-level check.
* confirm / check-in / check-out / cancel: load, consult the transition
  table, compare-and-set the status and, for check-in and check-out, flip the
  room status. A failure at any step rolls back every write of the unit.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime, timezone
from typing import Any, Callable, Iterator, Optional

from hotel_backend.domain.constraints import BookingWindow, assert_transition, validate_booking_window
from hotel_backend.domain.dates import DateInput, DateRange, parse_date_range
from hotel_backend.domain.errors import (
    ForbiddenError,
    InternalError,
    InvalidDateRangeError,
    InvalidFilterError,
    ReservationNotFoundError,
    ReservationSystemError,
    RoomNotAvailableError,
    RoomNotFoundError,
)
from hotel_backend.domain.models import (
    Actor,
    ReservationDetails,
    ReservationFilters,
    ReservationPage,
    ReservationStatus,
    RoomStatus,
)
from hotel_backend.repository.data_repository import DataRepository, ReservationOverlapError
from hotel_backend.services.availability_service import AvailabilityService
from hotel_backend.utils.config import Settings, get_settings
from hotel_backend.utils.logger import get_logger, log_context


logger = get_logger(__name__)


def _unset_if_blank(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def build_reservation_filters(
    *,
    status: Optional[ReservationStatus | str] = None,
    room_id: Optional[str] = None,
    user_id: Optional[str] = None,
    date_from: Optional[DateInput] = None,
    date_to: Optional[DateInput] = None,
    page: int = 1,
    limit: Optional[int] = None,
) -> ReservationFilters:
    """Normalize raw filter values; empty strings and None both mean "unset"."""
    if isinstance(status, str):
        status_text = _unset_if_blank(status)
        try:
            status = ReservationStatus(status_text.upper()) if status_text else None
        except ValueError as exc:
            raise InvalidFilterError(f"Unknown reservation status: {status_text}") from exc

    if isinstance(date_from, str):
        date_from = _unset_if_blank(date_from)
    if isinstance(date_to, str):
        date_to = _unset_if_blank(date_to)
    date_range: Optional[DateRange] = None
    if date_from is not None or date_to is not None:
        if date_from is None or date_to is None:
            raise InvalidDateRangeError("Date range filter requires both from and to")
        date_range = parse_date_range(date_from, date_to)

    return ReservationFilters(
        status=status,
        room_id=_unset_if_blank(room_id),
        user_id=_unset_if_blank(user_id),
        date_range=date_range,
        page=page,
        limit=limit,
    )


class ReservationService:
    """Orchestrates the reservation state machine against the repository."""

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        availability_service: Optional[AvailabilityService] = None,
        settings: Optional[Settings] = None,
        today_provider: Optional[Callable[[], date]] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)
        self._availability = availability_service or AvailabilityService(
            repository=self._repository,
            settings=self._settings,
        )
        self._today: Callable[[], date] = today_provider or (
            lambda: datetime.now(timezone.utc).date()
        )
        self._booking_window = BookingWindow(
            max_stay_nights=self._settings.reservation_max_stay_nights,
            max_advance_days=self._settings.reservation_max_advance_days,
            allow_past_check_in=self._settings.reservation_allow_past_check_in,
        )

    @contextmanager
    def _guard(self, operation: str, **context: Any) -> Iterator[None]:
        """Log every failure once and turn store errors into InternalError."""
        try:
            yield
        except InternalError:
            raise
        except ReservationSystemError as exc:
            logger.warning(
                "%s rejected: %s",
                operation,
                log_context(code=exc.code, reason=exc.message, **context),
            )
            raise
        except sqlite3.Error as exc:
            logger.exception("%s failed: %s", operation, log_context(**context))
            raise InternalError(operation) from exc

    def create_reservation(
        self,
        actor: Actor,
        room_id: str,
        check_in: DateInput,
        check_out: DateInput,
    ) -> ReservationDetails:
        context = {
            "actor": actor.actor_id,
            "room_id": room_id,
            "check_in": check_in,
            "check_out": check_out,
        }
        with self._guard("create_reservation", **context):
            date_range = parse_date_range(check_in, check_out)
            validate_booking_window(date_range, self._booking_window, self._today())
            try:
                with self._repository.transaction() as conn:
                    if self._repository.get_room(room_id, conn=conn) is None:
                        raise RoomNotFoundError(room_id)
                    if not self._availability.is_available(
                        room_id,
                        date_range.check_in,
                        date_range.check_out,
                        conn=conn,
                    ):
                        raise self._not_available(room_id, date_range)
                    reservation_id = self._repository.insert_reservation(
                        user_id=actor.actor_id,
                        room_id=room_id,
                        date_range=date_range,
                        conn=conn,
                    )
                    details = self._repository.get_reservation_details(reservation_id, conn=conn)
            except ReservationOverlapError as exc:
                raise self._not_available(room_id, date_range) from exc

            if details is None:
                logger.error(
                    "Created reservation vanished before read-back: %s",
                    log_context(**context),
                )
                raise InternalError("create_reservation")

        logger.info(
            "Reservation created: %s",
            log_context(
                reservation_id=details.reservation_id,
                actor=actor.actor_id,
                room_id=room_id,
                range=date_range,
                status=details.status.value,
            ),
        )
        return details

    @staticmethod
    def _not_available(room_id: str, date_range: DateRange) -> RoomNotAvailableError:
        return RoomNotAvailableError(
            room_id,
            date_range.check_in.isoformat(),
            date_range.check_out.isoformat(),
        )

    def confirm_reservation(self, reservation_id: str) -> ReservationDetails:
        return self._transition("confirm_reservation", reservation_id, ReservationStatus.CONFIRMED)

    def check_in(self, reservation_id: str) -> ReservationDetails:
        return self._transition(
            "check_in",
            reservation_id,
            ReservationStatus.CHECKED_IN,
            room_status=RoomStatus.OCCUPIED,
        )

    def check_out(self, reservation_id: str) -> ReservationDetails:
        return self._transition(
            "check_out",
            reservation_id,
            ReservationStatus.CHECKED_OUT,
            room_status=RoomStatus.AVAILABLE,
        )

    def cancel_reservation(self, actor: Actor, reservation_id: str) -> ReservationDetails:
        return self._transition(
            "cancel_reservation",
            reservation_id,
            ReservationStatus.CANCELLED,
            actor=actor,
        )

    def _transition(
        self,
        operation: str,
        reservation_id: str,
        target: ReservationStatus,
        room_status: Optional[RoomStatus] = None,
        actor: Optional[Actor] = None,
    ) -> ReservationDetails:
        context = {
            "reservation_id": reservation_id,
            "target": target.value,
            "actor": actor.actor_id if actor is not None else None,
        }
        with self._guard(operation, **context):
            with self._repository.transaction() as conn:
                reservation = self._repository.get_reservation(reservation_id, conn=conn)
                if reservation is None:
                    raise ReservationNotFoundError(reservation_id)
                if actor is not None and not actor.can_access(reservation.user_id):
                    raise ForbiddenError(
                        f"User {actor.actor_id} is not authorized to access reservation {reservation_id}"
                    )
                assert_transition(reservation.status, target)

                updated = self._repository.update_reservation_status(
                    reservation_id,
                    expected_status=reservation.status,
                    new_status=target,
                    conn=conn,
                )
                if not updated:
                    logger.error(
                        "Reservation status changed under the write lock: %s",
                        log_context(current=reservation.status.value, **context),
                    )
                    raise InternalError(operation)

                if room_status is not None:
                    if not self._repository.update_room_status(
                        reservation.room_id,
                        room_status,
                        conn=conn,
                    ):
                        logger.error(
                            "Room missing for reservation: %s",
                            log_context(room_id=reservation.room_id, **context),
                        )
                        raise InternalError(operation)

                details = self._repository.get_reservation_details(reservation_id, conn=conn)

        if details is None:
            raise InternalError(operation)
        logger.info(
            "Reservation %s: %s",
            operation,
            log_context(
                reservation_id=reservation_id,
                previous_status=reservation.status.value,
                new_status=details.status.value,
                room_id=reservation.room_id,
                room_status=room_status.value if room_status is not None else None,
                actor=context["actor"],
            ),
        )
        return details

    def get_reservation(self, actor: Actor, reservation_id: str) -> ReservationDetails:
        context = {"reservation_id": reservation_id, "actor": actor.actor_id}
        with self._guard("get_reservation", **context):
            details = self._repository.get_reservation_details(reservation_id)
            if details is None:
                raise ReservationNotFoundError(reservation_id)
            if not actor.can_access(details.reservation.user_id):
                raise ForbiddenError(
                    f"User {actor.actor_id} is not authorized to access reservation {reservation_id}"
                )
        return details

    def list_reservations(
        self,
        actor: Actor,
        filters: Optional[ReservationFilters] = None,
    ) -> ReservationPage:
        """List reservations newest first; standard actors only see their own."""
        filters = filters or ReservationFilters()
        limit = filters.limit or self._settings.pagination_default_limit
        limit = max(1, min(limit, self._settings.pagination_max_limit))
        page = max(1, filters.page)
        owner = filters.user_id if actor.is_privileged else actor.actor_id
        scoped = replace(filters, user_id=owner, page=page, limit=limit)

        with self._guard("list_reservations", actor=actor.actor_id, privileged=actor.is_privileged):
            items, total = self._repository.search_reservations(
                scoped,
                offset=(page - 1) * limit,
                limit=limit,
            )
        logger.debug(
            "Reservations retrieved: %s",
            log_context(actor=actor.actor_id, count=len(items), total=total, page=page),
        )
        return ReservationPage(items=items, page=page, limit=limit, total=total)
