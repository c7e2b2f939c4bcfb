"""Concurrent writers must never produce overlapping active reservations."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from datetime import date, timedelta
from decimal import Decimal

import pytest

from hotel_backend.domain.dates import DateRange
from hotel_backend.domain.errors import InvalidTransitionError, RoomNotAvailableError
from hotel_backend.domain.models import Actor, ReservationStatus, RoomStatus
from hotel_backend.repository.data_repository import DataRepository, ReservationOverlapError
from hotel_backend.services.availability_service import AvailabilityService
from hotel_backend.services.reservation_service import ReservationService
from hotel_backend.utils.config import get_settings


WORKERS = 8


def _build_service(tmp_path):
    get_settings.cache_clear()
    settings = replace(
        get_settings(),
        database_path=tmp_path / "concurrency.db",
        database_busy_timeout_seconds=30.0,
        seed_demo_rooms=False,
    )
    repository = DataRepository(settings)
    repository.initialize_database()
    room = repository.insert_room("101", "STANDARD", Decimal("99.99"), RoomStatus.AVAILABLE)
    availability = AvailabilityService(repository=repository, settings=settings)
    service = ReservationService(
        repository=repository,
        availability_service=availability,
        settings=settings,
        today_provider=lambda: date(2026, 1, 1),
    )
    return service, availability, repository, room


def _run_together(worker, count: int = WORKERS) -> list[str]:
    barrier = threading.Barrier(count)

    def gated(index: int) -> str:
        barrier.wait()
        return worker(index)

    with ThreadPoolExecutor(max_workers=count) as pool:
        return list(pool.map(gated, range(count)))


def test_concurrent_overlapping_creates_admit_exactly_one(tmp_path) -> None:
    service, _, repository, room = _build_service(tmp_path)

    def attempt(index: int) -> str:
        check_in = date(2026, 1, 10) + timedelta(days=index % 3)
        try:
            service.create_reservation(Actor(f"guest-{index}"), room.room_id, check_in, date(2026, 1, 15))
        except RoomNotAvailableError:
            return "conflict"
        return "created"

    outcomes = _run_together(attempt)

    assert outcomes.count("created") == 1
    assert outcomes.count("conflict") == WORKERS - 1
    assert len(repository.list_active_reservations_for_room(room.room_id)) == 1


def test_concurrent_disjoint_creates_all_succeed(tmp_path) -> None:
    service, _, repository, room = _build_service(tmp_path)

    def attempt(index: int) -> str:
        check_in = date(2026, 2, 1) + timedelta(days=2 * index)
        service.create_reservation(
            Actor(f"guest-{index}"),
            room.room_id,
            check_in,
            check_in + timedelta(days=2),
        )
        return "created"

    assert _run_together(attempt) == ["created"] * WORKERS
    assert len(repository.list_active_reservations_for_room(room.room_id)) == WORKERS


def test_concurrent_confirms_apply_once(tmp_path) -> None:
    service, _, repository, room = _build_service(tmp_path)
    created = service.create_reservation(Actor("guest-1"), room.room_id, date(2026, 1, 10), date(2026, 1, 15))

    def attempt(_: int) -> str:
        try:
            service.confirm_reservation(created.reservation_id)
        except InvalidTransitionError:
            return "rejected"
        return "confirmed"

    outcomes = _run_together(attempt)

    assert outcomes.count("confirmed") == 1
    assert outcomes.count("rejected") == WORKERS - 1
    assert repository.get_reservation(created.reservation_id).status == ReservationStatus.CONFIRMED


def test_store_rejects_overlap_that_bypasses_the_oracle(tmp_path) -> None:
    _, _, repository, room = _build_service(tmp_path)
    repository.insert_reservation("guest-1", room.room_id, DateRange(date(2026, 1, 10), date(2026, 1, 15)))

    with pytest.raises(ReservationOverlapError):
        repository.insert_reservation("guest-2", room.room_id, DateRange(date(2026, 1, 12), date(2026, 1, 20)))


def test_store_rejects_reviving_a_cancelled_overlap(tmp_path) -> None:
    _, _, repository, room = _build_service(tmp_path)
    first = repository.insert_reservation(
        "guest-1",
        room.room_id,
        DateRange(date(2026, 1, 10), date(2026, 1, 15)),
    )
    repository.update_reservation_status(first, ReservationStatus.PENDING, ReservationStatus.CANCELLED)
    repository.insert_reservation("guest-2", room.room_id, DateRange(date(2026, 1, 12), date(2026, 1, 20)))

    with pytest.raises(ReservationOverlapError):
        repository.update_reservation_status(first, ReservationStatus.CANCELLED, ReservationStatus.PENDING)
    assert repository.get_reservation(first).status == ReservationStatus.CANCELLED


def test_lying_oracle_still_yields_conflict(tmp_path, monkeypatch) -> None:
    service, availability, repository, room = _build_service(tmp_path)
    service.create_reservation(Actor("guest-1"), room.room_id, date(2026, 1, 10), date(2026, 1, 15))

    monkeypatch.setattr(availability, "is_available", lambda *args, **kwargs: True)
    with pytest.raises(RoomNotAvailableError):
        service.create_reservation(Actor("guest-2"), room.room_id, date(2026, 1, 12), date(2026, 1, 20))
    assert len(repository.list_active_reservations_for_room(room.room_id)) == 1
