"""
app.py: FastAPI application factory and startup lifecycle.

This is the ASGI application object imported by uvicorn.
It wires all services, registers routers, and runs startup initialization.

Usage (via launcher):
    python main.py

Usage (direct uvicorn):
    uvicorn app:app --reload
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from hotel_backend.controllers.reservation_controller import router as reservation_router
from hotel_backend.controllers.room_controller import router as room_router
from hotel_backend.controllers.system_controller import router as system_router
from hotel_backend.repository.data_repository import DataRepository
from hotel_backend.services.auth_service import AuthService
from hotel_backend.services.availability_service import AvailabilityService
from hotel_backend.services.reservation_service import ReservationService
from hotel_backend.services.room_service import RoomService
from hotel_backend.utils.config import Settings, get_settings
from hotel_backend.utils.logger import get_logger


logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build and wire the FastAPI application.

    Services are created here and handed to request handlers via app.state,
    so every dependency is traceable from this function.
    """
    settings = settings or get_settings()

    repository = DataRepository(settings)
    availability_service = AvailabilityService(repository=repository, settings=settings)
    reservation_service = ReservationService(
        repository=repository,
        availability_service=availability_service,
        settings=settings,
    )
    room_service = RoomService(repository=repository, settings=settings)
    auth_service = AuthService(settings=settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Run startup initialization before accepting requests."""
        _startup(app)
        yield

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )

    app.include_router(system_router)
    app.include_router(room_router)
    app.include_router(reservation_router)

    app.state.settings = settings
    app.state.repository = repository
    app.state.availability_service = availability_service
    app.state.reservation_service = reservation_service
    app.state.room_service = room_service
    app.state.auth_service = auth_service

    return app


def _startup(app: FastAPI) -> None:
    """
    Idempotent startup sequence. Safe to re-run on server restarts.

    The schema (tables, indexes, overlap triggers) must exist before the
    demo inventory is seeded.
    """
    repository: DataRepository = app.state.repository
    settings: Settings = app.state.settings

    logger.info("Startup: initializing database schema")
    repository.initialize_database()

    if settings.seed_demo_rooms:
        logger.info("Startup: seeding demo rooms (skipped if Rooms table not empty)")
        repository.seed_demo_rooms()

    logger.info("Startup complete, accepting requests")


# Module-level app object for uvicorn
app = create_app()
