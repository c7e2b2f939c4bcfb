"""Shared FastAPI dependency providers for controller layer."""

from __future__ import annotations

from typing import NoReturn

from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from hotel_backend.domain.errors import (
    ConflictError,
    ForbiddenError,
    InternalError,
    InvalidDateRangeError,
    InvalidFilterError,
    InvalidTransitionError,
    NotFoundError,
    ReservationSystemError,
)
from hotel_backend.domain.models import Actor
from hotel_backend.services.auth_service import (
    AuthService,
    InvalidAdminTokenError,
    MissingActorError,
)
from hotel_backend.services.availability_service import AvailabilityService
from hotel_backend.services.reservation_service import ReservationService
from hotel_backend.services.room_service import RoomService
from hotel_backend.utils.config import get_settings


bearer_scheme = HTTPBearer(auto_error=False)

_STATUS_BY_ERROR: tuple[tuple[type[ReservationSystemError], int], ...] = (
    (InvalidDateRangeError, status.HTTP_400_BAD_REQUEST),
    (InvalidFilterError, status.HTTP_400_BAD_REQUEST),
    (InvalidTransitionError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (ForbiddenError, status.HTTP_403_FORBIDDEN),
    (InternalError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def raise_http_error(exc: ReservationSystemError) -> NoReturn:
    """Translate a core error into the matching HTTP error."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            raise HTTPException(status_code=status_code, detail=exc.to_dict()) from exc
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=InternalError("unmapped").to_dict(),
    ) from exc


def get_auth_service(request: Request) -> AuthService:
    service = getattr(request.app.state, "auth_service", None)
    if service is None:
        service = AuthService(settings=get_settings())
        request.app.state.auth_service = service
    return service


def get_reservation_service(request: Request) -> ReservationService:
    service = getattr(request.app.state, "reservation_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Reservation service is not initialized",
        )
    return service


def get_availability_service(request: Request) -> AvailabilityService:
    service = getattr(request.app.state, "availability_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Availability service is not initialized",
        )
    return service


def get_room_service(request: Request) -> RoomService:
    service = getattr(request.app.state, "room_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Room service is not initialized",
        )
    return service


async def get_actor(
    x_actor_id: str | None = Header(default=None),
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> Actor:
    try:
        return auth_service.resolve_actor(
            x_actor_id,
            credentials.credentials if credentials is not None else None,
        )
    except (MissingActorError, InvalidAdminTokenError) as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc


async def require_privileged(actor: Actor = Depends(get_actor)) -> Actor:
    if not actor.is_privileged:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=ForbiddenError("Administrator privileges are required").to_dict(),
        )
    return actor
