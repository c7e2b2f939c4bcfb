"""HTTP controller layer for the reservation lifecycle."""

from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from hotel_backend.controllers.dependencies import (
    get_actor,
    get_reservation_service,
    raise_http_error,
    require_privileged,
)
from hotel_backend.domain.errors import ReservationSystemError
from hotel_backend.domain.models import Actor, ReservationDetails, ReservationStatus
from hotel_backend.services.reservation_service import (
    ReservationService,
    build_reservation_filters,
)
from hotel_backend.utils.config import get_settings


settings = get_settings()

router = APIRouter(prefix="/reservations", tags=["reservations"])


class CreateReservationRequest(BaseModel):
    """Input DTO validated before entering service layer."""

    room_id: str = Field(min_length=1)
    check_in_date: date
    check_out_date: date


class RoomSummary(BaseModel):
    room_id: str
    room_number: str
    room_type: str
    price: str
    status: str
    created_at: str
    updated_at: str


class ReservationResponse(BaseModel):
    reservation_id: str
    user_id: str
    room_id: str
    check_in: date
    check_out: date
    status: ReservationStatus
    created_at: str
    updated_at: str
    room: RoomSummary


class PaginationMeta(BaseModel):
    page: int = Field(ge=1)
    limit: int = Field(ge=1)
    total: int = Field(ge=0)
    total_pages: int = Field(ge=0)
    has_next_page: bool
    has_previous_page: bool


class ReservationListResponse(BaseModel):
    data: list[ReservationResponse]
    meta: PaginationMeta


def _to_response(details: ReservationDetails) -> ReservationResponse:
    return ReservationResponse(**details.to_dict())


@router.post(
    "",
    response_model=ReservationResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_reservation(
    payload: CreateReservationRequest,
    actor: Actor = Depends(get_actor),
    service: ReservationService = Depends(get_reservation_service),
) -> ReservationResponse:
    try:
        details = service.create_reservation(
            actor,
            room_id=payload.room_id,
            check_in=payload.check_in_date,
            check_out=payload.check_out_date,
        )
    except ReservationSystemError as exc:
        raise_http_error(exc)
    return _to_response(details)


@router.get("", response_model=ReservationListResponse)
def list_reservations(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    room_id: Optional[str] = Query(default=None),
    user_id: Optional[str] = Query(default=None),
    date_from: Optional[str] = Query(default=None, alias="from"),
    date_to: Optional[str] = Query(default=None, alias="to"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(
        default=settings.pagination_default_limit,
        ge=1,
        le=settings.pagination_max_limit,
    ),
    actor: Actor = Depends(get_actor),
    service: ReservationService = Depends(get_reservation_service),
) -> ReservationListResponse:
    try:
        filters = build_reservation_filters(
            status=status_filter,
            room_id=room_id,
            user_id=user_id,
            date_from=date_from,
            date_to=date_to,
            page=page,
            limit=limit,
        )
        result = service.list_reservations(actor, filters)
    except ReservationSystemError as exc:
        raise_http_error(exc)
    return ReservationListResponse(
        data=[_to_response(item) for item in result.items],
        meta=PaginationMeta(**result.meta()),
    )


@router.get("/{reservation_id}", response_model=ReservationResponse)
def get_reservation(
    reservation_id: str,
    actor: Actor = Depends(get_actor),
    service: ReservationService = Depends(get_reservation_service),
) -> ReservationResponse:
    try:
        details = service.get_reservation(actor, reservation_id)
    except ReservationSystemError as exc:
        raise_http_error(exc)
    return _to_response(details)


@router.put("/{reservation_id}/confirm", response_model=ReservationResponse)
def confirm_reservation(
    reservation_id: str,
    _: Actor = Depends(require_privileged),
    service: ReservationService = Depends(get_reservation_service),
) -> ReservationResponse:
    try:
        details = service.confirm_reservation(reservation_id)
    except ReservationSystemError as exc:
        raise_http_error(exc)
    return _to_response(details)


@router.put("/{reservation_id}/check-in", response_model=ReservationResponse)
def check_in_reservation(
    reservation_id: str,
    _: Actor = Depends(require_privileged),
    service: ReservationService = Depends(get_reservation_service),
) -> ReservationResponse:
    try:
        details = service.check_in(reservation_id)
    except ReservationSystemError as exc:
        raise_http_error(exc)
    return _to_response(details)


@router.put("/{reservation_id}/check-out", response_model=ReservationResponse)
def check_out_reservation(
    reservation_id: str,
    _: Actor = Depends(require_privileged),
    service: ReservationService = Depends(get_reservation_service),
) -> ReservationResponse:
    try:
        details = service.check_out(reservation_id)
    except ReservationSystemError as exc:
        raise_http_error(exc)
    return _to_response(details)


@router.put("/{reservation_id}/cancel", response_model=ReservationResponse)
def cancel_reservation(
    reservation_id: str,
    actor: Actor = Depends(get_actor),
    service: ReservationService = Depends(get_reservation_service),
) -> ReservationResponse:
    try:
        details = service.cancel_reservation(actor, reservation_id)
    except ReservationSystemError as exc:
        raise_http_error(exc)
    return _to_response(details)
