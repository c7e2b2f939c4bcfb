"""HTTP controller layer for room inventory and availability lookups."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field, field_validator

from hotel_backend.controllers.dependencies import (
    get_availability_service,
    get_room_service,
    raise_http_error,
    require_privileged,
)
from hotel_backend.domain.dates import parse_date_range
from hotel_backend.domain.errors import ReservationSystemError
from hotel_backend.domain.models import Actor, RoomChanges, RoomFilters, RoomRecord, RoomStatus
from hotel_backend.services.availability_service import AvailabilityService
from hotel_backend.services.room_service import RoomService


router = APIRouter(prefix="/rooms", tags=["rooms"])

ROOM_NUMBER_PATTERN = r"^[A-Za-z0-9-]+$"


class CreateRoomRequest(BaseModel):
    room_number: str = Field(min_length=1, max_length=50, pattern=ROOM_NUMBER_PATTERN)
    room_type: str = Field(min_length=1, max_length=50)
    price: Decimal = Field(ge=Decimal("0.01"), le=Decimal("999999.99"), decimal_places=2)
    status: RoomStatus = RoomStatus.AVAILABLE

    @field_validator("room_type")
    @classmethod
    def normalize_room_type(cls, value: str) -> str:
        return value.strip().upper()


class UpdateRoomRequest(BaseModel):
    room_number: Optional[str] = Field(
        default=None,
        min_length=1,
        max_length=50,
        pattern=ROOM_NUMBER_PATTERN,
    )
    room_type: Optional[str] = Field(default=None, min_length=1, max_length=50)
    price: Optional[Decimal] = Field(
        default=None,
        ge=Decimal("0.01"),
        le=Decimal("999999.99"),
        decimal_places=2,
    )
    status: Optional[RoomStatus] = None

    @field_validator("room_type")
    @classmethod
    def normalize_room_type(cls, value: Optional[str]) -> Optional[str]:
        return value.strip().upper() if value is not None else None


class RoomResponse(BaseModel):
    room_id: str
    room_number: str
    room_type: str
    price: str
    status: RoomStatus
    created_at: str
    updated_at: str


class AvailabilityResponse(BaseModel):
    room_id: str
    check_in: date
    check_out: date
    available: bool


def _to_response(room: RoomRecord) -> RoomResponse:
    return RoomResponse(**room.to_dict())


@router.get("", response_model=list[RoomResponse])
def list_rooms(
    room_type: Optional[str] = Query(default=None, alias="type"),
    status_filter: Optional[RoomStatus] = Query(default=None, alias="status"),
    min_price: Optional[Decimal] = Query(default=None, ge=0),
    max_price: Optional[Decimal] = Query(default=None, ge=0),
    service: RoomService = Depends(get_room_service),
) -> list[RoomResponse]:
    filters = RoomFilters(
        room_type=room_type.strip().upper() if room_type and room_type.strip() else None,
        status=status_filter,
        min_price=min_price,
        max_price=max_price,
    )
    try:
        rooms = service.list_rooms(filters)
    except ReservationSystemError as exc:
        raise_http_error(exc)
    return [_to_response(room) for room in rooms]


@router.get("/{room_id}", response_model=RoomResponse)
def get_room(
    room_id: str,
    service: RoomService = Depends(get_room_service),
) -> RoomResponse:
    try:
        room = service.get_room(room_id)
    except ReservationSystemError as exc:
        raise_http_error(exc)
    return _to_response(room)


@router.get("/{room_id}/availability", response_model=AvailabilityResponse)
def check_availability(
    room_id: str,
    check_in: str = Query(min_length=1),
    check_out: str = Query(min_length=1),
    exclude_reservation_id: Optional[str] = Query(default=None),
    room_service: RoomService = Depends(get_room_service),
    availability: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityResponse:
    try:
        date_range = parse_date_range(check_in, check_out)
        room_service.get_room(room_id)
        available = availability.is_available(
            room_id,
            date_range.check_in,
            date_range.check_out,
            exclude_reservation_id=exclude_reservation_id or None,
        )
    except ReservationSystemError as exc:
        raise_http_error(exc)
    return AvailabilityResponse(
        room_id=room_id,
        check_in=date_range.check_in,
        check_out=date_range.check_out,
        available=available,
    )


@router.post("", response_model=RoomResponse, status_code=status.HTTP_201_CREATED)
def create_room(
    payload: CreateRoomRequest,
    actor: Actor = Depends(require_privileged),
    service: RoomService = Depends(get_room_service),
) -> RoomResponse:
    try:
        room = service.create_room(
            actor,
            room_number=payload.room_number,
            room_type=payload.room_type,
            price=payload.price,
            status=payload.status,
        )
    except ReservationSystemError as exc:
        raise_http_error(exc)
    return _to_response(room)


@router.put("/{room_id}", response_model=RoomResponse)
def update_room(
    room_id: str,
    payload: UpdateRoomRequest,
    actor: Actor = Depends(require_privileged),
    service: RoomService = Depends(get_room_service),
) -> RoomResponse:
    changes = RoomChanges(
        room_number=payload.room_number,
        room_type=payload.room_type,
        price=payload.price,
        status=payload.status,
    )
    try:
        room = service.update_room(actor, room_id, changes)
    except ReservationSystemError as exc:
        raise_http_error(exc)
    return _to_response(room)


@router.delete("/{room_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_room(
    room_id: str,
    actor: Actor = Depends(require_privileged),
    service: RoomService = Depends(get_room_service),
) -> Response:
    try:
        service.delete_room(actor, room_id)
    except ReservationSystemError as exc:
        raise_http_error(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
