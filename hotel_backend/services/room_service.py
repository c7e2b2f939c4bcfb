"""Room inventory administration."""

from __future__ import annotations

import sqlite3
from decimal import Decimal
from typing import Optional

from hotel_backend.domain.errors import (
    DuplicateRoomNumberError,
    ForbiddenError,
    InternalError,
    RoomNotFoundError,
)
from hotel_backend.domain.models import Actor, RoomChanges, RoomFilters, RoomRecord, RoomStatus
from hotel_backend.repository.data_repository import DataRepository, DuplicateKeyError
from hotel_backend.utils.config import Settings, get_settings
from hotel_backend.utils.logger import get_logger, log_context


logger = get_logger(__name__)


def _require_privileged(actor: Actor, action: str) -> None:
    if not actor.is_privileged:
        logger.warning("Room %s rejected: %s", action, log_context(actor=actor.actor_id))
        raise ForbiddenError(f"User {actor.actor_id} is not allowed to {action} rooms")


class RoomService:
    """Reads are open to everyone; writes require a privileged actor."""

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)

    def get_room(self, room_id: str) -> RoomRecord:
        try:
            room = self._repository.get_room(room_id)
        except sqlite3.Error as exc:
            logger.exception("Error fetching room: %s", log_context(room_id=room_id))
            raise InternalError("get_room") from exc
        if room is None:
            raise RoomNotFoundError(room_id)
        return room

    def list_rooms(self, filters: Optional[RoomFilters] = None) -> list[RoomRecord]:
        try:
            return self._repository.list_rooms(filters)
        except sqlite3.Error as exc:
            logger.exception("Error listing rooms")
            raise InternalError("list_rooms") from exc

    def create_room(
        self,
        actor: Actor,
        room_number: str,
        room_type: str,
        price: Decimal,
        status: RoomStatus = RoomStatus.AVAILABLE,
    ) -> RoomRecord:
        _require_privileged(actor, "create")
        try:
            room = self._repository.insert_room(
                room_number=room_number,
                room_type=room_type,
                price=price,
                status=status,
            )
        except DuplicateKeyError as exc:
            logger.warning(
                "Room create rejected: %s",
                log_context(room_number=room_number, actor=actor.actor_id),
            )
            raise DuplicateRoomNumberError(room_number) from exc
        except sqlite3.Error as exc:
            logger.exception("Error creating room: %s", log_context(room_number=room_number))
            raise InternalError("create_room") from exc
        logger.info(
            "Room created: %s",
            log_context(room_id=room.room_id, room_number=room_number, actor=actor.actor_id),
        )
        return room

    def update_room(self, actor: Actor, room_id: str, changes: RoomChanges) -> RoomRecord:
        _require_privileged(actor, "update")
        columns = changes.as_columns()
        if not columns:
            return self.get_room(room_id)
        try:
            updated = self._repository.update_room(room_id, columns)
        except DuplicateKeyError as exc:
            logger.warning(
                "Room update rejected: %s",
                log_context(room_id=room_id, room_number=changes.room_number, actor=actor.actor_id),
            )
            raise DuplicateRoomNumberError(str(changes.room_number)) from exc
        except sqlite3.Error as exc:
            logger.exception("Error updating room: %s", log_context(room_id=room_id))
            raise InternalError("update_room") from exc
        if not updated:
            raise RoomNotFoundError(room_id)
        logger.info(
            "Room updated: %s",
            log_context(room_id=room_id, fields=",".join(sorted(columns)), actor=actor.actor_id),
        )
        return self.get_room(room_id)

    def delete_room(self, actor: Actor, room_id: str) -> None:
        """Delete a room; its reservations go with it."""
        _require_privileged(actor, "delete")
        try:
            deleted = self._repository.delete_room(room_id)
        except sqlite3.Error as exc:
            logger.exception("Error deleting room: %s", log_context(room_id=room_id))
            raise InternalError("delete_room") from exc
        if not deleted:
            raise RoomNotFoundError(room_id)
        logger.info("Room deleted: %s", log_context(room_id=room_id, actor=actor.actor_id))
