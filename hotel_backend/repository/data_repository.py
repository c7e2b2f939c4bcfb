"""Repository layer responsible for all database access."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import date, datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any, Iterator, Optional
from uuid import uuid4

from hotel_backend.domain.dates import DateRange
from hotel_backend.domain.models import (
    ReservationDetails,
    ReservationFilters,
    ReservationRecord,
    ReservationStatus,
    RoomFilters,
    RoomRecord,
    RoomStatus,
    RoomType,
    TERMINAL_STATUSES,
)
from hotel_backend.utils.config import Settings, get_settings
from hotel_backend.utils.logger import get_logger


logger = get_logger(__name__)

OVERLAP_VIOLATION = "reservation_overlap"

_TERMINAL_SQL = ", ".join(f"'{status.value}'" for status in sorted(TERMINAL_STATUSES))

_RESERVATION_COLUMNS = """
    res.id,
    res.user_id,
    res.room_id,
    res.check_in_date,
    res.check_out_date,
    res.status,
    res.created_at,
    res.updated_at
"""

_RESERVATION_DETAIL_SELECT = f"""
    SELECT
        {_RESERVATION_COLUMNS},
        r.room_number,
        r.room_type,
        r.price,
        r.status AS room_status,
        r.created_at AS room_created_at,
        r.updated_at AS room_updated_at
    FROM Reservations AS res
    INNER JOIN Rooms AS r ON r.id = res.room_id
"""

DEMO_ROOMS = (
    ("101", RoomType.STANDARD.value, "99.99"),
    ("102", RoomType.STANDARD.value, "99.99"),
    ("201", RoomType.DELUXE.value, "149.99"),
    ("202", RoomType.DELUXE.value, "149.99"),
    ("301", RoomType.SUITE.value, "249.99"),
    ("302", RoomType.SUITE.value, "249.99"),
)


class StoreConstraintError(Exception):
    """Raised when the store itself rejects a write."""


class ReservationOverlapError(StoreConstraintError):
    """The overlap trigger rejected a reservation write."""


class DuplicateKeyError(StoreConstraintError):
    """A UNIQUE constraint rejected a write."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _row_to_room(row: sqlite3.Row) -> RoomRecord:
    return RoomRecord(
        room_id=str(row["id"]),
        room_number=str(row["room_number"]),
        room_type=str(row["room_type"]),
        price=Decimal(str(row["price"])),
        status=RoomStatus(str(row["status"])),
        created_at=datetime.fromisoformat(str(row["created_at"])),
        updated_at=datetime.fromisoformat(str(row["updated_at"])),
    )


def _row_to_reservation(row: sqlite3.Row) -> ReservationRecord:
    return ReservationRecord(
        reservation_id=str(row["id"]),
        user_id=str(row["user_id"]),
        room_id=str(row["room_id"]),
        check_in=date.fromisoformat(str(row["check_in_date"])),
        check_out=date.fromisoformat(str(row["check_out_date"])),
        status=ReservationStatus(str(row["status"])),
        created_at=datetime.fromisoformat(str(row["created_at"])),
        updated_at=datetime.fromisoformat(str(row["updated_at"])),
    )


def _row_to_details(row: sqlite3.Row) -> ReservationDetails:
    room = RoomRecord(
        room_id=str(row["room_id"]),
        room_number=str(row["room_number"]),
        room_type=str(row["room_type"]),
        price=Decimal(str(row["price"])),
        status=RoomStatus(str(row["room_status"])),
        created_at=datetime.fromisoformat(str(row["room_created_at"])),
        updated_at=datetime.fromisoformat(str(row["room_updated_at"])),
    )
    return ReservationDetails(reservation=_row_to_reservation(row), room=room)


class DataRepository:
    """Encapsulates SQLite access so business logic stays storage-agnostic.

    Every public method accepts an optional ``conn``. When given, the call
    joins the caller's open transaction (see :meth:`transaction`); otherwise
    it opens and closes its own connection.
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._db_path = Path(self._settings.database_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

    def _connect(self) -> sqlite3.Connection:
        # Autocommit mode: transactions are opened explicitly below.
        connection = sqlite3.connect(
            self._db_path,
            timeout=self._settings.database_busy_timeout_seconds,
            isolation_level=None,
        )
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON;")
        return connection

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Open a write transaction holding SQLite's single writer lock.

        ``BEGIN IMMEDIATE`` takes the lock before any read, so a
        read-check-write sequence inside the block cannot interleave with
        another writer. Waiting for the lock is bounded by the busy timeout.
        """
        connection = self._connect()
        try:
            connection.execute("BEGIN IMMEDIATE;")
            try:
                yield connection
            except BaseException:
                if connection.in_transaction:
                    connection.execute("ROLLBACK;")
                raise
            connection.execute("COMMIT;")
        finally:
            connection.close()

    @contextmanager
    def _session(
        self,
        conn: Optional[sqlite3.Connection],
        write: bool = False,
    ) -> Iterator[sqlite3.Connection]:
        if conn is not None:
            yield conn
            return
        if write:
            with self.transaction() as own:
                yield own
            return
        connection = self._connect()
        try:
            yield connection
        finally:
            connection.close()

    def initialize_database(self) -> None:
        """Create all persistence artifacts before API startup."""
        try:
            connection = self._connect()
            try:
                connection.execute("PRAGMA journal_mode = WAL;")
                connection.executescript(
                    f"""
                    CREATE TABLE IF NOT EXISTS Rooms (
                        id TEXT PRIMARY KEY,
                        room_number TEXT NOT NULL UNIQUE,
                        room_type TEXT NOT NULL,
                        price TEXT NOT NULL,
                        status TEXT NOT NULL DEFAULT 'AVAILABLE'
                            CHECK (status IN ('AVAILABLE', 'OCCUPIED', 'MAINTENANCE')),
                        created_at TEXT NOT NULL,
                        updated_at TEXT NOT NULL
                    );

                    CREATE TABLE IF NOT EXISTS Reservations (
                        id TEXT PRIMARY KEY,
                        user_id TEXT NOT NULL,
                        room_id TEXT NOT NULL,
                        check_in_date TEXT NOT NULL,
                        check_out_date TEXT NOT NULL,
                        status TEXT NOT NULL DEFAULT 'PENDING'
                            CHECK (status IN (
                                'PENDING', 'CONFIRMED', 'CHECKED_IN', 'CHECKED_OUT', 'CANCELLED'
                            )),
                        created_at TEXT NOT NULL,
                        updated_at TEXT NOT NULL,
                        CHECK (check_in_date < check_out_date),
                        FOREIGN KEY (room_id) REFERENCES Rooms(id) ON DELETE CASCADE
                    );

                    CREATE INDEX IF NOT EXISTS idx_reservations_room_status_dates
                    ON Reservations(room_id, status, check_in_date, check_out_date);

                    CREATE INDEX IF NOT EXISTS idx_reservations_user_created
                    ON Reservations(user_id, created_at);

                    CREATE TRIGGER IF NOT EXISTS trg_reservations_no_overlap_insert
                    BEFORE INSERT ON Reservations
                    WHEN NEW.status NOT IN ({_TERMINAL_SQL})
                    BEGIN
                        SELECT RAISE(ABORT, '{OVERLAP_VIOLATION}')
                        WHERE EXISTS (
                            SELECT 1 FROM Reservations
                            WHERE room_id = NEW.room_id
                              AND status NOT IN ({_TERMINAL_SQL})
                              AND check_in_date < NEW.check_out_date
                              AND check_out_date > NEW.check_in_date
                        );
                    END;

                    CREATE TRIGGER IF NOT EXISTS trg_reservations_no_overlap_update
                    BEFORE UPDATE OF room_id, check_in_date, check_out_date, status
                    ON Reservations
                    WHEN NEW.status NOT IN ({_TERMINAL_SQL})
                    BEGIN
                        SELECT RAISE(ABORT, '{OVERLAP_VIOLATION}')
                        WHERE EXISTS (
                            SELECT 1 FROM Reservations
                            WHERE room_id = NEW.room_id
                              AND id <> NEW.id
                              AND status NOT IN ({_TERMINAL_SQL})
                              AND check_in_date < NEW.check_out_date
                              AND check_out_date > NEW.check_in_date
                        );
                    END;
                    """
                )
            finally:
                connection.close()
            logger.info("Database initialized at %s", self._db_path)
        except sqlite3.Error as exc:
            raise RuntimeError(f"Database initialization failed: {exc}") from exc

    def seed_demo_rooms(self) -> int:
        """Insert the demo room inventory only when the Rooms table is empty."""
        try:
            with self.transaction() as conn:
                count = int(conn.execute("SELECT COUNT(*) AS count FROM Rooms;").fetchone()["count"])
                if count > 0:
                    logger.info("Rooms already present; skipping demo seed")
                    return 0
                for room_number, room_type, price in DEMO_ROOMS:
                    self.insert_room(
                        room_number=room_number,
                        room_type=room_type,
                        price=Decimal(price),
                        status=RoomStatus.AVAILABLE,
                        conn=conn,
                    )
            logger.info("Demo seed completed with %s rooms", len(DEMO_ROOMS))
            return len(DEMO_ROOMS)
        except sqlite3.Error as exc:
            raise RuntimeError(f"Demo room seeding failed: {exc}") from exc

    def ping(self) -> None:
        with self._session(None) as conn:
            conn.execute("SELECT 1;").fetchone()

    # --- Rooms ---

    def get_room(
        self,
        room_id: str,
        conn: Optional[sqlite3.Connection] = None,
    ) -> Optional[RoomRecord]:
        with self._session(conn) as connection:
            row = connection.execute(
                "SELECT * FROM Rooms WHERE id = ?;",
                (room_id,),
            ).fetchone()
        return _row_to_room(row) if row is not None else None

    def list_rooms(self, filters: Optional[RoomFilters] = None) -> list[RoomRecord]:
        filters = filters or RoomFilters()
        clauses: list[str] = []
        params: list[Any] = []
        if filters.room_type is not None:
            clauses.append("room_type = ?")
            params.append(filters.room_type)
        if filters.status is not None:
            clauses.append("status = ?")
            params.append(filters.status.value)
        if filters.min_price is not None:
            clauses.append("CAST(price AS REAL) >= ?")
            params.append(float(filters.min_price))
        if filters.max_price is not None:
            clauses.append("CAST(price AS REAL) <= ?")
            params.append(float(filters.max_price))
        where = " AND ".join(clauses) if clauses else "1 = 1"
        with self._session(None) as connection:
            rows = connection.execute(
                f"SELECT * FROM Rooms WHERE {where} ORDER BY room_number ASC;",
                tuple(params),
            ).fetchall()
        return [_row_to_room(row) for row in rows]

    def insert_room(
        self,
        room_number: str,
        room_type: str,
        price: Decimal,
        status: RoomStatus,
        conn: Optional[sqlite3.Connection] = None,
    ) -> RoomRecord:
        room_id = str(uuid4())
        now = _utcnow().isoformat()
        with self._session(conn, write=True) as connection:
            try:
                connection.execute(
                    """
                    INSERT INTO Rooms (id, room_number, room_type, price, status, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?);
                    """,
                    (room_id, room_number, room_type, str(price), status.value, now, now),
                )
            except sqlite3.IntegrityError as exc:
                if "UNIQUE" in str(exc):
                    raise DuplicateKeyError(str(exc)) from exc
                raise
            row = connection.execute("SELECT * FROM Rooms WHERE id = ?;", (room_id,)).fetchone()
        return _row_to_room(row)

    def update_room(
        self,
        room_id: str,
        columns: dict[str, Any],
        conn: Optional[sqlite3.Connection] = None,
    ) -> bool:
        """Apply a partial update; returns False when the room does not exist."""
        assignments = dict(columns)
        assignments["updated_at"] = _utcnow().isoformat()
        set_clause = ", ".join(f"{name} = ?" for name in assignments)
        with self._session(conn, write=True) as connection:
            try:
                cursor = connection.execute(
                    f"UPDATE Rooms SET {set_clause} WHERE id = ?;",
                    (*assignments.values(), room_id),
                )
            except sqlite3.IntegrityError as exc:
                if "UNIQUE" in str(exc):
                    raise DuplicateKeyError(str(exc)) from exc
                raise
            return cursor.rowcount > 0

    def update_room_status(
        self,
        room_id: str,
        status: RoomStatus,
        conn: Optional[sqlite3.Connection] = None,
    ) -> bool:
        return self.update_room(room_id, {"status": status.value}, conn=conn)

    def delete_room(
        self,
        room_id: str,
        conn: Optional[sqlite3.Connection] = None,
    ) -> bool:
        with self._session(conn, write=True) as connection:
            cursor = connection.execute("DELETE FROM Rooms WHERE id = ?;", (room_id,))
            return cursor.rowcount > 0

    # --- Reservations ---

    def get_reservation(
        self,
        reservation_id: str,
        conn: Optional[sqlite3.Connection] = None,
    ) -> Optional[ReservationRecord]:
        with self._session(conn) as connection:
            row = connection.execute(
                f"SELECT {_RESERVATION_COLUMNS} FROM Reservations AS res WHERE res.id = ?;",
                (reservation_id,),
            ).fetchone()
        return _row_to_reservation(row) if row is not None else None

    def get_reservation_details(
        self,
        reservation_id: str,
        conn: Optional[sqlite3.Connection] = None,
    ) -> Optional[ReservationDetails]:
        with self._session(conn) as connection:
            row = connection.execute(
                f"{_RESERVATION_DETAIL_SELECT} WHERE res.id = ?;",
                (reservation_id,),
            ).fetchone()
        return _row_to_details(row) if row is not None else None

    def list_active_reservations_for_room(
        self,
        room_id: str,
        exclude_reservation_id: Optional[str] = None,
        conn: Optional[sqlite3.Connection] = None,
    ) -> list[ReservationRecord]:
        """Return the room's reservations that still hold it (non-terminal)."""
        query = f"""
            SELECT {_RESERVATION_COLUMNS}
            FROM Reservations AS res
            WHERE res.room_id = ?
              AND res.status NOT IN ({_TERMINAL_SQL})
        """
        params: list[Any] = [room_id]
        if exclude_reservation_id is not None:
            query += " AND res.id <> ?"
            params.append(exclude_reservation_id)
        query += " ORDER BY res.check_in_date ASC;"
        with self._session(conn) as connection:
            rows = connection.execute(query, tuple(params)).fetchall()
        return [_row_to_reservation(row) for row in rows]

    def insert_reservation(
        self,
        user_id: str,
        room_id: str,
        date_range: DateRange,
        status: ReservationStatus = ReservationStatus.PENDING,
        conn: Optional[sqlite3.Connection] = None,
    ) -> str:
        """Insert a reservation row and return the created id."""
        reservation_id = str(uuid4())
        now = _utcnow().isoformat()
        with self._session(conn, write=True) as connection:
            try:
                connection.execute(
                    """
                    INSERT INTO Reservations (
                        id,
                        user_id,
                        room_id,
                        check_in_date,
                        check_out_date,
                        status,
                        created_at,
                        updated_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?);
                    """,
                    (
                        reservation_id,
                        user_id,
                        room_id,
                        date_range.check_in.isoformat(),
                        date_range.check_out.isoformat(),
                        status.value,
                        now,
                        now,
                    ),
                )
            except sqlite3.IntegrityError as exc:
                if OVERLAP_VIOLATION in str(exc):
                    raise ReservationOverlapError(str(exc)) from exc
                raise
        return reservation_id

    def update_reservation_status(
        self,
        reservation_id: str,
        expected_status: ReservationStatus,
        new_status: ReservationStatus,
        conn: Optional[sqlite3.Connection] = None,
    ) -> bool:
        """Compare-and-set the status; returns False if it changed underneath."""
        with self._session(conn, write=True) as connection:
            try:
                cursor = connection.execute(
                    """
                    UPDATE Reservations
                    SET status = ?, updated_at = ?
                    WHERE id = ? AND status = ?;
                    """,
                    (
                        new_status.value,
                        _utcnow().isoformat(),
                        reservation_id,
                        expected_status.value,
                    ),
                )
            except sqlite3.IntegrityError as exc:
                if OVERLAP_VIOLATION in str(exc):
                    raise ReservationOverlapError(str(exc)) from exc
                raise
            return cursor.rowcount == 1

    def search_reservations(
        self,
        filters: ReservationFilters,
        offset: int,
        limit: int,
    ) -> tuple[list[ReservationDetails], int]:
        """Return one page of matching reservations plus the total match count."""
        clauses: list[str] = []
        params: list[Any] = []
        if filters.status is not None:
            clauses.append("res.status = ?")
            params.append(filters.status.value)
        if filters.room_id is not None:
            clauses.append("res.room_id = ?")
            params.append(filters.room_id)
        if filters.user_id is not None:
            clauses.append("res.user_id = ?")
            params.append(filters.user_id)
        if filters.date_range is not None:
            clauses.append("res.check_in_date < ?")
            params.append(filters.date_range.check_out.isoformat())
            clauses.append("res.check_out_date > ?")
            params.append(filters.date_range.check_in.isoformat())
        where = " AND ".join(clauses) if clauses else "1 = 1"

        with self._session(None) as connection:
            # One read transaction so the count and the page share a snapshot.
            connection.execute("BEGIN;")
            try:
                total = int(
                    connection.execute(
                        f"SELECT COUNT(*) AS count FROM Reservations AS res WHERE {where};",
                        tuple(params),
                    ).fetchone()["count"]
                )
                rows = connection.execute(
                    f"""
                    {_RESERVATION_DETAIL_SELECT}
                    WHERE {where}
                    ORDER BY res.created_at DESC, res.rowid DESC
                    LIMIT ? OFFSET ?;
                    """,
                    (*params, limit, offset),
                ).fetchall()
            finally:
                connection.execute("COMMIT;")
        return [_row_to_details(row) for row in rows], total
