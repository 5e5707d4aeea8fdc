"""Record store boundary: the only place that touches persisted bookings.

The store answers three read operations with unordered batches filtered by
equality or range predicates. It never joins bookings with halls or
profiles; that reconciliation happens in the resolver.
"""

from __future__ import annotations

import json
import random
import sqlite3
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Protocol, Sequence

from hall_analytics.domain.errors import MalformedDateError
from hall_analytics.domain.models import Hall, RawBooking, UserProfile
from hall_analytics.services.normalizer import (
    format_compact_date,
    parse_booking_date,
    parse_timestamp,
)
from hall_analytics.utils.config import Settings, get_settings
from hall_analytics.utils.logger import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True)
class BookingFilter:
    """Predicates pushed to the store; every field is optional."""

    status: Optional[str] = None
    hall_id: Optional[str] = None
    priority: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    created_from: Optional[datetime] = None
    created_to: Optional[datetime] = None


class RecordStore(Protocol):
    def fetch_bookings(self, booking_filter: Optional[BookingFilter] = None) -> list[RawBooking]:
        ...

    def fetch_halls(self, ids: Optional[Sequence[str]] = None) -> list[Hall]:
        ...

    def fetch_users(self, ids: Optional[Sequence[str]] = None) -> list[UserProfile]:
        ...


def matches_range_predicates(booking: RawBooking, booking_filter: BookingFilter) -> bool:
    """Apply the date predicates that cannot be expressed over mixed encodings."""
    if booking_filter.date_from is not None or booking_filter.date_to is not None:
        if not booking.booking_date:
            return False
        try:
            booking_date = parse_booking_date(booking.booking_date)
        except MalformedDateError:
            return False
        if booking_filter.date_from is not None and booking_date < booking_filter.date_from:
            return False
        if booking_filter.date_to is not None and booking_date > booking_filter.date_to:
            return False

    if booking_filter.created_from is not None or booking_filter.created_to is not None:
        created = parse_timestamp(booking.created_at)
        if created is None:
            return False
        if booking_filter.created_from is not None and created < booking_filter.created_from:
            return False
        if booking_filter.created_to is not None and created > booking_filter.created_to:
            return False
    return True


def matches_filter(booking: RawBooking, booking_filter: BookingFilter) -> bool:
    if booking_filter.status is not None and booking.status != booking_filter.status:
        return False
    if booking_filter.hall_id is not None and booking.hall_id != booking_filter.hall_id:
        return False
    if booking_filter.priority is not None and booking.priority != booking_filter.priority:
        return False
    return matches_range_predicates(booking, booking_filter)


def _decode_equipment(value: Any, booking_id: Any) -> Optional[list[str]]:
    """JSON equipment list for one row; unreadable values become ``None``."""
    if not value:
        return None
    try:
        decoded = json.loads(value)
    except (json.JSONDecodeError, TypeError) as exc:
        logger.debug("Booking %s has unreadable equipment_needed: %s", booking_id, exc)
        return None
    if not isinstance(decoded, list):
        logger.debug("Booking %s equipment_needed is not a list", booking_id)
        return None
    return [str(item) for item in decoded]


class InMemoryRecordStore:
    """Record store over plain mappings, shaped like the store's rows."""

    def __init__(
        self,
        bookings: Iterable[Mapping[str, Any]] = (),
        halls: Iterable[Mapping[str, Any]] = (),
        users: Iterable[Mapping[str, Any]] = (),
    ) -> None:
        self._bookings = [RawBooking.from_record(row) for row in bookings]
        self._halls = [Hall.from_record(row) for row in halls]
        self._users = [UserProfile.from_record(row) for row in users]

    def fetch_bookings(self, booking_filter: Optional[BookingFilter] = None) -> list[RawBooking]:
        booking_filter = booking_filter or BookingFilter()
        return [booking for booking in self._bookings if matches_filter(booking, booking_filter)]

    def fetch_halls(self, ids: Optional[Sequence[str]] = None) -> list[Hall]:
        if ids is None:
            return list(self._halls)
        wanted = set(ids)
        return [hall for hall in self._halls if hall.hall_id in wanted]

    def fetch_users(self, ids: Optional[Sequence[str]] = None) -> list[UserProfile]:
        if ids is None:
            return list(self._users)
        wanted = set(ids)
        return [user for user in self._users if user.user_id in wanted]


class SQLiteRecordStore:
    """Encapsulates SQLite access so aggregation stays storage-agnostic."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._db_path = Path(self._settings.database_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def database_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(self._db_path)
        connection.row_factory = sqlite3.Row
        return connection

    def initialize_database(self) -> None:
        """Create the halls, profiles and bookings tables if missing."""
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS halls (
                        id TEXT PRIMARY KEY,
                        name TEXT NOT NULL,
                        capacity INTEGER NOT NULL DEFAULT 0,
                        location TEXT,
                        type TEXT,
                        is_active INTEGER NOT NULL DEFAULT 1,
                        is_maintenance INTEGER NOT NULL DEFAULT 0
                    );
                    """
                )
                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS profiles (
                        id TEXT PRIMARY KEY,
                        name TEXT NOT NULL,
                        email TEXT,
                        phone TEXT,
                        department TEXT,
                        role TEXT
                    );
                    """
                )
                # no foreign keys: referenced halls and profiles may be deleted
                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS bookings (
                        id TEXT PRIMARY KEY,
                        hall_id TEXT,
                        user_id TEXT,
                        booking_date TEXT,
                        start_time TEXT,
                        end_time TEXT,
                        duration_minutes INTEGER,
                        buffer_start TEXT,
                        buffer_end TEXT,
                        status TEXT,
                        priority TEXT,
                        equipment_needed TEXT,
                        attendees_count INTEGER,
                        purpose TEXT,
                        description TEXT,
                        special_requirements TEXT,
                        auto_approved INTEGER,
                        approved_by TEXT,
                        approved_at TEXT,
                        rejected_reason TEXT,
                        admin_notes TEXT,
                        created_at TEXT,
                        updated_at TEXT
                    );
                    """
                )
                cursor.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_bookings_status_hall
                    ON bookings(status, hall_id);
                    """
                )
                conn.commit()
            logger.info("Database initialized at %s", self._db_path)
        except sqlite3.Error as exc:
            raise RuntimeError(f"Database initialization failed: {exc}") from exc

    def insert_hall(self, hall: Mapping[str, Any]) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO halls (id, name, capacity, location, type, is_active, is_maintenance)
                VALUES (:id, :name, :capacity, :location, :type, :is_active, :is_maintenance);
                """,
                {
                    "id": hall["id"],
                    "name": hall["name"],
                    "capacity": hall.get("capacity", 0),
                    "location": hall.get("location"),
                    "type": hall.get("type"),
                    "is_active": int(bool(hall.get("is_active", True))),
                    "is_maintenance": int(bool(hall.get("is_maintenance", False))),
                },
            )
            conn.commit()

    def insert_user(self, user: Mapping[str, Any]) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO profiles (id, name, email, phone, department, role)
                VALUES (:id, :name, :email, :phone, :department, :role);
                """,
                {
                    "id": user["id"],
                    "name": user["name"],
                    "email": user.get("email"),
                    "phone": user.get("phone"),
                    "department": user.get("department"),
                    "role": user.get("role"),
                },
            )
            conn.commit()

    def insert_booking(self, booking: Mapping[str, Any]) -> None:
        columns = (
            "id", "hall_id", "user_id", "booking_date", "start_time", "end_time",
            "duration_minutes", "buffer_start", "buffer_end", "status", "priority",
            "equipment_needed", "attendees_count", "purpose", "description",
            "special_requirements", "auto_approved", "approved_by", "approved_at",
            "rejected_reason", "admin_notes", "created_at", "updated_at",
        )
        values = {column: booking.get(column) for column in columns}
        if values["equipment_needed"] is not None:
            values["equipment_needed"] = json.dumps(list(values["equipment_needed"]))
        if values["auto_approved"] is not None:
            values["auto_approved"] = int(bool(values["auto_approved"]))
        placeholders = ", ".join(f":{column}" for column in columns)
        with self._connect() as conn:
            conn.execute(
                f"INSERT INTO bookings ({', '.join(columns)}) VALUES ({placeholders});",
                values,
            )
            conn.commit()

    def seed_demo_data(self, now: Optional[datetime] = None) -> None:
        """Seed deterministic demo halls, profiles and bookings when empty."""
        with self._connect() as conn:
            count = int(conn.execute("SELECT COUNT(*) AS count FROM halls;").fetchone()["count"])
        if count > 0:
            logger.info("Demo data already present; skipping seed")
            return

        rng = random.Random(self._settings.demo_random_seed)
        current = now or datetime.now(timezone.utc)
        halls = [
            ("hall-1", "Main Auditorium", 300, "Block A", "auditorium", True, False),
            ("hall-2", "Seminar Hall 1", 120, "Block B", "seminar", True, False),
            ("hall-3", "Seminar Hall 2", 80, "Block B", "seminar", True, False),
            ("hall-4", "Conference Room", 40, "Admin Block", "conference", True, False),
            ("hall-5", "Lecture Theatre", 150, "Block C", "lecture", True, True),
        ]
        users = [
            ("user-1", "Asha Raman", "asha@example.edu", "555-0101", "Computer Science", "faculty"),
            ("user-2", "Daniel Okafor", "daniel@example.edu", "555-0102", "Physics", "faculty"),
            ("user-3", "Mei Lin", "mei@example.edu", "555-0103", "Mathematics", "faculty"),
            ("user-4", "Ravi Kumar", "ravi@example.edu", "555-0104", "Administration", "admin"),
            ("user-5", "Sara Nilsson", "sara@example.edu", "555-0105", "Chemistry", "faculty"),
        ]
        for hall_id, name, capacity, location, hall_type, active, maintenance in halls:
            self.insert_hall(
                {
                    "id": hall_id,
                    "name": name,
                    "capacity": capacity,
                    "location": location,
                    "type": hall_type,
                    "is_active": active,
                    "is_maintenance": maintenance,
                }
            )
        for user_id, name, email, phone, department, role in users:
            self.insert_user(
                {
                    "id": user_id,
                    "name": name,
                    "email": email,
                    "phone": phone,
                    "department": department,
                    "role": role,
                }
            )

        statuses = ("approved", "approved", "pending", "completed", "cancelled", "rejected")
        purposes = ("Guest lecture", "Department meeting", "Workshop", "Thesis defense", "Seminar")
        seed_days = self._settings.demo_seed_days
        for index in range(seed_days):
            created = current - timedelta(days=seed_days - index, hours=rng.randint(0, 8))
            booking_day = (created + timedelta(days=rng.randint(1, 14))).date()
            start_hour = rng.choice((9, 10, 11, 14, 15))
            duration = rng.choice((60, 90, 120, 180))
            end_minutes = start_hour * 60 + duration
            status = rng.choice(statuses)
            # older rows keep the ISO date encoding used before the migration
            encoded_date = (
                booking_day.isoformat() if index % 4 == 0 else format_compact_date(booking_day)
            )
            self.insert_booking(
                {
                    "id": f"booking-{index + 1:03d}",
                    "hall_id": halls[rng.randrange(len(halls))][0],
                    "user_id": users[rng.randrange(len(users))][0],
                    "booking_date": encoded_date,
                    "start_time": f"{start_hour:02d}:00",
                    "end_time": f"{end_minutes // 60:02d}:{end_minutes % 60:02d}",
                    "duration_minutes": duration,
                    "status": status,
                    "priority": rng.choice(("low", "medium", "high")),
                    "equipment_needed": rng.sample(["projector", "microphone", "whiteboard"], 2),
                    "attendees_count": rng.randint(10, 120),
                    "purpose": rng.choice(purposes),
                    "created_at": created.isoformat(),
                    "updated_at": created.isoformat(),
                    "approved_at": (
                        (created + timedelta(hours=rng.randint(1, 48))).isoformat()
                        if status in {"approved", "completed"}
                        else None
                    ),
                    "approved_by": "user-4" if status in {"approved", "completed"} else None,
                }
            )
        logger.info("Demo seed completed with %s bookings", seed_days)

    def fetch_bookings(self, booking_filter: Optional[BookingFilter] = None) -> list[RawBooking]:
        booking_filter = booking_filter or BookingFilter()
        clauses: list[str] = []
        params: list[Any] = []
        for column, value in (
            ("status", booking_filter.status),
            ("hall_id", booking_filter.hall_id),
            ("priority", booking_filter.priority),
        ):
            if value is not None:
                clauses.append(f"{column} = ?")
                params.append(value)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        with self._connect() as conn:
            rows = conn.execute(f"SELECT * FROM bookings {where};", params).fetchall()

        bookings: list[RawBooking] = []
        for row in rows:
            record = dict(row)
            record["equipment_needed"] = _decode_equipment(
                record.get("equipment_needed"), record.get("id")
            )
            booking = RawBooking.from_record(record)
            if matches_range_predicates(booking, booking_filter):
                bookings.append(booking)
        return bookings

    def fetch_halls(self, ids: Optional[Sequence[str]] = None) -> list[Hall]:
        return [Hall.from_record(row) for row in self._select_by_ids("halls", ids)]

    def fetch_users(self, ids: Optional[Sequence[str]] = None) -> list[UserProfile]:
        return [UserProfile.from_record(row) for row in self._select_by_ids("profiles", ids)]

    def _select_by_ids(self, table: str, ids: Optional[Sequence[str]]) -> list[dict[str, Any]]:
        if ids is not None and not ids:
            return []
        with self._connect() as conn:
            if ids is None:
                rows = conn.execute(f"SELECT * FROM {table};").fetchall()
            else:
                placeholders = ", ".join("?" for _ in ids)
                rows = conn.execute(
                    f"SELECT * FROM {table} WHERE id IN ({placeholders});",
                    list(ids),
                ).fetchall()
        return [dict(row) for row in rows]
