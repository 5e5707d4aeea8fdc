from __future__ import annotations

from datetime import datetime, timezone

import pytest

from hall_analytics.domain.models import Hall, RawBooking, UserProfile


# Wednesday; the Sunday-first week runs 2025-07-13 .. 2025-07-19
NOW = datetime(2025, 7, 16, 12, 0, tzinfo=timezone.utc)

HALL_RECORDS = [
    {"id": "h-1", "name": "Main Auditorium", "capacity": 300, "location": "Block A", "type": "auditorium"},
    {"id": "h-2", "name": "Seminar Hall", "capacity": 80, "location": "Block B", "type": "seminar"},
]

USER_RECORDS = [
    {"id": "u-1", "name": "Asha Raman", "email": "asha@example.edu", "department": "Computer Science"},
    {"id": "u-2", "name": "Daniel Okafor", "email": "daniel@example.edu", "department": "Physics"},
    {"id": "u-3", "name": "Mei Lin", "email": "mei@example.edu", "department": "Mathematics"},
    {"id": "u-4", "name": "Ravi Kumar", "email": "ravi@example.edu", "department": "Administration"},
    {"id": "u-5", "name": "Sara Nilsson", "email": "sara@example.edu", "department": "Chemistry"},
]

BOOKING_RECORDS = [
    {
        "id": "b-1",
        "hall_id": "h-1",
        "user_id": "u-1",
        "booking_date": "16072025",
        "start_time": "09:00",
        "end_time": "11:00",
        "duration_minutes": 120,
        "status": "approved",
        "priority": "high",
        "purpose": "Guest lecture",
        "created_at": "2025-07-14T10:00:00+00:00",
        "approved_at": "2025-07-14T12:00:00+00:00",
    },
    {
        "id": "b-2",
        "hall_id": "h-1",
        "user_id": "u-2",
        "booking_date": "2025-07-17",
        "start_time": "10:00",
        "end_time": "11:00",
        "duration_minutes": 60,
        "status": "approved",
        "priority": "medium",
        "purpose": "Department meeting",
        "created_at": "2025-07-15T10:00:00+00:00",
        "approved_at": "2025-07-15T14:00:00+00:00",
    },
    {
        "id": "b-3",
        "hall_id": "h-2",
        "user_id": "u-3",
        "booking_date": "18072025",
        "start_time": "14:00",
        "end_time": "15:30",
        "duration_minutes": 90,
        "status": "pending",
        "priority": "low",
        "purpose": "Workshop",
        "created_at": "2025-07-10T10:00:00+00:00",
    },
    {
        "id": "b-4",
        "hall_id": "h-1",
        "user_id": "u-4",
        "booking_date": "2025-07-01",
        "start_time": "09:00",
        "end_time": "10:00",
        "duration_minutes": 60,
        "status": "completed",
        "purpose": "Thesis defense",
        "created_at": "2025-06-20T10:00:00+00:00",
    },
    {
        "id": "b-5",
        "hall_id": "h-2",
        "user_id": "u-5",
        "booking_date": "20072025",
        "start_time": "09:00",
        "end_time": "09:30",
        "duration_minutes": 30,
        "status": "cancelled",
        "purpose": "Seminar",
        "created_at": "2025-07-12T10:00:00+00:00",
    },
]


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def halls() -> list[Hall]:
    return [Hall.from_record(row) for row in HALL_RECORDS]


@pytest.fixture
def users() -> list[UserProfile]:
    return [UserProfile.from_record(row) for row in USER_RECORDS]


@pytest.fixture
def raw_bookings() -> list[RawBooking]:
    return [RawBooking.from_record(row) for row in BOOKING_RECORDS]
