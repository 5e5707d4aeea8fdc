"""Domain models for booking records and the analytics derived from them."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any, Mapping, Optional


BOOKING_STATUSES: tuple[str, ...] = (
    "pending",
    "approved",
    "rejected",
    "cancelled",
    "completed",
)
UNKNOWN_STATUS = "unknown"
PRIORITIES: tuple[str, ...] = ("low", "medium", "high")
DEFAULT_PRIORITY = "medium"
TIME_RANGES: tuple[str, ...] = ("week", "month", "quarter", "year")

UNKNOWN_HALL_NAME = "Unknown Hall"
UNKNOWN_HALL_LOCATION = "Unknown Location"
UNKNOWN_HALL_TYPE = "Unknown Type"
UNKNOWN_USER_NAME = "Unknown User"
UNKNOWN_DEPARTMENT = "Unknown Department"


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class RawBooking:
    """Booking row exactly as the record store returns it."""

    booking_id: str
    hall_id: Optional[str] = None
    user_id: Optional[str] = None
    booking_date: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    duration_minutes: Optional[int] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    equipment_needed: Optional[tuple[str, ...]] = None
    attendees_count: Optional[int] = None
    purpose: Optional[str] = None
    description: Optional[str] = None
    special_requirements: Optional[str] = None
    buffer_start: Optional[str] = None
    buffer_end: Optional[str] = None
    auto_approved: Optional[bool] = None
    approved_by: Optional[str] = None
    approved_at: Optional[str] = None
    rejected_reason: Optional[str] = None
    admin_notes: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "RawBooking":
        equipment = record.get("equipment_needed")
        auto_approved = record.get("auto_approved")
        return cls(
            booking_id=str(record.get("id", "")),
            hall_id=_optional_str(record.get("hall_id")),
            user_id=_optional_str(record.get("user_id")),
            booking_date=_optional_str(record.get("booking_date")),
            start_time=_optional_str(record.get("start_time")),
            end_time=_optional_str(record.get("end_time")),
            duration_minutes=_optional_int(record.get("duration_minutes")),
            status=_optional_str(record.get("status")),
            priority=_optional_str(record.get("priority")),
            equipment_needed=(
                tuple(str(item) for item in equipment) if equipment is not None else None
            ),
            attendees_count=_optional_int(record.get("attendees_count")),
            purpose=_optional_str(record.get("purpose")),
            description=_optional_str(record.get("description")),
            special_requirements=_optional_str(record.get("special_requirements")),
            buffer_start=_optional_str(record.get("buffer_start")),
            buffer_end=_optional_str(record.get("buffer_end")),
            auto_approved=None if auto_approved is None else bool(auto_approved),
            approved_by=_optional_str(record.get("approved_by")),
            approved_at=_optional_str(record.get("approved_at")),
            rejected_reason=_optional_str(record.get("rejected_reason")),
            admin_notes=_optional_str(record.get("admin_notes")),
            created_at=_optional_str(record.get("created_at")),
            updated_at=_optional_str(record.get("updated_at")),
        )


@dataclass(frozen=True)
class Hall:
    hall_id: str
    name: str
    capacity: int = 0
    location: str = ""
    hall_type: str = ""
    is_active: bool = True
    is_maintenance: bool = False

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Hall":
        return cls(
            hall_id=str(record.get("id", "")),
            name=str(record.get("name") or UNKNOWN_HALL_NAME),
            capacity=_optional_int(record.get("capacity")) or 0,
            location=str(record.get("location") or ""),
            hall_type=str(record.get("type") or ""),
            is_active=bool(record.get("is_active", True)),
            is_maintenance=bool(record.get("is_maintenance", False)),
        )


@dataclass(frozen=True)
class UserProfile:
    user_id: str
    name: str
    email: str = ""
    phone: str = ""
    department: str = ""
    role: str = ""

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "UserProfile":
        return cls(
            user_id=str(record.get("id", "")),
            name=str(record.get("name") or UNKNOWN_USER_NAME),
            email=str(record.get("email") or ""),
            phone=str(record.get("phone") or ""),
            department=str(record.get("department") or ""),
            role=str(record.get("role") or ""),
        )


@dataclass(frozen=True)
class NormalizedBooking:
    """Canonical booking shape with every nullable field made concrete.

    ``calendar_date`` is ``None`` when the stored date could not be parsed;
    such bookings are left out of date-bucketed counts only.
    """

    booking_id: str
    hall_id: Optional[str]
    user_id: Optional[str]
    booking_date: Optional[str]
    calendar_date: Optional[date]
    start_time: str
    end_time: str
    duration_minutes: int
    status: str
    raw_status: str
    priority: str
    equipment_needed: tuple[str, ...]
    attendees_count: int
    purpose: str
    description: str
    special_requirements: str
    buffer_start: str
    buffer_end: str
    auto_approved: bool
    approved_by: Optional[str]
    approved_at: Optional[datetime]
    rejected_reason: str
    admin_notes: str
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    @property
    def duration_hours(self) -> float:
        return self.duration_minutes / 60

    @property
    def start_hour(self) -> Optional[int]:
        if not self.start_time:
            return None
        head = self.start_time.split(":", 1)[0]
        if not head.isdigit():
            return None
        hour = int(head)
        if not 0 <= hour <= 23:
            return None
        return hour


@dataclass(frozen=True)
class EnrichedBooking:
    """A normalized booking with hall and user display fields resolved."""

    booking: NormalizedBooking
    hall_name: str = UNKNOWN_HALL_NAME
    hall_capacity: int = 0
    hall_location: str = UNKNOWN_HALL_LOCATION
    hall_type: str = UNKNOWN_HALL_TYPE
    hall_resolved: bool = False
    user_name: str = UNKNOWN_USER_NAME
    user_email: str = ""
    user_phone: str = ""
    user_department: str = UNKNOWN_DEPARTMENT
    user_resolved: bool = False


@dataclass(frozen=True)
class TopUser:
    name: str
    count: int


@dataclass(frozen=True)
class DashboardStats:
    total_bookings: int
    active_bookings: int
    pending_bookings: int
    approved_bookings: int
    completed_bookings: int
    cancelled_bookings: int
    rejected_bookings: int
    unknown_status_bookings: int
    todays_bookings: int
    tomorrows_bookings: int
    weekly_bookings: int
    monthly_bookings: int
    undated_bookings: int

    total_halls: int
    active_halls: int
    maintenance_halls: int
    hall_utilization: float
    most_booked_hall: str
    least_booked_hall: str

    average_booking_duration: float
    peak_booking_hour: str
    peak_booking_day: str
    booking_trend: str

    total_users: int
    active_users: int
    top_booking_users: tuple[TopUser, ...]

    booking_success_rate: float
    average_approval_time_hours: float
    generated_at: datetime

    @property
    def status_counts(self) -> dict[str, int]:
        return {
            "pending": self.pending_bookings,
            "approved": self.approved_bookings,
            "rejected": self.rejected_bookings,
            "cancelled": self.cancelled_bookings,
            "completed": self.completed_bookings,
            UNKNOWN_STATUS: self.unknown_status_bookings,
        }

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class HallUsage:
    hall_id: str
    hall_name: str
    bookings_count: int
    total_hours: float
    utilization_percentage: float


@dataclass(frozen=True)
class BookingTrend:
    period: str
    bookings: int


@dataclass(frozen=True)
class UserActivity:
    user_id: str
    user_name: str
    department: str
    total_bookings: int
    total_hours: float


@dataclass(frozen=True)
class ReportMetrics:
    time_range: str
    period_start: datetime
    period_end: datetime
    generated_at: datetime
    total_bookings: int
    total_halls: int
    utilization_rate: float
    status_counts: dict[str, int] = field(default_factory=dict)
    popular_halls: tuple[HallUsage, ...] = ()
    booking_trends: tuple[BookingTrend, ...] = ()
    user_activity: tuple[UserActivity, ...] = ()
    detailed_bookings: tuple[EnrichedBooking, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Aggregate fields only; detailed bookings are shaped by the caller."""
        return {
            "time_range": self.time_range,
            "period_start": self.period_start,
            "period_end": self.period_end,
            "generated_at": self.generated_at,
            "total_bookings": self.total_bookings,
            "total_halls": self.total_halls,
            "utilization_rate": self.utilization_rate,
            "status_counts": dict(self.status_counts),
            "popular_halls": [asdict(item) for item in self.popular_halls],
            "booking_trends": [asdict(item) for item in self.booking_trends],
            "user_activity": [asdict(item) for item in self.user_activity],
        }


@dataclass(frozen=True)
class DailyTrend:
    date: date
    bookings: int
    approved: int
    cancelled: int


@dataclass(frozen=True)
class HallPerformance:
    hall_id: str
    hall_name: str
    total_bookings: int
    utilization_rate: float
    average_duration_minutes: float


@dataclass(frozen=True)
class BookingConflict:
    hall_id: str
    calendar_date: date
    first_booking_id: str
    second_booking_id: str
