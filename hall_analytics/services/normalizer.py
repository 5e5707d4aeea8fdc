"""Record normalization from raw store rows into canonical bookings.

Booking dates arrive in two encodings: the compact ``DDMMYYYY`` form written
by the booking flow and ISO ``YYYY-MM-DD`` written by older records. Both
are parsed here, at the boundary, so everything downstream compares plain
``datetime.date`` values.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Iterable, Optional

import pandas as pd

from hall_analytics.domain.errors import MalformedDateError
from hall_analytics.domain.models import (
    BOOKING_STATUSES,
    DEFAULT_PRIORITY,
    PRIORITIES,
    UNKNOWN_STATUS,
    NormalizedBooking,
    RawBooking,
)
from hall_analytics.utils.logger import get_logger


logger = get_logger(__name__)

DEFAULT_DURATION_MINUTES = 120
COMPACT_DATE_LENGTH = 8


def parse_booking_date(value: str) -> date:
    """Return the calendar date encoded by ``value``.

    Eight characters without separators are read as ``DDMMYYYY``; anything
    else must be ``YYYY-MM-DD``. Out-of-range components are rejected rather
    than rolled over.
    """
    if value is None:
        raise MalformedDateError("booking date is missing")
    text = str(value).strip()

    if len(text) == COMPACT_DATE_LENGTH and "-" not in text:
        if not text.isdigit():
            raise MalformedDateError(f"invalid DDMMYYYY date: {value!r}")
        day, month, year = int(text[0:2]), int(text[2:4]), int(text[4:8])
    else:
        parts = text.split("-")
        if len(parts) != 3 or not all(part.isdigit() for part in parts):
            raise MalformedDateError(f"unrecognized booking date: {value!r}")
        if len(parts[0]) != 4 or not 1 <= len(parts[1]) <= 2 or not 1 <= len(parts[2]) <= 2:
            raise MalformedDateError(f"invalid YYYY-MM-DD date: {value!r}")
        year, month, day = (int(part) for part in parts)

    try:
        return date(year, month, day)
    except ValueError as exc:
        raise MalformedDateError(f"date out of calendar range: {value!r}") from exc


def format_compact_date(value: date) -> str:
    """Encode ``value`` as ``DDMMYYYY``."""
    return f"{value.day:02d}{value.month:02d}{value.year:04d}"


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 audit timestamp into an aware UTC datetime."""
    if not value:
        return None
    parsed = pd.to_datetime(str(value).strip(), utc=True, errors="coerce")
    if pd.isna(parsed):
        logger.debug("Ignoring unparsable timestamp %r", value)
        return None
    return parsed.to_pydatetime().astimezone(timezone.utc)


def normalize_status(value: Optional[str]) -> tuple[str, str]:
    """Map a stored status onto the closed set, returning (status, raw)."""
    raw = (value or "").strip().lower()
    if raw in BOOKING_STATUSES:
        return raw, raw
    return UNKNOWN_STATUS, raw


def normalize_priority(value: Optional[str]) -> str:
    candidate = (value or "").strip().lower()
    if candidate in PRIORITIES:
        return candidate
    return DEFAULT_PRIORITY


def normalize_duration(
    value: Optional[int],
    default_minutes: int = DEFAULT_DURATION_MINUTES,
) -> int:
    if value is None or value <= 0:
        return default_minutes
    return int(value)


def normalize_booking(
    raw: RawBooking,
    default_duration_minutes: int = DEFAULT_DURATION_MINUTES,
) -> NormalizedBooking:
    calendar_date: Optional[date]
    try:
        calendar_date = parse_booking_date(raw.booking_date) if raw.booking_date else None
    except MalformedDateError as exc:
        logger.debug("Booking %s has no usable date: %s", raw.booking_id, exc)
        calendar_date = None

    status, raw_status = normalize_status(raw.status)
    start_time = raw.start_time or ""
    end_time = raw.end_time or ""

    return NormalizedBooking(
        booking_id=raw.booking_id,
        hall_id=raw.hall_id or None,
        user_id=raw.user_id or None,
        booking_date=raw.booking_date,
        calendar_date=calendar_date,
        start_time=start_time,
        end_time=end_time,
        duration_minutes=normalize_duration(raw.duration_minutes, default_duration_minutes),
        status=status,
        raw_status=raw_status,
        priority=normalize_priority(raw.priority),
        equipment_needed=tuple(raw.equipment_needed or ()),
        attendees_count=max(raw.attendees_count or 0, 0),
        purpose=raw.purpose or "",
        description=raw.description or "",
        special_requirements=raw.special_requirements or "",
        buffer_start=raw.buffer_start or start_time,
        buffer_end=raw.buffer_end or end_time,
        auto_approved=bool(raw.auto_approved),
        approved_by=raw.approved_by or None,
        approved_at=parse_timestamp(raw.approved_at),
        rejected_reason=raw.rejected_reason or "",
        admin_notes=raw.admin_notes or "",
        created_at=parse_timestamp(raw.created_at),
        updated_at=parse_timestamp(raw.updated_at),
    )


def normalize_bookings(
    raws: Iterable[RawBooking],
    default_duration_minutes: int = DEFAULT_DURATION_MINUTES,
) -> list[NormalizedBooking]:
    normalized = [
        normalize_booking(raw, default_duration_minutes=default_duration_minutes)
        for raw in raws
    ]
    undated = sum(1 for booking in normalized if booking.calendar_date is None)
    unknown = sum(1 for booking in normalized if booking.status == UNKNOWN_STATUS)
    if undated or unknown:
        logger.info(
            "Normalized %s bookings (%s undated, %s with unrecognized status)",
            len(normalized),
            undated,
            unknown,
        )
    return normalized
