"""Booking oversight helpers: filter presets, search and conflict detection."""

from __future__ import annotations

from datetime import date
from itertools import combinations
from typing import Iterable, Optional, Sequence

from hall_analytics.domain.models import BookingConflict, EnrichedBooking
from hall_analytics.services.statistics_service import week_start


DATE_RANGE_PRESETS: tuple[str, ...] = ("today", "this_week", "this_month", "all")
CONFLICT_STATUSES = frozenset({"pending", "approved"})


def preset_start_date(preset: str, today: date) -> Optional[date]:
    """First calendar date covered by an oversight date-range preset."""
    if preset == "today":
        return today
    if preset == "this_week":
        return week_start(today)
    if preset == "this_month":
        return today.replace(day=1)
    if preset == "all":
        return None
    raise ValueError(f"date_range must be one of {', '.join(DATE_RANGE_PRESETS)}")


def search_bookings(bookings: Iterable[EnrichedBooking], query: str) -> list[EnrichedBooking]:
    needle = query.strip().lower()
    if not needle:
        return list(bookings)
    matches: list[EnrichedBooking] = []
    for item in bookings:
        haystack = (
            item.booking.purpose,
            item.booking.description,
            item.hall_name,
            item.user_name,
            item.user_email,
        )
        if any(needle in value.lower() for value in haystack if value):
            matches.append(item)
    return matches


def _minutes(value: str) -> Optional[int]:
    parts = value.split(":")
    if len(parts) < 2 or not parts[0].isdigit() or not parts[1].isdigit():
        return None
    return int(parts[0]) * 60 + int(parts[1])


def detect_conflicts(bookings: Sequence[EnrichedBooking]) -> list[BookingConflict]:
    """Pairs of live bookings on the same hall and day whose times overlap."""
    groups: dict[tuple[str, date], list[tuple[int, int, EnrichedBooking]]] = {}
    for item in bookings:
        booking = item.booking
        if booking.status not in CONFLICT_STATUSES:
            continue
        if booking.hall_id is None or booking.calendar_date is None:
            continue
        start = _minutes(booking.start_time)
        end = _minutes(booking.end_time)
        if start is None or end is None or end <= start:
            continue
        groups.setdefault((booking.hall_id, booking.calendar_date), []).append(
            (start, end, item)
        )

    conflicts: list[BookingConflict] = []
    for (hall_id, calendar_date), entries in sorted(groups.items()):
        entries.sort(key=lambda entry: (entry[0], entry[2].booking.booking_id))
        for first, second in combinations(entries, 2):
            if first[0] < second[1] and second[0] < first[1]:
                conflicts.append(
                    BookingConflict(
                        hall_id=hall_id,
                        calendar_date=calendar_date,
                        first_booking_id=first[2].booking.booking_id,
                        second_booking_id=second[2].booking.booking_id,
                    )
                )
    return conflicts

