"""Trend classification and period bucketing over booking creation times."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Iterable, Sequence

import pandas as pd

from hall_analytics.domain.errors import InvalidTimeRangeError
from hall_analytics.domain.models import TIME_RANGES, BookingTrend, DailyTrend, EnrichedBooking
from hall_analytics.utils.logger import get_logger


logger = get_logger(__name__)

TREND_UP = "up"
TREND_DOWN = "down"
TREND_STABLE = "stable"

_PERIOD_LABELS = {
    "week": "Day {}",
    "month": "Week {}",
    "quarter": "Month {}",
    "year": "Q{}",
}
_RANGE_OFFSETS = {
    "week": pd.DateOffset(days=7),
    "month": pd.DateOffset(months=1),
    "quarter": pd.DateOffset(months=3),
    "year": pd.DateOffset(years=1),
}


def as_utc(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC so every comparison is aware."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def validate_time_range(time_range: str) -> str:
    if time_range not in TIME_RANGES:
        raise InvalidTimeRangeError(
            f"time_range must be one of {', '.join(TIME_RANGES)}; got {time_range!r}"
        )
    return time_range


def resolve_time_range(time_range: str, now: datetime) -> tuple[datetime, datetime]:
    """Return the ``(start, end)`` window ending at ``now``.

    Month-based ranges step back by calendar months, clamping the day when
    the earlier month is shorter.
    """
    validate_time_range(time_range)
    end = as_utc(now)
    start = (pd.Timestamp(end) - _RANGE_OFFSETS[time_range]).to_pydatetime()
    return start, end


def window_days(start: datetime, end: datetime) -> int:
    return max((end - start).days, 1)


def created_between(
    bookings: Iterable[EnrichedBooking],
    start: datetime,
    end: datetime,
    *,
    include_end: bool = True,
) -> list[EnrichedBooking]:
    """Bookings whose creation timestamp falls inside the window."""
    selected: list[EnrichedBooking] = []
    for item in bookings:
        created = item.booking.created_at
        if created is None or created < start:
            continue
        if created > end or (not include_end and created == end):
            continue
        selected.append(item)
    return selected


def classify_trend(
    recent_count: int,
    previous_count: int,
    up_ratio: float = 1.1,
    down_ratio: float = 0.9,
) -> str:
    """Compare two equal-length windows; an empty pair is stable."""
    if recent_count > previous_count * up_ratio:
        return TREND_UP
    if recent_count < previous_count * down_ratio:
        return TREND_DOWN
    return TREND_STABLE


def compute_booking_trend(
    bookings: Sequence[EnrichedBooking],
    now: datetime,
    window: int = 7,
    up_ratio: float = 1.1,
    down_ratio: float = 0.9,
) -> str:
    current = as_utc(now)
    recent_start = current - timedelta(days=window)
    previous_start = recent_start - timedelta(days=window)

    recent = len(created_between(bookings, recent_start, current))
    previous = len(created_between(bookings, previous_start, recent_start, include_end=False))
    trend = classify_trend(recent, previous, up_ratio=up_ratio, down_ratio=down_ratio)
    logger.debug("Booking trend %s (recent=%s, previous=%s)", trend, recent, previous)
    return trend


def period_label(time_range: str, index: int) -> str:
    template = _PERIOD_LABELS.get(time_range, "Period {}")
    return template.format(index)


def bucket_booking_trends(
    bookings: Sequence[EnrichedBooking],
    start: datetime,
    end: datetime,
    time_range: str,
    bucket_count: int = 4,
) -> list[BookingTrend]:
    """Split ``[start, end)`` into equal buckets and count creations per bucket."""
    if bucket_count <= 0:
        return []
    start = as_utc(start)
    end = as_utc(end)
    span = end - start
    edges = [start + span * index / bucket_count for index in range(bucket_count + 1)]
    counts = [0] * bucket_count

    for item in bookings:
        created = item.booking.created_at
        if created is None or created < start or created >= end:
            continue
        for index in range(bucket_count):
            if edges[index] <= created < edges[index + 1]:
                counts[index] += 1
                break

    return [
        BookingTrend(period=period_label(time_range, index + 1), bookings=count)
        for index, count in enumerate(counts)
    ]


def daily_trends(
    bookings: Sequence[EnrichedBooking],
    days: int,
    now: datetime,
) -> list[DailyTrend]:
    """Per creation date counts of all, approved and cancelled bookings."""
    current = as_utc(now)
    window = created_between(bookings, current - timedelta(days=days), current)
    if not window:
        return []

    frame = pd.DataFrame(
        [
            {
                "date": item.booking.created_at.date(),
                "status": item.booking.status,
            }
            for item in window
        ]
    )
    frame["approved"] = (frame["status"] == "approved").astype(int)
    frame["cancelled"] = (frame["status"] == "cancelled").astype(int)
    grouped = (
        frame.groupby("date", sort=True)
        .agg(
            bookings=("status", "size"),
            approved=("approved", "sum"),
            cancelled=("cancelled", "sum"),
        )
        .reset_index()
    )
    return [
        DailyTrend(
            date=row.date,
            bookings=int(row.bookings),
            approved=int(row.approved),
            cancelled=int(row.cancelled),
        )
        for row in grouped.itertuples(index=False)
    ]
