"""Dashboard statistics and report metrics over enriched bookings.

Every function here is pure: the same bookings, halls, users and ``now``
always produce the same result, and an empty input yields documented
defaults instead of errors.

Two definitions of an *active* booking coexist. Legacy dashboards count
``approved`` only; the broader dashboard also counts the ``confirmed`` status
written by an older booking flow. Which one applies is chosen through
``AnalyticsConfig.active_policy``.
"""

from __future__ import annotations

from collections import Counter
from datetime import date, datetime, timedelta
from typing import Iterable, Optional, Sequence

from hall_analytics.domain.constraints import AnalyticsConfig
from hall_analytics.domain.models import (
    BOOKING_STATUSES,
    UNKNOWN_STATUS,
    DashboardStats,
    EnrichedBooking,
    Hall,
    HallPerformance,
    HallUsage,
    RawBooking,
    ReportMetrics,
    TopUser,
    UserActivity,
    UserProfile,
)
from hall_analytics.services.normalizer import normalize_bookings
from hall_analytics.services.resolver import resolve_bookings
from hall_analytics.services.trend_service import (
    as_utc,
    bucket_booking_trends,
    compute_booking_trend,
    created_between,
    resolve_time_range,
    window_days,
)
from hall_analytics.utils.logger import get_logger


logger = get_logger(__name__)

DEFAULT_PEAK_HOUR = "09:00"
DEFAULT_PEAK_DAY = "Monday"
NO_BOOKINGS = "No bookings"
# Sunday-first, matching the week boundaries used for this_week counts
DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


def clamp_percentage(value: float) -> float:
    return max(0.0, min(100.0, value))


def day_name(value: date) -> str:
    return DAY_NAMES[(value.weekday() + 1) % 7]


def week_start(value: date) -> date:
    """Sunday on or before ``value``."""
    return value - timedelta(days=(value.weekday() + 1) % 7)


def status_breakdown(bookings: Iterable[EnrichedBooking]) -> dict[str, int]:
    counts = Counter(item.booking.status for item in bookings)
    breakdown = {status: counts.get(status, 0) for status in BOOKING_STATUSES}
    breakdown[UNKNOWN_STATUS] = counts.get(UNKNOWN_STATUS, 0)
    return breakdown


def count_active(bookings: Iterable[EnrichedBooking], active_statuses: frozenset[str]) -> int:
    return sum(1 for item in bookings if item.booking.raw_status in active_statuses)


def date_scoped_counts(bookings: Iterable[EnrichedBooking], today: date) -> dict[str, int]:
    tomorrow = today + timedelta(days=1)
    first_day_of_week = week_start(today)
    last_day_of_week = first_day_of_week + timedelta(days=6)

    counts = {"today": 0, "tomorrow": 0, "this_week": 0, "this_month": 0, "undated": 0}
    for item in bookings:
        booking_date = item.booking.calendar_date
        if booking_date is None:
            counts["undated"] += 1
            continue
        if booking_date == today:
            counts["today"] += 1
        if booking_date == tomorrow:
            counts["tomorrow"] += 1
        if first_day_of_week <= booking_date <= last_day_of_week:
            counts["this_week"] += 1
        if booking_date.year == today.year and booking_date.month == today.month:
            counts["this_month"] += 1
    return counts


def average_duration_minutes(bookings: Sequence[EnrichedBooking]) -> float:
    if not bookings:
        return 0.0
    return sum(item.booking.duration_minutes for item in bookings) / len(bookings)


def peak_hour(bookings: Iterable[EnrichedBooking]) -> str:
    counts = Counter(
        item.booking.start_hour for item in bookings if item.booking.start_hour is not None
    )
    if not counts:
        return DEFAULT_PEAK_HOUR
    hour = min(counts, key=lambda value: (-counts[value], value))
    return f"{hour:02d}:00"


def peak_day(bookings: Iterable[EnrichedBooking]) -> str:
    counts = Counter(
        day_name(item.booking.calendar_date)
        for item in bookings
        if item.booking.calendar_date is not None
    )
    if not counts:
        return DEFAULT_PEAK_DAY
    return min(counts, key=lambda name: (-counts[name], DAY_NAMES.index(name)))


def _resolved_hall_counts(bookings: Iterable[EnrichedBooking]) -> tuple[Counter, dict[str, str]]:
    counts: Counter = Counter()
    names: dict[str, str] = {}
    for item in bookings:
        hall_id = item.booking.hall_id
        if not item.hall_resolved or hall_id is None:
            continue
        counts[hall_id] += 1
        names.setdefault(hall_id, item.hall_name)
    return counts, names


def most_and_least_booked_halls(bookings: Iterable[EnrichedBooking]) -> tuple[str, str]:
    """Hall names with the highest and lowest booking counts.

    Ties keep the hall encountered first in booking order.
    """
    counts, names = _resolved_hall_counts(bookings)
    if not counts:
        return NO_BOOKINGS, NO_BOOKINGS

    most_id = least_id = None
    for hall_id in names:
        if most_id is None or counts[hall_id] > counts[most_id]:
            most_id = hall_id
        if least_id is None or counts[hall_id] < counts[least_id]:
            least_id = hall_id
    return names[most_id], names[least_id]


def top_users(bookings: Iterable[EnrichedBooking], limit: int = 5) -> list[TopUser]:
    counts: Counter = Counter()
    names: dict[str, str] = {}
    for item in bookings:
        user_id = item.booking.user_id
        if user_id is None:
            continue
        counts[user_id] += 1
        names.setdefault(user_id, item.user_name)

    ranked = sorted(counts, key=lambda user_id: (-counts[user_id], names[user_id], user_id))
    return [TopUser(name=names[user_id], count=counts[user_id]) for user_id in ranked[:limit]]


def approved_hours(bookings: Iterable[EnrichedBooking]) -> float:
    return sum(item.booking.duration_hours for item in bookings if item.booking.status == "approved")


def utilization_rate(
    booked_hours: float,
    hall_count: int,
    daily_hours: float,
    days: int,
) -> float:
    """Booked hours over available hours as a percentage clamped to [0, 100]."""
    available_hours = hall_count * daily_hours * days
    if available_hours <= 0:
        return 0.0
    return round(clamp_percentage(booked_hours / available_hours * 100.0), 2)


def booking_success_rate(bookings: Sequence[EnrichedBooking]) -> float:
    if not bookings:
        return 0.0
    successful = sum(
        1 for item in bookings if item.booking.status in {"approved", "completed"}
    )
    return round(clamp_percentage(successful / len(bookings) * 100.0), 2)


def average_approval_time_hours(bookings: Iterable[EnrichedBooking]) -> float:
    intervals: list[float] = []
    for item in bookings:
        created = item.booking.created_at
        approved = item.booking.approved_at
        if created is None or approved is None:
            continue
        hours = (approved - created).total_seconds() / 3600.0
        if hours >= 0:
            intervals.append(hours)
    if not intervals:
        return 0.0
    return round(sum(intervals) / len(intervals), 2)


def active_user_count(bookings: Sequence[EnrichedBooking], now: datetime, days: int) -> int:
    current = as_utc(now)
    recent = created_between(bookings, current - timedelta(days=days), current)
    return len({item.booking.user_id for item in recent if item.booking.user_id})


def aggregate_dashboard_stats(
    bookings: Sequence[EnrichedBooking],
    halls: Sequence[Hall],
    users: Sequence[UserProfile],
    now: datetime,
    config: Optional[AnalyticsConfig] = None,
) -> DashboardStats:
    config = config or AnalyticsConfig()
    statuses = status_breakdown(bookings)
    scoped = date_scoped_counts(bookings, now.date())
    most_booked, least_booked = most_and_least_booked_halls(bookings)

    stats = DashboardStats(
        total_bookings=len(bookings),
        active_bookings=count_active(bookings, config.active_statuses),
        pending_bookings=statuses["pending"],
        approved_bookings=statuses["approved"],
        completed_bookings=statuses["completed"],
        cancelled_bookings=statuses["cancelled"],
        rejected_bookings=statuses["rejected"],
        unknown_status_bookings=statuses[UNKNOWN_STATUS],
        todays_bookings=scoped["today"],
        tomorrows_bookings=scoped["tomorrow"],
        weekly_bookings=scoped["this_week"],
        monthly_bookings=scoped["this_month"],
        undated_bookings=scoped["undated"],
        total_halls=len(halls),
        active_halls=sum(1 for hall in halls if hall.is_active and not hall.is_maintenance),
        maintenance_halls=sum(1 for hall in halls if hall.is_maintenance),
        hall_utilization=utilization_rate(
            approved_hours(bookings),
            len(halls),
            config.assumed_daily_hours,
            config.dashboard_window_days,
        ),
        most_booked_hall=most_booked,
        least_booked_hall=least_booked,
        average_booking_duration=average_duration_minutes(bookings),
        peak_booking_hour=peak_hour(bookings),
        peak_booking_day=peak_day(bookings),
        booking_trend=compute_booking_trend(
            bookings,
            now,
            window=config.trend_window_days,
            up_ratio=config.trend_up_ratio,
            down_ratio=config.trend_down_ratio,
        ),
        total_users=len(users),
        active_users=active_user_count(bookings, now, config.active_user_window_days),
        top_booking_users=tuple(top_users(bookings, config.top_n)),
        booking_success_rate=booking_success_rate(bookings),
        average_approval_time_hours=average_approval_time_hours(bookings),
        generated_at=now,
    )
    logger.info(
        "Dashboard stats computed for %s bookings across %s halls",
        stats.total_bookings,
        stats.total_halls,
    )
    return stats


def popular_halls(
    bookings: Sequence[EnrichedBooking],
    daily_hours: float,
    days: int,
    limit: int = 5,
) -> list[HallUsage]:
    """Approved-booking usage per hall, busiest first."""
    counts: Counter = Counter()
    hours: dict[str, float] = {}
    names: dict[str, str] = {}
    for item in bookings:
        hall_id = item.booking.hall_id
        if item.booking.status != "approved" or hall_id is None or not item.hall_resolved:
            continue
        counts[hall_id] += 1
        hours[hall_id] = hours.get(hall_id, 0.0) + item.booking.duration_hours
        names.setdefault(hall_id, item.hall_name)

    ranked = sorted(counts, key=lambda hall_id: (-counts[hall_id], names[hall_id], hall_id))
    return [
        HallUsage(
            hall_id=hall_id,
            hall_name=names[hall_id],
            bookings_count=counts[hall_id],
            total_hours=round(hours[hall_id], 2),
            utilization_percentage=utilization_rate(hours[hall_id], 1, daily_hours, days),
        )
        for hall_id in ranked[:limit]
    ]


def user_activity(bookings: Sequence[EnrichedBooking], limit: int = 5) -> list[UserActivity]:
    counts: Counter = Counter()
    hours: dict[str, float] = {}
    first_seen: dict[str, EnrichedBooking] = {}
    for item in bookings:
        user_id = item.booking.user_id
        if user_id is None:
            continue
        counts[user_id] += 1
        hours[user_id] = hours.get(user_id, 0.0) + item.booking.duration_hours
        first_seen.setdefault(user_id, item)

    ranked = sorted(
        counts,
        key=lambda user_id: (-counts[user_id], first_seen[user_id].user_name, user_id),
    )
    return [
        UserActivity(
            user_id=user_id,
            user_name=first_seen[user_id].user_name,
            department=first_seen[user_id].user_department,
            total_bookings=counts[user_id],
            total_hours=round(hours[user_id], 2),
        )
        for user_id in ranked[:limit]
    ]


def _newest_first(bookings: Iterable[EnrichedBooking]) -> list[EnrichedBooking]:
    ordered = sorted(bookings, key=lambda item: item.booking.booking_id)
    return sorted(ordered, key=lambda item: item.booking.created_at, reverse=True)


def aggregate_report_metrics(
    bookings: Sequence[EnrichedBooking],
    halls: Sequence[Hall],
    time_range: str,
    now: datetime,
    config: Optional[AnalyticsConfig] = None,
) -> ReportMetrics:
    config = config or AnalyticsConfig()
    start, end = resolve_time_range(time_range, now)
    days = window_days(start, end)
    in_window = _newest_first(created_between(bookings, start, end))
    active_hall_count = sum(1 for hall in halls if hall.is_active)

    metrics = ReportMetrics(
        time_range=time_range,
        period_start=start,
        period_end=end,
        generated_at=end,
        total_bookings=len(in_window),
        total_halls=active_hall_count,
        utilization_rate=utilization_rate(
            approved_hours(in_window),
            active_hall_count,
            config.assumed_daily_hours,
            days,
        ),
        status_counts=status_breakdown(in_window),
        popular_halls=tuple(
            popular_halls(in_window, config.assumed_daily_hours, days, config.top_n)
        ),
        booking_trends=tuple(
            bucket_booking_trends(
                in_window, start, end, time_range, config.trend_bucket_count
            )
        ),
        user_activity=tuple(user_activity(in_window, config.top_n)),
        detailed_bookings=tuple(in_window),
    )
    logger.info(
        "Report metrics computed for %s: %s bookings in window",
        time_range,
        metrics.total_bookings,
    )
    return metrics


def hall_performance(
    bookings: Sequence[EnrichedBooking],
    halls: Sequence[Hall],
    config: Optional[AnalyticsConfig] = None,
) -> list[HallPerformance]:
    config = config or AnalyticsConfig()
    by_hall: dict[str, list[EnrichedBooking]] = {}
    for item in bookings:
        if item.booking.hall_id is not None:
            by_hall.setdefault(item.booking.hall_id, []).append(item)

    rows: list[HallPerformance] = []
    for hall in sorted(halls, key=lambda value: (value.name, value.hall_id)):
        hall_bookings = by_hall.get(hall.hall_id, [])
        rows.append(
            HallPerformance(
                hall_id=hall.hall_id,
                hall_name=hall.name,
                total_bookings=len(hall_bookings),
                utilization_rate=utilization_rate(
                    approved_hours(hall_bookings),
                    1,
                    config.assumed_daily_hours,
                    config.dashboard_window_days,
                ),
                average_duration_minutes=round(average_duration_minutes(hall_bookings), 2),
            )
        )
    return rows


def enrich(
    bookings: Sequence[RawBooking],
    halls: Sequence[Hall],
    users: Sequence[UserProfile],
    config: Optional[AnalyticsConfig] = None,
) -> list[EnrichedBooking]:
    """Normalize raw rows and resolve their hall and user references."""
    config = config or AnalyticsConfig()
    normalized = normalize_bookings(bookings, config.default_duration_minutes)
    return resolve_bookings(normalized, halls, users).bookings


def compute_dashboard_stats(
    bookings: Sequence[RawBooking],
    halls: Sequence[Hall],
    users: Sequence[UserProfile],
    now: datetime,
    config: Optional[AnalyticsConfig] = None,
) -> DashboardStats:
    enriched = enrich(bookings, halls, users, config)
    return aggregate_dashboard_stats(enriched, halls, users, now, config)


def compute_report_metrics(
    bookings: Sequence[RawBooking],
    halls: Sequence[Hall],
    users: Sequence[UserProfile],
    time_range: str,
    now: datetime,
    config: Optional[AnalyticsConfig] = None,
) -> ReportMetrics:
    enriched = enrich(bookings, halls, users, config)
    return aggregate_report_metrics(enriched, halls, time_range, now, config)
