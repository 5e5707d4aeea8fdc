"""Boundary orchestration: concurrent record fetches feeding the pure core.

Reads against the record store are independent, so they are issued
together and joined before resolution starts. A failed or timed-out read
fails the whole call with one ``ReportGenerationError``; no partial
statistics or documents are ever returned.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from hall_analytics.domain.constraints import AnalyticsConfig
from hall_analytics.domain.errors import ReportGenerationError
from hall_analytics.domain.models import (
    BookingConflict,
    DailyTrend,
    DashboardStats,
    EnrichedBooking,
    Hall,
    HallPerformance,
    RawBooking,
    ReportMetrics,
    UserProfile,
)
from hall_analytics.repository.record_store import BookingFilter, RecordStore, SQLiteRecordStore
from hall_analytics.services.normalizer import normalize_bookings
from hall_analytics.services.oversight_service import (
    detect_conflicts,
    preset_start_date,
    search_bookings,
)
from hall_analytics.services.report_exporter import export_csv, export_html
from hall_analytics.services.resolver import collect_reference_ids, resolve_bookings
from hall_analytics.services.statistics_service import (
    aggregate_dashboard_stats,
    aggregate_report_metrics,
    enrich,
    hall_performance,
)
from hall_analytics.services.trend_service import (
    as_utc,
    daily_trends,
    resolve_time_range,
    validate_time_range,
)
from hall_analytics.utils.config import Settings, get_settings
from hall_analytics.utils.logger import get_logger


logger = get_logger(__name__)

EXPORT_FORMATS: dict[str, str] = {
    "html": "text/html; charset=utf-8",
    "csv": "text/csv; charset=utf-8",
}
_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class RecordSnapshot:
    bookings: list[RawBooking]
    halls: list[Hall]
    users: list[UserProfile]


@dataclass(frozen=True)
class ExportedReport:
    content: str
    media_type: str
    filename: str


class AnalyticsService:
    """Fetches record sets concurrently and runs the aggregation pipeline."""

    def __init__(
        self,
        store: Optional[RecordStore] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._store = store or SQLiteRecordStore(self._settings)
        self._config = AnalyticsConfig.from_settings(self._settings)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def config(self) -> AnalyticsConfig:
        return self._config

    def _now(self, now: Optional[datetime]) -> datetime:
        return as_utc(now or self._clock())

    async def _read(self, label: str, reader: Callable[..., Any], *args: Any) -> Any:
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(reader, *args),
                timeout=self._settings.fetch_timeout_seconds,
            )
        except Exception as exc:
            logger.exception("Record store read failed for %s", label)
            raise ReportGenerationError(
                f"Unable to load {label} from the record store; report generation aborted"
            ) from exc

    async def fetch_snapshot(self, booking_filter: Optional[BookingFilter] = None) -> RecordSnapshot:
        """Fan out the booking, hall and user reads and join their results."""
        bookings, halls, users = await asyncio.gather(
            self._read("bookings", self._store.fetch_bookings, booking_filter),
            self._read("halls", self._store.fetch_halls, None),
            self._read("users", self._store.fetch_users, None),
        )
        logger.info(
            "Fetched %s bookings, %s halls, %s users",
            len(bookings),
            len(halls),
            len(users),
        )
        return RecordSnapshot(bookings=bookings, halls=halls, users=users)

    async def get_dashboard_stats(self, now: Optional[datetime] = None) -> DashboardStats:
        current = self._now(now)
        snapshot = await self.fetch_snapshot()
        enriched = enrich(snapshot.bookings, snapshot.halls, snapshot.users, self._config)
        return aggregate_dashboard_stats(
            enriched, snapshot.halls, snapshot.users, current, self._config
        )

    async def get_report_metrics(
        self,
        time_range: str,
        now: Optional[datetime] = None,
    ) -> ReportMetrics:
        validate_time_range(time_range)
        current = self._now(now)
        start, end = resolve_time_range(time_range, current)
        snapshot = await self.fetch_snapshot(BookingFilter(created_from=start, created_to=end))
        enriched = enrich(snapshot.bookings, snapshot.halls, snapshot.users, self._config)
        return aggregate_report_metrics(
            enriched, snapshot.halls, time_range, current, self._config
        )

    async def export_report(
        self,
        time_range: str,
        export_format: str,
        now: Optional[datetime] = None,
    ) -> ExportedReport:
        if export_format not in EXPORT_FORMATS:
            raise ValueError(f"format must be one of {', '.join(EXPORT_FORMATS)}")
        metrics = await self.get_report_metrics(time_range, now=now)
        if export_format == "html":
            content = export_html(metrics, time_range)
        else:
            content = export_csv(metrics, time_range)
        stamp = metrics.generated_at.strftime("%Y%m%d")
        return ExportedReport(
            content=content,
            media_type=EXPORT_FORMATS[export_format],
            filename=f"hall_booking_report_{time_range}_{stamp}.{export_format}",
        )

    async def get_bookings(
        self,
        *,
        status: Optional[str] = None,
        hall_id: Optional[str] = None,
        priority: Optional[str] = None,
        date_range: str = "all",
        search: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> list[EnrichedBooking]:
        """Oversight listing: filtered bookings with batch-resolved references."""
        current = self._now(now)
        booking_filter = BookingFilter(
            status=status,
            hall_id=hall_id,
            priority=priority,
            date_from=preset_start_date(date_range, current.date()),
        )
        raw_bookings: list[RawBooking] = await self._read(
            "bookings", self._store.fetch_bookings, booking_filter
        )
        if not raw_bookings:
            return []

        normalized = normalize_bookings(raw_bookings, self._config.default_duration_minutes)
        references = collect_reference_ids(normalized)
        halls, users = await asyncio.gather(
            self._read("halls", self._store.fetch_halls, list(references.hall_ids)),
            self._read("users", self._store.fetch_users, list(references.user_ids)),
        )
        enriched = resolve_bookings(normalized, halls, users).bookings
        if search:
            enriched = search_bookings(enriched, search)
        return sorted(
            enriched,
            key=lambda item: item.booking.created_at or _OLDEST,
            reverse=True,
        )

    async def get_daily_trends(self, days: int = 30, now: Optional[datetime] = None) -> list[DailyTrend]:
        current = self._now(now)
        snapshot = await self.fetch_snapshot()
        enriched = enrich(snapshot.bookings, snapshot.halls, snapshot.users, self._config)
        return daily_trends(enriched, days, current)

    async def get_hall_performance(self) -> list[HallPerformance]:
        snapshot = await self.fetch_snapshot()
        enriched = enrich(snapshot.bookings, snapshot.halls, snapshot.users, self._config)
        return hall_performance(enriched, snapshot.halls, self._config)

    async def get_conflicts(self) -> list[BookingConflict]:
        snapshot = await self.fetch_snapshot()
        enriched = enrich(snapshot.bookings, snapshot.halls, snapshot.users, self._config)
        return detect_conflicts(enriched)

