"""HTTP controller layer for dashboard statistics, reports and oversight."""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response
from pydantic import BaseModel, Field

from hall_analytics.controllers.dependencies import get_analytics_service
from hall_analytics.domain.errors import InvalidTimeRangeError, ReportGenerationError
from hall_analytics.domain.models import EnrichedBooking
from hall_analytics.services.analytics_service import AnalyticsService
from hall_analytics.utils.config import get_settings
from hall_analytics.utils.logger import get_logger


logger = get_logger(__name__)
settings = get_settings()

router = APIRouter(tags=["analytics"])

TimeRangeParam = Literal["week", "month", "quarter", "year"]
ExportFormatParam = Literal["html", "csv"]
DateRangeParam = Literal["today", "this_week", "this_month", "all"]
StatusParam = Literal["pending", "approved", "rejected", "cancelled", "completed"]
PriorityParam = Literal["low", "medium", "high"]
CalendarDate = date


class HealthResponse(BaseModel):
    status: str
    app_name: str
    version: str


class TopUserResponse(BaseModel):
    name: str
    count: int = Field(ge=0)


class DashboardStatsResponse(BaseModel):
    total_bookings: int = Field(ge=0)
    active_bookings: int = Field(ge=0)
    pending_bookings: int = Field(ge=0)
    approved_bookings: int = Field(ge=0)
    completed_bookings: int = Field(ge=0)
    cancelled_bookings: int = Field(ge=0)
    rejected_bookings: int = Field(ge=0)
    unknown_status_bookings: int = Field(ge=0)
    todays_bookings: int = Field(ge=0)
    tomorrows_bookings: int = Field(ge=0)
    weekly_bookings: int = Field(ge=0)
    monthly_bookings: int = Field(ge=0)
    undated_bookings: int = Field(ge=0)
    total_halls: int = Field(ge=0)
    active_halls: int = Field(ge=0)
    maintenance_halls: int = Field(ge=0)
    hall_utilization: float = Field(ge=0.0, le=100.0)
    most_booked_hall: str
    least_booked_hall: str
    average_booking_duration: float = Field(ge=0.0)
    peak_booking_hour: str
    peak_booking_day: str
    booking_trend: Literal["up", "down", "stable"]
    total_users: int = Field(ge=0)
    active_users: int = Field(ge=0)
    top_booking_users: list[TopUserResponse]
    booking_success_rate: float = Field(ge=0.0, le=100.0)
    average_approval_time_hours: float = Field(ge=0.0)
    generated_at: datetime


class HallUsageResponse(BaseModel):
    hall_id: str
    hall_name: str
    bookings_count: int = Field(ge=0)
    total_hours: float = Field(ge=0.0)
    utilization_percentage: float = Field(ge=0.0, le=100.0)


class BookingTrendResponse(BaseModel):
    period: str
    bookings: int = Field(ge=0)


class UserActivityResponse(BaseModel):
    user_id: str
    user_name: str
    department: str
    total_bookings: int = Field(ge=0)
    total_hours: float = Field(ge=0.0)


class BookingView(BaseModel):
    id: str
    hall_id: Optional[str] = None
    hall_name: str
    hall_location: str
    user_id: Optional[str] = None
    user_name: str
    user_email: str
    user_department: str
    booking_date: Optional[str] = None
    calendar_date: Optional[date] = None
    start_time: str
    end_time: str
    duration_minutes: int = Field(gt=0)
    status: str
    priority: str
    purpose: str
    description: str
    attendees_count: int = Field(ge=0)
    equipment_needed: list[str]
    admin_notes: str
    created_at: Optional[datetime] = None


class ReportMetricsResponse(BaseModel):
    time_range: TimeRangeParam
    period_start: datetime
    period_end: datetime
    generated_at: datetime
    total_bookings: int = Field(ge=0)
    total_halls: int = Field(ge=0)
    utilization_rate: float = Field(ge=0.0, le=100.0)
    status_counts: dict[str, int]
    popular_halls: list[HallUsageResponse]
    booking_trends: list[BookingTrendResponse]
    user_activity: list[UserActivityResponse]
    detailed_bookings: list[BookingView]


class DailyTrendResponse(BaseModel):
    date: CalendarDate
    bookings: int = Field(ge=0)
    approved: int = Field(ge=0)
    cancelled: int = Field(ge=0)


class HallPerformanceResponse(BaseModel):
    hall_id: str
    hall_name: str
    total_bookings: int = Field(ge=0)
    utilization_rate: float = Field(ge=0.0, le=100.0)
    average_duration_minutes: float = Field(ge=0.0)


class ConflictResponse(BaseModel):
    hall_id: str
    calendar_date: date
    first_booking_id: str
    second_booking_id: str


def to_booking_view(item: EnrichedBooking) -> BookingView:
    booking = item.booking
    return BookingView(
        id=booking.booking_id,
        hall_id=booking.hall_id,
        hall_name=item.hall_name,
        hall_location=item.hall_location,
        user_id=booking.user_id,
        user_name=item.user_name,
        user_email=item.user_email,
        user_department=item.user_department,
        booking_date=booking.booking_date,
        calendar_date=booking.calendar_date,
        start_time=booking.start_time,
        end_time=booking.end_time,
        duration_minutes=booking.duration_minutes,
        status=booking.status,
        priority=booking.priority,
        purpose=booking.purpose,
        description=booking.description,
        attendees_count=booking.attendees_count,
        equipment_needed=list(booking.equipment_needed),
        admin_notes=booking.admin_notes,
        created_at=booking.created_at,
    )


def _unavailable(exc: ReportGenerationError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=str(exc),
    )


@router.get("/health", response_model=HealthResponse, status_code=status.HTTP_200_OK)
async def health() -> HealthResponse:
    return HealthResponse(status="ok", app_name=settings.app_name, version=settings.app_version)


@router.get(
    "/dashboard/stats",
    response_model=DashboardStatsResponse,
    status_code=status.HTTP_200_OK,
)
async def dashboard_stats(
    analytics_service: AnalyticsService = Depends(get_analytics_service),
) -> DashboardStatsResponse:
    try:
        stats = await analytics_service.get_dashboard_stats()
        return DashboardStatsResponse(**stats.to_dict())
    except ReportGenerationError as exc:
        raise _unavailable(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected dashboard statistics failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to compute dashboard statistics",
        ) from exc


@router.get(
    "/reports/metrics",
    response_model=ReportMetricsResponse,
    status_code=status.HTTP_200_OK,
)
async def report_metrics(
    time_range: TimeRangeParam = Query(default="month"),
    include_details: bool = Query(default=True),
    analytics_service: AnalyticsService = Depends(get_analytics_service),
) -> ReportMetricsResponse:
    try:
        metrics = await analytics_service.get_report_metrics(time_range)
        payload = metrics.to_dict()
        payload["detailed_bookings"] = (
            [to_booking_view(item) for item in metrics.detailed_bookings]
            if include_details
            else []
        )
        return ReportMetricsResponse(**payload)
    except InvalidTimeRangeError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except ReportGenerationError as exc:
        raise _unavailable(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected report metrics failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to compute report metrics",
        ) from exc


@router.get("/reports/export", status_code=status.HTTP_200_OK)
async def export_report(
    time_range: TimeRangeParam = Query(default="month"),
    export_format: ExportFormatParam = Query(default="html", alias="format"),
    analytics_service: AnalyticsService = Depends(get_analytics_service),
) -> Response:
    try:
        report = await analytics_service.export_report(time_range, export_format)
        return Response(
            content=report.content,
            media_type=report.media_type,
            headers={"Content-Disposition": f'attachment; filename="{report.filename}"'},
        )
    except InvalidTimeRangeError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except ReportGenerationError as exc:
        raise _unavailable(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected report export failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to export report",
        ) from exc


@router.get("/bookings", response_model=list[BookingView], status_code=status.HTTP_200_OK)
async def list_bookings(
    booking_status: Optional[StatusParam] = Query(default=None, alias="status"),
    hall_id: Optional[str] = Query(default=None, min_length=1),
    priority: Optional[PriorityParam] = Query(default=None),
    date_range: DateRangeParam = Query(default="all"),
    search: Optional[str] = Query(default=None, max_length=200),
    analytics_service: AnalyticsService = Depends(get_analytics_service),
) -> list[BookingView]:
    try:
        bookings = await analytics_service.get_bookings(
            status=booking_status,
            hall_id=hall_id,
            priority=priority,
            date_range=date_range,
            search=search,
        )
        return [to_booking_view(item) for item in bookings]
    except ReportGenerationError as exc:
        raise _unavailable(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected booking listing failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to list bookings",
        ) from exc


@router.get(
    "/analytics/daily_trends",
    response_model=list[DailyTrendResponse],
    status_code=status.HTTP_200_OK,
)
async def daily_trend_series(
    days: int = Query(default=30, ge=1, le=366),
    analytics_service: AnalyticsService = Depends(get_analytics_service),
) -> list[DailyTrendResponse]:
    try:
        trends = await analytics_service.get_daily_trends(days)
        return [
            DailyTrendResponse(
                date=item.date,
                bookings=item.bookings,
                approved=item.approved,
                cancelled=item.cancelled,
            )
            for item in trends
        ]
    except ReportGenerationError as exc:
        raise _unavailable(exc) from exc


@router.get(
    "/analytics/hall_performance",
    response_model=list[HallPerformanceResponse],
    status_code=status.HTTP_200_OK,
)
async def hall_performance(
    analytics_service: AnalyticsService = Depends(get_analytics_service),
) -> list[HallPerformanceResponse]:
    try:
        rows = await analytics_service.get_hall_performance()
        return [
            HallPerformanceResponse(
                hall_id=row.hall_id,
                hall_name=row.hall_name,
                total_bookings=row.total_bookings,
                utilization_rate=row.utilization_rate,
                average_duration_minutes=row.average_duration_minutes,
            )
            for row in rows
        ]
    except ReportGenerationError as exc:
        raise _unavailable(exc) from exc


@router.get(
    "/analytics/conflicts",
    response_model=list[ConflictResponse],
    status_code=status.HTTP_200_OK,
)
async def booking_conflicts(
    analytics_service: AnalyticsService = Depends(get_analytics_service),
) -> list[ConflictResponse]:
    try:
        conflicts = await analytics_service.get_conflicts()
        return [
            ConflictResponse(
                hall_id=item.hall_id,
                calendar_date=item.calendar_date,
                first_booking_id=item.first_booking_id,
                second_booking_id=item.second_booking_id,
            )
            for item in conflicts
        ]
    except ReportGenerationError as exc:
        raise _unavailable(exc) from exc
