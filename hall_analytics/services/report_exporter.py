"""Serialize report metrics into the exported HTML and CSV documents.

Both exporters are pure string builders over already computed metrics; any
writing to disk or sharing is left to the caller. Free text supplied by
users (purpose, description, notes) is escaped in HTML through Jinja2
autoescaping and quoted in CSV through the ``csv`` writer.
"""

from __future__ import annotations

import csv
import io
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional

from jinja2 import Environment, FileSystemLoader

from hall_analytics.domain.models import (
    BOOKING_STATUSES,
    UNKNOWN_STATUS,
    EnrichedBooking,
    ReportMetrics,
)
from hall_analytics.utils.logger import get_logger


logger = get_logger(__name__)

TIME_RANGE_LABELS = {
    "week": "This Week",
    "month": "This Month",
    "quarter": "This Quarter",
    "year": "This Year",
}
CSV_SECTIONS = (
    "SUMMARY METRICS",
    "POPULAR HALLS",
    "TOP USERS",
    "BOOKING TRENDS",
    "DETAILED BOOKING RECORDS",
)
DETAIL_COLUMNS = (
    "Booking ID",
    "Booking Date",
    "Start Time",
    "End Time",
    "Duration (min)",
    "Status",
    "Priority",
    "Hall",
    "Hall Location",
    "User",
    "Email",
    "Phone",
    "Department",
    "Purpose",
    "Description",
    "Attendees",
    "Equipment",
    "Special Requirements",
    "Approved At",
    "Rejected Reason",
    "Admin Notes",
    "Created At",
)

_TEMPLATE_DIR = Path(__file__).resolve().parents[1] / "templates"
_jinja_env = Environment(
    loader=FileSystemLoader(str(_TEMPLATE_DIR)),
    autoescape=True,
)


def time_range_label(time_range: str) -> str:
    return TIME_RANGE_LABELS.get(time_range, time_range.title())


def _format_timestamp(value: Optional[datetime]) -> str:
    if value is None:
        return ""
    return value.strftime("%Y-%m-%d %H:%M")


def _format_booking_date(item: EnrichedBooking) -> str:
    calendar_date: Optional[date] = item.booking.calendar_date
    if calendar_date is None:
        return item.booking.booking_date or ""
    return calendar_date.isoformat()


def summary_rows(metrics: ReportMetrics) -> list[tuple[str, str]]:
    rows = [
        ("Total Bookings", str(metrics.total_bookings)),
        ("Active Halls", str(metrics.total_halls)),
        ("Utilization Rate", f"{metrics.utilization_rate:.1f}%"),
    ]
    for status in BOOKING_STATUSES:
        rows.append((f"{status.title()} Bookings", str(metrics.status_counts.get(status, 0))))
    unknown = metrics.status_counts.get(UNKNOWN_STATUS, 0)
    if unknown:
        rows.append(("Unrecognized Status", str(unknown)))
    return rows


def detail_row(item: EnrichedBooking) -> list[str]:
    booking = item.booking
    return [
        booking.booking_id,
        _format_booking_date(item),
        booking.start_time,
        booking.end_time,
        str(booking.duration_minutes),
        booking.raw_status or booking.status,
        booking.priority,
        item.hall_name,
        item.hall_location,
        item.user_name,
        item.user_email,
        item.user_phone,
        item.user_department,
        booking.purpose,
        booking.description,
        str(booking.attendees_count),
        ", ".join(booking.equipment_needed),
        booking.special_requirements,
        _format_timestamp(booking.approved_at),
        booking.rejected_reason,
        booking.admin_notes,
        _format_timestamp(booking.created_at),
    ]


def export_html(metrics: ReportMetrics, time_range: Optional[str] = None) -> str:
    """Render a self-contained HTML report."""
    resolved_range = time_range or metrics.time_range
    template = _jinja_env.get_template("report.html")
    context: dict[str, Any] = {
        "title": f"Hall Booking Report - {time_range_label(resolved_range)}",
        "range_label": time_range_label(resolved_range),
        "period_start": _format_timestamp(metrics.period_start),
        "period_end": _format_timestamp(metrics.period_end),
        "generated_at": _format_timestamp(metrics.generated_at),
        "summary": summary_rows(metrics),
        "popular_halls": metrics.popular_halls,
        "top_users": metrics.user_activity,
        "trends": metrics.booking_trends,
        "columns": DETAIL_COLUMNS,
        "rows": [detail_row(item) for item in metrics.detailed_bookings],
    }
    document = template.render(**context)
    logger.info(
        "Rendered HTML report for %s with %s booking rows",
        resolved_range,
        len(context["rows"]),
    )
    return document


def export_csv(metrics: ReportMetrics, time_range: Optional[str] = None) -> str:
    """Write the sectioned CSV report with RFC 4180 quoting."""
    resolved_range = time_range or metrics.time_range
    output = io.StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_MINIMAL)

    writer.writerow(["Hall Booking Report"])
    writer.writerow(["Time Range", time_range_label(resolved_range)])
    writer.writerow(
        ["Period", f"{_format_timestamp(metrics.period_start)} to {_format_timestamp(metrics.period_end)}"]
    )
    writer.writerow(["Generated", _format_timestamp(metrics.generated_at)])
    writer.writerow([])

    writer.writerow(["SUMMARY METRICS"])
    writer.writerow(["Metric", "Value"])
    writer.writerows(summary_rows(metrics))
    writer.writerow([])

    writer.writerow(["POPULAR HALLS"])
    writer.writerow(["Hall", "Bookings", "Total Hours", "Utilization %"])
    for hall in metrics.popular_halls:
        writer.writerow(
            [
                hall.hall_name,
                hall.bookings_count,
                f"{hall.total_hours:.2f}",
                f"{hall.utilization_percentage:.1f}",
            ]
        )
    writer.writerow([])

    writer.writerow(["TOP USERS"])
    writer.writerow(["User", "Department", "Bookings", "Total Hours"])
    for user in metrics.user_activity:
        writer.writerow(
            [user.user_name, user.department, user.total_bookings, f"{user.total_hours:.2f}"]
        )
    writer.writerow([])

    writer.writerow(["BOOKING TRENDS"])
    writer.writerow(["Period", "Bookings"])
    for trend in metrics.booking_trends:
        writer.writerow([trend.period, trend.bookings])
    writer.writerow([])

    writer.writerow(["DETAILED BOOKING RECORDS"])
    writer.writerow(DETAIL_COLUMNS)
    for item in metrics.detailed_bookings:
        writer.writerow(detail_row(item))

    logger.info(
        "Rendered CSV report for %s with %s booking rows",
        resolved_range,
        len(metrics.detailed_bookings),
    )
    return output.getvalue()
