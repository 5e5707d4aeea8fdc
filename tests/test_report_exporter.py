from __future__ import annotations

import csv
import io

from hall_analytics.domain.models import RawBooking
from hall_analytics.services.report_exporter import (
    CSV_SECTIONS,
    DETAIL_COLUMNS,
    export_csv,
    export_html,
)
from hall_analytics.services.statistics_service import compute_report_metrics


TRICKY_PURPOSE = 'Budget review, "final" round'
SCRIPT_TAG = "<script>alert(1)</script>"


def _metrics_with_free_text(raw_bookings, halls, users, now):
    tricky = RawBooking(
        booking_id="b-9",
        hall_id="h-1",
        user_id="u-1",
        booking_date="16072025",
        start_time="16:00",
        end_time="17:00",
        status="approved",
        purpose=TRICKY_PURPOSE,
        description=SCRIPT_TAG,
        created_at=(now.replace(hour=11)).isoformat(),
    )
    return compute_report_metrics(raw_bookings + [tricky], halls, users, "month", now)


def _detail_rows(document: str) -> list[list[str]]:
    rows = list(csv.reader(io.StringIO(document)))
    header_index = rows.index(list(DETAIL_COLUMNS))
    return [row for row in rows[header_index + 1 :] if row]


def test_csv_quotes_commas_and_doubles_quotes(raw_bookings, halls, users, now) -> None:
    document = export_csv(_metrics_with_free_text(raw_bookings, halls, users, now))

    assert '"Budget review, ""final"" round"' in document
    details = _detail_rows(document)
    purpose_index = DETAIL_COLUMNS.index("Purpose")
    tricky = next(row for row in details if row[0] == "b-9")
    assert tricky[purpose_index] == TRICKY_PURPOSE
    assert len(tricky) == len(DETAIL_COLUMNS)


def test_csv_contains_every_section_in_order(raw_bookings, halls, users, now) -> None:
    document = export_csv(_metrics_with_free_text(raw_bookings, halls, users, now))
    rows = list(csv.reader(io.StringIO(document)))
    headers = [row[0] for row in rows if len(row) == 1 and row[0] in CSV_SECTIONS]

    assert headers == list(CSV_SECTIONS)
    assert ["Time Range", "This Month"] in rows
    assert len(_detail_rows(document)) == 6


def test_csv_detail_rows_use_canonical_dates(raw_bookings, halls, users, now) -> None:
    document = export_csv(compute_report_metrics(raw_bookings, halls, users, "month", now))
    date_index = DETAIL_COLUMNS.index("Booking Date")
    dates = {row[0]: row[date_index] for row in _detail_rows(document)}

    assert dates["b-1"] == "2025-07-16"
    assert dates["b-2"] == "2025-07-17"


def test_html_escapes_user_supplied_markup(raw_bookings, halls, users, now) -> None:
    document = export_html(_metrics_with_free_text(raw_bookings, halls, users, now))

    assert SCRIPT_TAG not in document
    assert "&lt;script&gt;alert(1)&lt;/script&gt;" in document
    assert "Budget review, &#34;final&#34; round" in document


def test_html_renders_sections_and_names(raw_bookings, halls, users, now) -> None:
    document = export_html(compute_report_metrics(raw_bookings, halls, users, "week", now))

    assert document.startswith("<!DOCTYPE html>")
    assert "Hall Booking Report - This Week" in document
    for heading in ("Popular Halls", "Top Users", "Booking Trends", "Detailed Booking Records"):
        assert heading in document
    assert "Main Auditorium" in document
    assert "Day 4" in document


def test_empty_report_renders_placeholders(halls, users, now) -> None:
    metrics = compute_report_metrics([], halls, users, "quarter", now)

    html_document = export_html(metrics)
    csv_document = export_csv(metrics)

    assert "No bookings in this period" in html_document
    assert _detail_rows(csv_document) == []
    assert metrics.total_bookings == 0
