from __future__ import annotations

import asyncio
import time
from dataclasses import replace

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from conftest import BOOKING_RECORDS, HALL_RECORDS, NOW, USER_RECORDS

from hall_analytics.controllers.analytics_controller import router as analytics_router
from hall_analytics.domain.errors import InvalidTimeRangeError, ReportGenerationError
from hall_analytics.repository.record_store import InMemoryRecordStore, SQLiteRecordStore
from hall_analytics.services.analytics_service import AnalyticsService
from hall_analytics.utils.config import get_settings


def _build_test_settings(tmp_path, filename: str, **overrides):
    get_settings.cache_clear()
    base = get_settings()
    return replace(
        base,
        database_path=tmp_path / filename,
        seed_demo_data=False,
        **overrides,
    )


def _build_test_app(tmp_path) -> tuple[FastAPI, SQLiteRecordStore]:
    settings = _build_test_settings(tmp_path, "analytics_flow.db")
    store = SQLiteRecordStore(settings)
    store.initialize_database()
    for hall in HALL_RECORDS:
        store.insert_hall(hall)
    for user in USER_RECORDS:
        store.insert_user(user)
    for booking in BOOKING_RECORDS:
        store.insert_booking(booking)

    app = FastAPI()
    app.include_router(analytics_router)
    app.state.record_store = store
    app.state.analytics_service = AnalyticsService(
        store=store,
        settings=settings,
        clock=lambda: NOW,
    )
    return app, store


class FailingStore:
    def fetch_bookings(self, booking_filter=None):
        raise RuntimeError("connection reset by peer")

    def fetch_halls(self, ids=None):
        return []

    def fetch_users(self, ids=None):
        return []


class SlowStore(InMemoryRecordStore):
    def fetch_halls(self, ids=None):
        time.sleep(0.3)
        return super().fetch_halls(ids)


def test_analytics_end_to_end_flow(tmp_path):
    app, _ = _build_test_app(tmp_path)

    with TestClient(app) as client:
        health = client.get("/health")
        assert health.status_code == 200
        assert health.json()["status"] == "ok"

        stats = client.get("/dashboard/stats")
        assert stats.status_code == 200
        stats_body = stats.json()
        assert stats_body["total_bookings"] == 5
        assert stats_body["approved_bookings"] == 2
        assert stats_body["most_booked_hall"] == "Main Auditorium"
        assert stats_body["todays_bookings"] == 1
        assert stats_body["booking_trend"] == "up"
        assert [user["name"] for user in stats_body["top_booking_users"]][0] == "Asha Raman"

        metrics = client.get("/reports/metrics", params={"time_range": "week"})
        assert metrics.status_code == 200
        metrics_body = metrics.json()
        assert metrics_body["total_bookings"] == 4
        assert len(metrics_body["booking_trends"]) == 4
        assert [row["id"] for row in metrics_body["detailed_bookings"]] == [
            "b-2",
            "b-1",
            "b-5",
            "b-3",
        ]
        assert metrics_body["detailed_bookings"][0]["calendar_date"] == "2025-07-17"

        summary_only = client.get(
            "/reports/metrics",
            params={"time_range": "month", "include_details": "false"},
        )
        assert summary_only.json()["detailed_bookings"] == []
        assert summary_only.json()["total_bookings"] == 5

        exported = client.get("/reports/export", params={"time_range": "month", "format": "csv"})
        assert exported.status_code == 200
        assert exported.headers["content-type"].startswith("text/csv")
        assert (
            'filename="hall_booking_report_month_20250716.csv"'
            in exported.headers["content-disposition"]
        )
        assert "DETAILED BOOKING RECORDS" in exported.text

        html_report = client.get("/reports/export", params={"time_range": "year"})
        assert html_report.status_code == 200
        assert html_report.headers["content-type"].startswith("text/html")


def test_oversight_listing_filters(tmp_path):
    app, _ = _build_test_app(tmp_path)

    with TestClient(app) as client:
        approved = client.get("/bookings", params={"status": "approved"})
        assert approved.status_code == 200
        assert [row["id"] for row in approved.json()] == ["b-2", "b-1"]
        assert approved.json()[0]["hall_name"] == "Main Auditorium"
        assert approved.json()[0]["user_name"] == "Daniel Okafor"

        in_seminar = client.get("/bookings", params={"hall_id": "h-2"})
        assert [row["id"] for row in in_seminar.json()] == ["b-5", "b-3"]

        searched = client.get("/bookings", params={"search": "THESIS"})
        assert [row["id"] for row in searched.json()] == ["b-4"]

        by_user_email = client.get("/bookings", params={"search": "mei@example"})
        assert [row["id"] for row in by_user_email.json()] == ["b-3"]

        upcoming = client.get("/bookings", params={"date_range": "today"})
        assert {row["id"] for row in upcoming.json()} == {"b-1", "b-2", "b-3", "b-5"}

        nothing = client.get("/bookings", params={"status": "rejected"})
        assert nothing.json() == []


def test_analytics_series_endpoints(tmp_path):
    app, _ = _build_test_app(tmp_path)

    with TestClient(app) as client:
        trends = client.get("/analytics/daily_trends", params={"days": 30})
        assert trends.status_code == 200
        assert len(trends.json()) == 5
        assert trends.json()[-1] == {
            "date": "2025-07-15",
            "bookings": 1,
            "approved": 1,
            "cancelled": 0,
        }

        performance = client.get("/analytics/hall_performance")
        assert performance.status_code == 200
        assert [row["hall_name"] for row in performance.json()] == [
            "Main Auditorium",
            "Seminar Hall",
        ]

        conflicts = client.get("/analytics/conflicts")
        assert conflicts.status_code == 200
        assert conflicts.json() == []


def test_invalid_query_values_are_rejected(tmp_path):
    app, _ = _build_test_app(tmp_path)

    with TestClient(app) as client:
        assert client.get("/reports/metrics", params={"time_range": "decade"}).status_code == 422
        assert client.get("/reports/export", params={"format": "pdf"}).status_code == 422
        assert client.get("/bookings", params={"date_range": "yesterday"}).status_code == 422
        assert client.get("/analytics/daily_trends", params={"days": 0}).status_code == 422


def test_store_failure_returns_service_unavailable(tmp_path):
    settings = _build_test_settings(tmp_path, "unused.db")
    app = FastAPI()
    app.include_router(analytics_router)
    app.state.analytics_service = AnalyticsService(store=FailingStore(), settings=settings)

    with TestClient(app) as client:
        response = client.get("/dashboard/stats")
        assert response.status_code == 503
        assert "report generation aborted" in response.json()["detail"]

        export = client.get("/reports/export", params={"time_range": "month", "format": "html"})
        assert export.status_code == 503


def test_missing_service_returns_service_unavailable():
    app = FastAPI()
    app.include_router(analytics_router)

    with TestClient(app) as client:
        assert client.get("/dashboard/stats").status_code == 503


def test_store_failure_raises_report_generation_error(tmp_path):
    settings = _build_test_settings(tmp_path, "unused.db")
    service = AnalyticsService(store=FailingStore(), settings=settings)

    with pytest.raises(ReportGenerationError):
        asyncio.run(service.get_dashboard_stats())


def test_slow_store_times_out(tmp_path):
    settings = _build_test_settings(tmp_path, "unused.db", fetch_timeout_seconds=0.05)
    service = AnalyticsService(
        store=SlowStore(BOOKING_RECORDS, HALL_RECORDS, USER_RECORDS),
        settings=settings,
    )

    with pytest.raises(ReportGenerationError):
        asyncio.run(service.get_report_metrics("month", now=NOW))


def test_service_rejects_unknown_inputs(tmp_path):
    settings = _build_test_settings(tmp_path, "unused.db")
    service = AnalyticsService(
        store=InMemoryRecordStore(BOOKING_RECORDS, HALL_RECORDS, USER_RECORDS),
        settings=settings,
    )

    with pytest.raises(InvalidTimeRangeError):
        asyncio.run(service.get_report_metrics("decade", now=NOW))
    with pytest.raises(ValueError):
        asyncio.run(service.export_report("month", "pdf", now=NOW))


def test_conflicting_bookings_are_reported(tmp_path):
    settings = _build_test_settings(tmp_path, "unused.db")
    overlapping = [
        {"id": "c-1", "hall_id": "h-1", "booking_date": "21072025", "start_time": "09:00",
         "end_time": "11:00", "status": "approved"},
        {"id": "c-2", "hall_id": "h-1", "booking_date": "2025-07-21", "start_time": "10:30",
         "end_time": "12:00", "status": "pending"},
        {"id": "c-3", "hall_id": "h-1", "booking_date": "21072025", "start_time": "11:00",
         "end_time": "12:00", "status": "cancelled"},
    ]
    service = AnalyticsService(
        store=InMemoryRecordStore(overlapping, HALL_RECORDS, USER_RECORDS),
        settings=settings,
    )

    conflicts = asyncio.run(service.get_conflicts())
    assert [(item.first_booking_id, item.second_booking_id) for item in conflicts] == [
        ("c-1", "c-2")
    ]


def test_create_app_seeds_demo_data(tmp_path):
    from app import create_app

    settings = _build_test_settings(tmp_path, "demo.db", demo_seed_days=12)
    settings = replace(settings, seed_demo_data=True)
    app = create_app(settings=settings)

    with TestClient(app) as client:
        stats = client.get("/dashboard/stats")
        assert stats.status_code == 200
        assert stats.json()["total_bookings"] == 12
        assert stats.json()["total_halls"] == 5
        assert stats.json()["maintenance_halls"] == 1
