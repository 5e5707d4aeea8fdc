"""Shared FastAPI dependency providers for controller layer."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from hall_analytics.services.analytics_service import AnalyticsService


def get_analytics_service(request: Request) -> AnalyticsService:
    service = getattr(request.app.state, "analytics_service", None)
    if service is None:
        store = getattr(request.app.state, "record_store", None)
        if store is not None:
            service = AnalyticsService(store=store)
            request.app.state.analytics_service = service
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Analytics service is not initialized",
        )
    return service
