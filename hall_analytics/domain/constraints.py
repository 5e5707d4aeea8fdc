"""Domain-level validation rules for analytics aggregation."""

from __future__ import annotations

from dataclasses import dataclass

from hall_analytics.utils.config import Settings


MAX_TOP_N = 5

ACTIVE_POLICIES: dict[str, frozenset[str]] = {
    # legacy dashboards count approved bookings only
    "legacy": frozenset({"approved"}),
    "broad": frozenset({"approved", "confirmed"}),
}


@dataclass(frozen=True)
class AnalyticsConfig:
    default_duration_minutes: int = 120
    assumed_daily_hours: float = 12.0
    dashboard_window_days: int = 30
    trend_window_days: int = 7
    trend_up_ratio: float = 1.1
    trend_down_ratio: float = 0.9
    trend_bucket_count: int = 4
    top_n: int = 5
    active_user_window_days: int = 30
    active_policy: str = "legacy"

    @property
    def active_statuses(self) -> frozenset[str]:
        return ACTIVE_POLICIES[self.active_policy]

    @classmethod
    def from_settings(cls, settings: Settings) -> "AnalyticsConfig":
        config = cls(
            default_duration_minutes=settings.analytics_default_duration_minutes,
            assumed_daily_hours=settings.analytics_assumed_daily_hours,
            dashboard_window_days=settings.analytics_dashboard_window_days,
            trend_window_days=settings.analytics_trend_window_days,
            trend_up_ratio=settings.analytics_trend_up_ratio,
            trend_down_ratio=settings.analytics_trend_down_ratio,
            trend_bucket_count=settings.analytics_trend_bucket_count,
            top_n=settings.analytics_top_n,
            active_user_window_days=settings.analytics_active_user_window_days,
            active_policy=settings.analytics_active_policy,
        )
        validate_analytics_config(config)
        return config


def validate_analytics_config(config: AnalyticsConfig) -> None:
    if config.default_duration_minutes <= 0:
        raise ValueError("default_duration_minutes must be > 0")
    if not 0.0 < config.assumed_daily_hours <= 24.0:
        raise ValueError("assumed_daily_hours must be in (0, 24]")
    if config.dashboard_window_days <= 0:
        raise ValueError("dashboard_window_days must be > 0")
    if config.trend_window_days <= 0:
        raise ValueError("trend_window_days must be > 0")
    if config.trend_up_ratio < 1.0:
        raise ValueError("trend_up_ratio must be >= 1")
    if not 0.0 < config.trend_down_ratio <= 1.0:
        raise ValueError("trend_down_ratio must be in (0, 1]")
    if config.trend_bucket_count <= 0:
        raise ValueError("trend_bucket_count must be > 0")
    if not 1 <= config.top_n <= MAX_TOP_N:
        raise ValueError(f"top_n must be in [1, {MAX_TOP_N}]")
    if config.active_user_window_days <= 0:
        raise ValueError("active_user_window_days must be > 0")
    if config.active_policy not in ACTIVE_POLICIES:
        raise ValueError("active_policy must be 'legacy' or 'broad'")
