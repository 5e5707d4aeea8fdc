"""Environment-driven application settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


@dataclass(frozen=True)
class Settings:
    app_name: str
    app_version: str
    log_level: str
    database_path: Path
    seed_demo_data: bool
    demo_random_seed: int
    demo_seed_days: int
    fetch_timeout_seconds: float

    analytics_default_duration_minutes: int
    analytics_assumed_daily_hours: float
    analytics_dashboard_window_days: int
    analytics_trend_window_days: int
    analytics_trend_up_ratio: float
    analytics_trend_down_ratio: float
    analytics_trend_bucket_count: int
    analytics_top_n: int
    analytics_active_user_window_days: int
    analytics_active_policy: str


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build settings once per process; call ``cache_clear`` to reload."""
    project_root = Path(__file__).resolve().parents[2]
    database_path = Path(
        os.getenv("DATABASE_PATH", str(project_root / "data" / "hall_bookings.db"))
    )
    return Settings(
        app_name=os.getenv("APP_NAME", "Hall Booking Analytics"),
        app_version=os.getenv("APP_VERSION", "1.0.0"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        database_path=database_path,
        seed_demo_data=_env_bool("SEED_DEMO_DATA", True),
        demo_random_seed=_env_int("DEMO_RANDOM_SEED", 42),
        demo_seed_days=_env_int("DEMO_SEED_DAYS", 60),
        fetch_timeout_seconds=_env_float("FETCH_TIMEOUT_SECONDS", 15.0),
        analytics_default_duration_minutes=_env_int(
            "ANALYTICS_DEFAULT_DURATION_MINUTES", 120
        ),
        analytics_assumed_daily_hours=_env_float("ANALYTICS_ASSUMED_DAILY_HOURS", 12.0),
        analytics_dashboard_window_days=_env_int("ANALYTICS_DASHBOARD_WINDOW_DAYS", 30),
        analytics_trend_window_days=_env_int("ANALYTICS_TREND_WINDOW_DAYS", 7),
        analytics_trend_up_ratio=_env_float("ANALYTICS_TREND_UP_RATIO", 1.1),
        analytics_trend_down_ratio=_env_float("ANALYTICS_TREND_DOWN_RATIO", 0.9),
        analytics_trend_bucket_count=_env_int("ANALYTICS_TREND_BUCKET_COUNT", 4),
        analytics_top_n=_env_int("ANALYTICS_TOP_N", 5),
        analytics_active_user_window_days=_env_int(
            "ANALYTICS_ACTIVE_USER_WINDOW_DAYS", 30
        ),
        analytics_active_policy=os.getenv("ANALYTICS_ACTIVE_POLICY", "legacy").lower(),
    )
