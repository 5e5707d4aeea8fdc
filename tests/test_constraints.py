"""Tests for analytics configuration validation logic.

Covers every validation branch in validate_analytics_config().
"""

from __future__ import annotations

from dataclasses import replace

import pytest

from hall_analytics.domain.constraints import AnalyticsConfig, validate_analytics_config
from hall_analytics.utils.config import get_settings


def valid_config(**overrides) -> AnalyticsConfig:
    """Return a valid baseline AnalyticsConfig, optionally overriding fields."""
    defaults = {
        "default_duration_minutes": 120,
        "assumed_daily_hours": 12.0,
        "dashboard_window_days": 30,
        "trend_window_days": 7,
        "trend_up_ratio": 1.1,
        "trend_down_ratio": 0.9,
        "trend_bucket_count": 4,
        "top_n": 5,
        "active_user_window_days": 30,
        "active_policy": "legacy",
    }
    defaults.update(overrides)
    return AnalyticsConfig(**defaults)


# --- Baseline pass ---

def test_valid_config_passes() -> None:
    """A fully valid config must not raise."""
    validate_analytics_config(valid_config())


# --- default_duration_minutes ---

def test_default_duration_zero_raises() -> None:
    with pytest.raises(ValueError):
        validate_analytics_config(valid_config(default_duration_minutes=0))


def test_default_duration_negative_raises() -> None:
    with pytest.raises(ValueError):
        validate_analytics_config(valid_config(default_duration_minutes=-30))


# --- assumed_daily_hours ---

def test_assumed_daily_hours_zero_raises() -> None:
    with pytest.raises(ValueError):
        validate_analytics_config(valid_config(assumed_daily_hours=0.0))


def test_assumed_daily_hours_above_day_raises() -> None:
    with pytest.raises(ValueError):
        validate_analytics_config(valid_config(assumed_daily_hours=24.5))


# --- windows ---

@pytest.mark.parametrize(
    "field_name",
    ["dashboard_window_days", "trend_window_days", "active_user_window_days"],
)
def test_non_positive_windows_raise(field_name: str) -> None:
    with pytest.raises(ValueError):
        validate_analytics_config(valid_config(**{field_name: 0}))


# --- trend ratios ---

def test_trend_up_ratio_below_one_raises() -> None:
    with pytest.raises(ValueError):
        validate_analytics_config(valid_config(trend_up_ratio=0.95))


def test_trend_down_ratio_zero_raises() -> None:
    with pytest.raises(ValueError):
        validate_analytics_config(valid_config(trend_down_ratio=0.0))


def test_trend_down_ratio_above_one_raises() -> None:
    with pytest.raises(ValueError):
        validate_analytics_config(valid_config(trend_down_ratio=1.2))


# --- counts ---

def test_trend_bucket_count_zero_raises() -> None:
    with pytest.raises(ValueError):
        validate_analytics_config(valid_config(trend_bucket_count=0))


def test_top_n_zero_raises() -> None:
    with pytest.raises(ValueError):
        validate_analytics_config(valid_config(top_n=0))


def test_top_n_above_five_raises() -> None:
    with pytest.raises(ValueError):
        validate_analytics_config(valid_config(top_n=6))


def test_top_n_bounds_pass() -> None:
    validate_analytics_config(valid_config(top_n=1))
    validate_analytics_config(valid_config(top_n=5))


# --- active policy ---

def test_unknown_active_policy_raises() -> None:
    with pytest.raises(ValueError):
        validate_analytics_config(valid_config(active_policy="everything"))


def test_active_policies_expose_status_sets() -> None:
    assert valid_config().active_statuses == frozenset({"approved"})
    assert valid_config(active_policy="broad").active_statuses == frozenset(
        {"approved", "confirmed"}
    )


# --- Boundary values ---

def test_assumed_daily_hours_full_day_passes() -> None:
    """Exact upper boundary must pass."""
    validate_analytics_config(valid_config(assumed_daily_hours=24.0))


def test_trend_ratios_equal_to_one_pass() -> None:
    """Ratios of exactly one collapse the stable band but stay valid."""
    validate_analytics_config(valid_config(trend_up_ratio=1.0, trend_down_ratio=1.0))


# --- Settings bridge ---

def test_from_settings_rejects_invalid_policy() -> None:
    get_settings.cache_clear()
    settings = replace(get_settings(), analytics_active_policy="nope")
    with pytest.raises(ValueError):
        AnalyticsConfig.from_settings(settings)


def test_from_settings_copies_values() -> None:
    get_settings.cache_clear()
    settings = replace(get_settings(), analytics_top_n=3, analytics_assumed_daily_hours=8.0)
    config = AnalyticsConfig.from_settings(settings)
    assert config.top_n == 3
    assert config.assumed_daily_hours == 8.0
