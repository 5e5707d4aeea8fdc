"""Process-wide logging setup for the analytics service."""

from __future__ import annotations

import logging
import sys
from typing import Optional

from hall_analytics.utils.config import get_settings


LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_configured_level: Optional[str] = None


def configure_logging(level: Optional[str] = None) -> None:
    """Install the stdout handler once; later calls may only change the level.

    Python warnings are captured too, so warning categories raised by
    dependencies land in the same stream as the aggregation summaries.
    """
    global _configured_level
    resolved_level = (level or get_settings().log_level).upper()

    if _configured_level is None:
        logging.basicConfig(level=resolved_level, format=LOG_FORMAT, stream=sys.stdout)
        logging.captureWarnings(True)
    elif level is not None and resolved_level != _configured_level:
        logging.getLogger().setLevel(resolved_level)
    _configured_level = resolved_level


def get_logger(name: str) -> logging.Logger:
    """Return a module logger, configuring the root handler on first use."""
    if _configured_level is None:
        configure_logging()
    return logging.getLogger(name)
