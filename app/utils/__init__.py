"""
Utilities Module - Shared helper functions for the lap timer
"""

from app.utils.logger import get_logger, setup_logging, setup_logging_from_settings
from app.utils.time_utils import (
    ZERO_TIME,
    format_duration,
    parse_duration,
    time_segment,
    lap_label,
    sector_label,
    utc_now,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "setup_logging_from_settings",
    "ZERO_TIME",
    "format_duration",
    "parse_duration",
    "time_segment",
    "lap_label",
    "sector_label",
    "utc_now",
]
