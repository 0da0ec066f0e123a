"""
Time Conversion Utilities for Stopwatch Time Formats

Handles the MM:SS:HH display format used by laps, sectors and session summaries.
"""

from datetime import datetime, timezone
from typing import Optional
import math


ZERO_TIME = "00:00:00"


def format_duration(seconds: float) -> str:
    """
    Convert elapsed seconds to the stopwatch display format.

    Args:
        seconds: Elapsed time in seconds

    Returns:
        Formatted string 'MM:SS:HH' (minutes, seconds, hundredths). Minutes are
        not bounded, so 100 minutes or more render with extra digits.
    """
    if not math.isfinite(seconds) or seconds <= 0:
        return ZERO_TIME

    whole = math.floor(seconds)
    minutes = whole // 60
    secs = whole % 60
    # rounding absorbs float error, e.g. 10.29 - 10 = 0.28999...
    hundredths = min(99, int(round((seconds - whole) * 100, 6)))

    return f"{minutes:02d}:{secs:02d}:{hundredths:02d}"


def time_segment(label: str) -> str:
    """
    Extract the trailing 'MM:SS:HH' segment of a lap or sector label.

    Args:
        label: Label such as 'Lap 3: 01:31:20' or a bare '01:31:20'

    Returns:
        The text after the last space, stripped
    """
    return label.strip().rsplit(" ", 1)[-1]


def _component(value: Optional[str]) -> int:
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0


def parse_duration(label: str) -> float:
    """
    Convert a formatted label back into seconds.

    Unparsable components count as zero instead of failing, so a corrupted
    label only degrades its own contribution to an aggregate.

    Args:
        label: Lap/sector label or bare 'MM:SS:HH' string

    Returns:
        Duration in seconds as float
    """
    parts = time_segment(label).split(":")
    parts += [None] * (3 - len(parts))

    minutes = _component(parts[0])
    seconds = _component(parts[1])
    hundredths = _component(parts[2])

    return minutes * 60 + seconds + hundredths / 100


def lap_label(index: int, seconds: float) -> str:
    """Render a lap label, e.g. 'Lap 2: 01:31:20'."""
    return f"Lap {index}: {format_duration(seconds)}"


def sector_label(index: int, seconds: float) -> str:
    """Render a sector label, e.g. 'Sector 1: 00:29:87'."""
    return f"Sector {index}: {format_duration(seconds)}"


def get_current_utc_timestamp() -> str:
    """
    Get current UTC timestamp in ISO 8601 format.

    Returns:
        ISO 8601 formatted timestamp string
    """
    return datetime.now(timezone.utc).isoformat()


def utc_now() -> datetime:
    """Timezone-aware current UTC datetime."""
    return datetime.now(timezone.utc)
