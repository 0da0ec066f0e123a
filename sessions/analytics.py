"""
Session analytics.

Summary statistics computed from lap labels: fastest/slowest/average lap and a
consistency score, plus multi-session comparison and per-location summaries.

The consistency score is a fixed heuristic, not a statistical test:

    score = 100 * (1 - population_std / REFERENCE_STD_DEV)

clamped to [1, 100] and truncated to an integer. ``REFERENCE_STD_DEV`` (7 s) is
the lap-to-lap spread treated as "typical"; sessions already saved were scored
with it, so changing it changes the meaning of stored scores.
"""

from __future__ import annotations
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np

from app.utils.logger import get_logger
from app.utils.time_utils import ZERO_TIME, format_duration, parse_duration, time_segment
from stopwatch.schemas import TimingSnapshot
from .schemas import LocationSummary, Session, SessionComparison, SessionComparisonEntry

logger = get_logger(__name__)

REFERENCE_STD_DEV = 7.0
NOT_AVAILABLE = "N/A"
UNKNOWN_LOCATION = "Unknown"


def lap_durations(lap_times: Iterable[str]) -> List[float]:
    """Parse every lap label into seconds."""
    return [parse_duration(label) for label in lap_times]


def average_lap(lap_times: Sequence[str]) -> str:
    """
    Mean lap time.

    Args:
        lap_times: Lap labels ('Lap N: MM:SS:HH' or bare 'MM:SS:HH')

    Returns:
        Formatted mean, '00:00:00' for no laps
    """
    if not lap_times:
        return ZERO_TIME
    durations = lap_durations(lap_times)
    return format_duration(sum(durations) / len(durations))


def consistency(lap_times: Sequence[str], reference_std_dev: float = REFERENCE_STD_DEV) -> str:
    """
    Consistency score of a run.

    Args:
        lap_times: Lap labels
        reference_std_dev: Spread in seconds that maps to a 0% score

    Returns:
        Integer percentage such as '87%', or 'N/A' for fewer than 2 laps
    """
    if len(lap_times) < 2:
        return NOT_AVAILABLE

    durations = np.asarray(lap_durations(lap_times), dtype=float)
    std_dev = float(np.std(durations))

    percentage = 100.0 * (1.0 - std_dev / reference_std_dev)
    percentage = min(100.0, max(1.0, percentage))

    return f"{int(percentage)}%"


def slowest_lap(lap_times: Sequence[str]) -> str:
    """
    Slowest lap as the greatest 'MM:SS:HH' string.

    The comparison is on text, matching what earlier releases stored. Equal
    width segments (under 100 minutes) order the same as their durations.
    """
    if not lap_times:
        return ZERO_TIME
    return max(time_segment(label) for label in lap_times)


def fastest_lap(lap_times: Sequence[str]) -> str:
    """Fastest lap by parsed duration, '00:00:00' for no laps."""
    if not lap_times:
        return ZERO_TIME
    return format_duration(min(lap_durations(lap_times)))


def build_session(
    snapshot: TimingSnapshot,
    location: Optional[str] = None,
    reference_std_dev: float = REFERENCE_STD_DEV,
) -> Optional[Session]:
    """
    Assemble a session from a timing snapshot.

    Args:
        snapshot: Timing buffers captured at save time
        location: Optional place name
        reference_std_dev: Consistency calibration constant

    Returns:
        The new session, or None when no lap was completed
    """
    if not snapshot.laps:
        logger.debug("Session not built: no completed laps")
        return None

    lap_times = snapshot.lap_labels

    session = Session(
        fastest_lap=format_duration(snapshot.best_lap_duration),
        slowest_lap=slowest_lap(lap_times),
        average_lap=average_lap(lap_times),
        consistency=consistency(lap_times, reference_std_dev),
        lap_times=lap_times,
        sector_times=snapshot.sector_labels,
        location=location,
        total_time=format_duration(snapshot.total_lap_duration),
    )

    logger.info(
        f"Built session {session.id}: {session.lap_count} laps, "
        f"fastest={session.fastest_lap}, consistency={session.consistency}"
    )
    return session


def compare_sessions(sessions: Sequence[Session]) -> SessionComparison:
    """
    Compare saved sessions by fastest and average lap.

    Args:
        sessions: Sessions in display order

    Returns:
        Comparison with deltas relative to the best session of each metric
    """
    if not sessions:
        return SessionComparison()

    fastest = {s.id: parse_duration(s.fastest_lap) for s in sessions}
    average = {s.id: parse_duration(s.average_lap) for s in sessions}

    best_fastest_id = min(fastest, key=fastest.get)
    best_average_id = min(average, key=average.get)

    entries = [
        SessionComparisonEntry(
            session_id=s.id,
            date=s.date,
            location=s.location,
            lap_count=s.lap_count,
            fastest_lap=s.fastest_lap,
            average_lap=s.average_lap,
            consistency=s.consistency,
            fastest_seconds=fastest[s.id],
            average_seconds=average[s.id],
            fastest_delta=round(fastest[s.id] - fastest[best_fastest_id], 2),
            average_delta=round(average[s.id] - average[best_average_id], 2),
        )
        for s in sessions
    ]

    return SessionComparison(
        entries=entries,
        best_fastest_session_id=best_fastest_id,
        best_average_session_id=best_average_id,
    )


def summarize_by_location(sessions: Sequence[Session]) -> List[LocationSummary]:
    """
    Group sessions by location.

    Sessions without a location are grouped under 'Unknown'. The average lap is
    taken over every lap recorded at the location.

    Returns:
        Summaries ordered by session count (descending), then location name
    """
    grouped: Dict[str, List[Session]] = defaultdict(list)
    for session in sessions:
        grouped[session.location or UNKNOWN_LOCATION].append(session)

    summaries = []
    for location, group in grouped.items():
        all_laps = [label for s in group for label in s.lap_times]
        best = min(parse_duration(s.fastest_lap) for s in group)
        summaries.append(
            LocationSummary(
                location=location,
                session_count=len(group),
                lap_count=len(all_laps),
                best_lap=format_duration(best),
                average_lap=average_lap(all_laps),
                last_session=max(s.date for s in group),
            )
        )

    summaries.sort(key=lambda summary: (-summary.session_count, summary.location))
    return summaries
