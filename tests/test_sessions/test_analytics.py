"""Tests for session analytics."""

from datetime import datetime, timedelta, timezone

import pytest

from sessions.analytics import (
    average_lap,
    build_session,
    compare_sessions,
    consistency,
    fastest_lap,
    slowest_lap,
    summarize_by_location,
)
from sessions.schemas import Session
from stopwatch.schemas import TimingSnapshot


def make_session(lap_times, location=None, days_ago=0):
    return Session(
        date=datetime(2024, 5, 26, tzinfo=timezone.utc) - timedelta(days=days_ago),
        fastest_lap=fastest_lap(lap_times),
        slowest_lap=slowest_lap(lap_times),
        average_lap=average_lap(lap_times),
        consistency=consistency(lap_times),
        lap_times=lap_times,
        location=location,
        total_time="00:00:00",
    )


class TestAverageLap:
    """Test average lap."""

    def test_empty(self):
        assert average_lap([]) == "00:00:00"

    def test_average(self):
        laps = ["Lap 1: 01:30:00", "Lap 2: 01:31:00", "Lap 3: 01:35:00"]
        assert average_lap(laps) == "01:32:00"

    def test_corrupt_label_degrades_only_its_lap(self):
        laps = ["Lap 1: 01:30:00", "Lap 2: ??:30:00"]
        assert average_lap(laps) == "01:00:00"


class TestConsistency:
    """Test consistency score."""

    def test_not_available_below_two_laps(self):
        assert consistency([]) == "N/A"
        assert consistency(["Lap 1: 01:30:00"]) == "N/A"

    def test_identical_laps(self):
        laps = ["Lap 1: 00:01:50", "Lap 2: 00:01:50", "Lap 3: 00:01:50"]
        assert consistency(laps) == "100%"

    def test_population_std_dev(self):
        """Test std of 1s scores 100 * (1 - 1/7), truncated."""
        assert consistency(["01:30:00", "01:32:00"]) == "85%"

    def test_three_laps(self):
        assert consistency(["01:30:00", "01:31:00", "01:35:00"]) == "69%"

    def test_clamped_to_one_percent(self):
        assert consistency(["01:00:00", "01:40:00"]) == "1%"

    def test_reference_std_dev_override(self):
        assert consistency(["01:30:00", "01:32:00"], reference_std_dev=2.0) == "50%"


class TestSlowestAndFastest:
    """Test slowest/fastest lap."""

    def test_slowest(self):
        laps = ["Lap 2: 01:35:50", "Lap 1: 01:30:00"]
        assert slowest_lap(laps) == "01:35:50"

    def test_slowest_compares_text(self):
        """Test segments wider than MM order as text, as stored sessions did."""
        assert slowest_lap(["99:59:99", "100:00:00"]) == "99:59:99"

    def test_fastest(self):
        assert fastest_lap(["99:59:99", "100:00:00", "01:30:00"]) == "01:30:00"

    def test_empty(self):
        assert slowest_lap([]) == "00:00:00"
        assert fastest_lap([]) == "00:00:00"


class TestBuildSession:
    """Test session assembly."""

    def test_no_laps(self):
        assert build_session(TimingSnapshot()) is None

    def test_no_laps_with_sectors(self, stopwatch, clock):
        stopwatch.start()
        clock.advance(20.0)
        stopwatch.sector()
        assert build_session(stopwatch.snapshot()) is None

    def test_fields(self, run_laps):
        stopwatch = run_laps(90.0, 91.0, 95.0)
        session = build_session(stopwatch.snapshot(), location="Brno")

        assert session.fastest_lap == "01:30:00"
        assert session.slowest_lap == "01:35:00"
        assert session.average_lap == "01:32:00"
        assert session.consistency == "69%"
        assert session.total_time == "04:36:00"
        assert session.location == "Brno"
        assert session.lap_times == ["Lap 3: 01:35:00", "Lap 2: 01:31:00", "Lap 1: 01:30:00"]
        assert session.sector_times == [[], [], []]

    def test_session_detached_from_live_state(self, run_laps, clock):
        stopwatch = run_laps(90.0)
        clock.advance(10.0)
        stopwatch.sector()
        session = build_session(stopwatch.snapshot())

        clock.advance(80.0)
        stopwatch.lap()
        stopwatch.reset()

        assert session.lap_times == ["Lap 1: 01:30:00"]
        assert session.sector_times == [["Sector 1: 00:10:00"]]

    def test_unique_ids(self, run_laps):
        snapshot = run_laps(90.0).snapshot()
        assert build_session(snapshot).id != build_session(snapshot).id


class TestCompareSessions:
    """Test multi-session comparison."""

    def test_empty(self):
        comparison = compare_sessions([])
        assert comparison.entries == []
        assert comparison.best_fastest_session_id is None

    def test_deltas(self):
        quick = make_session(["01:30:00", "01:34:00"])
        steady = make_session(["01:31:00", "01:31:50"])
        comparison = compare_sessions([quick, steady])

        assert comparison.best_fastest_session_id == quick.id
        assert comparison.best_average_session_id == steady.id

        by_id = {e.session_id: e for e in comparison.entries}
        assert by_id[quick.id].fastest_delta == 0.0
        assert by_id[steady.id].fastest_delta == pytest.approx(1.0)
        assert by_id[quick.id].average_delta == pytest.approx(0.75)
        assert [e.session_id for e in comparison.entries] == [quick.id, steady.id]


class TestSummarizeByLocation:
    """Test per-location summaries."""

    def test_grouping(self):
        sessions = [
            make_session(["01:30:00", "01:32:00"], location="Brno", days_ago=3),
            make_session(["01:29:00"], location="Brno", days_ago=1),
            make_session(["02:00:00"]),
        ]
        summaries = summarize_by_location(sessions)

        assert [s.location for s in summaries] == ["Brno", "Unknown"]
        brno = summaries[0]
        assert brno.session_count == 2
        assert brno.lap_count == 3
        assert brno.best_lap == "01:29:00"
        assert brno.average_lap == "01:30:33"
        assert brno.last_session == datetime(2024, 5, 25, tzinfo=timezone.utc)
