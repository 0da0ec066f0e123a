"""
Tests for session upload
"""

from unittest.mock import Mock

import pytest
import requests

from integrations.upload import HttpSessionUploader, UploadResult, build_upload_payload
from sessions.analytics import build_session
from sessions.schemas import WebSession


@pytest.fixture
def session(stopwatch, clock):
    """Two laps with one sector each plus an open sector."""
    stopwatch.start()
    clock.advance(10.0)
    stopwatch.sector()
    clock.advance(80.0)
    stopwatch.lap()
    clock.advance(20.0)
    stopwatch.sector()
    clock.advance(71.0)
    stopwatch.lap()
    clock.advance(5.0)
    stopwatch.sector()
    return build_session(stopwatch.snapshot(), location="Brno")


@pytest.fixture
def http():
    mock_session = Mock(spec=requests.Session)
    mock_session.post.return_value = Mock(ok=True, status_code=200)
    return mock_session


class TestBuildUploadPayload:
    """Test payload layout."""

    def test_summary(self, session):
        summary, _ = build_upload_payload(session, "rider", device="python")

        assert summary["sessionId"] == session.id
        assert summary["username"] == "rider"
        assert summary["location"] == "Brno"
        assert summary["fastestLap"] == "01:30:00"
        assert summary["slowestLap"] == "01:31:00"
        assert summary["totalTime"] == "03:01:00"
        assert summary["lapCount"] == 2
        assert summary["openSectors"] == ["Sector 1: 00:05:00"]

    def test_per_lap_sectors_align(self, session):
        """Test each lap carries the sectors recorded during it."""
        _, per_lap = build_upload_payload(session)

        assert per_lap == [
            {"lap": "Lap 2", "time": "01:31:00", "sectors": ["00:20:00"]},
            {"lap": "Lap 1", "time": "01:30:00", "sectors": ["00:10:00"]},
        ]

    def test_missing_username(self, session):
        summary, _ = build_upload_payload(session)
        assert summary["username"] == ""


class TestHttpSessionUploader:
    """Test HTTP upload outcomes."""

    def test_success(self, http, session):
        uploader = HttpSessionUploader("https://upload.example", session=http)
        summary, per_lap = build_upload_payload(session)

        assert uploader.upload(summary, per_lap) == UploadResult(True, "Upload successful")
        body = http.post.call_args.kwargs["json"]
        assert body["laps"] == per_lap
        assert body["sessionId"] == session.id

    def test_server_error(self, http, session):
        http.post.return_value = Mock(ok=False, status_code=503)
        result = HttpSessionUploader("https://upload.example", session=http).upload(
            *build_upload_payload(session)
        )

        assert result == UploadResult(False, "Server error (503)")

    @pytest.mark.parametrize("status_code", [301, 304])
    def test_redirect_is_not_success(self, http, session, status_code):
        """Test only 2xx responses count, even though requests treats 3xx as ok."""
        http.post.return_value = Mock(ok=True, status_code=status_code)
        result = HttpSessionUploader("https://upload.example", session=http).upload(
            *build_upload_payload(session)
        )

        assert result == UploadResult(False, f"Server error ({status_code})")

    def test_network_error(self, http, session):
        http.post.side_effect = requests.ConnectionError("no route to host")
        result = HttpSessionUploader("https://upload.example", session=http).upload(
            *build_upload_payload(session)
        )

        assert not result.success
        assert "no route to host" in result.message

    def test_web_session(self, http):
        entry = WebSession(duration=1800.0, notes="Track day")
        uploader = HttpSessionUploader("https://upload.example", device="pit-tablet", session=http)

        assert uploader.upload_web_session(entry).success
        body = http.post.call_args.kwargs["json"]
        assert body["duration"] == 1800.0
        assert body["notes"] == "Track day"
        assert body["device"] == "pit-tablet"
        assert body["timestamp"] == entry.timestamp.timestamp()
