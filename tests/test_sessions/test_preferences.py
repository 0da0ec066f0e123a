"""
Tests for user preferences and web sessions
"""

from unittest.mock import Mock

import pytest
from pydantic import ValidationError

from integrations.upload import SessionUploader, UploadResult
from sessions.preferences import UserPreferences
from sessions.web_sessions import WebSessionBook


class TestUserPreferences:
    """Test preference slots."""

    def test_defaults(self, store):
        preferences = UserPreferences(store)

        assert preferences.username == ""
        assert preferences.auto_start_live_session is False
        assert preferences.bg_color is None
        assert preferences.has_completed_onboarding is False
        assert preferences.is_dark_mode is False

    def test_username(self, store):
        preferences = UserPreferences(store)
        preferences.username = "  rider42 "

        assert preferences.username == "rider42"
        assert store.get("username") == "rider42"

        preferences.username = ""
        assert store.get("username") is None

    def test_booleans_stored_as_text(self, store):
        preferences = UserPreferences(store)
        preferences.is_dark_mode = True
        preferences.has_completed_onboarding = False

        assert store.get("isDarkMode") == "true"
        assert store.get("hasCompletedOnboarding") == "false"
        assert preferences.is_dark_mode is True

    def test_toggle_auto_start(self, store):
        preferences = UserPreferences(store)

        assert preferences.toggle_auto_start() is True
        assert store.get("autoStartLiveSession") == "true"
        assert preferences.toggle_auto_start() is False

    def test_unrecognised_boolean_reads_false(self, store):
        store.set("isDarkMode", "maybe")
        assert UserPreferences(store).is_dark_mode is False


class TestWebSessionBook:
    """Test manually entered sessions."""

    @pytest.fixture
    def uploader(self):
        mock_uploader = Mock(spec=SessionUploader)
        mock_uploader.upload_web_session.return_value = UploadResult(True, "Upload successful")
        return mock_uploader

    def test_add_persists(self, store):
        book = WebSessionBook(store)
        entry = book.add(1800.0, "Track day")

        reloaded = WebSessionBook(store)
        assert reloaded.get(entry.id).notes == "Track day"
        assert reloaded.get(entry.id).is_uploaded is False

    def test_negative_duration_rejected(self, store):
        with pytest.raises(ValidationError):
            WebSessionBook(store).add(-1.0)

    def test_delete(self, store):
        book = WebSessionBook(store)
        entry = book.add(60.0)

        assert book.delete(entry.id)
        assert book.delete(entry.id) is False
        assert WebSessionBook(store).entries == []

    def test_upload_marks_entry(self, store, uploader):
        book = WebSessionBook(store)
        entry = book.add(60.0)

        assert book.upload(entry.id, uploader).success
        assert WebSessionBook(store).get(entry.id).is_uploaded

    def test_upload_only_once(self, store, uploader):
        book = WebSessionBook(store)
        entry = book.add(60.0)
        book.upload(entry.id, uploader)

        result = book.upload(entry.id, uploader)
        assert result.message == "Already uploaded"
        assert uploader.upload_web_session.call_count == 1

    def test_failed_upload_left_pending(self, store, uploader):
        uploader.upload_web_session.return_value = UploadResult(False, "Server error (503)")
        book = WebSessionBook(store)
        entry = book.add(60.0)

        assert not book.upload(entry.id, uploader).success
        assert not book.get(entry.id).is_uploaded

    def test_upload_unknown(self, store, uploader):
        assert not WebSessionBook(store).upload("missing", uploader).success
        uploader.upload_web_session.assert_not_called()
