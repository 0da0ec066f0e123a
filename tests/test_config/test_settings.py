"""
Tests for environment-based configuration
"""

import pytest
from pydantic import ValidationError

from config.settings import (
    LoggingSettings,
    Settings,
    StorageSettings,
    TimingSettings,
    get_settings,
)


class TestDefaults:
    """Test default values."""

    def test_timing_defaults(self):
        timing = TimingSettings()
        assert timing.tick_interval_ms == 10
        assert timing.reference_std_dev == 7.0

    def test_storage_defaults(self):
        assert StorageSettings().backend == "json"

    def test_sections_present(self):
        settings = Settings()
        assert settings.env == "development"
        assert settings.live_session.base_url is None
        assert settings.geocoding.timeout_seconds == 5.0


class TestEnvironmentOverrides:
    """Test values read from the environment."""

    def test_prefixed_variables(self, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "REDIS")
        monkeypatch.setenv("TIMING_REFERENCE_STD_DEV", "5.5")

        settings = Settings()
        assert settings.storage.backend == "redis"
        assert settings.timing.reference_std_dev == 5.5

    def test_get_settings_is_cached(self):
        get_settings.cache_clear()
        assert get_settings() is get_settings()
        get_settings.cache_clear()


class TestValidation:
    """Test rejected values."""

    def test_invalid_backend(self):
        with pytest.raises(ValidationError):
            StorageSettings(backend="sqlite")

    def test_invalid_env(self):
        with pytest.raises(ValidationError):
            Settings(env="staging")

    def test_log_level_normalised(self):
        assert LoggingSettings(level="debug").level == "DEBUG"
        with pytest.raises(ValidationError):
            LoggingSettings(level="verbose")

    def test_tick_interval_bounds(self):
        with pytest.raises(ValidationError):
            TimingSettings(tick_interval_ms=0)
