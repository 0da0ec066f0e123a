"""
Centralized Settings Module - Environment-based configuration

Uses Pydantic BaseSettings for type-safe configuration management.
"""

from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from typing import Optional
from functools import lru_cache


class TimingSettings(BaseSettings):
    """Stopwatch timing configuration."""

    tick_interval_ms: int = Field(
        default=10,
        ge=1,
        le=1000,
        description="Interval between display ticks while running"
    )
    reference_std_dev: float = Field(
        default=7.0,
        gt=0.0,
        description="Lap-time standard deviation (seconds) that scores 0% consistency"
    )

    class Config:
        env_prefix = "TIMING_"


class StorageSettings(BaseSettings):
    """Key-value storage configuration for saved sessions and preferences."""

    backend: str = Field(default="json", description="Storage backend (json/redis/memory)")
    path: str = Field(
        default="./data/lap_timer_store.json",
        description="JSON document used by the json backend"
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection string for the redis backend"
    )
    key_prefix: str = Field(default="laptimer:", description="Prefix applied to redis keys")

    @field_validator("backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        """Validate storage backend is supported."""
        valid_backends = ["json", "redis", "memory"]
        v_lower = v.lower()
        if v_lower not in valid_backends:
            raise ValueError(f"Invalid storage backend. Must be one of: {valid_backends}")
        return v_lower

    class Config:
        env_prefix = "STORAGE_"


class LiveSessionSettings(BaseSettings):
    """Live-session broadcast configuration."""

    base_url: Optional[str] = Field(
        default=None,
        description="Realtime database base URL; live sessions are disabled when unset"
    )
    auth_token: Optional[str] = Field(default=None, description="Optional database auth token")
    publish_interval_seconds: float = Field(
        default=1.0,
        ge=0.0,
        description="Minimum seconds between published updates (0 = every tick)"
    )
    timeout_seconds: float = Field(default=3.0, gt=0.0, description="HTTP timeout per update")

    class Config:
        env_prefix = "LIVE_SESSION_"


class UploadSettings(BaseSettings):
    """Session upload endpoint configuration."""

    url: str = Field(
        default="http://moto.webhop.me/upload",
        description="Endpoint receiving saved session payloads"
    )
    timeout_seconds: float = Field(default=10.0, gt=0.0, description="HTTP timeout for uploads")
    device: str = Field(default="python", description="Device tag sent with every upload")

    class Config:
        env_prefix = "UPLOAD_"


class GeocodingSettings(BaseSettings):
    """Reverse geocoding configuration."""

    enabled: bool = Field(default=True, description="Resolve a city name for saved sessions")
    url: str = Field(
        default="https://nominatim.openstreetmap.org/reverse",
        description="Nominatim-compatible reverse geocoding endpoint"
    )
    user_agent: str = Field(default="moto-lap-timer/0.1", description="User-Agent header")
    timeout_seconds: float = Field(
        default=5.0,
        gt=0.0,
        description="Upper bound for the location lookup after a save"
    )
    latitude: Optional[float] = Field(default=None, ge=-90.0, le=90.0, description="Fixed latitude")
    longitude: Optional[float] = Field(default=None, ge=-180.0, le=180.0, description="Fixed longitude")

    class Config:
        env_prefix = "GEOCODING_"


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format (json/text)")
    file_path: Optional[str] = Field(default=None, description="Log file path")
    enable_console: bool = Field(default=True, description="Enable console logging")

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v_upper

    class Config:
        env_prefix = "LOG_"


class Settings(BaseSettings):
    """Main settings aggregating all configuration sections."""

    # Environment
    env: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Debug mode")

    # Sub-settings
    timing: TimingSettings = Field(default_factory=TimingSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    live_session: LiveSessionSettings = Field(default_factory=LiveSessionSettings)
    upload: UploadSettings = Field(default_factory=UploadSettings)
    geocoding: GeocodingSettings = Field(default_factory=GeocodingSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @field_validator("env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment is recognized."""
        valid_envs = ["development", "production", "testing"]
        if v.lower() not in valid_envs:
            raise ValueError(f"Invalid environment. Must be one of: {valid_envs}")
        return v.lower()

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        env_nested_delimiter = "__"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Application settings
    """
    return Settings()
