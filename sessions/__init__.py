"""
Session analytics and persistence.

The save workflow (``sessions.recorder``) and web sessions
(``sessions.web_sessions``) depend on ``integrations`` and are imported from
their modules directly.
"""

from .analytics import (
    REFERENCE_STD_DEV,
    average_lap,
    build_session,
    compare_sessions,
    consistency,
    fastest_lap,
    slowest_lap,
    summarize_by_location,
)
from .preferences import UserPreferences
from .repository import SESSIONS_KEY, SessionRepository, load_sessions, persist_sessions
from .schemas import LocationSummary, Session, SessionComparison, SessionComparisonEntry, WebSession
from .store import (
    JsonFileKeyValueStore,
    KeyValueStore,
    MemoryKeyValueStore,
    RedisKeyValueStore,
    create_store,
)

__all__ = [
    "REFERENCE_STD_DEV",
    "average_lap",
    "build_session",
    "compare_sessions",
    "consistency",
    "fastest_lap",
    "slowest_lap",
    "summarize_by_location",
    "UserPreferences",
    "SESSIONS_KEY",
    "SessionRepository",
    "load_sessions",
    "persist_sessions",
    "LocationSummary",
    "Session",
    "SessionComparison",
    "SessionComparisonEntry",
    "WebSession",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "RedisKeyValueStore",
    "create_store",
]
