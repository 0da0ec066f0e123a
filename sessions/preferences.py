"""
User preferences kept as plain key-value slots next to the saved sessions.
"""

from typing import Optional

from app.utils.logger import get_logger
from .store import KeyValueStore

logger = get_logger(__name__)

USERNAME_KEY = "username"
AUTO_START_LIVE_SESSION_KEY = "autoStartLiveSession"
BG_COLOR_KEY = "bgColor"
ONBOARDING_KEY = "hasCompletedOnboarding"
DARK_MODE_KEY = "isDarkMode"

_TRUE_VALUES = {"1", "true", "yes", "on"}


class UserPreferences:
    """Typed accessors over scalar preference slots."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    def _get_bool(self, key: str) -> bool:
        value = self.store.get(key)
        return value is not None and value.strip().lower() in _TRUE_VALUES

    def _set_bool(self, key: str, value: bool) -> None:
        self.store.set(key, "true" if value else "false")

    @property
    def username(self) -> str:
        return self.store.get(USERNAME_KEY) or ""

    @username.setter
    def username(self, value: str) -> None:
        value = value.strip()
        if value:
            self.store.set(USERNAME_KEY, value)
        else:
            self.store.delete(USERNAME_KEY)
        logger.info("Username updated")

    @property
    def auto_start_live_session(self) -> bool:
        return self._get_bool(AUTO_START_LIVE_SESSION_KEY)

    @auto_start_live_session.setter
    def auto_start_live_session(self, value: bool) -> None:
        self._set_bool(AUTO_START_LIVE_SESSION_KEY, value)

    @property
    def bg_color(self) -> Optional[str]:
        return self.store.get(BG_COLOR_KEY)

    @bg_color.setter
    def bg_color(self, value: str) -> None:
        self.store.set(BG_COLOR_KEY, value)

    @property
    def has_completed_onboarding(self) -> bool:
        return self._get_bool(ONBOARDING_KEY)

    @has_completed_onboarding.setter
    def has_completed_onboarding(self, value: bool) -> None:
        self._set_bool(ONBOARDING_KEY, value)

    @property
    def is_dark_mode(self) -> bool:
        return self._get_bool(DARK_MODE_KEY)

    @is_dark_mode.setter
    def is_dark_mode(self, value: bool) -> None:
        self._set_bool(DARK_MODE_KEY, value)

    def toggle_auto_start(self) -> bool:
        self.auto_start_live_session = not self.auto_start_live_session
        return self.auto_start_live_session
