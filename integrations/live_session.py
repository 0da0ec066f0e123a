"""
Live-session broadcast.

While a live session is active every stopwatch tick is offered to a publisher.
Publishing happens on a worker thread, is throttled, and can fail freely: the
stopwatch never waits on it and never sees its errors.
"""

from abc import ABC, abstractmethod
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, Optional
import time

import requests

from app.utils.logger import get_logger
from app.utils.time_utils import get_current_utc_timestamp
from stopwatch.engine import Stopwatch
from stopwatch.schemas import TickSnapshot
from .location import Coordinate, LocationProvider

logger = get_logger(__name__)

STATUS_ACTIVE = "Active"
STATUS_INACTIVE = "Not Active"


class LivePublisher(ABC):
    """Live status feed contract."""

    @abstractmethod
    def publish(self, current_lap: str, best_lap: str, location: Optional[Coordinate] = None) -> None:
        """Push the current display values. May raise; callers tolerate it."""

    def clear(self) -> None:
        """Withdraw the live entry when the session ends."""


class RealtimeDatabasePublisher(LivePublisher):
    """
    Publisher writing to a realtime-database REST endpoint.

    Each update replaces ``{base_url}/liveSessions/{username}.json``.
    """

    def __init__(
        self,
        base_url: str,
        username: str,
        auth_token: Optional[str] = None,
        timeout: float = 3.0,
        session: Optional[requests.Session] = None,
    ):
        if not username:
            raise ValueError("A username is required to publish a live session")

        self.url = f"{base_url.rstrip('/')}/liveSessions/{username}.json"
        self.username = username
        self.timeout = timeout
        self.params = {"auth": auth_token} if auth_token else None
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls, live_settings, username: str) -> "RealtimeDatabasePublisher":
        if not live_settings.base_url:
            raise ValueError("LIVE_SESSION_BASE_URL is not configured")
        return cls(
            base_url=live_settings.base_url,
            username=username,
            auth_token=live_settings.auth_token,
            timeout=live_settings.timeout_seconds,
        )

    def publish(self, current_lap: str, best_lap: str, location: Optional[Coordinate] = None) -> None:
        payload: Dict[str, Any] = {
            "username": self.username,
            "currentLap": current_lap,
            "bestLap": best_lap,
            "status": "active",
            "updatedAt": get_current_utc_timestamp(),
        }
        if location is not None:
            payload["latitude"], payload["longitude"] = location

        response = self.session.put(self.url, json=payload, params=self.params, timeout=self.timeout)
        response.raise_for_status()

    def clear(self) -> None:
        response = self.session.delete(self.url, params=self.params, timeout=self.timeout)
        response.raise_for_status()


class LiveSession:
    """Bridges stopwatch ticks to a :class:`LivePublisher`."""

    def __init__(
        self,
        publisher: LivePublisher,
        location_provider: Optional[LocationProvider] = None,
        publish_interval: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        executor: Optional[Executor] = None,
    ):
        """
        Initialize live session.

        Args:
            publisher: Destination for live updates
            location_provider: Optional position source attached to updates
            publish_interval: Minimum seconds between updates (0 = every tick)
            clock: Monotonic clock used for throttling
            executor: Executor running publish calls (default: one worker thread)
        """
        self.publisher = publisher
        self.location_provider = location_provider
        self.publish_interval = publish_interval
        self._clock = clock
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="live-session")
        self._stopwatch: Optional[Stopwatch] = None
        self._last_publish: Optional[float] = None
        self._pending: Optional[Future] = None
        self.active = False
        self.failures = 0

    @property
    def status(self) -> str:
        return STATUS_ACTIVE if self.active else STATUS_INACTIVE

    def start(self, stopwatch: Stopwatch) -> None:
        if self.active:
            return
        self._stopwatch = stopwatch
        stopwatch.add_listener(self.on_tick)
        self.active = True
        self._last_publish = None
        logger.info("Live session started")

    def stop(self) -> None:
        if not self.active:
            return
        self.active = False
        if self._stopwatch is not None:
            self._stopwatch.remove_listener(self.on_tick)
            self._stopwatch = None
        self._submit(self.publisher.clear)
        logger.info("Live session stopped")

    def toggle(self, stopwatch: Stopwatch) -> bool:
        """Start or stop; returns the new active flag."""
        if self.active:
            self.stop()
        else:
            self.start(stopwatch)
        return self.active

    def auto_start(self, preferences, stopwatch: Stopwatch) -> bool:
        """
        Start automatically when the user enabled it and has a username.

        Args:
            preferences: ``sessions.preferences.UserPreferences``
            stopwatch: Stopwatch to follow

        Returns:
            Whether the live session is active afterwards
        """
        if preferences.auto_start_live_session and preferences.username:
            self.start(stopwatch)
        return self.active

    def on_tick(self, snapshot: TickSnapshot) -> None:
        if not self.active:
            return

        now = self._clock()
        if self._last_publish is not None and now - self._last_publish < self.publish_interval:
            return
        if self._pending is not None and not self._pending.done():
            return

        self._last_publish = now
        location = self.location_provider.current_coordinate() if self.location_provider else None
        self._pending = self._submit(
            self.publisher.publish, snapshot.current_lap, snapshot.best_lap, location
        )

    def _submit(self, fn, *args) -> Optional[Future]:
        try:
            future = self._executor.submit(fn, *args)
        except RuntimeError as e:
            logger.warning(f"Live update not scheduled: {e}")
            return None
        future.add_done_callback(self._on_done)
        return future

    def _on_done(self, future: Future) -> None:
        error = future.exception()
        if error is not None:
            self.failures += 1
            logger.warning(f"Live update failed: {error}")

    def close(self) -> None:
        self.stop()
        self._executor.shutdown(wait=False)
