"""
Stopwatch controller.

Drives the :class:`TimingState` through start/stop/lap/sector/reset and runs the
periodic display tick on the owning asyncio event loop. All operations must be
called from that loop's thread.
"""

from __future__ import annotations
from typing import Callable, List, Optional
import asyncio
import logging
import time

from app.utils.time_utils import format_duration
from .schemas import LapRecord, SectorRecord, TickSnapshot, TimingSnapshot
from .state import TimingState

logger = logging.getLogger(__name__)

TickListener = Callable[[TickSnapshot], None]


class Stopwatch:
    """Lap/sector stopwatch with an observer hook for tick updates."""

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        tick_interval: float = 0.01,
    ):
        """
        Initialize stopwatch.

        Args:
            clock: Monotonic clock returning seconds
            tick_interval: Seconds between display ticks while running
        """
        if tick_interval <= 0:
            raise ValueError(f"tick_interval must be positive, got {tick_interval}")

        self._clock = clock
        self.tick_interval = tick_interval
        self.state = TimingState(now=clock())
        self._listeners: List[TickListener] = []
        self._tick_task: Optional[asyncio.Task] = None
        self._generation = 0

    @classmethod
    def from_settings(cls, timing_settings, clock: Callable[[], float] = time.monotonic) -> "Stopwatch":
        """Build a stopwatch from ``config.settings.TimingSettings``."""
        return cls(clock=clock, tick_interval=timing_settings.tick_interval_ms / 1000.0)

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------
    def add_listener(self, listener: TickListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: TickListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------
    @property
    def running(self) -> bool:
        return self.state.running

    def start(self) -> bool:
        """
        Start timing.

        Returns:
            True if the stopwatch transitioned to running
        """
        if self.state.running:
            return False

        self.state.running = True
        self.state.anchor(self._clock())
        self._schedule_ticks()

        logger.info("Stopwatch started")
        return True

    def stop(self) -> bool:
        """
        Stop timing. Recorded laps and sectors are kept and the in-progress
        lap is not closed.

        Returns:
            True if the stopwatch transitioned to stopped
        """
        if not self.state.running:
            return False

        self.state.running = False
        self._cancel_ticks()

        logger.info(f"Stopwatch stopped after {self.state.lap_count} laps")
        return True

    def lap(self) -> Optional[LapRecord]:
        """Close the current lap; ignored while stopped."""
        if not self.state.running:
            logger.debug("Lap ignored: stopwatch not running")
            return None
        return self.state.record_lap(self._clock())

    def sector(self) -> Optional[SectorRecord]:
        """Close the current sector; ignored while stopped."""
        if not self.state.running:
            logger.debug("Sector ignored: stopwatch not running")
            return None
        return self.state.record_sector(self._clock())

    def reset(self) -> None:
        """Stop if needed and discard every lap and sector."""
        self._cancel_ticks()
        self.state.clear(self._clock())
        logger.info("Stopwatch reset")

    def snapshot(self) -> TimingSnapshot:
        return self.state.snapshot()

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------
    def tick(self) -> Optional[TickSnapshot]:
        """
        Recompute elapsed totals and notify listeners.

        Returns:
            The published snapshot, or None when stopped
        """
        if not self.state.running:
            return None

        now = self._clock()
        self.state.elapsed_total = max(0.0, now - self.state.session_start)
        self.state.elapsed_lap = max(0.0, now - self.state.lap_start)

        snapshot = TickSnapshot(
            total_time=format_duration(self.state.elapsed_total),
            current_lap=format_duration(self.state.elapsed_lap),
            best_lap=format_duration(self.state.best_lap_duration),
        )

        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.warning(f"Tick listener {listener!r} failed: {e}")

        return snapshot

    def _schedule_ticks(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; ticks must be driven manually")
            return

        self._generation += 1
        self._tick_task = loop.create_task(self._run_ticks(self._generation))

    def _cancel_ticks(self) -> None:
        # Bumping the generation invalidates a tick that already woke up
        self._generation += 1
        if self._tick_task is not None:
            self._tick_task.cancel()
            self._tick_task = None

    async def _run_ticks(self, generation: int) -> None:
        while True:
            await asyncio.sleep(self.tick_interval)
            if generation != self._generation or not self.state.running:
                return
            self.tick()
