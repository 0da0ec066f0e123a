"""
Timing state for the stopwatch.

Tracks the mutable lap/sector buffers and anchor timestamps of a single run.
"""

from __future__ import annotations
from typing import List, Optional
import math

from app.utils.logger import get_logger
from .schemas import LapRecord, SectorRecord, TimingSnapshot

logger = get_logger(__name__)


class TimingState:
    """Mutable timing state owned by one :class:`~stopwatch.engine.Stopwatch`."""

    def __init__(self, now: float = 0.0):
        """
        Initialize timing state.

        Args:
            now: Clock reading used for the three anchor timestamps
        """
        self.running = False
        self.session_start = now
        self.lap_start = now
        self.sector_start = now
        self.lap_count = 0
        self.sector_count = 0
        self.best_lap_duration = math.inf
        self.laps: List[LapRecord] = []
        self.sectors_by_lap: List[List[SectorRecord]] = []
        self.elapsed_total = 0.0
        self.elapsed_lap = 0.0

    def anchor(self, now: float) -> None:
        """Move session, lap and sector anchors to ``now``."""
        self.session_start = now
        self.lap_start = now
        self.sector_start = now

    def record_lap(self, now: float) -> LapRecord:
        """
        Close the in-progress lap.

        Args:
            now: Clock reading at the lap line

        Returns:
            The new lap record
        """
        lap_time = max(0.0, now - self.lap_start)
        if lap_time < self.best_lap_duration:
            self.best_lap_duration = lap_time

        self.lap_count += 1
        lap = LapRecord(index=self.lap_count, duration=lap_time)
        self.laps.insert(0, lap)
        self.sectors_by_lap.insert(0, [])

        self.lap_start = now
        self.sector_start = now
        self.sector_count = 0

        logger.debug(f"Lap {lap.index} recorded: {lap.time}")
        return lap

    def record_sector(self, now: float) -> SectorRecord:
        """
        Close the in-progress sector of the current lap.

        Args:
            now: Clock reading at the sector split

        Returns:
            The new sector record
        """
        if not self.sectors_by_lap:
            self.sectors_by_lap.append([])

        sector_time = max(0.0, now - self.sector_start)
        self.sector_count += 1
        sector = SectorRecord(index=self.sector_count, duration=sector_time)
        self.sectors_by_lap[0].insert(0, sector)
        self.sector_start = now

        logger.debug(f"Sector {sector.index} recorded: {sector.time}")
        return sector

    def clear(self, now: float) -> None:
        """Drop all recorded data and re-anchor to ``now``."""
        self.running = False
        self.laps.clear()
        self.sectors_by_lap.clear()
        self.lap_count = 0
        self.sector_count = 0
        self.best_lap_duration = math.inf
        self.elapsed_total = 0.0
        self.elapsed_lap = 0.0
        self.anchor(now)

    @property
    def best_lap(self) -> Optional[LapRecord]:
        """Fastest completed lap, if any."""
        if not self.laps:
            return None
        return min(self.laps, key=lambda lap: lap.duration)

    def snapshot(self) -> TimingSnapshot:
        """Immutable copy of the buffers; later mutation does not affect it."""
        return TimingSnapshot(
            lap_count=self.lap_count,
            sector_count=self.sector_count,
            best_lap_duration=self.best_lap_duration,
            laps=tuple(self.laps),
            sectors_by_lap=tuple(tuple(bucket) for bucket in self.sectors_by_lap),
        )
