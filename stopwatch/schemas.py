"""
Pydantic schemas for stopwatch records.

Laps and sectors keep the raw duration alongside the display label so analytics
never has to re-parse text produced by this process.
"""

from __future__ import annotations
from typing import List, Tuple
from pydantic import BaseModel, Field

from app.utils.time_utils import format_duration, lap_label, sector_label


class LapRecord(BaseModel):
    """A completed lap."""
    index: int = Field(..., ge=1, description="1-based lap number within the run")
    duration: float = Field(..., ge=0.0, description="Lap duration in seconds")

    @property
    def time(self) -> str:
        return format_duration(self.duration)

    @property
    def label(self) -> str:
        return lap_label(self.index, self.duration)

    class Config:
        frozen = True


class SectorRecord(BaseModel):
    """A completed sector within a lap."""
    index: int = Field(..., ge=1, description="1-based sector number, restarts every lap")
    duration: float = Field(..., ge=0.0, description="Sector duration in seconds")

    @property
    def time(self) -> str:
        return format_duration(self.duration)

    @property
    def label(self) -> str:
        return sector_label(self.index, self.duration)

    class Config:
        frozen = True


class TickSnapshot(BaseModel):
    """Display values republished on every tick."""
    total_time: str = Field(..., description="Elapsed time since the last start")
    current_lap: str = Field(..., description="Elapsed time of the in-progress lap")
    best_lap: str = Field(..., description="Best completed lap so far")

    class Config:
        frozen = True


class TimingSnapshot(BaseModel):
    """Immutable copy of the timing buffers, taken when a session is saved."""
    lap_count: int = Field(0, ge=0)
    sector_count: int = Field(0, ge=0)
    best_lap_duration: float = Field(float("inf"), description="Fastest lap in seconds")
    laps: Tuple[LapRecord, ...] = Field(default_factory=tuple, description="Most recent first")
    sectors_by_lap: Tuple[Tuple[SectorRecord, ...], ...] = Field(
        default_factory=tuple,
        description="Index 0 = in-progress lap, index i = i-th most recent completed lap",
    )

    @property
    def lap_labels(self) -> List[str]:
        return [lap.label for lap in self.laps]

    @property
    def sector_labels(self) -> List[List[str]]:
        return [[sector.label for sector in bucket] for bucket in self.sectors_by_lap]

    @property
    def total_lap_duration(self) -> float:
        return sum(lap.duration for lap in self.laps)

    class Config:
        frozen = True
