"""
Pydantic schemas for saved sessions.

Persisted field names are camelCase so stored collections stay readable by the
mobile app that shares the same key-value layout.
"""

from __future__ import annotations
from datetime import datetime
from typing import List, Optional
import uuid

from pydantic import BaseModel, Field

from app.utils.time_utils import utc_now


def new_session_id() -> str:
    return str(uuid.uuid4())


class Session(BaseModel):
    """Immutable summary of one timing run."""
    id: str = Field(default_factory=new_session_id, description="Unique session identifier")
    date: datetime = Field(default_factory=utc_now, description="Save timestamp (UTC)")
    fastest_lap: str = Field(..., alias="fastestLap", description="Best lap, MM:SS:HH")
    slowest_lap: str = Field(..., alias="slowestLap", description="Slowest lap, MM:SS:HH")
    average_lap: str = Field(..., alias="averageLap", description="Mean lap, MM:SS:HH")
    consistency: str = Field(..., description="Consistency percentage or 'N/A'")
    lap_times: List[str] = Field(default_factory=list, alias="lapTimes", description="Lap labels, most recent first")
    sector_times: List[List[str]] = Field(
        default_factory=list,
        alias="sectorTimes",
        description="Sector labels grouped per lap, index 0 = lap in progress at save time",
    )
    location: Optional[str] = Field(None, description="City or place name")
    total_time: str = Field(..., alias="totalTime", description="Sum of lap times, MM:SS:HH")

    @property
    def lap_count(self) -> int:
        return len(self.lap_times)

    def to_storage(self) -> dict:
        """JSON-compatible dict using the persisted field names."""
        return self.model_dump(mode="json", by_alias=True)

    class Config:
        frozen = True
        populate_by_name = True


class WebSession(BaseModel):
    """Manually entered session waiting for (or done with) upload."""
    id: str = Field(default_factory=new_session_id)
    duration: float = Field(..., ge=0.0, description="Duration in seconds")
    notes: str = Field("", description="Free-form notes")
    timestamp: datetime = Field(default_factory=utc_now)
    is_uploaded: bool = Field(False, alias="isUploaded")

    def to_storage(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)

    class Config:
        frozen = True
        populate_by_name = True


class SessionComparisonEntry(BaseModel):
    """One row of a multi-session comparison."""
    session_id: str
    date: datetime
    location: Optional[str] = None
    lap_count: int
    fastest_lap: str
    average_lap: str
    consistency: str
    fastest_seconds: float
    average_seconds: float
    fastest_delta: float = Field(..., description="Seconds slower than the best fastest lap")
    average_delta: float = Field(..., description="Seconds slower than the best average lap")


class SessionComparison(BaseModel):
    """Side-by-side comparison of saved sessions."""
    entries: List[SessionComparisonEntry] = Field(default_factory=list)
    best_fastest_session_id: Optional[str] = None
    best_average_session_id: Optional[str] = None


class LocationSummary(BaseModel):
    """Aggregated statistics for the sessions recorded at one place."""
    location: str
    session_count: int
    lap_count: int
    best_lap: str
    average_lap: str
    last_session: datetime
