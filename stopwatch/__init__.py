"""
Lap/Sector Stopwatch Engine.

Timing state machine with lap and sector splits and a periodic display tick.
"""

from .engine import Stopwatch, TickListener
from .state import TimingState
from .schemas import LapRecord, SectorRecord, TickSnapshot, TimingSnapshot

__all__ = [
    "Stopwatch",
    "TickListener",
    "TimingState",
    "LapRecord",
    "SectorRecord",
    "TickSnapshot",
    "TimingSnapshot",
]
