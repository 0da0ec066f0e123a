"""Shared test fixtures."""

from concurrent.futures import Executor, Future

import pytest

from sessions.store import MemoryKeyValueStore
from stopwatch.engine import Stopwatch


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ImmediateExecutor(Executor):
    """Executor running submitted work synchronously."""

    def submit(self, fn, *args, **kwargs):
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future


@pytest.fixture
def clock():
    """Fake clock starting at t=1000s."""
    return FakeClock()


@pytest.fixture
def stopwatch(clock):
    """Stopwatch driven by the fake clock (ticks driven manually)."""
    return Stopwatch(clock=clock)


@pytest.fixture
def store():
    """Empty in-memory key-value store."""
    return MemoryKeyValueStore()


@pytest.fixture
def immediate_executor():
    return ImmediateExecutor()


@pytest.fixture
def run_laps(stopwatch, clock):
    """Start the stopwatch and complete one lap per given duration."""

    def _run(*durations):
        stopwatch.start()
        for duration in durations:
            clock.advance(duration)
            stopwatch.lap()
        return stopwatch

    return _run
