# tests/unit/conftest.py
"""Shared fixtures: a fake monotonic clock with a matching sleep."""

import pytest


class FakeClock:
    """Simulated monotonic time; sleep() advances it instantly."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    """Fresh fake clock per test."""
    return FakeClock()
