"""Shared fixtures for tracking tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from worktrack.tracking import IntervalLog, TimeRecord, Tracker

T0 = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """A manually advanced clock."""

    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class MemoryIntervalLog(IntervalLog):
    """Interval log kept in memory, for reporter tests."""

    def __init__(self, records: list[TimeRecord] | None = None) -> None:
        self._records = list(records or [])
        self.saves = 0

    def load(self) -> list[TimeRecord]:
        return list(self._records)

    def save(self, records: list[TimeRecord]) -> None:
        self.saves += 1
        self._records = list(records)


def make_record(start: datetime, seconds: float) -> TimeRecord:
    """Build a record starting at ``start`` and lasting ``seconds``."""
    return TimeRecord(start=start, end=start + timedelta(seconds=seconds))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "db.json"


@pytest.fixture
def lockfile(tmp_path):
    return tmp_path / "lockfile"


@pytest.fixture
def tracker(db_path, lockfile) -> Tracker:
    return Tracker.from_paths(db_path, lockfile)
