"""Work time tracking core.

This package provides:
- A lock file marking the active session, created with an atomic
  create-exclusive primitive
- A JSON interval log of completed sessions, rewritten atomically
- The start/stop state machine
- Reporting of total tracked time over a window

Example:
    from worktrack.tracking import Reporter, Today, Tracker, format_duration

    tracker = Tracker.from_paths("records.json", "track.lock")
    tracker.start()
    tracker.stop()

    total = Reporter.for_tracker(tracker).total_duration(Today())
    print(format_duration(total))
"""

from worktrack.tracking.errors import (
    AlreadyTracking,
    LockCorrupt,
    LogCorrupt,
    NotTracking,
    TrackerError,
    TrackerIOError,
)
from worktrack.tracking.format import format_duration
from worktrack.tracking.lockfile import FileLockStore, LockStore
from worktrack.tracking.records import IntervalLog, JsonIntervalLog
from worktrack.tracking.reporter import (
    TWENTY_FOUR_HOURS,
    Last,
    Reporter,
    ReportTimespan,
    Since,
    Today,
)
from worktrack.tracking.tracker import Tracker
from worktrack.tracking.types import EndTime, LockState, StartTime, TimeRecord

__all__ = [
    # State machine
    "Tracker",
    # Types
    "StartTime",
    "EndTime",
    "TimeRecord",
    "LockState",
    # Storage
    "LockStore",
    "FileLockStore",
    "IntervalLog",
    "JsonIntervalLog",
    # Reporting
    "Reporter",
    "ReportTimespan",
    "Since",
    "Last",
    "Today",
    "TWENTY_FOUR_HOURS",
    "format_duration",
    # Errors
    "TrackerError",
    "AlreadyTracking",
    "NotTracking",
    "LockCorrupt",
    "LogCorrupt",
    "TrackerIOError",
]
