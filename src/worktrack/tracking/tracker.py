"""The start/stop state machine.

A tracker is either Idle (no lock file) or Tracking (lock file present,
holding the session start). The state is never cached: every operation
re-reads it from the lock store, so independent processes see each other's
transitions.
"""

import logging
from collections.abc import Callable
from datetime import datetime, timedelta
from pathlib import Path

from worktrack.tracking.errors import AlreadyTracking, NotTracking
from worktrack.tracking.lockfile import FileLockStore, LockStore
from worktrack.tracking.records import IntervalLog, JsonIntervalLog
from worktrack.tracking.types import EndTime, StartTime, TimeRecord, utcnow

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class Tracker:
    """Starts and stops tracking sessions.

    The tracker is the only component that mutates tracking state. It works
    against the ``LockStore`` and ``IntervalLog`` interfaces, so any durable
    backend implementing both can be used.

    Example:
        tracker = Tracker.from_paths("records.json", "track.lock")
        tracker.start()
        ...
        tracker.stop()
    """

    def __init__(
        self,
        lock_store: LockStore,
        interval_log: IntervalLog,
        clock: Clock | None = None,
    ) -> None:
        """Initialize the tracker.

        Args:
            lock_store: Storage for the active session.
            interval_log: Storage for completed sessions.
            clock: Returns the current time as an aware datetime. Defaults to
                the system clock in UTC.
        """
        self.lock_store = lock_store
        self.interval_log = interval_log
        self.clock = clock or utcnow

    @classmethod
    def from_paths(
        cls,
        records: str | Path,
        lockfile: str | Path,
        clock: Clock | None = None,
    ) -> "Tracker":
        """Create a tracker backed by a JSON records file and a lock file.

        Raises:
            ValueError: If the two paths would collide.
        """
        interval_log = JsonIntervalLog(records)
        lock_store = FileLockStore(lockfile)
        record_paths = {
            interval_log.path.expanduser().absolute(),
            interval_log.lock_path.expanduser().absolute(),
        }
        lock_paths = {
            lock_store.path.expanduser().absolute(),
            lock_store.guard_path.expanduser().absolute(),
        }
        if record_paths & lock_paths:
            raise ValueError(f"lock file path collides with records file: {lockfile}")
        return cls(lock_store, interval_log, clock=clock)

    def start(self) -> StartTime:
        """Start a session.

        Returns:
            The session start time.

        Raises:
            AlreadyTracking: If a session is already active. The existing
                lock file is left untouched.
            TrackerIOError: If the lock file cannot be written.
        """
        if self.lock_store.exists():
            raise AlreadyTracking("time is already being tracked")

        start_time = self.lock_store.acquire(StartTime(self.clock()))
        logger.info(f"Started tracking at {start_time}")
        return start_time

    def stop(self) -> EndTime:
        """Stop the active session and record it.

        The record is durably appended before the lock is released, so a
        failure in between leaves the session detectable rather than lost.

        Returns:
            The session end time.

        Raises:
            NotTracking: If no session is active. The log is left untouched.
            LockCorrupt: If the lock file cannot be parsed.
            LogCorrupt: If the records file cannot be parsed.
            TrackerIOError: If either file cannot be read, written or removed.
        """
        # Concurrent stops of one session must append exactly one record
        with self.lock_store.guard():
            lock_state = self.lock_store.read()
            end = EndTime(self.clock())
            record = TimeRecord(start=lock_state.start_time, end=end)

            self.interval_log.append(record)
            self.lock_store.release()

        logger.info(f"Stopped tracking at {end} ({record.duration})")
        return end

    def running(self) -> StartTime | None:
        """Return the active session's start time, or None when idle.

        Raises:
            LockCorrupt: If the lock file exists but cannot be parsed.
        """
        try:
            return self.lock_store.read().start_time
        except NotTracking:
            return None

    def elapsed(self) -> timedelta | None:
        """Time since the active session started, or None when idle."""
        start_time = self.running()
        if start_time is None:
            return None
        return self.clock() - start_time.instant

    def records(self) -> list[TimeRecord]:
        """Return all completed sessions."""
        return self.interval_log.load()
