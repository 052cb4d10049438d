"""Lock state persistence.

The lock file is the only record of "a session is active". Its creation uses
the filesystem's create-exclusive primitive so that of several processes
racing to start a session exactly one wins.
"""

import logging
import os
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from filelock import FileLock
from pydantic import ValidationError

from worktrack.tracking.errors import (
    AlreadyTracking,
    LockCorrupt,
    NotTracking,
    TrackerIOError,
)
from worktrack.tracking.types import LockState, StartTime

logger = logging.getLogger(__name__)


class LockStore(ABC):
    """Durable exclusive-acquire storage for the active session."""

    @abstractmethod
    def acquire(self, start_time: StartTime | None = None) -> StartTime:
        """Mark a session as active.

        Raises:
            AlreadyTracking: If a session is already active.
        """

    @abstractmethod
    def read(self) -> LockState:
        """Return the active session's lock state.

        Raises:
            NotTracking: If no session is active.
            LockCorrupt: If the stored lock state cannot be parsed.
        """

    @abstractmethod
    def release(self) -> None:
        """Mark the active session as finished."""

    @abstractmethod
    def exists(self) -> bool:
        """Return True if a session is active."""

    @contextmanager
    def guard(self) -> Iterator[None]:
        """Hold exclusive access to the lock state for a read-then-release cycle.

        The default does nothing. Stores shared between processes override it.
        """
        yield


class FileLockStore(LockStore):
    """Lock state stored as a small JSON document in a sentinel file.

    Example:
        store = FileLockStore("/path/to/track.lock")
        start = store.acquire()
        state = store.read()
        store.release()
    """

    def __init__(self, path: str | Path) -> None:
        """Initialize the lock store.

        Args:
            path: Path of the lock file. Parent directories are created on
                first acquire.
        """
        self._path = Path(path)
        self._guard_path = self._path.with_name(self._path.name + ".guard")
        self._guard = FileLock(str(self._guard_path))

    @property
    def path(self) -> Path:
        """Get the lock file path."""
        return self._path

    @property
    def guard_path(self) -> Path:
        """Get the path of the file lock serializing stops."""
        return self._guard_path

    def exists(self) -> bool:
        return self._path.exists()

    @contextmanager
    def guard(self) -> Iterator[None]:
        """Serialize read-then-release cycles across processes.

        Raises:
            TrackerIOError: If the guard file cannot be created or locked.
        """
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._guard.acquire()
        except OSError as exc:
            raise TrackerIOError(f"failed to lock {self._guard_path}") from exc
        try:
            yield
        finally:
            self._guard.release()

    def acquire(self, start_time: StartTime | None = None) -> StartTime:
        """Create the lock file and write the session start time into it.

        Args:
            start_time: Start of the session. Defaults to now.

        Returns:
            The recorded start time.

        Raises:
            AlreadyTracking: If the lock file already exists, including when
                another process created it first.
            TrackerIOError: If the file cannot be created or written.
        """
        if start_time is None:
            start_time = StartTime.now()
        payload = LockState(start_time=start_time).model_dump_json().encode("utf-8")

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise TrackerIOError(
                f"failed to create lock file directory: {self._path.parent}"
            ) from exc

        try:
            fd = os.open(self._path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o644)
        except FileExistsError as exc:
            raise AlreadyTracking(f"already tracking (lock file: {self._path})") from exc
        except OSError as exc:
            raise TrackerIOError(f"failed to create lock file: {self._path}") from exc

        try:
            with os.fdopen(fd, "wb") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
        except OSError as exc:
            # A half-written lock would read back as corrupt
            self._discard_partial()
            raise TrackerIOError(f"failed to write lock file: {self._path}") from exc

        logger.debug(f"Acquired lock file {self._path} at {start_time}")
        return start_time

    def read(self) -> LockState:
        """Read and parse the lock file.

        Raises:
            NotTracking: If the lock file does not exist.
            LockCorrupt: If the lock file content is not valid lock data.
            TrackerIOError: If the lock file cannot be read.
        """
        try:
            content = self._path.read_bytes()
        except FileNotFoundError as exc:
            raise NotTracking("not currently tracking") from exc
        except OSError as exc:
            raise TrackerIOError(f"failed to read lock file: {self._path}") from exc

        try:
            return LockState.model_validate_json(content)
        except ValidationError as exc:
            raise LockCorrupt(f"failed to parse lock file: {self._path}") from exc

    def release(self) -> None:
        """Delete the lock file.

        Raises:
            TrackerIOError: If the lock file cannot be deleted, including when
                it no longer exists.
        """
        try:
            self._path.unlink()
        except OSError as exc:
            raise TrackerIOError(f"failed to remove lock file: {self._path}") from exc
        logger.debug(f"Released lock file {self._path}")

    def _discard_partial(self) -> None:
        try:
            self._path.unlink()
        except OSError as exc:
            logger.warning(f"Could not remove partially written lock file {self._path}: {exc}")
