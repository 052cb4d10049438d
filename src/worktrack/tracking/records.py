"""JSON file persistence for completed tracking sessions.

The whole file is the unit of persistence: every save serializes the full
list and atomically replaces the previous file, so a crash mid-write leaves
either the old log or the new one on disk, never a truncated mix.
"""

import logging
import os
import tempfile
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from filelock import FileLock
from pydantic import TypeAdapter, ValidationError

from worktrack.tracking.errors import LogCorrupt, TrackerIOError
from worktrack.tracking.types import TimeRecord

logger = logging.getLogger(__name__)

_RECORDS = TypeAdapter(list[TimeRecord])


class IntervalLog(ABC):
    """Ordered, durable list of completed sessions."""

    @abstractmethod
    def load(self) -> list[TimeRecord]:
        """Return all records in insertion order.

        Raises:
            LogCorrupt: If the stored log cannot be parsed.
        """

    @abstractmethod
    def save(self, records: list[TimeRecord]) -> None:
        """Replace the stored log with ``records``."""

    def append(self, record: TimeRecord) -> None:
        """Add one record to the end of the log."""
        records = self.load()
        records.append(record)
        self.save(records)


class JsonIntervalLog(IntervalLog):
    """Interval log stored as a JSON array of ``{"start", "end"}`` objects.

    Writes are serialized with a ``filelock`` on a sibling ``<name>.lock``
    file. Reads take no lock and never create files. Writers are still
    expected to hold the session lock (see ``FileLockStore``) before
    appending.

    Example:
        log = JsonIntervalLog("/path/to/records.json")
        records = log.load()
        log.save(records)
    """

    def __init__(self, path: str | Path) -> None:
        """Initialize the interval log.

        Args:
            path: Path to the JSON records file. It does not need to exist.
        """
        self._path = Path(path)
        self._lock_path = self._path.with_name(self._path.name + ".lock")
        self._lock = FileLock(str(self._lock_path))

    @property
    def path(self) -> Path:
        """Get the records file path."""
        return self._path

    @property
    def lock_path(self) -> Path:
        """Get the path of the file lock guarding the records file."""
        return self._lock_path

    @contextmanager
    def _exclusive(self) -> Iterator[None]:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._lock.acquire()
        except OSError as exc:
            raise TrackerIOError(f"failed to lock records file: {self._path}") from exc
        try:
            yield
        finally:
            self._lock.release()

    def _read_records(self) -> list[TimeRecord]:
        try:
            content = self._path.read_bytes()
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise TrackerIOError(f"failed to read records file: {self._path}") from exc

        if not content.strip():
            return []

        try:
            return _RECORDS.validate_json(content)
        except ValidationError as exc:
            raise LogCorrupt(f"failed to parse records file: {self._path}") from exc

    def _write_records(self, records: list[TimeRecord]) -> None:
        content = _RECORDS.dump_json(records, indent=2)

        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent
            )
        except OSError as exc:
            raise TrackerIOError(f"failed to create temporary file next to {self._path}") from exc

        try:
            with os.fdopen(fd, "wb") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self._path)
        except OSError as exc:
            _remove_temporary(Path(tmp_name))
            raise TrackerIOError(f"failed to write records file: {self._path}") from exc

        _fsync_directory(self._path.parent)

    def load(self) -> list[TimeRecord]:
        """Load all records.

        Returns:
            Records in insertion order. Empty if the file is missing or empty.

        Raises:
            LogCorrupt: If the file has content that is not a valid log.
            TrackerIOError: If the file cannot be read.
        """
        # Saves replace the file atomically, so reading needs no lock
        records = self._read_records()
        logger.debug(f"Loaded {len(records)} records from {self._path}")
        return records

    def save(self, records: list[TimeRecord]) -> None:
        """Atomically overwrite the records file.

        Raises:
            TrackerIOError: If the file cannot be written. The previous
                content is left untouched.
        """
        with self._exclusive():
            self._write_records(records)
            logger.debug(f"Saved {len(records)} records to {self._path}")

    def append(self, record: TimeRecord) -> None:
        """Append one record, rewriting the whole file.

        Raises:
            LogCorrupt: If the existing file is not a valid log.
            TrackerIOError: If the file cannot be read or written.
        """
        with self._exclusive():
            records = self._read_records()
            records.append(record)
            self._write_records(records)
            logger.debug(f"Appended record {record.start} -> {record.end} to {self._path}")


def _remove_temporary(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning(f"Could not remove temporary file {path}: {exc}")


def _fsync_directory(directory: Path) -> None:
    """Flush a directory entry so a rename survives power loss (POSIX only)."""
    if not hasattr(os, "O_DIRECTORY"):
        return
    try:
        fd = os.open(directory, os.O_RDONLY | os.O_DIRECTORY)
    except OSError as exc:
        logger.debug(f"Could not open {directory} for fsync: {exc}")
        return
    try:
        os.fsync(fd)
    except OSError as exc:
        logger.debug(f"Could not fsync {directory}: {exc}")
    finally:
        os.close(fd)
