"""Time-value types shared by the tracker and the reporter.

All instants are stored in UTC. Local time only appears when a caller asks
for it through ``to_local``.
"""

from datetime import datetime, timedelta, timezone, tzinfo
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, RootModel, field_validator


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class _Instant(RootModel[datetime]):
    """An immutable UTC instant.

    Naive datetimes are taken to be UTC; aware ones are converted to UTC.
    Serializes as an RFC 3339 string such as ``2024-01-01T12:00:00Z``.
    """

    model_config = ConfigDict(frozen=True)

    @field_validator("root")
    @classmethod
    def _normalize_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @classmethod
    def now(cls):
        return cls(utcnow())

    @property
    def instant(self) -> datetime:
        """The wrapped UTC datetime."""
        return self.root

    def timestamp_millis(self) -> int:
        """Milliseconds since the Unix epoch."""
        return int(self.root.timestamp() * 1000)

    def to_local(self, tz: tzinfo | None = None) -> datetime:
        """Convert to local time, or to ``tz`` when given."""
        return self.root.astimezone(tz)

    @staticmethod
    def _coerce(other: Any) -> datetime | None:
        if isinstance(other, _Instant):
            return other.root
        if isinstance(other, datetime):
            return other
        return None

    def __lt__(self, other: Any) -> bool:
        value = self._coerce(other)
        if value is None:
            return NotImplemented
        return self.root < value

    def __le__(self, other: Any) -> bool:
        value = self._coerce(other)
        if value is None:
            return NotImplemented
        return self.root <= value

    def __gt__(self, other: Any) -> bool:
        value = self._coerce(other)
        if value is None:
            return NotImplemented
        return self.root > value

    def __ge__(self, other: Any) -> bool:
        value = self._coerce(other)
        if value is None:
            return NotImplemented
        return self.root >= value

    def __sub__(self, other: Any) -> timedelta:
        value = self._coerce(other)
        if value is None:
            return NotImplemented
        return self.root - value

    def __str__(self) -> str:
        return self.root.isoformat()


class StartTime(_Instant):
    """The start of a tracked session."""


class EndTime(_Instant):
    """The end of a tracked session."""


class TimeRecord(BaseModel):
    """A completed tracking session.

    Attributes:
        start: When the session started.
        end: When the session was stopped.
    """

    model_config = ConfigDict(frozen=True)

    start: StartTime = Field(..., description="Session start (UTC)")
    end: EndTime = Field(..., description="Session end (UTC)")

    @property
    def duration(self) -> timedelta:
        """Elapsed time between start and end."""
        return self.end - self.start


class LockState(BaseModel):
    """Contents of the lock file while a session is active."""

    model_config = ConfigDict(frozen=True)

    start_time: StartTime = Field(..., description="Start of the active session")
