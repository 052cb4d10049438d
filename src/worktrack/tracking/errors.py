"""Errors raised by the tracking core.

Every error carries an optional ``suggestion``: a short, actionable hint the
CLI prints below the error message.
"""


class TrackerError(Exception):
    """Base class for all tracking errors."""

    default_suggestion: str | None = None

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        super().__init__(message)
        self.suggestion = suggestion if suggestion is not None else self.default_suggestion


class AlreadyTracking(TrackerError):
    """A session is already active."""

    default_suggestion = "run 'track stop' to end the current session first"


class NotTracking(TrackerError):
    """No session is active."""

    default_suggestion = "run 'track start' to begin a session"


class LockCorrupt(TrackerError):
    """The lock file exists but does not contain valid lock data."""

    default_suggestion = "your lock file may be empty or corrupted. delete it and then try again"


class LogCorrupt(TrackerError):
    """The records file exists but does not contain a valid interval log."""

    default_suggestion = "your records file is corrupted. repair or move it aside manually"


class TrackerIOError(TrackerError):
    """A filesystem operation on the lock file or records file failed."""

    default_suggestion = "make sure you have read and write permissions and enough disk space"
