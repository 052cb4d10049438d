"""Duration formatting."""

import math
from datetime import timedelta


def format_duration(duration: timedelta | float) -> str:
    """Format a duration as ``HH:MM:SS``.

    Partial seconds are dropped and the hours field is never wrapped into
    days, so 125 hours renders as ``125:00:00``. Negative and non-finite
    durations render as ``00:00:00``.

    Args:
        duration: A timedelta or a number of seconds

    Returns:
        Formatted string like "01:01:01"
    """
    if isinstance(duration, timedelta):
        total_seconds = int(duration.total_seconds())
    elif math.isfinite(duration):
        total_seconds = int(duration)
    else:
        return "00:00:00"

    if total_seconds < 0:
        return "00:00:00"

    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60

    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
