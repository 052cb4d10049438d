"""Aggregation of completed sessions over a time window.

The reporter only reads the interval log. A session that is still running
has no record yet and is therefore never counted.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, time, timedelta, tzinfo

from worktrack.tracking.records import IntervalLog
from worktrack.tracking.tracker import Clock, Tracker
from worktrack.tracking.types import StartTime, TimeRecord, utcnow

logger = logging.getLogger(__name__)

TWENTY_FOUR_HOURS = timedelta(hours=24)

_END_OF_DAY = time(23, 59, 59)


@dataclass(frozen=True)
class Since:
    """Sessions that started at or after ``instant``.

    A naive ``instant`` is taken to be UTC.
    """

    instant: datetime


@dataclass(frozen=True)
class Last:
    """Sessions that started within ``window`` of now."""

    window: timedelta


@dataclass(frozen=True)
class Today:
    """Sessions that started and ended between local midnight and 23:59:59.

    Sessions spanning midnight are excluded entirely.
    """


ReportTimespan = Since | Last | Today


class Reporter:
    """Computes totals over the records of an interval log.

    Example:
        reporter = Reporter(JsonIntervalLog("records.json"))
        total = reporter.total_duration(Today())
    """

    def __init__(
        self,
        interval_log: IntervalLog,
        clock: Clock | None = None,
        tz: tzinfo | None = None,
    ) -> None:
        """Initialize the reporter.

        Args:
            interval_log: The log to report on.
            clock: Returns the current time as an aware datetime.
            tz: Zone used as "local time" by ``Today``. Defaults to the
                system's local zone.
        """
        self.interval_log = interval_log
        self._clock = clock or utcnow
        self._tz = tz

    @classmethod
    def for_tracker(cls, tracker: Tracker, tz: tzinfo | None = None) -> "Reporter":
        """Create a reporter reading the same log and clock as ``tracker``."""
        return cls(tracker.interval_log, clock=tracker.clock, tz=tz)

    def records(self, timespan: ReportTimespan | None = None) -> list[TimeRecord]:
        """Return the records inside ``timespan`` in log order.

        All records are returned when no timespan is given.
        """
        records = self.interval_log.load()
        if timespan is None:
            return records
        matches = self._matcher(timespan)
        return [rec for rec in records if matches(rec)]

    def total_duration(self, timespan: ReportTimespan) -> timedelta:
        """Return the total tracked time inside ``timespan``.

        Returns ``timedelta(0)`` when no record qualifies, including when the
        log is empty or does not exist yet.
        """
        selected = self.records(timespan)
        total = sum((rec.duration for rec in selected), timedelta())
        logger.debug(f"{len(selected)} records in {timespan}, total {total}")
        return total

    def _matcher(self, timespan: ReportTimespan) -> Callable[[TimeRecord], bool]:
        if isinstance(timespan, Since):
            threshold = StartTime(timespan.instant)
            return lambda rec: rec.start >= threshold

        if isinstance(timespan, Last):
            threshold = StartTime(self._clock() - timespan.window)
            return lambda rec: rec.start >= threshold

        if isinstance(timespan, Today):
            today = self._clock().astimezone(self._tz).date()
            midnight = datetime.combine(today, time.min)
            end_of_day = datetime.combine(today, _END_OF_DAY)

            def within_today(rec: TimeRecord) -> bool:
                start_local = rec.start.to_local(self._tz).replace(tzinfo=None)
                end_local = rec.end.to_local(self._tz).replace(tzinfo=None)
                return start_local >= midnight and end_local <= end_of_day

            return within_today

        raise TypeError(f"unsupported report timespan: {timespan!r}")
