"""Command-line interface for worktrack.

COMMANDS:
---------
- start:  Begin a tracking session. Fails if one is already running.
- stop:   End the running session and append it to the records file.
- status: Show whether a session is running and for how long.
- report: Print the total tracked time over a window as HH:MM:SS.
- log:    List the recorded sessions over a window.

Each invocation performs exactly one operation against the lock file and the
records file, then exits.
"""

import argparse
import logging
import sys
from datetime import datetime, timedelta
from pathlib import Path
from typing import NoReturn

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from worktrack import __version__
from worktrack.config import settings
from worktrack.tracking import (
    AlreadyTracking,
    Last,
    Reporter,
    ReportTimespan,
    Since,
    Today,
    Tracker,
    TrackerError,
    format_duration,
)

console = Console()
err_console = Console(stderr=True)

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.WARNING
    fmt = "%(name)s: %(message)s" if verbose else "%(message)s"
    logging.basicConfig(
        level=level,
        format=fmt,
        handlers=[RichHandler(rich_tracebacks=True, console=err_console, show_path=verbose)],
    )


def _local(instant: datetime) -> str:
    return instant.astimezone().strftime(TIME_FORMAT)


def _records_path(args: argparse.Namespace) -> Path:
    if args.db_path:
        return Path(args.db_path).expanduser()
    return settings.get_records_path()


def _lockfile_path(args: argparse.Namespace) -> Path:
    if args.lockfile:
        return Path(args.lockfile).expanduser()
    return settings.get_lockfile_path()


def build_tracker(args: argparse.Namespace) -> Tracker:
    """Create the flat-file tracker selected by the command-line options."""
    return Tracker.from_paths(_records_path(args), _lockfile_path(args))


def parse_since(value: str) -> datetime:
    """Parse an ISO 8601 timestamp; naive values are local time."""
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"invalid timestamp: {value!r} (use ISO format: YYYY-MM-DDTHH:MM:SS)"
        )
    if parsed.tzinfo is None:
        parsed = parsed.astimezone()
    return parsed


def parse_hours(value: str) -> float:
    try:
        hours = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number of hours: {value!r}")
    if hours <= 0:
        raise argparse.ArgumentTypeError("number of hours must be positive")
    return hours


def timespan_from_args(args: argparse.Namespace) -> ReportTimespan:
    """Pick the report window from --today / --since / --hours."""
    if args.today:
        return Today()
    if args.since is not None:
        return Since(args.since)
    hours = args.hours if args.hours is not None else settings.report_window_hours
    return Last(timedelta(hours=hours))


def cmd_start(args: argparse.Namespace) -> None:
    """Start tracking time."""
    tracker = build_tracker(args)
    start = tracker.start()
    console.print(f"[green]Started tracking[/green] at {_local(start.instant)}")


def cmd_stop(args: argparse.Namespace) -> None:
    """Stop tracking time and record the session."""
    tracker = build_tracker(args)
    start = tracker.running()
    end = tracker.stop()
    if start is not None:
        console.print(
            f"[green]Stopped tracking[/green] at {_local(end.instant)} "
            f"({format_duration(end - start)})"
        )
    else:
        console.print(f"[green]Stopped tracking[/green] at {_local(end.instant)}")


def cmd_status(args: argparse.Namespace) -> None:
    """Show whether a session is running."""
    tracker = build_tracker(args)
    start = tracker.running()
    if start is None:
        console.print("[yellow]Not tracking[/yellow]")
        return

    elapsed = tracker.clock() - start.instant
    console.print(
        f"[green]Tracking since[/green] {_local(start.instant)} ({format_duration(elapsed)})"
    )


def cmd_report(args: argparse.Namespace) -> None:
    """Print the total tracked duration as a single line."""
    tracker = build_tracker(args)
    reporter = Reporter.for_tracker(tracker)
    total = reporter.total_duration(timespan_from_args(args))
    console.print(format_duration(total), highlight=False)


def cmd_log(args: argparse.Namespace) -> None:
    """List recorded sessions."""
    tracker = build_tracker(args)
    reporter = Reporter.for_tracker(tracker)
    records = reporter.records(timespan_from_args(args))

    if not records:
        console.print("[yellow]No sessions recorded in this window.[/yellow]")
        return

    table = Table(title="Tracked Sessions")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Start", style="cyan")
    table.add_column("End", style="cyan")
    table.add_column("Duration", style="green", justify="right")

    for index, record in enumerate(records, start=1):
        table.add_row(
            str(index),
            _local(record.start.instant),
            _local(record.end.instant),
            format_duration(record.duration),
        )

    total = sum((record.duration for record in records), timedelta())
    table.add_section()
    table.add_row("", "", "[bold]Total[/bold]", f"[bold]{format_duration(total)}[/bold]")
    console.print(table)


def _print_error(exc: Exception, args: argparse.Namespace) -> None:
    err_console.print(f"[red]Error:[/red] {escape(str(exc))}")
    suggestion = getattr(exc, "suggestion", None)
    if suggestion:
        err_console.print(f"[cyan]suggestion:[/cyan] {escape(suggestion)}")
    if isinstance(exc, AlreadyTracking):
        # A stale lock can remain after a crash between saving and unlocking
        err_console.print(
            f"[dim]If no session should be running, check 'track log' and remove "
            f"{escape(str(_lockfile_path(args)))}[/dim]"
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="track",
        description="worktrack - track working time with start/stop",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show detailed output")
    parser.add_argument(
        "-d", "--db-path",
        help="Path to the records file (default: ~/.worktrack/records.json)",
    )
    parser.add_argument(
        "-l", "--lockfile",
        help="Path to the lock file (default: ~/.worktrack/track.lock)",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    start_parser = subparsers.add_parser("start", help="Start tracking time")
    start_parser.set_defaults(func=cmd_start)

    stop_parser = subparsers.add_parser("stop", help="Stop tracking time")
    stop_parser.set_defaults(func=cmd_stop)

    status_parser = subparsers.add_parser("status", help="Show the running session")
    status_parser.set_defaults(func=cmd_status)

    report_parser = subparsers.add_parser(
        "report",
        help="Print total tracked time",
        description="Print the total tracked time as HH:MM:SS. "
                    "Defaults to the last 24 hours.",
    )
    _add_timespan_arguments(report_parser)
    report_parser.set_defaults(func=cmd_report)

    log_parser = subparsers.add_parser(
        "log",
        help="List recorded sessions",
        description="List recorded sessions. Defaults to the last 24 hours.",
    )
    _add_timespan_arguments(log_parser)
    log_parser.set_defaults(func=cmd_log)

    return parser


def _add_timespan_arguments(parser: argparse.ArgumentParser) -> None:
    window = parser.add_mutually_exclusive_group()
    window.add_argument(
        "--today", action="store_true",
        help="Sessions that started and ended today (local time)",
    )
    window.add_argument(
        "--since", type=parse_since, metavar="TIMESTAMP",
        help="Sessions started at or after TIMESTAMP (ISO 8601, local time if no offset)",
    )
    window.add_argument(
        "--hours", type=parse_hours, metavar="N",
        help="Sessions started within the last N hours",
    )


def main(argv: list[str] | None = None) -> int:
    """Run the CLI and return the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    if args.command is None:
        parser.print_help()
        return 2

    try:
        args.func(args)
    except (TrackerError, ValueError) as exc:
        _print_error(exc, args)
        return 1
    return 0


def run() -> NoReturn:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
