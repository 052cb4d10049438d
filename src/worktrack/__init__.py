"""worktrack - start/stop work time tracking backed by flat files."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("worktrack")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

from worktrack.tracking import Reporter, Tracker, format_duration

__all__ = ["Tracker", "Reporter", "format_duration"]
