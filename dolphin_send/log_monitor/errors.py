"""Errors raised while following the server log."""

from pathlib import Path


class LogMonitorError(Exception):
    """Base class for log monitoring failures."""


class LogFileNotFoundError(LogMonitorError):
    """The log file to follow does not exist."""

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"Log file not found: {path}")


class LogFollowError(LogMonitorError):
    """Following the log file failed and cannot continue."""
