"""Exception hierarchy for the watcher.

Only configuration errors and file-open errors ever reach the host. Everything
that goes wrong while a session is running degrades to data or to a log line.
"""


class LogWatchError(Exception):
    """Base class for all watcher errors."""


class ConfigurationError(LogWatchError):
    """Raised for malformed rules or settings, before any watching begins."""


class FileAccessError(LogWatchError):
    """Raised when the log file cannot be opened for watching."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"{reason}: {path}")
        self.path = path
        self.reason = reason


class LogFileNotFoundError(FileAccessError):
    def __init__(self, path: str):
        super().__init__(path, "Log file does not exist")


class LogFilePermissionError(FileAccessError):
    def __init__(self, path: str):
        super().__init__(path, "Permission denied")
