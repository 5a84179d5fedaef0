"""Thread-safe counters for a running pipeline."""

import logging
import threading

from logwatch.models import Category

logger = logging.getLogger(__name__)


class PipelineStats:
    def __init__(self):
        self._lock = threading.Lock()
        self._lines_read = 0
        self._events_emitted = 0
        self._duplicates = 0
        self._parse_failures = 0
        self._resets = 0
        self._io_errors = 0
        self._categories: dict[str, int] = {}

    def record_line(self, parsed: bool):
        with self._lock:
            self._lines_read += 1
            if not parsed:
                self._parse_failures += 1

    def record_emitted(self, category: Category):
        with self._lock:
            self._events_emitted += 1
            self._categories[category.value] = self._categories.get(category.value, 0) + 1

    def record_duplicate(self):
        with self._lock:
            self._duplicates += 1

    def record_reset(self):
        with self._lock:
            self._resets += 1

    def record_io_error(self):
        with self._lock:
            self._io_errors += 1

    def snapshot(self) -> dict:
        with self._lock:
            return {
                "lines_read": self._lines_read,
                "events_emitted": self._events_emitted,
                "duplicates_suppressed": self._duplicates,
                "parse_failures": self._parse_failures,
                "resets": self._resets,
                "io_errors": self._io_errors,
                "categories": dict(self._categories),
            }

    def log_summary(self, path: str):
        s = self.snapshot()
        logger.info(
            "Session summary for %s: lines=%d emitted=%d duplicates=%d "
            "unparsed=%d resets=%d io_errors=%d",
            path, s["lines_read"], s["events_emitted"], s["duplicates_suppressed"],
            s["parse_failures"], s["resets"], s["io_errors"],
        )
