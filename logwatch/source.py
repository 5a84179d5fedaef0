"""LineSource: incremental reader for one growing log file.

Tracks a byte cursor into the file. Each poll compares the file's current
fingerprint against the open handle and the cursor:

- inode at the path differs from the open handle (rotation/replacement):
  reopen, reset the cursor to 0.
- size smaller than the cursor (truncation): reset the cursor to 0.
- size unchanged but mtime moved (rewritten in place): reset the cursor to 0.

Only complete lines are consumed. A trailing partial line stays unread and
the cursor stops in front of it, so it is picked up whole on a later poll.
"""

import logging
import os
from dataclasses import dataclass
from typing import BinaryIO, Iterator, NamedTuple

from logwatch.errors import FileAccessError, LogFileNotFoundError, LogFilePermissionError
from logwatch.models import RawLine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Fingerprint:
    size: int
    mtime_ns: int
    inode: int

    @classmethod
    def from_stat(cls, st: os.stat_result) -> "Fingerprint":
        return cls(size=st.st_size, mtime_ns=st.st_mtime_ns, inode=st.st_ino)


class PollBatch(NamedTuple):
    reset: bool                 # cursor went back to 0 before these lines
    lines: Iterator[RawLine]


class LineSource:
    def __init__(self, path: str):
        self._path = os.path.abspath(path)
        self._fh: BinaryIO | None = None
        self._cursor = 0
        self._fingerprint: Fingerprint | None = None
        self._resets = 0

    @property
    def path(self) -> str:
        return self._path

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def fingerprint(self) -> Fingerprint | None:
        return self._fingerprint

    @property
    def resets(self) -> int:
        return self._resets

    @property
    def is_open(self) -> bool:
        return self._fh is not None

    def open(self) -> None:
        """Open the file for reading from the start. Raises FileAccessError."""
        self.close()
        if os.path.isdir(self._path):
            raise FileAccessError(self._path, "Path is a directory")
        try:
            fh = open(self._path, "rb")
        except FileNotFoundError:
            raise LogFileNotFoundError(self._path) from None
        except PermissionError:
            raise LogFilePermissionError(self._path) from None
        except OSError as e:
            raise FileAccessError(self._path, e.strerror or str(e)) from e

        self._fh = fh
        self._cursor = 0
        self._fingerprint = Fingerprint.from_stat(os.fstat(fh.fileno()))
        logger.info("Opened %s (%d bytes, inode=%d)",
                    self._path, self._fingerprint.size, self._fingerprint.inode)

    def close(self) -> None:
        if self._fh is not None:
            try:
                self._fh.close()
            except OSError as e:
                logger.warning("Failed to close %s: %s", self._path, e)
            self._fh = None

    def _reopen(self) -> None:
        """Swap the handle for the file now at the path. OSError propagates."""
        fh = open(self._path, "rb")
        if self._fh is not None:
            self._fh.close()
        self._fh = fh

    def poll(self) -> PollBatch:
        """Check for truncation/rotation, then return the lines appended since the last poll.

        The check runs now; reading happens lazily as the returned iterator is
        consumed. OSError from either step propagates and leaves the cursor at
        the last complete line.
        """
        if self._fh is None:
            raise RuntimeError("LineSource.poll() called before open()")

        st = os.stat(self._path)
        current = Fingerprint.from_stat(st)
        handle_inode = os.fstat(self._fh.fileno()).st_ino
        previous = self._fingerprint

        reset = False
        if current.inode != handle_inode:
            logger.info("File replaced (inode %d -> %d): %s", handle_inode, current.inode, self._path)
            self._reopen()
            reset = True
        elif current.size < self._cursor:
            logger.info("File truncated (%d < cursor %d): %s", current.size, self._cursor, self._path)
            reset = True
        elif (
            previous is not None
            and self._cursor > 0
            and current.size == previous.size
            and current.mtime_ns != previous.mtime_ns
        ):
            logger.info("File rewritten in place (size %d unchanged): %s", current.size, self._path)
            reset = True

        if reset:
            self._cursor = 0
            self._resets += 1

        self._fingerprint = current
        return PollBatch(reset=reset, lines=self._read_lines(current.size))

    def _read_lines(self, limit: int) -> Iterator[RawLine]:
        fh = self._fh
        fh.seek(self._cursor)
        while self._cursor < limit:
            start = self._cursor
            data = fh.readline()
            if not data or not data.endswith(b"\n"):
                # Partial line: leave it for the next poll.
                fh.seek(start)
                return
            self._cursor = start + len(data)
            text = data.decode("utf-8", errors="replace").rstrip("\r\n")
            if text.strip():
                yield RawLine(text=text, offset=start)
