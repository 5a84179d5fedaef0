"""IngestionPipeline: one background polling session per watched file.

LineSource -> parse_line -> CategoryEngine -> Deduplicator -> listeners.

Each session owns its LineSource, its dedup set and its thread. Starting a
new watch stops and joins the previous session first, so at most one session
ever emits. A stop flag is checked at the top of every tick and under the
emit lock before each event, so once stop() returns nothing more is emitted.
"""

import logging
import os
import threading
from enum import Enum
from typing import Callable

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from logwatch.categorizer import CategoryEngine
from logwatch.config import Config
from logwatch.dedup import Deduplicator
from logwatch.models import Event, RawLine
from logwatch.parsers import parse_line
from logwatch.source import LineSource
from logwatch.stats import PipelineStats

logger = logging.getLogger(__name__)

JOIN_TIMEOUT = 5.0

EventListener = Callable[[Event], None]
ErrorListener = Callable[[Exception], None]


class PipelineState(str, Enum):
    IDLE = "idle"
    WATCHING = "watching"
    STOPPED = "stopped"


class _ChangeNotifier(FileSystemEventHandler):
    """Wakes the polling loop early when the watched file changes on disk."""

    def __init__(self, path: str, wake: threading.Event):
        super().__init__()
        self._path = path
        self._wake = wake

    def on_any_event(self, event):
        if event.is_directory:
            return
        paths = (event.src_path, getattr(event, "dest_path", None))
        if any(p and os.path.abspath(p) == self._path for p in paths):
            self._wake.set()


class WatchSession:
    """State of one continuous watch of one file."""

    def __init__(
        self,
        source: LineSource,
        engine: CategoryEngine,
        dedup: Deduplicator,
        stats: PipelineStats,
        emit: EventListener,
        report_error: ErrorListener,
        poll_interval: float,
    ):
        self.source = source
        self._engine = engine
        self._dedup = dedup
        self._stats = stats
        self._emit = emit
        self._report_error = report_error
        self._poll_interval = poll_interval
        self._stop = threading.Event()
        self._wake = threading.Event()
        self._emit_lock = threading.RLock()
        self._thread: threading.Thread | None = None
        self._observer = None
        # Entry that unstructured continuation lines belong to.
        self._entry_anchor = ""
        self._continuation = 0

    @property
    def path(self) -> str:
        return self.source.path

    @property
    def thread(self) -> threading.Thread | None:
        return self._thread

    @property
    def cancelled(self) -> bool:
        return self._stop.is_set()

    def process(self, raw: RawLine) -> Event | None:
        """Parse, classify and dedup one line. Returns None for a duplicate."""
        parsed = parse_line(raw.text)
        self._stats.record_line(parsed.parsed)
        event = Event.from_classification(parsed, self._engine.classify(parsed))
        if parsed.parsed:
            self._entry_anchor = f"{parsed.timestamp}#{parsed.counter}"
            self._continuation = 0
            anchor = None
        else:
            self._continuation += 1
            anchor = f"{self._entry_anchor}+{self._continuation}"
        if self._dedup.check_and_remember(event, anchor):
            self._stats.record_duplicate()
            logger.debug("Duplicate suppressed at offset %d", raw.offset)
            return None
        return event

    def tick(self) -> int:
        """Read everything currently available and emit it. Returns events emitted.

        OSError from the source propagates; events already emitted this tick
        stay emitted and the cursor stays behind the last consumed line.
        """
        if self.cancelled:
            return 0

        batch = self.source.poll()
        if batch.reset:
            self._dedup.clear()
            self._entry_anchor = ""
            self._continuation = 0
            self._stats.record_reset()
            logger.info("Session reset for %s, re-reading from start", self.path)

        emitted = 0
        for raw in batch.lines:
            if self.cancelled:
                break
            event = self.process(raw)
            if event is None:
                continue
            with self._emit_lock:
                if self.cancelled:
                    break
                self._emit(event)
            self._stats.record_emitted(event.category)
            emitted += 1
        return emitted

    def _run(self):
        logger.info("Watching %s (poll every %.2fs)", self.path, self._poll_interval)
        try:
            while not self.cancelled:
                try:
                    self.tick()
                except OSError as e:
                    self._stats.record_io_error()
                    logger.warning("Error reading %s: %s", self.path, e)
                    self._report_error(e)
                self._wake.wait(self._poll_interval)
                self._wake.clear()
        finally:
            self.source.close()
            logger.info("Stopped watching %s", self.path)

    def start(self, use_notifications: bool = False):
        if use_notifications:
            self._start_observer()
        self._thread = threading.Thread(
            target=self._run, name="logwatch-session", daemon=True,
        )
        self._thread.start()

    def _start_observer(self):
        observer = Observer()
        observer.schedule(
            _ChangeNotifier(self.path, self._wake),
            os.path.dirname(self.path),
            recursive=False,
        )
        try:
            observer.start()
        except OSError as e:
            logger.warning("File notifications unavailable, polling only: %s", e)
            return
        self._observer = observer
        logger.debug("Change notifications active for %s", self.path)

    def cancel(self):
        """Set the stop flag and wait out any emission already in progress."""
        self._stop.set()
        self._wake.set()
        with self._emit_lock:
            pass

    def join(self, timeout: float = JOIN_TIMEOUT):
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=timeout)
            self._observer = None
        if self._thread is None:
            self.source.close()
            return
        if self._thread is threading.current_thread():
            return
        self._thread.join(timeout=timeout)
        if self._thread.is_alive():
            logger.warning("Session thread for %s did not exit within %.1fs", self.path, timeout)


class IngestionPipeline:
    """Composes the stages and exposes subscribe/start/stop to the host."""

    def __init__(self, engine: CategoryEngine | None = None, config: Config | None = None):
        self._config = config or Config()
        self._engine = engine or CategoryEngine(extra_rules=self._config.rules)
        self._listeners: list[EventListener] = []
        self._error_listeners: list[ErrorListener] = []
        self._listeners_lock = threading.Lock()
        self._control_lock = threading.Lock()
        self._session: WatchSession | None = None
        self._state = PipelineState.IDLE
        self._stats = PipelineStats()

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def current_path(self) -> str | None:
        session = self._session
        if session is None or self._state is not PipelineState.WATCHING:
            return None
        return session.path

    @property
    def stats(self) -> PipelineStats:
        return self._stats

    @property
    def engine(self) -> CategoryEngine:
        return self._engine

    def subscribe(self, listener: EventListener) -> Callable[[], None]:
        """Register an event listener. Returns a function that unsubscribes it."""
        with self._listeners_lock:
            self._listeners.append(listener)

        def unsubscribe():
            with self._listeners_lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def subscribe_errors(self, listener: ErrorListener) -> Callable[[], None]:
        with self._listeners_lock:
            self._error_listeners.append(listener)

        def unsubscribe():
            with self._listeners_lock:
                if listener in self._error_listeners:
                    self._error_listeners.remove(listener)

        return unsubscribe

    def _dispatch(self, event: Event):
        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event)
            except Exception:
                logger.exception("Event listener %r failed", listener)

    def _dispatch_error(self, error: Exception):
        with self._listeners_lock:
            listeners = list(self._error_listeners)
        for listener in listeners:
            try:
                listener(error)
            except Exception:
                logger.exception("Error listener %r failed", listener)

    def start(self, path: str, background: bool = True):
        """Stop any current session and start watching *path*.

        Raises FileAccessError (LogFileNotFoundError, LogFilePermissionError)
        if the file cannot be opened; no session is created in that case.
        With background=False no thread is started and the host drives the
        session through poll_once(). Calling start() from an event listener
        raises RuntimeError: the listener runs on the session thread, which
        cannot join itself.
        """
        session = self._session
        if session is not None and session.thread is threading.current_thread():
            raise RuntimeError(
                "Cannot start a new watch from an event listener; "
                "call stop() and start from the host thread"
            )
        with self._control_lock:
            self._teardown()

            source = LineSource(path)
            source.open()

            self._stats = PipelineStats()
            session = WatchSession(
                source=source,
                engine=self._engine,
                dedup=Deduplicator(self._config.dedup_key_length, self._config.dedup_max_keys),
                stats=self._stats,
                emit=self._dispatch,
                report_error=self._dispatch_error,
                poll_interval=self._config.poll_interval,
            )
            if background:
                session.start(use_notifications=self._config.use_notifications)
            self._session = session
            self._state = PipelineState.WATCHING

    def stop(self):
        """Stop the current session. Idempotent."""
        session = self._session
        if session is not None and session.thread is threading.current_thread():
            # Called from a listener: the flag alone halts emission, and
            # joining our own thread is impossible.
            session.cancel()
            self._state = PipelineState.STOPPED
            return
        with self._control_lock:
            self._teardown()
            self._state = PipelineState.STOPPED

    def _teardown(self):
        session = self._session
        if session is None:
            return
        self._session = None
        session.cancel()
        session.join()
        self._stats.log_summary(session.path)
        self._state = PipelineState.STOPPED

    def poll_once(self) -> int:
        """Run one tick of a foreground session (started with background=False)."""
        session = self._session
        if session is None or self._state is not PipelineState.WATCHING:
            raise RuntimeError("No active watch session")
        if session.thread is not None:
            raise RuntimeError("Session is polled by its background thread")
        return session.tick()
