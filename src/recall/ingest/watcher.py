"""Filesystem watcher that feeds transcript changes to the indexer.

watchdog callbacks only enqueue ``WatchEvent(path, kind)``; a single consumer
drains the queue. An event becomes due once its path has been quiet for
``debounce_seconds`` (so a transcript is never read mid-write), and a newer
event for the same path replaces the pending one. Sessions being indexed are
tracked in an in-flight set; their events wait for the next pass.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from recall.ingest.indexer import Indexer
from recall.ingest.parser import TRANSCRIPT_SUFFIX, session_id_for

logger = logging.getLogger(__name__)

CREATED = "created"
MODIFIED = "modified"


@dataclass(frozen=True)
class WatchEvent:
    path: Path
    kind: str
    received_at: float = 0.0


class _TranscriptHandler(FileSystemEventHandler):
    def __init__(self, watcher: SessionWatcher) -> None:
        self._watcher = watcher

    def on_created(self, event: FileSystemEvent) -> None:
        self._forward(event.src_path, CREATED, event.is_directory)

    def on_modified(self, event: FileSystemEvent) -> None:
        self._forward(event.src_path, MODIFIED, event.is_directory)

    def on_moved(self, event: FileSystemEvent) -> None:
        self._forward(event.dest_path, CREATED, event.is_directory)

    def _forward(self, raw_path: str | bytes, kind: str, is_directory: bool) -> None:
        if is_directory:
            return
        path = Path(raw_path.decode() if isinstance(raw_path, bytes) else raw_path)
        if path.suffix == TRANSCRIPT_SUFFIX:
            self._watcher.enqueue(path, kind)


class SessionWatcher:
    """Watch *sessions_path* and index transcripts as they appear or change.

    ``created`` events go through ``Indexer.index_file`` (fingerprint-checked);
    ``modified`` events force ``Indexer.reindex_file``.

    Args:
        indexer: Indexer used for every event.
        sessions_path: Directory watched recursively.
        debounce_seconds: Quiet period required before an event is processed.
        poll_interval: How often the consumer thread looks for due events.
        clock: Monotonic time source (injectable for tests).
    """

    def __init__(
        self,
        indexer: Indexer,
        sessions_path: Path | str,
        debounce_seconds: float = 2.0,
        poll_interval: float = 0.5,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._indexer = indexer
        self.sessions_path = Path(sessions_path)
        self.debounce_seconds = debounce_seconds
        self.poll_interval = poll_interval
        self._clock = clock
        self._queue: queue.Queue[WatchEvent] = queue.Queue()
        self._pending: dict[Path, WatchEvent] = {}
        self._in_flight: set[str] = set()
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._observer: Observer | None = None
        self._consumer: threading.Thread | None = None

    # ------------------------------------------------------------------
    # Producer side
    # ------------------------------------------------------------------

    def enqueue(self, path: Path | str, kind: str) -> None:
        """Record a change notification; safe to call from any thread."""
        if kind not in (CREATED, MODIFIED):
            raise ValueError(f"Unknown watch event kind: {kind!r}")
        self._queue.put(WatchEvent(path=Path(path), kind=kind, received_at=self._clock()))

    # ------------------------------------------------------------------
    # Consumer side
    # ------------------------------------------------------------------

    def process_pending(self, now: float | None = None) -> int:
        """Process every due event once. Returns the number of events handled."""
        now = self._clock() if now is None else now
        self._drain_queue()

        with self._lock:
            candidates = list(self._pending.values())
        due = sorted(
            (e for e in candidates if now - e.received_at >= self.debounce_seconds),
            key=lambda e: e.received_at,
        )
        handled = 0
        for event in due:
            session_id = session_id_for(event.path)
            with self._lock:
                if session_id in self._in_flight:
                    continue
                self._in_flight.add(session_id)
                if self._pending.get(event.path) is event:
                    del self._pending[event.path]
            try:
                self._handle(event)
                handled += 1
            finally:
                with self._lock:
                    self._in_flight.discard(session_id)
        return handled

    @property
    def pending_count(self) -> int:
        self._drain_queue()
        with self._lock:
            return len(self._pending)

    def _drain_queue(self) -> None:
        while True:
            try:
                event = self._queue.get_nowait()
            except queue.Empty:
                return
            with self._lock:
                previous = self._pending.get(event.path)
                if previous is not None and previous.kind == CREATED:
                    # A file created then written is still a new file.
                    event = WatchEvent(event.path, CREATED, event.received_at)
                self._pending[event.path] = event

    def _handle(self, event: WatchEvent) -> None:
        if not event.path.exists():
            logger.debug("Ignoring event for vanished file %s", event.path)
            return
        try:
            if event.kind == CREATED:
                logger.info("New session: %s", event.path.name)
                result = self._indexer.index_file(event.path)
            else:
                logger.info("Session updated: %s", event.path.name)
                result = self._indexer.reindex_file(event.path)
        except Exception:
            logger.exception("Error indexing %s", event.path.name)
            return
        if not result.skipped:
            logger.info("Indexed %d chunks from %s", result.chunk_count, event.path.name)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the watchdog observer and the consumer thread."""
        self._stop.clear()
        self._observer = Observer()
        self._observer.schedule(
            _TranscriptHandler(self), str(self.sessions_path), recursive=True
        )
        self._observer.start()
        self._consumer = threading.Thread(
            target=self._consume, name="recall-watch-consumer", daemon=True
        )
        self._consumer.start()
        logger.info("Watching for sessions in %s", self.sessions_path)

    def stop(self) -> None:
        """Stop watching; events still pending are dropped."""
        self._stop.set()
        if self._observer is not None:
            self._observer.stop()
            self._observer.join()
            self._observer = None
        if self._consumer is not None:
            self._consumer.join()
            self._consumer = None

    def _consume(self) -> None:
        while not self._stop.is_set():
            self.process_pending()
            self._stop.wait(self.poll_interval)
