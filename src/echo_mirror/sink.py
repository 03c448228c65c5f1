"""Event persistence: SQLite store and a non-blocking publisher.

The analysis path never talks to storage directly. Emitted events are
handed to an EventPublisher, which queues them without blocking and
writes them from a worker thread with its own retry policy.
"""

import logging
import queue
import random
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, List, Optional, Protocol, Union

from .models import SoundEvent, SoundType, StoredEvent

logger = logging.getLogger(__name__)

_CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS sound_events (
    id        INTEGER PRIMARY KEY AUTOINCREMENT,
    timestamp TEXT NOT NULL,
    type      TEXT NOT NULL,
    frequency REAL NOT NULL
)
"""


class SinkError(Exception):
    """Raised when a sink cannot store or read events."""


class EventSink(Protocol):
    """Persistence collaborator contract."""

    def append(self, event: SoundEvent) -> StoredEvent: ...

    def list_recent(self, limit: int = 10) -> List[StoredEvent]: ...

    def clear_all(self) -> int: ...


class SQLiteEventStore:
    """Stores sound events in a local SQLite database.

    A new connection is opened per call so the store can be used from the
    publisher's worker thread.
    """

    def __init__(self, db_path: Union[str, Path] = "echo_mirror.db"):
        self.db_path = str(db_path)
        try:
            with self._connect() as conn:
                conn.execute(_CREATE_TABLE_SQL)
        except sqlite3.Error as e:
            raise SinkError(f"Could not open event store {self.db_path}: {e}") from e
        logger.info(f"Event store ready at {self.db_path}")

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Open a connection, commit on success and always close it."""
        conn = sqlite3.connect(self.db_path)
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def append(self, event: SoundEvent) -> StoredEvent:
        """Persist one event and return it with its assigned id."""
        timestamp = datetime.fromtimestamp(event.timestamp, tz=timezone.utc).isoformat()
        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    "INSERT INTO sound_events (timestamp, type, frequency) VALUES (?, ?, ?)",
                    (timestamp, event.sound_type.value, float(event.frequency_hz)),
                )
                row_id = cursor.lastrowid
        except sqlite3.Error as e:
            raise SinkError(f"Failed to store event: {e}") from e

        return StoredEvent(id=row_id, event=event)

    def list_recent(self, limit: int = 10) -> List[StoredEvent]:
        """Return up to ``limit`` events, most recent first."""
        try:
            with self._connect() as conn:
                rows = conn.execute(
                    "SELECT id, timestamp, type, frequency FROM sound_events "
                    "ORDER BY id DESC LIMIT ?",
                    (int(limit),),
                ).fetchall()
        except sqlite3.Error as e:
            raise SinkError(f"Failed to read events: {e}") from e

        return [
            StoredEvent(
                id=row_id,
                event=SoundEvent(
                    timestamp=datetime.fromisoformat(ts).timestamp(),
                    sound_type=SoundType(kind),
                    frequency_hz=frequency,
                ),
            )
            for row_id, ts, kind, frequency in rows
        ]

    def clear_all(self) -> int:
        """Delete every stored event and return how many were removed."""
        try:
            with self._connect() as conn:
                cursor = conn.execute("DELETE FROM sound_events")
                removed = cursor.rowcount
        except sqlite3.Error as e:
            raise SinkError(f"Failed to clear events: {e}") from e

        logger.info(f"Cleared {removed} event(s)")
        return removed


class EventPublisher:
    """Bounded outbound channel drained to a sink by a worker thread.

    ``publish`` never blocks: when the queue is full the event is dropped
    with a warning. Failed writes are retried with jittered exponential
    backoff and then dropped.
    """

    _STOP = object()

    def __init__(
        self,
        sink: EventSink,
        max_queue: int = 64,
        retry_attempts: int = 3,
        retry_base_seconds: float = 0.5,
        retry_max_seconds: float = 5.0,
    ):
        """Initialize the publisher.

        Args:
            sink: Destination for events
            max_queue: Maximum number of pending events
            retry_attempts: Total attempts per event, including the first
            retry_base_seconds: Wait before the first retry
            retry_max_seconds: Cap for the backoff wait
        """
        self.sink = sink
        self.retry_attempts = max(1, retry_attempts)
        self.retry_base_seconds = retry_base_seconds
        self.retry_max_seconds = retry_max_seconds

        self._queue: "queue.Queue" = queue.Queue(maxsize=max_queue)
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

        # publish() and the worker both update the counters
        self._count_lock = threading.Lock()
        self.stored_count = 0
        self.dropped_count = 0

    def start(self) -> None:
        """Start the worker thread."""
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="event-publisher", daemon=True)
        self._thread.start()
        logger.debug("Event publisher started")

    def publish(self, event: SoundEvent) -> bool:
        """Queue an event without blocking.

        Returns:
            True if queued, False if the queue was full
        """
        try:
            self._queue.put_nowait(event)
            return True
        except queue.Full:
            with self._count_lock:
                self.dropped_count += 1
            logger.warning(f"Event queue full, dropping {event}")
            return False

    def stop(self, timeout: float = 2.0) -> None:
        """Drain pending events and stop the worker.

        If draining takes longer than ``timeout``, backoff waits are
        interrupted and the remaining events are dropped.
        """
        if not self._thread:
            return
        try:
            self._queue.put(self._STOP, timeout=timeout)
        except queue.Full:
            logger.warning("Event queue full while stopping publisher")
        self._thread.join(timeout)

        if self._thread.is_alive():
            logger.warning(f"Publisher did not drain within {timeout}s; abandoning pending events")
            self._stop.set()
            self._thread.join(timeout)

        self._thread = None
        logger.debug("Event publisher stopped")

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                item = self._queue.get(timeout=0.1)
            except queue.Empty:
                continue
            if item is self._STOP:
                break
            self._deliver(item)

    def _deliver(self, event: SoundEvent) -> None:
        for attempt in range(1, self.retry_attempts + 1):
            try:
                self.sink.append(event)
                with self._count_lock:
                    self.stored_count += 1
                return
            except Exception as e:
                if attempt == self.retry_attempts or self._stop.is_set():
                    with self._count_lock:
                        self.dropped_count += 1
                    logger.error(f"Giving up on {event} after {attempt} attempt(s): {e}")
                    return

                wait = min(self.retry_base_seconds * (2 ** (attempt - 1)), self.retry_max_seconds)
                wait *= 1 + random.uniform(-0.25, 0.25)
                logger.warning(
                    f"Storing {event} failed (attempt {attempt}/{self.retry_attempts}): "
                    f"{e}; retrying in {wait:.2f}s"
                )
                self._stop.wait(wait)
