"""
Connection pool for the relational backends.

A fixed number of read-only sqlite3 connections shared by all workers.
Connections are created lazily, checked out for exactly one query and
handed back on every exit path.
"""

import queue
import sqlite3
import logging
import threading
from contextlib import contextmanager
from pathlib import Path

from ..exceptions import BackendUnavailableError, retry_operation

# Configure logging
log = logging.getLogger("varanno")


class ConnectionPool:
    """Bounded pool of read-only sqlite3 connections."""

    def __init__(self, db_path: Path, size: int = 5, timeout: float = 30.0):
        """
        Initialize the pool.

        Args:
            db_path: Path to the sqlite database
            size: Maximum number of open connections
            timeout: Seconds to wait for a free connection before giving up
        """
        if size < 1:
            raise ValueError(f"Pool size must be positive, got {size}")
        self.db_path = Path(db_path)
        self.size = size
        self.timeout = timeout
        self._idle = queue.LifoQueue(maxsize=size)
        self._created = 0
        self._lock = threading.Lock()
        self._closed = False

    @retry_operation(max_attempts=3, retry_delay=0.5, retry_exceptions=(sqlite3.OperationalError,))
    def _connect(self) -> sqlite3.Connection:
        uri = f"{self.db_path.resolve().as_uri()}?mode=ro"
        connection = sqlite3.connect(uri, uri=True, check_same_thread=False)
        connection.row_factory = sqlite3.Row
        return connection

    def _acquire(self) -> sqlite3.Connection:
        try:
            return self._idle.get_nowait()
        except queue.Empty:
            pass
        with self._lock:
            if self._created < self.size:
                self._created += 1
                create = True
            else:
                create = False
        if create:
            try:
                return self._connect()
            except sqlite3.Error:
                with self._lock:
                    self._created -= 1
                raise
        try:
            return self._idle.get(timeout=self.timeout)
        except queue.Empty:
            raise BackendUnavailableError(
                "No database connection available",
                details=f"{self.size} connections in use after {self.timeout}s",
            )

    def _release(self, connection: sqlite3.Connection):
        if self._closed:
            connection.close()
            return
        self._idle.put_nowait(connection)

    @contextmanager
    def connection(self):
        """Check out a connection for the duration of the with-block."""
        if self._closed:
            raise BackendUnavailableError("Connection pool is closed", details=str(self.db_path))
        connection = self._acquire()
        try:
            yield connection
        finally:
            self._release(connection)

    @property
    def idle_count(self) -> int:
        return self._idle.qsize()

    def close(self):
        self._closed = True
        while True:
            try:
                self._idle.get_nowait().close()
            except queue.Empty:
                break
