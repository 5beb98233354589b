from __future__ import annotations

import logging
import queue
import threading
from contextlib import contextmanager
from typing import TYPE_CHECKING

from fantasy_disc_golf.db.connection import create_connection

if TYPE_CHECKING:
    import sqlite3
    from collections.abc import Generator
    from pathlib import Path

logger = logging.getLogger(__name__)


class ConnectionPool:
    """Fixed set of league database connections shared by the webhook's worker threads.

    A connection handed back with an open transaction is rolled back before it
    becomes available again, so one failed request cannot leak writes into the next.
    """

    def __init__(self, path: str | Path, *, size: int = 4) -> None:
        if size < 1:
            raise ValueError("Pool size must be at least 1")
        self._size = size
        self._closed = False
        self._close_lock = threading.Lock()
        self._idle: queue.LifoQueue[sqlite3.Connection] = queue.LifoQueue(maxsize=size)
        for _ in range(size):
            self._idle.put(create_connection(path, check_same_thread=False))
        logger.debug("League connection pool ready: %s (%d connections)", path, size)

    @property
    def size(self) -> int:
        return self._size

    @property
    def available(self) -> int:
        return self._idle.qsize()

    def get(self, *, timeout: float | None = None) -> sqlite3.Connection:
        """Check out a connection.

        Raises RuntimeError if the pool is closed and TimeoutError if every
        connection stays busy for ``timeout`` seconds.
        """
        if self._closed:
            raise RuntimeError("Connection pool is closed")
        try:
            return self._idle.get(timeout=timeout)
        except queue.Empty as e:
            logger.warning("All %d league connections busy", self._size)
            raise TimeoutError(f"No league connection free within {timeout}s") from e

    def release(self, conn: sqlite3.Connection) -> None:
        if self._closed:
            conn.close()
            return
        if conn.in_transaction:
            logger.warning("Rolling back a transaction left open on a pooled connection")
            conn.rollback()
        self._idle.put_nowait(conn)

    @contextmanager
    def connection(self, *, timeout: float | None = None) -> Generator[sqlite3.Connection]:
        conn = self.get(timeout=timeout)
        try:
            yield conn
        finally:
            self.release(conn)

    def close_all(self) -> None:
        """Close idle connections now; checked-out ones close when released."""
        with self._close_lock:
            if self._closed:
                return
            self._closed = True
        closed = 0
        while True:
            try:
                self._idle.get_nowait().close()
            except queue.Empty:
                break
            closed += 1
        logger.debug("Closed %d idle league connections", closed)
