from __future__ import annotations

import logging
import sqlite3
import threading
import time
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS ttl_entry (
    namespace  TEXT NOT NULL,
    key        TEXT NOT NULL,
    value      TEXT NOT NULL,
    expires_at REAL NOT NULL,
    PRIMARY KEY (namespace, key)
)
"""


class SqliteCacheStore:
    """TTL key-value store for SMS dedupe keys and send-rate counters.

    A single autocommit connection is shared by every thread of the process
    and serialised by a lock, so ``increment`` is atomic within the process.
    Separate processes (CLI and webhook) share state through the file.
    """

    def __init__(self, db_path: Path | str, clock: Callable[[], float] = time.time) -> None:
        if str(db_path) != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(db_path), check_same_thread=False, isolation_level=None)
        self._conn.execute("PRAGMA busy_timeout=5000")
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute(_SCHEMA)
        self._clock = clock
        self._lock = threading.Lock()

    def get(self, namespace: str, key: str) -> str | None:
        with self._lock:
            live = self._live(namespace, key, self._clock())
        return live[0] if live is not None else None

    def put(self, namespace: str, key: str, value: str, ttl_seconds: int) -> None:
        with self._lock:
            self._write(namespace, key, value, self._clock() + ttl_seconds)

    def increment(self, namespace: str, key: str, ttl_seconds: int) -> int:
        with self._lock:
            now = self._clock()
            live = self._live(namespace, key, now)
            if live is None:
                count, expires_at = 1, now + ttl_seconds
            else:
                count, expires_at = int(live[0]) + 1, live[1]
            self._write(namespace, key, str(count), expires_at)
        return count

    def invalidate(self, namespace: str, key: str | None = None) -> None:
        with self._lock:
            if key is None:
                self._conn.execute("DELETE FROM ttl_entry WHERE namespace = ?", (namespace,))
            else:
                self._conn.execute("DELETE FROM ttl_entry WHERE namespace = ? AND key = ?", (namespace, key))

    def purge_expired(self) -> int:
        """Delete every expired entry and return how many were removed."""
        with self._lock:
            cursor = self._conn.execute("DELETE FROM ttl_entry WHERE expires_at <= ?", (self._clock(),))
        if cursor.rowcount:
            logger.debug("Purged %d expired cache entries", cursor.rowcount)
        return cursor.rowcount

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def _live(self, namespace: str, key: str, now: float) -> tuple[str, float] | None:
        row = self._conn.execute(
            "SELECT value, expires_at FROM ttl_entry WHERE namespace = ? AND key = ?", (namespace, key)
        ).fetchone()
        if row is None or now >= row[1]:
            return None
        return row[0], row[1]

    def _write(self, namespace: str, key: str, value: str, expires_at: float) -> None:
        self._conn.execute(
            "INSERT INTO ttl_entry (namespace, key, value, expires_at) VALUES (?, ?, ?, ?) "
            "ON CONFLICT (namespace, key) DO UPDATE SET value = excluded.value, expires_at = excluded.expires_at",
            (namespace, key, value, expires_at),
        )
