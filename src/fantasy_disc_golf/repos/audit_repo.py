"""Append-only audit tables: webhook traffic, lineup reminder posts and CSV imports.

Column names mirror the dataclass fields, so rows are written from
``asdict`` and read back with ``**row``.
"""

import sqlite3
from dataclasses import asdict, fields
from typing import Any

from fantasy_disc_golf.domain.audit import LineupReminderLog, LoadLog, WebhookLogEntry


def _append(conn: sqlite3.Connection, table: str, record: Any) -> int:
    values = {k: v for k, v in asdict(record).items() if k != "id"}
    columns = ", ".join(values)
    params = ", ".join(f":{name}" for name in values)
    cursor = conn.execute(f"INSERT INTO {table} ({columns}) VALUES ({params})", values)  # noqa: S608
    return cursor.lastrowid  # type: ignore[return-value]


def _newest[T](conn: sqlite3.Connection, table: str, cls: type[T], limit: int) -> list[T]:
    names = ", ".join(f.name for f in fields(cls))  # type: ignore[arg-type]
    rows = conn.execute(f"SELECT {names} FROM {table} ORDER BY id DESC LIMIT ?", (limit,)).fetchall()  # noqa: S608
    return [cls(**dict(row)) for row in rows]


class SqliteWebhookLogRepo:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def insert(self, entry: WebhookLogEntry) -> int:
        return _append(self._conn, "webhook_log", entry)

    def recent(self, limit: int = 50) -> list[WebhookLogEntry]:
        return _newest(self._conn, "webhook_log", WebhookLogEntry, limit)


class SqliteLineupReminderLogRepo:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def exists(self, cycle_id: str, event_name: str) -> bool:
        found = self._conn.execute(
            "SELECT 1 FROM lineup_reminder_log WHERE cycle_id = ? AND event_name = ?",
            (cycle_id, event_name),
        ).fetchone()
        return found is not None

    def insert(self, log: LineupReminderLog) -> int:
        return _append(self._conn, "lineup_reminder_log", log)


class SqliteLoadLogRepo:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def insert(self, log: LoadLog) -> int:
        return _append(self._conn, "load_log", log)

    def get_recent(self, limit: int = 20) -> list[LoadLog]:
        return _newest(self._conn, "load_log", LoadLog, limit)
