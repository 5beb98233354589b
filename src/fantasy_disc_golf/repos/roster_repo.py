from __future__ import annotations

from typing import TYPE_CHECKING

from fantasy_disc_golf.domain.ownership import RosterEntry

if TYPE_CHECKING:
    import sqlite3
    from collections.abc import Iterable


class SqliteRosterRepo:
    """Materialised ownership view. Always replaced wholesale, never patched."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def replace_all(self, entries: Iterable[RosterEntry]) -> int:
        self._conn.execute("DELETE FROM roster")
        rows = [(e.pdga, e.team, e.name, e.division, e.source, e.updated_at) for e in entries]
        self._conn.executemany(
            "INSERT INTO roster (pdga, team, name, division, source, updated_at) VALUES (?, ?, ?, ?, ?, ?)",
            rows,
        )
        return len(rows)

    def all(self) -> list[RosterEntry]:
        rows = self._conn.execute("SELECT * FROM roster ORDER BY team, name").fetchall()
        return [self._row_to_entry(row) for row in rows]

    def by_team(self, team: str) -> list[RosterEntry]:
        rows = self._conn.execute("SELECT * FROM roster WHERE team = ? ORDER BY name", (team,)).fetchall()
        return [self._row_to_entry(row) for row in rows]

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> RosterEntry:
        return RosterEntry(
            team=row["team"],
            pdga=row["pdga"],
            name=row["name"],
            division=row["division"],
            source=row["source"],
            updated_at=row["updated_at"],
        )
