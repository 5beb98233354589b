from __future__ import annotations

from typing import TYPE_CHECKING

from fantasy_disc_golf.domain.waiver import StandingEntry

if TYPE_CHECKING:
    import sqlite3


class SqliteStandingRepo:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def upsert(self, entry: StandingEntry) -> str:
        self._conn.execute(
            """INSERT INTO standing (team, points, rank) VALUES (?, ?, ?)
               ON CONFLICT(team) DO UPDATE SET points=excluded.points, rank=excluded.rank""",
            (entry.team, entry.points, entry.rank),
        )
        return entry.team

    def all(self) -> list[StandingEntry]:
        rows = self._conn.execute("SELECT * FROM standing ORDER BY team").fetchall()
        return [StandingEntry(team=row["team"], points=row["points"], rank=row["rank"]) for row in rows]

    def set_event_points(self, team: str, event_code: str, points: float) -> None:
        self._conn.execute(
            """INSERT INTO event_standing (team, event_code, points) VALUES (?, ?, ?)
               ON CONFLICT(team, event_code) DO UPDATE SET points=excluded.points""",
            (team, event_code, points),
        )

    def event_points(self, team: str) -> dict[str, float]:
        rows = self._conn.execute(
            "SELECT event_code, points FROM event_standing WHERE team = ? ORDER BY event_code", (team,)
        ).fetchall()
        return {row["event_code"]: row["points"] for row in rows}

    def season_total(self, team: str) -> float:
        row = self._conn.execute("SELECT SUM(points) FROM event_standing WHERE team = ?", (team,)).fetchone()
        return row[0] or 0.0
