from __future__ import annotations

import json
from typing import TYPE_CHECKING

from fantasy_disc_golf.domain.scoring import Lineup, LineupSlot, LineupStatus

if TYPE_CHECKING:
    import sqlite3


class SqliteLineupRepo:
    """One lineup row per (event, team); slots are stored as a JSON list."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def upsert(self, lineup: Lineup) -> int:
        slots = json.dumps([{"pdga": s.pdga, "name": s.name} for s in lineup.slots])
        cursor = self._conn.execute(
            """INSERT INTO lineup
                   (event_code, team, status, slots_json, submitted_at, locked_at, finalized_at, total)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?)
               ON CONFLICT(event_code, team) DO UPDATE SET
                   status=excluded.status, slots_json=excluded.slots_json, submitted_at=excluded.submitted_at,
                   locked_at=excluded.locked_at, finalized_at=excluded.finalized_at, total=excluded.total""",
            (
                lineup.event_code,
                lineup.team,
                str(lineup.status),
                slots,
                lineup.submitted_at,
                lineup.locked_at,
                lineup.finalized_at,
                lineup.total,
            ),
        )
        return cursor.lastrowid  # type: ignore[return-value]

    def get(self, event_code: str, team: str) -> Lineup | None:
        row = self._conn.execute(
            "SELECT * FROM lineup WHERE event_code = ? AND team = ?", (event_code, team)
        ).fetchone()
        return self._row_to_lineup(row) if row else None

    def for_event(self, event_code: str, status: LineupStatus | None = None) -> list[Lineup]:
        sql = "SELECT * FROM lineup WHERE event_code = ?"
        params: list[object] = [event_code]
        if status is not None:
            sql += " AND status = ?"
            params.append(str(status))
        rows = self._conn.execute(sql + " ORDER BY team", params).fetchall()
        return [self._row_to_lineup(row) for row in rows]

    @staticmethod
    def _row_to_lineup(row: sqlite3.Row) -> Lineup:
        return Lineup(
            id=row["id"],
            event_code=row["event_code"],
            team=row["team"],
            slots=tuple(LineupSlot(s["pdga"], s.get("name", "")) for s in json.loads(row["slots_json"])),
            status=LineupStatus(row["status"]),
            submitted_at=row["submitted_at"],
            locked_at=row["locked_at"],
            finalized_at=row["finalized_at"],
            total=row["total"],
        )
