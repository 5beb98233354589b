from __future__ import annotations

from typing import TYPE_CHECKING

from fantasy_disc_golf.domain.waiver import AwardStatus, WaiverAward

if TYPE_CHECKING:
    import sqlite3
    from collections.abc import Iterable


class SqliteWaiverAwardRepo:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def append_many(self, awards: Iterable[WaiverAward]) -> int:
        rows = [
            (
                a.cycle_id,
                a.awarded_at,
                a.team,
                a.priority_label,
                a.pdga,
                a.name,
                str(a.status),
                a.round,
                a.claim_sequence,
            )
            for a in awards
        ]
        self._conn.executemany(
            """INSERT INTO waiver_award
                   (cycle_id, awarded_at, team, priority_label, pdga, name, status, round, claim_sequence)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            rows,
        )
        return len(rows)

    def exists_for_cycle(self, cycle_id: str) -> bool:
        row = self._conn.execute("SELECT 1 FROM waiver_award WHERE cycle_id = ? LIMIT 1", (cycle_id,)).fetchone()
        return row is not None

    def for_cycle(self, cycle_id: str) -> list[WaiverAward]:
        rows = self._conn.execute("SELECT * FROM waiver_award WHERE cycle_id = ? ORDER BY id", (cycle_id,)).fetchall()
        return [self._row_to_award(row) for row in rows]

    @staticmethod
    def _row_to_award(row: sqlite3.Row) -> WaiverAward:
        return WaiverAward(
            id=row["id"],
            cycle_id=row["cycle_id"],
            awarded_at=row["awarded_at"],
            team=row["team"],
            priority_label=row["priority_label"],
            pdga=row["pdga"],
            name=row["name"],
            status=AwardStatus(row["status"]),
            round=row["round"],
            claim_sequence=row["claim_sequence"],
        )
