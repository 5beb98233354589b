from __future__ import annotations

from typing import TYPE_CHECKING

from fantasy_disc_golf.domain.scoring import RoundScore

if TYPE_CHECKING:
    import sqlite3
    from collections.abc import Iterable


class SqliteRoundScoreRepo:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def replace_round(self, event_code: str, round_no: int, scores: Iterable[RoundScore]) -> int:
        """Swap in the scores for one round of an event. Caller commits.

        Args:
            event_code: Upper-cased event code the round belongs to.
            round_no: Round number, starting at 1.
            scores: Every scorable player's points for the round.

        Returns:
            The number of rows written.
        """
        self._conn.execute("DELETE FROM round_score WHERE event_code = ? AND round = ?", (event_code, round_no))
        rows = [(s.event_code, s.round, s.pdga, s.name, s.points) for s in scores]
        self._conn.executemany(
            "INSERT INTO round_score (event_code, round, pdga, name, points) VALUES (?, ?, ?, ?, ?)", rows
        )
        return len(rows)

    def for_event(self, event_code: str) -> list[RoundScore]:
        rows = self._conn.execute(
            "SELECT * FROM round_score WHERE event_code = ? ORDER BY round, pdga", (event_code,)
        ).fetchall()
        return [RoundScore(row["event_code"], row["round"], row["pdga"], row["name"], row["points"]) for row in rows]

    def event_totals(self, event_code: str) -> dict[str, int]:
        rows = self._conn.execute(
            "SELECT pdga, SUM(points) AS total FROM round_score WHERE event_code = ? GROUP BY pdga", (event_code,)
        ).fetchall()
        return {row["pdga"]: row["total"] for row in rows}
