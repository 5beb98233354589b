import sqlite3

from fantasy_disc_golf.domain.ownership import DraftAssignment


class SqliteDraftRepo:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def upsert(self, pick: DraftAssignment) -> int:
        cursor = self._conn.execute(
            """INSERT INTO draft_pick (team, pdga, name, division) VALUES (?, ?, ?, ?)
               ON CONFLICT(pdga) DO UPDATE SET team=excluded.team, name=excluded.name, division=excluded.division""",
            (pick.team, pick.pdga, pick.name, pick.division),
        )
        return cursor.lastrowid  # type: ignore[return-value]

    def all(self) -> list[DraftAssignment]:
        rows = self._conn.execute("SELECT * FROM draft_pick ORDER BY id").fetchall()
        return [self._row_to_pick(row) for row in rows]

    def count(self) -> int:
        return self._conn.execute("SELECT COUNT(*) FROM draft_pick").fetchone()[0]

    @staticmethod
    def _row_to_pick(row: sqlite3.Row) -> DraftAssignment:
        return DraftAssignment(
            id=row["id"],
            team=row["team"],
            pdga=row["pdga"],
            name=row["name"],
            division=row["division"],
        )
