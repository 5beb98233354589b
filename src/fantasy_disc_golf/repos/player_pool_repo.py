import sqlite3

from fantasy_disc_golf.domain.player import PoolPlayer


class SqlitePlayerPoolRepo:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def upsert(self, player: PoolPlayer) -> str:
        self._conn.execute(
            """INSERT INTO player_pool (pdga, name, division) VALUES (?, ?, ?)
               ON CONFLICT(pdga) DO UPDATE SET name=excluded.name, division=excluded.division""",
            (player.pdga, player.name, player.division),
        )
        return player.pdga

    def get(self, pdga: str) -> PoolPlayer | None:
        row = self._conn.execute("SELECT * FROM player_pool WHERE pdga = ?", (pdga,)).fetchone()
        return self._row_to_player(row) if row else None

    def find_by_name(self, name: str) -> PoolPlayer | None:
        row = self._conn.execute(
            "SELECT * FROM player_pool WHERE lower(name) = lower(?) ORDER BY pdga LIMIT 1",
            (name.strip(),),
        ).fetchone()
        return self._row_to_player(row) if row else None

    def search(self, query: str, limit: int = 25) -> list[PoolPlayer]:
        rows = self._conn.execute(
            "SELECT * FROM player_pool WHERE lower(name) LIKE lower(?) OR pdga LIKE ? ORDER BY name LIMIT ?",
            (f"%{query.strip()}%", f"{query.strip()}%", limit),
        ).fetchall()
        return [self._row_to_player(row) for row in rows]

    def all(self) -> list[PoolPlayer]:
        rows = self._conn.execute("SELECT * FROM player_pool ORDER BY name").fetchall()
        return [self._row_to_player(row) for row in rows]

    @staticmethod
    def _row_to_player(row: sqlite3.Row) -> PoolPlayer:
        return PoolPlayer(pdga=row["pdga"], name=row["name"], division=row["division"])
