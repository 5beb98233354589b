import sqlite3

from fantasy_disc_golf.domain.waiver import RequestStatus, WaiverRequest


class SqliteWaiverRequestRepo:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def append(self, request: WaiverRequest) -> int:
        cursor = self._conn.execute(
            """INSERT INTO waiver_request
                   (cycle_id, submitted_at, team, submitted_by, rank, pdga, name, status)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                request.cycle_id,
                request.submitted_at,
                request.team,
                request.submitted_by,
                request.rank,
                request.pdga,
                request.name,
                str(request.status),
            ),
        )
        return cursor.lastrowid  # type: ignore[return-value]

    def active_for_cycle(self, cycle_id: str, team: str | None = None) -> list[WaiverRequest]:
        sql = "SELECT * FROM waiver_request WHERE cycle_id = ? AND status = ?"
        params: list[object] = [cycle_id, str(RequestStatus.ACTIVE)]
        if team is not None:
            sql += " AND team = ?"
            params.append(team)
        rows = self._conn.execute(sql + " ORDER BY team, rank, id", params).fetchall()
        return [self._row_to_request(row) for row in rows]

    def for_cycle(self, cycle_id: str) -> list[WaiverRequest]:
        rows = self._conn.execute(
            "SELECT * FROM waiver_request WHERE cycle_id = ? ORDER BY id",
            (cycle_id,),
        ).fetchall()
        return [self._row_to_request(row) for row in rows]

    def set_status_for_active(self, cycle_id: str, status: RequestStatus, team: str | None = None) -> int:
        sql = "UPDATE waiver_request SET status = ? WHERE cycle_id = ? AND status = ?"
        params: list[object] = [str(status), cycle_id, str(RequestStatus.ACTIVE)]
        if team is not None:
            sql += " AND team = ?"
            params.append(team)
        return self._conn.execute(sql, params).rowcount

    @staticmethod
    def _row_to_request(row: sqlite3.Row) -> WaiverRequest:
        return WaiverRequest(
            id=row["id"],
            cycle_id=row["cycle_id"],
            submitted_at=row["submitted_at"],
            team=row["team"],
            submitted_by=row["submitted_by"],
            rank=row["rank"],
            pdga=row["pdga"],
            name=row["name"],
            status=RequestStatus(row["status"]),
        )
