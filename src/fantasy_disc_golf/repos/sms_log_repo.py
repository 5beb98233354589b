import sqlite3

from fantasy_disc_golf.domain.alerts import SmsLogEntry, SmsStatus


class SqliteSmsLogRepo:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def insert(self, entry: SmsLogEntry) -> int:
        cursor = self._conn.execute(
            """INSERT INTO sms_log
                   (sent_at, team, to_phone, alert_type, message, status, provider_id, error)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                entry.sent_at,
                entry.team,
                entry.to_phone,
                entry.alert_type,
                entry.message,
                str(entry.status),
                entry.provider_id,
                entry.error,
            ),
        )
        return cursor.lastrowid  # type: ignore[return-value]

    def recent(self, limit: int = 50) -> list[SmsLogEntry]:
        rows = self._conn.execute("SELECT * FROM sms_log ORDER BY id DESC LIMIT ?", (limit,)).fetchall()
        return [self._row_to_entry(row) for row in rows]

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> SmsLogEntry:
        return SmsLogEntry(
            id=row["id"],
            sent_at=row["sent_at"],
            team=row["team"],
            to_phone=row["to_phone"],
            alert_type=row["alert_type"],
            message=row["message"],
            status=SmsStatus(row["status"]),
            provider_id=row["provider_id"],
            error=row["error"],
        )
