import sqlite3

from fantasy_disc_golf.domain.alerts import AlertSubscription


class SqliteSubscriptionRepo:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def upsert(self, sub: AlertSubscription) -> str:
        self._conn.execute(
            """INSERT INTO alert_subscription
                   (team, phone_e164, enabled, free_agents, waiver_awards, withdrawals,
                    lineup_reminders, opt_out, created_at, updated_at, last_sms_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
               ON CONFLICT(team) DO UPDATE SET
                   phone_e164=excluded.phone_e164,
                   enabled=excluded.enabled,
                   free_agents=excluded.free_agents,
                   waiver_awards=excluded.waiver_awards,
                   withdrawals=excluded.withdrawals,
                   lineup_reminders=excluded.lineup_reminders,
                   opt_out=excluded.opt_out,
                   updated_at=excluded.updated_at""",
            (
                sub.team,
                sub.phone_e164,
                int(sub.enabled),
                int(sub.free_agents),
                int(sub.waiver_awards),
                int(sub.withdrawals),
                int(sub.lineup_reminders),
                int(sub.opt_out),
                sub.created_at,
                sub.updated_at,
                sub.last_sms_at,
            ),
        )
        return sub.team

    def get(self, team: str) -> AlertSubscription | None:
        row = self._conn.execute("SELECT * FROM alert_subscription WHERE team = ?", (team,)).fetchone()
        return self._row_to_subscription(row) if row else None

    def by_phone(self, phone_e164: str) -> list[AlertSubscription]:
        rows = self._conn.execute(
            "SELECT * FROM alert_subscription WHERE phone_e164 = ? ORDER BY team",
            (phone_e164,),
        ).fetchall()
        return [self._row_to_subscription(row) for row in rows]

    def all(self) -> list[AlertSubscription]:
        rows = self._conn.execute("SELECT * FROM alert_subscription ORDER BY team").fetchall()
        return [self._row_to_subscription(row) for row in rows]

    def set_opt_out(self, phone_e164: str, opt_out: bool, updated_at: str) -> int:
        # Opting out also disables; opting back in re-enables.
        return self._conn.execute(
            "UPDATE alert_subscription SET opt_out = ?, enabled = ?, updated_at = ? WHERE phone_e164 = ?",
            (int(opt_out), int(not opt_out), updated_at, phone_e164),
        ).rowcount

    def touch_last_sms(self, team: str, sent_at: str) -> None:
        self._conn.execute("UPDATE alert_subscription SET last_sms_at = ? WHERE team = ?", (sent_at, team))

    @staticmethod
    def _row_to_subscription(row: sqlite3.Row) -> AlertSubscription:
        return AlertSubscription(
            team=row["team"],
            phone_e164=row["phone_e164"],
            enabled=bool(row["enabled"]),
            free_agents=bool(row["free_agents"]),
            waiver_awards=bool(row["waiver_awards"]),
            withdrawals=bool(row["withdrawals"]),
            lineup_reminders=bool(row["lineup_reminders"]),
            opt_out=bool(row["opt_out"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            last_sms_at=row["last_sms_at"],
        )
