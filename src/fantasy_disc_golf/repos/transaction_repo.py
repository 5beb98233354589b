import sqlite3

from fantasy_disc_golf.domain.transaction import Transaction, TransactionType


class SqliteTransactionRepo:
    """Append-only roster transaction history. Row order (by id) is history order."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def append(self, tx: Transaction) -> int:
        cursor = self._conn.execute(
            """INSERT INTO roster_transaction
                   (occurred_at, type, team, pdga, name, from_team, to_team, notes)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                tx.occurred_at,
                str(tx.type),
                tx.team,
                tx.pdga,
                tx.name,
                tx.from_team,
                tx.to_team,
                tx.notes,
            ),
        )
        return cursor.lastrowid  # type: ignore[return-value]

    def all(self) -> list[Transaction]:
        rows = self._conn.execute("SELECT * FROM roster_transaction ORDER BY id").fetchall()
        return [tx for tx in (self._row_to_transaction(row) for row in rows) if tx is not None]

    def last_id(self) -> int:
        row = self._conn.execute("SELECT MAX(id) FROM roster_transaction").fetchone()
        return row[0] or 0

    @staticmethod
    def _row_to_transaction(row: sqlite3.Row) -> Transaction | None:
        try:
            tx_type = TransactionType(row["type"].strip().upper())
        except ValueError:
            return None
        return Transaction(
            id=row["id"],
            occurred_at=row["occurred_at"],
            type=tx_type,
            team=row["team"],
            pdga=row["pdga"],
            name=row["name"],
            from_team=row["from_team"],
            to_team=row["to_team"],
            notes=row["notes"],
        )
