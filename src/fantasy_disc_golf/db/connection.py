import logging
import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from fantasy_disc_golf.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_MIGRATIONS_DIR = Path(__file__).parent / "migrations"
_MEMORY = ":memory:"


def create_connection(
    path: str | Path,
    *,
    check_same_thread: bool = True,
    migrations_dir: Path | None = None,
) -> sqlite3.Connection:
    """Open the league database and bring its schema up to date.

    File databases run in WAL mode with a busy timeout so the CLI and the
    webhook can share one file.
    """
    target = _MEMORY if str(path) == _MEMORY else str(Path(path).expanduser())
    if target != _MEMORY:
        Path(target).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(target, check_same_thread=check_same_thread)
    conn.row_factory = sqlite3.Row
    if target != _MEMORY:
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA busy_timeout=5000")
    conn.execute("PRAGMA foreign_keys=ON")
    applied = apply_migrations(conn, migrations_dir or _MIGRATIONS_DIR)
    if applied:
        logger.info("Applied schema migrations %s to %s", applied, target)
    return conn


def get_schema_version(conn: sqlite3.Connection) -> int:
    """Return the current schema version, or 0 if no migrations have run."""
    try:
        row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
    except sqlite3.OperationalError:
        return 0
    return row[0] if row and row[0] is not None else 0


@contextmanager
def transaction(conn: sqlite3.Connection) -> Generator[sqlite3.Connection]:
    """Run the enclosed writes as one unit: commit on success, roll back on any error."""
    if not conn.in_transaction:
        conn.execute("BEGIN IMMEDIATE")
    try:
        yield conn
    except BaseException:
        conn.rollback()
        raise
    else:
        conn.commit()


def pending_migrations(migrations_dir: Path, current_version: int) -> list[tuple[int, Path]]:
    """Numbered ``NNN_name.sql`` files newer than ``current_version``, oldest first."""
    found: list[tuple[int, Path]] = []
    for migration in migrations_dir.glob("*.sql"):
        prefix = migration.stem.split("_", 1)[0]
        if not prefix.isdigit():
            raise ConfigurationError(f"Migration file lacks a numeric prefix: {migration.name}")
        found.append((int(prefix), migration))
    return sorted(item for item in found if item[0] > current_version)


def apply_migrations(conn: sqlite3.Connection, migrations_dir: Path) -> list[int]:
    """Apply pending migrations, each in its own transaction, and return the versions applied."""
    conn.execute(
        "CREATE TABLE IF NOT EXISTS schema_version ("
        "    version INTEGER PRIMARY KEY,"
        "    applied_at TEXT NOT NULL DEFAULT (datetime('now'))"
        ")"
    )
    conn.commit()
    applied: list[int] = []
    for version, migration in pending_migrations(migrations_dir, get_schema_version(conn)):
        body = migration.read_text().strip().rstrip(";")
        script = f"BEGIN;\n{body};\nINSERT INTO schema_version (version) VALUES ({version});\nCOMMIT;"
        try:
            conn.executescript(script)
        except sqlite3.Error:
            if conn.in_transaction:
                conn.rollback()
            logger.error("Migration %s failed", migration.name)
            raise
        applied.append(version)
    return applied
