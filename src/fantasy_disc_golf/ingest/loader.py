from __future__ import annotations

import csv
import logging
import sqlite3
import time
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from fantasy_disc_golf.db.connection import transaction
from fantasy_disc_golf.domain.audit import LoadLog
from fantasy_disc_golf.domain.errors import IngestError
from fantasy_disc_golf.domain.result import Err, Ok, Result

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from fantasy_disc_golf.ingest.protocols import RowSource
    from fantasy_disc_golf.repos.protocols import LoadLogRepo

logger = logging.getLogger(__name__)

_LOAD_ERRORS = (sqlite3.Error, ValueError, KeyError, OverflowError)
_FETCH_ERRORS = (OSError, UnicodeDecodeError, csv.Error)


def _now() -> str:
    return datetime.now(UTC).isoformat()


class Loader:
    """Copies rows from a source into one table.

    ``row_mapper`` returns ``None`` for rows that should be skipped; skipped
    rows are counted, not fatal. Any other failure rolls back the whole load.
    Every attempt, successful or not, leaves one row in ``load_log``.
    """

    def __init__(
        self,
        source: RowSource,
        writer: Callable[[Any], object],
        load_log_repo: LoadLogRepo,
        row_mapper: Callable[[dict[str, str]], Any | None],
        target_table: str,
        *,
        conn: sqlite3.Connection,
        required_columns: Sequence[Sequence[str]] = (),
    ) -> None:
        self._source = source
        self._write = writer
        self._log_repo = load_log_repo
        self._map = row_mapper
        self._table = target_table
        self._conn = conn
        self._required = required_columns

    def load(self) -> Result[LoadLog, IngestError]:
        started = _now()
        clock = time.perf_counter()
        logger.info("Importing %s into %s", self._source.source_detail, self._table)

        try:
            rows = self._source.fetch()
        except _FETCH_ERRORS as exc:
            logger.error("Could not read %s: %s", self._source.source_detail, exc)
            return self._failed(started, str(exc))

        missing = self._missing_columns(rows)
        if missing:
            message = "Missing required column: " + "; ".join(" or ".join(group) for group in missing)
            logger.error("%s in %s", message, self._source.source_detail)
            return self._failed(started, message)

        written = skipped = 0
        try:
            with transaction(self._conn):
                for row in rows:
                    record = self._map(row)
                    if record is None:
                        skipped += 1
                        continue
                    self._write(record)
                    written += 1
        except _LOAD_ERRORS as exc:
            logger.error("Import into %s aborted at row %d: %s", self._table, written + skipped + 1, exc)
            return self._failed(started, str(exc))

        if skipped:
            logger.warning("Skipped %d malformed rows importing into %s", skipped, self._table)
        log = self._record(started, "success", written=written, skipped=skipped)
        logger.info("Imported %d rows into %s (%.1fs)", written, self._table, time.perf_counter() - clock)
        return Ok(log)

    def _missing_columns(self, rows: list[dict[str, str]]) -> list[Sequence[str]]:
        if not rows:
            return []
        present = rows[0].keys()
        return [group for group in self._required if not any(name in present for name in group)]

    def _record(
        self, started: str, status: str, *, written: int = 0, skipped: int = 0, error: str | None = None
    ) -> LoadLog:
        log = LoadLog(
            source_type=self._source.source_type,
            source_detail=self._source.source_detail,
            target_table=self._table,
            rows_loaded=written,
            rows_skipped=skipped,
            started_at=started,
            finished_at=_now(),
            status=status,
            error_message=error,
        )
        self._log_repo.insert(log)
        self._conn.commit()
        return log

    def _failed(self, started: str, message: str) -> Err[IngestError]:
        self._record(started, "error", error=message)
        return Err(
            IngestError(
                message=message,
                source_type=self._source.source_type,
                source_detail=self._source.source_detail,
                target_table=self._table,
            )
        )
