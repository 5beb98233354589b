"""Hole-by-hole fantasy scoring for tournament rounds.

A round sheet carries one row per player plus a ``Par`` row, with one column
per hole numbered from 1. Every hole is worth points relative to par; a
player with any unfinished or invalid hole is not scored for the round.
"""

from __future__ import annotations

import csv
import logging
import math
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from fantasy_disc_golf.db.connection import transaction
from fantasy_disc_golf.domain.audit import LoadLog
from fantasy_disc_golf.domain.errors import FdgError, IngestError
from fantasy_disc_golf.domain.result import Err, Ok, Result
from fantasy_disc_golf.domain.scoring import RoundImport, RoundScore
from fantasy_disc_golf.ingest.column_maps import NAME_HEADERS, PDGA_HEADERS
from fantasy_disc_golf.services.locks import LeagueLock, process_lock

if TYPE_CHECKING:
    import sqlite3
    from collections.abc import Mapping, Sequence

    from fantasy_disc_golf.ingest.protocols import RowSource
    from fantasy_disc_golf.repos.protocols import LoadLogRepo, RoundScoreRepo

logger = logging.getLogger(__name__)

HOLE_SENTINELS = frozenset({"", "0", "00", "888", "999", "DNF", "DQ", "WD"})
PAR_MARKER = "par"
ACE_POINTS = 12
UNDER_PAR_POINTS = {-3: 9, -2: 7, -1: 3, 0: 1}

_FETCH_ERRORS = (OSError, UnicodeDecodeError, csv.Error)


def _strokes(value: object) -> int | None:
    try:
        number = float(str(value).strip())
    except ValueError:
        return None
    if not math.isfinite(number) or not number.is_integer():
        return None
    return int(number)


def hyzerbase_points(pars: Sequence[object], holes: Sequence[object]) -> int | None:
    """Score one player's round, or ``None`` when the round cannot be scored.

    Only the first ``min(len(pars), len(holes))`` holes count. An ace is
    worth 12 whatever the par; otherwise albatross 9, eagle 7, birdie 3,
    par 1, and each stroke over par costs a point.

    Args:
        pars: Par for each hole, in hole order.
        holes: Strokes the player took on each hole, as numbers or sheet text.

    Returns:
        The round's points, or ``None`` if there are no pars or no holes, a
        hole holds a sentinel such as ``DNF``, or a stroke count is not a
        positive whole number.
    """
    if not pars:
        return None
    n = min(len(pars), len(holes))
    if n == 0:
        return None

    total = 0
    for par_value, hole_value in zip(pars[:n], holes[:n], strict=True):
        if str(hole_value if hole_value is not None else "").strip().upper() in HOLE_SENTINELS:
            return None
        par = _strokes(par_value)
        strokes = _strokes(hole_value)
        if par is None or strokes is None or strokes <= 0:
            return None
        if strokes == 1:
            total += ACE_POINTS
            continue
        diff = strokes - par
        total += UNDER_PAR_POINTS.get(diff, -diff)
    return total


def _first(row: Mapping[str, str], headers: Sequence[str]) -> str:
    for header in headers:
        value = row.get(header)
        if value not in (None, ""):
            return str(value).strip()
    return ""


def hole_columns(headers: Sequence[str]) -> list[str]:
    """Numbered hole headers in hole order."""
    numbered = [h for h in headers if h is not None and h.strip().isdigit()]
    return sorted(numbered, key=lambda h: int(h.strip()))


def score_round(
    event_code: str, round_no: int, rows: Sequence[Mapping[str, str]]
) -> tuple[list[RoundScore], int] | None:
    """Score every player row of a round sheet.

    Returns ``(scores, skipped)``, or ``None`` when the sheet has no ``Par`` row.
    Rows without a PDGA number are ignored, not counted as skipped.
    """
    holes = hole_columns(list(rows[0].keys())) if rows else []
    par_row = next(
        (r for r in rows if PAR_MARKER in (_first(r, PDGA_HEADERS).lower(), _first(r, NAME_HEADERS).lower())),
        None,
    )
    if par_row is None:
        return None
    pars = [par_row.get(h, "") for h in holes]
    while pars and not str(pars[-1] or "").strip():
        pars.pop()

    scores: list[RoundScore] = []
    skipped = 0
    for row in rows:
        if row is par_row:
            continue
        pdga = _first(row, PDGA_HEADERS)
        if not pdga:
            continue
        points = hyzerbase_points(pars, [row.get(h, "") for h in holes])
        if points is None:
            skipped += 1
            continue
        scores.append(RoundScore(event_code, round_no, pdga, _first(row, NAME_HEADERS), points))
    return scores, skipped


class ScoringService:
    """Imports round sheets into ``round_score``; one ``load_log`` row per attempt."""

    def __init__(
        self,
        conn: sqlite3.Connection,
        score_repo: RoundScoreRepo,
        load_log_repo: LoadLogRepo,
        *,
        lock: LeagueLock | None = None,
        lock_timeout: float = 25.0,
    ) -> None:
        self._conn = conn
        self._score_repo = score_repo
        self._log_repo = load_log_repo
        self._lock = lock or process_lock()
        self._lock_timeout = lock_timeout

    def import_round(self, event_code: str, round_no: int, source: RowSource) -> Result[RoundImport, FdgError]:
        """Score a round sheet and replace any earlier import of the same round.

        Args:
            event_code: Event code such as ``SFO``; matched case-insensitively.
            round_no: Round number, 1 or higher.
            source: The round sheet.

        Returns:
            ``Ok`` with scored and skipped counts, ``Err(FdgError)`` for a bad
            event code or round, or ``Err(IngestError)`` when the sheet cannot
            be read or has no ``Par`` row.
        """
        code = event_code.strip().upper()
        if not code:
            return Err(FdgError("Missing eventCode"))
        if round_no < 1:
            return Err(FdgError(f"Invalid round: {round_no}"))

        started = datetime.now(UTC).isoformat()
        try:
            rows = source.fetch()
        except _FETCH_ERRORS as exc:
            logger.error("Could not read %s: %s", source.source_detail, exc)
            return self._failed(source, started, str(exc))

        scored = score_round(code, round_no, rows)
        if scored is None:
            logger.error("No Par row in %s", source.source_detail)
            return self._failed(source, started, "Missing Par row")
        scores, skipped = scored

        with self._lock.hold(self._lock_timeout):
            with transaction(self._conn):
                written = self._score_repo.replace_round(code, round_no, scores)
            self._record(source, started, "success", written=written, skipped=skipped)

        if skipped:
            logger.warning("%s round %d: %d players not scorable", code, round_no, skipped)
        logger.info("Scored %s round %d: %d players", code, round_no, written)
        return Ok(RoundImport(event_code=code, round=round_no, scored=written, skipped=skipped))

    def event_points(self, event_code: str) -> dict[str, int]:
        return self._score_repo.event_totals(event_code.strip().upper())

    def _record(
        self, source: RowSource, started: str, status: str, *, written: int = 0, skipped: int = 0, error: str = ""
    ) -> None:
        self._log_repo.insert(
            LoadLog(
                source_type=source.source_type,
                source_detail=source.source_detail,
                target_table="round_score",
                rows_loaded=written,
                rows_skipped=skipped,
                started_at=started,
                finished_at=datetime.now(UTC).isoformat(),
                status=status,
                error_message=error or None,
            )
        )
        self._conn.commit()

    def _failed(self, source: RowSource, started: str, message: str) -> Err[IngestError]:
        self._record(source, started, "error", error=message)
        return Err(
            IngestError(
                message=message,
                source_type=source.source_type,
                source_detail=source.source_detail,
                target_table="round_score",
            )
        )
