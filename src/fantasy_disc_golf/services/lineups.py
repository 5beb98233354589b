"""Weekly lineups: submit, lock at the event deadline, finalize into standings."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from fantasy_disc_golf.db.connection import transaction
from fantasy_disc_golf.domain.errors import FdgError, ValidationFailure
from fantasy_disc_golf.domain.ownership import FREE_AGENT
from fantasy_disc_golf.domain.result import Err, Ok, Result
from fantasy_disc_golf.domain.scoring import EventFinal, Lineup, LineupSlot, LineupStatus, LockOutcome
from fantasy_disc_golf.domain.waiver import StandingEntry
from fantasy_disc_golf.services.locks import LeagueLock, process_lock

if TYPE_CHECKING:
    import sqlite3

    from fantasy_disc_golf.domain.ownership import OwnershipSnapshot
    from fantasy_disc_golf.league.teams import TeamRegistry
    from fantasy_disc_golf.repos.protocols import LineupRepo, PlayerPoolRepo, RoundScoreRepo, StandingRepo
    from fantasy_disc_golf.services.ownership import OwnershipService

logger = logging.getLogger(__name__)

DEFAULT_LINEUP_SIZE = 6


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


def _invalid(errors: Sequence[str]) -> Err[ValidationFailure]:
    return Err(ValidationFailure(errors[0], errors=tuple(errors)))


def rerank(standings: Sequence[StandingEntry]) -> list[StandingEntry]:
    """Order standings by points, best first, ties by team name.

    Ranks are renumbered 1..n only when the standings already carry ranks.
    """
    ordered = sorted(standings, key=lambda s: (-s.points, s.team))
    if not any(s.rank is not None for s in ordered):
        return ordered
    return [replace(s, rank=position) for position, s in enumerate(ordered, start=1)]


class LineupService:
    """Per-event lineups of exactly ``lineup_size`` rostered players.

    A lineup moves SUBMITTED -> LOCKED -> FINALIZED. Finalizing totals each
    locked lineup from the event's round scores and writes the team's event
    points and season total into the standings.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        lineup_repo: LineupRepo,
        score_repo: RoundScoreRepo,
        standing_repo: StandingRepo,
        pool_repo: PlayerPoolRepo,
        ownership: OwnershipService,
        registry: TeamRegistry,
        *,
        lineup_size: int = DEFAULT_LINEUP_SIZE,
        lock: LeagueLock | None = None,
        lock_timeout: float = 25.0,
        clock: Callable[[], str] = _now_iso,
    ) -> None:
        self._conn = conn
        self._lineup_repo = lineup_repo
        self._score_repo = score_repo
        self._standing_repo = standing_repo
        self._pool_repo = pool_repo
        self._ownership = ownership
        self._registry = registry
        self._lineup_size = lineup_size
        self._lock = lock or process_lock()
        self._lock_timeout = lock_timeout
        self._clock = clock

    def submit(self, event_code: str, team: str, picks: Sequence[str]) -> Result[Lineup, ValidationFailure]:
        """Store a team's lineup for an event, replacing an earlier submission.

        Args:
            event_code: Event code such as ``SFO``; stored upper-cased.
            team: Any name variant the team registry recognises.
            picks: PDGA numbers or player names; blanks are ignored.

        Returns:
            ``Ok`` with the stored lineup, or ``Err(ValidationFailure)`` listing
            every problem when the lineup is the wrong size, names a player
            outside the pool or off the team's roster, or the event is
            already locked for the team.
        """
        code = event_code.strip().upper()
        canonical = self._registry.normalize(team)
        if not code:
            return _invalid(["Missing eventCode"])
        if not canonical or canonical == FREE_AGENT:
            return _invalid(["Missing team"])

        with self._lock.hold(self._lock_timeout):
            existing = self._lineup_repo.get(code, canonical)
            if existing is not None and existing.status != LineupStatus.SUBMITTED:
                return _invalid([f"Lineup for {canonical} is already {existing.status} for {code}"])

            slots, errors = self._resolve(picks)
            if not errors:
                errors = self._check(canonical, slots, self._ownership.snapshot())
            if errors:
                return _invalid(errors)

            lineup = Lineup(event_code=code, team=canonical, slots=tuple(slots), submitted_at=self._clock())
            with transaction(self._conn):
                self._lineup_repo.upsert(lineup)
        logger.info("Lineup for %s %s: %s", canonical, code, ", ".join(s.pdga for s in slots))
        return Ok(lineup)

    def lock(self, event_code: str) -> Result[LockOutcome, FdgError]:
        """Lock every team's submitted lineup for an event.

        Teams with no lineup, or whose lineup no longer passes the size and
        roster checks, are left unlocked and reported in ``skipped``; the
        other teams still lock.
        """
        code = event_code.strip().upper()
        if not code:
            return Err(FdgError("Missing eventCode"))

        with self._lock.hold(self._lock_timeout):
            snapshot = self._ownership.snapshot()
            now = self._clock()
            locked: list[str] = []
            skipped: list[tuple[str, str]] = []
            with transaction(self._conn):
                for team in self._registry.teams:
                    lineup = self._lineup_repo.get(code, team)
                    if lineup is None:
                        skipped.append((team, "No lineup submitted"))
                        continue
                    if lineup.status != LineupStatus.SUBMITTED:
                        skipped.append((team, f"Already {lineup.status}"))
                        continue
                    errors = self._check(team, list(lineup.slots), snapshot)
                    if errors:
                        skipped.append((team, "; ".join(errors)))
                        continue
                    self._lineup_repo.upsert(replace(lineup, status=LineupStatus.LOCKED, locked_at=now))
                    locked.append(team)

        for team, reason in skipped:
            logger.warning("Lineup for %s %s not locked: %s", team, code, reason)
        logger.info("Locked %d lineups for %s", len(locked), code)
        return Ok(LockOutcome(event_code=code, locked=tuple(locked), skipped=tuple(skipped)))

    def finalize(self, event_code: str) -> Result[EventFinal, FdgError]:
        """Score the locked lineups for an event and fold them into the standings.

        Args:
            event_code: Event code such as ``SFO``.

        Returns:
            ``Ok`` with each finalized team's event total and new season
            total, or ``Err`` when no lineup is LOCKED for the event.
        """
        code = event_code.strip().upper()
        if not code:
            return Err(FdgError("Missing eventCode"))

        with self._lock.hold(self._lock_timeout):
            lineups = self._lineup_repo.for_event(code, LineupStatus.LOCKED)
            if not lineups:
                return Err(FdgError(f"No LOCKED lineups found for EventCode={code}. Nothing finalized."))

            points = self._score_repo.event_totals(code)
            now = self._clock()
            totals: dict[str, float] = {}
            season: dict[str, float] = {}
            with transaction(self._conn):
                for lineup in lineups:
                    total = float(sum(points.get(pdga, 0) for pdga in lineup.pdgas))
                    self._lineup_repo.upsert(
                        replace(lineup, status=LineupStatus.FINALIZED, finalized_at=now, total=total)
                    )
                    self._standing_repo.set_event_points(lineup.team, code, total)
                    totals[lineup.team] = total

                current = {s.team: s for s in self._standing_repo.all()}
                for team in totals:
                    season[team] = self._standing_repo.season_total(team)
                    rank = current[team].rank if team in current else None
                    current[team] = StandingEntry(team=team, points=season[team], rank=rank)
                for entry in rerank(list(current.values())):
                    self._standing_repo.upsert(entry)

        logger.info("Finalized %d lineups for %s", len(totals), code)
        return Ok(EventFinal(event_code=code, totals=totals, season_totals=season))

    def lineups(self, event_code: str) -> list[Lineup]:
        return self._lineup_repo.for_event(event_code.strip().upper())

    def _resolve(self, picks: Sequence[str]) -> tuple[list[LineupSlot], list[str]]:
        slots: list[LineupSlot] = []
        errors: list[str] = []
        for raw in picks:
            given = str(raw or "").strip()
            if not given:
                continue
            player = self._pool_repo.get(given) if given.isdigit() else self._pool_repo.find_by_name(given)
            if player is None:
                errors.append(f"Not found in player pool: {given}")
                continue
            slots.append(LineupSlot(pdga=player.pdga, name=player.name))
        return slots, errors

    def _check(self, team: str, slots: list[LineupSlot], snapshot: OwnershipSnapshot) -> list[str]:
        if len(slots) != self._lineup_size:
            return [f"Lineup must have exactly {self._lineup_size} players (found {len(slots)})"]
        errors: list[str] = []
        seen: set[str] = set()
        for slot in slots:
            if slot.pdga in seen:
                errors.append(f"Duplicate player submitted: {slot.name} ({slot.pdga})")
                continue
            seen.add(slot.pdga)
            if snapshot.owner_of(slot.pdga) != team:
                errors.append(f"Not on {team} roster: {slot.name} ({slot.pdga})")
        return errors
