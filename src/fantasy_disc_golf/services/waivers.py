from __future__ import annotations

import logging
import sqlite3
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from fantasy_disc_golf.db.connection import transaction
from fantasy_disc_golf.domain.errors import FdgError, ValidationFailure
from fantasy_disc_golf.domain.ownership import FREE_AGENT
from fantasy_disc_golf.domain.result import Err, Ok, Result
from fantasy_disc_golf.domain.waiver import (
    RequestStatus,
    StandingEntry,
    WaiverPick,
    WaiverRequest,
    WaiverRunResult,
    WaiverSubmission,
)
from fantasy_disc_golf.exceptions import FdgException
from fantasy_disc_golf.services.locks import LeagueLock, process_lock
from fantasy_disc_golf.services.waiver_engine import DEFAULT_MAX_ROUNDS, priority_order, run_waiver_rounds

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

    from fantasy_disc_golf.league.teams import TeamRegistry
    from fantasy_disc_golf.repos.protocols import (
        PlayerPoolRepo,
        StandingRepo,
        WaiverAwardRepo,
        WaiverRequestRepo,
    )
    from fantasy_disc_golf.services.alerts import AlertDispatcher
    from fantasy_disc_golf.services.ownership import OwnershipService

logger = logging.getLogger(__name__)

type RawPick = Mapping[str, object]


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


def _parse_rank(raw: object) -> int | None:
    try:
        rank = int(str(raw).strip())
    except ValueError:
        return None
    return rank or None


class WaiverRequestStore:
    """Ranked wishlists per (cycle, team).

    A resubmission voids the team's previous ACTIVE picks for the cycle; a
    waiver run rolls every ACTIVE pick for the cycle.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        request_repo: WaiverRequestRepo,
        pool_repo: PlayerPoolRepo,
        ownership: OwnershipService,
        registry: TeamRegistry,
        *,
        max_picks: int = 10,
        lock: LeagueLock | None = None,
        lock_timeout: float = 25.0,
        clock: Callable[[], str] = _now_iso,
    ) -> None:
        self._conn = conn
        self._request_repo = request_repo
        self._pool_repo = pool_repo
        self._ownership = ownership
        self._registry = registry
        self._max_picks = max_picks
        self._lock = lock or process_lock()
        self._lock_timeout = lock_timeout
        self._clock = clock

    def submit(
        self, cycle_id: str, team: str, submitted_by: str, picks: Sequence[RawPick]
    ) -> Result[WaiverSubmission, ValidationFailure]:
        with self._lock.hold(self._lock_timeout):
            return self._submit(cycle_id, team, submitted_by, picks)

    def _submit(
        self, cycle_id: str, team: str, submitted_by: str, picks: Sequence[RawPick]
    ) -> Result[WaiverSubmission, ValidationFailure]:
        cycle_id = cycle_id.strip()
        canonical = self._registry.normalize(team)
        if not cycle_id:
            return Err(ValidationFailure("Missing cycleId", errors=("Missing cycleId",)))
        if not canonical or canonical == FREE_AGENT:
            return Err(ValidationFailure("Missing team", errors=("Missing team",)))
        if not picks:
            return Err(ValidationFailure("No picks submitted", errors=("No picks submitted",)))

        snapshot = self._ownership.snapshot()
        errors: list[str] = []
        cleaned: list[WaiverPick] = []
        seen_ranks: set[int] = set()
        seen_pdgas: set[str] = set()

        for raw in picks:
            given_pdga = str(raw.get("pdga") or "").strip()
            given_name = str(raw.get("name") or "").strip()
            if not given_pdga and not given_name:
                continue
            rank = _parse_rank(raw.get("rank", ""))
            if rank is None:
                errors.append(f"Missing rank for {given_name or given_pdga} (must be 1-{self._max_picks})")
                continue
            if not 1 <= rank <= self._max_picks:
                errors.append(f"Invalid rank: {rank} (must be 1-{self._max_picks})")
                continue
            pdga, name = self._resolve(given_pdga, given_name)
            if not pdga or not name:
                errors.append(f"Not found in player pool: {given_name or given_pdga}")
                continue
            if rank in seen_ranks:
                errors.append(f"Duplicate rank submitted: {rank}")
                continue
            if pdga in seen_pdgas:
                errors.append(f"Duplicate player submitted: {name} ({pdga})")
                continue
            if self._pool_repo.get(pdga) is None:
                errors.append(f"Not found in player pool: {name} ({pdga})")
                continue
            owner = snapshot.owner_of(pdga)
            if owner and owner not in (FREE_AGENT, canonical):
                errors.append(f"Already owned: {name} ({pdga}). Current owner: {owner}")
                continue
            seen_ranks.add(rank)
            seen_pdgas.add(pdga)
            cleaned.append(WaiverPick(rank=rank, pdga=pdga, name=name))

        if errors:
            return Err(ValidationFailure(errors[0], errors=tuple(errors)))
        if not cleaned:
            message = "No valid picks (need at least 1 ranked pick)"
            return Err(ValidationFailure(message, errors=(message,)))

        cleaned.sort(key=lambda p: p.rank)
        submitted_at = self._clock()
        with transaction(self._conn):
            voided = self._request_repo.set_status_for_active(cycle_id, RequestStatus.VOID, team=canonical)
            for pick in cleaned:
                self._request_repo.append(
                    WaiverRequest(
                        cycle_id=cycle_id,
                        team=canonical,
                        submitted_by=submitted_by,
                        rank=pick.rank,
                        pdga=pick.pdga,
                        name=pick.name,
                        submitted_at=submitted_at,
                    )
                )
        logger.info(
            "Waiver picks for %s cycle %s: %d submitted, %d voided", canonical, cycle_id, len(cleaned), voided
        )
        return Ok(WaiverSubmission(cycle_id=cycle_id, team=canonical, submitted_by=submitted_by, picks=tuple(cleaned)))

    def active_by_team(self, cycle_id: str) -> dict[str, list[WaiverPick]]:
        by_team: dict[str, list[WaiverPick]] = {}
        for request in self._request_repo.active_for_cycle(cycle_id):
            team = self._registry.normalize(request.team)
            if not team or not request.pdga or not request.name:
                continue
            by_team.setdefault(team, []).append(WaiverPick(request.rank, request.pdga, request.name))
        for picks in by_team.values():
            picks.sort(key=lambda p: p.rank)
        return by_team

    def roll_for_cycle(self, cycle_id: str) -> int:
        """Mark every ACTIVE request for the cycle ROLLED. Caller owns the commit."""
        return self._request_repo.set_status_for_active(cycle_id, RequestStatus.ROLLED)

    def _resolve(self, pdga: str, name: str) -> tuple[str, str]:
        if pdga and not name:
            player = self._pool_repo.get(pdga)
            name = player.name if player else ""
        elif name and not pdga:
            player = self._pool_repo.find_by_name(name)
            pdga = player.pdga if player else ""
        return pdga, name


class WaiverService:
    """Runs a waiver cycle end to end: allocation, persistence, request roll and alerts.

    A cycle that already has award rows is never run again; the repeat call
    returns ``already_posted=True``.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        store: WaiverRequestStore,
        award_repo: WaiverAwardRepo,
        standing_repo: StandingRepo,
        ownership: OwnershipService,
        registry: TeamRegistry,
        alerts: AlertDispatcher | None = None,
        *,
        lock: LeagueLock | None = None,
        lock_timeout: float = 25.0,
        max_rounds: int = DEFAULT_MAX_ROUNDS,
        clock: Callable[[], str] = _now_iso,
    ) -> None:
        self._conn = conn
        self._store = store
        self._award_repo = award_repo
        self._standing_repo = standing_repo
        self._ownership = ownership
        self._registry = registry
        self._alerts = alerts
        self._lock = lock or process_lock()
        self._lock_timeout = lock_timeout
        self._max_rounds = max_rounds
        self._clock = clock

    def run(self, cycle_id: str, event_name: str) -> Result[WaiverRunResult, FdgError]:
        """Run a waiver cycle once, storing the awards and rolling its requests.

        Args:
            cycle_id: Cycle to run; a cycle that already has awards is not rerun.
            event_name: Event named in the award texts.

        Returns:
            ``Ok`` with the awards, or with ``already_posted`` set when the
            cycle ran before. ``Err`` when an argument is blank or the
            standings are empty.
        """
        cycle_id = cycle_id.strip()
        event_name = event_name.strip()
        if not cycle_id:
            return Err(FdgError("Missing cycleId"))
        if not event_name:
            return Err(FdgError("Missing eventName"))

        with self._lock.hold(self._lock_timeout):
            if self._award_repo.exists_for_cycle(cycle_id):
                logger.info("Waiver cycle %s already awarded; skipping", cycle_id)
                return Ok(WaiverRunResult(cycle_id=cycle_id, event_name=event_name, already_posted=True))

            standings = self._standings()
            if not standings:
                return Err(FdgError("Standings have no rows"))

            snapshot = self._ownership.snapshot()
            allocation = run_waiver_rounds(
                cycle_id,
                priority_order(standings),
                self._store.active_by_team(cycle_id),
                snapshot.is_free_agent,
                awarded_at=self._clock(),
                max_rounds=self._max_rounds,
            )

            with transaction(self._conn):
                self._award_repo.append_many(allocation.awards)
                rolled = self._store.roll_for_cycle(cycle_id)

            awarded = sum(len(p) for p in allocation.awards_by_team.values())
            logger.info(
                "Waiver cycle %s (%s): %d awards over %d rounds, %d requests rolled",
                cycle_id,
                event_name,
                awarded,
                allocation.rounds_played,
                rolled,
            )
            self._notify(cycle_id, event_name, allocation.awards_by_team)

        return Ok(
            WaiverRunResult(
                cycle_id=cycle_id,
                event_name=event_name,
                already_posted=False,
                awards=allocation.awards,
                awards_by_team=allocation.awards_by_team,
                lines=allocation.lines,
            )
        )

    def _standings(self) -> list[StandingEntry]:
        out = []
        for entry in self._standing_repo.all():
            team = self._registry.normalize(entry.team)
            if not team or team == FREE_AGENT:
                continue
            rank = entry.rank if entry.rank is not None and entry.rank > 0 else None
            out.append(StandingEntry(team=team, points=entry.points, rank=rank))
        return out

    def _notify(self, cycle_id: str, event_name: str, awards_by_team: Mapping[str, Sequence[WaiverPick]]) -> None:
        if self._alerts is None or not awards_by_team:
            return
        try:
            self._alerts.send_waiver_award_alerts(cycle_id, event_name, awards_by_team, self._alerts.new_budget())
        except (FdgException, sqlite3.Error):
            logger.exception("Waiver award alerts failed for cycle %s", cycle_id)
