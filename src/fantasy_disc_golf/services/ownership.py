from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from fantasy_disc_golf.domain.ownership import FREE_AGENT, OwnershipSnapshot, RosterEntry
from fantasy_disc_golf.domain.transaction import TransactionType

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from fantasy_disc_golf.domain.ownership import DraftAssignment
    from fantasy_disc_golf.domain.player import PoolPlayer
    from fantasy_disc_golf.domain.transaction import Transaction
    from fantasy_disc_golf.league.teams import TeamRegistry
    from fantasy_disc_golf.repos.protocols import DraftRepo, PlayerPoolRepo, RosterRepo, TransactionRepo

logger = logging.getLogger(__name__)


class _PoolIndex:
    def __init__(self, pool: Iterable[PoolPlayer]) -> None:
        self._by_pdga: dict[str, PoolPlayer] = {}
        self._pdga_by_name: dict[str, str] = {}
        for player in pool:
            self._by_pdga.setdefault(player.pdga, player)
            self._pdga_by_name[player.name.strip().lower()] = player.pdga

    def pdga_for(self, name: str) -> str:
        return self._pdga_by_name.get(name.strip().lower(), "")

    def name_for(self, pdga: str) -> str:
        player = self._by_pdga.get(pdga)
        return player.name if player else ""

    def division_for(self, pdga: str) -> str:
        player = self._by_pdga.get(pdga)
        return player.division if player else ""


def build_ownership(
    baseline: Iterable[DraftAssignment],
    history: Iterable[Transaction],
    registry: TeamRegistry,
    pool: Iterable[PoolPlayer] = (),
) -> OwnershipSnapshot:
    """Fold the draft baseline and the transaction history into an ownership snapshot.

    Pure and deterministic: the same inputs always give the same snapshot.
    Records whose player cannot be resolved (no PDGA number and no pool match
    on name) are skipped.
    """
    index = _PoolIndex(pool)
    current: dict[str, RosterEntry] = {}

    for pick in baseline:
        team = registry.normalize(pick.team)
        name = pick.name.strip()
        if not team or not name:
            continue
        pdga = pick.pdga.strip() or index.pdga_for(name)
        if not pdga:
            logger.warning("Skipping draft pick with no resolvable PDGA number: %s (%s)", name, pick.team)
            continue
        current[pdga] = RosterEntry(
            team=team,
            pdga=pdga,
            name=name,
            division=pick.division or index.division_for(pdga),
            source="Draft",
        )

    for tx in history:
        _apply(current, tx, registry, index)

    owner_by_player = {pdga: entry.team for pdga, entry in current.items()}
    count_by_team: dict[str, int] = {}
    for team in owner_by_player.values():
        count_by_team[team] = count_by_team.get(team, 0) + 1
    return OwnershipSnapshot(owner_by_player=owner_by_player, count_by_team=count_by_team, entries=current)


def _apply(current: dict[str, RosterEntry], tx: Transaction, registry: TeamRegistry, index: _PoolIndex) -> None:
    team = registry.normalize(tx.team)
    from_team = registry.normalize(tx.from_team)
    to_team = registry.normalize(tx.to_team)
    pdga = tx.pdga.strip()
    name = tx.name.strip()
    if not pdga and name:
        pdga = index.pdga_for(name)
    if not pdga:
        logger.warning("Skipping %s transaction with no resolvable PDGA number (id=%s)", tx.type, tx.id)
        return
    if not name:
        name = index.name_for(pdga)

    cur = current.get(pdga)
    kept_name = cur.name if cur and cur.name else name
    kept_division = cur.division if cur and cur.division else index.division_for(pdga)

    match tx.type:
        case TransactionType.ADD:
            target = to_team or team
            if not target:
                return
            current[pdga] = RosterEntry(target, pdga, kept_name, kept_division, "ADD", tx.occurred_at)
        case TransactionType.DROP:
            expected = from_team or team
            if not expected:
                return
            if cur is None:
                current[pdga] = RosterEntry(FREE_AGENT, pdga, name, kept_division, "DROP", tx.occurred_at)
            elif cur.team == expected:
                current[pdga] = RosterEntry(FREE_AGENT, pdga, kept_name, kept_division, "DROP", tx.occurred_at)
        case TransactionType.TRADE:
            if not to_team:
                return
            current[pdga] = RosterEntry(to_team, pdga, kept_name, kept_division, "TRADE", tx.occurred_at)
        case TransactionType.SWAP:
            logger.warning("Ignoring stored SWAP row (id=%s); swaps are recorded as DROP + ADD", tx.id)


class OwnershipService:
    """Builds ownership snapshots from storage and keeps the roster view in sync.

    Snapshots are memoised on the draft and pool contents plus the last
    transaction id.
    """

    def __init__(
        self,
        draft_repo: DraftRepo,
        transaction_repo: TransactionRepo,
        pool_repo: PlayerPoolRepo,
        roster_repo: RosterRepo,
        registry: TeamRegistry,
    ) -> None:
        self._draft_repo = draft_repo
        self._transaction_repo = transaction_repo
        self._pool_repo = pool_repo
        self._roster_repo = roster_repo
        self._registry = registry
        self._memo_key: tuple[object, ...] | None = None
        self._memo: OwnershipSnapshot | None = None

    def snapshot(self) -> OwnershipSnapshot:
        baseline = tuple(self._draft_repo.all())
        pool = tuple(self._pool_repo.all())
        key = (baseline, pool, self._transaction_repo.last_id())
        if self._memo is not None and self._memo_key == key:
            return self._memo
        snapshot = build_ownership(baseline, self._transaction_repo.all(), self._registry, pool)
        self._memo_key, self._memo = key, snapshot
        return snapshot

    def invalidate(self) -> None:
        self._memo_key, self._memo = None, None

    def is_eligible(self, pdga: str) -> bool:
        return self.snapshot().is_free_agent(pdga)

    def rebuild_rosters(self, now: datetime | None = None) -> int:
        """Overwrite the materialised roster view from a fresh snapshot. Caller commits."""
        self.invalidate()
        snapshot = self.snapshot()
        stamp = (now or datetime.now(UTC)).isoformat()
        entries = sorted(
            (
                RosterEntry(e.team, e.pdga, e.name, e.division, e.source, e.updated_at or stamp)
                for e in snapshot.entries.values()
            ),
            key=lambda e: (e.team, e.name),
        )
        written = self._roster_repo.replace_all(entries)
        logger.info("Rebuilt roster view: %d players across %d teams", written, len(snapshot.count_by_team))
        return written


def ownership_by_team(snapshot: OwnershipSnapshot) -> Mapping[str, list[RosterEntry]]:
    grouped: dict[str, list[RosterEntry]] = {}
    for entry in sorted(snapshot.entries.values(), key=lambda e: (e.team, e.name)):
        grouped.setdefault(entry.team, []).append(entry)
    return grouped
