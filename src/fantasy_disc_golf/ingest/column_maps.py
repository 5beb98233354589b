import logging
import math
from collections.abc import Callable, Iterable, Sequence
from typing import Any

from fantasy_disc_golf.domain.ownership import DraftAssignment
from fantasy_disc_golf.domain.player import PoolPlayer
from fantasy_disc_golf.domain.transaction import Transaction, TransactionType
from fantasy_disc_golf.domain.waiver import StandingEntry
from fantasy_disc_golf.league.teams import TeamRegistry

logger = logging.getLogger(__name__)

PDGA_HEADERS = ("PDGA #", "Player PDGA #", "PDGA", "PDGA#")
NAME_HEADERS = ("Player Name", "Name", "Player")
DIVISION_HEADERS = ("Division", "Div")
TEAM_HEADERS = ("Team", "Team Name", "TeamName")
STANDING_TEAM_HEADERS = ("Team Name", "Team")
TYPE_HEADERS = ("Type",)

POOL_COLUMNS = (PDGA_HEADERS, NAME_HEADERS)
DRAFT_COLUMNS = (TEAM_HEADERS, NAME_HEADERS)
TRANSACTION_COLUMNS = (TYPE_HEADERS, TEAM_HEADERS[:1])
STANDING_COLUMNS = (STANDING_TEAM_HEADERS,)


def _first(row: dict[str, Any], headers: Sequence[str]) -> str:
    for header in headers:
        value = row.get(header)
        if value not in (None, ""):
            return str(value).strip()
    return ""


def _to_optional_float(value: str) -> float | None:
    try:
        number = float(value.replace(",", ""))
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def pool_mapper(row: dict[str, Any]) -> PoolPlayer | None:
    pdga = _first(row, PDGA_HEADERS)
    name = _first(row, NAME_HEADERS)
    if not pdga or not name:
        return None
    return PoolPlayer(pdga=pdga, name=name, division=_first(row, DIVISION_HEADERS))


def make_draft_mapper(
    registry: TeamRegistry, pool: Iterable[PoolPlayer]
) -> Callable[[dict[str, Any]], DraftAssignment | None]:
    pdga_by_name = {p.name.lower(): p.pdga for p in pool}

    def mapper(row: dict[str, Any]) -> DraftAssignment | None:
        team = registry.normalize(_first(row, TEAM_HEADERS))
        name = _first(row, NAME_HEADERS)
        if not team or not name:
            return None
        pdga = _first(row, PDGA_HEADERS) or pdga_by_name.get(name.lower(), "")
        if not pdga:
            logger.warning("Draft row for %s has no PDGA number and no pool match", name)
            return None
        return DraftAssignment(team=team, pdga=pdga, name=name, division=_first(row, DIVISION_HEADERS))

    return mapper


def transaction_mapper(row: dict[str, Any]) -> Transaction | None:
    raw_type = _first(row, TYPE_HEADERS).upper()
    if raw_type not in TransactionType.__members__ or raw_type == TransactionType.SWAP:
        return None
    pdga = _first(row, PDGA_HEADERS)
    name = _first(row, NAME_HEADERS)
    if not pdga and not name:
        return None
    return Transaction(
        type=TransactionType(raw_type),
        team=_first(row, ("Team",)),
        pdga=pdga,
        name=name,
        from_team=_first(row, ("From Team", "FromTeam")),
        to_team=_first(row, ("To Team", "ToTeam")),
        notes=_first(row, ("Notes",)),
        occurred_at=_first(row, ("Timestamp", "Date", "Occurred At")) or None,
    )


def make_standing_mapper(registry: TeamRegistry) -> Callable[[dict[str, Any]], StandingEntry | None]:
    def mapper(row: dict[str, Any]) -> StandingEntry | None:
        team = registry.normalize(_first(row, STANDING_TEAM_HEADERS))
        if not team:
            return None
        raw_rank = _first(row, ("Standings", "Rank"))
        raw_points = _first(row, ("Points", "Pts"))
        rank_value = _to_optional_float(raw_rank)
        points = _to_optional_float(raw_points)
        if (raw_rank and rank_value is None) or (raw_points and points is None):
            logger.warning("Standing row for %s has a non-numeric rank or points: %r / %r", team, raw_rank, raw_points)
            return None
        rank = int(rank_value) if rank_value is not None and rank_value > 0 else None
        return StandingEntry(team=team, points=points or 0.0, rank=rank)

    return mapper
