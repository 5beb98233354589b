"""Multi-round waiver allocation.

Teams are walked in priority order every round. Each team keeps a cursor into
its rank-ordered wishlist that only moves forward, so a pick that was skipped
(already awarded this run, or owned) is never reconsidered. A round in which
nobody is awarded ends the run.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fantasy_disc_golf.domain.waiver import AwardStatus, StandingEntry, WaiverAllocation, WaiverAward, WaiverPick

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping, Sequence

logger = logging.getLogger(__name__)

DEFAULT_MAX_ROUNDS = 50


def priority_order(standings: Iterable[StandingEntry]) -> list[StandingEntry]:
    """Order teams for waiver priority, first pick first.

    With any explicit rank present, higher rank numbers (worse standing) pick
    first; otherwise fewer points pick first. Ties go to team name.
    """
    entries = list(standings)
    if any(s.rank is not None for s in entries):
        return sorted(entries, key=lambda s: (-(s.rank or 0), s.team))
    return sorted(entries, key=lambda s: (s.points, s.team))


def round_cap(requests_by_team: Mapping[str, Sequence[WaiverPick]], max_rounds: int = DEFAULT_MAX_ROUNDS) -> int:
    # Each awarding round consumes a pick, so longest + 1 rounds always ends on an empty one.
    longest = max((len(picks) for picks in requests_by_team.values()), default=0)
    return max(1, min(max_rounds, longest + 1))


def run_waiver_rounds(
    cycle_id: str,
    ordered: Sequence[StandingEntry],
    requests_by_team: Mapping[str, Sequence[WaiverPick]],
    is_eligible: Callable[[str], bool],
    *,
    awarded_at: str,
    max_rounds: int = DEFAULT_MAX_ROUNDS,
) -> WaiverAllocation:
    """Allocate waiver picks round by round.

    Args:
        cycle_id: Cycle the awards are recorded against.
        ordered: Teams in priority order, as returned by ``priority_order``.
        requests_by_team: Each team's wishlist; ranks need not be contiguous.
        is_eligible: True for a PDGA number that is currently a free agent.
        awarded_at: Timestamp stamped on every award row.
        max_rounds: Upper bound on rounds played.

    Returns:
        Every award row (including one NO_VALID_PICK row per team that got
        nothing in round 1), the picks won by each team, and the announcement
        lines.
    """
    team_count = len(ordered)
    wishlists = {team: sorted(picks, key=lambda p: p.rank) for team, picks in requests_by_team.items()}
    cursors = {s.team: 0 for s in ordered}
    awarded_this_run: set[str] = set()
    awards_by_team: dict[str, list[WaiverPick]] = {}
    awards: list[WaiverAward] = []
    lines: list[str] = []
    claim_sequence = 0
    rounds_played = 0

    for round_no in range(1, round_cap(wishlists, max_rounds) + 1):
        header_at = len(lines)
        lines.append(f"— Round {round_no} —")
        awarded_in_round = 0
        rounds_played = round_no

        for position, standing in enumerate(ordered):
            team = standing.team
            label = str(team_count - position)
            wishlist = wishlists.get(team, [])
            cursor = cursors[team]

            chosen: WaiverPick | None = None
            while cursor < len(wishlist):
                pick = wishlist[cursor]
                cursor += 1
                pdga = pick.pdga.strip()
                if not pdga or pdga in awarded_this_run or not is_eligible(pdga):
                    continue
                chosen = pick
                break
            cursors[team] = cursor

            if chosen is not None:
                awarded_in_round += 1
                claim_sequence += 1
                awarded_this_run.add(chosen.pdga)
                awards_by_team.setdefault(team, []).append(chosen)
                awards.append(
                    WaiverAward(
                        cycle_id=cycle_id,
                        awarded_at=awarded_at,
                        team=team,
                        priority_label=label,
                        pdga=chosen.pdga,
                        name=chosen.name,
                        status=AwardStatus.AWARDED,
                        round=round_no,
                        claim_sequence=claim_sequence,
                    )
                )
                lines.append(f"{label}) {team}: {chosen.name} ({chosen.pdga})")
                logger.info("Cycle %s round %d: %s awarded %s (%s)", cycle_id, round_no, team, chosen.name, chosen.pdga)
            elif round_no == 1:
                awards.append(
                    WaiverAward(
                        cycle_id=cycle_id,
                        awarded_at=awarded_at,
                        team=team,
                        priority_label=label,
                        pdga="",
                        name="",
                        status=AwardStatus.NO_VALID_PICK,
                        round=round_no,
                    )
                )

        if awarded_in_round == 0:
            if round_no > 1:
                del lines[header_at:]
            break

    return WaiverAllocation(
        awards=tuple(awards),
        awards_by_team=awards_by_team,
        lines=tuple(lines),
        rounds_played=rounds_played,
    )
