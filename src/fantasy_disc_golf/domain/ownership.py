from __future__ import annotations

from dataclasses import dataclass, field

FREE_AGENT = "Free Agent"


@dataclass(frozen=True)
class DraftAssignment:
    team: str
    pdga: str
    name: str
    division: str = ""
    id: int | None = None


@dataclass(frozen=True)
class RosterEntry:
    team: str
    pdga: str
    name: str
    division: str = ""
    source: str = "Draft"
    updated_at: str | None = None


@dataclass(frozen=True)
class OwnershipSnapshot:
    """Point-in-time view of who owns which player.

    ``owner_by_player`` only contains players that appear in the draft baseline
    or the transaction history; any other player is a free agent.
    """

    owner_by_player: dict[str, str] = field(default_factory=dict)
    count_by_team: dict[str, int] = field(default_factory=dict)
    entries: dict[str, RosterEntry] = field(default_factory=dict)

    def owner_of(self, pdga: str) -> str | None:
        return self.owner_by_player.get(pdga)

    def is_free_agent(self, pdga: str) -> bool:
        owner = self.owner_by_player.get(pdga)
        return owner is None or owner == FREE_AGENT

    def roster_count(self, team: str) -> int:
        return self.count_by_team.get(team, 0)

    def roster(self, team: str) -> list[RosterEntry]:
        return sorted(
            (e for e in self.entries.values() if e.team == team),
            key=lambda e: e.name,
        )
