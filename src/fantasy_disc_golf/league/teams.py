from collections.abc import Iterable, Mapping

from fantasy_disc_golf.domain.ownership import FREE_AGENT

_FREE_AGENT_ALIASES = ("FA", "FREE", "FREE AGENT", "FREE AGENTS")


def _key(raw: str) -> str:
    return " ".join(raw.split()).upper()


class TeamRegistry:
    """Canonicalises team name variants to the fixed set of league members.

    Every team is reachable by its full name (any casing) and by the first three
    letters of its name when that prefix is unique across the league. The free
    agent sentinel is reachable as ``FA``, ``FREE``, ``FREE AGENT`` and
    ``FREE AGENTS``.
    """

    def __init__(self, teams: Iterable[str], aliases: Mapping[str, str] | None = None) -> None:
        self._teams: tuple[str, ...] = tuple(teams)
        self._lookup: dict[str, str] = {}

        prefixes: dict[str, list[str]] = {}
        for team in self._teams:
            prefixes.setdefault(_key(team)[:3], []).append(team)
        for prefix, owners in prefixes.items():
            if len(owners) == 1:
                self._lookup[prefix] = owners[0]

        for alias in _FREE_AGENT_ALIASES:
            self._lookup[alias] = FREE_AGENT
        for team in self._teams:
            self._lookup[_key(team)] = team
        self._lookup[_key(FREE_AGENT)] = FREE_AGENT

        for alias, target in (aliases or {}).items():
            canonical = self._lookup.get(_key(target))
            if canonical:
                self._lookup[_key(alias)] = canonical

    @property
    def teams(self) -> tuple[str, ...]:
        return self._teams

    def normalize(self, raw: str | None) -> str:
        """Return the canonical team name, the free agent sentinel, or "" when nothing matches."""
        if not raw:
            return ""
        return self._lookup.get(_key(raw), "")

    def is_member(self, team: str) -> bool:
        return team in self._teams
