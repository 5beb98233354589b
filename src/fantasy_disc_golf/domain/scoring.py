from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class LineupStatus(StrEnum):
    SUBMITTED = "SUBMITTED"
    LOCKED = "LOCKED"
    FINALIZED = "FINALIZED"


@dataclass(frozen=True)
class RoundScore:
    event_code: str
    round: int
    pdga: str
    name: str
    points: int


@dataclass(frozen=True)
class LineupSlot:
    pdga: str
    name: str


@dataclass(frozen=True)
class Lineup:
    event_code: str
    team: str
    slots: tuple[LineupSlot, ...]
    status: LineupStatus = LineupStatus.SUBMITTED
    submitted_at: str = ""
    locked_at: str | None = None
    finalized_at: str | None = None
    total: float | None = None
    id: int | None = None

    @property
    def pdgas(self) -> tuple[str, ...]:
        return tuple(slot.pdga for slot in self.slots)


@dataclass(frozen=True)
class RoundImport:
    event_code: str
    round: int
    scored: int
    skipped: int


@dataclass(frozen=True)
class LockOutcome:
    """Teams whose lineups were locked, and ``(team, reason)`` for the ones that were not."""

    event_code: str
    locked: tuple[str, ...] = ()
    skipped: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True)
class EventFinal:
    event_code: str
    totals: dict[str, float] = field(default_factory=dict)
    season_totals: dict[str, float] = field(default_factory=dict)
