from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

AWARDS_FOOTER = "Awards do not auto-add players. Use /transaction to claim."


class RequestStatus(StrEnum):
    ACTIVE = "ACTIVE"
    VOID = "VOID"
    ROLLED = "ROLLED"


class AwardStatus(StrEnum):
    AWARDED = "AWARDED"
    NO_VALID_PICK = "NO_VALID_PICK"


@dataclass(frozen=True)
class WaiverPick:
    rank: int
    pdga: str
    name: str


@dataclass(frozen=True)
class WaiverRequest:
    cycle_id: str
    team: str
    submitted_by: str
    rank: int
    pdga: str
    name: str
    status: RequestStatus = RequestStatus.ACTIVE
    submitted_at: str | None = None
    id: int | None = None


@dataclass(frozen=True)
class WaiverAward:
    cycle_id: str
    awarded_at: str
    team: str
    priority_label: str
    pdga: str
    name: str
    status: AwardStatus
    round: int
    claim_sequence: int | None = None
    id: int | None = None


@dataclass(frozen=True)
class StandingEntry:
    team: str
    points: float = 0.0
    rank: int | None = None


@dataclass(frozen=True)
class WaiverSubmission:
    cycle_id: str
    team: str
    submitted_by: str
    picks: tuple[WaiverPick, ...]


@dataclass(frozen=True)
class WaiverAllocation:
    """Output of the round loop, before anything is persisted."""

    awards: tuple[WaiverAward, ...]
    awards_by_team: dict[str, list[WaiverPick]]
    lines: tuple[str, ...]
    rounds_played: int


@dataclass(frozen=True)
class WaiverRunResult:
    cycle_id: str
    event_name: str
    already_posted: bool
    awards: tuple[WaiverAward, ...] = ()
    awards_by_team: dict[str, list[WaiverPick]] = field(default_factory=dict)
    lines: tuple[str, ...] = ()

    @property
    def title(self) -> str:
        return f"Waiver Awards — Cycle {self.cycle_id}"

    @property
    def footer(self) -> str:
        return AWARDS_FOOTER
