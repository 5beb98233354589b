from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class TransactionType(StrEnum):
    ADD = "ADD"
    DROP = "DROP"
    TRADE = "TRADE"
    SWAP = "SWAP"


@dataclass(frozen=True)
class Transaction:
    """A committed roster move. SWAP never appears here; it is stored as DROP + ADD."""

    type: TransactionType
    team: str
    pdga: str
    name: str = ""
    from_team: str = ""
    to_team: str = ""
    notes: str = ""
    occurred_at: str | None = None
    id: int | None = None


@dataclass(frozen=True)
class ProposedTransaction:
    """An inbound transaction request, fields as submitted (team names not yet normalized)."""

    type: str
    team: str
    pdga: str = ""
    name: str = ""
    from_team: str = ""
    to_team: str = ""
    drop_pdga: str = ""
    drop_name: str = ""
    add_pdga: str = ""
    add_name: str = ""
    notes: str = ""
    occurred_at: str | None = None

    @property
    def normalized_type(self) -> str:
        return self.type.strip().upper()


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    errors: tuple[str, ...] = ()
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"ok": self.ok, "errors": list(self.errors), "details": dict(self.details)}
