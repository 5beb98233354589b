from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from fantasy_disc_golf.db.connection import transaction
from fantasy_disc_golf.domain.ownership import FREE_AGENT
from fantasy_disc_golf.domain.transaction import Transaction, TransactionType
from fantasy_disc_golf.exceptions import FdgException
from fantasy_disc_golf.services.locks import LeagueLock, process_lock

if TYPE_CHECKING:
    from collections.abc import Callable

    from fantasy_disc_golf.domain.transaction import ProposedTransaction, ValidationResult
    from fantasy_disc_golf.repos.protocols import TransactionRepo
    from fantasy_disc_golf.services.alerts import AlertDispatcher
    from fantasy_disc_golf.services.ownership import OwnershipService
    from fantasy_disc_golf.services.transaction_validator import TransactionValidator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommitOutcome:
    validation: ValidationResult
    committed: tuple[Transaction, ...] = ()

    @property
    def ok(self) -> bool:
        return self.validation.ok and bool(self.committed)


def expand(proposed: ProposedTransaction, validation: ValidationResult, occurred_at: str) -> list[Transaction]:
    """Turn a validated proposal into the history rows it commits as."""
    details = validation.details
    team = str(details["team"])
    notes = proposed.notes.strip()
    match proposed.normalized_type:
        case TransactionType.SWAP:
            return [
                Transaction(
                    type=TransactionType.DROP,
                    team=team,
                    pdga=str(details["dropPdga"]),
                    name=str(details["dropName"]),
                    from_team=team,
                    to_team=FREE_AGENT,
                    notes=notes,
                    occurred_at=occurred_at,
                ),
                Transaction(
                    type=TransactionType.ADD,
                    team=team,
                    pdga=str(details["addPdga"]),
                    name=str(details["addName"]),
                    from_team=FREE_AGENT,
                    to_team=team,
                    notes=notes,
                    occurred_at=occurred_at,
                ),
            ]
        case tx_type:
            return [
                Transaction(
                    type=TransactionType(tx_type),
                    team=team,
                    pdga=str(details["pdga"]),
                    name=str(details["name"]),
                    from_team=str(details["fromTeam"] or ""),
                    to_team=str(details["toTeam"] or ""),
                    notes=notes,
                    occurred_at=occurred_at,
                )
            ]


class TransactionService:
    """Validates and commits roster moves.

    Commit validates again inside the league lock, right before appending,
    so a move validated earlier cannot be applied against stale ownership.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        transaction_repo: TransactionRepo,
        ownership: OwnershipService,
        validator: TransactionValidator,
        alerts: AlertDispatcher | None = None,
        *,
        lock: LeagueLock | None = None,
        lock_timeout: float = 25.0,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._conn = conn
        self._transaction_repo = transaction_repo
        self._ownership = ownership
        self._validator = validator
        self._alerts = alerts
        self._lock = lock or process_lock()
        self._lock_timeout = lock_timeout
        self._clock = clock or (lambda: datetime.now(UTC))

    def validate(self, proposed: ProposedTransaction) -> ValidationResult:
        return self._validator.validate(proposed, self._ownership.snapshot())

    def commit(self, proposed: ProposedTransaction) -> CommitOutcome:
        """Validate and append a roster move, then rebuild the rosters.

        Args:
            proposed: The move as submitted; a SWAP is stored as DROP then ADD.

        Returns:
            The validation result and the committed rows, which are empty when
            validation failed.

        Raises:
            LockTimeoutError: The league lock could not be taken in time.
        """
        with self._lock.hold(self._lock_timeout):
            validation = self.validate(proposed)
            if not validation.ok:
                logger.info(
                    "Rejected %s for %s: %s", proposed.normalized_type, proposed.team, "; ".join(validation.errors)
                )
                return CommitOutcome(validation=validation)

            occurred_at = proposed.occurred_at or self._clock().isoformat()
            rows = expand(proposed, validation, occurred_at)
            with transaction(self._conn):
                committed = tuple(
                    Transaction(
                        id=self._transaction_repo.append(row),
                        type=row.type,
                        team=row.team,
                        pdga=row.pdga,
                        name=row.name,
                        from_team=row.from_team,
                        to_team=row.to_team,
                        notes=row.notes,
                        occurred_at=row.occurred_at,
                    )
                    for row in rows
                )
                self._ownership.rebuild_rosters(self._clock())
            for row in committed:
                logger.info("Committed %s %s %s (%s)", row.type, row.team, row.name, row.pdga)

            self._notify_drops(committed)
        return CommitOutcome(validation=validation, committed=committed)

    def _notify_drops(self, committed: tuple[Transaction, ...]) -> None:
        if self._alerts is None:
            return
        drops = [row for row in committed if row.type == TransactionType.DROP]
        if not drops:
            return
        budget = self._alerts.new_budget()
        for row in drops:
            try:
                self._alerts.send_free_agent_drop_alerts(row.from_team or row.team, row.name, row.pdga, budget)
            except (FdgException, sqlite3.Error):
                logger.exception("Free agent alerts failed for %s (%s)", row.name, row.pdga)
