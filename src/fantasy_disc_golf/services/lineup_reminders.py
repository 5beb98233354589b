from __future__ import annotations

import json
import logging
import sqlite3
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from fantasy_disc_golf.db.connection import transaction
from fantasy_disc_golf.domain.audit import LineupReminderLog
from fantasy_disc_golf.domain.errors import FdgError
from fantasy_disc_golf.domain.result import Err, Ok, Result
from fantasy_disc_golf.exceptions import FdgException
from fantasy_disc_golf.services.locks import LeagueLock, process_lock

if TYPE_CHECKING:
    from collections.abc import Callable

    from fantasy_disc_golf.repos.protocols import LineupReminderLogRepo
    from fantasy_disc_golf.services.alerts import AlertDispatcher

logger = logging.getLogger(__name__)


class LineupReminderService:
    """Sends the "set your lineup" reminder once per (cycle, event)."""

    def __init__(
        self,
        conn: sqlite3.Connection,
        log_repo: LineupReminderLogRepo,
        alerts: AlertDispatcher | None = None,
        *,
        lock: LeagueLock | None = None,
        lock_timeout: float = 25.0,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._conn = conn
        self._log_repo = log_repo
        self._alerts = alerts
        self._lock = lock or process_lock()
        self._lock_timeout = lock_timeout
        self._clock = clock or (lambda: datetime.now(UTC))

    def run(self, cycle_id: str, event_name: str, run_at: str = "") -> Result[bool, FdgError]:
        """Return ``Ok(True)`` when this call posted the reminder, ``Ok(False)`` if it was already posted."""
        cycle_id = cycle_id.strip()
        event_name = event_name.strip()
        if not cycle_id:
            return Err(FdgError("Missing cycleId"))
        if not event_name:
            return Err(FdgError("Missing eventName"))

        with self._lock.hold(self._lock_timeout):
            if self._log_repo.exists(cycle_id, event_name):
                return Ok(False)
            now = self._clock().isoformat()
            run_at = run_at.strip() or now
            meta = {"cycleId": cycle_id, "eventName": event_name, "runAt": run_at}
            with transaction(self._conn):
                self._log_repo.insert(
                    LineupReminderLog(
                        cycle_id=cycle_id,
                        event_name=event_name,
                        run_at=run_at,
                        created_at=now,
                        status="LOGGED",
                        meta_json=json.dumps(meta),
                    )
                )
            logger.info("Lineup reminder logged for %s (cycle %s)", event_name, cycle_id)

            if self._alerts is not None:
                try:
                    self._alerts.send_lineup_reminders(cycle_id, event_name, self._alerts.new_budget())
                except (FdgException, sqlite3.Error):
                    logger.exception("Lineup reminder alerts failed for %s", event_name)
        return Ok(True)
