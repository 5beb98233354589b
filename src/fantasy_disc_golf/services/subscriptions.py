from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from fantasy_disc_golf.db.connection import transaction
from fantasy_disc_golf.domain.alerts import AlertSubscription
from fantasy_disc_golf.domain.errors import ValidationFailure
from fantasy_disc_golf.domain.ownership import FREE_AGENT
from fantasy_disc_golf.domain.result import Err, Ok, Result

if TYPE_CHECKING:
    import sqlite3
    from collections.abc import Callable

    from fantasy_disc_golf.league.teams import TeamRegistry
    from fantasy_disc_golf.repos.protocols import SubscriptionRepo

logger = logging.getLogger(__name__)

_E164 = re.compile(r"^\+\d{10,15}$")


def normalize_phone(raw: str) -> str:
    """Strip sheet-style quoting and prepend ``+`` to bare digit strings."""
    phone = raw.strip().lstrip("'")
    if phone and not phone.startswith("+"):
        phone = "+" + re.sub(r"\D", "", phone)
    return phone


@dataclass(frozen=True)
class SubscriptionChange:
    subscription: AlertSubscription
    created: bool


class SubscriptionService:
    def __init__(
        self,
        conn: sqlite3.Connection,
        repo: SubscriptionRepo,
        registry: TeamRegistry,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._conn = conn
        self._repo = repo
        self._registry = registry
        self._clock = clock or (lambda: datetime.now(UTC))

    def set_preferences(
        self,
        team: str,
        phone: str,
        *,
        enabled: bool,
        free_agents: bool,
        waiver_awards: bool,
        withdrawals: bool,
        lineup_reminders: bool,
    ) -> Result[SubscriptionChange, ValidationFailure]:
        """Create or replace a team's alert preferences.

        Args:
            team: Any name variant the team registry recognises.
            phone: Phone number; normalised to E.164 before it is checked.
            enabled: Master switch. Stays off while the number is opted out.
            free_agents: Texts when a player is dropped to free agents.
            waiver_awards: Texts with the team's waiver awards.
            withdrawals: Texts when a rostered player withdraws from an event.
            lineup_reminders: Texts the day before an event starts.

        Returns:
            ``Ok`` with the stored subscription and whether it is new, or
            ``Err`` for an unknown team or a malformed phone number.
        """
        canonical = self._registry.normalize(team)
        if not canonical or canonical == FREE_AGENT:
            return Err(ValidationFailure(f"Unknown team: {team}", errors=(f"Unknown team: {team}",)))
        phone_e164 = normalize_phone(phone)
        if not _E164.match(phone_e164):
            message = "Phone must be E.164 like +12345678900"
            return Err(ValidationFailure(message, errors=(message,)))

        now = self._clock().isoformat()
        existing = self._repo.get(canonical)
        # An opted-out number stays disabled until the owner texts START.
        opt_out = existing.opt_out if existing else False
        sub = AlertSubscription(
            team=canonical,
            phone_e164=phone_e164,
            enabled=enabled and not opt_out,
            free_agents=free_agents,
            waiver_awards=waiver_awards,
            withdrawals=withdrawals,
            lineup_reminders=lineup_reminders,
            opt_out=opt_out,
            created_at=existing.created_at if existing else now,
            updated_at=now,
            last_sms_at=existing.last_sms_at if existing else None,
        )
        with transaction(self._conn):
            self._repo.upsert(sub)
        logger.info("Alert preferences %s for %s", "updated" if existing else "created", canonical)
        return Ok(SubscriptionChange(subscription=sub, created=existing is None))

    def set_opt_out(self, phone: str, opt_out: bool) -> list[str]:
        """Opt a phone number out of (or back into) every alert. Returns the affected teams."""
        phone_e164 = normalize_phone(phone)
        teams = [sub.team for sub in self._repo.by_phone(phone_e164)]
        if teams:
            with transaction(self._conn):
                self._repo.set_opt_out(phone_e164, opt_out, self._clock().isoformat())
            logger.info("Phone for %s %s", ", ".join(teams), "opted out" if opt_out else "opted in")
        return teams

    def list(self) -> list[AlertSubscription]:
        return self._repo.all()

    def get(self, team: str) -> AlertSubscription | None:
        canonical = self._registry.normalize(team)
        return self._repo.get(canonical) if canonical else None


def masked(sub: AlertSubscription) -> AlertSubscription:
    return replace(sub, phone_e164=f"{sub.phone_e164[:2]}******{sub.phone_e164[-4:]}")
