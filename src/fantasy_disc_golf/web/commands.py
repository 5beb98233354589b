from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from fantasy_disc_golf.domain.audit import WebhookLogEntry
from fantasy_disc_golf.domain.ownership import FREE_AGENT
from fantasy_disc_golf.domain.result import Err, Ok
from fantasy_disc_golf.domain.transaction import ProposedTransaction, TransactionType

if TYPE_CHECKING:
    from collections.abc import Callable

    from fantasy_disc_golf.container import LeagueContainer

logger = logging.getLogger(__name__)

type Payload = Mapping[str, Any]
type Response = dict[str, Any]

_TRUE_STRINGS = frozenset({"true", "1", "yes", "y", "on"})


def coerce_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    return str(value if value is not None else "").strip().lower() in _TRUE_STRINGS


def _text(payload: Payload, key: str) -> str:
    value = payload.get(key)
    return "" if value is None else str(value).strip()


def proposed_from_payload(payload: Payload) -> ProposedTransaction:
    return ProposedTransaction(
        type=_text(payload, "type"),
        team=_text(payload, "team"),
        pdga=_text(payload, "pdga"),
        name=_text(payload, "name"),
        from_team=_text(payload, "fromTeam"),
        to_team=_text(payload, "toTeam"),
        drop_pdga=_text(payload, "dropPdga"),
        drop_name=_text(payload, "dropName"),
        add_pdga=_text(payload, "addPdga"),
        add_name=_text(payload, "addName"),
        notes=_text(payload, "notes"),
        occurred_at=_text(payload, "date") or None,
    )


class CommandHandler:
    """Dispatches authenticated JSON webhook commands to league services."""

    def __init__(self, container: LeagueContainer) -> None:
        self._c = container
        self._actions: dict[str, Callable[[Payload], Response]] = {
            "WAIVER_RUN": self._waiver_run,
            "WAIVER_SUBMIT": self._waiver_submit,
            "LINEUP_REMINDER_RUN": self._lineup_reminder_run,
            "ALERTS_SET": self._alerts_set,
            "PLAYER_POOL": self._player_pool,
        }

    def handle(self, payload: Payload) -> Response:
        action = _text(payload, "action").upper()
        handler = self._actions.get(action)
        if handler is not None:
            return handler(payload)
        return self._transaction(payload)

    def audit(self, status: str, action: str = "", **fields: str) -> None:
        self._c.webhook_log_repo.insert(
            WebhookLogEntry(logged_at=datetime.now(UTC).isoformat(), status=status, action=action, **fields)
        )
        self._c.conn.commit()

    def _waiver_run(self, payload: Payload) -> Response:
        cycle_id = _text(payload, "cycleId")
        self.audit("RECEIVED", "WAIVER_RUN", detail=f"cycleId={cycle_id}")
        match self._c.waivers.run(cycle_id, _text(payload, "eventName")):
            case Ok(result) if result.already_posted:
                return {"ok": True, "alreadyPosted": True}
            case Ok(result):
                return {
                    "ok": True,
                    "alreadyPosted": False,
                    "title": result.title,
                    "eventName": result.event_name,
                    "lines": list(result.lines),
                    "footer": result.footer,
                }
            case Err(error):
                return {"ok": False, "error": error.message}

    def _waiver_submit(self, payload: Payload) -> Response:
        cycle_id = _text(payload, "cycleId")
        team = self._c.registry.normalize(_text(payload, "team"))
        self.audit("RECEIVED", "WAIVER_SUBMIT", team=team, detail=f"cycleId={cycle_id}")
        raw_picks = payload.get("picks")
        picks = [p for p in raw_picks if isinstance(p, Mapping)] if isinstance(raw_picks, list) else []
        match self._c.waiver_requests.submit(cycle_id, _text(payload, "team"), _text(payload, "submittedBy"), picks):
            case Ok(submission):
                return {
                    "ok": True,
                    "cycleId": submission.cycle_id,
                    "team": submission.team,
                    "submittedCount": len(submission.picks),
                    "picks": [{"rank": p.rank, "pdga": p.pdga, "name": p.name} for p in submission.picks],
                }
            case Err(failure):
                return {"ok": False, "error": failure.message, "errors": list(failure.errors)}

    def _lineup_reminder_run(self, payload: Payload) -> Response:
        cycle_id = _text(payload, "cycleId")
        event_name = _text(payload, "eventName")
        self.audit("RECEIVED", "LINEUP_REMINDER_RUN", detail=f"cycleId={cycle_id} event={event_name}")
        match self._c.lineup_reminders.run(cycle_id, event_name, _text(payload, "runAt")):
            case Ok(posted):
                return {"ok": True, "alreadyPosted": not posted}
            case Err(error):
                return {"ok": False, "error": error.message}

    def _alerts_set(self, payload: Payload) -> Response:
        self.audit("RECEIVED", "ALERTS_SET", team=self._c.registry.normalize(_text(payload, "team")))
        with self._c.lock.hold(self._c.lock_timeout):
            result = self._c.subscriptions.set_preferences(
                _text(payload, "team"),
                _text(payload, "phoneE164"),
                enabled=coerce_bool(payload.get("enabled")),
                free_agents=coerce_bool(payload.get("freeAgents")),
                waiver_awards=coerce_bool(payload.get("waiverAwards")),
                withdrawals=coerce_bool(payload.get("withdrawals")),
                lineup_reminders=coerce_bool(payload.get("lineupReminders")),
            )
        match result:
            case Ok(change):
                return {
                    "ok": True,
                    "created": change.created,
                    "optedOut": change.subscription.opt_out,
                    "enabledApplied": change.subscription.enabled,
                }
            case Err(failure):
                return {"ok": False, "error": failure.message}

    def _player_pool(self, payload: Payload) -> Response:
        query = _text(payload, "query")
        raw_limit = _text(payload, "limit") or "25"
        limit = int(raw_limit) if raw_limit.isdigit() else 0
        if limit < 1:
            return {"ok": False, "error": f"Invalid limit: {raw_limit}"}
        players = self._c.pool_repo.search(query, limit) if query else self._c.pool_repo.all()
        snapshot = self._c.ownership.snapshot()
        return {
            "ok": True,
            "players": [
                {
                    "pdga": p.pdga,
                    "name": p.name,
                    "division": p.division,
                    "owner": snapshot.owner_of(p.pdga) or FREE_AGENT,
                }
                for p in players
            ],
        }

    def _transaction(self, payload: Payload) -> Response:
        proposed = proposed_from_payload(payload)
        mode = _text(payload, "mode").lower()
        tx_type = proposed.normalized_type
        team = self._c.registry.normalize(proposed.team)
        if not tx_type or not team:
            message = f"Missing required fields. type={tx_type} team={team}"
            self.audit("VALIDATION_FAIL", tx_type, team=team, detail=message)
            return {"ok": False, "error": message, "errors": [message]}

        if tx_type == TransactionType.SWAP:
            self.audit(
                "RECEIVED",
                tx_type,
                team=team,
                pdga=proposed.drop_pdga,
                name=proposed.drop_name,
                from_team=team,
                to_team=FREE_AGENT,
                detail=f"add={proposed.add_name} ({proposed.add_pdga})" + (f" mode={mode}" if mode else ""),
            )
        else:
            self.audit(
                "RECEIVED",
                tx_type,
                team=team,
                pdga=proposed.pdga,
                name=proposed.name,
                from_team=proposed.from_team,
                to_team=proposed.to_team,
                detail=f"mode={mode}" if mode else "",
            )

        audit_fields = {
            "team": team,
            "pdga": proposed.pdga or proposed.drop_pdga,
            "name": proposed.name or proposed.drop_name,
            "from_team": proposed.from_team,
            "to_team": proposed.to_team,
        }
        if mode == "validate":
            verdict = self._c.transactions.validate(proposed)
            if not verdict.ok:
                self.audit("VALIDATION_FAIL", tx_type, detail=" | ".join(verdict.errors), **audit_fields)
                return {"ok": False, "errors": list(verdict.errors), "details": verdict.details}
            self.audit("VALIDATION_OK", tx_type, **audit_fields)
            return {"ok": True, "details": verdict.details}

        outcome = self._c.transactions.commit(proposed)
        if not outcome.ok:
            errors = outcome.validation.errors
            self.audit("VALIDATION_FAIL", tx_type, detail=" | ".join(errors), **audit_fields)
            return {"ok": False, "errors": list(errors), "details": outcome.validation.details}
        self.audit("COMMITTED", tx_type, detail=f"rows={len(outcome.committed)}", **audit_fields)
        return {"ok": True, "details": outcome.validation.details, "committed": len(outcome.committed)}
