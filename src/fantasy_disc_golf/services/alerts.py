from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

from fantasy_disc_golf.domain.alerts import AlertType, DeliveryResult, SmsAlert, SmsLogEntry, SmsStatus
from fantasy_disc_golf.exceptions import ExternalCallError

if TYPE_CHECKING:
    import sqlite3
    from collections.abc import Callable, Mapping, Sequence

    from fantasy_disc_golf.cache.protocol import CacheStore
    from fantasy_disc_golf.domain.league_settings import SmsSettings
    from fantasy_disc_golf.domain.waiver import WaiverPick
    from fantasy_disc_golf.notify.twilio import SmsSender
    from fantasy_disc_golf.repos.protocols import SmsLogRepo, SubscriptionRepo

logger = logging.getLogger(__name__)

_DEDUPE_NAMESPACE = "sms_dedupe"
_COUNTER_NAMESPACE = "sms_counter"
_HOUR_SECONDS = 60 * 60
_DAY_SECONDS = 24 * _HOUR_SECONDS
_MAX_NAMES_IN_AWARD_MESSAGE = 6


@dataclass
class SmsBudget:
    """Per-invocation send allowance shared by every alert in one run."""

    max: int
    sent: int = 0

    @property
    def exhausted(self) -> bool:
        return self.sent >= self.max


def dedupe_cache_key(dedupe_key: str) -> str:
    return "sms:" + hashlib.sha256(dedupe_key.encode("utf-8")).hexdigest()[:40]


def free_agent_message(dropping_team: str, player_name: str) -> str:
    return f"FDG: {dropping_team} has dropped {player_name} to Free Agents."


def withdrawal_message(player_name: str, event_name: str) -> str:
    return f"FDG: {player_name} has dropped from {event_name}."


def waiver_award_message(event_name: str, awards: Sequence[WaiverPick]) -> str:
    names = ", ".join(a.name for a in awards[:_MAX_NAMES_IN_AWARD_MESSAGE])
    extra = len(awards) - _MAX_NAMES_IN_AWARD_MESSAGE
    more = f" (+{extra} more)" if extra > 0 else ""
    return f"FDG Waivers: You have been awarded player(s) in the Waiver channel for {event_name}: {names}{more}."


def lineup_reminder_message(event_name: str) -> str:
    return f"FDG: {event_name} starts tomorrow. Don't forget to set your lineup in Hyzerbase!"


class AlertDispatcher:
    """Delivers SMS alerts to subscribed teams under the league's send limits.

    Each send passes, in order: the kill switch, the per-invocation budget,
    the dedupe window, then the hourly and daily counters. Only then is the
    provider called, exactly once. Every outcome is written to the SMS log.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        sms_log_repo: SmsLogRepo,
        subscription_repo: SubscriptionRepo,
        cache: CacheStore,
        settings: SmsSettings,
        sender: SmsSender | None,
        *,
        timezone: str = "America/New_York",
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._conn = conn
        self._sms_log_repo = sms_log_repo
        self._subscription_repo = subscription_repo
        self._cache = cache
        self._settings = settings
        self._sender = sender
        self._tz = ZoneInfo(timezone)
        self._clock = clock or (lambda: datetime.now(UTC))

    def new_budget(self) -> SmsBudget:
        return SmsBudget(max=self._settings.max_per_invocation)

    def send(self, alert: SmsAlert, budget: SmsBudget) -> DeliveryResult:
        settings = self._settings
        if not settings.enabled:
            self._log(alert, SmsStatus.SKIPPED, error="SMS_DISABLED")
            return DeliveryResult(sent=False, reason="disabled")

        if budget.exhausted:
            self._log(alert, SmsStatus.ERROR, error=f"INVOCATION_CAP_REACHED_{budget.max}")
            return DeliveryResult(sent=False, reason="invocation_cap")

        if alert.dedupe_key and self._dedupe_hit(alert.dedupe_key):
            self._log(alert, SmsStatus.SKIPPED, error="DUPLICATE_SUPPRESSED")
            return DeliveryResult(sent=False, reason="duplicate")

        local_now = self._clock().astimezone(self._tz)
        hour_key = f"sms_hour_count_{local_now:%Y%m%d%H}"
        day_key = f"sms_day_count_{local_now:%Y%m%d}"
        if self._count(hour_key) >= settings.max_per_hour:
            self._log(alert, SmsStatus.ERROR, error=f"HOUR_CAP_REACHED_{settings.max_per_hour}")
            return DeliveryResult(sent=False, reason="hour_cap")
        if self._count(day_key) >= settings.max_per_day:
            self._log(alert, SmsStatus.ERROR, error=f"DAY_CAP_REACHED_{settings.max_per_day}")
            return DeliveryResult(sent=False, reason="day_cap")

        if self._sender is None:
            self._log(alert, SmsStatus.ERROR, error="SMS provider is not configured")
            return DeliveryResult(sent=False, reason="not_configured")

        try:
            provider_id = self._sender.send(alert.to_phone, alert.message)
        except ExternalCallError as exc:
            logger.error("SMS to %s (%s) failed: %s", alert.team, alert.alert_type, exc)
            self._log(alert, SmsStatus.ERROR, error=str(exc))
            return DeliveryResult(sent=False, reason="error")

        budget.sent += 1
        self._cache.increment(_COUNTER_NAMESPACE, hour_key, _HOUR_SECONDS)
        self._cache.increment(_COUNTER_NAMESPACE, day_key, _DAY_SECONDS)
        self._subscription_repo.touch_last_sms(alert.team, self._clock().isoformat())
        self._log(alert, SmsStatus.SENT, provider_id=provider_id)
        logger.info("Sent %s SMS to %s", alert.alert_type, alert.team)
        return DeliveryResult(sent=True, provider_id=provider_id)

    def send_free_agent_drop_alerts(
        self, dropping_team: str, player_name: str, pdga: str, budget: SmsBudget
    ) -> list[DeliveryResult]:
        message = free_agent_message(dropping_team, player_name)
        results = []
        for sub in self._subscription_repo.all():
            if not sub.wants(AlertType.FREE_AGENTS):
                continue
            key = f"FREEAGENT|{sub.team}|{pdga}|{dropping_team}|{message}"
            results.append(self.send(SmsAlert(sub.team, sub.phone_e164, AlertType.FREE_AGENTS, message, key), budget))
        return results

    def send_waiver_award_alerts(
        self,
        cycle_id: str,
        event_name: str,
        awards_by_team: Mapping[str, Sequence[WaiverPick]],
        budget: SmsBudget,
    ) -> list[DeliveryResult]:
        results = []
        for sub in self._subscription_repo.all():
            awards = awards_by_team.get(sub.team, [])
            if not awards or not sub.wants(AlertType.WAIVER_AWARDS):
                continue
            message = waiver_award_message(event_name, awards)
            key = f"WAIVER|{sub.team}|{cycle_id}|{event_name}|{','.join(a.pdga for a in awards)}"
            results.append(
                self.send(SmsAlert(sub.team, sub.phone_e164, AlertType.WAIVER_AWARDS, message, key), budget)
            )
        return results

    def send_lineup_reminders(self, cycle_id: str, event_name: str, budget: SmsBudget) -> list[DeliveryResult]:
        message = lineup_reminder_message(event_name)
        results = []
        for sub in self._subscription_repo.all():
            if not sub.wants(AlertType.LINEUP_REMINDERS):
                continue
            key = f"LINEUP|{sub.team}|{cycle_id}|{event_name}"
            results.append(
                self.send(SmsAlert(sub.team, sub.phone_e164, AlertType.LINEUP_REMINDERS, message, key), budget)
            )
        return results

    def send_withdrawal_alert(
        self, team: str, player_name: str, pdga: str, event_name: str, budget: SmsBudget
    ) -> DeliveryResult:
        sub = self._subscription_repo.get(team)
        if sub is None or not sub.wants(AlertType.WITHDRAWALS):
            return DeliveryResult(sent=False, reason="not_subscribed")
        message = withdrawal_message(player_name, event_name)
        key = f"WITHDRAWAL|{team}|{pdga}|{event_name}"
        return self.send(SmsAlert(team, sub.phone_e164, AlertType.WITHDRAWALS, message, key), budget)

    def _dedupe_hit(self, dedupe_key: str) -> bool:
        cache_key = dedupe_cache_key(dedupe_key)
        if self._cache.get(_DEDUPE_NAMESPACE, cache_key) is not None:
            return True
        self._cache.put(_DEDUPE_NAMESPACE, cache_key, "1", max(60, self._settings.dedupe_minutes * 60))
        return False

    def _count(self, key: str) -> int:
        value = self._cache.get(_COUNTER_NAMESPACE, key)
        return int(value) if value else 0

    def _log(self, alert: SmsAlert, status: SmsStatus, *, provider_id: str = "", error: str = "") -> None:
        self._sms_log_repo.insert(
            SmsLogEntry(
                sent_at=self._clock().isoformat(),
                team=alert.team,
                to_phone=alert.to_phone,
                alert_type=str(alert.alert_type),
                message=alert.message,
                status=status,
                provider_id=provider_id,
                error=error,
            )
        )
        self._conn.commit()
