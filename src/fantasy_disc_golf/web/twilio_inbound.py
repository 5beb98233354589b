"""Inbound Twilio SMS: signature checks, STOP/START/HELP keywords and TwiML replies."""

import base64
import hashlib
import hmac
import logging
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from xml.sax.saxutils import escape

from fantasy_disc_golf.domain.audit import WebhookLogEntry
from fantasy_disc_golf.domain.league_settings import SmsSettings, TwilioSettings
from fantasy_disc_golf.repos.protocols import WebhookLogRepo
from fantasy_disc_golf.services.subscriptions import SubscriptionService, normalize_phone

logger = logging.getLogger(__name__)

STOP_WORDS = frozenset({"STOP", "UNSUBSCRIBE", "CANCEL", "END", "QUIT"})
START_WORDS = frozenset({"START", "YES"})
HELP_WORDS = frozenset({"HELP"})

STOP_REPLY = "You have been unsubscribed from FDG alerts. Reply START to re-subscribe (or re-enable in the dashboard)."
START_REPLY = "You are re-subscribed to FDG alerts. Reply STOP to opt out."
HELP_REPLY = "FDG Alerts: transactional league notifications. Msg&data rates may apply. Reply STOP to opt out."


def is_twilio_form(form: Mapping[str, str]) -> bool:
    return "From" in form and "Body" in form


def compute_signature(url: str, params: Mapping[str, str], auth_token: str) -> str:
    payload = url + "".join(f"{key}{params[key]}" for key in sorted(params))
    digest = hmac.new(auth_token.encode("utf-8"), payload.encode("utf-8"), hashlib.sha1).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_signature(url: str, params: Mapping[str, str], signature: str, auth_token: str) -> bool:
    if not (url and signature and auth_token):
        return False
    return hmac.compare_digest(compute_signature(url, params, auth_token), signature)


def twiml(message: str = "") -> str:
    body = f"<Message>{escape(message)}</Message>" if message else ""
    return f'<?xml version="1.0" encoding="UTF-8"?><Response>{body}</Response>'


def help_reply(support_email: str) -> str:
    return f"{HELP_REPLY} Support: {support_email}" if support_email else HELP_REPLY


class InboundSmsHandler:
    def __init__(
        self,
        subscriptions: SubscriptionService,
        webhook_log_repo: WebhookLogRepo,
        commit: Callable[[], None],
        *,
        twilio: TwilioSettings,
        sms: SmsSettings,
        webhook_url: str = "",
    ) -> None:
        self._subscriptions = subscriptions
        self._log_repo = webhook_log_repo
        self._commit = commit
        self._twilio = twilio
        self._sms = sms
        self._webhook_url = webhook_url

    def handle(self, form: Mapping[str, str], signature: str = "") -> tuple[str, int]:
        """Return the TwiML reply and HTTP status for one inbound message."""
        account_sid = form.get("AccountSid", "").strip()
        if not account_sid:
            self._audit("REJECTED", "TWILIO_INBOUND_MISSING_ACCOUNTSID")
            return twiml(), 403
        if self._twilio.account_sid and account_sid != self._twilio.account_sid:
            self._audit("REJECTED", "TWILIO_INBOUND_WRONG_ACCOUNTSID")
            return twiml(), 403
        if signature and not verify_signature(self._webhook_url, form, signature, self._twilio.auth_token):
            self._audit("REJECTED", "TWILIO_BAD_SIGNATURE")
            return twiml(), 403

        phone = normalize_phone(form.get("From", ""))
        keyword = form.get("Body", "").strip().upper()
        self._audit("RECEIVED", "TWILIO_INBOUND", detail=f"keyword={keyword}")

        if keyword in STOP_WORDS:
            teams = self._subscriptions.set_opt_out(phone, True)
            logger.info("Inbound STOP opted out %d team(s)", len(teams))
            return twiml(STOP_REPLY), 200
        if keyword in START_WORDS:
            teams = self._subscriptions.set_opt_out(phone, False)
            logger.info("Inbound START opted in %d team(s)", len(teams))
            return twiml(START_REPLY), 200
        if keyword in HELP_WORDS:
            return twiml(help_reply(self._sms.support_email)), 200
        return twiml(), 200

    def _audit(self, status: str, action: str, detail: str = "") -> None:
        self._log_repo.insert(
            WebhookLogEntry(logged_at=datetime.now(UTC).isoformat(), status=status, action=action, detail=detail)
        )
        self._commit()
