import logging
from collections.abc import Callable
from typing import Any, Protocol

import httpx

from fantasy_disc_golf._retry import CONNECT_ERRORS, default_http_retry
from fantasy_disc_golf.domain.league_settings import TwilioSettings
from fantasy_disc_golf.exceptions import ConfigurationError, ExternalCallError

logger = logging.getLogger(__name__)

_API_BASE = "https://api.twilio.com/2010-04-01"
_DEFAULT_RETRY = default_http_retry("twilio send", retry_on=CONNECT_ERRORS)


class SmsSender(Protocol):
    def send(self, to_phone: str, body: str) -> str:
        """Deliver one message and return the provider message id."""
        ...


class TwilioSmsSender:
    """Sends SMS through the Twilio Messages API.

    A request that reached Twilio is never resent; only connection failures
    are retried.
    """

    def __init__(
        self,
        settings: TwilioSettings,
        client: httpx.Client | None = None,
        retry: Callable[..., Callable[..., Any]] = _DEFAULT_RETRY,
    ) -> None:
        if not settings.account_sid or not settings.auth_token:
            raise ConfigurationError("Missing twilio.account_sid/twilio.auth_token")
        if not settings.messaging_service_sid and not settings.from_number:
            raise ConfigurationError("Missing twilio.messaging_service_sid or twilio.from_number")
        self._settings = settings
        self._client = client or httpx.Client(timeout=httpx.Timeout(30.0, connect=10.0))
        self._post_with_retry = retry(self._do_post)

    def send(self, to_phone: str, body: str) -> str:
        payload = {"To": to_phone, "Body": body}
        if self._settings.messaging_service_sid:
            payload["MessagingServiceSid"] = self._settings.messaging_service_sid
        else:
            payload["From"] = self._settings.from_number

        try:
            response = self._post_with_retry(payload)
        except httpx.HTTPError as exc:
            raise ExternalCallError("twilio", str(exc)) from exc

        if not response.is_success:
            raise ExternalCallError("twilio", f"Twilio error ({response.status_code}): {response.text}")
        try:
            sid = str(response.json().get("sid", ""))
        except ValueError:
            sid = ""
        logger.debug("Twilio accepted message to %s: sid=%s", to_phone, sid)
        return sid

    def _do_post(self, payload: dict[str, str]) -> httpx.Response:
        url = f"{_API_BASE}/Accounts/{self._settings.account_sid}/Messages.json"
        return self._client.post(
            url,
            data=payload,
            auth=(self._settings.account_sid, self._settings.auth_token),
        )
