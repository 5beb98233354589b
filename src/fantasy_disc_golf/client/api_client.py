import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Any

import httpx

from fantasy_disc_golf._retry import default_http_retry
from fantasy_disc_golf.exceptions import ExternalCallError

logger = logging.getLogger(__name__)

_DEFAULT_RETRY = default_http_retry("league webhook", retry_on=(httpx.TransportError,))


class LeagueApiClient:
    """JSON client for the league webhook.

    Only idempotent actions (waiver runs, pool lookups, validation) are
    retried; commits and submissions are sent once.
    """

    def __init__(
        self,
        url: str,
        secret: str,
        client: httpx.Client | None = None,
        retry: Callable[..., Callable[..., Any]] = _DEFAULT_RETRY,
    ) -> None:
        self._url = url
        self._secret = secret
        self._client = client or httpx.Client(timeout=httpx.Timeout(60.0, connect=10.0))
        self._post_with_retry = retry(self._post)

    def waiver_run(self, cycle_id: str, event_name: str) -> dict[str, Any]:
        return self._post_with_retry({"action": "WAIVER_RUN", "cycleId": cycle_id, "eventName": event_name})

    def player_pool(self, query: str = "", limit: int = 25) -> list[dict[str, Any]]:
        data = self._post_with_retry({"action": "PLAYER_POOL", "query": query, "limit": limit})
        return list(data.get("players", []))

    def validate(self, command: Mapping[str, Any]) -> dict[str, Any]:
        return self._post_with_retry({**command, "mode": "validate"})

    def commit(self, command: Mapping[str, Any]) -> dict[str, Any]:
        return self._post(dict(command))

    def waiver_submit(
        self, cycle_id: str, team: str, submitted_by: str, picks: Sequence[Mapping[str, Any]]
    ) -> dict[str, Any]:
        return self._post(
            {
                "action": "WAIVER_SUBMIT",
                "cycleId": cycle_id,
                "team": team,
                "submittedBy": submitted_by,
                "picks": [dict(p) for p in picks],
            }
        )

    def lineup_reminder(self, cycle_id: str, event_name: str) -> dict[str, Any]:
        return self._post({"action": "LINEUP_REMINDER_RUN", "cycleId": cycle_id, "eventName": event_name})

    def alerts_set(self, team: str, phone: str, **preferences: bool) -> dict[str, Any]:
        payload: dict[str, Any] = {"action": "ALERTS_SET", "team": team, "phoneE164": phone}
        payload.update(preferences)
        return self._post(payload)

    def _post(self, payload: dict[str, Any]) -> dict[str, Any]:
        response = self._client.post(self._url, json={**payload, "secret": self._secret})
        if response.status_code == 401:
            raise ExternalCallError("webhook", "Unauthorized (bad secret)")
        try:
            data = response.json()
        except ValueError as exc:
            raise ExternalCallError("webhook", f"Non-JSON response ({response.status_code})") from exc
        if not isinstance(data, dict):
            raise ExternalCallError("webhook", f"Unexpected response ({response.status_code})")
        logger.debug("Webhook %s -> %s", payload.get("action") or payload.get("type"), data.get("ok"))
        return data
