"""Test fixtures for Discord bot tests."""

from __future__ import annotations

import datetime
from collections.abc import Mapping, Sequence
from typing import Any

import pytest

from fantasy_disc_golf.discord.actions import LeagueActions, PlayerDirectory
from fantasy_disc_golf.discord.config import DiscordConfig
from fantasy_disc_golf.domain.league_settings import WaiverSettings, WaiverWindow
from tests.fakes.league import TEAMS

WINDOW = WaiverWindow(event="Jonesboro Open", date=datetime.date(2026, 4, 14))

PLAYERS = [
    {"pdga": "27523", "name": "Calvin Heimburg", "division": "MPO", "owner": "Sir Krontzalot"},
    {"pdga": "37817", "name": "Gannon Buhr", "division": "MPO", "owner": "Free Agent"},
    {"pdga": "50670", "name": "Anthony Barela", "division": "MPO", "owner": "Free Agent"},
    {"pdga": "44184", "name": "Kristin Tattar", "division": "FPO", "owner": "Exalted Evil"},
]


class FakeLeagueApi:
    """Stands in for LeagueApiClient; records every call and answers from canned responses."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, Any]] = []
        self.validate_responses: list[dict[str, Any]] = []
        self.commit_response: dict[str, Any] = {"ok": True, "committed": 1}
        self.waiver_run_response: dict[str, Any] = {
            "ok": True,
            "alreadyPosted": False,
            "title": "Waiver Awards",
            "lines": ["— Round 1 —", "4) Hughes Moves: Gannon Buhr (37817)"],
            "footer": "Processed 1 award(s)",
        }
        self.error: Exception | None = None

    def _record(self, name: str, value: Any) -> None:
        if self.error is not None:
            raise self.error
        self.calls.append((name, value))

    def player_pool(self, query: str = "", limit: int = 25) -> list[dict[str, Any]]:
        self._record("player_pool", query)
        return list(PLAYERS)

    def validate(self, command: Mapping[str, Any]) -> dict[str, Any]:
        self._record("validate", dict(command))
        return self.validate_responses.pop(0) if self.validate_responses else {"ok": True}

    def commit(self, command: Mapping[str, Any]) -> dict[str, Any]:
        self._record("commit", dict(command))
        return self.commit_response

    def waiver_submit(
        self, cycle_id: str, team: str, submitted_by: str, picks: Sequence[Mapping[str, Any]]
    ) -> dict[str, Any]:
        self._record("waiver_submit", (cycle_id, team, submitted_by, list(picks)))
        return {"ok": True, "picks": list(picks)}

    def waiver_run(self, cycle_id: str, event_name: str) -> dict[str, Any]:
        self._record("waiver_run", (cycle_id, event_name))
        return self.waiver_run_response


@pytest.fixture
def discord_config() -> DiscordConfig:
    return DiscordConfig(bot_token="test-token-123", waiver_channel_id=555, allowed_channels=(123456789, 987654321))


@pytest.fixture
def discord_config_no_channels() -> DiscordConfig:
    return DiscordConfig(bot_token="test-token-123")


@pytest.fixture
def api() -> FakeLeagueApi:
    return FakeLeagueApi()


@pytest.fixture
def directory() -> PlayerDirectory:
    d = PlayerDirectory()
    d.load(PLAYERS)
    return d


def make_actions(
    api: FakeLeagueApi,
    directory: PlayerDirectory,
    *,
    now: datetime.datetime = datetime.datetime(2026, 4, 10, 15, 0, tzinfo=datetime.UTC),
    allow_manual_run: bool = True,
    schedule: tuple[WaiverWindow, ...] = (WINDOW,),
) -> LeagueActions:
    return LeagueActions(
        api,  # type: ignore[arg-type]
        directory,
        teams=TEAMS,
        waiver=WaiverSettings(allow_manual_run=allow_manual_run, run_hour=12, schedule=schedule),
        timezone="America/New_York",
        clock=lambda: now,
    )
