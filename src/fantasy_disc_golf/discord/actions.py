"""Slash command behaviour, kept apart from the discord.py wiring so it can run without a gateway."""

import asyncio
import datetime
import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any

import httpx

from fantasy_disc_golf.client.api_client import LeagueApiClient
from fantasy_disc_golf.discord import formatting
from fantasy_disc_golf.domain.league_settings import WaiverSettings, WaiverWindow
from fantasy_disc_golf.domain.ownership import FREE_AGENT
from fantasy_disc_golf.exceptions import ExternalCallError, FdgException
from fantasy_disc_golf.services.schedule import due_windows, league_today, next_window

logger = logging.getLogger(__name__)


class CommandError(FdgException):
    """A user-facing failure; the message is shown in Discord as-is."""


class PlayerDirectory:
    """Local copy of the player pool for autocompletion and name -> PDGA lookup."""

    def __init__(self) -> None:
        self._players: list[tuple[str, str]] = []
        self._by_name: dict[str, str] = {}

    def load(self, players: Iterable[Mapping[str, Any]]) -> None:
        loaded: list[tuple[str, str]] = []
        by_name: dict[str, str] = {}
        for p in players:
            name = str(p.get("name") or "").strip()
            pdga = str(p.get("pdga") or "").strip()
            if not name or not pdga:
                continue
            loaded.append((name, pdga))
            by_name.setdefault(name, pdga)
        self._players = loaded
        self._by_name = by_name

    def __len__(self) -> int:
        return len(self._players)

    def pdga_for(self, name: str) -> str | None:
        return self._by_name.get(name)

    def search(self, query: str, limit: int = 25) -> list[tuple[str, str]]:
        """Return ``(label, value)`` pairs where the label shows the PDGA number."""
        q = query.strip().lower()
        matches = [(n, p) for n, p in self._players if q in n.lower()] if q else self._players
        return [(f"{n} ({p})"[:100], n[:100]) for n, p in matches[:limit]]


class LeagueActions:
    def __init__(
        self,
        api: LeagueApiClient,
        directory: PlayerDirectory,
        *,
        teams: Sequence[str],
        waiver: WaiverSettings,
        timezone: str,
        clock: Callable[[], datetime.datetime] | None = None,
    ) -> None:
        self._api = api
        self._directory = directory
        self._teams = frozenset(teams)
        self._waiver = waiver
        self._timezone = timezone
        self._clock = clock or (lambda: datetime.datetime.now(datetime.UTC))

    @property
    def directory(self) -> PlayerDirectory:
        return self._directory

    async def refresh_pool(self) -> int:
        players = await self._call(self._api.player_pool)
        self._directory.load(players)
        logger.info("Player pool refreshed: %d players", len(self._directory))
        return len(self._directory)

    async def transaction(
        self, team: str, add_name: str | None, drop_name: str | None, notes: str, user_id: int | str
    ) -> str:
        self._require_team(team)
        if not add_name and not drop_name:
            raise CommandError("You must provide add_player and/or drop_player.")
        now = self._clock().isoformat()

        if add_name and drop_name:
            await self._commit(
                {
                    "type": "SWAP",
                    "team": team,
                    "dropPdga": self._resolve(drop_name, "drop_player"),
                    "dropName": drop_name,
                    "addPdga": self._resolve(add_name, "add_player"),
                    "addName": add_name,
                    "notes": notes,
                    "date": now,
                }
            )
            return formatting.swap_receipt(team, drop_name, add_name, notes, user_id)

        lines = []
        if drop_name:
            await self._commit(
                {
                    "type": "DROP",
                    "team": team,
                    "pdga": self._resolve(drop_name, "drop_player"),
                    "name": drop_name,
                    "fromTeam": team,
                    "toTeam": FREE_AGENT,
                    "notes": notes,
                    "date": now,
                }
            )
            lines.append(formatting.drop_line(drop_name))
        if add_name:
            await self._commit(
                {
                    "type": "ADD",
                    "team": team,
                    "pdga": self._resolve(add_name, "add_player"),
                    "name": add_name,
                    "fromTeam": FREE_AGENT,
                    "toTeam": team,
                    "notes": notes,
                    "date": now,
                }
            )
            lines.append(formatting.add_line(add_name))
        return formatting.transaction_receipt(team, lines, notes, user_id)

    async def trade(
        self, team_a: str, player_a: str, team_b: str, player_b: str, notes: str, user_id: int | str
    ) -> str:
        if team_a not in self._teams or team_b not in self._teams:
            raise CommandError("Invalid team(s).")
        if team_a == team_b:
            raise CommandError("team_a and team_b must be different.")
        pdga_a = self._resolve(player_a, "player_a")
        pdga_b = self._resolve(player_b, "player_b")
        now = self._clock().isoformat()
        # Both legs validate before either commits.
        legs = [
            {"type": "TRADE", "team": team_a, "pdga": pdga_a, "name": player_a, "fromTeam": team_a, "toTeam": team_b},
            {"type": "TRADE", "team": team_b, "pdga": pdga_b, "name": player_b, "fromTeam": team_b, "toTeam": team_a},
        ]
        for leg in legs:
            self._ensure_ok(await self._call(self._api.validate, {**leg, "notes": notes, "date": now}))
        for leg in legs:
            await self._commit({**leg, "notes": notes, "date": now})
        return formatting.trade_receipt(team_a, player_a, team_b, player_b, notes, user_id)

    async def submit_waivers(self, team: str, pick_names: Sequence[str | None], user_id: int | str) -> str:
        self._require_team(team)
        window = self.upcoming_window()
        picks: list[dict[str, Any]] = []
        seen: set[str] = set()
        for rank, name in enumerate(pick_names, start=1):
            if not name:
                continue
            pdga = self._directory.pdga_for(name)
            if pdga is None:
                raise CommandError(f"Not found in player pool: {name}")
            if pdga in seen:
                raise CommandError(f"Duplicate player selected: {name} ({pdga})")
            seen.add(pdga)
            picks.append({"rank": rank, "pdga": pdga, "name": name})
        if not picks:
            raise CommandError("Submit at least 1 pick (pick1..pick10).")

        result = self._ensure_ok(
            await self._call(self._api.waiver_submit, window.cycle_id, team, str(user_id), picks)
        )
        returned = result.get("picks")
        return formatting.waiver_submission_receipt(window, team, returned if isinstance(returned, list) else picks)

    async def run_waivers(self, window: WaiverWindow) -> str | None:
        """Trigger the waiver run for ``window``; return the channel post, or None if already posted."""
        logger.info("Waiver run triggered for %s (%s)", window.event, window.cycle_id)
        result = self._ensure_ok(await self._call(self._api.waiver_run, window.cycle_id, window.event))
        if result.get("alreadyPosted"):
            logger.info("Waiver run already posted for cycle %s", window.cycle_id)
            return None
        return formatting.waiver_awards_post(window, result)

    async def run_waivers_now(self) -> tuple[WaiverWindow, str | None]:
        if not self._waiver.allow_manual_run:
            raise CommandError("Manual waiver runs are currently disabled.")
        window = self.upcoming_window()
        return window, await self.run_waivers(window)

    def upcoming_window(self) -> WaiverWindow:
        window = next_window(self._waiver.schedule, league_today(self._timezone, self._clock()))
        if window is None:
            raise CommandError("No upcoming waiver cycle found in schedule.")
        return window

    def due_windows(self) -> list[WaiverWindow]:
        return due_windows(self._waiver.schedule, self._timezone, self._waiver.run_hour, self._clock())

    def _require_team(self, team: str) -> None:
        if team not in self._teams:
            raise CommandError(f"Invalid team: {team}")

    def _resolve(self, name: str, option: str) -> str:
        pdga = self._directory.pdga_for(name)
        if pdga is None:
            raise CommandError(f"Could not resolve PDGA for {option}: {name}")
        return pdga

    async def _commit(self, command: dict[str, Any]) -> dict[str, Any]:
        return self._ensure_ok(await self._call(self._api.commit, command))

    @staticmethod
    def _ensure_ok(result: dict[str, Any]) -> dict[str, Any]:
        if not result.get("ok"):
            raise CommandError(formatting.error_text(result))
        return result

    @staticmethod
    async def _call(fn: Callable[..., Any], *args: Any) -> Any:
        try:
            return await asyncio.to_thread(fn, *args)
        except (httpx.HTTPError, ExternalCallError) as e:
            logger.error("Webhook call failed: %s", e)
            raise CommandError(f"League webhook unavailable: {e}") from e
