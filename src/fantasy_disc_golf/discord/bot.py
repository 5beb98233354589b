"""Discord bot for league transactions and waivers.

Slash commands talk to the league webhook through ``LeagueApiClient``. Two
background loops run once the client is ready: a player pool refresh used
for autocompletion, and the daily waiver run that posts awards to the
waiver channel on scheduled dates.
"""

import datetime
import logging
from collections.abc import Coroutine, Sequence
from typing import Any
from zoneinfo import ZoneInfo

import discord
from discord import app_commands
from discord.ext import tasks

from fantasy_disc_golf.client.api_client import LeagueApiClient
from fantasy_disc_golf.discord import formatting
from fantasy_disc_golf.discord.actions import CommandError, LeagueActions, PlayerDirectory
from fantasy_disc_golf.discord.config import DiscordConfig
from fantasy_disc_golf.domain.league_settings import LeagueSettings, WaiverSettings

logger = logging.getLogger(__name__)

POOL_REFRESH_HOURS = 6


class FantasyDiscGolfBot(discord.Client):
    def __init__(
        self,
        config: DiscordConfig,
        actions: LeagueActions,
        *,
        teams: Sequence[str],
        run_hour: int = 12,
        timezone: str = "America/New_York",
        **kwargs,
    ) -> None:
        super().__init__(intents=discord.Intents.default(), **kwargs)
        self._config = config
        self._actions = actions
        self._teams = tuple(teams)
        self.tree = app_commands.CommandTree(self)
        self._register_commands()

        run_time = datetime.time(hour=run_hour, tzinfo=ZoneInfo(timezone))
        self._waiver_loop = tasks.loop(time=run_time)(self.run_scheduled_waivers)
        self._waiver_loop.before_loop(self.wait_until_ready)
        self._pool_loop = tasks.loop(hours=POOL_REFRESH_HOURS)(self.refresh_pool)
        self._pool_loop.before_loop(self.wait_until_ready)

    async def setup_hook(self) -> None:
        if self._config.guild_id:
            guild = discord.Object(id=self._config.guild_id)
            self.tree.copy_global_to(guild=guild)
            await self.tree.sync(guild=guild)
        else:
            await self.tree.sync()
        self._pool_loop.start()
        self._waiver_loop.start()

    async def on_ready(self) -> None:
        logger.info("Bot is ready. Logged in as %s (ID: %s)", self.user, self.user.id if self.user else "unknown")

    async def refresh_pool(self) -> None:
        try:
            await self._actions.refresh_pool()
        except CommandError:
            logger.exception("Player pool refresh failed")

    async def run_scheduled_waivers(self) -> None:
        for window in self._actions.due_windows():
            try:
                post = await self._actions.run_waivers(window)
            except CommandError:
                logger.exception("Scheduled waiver run failed for %s (%s)", window.event, window.cycle_id)
                continue
            if post is not None:
                await self.post_to_waiver_channel(post)

    async def post_to_waiver_channel(self, content: str) -> bool:
        channel_id = self._config.waiver_channel_id
        if channel_id is None:
            logger.warning("DISCORD_WAIVER_CHANNEL_ID not set; waiver awards not posted")
            return False
        channel = self.get_channel(channel_id) or await self.fetch_channel(channel_id)
        if not isinstance(channel, discord.abc.Messageable):
            logger.error("Waiver channel %s is not a text channel the bot can access", channel_id)
            return False
        await channel.send(formatting.truncate(content))
        logger.info("Waiver awards posted to channel %s", channel_id)
        return True

    def channel_allowed(self, interaction: discord.Interaction) -> bool:
        if not self._config.allowed_channels:
            return True
        channel = interaction.channel
        channel_id = channel.parent_id if isinstance(channel, discord.Thread) else interaction.channel_id
        return channel_id in self._config.allowed_channels

    async def player_choices(self, interaction: discord.Interaction, current: str) -> list[app_commands.Choice[str]]:
        return [
            app_commands.Choice(name=label, value=value)
            for label, value in self._actions.directory.search(current, 25)
        ]

    async def _respond(
        self, interaction: discord.Interaction, work: Coroutine[Any, Any, str], *, ephemeral: bool
    ) -> None:
        if not self.channel_allowed(interaction):
            work.close()
            await interaction.response.send_message("❌ Commands are not enabled in this channel.", ephemeral=True)
            return
        await interaction.response.defer(ephemeral=ephemeral)
        try:
            content = await work
        except CommandError as e:
            content = f"❌ {e}"
        await interaction.edit_original_response(content=formatting.truncate(content))

    def _register_commands(self) -> None:
        team_choices = [app_commands.Choice(name=t, value=t) for t in self._teams]

        @self.tree.command(name="transaction", description="Log an add, drop, or swap (add and drop together = swap).")
        @app_commands.choices(team=team_choices)
        async def transaction(
            interaction: discord.Interaction,
            team: str,
            add_player: str | None = None,
            drop_player: str | None = None,
            notes: str | None = None,
        ) -> None:
            await self._respond(
                interaction,
                self._actions.transaction(team, add_player, drop_player, notes or "", interaction.user.id),
                ephemeral=False,
            )

        @self.tree.command(name="trade", description="Log a trade (writes two rows).")
        @app_commands.choices(team_a=team_choices, team_b=team_choices)
        async def trade(
            interaction: discord.Interaction,
            team_a: str,
            player_a: str,
            team_b: str,
            player_b: str,
            notes: str | None = None,
        ) -> None:
            await self._respond(
                interaction,
                self._actions.trade(team_a, player_a, team_b, player_b, notes or "", interaction.user.id),
                ephemeral=False,
            )

        @self.tree.command(
            name="waivers",
            description="Submit your ranked waiver wishlist (resubmitting replaces your previous request).",
        )
        @app_commands.choices(team=team_choices)
        async def waivers(
            interaction: discord.Interaction,
            team: str,
            pick1: str,
            pick2: str | None = None,
            pick3: str | None = None,
            pick4: str | None = None,
            pick5: str | None = None,
            pick6: str | None = None,
            pick7: str | None = None,
            pick8: str | None = None,
            pick9: str | None = None,
            pick10: str | None = None,
        ) -> None:
            picks = [pick1, pick2, pick3, pick4, pick5, pick6, pick7, pick8, pick9, pick10]
            await self._respond(
                interaction, self._actions.submit_waivers(team, picks, interaction.user.id), ephemeral=True
            )

        @self.tree.command(name="waiver_run_now", description="Run waiver awards for the next scheduled cycle.")
        async def waiver_run_now(interaction: discord.Interaction) -> None:
            await self._respond(interaction, self._run_waivers_now(), ephemeral=True)

        for command, options in (
            (transaction, ("add_player", "drop_player")),
            (trade, ("player_a", "player_b")),
            (waivers, tuple(f"pick{i}" for i in range(1, 11))),
        ):
            for option in options:
                command.autocomplete(option)(self.player_choices)

    async def _run_waivers_now(self) -> str:
        window, post = await self._actions.run_waivers_now()
        if post is None:
            return f"ℹ️ Waiver awards were already posted for cycle **{window.cycle_id}** ({window.event})."
        await self.post_to_waiver_channel(post)
        return f"✅ Waiver awards triggered.\n📅 Cycle: **{window.cycle_id}** ({window.event})"


def create_bot(
    config: DiscordConfig,
    api: LeagueApiClient,
    league: LeagueSettings,
    waiver: WaiverSettings,
) -> FantasyDiscGolfBot:
    actions = LeagueActions(api, PlayerDirectory(), teams=league.teams, waiver=waiver, timezone=league.timezone)
    return FantasyDiscGolfBot(
        config, actions, teams=league.teams, run_hour=waiver.run_hour, timezone=league.timezone
    )


async def run_bot(
    config: DiscordConfig,
    api: LeagueApiClient,
    league: LeagueSettings,
    waiver: WaiverSettings,
) -> None:
    bot = create_bot(config, api, league, waiver)
    await bot.start(config.bot_token)
