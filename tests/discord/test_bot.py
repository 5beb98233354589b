"""Tests for the Discord bot."""

from __future__ import annotations

import datetime
import os
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

import discord
from fantasy_disc_golf.discord.actions import PlayerDirectory
from fantasy_disc_golf.discord.bot import FantasyDiscGolfBot, create_bot
from fantasy_disc_golf.discord.config import ConfigurationError, DiscordConfig, load_discord_config
from fantasy_disc_golf.domain.league_settings import LeagueSettings, WaiverSettings
from tests.discord.conftest import FakeLeagueApi, make_actions
from tests.fakes.league import TEAMS


class TestDiscordConfig:
    def test_load_with_token_only(self) -> None:
        with patch.dict(os.environ, {"DISCORD_BOT_TOKEN": "test-token"}, clear=True):
            config = load_discord_config()

        assert config.bot_token == "test-token"
        assert config.allowed_channels is None
        assert config.waiver_channel_id is None
        assert config.guild_id is None

    def test_load_parses_ids(self) -> None:
        with patch.dict(
            os.environ,
            {
                "DISCORD_BOT_TOKEN": "test-token",
                "DISCORD_ALLOWED_CHANNELS": "123, 456,789",
                "DISCORD_WAIVER_CHANNEL_ID": "555",
                "DISCORD_GUILD_ID": "42",
            },
            clear=True,
        ):
            config = load_discord_config()

        assert config.allowed_channels == (123, 456, 789)
        assert config.waiver_channel_id == 555
        assert config.guild_id == 42

    def test_missing_token_raises(self) -> None:
        with patch.dict(os.environ, {}, clear=True), pytest.raises(ConfigurationError, match="DISCORD_BOT_TOKEN"):
            load_discord_config()

    def test_invalid_channels_raise(self) -> None:
        with (
            patch.dict(
                os.environ,
                {"DISCORD_BOT_TOKEN": "test-token", "DISCORD_ALLOWED_CHANNELS": "123,not-a-number"},
                clear=True,
            ),
            pytest.raises(ConfigurationError, match="comma-separated integers"),
        ):
            load_discord_config()

    def test_invalid_waiver_channel_raises(self) -> None:
        with (
            patch.dict(os.environ, {"DISCORD_BOT_TOKEN": "t", "DISCORD_WAIVER_CHANNEL_ID": "waivers"}, clear=True),
            pytest.raises(ConfigurationError, match="DISCORD_WAIVER_CHANNEL_ID"),
        ):
            load_discord_config()

    def test_guild_takes_one_id(self) -> None:
        with (
            patch.dict(os.environ, {"DISCORD_BOT_TOKEN": "t", "DISCORD_GUILD_ID": "1,2"}, clear=True),
            pytest.raises(ConfigurationError, match="single ID"),
        ):
            load_discord_config()


def _bot(
    config: DiscordConfig,
    api: FakeLeagueApi,
    directory: PlayerDirectory,
    now: datetime.datetime = datetime.datetime(2026, 4, 10, 15, 0, tzinfo=datetime.UTC),
) -> FantasyDiscGolfBot:
    return FantasyDiscGolfBot(config, make_actions(api, directory, now=now), teams=TEAMS)


class TestFantasyDiscGolfBot:
    def test_create_bot_returns_instance(self, discord_config: DiscordConfig) -> None:
        bot = create_bot(discord_config, MagicMock(), LeagueSettings(teams=TEAMS), WaiverSettings())
        assert isinstance(bot, FantasyDiscGolfBot)

    def test_registers_slash_commands(self, discord_config: DiscordConfig) -> None:
        bot = create_bot(discord_config, MagicMock(), LeagueSettings(teams=TEAMS), WaiverSettings())
        names = {command.name for command in bot.tree.get_commands()}
        assert names == {"transaction", "trade", "waivers", "waiver_run_now"}

    def test_channel_allowed_checks_thread_parent(
        self, discord_config: DiscordConfig, api: FakeLeagueApi, directory: PlayerDirectory
    ) -> None:
        bot = _bot(discord_config, api, directory)

        thread = MagicMock(spec=discord.Thread)
        thread.parent_id = 123456789
        interaction = MagicMock()
        interaction.channel = thread
        assert bot.channel_allowed(interaction) is True

        thread.parent_id = 111
        assert bot.channel_allowed(interaction) is False

    def test_channel_allowed_without_restrictions(
        self, discord_config_no_channels: DiscordConfig, api: FakeLeagueApi, directory: PlayerDirectory
    ) -> None:
        bot = _bot(discord_config_no_channels, api, directory)
        interaction = MagicMock()
        interaction.channel_id = 1
        assert bot.channel_allowed(interaction) is True

    async def test_player_choices(
        self, discord_config: DiscordConfig, api: FakeLeagueApi, directory: PlayerDirectory
    ) -> None:
        bot = _bot(discord_config, api, directory)
        choices = await bot.player_choices(MagicMock(), "tatt")
        assert [(c.name, c.value) for c in choices] == [("Kristin Tattar (44184)", "Kristin Tattar")]

    async def test_post_to_waiver_channel(
        self, discord_config: DiscordConfig, api: FakeLeagueApi, directory: PlayerDirectory
    ) -> None:
        bot = _bot(discord_config, api, directory)
        channel = MagicMock(spec=discord.TextChannel)
        channel.send = AsyncMock()
        bot.get_channel = MagicMock(return_value=channel)  # type: ignore[method-assign]

        assert await bot.post_to_waiver_channel("awards") is True
        bot.get_channel.assert_called_once_with(555)
        channel.send.assert_awaited_once_with("awards")

    async def test_post_without_channel_configured(
        self, discord_config_no_channels: DiscordConfig, api: FakeLeagueApi, directory: PlayerDirectory
    ) -> None:
        bot = _bot(discord_config_no_channels, api, directory)
        assert await bot.post_to_waiver_channel("awards") is False

    async def test_scheduled_run_posts_due_windows(
        self, discord_config: DiscordConfig, api: FakeLeagueApi, directory: PlayerDirectory
    ) -> None:
        run_time = datetime.datetime(2026, 4, 14, 16, 30, tzinfo=datetime.UTC)
        bot = _bot(discord_config, api, directory, now=run_time)
        with patch.object(bot, "post_to_waiver_channel", AsyncMock(return_value=True)) as post:
            await bot.run_scheduled_waivers()

        post.assert_awaited_once()
        assert "Hughes Moves: Gannon Buhr" in post.await_args.args[0]

    async def test_scheduled_run_skips_failed_window(
        self, discord_config: DiscordConfig, api: FakeLeagueApi, directory: PlayerDirectory
    ) -> None:
        api.waiver_run_response = {"ok": False, "error": "League is busy, try again shortly"}
        run_time = datetime.datetime(2026, 4, 14, 16, 30, tzinfo=datetime.UTC)
        bot = _bot(discord_config, api, directory, now=run_time)
        with patch.object(bot, "post_to_waiver_channel", AsyncMock(return_value=True)) as post:
            await bot.run_scheduled_waivers()

        post.assert_not_awaited()

    async def test_respond_rejects_disallowed_channel(
        self, discord_config: DiscordConfig, api: FakeLeagueApi, directory: PlayerDirectory
    ) -> None:
        bot = _bot(discord_config, api, directory)
        interaction = MagicMock()
        interaction.channel = MagicMock(spec=discord.TextChannel)
        interaction.channel_id = 1
        interaction.response.send_message = AsyncMock()
        interaction.response.defer = AsyncMock()

        await bot._respond(interaction, _reply("ok"), ephemeral=True)

        interaction.response.defer.assert_not_awaited()
        assert "not enabled" in interaction.response.send_message.await_args.args[0]

    async def test_respond_edits_with_result(
        self, discord_config_no_channels: DiscordConfig, api: FakeLeagueApi, directory: PlayerDirectory
    ) -> None:
        bot = _bot(discord_config_no_channels, api, directory)
        interaction = MagicMock()
        interaction.response.defer = AsyncMock()
        interaction.edit_original_response = AsyncMock()

        await bot._respond(interaction, _reply("✅ done"), ephemeral=False)

        interaction.response.defer.assert_awaited_once_with(ephemeral=False)
        interaction.edit_original_response.assert_awaited_once_with(content="✅ done")

    async def test_respond_shows_command_errors(
        self, discord_config_no_channels: DiscordConfig, api: FakeLeagueApi, directory: PlayerDirectory
    ) -> None:
        bot = _bot(discord_config_no_channels, api, directory)
        interaction = MagicMock()
        interaction.response.defer = AsyncMock()
        interaction.edit_original_response = AsyncMock()

        await bot._respond(interaction, bot._actions.transaction("Nobody", "Gannon Buhr", None, "", 1), ephemeral=False)

        interaction.edit_original_response.assert_awaited_once_with(content="❌ Invalid team: Nobody")


async def _reply(text: str) -> str:
    return text
