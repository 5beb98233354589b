#!/usr/bin/env python
"""Run the league Discord bot without going through the ``fdg`` CLI.

Usage:
    DISCORD_BOT_TOKEN=xxx FDG__WEBHOOK__URL=... FDG__WEBHOOK__SECRET=... python scripts/run_discord_bot.py

Environment variables:
    DISCORD_BOT_TOKEN: Required. The Discord bot token.
    DISCORD_WAIVER_CHANNEL_ID: Optional. Channel for scheduled waiver award posts.
    DISCORD_ALLOWED_CHANNELS: Optional. Comma-separated list of allowed channel IDs.
    DISCORD_GUILD_ID: Optional. Guild to sync slash commands to.
    FDG_CONFIG: Optional. YAML config path (default fdg.yaml).
    FDG__WEBHOOK__URL / FDG__WEBHOOK__SECRET: Required. League webhook endpoint and shared secret.
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys

from fantasy_disc_golf.cli._logging import configure_logging
from fantasy_disc_golf.cli.factory import build_api_client, load_app_settings
from fantasy_disc_golf.config import create_config
from fantasy_disc_golf.discord import ConfigurationError, load_discord_config, run_bot

logger = logging.getLogger("run_discord_bot")


def main() -> int:
    configure_logging()
    try:
        settings = load_app_settings(create_config(yaml_path=os.environ.get("FDG_CONFIG", "fdg.yaml")))
        discord_config = load_discord_config()
        api = build_api_client(settings)
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        return 1

    logger.info(
        "Starting bot for %s: %d teams, %d waiver windows, runs at %02d:00 %s",
        settings.league.name,
        len(settings.league.teams),
        len(settings.waiver.schedule),
        settings.waiver.run_hour,
        settings.league.timezone,
    )
    try:
        asyncio.run(run_bot(discord_config, api, settings.league, settings.waiver))
    except KeyboardInterrupt:
        logger.info("Bot stopped by user")
    return 0


if __name__ == "__main__":
    sys.exit(main())
