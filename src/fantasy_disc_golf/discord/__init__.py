"""Discord bot frontend for the fantasy disc golf league.

Public API:
    create_bot(config, api, league, waiver) -> FantasyDiscGolfBot
    run_bot(config, api, league, waiver) -> None (async)
    load_discord_config() -> DiscordConfig
"""

from fantasy_disc_golf.discord.bot import (
    FantasyDiscGolfBot,
    create_bot,
    run_bot,
)
from fantasy_disc_golf.discord.config import (
    DiscordConfig,
    load_discord_config,
)
from fantasy_disc_golf.exceptions import ConfigurationError

__all__ = [
    "ConfigurationError",
    "DiscordConfig",
    "FantasyDiscGolfBot",
    "create_bot",
    "load_discord_config",
    "run_bot",
]
