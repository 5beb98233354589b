"""Discord bot settings, read from ``DISCORD_*`` environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass

from fantasy_disc_golf.exceptions import ConfigurationError

TOKEN_VAR = "DISCORD_BOT_TOKEN"
WAIVER_CHANNEL_VAR = "DISCORD_WAIVER_CHANNEL_ID"
ALLOWED_CHANNELS_VAR = "DISCORD_ALLOWED_CHANNELS"
GUILD_VAR = "DISCORD_GUILD_ID"


@dataclass(frozen=True)
class DiscordConfig:
    """What the bot needs beyond the league webhook settings.

    ``allowed_channels`` of ``None`` accepts commands anywhere. With a
    ``guild_id`` the slash commands sync to that guild only, which takes
    effect immediately instead of after the global propagation delay.
    """

    bot_token: str
    waiver_channel_id: int | None = None
    allowed_channels: tuple[int, ...] | None = None
    guild_id: int | None = None


def _snowflakes(name: str) -> tuple[int, ...]:
    parts = [part.strip() for part in os.environ.get(name, "").split(",")]
    try:
        return tuple(int(part) for part in parts if part)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be comma-separated integers: {e}") from e


def _snowflake(name: str) -> int | None:
    ids = _snowflakes(name)
    if len(ids) > 1:
        raise ConfigurationError(f"{name} takes a single ID, got {len(ids)}")
    return ids[0] if ids else None


def load_discord_config() -> DiscordConfig:
    """Build a :class:`DiscordConfig`; raises ``ConfigurationError`` when the token is unset or an ID is malformed."""
    token = os.environ.get(TOKEN_VAR, "").strip()
    if not token:
        raise ConfigurationError(f"{TOKEN_VAR} environment variable is required")
    return DiscordConfig(
        bot_token=token,
        waiver_channel_id=_snowflake(WAIVER_CHANNEL_VAR),
        allowed_channels=_snowflakes(ALLOWED_CHANNELS_VAR) or None,
        guild_id=_snowflake(GUILD_VAR),
    )
