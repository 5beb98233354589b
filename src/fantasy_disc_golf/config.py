from __future__ import annotations

import datetime
from typing import TYPE_CHECKING, Any, cast

from config import ConfigurationSet, config_from_dict, config_from_env, config_from_yaml

from fantasy_disc_golf.domain.league_settings import (
    DEFAULT_TEAMS,
    LeagueSettings,
    SmsSettings,
    TwilioSettings,
    WaiverSettings,
    WaiverWindow,
    WebhookSettings,
)
from fantasy_disc_golf.exceptions import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Iterable

_DEFAULT_SCHEDULE: list[dict[str, str]] = [
    {"event": "Supreme Flight Open", "date": "2026-03-03"},
    {"event": "Big Easy Open", "date": "2026-03-17"},
    {"event": "Queen City Classic", "date": "2026-03-31"},
    {"event": "PDGA Champions Cup", "date": "2026-04-14"},
    {"event": "Jonesboro Open", "date": "2026-04-21"},
    {"event": "Kansas City Wide Open", "date": "2026-04-28"},
    {"event": "Waco Annual Charity Open", "date": "2026-05-05"},
    {"event": "The Open at Austin", "date": "2026-05-12"},
    {"event": "OTB Open", "date": "2026-05-26"},
    {"event": "Cascade Challenge", "date": "2026-06-02"},
    {"event": "Northwest Championship", "date": "2026-06-09"},
    {"event": "European Open", "date": "2026-06-23"},
    {"event": "Swedish Open", "date": "2026-06-30"},
    {"event": "Ale Open", "date": "2026-07-07"},
    {"event": "Heinola Open", "date": "2026-07-14"},
    {"event": "U.S. Women's Disc Golf Championship", "date": "2026-07-21"},
    {"event": "Champions Landing Open", "date": "2026-07-28"},
    {"event": "Ledgestone Open", "date": "2026-08-04"},
    {"event": "Discmania Challenge", "date": "2026-08-11"},
    {"event": "Preserve Championship", "date": "2026-08-18"},
    {"event": "PDGA Pro World Championships", "date": "2026-09-01"},
    {"event": "Idlewild Open", "date": "2026-09-08"},
    {"event": "Green Mountain Championship", "date": "2026-09-22"},
    {"event": "MVP Open", "date": "2026-09-29"},
    {"event": "United States and Throw Pink Women's Disc Golf Championship", "date": "2026-10-13"},
]

_DEFAULTS: dict[str, object] = {
    "league": {
        "name": "Fantasy Disc Golf",
        "teams": list(DEFAULT_TEAMS),
        "roster_cap": 10,
        "lineup_size": 6,
        "timezone": "America/New_York",
    },
    "waiver": {
        "max_picks": 10,
        "max_rounds": 50,
        "run_hour": 12,
        "allow_manual_run": False,
        "schedule": _DEFAULT_SCHEDULE,
    },
    "sms": {
        "enabled": False,
        "max_per_invocation": 15,
        "max_per_hour": 40,
        "max_per_day": 100,
        "dedupe_minutes": 30,
        "support_email": "",
    },
    "twilio": {
        "account_sid": "",
        "auth_token": "",
        "from_number": "",
        "messaging_service_sid": "",
    },
    "webhook": {
        "secret": "",
        "url": "",
        "lock_timeout": 25,
        "host": "127.0.0.1",
        "port": 8080,
    },
    "db": {"path": "~/.config/fdg/league.db"},
    "cache": {"db_path": "~/.config/fdg/cache.db"},
}

_TRUE_STRINGS = frozenset({"1", "true", "yes", "on"})


def create_config(
    yaml_path: str = "fdg.yaml",
    env_prefix: str = "FDG",
    defaults: dict[str, object] | None = None,
    overrides: dict[str, object] | None = None,
) -> ConfigurationSet:
    """Create a layered configuration.

    Priority (highest to lowest): explicit overrides > env vars > YAML file > defaults dict.
    """
    if defaults is None:
        defaults = _DEFAULTS

    layers = [
        config_from_env(env_prefix, separator="__", lowercase_keys=True),
        config_from_yaml(yaml_path, read_from_file=True, ignore_missing_paths=True),
        config_from_dict(defaults),
    ]
    if overrides:
        layers.insert(0, config_from_dict(overrides))
    return ConfigurationSet(*layers)


def _as_bool(value: object) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


def _as_list(value: object) -> list[str]:
    # Env vars arrive as comma-separated strings
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return [str(v) for v in cast("Iterable[object]", value)]


def _as_mapping(value: object) -> dict[str, str]:
    if value is None:
        return {}
    if hasattr(value, "as_dict"):
        value = value.as_dict()
    return {str(k): str(v) for k, v in cast("dict[Any, Any]", value).items()}


def _parse_schedule(raw: object) -> tuple[WaiverWindow, ...]:
    windows: list[WaiverWindow] = []
    for item in cast("Iterable[dict[str, object]]", raw or []):
        try:
            date = datetime.date.fromisoformat(str(item["date"]))
        except (KeyError, ValueError) as exc:
            raise ConfigurationError(f"Invalid waiver schedule entry: {item!r}") from exc
        windows.append(WaiverWindow(event=str(item.get("event", "")), date=date))
    return tuple(sorted(windows, key=lambda w: w.date))


def load_league_settings(cfg: ConfigurationSet | None = None) -> LeagueSettings:
    if cfg is None:
        cfg = create_config()
    teams = tuple(_as_list(cfg["league.teams"]))
    if not teams:
        raise ConfigurationError("league.teams must list at least one team")
    return LeagueSettings(
        name=str(cfg["league.name"]),
        teams=teams,
        team_aliases=_as_mapping(cfg.get("league.team_aliases", None)),
        roster_cap=int(str(cfg["league.roster_cap"])),
        lineup_size=int(str(cfg["league.lineup_size"])),
        timezone=str(cfg["league.timezone"]),
    )


def load_waiver_settings(cfg: ConfigurationSet | None = None) -> WaiverSettings:
    if cfg is None:
        cfg = create_config()
    return WaiverSettings(
        max_picks=int(str(cfg["waiver.max_picks"])),
        max_rounds=int(str(cfg["waiver.max_rounds"])),
        run_hour=int(str(cfg["waiver.run_hour"])),
        allow_manual_run=_as_bool(cfg["waiver.allow_manual_run"]),
        schedule=_parse_schedule(cfg.get("waiver.schedule", None)),
    )


def load_sms_settings(cfg: ConfigurationSet | None = None) -> SmsSettings:
    if cfg is None:
        cfg = create_config()
    return SmsSettings(
        enabled=_as_bool(cfg["sms.enabled"]),
        max_per_invocation=int(str(cfg["sms.max_per_invocation"])),
        max_per_hour=int(str(cfg["sms.max_per_hour"])),
        max_per_day=int(str(cfg["sms.max_per_day"])),
        dedupe_minutes=int(str(cfg["sms.dedupe_minutes"])),
        support_email=str(cfg["sms.support_email"]),
    )


def load_twilio_settings(cfg: ConfigurationSet | None = None) -> TwilioSettings:
    if cfg is None:
        cfg = create_config()
    return TwilioSettings(
        account_sid=str(cfg["twilio.account_sid"]),
        auth_token=str(cfg["twilio.auth_token"]),
        from_number=str(cfg["twilio.from_number"]),
        messaging_service_sid=str(cfg["twilio.messaging_service_sid"]),
    )


def load_webhook_settings(cfg: ConfigurationSet | None = None) -> WebhookSettings:
    if cfg is None:
        cfg = create_config()
    return WebhookSettings(
        secret=str(cfg["webhook.secret"]),
        url=str(cfg["webhook.url"]),
        lock_timeout=float(str(cfg["webhook.lock_timeout"])),
        host=str(cfg["webhook.host"]),
        port=int(str(cfg["webhook.port"])),
    )


def db_path(cfg: ConfigurationSet | None = None) -> str:
    if cfg is None:
        cfg = create_config()
    return str(cfg["db.path"])


def cache_db_path(cfg: ConfigurationSet | None = None) -> str:
    if cfg is None:
        cfg = create_config()
    return str(cfg["cache.db_path"])
