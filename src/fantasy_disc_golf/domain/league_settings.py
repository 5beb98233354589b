import datetime
from dataclasses import dataclass, field

DEFAULT_TEAMS: tuple[str, ...] = (
    "Sir Krontzalot",
    "Exalted Evil",
    "Tree Ninja Disc Golf",
    "The Abba Zabba",
    "Ryan Morgan",
    "SPY Dyes",
    "Eddie Speidel",
    "Webb Webb Webb",
    "Hughes Moves",
    "Matthew Lopez",
)


@dataclass(frozen=True)
class LeagueSettings:
    name: str = "Fantasy Disc Golf"
    teams: tuple[str, ...] = DEFAULT_TEAMS
    team_aliases: dict[str, str] = field(default_factory=dict)
    roster_cap: int = 10
    lineup_size: int = 6
    timezone: str = "America/New_York"


@dataclass(frozen=True)
class WaiverWindow:
    event: str
    date: datetime.date

    @property
    def cycle_id(self) -> str:
        return self.date.isoformat()


@dataclass(frozen=True)
class WaiverSettings:
    max_picks: int = 10
    max_rounds: int = 50
    run_hour: int = 12
    allow_manual_run: bool = False
    schedule: tuple[WaiverWindow, ...] = ()


@dataclass(frozen=True)
class SmsSettings:
    enabled: bool = False
    max_per_invocation: int = 15
    max_per_hour: int = 40
    max_per_day: int = 100
    dedupe_minutes: int = 30
    support_email: str = ""


@dataclass(frozen=True)
class TwilioSettings:
    account_sid: str = ""
    auth_token: str = ""
    from_number: str = ""
    messaging_service_sid: str = ""

    @property
    def configured(self) -> bool:
        return bool(self.account_sid and self.auth_token and (self.from_number or self.messaging_service_sid))


@dataclass(frozen=True)
class WebhookSettings:
    secret: str = ""
    url: str = ""
    lock_timeout: float = 25.0
    host: str = "127.0.0.1"
    port: int = 8080
