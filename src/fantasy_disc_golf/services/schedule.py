import datetime
from collections.abc import Sequence
from zoneinfo import ZoneInfo

from fantasy_disc_golf.domain.league_settings import WaiverWindow


def league_today(timezone: str, now: datetime.datetime | None = None) -> datetime.date:
    now = now or datetime.datetime.now(datetime.UTC)
    return now.astimezone(ZoneInfo(timezone)).date()


def windows_on(schedule: Sequence[WaiverWindow], day: datetime.date) -> list[WaiverWindow]:
    return [w for w in schedule if w.date == day]


def next_window(schedule: Sequence[WaiverWindow], day: datetime.date) -> WaiverWindow | None:
    """The first waiver window on or after ``day``."""
    upcoming = sorted((w for w in schedule if w.date >= day), key=lambda w: w.date)
    return upcoming[0] if upcoming else None


def due_windows(
    schedule: Sequence[WaiverWindow],
    timezone: str,
    run_hour: int,
    now: datetime.datetime | None = None,
) -> list[WaiverWindow]:
    """Windows whose run time (``run_hour`` local time on the window date) has arrived today."""
    now = now or datetime.datetime.now(datetime.UTC)
    local = now.astimezone(ZoneInfo(timezone))
    if local.hour < run_hour:
        return []
    return windows_on(schedule, local.date())
