from __future__ import annotations

import sqlite3
from collections.abc import Callable, Generator
from typing import TYPE_CHECKING

import pytest

from fantasy_disc_golf.container import LeagueContainer
from fantasy_disc_golf.db.pool import ConnectionPool
from fantasy_disc_golf.domain.league_settings import LeagueSettings, SmsSettings, TwilioSettings, WebhookSettings
from fantasy_disc_golf.services.locks import LeagueLock
from fantasy_disc_golf.web.app import create_webhook_app
from tests.fakes.cache import FakeCacheStore
from tests.fakes.league import TEAMS, seed_league

if TYPE_CHECKING:
    from pathlib import Path

    from flask import Flask
    from flask.testing import FlaskClient

SECRET = "s3cret"
WEBHOOK_URL = "https://league.example.com/hook"
TWILIO = TwilioSettings(account_sid="AC123", auth_token="tok", from_number="+15550001111")


@pytest.fixture
def pool(tmp_path: Path) -> Generator[ConnectionPool]:
    connection_pool = ConnectionPool(tmp_path / "league.db", size=2)
    yield connection_pool
    connection_pool.close_all()


@pytest.fixture
def lock() -> LeagueLock:
    return LeagueLock()


@pytest.fixture
def container_factory(lock: LeagueLock) -> Callable[[sqlite3.Connection], LeagueContainer]:
    cache = FakeCacheStore()

    def factory(conn: sqlite3.Connection) -> LeagueContainer:
        return LeagueContainer(conn, cache, league=LeagueSettings(teams=TEAMS), lock=lock, lock_timeout=0.05)

    return factory


@pytest.fixture
def app(pool: ConnectionPool, container_factory: Callable[[sqlite3.Connection], LeagueContainer]) -> Flask:
    with pool.connection() as conn:
        seed_league(container_factory(conn))
    return create_webhook_app(
        pool,
        container_factory,
        WebhookSettings(secret=SECRET, url=WEBHOOK_URL),
        twilio=TWILIO,
        sms=SmsSettings(support_email="commish@example.com"),
    )


@pytest.fixture
def client(app: Flask) -> FlaskClient:
    return app.test_client()


def webhook_log(pool: ConnectionPool) -> list[tuple[str, str]]:
    with pool.connection() as conn:
        rows = conn.execute("SELECT status, action FROM webhook_log ORDER BY id").fetchall()
    return [(row["status"], row["action"]) for row in rows]
