from __future__ import annotations

import logging
import sqlite3
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from fantasy_disc_golf.cache.sqlite_store import SqliteCacheStore
from fantasy_disc_golf.client.api_client import LeagueApiClient
from fantasy_disc_golf.config import (
    cache_db_path,
    create_config,
    db_path,
    load_league_settings,
    load_sms_settings,
    load_twilio_settings,
    load_waiver_settings,
    load_webhook_settings,
)
from fantasy_disc_golf.container import LeagueContainer
from fantasy_disc_golf.db.connection import create_connection
from fantasy_disc_golf.db.pool import ConnectionPool
from fantasy_disc_golf.exceptions import ConfigurationError
from fantasy_disc_golf.notify.twilio import SmsSender, TwilioSmsSender
from fantasy_disc_golf.services.locks import process_lock
from fantasy_disc_golf.web.app import create_webhook_app

if TYPE_CHECKING:
    from config import ConfigurationSet
    from flask import Flask

    from fantasy_disc_golf.domain.league_settings import (
        LeagueSettings,
        SmsSettings,
        TwilioSettings,
        WaiverSettings,
        WebhookSettings,
    )

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppSettings:
    league: LeagueSettings
    waiver: WaiverSettings
    sms: SmsSettings
    twilio: TwilioSettings
    webhook: WebhookSettings
    db_path: str
    cache_db_path: str


def load_app_settings(cfg: ConfigurationSet | None = None) -> AppSettings:
    if cfg is None:
        cfg = create_config()
    return AppSettings(
        league=load_league_settings(cfg),
        waiver=load_waiver_settings(cfg),
        sms=load_sms_settings(cfg),
        twilio=load_twilio_settings(cfg),
        webhook=load_webhook_settings(cfg),
        db_path=db_path(cfg),
        cache_db_path=cache_db_path(cfg),
    )


def build_sender(settings: AppSettings) -> SmsSender | None:
    """Twilio sender when credentials are configured; alerts log ERROR without one."""
    return TwilioSmsSender(settings.twilio) if settings.twilio.configured else None


def _container_factory(
    settings: AppSettings, cache: SqliteCacheStore, sender: SmsSender | None
) -> Callable[[sqlite3.Connection], LeagueContainer]:
    lock = process_lock()

    def factory(conn: sqlite3.Connection) -> LeagueContainer:
        return LeagueContainer(
            conn,
            cache,
            league=settings.league,
            waiver=settings.waiver,
            sms=settings.sms,
            sender=sender,
            lock=lock,
            lock_timeout=settings.webhook.lock_timeout,
        )

    return factory


@contextmanager
def build_league_context(settings: AppSettings) -> Iterator[LeagueContainer]:
    """Composition-root context manager: opens the league DB, wires services, yields the container, closes DB."""
    conn = create_connection(settings.db_path)
    cache = SqliteCacheStore(Path(settings.cache_db_path).expanduser())
    try:
        yield _container_factory(settings, cache, build_sender(settings))(conn)
    finally:
        cache.close()
        conn.close()


@contextmanager
def build_webhook_context(settings: AppSettings, *, pool_size: int = 4) -> Iterator[Flask]:
    """Composition-root context manager for ``fdg serve``: pooled connections behind the Flask app."""
    pool = ConnectionPool(settings.db_path, size=pool_size)
    cache = SqliteCacheStore(Path(settings.cache_db_path).expanduser())
    purged = cache.purge_expired()
    if purged:
        logger.info("Purged %d expired cache entries", purged)
    try:
        yield create_webhook_app(
            pool,
            _container_factory(settings, cache, build_sender(settings)),
            settings.webhook,
            twilio=settings.twilio,
            sms=settings.sms,
        )
    finally:
        cache.close()
        pool.close_all()


def build_api_client(settings: AppSettings) -> LeagueApiClient:
    if not settings.webhook.url or not settings.webhook.secret:
        raise ConfigurationError("webhook.url and webhook.secret are required for the bot")
    return LeagueApiClient(settings.webhook.url, settings.webhook.secret)
