"""Dependency wiring shared by the CLI and the webhook."""

from __future__ import annotations

import functools
from typing import TYPE_CHECKING

from fantasy_disc_golf.domain.league_settings import LeagueSettings, SmsSettings, WaiverSettings
from fantasy_disc_golf.league.teams import TeamRegistry
from fantasy_disc_golf.repos.audit_repo import SqliteLineupReminderLogRepo, SqliteLoadLogRepo, SqliteWebhookLogRepo
from fantasy_disc_golf.repos.draft_repo import SqliteDraftRepo
from fantasy_disc_golf.repos.lineup_repo import SqliteLineupRepo
from fantasy_disc_golf.repos.player_pool_repo import SqlitePlayerPoolRepo
from fantasy_disc_golf.repos.roster_repo import SqliteRosterRepo
from fantasy_disc_golf.repos.round_score_repo import SqliteRoundScoreRepo
from fantasy_disc_golf.repos.sms_log_repo import SqliteSmsLogRepo
from fantasy_disc_golf.repos.standing_repo import SqliteStandingRepo
from fantasy_disc_golf.repos.subscription_repo import SqliteSubscriptionRepo
from fantasy_disc_golf.repos.transaction_repo import SqliteTransactionRepo
from fantasy_disc_golf.repos.waiver_award_repo import SqliteWaiverAwardRepo
from fantasy_disc_golf.repos.waiver_request_repo import SqliteWaiverRequestRepo
from fantasy_disc_golf.services.alerts import AlertDispatcher
from fantasy_disc_golf.services.lineup_reminders import LineupReminderService
from fantasy_disc_golf.services.lineups import LineupService
from fantasy_disc_golf.services.locks import LeagueLock, process_lock
from fantasy_disc_golf.services.ownership import OwnershipService
from fantasy_disc_golf.services.scoring import ScoringService
from fantasy_disc_golf.services.subscriptions import SubscriptionService
from fantasy_disc_golf.services.transaction_validator import TransactionValidator
from fantasy_disc_golf.services.transactions import TransactionService
from fantasy_disc_golf.services.waivers import WaiverRequestStore, WaiverService

if TYPE_CHECKING:
    import sqlite3

    from fantasy_disc_golf.cache.protocol import CacheStore
    from fantasy_disc_golf.notify.twilio import SmsSender


class LeagueContainer:
    """Lazily builds repositories and services around one league connection."""

    def __init__(
        self,
        conn: sqlite3.Connection,
        cache: CacheStore,
        *,
        league: LeagueSettings | None = None,
        waiver: WaiverSettings | None = None,
        sms: SmsSettings | None = None,
        sender: SmsSender | None = None,
        lock: LeagueLock | None = None,
        lock_timeout: float = 25.0,
    ) -> None:
        self._conn = conn
        self._cache = cache
        self._league = league or LeagueSettings()
        self._waiver = waiver or WaiverSettings()
        self._sms = sms or SmsSettings()
        self._sender = sender
        self._lock = lock or process_lock()
        self._lock_timeout = lock_timeout

    @property
    def conn(self) -> sqlite3.Connection:
        return self._conn

    @property
    def league(self) -> LeagueSettings:
        return self._league

    @property
    def waiver_settings(self) -> WaiverSettings:
        return self._waiver

    @property
    def lock(self) -> LeagueLock:
        return self._lock

    @property
    def lock_timeout(self) -> float:
        return self._lock_timeout

    @functools.cached_property
    def registry(self) -> TeamRegistry:
        return TeamRegistry(self._league.teams, self._league.team_aliases)

    @functools.cached_property
    def pool_repo(self) -> SqlitePlayerPoolRepo:
        return SqlitePlayerPoolRepo(self._conn)

    @functools.cached_property
    def draft_repo(self) -> SqliteDraftRepo:
        return SqliteDraftRepo(self._conn)

    @functools.cached_property
    def transaction_repo(self) -> SqliteTransactionRepo:
        return SqliteTransactionRepo(self._conn)

    @functools.cached_property
    def roster_repo(self) -> SqliteRosterRepo:
        return SqliteRosterRepo(self._conn)

    @functools.cached_property
    def standing_repo(self) -> SqliteStandingRepo:
        return SqliteStandingRepo(self._conn)

    @functools.cached_property
    def score_repo(self) -> SqliteRoundScoreRepo:
        return SqliteRoundScoreRepo(self._conn)

    @functools.cached_property
    def lineup_repo(self) -> SqliteLineupRepo:
        return SqliteLineupRepo(self._conn)

    @functools.cached_property
    def request_repo(self) -> SqliteWaiverRequestRepo:
        return SqliteWaiverRequestRepo(self._conn)

    @functools.cached_property
    def award_repo(self) -> SqliteWaiverAwardRepo:
        return SqliteWaiverAwardRepo(self._conn)

    @functools.cached_property
    def subscription_repo(self) -> SqliteSubscriptionRepo:
        return SqliteSubscriptionRepo(self._conn)

    @functools.cached_property
    def sms_log_repo(self) -> SqliteSmsLogRepo:
        return SqliteSmsLogRepo(self._conn)

    @functools.cached_property
    def webhook_log_repo(self) -> SqliteWebhookLogRepo:
        return SqliteWebhookLogRepo(self._conn)

    @functools.cached_property
    def lineup_log_repo(self) -> SqliteLineupReminderLogRepo:
        return SqliteLineupReminderLogRepo(self._conn)

    @functools.cached_property
    def load_log_repo(self) -> SqliteLoadLogRepo:
        return SqliteLoadLogRepo(self._conn)

    @functools.cached_property
    def ownership(self) -> OwnershipService:
        return OwnershipService(
            self.draft_repo, self.transaction_repo, self.pool_repo, self.roster_repo, self.registry
        )

    @functools.cached_property
    def alerts(self) -> AlertDispatcher:
        return AlertDispatcher(
            self._conn,
            self.sms_log_repo,
            self.subscription_repo,
            self._cache,
            self._sms,
            self._sender,
            timezone=self._league.timezone,
        )

    @functools.cached_property
    def transactions(self) -> TransactionService:
        return TransactionService(
            self._conn,
            self.transaction_repo,
            self.ownership,
            TransactionValidator(self.registry, self._league.roster_cap),
            self.alerts,
            lock=self._lock,
            lock_timeout=self._lock_timeout,
        )

    @functools.cached_property
    def waiver_requests(self) -> WaiverRequestStore:
        return WaiverRequestStore(
            self._conn,
            self.request_repo,
            self.pool_repo,
            self.ownership,
            self.registry,
            max_picks=self._waiver.max_picks,
            lock=self._lock,
            lock_timeout=self._lock_timeout,
        )

    @functools.cached_property
    def waivers(self) -> WaiverService:
        return WaiverService(
            self._conn,
            self.waiver_requests,
            self.award_repo,
            self.standing_repo,
            self.ownership,
            self.registry,
            self.alerts,
            lock=self._lock,
            lock_timeout=self._lock_timeout,
            max_rounds=self._waiver.max_rounds,
        )

    @functools.cached_property
    def subscriptions(self) -> SubscriptionService:
        return SubscriptionService(self._conn, self.subscription_repo, self.registry)

    @functools.cached_property
    def lineup_reminders(self) -> LineupReminderService:
        return LineupReminderService(
            self._conn, self.lineup_log_repo, self.alerts, lock=self._lock, lock_timeout=self._lock_timeout
        )

    @functools.cached_property
    def scoring(self) -> ScoringService:
        return ScoringService(
            self._conn, self.score_repo, self.load_log_repo, lock=self._lock, lock_timeout=self._lock_timeout
        )

    @functools.cached_property
    def lineups(self) -> LineupService:
        return LineupService(
            self._conn,
            self.lineup_repo,
            self.score_repo,
            self.standing_repo,
            self.pool_repo,
            self.ownership,
            self.registry,
            lineup_size=self._league.lineup_size,
            lock=self._lock,
            lock_timeout=self._lock_timeout,
        )
