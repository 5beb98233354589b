import sqlite3
from datetime import UTC, datetime

from fantasy_disc_golf.domain.alerts import AlertSubscription, AlertType, SmsAlert, SmsStatus
from fantasy_disc_golf.domain.league_settings import SmsSettings
from fantasy_disc_golf.domain.waiver import WaiverPick
from fantasy_disc_golf.repos.sms_log_repo import SqliteSmsLogRepo
from fantasy_disc_golf.repos.subscription_repo import SqliteSubscriptionRepo
from fantasy_disc_golf.services.alerts import AlertDispatcher, dedupe_cache_key, waiver_award_message
from tests.fakes.cache import FakeCacheStore
from tests.fakes.sms import FakeSmsSender

NOW = datetime(2026, 4, 14, 16, 30, tzinfo=UTC)


def _dispatcher(
    conn: sqlite3.Connection,
    settings: SmsSettings,
    sender: FakeSmsSender | None,
    cache: FakeCacheStore | None = None,
) -> AlertDispatcher:
    return AlertDispatcher(
        conn,
        SqliteSmsLogRepo(conn),
        SqliteSubscriptionRepo(conn),
        cache or FakeCacheStore(),
        settings,
        sender,
        clock=lambda: NOW,
    )


def _alert(key: str = "k1", team: str = "Hughes Moves") -> SmsAlert:
    return SmsAlert(team, "+15551234567", AlertType.FREE_AGENTS, "FDG: hello", key)


class TestSend:
    def test_sends_and_logs(self, conn: sqlite3.Connection) -> None:
        sender = FakeSmsSender()
        dispatcher = _dispatcher(conn, SmsSettings(enabled=True), sender)
        result = dispatcher.send(_alert(), dispatcher.new_budget())
        assert result.sent
        assert result.provider_id == "SM0001"
        log = SqliteSmsLogRepo(conn).recent()
        assert [e.status for e in log] == [SmsStatus.SENT]

    def test_kill_switch(self, conn: sqlite3.Connection) -> None:
        """With SMS disabled nothing is sent but the attempt is still logged."""
        sender = FakeSmsSender()
        dispatcher = _dispatcher(conn, SmsSettings(enabled=False), sender)
        result = dispatcher.send(_alert(), dispatcher.new_budget())
        assert result.reason == "disabled"
        assert sender.sent == []
        assert SqliteSmsLogRepo(conn).recent()[0].error == "SMS_DISABLED"

    def test_invocation_budget(self, conn: sqlite3.Connection) -> None:
        """The per-run budget stops a run's sends; a fresh budget starts over."""
        sender = FakeSmsSender()
        dispatcher = _dispatcher(conn, SmsSettings(enabled=True, max_per_invocation=1), sender)
        budget = dispatcher.new_budget()
        assert dispatcher.send(_alert("a"), budget).sent
        assert dispatcher.send(_alert("b"), budget).reason == "invocation_cap"
        assert dispatcher.send(_alert("c"), dispatcher.new_budget()).sent

    def test_duplicate_suppressed(self, conn: sqlite3.Connection) -> None:
        sender = FakeSmsSender()
        dispatcher = _dispatcher(conn, SmsSettings(enabled=True), sender)
        assert dispatcher.send(_alert("same"), dispatcher.new_budget()).sent
        assert dispatcher.send(_alert("same"), dispatcher.new_budget()).reason == "duplicate"
        assert len(sender.sent) == 1

    def test_hour_and_day_caps(self, conn: sqlite3.Connection) -> None:
        sender = FakeSmsSender()
        cache = FakeCacheStore()
        hourly = _dispatcher(conn, SmsSettings(enabled=True, max_per_hour=1), sender, cache)
        assert hourly.send(_alert("a"), hourly.new_budget()).sent
        assert hourly.send(_alert("b"), hourly.new_budget()).reason == "hour_cap"

        daily = _dispatcher(conn, SmsSettings(enabled=True, max_per_hour=10, max_per_day=1), sender, cache)
        assert daily.send(_alert("c"), daily.new_budget()).reason == "day_cap"

    def test_counters_keyed_by_league_local_time(self, conn: sqlite3.Connection) -> None:
        """Hour and day counters use the league timezone, not UTC."""
        cache = FakeCacheStore()
        dispatcher = _dispatcher(conn, SmsSettings(enabled=True), FakeSmsSender(), cache)
        dispatcher.send(_alert(), dispatcher.new_budget())
        assert cache.get("sms_counter", "sms_hour_count_2026041412") == "1"
        assert cache.get("sms_counter", "sms_day_count_20260414") == "1"

    def test_provider_not_configured(self, conn: sqlite3.Connection) -> None:
        dispatcher = _dispatcher(conn, SmsSettings(enabled=True), None)
        assert dispatcher.send(_alert(), dispatcher.new_budget()).reason == "not_configured"

    def test_provider_failure_logged(self, conn: sqlite3.Connection) -> None:
        """A provider error is logged and does not use up the run's budget."""
        dispatcher = _dispatcher(conn, SmsSettings(enabled=True), FakeSmsSender(fail=True))
        budget = dispatcher.new_budget()
        result = dispatcher.send(_alert(), budget)
        assert result.reason == "error"
        assert budget.sent == 0
        entry = SqliteSmsLogRepo(conn).recent()[0]
        assert entry.status == SmsStatus.ERROR
        assert "boom" in entry.error


class TestFanOut:
    def test_free_agent_alerts_only_to_opted_in(self, conn: sqlite3.Connection) -> None:
        """Opted-out, disabled and unsubscribed teams are not texted about free agents."""
        repo = SqliteSubscriptionRepo(conn)
        repo.upsert(AlertSubscription("Hughes Moves", "+15550000001", free_agents=True))
        repo.upsert(AlertSubscription("Exalted Evil", "+15550000002", free_agents=True, opt_out=True))
        repo.upsert(AlertSubscription("Sir Krontzalot", "+15550000003", free_agents=True, enabled=False))
        repo.upsert(AlertSubscription("Tree Ninja Disc Golf", "+15550000004", waiver_awards=True))
        sender = FakeSmsSender()
        dispatcher = _dispatcher(conn, SmsSettings(enabled=True), sender)

        budget = dispatcher.new_budget()
        results = dispatcher.send_free_agent_drop_alerts("Exalted Evil", "Kristin Tattar", "44184", budget)

        assert len(results) == 1
        assert sender.sent == [("+15550000001", "FDG: Exalted Evil has dropped Kristin Tattar to Free Agents.")]

    def test_lineup_reminders(self, conn: sqlite3.Connection) -> None:
        SqliteSubscriptionRepo(conn).upsert(AlertSubscription("Hughes Moves", "+15550000001", lineup_reminders=True))
        sender = FakeSmsSender()
        dispatcher = _dispatcher(conn, SmsSettings(enabled=True), sender)
        dispatcher.send_lineup_reminders("2026-04-14", "PDGA Champions Cup", dispatcher.new_budget())
        assert sender.sent[0][1] == (
            "FDG: PDGA Champions Cup starts tomorrow. Don't forget to set your lineup in Hyzerbase!"
        )

    def test_withdrawal_alert_requires_subscription(self, conn: sqlite3.Connection) -> None:
        repo = SqliteSubscriptionRepo(conn)
        repo.upsert(AlertSubscription("Hughes Moves", "+15550000001", withdrawals=True))
        sender = FakeSmsSender()
        dispatcher = _dispatcher(conn, SmsSettings(enabled=True), sender)
        budget = dispatcher.new_budget()

        assert dispatcher.send_withdrawal_alert("Exalted Evil", "X", "1", "Event", budget).reason == "not_subscribed"
        result = dispatcher.send_withdrawal_alert("Hughes Moves", "Gannon Buhr", "37817", "Waco Open", budget)
        assert result.sent
        assert sender.sent == [("+15550000001", "FDG: Gannon Buhr has dropped from Waco Open.")]

    def test_send_updates_last_sms(self, conn: sqlite3.Connection) -> None:
        repo = SqliteSubscriptionRepo(conn)
        repo.upsert(AlertSubscription("Hughes Moves", "+15550000001", withdrawals=True))
        dispatcher = _dispatcher(conn, SmsSettings(enabled=True), FakeSmsSender())
        dispatcher.send_withdrawal_alert("Hughes Moves", "Gannon Buhr", "37817", "Waco Open", dispatcher.new_budget())
        assert repo.get("Hughes Moves").last_sms_at == NOW.isoformat()  # type: ignore[union-attr]


class TestMessages:
    def test_award_message_truncates_names(self) -> None:
        """Award texts list six names and count the rest."""
        awards = [WaiverPick(i, str(i), f"P{i}") for i in range(1, 9)]
        message = waiver_award_message("Waco Open", awards)
        assert message.endswith("P1, P2, P3, P4, P5, P6 (+2 more).")

    def test_dedupe_cache_key_is_stable_hash(self) -> None:
        assert dedupe_cache_key("abc") == dedupe_cache_key("abc")
        assert dedupe_cache_key("abc").startswith("sms:")
        assert len(dedupe_cache_key("abc")) == len("sms:") + 40
