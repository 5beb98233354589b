from __future__ import annotations

from typing import TYPE_CHECKING

from fantasy_disc_golf.domain.alerts import AlertSubscription
from fantasy_disc_golf.domain.result import Err, Ok
from fantasy_disc_golf.services.subscriptions import masked, normalize_phone
from tests.fakes.league import make_container

if TYPE_CHECKING:
    import sqlite3

PREFS = {"enabled": True, "free_agents": True, "waiver_awards": False, "withdrawals": True, "lineup_reminders": False}


class TestNormalizePhone:
    def test_strips_quote_and_adds_plus(self) -> None:
        assert normalize_phone("'+15551234567") == "+15551234567"
        assert normalize_phone("1 (555) 123-4567") == "+15551234567"
        assert normalize_phone("") == ""


class TestSubscriptionService:
    def test_create_then_update(self, conn: sqlite3.Connection) -> None:
        service = make_container(conn).subscriptions
        created = service.set_preferences("hug", "+15551234567", **PREFS)
        assert isinstance(created, Ok)
        assert created.value.created
        assert created.value.subscription.team == "Hughes Moves"

        updated = service.set_preferences("Hughes Moves", "15559876543", **{**PREFS, "waiver_awards": True})
        assert isinstance(updated, Ok)
        assert not updated.value.created
        sub = service.get("hughes moves")
        assert sub is not None
        assert sub.phone_e164 == "+15559876543"
        assert sub.waiver_awards
        assert sub.created_at == created.value.subscription.created_at

    def test_unknown_team_and_bad_phone(self, conn: sqlite3.Connection) -> None:
        service = make_container(conn).subscriptions
        bad_team = service.set_preferences("Nobody", "+15551234567", **PREFS)
        assert isinstance(bad_team, Err)
        assert bad_team.error.message == "Unknown team: Nobody"
        bad_phone = service.set_preferences("Hughes Moves", "12345", **PREFS)
        assert isinstance(bad_phone, Err)
        assert bad_phone.error.message == "Phone must be E.164 like +12345678900"
        assert service.list() == []

    def test_opt_out_and_back_in(self, conn: sqlite3.Connection) -> None:
        service = make_container(conn).subscriptions
        service.set_preferences("Hughes Moves", "+15551234567", **PREFS)
        service.set_preferences("Exalted Evil", "+15551234567", **PREFS)

        assert service.set_opt_out("+15551234567", True) == ["Exalted Evil", "Hughes Moves"]
        assert all(s.opt_out and not s.enabled for s in service.list())

        assert service.set_opt_out("+15551234567", False) == ["Exalted Evil", "Hughes Moves"]
        assert all(s.enabled and not s.opt_out for s in service.list())

    def test_opt_out_unknown_phone(self, conn: sqlite3.Connection) -> None:
        assert make_container(conn).subscriptions.set_opt_out("+15550000000", True) == []

    def test_opted_out_number_stays_disabled_on_update(self, conn: sqlite3.Connection) -> None:
        service = make_container(conn).subscriptions
        service.set_preferences("Hughes Moves", "+15551234567", **PREFS)
        service.set_opt_out("+15551234567", True)
        result = service.set_preferences("Hughes Moves", "+15551234567", **PREFS)
        assert isinstance(result, Ok)
        assert result.value.subscription.opt_out
        assert not result.value.subscription.enabled


def test_masked_hides_middle_digits() -> None:
    sub = masked(AlertSubscription("Hughes Moves", "+15551234567"))
    assert sub.phone_e164 == "+1******4567"
