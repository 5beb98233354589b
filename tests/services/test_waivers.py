import sqlite3

from fantasy_disc_golf.container import LeagueContainer
from fantasy_disc_golf.domain.alerts import AlertSubscription
from fantasy_disc_golf.domain.errors import FdgError
from fantasy_disc_golf.domain.league_settings import SmsSettings
from fantasy_disc_golf.domain.result import Err, Ok, Result
from fantasy_disc_golf.domain.transaction import Transaction, TransactionType
from fantasy_disc_golf.domain.waiver import AwardStatus, RequestStatus
from tests.fakes.league import make_container, seed_league
from tests.fakes.sms import FakeSmsSender

CYCLE = "2026-04-14"
EVENT = "PDGA Champions Cup"


def _error(result: Result[object, FdgError]) -> str:
    assert isinstance(result, Err)
    return result.error.message


class TestWaiverRequestStore:
    def test_submit_resolves_names_and_orders_by_rank(self, conn: sqlite3.Connection) -> None:
        container = make_container(conn)
        seed_league(container)
        result = container.waiver_requests.submit(
            CYCLE,
            "hughes moves",
            "discord:42",
            [{"rank": "2", "pdga": "50670"}, {"rank": 1, "name": "Gannon Buhr"}],
        )
        assert isinstance(result, Ok)
        submission = result.value
        assert submission.team == "Hughes Moves"
        assert [(p.rank, p.pdga, p.name) for p in submission.picks] == [
            (1, "37817", "Gannon Buhr"),
            (2, "50670", "Anthony Barela"),
        ]

    def test_resubmission_voids_previous_picks(self, conn: sqlite3.Connection) -> None:
        container = make_container(conn)
        seed_league(container)
        store = container.waiver_requests
        store.submit(CYCLE, "Hughes Moves", "u", [{"rank": 1, "pdga": "37817"}, {"rank": 2, "pdga": "50670"}])
        store.submit(CYCLE, "Hughes Moves", "u", [{"rank": 1, "pdga": "75412"}])

        assert [p.pdga for p in store.active_by_team(CYCLE)["Hughes Moves"]] == ["75412"]
        statuses = [r.status for r in container.request_repo.for_cycle(CYCLE)]
        assert statuses.count(RequestStatus.VOID) == 2
        assert statuses.count(RequestStatus.ACTIVE) == 1

    def test_rejects_owned_and_unknown_players(self, conn: sqlite3.Connection) -> None:
        container = make_container(conn)
        seed_league(container)
        result = container.waiver_requests.submit(
            CYCLE,
            "Hughes Moves",
            "u",
            [{"rank": 1, "pdga": "44184"}, {"rank": 2, "pdga": "99999", "name": "Mystery Thrower"}],
        )
        assert isinstance(result, Err)
        assert result.error.errors == (
            "Already owned: Kristin Tattar (44184). Current owner: Exalted Evil",
            "Not found in player pool: Mystery Thrower (99999)",
        )
        assert container.request_repo.for_cycle(CYCLE) == []

    def test_rejects_duplicates_and_bad_ranks(self, conn: sqlite3.Connection) -> None:
        container = make_container(conn)
        seed_league(container)
        result = container.waiver_requests.submit(
            CYCLE,
            "Hughes Moves",
            "u",
            [
                {"rank": 1, "pdga": "37817"},
                {"rank": 1, "pdga": "50670"},
                {"rank": 2, "pdga": "37817"},
                {"rank": 11, "pdga": "75412"},
            ],
        )
        assert isinstance(result, Err)
        assert result.error.errors == (
            "Duplicate rank submitted: 1",
            "Duplicate player submitted: Gannon Buhr (37817)",
            "Invalid rank: 11 (must be 1-10)",
        )

    def test_missing_inputs(self, conn: sqlite3.Connection) -> None:
        container = make_container(conn)
        seed_league(container)
        store = container.waiver_requests
        assert _error(store.submit("", "Hughes Moves", "u", [{"rank": 1, "pdga": "37817"}])) == "Missing cycleId"
        assert _error(store.submit(CYCLE, "Nobody", "u", [{"rank": 1, "pdga": "37817"}])) == "Missing team"
        assert _error(store.submit(CYCLE, "Hughes Moves", "u", [])) == "No picks submitted"
        blank = store.submit(CYCLE, "Hughes Moves", "u", [{"rank": 1, "pdga": "", "name": " "}, {"rank": 2}])
        assert isinstance(blank, Err)
        assert blank.error.message == "No valid picks (need at least 1 ranked pick)"
        unranked = store.submit(CYCLE, "Hughes Moves", "u", [{"rank": "", "pdga": "37817"}])
        assert isinstance(unranked, Err)
        assert unranked.error.errors == ("Missing rank for 37817 (must be 1-10)",)

    def test_unknown_pdga_rejects_whole_submission(self, conn: sqlite3.Connection) -> None:
        container = make_container(conn)
        seed_league(container)
        result = container.waiver_requests.submit(
            CYCLE, "Hughes Moves", "u", [{"rank": 1, "pdga": "37817"}, {"rank": 2, "pdga": "99999"}]
        )
        assert isinstance(result, Err)
        assert result.error.errors == ("Not found in player pool: 99999",)
        assert container.request_repo.for_cycle(CYCLE) == []

    def test_unknown_name_rejects_whole_submission(self, conn: sqlite3.Connection) -> None:
        """An unresolvable name must not shrink the wishlist to the picks that did resolve."""
        container = make_container(conn)
        seed_league(container)
        store = container.waiver_requests
        store.submit(CYCLE, "Hughes Moves", "u", [{"rank": 1, "pdga": "75412"}])

        picks = [{"rank": 1, "name": "Paul McBeth"}, {"rank": 2, "pdga": "50670"}]
        result = store.submit(CYCLE, "Hughes Moves", "u", picks)

        assert isinstance(result, Err)
        assert result.error.errors == ("Not found in player pool: Paul McBeth",)
        assert [p.pdga for p in store.active_by_team(CYCLE)["Hughes Moves"]] == ["75412"]


class TestWaiverService:
    def _submit_contested(self, container: LeagueContainer) -> None:
        store = container.waiver_requests
        store.submit(CYCLE, "Hughes Moves", "u", [{"rank": 1, "pdga": "37817"}, {"rank": 2, "pdga": "50670"}])
        store.submit(CYCLE, "Sir Krontzalot", "u", [{"rank": 1, "pdga": "37817"}])

    def test_run_awards_in_priority_order(self, conn: sqlite3.Connection) -> None:
        container = make_container(conn)
        seed_league(container)
        self._submit_contested(container)

        result = container.waivers.run(CYCLE, EVENT)

        assert isinstance(result, Ok)
        run = result.value
        assert not run.already_posted
        assert {team: [p.pdga for p in picks] for team, picks in run.awards_by_team.items()} == {
            "Hughes Moves": ["37817", "50670"],
        }
        assert run.lines[0] == "— Round 1 —"
        assert "4) Hughes Moves: Gannon Buhr (37817)" in run.lines
        assert run.title == f"Waiver Awards — Cycle {CYCLE}"

        stored = container.award_repo.for_cycle(CYCLE)
        no_pick = {a.team for a in stored if a.status == AwardStatus.NO_VALID_PICK}
        assert no_pick == {"Sir Krontzalot", "Exalted Evil", "Tree Ninja Disc Golf"}
        assert container.request_repo.active_for_cycle(CYCLE) == []
        assert {r.status for r in container.request_repo.for_cycle(CYCLE)} == {RequestStatus.ROLLED}

    def test_second_run_is_already_posted(self, conn: sqlite3.Connection) -> None:
        container = make_container(conn)
        seed_league(container)
        self._submit_contested(container)
        container.waivers.run(CYCLE, EVENT)
        before = len(container.award_repo.for_cycle(CYCLE))

        again = container.waivers.run(CYCLE, EVENT)

        assert isinstance(again, Ok)
        assert again.value.already_posted
        assert len(container.award_repo.for_cycle(CYCLE)) == before

    def test_awards_skip_players_added_since_submission(self, conn: sqlite3.Connection) -> None:
        container = make_container(conn)
        seed_league(container)
        self._submit_contested(container)
        claimed = Transaction(TransactionType.ADD, "Tree Ninja Disc Golf", "37817", "Gannon Buhr", occurred_at="t")
        container.transaction_repo.append(claimed)
        conn.commit()

        result = container.waivers.run(CYCLE, EVENT)

        assert isinstance(result, Ok)
        assert [p.pdga for p in result.value.awards_by_team["Hughes Moves"]] == ["50670"]
        assert "Sir Krontzalot" not in result.value.awards_by_team

    def test_missing_fields_and_empty_standings(self, conn: sqlite3.Connection) -> None:
        container = make_container(conn)
        assert _error(container.waivers.run("", EVENT)) == "Missing cycleId"
        assert _error(container.waivers.run(CYCLE, " ")) == "Missing eventName"
        result = container.waivers.run(CYCLE, EVENT)
        assert isinstance(result, Err)
        assert result.error.message == "Standings have no rows"
        assert not container.award_repo.exists_for_cycle(CYCLE)

    def test_award_alerts_sent_to_subscribed_winners(self, conn: sqlite3.Connection) -> None:
        sender = FakeSmsSender()
        container = make_container(conn, sms=SmsSettings(enabled=True), sender=sender)
        seed_league(container)
        container.subscription_repo.upsert(AlertSubscription("Hughes Moves", "+15551234567", waiver_awards=True))
        container.subscription_repo.upsert(AlertSubscription("Sir Krontzalot", "+15557654321", waiver_awards=True))
        conn.commit()
        self._submit_contested(container)

        container.waivers.run(CYCLE, EVENT)

        assert len(sender.sent) == 1
        phone, body = sender.sent[0]
        assert phone == "+15551234567"
        assert body.startswith("FDG Waivers: You have been awarded player(s)")
        assert "Gannon Buhr, Anthony Barela" in body

    def test_cycle_with_nothing_eligible_still_closes(self, conn: sqlite3.Connection) -> None:
        """Zero awards is a completed run: requests roll, NO_VALID_PICK rows persist and block a rerun."""
        sender = FakeSmsSender()
        container = make_container(conn, sms=SmsSettings(enabled=True), sender=sender)
        seed_league(container)
        container.subscription_repo.upsert(AlertSubscription("Hughes Moves", "+15551234567", waiver_awards=True))
        container.waiver_requests.submit(CYCLE, "Hughes Moves", "u", [{"rank": 1, "pdga": "37817"}])
        container.transaction_repo.append(
            Transaction(TransactionType.ADD, "Tree Ninja Disc Golf", "37817", "Gannon Buhr", occurred_at="t")
        )
        conn.commit()

        result = container.waivers.run(CYCLE, EVENT)

        assert isinstance(result, Ok)
        run = result.value
        assert run.awards_by_team == {}
        assert all(a.status == AwardStatus.NO_VALID_PICK for a in run.awards)
        assert run.lines == ("— Round 1 —",)
        stored = container.award_repo.for_cycle(CYCLE)
        assert len(stored) == len(container.standing_repo.all())
        assert {a.status for a in stored} == {AwardStatus.NO_VALID_PICK}
        assert {r.status for r in container.request_repo.for_cycle(CYCLE)} == {RequestStatus.ROLLED}
        assert sender.sent == []

        again = container.waivers.run(CYCLE, EVENT)
        assert isinstance(again, Ok)
        assert again.value.already_posted
        assert len(container.award_repo.for_cycle(CYCLE)) == len(stored)
