import datetime

import pytest

from fantasy_disc_golf.discord.actions import CommandError, PlayerDirectory
from fantasy_disc_golf.exceptions import ExternalCallError
from tests.discord.conftest import WINDOW, FakeLeagueApi, make_actions


class TestPlayerDirectory:
    def test_search_labels_include_pdga(self, directory: PlayerDirectory) -> None:
        assert directory.search("gann") == [("Gannon Buhr (37817)", "Gannon Buhr")]

    def test_empty_query_returns_everyone_up_to_limit(self, directory: PlayerDirectory) -> None:
        assert len(directory.search("", limit=2)) == 2
        assert len(directory.search("")) == 4

    def test_skips_rows_without_name_or_pdga(self) -> None:
        d = PlayerDirectory()
        d.load(
            [{"name": "", "pdga": "1"}, {"name": "Ricky Wysocki", "pdga": ""}, {"name": "Eagle McMahon", "pdga": 37817}]
        )
        assert len(d) == 1
        assert d.pdga_for("Eagle McMahon") == "37817"
        assert d.pdga_for("Ricky Wysocki") is None


class TestTransaction:
    async def test_add_commits_add_command(self, api: FakeLeagueApi, directory: PlayerDirectory) -> None:
        receipt = await make_actions(api, directory).transaction("Hughes Moves", "Gannon Buhr", None, "", 42)
        [(name, command)] = api.calls
        assert name == "commit"
        assert command["type"] == "ADD"
        assert command["pdga"] == "37817"
        assert command["fromTeam"] == "Free Agent"
        assert command["toTeam"] == "Hughes Moves"
        assert "Hughes Moves Transaction Logged" in receipt
        assert "<@42>" in receipt

    async def test_add_and_drop_is_one_swap(self, api: FakeLeagueApi, directory: PlayerDirectory) -> None:
        receipt = await make_actions(api, directory).transaction(
            "Sir Krontzalot", "Gannon Buhr", "Calvin Heimburg", "injury", 7
        )
        [(_, command)] = api.calls
        assert command["type"] == "SWAP"
        assert command["dropPdga"] == "27523"
        assert command["addPdga"] == "37817"
        assert "SWAP Logged" in receipt
        assert "📝 Notes: injury" in receipt

    async def test_requires_a_player(self, api: FakeLeagueApi, directory: PlayerDirectory) -> None:
        with pytest.raises(CommandError, match="add_player and/or drop_player"):
            await make_actions(api, directory).transaction("Hughes Moves", None, None, "", 1)

    async def test_unknown_team(self, api: FakeLeagueApi, directory: PlayerDirectory) -> None:
        with pytest.raises(CommandError, match="Invalid team: Nobody"):
            await make_actions(api, directory).transaction("Nobody", "Gannon Buhr", None, "", 1)

    async def test_unresolved_player(self, api: FakeLeagueApi, directory: PlayerDirectory) -> None:
        with pytest.raises(CommandError, match="Could not resolve PDGA for add_player: Paul McBeth"):
            await make_actions(api, directory).transaction("Hughes Moves", "Paul McBeth", None, "", 1)
        assert api.calls == []

    async def test_rejected_commit_surfaces_errors(self, api: FakeLeagueApi, directory: PlayerDirectory) -> None:
        api.commit_response = {"ok": False, "errors": ["Hughes Moves roster is full (10/10)."]}
        with pytest.raises(CommandError, match="roster is full"):
            await make_actions(api, directory).transaction("Hughes Moves", "Gannon Buhr", None, "", 1)

    async def test_webhook_failure_becomes_command_error(
        self, api: FakeLeagueApi, directory: PlayerDirectory
    ) -> None:
        api.error = ExternalCallError("webhook", "Unauthorized (bad secret)")
        with pytest.raises(CommandError, match="League webhook unavailable"):
            await make_actions(api, directory).transaction("Hughes Moves", "Gannon Buhr", None, "", 1)


class TestTrade:
    async def test_validates_both_legs_before_committing(
        self, api: FakeLeagueApi, directory: PlayerDirectory
    ) -> None:
        receipt = await make_actions(api, directory).trade(
            "Sir Krontzalot", "Calvin Heimburg", "Exalted Evil", "Kristin Tattar", "", 3
        )
        assert [name for name, _ in api.calls] == ["validate", "validate", "commit", "commit"]
        assert api.calls[2][1]["toTeam"] == "Exalted Evil"
        assert api.calls[3][1]["toTeam"] == "Sir Krontzalot"
        assert "Trade Logged" in receipt

    async def test_second_leg_failure_commits_nothing(self, api: FakeLeagueApi, directory: PlayerDirectory) -> None:
        api.validate_responses = [{"ok": True}, {"ok": False, "error": "Exalted Evil does not own Kristin Tattar"}]
        with pytest.raises(CommandError, match="does not own"):
            await make_actions(api, directory).trade(
                "Sir Krontzalot", "Calvin Heimburg", "Exalted Evil", "Kristin Tattar", "", 3
            )
        assert [name for name, _ in api.calls] == ["validate", "validate"]

    async def test_same_team_rejected(self, api: FakeLeagueApi, directory: PlayerDirectory) -> None:
        with pytest.raises(CommandError, match="must be different"):
            await make_actions(api, directory).trade(
                "Hughes Moves", "Gannon Buhr", "Hughes Moves", "Anthony Barela", "", 1
            )


class TestWaivers:
    async def test_submit_keeps_slot_ranks(self, api: FakeLeagueApi, directory: PlayerDirectory) -> None:
        receipt = await make_actions(api, directory).submit_waivers(
            "Hughes Moves", ["Gannon Buhr", None, "Anthony Barela"], 99
        )
        [(name, (cycle_id, team, submitted_by, picks))] = api.calls
        assert name == "waiver_submit"
        assert cycle_id == "2026-04-14"
        assert team == "Hughes Moves"
        assert submitted_by == "99"
        assert [p["rank"] for p in picks] == [1, 3]
        assert "1) Gannon Buhr (37817)" in receipt
        assert "Jonesboro Open" in receipt

    async def test_duplicate_pick(self, api: FakeLeagueApi, directory: PlayerDirectory) -> None:
        with pytest.raises(CommandError, match="Duplicate player selected: Gannon Buhr"):
            await make_actions(api, directory).submit_waivers("Hughes Moves", ["Gannon Buhr", "Gannon Buhr"], 1)

    async def test_no_picks(self, api: FakeLeagueApi, directory: PlayerDirectory) -> None:
        with pytest.raises(CommandError, match="at least 1 pick"):
            await make_actions(api, directory).submit_waivers("Hughes Moves", [None, None], 1)

    async def test_no_upcoming_cycle(self, api: FakeLeagueApi, directory: PlayerDirectory) -> None:
        with pytest.raises(CommandError, match="No upcoming waiver cycle"):
            await make_actions(api, directory, schedule=()).submit_waivers("Hughes Moves", ["Gannon Buhr"], 1)

    async def test_run_posts_awards(self, api: FakeLeagueApi, directory: PlayerDirectory) -> None:
        post = await make_actions(api, directory).run_waivers(WINDOW)
        assert post is not None
        assert "Waiver Awards" in post
        assert "4) Hughes Moves: Gannon Buhr (37817)" in post
        assert api.calls == [("waiver_run", ("2026-04-14", "Jonesboro Open"))]

    async def test_run_already_posted(self, api: FakeLeagueApi, directory: PlayerDirectory) -> None:
        api.waiver_run_response = {"ok": True, "alreadyPosted": True}
        assert await make_actions(api, directory).run_waivers(WINDOW) is None

    async def test_manual_run_disabled(self, api: FakeLeagueApi, directory: PlayerDirectory) -> None:
        with pytest.raises(CommandError, match="disabled"):
            await make_actions(api, directory, allow_manual_run=False).run_waivers_now()
        assert api.calls == []

    def test_due_windows_after_run_hour(self, api: FakeLeagueApi, directory: PlayerDirectory) -> None:
        before = datetime.datetime(2026, 4, 14, 15, 30, tzinfo=datetime.UTC)
        after = datetime.datetime(2026, 4, 14, 16, 30, tzinfo=datetime.UTC)
        assert make_actions(api, directory, now=before).due_windows() == []
        assert make_actions(api, directory, now=after).due_windows() == [WINDOW]


class TestRefreshPool:
    async def test_loads_directory(self, api: FakeLeagueApi) -> None:
        directory = PlayerDirectory()
        assert await make_actions(api, directory).refresh_pool() == 4
        assert directory.pdga_for("Kristin Tattar") == "44184"
