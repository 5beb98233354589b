from fantasy_disc_golf.domain.waiver import AwardStatus, StandingEntry, WaiverPick
from fantasy_disc_golf.services.waiver_engine import priority_order, round_cap, run_waiver_rounds


def _picks(*pdgas: str) -> list[WaiverPick]:
    return [WaiverPick(rank, pdga, f"Player {pdga}") for rank, pdga in enumerate(pdgas, start=1)]


def _always(pdga: str) -> bool:
    return True


class TestPriorityOrder:
    def test_fewest_points_first(self) -> None:
        ordered = priority_order([StandingEntry("A", 10), StandingEntry("B", 5), StandingEntry("C", 7)])
        assert [s.team for s in ordered] == ["B", "C", "A"]

    def test_explicit_rank_worst_first(self) -> None:
        """Imported ranks win over points: the worst-ranked team picks first."""
        standings = [StandingEntry("A", 10, rank=1), StandingEntry("B", 50, rank=3), StandingEntry("C", 0, rank=2)]
        ordered = priority_order(standings)
        assert [s.team for s in ordered] == ["B", "C", "A"]

    def test_ties_broken_by_name(self) -> None:
        ordered = priority_order([StandingEntry("Zed", 5), StandingEntry("Abe", 5)])
        assert [s.team for s in ordered] == ["Abe", "Zed"]


class TestRoundCap:
    def test_one_past_longest_wishlist(self) -> None:
        """One extra round lets the run notice that nobody was awarded."""
        assert round_cap({"A": _picks("1", "2"), "B": _picks("3")}) == 3

    def test_bounded_by_max_rounds(self) -> None:
        assert round_cap({"A": _picks(*[str(i) for i in range(20)])}, max_rounds=5) == 5

    def test_empty_still_plays_one_round(self) -> None:
        assert round_cap({}) == 1


class TestRunWaiverRounds:
    def test_worst_team_gets_contested_player(self) -> None:
        """Two teams want the same player and the team lower in the standings gets them."""
        ordered = priority_order([StandingEntry("A", 10), StandingEntry("B", 5)])
        allocation = run_waiver_rounds(
            "2026-04-10",
            ordered,
            {"A": _picks("p1", "p2"), "B": _picks("p1")},
            _always,
            awarded_at="2026-04-10T16:00:00",
        )
        assert allocation.awards_by_team == {
            "B": [WaiverPick(1, "p1", "Player p1")],
            "A": [WaiverPick(2, "p2", "Player p2")],
        }
        assert allocation.lines == ("— Round 1 —", "2) B: Player p1 (p1)", "1) A: Player p2 (p2)")
        assert allocation.rounds_played == 2
        assert [a.claim_sequence for a in allocation.awards] == [1, 2]

    def test_multiple_rounds_snake_through_wishlists(self) -> None:
        ordered = [StandingEntry("A"), StandingEntry("B")]
        allocation = run_waiver_rounds(
            "c", ordered, {"A": _picks("1", "2"), "B": _picks("3", "4")}, _always, awarded_at="t"
        )
        awarded = [(a.round, a.team, a.pdga) for a in allocation.awards if a.status == AwardStatus.AWARDED]
        assert awarded == [(1, "A", "1"), (1, "B", "3"), (2, "A", "2"), (2, "B", "4")]
        assert "— Round 2 —" in allocation.lines
        assert "— Round 3 —" not in allocation.lines

    def test_no_player_awarded_twice(self) -> None:
        ordered = [StandingEntry("A"), StandingEntry("B"), StandingEntry("C")]
        wishlists = {"A": _picks("1", "2", "3"), "B": _picks("1", "2", "3"), "C": _picks("1", "2", "3")}
        allocation = run_waiver_rounds("c", ordered, wishlists, _always, awarded_at="t")
        pdgas = [a.pdga for a in allocation.awards if a.status == AwardStatus.AWARDED]
        assert sorted(pdgas) == ["1", "2", "3"]
        assert len(set(pdgas)) == len(pdgas)

    def test_owned_players_skipped(self) -> None:
        allocation = run_waiver_rounds(
            "c", [StandingEntry("A")], {"A": _picks("owned", "free")}, lambda pdga: pdga != "owned", awarded_at="t"
        )
        assert allocation.awards_by_team == {"A": [WaiverPick(2, "free", "Player free")]}

    def test_no_valid_pick_recorded_in_round_one_only(self) -> None:
        """A team with an empty wishlist gets one NO_VALID_PICK row, not one per round."""
        ordered = [StandingEntry("A"), StandingEntry("B")]
        allocation = run_waiver_rounds("c", ordered, {"A": _picks("1", "2")}, _always, awarded_at="t")
        no_pick = [a for a in allocation.awards if a.status == AwardStatus.NO_VALID_PICK]
        assert [(a.team, a.round) for a in no_pick] == [("B", 1)]

    def test_skipped_pick_never_reconsidered(self) -> None:
        # B's first choice goes to A in round 1; B moves on and never returns to it.
        ordered = [StandingEntry("A"), StandingEntry("B")]
        allocation = run_waiver_rounds(
            "c", ordered, {"A": _picks("1"), "B": _picks("1", "2")}, _always, awarded_at="t"
        )
        assert allocation.awards_by_team == {
            "A": [WaiverPick(1, "1", "Player 1")],
            "B": [WaiverPick(2, "2", "Player 2")],
        }

    def test_terminates_with_no_requests(self) -> None:
        allocation = run_waiver_rounds("c", [StandingEntry("A")], {}, _always, awarded_at="t")
        assert allocation.rounds_played == 1
        assert allocation.lines == ("— Round 1 —",)
        assert allocation.awards_by_team == {}

    def test_priority_labels_count_down(self) -> None:
        """Priority labels count down so the first team to pick shows the highest number."""
        ordered = [StandingEntry("A"), StandingEntry("B"), StandingEntry("C")]
        allocation = run_waiver_rounds("c", ordered, {}, _always, awarded_at="t")
        assert [(a.team, a.priority_label) for a in allocation.awards] == [("A", "3"), ("B", "2"), ("C", "1")]
