from fantasy_disc_golf.discord import formatting
from tests.discord.conftest import WINDOW


class TestTruncate:
    def test_short_message_unchanged(self) -> None:
        assert formatting.truncate("hello") == "hello"

    def test_long_message_truncated(self) -> None:
        result = formatting.truncate("x" * 2500)
        assert len(result) == 2000
        assert result.endswith("...")


class TestWaiverAwardsPost:
    def test_includes_title_event_lines_and_footer(self) -> None:
        post = formatting.waiver_awards_post(
            WINDOW, {"title": "Waiver Awards", "lines": ["— Round 1 —", "4) Hughes Moves: X (1)"], "footer": "done"}
        )
        assert post.startswith("🧾 **Waiver Awards**")
        assert "🏟️ Event: **Jonesboro Open**" in post
        assert "📅 Date: **2026-04-14**" in post
        assert "— Round 1 —\n4) Hughes Moves: X (1)" in post
        assert post.endswith("_done_")

    def test_missing_lines(self) -> None:
        assert "_No awards returned._" in formatting.waiver_awards_post(WINDOW, {"title": "Waiver Awards"})


class TestErrorText:
    def test_joins_errors(self) -> None:
        assert formatting.error_text({"ok": False, "errors": ["a", "b"], "error": "c"}) == "a\nb"

    def test_falls_back_to_error(self) -> None:
        assert formatting.error_text({"ok": False, "error": "League is busy"}) == "League is busy"

    def test_default_message(self) -> None:
        assert formatting.error_text({"ok": False}) == "Webhook returned ok:false"


def test_drop_and_add_lines() -> None:
    assert formatting.drop_line("Gannon Buhr") == "⬇️ **DROP**: Gannon Buhr → **Free Agent**"
    assert formatting.add_line("Gannon Buhr") == "⬆️ **ADD**: Gannon Buhr ← **Free Agent**"
