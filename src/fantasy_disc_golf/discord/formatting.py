"""Message text for bot replies and channel posts."""

from collections.abc import Mapping, Sequence
from typing import Any

from fantasy_disc_golf.domain.league_settings import WaiverWindow
from fantasy_disc_golf.domain.ownership import FREE_AGENT

MAX_MESSAGE_LENGTH = 2000


def truncate(content: str, max_length: int = MAX_MESSAGE_LENGTH) -> str:
    if len(content) <= max_length:
        return content
    return content[: max_length - 3] + "..."


def _trailer(notes: str, user_id: int | str) -> str:
    note_line = f"\n📝 Notes: {notes}" if notes else ""
    return f"{note_line}\n👤 Submitted by: <@{user_id}>"


def drop_line(name: str) -> str:
    return f"⬇️ **DROP**: {name} → **{FREE_AGENT}**"


def add_line(name: str) -> str:
    return f"⬆️ **ADD**: {name} ← **{FREE_AGENT}**"


def swap_receipt(team: str, drop_name: str, add_name: str, notes: str, user_id: int | str) -> str:
    return f"✅ **{team} SWAP Logged**\n{drop_line(drop_name)}\n{add_line(add_name)}" + _trailer(notes, user_id)


def transaction_receipt(team: str, lines: Sequence[str], notes: str, user_id: int | str) -> str:
    return f"✅ **{team} Transaction Logged**\n" + "\n".join(lines) + _trailer(notes, user_id)


def trade_receipt(
    team_a: str, player_a: str, team_b: str, player_b: str, notes: str, user_id: int | str
) -> str:
    return (
        "🤝 **Trade Logged**\n"
        f"➡️ **{team_a}** sent: {player_a}\n"
        f"⬅️ **{team_b}** sent: {player_b}" + _trailer(notes, user_id)
    )


def waiver_submission_receipt(window: WaiverWindow, team: str, picks: Sequence[Mapping[str, Any]]) -> str:
    lines = "\n".join(f"{p['rank']}) {p['name']} ({p['pdga']})" for p in picks)
    return (
        "✅ **Waiver request submitted**\n"
        f"📅 Cycle: **{window.cycle_id}** ({window.event})\n"
        f"🏷️ Team: **{team}**\n\n"
        f"{lines}\n\n"
        "_Resubmitting /waivers replaces your previous request for this cycle._"
    )


def waiver_awards_post(window: WaiverWindow, result: Mapping[str, Any]) -> str:
    header = (
        f"🧾 **{result.get('title', '')}**\n"
        f"🏟️ Event: **{window.event}**\n"
        f"📅 Date: **{window.cycle_id}**\n\n"
    )
    lines = result.get("lines")
    body = "\n".join(lines) if isinstance(lines, list) else "_No awards returned._"
    footer = f"\n\n_{result['footer']}_" if result.get("footer") else ""
    return truncate(header + body + footer)


def error_text(result: Mapping[str, Any]) -> str:
    errors = result.get("errors")
    if isinstance(errors, list) and errors:
        return "\n".join(str(e) for e in errors)
    return str(result.get("error") or "Webhook returned ok:false")
