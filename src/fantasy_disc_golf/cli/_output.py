from collections.abc import Mapping, Sequence

from rich.console import Console
from rich.table import Table

from fantasy_disc_golf.domain.alerts import AlertSubscription, DeliveryResult
from fantasy_disc_golf.domain.audit import LoadLog
from fantasy_disc_golf.domain.ownership import RosterEntry
from fantasy_disc_golf.domain.scoring import EventFinal, Lineup, LockOutcome, RoundImport
from fantasy_disc_golf.domain.transaction import ValidationResult
from fantasy_disc_golf.domain.waiver import StandingEntry, WaiverAward, WaiverRequest, WaiverRunResult, WaiverSubmission
from fantasy_disc_golf.services.subscriptions import masked
from fantasy_disc_golf.services.transactions import CommitOutcome

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)


def print_error(message: str) -> None:
    err_console.print(f"[red bold]Error:[/red bold] {message}")


def print_errors(errors: Sequence[str]) -> None:
    for error in errors:
        print_error(error)


def print_ingest_result(log: LoadLog) -> None:
    console.print(f"[bold green]Import complete:[/bold green] {log.rows_loaded} rows loaded into {log.target_table}")
    console.print(f"  Source: {log.source_detail}")
    if log.rows_skipped:
        console.print(f"  Skipped: {log.rows_skipped} malformed rows")
    console.print(f"  Status: {log.status}")


def print_rosters(rosters: Mapping[str, Sequence[RosterEntry]], roster_cap: int) -> None:
    for team, entries in rosters.items():
        color = "red" if len(entries) > roster_cap else "green"
        console.print(f"[bold]{team}[/bold] [{color}]({len(entries)}/{roster_cap})[/{color}]")
        table = Table(show_edge=False, pad_edge=False)
        table.add_column("PDGA", justify="right")
        table.add_column("Player")
        table.add_column("Div")
        table.add_column("Source")
        for entry in entries:
            table.add_row(entry.pdga, entry.name, entry.division, entry.source)
        console.print(table)
        console.print()


def print_validation(result: ValidationResult) -> None:
    if result.ok:
        console.print("[bold green]Valid[/bold green]")
    else:
        console.print("[bold red]Invalid[/bold red]")
        for error in result.errors:
            console.print(f"  [red]- {error}[/red]")
    for key, value in result.details.items():
        console.print(f"  {key}: {value}")


def print_commit_outcome(outcome: CommitOutcome) -> None:
    if not outcome.ok:
        print_validation(outcome.validation)
        return
    for row in outcome.committed:
        console.print(
            f"[bold green]Committed[/bold green] {row.type} {row.name} ({row.pdga}): "
            f"{row.from_team or '-'} -> {row.to_team or '-'}"
        )


def print_waiver_submission(submission: WaiverSubmission) -> None:
    console.print(
        f"[bold green]Waiver request submitted[/bold green] for [bold]{submission.team}[/bold] "
        f"(cycle {submission.cycle_id})"
    )
    for pick in submission.picks:
        console.print(f"  {pick.rank}) {pick.name} ({pick.pdga})")


def print_waiver_run(result: WaiverRunResult) -> None:
    if result.already_posted:
        console.print(f"[yellow]Waiver awards already posted for cycle {result.cycle_id}[/yellow]")
        return
    console.print(f"[bold]{result.title}[/bold]  {result.event_name}")
    for line in result.lines:
        console.print(f"  {line}")
    console.print(f"[dim]{result.footer}[/dim]")


def print_requests(requests: Sequence[WaiverRequest]) -> None:
    if not requests:
        console.print("No waiver requests found.")
        return
    table = Table(show_edge=False, pad_edge=False)
    table.add_column("Team")
    table.add_column("Rank", justify="right")
    table.add_column("Player")
    table.add_column("PDGA", justify="right")
    table.add_column("Status")
    table.add_column("Submitted")
    for r in requests:
        table.add_row(r.team, str(r.rank), r.name, r.pdga, r.status, r.submitted_at or "")
    console.print(table)


def print_awards(awards: Sequence[WaiverAward]) -> None:
    if not awards:
        console.print("No waiver awards found.")
        return
    table = Table(show_edge=False, pad_edge=False)
    table.add_column("Round", justify="right")
    table.add_column("Pick")
    table.add_column("Team")
    table.add_column("Player")
    table.add_column("Status")
    for a in awards:
        table.add_row(str(a.round), a.priority_label, a.team, f"{a.name} ({a.pdga})" if a.pdga else "", a.status)
    console.print(table)


def print_subscriptions(subs: Sequence[AlertSubscription]) -> None:
    if not subs:
        console.print("No alert subscriptions.")
        return
    table = Table(show_edge=False, pad_edge=False)
    for column in ("Team", "Phone", "Enabled", "FA", "Waivers", "WD", "Lineup", "Opted out", "Last SMS"):
        table.add_column(column)
    for sub in subs:
        shown = masked(sub)
        table.add_row(
            shown.team,
            shown.phone_e164,
            _yes(sub.enabled),
            _yes(sub.free_agents),
            _yes(sub.waiver_awards),
            _yes(sub.withdrawals),
            _yes(sub.lineup_reminders),
            _yes(sub.opt_out),
            sub.last_sms_at or "",
        )
    console.print(table)


def print_round_import(result: RoundImport) -> None:
    console.print(
        f"[bold green]Scored[/bold green] {result.event_code} round {result.round}: {result.scored} players"
    )
    if result.skipped:
        console.print(f"  Not scorable: {result.skipped} players")


def print_lineups(lineups: Sequence[Lineup]) -> None:
    if not lineups:
        console.print("No lineups found.")
        return
    table = Table(show_edge=False, pad_edge=False)
    table.add_column("Team")
    table.add_column("Status")
    table.add_column("Players")
    table.add_column("Total", justify="right")
    for lineup in lineups:
        players = ", ".join(f"{s.name} ({s.pdga})" for s in lineup.slots)
        total = "" if lineup.total is None else f"{lineup.total:g}"
        table.add_row(lineup.team, lineup.status, players, total)
    console.print(table)


def print_lock_outcome(outcome: LockOutcome) -> None:
    console.print(f"[bold green]Locked[/bold green] {len(outcome.locked)} lineups for {outcome.event_code}")
    for team in outcome.locked:
        console.print(f"  {team}")
    for team, reason in outcome.skipped:
        console.print(f"  [yellow]{team}: {reason}[/yellow]")


def print_event_final(final: EventFinal) -> None:
    console.print(f"[bold green]Finalized[/bold green] {final.event_code}")
    for team, total in sorted(final.totals.items(), key=lambda item: (-item[1], item[0])):
        console.print(f"  {team}: {total:g} (season {final.season_totals.get(team, total):g})")


def print_standings(standings: Sequence[StandingEntry]) -> None:
    if not standings:
        console.print("No standings found.")
        return
    table = Table(show_edge=False, pad_edge=False)
    table.add_column("Rank", justify="right")
    table.add_column("Team")
    table.add_column("Season Total", justify="right")
    for s in standings:
        table.add_row("" if s.rank is None else str(s.rank), s.team, f"{s.points:g}")
    console.print(table)


def print_delivery(team: str, result: DeliveryResult) -> None:
    if result.sent:
        console.print(f"[bold green]Sent[/bold green] to {team} ({result.provider_id})")
    else:
        console.print(f"[yellow]Not sent[/yellow] to {team}: {result.reason}")


def _yes(flag: bool) -> str:
    return "yes" if flag else ""
