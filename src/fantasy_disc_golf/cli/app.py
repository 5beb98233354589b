import asyncio
from typing import Annotated, Any

import typer

from fantasy_disc_golf.cli._logging import configure_logging
from fantasy_disc_golf.cli._output import (
    console,
    print_awards,
    print_commit_outcome,
    print_delivery,
    print_error,
    print_errors,
    print_event_final,
    print_ingest_result,
    print_lineups,
    print_lock_outcome,
    print_requests,
    print_rosters,
    print_round_import,
    print_standings,
    print_subscriptions,
    print_validation,
    print_waiver_run,
    print_waiver_submission,
)
from fantasy_disc_golf.cli.factory import (
    AppSettings,
    build_api_client,
    build_league_context,
    build_webhook_context,
    load_app_settings,
)
from fantasy_disc_golf.config import create_config
from fantasy_disc_golf.container import LeagueContainer
from fantasy_disc_golf.db.connection import create_connection, get_schema_version, transaction
from fantasy_disc_golf.domain.ownership import FREE_AGENT
from fantasy_disc_golf.domain.result import Err, Ok
from fantasy_disc_golf.domain.transaction import ProposedTransaction
from fantasy_disc_golf.exceptions import ConfigurationError
from fantasy_disc_golf.ingest.column_maps import (
    DRAFT_COLUMNS,
    POOL_COLUMNS,
    STANDING_COLUMNS,
    TRANSACTION_COLUMNS,
    make_draft_mapper,
    make_standing_mapper,
    pool_mapper,
    transaction_mapper,
)
from fantasy_disc_golf.ingest.csv_source import CsvSource
from fantasy_disc_golf.ingest.loader import Loader
from fantasy_disc_golf.services.ownership import ownership_by_team
from fantasy_disc_golf.services.schedule import league_today, next_window

app = typer.Typer(name="fdg", help="Fantasy Disc Golf league manager")


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable DEBUG logging")] = False,
    quiet: Annotated[bool, typer.Option("--quiet", "-q", help="Only log warnings and errors")] = False,
) -> None:
    """Fantasy Disc Golf league manager."""
    configure_logging(verbose=verbose, quiet=quiet)
    if ctx.invoked_subcommand is None:
        raise typer.Exit()


_ConfigOpt = Annotated[str, typer.Option("--config", help="Path to the YAML config file")]


def _settings(config_path: str) -> AppSettings:
    try:
        return load_app_settings(create_config(yaml_path=config_path))
    except ConfigurationError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e


# --- db subcommand group ---

db_app = typer.Typer(name="db", help="Manage the league database")
app.add_typer(db_app, name="db")


@db_app.command("init")
def db_init(config: _ConfigOpt = "fdg.yaml") -> None:
    """Create the league database and apply pending migrations."""
    settings = _settings(config)
    conn = create_connection(settings.db_path)
    try:
        version = get_schema_version(conn)
    finally:
        conn.close()
    console.print(f"[bold green]Database ready[/bold green] at {settings.db_path} (schema v{version})")


# --- import subcommand group ---

import_app = typer.Typer(name="import", help="Import baseline league data from CSV files")
app.add_typer(import_app, name="import")

_CsvArg = Annotated[str, typer.Argument(help="Path to the CSV file")]


def _load(c: LeagueContainer, loader: Loader, *, rebuild: bool = False) -> None:
    match loader.load():
        case Ok(log):
            print_ingest_result(log)
        case Err(e):
            print_error(e.message)
            raise typer.Exit(code=1)
    if rebuild:
        with transaction(c.conn):
            written = c.ownership.rebuild_rosters()
        console.print(f"  Roster view rebuilt: {written} players")


@import_app.command("pool")
def import_pool(path: _CsvArg, config: _ConfigOpt = "fdg.yaml") -> None:
    """Import the player pool (name, PDGA #, division)."""
    with build_league_context(_settings(config)) as c:
        loader = Loader(
            CsvSource(path),
            c.pool_repo.upsert,
            c.load_log_repo,
            pool_mapper,
            "player_pool",
            conn=c.conn,
            required_columns=POOL_COLUMNS,
        )
        _load(c, loader)


@import_app.command("draft")
def import_draft(path: _CsvArg, config: _ConfigOpt = "fdg.yaml") -> None:
    """Import the draft baseline (team, player, PDGA #)."""
    with build_league_context(_settings(config)) as c:
        mapper = make_draft_mapper(c.registry, c.pool_repo.all())
        loader = Loader(
            CsvSource(path),
            c.draft_repo.upsert,
            c.load_log_repo,
            mapper,
            "draft_pick",
            conn=c.conn,
            required_columns=DRAFT_COLUMNS,
        )
        _load(c, loader, rebuild=True)


@import_app.command("transactions")
def import_transactions(path: _CsvArg, config: _ConfigOpt = "fdg.yaml") -> None:
    """Append historical transactions (ADD/DROP/TRADE rows)."""
    with build_league_context(_settings(config)) as c:
        loader = Loader(
            CsvSource(path),
            c.transaction_repo.append,
            c.load_log_repo,
            transaction_mapper,
            "roster_transaction",
            conn=c.conn,
            required_columns=TRANSACTION_COLUMNS,
        )
        _load(c, loader, rebuild=True)


@import_app.command("standings")
def import_standings(path: _CsvArg, config: _ConfigOpt = "fdg.yaml") -> None:
    """Import current standings (team, rank and/or points)."""
    with build_league_context(_settings(config)) as c:
        mapper = make_standing_mapper(c.registry)
        loader = Loader(
            CsvSource(path),
            c.standing_repo.upsert,
            c.load_log_repo,
            mapper,
            "standing",
            conn=c.conn,
            required_columns=STANDING_COLUMNS,
        )
        _load(c, loader)


# --- rosters ---


@app.command("rosters")
def rosters(
    team: Annotated[str | None, typer.Option("--team", help="Show one team only")] = None,
    config: _ConfigOpt = "fdg.yaml",
) -> None:
    """Show current rosters derived from the draft plus transaction history."""
    with build_league_context(_settings(config)) as c:
        grouped = {t: e for t, e in ownership_by_team(c.ownership.snapshot()).items() if t != FREE_AGENT}
        if team is not None:
            canonical = c.registry.normalize(team)
            if not canonical or canonical == FREE_AGENT:
                print_error(f"unknown team '{team}'")
                raise typer.Exit(code=1)
            grouped = {canonical: grouped.get(canonical, [])}
        print_rosters(grouped, c.league.roster_cap)


# --- tx subcommand group ---

tx_app = typer.Typer(name="tx", help="Validate and commit roster transactions")
app.add_typer(tx_app, name="tx")

_TypeArg = Annotated[str, typer.Argument(help="ADD, DROP, TRADE or SWAP")]
_TeamArg = Annotated[str, typer.Argument(help="Team making the move (name or alias)")]
_PdgaOpt = Annotated[str, typer.Option("--pdga", help="Player PDGA number")]
_NameOpt = Annotated[str, typer.Option("--name", help="Player name")]
_FromOpt = Annotated[str, typer.Option("--from", help="Team the player leaves")]
_ToOpt = Annotated[str, typer.Option("--to", help="Team the player joins")]
_DropPdgaOpt = Annotated[str, typer.Option("--drop-pdga", help="SWAP: PDGA number to drop")]
_DropNameOpt = Annotated[str, typer.Option("--drop-name", help="SWAP: player name to drop")]
_AddPdgaOpt = Annotated[str, typer.Option("--add-pdga", help="SWAP: PDGA number to add")]
_AddNameOpt = Annotated[str, typer.Option("--add-name", help="SWAP: player name to add")]
_NotesOpt = Annotated[str, typer.Option("--notes", help="Free-form notes")]


@tx_app.command("validate")
def tx_validate(
    tx_type: _TypeArg,
    team: _TeamArg,
    pdga: _PdgaOpt = "",
    name: _NameOpt = "",
    from_team: _FromOpt = "",
    to_team: _ToOpt = "",
    drop_pdga: _DropPdgaOpt = "",
    drop_name: _DropNameOpt = "",
    add_pdga: _AddPdgaOpt = "",
    add_name: _AddNameOpt = "",
    config: _ConfigOpt = "fdg.yaml",
) -> None:
    """Check a transaction against current ownership without committing it."""
    proposed = ProposedTransaction(
        type=tx_type,
        team=team,
        pdga=pdga,
        name=name,
        from_team=from_team,
        to_team=to_team,
        drop_pdga=drop_pdga,
        drop_name=drop_name,
        add_pdga=add_pdga,
        add_name=add_name,
    )
    with build_league_context(_settings(config)) as c:
        result = c.transactions.validate(proposed)
    print_validation(result)
    if not result.ok:
        raise typer.Exit(code=1)


@tx_app.command("commit")
def tx_commit(
    tx_type: _TypeArg,
    team: _TeamArg,
    pdga: _PdgaOpt = "",
    name: _NameOpt = "",
    from_team: _FromOpt = "",
    to_team: _ToOpt = "",
    drop_pdga: _DropPdgaOpt = "",
    drop_name: _DropNameOpt = "",
    add_pdga: _AddPdgaOpt = "",
    add_name: _AddNameOpt = "",
    notes: _NotesOpt = "",
    config: _ConfigOpt = "fdg.yaml",
) -> None:
    """Validate and append a transaction, then rebuild the roster view."""
    proposed = ProposedTransaction(
        type=tx_type,
        team=team,
        pdga=pdga,
        name=name,
        from_team=from_team,
        to_team=to_team,
        drop_pdga=drop_pdga,
        drop_name=drop_name,
        add_pdga=add_pdga,
        add_name=add_name,
        notes=notes,
    )
    with build_league_context(_settings(config)) as c:
        outcome = c.transactions.commit(proposed)
    print_commit_outcome(outcome)
    if not outcome.ok:
        raise typer.Exit(code=1)


# --- waivers subcommand group ---

waivers_app = typer.Typer(name="waivers", help="Waiver wishlists and award runs")
app.add_typer(waivers_app, name="waivers")

_CycleOpt = Annotated[str | None, typer.Option("--cycle", help="Cycle id (defaults to the next scheduled window)")]
_EventOpt = Annotated[str | None, typer.Option("--event", help="Event name (defaults to the scheduled event)")]


def _cycle_and_event(settings: AppSettings, cycle: str | None, event: str | None) -> tuple[str, str]:
    if cycle and event:
        return cycle, event
    schedule = settings.waiver.schedule
    if cycle:
        matching = [w for w in schedule if w.cycle_id == cycle]
        return cycle, event or (matching[0].event if matching else "")
    window = next_window(schedule, league_today(settings.league.timezone))
    if window is None:
        print_error("no upcoming waiver cycle found in schedule")
        raise typer.Exit(code=1)
    return window.cycle_id, event or window.event


def _pick(rank: int, value: str) -> dict[str, Any]:
    value = value.strip()
    return {"rank": rank, "pdga": value} if value.isdigit() else {"rank": rank, "name": value}


@waivers_app.command("submit")
def waivers_submit(
    team: _TeamArg,
    pick: Annotated[list[str], typer.Option("--pick", help="Player name or PDGA #, in rank order (repeatable)")],
    cycle: _CycleOpt = None,
    submitted_by: Annotated[str, typer.Option("--by", help="Who submitted the wishlist")] = "cli",
    config: _ConfigOpt = "fdg.yaml",
) -> None:
    """Submit (or replace) a team's ranked waiver wishlist."""
    settings = _settings(config)
    cycle_id, _ = _cycle_and_event(settings, cycle, "")
    picks = [_pick(rank, value) for rank, value in enumerate(pick, start=1)]
    with build_league_context(settings) as c:
        result = c.waiver_requests.submit(cycle_id, team, submitted_by, picks)
    match result:
        case Ok(submission):
            print_waiver_submission(submission)
        case Err(failure):
            print_errors(failure.errors or (failure.message,))
            raise typer.Exit(code=1)


@waivers_app.command("run")
def waivers_run(cycle: _CycleOpt = None, event: _EventOpt = None, config: _ConfigOpt = "fdg.yaml") -> None:
    """Resolve the waiver cycle and record the awards (idempotent per cycle)."""
    settings = _settings(config)
    cycle_id, event_name = _cycle_and_event(settings, cycle, event)
    with build_league_context(settings) as c:
        result = c.waivers.run(cycle_id, event_name)
    match result:
        case Ok(run):
            print_waiver_run(run)
        case Err(e):
            print_error(e.message)
            raise typer.Exit(code=1)


@waivers_app.command("requests")
def waivers_requests(cycle: _CycleOpt = None, config: _ConfigOpt = "fdg.yaml") -> None:
    """List the waiver requests of a cycle."""
    settings = _settings(config)
    cycle_id, _ = _cycle_and_event(settings, cycle, "")
    with build_league_context(settings) as c:
        print_requests(c.request_repo.for_cycle(cycle_id))


@waivers_app.command("awards")
def waivers_awards(cycle: _CycleOpt = None, config: _ConfigOpt = "fdg.yaml") -> None:
    """List the recorded awards of a cycle."""
    settings = _settings(config)
    cycle_id, _ = _cycle_and_event(settings, cycle, "")
    with build_league_context(settings) as c:
        print_awards(c.award_repo.for_cycle(cycle_id))


# --- alerts subcommand group ---

alerts_app = typer.Typer(name="alerts", help="SMS alert subscriptions")
app.add_typer(alerts_app, name="alerts")


@alerts_app.command("set")
def alerts_set(
    team: _TeamArg,
    phone: Annotated[str, typer.Argument(help="Phone number (E.164, e.g. +15555550123)")],
    free_agents: Annotated[bool, typer.Option("--free-agents/--no-free-agents")] = False,
    waiver_awards: Annotated[bool, typer.Option("--waiver-awards/--no-waiver-awards")] = False,
    withdrawals: Annotated[bool, typer.Option("--withdrawals/--no-withdrawals")] = False,
    lineup_reminders: Annotated[bool, typer.Option("--lineup-reminders/--no-lineup-reminders")] = False,
    enabled: Annotated[bool, typer.Option("--enabled/--disabled")] = True,
    config: _ConfigOpt = "fdg.yaml",
) -> None:
    """Create or update a team's alert preferences."""
    with build_league_context(_settings(config)) as c:
        with c.lock.hold(c.lock_timeout):
            result = c.subscriptions.set_preferences(
                team,
                phone,
                enabled=enabled,
                free_agents=free_agents,
                waiver_awards=waiver_awards,
                withdrawals=withdrawals,
                lineup_reminders=lineup_reminders,
            )
    match result:
        case Ok(change):
            verb = "Created" if change.created else "Updated"
            console.print(f"[bold green]{verb}[/bold green] alerts for {change.subscription.team}")
            if change.subscription.opt_out:
                console.print("[yellow]  Number is opted out (STOP); alerts stay disabled until START.[/yellow]")
        case Err(failure):
            print_error(failure.message)
            raise typer.Exit(code=1)


@alerts_app.command("list")
def alerts_list(config: _ConfigOpt = "fdg.yaml") -> None:
    """List alert subscriptions (phone numbers masked)."""
    with build_league_context(_settings(config)) as c:
        print_subscriptions(c.subscriptions.list())


@alerts_app.command("opt-out")
def alerts_opt_out(
    phone: Annotated[str, typer.Argument(help="Phone number to opt out")],
    undo: Annotated[bool, typer.Option("--undo", help="Opt the number back in")] = False,
    config: _ConfigOpt = "fdg.yaml",
) -> None:
    """Opt a phone number out of every alert (or back in with --undo)."""
    with build_league_context(_settings(config)) as c:
        with c.lock.hold(c.lock_timeout):
            teams = c.subscriptions.set_opt_out(phone, not undo)
    if not teams:
        print_error("no subscription uses that number")
        raise typer.Exit(code=1)
    console.print(f"{'Opted in' if undo else 'Opted out'}: {', '.join(teams)}")


@alerts_app.command("withdrawal")
def alerts_withdrawal(
    team: _TeamArg,
    player: Annotated[str, typer.Argument(help="Withdrawn player's name")],
    event: Annotated[str, typer.Option("--event", help="Event the player withdrew from")],
    pdga: _PdgaOpt = "",
    config: _ConfigOpt = "fdg.yaml",
) -> None:
    """Text a team that one of its players withdrew from an event."""
    with build_league_context(_settings(config)) as c:
        canonical = c.registry.normalize(team)
        if not canonical or canonical == FREE_AGENT:
            print_error(f"unknown team '{team}'")
            raise typer.Exit(code=1)
        result = c.alerts.send_withdrawal_alert(canonical, player, pdga, event, c.alerts.new_budget())
    print_delivery(canonical, result)


# --- lineup ---

lineup_app = typer.Typer(name="lineup", help="Event lineups and lineup reminders")
app.add_typer(lineup_app, name="lineup")


@lineup_app.command("remind")
def lineup_remind(cycle: _CycleOpt = None, event: _EventOpt = None, config: _ConfigOpt = "fdg.yaml") -> None:
    """Send the lineup reminder for a cycle (once per cycle and event)."""
    settings = _settings(config)
    cycle_id, event_name = _cycle_and_event(settings, cycle, event)
    with build_league_context(settings) as c:
        result = c.lineup_reminders.run(cycle_id, event_name)
    match result:
        case Ok(True):
            console.print(f"[bold green]Lineup reminder sent[/bold green] for {event_name} ({cycle_id})")
        case Ok(False):
            console.print(f"[yellow]Lineup reminder already sent for {event_name} ({cycle_id})[/yellow]")
        case Err(e):
            print_error(e.message)
            raise typer.Exit(code=1)


_EventCodeArg = Annotated[str, typer.Argument(help="Event code, e.g. SFO")]


@lineup_app.command("submit")
def lineup_submit(
    event_code: _EventCodeArg,
    team: _TeamArg,
    player: Annotated[list[str], typer.Option("--player", help="Player name or PDGA # (repeatable)")],
    config: _ConfigOpt = "fdg.yaml",
) -> None:
    """Submit (or replace) a team's lineup for an event."""
    with build_league_context(_settings(config)) as c:
        result = c.lineups.submit(event_code, team, player)
    match result:
        case Ok(lineup):
            console.print(f"[bold green]Lineup submitted[/bold green] for {lineup.team} ({lineup.event_code})")
            for slot in lineup.slots:
                console.print(f"  {slot.name} ({slot.pdga})")
        case Err(failure):
            print_errors(failure.errors or (failure.message,))
            raise typer.Exit(code=1)


@lineup_app.command("lock")
def lineup_lock(event_code: _EventCodeArg, config: _ConfigOpt = "fdg.yaml") -> None:
    """Lock every valid submitted lineup for an event."""
    with build_league_context(_settings(config)) as c:
        result = c.lineups.lock(event_code)
    match result:
        case Ok(outcome):
            print_lock_outcome(outcome)
        case Err(e):
            print_error(e.message)
            raise typer.Exit(code=1)


@lineup_app.command("finalize")
def lineup_finalize(event_code: _EventCodeArg, config: _ConfigOpt = "fdg.yaml") -> None:
    """Total the locked lineups for an event and update the standings."""
    with build_league_context(_settings(config)) as c:
        result = c.lineups.finalize(event_code)
    match result:
        case Ok(final):
            print_event_final(final)
        case Err(e):
            print_error(e.message)
            raise typer.Exit(code=1)


@lineup_app.command("show")
def lineup_show(event_code: _EventCodeArg, config: _ConfigOpt = "fdg.yaml") -> None:
    """List the lineups of an event."""
    with build_league_context(_settings(config)) as c:
        print_lineups(c.lineups.lineups(event_code))


# --- scores / standings ---

scores_app = typer.Typer(name="scores", help="Round scoring")
app.add_typer(scores_app, name="scores")


@scores_app.command("import")
def scores_import(
    event_code: _EventCodeArg,
    round_no: Annotated[int, typer.Argument(help="Round number", min=1)],
    path: _CsvArg,
    config: _ConfigOpt = "fdg.yaml",
) -> None:
    """Score a round sheet (PDGA, Name, hole columns 1..N and a Par row)."""
    with build_league_context(_settings(config)) as c:
        result = c.scoring.import_round(event_code, round_no, CsvSource(path))
    match result:
        case Ok(scored):
            print_round_import(scored)
        case Err(e):
            print_error(e.message)
            raise typer.Exit(code=1)


@app.command("standings")
def standings(config: _ConfigOpt = "fdg.yaml") -> None:
    """Show the league standings, best season total first."""
    with build_league_context(_settings(config)) as c:
        entries = c.standing_repo.all()
    print_standings(sorted(entries, key=lambda s: (s.rank is None, s.rank or 0, -s.points, s.team)))


# --- serve / bot ---


@app.command("serve")
def serve(
    host: Annotated[str | None, typer.Option("--host", help="Bind address")] = None,
    port: Annotated[int | None, typer.Option("--port", help="Bind port")] = None,
    config: _ConfigOpt = "fdg.yaml",
) -> None:
    """Serve the league webhook (POST /hook)."""
    settings = _settings(config)
    bind_host = host or settings.webhook.host
    bind_port = port or settings.webhook.port
    try:
        with build_webhook_context(settings) as flask_app:
            console.print(f"Serving webhook on http://{bind_host}:{bind_port}/hook")
            flask_app.run(host=bind_host, port=bind_port, threaded=True)
    except ConfigurationError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e


@app.command("bot")
def bot(config: _ConfigOpt = "fdg.yaml") -> None:
    """Run the Discord bot against the configured webhook."""
    from fantasy_disc_golf.discord import load_discord_config, run_bot

    settings = _settings(config)
    try:
        discord_config = load_discord_config()
        api = build_api_client(settings)
    except ConfigurationError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    asyncio.run(run_bot(discord_config, api, settings.league, settings.waiver))
