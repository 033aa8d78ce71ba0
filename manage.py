#!/usr/bin/env python3
"""
NFL Team Pool Management CLI

Command-line management for standings, the league roster and the database.
"""

import logging

import click
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from pickem import create_app, db
from pickem.models import LeagueEntry
from pickem.services.league_service import league_service
from pickem.services.scheduler_service import scheduler_service
from pickem.services.standings_service import standings_service
from pickem.utils.cache_utils import invalidate_cached_route
from pickem.utils.errors import DraftError
from pickem.utils.scoring import build_leaderboard
from pickem.utils.timezone_utils import describe_age, format_timestamp


def _teams():
    result = standings_service.resolve()
    if result.error:
        click.echo(f"⚠️  Standings degraded ({result.error.value}), source: {result.source}")
    return result.teams


def _pick_label(abbreviation):
    return abbreviation or "--"


@click.group()
@click.option(
    "--config",
    "config_name",
    default=None,
    help="Configuration to use (default: $FLASK_CONFIG)",
)
@click.pass_context
def cli(ctx, config_name):
    """NFL Team Pool Management CLI"""
    app = create_app(config_name)
    ctx.obj = app
    ctx.with_resource(app.app_context())
    # Write any debounced roster save before the process exits
    ctx.call_on_close(scheduler_service.stop)


# Standings Commands
@cli.group()
def standings():
    """Standings commands"""
    pass


@standings.command()
@click.option("--force", is_flag=True, help="Bypass the fresh cache")
def show(force):
    """Show current team records"""
    result = standings_service.resolve(force=force)

    click.echo(f"🏈 Standings (source: {result.source})")
    if result.resolved_at:
        click.echo(f"   Resolved {format_timestamp(result.resolved_at)}")
    if result.error:
        click.echo(f"⚠️  {result.error.value}")
    click.echo("=" * 40)

    if not result.teams:
        click.echo("No team data available.")
        return

    teams = sorted(result.teams, key=lambda t: (t.conference, t.division, -t.win_percentage))
    for team in teams:
        click.echo(
            f"  {team.abbreviation:<4} {team.name:<28} {team.record_summary:>8}"
            f"  {team.division}"
        )


@standings.command()
def refresh():
    """Force a standings refresh"""
    result = scheduler_service.force_refresh()
    if result is None:
        click.echo("❌ Standings refresh failed, see logs")
        return

    if result.error:
        click.echo(f"⚠️  Refresh degraded to {result.source}: {result.error.value}")
    else:
        click.echo(f"✅ Refreshed {len(result.teams)} teams from {result.source}")


@standings.command()
def clear_cache():
    """Clear the standings cache"""
    standings_service.clear_cache()
    invalidate_cached_route("standings")
    click.echo("✅ Standings cache cleared")


# League Commands
@cli.group()
def league():
    """League roster commands"""
    pass


@league.command("show")
def show_league():
    """Show players, picks and records"""
    players = league_service.players_with_records(_teams())
    click.echo(f"🏆 League ({league_service.stage()})")
    click.echo("=" * 40)

    if not players:
        click.echo("No players. Run 'league setup N' first.")
        return

    for player in players:
        picks = ", ".join(_pick_label(abbr) for abbr in player.picks)
        click.echo(
            f"  {player.id:>2}. {player.name:<20} [{picks}] "
            f"{player.wins}-{player.losses}-{player.ties}"
        )

    if league_service.draft_complete():
        click.echo("✅ Draft complete")


@league.command()
@click.argument("num_players", type=int)
def setup(num_players):
    """Start a new league with NUM_PLAYERS default players (saved once named)"""
    try:
        players = league_service.setup_league(num_players)
    except DraftError as e:
        click.echo(f"❌ {e}")
        return
    click.echo(f"✅ League set up with {len(players)} players")


@league.command()
@click.argument("names", nargs=-1, required=True)
def name(names):
    """Name players in roster order and save"""
    try:
        saved = league_service.name_players(names)
    except DraftError as e:
        click.echo(f"❌ {e}")
        return

    if saved:
        click.echo(f"✅ Named and saved {len(names)} players")
    else:
        click.echo("❌ Players named but the roster could not be saved")


@league.command()
@click.argument("player_id", type=int)
@click.argument("abbreviation")
@click.argument("slot", type=int)
def pick(player_id, abbreviation, slot):
    """Draft ABBREVIATION into SLOT (1-3) for PLAYER_ID"""
    try:
        player = league_service.pick_team(player_id, abbreviation, slot, teams=_teams())
    except DraftError as e:
        click.echo(f"❌ {e}")
        return

    click.echo(
        f"✅ {player.name} now holds "
        f"{', '.join(_pick_label(abbr) for abbr in player.picks)} "
        f"({player.wins}-{player.losses}-{player.ties})"
    )


@league.command()
def reset():
    """⚠️  DANGER: Remove all players and picks"""
    if not click.confirm("This will DELETE the whole league. Are you sure?"):
        click.echo("Cancelled.")
        return

    if league_service.reset():
        click.echo("✅ League reset")
    else:
        click.echo("❌ League reset failed, see logs")


@cli.command()
def leaderboard():
    """Show players ranked by aggregate record"""
    rows = build_leaderboard(league_service.get_players(), _teams())
    if not rows:
        click.echo("No players.")
        return

    click.echo("🏆 Leaderboard")
    click.echo("=" * 40)
    for row in rows:
        player = row.player
        games_back = "-" if row.games_back == 0 else str(row.games_back)
        click.echo(
            f"  {row.rank:>2}. {player.name:<20} "
            f"{player.wins}-{player.losses}-{player.ties}  GB {games_back}"
        )


# Database Commands
@cli.group()
def db_cmd():
    """Database commands"""
    pass


@db_cmd.command("init")
def init_db():
    """Initialize database tables"""
    try:
        db.create_all()
        click.echo("✅ Database tables created successfully!")
    except SQLAlchemyError as e:
        click.echo(f"❌ Error initializing database: {str(e)}")
        logging.error(f"Database init failed: {e}")


# Info Commands
@cli.command()
def status():
    """Show application status"""
    click.echo("🏈 NFL Team Pool Status")
    click.echo("=" * 40)

    # Database connection
    try:
        db.session.execute(text("SELECT 1"))
        click.echo("✅ Database: Connected")
        click.echo(f"👥 Stored players: {LeagueEntry.query.count()}")
    except SQLAlchemyError as e:
        click.echo(f"❌ Database: Error - {str(e)}")

    age = standings_service.cache_age()
    if age is None:
        click.echo("⚠️  Standings cache: empty")
    else:
        click.echo(f"✅ Standings cache: {describe_age(age)}")

    click.echo(f"📋 League stage: {league_service.stage()}")

    scheduler = scheduler_service.get_status()
    state = "running" if scheduler["is_running"] else "stopped"
    click.echo(f"⏱️  Scheduler: {state}")


if __name__ == "__main__":
    cli()
