"""CLI for Power Rankings."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Annotated, Any, TypeVar

import pydantic
import structlog
import typer
from rich.console import Console
from rich.logging import RichHandler

from power_rankings import __version__
from power_rankings.core.config import AppConfig, load_config
from power_rankings.core.errors import ConfigurationError, RankingError
from power_rankings.models import build_match
from power_rankings.ranking import MatchContext
from power_rankings.seasons import CURRENT_SEASON_ID
from power_rankings.services.formatting import (
    format_head_to_head,
    format_players,
    format_rankings,
    format_season_rankings,
    format_seasons,
)
from power_rankings.services.importer import import_tournament, load_payload
from power_rankings.services.reporting import MatchService

T = TypeVar("T")

# Configure structlog
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

app = typer.Typer(
    name="power-rankings",
    help="Power Rankings - Elo and skill ratings, seasons, and head-to-head records",
    add_completion=False,
)
season_app = typer.Typer(help="View and manage seasons", add_completion=False)
app.add_typer(season_app, name="season")
console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"power-rankings v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Annotated[
        Path | None, typer.Option("--config", "-c", help="Path to config YAML file")
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-V", help="Verbose output")] = False,
    version: Annotated[
        bool | None,
        typer.Option("--version", "-v", callback=version_callback, is_eager=True),
    ] = None,
) -> None:
    """Power Rankings CLI."""
    log_level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )
    ctx.obj = {"config_path": config_path, "verbose": verbose}


def _load_app_config(ctx: typer.Context) -> AppConfig:
    config_path = ctx.obj["config_path"]
    if config_path is None:
        return AppConfig()
    return load_config(config_path)


def _run(ctx: typer.Context, action: Callable[[MatchService], Awaitable[T]]) -> T:
    """Open the service, run one action against it, and map errors to exit codes."""

    async def _go() -> T:
        service = await MatchService.open(_load_app_config(ctx))
        try:
            return await action(service)
        finally:
            await service.close()

    try:
        return asyncio.run(_go())
    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    except RankingError as e:
        console.print(str(e), markup=False, style="red")
        raise typer.Exit(1) from e
    except pydantic.ValidationError as e:
        console.print(f"[red]Validation error:[/red] {e}")
        raise typer.Exit(1) from e


def _print(text: str) -> None:
    console.print(text, markup=False, highlight=False)


def _parse_params(values: list[str]) -> dict[str, Any]:
    params: dict[str, Any] = {}
    for item in values:
        name, sep, raw = item.partition("=")
        if not sep or not name:
            raise ConfigurationError(
                f"Invalid parameter '{item}'", "Use name=value, e.g. --param k_factor=24."
            )
        params[name.strip()] = raw.strip()
    return params


# ==================== Matches and rankings ====================


@app.command()
def report(
    ctx: typer.Context,
    winner: Annotated[str, typer.Argument(help="Winner's tag")],
    loser: Annotated[str, typer.Argument(help="Loser's tag")],
    score: Annotated[str | None, typer.Option("--score", "-s", help="Set score, e.g. 3-1")] = None,
    tournament: Annotated[
        str | None, typer.Option("--tournament", "-t", help="Tournament name")
    ] = None,
    major: Annotated[bool, typer.Option("--major", help="Major tournament (Elo K x1.5)")] = False,
    match_id: Annotated[str | None, typer.Option("--match-id", help="External set id")] = None,
) -> None:
    """Report a match result and update both players."""

    async def action(service: MatchService) -> None:
        match = build_match(
            winner_tag=winner,
            loser_tag=loser,
            score=score,
            tournament_name=tournament,
            match_id=match_id,
        )
        context = MatchContext(
            score=score,
            tournament_name=tournament,
            importance="major" if major else None,
            timestamp=match.timestamp,
        )
        outcome = await service.report_match(match, context)
        if outcome.duplicate:
            console.print("[yellow]Duplicate match, nothing changed.[/yellow]")
            return
        system = service.ratings
        _print(
            f"{outcome.match.winner_tag} defeated {outcome.match.loser_tag}"
            + (f" {outcome.match.score}" if outcome.match.score else "")
        )
        _print(
            f"  {outcome.winner.tag}: {system.display_rating(outcome.winner)}"
            f" ({outcome.winner_change:+.1f})"
        )
        _print(
            f"  {outcome.loser.tag}: {system.display_rating(outcome.loser)}"
            f" ({outcome.loser_change:+.1f})"
        )
        if not outcome.in_season:
            console.print("[dim]No active season; match not counted for season rankings.[/dim]")

    _run(ctx, action)


@app.command()
def rankings(
    ctx: typer.Context,
    limit: Annotated[int, typer.Option("--limit", "-n", help="Number of players")] = 10,
) -> None:
    """Show global rankings by the active rating system."""

    async def action(service: MatchService) -> str:
        ranked = await service.rankings(limit)
        return format_rankings(ranked, service.ratings.active_system.name)

    _print(_run(ctx, action))


@app.command()
def pr(
    ctx: typer.Context,
    season_id: Annotated[str, typer.Option("--season", help="Season id")] = CURRENT_SEASON_ID,
) -> None:
    """Show season power rankings (win percentage, then strength of schedule)."""

    async def action(service: MatchService) -> str:
        season = service.seasons.get_season(season_id)
        return format_season_rankings(season, await service.season_rankings(season_id))

    _print(_run(ctx, action))


@app.command()
def h2h(
    ctx: typer.Context,
    player_a: Annotated[str, typer.Argument(help="First player's tag")],
    player_b: Annotated[str, typer.Argument(help="Second player's tag")],
    season_id: Annotated[str, typer.Option("--season", help="Season id")] = CURRENT_SEASON_ID,
) -> None:
    """Show the head-to-head record between two players."""

    async def action(service: MatchService) -> str:
        record = await service.head_to_head(player_a, player_b, season_id)
        roster_tags = {tag.casefold(): tag for tag in record.players}
        return format_head_to_head(
            record,
            roster_tags.get(player_a.casefold(), player_a),
            roster_tags.get(player_b.casefold(), player_b),
        )

    _print(_run(ctx, action))


@app.command()
def players(
    ctx: typer.Context,
    tag: Annotated[
        str | None, typer.Option("--tag", help="Show recent matches for one player")
    ] = None,
    account: Annotated[
        str | None, typer.Option("--account", help="Show recent matches for a linked account")
    ] = None,
    limit: Annotated[int, typer.Option("--limit", "-n", help="Number of matches")] = 10,
) -> None:
    """List the roster, or one player's recent matches."""

    async def action(service: MatchService) -> str:
        player_tag = tag
        if account is not None:
            player_tag = (await service.player_for_account(account)).tag
        if player_tag is None:
            roster = await service.roster()
            ratings = {p.tag: service.ratings.display_rating(p) for p in roster}
            return format_players(roster, ratings)
        matches = await service.recent_matches(player_tag, limit)
        if not matches:
            return f"No matches found for {player_tag}."
        return "\n".join(
            f"{m.timestamp.date()}  {m.winner_tag} def. {m.loser_tag}"
            + (f" {m.score}" if m.score else "")
            + (f" @ {m.tournament_name}" if m.tournament_name else "")
            for m in matches
        )

    _print(_run(ctx, action))


@app.command()
def register(
    ctx: typer.Context,
    tag: Annotated[str, typer.Argument(help="Player tag")],
    account: Annotated[str, typer.Argument(help="Chat account id to link")],
) -> None:
    """Link a chat account to a player, creating the player if needed."""

    async def action(service: MatchService) -> str:
        player = await service.link_account(tag, account)
        return f"Registered {player.tag} ({service.ratings.display_rating(player)})"

    _print(_run(ctx, action))


@app.command()
def system(
    ctx: typer.Context,
    key: Annotated[str | None, typer.Argument(help="Rating system to activate")] = None,
    param: Annotated[
        list[str] | None,
        typer.Option("--param", "-p", help="Tune a parameter, e.g. k_factor=24"),
    ] = None,
) -> None:
    """Show, switch, or tune the rating system."""

    async def action(service: MatchService) -> None:
        manager = service.ratings
        if key is not None and key != manager.active_key:
            await service.switch_system(key)
            console.print(f"[green]Switched to {manager.active_system.name}.[/green]")
        if param:
            await service.tune_system(key or manager.active_key, **_parse_params(param))
            console.print("[green]Parameters updated.[/green]")
        console.print(f"[bold]Active:[/bold] {manager.active_system.name} ({manager.active_key})")
        for name, rating_system in manager.systems.items():
            params = ", ".join(f"{k}={v}" for k, v in rating_system.parameters().items())
            _print(f"  {name}: {params}")

    _run(ctx, action)


@app.command()
def reset(
    ctx: typer.Context,
    yes: Annotated[bool, typer.Option("--yes", help="Confirm wiping all players")] = False,
) -> None:
    """Delete every player and the match log. Seasons are kept."""
    if not yes:
        console.print("[yellow]This deletes all players and matches. Re-run with --yes.[/yellow]")
        raise typer.Exit(1)
    deleted = _run(ctx, lambda service: service.reset_players())
    console.print(f"[green]Removed {deleted} players.[/green]")


@app.command("import-sets")
def import_sets(
    ctx: typer.Context,
    payload_path: Annotated[Path, typer.Argument(help="Tournament sets JSON file")],
    major: Annotated[bool, typer.Option("--major", help="Major tournament (Elo K x1.5)")] = False,
    add_to_season: Annotated[
        bool,
        typer.Option("--season/--no-season", help="Register the tournament on the open season"),
    ] = True,
) -> None:
    """Import completed sets from a tournament export."""

    async def action(service: MatchService) -> None:
        payload = load_payload(payload_path)
        summary = await import_tournament(
            service,
            payload,
            importance="major" if major else None,
            add_to_season=add_to_season,
        )
        _print(f"Imported {payload.name} ({summary.events} events)")
        _print(f"  Imported: {summary.imported}")
        _print(f"  Duplicates: {summary.duplicates}")
        _print(f"  Skipped: {summary.skipped}")

    _run(ctx, action)


# ==================== Seasons ====================


@season_app.command("show")
def season_show(
    ctx: typer.Context,
    season_id: Annotated[str, typer.Argument(help="Season id")] = CURRENT_SEASON_ID,
) -> None:
    """Show a season's tournaments and totals."""

    async def action(service: MatchService) -> str:
        season = service.seasons.get_season(season_id)
        lines = [
            f"{season.name} ({season.season_id})",
            season.description or "",
            f"Started: {season.start_date}",
            f"Ended: {season.end_date or 'active'}",
            f"Players: {len(season.player_records)}",
            f"Matches: {season.match_count}",
            f"Tournaments: {len(season.events)}",
        ]
        lines.extend(f"  - {event.name} ({event.slug})" for event in season.events)
        return "\n".join(lines)

    _print(_run(ctx, action))


@season_app.command("create")
def season_create(
    ctx: typer.Context,
    name: Annotated[str | None, typer.Argument(help="Season name")] = None,
    description: Annotated[
        str | None, typer.Option("--description", "-d", help="Season description")
    ] = None,
) -> None:
    """Start a new season."""

    async def action(service: MatchService) -> None:
        season = await service.open_season(name or service.config.default_season_name, description)
        _print(f"Started {season.name} on {season.start_date}.")

    _run(ctx, action)


@season_app.command("end")
def season_end(ctx: typer.Context) -> None:
    """End the active season and archive its final rankings."""

    async def action(service: MatchService) -> None:
        season = await service.close_season()
        _print(f"Ended {season.name} on {season.end_date}.")
        _print(format_season_rankings(season, season.rankings))

    _run(ctx, action)


@season_app.command("list")
def season_list(ctx: typer.Context) -> None:
    """List the active and archived seasons."""
    _print(_run(ctx, _list_seasons))


async def _list_seasons(service: MatchService) -> str:
    return format_seasons(service.seasons.list_seasons())


@season_app.command("remove")
def season_remove(
    ctx: typer.Context,
    slug: Annotated[str, typer.Argument(help="Tournament slug")],
) -> None:
    """Remove a tournament from the active season."""

    async def action(service: MatchService) -> None:
        removed = await service.remove_tournament(slug)
        _print(f'Removed "{removed.name}" from the current season.')

    _run(ctx, action)


# ==================== Configuration ====================


@app.command()
def validate(
    config_path: Annotated[Path, typer.Argument(help="Path to config YAML file")],
) -> None:
    """Validate a configuration file.

    Args:
        config_path: Path to YAML configuration file.
    """
    try:
        config = load_config(config_path)
        console.print("[green]Configuration is valid![/green]")
        console.print(f"  Data dir: {config.data_dir}")
        console.print(f"  Database: {config.database_url}")
        console.print(f"  Auto-create players: {config.auto_create_players}")
        console.print(f"  Rating system: {config.ranking.active_system}")
        console.print(
            f"  Elo: default {config.ranking.elo.default_rating}, K {config.ranking.elo.k_factor}"
        )
        console.print(
            f"  Skill: mu {config.ranking.skill.default_mu}, "
            f"sigma {config.ranking.skill.default_sigma}"
        )

    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    except pydantic.ValidationError as e:
        console.print(f"[red]Validation error:[/red] {e}")
        raise typer.Exit(1) from e


@app.command()
def info() -> None:
    """Show tool information and example commands."""
    console.print("[bold]Power Rankings[/bold]")
    console.print(f"Version: {__version__}\n")

    console.print("[bold]Example Commands:[/bold]")
    console.print("  # Report a set")
    console.print('  power-rankings report Alice Bob --score 3-1 --tournament "Weekly 12"\n')

    console.print("  # Global and season rankings")
    console.print("  power-rankings rankings --limit 20")
    console.print("  power-rankings pr\n")

    console.print("  # Switch to the skill system")
    console.print("  power-rankings system skill\n")

    console.print("  # Seasons")
    console.print('  power-rankings season create "Spring 2025"')
    console.print("  power-rankings season end\n")

    console.print("  # Import a tournament export")
    console.print("  power-rankings import-sets weekly-12.json --major\n")

    console.print("  # Validate config")
    console.print("  power-rankings --config config.yaml validate config.yaml")


if __name__ == "__main__":
    app()
