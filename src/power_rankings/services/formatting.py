"""Plain-text tables for CLI output."""

from __future__ import annotations

from tabulate import tabulate

from power_rankings.models import HeadToHeadRecord, Player, Season, SeasonRanking, SeasonSummary
from power_rankings.ranking import RankedPlayer


def format_rankings(ranked: list[RankedPlayer[Player]], system_name: str) -> str:
    """Global rankings table, best first."""
    if not ranked:
        return "No ranked players yet. Report a match first."
    rows = [
        (r.rank, r.player.tag, r.display_rating, r.player.wins, r.player.losses)
        for r in ranked
    ]
    lines = [f"# Rankings ({system_name})", ""]
    lines.append(tabulate(rows, headers=("Rank", "Player", "Rating", "W", "L"), tablefmt="github"))
    return "\n".join(lines)


def format_season_rankings(season: Season, rankings: list[SeasonRanking]) -> str:
    """Season power rankings with win percentage and strength of schedule."""
    status = "active" if season.is_open else f"ended {season.end_date}"
    lines = [f"# {season.name} Power Rankings", "", f"Started {season.start_date}, {status}.", ""]
    if not rankings:
        lines.append("No matches recorded this season.")
        return "\n".join(lines)
    rows = [
        (
            r.rank,
            r.tag,
            f"{r.wins}-{r.losses}",
            f"{r.win_percentage:.1f}%",
            f"{r.strength_of_schedule:.1f}",
            r.tournament_wins,
        )
        for r in rankings
    ]
    lines.append(
        tabulate(
            rows,
            headers=("Rank", "Player", "Record", "Win %", "SoS", "Titles"),
            tablefmt="github",
        )
    )
    return "\n".join(lines)


def format_head_to_head(record: HeadToHeadRecord, tag_a: str, tag_b: str) -> str:
    if not record.matches:
        return f"No matches between {tag_a} and {tag_b} this season."
    lines = [
        f"# {tag_a} vs {tag_b}",
        "",
        f"{tag_a} {record.wins_for(tag_a)} - {record.wins_for(tag_b)} {tag_b}",
        "",
    ]
    rows = [
        (m.played_at.date(), m.winner, m.loser, m.score or "", m.tournament or "")
        for m in sorted(record.matches, key=lambda m: m.played_at, reverse=True)
    ]
    lines.append(
        tabulate(
            rows, headers=("Date", "Winner", "Loser", "Score", "Tournament"), tablefmt="github"
        )
    )
    return "\n".join(lines)


def format_seasons(summaries: list[SeasonSummary]) -> str:
    if not summaries:
        return "No seasons yet."
    rows = [
        (s.id, s.name, s.start_date, s.end_date or "", "yes" if s.is_current else "")
        for s in summaries
    ]
    return tabulate(rows, headers=("ID", "Name", "Start", "End", "Current"), tablefmt="github")


def format_players(players: list[Player], ratings: dict[str, str]) -> str:
    """Roster table; ``ratings`` maps tag to display rating."""
    if not players:
        return "No players on the roster."
    rows = [
        (p.tag, ratings.get(p.tag, ""), p.matches_played, p.wins, p.losses)
        for p in players
    ]
    return tabulate(rows, headers=("Player", "Rating", "Played", "W", "L"), tablefmt="github")
