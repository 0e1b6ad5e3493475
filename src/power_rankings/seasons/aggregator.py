"""Season standings: per-season records, head-to-head logs, and power rankings."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, date, datetime
from enum import StrEnum

import structlog

from power_rankings.core.errors import (
    NoActiveSeasonError,
    SeasonAlreadyActiveError,
    SeasonError,
    SeasonNotFoundError,
    TournamentNotInSeasonError,
)
from power_rankings.core.slug import tournament_slug
from power_rankings.models import (
    HeadToHeadMatch,
    HeadToHeadRecord,
    MatchResult,
    OpponentRecord,
    PlayerSeasonStat,
    Season,
    SeasonRanking,
    SeasonSummary,
    TournamentRef,
    head_to_head_key,
)

logger = structlog.get_logger()

CURRENT_SEASON_ID = "current"


class RecordOutcome(StrEnum):
    RECORDED = "recorded"
    DUPLICATE = "duplicate"


def _same_match(entry: HeadToHeadMatch, match: MatchResult) -> bool:
    """Whether a logged match and a reported one are the same match.

    Explicit match ids decide when both sides carry one. Otherwise the
    winner, loser, score, and tournament must all be equal.
    """
    if entry.match_id is not None and match.match_id is not None:
        return entry.match_id == match.match_id
    return (
        entry.winner == match.winner_tag
        and entry.loser == match.loser_tag
        and entry.score == match.score
        and entry.tournament == match.tournament_name
    )


def strength_of_schedule(stat: PlayerSeasonStat, ratings: Mapping[str, float]) -> float:
    """Matches-weighted average rating of the opponents a player faced.

    Opponents without a rating are left out. Ratings are read as they are now,
    not as they were when each match was played.
    """
    total_rating = 0.0
    total_matches = 0
    for opponent_tag, record in stat.opponents.items():
        rating = ratings.get(opponent_tag)
        if rating is None:
            continue
        total_rating += rating * record.matches
        total_matches += record.matches
    return total_rating / total_matches if total_matches else 0.0


def compute_season_rankings(
    season: Season, global_ratings: Mapping[str, float] | None = None
) -> list[SeasonRanking]:
    """Rank a season's players by win percentage, then strength of schedule.

    Closed seasons return their snapshot. Players with equal win percentage
    and strength of schedule keep the order they first appeared in.

    Args:
        season: Season to rank.
        global_ratings: Current rating value per player tag.

    Returns:
        Season rankings with 1-based ranks.
    """
    if not season.is_open and season.rankings:
        return list(season.rankings)

    ratings = global_ratings or {}
    rows = []
    for stat in season.player_records.values():
        if stat.matches_played < 1:
            continue
        rows.append(
            (
                stat,
                stat.wins / stat.matches_played * 100,
                strength_of_schedule(stat, ratings),
            )
        )
    rows.sort(key=lambda row: (row[1], row[2]), reverse=True)

    return [
        SeasonRanking(
            tag=stat.tag,
            rank=index,
            matches_played=stat.matches_played,
            wins=stat.wins,
            losses=stat.losses,
            win_percentage=win_percentage,
            strength_of_schedule=sos,
            tournament_wins=stat.tournament_wins,
            rating=ratings.get(stat.tag),
        )
        for index, (stat, win_percentage, sos) in enumerate(rows, start=1)
    ]


class SeasonAggregator:
    """Tracks the open season and the archive of closed ones.

    At most one season is open. A closed season is never reopened.
    """

    def __init__(
        self,
        current: Season | None = None,
        archive: Mapping[str, Season] | None = None,
    ) -> None:
        if current is not None and not current.is_open:
            msg = f"Season '{current.name}' is closed and cannot be current"
            raise ValueError(msg)
        self.current = current
        self.archive: dict[str, Season] = dict(archive or {})

    def require_current(self) -> Season:
        if self.current is None:
            raise NoActiveSeasonError
        return self.current

    # ==================== Lifecycle ====================

    def open_season(
        self,
        name: str,
        description: str | None = None,
        start_date: date | None = None,
    ) -> Season:
        """Start a new, empty season.

        Raises:
            SeasonAlreadyActiveError: If a season is already open.
            SeasonError: If the name's id is empty, reserved, or archived.
        """
        if self.current is not None:
            raise SeasonAlreadyActiveError(self.current.name)
        season = Season(
            name=name,
            description=description or f"{name} power rankings season",
            start_date=start_date or datetime.now(UTC).date(),
        )
        if season.season_id in ("", CURRENT_SEASON_ID) or season.season_id in self.archive:
            raise SeasonError(
                f"Season name '{name}' cannot be used",
                "Pick a name that differs from every archived season.",
            )
        self.current = season
        logger.info("season_opened", name=name, season_id=season.season_id)
        return season

    def close_season(
        self,
        global_ratings: Mapping[str, float] | None = None,
        end_date: date | None = None,
    ) -> Season:
        """Snapshot final rankings, set the end date, and archive the season.

        Raises:
            NoActiveSeasonError: If no season is open.
        """
        season = self.require_current()
        season.rankings = compute_season_rankings(season, global_ratings)
        season.end_date = end_date or datetime.now(UTC).date()
        self.archive[season.season_id] = season
        self.current = None
        logger.info(
            "season_closed",
            name=season.name,
            players=len(season.rankings),
            matches=season.match_count,
        )
        return season

    # ==================== Matches ====================

    def is_duplicate(self, match: MatchResult, season: Season | None = None) -> bool:
        """Whether the season (the open one by default) already holds this match."""
        if season is None:
            season = self.require_current()
        record = season.head_to_head.get(head_to_head_key(match.winner_tag, match.loser_tag))
        if record is None:
            return False
        return any(_same_match(entry, match) for entry in record.matches)

    def record_match(self, match: MatchResult, season: Season | None = None) -> RecordOutcome:
        """Fold a match into a season's records.

        Args:
            match: Match with roster tags.
            season: Season to update; defaults to the open season. Callers
                pass a staged copy to apply the match without touching
                ``current``.

        Returns:
            DUPLICATE without changing anything if the match is already
            recorded, RECORDED otherwise.

        Raises:
            NoActiveSeasonError: If no season is given and none is open.
        """
        if season is None:
            season = self.require_current()
        if self.is_duplicate(match, season):
            logger.info(
                "season_match_duplicate",
                winner=match.winner_tag,
                loser=match.loser_tag,
                score=match.score,
                tournament=match.tournament_name,
            )
            return RecordOutcome.DUPLICATE

        winner = season.player_records.setdefault(
            match.winner_tag, PlayerSeasonStat(tag=match.winner_tag)
        )
        loser = season.player_records.setdefault(
            match.loser_tag, PlayerSeasonStat(tag=match.loser_tag)
        )
        winner.matches_played += 1
        winner.wins += 1
        loser.matches_played += 1
        loser.losses += 1
        winner.opponents.setdefault(match.loser_tag, OpponentRecord()).wins += 1
        loser.opponents.setdefault(match.winner_tag, OpponentRecord()).losses += 1

        key = head_to_head_key(match.winner_tag, match.loser_tag)
        record = season.head_to_head.setdefault(
            key, HeadToHeadRecord(players=sorted((match.winner_tag, match.loser_tag)))
        )
        record.matches.append(
            HeadToHeadMatch(
                winner=match.winner_tag,
                loser=match.loser_tag,
                score=match.score,
                tournament=match.tournament_name,
                played_at=match.timestamp,
                match_id=match.match_id,
            )
        )
        logger.debug("season_match_recorded", season=season.name, key=key)
        return RecordOutcome.RECORDED

    def record_tournament_win(self, tag: str, season: Season | None = None) -> PlayerSeasonStat:
        """Credit a tournament win to a player; defaults to the open season."""
        if season is None:
            season = self.require_current()
        stat = season.player_records.setdefault(tag, PlayerSeasonStat(tag=tag))
        stat.tournament_wins += 1
        logger.info(
            "season_tournament_win", season=season.name, tag=tag, total=stat.tournament_wins
        )
        return stat

    def head_to_head(
        self, tag_a: str, tag_b: str, season_id: str = CURRENT_SEASON_ID
    ) -> HeadToHeadRecord:
        """Get the record between two players; empty if they never met."""
        season = self.get_season(season_id)
        key = head_to_head_key(tag_a, tag_b)
        return season.head_to_head.get(key) or HeadToHeadRecord(players=sorted((tag_a, tag_b)))

    # ==================== Tournaments ====================

    def add_tournament(self, ref: TournamentRef) -> bool:
        """Add a tournament to the open season, or refresh it if present.

        Returns:
            True if the tournament was added, False if it was updated.
        """
        season = self.require_current()
        now = datetime.now(UTC)
        for index, event in enumerate(season.events):
            if (ref.id is not None and event.id == ref.id) or event.slug == ref.slug:
                season.events[index] = ref.model_copy(
                    update={"added_at": event.added_at, "updated_at": now}
                )
                logger.info("season_tournament_updated", slug=ref.slug)
                return False
        season.events.append(ref.model_copy(update={"added_at": now}))
        logger.info("season_tournament_added", slug=ref.slug, name=ref.name)
        return True

    def remove_tournament(self, slug: str) -> TournamentRef:
        """Remove a tournament from the open season.

        An exact slug match wins. Otherwise the first event whose slug
        contains ``slug`` is removed.

        Args:
            slug: ``tournament/<slug>`` or the bare slug.

        Raises:
            TournamentNotInSeasonError: If no event matches.
        """
        season = self.require_current()
        formatted = tournament_slug(slug)
        index = next((i for i, e in enumerate(season.events) if e.slug == formatted), None)
        if index is None:
            index = next((i for i, e in enumerate(season.events) if slug in e.slug), None)
        if index is None:
            raise TournamentNotInSeasonError(slug)
        removed = season.events.pop(index)
        logger.info("season_tournament_removed", slug=removed.slug)
        return removed

    # ==================== Queries ====================

    def get_season(self, season_id: str = CURRENT_SEASON_ID) -> Season:
        """Get the current season or an archived one by id.

        Raises:
            NoActiveSeasonError: If "current" is requested and none is open.
            SeasonNotFoundError: If no archived season has this id.
        """
        if season_id == CURRENT_SEASON_ID:
            return self.require_current()
        if self.current is not None and self.current.season_id == season_id:
            return self.current
        try:
            return self.archive[season_id]
        except KeyError:
            raise SeasonNotFoundError(season_id) from None

    def compute_season_rankings(
        self,
        season_id: str = CURRENT_SEASON_ID,
        global_ratings: Mapping[str, float] | None = None,
    ) -> list[SeasonRanking]:
        return compute_season_rankings(self.get_season(season_id), global_ratings)

    def list_seasons(self) -> list[SeasonSummary]:
        summaries = []
        if self.current is not None:
            summaries.append(
                SeasonSummary(
                    id=CURRENT_SEASON_ID,
                    name=self.current.name,
                    start_date=self.current.start_date,
                    is_current=True,
                )
            )
        for season_id, season in sorted(
            self.archive.items(), key=lambda item: item[1].start_date, reverse=True
        ):
            summaries.append(
                SeasonSummary(
                    id=season_id,
                    name=season.name,
                    start_date=season.start_date,
                    end_date=season.end_date,
                )
            )
        return summaries
