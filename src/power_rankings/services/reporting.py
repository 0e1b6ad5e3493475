"""Match reporting service: applies results to ratings, the match log, and seasons."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

import structlog

from power_rankings.core.config import AppConfig
from power_rankings.core.errors import AccountLinkError, PlayerNotFoundError
from power_rankings.models import (
    HeadToHeadRecord,
    Match,
    MatchResult,
    Player,
    Season,
    SeasonRanking,
    TournamentRef,
    tag_key,
)
from power_rankings.ranking import MatchContext, RankedPlayer, RatingManager, RatingSystem
from power_rankings.seasons import CURRENT_SEASON_ID, RecordOutcome, SeasonAggregator
from power_rankings.services.storage import (
    MatchRepository,
    PlayerRepository,
    SeasonStore,
    SettingsStore,
    create_db_engine,
)

logger = structlog.get_logger()


class ReportStatus(StrEnum):
    RECORDED = "recorded"
    DUPLICATE = "duplicate"


@dataclass(frozen=True)
class ReportOutcome:
    """Result of reporting one match.

    Attributes:
        status: RECORDED, or DUPLICATE if nothing was changed.
        match: The match as applied, with roster tags.
        winner: Winner after the update (None for duplicates).
        loser: Loser after the update (None for duplicates).
        winner_change: Change in the winner's active rating value.
        loser_change: Change in the loser's active rating value.
        in_season: Whether the match was added to the open season.
    """

    status: ReportStatus
    match: MatchResult
    winner: Player | None = None
    loser: Player | None = None
    winner_change: float = 0.0
    loser_change: float = 0.0
    in_season: bool = False

    @property
    def duplicate(self) -> bool:
        return self.status is ReportStatus.DUPLICATE


class MatchService:
    """Single writer for the roster, the match log, and the open season.

    Every match is applied in full or not at all: duplicates and missing
    players are detected before anything changes, the updated season is
    saved from a staged copy before both players plus the log row are
    committed in one transaction, and the in-memory season is replaced only
    after both writes succeed. An ``asyncio.Lock`` serializes reports so two
    updates to the same player cannot interleave.
    """

    def __init__(
        self,
        config: AppConfig,
        players: PlayerRepository,
        matches: MatchRepository,
        ratings: RatingManager,
        seasons: SeasonAggregator,
        season_store: SeasonStore,
    ) -> None:
        self.config = config
        self.players = players
        self.matches = matches
        self.ratings = ratings
        self.seasons = seasons
        self.season_store = season_store
        self._lock = asyncio.Lock()

    @classmethod
    async def open(cls, config: AppConfig) -> MatchService:
        """Build a service over the data directory named in the config."""
        engine = create_db_engine(config.database_url)
        season_store = SeasonStore(config.seasons_path)
        ratings = RatingManager(config.ranking, SettingsStore(config.settings_path))
        seasons = await season_store.load()
        logger.info(
            "service_ready",
            data_dir=config.data_dir,
            system=ratings.active_key,
            season=seasons.current.name if seasons.current else None,
        )
        return cls(
            config=config,
            players=PlayerRepository(engine),
            matches=MatchRepository(engine),
            ratings=ratings,
            seasons=seasons,
            season_store=season_store,
        )

    # ==================== Reporting ====================

    async def _resolve_player(self, tag: str) -> Player:
        player = await self.players.get_by_tag(tag)
        if player is not None:
            return player
        if not self.config.auto_create_players:
            raise PlayerNotFoundError(tag)
        logger.info("player_created", tag=tag, system=self.ratings.active_key)
        return Player.create(tag, **self.ratings.default_rating())

    async def report_match(
        self, match: MatchResult, context: MatchContext | None = None
    ) -> ReportOutcome:
        """Apply one match to both players, the match log, and the open season.

        Args:
            match: The reported result.
            context: Optional details; defaults to the match's own score,
                tournament, and timestamp.

        Returns:
            ReportOutcome; duplicates are reported, not raised.

        Raises:
            PlayerNotFoundError: If a player is unknown and auto-creation is off.
        """
        async with self._lock:
            if match.match_id is not None and await self.matches.exists(match.match_id):
                return self._duplicate(match)

            winner = await self._resolve_player(match.winner_tag)
            loser = await self._resolve_player(match.loser_tag)
            match = match.model_copy(update={"winner_tag": winner.tag, "loser_tag": loser.tag})

            season = self.seasons.current
            if season is not None and self.seasons.is_duplicate(match):
                return self._duplicate(match)

            context = context or MatchContext(
                score=match.score,
                tournament_name=match.tournament_name,
                timestamp=match.timestamp,
            )
            system = self.ratings.active_system
            winner_before = system.rating_value(winner)
            loser_before = system.rating_value(loser)

            update = self.ratings.calculate_match_result(winner, loser, context)
            winner.apply_rating_patch(update.winner)
            loser.apply_rating_patch(update.loser)
            winner.record_result(won=True, played_at=match.timestamp)
            loser.record_result(won=False, played_at=match.timestamp)

            winner_change = system.rating_value(winner) - winner_before
            loser_change = system.rating_value(loser) - loser_before
            row = Match.from_result(
                match,
                winner_rating_change=winner_change,
                loser_rating_change=loser_change,
                rating_system=system.key,
            )

            # The season file is written before the commit and restored if the
            # commit fails; ``current`` only changes once both have succeeded.
            staged = None
            in_season = False
            if season is not None:
                staged = season.model_copy(deep=True)
                in_season = self.seasons.record_match(match, staged) is RecordOutcome.RECORDED
                await self.season_store.save_current(staged)
            try:
                await self.matches.save_result(row, [winner, loser])
            except Exception:
                if season is not None:
                    logger.warning("season_file_restored", season=season.name)
                    await self.season_store.save_current(season)
                raise
            if staged is not None:
                self.seasons.current = staged

            logger.info(
                "match_recorded",
                winner=winner.tag,
                loser=loser.tag,
                score=match.score,
                tournament=match.tournament_name,
                system=system.key,
                winner_change=round(winner_change, 2),
                loser_change=round(loser_change, 2),
                in_season=in_season,
            )
            return ReportOutcome(
                status=ReportStatus.RECORDED,
                match=match,
                winner=winner,
                loser=loser,
                winner_change=winner_change,
                loser_change=loser_change,
                in_season=in_season,
            )

    def _duplicate(self, match: MatchResult) -> ReportOutcome:
        logger.info(
            "match_duplicate",
            winner=match.winner_tag,
            loser=match.loser_tag,
            score=match.score,
            tournament=match.tournament_name,
            match_id=match.match_id,
        )
        return ReportOutcome(status=ReportStatus.DUPLICATE, match=match)

    # ==================== Rankings ====================

    async def rankings(self, limit: int | None = None) -> list[RankedPlayer[Player]]:
        """Global rankings by the active rating system."""
        ranked = self.ratings.get_rankings(await self.players.list_players())
        return ranked[:limit] if limit is not None else ranked

    async def roster(self) -> list[Player]:
        return await self.players.list_players()

    async def recent_matches(self, tag: str | None = None, limit: int = 10) -> list[Match]:
        return await self.matches.list_matches(tag=tag, limit=limit)

    async def global_ratings(self, tags: Iterable[str]) -> dict[str, float]:
        """Active rating value per tag, for tags that are on the roster."""
        roster = {p.tag_key: p for p in await self.players.list_players()}
        ratings = {}
        for tag in tags:
            player = roster.get(tag_key(tag))
            if player is not None:
                ratings[tag] = self.ratings.rating_value(player)
        return ratings

    async def season_rankings(self, season_id: str = CURRENT_SEASON_ID) -> list[SeasonRanking]:
        """Season power rankings, with strength of schedule from current ratings."""
        season = self.seasons.get_season(season_id)
        ratings = await self.global_ratings(season.player_records)
        return self.seasons.compute_season_rankings(season_id, ratings)

    async def head_to_head(
        self, tag_a: str, tag_b: str, season_id: str = CURRENT_SEASON_ID
    ) -> HeadToHeadRecord:
        """Head-to-head record between two players, using roster tags when known."""
        player_a = await self.players.get_by_tag(tag_a)
        player_b = await self.players.get_by_tag(tag_b)
        return self.seasons.head_to_head(
            player_a.tag if player_a else tag_a,
            player_b.tag if player_b else tag_b,
            season_id,
        )

    # ==================== Accounts ====================

    async def player_for_account(self, discord_id: str) -> Player:
        """Roster entry linked to a chat account.

        Raises:
            AccountLinkError: If no player is linked to the account.
        """
        player = await self.players.get_by_discord_id(discord_id)
        if player is None:
            raise AccountLinkError(
                f"No player is linked to account {discord_id}",
                "Link one with `power-rankings register <tag> <account>`.",
            )
        return player

    async def link_account(self, tag: str, discord_id: str) -> Player:
        """Link a chat account to a roster tag, creating the player if needed.

        A player that was imported without an account keeps its ratings and
        record when it is claimed.

        Raises:
            AccountLinkError: If the tag belongs to another account, or the
                account is already linked to a different tag.
        """
        async with self._lock:
            player = await self.players.get_by_tag(tag)
            if player is not None and player.discord_id not in (None, discord_id):
                raise AccountLinkError(
                    f"Tag '{player.tag}' is registered to another account",
                    "Choose a different tag.",
                )
            linked = await self.players.get_by_discord_id(discord_id)
            if linked is not None and (player is None or linked.id != player.id):
                raise AccountLinkError(
                    f"Account {discord_id} is already linked to '{linked.tag}'",
                )
            if player is None:
                player = Player.create(tag, **self.ratings.default_rating())
            player.discord_id = discord_id
            saved = await self.players.save(player)
            logger.info("account_linked", tag=saved.tag, discord_id=discord_id)
            return saved

    # ==================== Administration ====================

    async def switch_system(self, key: str) -> RatingSystem:
        async with self._lock:
            return self.ratings.set_active_system(key)

    async def tune_system(self, key: str, **params: Any) -> RatingSystem:
        async with self._lock:
            return self.ratings.tune(key, **params)

    async def open_season(self, name: str, description: str | None = None) -> Season:
        async with self._lock:
            season = self.seasons.open_season(name, description)
            await self.season_store.save(self.seasons)
            return season

    async def close_season(self) -> Season:
        """Close the open season with a snapshot of its final rankings."""
        async with self._lock:
            season = self.seasons.require_current()
            ratings = await self.global_ratings(season.player_records)
            closed = self.seasons.close_season(ratings)
            await self.season_store.save(self.seasons)
            return closed

    async def add_tournament(self, ref: TournamentRef) -> bool:
        async with self._lock:
            added = self.seasons.add_tournament(ref)
            await self.season_store.save_current(self.seasons.require_current())
            return added

    async def remove_tournament(self, slug: str) -> TournamentRef:
        async with self._lock:
            removed = self.seasons.remove_tournament(slug)
            await self.season_store.save_current(self.seasons.require_current())
            return removed

    async def record_tournament_win(self, tag: str) -> int:
        """Credit a tournament win in the open season.

        Returns:
            The player's tournament wins this season.
        """
        async with self._lock:
            season = self.seasons.require_current()
            player = await self.players.get_by_tag(tag)
            staged = season.model_copy(deep=True)
            stat = self.seasons.record_tournament_win(player.tag if player else tag, staged)
            await self.season_store.save_current(staged)
            self.seasons.current = staged
            return stat.tournament_wins

    async def reset_players(self) -> int:
        """Wipe the roster and the match log. Seasons are left untouched."""
        async with self._lock:
            return await self.players.reset()

    async def close(self) -> None:
        self.players.engine.dispose()
