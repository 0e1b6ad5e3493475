"""Registry of rating systems and routing to the active one."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic

import pydantic
import structlog

from power_rankings.core.config import EloSettings, RankingSettings, SkillSettings
from power_rankings.core.errors import ConfigurationError, UnknownRatingSystemError
from power_rankings.ranking.base import P, MatchContext, RatedPlayer, RatingSystem, RatingUpdate
from power_rankings.ranking.elo import EloRatingSystem
from power_rankings.ranking.skill import SkillRatingSystem

if TYPE_CHECKING:
    from power_rankings.services.storage.settings_store import SettingsStore

logger = structlog.get_logger()


@dataclass(frozen=True)
class RankedPlayer(Generic[P]):
    """A player with a 1-based rank and a display rating."""

    player: P
    rank: int
    rating: float
    display_rating: str


class RatingManager:
    """Holds the available rating systems and routes calls to the active one.

    Switching systems never recomputes ratings: each system reads and writes
    its own player fields, so the previous system's numbers stay as they were
    until it is switched back on.
    """

    def __init__(
        self,
        settings: RankingSettings | None = None,
        store: SettingsStore | None = None,
    ) -> None:
        """Initialize manager.

        Args:
            settings: Initial settings, used when the store has none saved.
            store: Optional persistence for the active system and tunables.
        """
        self._store = store
        settings = settings or RankingSettings()
        if store is not None:
            settings = store.load(default=settings)
        self._apply(settings)
        logger.info("rating_system_loaded", system=self.active_key)

    def _apply(self, settings: RankingSettings) -> None:
        self.systems: dict[str, RatingSystem] = {
            "elo": EloRatingSystem.from_settings(settings.elo),
            "skill": SkillRatingSystem.from_settings(settings.skill),
        }
        self.active_key = settings.active_system

    @property
    def active_system(self) -> RatingSystem:
        return self.systems[self.active_key]

    @property
    def settings(self) -> RankingSettings:
        """Current settings in their persisted shape."""
        return RankingSettings(
            active_system=self.active_key,
            elo=EloSettings(**self.systems["elo"].parameters()),
            skill=SkillSettings(**self.systems["skill"].parameters()),
        )

    def available_systems(self) -> list[str]:
        return list(self.systems)

    def _save(self) -> None:
        if self._store is not None:
            self._store.save(self.settings)

    def set_active_system(self, key: str) -> RatingSystem:
        """Switch the system used for future updates and rankings.

        Args:
            key: Registry key ("elo" or "skill").

        Returns:
            The newly active system.

        Raises:
            UnknownRatingSystemError: If ``key`` is not registered.
        """
        if key not in self.systems:
            raise UnknownRatingSystemError(key, self.available_systems())
        previous = self.active_key
        self.active_key = key
        self._save()
        logger.info("rating_system_switched", previous=previous, active=key)
        return self.active_system

    def tune(self, key: str, **params: Any) -> RatingSystem:
        """Update tunable parameters of one system and persist them.

        Raises:
            UnknownRatingSystemError: If ``key`` is not registered.
            ConfigurationError: If a parameter is unknown or invalid.
        """
        if key not in self.systems:
            raise UnknownRatingSystemError(key, self.available_systems())
        current = self.settings.model_dump()
        unknown = set(params) - set(current[key])
        if unknown:
            raise ConfigurationError(
                f"Unknown {key} parameters: {', '.join(sorted(unknown))}",
                f"Valid parameters: {', '.join(current[key])}",
            )
        current[key].update(params)
        try:
            settings = RankingSettings.model_validate(current)
        except pydantic.ValidationError as e:
            raise ConfigurationError(f"Invalid {key} parameters", str(e)) from e
        self._apply(settings)
        self._save()
        logger.info("rating_system_tuned", system=key, **params)
        return self.systems[key]

    def calculate_match_result(
        self,
        winner: RatedPlayer,
        loser: RatedPlayer,
        context: MatchContext | None = None,
    ) -> RatingUpdate:
        """Compute rating patches for a match with the active system.

        Match counters are the caller's responsibility.
        """
        return self.active_system.compute_update(winner, loser, context)

    def default_rating(self) -> dict[str, float]:
        return self.active_system.default_rating()

    def rating_value(self, player: RatedPlayer) -> float:
        return self.active_system.rating_value(player)

    def display_rating(self, player: RatedPlayer) -> str:
        return self.active_system.display_rating(player)

    def get_rankings(self, players: Iterable[P]) -> list[RankedPlayer[P]]:
        """Rank players who have played at least one match.

        Args:
            players: Players in their stored order; ties keep this order.

        Returns:
            Ranked players, best first, with 1-based ranks.
        """
        system = self.active_system
        active = [p for p in players if p.matches_played > 0]
        return [
            RankedPlayer(
                player=player,
                rank=index,
                rating=system.rating_value(player),
                display_rating=system.display_rating(player),
            )
            for index, player in enumerate(system.sort_by_rating(active), start=1)
        ]
