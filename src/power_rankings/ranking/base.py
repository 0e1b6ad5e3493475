"""Base protocol for rating systems in Power Rankings."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal, Protocol, TypeVar, runtime_checkable

Importance = Literal["major", "minor"]


class RatedPlayer(Protocol):
    """Rating state a rating system reads from a player."""

    matches_played: int
    elo_score: float | None
    skill_mean: float | None
    skill_uncertainty: float | None


P = TypeVar("P", bound=RatedPlayer)


@dataclass(frozen=True)
class MatchContext:
    """Optional details about a match that may scale the update.

    Attributes:
        score: Free-text set score, e.g. "3-2".
        tournament_name: Tournament the match was played at.
        importance: "major" tournaments scale Elo K-factors by 1.5.
        timestamp: When the match was played.
    """

    score: str | None = None
    tournament_name: str | None = None
    importance: Importance | None = None
    timestamp: datetime | None = None

    @property
    def is_major(self) -> bool:
        return self.importance == "major"


@dataclass(frozen=True)
class RatingUpdate:
    """Rating patches for both players of one match.

    Each patch maps player rating fields to their new values and is merged
    into the stored player by the caller.
    """

    winner: dict[str, float] = field(default_factory=dict)
    loser: dict[str, float] = field(default_factory=dict)


@runtime_checkable
class RatingSystem(Protocol):
    """Protocol for rating algorithms.

    Implementations are pure: they read player rating state and return
    patches, and never modify players or match counters.
    """

    key: str
    name: str

    def compute_update(
        self,
        winner: RatedPlayer,
        loser: RatedPlayer,
        context: MatchContext | None = None,
    ) -> RatingUpdate:
        """Compute new ratings after ``winner`` beat ``loser``.

        Args:
            winner: The winning player, with pre-match state.
            loser: The losing player, with pre-match state.
            context: Optional match details.

        Returns:
            Patches for both players.
        """
        ...

    def rating_value(self, player: RatedPlayer) -> float:
        """Get a single comparable rating for sorting.

        Players without rating state get the default rating's value.
        """
        ...

    def default_rating(self) -> dict[str, float]:
        """Get the rating fields for a brand-new player."""
        ...

    def sort_by_rating(self, players: Iterable[P]) -> list[P]:
        """Sort players by rating descending, keeping input order on ties."""
        ...

    def display_rating(self, player: RatedPlayer) -> str:
        """Get a display string for the player's rating."""
        ...

    def parameters(self) -> dict[str, Any]:
        """Get the tunable parameters of this system."""
        ...


def stable_sort_by_rating(system: RatingSystem, players: Iterable[P]) -> list[P]:
    """Sort descending by ``system.rating_value``.

    ``sorted`` with ``reverse=True`` keeps equal elements in input order.
    """
    return sorted(players, key=system.rating_value, reverse=True)
