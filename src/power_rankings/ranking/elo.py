"""Elo rating calculations for Power Rankings."""

from __future__ import annotations

import math
from collections.abc import Iterable
from typing import Any

from power_rankings.core.config import EloSettings
from power_rankings.ranking.base import (
    P,
    MatchContext,
    RatedPlayer,
    RatingUpdate,
    stable_sort_by_rating,
)

# (minimum matches played, K-factor), checked from most experienced down
EXPERIENCE_K_FACTORS: tuple[tuple[int, float], ...] = ((101, 16.0), (31, 24.0))
MAJOR_MULTIPLIER = 1.5


def calculate_expected_win_chance(rating_a: float, rating_b: float) -> float:
    """Calculate expected win probability for player A against player B.

    Uses the standard Elo formula:
    E_A = 1 / (1 + 10^((R_B - R_A) / 400))

    Args:
        rating_a: Rating of player A.
        rating_b: Rating of player B.

    Returns:
        Probability that A wins (0.0 to 1.0).
    """
    return 1.0 / (1.0 + 10 ** ((rating_b - rating_a) / 400))


def k_factor_for(matches_played: int, base_k: float = 32.0, major: bool = False) -> float:
    """Get the K-factor for a player based on experience and match importance.

    Players with 30 or fewer matches use ``base_k``; 31 to 100 matches use 24;
    more than 100 use 16. Major tournaments multiply the result by 1.5.

    Args:
        matches_played: Matches the player had played before this one.
        base_k: K-factor for newcomers.
        major: Whether the match was played at a major tournament.

    Returns:
        K-factor to apply to this player's update.
    """
    k_factor = base_k
    for threshold, tier_k in EXPERIENCE_K_FACTORS:
        if matches_played >= threshold:
            k_factor = tier_k
            break
    if major:
        k_factor *= MAJOR_MULTIPLIER
    return k_factor


def round_rating(value: float) -> int:
    """Round to the nearest integer, halves away from negative infinity."""
    return math.floor(value + 0.5)


class EloRatingSystem:
    """Elo rating system implementing the RatingSystem protocol.

    Each side's K-factor comes from its own experience, so a veteran losing
    to a newcomer drops fewer points than the newcomer gains.

    Attributes:
        default_rating: Starting Elo rating for new players.
        k_factor: Base K-factor for newcomers.
    """

    key = "elo"
    name = "Elo Rating System"

    def __init__(self, default_rating: float = 1000.0, k_factor: float = 32.0) -> None:
        """Initialize Elo system.

        Args:
            default_rating: Starting rating for players.
            k_factor: Base K-factor for rating adjustments.
        """
        self.default = default_rating
        self.k_factor = k_factor

    @classmethod
    def from_settings(cls, settings: EloSettings) -> EloRatingSystem:
        return cls(default_rating=settings.default_rating, k_factor=settings.k_factor)

    def _current(self, player: RatedPlayer) -> float:
        return self.default if player.elo_score is None else player.elo_score

    def compute_update(
        self,
        winner: RatedPlayer,
        loser: RatedPlayer,
        context: MatchContext | None = None,
    ) -> RatingUpdate:
        """Compute new Elo scores after a match.

        Args:
            winner: The winning player.
            loser: The losing player.
            context: Optional match details; major tournaments raise K.

        Returns:
            RatingUpdate with ``elo_score`` patches for both players.
        """
        major = context.is_major if context else False
        winner_rating = self._current(winner)
        loser_rating = self._current(loser)

        expected_winner = calculate_expected_win_chance(winner_rating, loser_rating)
        expected_loser = calculate_expected_win_chance(loser_rating, winner_rating)

        winner_k = k_factor_for(winner.matches_played, self.k_factor, major)
        loser_k = k_factor_for(loser.matches_played, self.k_factor, major)

        new_winner = round_rating(winner_rating + winner_k * (1.0 - expected_winner))
        new_loser = round_rating(loser_rating + loser_k * (0.0 - expected_loser))

        return RatingUpdate(
            winner={"elo_score": float(new_winner)},
            loser={"elo_score": float(new_loser)},
        )

    def rating_value(self, player: RatedPlayer) -> float:
        return self._current(player)

    def default_rating(self) -> dict[str, float]:
        return {"elo_score": self.default}

    def sort_by_rating(self, players: Iterable[P]) -> list[P]:
        return stable_sort_by_rating(self, players)

    def display_rating(self, player: RatedPlayer) -> str:
        return str(round_rating(self._current(player)))

    def parameters(self) -> dict[str, Any]:
        return {"default_rating": self.default, "k_factor": self.k_factor}
