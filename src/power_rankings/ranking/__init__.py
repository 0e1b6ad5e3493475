"""Ranking module for Power Rankings.

Provides pluggable rating systems (Elo, skill) and the manager that routes
match results and ranking queries to the active one.
"""

from __future__ import annotations

from power_rankings.ranking.base import MatchContext, RatedPlayer, RatingSystem, RatingUpdate
from power_rankings.ranking.elo import (
    EloRatingSystem,
    calculate_expected_win_chance,
    k_factor_for,
)
from power_rankings.ranking.manager import RankedPlayer, RatingManager
from power_rankings.ranking.skill import SkillRatingSystem

__all__ = [
    "EloRatingSystem",
    "MatchContext",
    "RankedPlayer",
    "RatedPlayer",
    "RatingManager",
    "RatingSystem",
    "RatingUpdate",
    "SkillRatingSystem",
    "calculate_expected_win_chance",
    "k_factor_for",
]
