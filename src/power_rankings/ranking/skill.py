"""Skill rating system (simplified two-player TrueSkill) for Power Rankings."""

from __future__ import annotations

import math
from collections.abc import Iterable
from typing import Any

from power_rankings.core.config import SkillSettings
from power_rankings.ranking.base import (
    P,
    MatchContext,
    RatedPlayer,
    RatingUpdate,
    stable_sort_by_rating,
)

CDF_FLOOR = 1e-10

# Abramowitz & Stegun 7.1.26, max absolute error 1.5e-7
_ERF_P = 0.3275911
_ERF_A = (0.254829592, -0.284496736, 1.421413741, -1.453152027, 1.061405429)


def erf(x: float) -> float:
    """Approximate the error function (Abramowitz & Stegun 7.1.26)."""
    sign = -1.0 if x < 0 else 1.0
    x = abs(x)
    t = 1.0 / (1.0 + _ERF_P * x)
    a1, a2, a3, a4, a5 = _ERF_A
    poly = ((((a5 * t + a4) * t + a3) * t + a2) * t + a1) * t
    return sign * (1.0 - poly * math.exp(-x * x))


def normal_pdf(x: float) -> float:
    return math.exp(-x * x / 2.0) / math.sqrt(2.0 * math.pi)


def normal_cdf(x: float) -> float:
    return 0.5 * (1.0 + erf(x / math.sqrt(2.0)))


def v_win(t: float) -> float:
    """Mean correction for a win with normalized performance gap ``t``.

    Falls back to ``-t`` when the CDF underflows.
    """
    cdf = normal_cdf(t)
    if cdf < CDF_FLOOR:
        return -t
    return normal_pdf(t) / cdf


def w_win(t: float, v: float) -> float:
    """Variance correction for a win, never negative."""
    return max(v * (v + t), 0.0)


class SkillRatingSystem:
    """TrueSkill-style (mean, uncertainty) rating for one-on-one matches.

    Players are ranked by the conservative estimate ``mu - 3 * sigma`` so an
    uncertain newcomer does not outrank an established player with a slightly
    lower mean.

    Attributes:
        default_mu: Starting mean skill estimate.
        default_sigma: Starting uncertainty.
        beta: Skill class width.
        tau: Dynamics factor re-inflating uncertainty after each match.
    """

    key = "skill"
    name = "Skill Rating System"

    def __init__(
        self,
        default_mu: float = 25.0,
        default_sigma: float = 8.333,
        beta: float = 4.166,
        tau: float = 0.083,
    ) -> None:
        self.default_mu = default_mu
        self.default_sigma = default_sigma
        self.beta = beta
        self.tau = tau

    @classmethod
    def from_settings(cls, settings: SkillSettings) -> SkillRatingSystem:
        return cls(
            default_mu=settings.default_mu,
            default_sigma=settings.default_sigma,
            beta=settings.beta,
            tau=settings.tau,
        )

    def _current(self, player: RatedPlayer) -> tuple[float, float]:
        mu = self.default_mu if player.skill_mean is None else player.skill_mean
        sigma = (
            self.default_sigma if player.skill_uncertainty is None else player.skill_uncertainty
        )
        return mu, sigma

    def compute_update(
        self,
        winner: RatedPlayer,
        loser: RatedPlayer,
        context: MatchContext | None = None,  # noqa: ARG002
    ) -> RatingUpdate:
        """Compute new (mu, sigma) for both players after a match.

        Args:
            winner: The winning player.
            loser: The losing player.
            context: Unused; accepted for protocol compatibility.

        Returns:
            RatingUpdate with ``skill_mean`` and ``skill_uncertainty`` patches.
        """
        winner_mu, winner_sigma = self._current(winner)
        loser_mu, loser_sigma = self._current(loser)

        c_squared = 2 * self.beta**2 + winner_sigma**2 + loser_sigma**2
        c = math.sqrt(c_squared)

        t = (winner_mu - loser_mu) / c
        v = v_win(t)
        w = w_win(t, v)

        new_winner_mu = winner_mu + winner_sigma**2 / c * v
        new_loser_mu = loser_mu - loser_sigma**2 / c * v

        return RatingUpdate(
            winner={
                "skill_mean": new_winner_mu,
                "skill_uncertainty": self._updated_sigma(winner_sigma, c_squared, w),
            },
            loser={
                "skill_mean": new_loser_mu,
                "skill_uncertainty": self._updated_sigma(loser_sigma, c_squared, w),
            },
        )

    def _updated_sigma(self, sigma: float, c_squared: float, w: float) -> float:
        # the erf approximation loses relative accuracy deep in the tails
        factor = max(1.0 - sigma**2 / c_squared * w, 0.0)
        shrunk = sigma * math.sqrt(factor)
        return math.sqrt(shrunk**2 + self.tau**2)

    def match_quality(self, player_a: RatedPlayer, player_b: RatedPlayer) -> float:
        """Probability-like quality of a pairing (1.0 is a perfectly even match).

        Diagnostic only; it plays no part in rating updates or ranking.
        """
        mu_a, sigma_a = self._current(player_a)
        mu_b, sigma_b = self._current(player_b)
        beta_squared = self.beta**2
        denominator = 2 * beta_squared + sigma_a**2 + sigma_b**2
        return math.sqrt(2 * beta_squared / denominator) * math.exp(
            -((mu_a - mu_b) ** 2) / (2 * denominator)
        )

    def rating_value(self, player: RatedPlayer) -> float:
        mu, sigma = self._current(player)
        return mu - 3 * sigma

    def default_rating(self) -> dict[str, float]:
        return {"skill_mean": self.default_mu, "skill_uncertainty": self.default_sigma}

    def sort_by_rating(self, players: Iterable[P]) -> list[P]:
        return stable_sort_by_rating(self, players)

    def display_rating(self, player: RatedPlayer) -> str:
        mu, sigma = self._current(player)
        return f"{mu:.1f}±{sigma:.1f}"

    def parameters(self) -> dict[str, Any]:
        return {
            "default_mu": self.default_mu,
            "default_sigma": self.default_sigma,
            "beta": self.beta,
            "tau": self.tau,
        }
