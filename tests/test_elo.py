"""Tests for Elo rating calculations."""

import pytest

from power_rankings.models import Player
from power_rankings.ranking import MatchContext
from power_rankings.ranking.elo import (
    EloRatingSystem,
    calculate_expected_win_chance,
    k_factor_for,
    round_rating,
)


def _player(tag: str, elo: float | None = None, matches: int = 0) -> Player:
    player = Player.create(tag, elo_score=elo) if elo is not None else Player.create(tag)
    player.matches_played = matches
    return player


class TestCalculateExpectedWinChance:
    """Tests for expected win probability calculation."""

    def test_equal_ratings(self):
        """Test equal ratings produce 0.5 expected."""
        assert calculate_expected_win_chance(1000, 1000) == pytest.approx(0.5)

    def test_400_point_difference(self):
        """Test 400 point difference produces ~91% expected."""
        assert calculate_expected_win_chance(1400, 1000) == pytest.approx(0.909, abs=0.001)

    def test_expectations_sum_to_one(self):
        """Test both sides' expectations are complementary."""
        a = calculate_expected_win_chance(1234, 987)
        b = calculate_expected_win_chance(987, 1234)
        assert a + b == pytest.approx(1.0)


class TestKFactor:
    """Tests for experience and importance based K-factors."""

    @pytest.mark.parametrize(
        ("matches", "expected"),
        [(0, 32.0), (30, 32.0), (31, 24.0), (100, 24.0), (101, 16.0), (500, 16.0)],
    )
    def test_experience_tiers(self, matches, expected):
        """Test tier boundaries."""
        assert k_factor_for(matches) == expected

    def test_non_increasing_with_experience(self):
        """Test K never grows as a player gains matches."""
        values = [k_factor_for(n) for n in range(0, 200)]
        assert all(a >= b for a, b in zip(values, values[1:], strict=False))

    def test_major_multiplier(self):
        """Test major tournaments scale every tier by 1.5."""
        assert k_factor_for(0, major=True) == 48.0
        assert k_factor_for(50, major=True) == 36.0
        assert k_factor_for(150, major=True) == 24.0

    def test_custom_base_only_affects_newcomers(self):
        """Test the configured base K applies to the first tier only."""
        assert k_factor_for(10, base_k=40.0) == 40.0
        assert k_factor_for(40, base_k=40.0) == 24.0


class TestRoundRating:
    """Tests for half-up rounding."""

    def test_half_rounds_up(self):
        assert round_rating(1015.5) == 1016
        assert round_rating(984.5) == 985

    def test_below_half_rounds_down(self):
        assert round_rating(1015.49) == 1015


class TestEloRatingSystem:
    """Tests for the Elo rating system."""

    def test_equal_newcomers(self):
        """Test 1000 vs 1000 newcomers moves to 1016 and 984."""
        elo = EloRatingSystem()
        update = elo.compute_update(_player("a", 1000), _player("b", 1000))
        assert update.winner == {"elo_score": 1016.0}
        assert update.loser == {"elo_score": 984.0}

    def test_missing_scores_use_default(self):
        """Test players without an Elo score start from the default rating."""
        elo = EloRatingSystem(default_rating=1200)
        update = elo.compute_update(_player("a"), _player("b"))
        assert update.winner["elo_score"] == 1216.0
        assert update.loser["elo_score"] == 1184.0

    def test_major_tournament(self):
        """Test major importance raises both players' K."""
        elo = EloRatingSystem()
        context = MatchContext(importance="major")
        update = elo.compute_update(_player("a", 1000), _player("b", 1000), context)
        assert update.winner["elo_score"] == 1024.0
        assert update.loser["elo_score"] == 976.0

    def test_minor_tournament_unchanged(self):
        """Test minor importance leaves K at its tier value."""
        elo = EloRatingSystem()
        context = MatchContext(importance="minor")
        update = elo.compute_update(_player("a", 1000), _player("b", 1000), context)
        assert update.winner["elo_score"] == 1016.0

    def test_asymmetric_k(self):
        """Test a veteran winner gains less than a newcomer loser drops."""
        elo = EloRatingSystem()
        veteran = _player("vet", 1000, matches=150)
        newcomer = _player("new", 1000, matches=0)
        update = elo.compute_update(veteran, newcomer)
        assert update.winner["elo_score"] == 1008.0
        assert update.loser["elo_score"] == 984.0

    def test_upset_moves_more(self):
        """Test an underdog win moves more points than a favorite win."""
        elo = EloRatingSystem()
        upset = elo.compute_update(_player("low", 900), _player("high", 1100))
        expected = elo.compute_update(_player("high", 1100), _player("low", 900))
        assert upset.winner["elo_score"] - 900 > expected.winner["elo_score"] - 1100

    def test_update_does_not_mutate_players(self):
        """Test compute_update only returns patches."""
        elo = EloRatingSystem()
        winner, loser = _player("a", 1000), _player("b", 1000)
        elo.compute_update(winner, loser)
        assert winner.elo_score == 1000
        assert loser.elo_score == 1000
        assert winner.matches_played == 0

    def test_display_rating(self):
        elo = EloRatingSystem()
        assert elo.display_rating(_player("a", 1015.5)) == "1016"
        assert elo.display_rating(_player("b")) == "1000"

    def test_sort_is_stable_on_ties(self):
        """Test tied players keep their input order."""
        elo = EloRatingSystem()
        players = [_player("x", 1000), _player("y", 1100), _player("z", 1000)]
        assert [p.tag for p in elo.sort_by_rating(players)] == ["y", "x", "z"]

    def test_parameters_round_trip(self):
        elo = EloRatingSystem(default_rating=1500, k_factor=20)
        assert elo.parameters() == {"default_rating": 1500, "k_factor": 20}
