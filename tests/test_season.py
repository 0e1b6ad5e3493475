"""Tests for season aggregation and power rankings."""

from datetime import date

import pytest

from power_rankings.core.errors import (
    NoActiveSeasonError,
    SeasonAlreadyActiveError,
    SeasonError,
    SeasonNotFoundError,
    TournamentNotInSeasonError,
)
from power_rankings.models import MatchResult, TournamentRef, head_to_head_key
from power_rankings.seasons import (
    CURRENT_SEASON_ID,
    RecordOutcome,
    SeasonAggregator,
    compute_season_rankings,
)


def _match(winner: str, loser: str, score: str = "2-0", **kwargs) -> MatchResult:
    return MatchResult(
        winner_tag=winner, loser_tag=loser, score=score, tournament_name="Weekly", **kwargs
    )


@pytest.fixture
def aggregator() -> SeasonAggregator:
    seasons = SeasonAggregator()
    seasons.open_season("Spring 2025", start_date=date(2025, 3, 1))
    return seasons


class TestLifecycle:
    """Tests for opening and closing seasons."""

    def test_open_season(self, aggregator):
        season = aggregator.current
        assert season.name == "Spring 2025"
        assert season.season_id == "spring-2025"
        assert season.description == "Spring 2025 power rankings season"
        assert season.is_open

    def test_cannot_open_twice(self, aggregator):
        with pytest.raises(SeasonAlreadyActiveError):
            aggregator.open_season("Summer 2025")

    def test_archived_name_cannot_be_reused(self, aggregator):
        aggregator.close_season()
        with pytest.raises(SeasonError):
            aggregator.open_season("spring 2025")

    def test_close_requires_open_season(self):
        with pytest.raises(NoActiveSeasonError):
            SeasonAggregator().close_season()

    def test_close_snapshots_rankings(self, aggregator):
        """Test the archived snapshot equals the rankings at close time."""
        aggregator.record_match(_match("a", "b"))
        aggregator.record_match(_match("b", "c"))
        ratings = {"a": 1100.0, "b": 1000.0, "c": 900.0}
        before = aggregator.compute_season_rankings(CURRENT_SEASON_ID, ratings)

        closed = aggregator.close_season(ratings, end_date=date(2025, 6, 1))

        assert aggregator.current is None
        assert closed.end_date == date(2025, 6, 1)
        assert closed.rankings == before
        assert aggregator.get_season("spring-2025") is closed

    def test_closed_season_ignores_new_ratings(self, aggregator):
        aggregator.record_match(_match("a", "b"))
        closed = aggregator.close_season({"a": 1000.0, "b": 1000.0})
        assert compute_season_rankings(closed, {"a": 1.0, "b": 5000.0}) == closed.rankings

    def test_new_season_starts_empty(self, aggregator):
        aggregator.record_match(_match("a", "b"))
        aggregator.close_season()
        season = aggregator.open_season("Summer 2025")
        assert season.player_records == {}
        assert season.head_to_head == {}
        assert season.events == []

    def test_closed_season_cannot_be_current(self, aggregator):
        closed = aggregator.close_season()
        with pytest.raises(ValueError, match="closed"):
            SeasonAggregator(current=closed)


class TestRecordMatch:
    """Tests for season match recording and deduplication."""

    def test_records_both_players(self, aggregator):
        assert aggregator.record_match(_match("a", "b")) is RecordOutcome.RECORDED
        season = aggregator.current
        assert season.player_records["a"].wins == 1
        assert season.player_records["b"].losses == 1
        assert season.player_records["a"].opponents["b"].wins == 1
        assert season.player_records["b"].opponents["a"].losses == 1
        assert season.match_count == 1

    def test_duplicate_is_noop(self, aggregator):
        """Test the same match twice is recorded once."""
        aggregator.record_match(_match("a", "b"))
        snapshot = aggregator.current.model_copy(deep=True)

        assert aggregator.record_match(_match("a", "b")) is RecordOutcome.DUPLICATE
        assert aggregator.current == snapshot

    def test_different_score_is_not_duplicate(self, aggregator):
        aggregator.record_match(_match("a", "b", "2-0"))
        assert aggregator.record_match(_match("a", "b", "2-1")) is RecordOutcome.RECORDED

    def test_match_ids_decide_when_present(self, aggregator):
        """Test identical content with distinct ids counts as two matches."""
        aggregator.record_match(_match("a", "b", match_id="1"))
        assert aggregator.record_match(_match("a", "b", match_id="2")) is RecordOutcome.RECORDED
        assert aggregator.record_match(_match("a", "b", match_id="1")) is RecordOutcome.DUPLICATE

    def test_requires_open_season(self):
        with pytest.raises(NoActiveSeasonError):
            SeasonAggregator().record_match(_match("a", "b"))

    def test_head_to_head_key_is_order_independent(self, aggregator):
        aggregator.record_match(_match("zed", "amy"))
        aggregator.record_match(_match("amy", "zed"))
        assert head_to_head_key("zed", "amy") == "amy_vs_zed"
        record = aggregator.head_to_head("zed", "amy")
        assert record.players == ["amy", "zed"]
        assert record.wins_for("amy") == 1
        assert record.wins_for("zed") == 1

    def test_tournament_wins_carry_into_rankings(self, aggregator):
        aggregator.record_match(_match("a", "b"))
        assert aggregator.record_tournament_win("a").tournament_wins == 1
        assert aggregator.record_tournament_win("a").tournament_wins == 2

        rankings = aggregator.compute_season_rankings()
        assert [(r.tag, r.tournament_wins) for r in rankings] == [("a", 2), ("b", 0)]

    def test_head_to_head_never_met(self, aggregator):
        record = aggregator.head_to_head("a", "b")
        assert record.matches == []


class TestSeasonRankings:
    """Tests for win percentage and strength of schedule ordering."""

    def test_win_percentage_first(self, aggregator):
        aggregator.record_match(_match("a", "b"))
        aggregator.record_match(_match("a", "c"))
        aggregator.record_match(_match("b", "c"))
        rankings = aggregator.compute_season_rankings()
        assert [r.tag for r in rankings] == ["a", "b", "c"]
        assert [r.rank for r in rankings] == [1, 2, 3]
        assert rankings[0].win_percentage == 100.0
        assert rankings[1].win_percentage == 50.0

    def test_strength_of_schedule_breaks_ties(self, aggregator):
        """Test equal win rates are ordered by opponents' ratings."""
        aggregator.record_match(_match("a", "weak"))
        aggregator.record_match(_match("b", "strong"))
        ratings = {"weak": 800.0, "strong": 1400.0, "a": 1000.0, "b": 1000.0}
        rankings = aggregator.compute_season_rankings(CURRENT_SEASON_ID, ratings)
        assert [r.tag for r in rankings[:2]] == ["b", "a"]
        assert rankings[0].strength_of_schedule == 1400.0

    def test_full_ties_keep_first_appearance(self, aggregator):
        aggregator.record_match(_match("x", "p"))
        aggregator.record_match(_match("y", "q"))
        rankings = aggregator.compute_season_rankings()
        assert [r.tag for r in rankings] == ["x", "y", "p", "q"]

    def test_unrated_opponents_are_skipped(self, aggregator):
        aggregator.record_match(_match("a", "b"))
        aggregator.record_match(_match("a", "c"))
        rankings = aggregator.compute_season_rankings(CURRENT_SEASON_ID, {"b": 1200.0})
        assert rankings[0].strength_of_schedule == 1200.0

    def test_does_not_mutate_season(self, aggregator):
        aggregator.record_match(_match("a", "b"))
        aggregator.compute_season_rankings()
        assert aggregator.current.rankings == []


class TestTournaments:
    """Tests for season tournament lists."""

    def test_add_and_update(self, aggregator):
        ref = TournamentRef(id=7, slug="tournament/weekly-1", name="Weekly 1")
        assert aggregator.add_tournament(ref) is True
        renamed = ref.model_copy(update={"name": "Weekly #1"})
        assert aggregator.add_tournament(renamed) is False

        events = aggregator.current.events
        assert len(events) == 1
        assert events[0].name == "Weekly #1"
        assert events[0].added_at is not None
        assert events[0].updated_at is not None

    def test_remove_by_bare_slug(self, aggregator):
        aggregator.add_tournament(TournamentRef(slug="tournament/weekly-1", name="Weekly 1"))
        removed = aggregator.remove_tournament("weekly-1")
        assert removed.name == "Weekly 1"
        assert aggregator.current.events == []

    def test_remove_prefers_exact_slug(self, aggregator):
        """Test a slug that is a prefix of another event removes its own event."""
        aggregator.add_tournament(TournamentRef(slug="tournament/weekly-12", name="Weekly 12"))
        aggregator.add_tournament(TournamentRef(slug="tournament/weekly-1", name="Weekly 1"))

        removed = aggregator.remove_tournament("weekly-1")

        assert removed.slug == "tournament/weekly-1"
        assert [e.slug for e in aggregator.current.events] == ["tournament/weekly-12"]

    def test_remove_by_partial_slug(self, aggregator):
        aggregator.add_tournament(TournamentRef(slug="tournament/spring-major-2025", name="Major"))
        assert aggregator.remove_tournament("spring-major").name == "Major"

    def test_remove_missing(self, aggregator):
        with pytest.raises(TournamentNotInSeasonError):
            aggregator.remove_tournament("nope")


class TestQueries:
    """Tests for season lookup and listing."""

    def test_unknown_season(self, aggregator):
        with pytest.raises(SeasonNotFoundError):
            aggregator.get_season("winter-1999")

    def test_current_without_open_season(self):
        with pytest.raises(NoActiveSeasonError):
            SeasonAggregator().get_season(CURRENT_SEASON_ID)

    def test_list_seasons(self, aggregator):
        aggregator.close_season()
        aggregator.open_season("Summer 2025")
        summaries = aggregator.list_seasons()
        assert [(s.id, s.is_current) for s in summaries] == [
            (CURRENT_SEASON_ID, True),
            ("spring-2025", False),
        ]
