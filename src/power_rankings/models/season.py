"""Season standings models, persisted as JSON."""

from __future__ import annotations

from datetime import UTC, date, datetime

from pydantic import BaseModel, Field

from power_rankings.core.slug import slugify

HEAD_TO_HEAD_SEPARATOR = "_vs_"


def head_to_head_key(tag_a: str, tag_b: str) -> str:
    """Order-independent key for the record between two players."""
    return HEAD_TO_HEAD_SEPARATOR.join(sorted((tag_a, tag_b)))


class TournamentRef(BaseModel):
    """A tournament counted towards a season."""

    id: str | int | None = None
    slug: str
    name: str
    start_at: int | None = None
    end_at: int | None = None
    num_attendees: int | None = None
    added_at: datetime | None = None
    updated_at: datetime | None = None


class OpponentRecord(BaseModel):
    wins: int = 0
    losses: int = 0

    @property
    def matches(self) -> int:
        return self.wins + self.losses


class PlayerSeasonStat(BaseModel):
    """A player's record within one season."""

    tag: str
    matches_played: int = 0
    wins: int = 0
    losses: int = 0
    tournament_wins: int = 0
    opponents: dict[str, OpponentRecord] = Field(default_factory=dict)


class HeadToHeadMatch(BaseModel):
    winner: str
    loser: str
    score: str | None = None
    tournament: str | None = None
    played_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    match_id: str | None = None


class HeadToHeadRecord(BaseModel):
    """Every match between two specific players in a season."""

    players: list[str]
    matches: list[HeadToHeadMatch] = Field(default_factory=list)

    def wins_for(self, tag: str) -> int:
        return sum(1 for m in self.matches if m.winner == tag)


class SeasonRanking(BaseModel):
    """One row of season power rankings."""

    tag: str
    rank: int
    matches_played: int
    wins: int
    losses: int
    win_percentage: float
    strength_of_schedule: float
    tournament_wins: int = 0
    rating: float | None = None


class Season(BaseModel):
    """A bounded window of matches and tournaments with its own standings.

    A season is open while ``end_date`` is None. ``rankings`` holds the
    snapshot taken when the season was closed.
    """

    name: str
    description: str | None = None
    start_date: date = Field(default_factory=lambda: datetime.now(UTC).date())
    end_date: date | None = None
    events: list[TournamentRef] = Field(default_factory=list)
    player_records: dict[str, PlayerSeasonStat] = Field(default_factory=dict)
    head_to_head: dict[str, HeadToHeadRecord] = Field(default_factory=dict)
    rankings: list[SeasonRanking] = Field(default_factory=list)

    @property
    def season_id(self) -> str:
        return slugify(self.name)

    @property
    def is_open(self) -> bool:
        return self.end_date is None

    @property
    def match_count(self) -> int:
        return sum(len(record.matches) for record in self.head_to_head.values())


class SeasonSummary(BaseModel):
    id: str
    name: str
    start_date: date
    end_date: date | None = None
    is_current: bool = False
