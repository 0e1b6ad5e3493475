import uuid
from datetime import UTC, datetime

import pydantic
from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from sqlmodel import Field, SQLModel

from power_rankings.core.errors import InvalidMatchError


class MatchResult(BaseModel):
    """An immutable reported match: winner, loser, and where it happened."""

    model_config = ConfigDict(frozen=True)

    winner_tag: str
    loser_tag: str
    score: str | None = None
    tournament_name: str | None = None
    timestamp: datetime = pydantic.Field(default_factory=lambda: datetime.now(UTC))
    match_id: str | None = None

    @field_validator("winner_tag", "loser_tag")
    @classmethod
    def validate_tag(cls, v: str) -> str:
        v = v.strip()
        if not v:
            msg = "Player tags cannot be empty"
            raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def validate_distinct_players(self) -> "MatchResult":
        if self.winner_tag.casefold() == self.loser_tag.casefold():
            msg = "Winner and loser must be different players"
            raise ValueError(msg)
        return self


class Match(SQLModel, table=True):
    """One row of the global match log."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    match_id: str | None = Field(default=None, index=True, unique=True)
    winner_tag: str = Field(index=True)
    loser_tag: str = Field(index=True)
    score: str | None = None
    tournament_name: str | None = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    winner_rating_change: float | None = None
    loser_rating_change: float | None = None
    rating_system: str | None = None

    @classmethod
    def from_result(cls, result: MatchResult, **extra: object) -> "Match":
        return cls(**result.model_dump(), **extra)


def build_match(**fields: object) -> MatchResult:
    """Validate a reported match.

    Raises:
        InvalidMatchError: If the tags are empty or name the same player.
    """
    try:
        return MatchResult(**fields)
    except pydantic.ValidationError as e:
        reason = "; ".join(err["msg"].removeprefix("Value error, ") for err in e.errors())
        raise InvalidMatchError(reason) from e
