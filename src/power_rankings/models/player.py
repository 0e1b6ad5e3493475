import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime

from sqlmodel import Field, SQLModel

RATING_FIELDS = frozenset({"elo_score", "skill_mean", "skill_uncertainty"})


@dataclass(frozen=True)
class SkillRating:
    """A (mean, uncertainty) belief over a player's skill."""

    mean: float
    uncertainty: float

    @property
    def conservative_estimate(self) -> float:
        return self.mean - 3 * self.uncertainty


class Player(SQLModel, table=True):
    """A roster entry with match counters and rating state for every system.

    Rating columns of a system that is not active are kept as they are.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    tag: str
    tag_key: str = Field(index=True, unique=True)
    discord_id: str | None = Field(default=None, index=True)
    matches_played: int = 0
    wins: int = 0
    losses: int = 0
    elo_score: float | None = None
    skill_mean: float | None = None
    skill_uncertainty: float | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    last_played: datetime | None = None

    @classmethod
    def create(
        cls,
        tag: str,
        discord_id: str | None = None,
        **rating: float,
    ) -> "Player":
        """Build a new player keyed case-insensitively by tag."""
        tag = tag.strip()
        return cls(tag=tag, tag_key=tag_key(tag), discord_id=discord_id, **rating)

    @property
    def skill_rating(self) -> SkillRating | None:
        if self.skill_mean is None or self.skill_uncertainty is None:
            return None
        return SkillRating(self.skill_mean, self.skill_uncertainty)

    @property
    def conservative_estimate(self) -> float | None:
        skill = self.skill_rating
        return skill.conservative_estimate if skill else None

    def apply_rating_patch(self, patch: Mapping[str, float]) -> None:
        """Merge a rating patch produced by a rating system."""
        unknown = set(patch) - RATING_FIELDS
        if unknown:
            msg = f"Not rating fields: {sorted(unknown)}"
            raise ValueError(msg)
        for key, value in patch.items():
            setattr(self, key, value)
        self.updated_at = datetime.now(UTC)

    def record_result(self, won: bool, played_at: datetime | None = None) -> None:
        """Increment match counters for one result."""
        self.matches_played += 1
        if won:
            self.wins += 1
        else:
            self.losses += 1
        self.last_played = played_at or datetime.now(UTC)
        self.updated_at = datetime.now(UTC)


def tag_key(tag: str) -> str:
    """Case-insensitive lookup key for a player tag."""
    return tag.strip().casefold()
