"""Core configuration and utilities for Power Rankings."""

from power_rankings.core.config import (
    AppConfig,
    EloSettings,
    RankingSettings,
    RatingSystemKey,
    SkillSettings,
    load_config,
)
from power_rankings.core.errors import (
    AccountLinkError,
    ConfigurationError,
    InvalidMatchError,
    NoActiveSeasonError,
    PlayerNotFoundError,
    RankingError,
    SeasonAlreadyActiveError,
    SeasonError,
    SeasonNotFoundError,
    TournamentNotInSeasonError,
    UnknownRatingSystemError,
)
from power_rankings.core.slug import slugify, tournament_slug

__all__ = [
    "AccountLinkError",
    "AppConfig",
    "EloSettings",
    "RankingSettings",
    "RatingSystemKey",
    "SkillSettings",
    "load_config",
    "slugify",
    "tournament_slug",
    "ConfigurationError",
    "InvalidMatchError",
    "NoActiveSeasonError",
    "PlayerNotFoundError",
    "RankingError",
    "SeasonAlreadyActiveError",
    "SeasonError",
    "SeasonNotFoundError",
    "TournamentNotInSeasonError",
    "UnknownRatingSystemError",
]
