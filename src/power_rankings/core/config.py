"""Configuration schemas and loading for Power Rankings."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field

RatingSystemKey = Literal["elo", "skill"]

SETTINGS_FILENAME = "ranking_settings.json"
SEASONS_DIRNAME = "seasons"


class EloSettings(BaseModel):
    """Tunables for the Elo rating system.

    Attributes:
        default_rating: Rating assigned to players with no Elo score yet.
        k_factor: K-factor for players with 30 or fewer matches.
    """

    default_rating: float = Field(default=1000.0, gt=0)
    k_factor: float = Field(default=32.0, gt=0)


class SkillSettings(BaseModel):
    """Tunables for the skill (TrueSkill-style) rating system.

    Attributes:
        default_mu: Initial mean skill estimate.
        default_sigma: Initial uncertainty.
        beta: Skill class width (performance noise).
        tau: Dynamics factor added back to the uncertainty after each match.
    """

    default_mu: float = 25.0
    default_sigma: float = Field(default=8.333, gt=0)
    beta: float = Field(default=4.166, gt=0)
    tau: float = Field(default=0.083, ge=0)


class RankingSettings(BaseModel):
    """Active rating system and per-system tunables.

    This is also the shape of the persisted settings blob.
    """

    active_system: RatingSystemKey = "elo"
    elo: EloSettings = Field(default_factory=EloSettings)
    skill: SkillSettings = Field(default_factory=SkillSettings)


class AppConfig(BaseModel):
    """Complete application configuration."""

    data_dir: str = "./data"
    database_name: str = "rankings.db"
    auto_create_players: bool = True
    default_season_name: str = "Season 1"
    ranking: RankingSettings = Field(default_factory=RankingSettings)

    @property
    def data_path(self) -> Path:
        return Path(self.data_dir)

    @property
    def database_url(self) -> str:
        return f"sqlite:///{self.data_path / self.database_name}"

    @property
    def settings_path(self) -> Path:
        return self.data_path / SETTINGS_FILENAME

    @property
    def seasons_path(self) -> Path:
        return self.data_path / SEASONS_DIRNAME


def load_config(path: str | Path) -> AppConfig:
    """Load and validate configuration from YAML file.

    Args:
        path: Path to YAML configuration file.

    Returns:
        Validated AppConfig instance.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValidationError: If config is invalid.
    """
    config_path = Path(path)
    if not config_path.exists():
        msg = f"Configuration file not found: {config_path}"
        raise FileNotFoundError(msg)

    with config_path.open() as f:
        data = yaml.safe_load(f) or {}

    return AppConfig.model_validate(data)
