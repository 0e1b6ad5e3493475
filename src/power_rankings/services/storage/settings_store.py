"""JSON file storage for the active rating system and its tunables."""

from __future__ import annotations

from pathlib import Path

import pydantic
import structlog

from power_rankings.core.config import RankingSettings
from power_rankings.core.errors import ConfigurationError

logger = structlog.get_logger()


class SettingsStore:
    """Key-value style store for ``RankingSettings``."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self, default: RankingSettings | None = None) -> RankingSettings:
        """Load saved settings, writing ``default`` if none exist yet.

        Raises:
            ConfigurationError: If the saved file is not valid settings.
        """
        if not self.path.exists():
            settings = default or RankingSettings()
            self.save(settings)
            return settings
        try:
            settings = RankingSettings.model_validate_json(self.path.read_text(encoding="utf-8"))
        except pydantic.ValidationError as e:
            raise ConfigurationError(
                f"Invalid ranking settings in {self.path}",
                "Fix or delete the file to restore defaults.",
            ) from e
        logger.debug("settings_loaded", path=str(self.path), active=settings.active_system)
        return settings

    def save(self, settings: RankingSettings) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(settings.model_dump_json(indent=2), encoding="utf-8")
        logger.debug("settings_saved", path=str(self.path), active=settings.active_system)
