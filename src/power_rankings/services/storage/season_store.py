"""JSON file storage for the current and archived seasons."""

from __future__ import annotations

import asyncio
from pathlib import Path

import structlog

from power_rankings.models import Season
from power_rankings.seasons import CURRENT_SEASON_ID, SeasonAggregator

logger = structlog.get_logger()


def _write_json(path: Path, content: str) -> None:
    """Write through a temp file so readers never see half a season."""
    tmp_path = path.with_suffix(".json.tmp")
    tmp_path.write_text(content, encoding="utf-8")
    tmp_path.replace(path)


class SeasonStore:
    """Season files under one directory.

    Layout:
    - ``current.json``: the open season, absent when none is open
    - ``<season-id>.json``: one file per closed season
    """

    def __init__(self, base_dir: Path) -> None:
        self.base_dir = base_dir

    @property
    def current_path(self) -> Path:
        return self.base_dir / f"{CURRENT_SEASON_ID}.json"

    def archive_path(self, season_id: str) -> Path:
        return self.base_dir / f"{season_id}.json"

    async def load(self) -> SeasonAggregator:
        """Load the open season and the archive into an aggregator."""

        def _load() -> SeasonAggregator:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            current = None
            archive: dict[str, Season] = {}
            for path in sorted(self.base_dir.glob("*.json")):
                season = Season.model_validate_json(path.read_text(encoding="utf-8"))
                if path == self.current_path:
                    current = season if season.is_open else None
                    if current is None:
                        archive[season.season_id] = season
                else:
                    archive[path.stem] = season
            logger.debug("seasons_loaded", current=bool(current), archived=len(archive))
            return SeasonAggregator(current=current, archive=archive)

        return await asyncio.to_thread(_load)

    async def save(self, aggregator: SeasonAggregator) -> None:
        """Write the open season and every archived season."""
        current = aggregator.current
        archive = dict(aggregator.archive)

        def _save() -> None:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            for season_id, season in archive.items():
                _write_json(self.archive_path(season_id), season.model_dump_json(indent=2))
            if current is not None:
                _write_json(self.current_path, current.model_dump_json(indent=2))
            else:
                self.current_path.unlink(missing_ok=True)

        await asyncio.to_thread(_save)
        logger.debug("seasons_saved", current=current.name if current else None)

    async def save_current(self, season: Season) -> None:
        """Write only the open season."""

        def _save() -> None:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            _write_json(self.current_path, season.model_dump_json(indent=2))

        await asyncio.to_thread(_save)
