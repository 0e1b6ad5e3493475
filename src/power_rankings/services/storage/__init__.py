from .database import create_db_engine
from .match_repository import MatchRepository
from .player_repository import PlayerRepository
from .season_store import SeasonStore
from .settings_store import SettingsStore

__all__ = [
    "MatchRepository",
    "PlayerRepository",
    "SeasonStore",
    "SettingsStore",
    "create_db_engine",
]
