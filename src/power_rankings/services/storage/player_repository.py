"""Database persistence for the player roster."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlmodel import Session, col, select

from power_rankings.models import Match, Player, tag_key

from .repository import AsyncRepository

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = structlog.get_logger()


class PlayerRepository(AsyncRepository):
    """Persist and query players."""

    def __init__(self, engine: Engine) -> None:
        super().__init__(engine)

    async def get_by_tag(self, tag: str) -> Player | None:
        """Find a player by tag, ignoring case."""

        def _get(session: Session) -> Player | None:
            statement = select(Player).where(Player.tag_key == tag_key(tag))
            return session.exec(statement).first()

        return await self._run_session(_get)

    async def get_by_discord_id(self, discord_id: str) -> Player | None:
        def _get(session: Session) -> Player | None:
            statement = select(Player).where(Player.discord_id == discord_id)
            return session.exec(statement).first()

        return await self._run_session(_get)

    async def list_players(self) -> list[Player]:
        """Get all players in roster order (oldest first)."""

        def _get(session: Session) -> list[Player]:
            statement = select(Player).order_by(col(Player.created_at), col(Player.tag_key))
            return list(session.exec(statement).all())

        return await self._run_session(_get)

    async def save(self, player: Player) -> Player:
        """Insert or update a single player."""

        def _save(session: Session) -> Player:
            session.add(player)
            session.commit()
            return player

        saved = await self._run_session(_save)
        logger.debug("saved_player", tag=saved.tag)
        return saved

    async def reset(self) -> int:
        """Delete every player and the whole match log.

        Returns:
            Number of players removed.
        """

        def _reset(session: Session) -> int:
            for match in session.exec(select(Match)).all():
                session.delete(match)
            players = session.exec(select(Player)).all()
            for player in players:
                session.delete(player)
            session.commit()
            return len(players)

        removed = await self._run_session(_reset)
        logger.warning("players_reset", removed=removed)
        return removed
