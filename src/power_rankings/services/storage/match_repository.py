"""Database persistence for the global match log."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

import structlog
from sqlmodel import Session, col, func, or_, select

from power_rankings.models import Match, Player

from .repository import AsyncRepository

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = structlog.get_logger()


class MatchRepository(AsyncRepository):
    """Persist and query match records."""

    def __init__(self, engine: Engine) -> None:
        super().__init__(engine)

    async def exists(self, match_id: str) -> bool:
        """Whether a match with this external id is already logged."""

        def _get(session: Session) -> bool:
            statement = select(Match.id).where(Match.match_id == match_id)
            return session.exec(statement).first() is not None

        return await self._run_session(_get)

    async def save_result(self, match: Match, players: Sequence[Player]) -> None:
        """Log a match and write back its players in one transaction."""

        def _save(session: Session) -> None:
            for player in players:
                session.add(player)
            session.add(match)
            session.commit()

        await self._run_session(_save)
        logger.debug("saved_match", winner=match.winner_tag, loser=match.loser_tag)

    async def list_matches(self, tag: str | None = None, limit: int | None = None) -> list[Match]:
        """Get logged matches, newest first, optionally for one player."""

        def _get(session: Session) -> list[Match]:
            statement = select(Match).order_by(col(Match.timestamp).desc())
            if tag is not None:
                key = tag.casefold()
                statement = statement.where(
                    or_(
                        func.lower(Match.winner_tag) == key,
                        func.lower(Match.loser_tag) == key,
                    )
                )
            if limit is not None:
                statement = statement.limit(limit)
            return list(session.exec(statement).all())

        return await self._run_session(_get)

    async def count(self) -> int:
        def _count(session: Session) -> int:
            return session.exec(select(func.count()).select_from(Match)).one()

        return await self._run_session(_count)
