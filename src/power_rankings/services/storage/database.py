"""Database engine setup for the player roster and match log."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import structlog
from sqlalchemy import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

# Table models must be imported before create_all
from power_rankings.models import Match, Player  # noqa: F401

logger = structlog.get_logger()

MEMORY_URLS = frozenset({"sqlite://", "sqlite:///:memory:"})


def create_db_engine(url: str) -> Engine:
    """Create an engine and the roster tables.

    Args:
        url: SQLAlchemy URL, e.g. ``sqlite:///data/rankings.db``.

    Returns:
        Engine usable from worker threads.
    """
    kwargs: dict[str, Any] = {}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in MEMORY_URLS:
            # One shared connection, or each worker thread gets an empty database
            kwargs["poolclass"] = StaticPool
        else:
            Path(url.removeprefix("sqlite:///")).parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(url, **kwargs)
    SQLModel.metadata.create_all(engine)
    logger.debug("database_ready", url=url)
    return engine
