"""Slug helpers for season ids and tournament slugs."""

from __future__ import annotations

import re

TOURNAMENT_PREFIX = "tournament/"


def slugify(value: str) -> str:
    """Generate a filesystem-safe slug from free text.

    >>> slugify("Spring Season 2026!")
    'spring-season-2026'
    """
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")


def tournament_slug(value: str) -> str:
    """Normalize a bare tournament slug to the ``tournament/<slug>`` form."""
    value = value.strip()
    if "/" in value:
        return value
    return f"{TOURNAMENT_PREFIX}{value}"
