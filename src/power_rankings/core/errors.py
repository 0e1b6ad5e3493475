"""Custom exceptions for rankings, seasons, and configuration errors."""

from __future__ import annotations


class RankingError(Exception):
    """Base exception for user-facing errors with optional suggestions."""

    label = "Error"

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        self.message = message
        self.suggestion = suggestion
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        msg = f"[{self.label}] {self.message}"
        if self.suggestion:
            msg += f"\n[Suggestion] {self.suggestion}"
        return msg


class ConfigurationError(RankingError):
    """Error when configuration or persisted settings are invalid."""

    label = "Configuration Error"


class InvalidMatchError(RankingError):
    """Error when a reported match is malformed."""

    def __init__(self, reason: str) -> None:
        super().__init__(
            f"Invalid match: {reason}",
            "Check the winner and loser tags and try again.",
        )


class PlayerNotFoundError(RankingError):
    """Error when a match names a player missing from the roster."""

    def __init__(self, tag: str) -> None:
        self.tag = tag
        super().__init__(
            f"Player '{tag}' not found",
            "Check the spelling, or enable auto_create_players in the config.",
        )


class AccountLinkError(RankingError):
    """Error when a chat account cannot be linked to a roster tag."""


class UnknownRatingSystemError(RankingError):
    """Error when switching to a rating system that is not registered."""

    def __init__(self, key: str, available: list[str]) -> None:
        self.key = key
        super().__init__(
            f"Unknown rating system '{key}'",
            f"Available systems: {', '.join(available)}",
        )


class SeasonError(RankingError):
    """Base class for season lifecycle errors."""


class NoActiveSeasonError(SeasonError):
    """Error when an operation needs an open season and there is none."""

    def __init__(self) -> None:
        super().__init__(
            "No active season",
            "Create one with `power-rankings season create <name>`.",
        )


class SeasonAlreadyActiveError(SeasonError):
    """Error when opening a season while another one is still open."""

    def __init__(self, name: str) -> None:
        super().__init__(
            f"Season '{name}' is already active",
            "End it first with `power-rankings season end`.",
        )


class SeasonNotFoundError(SeasonError):
    """Error when a season id does not match the current or any archived season."""

    def __init__(self, season_id: str) -> None:
        super().__init__(
            f"Season '{season_id}' not found",
            "List seasons with `power-rankings season list`.",
        )


class TournamentNotInSeasonError(SeasonError):
    """Error when removing a tournament that the season does not contain."""

    def __init__(self, slug: str) -> None:
        super().__init__(f'Tournament "{slug}" is not in the current season.')
