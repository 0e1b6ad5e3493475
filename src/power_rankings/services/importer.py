"""Import completed bracket sets from a tournament into ratings and the season."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
from pydantic import BaseModel, ConfigDict, Field

from power_rankings.core.errors import InvalidMatchError, PlayerNotFoundError
from power_rankings.core.slug import tournament_slug
from power_rankings.models import MatchResult, TournamentRef, build_match
from power_rankings.ranking import MatchContext
from power_rankings.ranking.base import Importance

if TYPE_CHECKING:
    from power_rankings.services.reporting import MatchService

logger = structlog.get_logger()


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class BracketPlayer(_Payload):
    gamer_tag: str | None = Field(default=None, alias="gamerTag")


class Participant(_Payload):
    player: BracketPlayer | None = None


class Entrant(_Payload):
    id: str | int
    name: str
    participants: list[Participant] | None = None

    @property
    def tag(self) -> str:
        """Gamer tag of the first participant, else the entrant name."""
        if self.participants:
            player = self.participants[0].player
            if player is not None and player.gamer_tag:
                return player.gamer_tag
        return self.name


class Slot(_Payload):
    entrant: Entrant | None = None


class BracketSet(_Payload):
    """A completed set as returned by the bracket platform."""

    id: str | int
    display_score: str | None = Field(default=None, alias="displayScore")
    winner_id: str | int | None = Field(default=None, alias="winnerId")
    slots: list[Slot] | None = None


class Standing(_Payload):
    placement: int
    entrant: Entrant | None = None


class EventSets(_Payload):
    id: str | int | None = None
    name: str
    sets: list[BracketSet] = Field(default_factory=list)
    standings: list[Standing] = Field(default_factory=list)

    @property
    def champion(self) -> str | None:
        """Tag of the first-place entrant, if standings were exported."""
        for standing in self.standings:
            if standing.placement == 1 and standing.entrant is not None:
                return standing.entrant.tag
        return None


class TournamentPayload(_Payload):
    """Tournament metadata plus the completed sets of each of its events."""

    id: str | int | None = None
    slug: str
    name: str
    start_at: int | None = Field(default=None, alias="startAt")
    end_at: int | None = Field(default=None, alias="endAt")
    num_attendees: int | None = Field(default=None, alias="numAttendees")
    events: list[EventSets] = Field(default_factory=list)

    def to_ref(self) -> TournamentRef:
        return TournamentRef(
            id=self.id,
            slug=tournament_slug(self.slug),
            name=self.name,
            start_at=self.start_at,
            end_at=self.end_at,
            num_attendees=self.num_attendees,
        )

    @property
    def played_at(self) -> datetime:
        timestamp = self.end_at or self.start_at
        if timestamp is None:
            return datetime.now(UTC)
        return datetime.fromtimestamp(timestamp, UTC)


@dataclass
class ImportSummary:
    imported: int = 0
    skipped: int = 0
    duplicates: int = 0
    events: int = 0
    champions: list[str] = field(default_factory=list)


def set_to_match(
    bracket_set: BracketSet,
    tournament_name: str,
    played_at: datetime | None = None,
) -> MatchResult | None:
    """Convert a bracket set into a match result.

    Returns:
        None for byes, DQs without a score, and sets whose winner matches
        neither entrant.
    """
    slots = bracket_set.slots or []
    if len(slots) != 2 or not bracket_set.display_score:
        return None
    first, second = slots[0].entrant, slots[1].entrant
    if first is None or second is None:
        return None

    winner_id = str(bracket_set.winner_id)
    if winner_id == str(first.id):
        winner, loser = first, second
    elif winner_id == str(second.id):
        winner, loser = second, first
    else:
        return None

    return build_match(
        winner_tag=winner.tag,
        loser_tag=loser.tag,
        score=bracket_set.display_score,
        tournament_name=tournament_name,
        timestamp=played_at or datetime.now(UTC),
        match_id=str(bracket_set.id),
    )


async def import_tournament(
    service: MatchService,
    payload: TournamentPayload,
    importance: Importance | None = None,
    add_to_season: bool = True,
) -> ImportSummary:
    """Report every completed set of a tournament through the match service.

    Args:
        service: Match service to report through.
        payload: Tournament metadata and sets.
        importance: "major" raises Elo K-factors for these matches.
        add_to_season: Register the tournament on the open season first.
            Event winners are credited a tournament win the first time the
            tournament is added.

    Returns:
        Counts of imported, skipped, and duplicate sets, plus credited
        champions.

    Raises:
        NoActiveSeasonError: If ``add_to_season`` is set and no season is open.
    """
    added = False
    if add_to_season:
        added = await service.add_tournament(payload.to_ref())

    summary = ImportSummary(events=len(payload.events))
    played_at = payload.played_at
    for event in payload.events:
        logger.info(
            "importing_event", tournament=payload.name, event_name=event.name, sets=len(event.sets)
        )
        for bracket_set in event.sets:
            try:
                match = set_to_match(bracket_set, payload.name, played_at)
                if match is None:
                    summary.skipped += 1
                    continue
                context = MatchContext(
                    score=match.score,
                    tournament_name=payload.name,
                    importance=importance,
                    timestamp=played_at,
                )
                outcome = await service.report_match(match, context)
            except (InvalidMatchError, PlayerNotFoundError) as e:
                logger.warning("set_skipped", set_id=bracket_set.id, reason=e.message)
                summary.skipped += 1
                continue
            if outcome.duplicate:
                summary.duplicates += 1
            else:
                summary.imported += 1
        if added and event.champion is not None:
            await service.record_tournament_win(event.champion)
            summary.champions.append(event.champion)

    logger.info(
        "tournament_imported",
        tournament=payload.name,
        imported=summary.imported,
        skipped=summary.skipped,
        duplicates=summary.duplicates,
    )
    return summary


def load_payload(path: Path) -> TournamentPayload:
    """Read a tournament payload from a JSON file."""
    with path.open(encoding="utf-8") as f:
        return TournamentPayload.model_validate(json.load(f))
