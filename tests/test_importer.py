"""Tests for importing tournament sets."""

import json

import pytest

from power_rankings.core.config import AppConfig
from power_rankings.core.errors import NoActiveSeasonError
from power_rankings.services.importer import (
    BracketSet,
    TournamentPayload,
    import_tournament,
    load_payload,
    set_to_match,
)
from power_rankings.services.reporting import MatchService


def _entrant(entrant_id: int, name: str, gamer_tag: str | None = None) -> dict:
    participants = [{"player": {"gamerTag": gamer_tag}}] if gamer_tag else []
    return {"id": entrant_id, "name": name, "participants": participants}


def _set(set_id, winner_id, score="3-1", entrants=None) -> dict:
    if entrants is None:
        entrants = [_entrant(1, "Team | Alice", "Alice"), _entrant(2, "Bob")]
    return {
        "id": set_id,
        "displayScore": score,
        "winnerId": winner_id,
        "slots": [{"entrant": e} for e in entrants],
    }


PAYLOAD = {
    "id": 555,
    "slug": "weekly-12",
    "name": "Weekly 12",
    "startAt": 1735689600,
    "endAt": 1735700400,
    "numAttendees": 16,
    "events": [
        {
            "name": "Singles",
            "sets": [
                _set(100, 1),
                _set(101, 2, score="3-2"),
                _set(102, 1, entrants=[_entrant(1, "Alice")]),
                _set(103, 1, score=None),
                _set(104, 99),
            ],
        }
    ],
}


class TestSetToMatch:
    """Tests for converting bracket sets."""

    def test_prefers_gamer_tag(self):
        match = set_to_match(BracketSet.model_validate(_set(100, 1)), "Weekly 12")
        assert match.winner_tag == "Alice"
        assert match.loser_tag == "Bob"
        assert match.score == "3-1"
        assert match.match_id == "100"

    def test_winner_id_compared_as_string(self):
        match = set_to_match(BracketSet.model_validate(_set(100, "2")), "Weekly 12")
        assert match.winner_tag == "Bob"

    @pytest.mark.parametrize(
        "raw",
        [
            _set(1, 1, entrants=[_entrant(1, "Alice")]),
            _set(2, 1, score=None),
            _set(3, 1, score=""),
            _set(4, 99),
        ],
        ids=["bye", "no-score", "empty-score", "unknown-winner"],
    )
    def test_skips_unplayable_sets(self, raw):
        assert set_to_match(BracketSet.model_validate(raw), "Weekly 12") is None


class TestImportTournament:
    """Tests for importing a whole tournament through the service."""

    @pytest.fixture
    async def service(self, tmp_path):
        service = await MatchService.open(AppConfig(data_dir=str(tmp_path)))
        yield service
        await service.close()

    @pytest.mark.asyncio
    async def test_imports_and_registers_tournament(self, service):
        await service.open_season("Spring")
        summary = await import_tournament(service, TournamentPayload.model_validate(PAYLOAD))

        assert (summary.imported, summary.skipped, summary.duplicates) == (2, 3, 0)
        assert summary.events == 1
        season = service.seasons.current
        assert [e.slug for e in season.events] == ["tournament/weekly-12"]
        assert season.events[0].num_attendees == 16
        assert season.match_count == 2

    @pytest.mark.asyncio
    async def test_reimport_counts_duplicates(self, service):
        await service.open_season("Spring")
        payload = TournamentPayload.model_validate(PAYLOAD)
        await import_tournament(service, payload)
        summary = await import_tournament(service, payload)

        assert (summary.imported, summary.duplicates) == (0, 2)
        assert len(service.seasons.current.events) == 1
        alice = await service.players.get_by_tag("Alice")
        assert alice.matches_played == 2

    @pytest.mark.asyncio
    async def test_needs_open_season(self, service):
        with pytest.raises(NoActiveSeasonError):
            await import_tournament(service, TournamentPayload.model_validate(PAYLOAD))

    @pytest.mark.asyncio
    async def test_without_season(self, service):
        summary = await import_tournament(
            service, TournamentPayload.model_validate(PAYLOAD), add_to_season=False
        )
        assert summary.imported == 2
        assert await service.matches.count() == 2

    @pytest.mark.asyncio
    async def test_credits_event_champion_once(self, service):
        """Test the first-place entrant gets one tournament win, even on reimport."""
        await service.open_season("Spring")
        standings = [
            {"placement": 2, "entrant": _entrant(2, "Bob")},
            {"placement": 1, "entrant": _entrant(1, "Team | Alice", "alice")},
        ]
        event = {**PAYLOAD["events"][0], "standings": standings}
        payload = TournamentPayload.model_validate({**PAYLOAD, "events": [event]})

        summary = await import_tournament(service, payload)
        again = await import_tournament(service, payload)

        assert summary.champions == ["alice"]
        assert again.champions == []
        assert service.seasons.current.player_records["Alice"].tournament_wins == 1
        rankings = await service.season_rankings()
        assert {r.tag: r.tournament_wins for r in rankings} == {"Alice": 1, "Bob": 0}

    def test_champion_missing_without_standings(self):
        payload = TournamentPayload.model_validate(PAYLOAD)
        assert payload.events[0].champion is None

    @pytest.mark.asyncio
    async def test_major_import(self, service):
        payload = {**PAYLOAD, "events": [{"name": "Singles", "sets": [_set(100, 1)]}]}
        await import_tournament(
            service,
            TournamentPayload.model_validate(payload),
            importance="major",
            add_to_season=False,
        )
        alice = await service.players.get_by_tag("Alice")
        assert alice.elo_score == 1024.0


def test_load_payload(tmp_path):
    path = tmp_path / "weekly-12.json"
    path.write_text(json.dumps(PAYLOAD))
    payload = load_payload(path)
    assert payload.name == "Weekly 12"
    assert payload.end_at == 1735700400
    assert len(payload.events[0].sets) == 5
