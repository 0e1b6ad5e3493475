from power_rankings.models.match import Match, MatchResult, build_match
from power_rankings.models.player import Player, SkillRating, tag_key
from power_rankings.models.season import (
    HeadToHeadMatch,
    HeadToHeadRecord,
    OpponentRecord,
    PlayerSeasonStat,
    Season,
    SeasonRanking,
    SeasonSummary,
    TournamentRef,
    head_to_head_key,
)

__all__ = [
    "HeadToHeadMatch",
    "HeadToHeadRecord",
    "Match",
    "MatchResult",
    "OpponentRecord",
    "Player",
    "PlayerSeasonStat",
    "Season",
    "SeasonRanking",
    "SeasonSummary",
    "SkillRating",
    "TournamentRef",
    "build_match",
    "head_to_head_key",
    "tag_key",
]
