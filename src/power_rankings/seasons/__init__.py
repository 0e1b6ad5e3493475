from .aggregator import (
    CURRENT_SEASON_ID,
    RecordOutcome,
    SeasonAggregator,
    compute_season_rankings,
    strength_of_schedule,
)

__all__ = [
    "CURRENT_SEASON_ID",
    "RecordOutcome",
    "SeasonAggregator",
    "compute_season_rankings",
    "strength_of_schedule",
]
