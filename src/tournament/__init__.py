"""Tournament results resolution engine."""

from tournament.aliases import AliasIndex
from tournament.common import (
    BracketScore,
    BracketSlot,
    FixtureMap,
    RawMapResult,
    ScheduledFixture,
    Series,
    StandingsEntry,
    Team,
)
from tournament.config import DivisionConfig, ScoringConfig
from tournament.division import Division
from tournament.linking import resolve_bracket_score
from tournament.pipeline import IngestSummary, ingest_results
from tournament.protocol import FixtureStatus, MatchPace, ScoringMode
from tournament.schedule import UnassignedTeamsError, generate_schedule
from tournament.series import detect_series
from tournament.standings import compute_standings

__all__ = [
    "AliasIndex",
    "BracketScore",
    "BracketSlot",
    "Division",
    "DivisionConfig",
    "FixtureMap",
    "FixtureStatus",
    "IngestSummary",
    "MatchPace",
    "RawMapResult",
    "ScheduledFixture",
    "ScoringConfig",
    "ScoringMode",
    "Series",
    "StandingsEntry",
    "Team",
    "UnassignedTeamsError",
    "compute_standings",
    "detect_series",
    "generate_schedule",
    "ingest_results",
    "resolve_bracket_score",
]
