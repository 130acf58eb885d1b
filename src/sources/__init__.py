"""Adapters for the collaborators around the engine: stats feeds, moderation, documents."""

from sources.hub import FetchFailure, HubStatsSource, StatsSourceError, fetch_many
from sources.ktxstats import ParseFailure, PayloadError, extract_game_ids, parse_documents, parse_game

__all__ = [
    "FetchFailure",
    "HubStatsSource",
    "ParseFailure",
    "PayloadError",
    "StatsSourceError",
    "extract_game_ids",
    "fetch_many",
    "parse_documents",
    "parse_game",
]
