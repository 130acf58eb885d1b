"""Shared protocols and enums for the results engine."""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any, Protocol, runtime_checkable


class FixtureStatus(str, Enum):
    """Lifecycle of one scheduled fixture."""

    SCHEDULED = "scheduled"
    LIVE = "live"
    COMPLETED = "completed"


class ScoringMode(str, Enum):
    """How group-stage fixtures award points and complete."""

    BEST_OF = "bestof"
    PLAY_ALL = "playall"


class MatchPace(str, Enum):
    """How far apart consecutive group rounds are scheduled."""

    DAILY = "daily"
    TWICE_WEEKLY = "twice-weekly"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    FLEXIBLE = "flexible"

    @property
    def days_per_round(self) -> int | None:
        return _DAYS_PER_ROUND.get(self)


_DAYS_PER_ROUND = {
    MatchPace.DAILY: 1,
    MatchPace.TWICE_WEEKLY: 4,
    MatchPace.WEEKLY: 7,
    MatchPace.BIWEEKLY: 14,
}


@runtime_checkable
class RawStatsSource(Protocol):
    """Anything that can hand back one raw game payload by identifier."""

    def fetch_game(self, game_id: str) -> Mapping[str, Any]: ...


__all__ = [
    "FixtureStatus",
    "MatchPace",
    "RawStatsSource",
    "ScoringMode",
]
