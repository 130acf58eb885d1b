"""Shared record types for the results engine."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from tournament.protocol import FixtureStatus

GROUP_ROUND = "group"


@dataclass(frozen=True)
class Team:
    """Roster entry; consumed read-only by the engine."""

    name: str
    tag: str = ""
    country: str = ""
    group: str | None = None
    aliases: tuple[str, ...] = ()


@dataclass(frozen=True)
class FixtureMap:
    """One map stored on a fixture, scores in fixture team order."""

    id: str
    map: str | None
    date: str | None
    score1: int
    score2: int
    forfeit: str | None = None

    @property
    def winner_side(self) -> int:
        """Return 1 or 2 for the winning side, 0 for a level map.

        A forfeited map (``forfeit`` is ``"team1"`` or ``"team2"``) goes to the
        other side whatever the frags say.
        """
        if self.forfeit == "team1":
            return 2
        if self.forfeit == "team2":
            return 1
        if self.score1 > self.score2:
            return 1
        if self.score2 > self.score1:
            return 2
        return 0


@dataclass(frozen=True)
class ScheduledFixture:
    """Scheduled match entry that accumulates map results until complete."""

    id: str
    team1: str
    team2: str
    round: str = GROUP_ROUND
    group: str = ""
    round_num: int | None = None
    meeting: int | None = None
    best_of: int = 3
    date: date | None = None
    time: str = ""
    status: FixtureStatus = FixtureStatus.SCHEDULED
    maps: tuple[FixtureMap, ...] = ()
    forfeit: str | None = None

    @property
    def is_group_stage(self) -> bool:
        return self.round == GROUP_ROUND

    def map_ids(self) -> frozenset[str]:
        return frozenset(item.id for item in self.maps)

    def map_wins(self) -> tuple[int, int]:
        """Return (team1_map_wins, team2_map_wins)."""
        team1_wins = sum(1 for item in self.maps if item.winner_side == 1)
        team2_wins = sum(1 for item in self.maps if item.winner_side == 2)
        return team1_wins, team2_wins


@dataclass(frozen=True)
class RawMapResult:
    """Canonical per-game payload produced by the stats parsers."""

    id: str
    teams: tuple[str, ...]
    scores: Mapping[str, int]
    map: str | None = None
    date: str | None = None
    timestamp: datetime | None = None
    mode: str | None = None
    duration: int | None = None
    payload: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    def score_for(self, label: str) -> int:
        return int(self.scores.get(label, 0) or 0)

    def fingerprint(self) -> str:
        """Content key used to detect the same game imported under another id."""
        when = self.timestamp.isoformat() if self.timestamp is not None else (self.date or "")
        return f"{self.map}|{'vs'.join(sorted(self.teams))}|{when}"


@dataclass(frozen=True)
class Series:
    """One best-of/play-all contest detected from raw maps; never persisted."""

    id: str
    matchup_key: str
    series_index: int
    resolved_teams: tuple[str, str]
    raw_teams: tuple[str, ...]
    maps: tuple[RawMapResult, ...]
    map_wins: Mapping[str, int]
    total_frags: Mapping[str, int]

    @property
    def winner(self) -> str | None:
        team1, team2 = self.resolved_teams
        wins1 = self.map_wins.get(team1, 0)
        wins2 = self.map_wins.get(team2, 0)
        if wins1 > wins2:
            return team1
        if wins2 > wins1:
            return team2
        return None

    @property
    def first_timestamp(self) -> datetime | None:
        return self.maps[0].timestamp if self.maps else None

    def map_ids(self) -> frozenset[str]:
        return frozenset(item.id for item in self.maps)

    @property
    def date_display(self) -> str:
        first = _day_part(self.maps[0].date) if self.maps else ""
        last = _day_part(self.maps[-1].date) if self.maps else ""
        return first if first == last else f"{first} - {last}"


@dataclass(frozen=True)
class StandingsEntry:
    """Per-team aggregate derived from group-stage fixtures."""

    name: str
    group: str
    played: int = 0
    points: int = 0
    matches_won: int = 0
    matches_lost: int = 0
    maps_won: int = 0
    maps_lost: int = 0
    frags_for: int = 0
    frags_against: int = 0

    @property
    def map_diff(self) -> int:
        return self.maps_won - self.maps_lost

    @property
    def frag_diff(self) -> int:
        return self.frags_for - self.frags_against


@dataclass(frozen=True)
class BracketSlot:
    """Playoff position with two possibly provisional team names."""

    id: str
    team1: str = ""
    team2: str = ""
    score_override: tuple[int, int] | None = None
    round_hint: str | None = None


@dataclass(frozen=True)
class BracketScore:
    score1: int
    score2: int


def _day_part(value: str | None) -> str:
    if not value:
        return ""
    return value.split(" ")[0]
