"""Attach series to scheduled fixtures and derive bracket scores."""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from datetime import date

from tournament.aliases import AliasIndex
from tournament.common import (
    BracketScore,
    BracketSlot,
    FixtureMap,
    RawMapResult,
    ScheduledFixture,
    Series,
)
from tournament.config import ScoringConfig
from tournament.protocol import FixtureStatus
from tournament.rounds import rounds_match
from tournament.series import score_for_team


@dataclass(frozen=True)
class LinkDecision:
    """Outcome of looking up the fixture for one series.

    ``fixture`` is ``None`` when no candidate exists; the caller decides whether to
    create an ad-hoc fixture or link by hand.
    """

    series: Series
    candidates: tuple[ScheduledFixture, ...]
    fixture: ScheduledFixture | None

    @property
    def is_ambiguous(self) -> bool:
        return len(self.candidates) > 1

    @property
    def already_linked(self) -> bool:
        return self.fixture is not None and bool(self.fixture.map_ids() & self.series.map_ids())


def fixture_status(maps: Sequence[FixtureMap], best_of: int, *, play_all: bool) -> FixtureStatus:
    """Status as a pure function of the stored maps and the series length."""
    if not maps:
        return FixtureStatus.SCHEDULED
    if play_all:
        return FixtureStatus.COMPLETED if len(maps) >= best_of else FixtureStatus.LIVE

    needed_wins = math.ceil(best_of / 2)
    team1_wins = sum(1 for item in maps if item.winner_side == 1)
    team2_wins = sum(1 for item in maps if item.winner_side == 2)
    if team1_wins >= needed_wins or team2_wins >= needed_wins:
        return FixtureStatus.COMPLETED
    return FixtureStatus.LIVE


def uses_play_all(fixture: ScheduledFixture, scoring: ScoringConfig) -> bool:
    """Play-all completion only applies to group fixtures of play-all divisions."""
    return fixture.is_group_stage and scoring.is_play_all


def with_maps(
    fixture: ScheduledFixture,
    maps: Iterable[FixtureMap],
    scoring: ScoringConfig,
) -> ScheduledFixture:
    maps = tuple(maps)
    status = fixture_status(maps, fixture.best_of, play_all=uses_play_all(fixture, scoring))
    return replace(fixture, maps=maps, status=status)


def candidate_fixtures(
    teams: tuple[str, str],
    schedule: Iterable[ScheduledFixture],
    index: AliasIndex,
) -> list[ScheduledFixture]:
    """All fixtures whose resolved pair matches ``teams`` in either order."""
    return [
        fixture
        for fixture in schedule
        if index.same_pair((fixture.team1, fixture.team2), teams)
    ]


def find_fixture_for_series(
    series: Series,
    schedule: Sequence[ScheduledFixture],
    index: AliasIndex,
) -> LinkDecision:
    """Pick the fixture a series belongs to, disambiguating repeated meetings."""
    candidates = candidate_fixtures(series.resolved_teams, schedule, index)
    if not candidates:
        return LinkDecision(series=series, candidates=(), fixture=None)

    series_ids = series.map_ids()
    for fixture in candidates:
        if fixture.map_ids() & series_ids:
            return LinkDecision(series=series, candidates=tuple(candidates), fixture=fixture)

    if len(candidates) == 1:
        return LinkDecision(series=series, candidates=tuple(candidates), fixture=candidates[0])

    pool = [fixture for fixture in candidates if not fixture.maps] or candidates
    series_day = series.first_timestamp.date() if series.first_timestamp is not None else None
    chosen = min(pool, key=lambda fixture: _date_distance(series_day, fixture.date))
    return LinkDecision(series=series, candidates=tuple(candidates), fixture=chosen)


def fixture_map_from_raw(
    raw_map: RawMapResult,
    fixture: ScheduledFixture,
    index: AliasIndex,
) -> FixtureMap:
    """Translate a raw map into the fixture's team order."""
    return FixtureMap(
        id=raw_map.id,
        map=raw_map.map,
        date=raw_map.date,
        score1=score_for_team(raw_map, index.resolve(fixture.team1), index),
        score2=score_for_team(raw_map, index.resolve(fixture.team2), index),
    )


def link_series(
    fixture: ScheduledFixture,
    series: Series,
    index: AliasIndex,
    scoring: ScoringConfig,
    *,
    skip: Iterable[str] = (),
) -> ScheduledFixture:
    """Append the series' maps not already on the fixture and recompute status.

    Map ids in ``skip`` are left out; ingestion passes the ids already stored on
    other fixtures so a map is never held twice.
    """
    if not index.same_pair((fixture.team1, fixture.team2), series.resolved_teams):
        raise ValueError(
            f"Series {series.id} ({' vs '.join(series.resolved_teams)}) does not belong to "
            f"fixture {fixture.id} ({fixture.team1} vs {fixture.team2})"
        )
    excluded = fixture.map_ids() | set(skip)
    appended = [
        fixture_map_from_raw(raw_map, fixture, index)
        for raw_map in series.maps
        if raw_map.id not in excluded
    ]
    if not appended:
        return fixture
    return with_maps(fixture, (*fixture.maps, *appended), scoring)


def replace_series(
    fixture: ScheduledFixture,
    series: Series,
    index: AliasIndex,
    scoring: ScoringConfig,
) -> ScheduledFixture:
    """Manual link: the fixture's maps become exactly the series' maps."""
    return link_series(with_maps(fixture, (), scoring), series, index, scoring)


def unlink_maps(
    fixture: ScheduledFixture,
    map_ids: Iterable[str],
    scoring: ScoringConfig,
) -> ScheduledFixture:
    """Remove maps by id and re-derive the fixture status."""
    removed = set(map_ids)
    if not fixture.map_ids() & removed:
        return fixture
    kept = [item for item in fixture.maps if item.id not in removed]
    return with_maps(fixture, kept, scoring)


def find_fixture_for_slot(
    slot: BracketSlot,
    schedule: Sequence[ScheduledFixture],
    index: AliasIndex,
    round_hint: str | None = None,
) -> ScheduledFixture | None:
    """Playoff fixture for a bracket slot; prefers the hinted round, then any round."""
    if not slot.team1.strip() or not slot.team2.strip():
        return None
    teams = index.resolve_pair(slot.team1, slot.team2)
    candidates = candidate_fixtures(teams, schedule, index)
    if not candidates:
        return None

    hint = round_hint if round_hint is not None else slot.round_hint
    if hint:
        for fixture in candidates:
            if not fixture.is_group_stage and rounds_match(fixture.round, hint):
                return fixture
    return candidates[0]


def resolve_bracket_score(
    slot: BracketSlot,
    schedule: Sequence[ScheduledFixture],
    index: AliasIndex,
    round_hint: str | None = None,
) -> BracketScore | None:
    """Score to show for a bracket slot, ``None`` when nothing can be derived."""
    if slot.score_override is not None:
        score1, score2 = slot.score_override
        return BracketScore(score1=score1, score2=score2)

    fixture = find_fixture_for_slot(slot, schedule, index, round_hint)
    if fixture is None or not fixture.maps:
        return None

    team1_wins, team2_wins = fixture.map_wins()
    slot_team1 = index.resolve(slot.team1).lower()
    if index.resolve(fixture.team1).lower() == slot_team1:
        return BracketScore(score1=team1_wins, score2=team2_wins)
    return BracketScore(score1=team2_wins, score2=team1_wins)


def _date_distance(series_day: date | None, fixture_day: date | None) -> float:
    if series_day is None or fixture_day is None:
        return math.inf
    return abs((fixture_day - series_day).days)


__all__ = [
    "LinkDecision",
    "candidate_fixtures",
    "find_fixture_for_series",
    "find_fixture_for_slot",
    "fixture_map_from_raw",
    "fixture_status",
    "link_series",
    "replace_series",
    "resolve_bracket_score",
    "unlink_maps",
    "uses_play_all",
    "with_maps",
]
