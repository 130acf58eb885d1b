"""Group-stage standings with configurable tie-breakers."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from functools import cmp_to_key

from tournament.common import ScheduledFixture, StandingsEntry, Team
from tournament.config import ScoringConfig
from tournament.tiebreakers import HeadToHead, get, pair_key

DEFAULT_GROUP = "A"


@dataclass
class _Tally:
    """Mutable accumulator used while walking fixtures."""

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

    def freeze(self) -> StandingsEntry:
        return StandingsEntry(
            name=self.name,
            group=self.group,
            played=self.played,
            points=self.points,
            matches_won=self.matches_won,
            matches_lost=self.matches_lost,
            maps_won=self.maps_won,
            maps_lost=self.maps_lost,
            frags_for=self.frags_for,
            frags_against=self.frags_against,
        )


def compute_standings(
    schedule: Iterable[ScheduledFixture],
    teams: Sequence[Team] = (),
    scoring: ScoringConfig | None = None,
) -> dict[str, list[StandingsEntry]]:
    """Aggregate group-stage fixtures and return ordered entries per group."""
    scoring = scoring or ScoringConfig()
    entries, head_to_head = tally_fixtures(schedule, teams, scoring)
    ordered = sort_entries(entries, scoring.tie_breakers, head_to_head)

    grouped: dict[str, list[StandingsEntry]] = {}
    for entry in ordered:
        grouped.setdefault(entry.group, []).append(entry)
    return {group: grouped[group] for group in sorted(grouped)}


def tally_fixtures(
    schedule: Iterable[ScheduledFixture],
    teams: Sequence[Team],
    scoring: ScoringConfig,
) -> tuple[list[StandingsEntry], HeadToHead]:
    """Return unsorted per-team entries plus the head-to-head series table."""
    tallies: dict[str, _Tally] = {}
    for team in teams:
        tallies.setdefault(team.name, _Tally(name=team.name, group=team.group or DEFAULT_GROUP))

    contributing = [fixture for fixture in schedule if fixture.is_group_stage and fixture.maps]

    extra_names: dict[str, str] = {}
    for fixture in contributing:
        for name in (fixture.team1, fixture.team2):
            if name not in tallies:
                extra_names.setdefault(name, fixture.group or DEFAULT_GROUP)
    for name in sorted(extra_names):
        tallies[name] = _Tally(name=name, group=extra_names[name])

    series_wins: dict[tuple[str, str], dict[str, int]] = {}
    for fixture in contributing:
        _apply_fixture(fixture, tallies, series_wins, scoring)

    entries = [tally.freeze() for tally in tallies.values()]
    return entries, HeadToHead(wins=series_wins)


def sort_entries(
    entries: Iterable[StandingsEntry],
    tie_breakers: Sequence[str],
    head_to_head: HeadToHead | None = None,
) -> list[StandingsEntry]:
    """Order entries by points, then each configured tie-breaker in turn."""
    results = head_to_head or HeadToHead()
    comparators = [get(name) for name in tie_breakers]

    def compare(first: StandingsEntry, second: StandingsEntry) -> int:
        if first.points != second.points:
            return second.points - first.points
        for comparator in comparators:
            outcome = comparator(first, second, results)
            if outcome != 0:
                return outcome
        if first.maps_won != second.maps_won:
            return second.maps_won - first.maps_won
        return (first.name > second.name) - (first.name < second.name)

    return sorted(entries, key=cmp_to_key(compare))


def _apply_fixture(
    fixture: ScheduledFixture,
    tallies: dict[str, _Tally],
    series_wins: dict[tuple[str, str], dict[str, int]],
    scoring: ScoringConfig,
) -> None:
    home = tallies[fixture.team1]
    away = tallies[fixture.team2]
    key = pair_key(fixture.team1, fixture.team2)
    series_wins.setdefault(key, {fixture.team1: 0, fixture.team2: 0})

    home_wins = 0
    away_wins = 0
    for item in fixture.maps:
        home.frags_for += item.score1
        home.frags_against += item.score2
        away.frags_for += item.score2
        away.frags_against += item.score1

        side = item.winner_side
        if side == 0:
            continue
        winner, loser = (home, away) if side == 1 else (away, home)
        if side == 1:
            home_wins += 1
        else:
            away_wins += 1
        winner.maps_won += 1
        loser.maps_lost += 1
        if scoring.is_play_all:
            winner.points += scoring.points_win
            loser.points += scoring.points_loss

    if home_wins == 0 and away_wins == 0:
        return

    home.played += 1
    away.played += 1
    if home_wins == away_wins:
        return

    winner, loser = (home, away) if home_wins > away_wins else (away, home)
    winner.matches_won += 1
    loser.matches_lost += 1
    series_wins[key][winner.name] = series_wins[key].get(winner.name, 0) + 1
    if not scoring.is_play_all:
        winner.points += scoring.points_win
        loser.points += scoring.points_loss


__all__ = ["compute_standings", "sort_entries", "tally_fixtures"]
