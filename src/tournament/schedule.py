"""Round-robin fixture generation (circle method)."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import replace
from datetime import date, timedelta
from typing import TypeVar

from tournament.common import GROUP_ROUND, ScheduledFixture, Team
from tournament.protocol import FixtureStatus, MatchPace

T = TypeVar("T")


class UnassignedTeamsError(ValueError):
    """Raised when schedule generation meets teams without a group."""

    def __init__(self, unassigned_count: int) -> None:
        super().__init__(
            f"{unassigned_count} team(s) are not assigned to groups; assign all teams first"
        )
        self.unassigned_count = unassigned_count


def build_round_robin_rounds(entries: Sequence[T]) -> list[list[tuple[T, T]]]:
    """Return one cycle of rounds where every entry plays every other entry once.

    Odd counts are padded with a bye; pairings against the bye are dropped, so one
    entry sits out each round.
    """
    if len(entries) < 2:
        return []

    padded: list[T | None] = list(entries)
    if len(padded) % 2 != 0:
        padded.append(None)

    fixed = padded[0]
    rotating = padded[1:]
    rounds: list[list[tuple[T, T]]] = []

    for _ in range(len(padded) - 1):
        pairings: list[tuple[T, T]] = []
        last = rotating[-1]
        if fixed is not None and last is not None:
            pairings.append((fixed, last))
        for index in range((len(rotating) - 1) // 2):
            first = rotating[index]
            second = rotating[len(rotating) - 2 - index]
            if first is not None and second is not None:
                pairings.append((first, second))
        rounds.append(pairings)
        rotating.insert(0, rotating.pop())

    return rounds


def date_for_round(start_date: date | None, round_index: int, pace: MatchPace) -> date | None:
    """Scheduled day for a zero-based round index, ``None`` for flexible pace."""
    interval = pace.days_per_round
    if start_date is None or interval is None:
        return None
    return start_date + timedelta(days=round_index * interval)


def generate_schedule(
    teams: Sequence[Team],
    groups: Iterable[str] | None = None,
    *,
    meetings: int = 1,
    best_of: int = 3,
    pace: MatchPace = MatchPace.WEEKLY,
    start_date: date | None = None,
) -> list[ScheduledFixture]:
    """Generate group-stage fixtures for every group with at least two teams.

    ``groups`` fixes the group order; by default groups appear in order of first use
    in ``teams``. Raises ``UnassignedTeamsError`` if any team has no group.
    """
    if meetings <= 0:
        raise ValueError("meetings must be greater than 0")
    if best_of <= 0:
        raise ValueError("best_of must be greater than 0")

    unassigned_count = sum(1 for team in teams if not team.group)
    if unassigned_count:
        raise UnassignedTeamsError(unassigned_count)

    teams_by_group = group_teams(teams, groups)

    fixtures: list[ScheduledFixture] = []
    for group_name, group_teams_ in teams_by_group.items():
        rounds = build_round_robin_rounds(group_teams_)
        if not rounds:
            continue

        for cycle in range(meetings):
            offset = cycle * len(rounds)
            for round_index, pairings in enumerate(rounds):
                global_round = offset + round_index
                round_date = date_for_round(start_date, global_round, pace)
                for index, (team_a, team_b) in enumerate(pairings, start=1):
                    home, away = (team_a, team_b) if cycle % 2 == 0 else (team_b, team_a)
                    fixtures.append(
                        ScheduledFixture(
                            id=f"{group_name}-r{global_round + 1}-m{cycle + 1}-{index}",
                            team1=home.name,
                            team2=away.name,
                            round=GROUP_ROUND,
                            group=group_name,
                            round_num=global_round + 1,
                            meeting=cycle + 1,
                            best_of=best_of,
                            date=round_date,
                            status=FixtureStatus.SCHEDULED,
                        )
                    )

    return fixtures


def group_teams(teams: Sequence[Team], groups: Iterable[str] | None = None) -> dict[str, list[Team]]:
    """Partition teams by group label, preserving roster order within a group."""
    teams_by_group: dict[str, list[Team]] = {}
    if groups is not None:
        for group in groups:
            teams_by_group.setdefault(group, [])
    for team in teams:
        if team.group is None:
            continue
        if groups is not None and team.group not in teams_by_group:
            continue
        teams_by_group.setdefault(team.group, []).append(team)
    return teams_by_group


def new_fixture(
    fixture_id: str,
    team1: str,
    team2: str,
    *,
    round_name: str = GROUP_ROUND,
    group: str = "",
    best_of: int = 3,
    fixture_date: date | None = None,
    time: str = "",
) -> ScheduledFixture:
    """Build an ad-hoc fixture, rejecting empty or identical teams."""
    if not team1.strip() or not team2.strip():
        raise ValueError("Both teams are required for a fixture")
    if team1.strip().lower() == team2.strip().lower():
        raise ValueError(f"A fixture needs two different teams, got {team1!r} twice")
    if best_of <= 0:
        raise ValueError("best_of must be greater than 0")
    return ScheduledFixture(
        id=fixture_id,
        team1=team1.strip(),
        team2=team2.strip(),
        round=round_name,
        group=group,
        best_of=best_of,
        date=fixture_date,
        time=time,
    )


def redate_fixture(
    fixture: ScheduledFixture,
    round_num: int,
    *,
    start_date: date | None,
    pace: MatchPace,
) -> ScheduledFixture:
    """Move a group fixture to another round, re-deriving its date when possible."""
    if round_num <= 0:
        raise ValueError("round_num must be greater than 0")
    new_date = date_for_round(start_date, round_num - 1, pace)
    if new_date is None:
        return replace(fixture, round_num=round_num)
    return replace(fixture, round_num=round_num, date=new_date)


def rounds_per_cycle(team_count: int) -> int:
    """Number of rounds in one cycle for a group of ``team_count`` teams."""
    if team_count < 2:
        return 0
    return team_count - 1 if team_count % 2 == 0 else team_count


def fixtures_by_round(fixtures: Iterable[ScheduledFixture]) -> Mapping[int, list[ScheduledFixture]]:
    by_round: dict[int, list[ScheduledFixture]] = {}
    for fixture in fixtures:
        if fixture.round_num is None:
            continue
        by_round.setdefault(fixture.round_num, []).append(fixture)
    return dict(sorted(by_round.items()))


__all__ = [
    "UnassignedTeamsError",
    "build_round_robin_rounds",
    "date_for_round",
    "fixtures_by_round",
    "generate_schedule",
    "group_teams",
    "new_fixture",
    "redate_fixture",
    "rounds_per_cycle",
]
