"""Cluster raw per-map results into series."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import timedelta
from types import MappingProxyType

from tournament.aliases import AliasIndex, matchup_key
from tournament.common import RawMapResult, Series
from tournament.config import DEFAULT_SERIES_GAP


def detect_series(
    raw_maps: Iterable[RawMapResult],
    index: AliasIndex,
    *,
    gap: timedelta = DEFAULT_SERIES_GAP,
) -> list[Series]:
    """Group raw maps by resolved matchup, then split on time gaps.

    A new series starts when two consecutive maps of a matchup are more than ``gap``
    apart, or when either of them has no timestamp.
    """
    matchups: dict[str, list[tuple[RawMapResult, tuple[str, str]]]] = {}
    for raw_map in raw_maps:
        resolved = resolved_pair(raw_map, index)
        key = matchup_key(*resolved)
        matchups.setdefault(key, []).append((raw_map, resolved))

    detected: list[Series] = []
    for key in sorted(matchups):
        ordered = sorted(matchups[key], key=lambda item: _sort_key(item[0]))
        chunk: list[RawMapResult] = []
        series_index = 0
        resolved = ordered[0][1]
        for raw_map, _ in ordered:
            if chunk and _breaks_series(chunk[-1], raw_map, gap):
                detected.append(build_series(key, series_index, resolved, chunk, index))
                series_index += 1
                chunk = []
            chunk.append(raw_map)
        if chunk:
            detected.append(build_series(key, series_index, resolved, chunk, index))

    return detected


def resolved_pair(raw_map: RawMapResult, index: AliasIndex) -> tuple[str, str]:
    """Alphabetically sorted resolved team pair for one raw map."""
    labels = list(raw_map.teams[:2])
    while len(labels) < 2:
        labels.append("")
    first, second = sorted(index.resolve(label) for label in labels)
    return first, second


def build_series(
    key: str,
    series_index: int,
    resolved: tuple[str, str],
    maps: Sequence[RawMapResult],
    index: AliasIndex,
) -> Series:
    """Tally map wins and frags per resolved team, whatever label each map used."""
    team1, team2 = resolved
    map_wins = {team1: 0, team2: 0}
    total_frags = {team1: 0, team2: 0}

    for raw_map in maps:
        sides = [(index.resolve(label), raw_map.score_for(label)) for label in raw_map.teams[:2]]
        for name, frags in sides:
            if name in total_frags:
                total_frags[name] += frags
        if len(sides) == 2:
            (name1, score1), (name2, score2) = sides
            if score1 > score2 and name1 in map_wins:
                map_wins[name1] += 1
            elif score2 > score1 and name2 in map_wins:
                map_wins[name2] += 1

    return Series(
        id=f"{key}-{series_index}",
        matchup_key=key,
        series_index=series_index,
        resolved_teams=resolved,
        raw_teams=tuple(maps[0].teams),
        maps=tuple(maps),
        map_wins=MappingProxyType(map_wins),
        total_frags=MappingProxyType(total_frags),
    )


def score_for_team(raw_map: RawMapResult, team: str, index: AliasIndex) -> int:
    """Frags for the raw label of ``raw_map`` that resolves to ``team``."""
    target = team.strip().lower()
    for label in raw_map.teams:
        if index.resolve(label).lower() == target:
            return raw_map.score_for(label)
    return 0


def _breaks_series(previous: RawMapResult, current: RawMapResult, gap: timedelta) -> bool:
    if previous.timestamp is None or current.timestamp is None:
        return True
    return current.timestamp - previous.timestamp > gap


def _sort_key(raw_map: RawMapResult) -> tuple[int, float, str]:
    if raw_map.timestamp is None:
        return 0, 0.0, raw_map.id
    return 1, raw_map.timestamp.timestamp(), raw_map.id


__all__ = ["build_series", "detect_series", "resolved_pair", "score_for_team"]
