"""Registry of named standings tie-breakers.

Each tie-breaker is a pure comparison over two standings entries. A negative result
ranks ``first`` ahead of ``second``, a positive one ranks ``second`` ahead, and zero
passes the decision on to the next configured tie-breaker.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Callable

from tournament.common import StandingsEntry


@dataclass(frozen=True)
class HeadToHead:
    """Series wins between pairs of teams, keyed by the sorted pair."""

    wins: Mapping[tuple[str, str], Mapping[str, int]] = field(default_factory=dict)

    def wins_for(self, team: str, opponent: str) -> int:
        key = pair_key(team, opponent)
        return self.wins.get(key, {}).get(team, 0)


TieBreaker = Callable[[StandingsEntry, StandingsEntry, HeadToHead], int]

TIE_BREAKERS: dict[str, TieBreaker] = {}


def register(name: str, tie_breaker: TieBreaker) -> None:
    """Register one tie-breaker under a configuration name."""
    if name in TIE_BREAKERS:
        raise ValueError(f"Duplicate tie-breaker registration for name={name}")
    TIE_BREAKERS[name] = tie_breaker


def get(name: str) -> TieBreaker:
    try:
        return TIE_BREAKERS[name]
    except KeyError as exc:
        available = ", ".join(sorted(TIE_BREAKERS))
        raise KeyError(f"No tie-breaker registered for {name}. Available: {available}") from exc


def pair_key(team1: str, team2: str) -> tuple[str, str]:
    first, second = sorted((team1, team2))
    return first, second


def map_diff(first: StandingsEntry, second: StandingsEntry, _: HeadToHead) -> int:
    return second.map_diff - first.map_diff


def frag_diff(first: StandingsEntry, second: StandingsEntry, _: HeadToHead) -> int:
    return second.frag_diff - first.frag_diff


def head_to_head(first: StandingsEntry, second: StandingsEntry, results: HeadToHead) -> int:
    return results.wins_for(second.name, first.name) - results.wins_for(first.name, second.name)


register("mapDiff", map_diff)
register("fragDiff", frag_diff)
register("headToHead", head_to_head)


__all__ = ["HeadToHead", "TIE_BREAKERS", "TieBreaker", "get", "pair_key", "register"]
