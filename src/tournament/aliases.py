"""Case-insensitive team identifier resolution."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from tournament.common import Team

_TAG_BRACKETS = str.maketrans("", "", "[]")


@dataclass(frozen=True)
class AliasIndex:
    """Immutable lookup from lowercased identifier to canonical team name.

    Built once per resolution pass. Canonical names take precedence over tags and
    tags over declared aliases when two teams claim the same key.
    """

    lookup: Mapping[str, str]

    @classmethod
    def build(cls, teams: Iterable[Team]) -> AliasIndex:
        teams = list(teams)
        by_name: dict[str, str] = {}
        by_tag: dict[str, str] = {}
        by_alias: dict[str, str] = {}

        for team in teams:
            by_name.setdefault(_key(team.name), team.name)
            if team.tag:
                by_tag.setdefault(_key(team.tag), team.name)
                stripped = _key(team.tag.translate(_TAG_BRACKETS))
                if stripped:
                    by_tag.setdefault(stripped, team.name)
            for alias in team.aliases:
                if alias and alias.strip():
                    by_alias.setdefault(_key(alias), team.name)

        merged = {**by_alias, **by_tag, **by_name}
        return cls(lookup=MappingProxyType(merged))

    def resolve(self, identifier: str | None) -> str:
        """Return the canonical name, or the trimmed identifier itself when unknown."""
        if identifier is None:
            return ""
        cleaned = identifier.strip()
        return self.lookup.get(cleaned.lower(), cleaned)

    def resolve_pair(self, team1: str, team2: str) -> tuple[str, str]:
        return self.resolve(team1), self.resolve(team2)

    def same_pair(self, first: tuple[str, str], second: tuple[str, str]) -> bool:
        """Order-insensitive, case-insensitive comparison of two resolved pairs."""
        left = sorted(_key(name) for name in self.resolve_pair(*first))
        right = sorted(_key(name) for name in self.resolve_pair(*second))
        return left == right

    def is_known(self, identifier: str) -> bool:
        return _key(identifier) in self.lookup


def matchup_key(team1: str, team2: str) -> str:
    """Alphabetically sorted pair key used to group raw maps by matchup."""
    return "vs".join(sorted((team1, team2)))


def _key(value: str) -> str:
    return value.strip().lower()


__all__ = ["AliasIndex", "matchup_key"]
