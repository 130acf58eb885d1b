"""Round naming: short schedule keys versus bracket/long spellings."""

from __future__ import annotations

import re

from tournament.common import GROUP_ROUND

PLAYOFF_ROUNDS = ("r32", "r16", "r12", "quarter", "semi", "final", "third", "losers", "grand")
LOSERS_ROUNDS = ("lr1", "lr2", "lr3", "lr4", "lr5", "lr6", "lsemi", "lfinal")

_SPELLINGS: dict[str, tuple[str, ...]] = {
    GROUP_ROUND: ("group stage", "groups"),
    "r32": ("round32", "round of 32", "ro32", "w-r32"),
    "r16": ("round16", "round of 16", "ro16", "w-r16"),
    "r12": ("round12", "round of 12", "w-r12"),
    "quarter": (
        "quarterfinals",
        "quarterfinal",
        "quarter final",
        "quarter-final",
        "quarter finals",
        "qf",
    ),
    "semi": ("semifinals", "semifinal", "semi final", "semi-final", "semi finals", "sf"),
    "final": ("finals",),
    "third": ("thirdplace", "third place", "3rd place", "3rd", "bronze"),
    "losers": ("losers bracket", "lower bracket", "lb"),
    "grand": ("grandfinal", "grand final", "grand-final", "gf"),
    "lsemi": ("l semi-finals", "l semifinals", "losers semifinal", "losers semifinals"),
    "lfinal": ("l final", "losers final", "l-final"),
}
for _number in range(1, 7):
    _SPELLINGS[f"lr{_number}"] = (f"losers round{_number}", f"l-r{_number}")

_CANONICAL: dict[str, str] = {}
for _short, _spellings in _SPELLINGS.items():
    _CANONICAL[_short] = _short
    for _spelling in _spellings:
        _CANONICAL[_spelling] = _short

_LOSERS_ROUND_KEY = re.compile(r"round(\d+)")


def canonical_round(name: str | None) -> str | None:
    """Map any known round spelling to its short key, ``None`` when unknown."""
    if name is None:
        return None
    cleaned = " ".join(name.strip().lower().split())
    if not cleaned:
        return None
    if cleaned in _CANONICAL:
        return _CANONICAL[cleaned]
    compact = cleaned.replace(" ", "").replace("-", "")
    for spelling, short in _CANONICAL.items():
        if spelling.replace(" ", "").replace("-", "") == compact:
            return short
    return None


def losers_round(round_key: str) -> str:
    """Short key for a losers-bracket round: ``round2`` -> ``lr2``, ``final`` -> ``lfinal``."""
    match = _LOSERS_ROUND_KEY.fullmatch(round_key.strip().lower())
    if match is not None:
        return f"lr{match.group(1)}"
    short = canonical_round(round_key)
    if short == "semi":
        return "lsemi"
    if short == "final":
        return "lfinal"
    return canonical_round(f"losers {round_key}") or round_key


def rounds_match(first: str | None, second: str | None) -> bool:
    """True when two round names denote the same round in any spelling."""
    left = canonical_round(first)
    right = canonical_round(second)
    if left is None or right is None:
        return (first or "").strip().lower() == (second or "").strip().lower() != ""
    return left == right


__all__ = ["LOSERS_ROUNDS", "PLAYOFF_ROUNDS", "canonical_round", "losers_round", "rounds_match"]
