"""Convert between division documents and engine snapshots."""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import date
from pathlib import Path
from typing import Any

from sources.ktxstats import raw_map_from_record, raw_map_to_record
from tournament.common import BracketSlot, FixtureMap, ScheduledFixture, Team
from tournament.config import DivisionConfig
from tournament.division import Division
from tournament.protocol import FixtureStatus
from tournament.rounds import losers_round


def team_from_record(record: Mapping[str, Any]) -> Team:
    aliases = record.get("aliases") or ()
    if isinstance(aliases, str):
        aliases = [alias.strip() for alias in aliases.split(",")]
    return Team(
        name=str(record["name"]).strip(),
        tag=str(record.get("tag") or ""),
        country=str(record.get("country") or ""),
        group=record.get("group") or None,
        aliases=tuple(alias for alias in aliases if alias),
    )


def team_to_record(team: Team) -> dict[str, Any]:
    return {
        "name": team.name,
        "tag": team.tag,
        "country": team.country,
        "group": team.group or "",
        "aliases": list(team.aliases),
    }


def fixture_from_record(record: Mapping[str, Any]) -> ScheduledFixture:
    maps = tuple(
        FixtureMap(
            id=str(item["id"]),
            map=item.get("map"),
            date=item.get("date"),
            score1=int(item.get("score1") or 0),
            score2=int(item.get("score2") or 0),
            forfeit=item.get("forfeit") or None,
        )
        for item in record.get("maps") or []
    )
    raw_date = record.get("date")
    return ScheduledFixture(
        id=str(record["id"]),
        team1=str(record["team1"]),
        team2=str(record["team2"]),
        round=str(record.get("round") or "group"),
        group=str(record.get("group") or ""),
        round_num=record.get("roundNum"),
        meeting=record.get("meeting"),
        best_of=int(record.get("bestOf") or 3),
        date=date.fromisoformat(raw_date[:10]) if raw_date else None,
        time=str(record.get("time") or ""),
        status=FixtureStatus(record.get("status") or FixtureStatus.SCHEDULED.value),
        maps=maps,
        forfeit=record.get("forfeit") or None,
    )


def _map_to_record(item: FixtureMap) -> dict[str, Any]:
    record: dict[str, Any] = {
        "id": item.id,
        "map": item.map,
        "date": item.date,
        "score1": item.score1,
        "score2": item.score2,
    }
    if item.forfeit is not None:
        record["forfeit"] = item.forfeit
    return record


def fixture_to_record(fixture: ScheduledFixture) -> dict[str, Any]:
    record: dict[str, Any] = {
        "id": fixture.id,
        "team1": fixture.team1,
        "team2": fixture.team2,
        "group": fixture.group,
        "round": fixture.round,
        "bestOf": fixture.best_of,
        "date": "" if fixture.date is None else fixture.date.isoformat(),
        "time": fixture.time,
        "status": fixture.status.value,
        "maps": [_map_to_record(item) for item in fixture.maps],
    }
    if fixture.round_num is not None:
        record["roundNum"] = fixture.round_num
    if fixture.meeting is not None:
        record["meeting"] = fixture.meeting
    if fixture.forfeit is not None:
        record["forfeit"] = fixture.forfeit
    return record


def slot_from_record(record: Mapping[str, Any], round_hint: str | None) -> BracketSlot:
    override = record.get("scoreOverride")
    if isinstance(override, Mapping):
        override = (override.get("score1"), override.get("score2"))
    score_override = None
    if override is not None and all(value is not None for value in override):
        first, second = override
        score_override = (int(first), int(second))
    return BracketSlot(
        id=str(record.get("id") or ""),
        team1=str(record.get("team1") or ""),
        team2=str(record.get("team2") or ""),
        score_override=score_override,
        round_hint=round_hint,
    )


def bracket_slots_from_document(bracket: Mapping[str, Any] | None) -> list[BracketSlot]:
    """Flatten the bracket's side/round structure into slots carrying round hints."""
    slots: list[BracketSlot] = []
    if not bracket:
        return slots
    for side in ("winners", "losers"):
        rounds = bracket.get(side) or {}
        if not isinstance(rounds, Mapping):
            continue
        for round_key, entries in rounds.items():
            hint = losers_round(round_key) if side == "losers" else round_key
            for record in entries if isinstance(entries, list) else [entries]:
                if isinstance(record, Mapping):
                    slots.append(slot_from_record(record, hint))
    for round_key in ("thirdPlace", "grandFinal"):
        record = bracket.get(round_key)
        if isinstance(record, Mapping):
            slots.append(slot_from_record(record, round_key))
    return slots


def division_from_document(document: Mapping[str, Any], config: DivisionConfig) -> Division:
    """Build a snapshot from the ``teams``/``schedule``/``rawMaps`` collections."""
    return Division(
        config=config,
        teams=tuple(team_from_record(record) for record in document.get("teams") or []),
        schedule=tuple(fixture_from_record(record) for record in document.get("schedule") or []),
        raw_maps=tuple(raw_map_from_record(record) for record in document.get("rawMaps") or []),
    )


def division_to_document(
    division: Division,
    base: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Write the three engine-owned collections back, leaving other keys untouched."""
    document = dict(base or {})
    document["teams"] = [team_to_record(team) for team in division.teams]
    document["schedule"] = [fixture_to_record(fixture) for fixture in division.schedule]
    document["rawMaps"] = [raw_map_to_record(raw_map) for raw_map in division.raw_maps]
    return document


def read_document(file_path: Path) -> dict[str, Any]:
    if not file_path.is_file():
        raise FileNotFoundError(f"Division document not found: {file_path}")
    with file_path.open("r", encoding="utf-8") as file:
        document = json.load(file)
    if not isinstance(document, dict):
        raise ValueError(f"{file_path}: division document must be a JSON object")
    return document


def write_document(file_path: Path, document: Mapping[str, Any]) -> None:
    with file_path.open("w", encoding="utf-8") as file:
        json.dump(document, file, indent=2, ensure_ascii=False)
        file.write("\n")


__all__ = [
    "bracket_slots_from_document",
    "division_from_document",
    "division_to_document",
    "fixture_from_record",
    "fixture_to_record",
    "read_document",
    "team_from_record",
    "team_to_record",
    "write_document",
]
