"""Parse ktxstats game documents into raw map results."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from tournament.common import RawMapResult

logger = logging.getLogger(__name__)

MAX_GAME_IDS_PER_BATCH = 50

_CONTROL_CHARACTERS = {
    0: "=", 2: "=", 5: "•", 10: " ", 14: "•", 15: "•",
    16: "[", 17: "]", 18: "0", 19: "1", 20: "2", 21: "3",
    22: "4", 23: "5", 24: "6", 25: "7", 26: "8", 27: "9",
    28: "•", 29: "=", 30: "=", 31: "=",
}
_QUERY_ID = re.compile(r"gameId=(\d+)", re.IGNORECASE)
_PATH_ID = re.compile(r"(?:games?|match(?:es)?|demos?)/(\d+)", re.IGNORECASE)
_TOKEN_SPLIT = re.compile(r"[\s,;]+")
_DATE_FORMATS = ("%Y-%m-%d %H:%M:%S %z", "%Y-%m-%dT%H:%M:%S%z", "%Y-%m-%d %H:%M:%S")


class PayloadError(ValueError):
    """Raised when a game document cannot be turned into a raw map result."""


class TooManyGameIdsError(ValueError):
    def __init__(self, count: int) -> None:
        super().__init__(
            f"Too many game ids: got {count}, at most {MAX_GAME_IDS_PER_BATCH} per batch"
        )
        self.count = count


@dataclass(frozen=True)
class ParseFailure:
    """One input item that could not be parsed; the rest of the batch continues."""

    source: str
    message: str


def clean_name(name: Any) -> str:
    """Map QuakeWorld high-bit and control characters to plain ASCII."""
    if not isinstance(name, str):
        return "" if name is None else str(name)
    cleaned: list[str] = []
    for char in name:
        code = ord(char)
        normalized = code - 128 if 128 <= code < 256 else code
        if normalized < 32:
            cleaned.append(_CONTROL_CHARACTERS.get(normalized, "?"))
        elif code >= 256:
            cleaned.append(char)
        else:
            cleaned.append(chr(normalized))
    return "".join(cleaned)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse ``2026-01-09 11:13:43 +0000`` style dates; naive values are taken as UTC."""
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    for date_format in _DATE_FORMATS:
        try:
            parsed = datetime.strptime(text, date_format)
        except ValueError:
            continue
        return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)


def is_game_document(data: Any) -> bool:
    if not isinstance(data, Mapping):
        return False
    has_entities = bool(data.get("teams") or data.get("players"))
    has_scores = bool(data.get("team_stats") or data.get("players"))
    return has_entities and has_scores


def parse_game(game_id: str, data: Mapping[str, Any]) -> RawMapResult:
    """Turn one ktxstats document into a raw map result."""
    if not isinstance(data, Mapping):
        raise PayloadError(f"game {game_id}: payload must be a JSON object")

    try:
        teams = _team_labels(data)
        scores = _team_scores(data, teams)
    except (TypeError, ValueError) as exc:
        raise PayloadError(f"game {game_id}: malformed teams or scores: {exc}") from exc
    if not teams:
        raise PayloadError(f"game {game_id}: no teams or players found")

    duration = data.get("duration")
    return RawMapResult(
        id=str(game_id),
        teams=tuple(teams),
        scores=scores,
        map=data.get("map"),
        date=data.get("date"),
        timestamp=parse_timestamp(data.get("date")),
        mode=data.get("mode"),
        duration=int(duration) if isinstance(duration, (int, float)) else None,
        payload=dict(data),
    )


def parse_documents(
    data: Any,
    source: str = "import",
) -> tuple[list[RawMapResult], list[ParseFailure]]:
    """Parse one document or a list of documents, reporting bad entries per item."""
    documents = data if isinstance(data, list) else [data]
    parsed: list[RawMapResult] = []
    failures: list[ParseFailure] = []

    for position, document in enumerate(documents):
        label = f"{source}[{position}]"
        try:
            if is_game_document(document):
                game_id = document.get("demo") or f"{source}-{position}"
                parsed.append(parse_game(str(game_id), document))
            elif isinstance(document, Mapping) and "matchupId" in document and "scores" in document:
                parsed.append(raw_map_from_record(document))
            else:
                raise PayloadError(f"{label}: not a ktxstats game document")
        except (PayloadError, TypeError, ValueError) as exc:
            logger.warning("skipping %s: %s", label, exc)
            failures.append(ParseFailure(source=label, message=str(exc)))

    return parsed, failures


def raw_map_from_record(record: Mapping[str, Any]) -> RawMapResult:
    """Rebuild a raw map result from its stored document record."""
    if "id" not in record:
        raise PayloadError("raw map record is missing its id")
    timestamp_value = record.get("timestamp")
    if isinstance(timestamp_value, (int, float)):
        timestamp = datetime.fromtimestamp(timestamp_value / 1000, tz=UTC)
    else:
        timestamp = parse_timestamp(record.get("date"))
    duration = record.get("duration")
    return RawMapResult(
        id=str(record["id"]),
        teams=tuple(str(team) for team in record.get("teams", [])),
        scores={str(team): int(score or 0) for team, score in dict(record.get("scores", {})).items()},
        map=record.get("map"),
        date=record.get("date"),
        timestamp=timestamp,
        mode=record.get("mode"),
        duration=int(duration) if isinstance(duration, (int, float)) else None,
        payload=dict(record.get("originalData") or {}),
    )


def raw_map_to_record(raw_map: RawMapResult) -> dict[str, Any]:
    return {
        "id": raw_map.id,
        "date": raw_map.date,
        "timestamp": None
        if raw_map.timestamp is None
        else int(raw_map.timestamp.timestamp() * 1000),
        "map": raw_map.map,
        "mode": raw_map.mode,
        "duration": raw_map.duration,
        "teams": list(raw_map.teams),
        "matchupId": "vs".join(sorted(raw_map.teams)),
        "scores": dict(raw_map.scores),
        "originalData": dict(raw_map.payload),
    }


def extract_game_ids(text: str | Iterable[str]) -> list[str]:
    """Pull game ids out of pasted ids and links, first occurrence order."""
    tokens = _TOKEN_SPLIT.split(text) if isinstance(text, str) else list(text)
    game_ids: list[str] = []
    for token in tokens:
        candidate = token.strip()
        if not candidate:
            continue
        if candidate.isdigit():
            game_id = candidate
        else:
            match = _QUERY_ID.search(candidate) or _PATH_ID.search(candidate)
            if match is None:
                continue
            game_id = match.group(1)
        if game_id not in game_ids:
            game_ids.append(game_id)

    if len(game_ids) > MAX_GAME_IDS_PER_BATCH:
        raise TooManyGameIdsError(len(game_ids))
    return game_ids


def _team_labels(data: Mapping[str, Any]) -> list[str]:
    raw_teams = data.get("teams") or []
    labels: list[str] = []
    for team in raw_teams:
        if isinstance(team, Mapping):
            value = team.get("name") or ""
        else:
            value = "" if team is None else team
        labels.append(clean_name(value).strip())

    if not labels:
        for player in data.get("players") or []:
            if not isinstance(player, Mapping):
                continue
            name = clean_name(player.get("name") or "").strip()
            if name and name not in labels:
                labels.append(name)

    return labels


def _team_scores(data: Mapping[str, Any], teams: list[str]) -> dict[str, int]:
    team_stats = data.get("team_stats")
    if isinstance(team_stats, Mapping) and team_stats:
        scores: dict[str, int] = {}
        for team, stats in team_stats.items():
            frags = stats.get("frags", 0) if isinstance(stats, Mapping) else 0
            scores[clean_name(team).strip()] = int(frags or 0)
        return scores

    scores = {team: 0 for team in teams}
    by_lower = {team.lower(): team for team in teams}
    for player in data.get("players") or []:
        if not isinstance(player, Mapping):
            continue
        player_team = clean_name(player.get("team") or "").strip().lower()
        player_name = clean_name(player.get("name") or "").strip().lower()
        stats = player.get("stats")
        frags = stats.get("frags") if isinstance(stats, Mapping) else None
        if frags is None:
            frags = player.get("frags", 0)
        frags = int(frags or 0)

        if player_team in by_lower:
            scores[by_lower[player_team]] += frags
        elif player_name in by_lower:
            scores[by_lower[player_name]] = frags
    return scores


__all__ = [
    "MAX_GAME_IDS_PER_BATCH",
    "ParseFailure",
    "PayloadError",
    "TooManyGameIdsError",
    "clean_name",
    "extract_game_ids",
    "is_game_document",
    "parse_documents",
    "parse_game",
    "parse_timestamp",
    "raw_map_from_record",
    "raw_map_to_record",
]
