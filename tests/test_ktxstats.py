"""Tests for ktxstats document parsing and game id extraction."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pytest

from sources.ktxstats import (
    MAX_GAME_IDS_PER_BATCH,
    PayloadError,
    TooManyGameIdsError,
    clean_name,
    extract_game_ids,
    parse_documents,
    parse_game,
    parse_timestamp,
    raw_map_from_record,
    raw_map_to_record,
)


def _team_game(**overrides) -> dict:
    document = {
        "version": 3,
        "date": "2026-01-09 11:13:43 +0000",
        "map": "dm2",
        "mode": "team",
        "duration": 1200,
        "demo": "4on4_red_vs_blue[dm2]",
        "teams": ["red", "blue"],
        "team_stats": {"red": {"frags": 180}, "blue": {"frags": 120}},
        "players": [
            {"name": "alice", "team": "red", "stats": {"frags": 100}},
            {"name": "bob", "team": "blue", "stats": {"frags": 120}},
        ],
    }
    document.update(overrides)
    return document


def test_parse_team_game_with_team_stats() -> None:
    result = parse_game("1001", _team_game())

    assert result.id == "1001"
    assert result.teams == ("red", "blue")
    assert dict(result.scores) == {"red": 180, "blue": 120}
    assert result.map == "dm2"
    assert result.mode == "team"
    assert result.duration == 1200
    assert result.timestamp == datetime(2026, 1, 9, 11, 13, 43, tzinfo=UTC)
    assert result.payload["demo"] == "4on4_red_vs_blue[dm2]"


def test_parse_team_game_sums_player_frags_without_team_stats() -> None:
    document = _team_game(team_stats=None)
    document["players"].append({"name": "carol", "team": "RED", "stats": {"frags": 30}})

    result = parse_game("1002", document)

    assert dict(result.scores) == {"red": 130, "blue": 120}


def test_parse_duel_uses_player_names() -> None:
    document = {
        "date": "2026-01-09 11:13:43 +0000",
        "map": "aerowalk",
        "mode": "duel",
        "players": [
            {"name": "alice", "stats": {"frags": 15}},
            {"name": "bob", "frags": 9},
        ],
    }
    result = parse_game("2001", document)

    assert result.teams == ("alice", "bob")
    assert dict(result.scores) == {"alice": 15, "bob": 9}


def test_team_names_are_cleaned() -> None:
    document = _team_game(
        teams=[{"name": "\x90red\x91"}, "bl\xf5e"],
        team_stats={"\x90red\x91": {"frags": 1}, "bl\xf5e": {"frags": 2}},
    )
    result = parse_game("3001", document)

    assert result.teams == ("[red]", "blue")
    assert dict(result.scores) == {"[red]": 1, "blue": 2}


def test_clean_name_maps_high_bit_and_control_characters() -> None:
    assert clean_name("\xe1\xec\xf0\xe8\xe1") == "alpha"
    assert clean_name("\x10x\x11") == "[x]"
    assert clean_name("\x12\x13") == "01"
    assert clean_name("café") == "cafi"
    assert clean_name("Ж") == "Ж"
    assert clean_name(None) == ""
    assert clean_name(42) == "42"


def test_document_without_teams_or_players_is_rejected() -> None:
    with pytest.raises(PayloadError):
        parse_game("x", {"map": "dm2"})
    with pytest.raises(PayloadError):
        parse_game("x", ["not", "a", "mapping"])


def test_parse_timestamp_formats() -> None:
    assert parse_timestamp("2026-01-09 11:13:43 +0200") == datetime(
        2026, 1, 9, 11, 13, 43, tzinfo=timezone(timedelta(hours=2))
    )
    assert parse_timestamp("2026-01-09 11:13:43") == datetime(2026, 1, 9, 11, 13, 43, tzinfo=UTC)
    assert parse_timestamp("2026-01-09T11:13:43+00:00") == datetime(2026, 1, 9, 11, 13, 43, tzinfo=UTC)
    assert parse_timestamp("last tuesday") is None
    assert parse_timestamp("") is None
    assert parse_timestamp(None) is None


def test_parse_documents_reports_bad_entries() -> None:
    parsed, failures = parse_documents(
        [_team_game(), {"hello": "world"}, _team_game(demo=None, map="e1m2")],
        source="upload.json",
    )

    assert [item.id for item in parsed] == ["4on4_red_vs_blue[dm2]", "upload.json-2"]
    assert len(failures) == 1
    assert failures[0].source == "upload.json[1]"


def test_parse_documents_accepts_a_single_document() -> None:
    parsed, failures = parse_documents(_team_game())

    assert len(parsed) == 1
    assert failures == []


def test_stored_record_round_trip_keeps_timestamp_and_scores() -> None:
    original = parse_game("1001", _team_game())
    record = raw_map_to_record(original)

    assert record["matchupId"] == "bluevsred"
    assert record["timestamp"] == int(original.timestamp.timestamp() * 1000)
    assert raw_map_from_record(record) == original

    parsed, failures = parse_documents([record])
    assert failures == []
    assert parsed[0] == original


def test_record_without_id_is_rejected() -> None:
    with pytest.raises(PayloadError):
        raw_map_from_record({"teams": ["a", "b"], "scores": {}})


def test_extract_game_ids_from_links_and_plain_ids() -> None:
    text = """
    https://hub.quakeworld.nu/games/?gameId=12345
    98765, 12345
    https://hub.quakeworld.nu/games/555
    not-a-link
    """
    assert extract_game_ids(text) == ["12345", "98765", "555"]
    assert extract_game_ids(["  ", "77"]) == ["77"]


def test_extract_game_ids_enforces_batch_limit() -> None:
    text = " ".join(str(1000 + index) for index in range(MAX_GAME_IDS_PER_BATCH + 1))

    with pytest.raises(TooManyGameIdsError) as excinfo:
        extract_game_ids(text)

    assert excinfo.value.count == MAX_GAME_IDS_PER_BATCH + 1
    assert len(extract_game_ids(" ".join(text.split()[:MAX_GAME_IDS_PER_BATCH]))) == MAX_GAME_IDS_PER_BATCH
