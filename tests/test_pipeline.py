"""Tests for batch ingestion and manual result operations."""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta

import pytest

from tournament.common import RawMapResult, ScheduledFixture, Team
from tournament.config import DivisionConfig
from tournament.division import Division
from tournament.pipeline import (
    add_fixture,
    clear_results,
    create_fixture_from_series,
    dedupe_raw_maps,
    ingest_results,
    link_series_to_fixture,
    move_fixture_to_round,
    remove_fixture,
    remove_series,
    update_fixture,
)
from tournament.protocol import FixtureStatus

START = datetime(2026, 1, 10, 20, 0, tzinfo=UTC)
TEAMS = (
    Team(name="Alpha", tag="[a]", group="A"),
    Team(name="Beta", tag="bt", group="A"),
    Team(name="Gamma", group="A"),
)


def _map(
    game_id: str,
    team1: str,
    score1: int,
    team2: str,
    score2: int,
    when: datetime | None = START,
    map_name: str = "dm2",
) -> RawMapResult:
    return RawMapResult(
        id=game_id,
        teams=(team1, team2),
        scores={team1: score1, team2: score2},
        map=map_name,
        date=None if when is None else when.strftime("%Y-%m-%d %H:%M:%S +0000"),
        timestamp=when,
    )


def _division(*fixtures: ScheduledFixture) -> Division:
    schedule = fixtures or (
        ScheduledFixture(id="ab", team1="Alpha", team2="Beta", group="A", date=date(2026, 1, 10)),
        ScheduledFixture(id="bc", team1="Beta", team2="Gamma", group="A", date=date(2026, 1, 17)),
    )
    return Division(
        config=DivisionConfig(name="test", start_date=date(2026, 1, 10)),
        teams=TEAMS,
        schedule=tuple(schedule),
    )


def test_ingest_links_series_and_completes_fixture() -> None:
    messages: list[str] = []
    summary = ingest_results(
        _division(),
        [
            _map("1", "[a]", 150, "bt", 100),
            _map("2", "Beta", 90, "Alpha", 120, START + timedelta(minutes=25), "e1m2"),
        ],
        echo=messages.append,
    )

    fixture = summary.division.fixture("ab")
    assert fixture.status is FixtureStatus.COMPLETED
    assert fixture.map_wins() == (2, 0)
    assert [(item.score1, item.score2) for item in fixture.maps] == [(150, 100), (120, 90)]
    assert len(summary.linked) == 1
    assert not summary.requires_action
    assert messages == ["added_maps=2 duplicates=0 series=1 linked=1 unlinked=0"]


def test_same_game_ingested_twice_is_recorded_once() -> None:
    first = ingest_results(_division(), [_map("1", "Alpha", 150, "Beta", 100)])
    second = ingest_results(first.division, [_map("1", "Alpha", 150, "Beta", 100)])

    assert second.duplicates == 1
    assert second.division is first.division
    assert len(second.division.raw_maps) == 1
    assert len(second.division.fixture("ab").maps) == 1


def test_same_content_under_another_id_is_a_duplicate() -> None:
    summary = ingest_results(
        _division(),
        [_map("1", "Alpha", 150, "Beta", 100), _map("hub-77", "Beta", 100, "Alpha", 150)],
    )

    assert summary.duplicates == 1
    assert [raw.id for raw in summary.added_maps] == ["1"]


def test_dedupe_keeps_arrival_order() -> None:
    existing = [_map("1", "Alpha", 150, "Beta", 100)]
    incoming = [
        _map("3", "Alpha", 1, "Gamma", 2),
        _map("1", "Alpha", 150, "Beta", 100),
        _map("2", "Beta", 1, "Gamma", 2),
        _map("3", "Alpha", 1, "Gamma", 2),
    ]
    unique, duplicates = dedupe_raw_maps(existing, incoming)

    assert [raw.id for raw in unique] == ["3", "2"]
    assert duplicates == 2


def test_late_map_joins_the_linked_fixture() -> None:
    first = ingest_results(_division(), [_map("1", "Alpha", 150, "Beta", 100)])
    assert first.division.fixture("ab").status is FixtureStatus.LIVE

    second = ingest_results(
        first.division, [_map("2", "Alpha", 90, "Beta", 100, START + timedelta(minutes=30))]
    )
    third = ingest_results(
        second.division, [_map("3", "Alpha", 90, "Beta", 50, START + timedelta(minutes=60))]
    )

    fixture = third.division.fixture("ab")
    assert [item.id for item in fixture.maps] == ["1", "2", "3"]
    assert fixture.status is FixtureStatus.COMPLETED


def test_unmatched_series_is_reported() -> None:
    summary = ingest_results(_division(), [_map("1", "Alpha", 150, "Gamma", 100)])

    assert summary.requires_action
    assert [series.id for series in summary.unlinked] == ["AlphavsGamma-0"]
    assert summary.division.raw_maps == summary.added_maps
    assert all(not fixture.maps for fixture in summary.division.schedule)


def test_ingest_order_inside_batch_does_not_matter() -> None:
    maps = [
        _map("1", "Alpha", 150, "Beta", 100),
        _map("2", "Alpha", 90, "Beta", 120, START + timedelta(minutes=30)),
        _map("3", "Gamma", 90, "Beta", 120, START + timedelta(days=7)),
    ]
    forward = ingest_results(_division(), maps).division
    backward = ingest_results(_division(), list(reversed(maps))).division

    assert forward.schedule == backward.schedule


def test_repeated_meetings_fill_separate_fixtures() -> None:
    division = _division(
        ScheduledFixture(id="m1", team1="Alpha", team2="Beta", group="A", date=date(2026, 1, 10)),
        ScheduledFixture(id="m2", team1="Beta", team2="Alpha", group="A", date=date(2026, 2, 7)),
    )
    summary = ingest_results(
        division,
        [
            _map("1", "Alpha", 150, "Beta", 100),
            _map("2", "Alpha", 150, "Beta", 100, datetime(2026, 2, 7, 20, 0, tzinfo=UTC)),
        ],
    )

    assert [item.id for item in summary.division.fixture("m1").maps] == ["1"]
    assert [item.id for item in summary.division.fixture("m2").maps] == ["2"]


def test_late_map_bridging_two_meetings_keeps_each_map_once() -> None:
    division = _division(
        ScheduledFixture(id="m1", team1="Alpha", team2="Beta", group="A", date=date(2026, 1, 10)),
        ScheduledFixture(id="m2", team1="Beta", team2="Alpha", group="A", date=date(2026, 1, 10)),
    )
    morning = datetime(2026, 1, 10, 10, 0, tzinfo=UTC)
    first = ingest_results(
        division,
        [
            _map("a", "Alpha", 150, "Beta", 100, morning),
            _map("c", "Alpha", 150, "Beta", 100, morning + timedelta(hours=3)),
        ],
    ).division
    assert sorted(len(fixture.maps) for fixture in first.schedule) == [1, 1]

    bridged = ingest_results(
        first, [_map("b", "Alpha", 90, "Beta", 120, morning + timedelta(minutes=90))]
    ).division

    held = [item.id for fixture in bridged.schedule for item in fixture.maps]
    assert sorted(held) == ["a", "b", "c"]
    again = ingest_results(
        bridged, [_map("b", "Alpha", 90, "Beta", 120, morning + timedelta(minutes=90))]
    )
    assert again.division.schedule == bridged.schedule


def test_remove_series_restores_status() -> None:
    summary = ingest_results(
        _division(),
        [_map("1", "Alpha", 150, "Beta", 100), _map("9", "Beta", 10, "Gamma", 5)],
    )
    series = next(item for item in summary.added if item.matchup_key == "AlphavsBeta")

    removed = remove_series(summary.division, series)

    assert removed.fixture("ab").status is FixtureStatus.SCHEDULED
    assert removed.fixture("ab").maps == ()
    assert [raw.id for raw in removed.raw_maps] == ["9"]
    assert removed.fixture("bc") is summary.division.fixture("bc")


def test_clear_results_resets_everything() -> None:
    summary = ingest_results(
        _division(),
        [_map("1", "Alpha", 150, "Beta", 100), _map("9", "Beta", 10, "Gamma", 5)],
    )
    cleared = clear_results(summary.division)

    assert cleared.raw_maps == ()
    assert all(fixture.status is FixtureStatus.SCHEDULED for fixture in cleared.schedule)
    assert all(fixture.maps == () for fixture in cleared.schedule)


def test_manual_link_replaces_fixture_maps() -> None:
    division = _division(
        ScheduledFixture(id="m1", team1="Alpha", team2="Beta", group="A", date=date(2026, 1, 10)),
        ScheduledFixture(id="m2", team1="Alpha", team2="Beta", group="A", date=date(2026, 2, 7)),
    )
    summary = ingest_results(division, [_map("1", "Alpha", 150, "Beta", 100)])
    series = summary.added[0]

    relinked = link_series_to_fixture(summary.division, series, "m2")

    assert [item.id for item in relinked.fixture("m2").maps] == ["1"]
    assert relinked.fixture("m1").maps == ()
    assert relinked.fixture("m1").status is FixtureStatus.SCHEDULED
    with pytest.raises(KeyError):
        link_series_to_fixture(summary.division, series, "missing")


def test_create_fixture_from_unlinked_series() -> None:
    summary = ingest_results(
        _division(),
        [
            _map("1", "Alpha", 150, "Gamma", 100),
            _map("2", "Gamma", 150, "Alpha", 100, START + timedelta(minutes=20)),
        ],
    )
    series = summary.unlinked[0]

    division = create_fixture_from_series(summary.division, series)
    fixture = division.fixture("adhoc-AlphavsGamma-0")

    assert fixture.status is FixtureStatus.COMPLETED
    assert (fixture.team1, fixture.team2) == ("Alpha", "Gamma")
    assert fixture.map_wins() == (1, 1)
    assert fixture.date == date(2026, 1, 10)
    assert fixture.best_of == 2


def test_add_update_and_remove_fixture() -> None:
    division = add_fixture(_division(), "sf1", "Alpha", "Gamma", round_name="semiFinals")
    fixture = division.fixture("sf1")
    assert fixture.best_of == 3
    assert fixture.status is FixtureStatus.SCHEDULED

    division = add_fixture(division, "f1", "Alpha", "Beta", round_name="final")
    assert division.fixture("f1").best_of == 5

    with pytest.raises(ValueError):
        add_fixture(division, "f1", "Alpha", "Beta")

    division = update_fixture(division, "sf1", {"time": "20:00", "best_of": 1})
    assert division.fixture("sf1").time == "20:00"
    with pytest.raises(ValueError):
        update_fixture(division, "sf1", {"status": FixtureStatus.COMPLETED})

    division = remove_fixture(division, "sf1")
    with pytest.raises(KeyError):
        division.fixture("sf1")


def test_move_fixture_to_round_redates_it() -> None:
    moved = move_fixture_to_round(_division(), "ab", 3)

    assert moved.fixture("ab").round_num == 3
    assert moved.fixture("ab").date == date(2026, 1, 24)
    assert moved.fixture("bc") == _division().fixture("bc")

    playoff = add_fixture(_division(), "sf1", "Alpha", "Gamma", round_name="semi")
    with pytest.raises(ValueError):
        move_fixture_to_round(playoff, "sf1", 2)
