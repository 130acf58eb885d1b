"""Ingestion and manual result operations over a division snapshot."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, replace
from datetime import date
from typing import Any

from tournament.common import GROUP_ROUND, RawMapResult, ScheduledFixture, Series
from tournament.division import Division
from tournament.linking import (
    LinkDecision,
    find_fixture_for_series,
    fixture_map_from_raw,
    link_series,
    replace_series,
    unlink_maps,
    with_maps,
)
from tournament.protocol import FixtureStatus
from tournament.schedule import new_fixture, redate_fixture

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IngestSummary:
    """Outcome of one ingestion batch."""

    division: Division
    added_maps: tuple[RawMapResult, ...]
    added: tuple[Series, ...]
    duplicates: int
    linked: tuple[LinkDecision, ...]
    unlinked: tuple[Series, ...]

    @property
    def requires_action(self) -> bool:
        """True when some new series could not be attached to any fixture."""
        return bool(self.unlinked)


def dedupe_raw_maps(
    existing: Iterable[RawMapResult],
    incoming: Iterable[RawMapResult],
) -> tuple[list[RawMapResult], int]:
    """Drop incoming maps already known by id or by content fingerprint.

    Duplicates inside ``incoming`` itself are dropped as well. Returns the unique
    maps in arrival order and the number skipped.
    """
    seen_ids: set[str] = set()
    seen_fingerprints: set[str] = set()
    for raw_map in existing:
        seen_ids.add(raw_map.id)
        seen_fingerprints.add(raw_map.fingerprint())

    unique: list[RawMapResult] = []
    duplicates = 0
    for raw_map in incoming:
        fingerprint = raw_map.fingerprint()
        if raw_map.id in seen_ids or fingerprint in seen_fingerprints:
            duplicates += 1
            continue
        seen_ids.add(raw_map.id)
        seen_fingerprints.add(fingerprint)
        unique.append(raw_map)
    return unique, duplicates


def ingest_results(
    division: Division,
    raw_results: Iterable[RawMapResult],
    *,
    echo: Callable[[str], None] | None = None,
) -> IngestSummary:
    """Append new raw maps and link every series that gained maps.

    The whole batch is applied to one snapshot: series detection sees every new
    map at once, so arrival order inside the batch does not matter.
    """
    unique, duplicates = dedupe_raw_maps(division.raw_maps, raw_results)
    if duplicates:
        logger.info("skipped %d duplicate map(s)", duplicates)
    if not unique:
        return IngestSummary(
            division=division,
            added_maps=(),
            added=(),
            duplicates=duplicates,
            linked=(),
            unlinked=(),
        )

    updated = division.with_raw_maps((*division.raw_maps, *unique))
    new_ids = {raw_map.id for raw_map in unique}
    touched = [series for series in updated.detect_series() if series.map_ids() & new_ids]

    index = updated.alias_index()
    scoring = updated.config.scoring
    schedule = list(updated.schedule)
    linked: list[LinkDecision] = []
    unlinked: list[Series] = []

    for series in touched:
        decision = find_fixture_for_series(series, schedule, index)
        if decision.fixture is None:
            logger.warning("no fixture for series %s", series.id)
            unlinked.append(series)
            continue
        position = next(i for i, fixture in enumerate(schedule) if fixture is decision.fixture)
        held_elsewhere = {
            map_id
            for i, fixture in enumerate(schedule)
            if i != position
            for map_id in fixture.map_ids() & series.map_ids()
        }
        if held_elsewhere:
            logger.info(
                "series %s keeps %d map(s) on other fixtures", series.id, len(held_elsewhere)
            )
        schedule[position] = link_series(
            decision.fixture, series, index, scoring, skip=held_elsewhere
        )
        linked.append(decision)
        logger.debug("linked series %s to fixture %s", series.id, decision.fixture.id)

    updated = updated.with_schedule(schedule)
    if echo is not None:
        echo(
            f"added_maps={len(unique)} duplicates={duplicates} "
            f"series={len(touched)} linked={len(linked)} unlinked={len(unlinked)}"
        )

    return IngestSummary(
        division=updated,
        added_maps=tuple(unique),
        added=tuple(touched),
        duplicates=duplicates,
        linked=tuple(linked),
        unlinked=tuple(unlinked),
    )


def link_series_to_fixture(division: Division, series: Series, fixture_id: str) -> Division:
    """Manual link: the chosen fixture's maps are replaced by the series' maps.

    The series' maps are taken off any other fixture first, so a map never counts
    twice.
    """
    target = division.fixture(fixture_id)
    index = division.alias_index()
    scoring = division.config.scoring
    series_ids = series.map_ids()

    def relink(fixture: ScheduledFixture) -> ScheduledFixture:
        if fixture is target:
            return replace_series(fixture, series, index, scoring)
        return unlink_maps(fixture, series_ids, scoring)

    return division.patch_fixtures(relink)


def create_fixture_from_series(
    division: Division,
    series: Series,
    *,
    fixture_id: str | None = None,
) -> Division:
    """Add an ad-hoc group fixture holding exactly the series' maps."""
    team1, team2 = series.resolved_teams
    first_day = _series_day(series)
    fixture = new_fixture(
        fixture_id or f"adhoc-{series.id}",
        team1,
        team2,
        round_name=GROUP_ROUND,
        best_of=max(len(series.maps), 1),
        fixture_date=first_day,
    )
    index = division.alias_index()
    maps = [fixture_map_from_raw(raw_map, fixture, index) for raw_map in series.maps]
    fixture = replace(
        fixture,
        maps=tuple(maps),
        status=FixtureStatus.COMPLETED if maps else FixtureStatus.SCHEDULED,
    )
    return division.with_schedule((*division.schedule, fixture))


def remove_series(division: Division, series: Series) -> Division:
    """Drop the series' raw maps and unlink them from any fixture."""
    removed = series.map_ids()
    remaining = [raw_map for raw_map in division.raw_maps if raw_map.id not in removed]
    scoring = division.config.scoring
    updated = division.patch_fixtures(lambda fixture: unlink_maps(fixture, removed, scoring))
    return updated.with_raw_maps(remaining)


def clear_results(division: Division) -> Division:
    """Drop every raw map and reset every fixture to scheduled."""
    scoring = division.config.scoring
    cleared = division.patch_fixtures(
        lambda fixture: fixture if not fixture.maps else with_maps(fixture, (), scoring)
    )
    return cleared.with_raw_maps(())


def add_fixture(
    division: Division,
    fixture_id: str,
    team1: str,
    team2: str,
    *,
    round_name: str = GROUP_ROUND,
    group: str = "",
    fixture_date: date | None = None,
    time: str = "",
) -> Division:
    """Add a manually entered fixture with the division's default series length."""
    if any(fixture.id == fixture_id for fixture in division.schedule):
        raise ValueError(f"Fixture id {fixture_id} already exists")
    fixture = new_fixture(
        fixture_id,
        team1,
        team2,
        round_name=round_name,
        group=group,
        best_of=division.config.best_of_for_round(round_name),
        fixture_date=fixture_date,
        time=time,
    )
    return division.with_schedule((*division.schedule, fixture))


def update_fixture(division: Division, fixture_id: str, updates: Mapping[str, Any]) -> Division:
    """Edit schedule fields of one fixture; maps and status are not editable here."""
    forbidden = {"id", "maps", "status"} & set(updates)
    if forbidden:
        raise ValueError(f"Fields {sorted(forbidden)} cannot be edited directly")
    fixture = division.fixture(fixture_id)
    edited = replace(fixture, **dict(updates))
    edited = with_maps(edited, edited.maps, division.config.scoring)
    return _replace_fixture(division, fixture, edited)


def remove_fixture(division: Division, fixture_id: str) -> Division:
    division.fixture(fixture_id)
    return division.with_schedule(
        fixture for fixture in division.schedule if fixture.id != fixture_id
    )


def move_fixture_to_round(division: Division, fixture_id: str, round_num: int) -> Division:
    """Move a group fixture to another round of its group and re-date it."""
    fixture = division.fixture(fixture_id)
    if not fixture.is_group_stage:
        raise ValueError(f"Fixture {fixture_id} is not a group-stage fixture")
    moved = redate_fixture(
        fixture,
        round_num,
        start_date=division.config.start_date,
        pace=division.config.pace,
    )
    return _replace_fixture(division, fixture, moved)


def _replace_fixture(
    division: Division,
    old: ScheduledFixture,
    new: ScheduledFixture,
) -> Division:
    return division.patch_fixtures(lambda fixture: new if fixture is old else fixture)


def _series_day(series: Series) -> date | None:
    if series.first_timestamp is not None:
        return series.first_timestamp.date()
    return None


__all__ = [
    "IngestSummary",
    "add_fixture",
    "clear_results",
    "create_fixture_from_series",
    "dedupe_raw_maps",
    "ingest_results",
    "link_series_to_fixture",
    "move_fixture_to_round",
    "remove_fixture",
    "remove_series",
    "update_fixture",
]
