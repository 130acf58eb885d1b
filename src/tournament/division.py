"""Immutable division snapshot."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace

from tournament.aliases import AliasIndex
from tournament.common import RawMapResult, ScheduledFixture, Series, StandingsEntry, Team
from tournament.config import DivisionConfig
from tournament.series import detect_series
from tournament.standings import compute_standings


@dataclass(frozen=True)
class Division:
    """Teams, schedule and raw maps of one division at one point in time.

    Every operation that changes a division returns a new snapshot; fixtures that
    did not change are shared between snapshots.
    """

    config: DivisionConfig
    teams: tuple[Team, ...] = ()
    schedule: tuple[ScheduledFixture, ...] = ()
    raw_maps: tuple[RawMapResult, ...] = ()
    _index: AliasIndex | None = field(default=None, compare=False, repr=False)

    def alias_index(self) -> AliasIndex:
        if self._index is None:
            object.__setattr__(self, "_index", AliasIndex.build(self.teams))
        return self._index  # type: ignore[return-value]

    def detect_series(self) -> list[Series]:
        return detect_series(self.raw_maps, self.alias_index(), gap=self.config.series_gap)

    def standings(self) -> dict[str, list[StandingsEntry]]:
        return compute_standings(self.schedule, self.teams, self.config.scoring)

    def fixture(self, fixture_id: str) -> ScheduledFixture:
        for fixture in self.schedule:
            if fixture.id == fixture_id:
                return fixture
        raise KeyError(f"No fixture with id={fixture_id}")

    def with_schedule(self, schedule: Iterable[ScheduledFixture]) -> Division:
        return replace(self, schedule=tuple(schedule))

    def with_raw_maps(self, raw_maps: Iterable[RawMapResult]) -> Division:
        return replace(self, raw_maps=tuple(raw_maps))

    def patch_fixtures(
        self, patch: Callable[[ScheduledFixture], ScheduledFixture]
    ) -> Division:
        """Apply ``patch`` to every fixture, keeping the tuple if nothing changed."""
        patched = tuple(patch(fixture) for fixture in self.schedule)
        if all(new is old for new, old in zip(patched, self.schedule)):
            return self
        return replace(self, schedule=patched)


__all__ = ["Division"]
