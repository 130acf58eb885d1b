"""Load division rule sets from TOML files."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from pathlib import Path
from typing import Any, Callable, TypeVar
import tomllib

from tournament.common import GROUP_ROUND
from tournament.protocol import MatchPace, ScoringMode
from tournament.rounds import LOSERS_ROUNDS, PLAYOFF_ROUNDS, canonical_round
from tournament.tiebreakers import TIE_BREAKERS

DEFAULT_TIE_BREAKERS = ("mapDiff", "fragDiff", "headToHead")
DEFAULT_SERIES_GAP = timedelta(hours=2)
DEFAULT_PLAYOFF_BEST_OF = {
    "r32": 3,
    "r16": 3,
    "r12": 3,
    "quarter": 3,
    "semi": 3,
    "final": 5,
    "third": 0,
    "losers": 3,
    "grand": 5,
}


@dataclass(frozen=True)
class ScoringConfig:
    """Everything the standings and status rules need from a division."""

    mode: ScoringMode = ScoringMode.BEST_OF
    points_win: int = 3
    points_loss: int = 0
    tie_breakers: tuple[str, ...] = DEFAULT_TIE_BREAKERS

    @property
    def is_play_all(self) -> bool:
        return self.mode is ScoringMode.PLAY_ALL


@dataclass(frozen=True)
class DivisionConfig:
    """Configuration for one division."""

    name: str
    description: str | None = None
    file_path: Path | None = None
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    group_best_of: int = 3
    meetings: int = 1
    pace: MatchPace = MatchPace.WEEKLY
    start_date: date | None = None
    playoff_best_of: dict[str, int] = field(default_factory=lambda: dict(DEFAULT_PLAYOFF_BEST_OF))
    series_gap: timedelta = DEFAULT_SERIES_GAP

    def best_of_for_round(self, round_name: str) -> int:
        """Default series length for a new fixture in the given round."""
        short = canonical_round(round_name) or round_name
        if short == GROUP_ROUND:
            return self.group_best_of
        if short in LOSERS_ROUNDS:
            short = "losers"
        value = self.playoff_best_of.get(short, 0)
        return value if value > 0 else 3

    def as_config_json(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "group_stage_type": self.scoring.mode.value,
            "group_best_of": self.group_best_of,
            "meetings": self.meetings,
            "pace": self.pace.value,
            "start_date": None if self.start_date is None else self.start_date.isoformat(),
            "points_win": self.scoring.points_win,
            "points_loss": self.scoring.points_loss,
            "tie_breakers": list(self.scoring.tie_breakers),
            "playoff_best_of": dict(self.playoff_best_of),
            "series_gap_minutes": int(self.series_gap.total_seconds() // 60),
        }


T = TypeVar("T")


def load_configs(
    config_dir: Path,
    parser: Callable[[dict[str, Any], Path], T],
    *,
    name_of: Callable[[T], str],
    duplicate_name_label: str = "division",
) -> list[T]:
    """Load all TOML files in a directory with duplicate-name validation."""
    if not config_dir.exists():
        raise FileNotFoundError(f"Config directory not found: {config_dir}")
    if not config_dir.is_dir():
        raise NotADirectoryError(f"Config path is not a directory: {config_dir}")

    config_files = sorted(config_dir.glob("*.toml"))
    if not config_files:
        raise ValueError(f"No .toml config files found in: {config_dir}")

    configs = [parser(_read_toml(file_path), file_path) for file_path in config_files]

    names = [name_of(config) for config in configs]
    if len(names) != len(set(names)):
        raise ValueError(f"Duplicate {duplicate_name_label} names found in {config_dir}: {names}")

    return configs


def load_division_configs(config_dir: Path) -> list[DivisionConfig]:
    """Load and validate all division TOML files in a directory."""
    return load_configs(config_dir, parse_division_config, name_of=lambda config: config.name)


def load_division_config(file_path: Path) -> DivisionConfig:
    """Load one division TOML file."""
    if not file_path.is_file():
        raise FileNotFoundError(f"Config file not found: {file_path}")
    return parse_division_config(_read_toml(file_path), file_path)


def parse_division_config(raw: dict[str, Any], file_path: Path) -> DivisionConfig:
    division_raw = raw.get("division", {})
    group_raw = raw.get("group_stage", {})
    points_raw = raw.get("points", {})
    standings_raw = raw.get("standings", {})
    playoffs_raw = raw.get("playoffs", {})
    series_raw = raw.get("series", {})

    name = str(division_raw.get("name", "")).strip()
    if not name:
        raise ValueError(f"{file_path}: [division].name is required")

    description_value = division_raw.get("description")
    description = None if description_value is None else str(description_value)

    mode = _parse_enum(ScoringMode, group_raw.get("type", "bestof"), file_path, "[group_stage].type")
    pace = _parse_enum(MatchPace, group_raw.get("pace", "weekly"), file_path, "[group_stage].pace")

    tie_breakers = tuple(str(item) for item in standings_raw.get("tie_breakers", DEFAULT_TIE_BREAKERS))
    _validate_tie_breakers(file_path=file_path, tie_breakers=tie_breakers)

    scoring = ScoringConfig(
        mode=mode,
        points_win=int(points_raw.get("win", 3)),
        points_loss=int(points_raw.get("loss", 0)),
        tie_breakers=tie_breakers,
    )

    known_keys = {f"{short}_best_of" for short in PLAYOFF_ROUNDS}
    unknown_keys = sorted(set(playoffs_raw) - known_keys)
    if unknown_keys:
        raise ValueError(f"{file_path}: [playoffs] has unknown keys {unknown_keys}")

    playoff_best_of = dict(DEFAULT_PLAYOFF_BEST_OF)
    for short in PLAYOFF_ROUNDS:
        key = f"{short}_best_of"
        if key in playoffs_raw:
            playoff_best_of[short] = int(playoffs_raw[key])

    config = DivisionConfig(
        name=name,
        description=description,
        file_path=file_path,
        scoring=scoring,
        group_best_of=int(group_raw.get("best_of", 3)),
        meetings=int(group_raw.get("meetings", 1)),
        pace=pace,
        start_date=_parse_date(group_raw.get("start_date"), file_path),
        playoff_best_of=playoff_best_of,
        series_gap=timedelta(minutes=float(series_raw.get("gap_minutes", 120))),
    )
    _validate_config(file_path=file_path, config=config)
    return config


def _read_toml(file_path: Path) -> dict[str, Any]:
    with file_path.open("rb") as file:
        return tomllib.load(file)


def _parse_enum(enum_type, value: Any, file_path: Path, label: str):
    try:
        return enum_type(str(value).strip().lower())
    except ValueError as exc:
        choices = ", ".join(member.value for member in enum_type)
        raise ValueError(f"{file_path}: {label} must be one of {choices}, got {value!r}") from exc


def _parse_date(value: Any, file_path: Path) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError as exc:
        raise ValueError(f"{file_path}: [group_stage].start_date must be YYYY-MM-DD") from exc


def _validate_tie_breakers(*, file_path: Path, tie_breakers: tuple[str, ...]) -> None:
    unknown = [name for name in tie_breakers if name not in TIE_BREAKERS]
    if unknown:
        available = ", ".join(sorted(TIE_BREAKERS))
        raise ValueError(
            f"{file_path}: [standings].tie_breakers has unknown entries {unknown}; "
            f"available: {available}"
        )
    if len(set(tie_breakers)) != len(tie_breakers):
        raise ValueError(f"{file_path}: [standings].tie_breakers must not repeat entries")


def _validate_config(*, file_path: Path, config: DivisionConfig) -> None:
    if config.group_best_of <= 0:
        raise ValueError(f"{file_path}: [group_stage].best_of must be > 0")
    if config.meetings <= 0:
        raise ValueError(f"{file_path}: [group_stage].meetings must be > 0")
    if config.scoring.points_win < config.scoring.points_loss:
        raise ValueError(f"{file_path}: [points].win must be >= [points].loss")
    for short, best_of in config.playoff_best_of.items():
        if best_of < 0:
            raise ValueError(f"{file_path}: [playoffs].{short}_best_of must be >= 0")
    if config.series_gap.total_seconds() <= 0:
        raise ValueError(f"{file_path}: [series].gap_minutes must be > 0")


__all__ = [
    "DEFAULT_SERIES_GAP",
    "DEFAULT_TIE_BREAKERS",
    "DivisionConfig",
    "ScoringConfig",
    "load_configs",
    "load_division_config",
    "load_division_configs",
    "parse_division_config",
]
