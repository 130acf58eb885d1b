#!/usr/bin/env python3
"""Inspect detected series and bracket scores of a division document."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Annotated

import typer

ROOT_DIR = Path(__file__).resolve().parents[1]
SRC_DIR = ROOT_DIR / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from sources.documents import (
    bracket_slots_from_document,
    division_from_document,
    division_to_document,
    read_document,
    write_document,
)
from tournament.config import load_division_config
from tournament.linking import find_fixture_for_series, resolve_bracket_score
from tournament.pipeline import create_fixture_from_series, link_series_to_fixture, remove_series

DEFAULT_CONFIG = ROOT_DIR / "configs" / "divisions" / "default.toml"

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Series and bracket inspection.",
)

ConfigOption = Annotated[Path, typer.Option("--config", help="Division rules TOML file.")]


@app.command("list")
def list_series(
    document_path: Annotated[Path, typer.Argument(help="Division document JSON.")],
    config_path: ConfigOption = DEFAULT_CONFIG,
) -> None:
    """List detected series with the fixture each one resolves to."""
    config = load_division_config(config_path)
    division = division_from_document(read_document(document_path), config)
    index = division.alias_index()

    detected = division.detect_series()
    typer.echo(f"raw_maps={len(division.raw_maps)} series={len(detected)}")
    for series in detected:
        decision = find_fixture_for_series(series, division.schedule, index)
        team1, team2 = series.resolved_teams
        target = "-" if decision.fixture is None else decision.fixture.id
        flags = []
        if decision.is_ambiguous:
            flags.append("ambiguous")
        if decision.already_linked:
            flags.append("linked")
        typer.echo(
            f"{series.id} {team1} {series.map_wins.get(team1, 0)}-{series.map_wins.get(team2, 0)} "
            f"{team2} maps={len(series.maps)} date={series.date_display or '-'} "
            f"fixture={target} candidates={len(decision.candidates)}"
            + (f" [{','.join(flags)}]" if flags else "")
        )


@app.command()
def link(
    document_path: Annotated[Path, typer.Argument(help="Division document JSON.")],
    series_id: Annotated[str, typer.Argument(help="Series id as printed by 'list'.")],
    fixture_id: Annotated[
        str | None,
        typer.Option("--fixture", help="Fixture to link to; omit to create an ad-hoc fixture."),
    ] = None,
    config_path: ConfigOption = DEFAULT_CONFIG,
) -> None:
    """Link a series to a chosen fixture, or create a fixture from it."""
    config = load_division_config(config_path)
    document = read_document(document_path)
    division = division_from_document(document, config)
    series = _find_series(division.detect_series(), series_id)

    if fixture_id is None:
        updated = create_fixture_from_series(division, series)
        typer.echo(f"created fixture=adhoc-{series.id}")
    else:
        try:
            updated = link_series_to_fixture(division, series, fixture_id)
        except (KeyError, ValueError) as exc:
            raise typer.BadParameter(str(exc), param_hint="--fixture") from exc
        typer.echo(f"linked series={series.id} fixture={fixture_id}")

    write_document(document_path, division_to_document(updated, document))


@app.command()
def remove(
    document_path: Annotated[Path, typer.Argument(help="Division document JSON.")],
    series_id: Annotated[str, typer.Argument(help="Series id as printed by 'list'.")],
    config_path: ConfigOption = DEFAULT_CONFIG,
) -> None:
    """Delete a series' raw maps and unlink them from fixtures."""
    config = load_division_config(config_path)
    document = read_document(document_path)
    division = division_from_document(document, config)
    series = _find_series(division.detect_series(), series_id)

    updated = remove_series(division, series)
    typer.echo(f"removed series={series.id} maps={len(series.maps)}")
    write_document(document_path, division_to_document(updated, document))


@app.command()
def bracket(
    document_path: Annotated[Path, typer.Argument(help="Division document JSON with a 'bracket' key.")],
    config_path: ConfigOption = DEFAULT_CONFIG,
) -> None:
    """Print the derived or overridden score of every bracket slot."""
    config = load_division_config(config_path)
    document = read_document(document_path)
    division = division_from_document(document, config)
    index = division.alias_index()

    slots = bracket_slots_from_document(document.get("bracket"))
    if not slots:
        typer.echo("no bracket slots")
        return
    for slot in slots:
        score = resolve_bracket_score(slot, division.schedule, index)
        shown = "-" if score is None else f"{score.score1}-{score.score2}"
        typer.echo(
            f"round={slot.round_hint} slot={slot.id or '-'} "
            f"{slot.team1 or 'TBD'} vs {slot.team2 or 'TBD'} score={shown}"
            + (" (override)" if slot.score_override is not None else "")
        )


def _find_series(detected, series_id: str):
    for series in detected:
        if series.id == series_id:
            return series
    raise typer.BadParameter(f"No series with id={series_id}", param_hint="series_id")


if __name__ == "__main__":
    app()
