#!/usr/bin/env python3
"""Generate the round-robin group stage for a division document."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Annotated

import typer

ROOT_DIR = Path(__file__).resolve().parents[1]
SRC_DIR = ROOT_DIR / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from sources.documents import division_from_document, division_to_document, read_document, write_document
from tournament.config import load_division_config
from tournament.schedule import UnassignedTeamsError, fixtures_by_round, generate_schedule

DEFAULT_CONFIG = ROOT_DIR / "configs" / "divisions" / "default.toml"

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Round-robin schedule generation.",
)


@app.command()
def generate(
    document_path: Annotated[
        Path,
        typer.Argument(help="Division document (JSON with teams/schedule/rawMaps)."),
    ],
    config_path: Annotated[
        Path,
        typer.Option("--config", help="Division rules TOML file."),
    ] = DEFAULT_CONFIG,
    write: Annotated[
        bool,
        typer.Option("--write", help="Replace the document's schedule with the generated one."),
    ] = False,
    verbose: Annotated[bool, typer.Option("--verbose", help="Enable debug logging.")] = False,
) -> None:
    """Generate group fixtures; the existing schedule is replaced only with --write."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG)

    config = load_division_config(config_path)
    document = read_document(document_path)
    division = division_from_document(document, config)

    try:
        fixtures = generate_schedule(
            division.teams,
            meetings=config.meetings,
            best_of=config.group_best_of,
            pace=config.pace,
            start_date=config.start_date,
        )
    except UnassignedTeamsError as exc:
        typer.echo(f"error unassigned_teams={exc.unassigned_count}", err=True)
        raise typer.Exit(code=1) from exc

    if not fixtures:
        typer.echo("no fixtures generated; every group needs at least two teams", err=True)
        raise typer.Exit(code=1)

    groups = sorted({fixture.group for fixture in fixtures})
    typer.echo(
        f"fixtures={len(fixtures)} groups={','.join(groups)} "
        f"meetings={config.meetings} pace={config.pace.value}"
    )
    for group in groups:
        for round_num, round_fixtures in fixtures_by_round(
            fixture for fixture in fixtures if fixture.group == group
        ).items():
            pairings = ", ".join(f"{fixture.team1} vs {fixture.team2}" for fixture in round_fixtures)
            day = round_fixtures[0].date.isoformat() if round_fixtures[0].date else "-"
            typer.echo(f"group={group} round={round_num} date={day} {pairings}")

    if write:
        write_document(document_path, division_to_document(division.with_schedule(fixtures), document))
        typer.echo(f"wrote schedule to {document_path}")


if __name__ == "__main__":
    app()
