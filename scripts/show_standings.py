#!/usr/bin/env python3
"""Print group standings for a division document."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Annotated

import typer

ROOT_DIR = Path(__file__).resolve().parents[1]
SRC_DIR = ROOT_DIR / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from sources.documents import division_from_document, read_document
from tournament.config import load_division_config

DEFAULT_CONFIG = ROOT_DIR / "configs" / "divisions" / "default.toml"


def main(
    document_path: Annotated[Path, typer.Argument(help="Division document JSON.")],
    config_path: Annotated[
        Path,
        typer.Option("--config", help="Division rules TOML file."),
    ] = DEFAULT_CONFIG,
    group: Annotated[
        str | None,
        typer.Option("--group", help="Only show one group."),
    ] = None,
) -> None:
    config = load_division_config(config_path)
    division = division_from_document(read_document(document_path), config)
    standings = division.standings()

    if group is not None and group not in standings:
        raise typer.BadParameter(
            f"Unknown group {group!r}; available: {', '.join(standings) or 'none'}",
            param_hint="--group",
        )

    typer.echo(
        f"division={config.name} scoring={config.scoring.mode.value} "
        f"tie_breakers={','.join(config.scoring.tie_breakers)}"
    )
    for group_name, entries in standings.items():
        if group is not None and group_name != group:
            continue
        typer.echo(f"group={group_name}")
        for rank, entry in enumerate(entries, start=1):
            typer.echo(
                f"{rank:>2}. {entry.name:<24} P={entry.played} W={entry.matches_won} "
                f"L={entry.matches_lost} maps={entry.maps_won}-{entry.maps_lost} "
                f"md={entry.map_diff:+d} fd={entry.frag_diff:+d} pts={entry.points}"
            )


if __name__ == "__main__":
    typer.run(main)
