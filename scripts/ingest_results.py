#!/usr/bin/env python3
"""Ingest raw game results into a division document."""

from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path
from typing import Annotated

import typer

ROOT_DIR = Path(__file__).resolve().parents[1]
SRC_DIR = ROOT_DIR / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from sources.documents import division_from_document, division_to_document, read_document, write_document
from sources.hub import DEFAULT_HUB_URL, HubStatsSource
from sources.ktxstats import TooManyGameIdsError, extract_game_ids, parse_documents
from sources.moderation import Submission, ingest_submissions
from tournament.common import RawMapResult
from tournament.config import load_division_config
from tournament.pipeline import IngestSummary, ingest_results

DEFAULT_CONFIG = ROOT_DIR / "configs" / "divisions" / "default.toml"

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Result ingestion commands.",
)

ConfigOption = Annotated[Path, typer.Option("--config", help="Division rules TOML file.")]
DryRunOption = Annotated[bool, typer.Option("--dry-run", help="Report without writing the document.")]
VerboseOption = Annotated[bool, typer.Option("--verbose", help="Enable debug logging.")]


def _apply(
    document_path: Path,
    config_path: Path,
    results: list[RawMapResult],
    *,
    dry_run: bool,
) -> IngestSummary:
    config = load_division_config(config_path)
    document = read_document(document_path)
    division = division_from_document(document, config)

    summary = ingest_results(division, results, echo=typer.echo)
    _report(summary)
    if not dry_run:
        write_document(document_path, division_to_document(summary.division, document))
    return summary


def _report(summary: IngestSummary) -> None:
    for decision in summary.linked:
        fixture = decision.fixture
        typer.echo(
            f"linked series={decision.series.id} fixture={fixture.id} "
            f"candidates={len(decision.candidates)}"
        )
    for series in summary.unlinked:
        typer.echo(
            f"unlinked series={series.id} teams={' vs '.join(series.resolved_teams)} "
            f"maps={len(series.maps)} (link manually or create a fixture)"
        )


@app.command()
def files(
    document_path: Annotated[Path, typer.Argument(help="Division document JSON.")],
    result_files: Annotated[list[Path], typer.Argument(help="ktxstats JSON files.")],
    config_path: ConfigOption = DEFAULT_CONFIG,
    dry_run: DryRunOption = False,
    verbose: VerboseOption = False,
) -> None:
    """Ingest ktxstats JSON files; unreadable files are reported and skipped."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG)

    results: list[RawMapResult] = []
    for file_path in result_files:
        try:
            with file_path.open("r", encoding="utf-8") as file:
                data = json.load(file)
        except (OSError, ValueError) as exc:
            typer.echo(f"failed file={file_path} error={exc}", err=True)
            continue
        parsed, failures = parse_documents(data, source=file_path.name)
        results.extend(parsed)
        for failure in failures:
            typer.echo(f"failed source={failure.source} error={failure.message}", err=True)

    typer.echo(f"parsed_maps={len(results)} files={len(result_files)}")
    _apply(document_path, config_path, results, dry_run=dry_run)


@app.command()
def fetch(
    document_path: Annotated[Path, typer.Argument(help="Division document JSON.")],
    links: Annotated[list[str], typer.Argument(help="Game ids or hub links.")],
    config_path: ConfigOption = DEFAULT_CONFIG,
    hub_url: Annotated[str, typer.Option("--hub-url", help="Hub games table URL.")] = DEFAULT_HUB_URL,
    api_key: Annotated[
        str | None,
        typer.Option("--api-key", help="Hub API key. Defaults to $SUPABASE_KEY."),
    ] = None,
    dry_run: DryRunOption = False,
    verbose: VerboseOption = False,
) -> None:
    """Fetch games from the hub by id or link and ingest them."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG)

    try:
        game_ids = extract_game_ids(" ".join(links))
    except TooManyGameIdsError as exc:
        raise typer.BadParameter(str(exc), param_hint="links") from exc
    if not game_ids:
        raise typer.BadParameter("No valid game ids found; links must contain 'gameId=...'", param_hint="links")

    key = api_key or os.environ.get("SUPABASE_KEY")
    if not key:
        raise typer.BadParameter("An API key is required", param_hint="--api-key")

    source = HubStatsSource(key, hub_url=hub_url)
    results, failures = source.fetch_many(game_ids)
    for failure in failures:
        typer.echo(f"failed game_id={failure.game_id} error={failure.message}", err=True)
    typer.echo(f"fetched={len(results)} failed={len(failures)} requested={len(game_ids)}")

    if results:
        _apply(document_path, config_path, results, dry_run=dry_run)


@app.command()
def submissions(
    document_path: Annotated[Path, typer.Argument(help="Division document JSON.")],
    submissions_path: Annotated[Path, typer.Argument(help="JSON list of moderation entries.")],
    config_path: ConfigOption = DEFAULT_CONFIG,
    division_id: Annotated[
        str | None,
        typer.Option("--division-id", help="Only take submissions for this division."),
    ] = None,
    dry_run: DryRunOption = False,
) -> None:
    """Ingest approved moderation-queue submissions."""
    config = load_division_config(config_path)
    document = read_document(document_path)
    division = division_from_document(document, config)

    with submissions_path.open("r", encoding="utf-8") as file:
        records = json.load(file)
    entries = [Submission.from_record(record) for record in records]
    rejected = sum(1 for entry in entries if entry.is_rejected)
    if rejected:
        typer.echo(f"skipped_rejected={rejected}")

    summary, failures = ingest_submissions(division, entries, division_id=division_id)
    for failure in failures:
        typer.echo(f"failed source={failure.source} error={failure.message}", err=True)
    typer.echo(f"added_maps={len(summary.added_maps)} duplicates={summary.duplicates}")
    _report(summary)
    if not dry_run:
        write_document(document_path, division_to_document(summary.division, document))


if __name__ == "__main__":
    app()
