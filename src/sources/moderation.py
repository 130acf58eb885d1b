"""Adapter for externally submitted results held in the moderation queue."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from sources.ktxstats import ParseFailure, PayloadError, parse_game
from tournament.common import RawMapResult
from tournament.division import Division
from tournament.pipeline import IngestSummary, ingest_results

STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"


@dataclass(frozen=True)
class Submission:
    id: str
    status: str
    game_id: str | None = None
    tournament_id: str | None = None
    division_id: str | None = None
    payload: Mapping[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> Submission:
        return cls(
            id=str(record["id"]),
            status=str(record.get("status", STATUS_PENDING)),
            game_id=None if record.get("game_id") is None else str(record["game_id"]),
            tournament_id=record.get("tournament_id"),
            division_id=record.get("division_id"),
            payload=dict(record.get("game_data") or record.get("payload") or {}),
        )

    @property
    def is_approved(self) -> bool:
        return self.status == STATUS_APPROVED

    @property
    def is_rejected(self) -> bool:
        return self.status == STATUS_REJECTED


def approved_results(
    submissions: Iterable[Submission],
    *,
    division_id: str | None = None,
) -> tuple[list[RawMapResult], list[ParseFailure]]:
    """Parse the payloads of approved submissions, optionally for one division."""
    results: list[RawMapResult] = []
    failures: list[ParseFailure] = []
    for submission in submissions:
        if not submission.is_approved:
            continue
        if division_id is not None and submission.division_id != division_id:
            continue
        game_id = submission.game_id or f"submission-{submission.id}"
        try:
            results.append(parse_game(game_id, submission.payload))
        except PayloadError as exc:
            failures.append(ParseFailure(source=f"submission:{submission.id}", message=str(exc)))
    return results, failures


def ingest_submissions(
    division: Division,
    submissions: Iterable[Submission],
    *,
    division_id: str | None = None,
) -> tuple[IngestSummary, list[ParseFailure]]:
    """Hand approved submissions to the same ingestion path as fetched games."""
    results, failures = approved_results(submissions, division_id=division_id)
    return ingest_results(division, results), failures


__all__ = [
    "STATUS_APPROVED",
    "STATUS_PENDING",
    "STATUS_REJECTED",
    "Submission",
    "approved_results",
    "ingest_submissions",
]
