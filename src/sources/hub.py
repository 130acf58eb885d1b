"""Fetch raw game statistics from the QuakeWorld hub and ktxstats mirror."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

import requests

from sources.ktxstats import PayloadError, parse_game
from tournament.common import RawMapResult
from tournament.protocol import RawStatsSource

logger = logging.getLogger(__name__)

DEFAULT_HUB_URL = "https://ncsphkjfominimxztjip.supabase.co/rest/v1/v1_games"
KTXSTATS_MIRROR = "https://d.quake.world"
USER_AGENT = "tournament-results/0.1"


class StatsSourceError(RuntimeError):
    """Raised when one game cannot be fetched from the upstream source."""

    def __init__(self, game_id: str, message: str) -> None:
        super().__init__(f"game {game_id}: {message}")
        self.game_id = game_id


@dataclass(frozen=True)
class FetchFailure:
    game_id: str
    message: str


def stats_url_for(game: Mapping[str, Any]) -> str | None:
    """ktxstats JSON location for a hub game row."""
    checksum = game.get("demo_sha256")
    if checksum:
        return f"{KTXSTATS_MIRROR}/{checksum[:3]}/{checksum}.mvd.ktxstats.json"
    return game.get("demo_source_url") or game.get("url")


class HubStatsSource:
    """Raw stats source backed by the hub game table."""

    def __init__(
        self,
        api_key: str,
        *,
        hub_url: str = DEFAULT_HUB_URL,
        session: requests.Session | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.hub_url = hub_url
        self.timeout = timeout
        self.session = session or requests.Session()
        self._hub_headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    def lookup_game(self, game_id: str) -> Mapping[str, Any]:
        rows = self._get_json(
            game_id,
            self.hub_url,
            params={"id": f"eq.{game_id}", "select": "*"},
            headers=self._hub_headers,
        )
        if not isinstance(rows, list) or not rows:
            raise StatsSourceError(game_id, "not found")
        return rows[0]

    def fetch_game(self, game_id: str) -> Mapping[str, Any]:
        """Return the ktxstats document for one hub game id."""
        game = self.lookup_game(game_id)
        url = stats_url_for(game)
        if not url:
            raise StatsSourceError(game_id, "no demo path found")
        logger.debug("fetching stats for game %s from %s", game_id, url)
        document = self._get_json(
            game_id,
            url,
            headers={"User-Agent": USER_AGENT, "Accept": "*/*"},
        )
        if not isinstance(document, Mapping):
            raise StatsSourceError(game_id, "stats document is not a JSON object")
        return document

    def fetch_many(self, game_ids: Iterable[str]) -> tuple[list[RawMapResult], list[FetchFailure]]:
        """Fetch several games; one failing id never aborts the rest."""
        return fetch_many(self, game_ids)

    def _get_json(
        self,
        game_id: str,
        url: str,
        *,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        try:
            response = self.session.get(url, params=params, headers=headers, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as exc:
            raise StatsSourceError(game_id, f"request failed: {exc}") from exc
        except ValueError as exc:
            raise StatsSourceError(game_id, f"invalid JSON: {exc}") from exc


def fetch_many(
    source: RawStatsSource,
    game_ids: Iterable[str],
) -> tuple[list[RawMapResult], list[FetchFailure]]:
    """Fetch and parse games from any raw stats source, collecting per-id failures."""
    results: list[RawMapResult] = []
    failures: list[FetchFailure] = []
    for game_id in game_ids:
        try:
            results.append(parse_game(game_id, source.fetch_game(game_id)))
        except (StatsSourceError, PayloadError) as exc:
            logger.warning("fetch failed for game %s: %s", game_id, exc)
            failures.append(FetchFailure(game_id=game_id, message=str(exc)))
    return results, failures


__all__ = [
    "DEFAULT_HUB_URL",
    "FetchFailure",
    "HubStatsSource",
    "StatsSourceError",
    "fetch_many",
    "stats_url_for",
]
