"""HTTP client for the MLB Stats API and Baseball Savant.

All provider calls go through one ``httpx.AsyncClient``. Transport errors,
non-2xx responses and undecodable bodies are raised as ``StatsApiError`` so
callers only ever handle one exception type from this module.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Any

import httpx

logger = logging.getLogger(__name__)

IN_PROGRESS_STATUS_CODES: frozenset[str] = frozenset({"I", "PW"})


class StatsApiError(Exception):
    """A provider request failed or returned something unusable."""

    def __init__(self, message: str, *, url: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class StatsApiClient:
    """Reads schedules, live feeds and Savant data."""

    def __init__(
        self,
        *,
        statsapi_base_url: str = "https://statsapi.mlb.com",
        savant_base_url: str = "https://baseballsavant.mlb.com",
        timeout_seconds: float = 15.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.statsapi_base_url = statsapi_base_url.rstrip("/")
        self.savant_base_url = savant_base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_seconds, connect=5.0),
            follow_redirects=True,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        try:
            resp = await self._client.get(url, params=params)
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise StatsApiError(
                f"{url} returned {exc.response.status_code}",
                url=url,
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise StatsApiError(f"request to {url} failed: {exc}", url=url) from exc
        try:
            return resp.json()
        except ValueError as exc:
            raise StatsApiError(f"{url} returned a non-JSON body", url=url) from exc

    async def _get_object(self, url: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        body = await self._get_json(url, params)
        if not isinstance(body, dict):
            msg = f"{url} returned {type(body).__name__}, expected an object"
            raise StatsApiError(msg, url=url)
        return body

    # --- Stats API ---

    async def current_games(
        self, *, team_id: int | None = None, today: date | None = None
    ) -> list[dict[str, Any]]:
        """Scheduled games from yesterday through tomorrow, flattened across dates."""
        today = today or date.today()
        params: dict[str, Any] = {
            "sportId": 1,
            "startDate": (today - timedelta(days=1)).isoformat(),
            "endDate": (today + timedelta(days=1)).isoformat(),
        }
        if team_id is not None:
            params["teamId"] = team_id
        body = await self._get_object(f"{self.statsapi_base_url}/api/v1/schedule", params)
        games: list[dict[str, Any]] = []
        for day in body.get("dates") or []:
            games.extend(g for g in day.get("games") or [] if isinstance(g, dict))
        return games

    async def fetch_full_snapshot(
        self, game_pk: int, update_id: str | None = None
    ) -> dict[str, Any]:
        """The complete live feed, optionally as of a push update id."""
        params = {"pushUpdateId": update_id} if update_id else None
        return await self._get_object(
            f"{self.statsapi_base_url}/api/v1.1/game/{game_pk}/feed/live", params
        )

    async def fetch_update_diff(
        self, game_pk: int, update_id: str, since: str | None
    ) -> list[dict[str, Any]] | dict[str, Any]:
        """Changes since ``since``: a list of patch batches, or a full document.

        The provider answers with a full document instead of patches when the
        change set is too large to diff.
        """
        params: dict[str, Any] = {"pushUpdateId": update_id}
        if since:
            params["startTimecode"] = since
        body = await self._get_json(
            f"{self.statsapi_base_url}/api/v1.1/game/{game_pk}/feed/live/diffPatch", params
        )
        if not isinstance(body, list | dict):
            raise StatsApiError(f"diffPatch for {game_pk} returned {type(body).__name__}")
        return body

    # --- Baseball Savant ---

    async def savant_game_feed(self, game_pk: int) -> dict[str, Any]:
        return await self._get_object(f"{self.savant_base_url}/gf", {"game_pk": game_pk})

    async def park_breakdown(self, game_pk: int, play_id: str) -> dict[str, Any]:
        """Which parks a batted ball would and would not have left."""
        return await self._get_object(
            f"{self.savant_base_url}/gamefeed/x-parks/{game_pk}/{play_id}"
        )


def nearest_games(games: list[dict[str, Any]], now: datetime) -> list[dict[str, Any]]:
    """Games on the official date of the game scheduled closest to ``now``.

    More than one game comes back on double-header days.
    """
    dated = [g for g in games if g.get("gameDate")]
    if not dated:
        return []
    dated.sort(key=lambda g: abs((_parse_game_date(g["gameDate"]) - now).total_seconds()))
    official_date = dated[0].get("officialDate")
    return [g for g in dated if g.get("officialDate") == official_date]


def in_progress_game(games: list[dict[str, Any]]) -> dict[str, Any] | None:
    for game in games:
        if (game.get("status") or {}).get("statusCode") in IN_PROGRESS_STATUS_CODES:
            return game
    return None


def _parse_game_date(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))
