"""
FIFA feed connector.
Fetches calendar, live and statistics payloads from the public FIFA v3 API.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

import httpx

from shared.config import Settings, get_settings
from shared.utils.http_client import FeedHTTPClient
from shared.utils.logging import get_logger

from builder.bucketing import format_feed_instant
from ingest.providers.base import FeedProvider

logger = get_logger(__name__)

FIFA_HEADERS: dict[str, str] = {
    "Accept": "application/json, text/plain, */*",
    "Accept-Language": "en-US,en;q=0.9",
    "Origin": "https://www.fifa.com",
    "Referer": "https://www.fifa.com/",
}


def unwrap_results(payload: Any) -> Optional[dict[str, Any]]:
    """Match detail is returned either bare or as the first of ``Results``."""
    if not isinstance(payload, dict):
        return None
    results = payload.get("Results")
    if isinstance(results, list) and results and isinstance(results[0], dict):
        return results[0]
    return payload


class FIFAFeedProvider(FeedProvider):
    name = "fifa"

    def __init__(self, http: FeedHTTPClient | None = None, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()
        self._http = http or FeedHTTPClient(headers=FIFA_HEADERS)

    async def start(self) -> None:
        await self._http.start()

    async def close(self) -> None:
        await self._http.close()

    async def _fetch_matches(
        self, start: datetime, end: datetime, language: str, count: int
    ) -> Optional[list[dict[str, Any]]]:
        payload = await self._http.get_json(
            f"{self._settings.calendar_api_url}/matches",
            params={
                "from": format_feed_instant(start),
                "to": format_feed_instant(end),
                "language": language,
                "count": count,
            },
            endpoint="calendar_matches",
            headers=FIFA_HEADERS,
        )
        if not isinstance(payload, dict):
            logger.warning("fifa_matches_unexpected_payload", type=type(payload).__name__)
            return None
        results = payload.get("Results") or []
        return [r for r in results if isinstance(r, dict)]

    async def _fetch_standings(
        self, competition_id: str, season_id: str, stage_id: str, language: str
    ) -> Optional[dict[str, Any]]:
        payload = await self._http.get_json(
            f"{self._settings.calendar_api_url}/{competition_id}/{season_id}/{stage_id}/standing",
            params={"language": language, "count": self._settings.standings_fetch_count},
            endpoint="calendar_standing",
            headers=FIFA_HEADERS,
        )
        return payload if isinstance(payload, dict) else None

    async def _fetch_head_to_head(
        self,
        team_a: str,
        team_b: str,
        language: str,
        count: int,
        before: Optional[datetime] = None,
    ) -> Optional[dict[str, Any]]:
        params: dict[str, Any] = {"language": language, "count": count}
        if before is not None:
            params["to"] = format_feed_instant(before)
        payload = await self._http.get_json(
            f"{self._settings.statistics_api_url}/headtohead/{team_a}/{team_b}",
            params=params,
            endpoint="statistics_headtohead",
            headers=FIFA_HEADERS,
        )
        return payload if isinstance(payload, dict) else None

    async def _fetch_match_detail(
        self,
        competition_id: str,
        season_id: str,
        stage_id: str,
        match_id: str,
        language: str,
    ) -> Optional[dict[str, Any]]:
        params = {"language": language}
        try:
            payload = await self._http.get_json(
                f"{self._settings.live_api_url}/{competition_id}/{season_id}/{stage_id}/{match_id}",
                params=params,
                endpoint="live_match",
                headers=FIFA_HEADERS,
            )
        except (httpx.HTTPError, ValueError) as exc:
            # Calendar endpoint has no stage segment.
            logger.info("fifa_live_detail_unavailable", match_id=match_id, error=str(exc))
            payload = await self._http.get_json(
                f"{self._settings.calendar_api_url}/{competition_id}/{season_id}/{match_id}",
                params=params,
                endpoint="calendar_match",
                headers=FIFA_HEADERS,
            )
        return unwrap_results(payload)
