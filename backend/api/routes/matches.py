"""
Match REST endpoints.

GET /v1/matches: Grouped day view for a viewer-local date.
GET /v1/matches/{competition}/{season}/{stage}/{match}: Match detail (timeline, head-to-head, standings).
"""
from __future__ import annotations

from datetime import date, timedelta, timezone, tzinfo
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from shared.config import Settings
from shared.utils.logging import get_logger

from api.dependencies import get_app_settings, get_feed
from ingest.providers.base import FeedProvider
from scheduler.service import MatchCentreSession

logger = get_logger(__name__)
router = APIRouter(prefix="/v1/matches", tags=["matches"])

MAX_UTC_OFFSET_MINUTES = 14 * 60


def viewer_timezone(utc_offset_minutes: Optional[int]) -> tzinfo:
    if utc_offset_minutes is None:
        return timezone.utc
    if abs(utc_offset_minutes) > MAX_UTC_OFFSET_MINUTES:
        raise HTTPException(status_code=400, detail="utc_offset_minutes out of range")
    return timezone(timedelta(minutes=utc_offset_minutes))


def parse_reference_date(value: Optional[str]) -> date:
    if not value:
        raise HTTPException(status_code=400, detail="Missing required parameter: date")
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid date: {value!r}, expected YYYY-MM-DD")


@router.get("")
async def get_day_view(
    date_param: Optional[str] = Query(None, alias="date"),
    language: Optional[str] = Query(None),
    utc_offset_minutes: Optional[int] = Query(None),
    feed: FeedProvider = Depends(get_feed),
    settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    """Matches for one viewer-local day, grouped by competition, with standings."""
    reference = parse_reference_date(date_param)
    session = MatchCentreSession(feed, settings, tz=viewer_timezone(utc_offset_minutes), language=language)
    view = await session.load_day(reference)
    if view is None or not view.fetched:
        raise HTTPException(status_code=502, detail="Match feed unavailable")

    body = view.model_dump(mode="json")
    body["competitionMetadata"] = {
        cid: meta.model_dump(mode="json") for cid, meta in session.context.metadata.items()
    }
    return body


@router.get("/{competition_id}/{season_id}/{stage_id}/{match_id}")
async def get_match_detail(
    competition_id: str,
    season_id: str,
    stage_id: str,
    match_id: str,
    language: Optional[str] = Query(None),
    utc_offset_minutes: Optional[int] = Query(None),
    feed: FeedProvider = Depends(get_feed),
    settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    session = MatchCentreSession(feed, settings, tz=viewer_timezone(utc_offset_minutes), language=language)
    detail = await session.load_match_details_by_id(competition_id, season_id, stage_id, match_id)
    if detail is None:
        raise HTTPException(status_code=404, detail=f"Match {match_id} not found")
    return detail.model_dump(mode="json")
