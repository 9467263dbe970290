"""
Standings REST endpoint.

GET /v1/standings?competitionId=&seasonId=&stageId=: Standings tables for one stage.
"""
from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from shared.config import Settings

from api.dependencies import get_app_settings, get_feed
from builder.standings import aggregate_standings, first_table_rows
from ingest.providers.base import FeedProvider

router = APIRouter(prefix="/v1/standings", tags=["standings"])


@router.get("")
async def get_standings(
    competition_id: Optional[str] = Query(None, alias="competitionId"),
    season_id: Optional[str] = Query(None, alias="seasonId"),
    stage_id: Optional[str] = Query(None, alias="stageId"),
    language: Optional[str] = Query(None),
    feed: FeedProvider = Depends(get_feed),
    settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    if not (competition_id and season_id and stage_id):
        raise HTTPException(
            status_code=400,
            detail="Missing required parameters: competitionId, seasonId and stageId are required",
        )
    payload = await feed.fetch_standings(
        competition_id, season_id, stage_id, language or settings.feed_language
    )
    if payload is None:
        raise HTTPException(status_code=502, detail="Standings feed unavailable")

    tables = aggregate_standings(payload, settings=settings)
    return {
        "competitionId": competition_id,
        "seasonId": season_id,
        "stageId": stage_id,
        "tables": [t.model_dump(mode="json") for t in tables],
        "standings": [r.model_dump(mode="json") for r in first_table_rows(tables)],
    }
