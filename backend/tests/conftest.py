"""Shared fixtures: raw feed record builders, a fake feed provider and default settings."""
from __future__ import annotations

from typing import Any, Callable, Optional
from unittest.mock import AsyncMock

import pytest

from ingest.providers.base import FeedProvider
from shared.config import Settings


def localized(text: str, locale: str = "en-GB") -> list[dict[str, str]]:
    return [{"Locale": locale, "Description": text}]


def build_raw_match(
    match_id: Optional[str] = "m1",
    *,
    competition_id: str = "17",
    season_id: str = "255711",
    stage_id: str = "255951",
    competition: str = "FIFA World Cup",
    date: str = "2026-06-15T19:00:00Z",
    status: int = 1,
    home_id: str = "43922",
    home_name: str = "Brazil",
    away_id: str = "43960",
    away_name: str = "Argentina",
    home_score: Any = None,
    away_score: Any = None,
    match_time: Optional[str] = None,
    match_day: Any = None,
    shape: str = "calendar",
    **extra: Any,
) -> dict[str, Any]:
    home = {"IdTeam": home_id, "TeamName": localized(home_name), "Abbreviation": home_name[:3].upper()}
    away = {"IdTeam": away_id, "TeamName": localized(away_name), "Abbreviation": away_name[:3].upper()}
    record: dict[str, Any] = {
        "IdCompetition": competition_id,
        "IdSeason": season_id,
        "IdStage": stage_id,
        "CompetitionName": localized(competition),
        "Date": date,
        "MatchStatus": status,
        "HomeTeamScore": home_score,
        "AwayTeamScore": away_score,
    }
    if match_id is not None:
        record["IdMatch"] = match_id
    if match_time is not None:
        record["MatchTime"] = match_time
    if match_day is not None:
        record["MatchDay"] = match_day
    if shape == "calendar":
        record["Home"], record["Away"] = home, away
    else:
        record["HomeTeam"], record["AwayTeam"] = home, away
    record.update(extra)
    return record


class FakeFeed(FeedProvider):
    """Feed provider whose fetches are AsyncMocks, routed through the real error guard."""

    name = "fake"

    def __init__(self) -> None:
        self.matches = AsyncMock(return_value=[])
        self.standings = AsyncMock(return_value={"Results": []})
        self.head_to_head = AsyncMock(return_value=None)
        self.detail = AsyncMock(return_value=None)

    async def _fetch_matches(self, start, end, language, count) -> Optional[list[dict[str, Any]]]:
        return await self.matches(start, end, language, count)

    async def _fetch_standings(self, competition_id, season_id, stage_id, language) -> Optional[dict[str, Any]]:
        return await self.standings(competition_id, season_id, stage_id, language)

    async def _fetch_head_to_head(self, team_a, team_b, language, count, before=None) -> Optional[dict[str, Any]]:
        return await self.head_to_head(team_a, team_b, language, count, before)

    async def _fetch_match_detail(self, competition_id, season_id, stage_id, match_id, language) -> Optional[dict[str, Any]]:
        return await self.detail(competition_id, season_id, stage_id, match_id, language)


@pytest.fixture
def raw_match() -> Callable[..., dict[str, Any]]:
    return build_raw_match


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, metrics_enabled=False)


@pytest.fixture
def feed() -> FakeFeed:
    return FakeFeed()
