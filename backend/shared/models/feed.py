"""
Lenient pydantic models for raw feed payloads.

The upstream feed is loosely typed: ids arrive as strings or numbers, scores
as numbers, strings or null, and localized names as lists of
``{"Locale", "Description"}`` objects (or occasionally plain strings).
Every field here coerces malformed input to ``None`` / empty instead of
raising, so one bad field never drops a whole record.
"""
from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def _lenient_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        m = _LEADING_INT.match(value)
        return int(m.group(1)) if m else None
    return None


def _lenient_str(value: Any) -> Optional[str]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return None


def _lenient_localized(value: Any) -> list[Any]:
    if isinstance(value, str):
        return [{"Locale": "", "Description": value}] if value else []
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _lenient_records(value: Any) -> list[Any]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _lenient_object(value: Any) -> Any:
    return value if isinstance(value, dict) else None


def _lenient_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


LenientInt = Annotated[Optional[int], BeforeValidator(_lenient_int)]
LenientStr = Annotated[Optional[str], BeforeValidator(_lenient_str)]
LenientDatetime = Annotated[Optional[datetime], BeforeValidator(_lenient_datetime)]


# ── Base ────────────────────────────────────────────────────────────────
class FeedModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class LocalizedText(FeedModel):
    locale: LenientStr = Field(default=None, alias="Locale")
    text: LenientStr = Field(default=None, alias="Description")


LocalizedList = Annotated[list[LocalizedText], BeforeValidator(_lenient_localized)]


# ── Match records ───────────────────────────────────────────────────────
class RawPlayer(FeedModel):
    id: LenientStr = Field(default=None, alias="IdPlayer")
    name: LocalizedList = Field(default_factory=list, alias="PlayerName")
    short_name: LocalizedList = Field(default_factory=list, alias="ShortName")
    shirt_number: LenientInt = Field(default=None, alias="ShirtNumber")


class RawGoal(FeedModel):
    type: LenientInt = Field(default=None, alias="Type")
    player_id: LenientStr = Field(default=None, alias="IdPlayer")
    player_name: LocalizedList = Field(default_factory=list, alias="PlayerName")
    assist_player_id: LenientStr = Field(default=None, alias="IdAssistPlayer")
    minute: LenientStr = Field(default=None, alias="Minute")
    period: LenientInt = Field(default=None, alias="Period")
    team_id: LenientStr = Field(default=None, alias="IdTeam")


class RawBooking(FeedModel):
    card: LenientInt = Field(default=None, alias="Card")
    player_id: LenientStr = Field(default=None, alias="IdPlayer")
    player_name: LocalizedList = Field(default_factory=list, alias="PlayerName")
    minute: LenientStr = Field(default=None, alias="Minute")
    period: LenientInt = Field(default=None, alias="Period")


class RawSubstitution(FeedModel):
    player_off_id: LenientStr = Field(default=None, alias="IdPlayerOff")
    player_on_id: LenientStr = Field(default=None, alias="IdPlayerOn")
    player_off_name: LocalizedList = Field(default_factory=list, alias="PlayerOffName")
    player_on_name: LocalizedList = Field(default_factory=list, alias="PlayerOnName")
    minute: LenientStr = Field(default=None, alias="Minute")
    period: LenientInt = Field(default=None, alias="Period")


class RawTeam(FeedModel):
    id: LenientStr = Field(default=None, alias="IdTeam")
    name: LocalizedList = Field(default_factory=list, alias="TeamName")
    short_club_name: LenientStr = Field(default=None, alias="ShortClubName")
    abbreviation: LenientStr = Field(default=None, alias="Abbreviation")
    picture_url: LenientStr = Field(default=None, alias="PictureUrl")
    score: LenientInt = Field(default=None, alias="Score")
    players: Annotated[list[RawPlayer], BeforeValidator(_lenient_records)] = Field(
        default_factory=list, alias="Players"
    )
    goals: Annotated[list[RawGoal], BeforeValidator(_lenient_records)] = Field(
        default_factory=list, alias="Goals"
    )
    bookings: Annotated[list[RawBooking], BeforeValidator(_lenient_records)] = Field(
        default_factory=list, alias="Bookings"
    )
    substitutions: Annotated[list[RawSubstitution], BeforeValidator(_lenient_records)] = Field(
        default_factory=list, alias="Substitutions"
    )


OptionalTeam = Annotated[Optional[RawTeam], BeforeValidator(_lenient_object)]


class RawStadium(FeedModel):
    name: LocalizedList = Field(default_factory=list, alias="Name")
    city_name: LocalizedList = Field(default_factory=list, alias="CityName")


class RawMatch(FeedModel):
    """One match record from the calendar or live feed."""

    id: LenientStr = Field(default=None, alias="IdMatch")
    competition_id: LenientStr = Field(default=None, alias="IdCompetition")
    season_id: LenientStr = Field(default=None, alias="IdSeason")
    stage_id: LenientStr = Field(default=None, alias="IdStage")
    group_id: LenientStr = Field(default=None, alias="IdGroup")
    competition_name: LocalizedList = Field(default_factory=list, alias="CompetitionName")
    season_name: LocalizedList = Field(default_factory=list, alias="SeasonName")
    stage_name: LocalizedList = Field(default_factory=list, alias="StageName")
    group_name: LocalizedList = Field(default_factory=list, alias="GroupName")
    date: LenientDatetime = Field(default=None, alias="Date")
    home: OptionalTeam = Field(default=None, alias="Home")
    away: OptionalTeam = Field(default=None, alias="Away")
    home_team: OptionalTeam = Field(default=None, alias="HomeTeam")
    away_team: OptionalTeam = Field(default=None, alias="AwayTeam")
    home_team_score: LenientInt = Field(default=None, alias="HomeTeamScore")
    away_team_score: LenientInt = Field(default=None, alias="AwayTeamScore")
    status: LenientInt = Field(default=None, alias="MatchStatus")
    match_time: LenientStr = Field(default=None, alias="MatchTime")
    match_day: LenientInt = Field(default=None, alias="MatchDay")
    stadium: Annotated[Optional[RawStadium], BeforeValidator(_lenient_object)] = Field(
        default=None, alias="Stadium"
    )
    winner: LenientStr = Field(default=None, alias="Winner")

    @property
    def has_calendar_teams(self) -> bool:
        """True when the record carries a calendar ``Home``/``Away`` team object."""
        return self.home is not None or self.away is not None


# ── Standings ───────────────────────────────────────────────────────────
class RawStandingTeam(FeedModel):
    id: LenientStr = Field(default=None, alias="IdTeam")
    name: LocalizedList = Field(default_factory=list, alias="Name")
    team_name: LocalizedList = Field(default_factory=list, alias="TeamName")
    short_club_name: LenientStr = Field(default=None, alias="ShortClubName")
    abbreviation: LenientStr = Field(default=None, alias="Abbreviation")


class RawStandingMatchResult(FeedModel):
    match_id: LenientStr = Field(default=None, alias="IdMatch")
    start_time: LenientDatetime = Field(default=None, alias="StartTime")
    result: LenientInt = Field(default=None, alias="Result")
    home_team_score: LenientInt = Field(default=None, alias="HomeTeamScore")
    away_team_score: LenientInt = Field(default=None, alias="AwayTeamScore")
    home_team_id: LenientStr = Field(default=None, alias="HomeTeamId")
    away_team_id: LenientStr = Field(default=None, alias="AwayTeamId")


class RawStandingEntry(FeedModel):
    team_id: LenientStr = Field(default=None, alias="IdTeam")
    team: Annotated[Optional[RawStandingTeam], BeforeValidator(_lenient_object)] = Field(
        default=None, alias="Team"
    )
    group_id: LenientStr = Field(default=None, alias="IdGroup")
    group: LocalizedList = Field(default_factory=list, alias="Group")
    position: LenientInt = Field(default=None, alias="Position")
    played: LenientInt = Field(default=None, alias="Played")
    won: LenientInt = Field(default=None, alias="Won")
    drawn: LenientInt = Field(default=None, alias="Drawn")
    lost: LenientInt = Field(default=None, alias="Lost")
    goals_for: LenientInt = Field(default=None, alias="For")
    goals_against: LenientInt = Field(default=None, alias="Against")
    goals_difference: LenientInt = Field(default=None, alias="GoalsDifference")
    # The feed sometimes misspells the goal difference key.
    goals_diference: LenientInt = Field(default=None, alias="GoalsDiference")
    points: LenientInt = Field(default=None, alias="Points")
    match_results: Annotated[
        list[RawStandingMatchResult], BeforeValidator(_lenient_records)
    ] = Field(default_factory=list, alias="MatchResults")


class RawStandingsGroup(FeedModel):
    id: LenientStr = Field(default=None, alias="IdGroup")
    name: LocalizedList = Field(default_factory=list, alias="GroupName")
    entries: Annotated[list[RawStandingEntry], BeforeValidator(_lenient_records)] = Field(
        default_factory=list, alias="Entries"
    )


class RawStandingsResponse(FeedModel):
    competition_id: LenientStr = Field(default=None, alias="IdCompetition")
    season_id: LenientStr = Field(default=None, alias="IdSeason")
    stage_id: LenientStr = Field(default=None, alias="IdStage")
    groups: Annotated[list[RawStandingsGroup], BeforeValidator(_lenient_records)] = Field(
        default_factory=list, alias="Groups"
    )
    results: Annotated[list[RawStandingEntry], BeforeValidator(_lenient_records)] = Field(
        default_factory=list, alias="Results"
    )


# ── Head-to-head ────────────────────────────────────────────────────────
class RawHeadToHeadTeam(FeedModel):
    id: LenientStr = Field(default=None, alias="IdTeam")
    name: LocalizedList = Field(default_factory=list, alias="TeamName")
    picture_url: LenientStr = Field(default=None, alias="PictureUrl")
    matches_played: LenientInt = Field(default=None, alias="MatchesPlayed")
    wins: LenientInt = Field(default=None, alias="Wins")
    losses: LenientInt = Field(default=None, alias="Losses")
    draws: LenientInt = Field(default=None, alias="Draws")
    goals_scored: LenientInt = Field(default=None, alias="GoalsScored")
    goals_against: LenientInt = Field(default=None, alias="GoalsAgainst")


class RawHeadToHeadResponse(FeedModel):
    team_a: Annotated[Optional[RawHeadToHeadTeam], BeforeValidator(_lenient_object)] = Field(
        default=None, alias="TeamA"
    )
    team_b: Annotated[Optional[RawHeadToHeadTeam], BeforeValidator(_lenient_object)] = Field(
        default=None, alias="TeamB"
    )
    matches: Annotated[list[dict[str, Any]], BeforeValidator(_lenient_records)] = Field(
        default_factory=list, alias="MatchesList"
    )
