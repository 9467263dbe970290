"""
Pydantic v2 domain models for the Match Centre.
These are the canonical, immutable view-model values produced by the core.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from shared.models.enums import (
    CardType,
    FormResult,
    GoalType,
    MatchStatus,
    TeamSide,
    TimelineEventType,
)


# ── Base ────────────────────────────────────────────────────────────────
class DomainModel(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True, frozen=True)


# ── Matches ─────────────────────────────────────────────────────────────
class TeamSnapshot(DomainModel):
    id: Optional[str] = None
    name: str
    abbreviation: str
    logo_url: Optional[str] = None
    score: Optional[int] = None


class Match(DomainModel):
    """A single fixture, identified solely by ``id``."""
    id: str
    competition_id: Optional[str] = None
    season_id: Optional[str] = None
    stage_id: Optional[str] = None
    group_id: Optional[str] = None
    competition_name: str = "Competition"
    competition_logo_url: Optional[str] = None
    season_name: Optional[str] = None
    stage_name: Optional[str] = None
    group_name: Optional[str] = None
    home_team: TeamSnapshot
    away_team: TeamSnapshot
    kickoff: Optional[datetime] = None
    status: MatchStatus = MatchStatus.SCHEDULED
    status_code: Optional[int] = None
    clock: Optional[str] = None
    display_time: str = ""
    match_day: Optional[int] = None
    venue: Optional[str] = None
    winner: Optional[str] = None

    @property
    def home_score(self) -> Optional[int]:
        return self.home_team.score

    @property
    def away_score(self) -> Optional[int]:
        return self.away_team.score


class CompetitionGroup(DomainModel):
    """Matches of one competition on one viewer-local day (and match-day)."""
    key: str
    competition_id: Optional[str] = None
    competition_name: str
    competition_logo_url: Optional[str] = None
    season_id: Optional[str] = None
    stage_id: Optional[str] = None
    season_name: Optional[str] = None
    match_day: Optional[int] = None
    date: str
    matches: tuple[Match, ...] = ()


class CompetitionMetadata(DomainModel):
    competition_id: str
    season_id: str
    stage_id: str
    competition_name: Optional[str] = None


# ── Standings ───────────────────────────────────────────────────────────
class StandingRow(DomainModel):
    position: int = 0
    team_id: Optional[str] = None
    team_name: str
    team_abbreviation: str
    team_logo_url: Optional[str] = None
    played: int = 0
    won: int = 0
    drawn: int = 0
    lost: int = 0
    goals_for: int = 0
    goals_against: int = 0
    goal_difference: int = 0
    points: int = 0
    form: tuple[FormResult, ...] = ()

    @property
    def chronological_form(self) -> tuple[FormResult, ...]:
        """Form oldest-first, the order it is usually displayed in."""
        return tuple(reversed(self.form))


class StandingsTable(DomainModel):
    group_id: Optional[str] = None
    group_name: Optional[str] = None
    rows: tuple[StandingRow, ...] = ()


# ── Timeline ────────────────────────────────────────────────────────────
class TimelineEvent(DomainModel):
    type: TimelineEventType
    minute: str = ""
    numeric_minute: int = 0
    period: int = 0
    team_side: TeamSide
    player_id: Optional[str] = None
    player_name: str = "Unknown"
    assist_player_id: Optional[str] = None
    assist_player_name: Optional[str] = None
    goal_type: Optional[GoalType] = None
    card_type: Optional[CardType] = None
    player_off_id: Optional[str] = None
    player_off_name: Optional[str] = None
    player_on_id: Optional[str] = None
    player_on_name: Optional[str] = None


# ── Head-to-head ────────────────────────────────────────────────────────
class HeadToHeadTeamStats(DomainModel):
    team_id: Optional[str] = None
    team_name: str
    team_logo_url: Optional[str] = None
    matches_played: int = 0
    wins: int = 0
    draws: int = 0
    losses: int = 0
    goals_scored: int = 0
    goals_against: int = 0


class HeadToHeadMatch(DomainModel):
    match: Match
    did_home_win: bool = False
    did_away_win: bool = False

    @property
    def is_draw(self) -> bool:
        home, away = self.match.home_score, self.match.away_score
        return home is not None and away is not None and home == away


class HeadToHeadStats(DomainModel):
    home: HeadToHeadTeamStats
    away: HeadToHeadTeamStats
    matches: tuple[HeadToHeadMatch, ...] = ()
    oriented: bool = True


# ── Session views ───────────────────────────────────────────────────────
class DayView(DomainModel):
    """Everything visible for one reference date."""
    reference_date: date
    groups: tuple[CompetitionGroup, ...] = ()
    standings: dict[str, tuple[StandingsTable, ...]] = Field(default_factory=dict)
    fetched: bool = True


class MatchDetailView(DomainModel):
    match: Match
    timeline: tuple[TimelineEvent, ...] = ()
    head_to_head: Optional[HeadToHeadStats] = None
    standings: tuple[StandingsTable, ...] = ()
