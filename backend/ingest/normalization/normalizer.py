"""
Normalization layer for raw feed match records.
Turns calendar-shaped and live-shaped records into canonical ``Match`` values.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import tzinfo
from typing import Any, Iterable, Mapping, Optional, Union

from pydantic import ValidationError

from shared.config import Settings, get_settings
from shared.models.domain import CompetitionMetadata, Match, TeamSnapshot
from shared.models.enums import MatchStatus, status_from_code
from shared.models.feed import RawMatch, RawTeam
from shared.utils.logging import get_logger
from shared.utils.metrics import NORMALIZED_RECORDS, SKIPPED_RECORDS

from ingest.normalization.names import resolve_optional_name

logger = get_logger(__name__)

PLACEHOLDER_TEAM_NAME = "TBD"
DEFAULT_COMPETITION_NAME = "Competition"
LIVE_LABEL = "LIVE"
FULL_TIME_LABEL = "FT"
PICTURE_FORMAT = "sq"
PICTURE_SIZE = "1"


class MalformedRecordError(ValueError):
    """Raised when a raw record lacks the identity needed to become a Match."""


# ── Team shapes ─────────────────────────────────────────────────────────
@dataclass(frozen=True)
class CalendarTeams:
    """Calendar feed shape: ``Home`` / ``Away``."""
    home: Optional[RawTeam]
    away: Optional[RawTeam]


@dataclass(frozen=True)
class LiveTeams:
    """Live feed shape: ``HomeTeam`` / ``AwayTeam``."""
    home: Optional[RawTeam]
    away: Optional[RawTeam]


TeamShape = Union[CalendarTeams, LiveTeams]


def classify_team_shape(raw: RawMatch) -> TeamShape:
    if raw.has_calendar_teams:
        return CalendarTeams(home=raw.home, away=raw.away)
    return LiveTeams(home=raw.home_team, away=raw.away_team)


def parse_record(record: Union[RawMatch, Mapping[str, Any]]) -> RawMatch:
    if isinstance(record, RawMatch):
        return record
    if not isinstance(record, Mapping):
        raise MalformedRecordError(f"expected a mapping, got {type(record).__name__}")
    try:
        return RawMatch.model_validate(record)
    except ValidationError as exc:
        raise MalformedRecordError(str(exc)) from exc


class MatchNormalizer:
    """
    Converts raw feed records into immutable ``Match`` values.

    Normalization is a pure function of the record, the preferred locale and
    the viewer time zone, so re-normalizing the same record yields an equal
    value.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        preferred_locale: str | None = None,
        tz: tzinfo | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._locale = preferred_locale or self._settings.default_locale
        self._tz = tz

    @property
    def preferred_locale(self) -> str:
        return self._locale

    @property
    def tz(self) -> tzinfo | None:
        return self._tz

    # ── Public API ──────────────────────────────────────────────────────

    def normalize(self, record: Union[RawMatch, Mapping[str, Any]]) -> Match:
        """
        Normalize a single record.

        Raises:
            MalformedRecordError: if the record has no match id.
        """
        raw = parse_record(record)
        if not raw.id:
            raise MalformedRecordError("record has no IdMatch")

        shape = classify_team_shape(raw)
        status = status_from_code(raw.status)

        return Match(
            id=raw.id,
            competition_id=raw.competition_id,
            season_id=raw.season_id,
            stage_id=raw.stage_id,
            group_id=raw.group_id,
            competition_name=self._competition_name(raw),
            competition_logo_url=self.competition_logo(raw.competition_id),
            season_name=resolve_optional_name(raw.season_name, self._locale),
            stage_name=resolve_optional_name(raw.stage_name, self._locale),
            group_name=resolve_optional_name(raw.group_name, self._locale),
            home_team=self._team(shape.home, raw.home_team_score),
            away_team=self._team(shape.away, raw.away_team_score),
            kickoff=raw.date,
            status=status,
            status_code=raw.status,
            clock=raw.match_time,
            display_time=self.display_time(raw, status),
            match_day=raw.match_day,
            venue=resolve_optional_name(raw.stadium.name, self._locale) if raw.stadium else None,
            winner=raw.winner or None,
        )

    def normalize_all(self, records: Iterable[Any]) -> list[Match]:
        """Normalize many records, skipping (and logging) those without identity."""
        matches: list[Match] = []
        skipped = 0
        for record in records:
            try:
                matches.append(self.normalize(record))
            except MalformedRecordError as exc:
                skipped += 1
                SKIPPED_RECORDS.inc()
                logger.warning("match_record_skipped", error=str(exc))
        NORMALIZED_RECORDS.inc(len(matches))
        logger.debug("match_records_normalized", normalized=len(matches), skipped=skipped)
        return matches

    # ── Field rules ─────────────────────────────────────────────────────

    def _competition_name(self, raw: RawMatch) -> str:
        return (
            resolve_optional_name(raw.competition_name, self._locale)
            or resolve_optional_name(raw.stage_name, self._locale)
            or DEFAULT_COMPETITION_NAME
        )

    def _team(self, team: Optional[RawTeam], top_level_score: Optional[int]) -> TeamSnapshot:
        score = top_level_score if top_level_score is not None else (team.score if team else None)
        if team is None:
            return TeamSnapshot(
                name=PLACEHOLDER_TEAM_NAME,
                abbreviation=PLACEHOLDER_TEAM_NAME[:3].upper(),
                score=score,
            )
        name = (
            resolve_optional_name(team.name, self._locale)
            or team.short_club_name
            or PLACEHOLDER_TEAM_NAME
        )
        return TeamSnapshot(
            id=team.id,
            name=name,
            abbreviation=team.abbreviation or name[:3].upper(),
            logo_url=self.team_logo(team.id, team.picture_url),
            score=score,
        )

    def team_logo(self, team_id: Optional[str], picture_url: Optional[str] = None) -> Optional[str]:
        if picture_url:
            return picture_url.replace("{format}", PICTURE_FORMAT).replace("{size}", PICTURE_SIZE)
        if team_id:
            return self._settings.team_logo_template.format(team_id=team_id)
        return None

    def competition_logo(self, competition_id: Optional[str]) -> Optional[str]:
        if not competition_id:
            return None
        return self._settings.competition_logo_template.format(competition_id=competition_id)

    def display_time(self, raw: RawMatch, status: MatchStatus) -> str:
        if status == MatchStatus.LIVE:
            return raw.match_time or LIVE_LABEL
        if status == MatchStatus.FINISHED:
            return FULL_TIME_LABEL
        if raw.date is None:
            return ""
        return raw.date.astimezone(self._tz).strftime("%H:%M")


def extract_competition_metadata(
    records: Iterable[Any],
) -> dict[str, CompetitionMetadata]:
    """
    Map each competition id to the first complete (competition, season, stage)
    triple seen in the feed. Accepts raw records or normalized matches.
    """
    metadata: dict[str, CompetitionMetadata] = {}
    for record in records:
        if isinstance(record, Match):
            cid, sid, stid = record.competition_id, record.season_id, record.stage_id
            name: Optional[str] = record.competition_name
        else:
            try:
                raw = parse_record(record)
            except MalformedRecordError:
                continue
            cid, sid, stid = raw.competition_id, raw.season_id, raw.stage_id
            name = resolve_optional_name(raw.competition_name)
        if not (cid and sid and stid) or cid in metadata:
            continue
        metadata[cid] = CompetitionMetadata(
            competition_id=cid,
            season_id=sid,
            stage_id=stid,
            competition_name=name,
        )
    return metadata
