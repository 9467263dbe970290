"""
Standings aggregation.

Builds ordered ``StandingsTable`` values from a standings payload, which the
feed delivers either as ``Groups[*].Entries`` (group stages) or as a flat
``Results`` list whose entries may carry their own ``Group`` label.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Sequence, Union

from pydantic import ValidationError

from shared.config import Settings, get_settings
from shared.models.domain import StandingRow, StandingsTable
from shared.models.enums import FORM_LENGTH, RESULT_NOT_PLAYED, FormResult
from shared.models.feed import (
    RawStandingEntry,
    RawStandingMatchResult,
    RawStandingsResponse,
)
from shared.utils.logging import get_logger

from ingest.normalization.names import DEFAULT_LOCALE, resolve_optional_name

logger = get_logger(__name__)

UNKNOWN_TEAM = "Unknown"
UNKNOWN_ABBREVIATION = "UNK"
_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def extract_form(results: Sequence[RawStandingMatchResult], team_id: Optional[str]) -> tuple[FormResult, ...]:
    """
    Last five played results for ``team_id``, most recent first, padded with
    ``FormResult.NOT_PLAYED``.
    """
    played = [
        r
        for r in results
        if r.result != RESULT_NOT_PLAYED
        and (r.home_team_score is not None or r.away_team_score is not None)
    ]
    played.sort(key=lambda r: r.start_time or _EPOCH, reverse=True)

    form: list[FormResult] = []
    for r in played[:FORM_LENGTH]:
        home = r.home_team_score or 0
        away = r.away_team_score or 0
        if home == away:
            form.append(FormResult.DRAW)
            continue
        is_home = r.home_team_id == team_id
        won = home > away if is_home else away > home
        form.append(FormResult.WIN if won else FormResult.LOSS)

    form.extend([FormResult.NOT_PLAYED] * (FORM_LENGTH - len(form)))
    return tuple(form)


class StandingsAggregator:
    def __init__(self, settings: Settings | None = None, preferred_locale: str | None = None) -> None:
        self._settings = settings or get_settings()
        self._locale = preferred_locale or self._settings.default_locale or DEFAULT_LOCALE

    def aggregate(
        self, payload: Union[RawStandingsResponse, Mapping[str, Any], None]
    ) -> list[StandingsTable]:
        response = self._parse(payload)
        if response is None:
            return []

        grouped = [g for g in response.groups if g.entries]
        if grouped:
            return [
                StandingsTable(
                    group_id=g.id,
                    group_name=resolve_optional_name(g.name, self._locale),
                    rows=self._rows(g.entries),
                )
                for g in grouped
            ]

        if not response.results:
            return []

        # Flat results: partition by each entry's own group label, keeping first-seen order.
        partitions: dict[Optional[str], list[RawStandingEntry]] = {}
        group_ids: dict[Optional[str], Optional[str]] = {}
        for entry in response.results:
            name = resolve_optional_name(entry.group, self._locale)
            partitions.setdefault(name, []).append(entry)
            group_ids.setdefault(name, entry.group_id)
        return [
            StandingsTable(group_id=group_ids[name], group_name=name, rows=self._rows(entries))
            for name, entries in partitions.items()
        ]

    def _parse(
        self, payload: Union[RawStandingsResponse, Mapping[str, Any], None]
    ) -> Optional[RawStandingsResponse]:
        if payload is None or isinstance(payload, RawStandingsResponse):
            return payload
        if not isinstance(payload, Mapping):
            logger.warning("standings_payload_not_mapping", type=type(payload).__name__)
            return None
        try:
            return RawStandingsResponse.model_validate(payload)
        except ValidationError as exc:
            logger.warning("standings_payload_invalid", error=str(exc))
            return None

    def _rows(self, entries: Sequence[RawStandingEntry]) -> tuple[StandingRow, ...]:
        rows = [self.row(entry) for entry in entries]
        rows.sort(key=lambda r: r.position)
        return tuple(rows)

    def row(self, entry: RawStandingEntry) -> StandingRow:
        team = entry.team
        team_id = (team.id if team else None) or entry.team_id

        name = None
        if team is not None:
            name = (
                resolve_optional_name(team.name, self._locale)
                or resolve_optional_name(team.team_name, self._locale)
                or team.short_club_name
                or team.abbreviation
            )
        name = name or UNKNOWN_TEAM

        abbreviation = (
            (team.abbreviation if team else None)
            or (team.short_club_name[:3].upper() if team and team.short_club_name else None)
            or name[:3].upper()
            or UNKNOWN_ABBREVIATION
        )

        goals_for = entry.goals_for or 0
        goals_against = entry.goals_against or 0
        if entry.goals_difference is not None:
            goal_difference = entry.goals_difference
        elif entry.goals_diference is not None:
            goal_difference = entry.goals_diference
        else:
            goal_difference = goals_for - goals_against

        return StandingRow(
            position=entry.position or 0,
            team_id=team_id,
            team_name=name,
            team_abbreviation=abbreviation,
            team_logo_url=self._settings.team_logo_template.format(team_id=team_id) if team_id else None,
            played=entry.played or 0,
            won=entry.won or 0,
            drawn=entry.drawn or 0,
            lost=entry.lost or 0,
            goals_for=goals_for,
            goals_against=goals_against,
            goal_difference=goal_difference,
            points=entry.points or 0,
            form=extract_form(entry.match_results, team_id),
        )


def aggregate_standings(
    payload: Union[RawStandingsResponse, Mapping[str, Any], None],
    preferred_locale: str | None = None,
    settings: Settings | None = None,
) -> list[StandingsTable]:
    return StandingsAggregator(settings, preferred_locale).aggregate(payload)


def primary_standing_rows(
    payload: Union[RawStandingsResponse, Mapping[str, Any], None],
    preferred_locale: str | None = None,
    settings: Settings | None = None,
) -> tuple[StandingRow, ...]:
    """Rows of the first table, the single-table view most competitions need."""
    return first_table_rows(aggregate_standings(payload, preferred_locale, settings))


def first_table_rows(tables: Sequence[StandingsTable]) -> tuple[StandingRow, ...]:
    return tables[0].rows if tables else ()
