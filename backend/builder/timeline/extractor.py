"""
Event timeline extraction for the match detail view.
Flattens per-side goals, bookings and substitutions into one ordered timeline.
"""
from __future__ import annotations

import re
from typing import Any, Mapping, Optional, Sequence, Union

from shared.models.domain import TimelineEvent
from shared.models.enums import (
    CardType,
    TeamSide,
    TimelineEventType,
    card_type_from_code,
    goal_type_from_code,
)
from shared.models.feed import LocalizedText, RawMatch, RawTeam
from shared.utils.logging import get_logger

from ingest.normalization.names import DEFAULT_LOCALE, UNKNOWN_NAME, resolve_optional_name
from ingest.normalization.normalizer import classify_team_shape, parse_record

logger = get_logger(__name__)

_NON_DIGIT = re.compile(r"\D")


def numeric_minute(minute: Optional[str]) -> int:
    """
    Sortable integer for a feed minute string.

    Every non-digit is removed and the rest read as one number, so "45'+2'"
    becomes 452 and sorts after 45 and before 46.
    """
    digits = _NON_DIGIT.sub("", minute or "")
    return int(digits) if digits else 0


class _Roster:
    """Player-name lookup for one side."""

    def __init__(self, team: Optional[RawTeam], locale: str) -> None:
        self._names: dict[str, str] = {}
        for player in team.players if team else []:
            if not player.id:
                continue
            name = resolve_optional_name(player.name, locale) or resolve_optional_name(
                player.short_name, locale
            )
            if name:
                self._names[player.id] = name
        self._locale = locale

    def name(self, player_id: Optional[str], embedded: Sequence[LocalizedText] = ()) -> str:
        if player_id and player_id in self._names:
            return self._names[player_id]
        return resolve_optional_name(embedded, self._locale) or UNKNOWN_NAME

    def optional_name(self, player_id: Optional[str]) -> Optional[str]:
        if not player_id:
            return None
        return self._names.get(player_id)


def _goal_events(team: Optional[RawTeam], side: TeamSide, roster: _Roster) -> list[TimelineEvent]:
    if team is None:
        return []
    return [
        TimelineEvent(
            type=TimelineEventType.GOAL,
            minute=goal.minute or "",
            numeric_minute=numeric_minute(goal.minute),
            period=goal.period or 0,
            team_side=side,
            player_id=goal.player_id,
            player_name=roster.name(goal.player_id, goal.player_name),
            assist_player_id=goal.assist_player_id,
            assist_player_name=roster.optional_name(goal.assist_player_id),
            goal_type=goal_type_from_code(goal.type),
        )
        for goal in team.goals
    ]


def _booking_events(team: Optional[RawTeam], side: TeamSide, roster: _Roster) -> list[TimelineEvent]:
    if team is None:
        return []
    events: list[TimelineEvent] = []
    for booking in team.bookings:
        card = card_type_from_code(booking.card)
        event_type = TimelineEventType.YELLOW_CARD if card == CardType.YELLOW else TimelineEventType.RED_CARD
        events.append(
            TimelineEvent(
                type=event_type,
                minute=booking.minute or "",
                numeric_minute=numeric_minute(booking.minute),
                period=booking.period or 0,
                team_side=side,
                player_id=booking.player_id,
                player_name=roster.name(booking.player_id, booking.player_name),
                card_type=card,
            )
        )
    return events


def _substitution_events(
    team: Optional[RawTeam], side: TeamSide, roster: _Roster
) -> list[TimelineEvent]:
    if team is None:
        return []
    events: list[TimelineEvent] = []
    for sub in team.substitutions:
        on_name = roster.name(sub.player_on_id, sub.player_on_name)
        events.append(
            TimelineEvent(
                type=TimelineEventType.SUBSTITUTION,
                minute=sub.minute or "",
                numeric_minute=numeric_minute(sub.minute),
                period=sub.period or 0,
                team_side=side,
                player_id=sub.player_on_id,
                player_name=on_name,
                player_off_id=sub.player_off_id,
                player_off_name=roster.name(sub.player_off_id, sub.player_off_name),
                player_on_id=sub.player_on_id,
                player_on_name=on_name,
            )
        )
    return events


def merge_side_events(
    home: Optional[RawTeam],
    away: Optional[RawTeam],
    preferred_locale: str = DEFAULT_LOCALE,
) -> list[TimelineEvent]:
    """Combine both sides' event feeds into one chronologically ordered list."""
    home_roster = _Roster(home, preferred_locale)
    away_roster = _Roster(away, preferred_locale)

    events: list[TimelineEvent] = [
        *_goal_events(home, TeamSide.HOME, home_roster),
        *_goal_events(away, TeamSide.AWAY, away_roster),
        *_booking_events(home, TeamSide.HOME, home_roster),
        *_booking_events(away, TeamSide.AWAY, away_roster),
        *_substitution_events(home, TeamSide.HOME, home_roster),
        *_substitution_events(away, TeamSide.AWAY, away_roster),
    ]
    # sorted() is stable: same-minute events keep their category order.
    return sorted(events, key=lambda e: (e.period, e.numeric_minute))


def extract_timeline(
    detail: Union[RawMatch, Mapping[str, Any]],
    preferred_locale: str = DEFAULT_LOCALE,
) -> list[TimelineEvent]:
    """Timeline for a match-detail record in either the calendar or live shape."""
    raw = parse_record(detail)
    shape = classify_team_shape(raw)
    events = merge_side_events(shape.home, shape.away, preferred_locale)
    logger.debug("timeline_extracted", match_id=raw.id, events=len(events))
    return events
