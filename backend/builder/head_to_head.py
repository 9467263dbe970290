"""
Head-to-head aggregation.

The statistics feed labels its two blocks ``TeamA`` / ``TeamB`` without
regard to which side is at home in the match being viewed. Output is always
oriented to the current match: the first slot is the current home team.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError

from shared.models.domain import (
    HeadToHeadMatch,
    HeadToHeadStats,
    HeadToHeadTeamStats,
    Match,
)
from shared.models.feed import RawHeadToHeadResponse, RawHeadToHeadTeam
from shared.utils.logging import get_logger

from ingest.normalization.names import resolve_optional_name
from ingest.normalization.normalizer import MatchNormalizer

logger = get_logger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _team_stats(team: Optional[RawHeadToHeadTeam], normalizer: MatchNormalizer) -> HeadToHeadTeamStats:
    if team is None:
        return HeadToHeadTeamStats(team_name="Unknown")
    return HeadToHeadTeamStats(
        team_id=team.id,
        team_name=resolve_optional_name(team.name, normalizer.preferred_locale) or "Unknown",
        team_logo_url=normalizer.team_logo(team.id, team.picture_url),
        matches_played=team.matches_played or 0,
        wins=team.wins or 0,
        draws=team.draws or 0,
        losses=team.losses or 0,
        goals_scored=team.goals_scored or 0,
        goals_against=team.goals_against or 0,
    )


def _winner_of(match: Match) -> Optional[str]:
    """Team id that won a historical match, from the winner field or the score."""
    if match.winner:
        return match.winner
    home, away = match.home_score, match.away_score
    if home is None or away is None or home == away:
        return None
    return match.home_team.id if home > away else match.away_team.id


def annotate_history(match: Match, home_team_id: Optional[str], away_team_id: Optional[str]) -> HeadToHeadMatch:
    winner = _winner_of(match)
    return HeadToHeadMatch(
        match=match,
        did_home_win=winner is not None and winner == home_team_id,
        did_away_win=winner is not None and winner == away_team_id,
    )


def aggregate_head_to_head(
    payload: Union[RawHeadToHeadResponse, Mapping[str, Any], None],
    home_team_id: Optional[str],
    away_team_id: Optional[str],
    normalizer: MatchNormalizer,
) -> Optional[HeadToHeadStats]:
    """
    Orient head-to-head stats to the current match.

    Returns None when the payload is absent or unusable.
    """
    if payload is None:
        return None
    if isinstance(payload, RawHeadToHeadResponse):
        response = payload
    else:
        try:
            response = RawHeadToHeadResponse.model_validate(payload)
        except ValidationError as exc:
            logger.warning("head_to_head_payload_invalid", error=str(exc))
            return None

    first, second = response.team_a, response.team_b
    oriented = True
    if home_team_id and second is not None and second.id == home_team_id:
        first, second = second, first
    elif not (home_team_id and first is not None and first.id == home_team_id):
        oriented = False
        logger.warning(
            "head_to_head_unoriented",
            home_team_id=home_team_id,
            team_a=first.id if first else None,
            team_b=second.id if second else None,
        )

    history = normalizer.normalize_all(response.matches)
    history.sort(key=lambda m: m.kickoff or _EPOCH, reverse=True)

    return HeadToHeadStats(
        home=_team_stats(first, normalizer),
        away=_team_stats(second, normalizer),
        matches=tuple(annotate_history(m, home_team_id, away_team_id) for m in history),
        oriented=oriented,
    )
