"""
Competition grouping for a day of matches.

Matches are grouped by competition, viewer-local date and (when present)
match-day. Only competitions with purely numeric ids are shown; anything
else in the feed (friendlies, youth tournaments keyed by slug) is dropped.
"""
from __future__ import annotations

import re
import unicodedata
from datetime import date, datetime, timezone, tzinfo
from typing import Iterable, Optional

from shared.models.domain import CompetitionGroup, Match
from shared.utils.logging import get_logger

from builder.bucketing import bucket_for_day, local_date
from builder.context import CompetitionContext

logger = get_logger(__name__)

_NUMERIC_ID = re.compile(r"[0-9]+")
_FAR_FUTURE = datetime.max.replace(tzinfo=timezone.utc)


def has_numeric_competition(match: Match) -> bool:
    return bool(match.competition_id) and _NUMERIC_ID.fullmatch(match.competition_id) is not None


def collation_key(text: str) -> str:
    """Accent- and case-insensitive sort key, e.g. "Álvarez" sorts with "alvarez"."""
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold()


def group_key(match: Match, match_date: str) -> str:
    key = f"{match.competition_id or match.competition_name}|{match_date}"
    if match.match_day is not None:
        key += f"|md{match.match_day}"
    return key


def _match_order(match: Match) -> tuple[datetime, str]:
    return (match.kickoff or _FAR_FUTURE, match.id)


def _group_order(group: CompetitionGroup) -> tuple[str, str, int, str]:
    return (collation_key(group.competition_name), group.date, group.match_day or 0, group.key)


def group_matches(
    matches: Iterable[Match],
    context: Optional[CompetitionContext] = None,
    tz: Optional[tzinfo] = None,
) -> list[CompetitionGroup]:
    """Group matches into ordered ``CompetitionGroup`` values."""
    buckets: dict[str, list[Match]] = {}
    dates: dict[str, str] = {}
    excluded = 0

    for match in matches:
        if not has_numeric_competition(match):
            excluded += 1
            continue
        match_date = local_date(match.kickoff, tz).isoformat() if match.kickoff else ""
        key = group_key(match, match_date)
        buckets.setdefault(key, []).append(match)
        dates[key] = match_date

    groups: list[CompetitionGroup] = []
    for key, members in buckets.items():
        ordered = tuple(sorted(members, key=_match_order))
        first = members[0]
        meta = context.metadata_for(first.competition_id) if context else None
        groups.append(
            CompetitionGroup(
                key=key,
                competition_id=first.competition_id,
                competition_name=first.competition_name,
                competition_logo_url=first.competition_logo_url,
                season_id=first.season_id or (meta.season_id if meta else None),
                stage_id=first.stage_id or (meta.stage_id if meta else None),
                season_name=first.season_name,
                match_day=first.match_day,
                date=dates[key],
                matches=ordered,
            )
        )

    groups.sort(key=_group_order)
    if excluded:
        logger.debug("non_numeric_competitions_excluded", count=excluded)
    return groups


def build_day_groups(
    matches: Iterable[Match],
    reference: date,
    context: Optional[CompetitionContext] = None,
    tz: Optional[tzinfo] = None,
) -> list[CompetitionGroup]:
    return group_matches(bucket_for_day(matches, reference, tz), context, tz)
