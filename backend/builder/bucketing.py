"""
Viewer-local calendar bucketing.

A match belongs to the day on which it kicks off *in the viewer's time zone*,
never the UTC day. Because the feed is queried in UTC, the fetch window
spans one UTC day either side of the reference date so that every match
that could land on the local day is retrieved.
"""
from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Iterable, Optional

from shared.models.domain import Match

FEED_INSTANT_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def local_date(instant: datetime, tz: Optional[tzinfo] = None) -> date:
    """Calendar date of ``instant`` in ``tz`` (the runtime local zone when None)."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(tz).date()


def is_on_local_day(match: Match, reference: date, tz: Optional[tzinfo] = None) -> bool:
    if match.kickoff is None:
        return False
    return local_date(match.kickoff, tz) == reference


def bucket_for_day(
    matches: Iterable[Match], reference: date, tz: Optional[tzinfo] = None
) -> list[Match]:
    return [m for m in matches if is_on_local_day(m, reference, tz)]


def fetch_window(reference: date) -> tuple[datetime, datetime]:
    """UTC window from the start of the previous day to the end of the next day."""
    start = datetime.combine(reference - timedelta(days=1), time(0, 0, 0), tzinfo=timezone.utc)
    end = datetime.combine(reference + timedelta(days=1), time(23, 59, 59), tzinfo=timezone.utc)
    return start, end


def format_feed_instant(instant: datetime) -> str:
    if instant.tzinfo is not None:
        instant = instant.astimezone(timezone.utc)
    return instant.strftime(FEED_INSTANT_FORMAT)
