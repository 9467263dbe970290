"""
Live reconciliation of a displayed day view against a fresh feed snapshot.

Only the live-changing fields of each match are refreshed; identity, names,
logos, competition metadata and the group structure stay exactly as shown.
Matches and groups with no change keep their identity, so callers can diff
cheaply by ``is``.
"""
from __future__ import annotations

from typing import Iterable, Optional, Sequence, Union

from shared.models.domain import CompetitionGroup, Match
from shared.utils.logging import get_logger
from shared.utils.metrics import RECONCILED_MATCHES

logger = get_logger(__name__)

LIVE_MATCH_FIELDS = ("status", "status_code", "clock", "display_time", "winner")


class ReconciliationError(RuntimeError):
    """The previous view violates the reconciler's contract (caller bug)."""


def _live_fields_equal(previous: Match, latest: Match) -> bool:
    return (
        previous.home_score == latest.home_score
        and previous.away_score == latest.away_score
        and all(getattr(previous, f) == getattr(latest, f) for f in LIVE_MATCH_FIELDS)
    )


def refresh_match(previous: Match, latest: Optional[Match]) -> Match:
    """Copy the live fields of ``latest`` onto ``previous``; everything else is kept."""
    if latest is None or _live_fields_equal(previous, latest):
        return previous
    update = {f: getattr(latest, f) for f in LIVE_MATCH_FIELDS}
    update["home_team"] = previous.home_team.model_copy(update={"score": latest.home_score})
    update["away_team"] = previous.away_team.model_copy(update={"score": latest.away_score})
    return previous.model_copy(update=update)


def _index(fresh: Iterable[Union[Match, CompetitionGroup]]) -> dict[str, Match]:
    index: dict[str, Match] = {}
    for item in fresh:
        members: Iterable[Match] = item.matches if isinstance(item, CompetitionGroup) else (item,)
        for match in members:
            index[match.id] = match
    return index


def reconcile(
    previous_groups: Sequence[CompetitionGroup],
    fresh: Iterable[Union[Match, CompetitionGroup]],
    expected_keys: Optional[Sequence[str]] = None,
) -> list[CompetitionGroup]:
    """
    Apply live updates from ``fresh`` (matches or groups) to ``previous_groups``.

    Matches missing from ``fresh`` are left untouched and matches only in
    ``fresh`` are ignored: the set of displayed matches changes only on a
    date change, never on a poll.

    Raises:
        ReconciliationError: if group keys are duplicated or differ from
            ``expected_keys``.
    """
    keys = [g.key for g in previous_groups]
    if len(set(keys)) != len(keys):
        raise ReconciliationError("duplicate group keys in previous view")
    if expected_keys is not None and list(expected_keys) != keys:
        raise ReconciliationError(
            f"previous view keys {keys!r} do not match expected {list(expected_keys)!r}"
        )

    index = _index(fresh)
    changed = 0
    result: list[CompetitionGroup] = []
    for group in previous_groups:
        matches = tuple(refresh_match(m, index.get(m.id)) for m in group.matches)
        group_changed = sum(1 for old, new in zip(group.matches, matches) if old is not new)
        if group_changed:
            changed += group_changed
            result.append(group.model_copy(update={"matches": matches}))
        else:
            result.append(group)

    if changed:
        RECONCILED_MATCHES.inc(changed)
        logger.info("live_view_reconciled", changed=changed, groups=len(result))
    return result
