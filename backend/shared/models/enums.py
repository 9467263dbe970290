"""Domain enumerations and feed code tables for the Match Centre."""
from __future__ import annotations

from enum import Enum


class MatchStatus(str, Enum):
    SCHEDULED = "scheduled"
    LIVE = "live"
    FINISHED = "finished"

    @property
    def is_live(self) -> bool:
        return self == MatchStatus.LIVE


# ── Feed match status codes ─────────────────────────────────────────────
STATUS_PLAYED = 0
STATUS_TO_BE_PLAYED = 1
STATUS_LIVE = 3
STATUS_LIVE_SECOND_PHASE = 4
STATUS_FINISHED_THRESHOLD = 10

LIVE_STATUS_CODES = frozenset({STATUS_LIVE, STATUS_LIVE_SECOND_PHASE})


def status_from_code(code: int | None) -> MatchStatus:
    """Map a raw feed status code onto the three-state lifecycle."""
    if code is None:
        return MatchStatus.SCHEDULED
    if code == STATUS_PLAYED:
        return MatchStatus.FINISHED
    if code == STATUS_TO_BE_PLAYED:
        return MatchStatus.SCHEDULED
    if code in LIVE_STATUS_CODES:
        return MatchStatus.LIVE
    if code >= STATUS_FINISHED_THRESHOLD:
        return MatchStatus.FINISHED
    return MatchStatus.SCHEDULED


class TeamSide(str, Enum):
    HOME = "home"
    AWAY = "away"


class TimelineEventType(str, Enum):
    GOAL = "goal"
    YELLOW_CARD = "yellow-card"
    RED_CARD = "red-card"
    SUBSTITUTION = "substitution"


class GoalType(str, Enum):
    REGULAR = "regular"
    PENALTY = "penalty"
    OWN_GOAL = "own-goal"


class CardType(str, Enum):
    YELLOW = "yellow"
    RED = "red"
    SECOND_YELLOW = "second-yellow"


GOAL_TYPE_CODES: dict[int, GoalType] = {
    1: GoalType.PENALTY,
    2: GoalType.REGULAR,
    3: GoalType.OWN_GOAL,
}

CARD_CODES: dict[int, CardType] = {
    1: CardType.YELLOW,
    2: CardType.RED,
    3: CardType.SECOND_YELLOW,
}


def goal_type_from_code(code: int | None) -> GoalType:
    return GOAL_TYPE_CODES.get(code, GoalType.REGULAR) if code is not None else GoalType.REGULAR


def card_type_from_code(code: int | None) -> CardType:
    return CARD_CODES.get(code, CardType.YELLOW) if code is not None else CardType.YELLOW


class FormResult(str, Enum):
    WIN = "W"
    DRAW = "D"
    LOSS = "L"
    NOT_PLAYED = "-"


# ── Standings match-result codes ────────────────────────────────────────
RESULT_HOME_WIN = 0
RESULT_AWAY_WIN = 1
RESULT_DRAW = 2
RESULT_NOT_PLAYED = 3

FORM_LENGTH = 5
